"""Time-of-day buckets shared by the traffic simulator and the congestion model."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Literal

TimeSegment = Literal["morning_rush", "evening_rush", "normal", "night"]

Clock = Callable[[], datetime]


def local_now() -> datetime:
    return datetime.now()


def time_segment(hour: int) -> TimeSegment:
    if 8 <= hour <= 10:
        return "morning_rush"
    if 18 <= hour <= 20:
        return "evening_rush"
    if hour >= 22 or hour <= 6:
        return "night"
    return "normal"


def is_night(hour: int) -> bool:
    return time_segment(hour) == "night"


def day_of_week(moment: datetime) -> int:
    """Day index with Sunday as 0, matching the historical dataset."""

    return (moment.weekday() + 1) % 7
