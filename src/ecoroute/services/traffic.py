"""Simulated traffic feed with time-of-day congestion patterns."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from ..models.domain import Location
from .timeofday import Clock, local_now, time_segment

logger = logging.getLogger(__name__)

# Congestion draw ranges per time bucket: (low, high)
CONGESTION_RANGES = {
    "morning_rush": (0.6, 0.9),
    "evening_rush": (0.6, 0.9),
    "normal": (0.2, 0.5),
    "night": (0.05, 0.2),
}
MAX_CONGESTION = 0.95
INCIDENT_PROBABILITY = 0.05
INCIDENT_PENALTY = 0.2
CITY_MAX_SPEED_KMH = 60.0
DEFAULT_TTL_SECONDS = 120.0


@dataclass(frozen=True, slots=True)
class TrafficReading:
    segment_id: str
    congestion_level: float
    speed: float
    incident: bool


def segment_id_for(index: int) -> str:
    return f"seg_{index}"


class TrafficSimulator:
    """Produces a congestion reading per road segment.

    Readings are cached per segment id and reused until they are older than
    ``ttl_seconds``. The cache is shared by every tracking session; concurrent
    refreshes of the same key simply overwrite each other.
    """

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        clock: Clock = local_now,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        incident_probability: float = INCIDENT_PROBABILITY,
    ) -> None:
        self.rng = rng or random.Random()
        self.clock = clock
        self.ttl_seconds = ttl_seconds
        self.incident_probability = incident_probability
        self._cache: dict[str, tuple[datetime, TrafficReading]] = {}

    def read_segment(self, segment_id: str, latitude: float, longitude: float) -> TrafficReading:
        now = self.clock()
        cached = self._cache.get(segment_id)
        if cached is not None:
            cached_at, reading = cached
            if (now - cached_at).total_seconds() < self.ttl_seconds:
                return reading

        low, high = CONGESTION_RANGES[time_segment(now.hour)]
        base = self.rng.uniform(low, high)

        # Location-based variation (urban vs highway)
        location_factor = (abs(latitude) % 1) * 0.3
        congestion = _clamp(base + location_factor)

        incident = self.rng.random() < self.incident_probability
        if incident:
            congestion = _clamp(congestion + INCIDENT_PENALTY)
            logger.debug(f"Simulated incident on {segment_id} (congestion {congestion:.2f})")

        reading = TrafficReading(
            segment_id=segment_id,
            congestion_level=congestion,
            speed=CITY_MAX_SPEED_KMH * (1 - congestion),
            incident=incident,
        )
        self._cache[segment_id] = (now, reading)
        return reading

    def route_readings(self, waypoints: Sequence[Location]) -> list[TrafficReading]:
        return [
            self.read_segment(segment_id_for(index), waypoint.latitude, waypoint.longitude)
            for index, waypoint in enumerate(waypoints)
        ]

    def average_route_traffic(self, waypoints: Sequence[Location]) -> float:
        """Mean congestion over one reading per waypoint index."""

        if not waypoints:
            return 0.0
        readings = self.route_readings(waypoints)
        return sum(reading.congestion_level for reading in readings) / len(readings)

    def clear_cache(self) -> None:
        self._cache.clear()

    def cache_size(self) -> int:
        return len(self._cache)


def _clamp(value: float) -> float:
    return max(0.0, min(MAX_CONGESTION, value))
