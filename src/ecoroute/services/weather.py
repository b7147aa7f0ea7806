"""Simulated weather conditions along a route."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Sequence

from ..models.domain import Location
from .timeofday import Clock, is_night, local_now

WeatherType = Literal["clear", "rain", "fog", "heavy_rain"]

DEFAULT_TTL_SECONDS = 300.0
SAMPLE_STRIDE = 3


@dataclass(frozen=True, slots=True)
class WeatherReading:
    type: WeatherType
    visibility: float
    impact: float


def location_key(latitude: float, longitude: float) -> str:
    return f"{latitude:.2f}_{longitude:.2f}"


class WeatherSimulator:
    """Weather per ~1 km coordinate bucket, cached for ``ttl_seconds``."""

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        clock: Clock = local_now,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
    ) -> None:
        self.rng = rng or random.Random()
        self.clock = clock
        self.ttl_seconds = ttl_seconds
        self._cache: dict[str, tuple[datetime, WeatherReading]] = {}

    def read_location(self, latitude: float, longitude: float) -> WeatherReading:
        now = self.clock()
        key = location_key(latitude, longitude)
        cached = self._cache.get(key)
        if cached is not None:
            cached_at, reading = cached
            if (now - cached_at).total_seconds() < self.ttl_seconds:
                return reading

        reading = self._draw(now.hour)
        self._cache[key] = (now, reading)
        return reading

    def _draw(self, hour: int) -> WeatherReading:
        roll = self.rng.random()
        if roll < 0.70:
            return WeatherReading("clear", self.rng.uniform(0.95, 1.0), 0.0)
        if roll < 0.85:
            return WeatherReading("rain", self.rng.uniform(0.7, 0.9), 0.15)
        if roll < 0.92:
            # fog only forms overnight
            if is_night(hour):
                return WeatherReading("fog", self.rng.uniform(0.4, 0.7), 0.25)
            return WeatherReading("clear", 0.9, 0.0)
        return WeatherReading("heavy_rain", self.rng.uniform(0.3, 0.6), 0.35)

    def average_route_impact(self, waypoints: Sequence[Location]) -> float:
        """Average impact over every third waypoint, starting at the origin."""

        if not waypoints:
            return 0.0
        sampled = waypoints[::SAMPLE_STRIDE]
        total = sum(self.read_location(wp.latitude, wp.longitude).impact for wp in sampled)
        return total / math.ceil(len(waypoints) / SAMPLE_STRIDE)

    def clear_cache(self) -> None:
        self._cache.clear()

    def cache_size(self) -> int:
        return len(self._cache)
