"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ...models.domain import Location


@dataclass(frozen=True, slots=True)
class OptimizedRoute:
    waypoints: Tuple[Location, ...]
    total_distance: float
    estimated_duration: int
    fuel_estimate: float
    co2_estimate: float
    traffic_score: float
    weather_score: float
    overall_score: float


@dataclass(frozen=True, slots=True)
class RecalculationDecision:
    trigger: bool
    new_traffic: float
    change_pct: float


@dataclass(frozen=True, slots=True)
class AlertDraft:
    message: str
    fuel_savings: float
    time_savings: float
