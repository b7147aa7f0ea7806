"""Fuel consumption and CO2 emission estimates for diesel trucks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..errors import ValidationFailure
from ..models.domain import Location
from .geospatial import path_length_km

CO2_PER_LITER = 2.68  # kg CO2 per liter of diesel
BASE_CONSUMPTION = 0.3  # L/km
IDLE_LITERS_PER_HOUR = 0.5
BASELINE_DISTANCE_FACTOR = 1.2
BASELINE_TRAFFIC = 0.6
BASELINE_WEATHER = 0.1
REFERENCE_SPEED_KMH = 40.0


@dataclass(frozen=True, slots=True)
class EmissionResult:
    fuel_used: float
    co2_emitted: float
    baseline_fuel: float
    baseline_co2: float
    fuel_saved: float
    co2_reduced: float


def _fuel_for_distance(distance_km: float, traffic: float, weather: float) -> float:
    # Congestion can add up to 150% and weather up to 40%; inputs are not clamped.
    traffic_multiplier = 1 + traffic * 1.5
    weather_multiplier = 1 + weather * 0.4
    return distance_km * BASE_CONSUMPTION * traffic_multiplier * weather_multiplier


def fuel_consumption(
    waypoints: Sequence[Location],
    traffic: float,
    weather: float,
    idle_minutes: float = 0.0,
) -> float:
    """Liters of diesel needed to drive the waypoints, rounded to 2 decimals."""

    idle_fuel = (idle_minutes / 60) * IDLE_LITERS_PER_HOUR
    total = _fuel_for_distance(path_length_km(waypoints), traffic, weather) + idle_fuel
    return round(total, 2)


def co2(fuel_liters: float) -> float:
    return round(fuel_liters * CO2_PER_LITER, 2)


def savings(
    optimized_waypoints: Sequence[Location],
    optimized_traffic: float,
    optimized_weather: float,
    baseline_traffic: float = BASELINE_TRAFFIC,
    baseline_weather: float = BASELINE_WEATHER,
) -> EmissionResult:
    """Compare the optimized path with an unoptimized one 20% longer.

    The saved amounts are negative when the optimized route is worse than the
    baseline assumptions.
    """

    fuel_used = fuel_consumption(optimized_waypoints, optimized_traffic, optimized_weather)
    co2_emitted = co2(fuel_used)

    baseline_distance = path_length_km(optimized_waypoints) * BASELINE_DISTANCE_FACTOR
    baseline_fuel = _fuel_for_distance(baseline_distance, baseline_traffic, baseline_weather)
    baseline_co2 = co2(baseline_fuel)

    return EmissionResult(
        fuel_used=fuel_used,
        co2_emitted=co2_emitted,
        baseline_fuel=round(baseline_fuel, 2),
        baseline_co2=baseline_co2,
        fuel_saved=round(baseline_fuel - fuel_used, 2),
        co2_reduced=round(baseline_co2 - co2_emitted, 2),
    )


def time_savings(
    optimized_distance: float,
    optimized_traffic: float,
    baseline_distance: float,
    baseline_traffic: float = BASELINE_TRAFFIC,
) -> int:
    """Minutes saved versus the baseline at 40 km/h scaled by free-flow share."""

    optimized_speed = REFERENCE_SPEED_KMH * (1 - optimized_traffic)
    baseline_speed = REFERENCE_SPEED_KMH * (1 - baseline_traffic)
    if optimized_speed <= 0 or baseline_speed <= 0:
        raise ValidationFailure("Congestion of 1.0 or more leaves no speed to estimate travel time.")

    optimized_time = (optimized_distance / optimized_speed) * 60
    baseline_time = (baseline_distance / baseline_speed) * 60
    return round(baseline_time - optimized_time)
