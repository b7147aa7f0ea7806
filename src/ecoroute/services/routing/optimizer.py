"""Multi-factor route optimization with dynamic recalculation."""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Sequence

from ...errors import ValidationFailure
from ...models.domain import Location
from .. import emissions
from ..geospatial import interpolate, path_length_km
from ..prediction import CongestionPredictor
from ..traffic import TrafficSimulator, segment_id_for
from ..weather import WeatherSimulator
from .models import AlertDraft, OptimizedRoute, RecalculationDecision

logger = logging.getLogger(__name__)

ALTERNATIVE_SEGMENTS = 15
DETOUR_AMPLITUDE_DEG = 0.01
DETOUR_FREQUENCY = 0.5
RECALCULATION_THRESHOLD = 0.30
BASE_SPEED_KMH = 40.0
TYPICAL_DISTANCE_KM = 50.0

# Score weights: traffic, weather, distance, prediction
TRAFFIC_WEIGHT = 0.4
WEATHER_WEIGHT = 0.2
DISTANCE_WEIGHT = 0.25
PREDICTION_WEIGHT = 0.15


def generate_alternatives(origin: Location, destination: Location) -> list[list[Location]]:
    """Direct path plus a northern and a southern sinusoidal detour.

    The detour amplitude is a fixed 0.01 degrees of latitude whatever the route
    length, so it is negligible on long routes.
    """

    direct = interpolate(origin, destination, ALTERNATIVE_SEGMENTS)
    alternatives = [direct]
    for sign in (1, -1):
        detour = list(direct)
        for index in range(1, len(direct) - 1):
            point = direct[index]
            offset = sign * math.sin(index * DETOUR_FREQUENCY) * DETOUR_AMPLITUDE_DEG
            detour[index] = Location(latitude=point.latitude + offset, longitude=point.longitude)
        alternatives.append(detour)
    return alternatives


class RouteOptimizer:
    def __init__(
        self,
        traffic: TrafficSimulator,
        weather: WeatherSimulator,
        predictor: CongestionPredictor,
        *,
        recalculation_threshold: float = RECALCULATION_THRESHOLD,
        max_workers: int = 3,
    ) -> None:
        self.traffic = traffic
        self.weather = weather
        self.predictor = predictor
        self.recalculation_threshold = recalculation_threshold
        self.max_workers = max_workers

    def optimize(
        self,
        origin: Location,
        destination: Location,
        consider_predictions: bool = True,
    ) -> OptimizedRoute:
        alternatives = generate_alternatives(origin, destination)
        scorer = partial(self.score_route, consider_predictions=consider_predictions)

        # executor.map keeps generation order, so ties resolve to the earlier alternative
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            scored = list(executor.map(scorer, alternatives))

        best = scored[0]
        for candidate in scored[1:]:
            if candidate.overall_score > best.overall_score:
                best = candidate
        logger.debug(
            f"Optimized route: scores={[route.overall_score for route in scored]} "
            f"selected={best.overall_score} distance={best.total_distance}km"
        )
        return best

    def score_route(self, waypoints: Sequence[Location], consider_predictions: bool = True) -> OptimizedRoute:
        if len(waypoints) < 2:
            raise ValidationFailure("A route needs at least two waypoints to be scored.")

        total_distance = path_length_km(waypoints)
        current_traffic = self.traffic.average_route_traffic(waypoints)

        predicted_traffic = current_traffic
        if consider_predictions:
            predictions = [self.predictor.predict(segment_id_for(index)) for index in range(len(waypoints))]
            predicted_traffic = sum(predictions) / len(predictions)

        # Always plan for the worse of the observed and forecast congestion
        congestion = max(current_traffic, predicted_traffic)
        weather_impact = self.weather.average_route_impact(waypoints)

        fuel_estimate = emissions.fuel_consumption(waypoints, congestion, weather_impact)
        co2_estimate = emissions.co2(fuel_estimate)

        effective_speed = BASE_SPEED_KMH * (1 - congestion * 0.5) * (1 - weather_impact * 0.3)
        estimated_duration = (total_distance / effective_speed) * 60

        traffic_score = 1 - congestion
        weather_score = 1 - weather_impact
        distance_score = 1 / (1 + total_distance / TYPICAL_DISTANCE_KM)
        prediction_score = (1 - predicted_traffic) if consider_predictions else traffic_score

        overall_score = (
            traffic_score * TRAFFIC_WEIGHT
            + weather_score * WEATHER_WEIGHT
            + distance_score * DISTANCE_WEIGHT
            + prediction_score * PREDICTION_WEIGHT
        )

        return OptimizedRoute(
            waypoints=tuple(waypoints),
            total_distance=round(total_distance, 2),
            estimated_duration=round(estimated_duration),
            fuel_estimate=round(fuel_estimate, 2),
            co2_estimate=round(co2_estimate, 2),
            traffic_score=round(traffic_score, 2),
            weather_score=round(weather_score, 2),
            overall_score=round(overall_score, 3),
        )

    def should_recalculate(self, waypoints: Sequence[Location], previous_traffic: float) -> RecalculationDecision:
        """Trigger when average traffic moved by more than the threshold (strictly).

        A non-positive baseline cannot be used as a divisor; any traffic at all
        counts as a full change against it.
        """

        new_traffic = self.traffic.average_route_traffic(waypoints)
        if previous_traffic <= 0:
            trigger = new_traffic > 0
            return RecalculationDecision(trigger=trigger, new_traffic=new_traffic, change_pct=1.0 if trigger else 0.0)

        change_pct = abs(new_traffic - previous_traffic) / previous_traffic
        return RecalculationDecision(
            trigger=change_pct > self.recalculation_threshold,
            new_traffic=new_traffic,
            change_pct=change_pct,
        )

    @staticmethod
    def generate_alert(old_route: OptimizedRoute, new_route: OptimizedRoute, reason: str) -> AlertDraft:
        fuel_delta = round(old_route.fuel_estimate - new_route.fuel_estimate, 2)
        time_delta = old_route.estimated_duration - new_route.estimated_duration

        message = f"{reason}. "
        if fuel_delta > 0 and time_delta > 0:
            message += f"Recommended route change will save {fuel_delta:.1f}L fuel and {time_delta} minutes."
        elif fuel_delta > 0:
            message += f"Recommended route change will save {fuel_delta:.1f}L fuel."
        else:
            message += "Route adjusted for optimal efficiency."

        return AlertDraft(
            message=message,
            fuel_savings=max(0.0, fuel_delta),
            time_savings=max(0, time_delta),
        )
