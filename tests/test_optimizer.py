import math
import random
from datetime import datetime

import pytest

from ecoroute.errors import ValidationFailure
from ecoroute.models.domain import Location
from ecoroute.services.geospatial import interpolate, path_length_km
from ecoroute.services.prediction import CongestionPredictor
from ecoroute.services.routing import OptimizedRoute, RouteOptimizer, generate_alternatives
from ecoroute.services.traffic import TrafficSimulator
from ecoroute.services.weather import WeatherSimulator

ORIGIN = Location(28.6139, 77.2090)
DESTINATION = Location(28.5355, 77.3910)


def _route(fuel: float, duration: int) -> OptimizedRoute:
    return OptimizedRoute(
        waypoints=(ORIGIN, DESTINATION),
        total_distance=20.0,
        estimated_duration=duration,
        fuel_estimate=fuel,
        co2_estimate=round(fuel * 2.68, 2),
        traffic_score=0.5,
        weather_score=1.0,
        overall_score=0.6,
    )


def test_alternatives_share_endpoints_and_mirror_detours() -> None:
    direct, north, south = generate_alternatives(ORIGIN, DESTINATION)

    assert len(direct) == len(north) == len(south) == 16
    for alternative in (direct, north, south):
        assert alternative[0] == ORIGIN
        assert alternative[-1] == DESTINATION
    offset = north[3].latitude - direct[3].latitude
    assert offset == pytest.approx(math.sin(1.5) * 0.01)
    assert south[3].latitude - direct[3].latitude == pytest.approx(-offset)
    assert north[3].longitude == direct[3].longitude


def test_fixed_conditions_produce_deterministic_estimates(fakes) -> None:
    # forecast below observed traffic, so the observed 0.6 drives the estimates
    optimizer = RouteOptimizer(fakes["traffic"](0.6), fakes["weather"](0.1), fakes["predictor"](0.5))

    best = optimizer.optimize(ORIGIN, DESTINATION)

    direct = interpolate(ORIGIN, DESTINATION, 15)
    distance = path_length_km(direct)
    expected_fuel = round(distance * 0.3 * (1 + 0.6 * 1.5) * (1 + 0.1 * 0.4), 2)
    expected_duration = round(distance / (40 * (1 - 0.6 * 0.5) * (1 - 0.1 * 0.3)) * 60)
    distance_score = 1 / (1 + distance / 50)
    expected_overall = round(0.4 * 0.4 + 0.9 * 0.2 + distance_score * 0.25 + 0.5 * 0.15, 3)

    assert best.waypoints == tuple(direct)
    assert best.total_distance == round(distance, 2)
    assert best.fuel_estimate == expected_fuel
    assert best.co2_estimate == round(expected_fuel * 2.68, 2)
    assert best.estimated_duration == expected_duration
    assert best.traffic_score == 0.4
    assert best.weather_score == 0.9
    assert best.overall_score == expected_overall


def test_forecast_congestion_wins_when_worse_than_observed(fakes) -> None:
    calm_forecast = RouteOptimizer(fakes["traffic"](0.2), fakes["weather"](0.0), fakes["predictor"](0.125))
    jam_forecast = RouteOptimizer(fakes["traffic"](0.2), fakes["weather"](0.0), fakes["predictor"](0.7))
    waypoints = interpolate(ORIGIN, DESTINATION, 15)

    calm = calm_forecast.score_route(waypoints)
    jammed = jam_forecast.score_route(waypoints)
    ignoring_forecast = jam_forecast.score_route(waypoints, consider_predictions=False)

    assert jammed.traffic_score == 0.3
    assert jammed.fuel_estimate > calm.fuel_estimate
    assert ignoring_forecast.traffic_score == 0.8
    assert ignoring_forecast.fuel_estimate == calm.fuel_estimate


def test_overall_score_within_unit_interval_with_simulators() -> None:
    rng = random.Random(11)
    noon = datetime(2024, 5, 15, 12, 0, 0)
    optimizer = RouteOptimizer(
        TrafficSimulator(rng=rng, clock=lambda: noon),
        WeatherSimulator(rng=rng, clock=lambda: noon),
        CongestionPredictor(rng=rng, clock=lambda: noon),
    )

    best = optimizer.optimize(ORIGIN, DESTINATION)

    assert 0.0 <= best.overall_score <= 1.0
    assert best.fuel_estimate > 0
    assert best.waypoints[0] == ORIGIN
    assert best.waypoints[-1] == DESTINATION


def test_score_route_needs_two_waypoints(fakes) -> None:
    optimizer = RouteOptimizer(fakes["traffic"](), fakes["weather"](), fakes["predictor"]())

    with pytest.raises(ValidationFailure):
        optimizer.score_route([ORIGIN])


def test_recalculation_threshold_is_strict(fakes) -> None:
    traffic = fakes["traffic"](0.75)
    optimizer = RouteOptimizer(traffic, fakes["weather"](), fakes["predictor"](), recalculation_threshold=0.5)
    waypoints = [ORIGIN, DESTINATION]

    at_threshold = optimizer.should_recalculate(waypoints, 0.5)
    traffic.level = 0.875
    above_threshold = optimizer.should_recalculate(waypoints, 0.5)

    assert at_threshold.change_pct == 0.5
    assert at_threshold.trigger is False
    assert above_threshold.trigger is True
    assert above_threshold.new_traffic == 0.875


def test_default_threshold_thirty_percent(fakes) -> None:
    traffic = fakes["traffic"](0.25)
    optimizer = RouteOptimizer(traffic, fakes["weather"](), fakes["predictor"]())

    assert optimizer.should_recalculate([ORIGIN, DESTINATION], 0.2).trigger is False
    traffic.level = 0.8
    assert optimizer.should_recalculate([ORIGIN, DESTINATION], 0.2).trigger is True
    traffic.level = 0.05
    assert optimizer.should_recalculate([ORIGIN, DESTINATION], 0.2).trigger is True


def test_zero_baseline_triggers_on_any_traffic(fakes) -> None:
    traffic = fakes["traffic"](0.1)
    optimizer = RouteOptimizer(traffic, fakes["weather"](), fakes["predictor"]())

    decision = optimizer.should_recalculate([ORIGIN, DESTINATION], 0.0)
    assert decision.trigger is True
    assert decision.change_pct == 1.0

    traffic.level = 0.0
    decision = optimizer.should_recalculate([ORIGIN, DESTINATION], 0.0)
    assert decision.trigger is False
    assert decision.change_pct == 0.0


def test_alert_reports_fuel_and_time_savings() -> None:
    draft = RouteOptimizer.generate_alert(_route(12.0, 45), _route(10.5, 40), "Traffic increased significantly ahead")

    assert draft.message == (
        "Traffic increased significantly ahead. Recommended route change will save 1.5L fuel and 5 minutes."
    )
    assert draft.fuel_savings == 1.5
    assert draft.time_savings == 5


def test_alert_fuel_only() -> None:
    draft = RouteOptimizer.generate_alert(_route(12.0, 40), _route(11.0, 42), "Traffic ahead")

    assert draft.message == "Traffic ahead. Recommended route change will save 1.0L fuel."
    assert draft.time_savings == 0


def test_alert_savings_never_negative() -> None:
    draft = RouteOptimizer.generate_alert(_route(10.0, 40), _route(12.0, 50), "Traffic ahead")

    assert draft.message == "Traffic ahead. Route adjusted for optimal efficiency."
    assert draft.fuel_savings == 0.0
    assert draft.time_savings == 0
