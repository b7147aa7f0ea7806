import pytest

from ecoroute.errors import ValidationFailure
from ecoroute.models.domain import Location
from ecoroute.services.geospatial import distance
from ecoroute.services.tracking import GPSSimulator

START = Location(28.6139, 77.2090)
NEAR = Location(28.6140, 77.2091)  # ~15 m away
FAR = Location(28.6239, 77.2090)  # ~1.1 km away


def test_start_requires_waypoints() -> None:
    gps = GPSSimulator()

    with pytest.raises(ValidationFailure):
        gps.start("truck_1", [])


def test_advance_moves_one_step_towards_next_waypoint() -> None:
    gps = GPSSimulator(step_seconds=5)
    gps.start("truck_1", [START, FAR], speed=36.0)

    position = gps.advance("truck_1")

    # 36 km/h for 5 s is 50 m
    assert distance(START, position) == pytest.approx(0.05, rel=1e-3)
    assert position.timestamp is not None
    assert gps.progress("truck_1") == 0
    assert not gps.is_complete("truck_1")


def test_congestion_slows_the_truck() -> None:
    free = GPSSimulator()
    jammed = GPSSimulator()
    free.start("t", [START, FAR])
    jammed.start("t", [START, FAR])

    free_step = distance(START, free.advance("t", 0.0))
    jammed_step = distance(START, jammed.advance("t", 0.5))

    assert jammed_step == pytest.approx(free_step * 0.7, rel=1e-3)


def test_snaps_to_waypoint_and_completion_is_sticky() -> None:
    gps = GPSSimulator()
    gps.start("truck_1", [START, NEAR])

    assert gps.advance("truck_1") == NEAR
    assert gps.is_complete("truck_1")
    assert gps.progress("truck_1") == 100

    assert gps.advance("truck_1") == NEAR
    assert gps.progress("truck_1") == 100


def test_single_point_route_is_complete() -> None:
    gps = GPSSimulator()
    gps.start("truck_1", [START])

    assert gps.is_complete("truck_1")
    assert gps.progress("truck_1") == 100


def test_unknown_truck() -> None:
    gps = GPSSimulator()

    assert gps.advance("ghost") is None
    assert gps.current_position("ghost") is None
    assert gps.progress("ghost") == 0
    assert gps.waypoints("ghost") == []


def test_update_route_restarts_from_live_position() -> None:
    gps = GPSSimulator()
    gps.start("truck_1", [START, FAR])
    position = gps.advance("truck_1")
    replacement = [Location(28.62, 77.21), Location(28.63, 77.22)]

    gps.update_route("truck_1", replacement)

    assert gps.waypoints("truck_1") == [position, *replacement]
    assert gps.progress("truck_1") == 0
    assert gps.remaining_waypoints("truck_1") == [position, *replacement]


def test_stop_forgets_the_truck() -> None:
    gps = GPSSimulator()
    gps.start("truck_1", [START, FAR])

    gps.stop("truck_1")

    assert gps.active_trucks() == []
    assert gps.is_complete("truck_1")
