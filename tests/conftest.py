import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import pytest

from ecoroute.models.domain import Location, Place, RouteRecord, TruckRecord
from ecoroute.persistence.memory import InMemoryRouteStore, InMemoryTruckStore
from ecoroute.services.geospatial import interpolate
from ecoroute.services.routing import RouteOptimizer
from ecoroute.services.tracking import GPSSimulator, TrackingService
from ecoroute.services.weather import WeatherReading

DELHI = Location(28.6139, 77.2090)
NOIDA = Location(28.5355, 77.3910)


class FixedTraffic:
    """Traffic feed whose average congestion is whatever ``level`` is set to."""

    def __init__(self, level: float = 0.2) -> None:
        self.level = level

    def average_route_traffic(self, waypoints) -> float:
        return self.level if waypoints else 0.0


class FixedWeather:
    def __init__(self, impact: float = 0.0) -> None:
        self.impact = impact

    def read_location(self, latitude: float, longitude: float) -> WeatherReading:
        return WeatherReading("clear", 1.0, self.impact)

    def average_route_impact(self, waypoints) -> float:
        return self.impact if waypoints else 0.0


class FixedPredictor:
    weights = None

    def __init__(self, level: float = 0.2) -> None:
        self.level = level

    def predict(self, segment_id: str) -> float:
        return self.level

    def model_info(self) -> dict:
        return {"weights": {}, "accuracy": 0.0, "data_points": 0}


@dataclass
class RecordingSink:
    published: list[tuple[str, str, dict[str, Any]]] = field(default_factory=list)

    async def publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        self.published.append((topic, event, payload))

    def events(self, name: str) -> list[dict[str, Any]]:
        return [payload for _, event, payload in self.published if event == name]


@dataclass
class TrackingEnv:
    routes: InMemoryRouteStore
    trucks: InMemoryTruckStore
    sink: RecordingSink
    gps: GPSSimulator
    traffic: FixedTraffic
    optimizer: RouteOptimizer
    tracking: TrackingService


def make_route(route_id: str = "route_1", truck_id: str = "truck_1", waypoints=None) -> RouteRecord:
    waypoints = waypoints if waypoints is not None else interpolate(DELHI, NOIDA, 15)
    return RouteRecord(
        route_id=route_id,
        truck_id=truck_id,
        origin=Place(waypoints[0].latitude, waypoints[0].longitude, "Connaught Place"),
        destination=Place(waypoints[-1].latitude, waypoints[-1].longitude, "Sector 18"),
        waypoints=list(waypoints),
    )


def make_truck(truck_id: str = "truck_1") -> TruckRecord:
    return TruckRecord(
        truck_id=truck_id,
        registration_number="DL-01-AB-1234",
        driver_name="Asha",
        current_location=DELHI,
    )


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def noon() -> datetime:
    # A Wednesday, outside both rush-hour windows
    return datetime(2024, 5, 15, 12, 0, 0)


@pytest.fixture
def tracking_env() -> TrackingEnv:
    routes = InMemoryRouteStore()
    trucks = InMemoryTruckStore()
    sink = RecordingSink()
    gps = GPSSimulator()
    traffic = FixedTraffic(0.2)
    optimizer = RouteOptimizer(traffic, FixedWeather(0.0), FixedPredictor(0.2))
    tracking = TrackingService(
        routes=routes,
        trucks=trucks,
        events=sink,
        gps=gps,
        traffic=traffic,
        optimizer=optimizer,
        tick_interval=0.01,
        traffic_interval=0.01,
        store_timeout=0.5,
    )
    return TrackingEnv(routes, trucks, sink, gps, traffic, optimizer, tracking)


@pytest.fixture
def route_factory():
    return make_route


@pytest.fixture
def truck_factory():
    return make_truck


@pytest.fixture
def fakes():
    """The fake simulator classes, for tests that need their own instances."""
    return {"traffic": FixedTraffic, "weather": FixedWeather, "predictor": FixedPredictor}
