"""Wires the simulators, predictor, optimizer and services for one process."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional

from ..config import Settings
from ..persistence import build_stores
from ..persistence.base import RouteStore, TruckStore
from .analytics import AnalyticsService
from .fleet import FleetService
from .prediction import CongestionPredictor
from .routing import RouteOptimizer
from .tracking import EventSink, GPSSimulator, TrackingService
from .traffic import TrafficSimulator
from .weather import WeatherSimulator

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Services:
    routes: RouteStore
    trucks: TruckStore
    traffic: TrafficSimulator
    weather: WeatherSimulator
    predictor: CongestionPredictor
    optimizer: RouteOptimizer
    gps: GPSSimulator
    tracking: TrackingService
    fleet: FleetService
    analytics: AnalyticsService

    def clear_caches(self) -> None:
        traffic_entries = self.traffic.cache_size()
        weather_entries = self.weather.cache_size()
        self.traffic.clear_cache()
        self.weather.clear_cache()
        logger.info(f"Cleared simulator caches ({traffic_entries} traffic, {weather_entries} weather entries)")


def build_services(
    config: Settings,
    *,
    events: EventSink,
    routes: Optional[RouteStore] = None,
    trucks: Optional[TruckStore] = None,
    rng: Optional[random.Random] = None,
) -> Services:
    """Build the service graph; stores default to whatever ``build_stores`` picks.

    Raises ``StartupError`` if the predictor cannot be trained or a configured
    database is unreachable.
    """

    if routes is None or trucks is None:
        routes, trucks = build_stores(config)
    rng = rng or random.Random(config.random_seed)

    traffic = TrafficSimulator(rng=rng, ttl_seconds=config.traffic_cache_ttl_seconds)
    weather = WeatherSimulator(rng=rng, ttl_seconds=config.weather_cache_ttl_seconds)
    predictor = CongestionPredictor(rng=rng)
    optimizer = RouteOptimizer(
        traffic,
        weather,
        predictor,
        recalculation_threshold=config.recalculation_threshold,
    )
    gps = GPSSimulator(step_seconds=config.tick_interval_seconds)
    tracking = TrackingService(
        routes=routes,
        trucks=trucks,
        events=events,
        gps=gps,
        traffic=traffic,
        optimizer=optimizer,
        tick_interval=config.tick_interval_seconds,
        traffic_interval=config.traffic_update_interval_seconds,
        store_timeout=config.store_timeout_seconds,
        default_previous_traffic=config.default_previous_traffic,
        truck_speed=config.default_truck_speed_kmh,
    )
    fleet = FleetService(
        routes=routes,
        trucks=trucks,
        optimizer=optimizer,
        traffic=traffic,
        is_tracked=lambda route_id: tracking.get(route_id) is not None,
    )
    analytics = AnalyticsService(routes=routes, trucks=trucks, predictor=predictor)
    return Services(
        routes=routes,
        trucks=trucks,
        traffic=traffic,
        weather=weather,
        predictor=predictor,
        optimizer=optimizer,
        gps=gps,
        tracking=tracking,
        fleet=fleet,
        analytics=analytics,
    )
