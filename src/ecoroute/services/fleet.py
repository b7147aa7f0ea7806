"""Truck and route lifecycle operations behind the HTTP endpoints."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Callable, Optional

from ..errors import NotFoundError, ValidationFailure
from ..models.domain import (
    Location,
    Place,
    Recalculation,
    RouteMetrics,
    RouteRecord,
    TruckRecord,
    new_id,
    utcnow,
)
from ..persistence.base import RouteStore, TruckStore
from . import emissions
from .geospatial import validate_coordinates
from .routing.models import OptimizedRoute
from .routing.optimizer import RouteOptimizer
from .traffic import TrafficSimulator, segment_id_for

logger = logging.getLogger(__name__)

# New trucks are parked in central Delhi until their first route
DEFAULT_TRUCK_LOCATION = (28.6139, 77.2090)
DEFAULT_REOPTIMIZE_REASON = "Traffic conditions changed"
TRUCK_UPDATABLE_FIELDS = {"registration_number", "driver_name", "status", "fuel_capacity", "average_consumption"}


def planned_metrics(optimized: OptimizedRoute) -> RouteMetrics:
    """Up-front estimates for a new route, including savings against the baseline."""

    congestion = 1 - optimized.traffic_score
    weather = 1 - optimized.weather_score
    result = emissions.savings(list(optimized.waypoints), congestion, weather)
    time_saved = 0
    if congestion < 1:
        time_saved = emissions.time_savings(
            optimized.total_distance,
            congestion,
            optimized.total_distance * emissions.BASELINE_DISTANCE_FACTOR,
        )
    return RouteMetrics(
        total_distance=optimized.total_distance,
        estimated_duration=optimized.estimated_duration,
        fuel_used=optimized.fuel_estimate,
        fuel_saved=result.fuel_saved,
        co2_emitted=optimized.co2_estimate,
        co2_reduced=result.co2_reduced,
        time_saved=time_saved,
    )


class FleetService:
    def __init__(
        self,
        *,
        routes: RouteStore,
        trucks: TruckStore,
        optimizer: RouteOptimizer,
        traffic: TrafficSimulator,
        is_tracked: Callable[[str], bool] = lambda route_id: False,
    ) -> None:
        self.routes = routes
        self.trucks = trucks
        self.optimizer = optimizer
        self.traffic = traffic
        self.is_tracked = is_tracked

    # -- trucks ------------------------------------------------------------

    async def create_truck(
        self,
        *,
        registration_number: str,
        driver_name: str,
        fuel_capacity: Optional[float] = None,
        average_consumption: Optional[float] = None,
    ) -> TruckRecord:
        lat, lon = DEFAULT_TRUCK_LOCATION
        truck = TruckRecord(
            truck_id=new_id("truck"),
            registration_number=registration_number,
            driver_name=driver_name,
            current_location=Location(latitude=lat, longitude=lon, timestamp=utcnow()),
            fuel_capacity=fuel_capacity or 300.0,
            average_consumption=average_consumption or 0.3,
        )
        await self.trucks.save(truck)
        logger.info(f"Registered truck {truck.truck_id} ({registration_number})")
        return truck

    async def list_trucks(self) -> list[TruckRecord]:
        return await self.trucks.list()

    async def get_truck(self, truck_id: str) -> TruckRecord:
        truck = await self.trucks.load(truck_id)
        if truck is None:
            raise NotFoundError("truck", truck_id)
        return truck

    async def update_truck(self, truck_id: str, changes: dict[str, Any]) -> TruckRecord:
        truck = await self.get_truck(truck_id)
        unknown = set(changes) - TRUCK_UPDATABLE_FIELDS
        if unknown:
            raise ValidationFailure(f"Cannot update truck fields: {', '.join(sorted(unknown))}")
        for key, value in changes.items():
            setattr(truck, key, value)
        await self.trucks.save(truck)
        return truck

    # -- routes ------------------------------------------------------------

    async def create_route(self, truck_id: str, origin: Place, destination: Place) -> tuple[RouteRecord, OptimizedRoute]:
        """Optimize a new route for a truck and persist it as planned."""

        validate_coordinates(origin.latitude, origin.longitude)
        validate_coordinates(destination.latitude, destination.longitude)
        truck = await self.get_truck(truck_id)

        optimized = await asyncio.to_thread(
            self.optimizer.optimize, origin.to_location(), destination.to_location()
        )
        route = RouteRecord(
            route_id=new_id("route"),
            truck_id=truck_id,
            origin=replace(origin, address=origin.address or "Origin"),
            destination=replace(destination, address=destination.address or "Destination"),
            waypoints=list(optimized.waypoints),
            metrics=planned_metrics(optimized),
        )
        await self.routes.save(route)

        truck.active_route_id = route.route_id
        truck.status = "active"
        await self.trucks.save(truck)
        logger.info(
            f"Planned route {route.route_id} for truck {truck_id}: "
            f"{optimized.total_distance}km, score {optimized.overall_score}"
        )
        return route, optimized

    async def get_route(self, route_id: str) -> RouteRecord:
        route = await self.routes.load(route_id)
        if route is None:
            raise NotFoundError("route", route_id)
        return route

    async def preview_optimization(self, route_id: str, current_position: Optional[Location] = None) -> OptimizedRoute:
        """Best route from the given position to the destination, without saving it."""

        route = await self.get_route(route_id)
        start = current_position or (route.waypoints[0] if route.waypoints else route.origin.to_location())
        validate_coordinates(start.latitude, start.longitude)
        return await asyncio.to_thread(self.optimizer.optimize, start, route.destination.to_location())

    async def reoptimize(
        self,
        route_id: str,
        current_position: Optional[Location] = None,
        *,
        reason: Optional[str] = None,
        expected_fuel_savings: float = 0.0,
        expected_time_savings: float = 0.0,
    ) -> tuple[RouteRecord, OptimizedRoute]:
        if self.is_tracked(route_id):
            raise ValidationFailure(f"Route '{route_id}' is being tracked; its live session owns the waypoints.")
        optimized = await self.preview_optimization(route_id, current_position)
        route = await self.get_route(route_id)
        route.recalculations.append(
            Recalculation(
                timestamp=utcnow(),
                reason=reason or DEFAULT_REOPTIMIZE_REASON,
                new_route=list(optimized.waypoints),
                expected_fuel_savings=expected_fuel_savings,
                expected_time_savings=expected_time_savings,
            )
        )
        route.waypoints = list(optimized.waypoints)
        await self.routes.save(route)
        return route, optimized

    async def route_traffic(self, route_id: str) -> list[dict[str, Any]]:
        route = await self.get_route(route_id)
        segments = []
        for index, waypoint in enumerate(route.waypoints):
            reading = self.traffic.read_segment(segment_id_for(index), waypoint.latitude, waypoint.longitude)
            segments.append(
                {
                    "segment_id": reading.segment_id,
                    "congestion_level": reading.congestion_level,
                    "speed": reading.speed,
                    "incident": reading.incident,
                    "location": waypoint,
                }
            )
        return segments

    async def complete_route(self, route_id: str, metrics: Optional[dict[str, float]] = None) -> RouteRecord:
        if self.is_tracked(route_id):
            raise ValidationFailure(f"Route '{route_id}' is still being tracked; stop tracking first.")
        route = await self.get_route(route_id)
        route.status = "completed"
        route.completed_at = utcnow()
        for key, value in (metrics or {}).items():
            if value is not None and hasattr(route.metrics, key):
                setattr(route.metrics, key, value)
        await self.routes.save(route)

        truck = await self.trucks.load(route.truck_id)
        if truck is not None:
            truck.status = "idle"
            truck.active_route_id = None
            await self.trucks.save(truck)
        return route
