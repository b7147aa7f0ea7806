"""Route planning and tracking schemas."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import RouteRecord, RouteStatus
from ..services.routing.models import OptimizedRoute
from .common import LocationModel, PlaceModel


class RouteCreateRequest(BaseModel):
    truck_id: str = Field(..., min_length=1)
    origin: PlaceModel
    destination: PlaceModel


class RouteOptimizeRequest(BaseModel):
    current_position: Optional[LocationModel] = Field(
        default=None,
        description="Where the truck is now; defaults to the first waypoint of the route.",
    )
    reason: Optional[str] = None


class RouteCompleteRequest(BaseModel):
    actual_duration: Optional[float] = Field(default=None, ge=0)
    fuel_used: Optional[float] = Field(default=None, ge=0)
    co2_emitted: Optional[float] = Field(default=None, ge=0)


class RouteMetricsModel(BaseModel):
    total_distance: float = 0.0
    estimated_duration: float = 0.0
    actual_duration: float = 0.0
    fuel_used: float = 0.0
    fuel_saved: float = 0.0
    co2_emitted: float = 0.0
    co2_reduced: float = 0.0
    time_saved: float = 0.0


class TrafficSampleModel(BaseModel):
    segment_id: str
    congestion_level: float
    timestamp: datetime


class RecalculationModel(BaseModel):
    timestamp: datetime
    reason: str
    new_route: List[LocationModel]
    expected_fuel_savings: float
    expected_time_savings: float


class RouteModel(BaseModel):
    route_id: str
    truck_id: str
    origin: PlaceModel
    destination: PlaceModel
    waypoints: List[LocationModel]
    status: RouteStatus
    metrics: RouteMetricsModel
    traffic_data: List[TrafficSampleModel]
    recalculations: List[RecalculationModel]
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, route: RouteRecord) -> "RouteModel":
        return cls(
            route_id=route.route_id,
            truck_id=route.truck_id,
            origin=PlaceModel.from_domain(route.origin),
            destination=PlaceModel.from_domain(route.destination),
            waypoints=[LocationModel.from_domain(point) for point in route.waypoints],
            status=route.status,
            metrics=RouteMetricsModel(**asdict(route.metrics)),
            traffic_data=[TrafficSampleModel(**asdict(sample)) for sample in route.traffic_data],
            recalculations=[
                RecalculationModel(
                    timestamp=item.timestamp,
                    reason=item.reason,
                    new_route=[LocationModel.from_domain(point) for point in item.new_route],
                    expected_fuel_savings=item.expected_fuel_savings,
                    expected_time_savings=item.expected_time_savings,
                )
                for item in route.recalculations
            ],
            created_at=route.created_at,
            updated_at=route.updated_at,
            completed_at=route.completed_at,
        )


class OptimizationModel(BaseModel):
    waypoints: List[LocationModel]
    total_distance: float
    estimated_duration: int
    fuel_estimate: float
    co2_estimate: float
    traffic_score: float
    weather_score: float
    overall_score: float

    @classmethod
    def from_domain(cls, optimized: OptimizedRoute) -> "OptimizationModel":
        return cls(
            waypoints=[LocationModel.from_domain(point) for point in optimized.waypoints],
            total_distance=optimized.total_distance,
            estimated_duration=optimized.estimated_duration,
            fuel_estimate=optimized.fuel_estimate,
            co2_estimate=optimized.co2_estimate,
            traffic_score=optimized.traffic_score,
            weather_score=optimized.weather_score,
            overall_score=optimized.overall_score,
        )


class RoutePlanResponse(BaseModel):
    route: RouteModel
    optimization: OptimizationModel


class SegmentTrafficModel(BaseModel):
    segment_id: str
    congestion_level: float
    speed: float
    incident: bool
    location: LocationModel


class RouteTrafficResponse(BaseModel):
    route_id: str
    average_traffic: float
    segments: List[SegmentTrafficModel]
