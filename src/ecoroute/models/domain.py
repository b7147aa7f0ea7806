"""Domain models for trucks, routes and their tracking history."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Literal, Optional
from uuid import uuid4

RouteStatus = Literal["planned", "active", "completed", "cancelled"]
TruckStatus = Literal["active", "idle", "offline"]
AlertType = Literal["traffic", "weather", "route_change"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


@dataclass(frozen=True, slots=True)
class Location:
    """A point on the map; the timestamp is only set for observed positions."""

    latitude: float
    longitude: float
    timestamp: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class Place:
    """A route endpoint with a human readable label."""

    latitude: float
    longitude: float
    address: str = ""

    def to_location(self) -> Location:
        return Location(latitude=self.latitude, longitude=self.longitude)


@dataclass(slots=True)
class RouteMetrics:
    total_distance: float = 0.0
    estimated_duration: float = 0.0
    actual_duration: float = 0.0
    fuel_used: float = 0.0
    fuel_saved: float = 0.0
    co2_emitted: float = 0.0
    co2_reduced: float = 0.0
    time_saved: float = 0.0


@dataclass(slots=True)
class TrafficSample:
    segment_id: str
    congestion_level: float
    timestamp: datetime


@dataclass(slots=True)
class Recalculation:
    timestamp: datetime
    reason: str
    new_route: List[Location]
    expected_fuel_savings: float = 0.0
    expected_time_savings: float = 0.0


@dataclass(slots=True)
class RouteRecord:
    """Persisted route; an active tracking session is its only writer."""

    route_id: str
    truck_id: str
    origin: Place
    destination: Place
    waypoints: List[Location]
    status: RouteStatus = "planned"
    metrics: RouteMetrics = field(default_factory=RouteMetrics)
    traffic_data: List[TrafficSample] = field(default_factory=list)
    recalculations: List[Recalculation] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    def last_traffic_level(self) -> Optional[float]:
        if not self.traffic_data:
            return None
        return self.traffic_data[-1].congestion_level


@dataclass(slots=True)
class TruckRecord:
    truck_id: str
    registration_number: str
    driver_name: str
    current_location: Location
    status: TruckStatus = "idle"
    active_route_id: Optional[str] = None
    fuel_capacity: float = 300.0
    average_consumption: float = 0.3
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class Alert:
    id: str
    type: AlertType
    message: str
    timestamp: datetime
    fuel_savings: Optional[float] = None
    time_savings: Optional[float] = None
