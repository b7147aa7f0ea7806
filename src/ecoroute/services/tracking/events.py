"""Event sink contract and the payloads published while tracking."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, Sequence

from ...models.domain import Alert, Location
from ..routing.models import OptimizedRoute

POSITION_UPDATED = "position:updated"
ALERT_NEW = "alert:new"
ROUTE_OPTIMIZED = "route:optimized"
ROUTE_COMPLETED = "route:completed"
ROUTE_STARTED = "route:started"
TRAFFIC_UPDATED = "traffic:updated"
ERROR = "error"


class EventSink(Protocol):
    async def publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        ...


def route_topic(route_id: str) -> str:
    return f"route:{route_id}"


def traffic_topic(route_id: str) -> str:
    return f"traffic:{route_id}"


def location_payload(location: Location) -> dict[str, Any]:
    return {
        "latitude": location.latitude,
        "longitude": location.longitude,
        "timestamp": location.timestamp,
    }


def waypoints_payload(waypoints: Sequence[Location]) -> list[dict[str, Any]]:
    return [location_payload(point) for point in waypoints]


def optimization_payload(route: OptimizedRoute) -> dict[str, Any]:
    return {
        "waypoints": waypoints_payload(route.waypoints),
        "totalDistance": route.total_distance,
        "estimatedDuration": route.estimated_duration,
        "fuelEstimate": route.fuel_estimate,
        "co2Estimate": route.co2_estimate,
        "trafficScore": route.traffic_score,
        "weatherScore": route.weather_score,
        "overallScore": route.overall_score,
    }


def position_updated(truck_id: str, position: Location, progress: int) -> dict[str, Any]:
    return {"truckId": truck_id, "position": location_payload(position), "progress": progress}


def alert_new(alert: Alert) -> dict[str, Any]:
    return {
        "id": alert.id,
        "type": alert.type,
        "message": alert.message,
        "fuelSavings": alert.fuel_savings,
        "timeSavings": alert.time_savings,
        "timestamp": alert.timestamp,
    }


def route_optimized(route_id: str, route: OptimizedRoute) -> dict[str, Any]:
    return {
        "routeId": route_id,
        "newWaypoints": waypoints_payload(route.waypoints),
        "optimization": optimization_payload(route),
    }


def route_completed(route_id: str) -> dict[str, Any]:
    return {"routeId": route_id}


def traffic_updated(route_id: str, average_traffic: float, timestamp: datetime) -> dict[str, Any]:
    return {"routeId": route_id, "averageTraffic": average_traffic, "timestamp": timestamp}


def error_payload(code: str, message: str) -> dict[str, Any]:
    return {"code": code, "message": message}
