"""Database persistence for trucks and routes."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import fields
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar

from ..config import Settings
from ..db.supabase import get_supabase_client
from ..errors import NotFoundError, StartupError, TransientIOError
from ..models.domain import (
    Location,
    Place,
    Recalculation,
    RouteMetrics,
    RouteRecord,
    RouteStatus,
    TrafficSample,
    TruckRecord,
    utcnow,
)
from .base import RouteStore, TruckStore
from .memory import InMemoryRouteStore, InMemoryTruckStore

logger = logging.getLogger(__name__)

ROUTES_TABLE = "routes"
TRUCKS_TABLE = "trucks"

T = TypeVar("T")

_METRIC_FIELDS = tuple(f.name for f in fields(RouteMetrics))


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_dt(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def location_to_row(location: Location) -> dict[str, Any]:
    return {
        "latitude": location.latitude,
        "longitude": location.longitude,
        "timestamp": _iso(location.timestamp),
    }


def location_from_row(row: dict[str, Any]) -> Location:
    return Location(
        latitude=float(row["latitude"]),
        longitude=float(row["longitude"]),
        timestamp=_parse_dt(row.get("timestamp")),
    )


def place_to_row(place: Place) -> dict[str, Any]:
    return {"latitude": place.latitude, "longitude": place.longitude, "address": place.address}


def place_from_row(row: dict[str, Any]) -> Place:
    return Place(latitude=float(row["latitude"]), longitude=float(row["longitude"]), address=row.get("address") or "")


def route_to_row(route: RouteRecord) -> dict[str, Any]:
    metrics = route.metrics
    return {
        "route_id": route.route_id,
        "truck_id": route.truck_id,
        "origin": place_to_row(route.origin),
        "destination": place_to_row(route.destination),
        "waypoints": [location_to_row(point) for point in route.waypoints],
        "status": route.status,
        "metrics": {
            "total_distance": metrics.total_distance,
            "estimated_duration": metrics.estimated_duration,
            "actual_duration": metrics.actual_duration,
            "fuel_used": metrics.fuel_used,
            "fuel_saved": metrics.fuel_saved,
            "co2_emitted": metrics.co2_emitted,
            "co2_reduced": metrics.co2_reduced,
            "time_saved": metrics.time_saved,
        },
        "traffic_data": [
            {
                "segment_id": sample.segment_id,
                "congestion_level": sample.congestion_level,
                "timestamp": _iso(sample.timestamp),
            }
            for sample in route.traffic_data
        ],
        "recalculations": [
            {
                "timestamp": _iso(entry.timestamp),
                "reason": entry.reason,
                "new_route": [location_to_row(point) for point in entry.new_route],
                "expected_savings": {
                    "fuel": entry.expected_fuel_savings,
                    "time": entry.expected_time_savings,
                },
            }
            for entry in route.recalculations
        ],
        "created_at": _iso(route.created_at),
        "updated_at": _iso(route.updated_at),
        "completed_at": _iso(route.completed_at),
    }


def route_from_row(row: dict[str, Any]) -> RouteRecord:
    metrics_row = row.get("metrics") or {}
    return RouteRecord(
        route_id=row["route_id"],
        truck_id=row["truck_id"],
        origin=place_from_row(row["origin"]),
        destination=place_from_row(row["destination"]),
        waypoints=[location_from_row(point) for point in row.get("waypoints") or []],
        status=row.get("status") or "planned",
        metrics=RouteMetrics(
            **{key: float(metrics_row.get(key) or 0) for key in _METRIC_FIELDS if key in metrics_row}
        ),
        traffic_data=[
            TrafficSample(
                segment_id=sample.get("segment_id") or "current",
                congestion_level=float(sample["congestion_level"]),
                timestamp=_parse_dt(sample.get("timestamp")) or utcnow(),
            )
            for sample in row.get("traffic_data") or []
        ],
        recalculations=[
            Recalculation(
                timestamp=_parse_dt(entry.get("timestamp")) or utcnow(),
                reason=entry.get("reason") or "",
                new_route=[location_from_row(point) for point in entry.get("new_route") or []],
                expected_fuel_savings=float((entry.get("expected_savings") or {}).get("fuel") or 0),
                expected_time_savings=float((entry.get("expected_savings") or {}).get("time") or 0),
            )
            for entry in row.get("recalculations") or []
        ],
        created_at=_parse_dt(row.get("created_at")) or utcnow(),
        updated_at=_parse_dt(row.get("updated_at")) or utcnow(),
        completed_at=_parse_dt(row.get("completed_at")),
    )


def truck_to_row(truck: TruckRecord) -> dict[str, Any]:
    return {
        "truck_id": truck.truck_id,
        "registration_number": truck.registration_number,
        "driver_name": truck.driver_name,
        "current_location": location_to_row(truck.current_location),
        "status": truck.status,
        "active_route_id": truck.active_route_id,
        "fuel_capacity": truck.fuel_capacity,
        "average_consumption": truck.average_consumption,
        "created_at": _iso(truck.created_at),
        "updated_at": _iso(truck.updated_at),
    }


def truck_from_row(row: dict[str, Any]) -> TruckRecord:
    return TruckRecord(
        truck_id=row["truck_id"],
        registration_number=row.get("registration_number") or "",
        driver_name=row.get("driver_name") or "",
        current_location=location_from_row(row["current_location"]),
        status=row.get("status") or "idle",
        active_route_id=row.get("active_route_id"),
        fuel_capacity=float(row.get("fuel_capacity") or 300.0),
        average_consumption=float(row.get("average_consumption") or 0.3),
        created_at=_parse_dt(row.get("created_at")) or utcnow(),
        updated_at=_parse_dt(row.get("updated_at")) or utcnow(),
    )


class _SupabaseTable:
    """Runs blocking Supabase calls off the event loop and normalizes failures."""

    def __init__(self, client: Any, table: str) -> None:
        self.client = client
        self.table = table

    async def run(self, description: str, call: Callable[[Any], T]) -> T:
        try:
            return await asyncio.to_thread(call, self.client.table(self.table))
        except Exception as exc:
            logger.warning(f"Supabase {description} on '{self.table}' failed: {exc}")
            raise TransientIOError(f"Failed to {description} {self.table}: {exc}") from exc


class SupabaseRouteStore:
    def __init__(self, client: Any) -> None:
        self._table = _SupabaseTable(client, ROUTES_TABLE)

    async def load(self, route_id: str) -> Optional[RouteRecord]:
        response = await self._table.run(
            "load", lambda table: table.select("*").eq("route_id", route_id).limit(1).execute()
        )
        rows = response.data or []
        return route_from_row(rows[0]) if rows else None

    async def save(self, route: RouteRecord) -> None:
        route.updated_at = utcnow()
        row = route_to_row(route)
        await self._table.run("save", lambda table: table.upsert(row, on_conflict="route_id").execute())

    async def list(self, status: Optional[RouteStatus] = None) -> list[RouteRecord]:
        def query(table: Any) -> Any:
            builder = table.select("*")
            if status:
                builder = builder.eq("status", status)
            return builder.order("created_at").execute()

        response = await self._table.run("list", query)
        return [route_from_row(row) for row in response.data or []]


class SupabaseTruckStore:
    def __init__(self, client: Any) -> None:
        self._table = _SupabaseTable(client, TRUCKS_TABLE)

    async def load(self, truck_id: str) -> Optional[TruckRecord]:
        response = await self._table.run(
            "load", lambda table: table.select("*").eq("truck_id", truck_id).limit(1).execute()
        )
        rows = response.data or []
        return truck_from_row(rows[0]) if rows else None

    async def save(self, truck: TruckRecord) -> None:
        truck.updated_at = utcnow()
        row = truck_to_row(truck)
        await self._table.run("save", lambda table: table.upsert(row, on_conflict="truck_id").execute())

    async def update_location(self, truck_id: str, location: Location) -> None:
        update = {"current_location": location_to_row(location), "updated_at": _iso(utcnow())}
        response = await self._table.run(
            "update location in", lambda table: table.update(update).eq("truck_id", truck_id).execute()
        )
        if not response.data:
            raise NotFoundError("truck", truck_id)

    async def list(self) -> list[TruckRecord]:
        response = await self._table.run("list", lambda table: table.select("*").order("created_at").execute())
        return [truck_from_row(row) for row in response.data or []]


def check_connectivity(client: Any) -> None:
    """Issue a cheap query so a misconfigured database fails at startup."""

    try:
        client.table(TRUCKS_TABLE).select("truck_id").limit(1).execute()
    except Exception as exc:
        raise StartupError(f"Supabase is configured but unreachable: {exc}") from exc


def build_stores(config: Settings) -> tuple[RouteStore, TruckStore]:
    """Supabase-backed stores when credentials are set, in-memory otherwise."""

    if not config.supabase_url or not config.supabase_key:
        logger.warning("Supabase not configured - routes and trucks are kept in memory only")
        return InMemoryRouteStore(), InMemoryTruckStore()

    client = get_supabase_client(config.supabase_url, config.supabase_key)
    if client is None:
        raise StartupError("Supabase credentials are set but the client could not be created.")
    check_connectivity(client)
    logger.info("Using Supabase for route and truck persistence")
    return SupabaseRouteStore(client), SupabaseTruckStore(client)
