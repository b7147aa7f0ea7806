"""In-process stores used when no database is configured, and in tests."""

from __future__ import annotations

import asyncio
import copy
from typing import Optional

from ..errors import NotFoundError
from ..models.domain import Location, RouteRecord, RouteStatus, TruckRecord, utcnow


class InMemoryRouteStore:
    """Keeps deep copies so callers never share mutable records with the store."""

    def __init__(self) -> None:
        self._routes: dict[str, RouteRecord] = {}
        self._lock = asyncio.Lock()

    async def load(self, route_id: str) -> Optional[RouteRecord]:
        async with self._lock:
            route = self._routes.get(route_id)
            return copy.deepcopy(route) if route else None

    async def save(self, route: RouteRecord) -> None:
        route.updated_at = utcnow()
        async with self._lock:
            self._routes[route.route_id] = copy.deepcopy(route)

    async def list(self, status: Optional[RouteStatus] = None) -> list[RouteRecord]:
        async with self._lock:
            routes = [r for r in self._routes.values() if status is None or r.status == status]
            return [copy.deepcopy(route) for route in sorted(routes, key=lambda r: r.created_at)]


class InMemoryTruckStore:
    def __init__(self) -> None:
        self._trucks: dict[str, TruckRecord] = {}
        self._lock = asyncio.Lock()

    async def load(self, truck_id: str) -> Optional[TruckRecord]:
        async with self._lock:
            truck = self._trucks.get(truck_id)
            return copy.deepcopy(truck) if truck else None

    async def save(self, truck: TruckRecord) -> None:
        truck.updated_at = utcnow()
        async with self._lock:
            self._trucks[truck.truck_id] = copy.deepcopy(truck)

    async def update_location(self, truck_id: str, location: Location) -> None:
        async with self._lock:
            truck = self._trucks.get(truck_id)
            if truck is None:
                raise NotFoundError("truck", truck_id)
            truck.current_location = location
            truck.updated_at = utcnow()

    async def list(self) -> list[TruckRecord]:
        async with self._lock:
            trucks = sorted(self._trucks.values(), key=lambda t: t.created_at)
            return [copy.deepcopy(truck) for truck in trucks]
