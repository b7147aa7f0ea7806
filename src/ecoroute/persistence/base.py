"""Storage contracts consumed by the services."""

from __future__ import annotations

from typing import Optional, Protocol

from ..models.domain import Location, RouteRecord, RouteStatus, TruckRecord


class RouteStore(Protocol):
    async def load(self, route_id: str) -> Optional[RouteRecord]:
        ...

    async def save(self, route: RouteRecord) -> None:
        ...

    async def list(self, status: Optional[RouteStatus] = None) -> list[RouteRecord]:
        ...


class TruckStore(Protocol):
    async def load(self, truck_id: str) -> Optional[TruckRecord]:
        ...

    async def save(self, truck: TruckRecord) -> None:
        ...

    async def update_location(self, truck_id: str, location: Location) -> None:
        ...

    async def list(self) -> list[TruckRecord]:
        ...
