import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from ecoroute.config import Settings
from ecoroute.errors import NotFoundError, StartupError, TransientIOError
from ecoroute.models.domain import Location, Recalculation, RouteMetrics, TrafficSample
from ecoroute.persistence import (
    InMemoryRouteStore,
    InMemoryTruckStore,
    SupabaseRouteStore,
    SupabaseTruckStore,
    build_stores,
)
from ecoroute.db import supabase as supabase_db
from ecoroute.persistence import database
from ecoroute.persistence.database import route_from_row, route_to_row, truck_from_row, truck_to_row


class FakeQuery:
    """Just enough of the Supabase query builder for the stores."""

    def __init__(self, table: "FakeTable") -> None:
        self.table = table
        self.filters: list[tuple[str, object]] = []
        self.action = "select"
        self.payload = None

    def select(self, *_columns, **_kwargs):
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def limit(self, _count):
        return self

    def order(self, _column):
        return self

    def upsert(self, row, on_conflict):
        self.action, self.payload, self.key = "upsert", row, on_conflict
        return self

    def update(self, values):
        self.action, self.payload = "update", values
        return self

    def execute(self):
        if self.table.fail:
            raise ConnectionError("connection refused")
        if self.action == "upsert":
            self.table.rows[self.payload[self.key]] = dict(self.payload)
            return SimpleNamespace(data=[self.payload])
        matches = [
            row for row in self.table.rows.values() if all(row.get(col) == value for col, value in self.filters)
        ]
        if self.action == "update":
            for row in matches:
                row.update(self.payload)
        return SimpleNamespace(data=matches)


class FakeTable:
    def __init__(self) -> None:
        self.rows: dict[str, dict] = {}
        self.fail = False


class FakeClient:
    def __init__(self) -> None:
        self.tables: dict[str, FakeTable] = {}

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self.tables.setdefault(name, FakeTable()))


def test_memory_store_returns_copies(route_factory) -> None:
    store = InMemoryRouteStore()

    async def scenario():
        route = route_factory()
        await store.save(route)
        loaded = await store.load("route_1")
        loaded.status = "active"
        return await store.load("route_1"), await store.load("missing")

    stored, missing = asyncio.run(scenario())

    assert stored.status == "planned"
    assert missing is None


def test_memory_store_lists_by_status(route_factory) -> None:
    store = InMemoryRouteStore()

    async def scenario():
        done = route_factory("route_done")
        done.status = "completed"
        await store.save(route_factory("route_open"))
        await store.save(done)
        return await store.list(status="completed"), await store.list()

    completed, everything = asyncio.run(scenario())

    assert [route.route_id for route in completed] == ["route_done"]
    assert len(everything) == 2


def test_memory_truck_location_update(truck_factory) -> None:
    store = InMemoryTruckStore()
    moved = Location(28.7, 77.1, datetime(2024, 5, 15, tzinfo=timezone.utc))

    async def scenario():
        await store.save(truck_factory())
        await store.update_location("truck_1", moved)
        with pytest.raises(NotFoundError):
            await store.update_location("ghost", moved)
        return await store.load("truck_1")

    truck = asyncio.run(scenario())

    assert truck.current_location == moved


def test_route_row_round_trip(route_factory) -> None:
    stamp = datetime(2024, 5, 15, 12, 30, tzinfo=timezone.utc)
    route = route_factory()
    route.metrics = RouteMetrics(total_distance=19.8, estimated_duration=42, fuel_saved=2.5)
    route.traffic_data.append(TrafficSample("current", 0.35, stamp))
    route.recalculations.append(Recalculation(stamp, "Traffic congestion increased", route.waypoints[:2], 1.2, 4))
    route.completed_at = stamp

    row = route_to_row(route)
    restored = route_from_row(row)

    assert row["recalculations"][0]["expected_savings"] == {"fuel": 1.2, "time": 4}
    assert restored.metrics == route.metrics
    assert restored.traffic_data == route.traffic_data
    assert restored.recalculations == route.recalculations
    assert restored.waypoints == route.waypoints
    assert restored.origin == route.origin
    assert restored.completed_at == stamp


def test_route_from_row_ignores_unknown_metrics(route_factory) -> None:
    row = route_to_row(route_factory())
    row["metrics"]["legacy_field"] = 3

    assert route_from_row(row).metrics.total_distance == 0.0


def test_truck_row_round_trip(truck_factory) -> None:
    truck = truck_factory()

    restored = truck_from_row(truck_to_row(truck))

    assert restored == truck


def test_supabase_stores_upsert_and_load(route_factory, truck_factory) -> None:
    client = FakeClient()
    routes = SupabaseRouteStore(client)
    trucks = SupabaseTruckStore(client)
    moved = Location(28.7, 77.1)

    async def scenario():
        await routes.save(route_factory())
        await trucks.save(truck_factory())
        await trucks.update_location("truck_1", moved)
        with pytest.raises(NotFoundError):
            await trucks.update_location("ghost", moved)
        return await routes.load("route_1"), await routes.list(status="planned"), await trucks.load("truck_1")

    route, planned, truck = asyncio.run(scenario())

    assert route.route_id == "route_1"
    assert [r.route_id for r in planned] == ["route_1"]
    assert truck.current_location == moved


def test_supabase_failures_become_transient(route_factory) -> None:
    client = FakeClient()
    routes = SupabaseRouteStore(client)
    client.tables.setdefault("routes", FakeTable()).fail = True

    with pytest.raises(TransientIOError):
        asyncio.run(routes.save(route_factory()))


def test_build_stores_falls_back_to_memory_without_credentials() -> None:
    routes, trucks = build_stores(Settings(supabase_url=None, supabase_key=None))

    assert isinstance(routes, InMemoryRouteStore)
    assert isinstance(trucks, InMemoryTruckStore)


def test_build_stores_fails_startup_when_database_unreachable(monkeypatch: pytest.MonkeyPatch) -> None:
    client = FakeClient()
    client.tables.setdefault("trucks", FakeTable()).fail = True
    monkeypatch.setattr(database, "get_supabase_client", lambda url, key: client)

    with pytest.raises(StartupError):
        build_stores(Settings(supabase_url="https://example.supabase.co", supabase_key="key"))


def test_build_stores_uses_supabase_when_reachable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(database, "get_supabase_client", lambda url, key: FakeClient())

    routes, trucks = build_stores(Settings(supabase_url="https://example.supabase.co", supabase_key="key"))

    assert isinstance(routes, SupabaseRouteStore)
    assert isinstance(trucks, SupabaseTruckStore)


def test_build_stores_creates_client_from_given_config(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def fake_create_client(url, key):
        calls.append((url, key))
        return FakeClient()

    monkeypatch.setattr(supabase_db, "create_client", fake_create_client)
    monkeypatch.setattr(supabase_db.settings, "supabase_url", None)
    monkeypatch.setattr(supabase_db.settings, "supabase_key", None)
    supabase_db.get_supabase_client.cache_clear()
    try:
        routes, _ = build_stores(Settings(supabase_url="https://example.supabase.co", supabase_key="key"))
    finally:
        supabase_db.get_supabase_client.cache_clear()

    assert calls == [("https://example.supabase.co", "key")]
    assert isinstance(routes, SupabaseRouteStore)
