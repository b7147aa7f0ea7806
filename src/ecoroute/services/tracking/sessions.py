"""Live tracking sessions: one timer-driven task per actively tracked route.

Each session owns its route record while it runs. On every tick it moves the
truck, writes the truck location through to the store, publishes the position,
checks whether traffic changed enough to re-optimize, and records a traffic
sample. Ticks of one route never overlap: the task sleeps for the interval and
then awaits the whole tick before sleeping again.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Literal, Optional, TypeVar

from ...errors import EcoRouteError, NotFoundError, TransientIOError, ValidationFailure
from ...models.domain import Alert, Location, Recalculation, RouteRecord, TrafficSample, new_id, utcnow
from ...persistence.base import RouteStore, TruckStore
from ..routing.models import OptimizedRoute
from ..routing.optimizer import RouteOptimizer
from ..traffic import TrafficSimulator
from . import events
from .events import EventSink
from .gps import GPSSimulator

logger = logging.getLogger(__name__)

SessionState = Literal["idle", "tracking", "completed", "cancelled"]

T = TypeVar("T")

RECALCULATION_ALERT_REASON = "Traffic increased significantly ahead"
RECALCULATION_REASON = "Traffic congestion increased"
CURRENT_SEGMENT = "current"


@dataclass(slots=True)
class TrackingSession:
    route: RouteRecord
    owner: Optional[str] = None
    state: SessionState = "idle"
    ticks: int = 0
    recalculations: int = 0
    task: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def route_id(self) -> str:
        return self.route.route_id

    @property
    def truck_id(self) -> str:
        return self.route.truck_id


class TrackingService:
    """Registry of tracking sessions and traffic subscriptions.

    Sessions are keyed by route id and remember the connection (``owner``) that
    started them, so that a disconnect can cancel everything that connection
    owns.
    """

    def __init__(
        self,
        *,
        routes: RouteStore,
        trucks: TruckStore,
        events: EventSink,
        gps: GPSSimulator,
        traffic: TrafficSimulator,
        optimizer: RouteOptimizer,
        tick_interval: float = 5.0,
        traffic_interval: float = 30.0,
        store_timeout: float = 3.0,
        default_previous_traffic: float = 0.2,
        truck_speed: float = 40.0,
    ) -> None:
        self.routes = routes
        self.trucks = trucks
        self.events = events
        self.gps = gps
        self.traffic = traffic
        self.optimizer = optimizer
        self.tick_interval = tick_interval
        self.traffic_interval = traffic_interval
        self.store_timeout = store_timeout
        self.default_previous_traffic = default_previous_traffic
        self.truck_speed = truck_speed
        self._sessions: dict[str, TrackingSession] = {}
        self._subscriptions: dict[tuple[Optional[str], str], asyncio.Task] = {}

    # -- session lifecycle -------------------------------------------------

    async def start(self, route_id: str, owner: Optional[str] = None, *, schedule: bool = True) -> TrackingSession:
        """Begin tracking a route; an existing session for it is replaced.

        A truck is tracked on one route at a time, so starting a second route
        for a truck that already has a live session is rejected.

        With ``schedule=False`` no timer task is created and the caller drives
        the session through :meth:`tick`.
        """

        route = await self._bounded(self.routes.load(route_id), "load route")
        if route is None:
            raise NotFoundError("route", route_id)
        if route.status in ("completed", "cancelled"):
            raise ValidationFailure(f"Route '{route_id}' is {route.status} and cannot be tracked.")
        if len(route.waypoints) < 2:
            raise ValidationFailure(f"Route '{route_id}' needs at least two waypoints to be tracked.")

        truck = await self._bounded(self.trucks.load(route.truck_id), "load truck")
        if truck is None:
            raise NotFoundError("truck", route.truck_id)
        busy = self._session_for_truck(route.truck_id)
        if busy is not None and busy.route_id != route_id:
            raise ValidationFailure(
                f"Truck '{route.truck_id}' is already tracking route '{busy.route_id}'; stop it first."
            )

        await self.stop(route_id)

        route.status = "active"
        await self._bounded(self.routes.save(route), "save route")
        truck.status = "active"
        truck.active_route_id = route.route_id
        await self._bounded(self.trucks.save(truck), "save truck")

        self.gps.start(route.truck_id, route.waypoints, speed=self.truck_speed)
        session = TrackingSession(route=route, owner=owner, state="tracking")
        self._sessions[route_id] = session
        if schedule:
            session.task = asyncio.create_task(self._run(session), name=f"tracking:{route_id}")
        logger.info(f"Tracking started for route {route_id} (truck {route.truck_id}, owner {owner})")
        return session

    async def stop(self, route_id: str) -> bool:
        """Cancel a session; no further ticks run once this returns.

        The route keeps its persisted status; marking it completed or cancelled
        is left to the caller.
        """

        session = self._sessions.pop(route_id, None)
        if session is None:
            return False
        if session.state == "tracking":
            session.state = "cancelled"
        self.gps.stop(session.truck_id)
        await _cancel(session.task)
        logger.info(f"Tracking stopped for route {route_id} after {session.ticks} ticks")
        return True

    async def stop_owner(self, owner: str) -> None:
        """Cancel every session and traffic subscription started by ``owner``."""

        for route_id in [rid for rid, s in self._sessions.items() if s.owner == owner]:
            await self.stop(route_id)
        for key in [key for key in self._subscriptions if key[0] == owner]:
            await _cancel(self._subscriptions.pop(key))

    async def shutdown(self) -> None:
        for route_id in list(self._sessions):
            await self.stop(route_id)
        for key in list(self._subscriptions):
            await _cancel(self._subscriptions.pop(key))

    def get(self, route_id: str) -> Optional[TrackingSession]:
        return self._sessions.get(route_id)

    def active_route_ids(self) -> list[str]:
        return list(self._sessions)

    def _session_for_truck(self, truck_id: str) -> Optional[TrackingSession]:
        for session in self._sessions.values():
            if session.truck_id == truck_id:
                return session
        return None

    # -- ticking -----------------------------------------------------------

    async def _run(self, session: TrackingSession) -> None:
        while session.state == "tracking":
            await asyncio.sleep(self.tick_interval)
            await self.tick(session)

    async def tick(self, session: TrackingSession) -> None:
        """Run one tick; failures are logged and the session keeps going."""

        if session.state != "tracking":
            return
        try:
            await self._tick(session)
        except TransientIOError as exc:
            logger.warning(f"Skipping tick for route {session.route_id}: {exc}")
        except EcoRouteError as exc:
            logger.warning(f"Tick for route {session.route_id} failed: {exc}")
        except Exception:
            logger.exception(f"Unexpected error while ticking route {session.route_id}")
        finally:
            session.ticks += 1

    async def _tick(self, session: TrackingSession) -> None:
        route = session.route
        truck_id = route.truck_id
        topic = events.route_topic(route.route_id)

        if self.gps.current_position(truck_id) is None:
            # GPS feed went away underneath us: stop, do not report arrival
            logger.warning(f"Route {route.route_id} lost its GPS session for truck {truck_id}; stopping")
            session.state = "cancelled"
            if self._sessions.get(route.route_id) is session:
                del self._sessions[route.route_id]
            return

        current_traffic = self.traffic.average_route_traffic(route.waypoints)
        position = self.gps.advance(truck_id, current_traffic)
        if position is not None:
            await self._bounded(self.trucks.update_location(truck_id, position), "update truck location")
            await self._publish(
                topic,
                events.POSITION_UPDATED,
                events.position_updated(truck_id, position, self.gps.progress(truck_id)),
            )

            previous_traffic = route.last_traffic_level()
            if previous_traffic is None:
                previous_traffic = self.default_previous_traffic
            decision = self.optimizer.should_recalculate(route.waypoints, previous_traffic)

            if decision.trigger and not self.gps.is_complete(truck_id):
                logger.info(
                    f"Route {route.route_id}: traffic {previous_traffic:.2f} -> {decision.new_traffic:.2f} "
                    f"({decision.change_pct:.0%}), recalculating"
                )
                await self._recalculate(session, position)

            route.traffic_data.append(
                TrafficSample(segment_id=CURRENT_SEGMENT, congestion_level=decision.new_traffic, timestamp=utcnow())
            )
            await self._bounded(self.routes.save(route), "save route")

        if self.gps.is_complete(truck_id):
            await self._complete(session)

    async def _recalculate(self, session: TrackingSession, position: Location) -> None:
        route = session.route
        truck_id = route.truck_id
        remaining = self.gps.remaining_waypoints(truck_id)
        destination = route.destination.to_location()

        old_route, new_route = await asyncio.to_thread(self._plan_replacement, remaining, position, destination)
        draft = self.optimizer.generate_alert(old_route, new_route, RECALCULATION_ALERT_REASON)
        alert = Alert(
            id=new_id("alert"),
            type="route_change",
            message=draft.message,
            timestamp=utcnow(),
            fuel_savings=draft.fuel_savings,
            time_savings=draft.time_savings,
        )
        topic = events.route_topic(route.route_id)
        await self._publish(topic, events.ALERT_NEW, events.alert_new(alert))

        new_waypoints = list(new_route.waypoints)
        route.recalculations.append(
            Recalculation(
                timestamp=alert.timestamp,
                reason=RECALCULATION_REASON,
                new_route=new_waypoints,
                expected_fuel_savings=draft.fuel_savings,
                expected_time_savings=draft.time_savings,
            )
        )
        route.waypoints = new_waypoints
        self.gps.update_route(truck_id, new_waypoints)
        session.recalculations += 1
        await self._publish(topic, events.ROUTE_OPTIMIZED, events.route_optimized(route.route_id, new_route))

    def _plan_replacement(
        self, remaining: list[Location], position: Location, destination: Location
    ) -> tuple[OptimizedRoute, OptimizedRoute]:
        new_route = self.optimizer.optimize(position, destination)
        old_route = self.optimizer.score_route(remaining) if len(remaining) >= 2 else new_route
        return old_route, new_route

    async def _complete(self, session: TrackingSession) -> None:
        session.state = "completed"
        self.gps.stop(session.truck_id)
        if self._sessions.get(session.route_id) is session:
            del self._sessions[session.route_id]
        logger.info(f"Route {session.route_id} completed after {session.ticks + 1} ticks")
        await self._publish(
            events.route_topic(session.route_id),
            events.ROUTE_COMPLETED,
            events.route_completed(session.route_id),
        )

    # -- traffic subscriptions ---------------------------------------------

    async def subscribe_traffic(self, route_id: str, owner: Optional[str] = None) -> None:
        route = await self._bounded(self.routes.load(route_id), "load route")
        if route is None:
            raise NotFoundError("route", route_id)
        key = (owner, route_id)
        await _cancel(self._subscriptions.pop(key, None))
        self._subscriptions[key] = asyncio.create_task(
            self._run_traffic_updates(route_id), name=f"traffic:{route_id}:{owner}"
        )

    async def _run_traffic_updates(self, route_id: str) -> None:
        while True:
            await asyncio.sleep(self.traffic_interval)
            try:
                await self.publish_traffic(route_id)
            except EcoRouteError as exc:
                logger.warning(f"Traffic update for route {route_id} skipped: {exc}")
            except Exception:
                logger.exception(f"Unexpected error publishing traffic for route {route_id}")

    async def publish_traffic(self, route_id: str) -> Optional[float]:
        session = self._sessions.get(route_id)
        route = session.route if session else await self._bounded(self.routes.load(route_id), "load route")
        if route is None:
            return None
        average = self.traffic.average_route_traffic(route.waypoints)
        await self._publish(
            events.traffic_topic(route_id),
            events.TRAFFIC_UPDATED,
            events.traffic_updated(route_id, average, utcnow()),
        )
        return average

    # -- helpers -----------------------------------------------------------

    async def _bounded(self, call: Awaitable[T], description: str) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.store_timeout)
        except asyncio.TimeoutError as exc:
            raise TransientIOError(f"Timed out trying to {description}") from exc

    async def _publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        try:
            await self.events.publish(topic, event, payload)
        except Exception as exc:
            # delivery is best effort
            logger.warning(f"Dropping {event} for {topic}: {exc}")


async def _cancel(task: Optional[asyncio.Task]) -> None:
    if task is None or task.done():
        return
    if task is asyncio.current_task():
        return
    task.cancel()
    await asyncio.wait([task])
