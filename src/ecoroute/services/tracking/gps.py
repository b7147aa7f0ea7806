"""Simulated GPS feed that moves trucks along their waypoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Sequence

from ...errors import ValidationFailure
from ...models.domain import Location, utcnow
from ..geospatial import distance

logger = logging.getLogger(__name__)

STEP_SECONDS = 5.0
DEFAULT_SPEED_KMH = 40.0
TRAFFIC_SLOWDOWN = 0.6


@dataclass(slots=True)
class TruckSession:
    waypoints: list[Location]
    current_index: int
    current_position: Location
    speed: float
    traffic_impact: float = 0.0

    @property
    def finished(self) -> bool:
        return self.current_index >= len(self.waypoints) - 1


class GPSSimulator:
    """Keeps one movement session per truck and advances it a fixed step at a time."""

    def __init__(
        self,
        *,
        step_seconds: float = STEP_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.step_seconds = step_seconds
        self.clock = clock
        self._sessions: dict[str, TruckSession] = {}

    def start(self, truck_id: str, waypoints: Sequence[Location], speed: float = DEFAULT_SPEED_KMH) -> None:
        if not waypoints:
            raise ValidationFailure("Cannot start a GPS session without waypoints.")
        self._sessions[truck_id] = TruckSession(
            waypoints=list(waypoints),
            current_index=0,
            current_position=waypoints[0],
            speed=speed,
        )

    def advance(self, truck_id: str, congestion: float = 0.0) -> Location | None:
        """Move the truck one step; returns None only for an unknown truck.

        Once the final waypoint is reached the position no longer changes.
        """

        session = self._sessions.get(truck_id)
        if session is None:
            return None
        if session.finished:
            return session.current_position

        next_waypoint = session.waypoints[session.current_index + 1]
        effective_speed = session.speed * (1 - congestion * TRAFFIC_SLOWDOWN)
        step_km = (effective_speed / 3600) * self.step_seconds
        remaining_km = distance(session.current_position, next_waypoint)

        if remaining_km <= step_km:
            session.current_index += 1
            session.current_position = next_waypoint
        else:
            ratio = step_km / remaining_km
            position = session.current_position
            session.current_position = Location(
                latitude=position.latitude + (next_waypoint.latitude - position.latitude) * ratio,
                longitude=position.longitude + (next_waypoint.longitude - position.longitude) * ratio,
                timestamp=self.clock(),
            )

        session.traffic_impact = congestion
        return session.current_position

    def current_position(self, truck_id: str) -> Location | None:
        session = self._sessions.get(truck_id)
        return session.current_position if session else None

    def waypoints(self, truck_id: str) -> list[Location]:
        session = self._sessions.get(truck_id)
        return list(session.waypoints) if session else []

    def remaining_waypoints(self, truck_id: str) -> list[Location]:
        """Current position followed by the waypoints not reached yet."""

        session = self._sessions.get(truck_id)
        if session is None:
            return []
        return [session.current_position, *session.waypoints[session.current_index + 1 :]]

    def progress(self, truck_id: str) -> int:
        session = self._sessions.get(truck_id)
        if session is None:
            return 0
        legs = len(session.waypoints) - 1
        if legs <= 0:
            return 100
        return round(session.current_index / legs * 100)

    def is_complete(self, truck_id: str) -> bool:
        session = self._sessions.get(truck_id)
        if session is None:
            return True
        return session.finished

    def update_route(self, truck_id: str, new_waypoints: Sequence[Location]) -> None:
        """Restart progress from the live position along the new path."""

        session = self._sessions.get(truck_id)
        if session is None:
            logger.warning(f"Ignoring route update for truck {truck_id} without a GPS session")
            return
        session.waypoints = [session.current_position, *new_waypoints]
        session.current_index = 0

    def stop(self, truck_id: str) -> None:
        self._sessions.pop(truck_id, None)

    def active_trucks(self) -> list[str]:
        return list(self._sessions)
