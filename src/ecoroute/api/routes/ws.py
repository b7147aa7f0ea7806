"""WebSocket command channel for live tracking."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from ...errors import NotFoundError
from ...models.domain import new_id
from ...realtime.manager import ConnectionManager
from ...schemas.tracking import (
    AlertAcknowledgeCommand,
    ClientMessage,
    OptimizeRequestCommand,
    RouteStartCommand,
    TrafficSubscribeCommand,
)
from ...services.container import Services
from ...services.tracking import events

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tracking"])


async def _start_route(services: Services, manager: ConnectionManager, connection_id: str, data: dict[str, Any]) -> None:
    command = RouteStartCommand(**data)
    session = await services.tracking.start(command.routeId, owner=connection_id)
    manager.join(connection_id, events.route_topic(command.routeId))
    await manager.send(connection_id, events.ROUTE_STARTED, {"routeId": session.route_id})


async def _request_optimization(
    services: Services, manager: ConnectionManager, connection_id: str, data: dict[str, Any]
) -> None:
    command = OptimizeRequestCommand(**data)
    position = command.currentPosition.to_domain() if command.currentPosition else None
    optimized = await services.fleet.preview_optimization(command.routeId, position)
    await manager.send(connection_id, events.ROUTE_OPTIMIZED, events.route_optimized(command.routeId, optimized))


async def _subscribe_traffic(
    services: Services, manager: ConnectionManager, connection_id: str, data: dict[str, Any]
) -> None:
    command = TrafficSubscribeCommand(**data)
    await services.tracking.subscribe_traffic(command.routeId, owner=connection_id)
    manager.join(connection_id, events.traffic_topic(command.routeId))


async def _acknowledge_alert(
    services: Services, manager: ConnectionManager, connection_id: str, data: dict[str, Any]
) -> None:
    command = AlertAcknowledgeCommand(**data)
    logger.info(f"Alert {command.alertId} acknowledged by {connection_id}")


HANDLERS = {
    "route:start": _start_route,
    "route:optimize:request": _request_optimization,
    "traffic:subscribe": _subscribe_traffic,
    "alert:acknowledge": _acknowledge_alert,
}


async def handle_message(
    services: Services, manager: ConnectionManager, connection_id: str, raw: str | bytes
) -> None:
    """Dispatch one client command; failures are reported back as ``error`` events."""
    try:
        message = ClientMessage.model_validate_json(raw)
        handler = HANDLERS.get(message.event)
        if handler is None:
            raise ValueError(f"Unknown event '{message.event}'")
        await handler(services, manager, connection_id, message.data)
    except NotFoundError as exc:
        await manager.send(connection_id, events.ERROR, events.error_payload("not_found", str(exc)))
    except (ValidationError, ValueError) as exc:
        await manager.send(connection_id, events.ERROR, events.error_payload("validation", str(exc)))
    except Exception as exc:
        logger.exception(f"Error handling message from {connection_id}: {exc}")
        await manager.send(connection_id, events.ERROR, events.error_payload("internal", "Internal error"))


@router.websocket("/ws")
async def tracking_ws(ws: WebSocket) -> None:
    services: Services = ws.app.state.services
    manager: ConnectionManager = ws.app.state.connections
    connection_id = new_id("conn")
    await manager.connect(connection_id, ws)
    try:
        while True:
            raw = await ws.receive_text()
            await handle_message(services, manager, connection_id, raw)
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(connection_id)
        await services.tracking.stop_owner(connection_id)
