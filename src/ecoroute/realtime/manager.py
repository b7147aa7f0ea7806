"""WebSocket connection registry; the event sink used in production."""

from __future__ import annotations

import logging
from typing import Any, Dict, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks open sockets by connection id and the topics each one joined."""

    def __init__(self) -> None:
        self.connections: Dict[str, WebSocket] = {}
        self.rooms: Dict[str, Set[str]] = {}

    async def connect(self, connection_id: str, ws: WebSocket) -> None:
        await ws.accept()
        self.connections[connection_id] = ws
        logger.info(f"Client connected: {connection_id}")

    def disconnect(self, connection_id: str) -> None:
        self.connections.pop(connection_id, None)
        for topic in list(self.rooms):
            self.leave(connection_id, topic)
        logger.info(f"Client disconnected: {connection_id}")

    def join(self, connection_id: str, topic: str) -> None:
        self.rooms.setdefault(topic, set()).add(connection_id)

    def leave(self, connection_id: str, topic: str) -> None:
        if topic in self.rooms:
            self.rooms[topic].discard(connection_id)
            if not self.rooms[topic]:
                self.rooms.pop(topic, None)

    async def send(self, connection_id: str, event: str, payload: dict[str, Any]) -> None:
        ws = self.connections.get(connection_id)
        if ws is None:
            return
        try:
            await ws.send_json(jsonable_encoder({"event": event, "data": payload}))
        except Exception as exc:
            logger.warning(f"Dropping connection {connection_id}: {exc}")
            self.disconnect(connection_id)

    async def publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        for connection_id in list(self.rooms.get(topic, set())):
            await self.send(connection_id, event, payload)
