"""Payloads of the commands clients send over the tracking WebSocket."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from .common import LocationModel


class ClientMessage(BaseModel):
    event: str = Field(..., min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)


class RouteStartCommand(BaseModel):
    routeId: str = Field(..., min_length=1)


class OptimizeRequestCommand(BaseModel):
    routeId: str = Field(..., min_length=1)
    currentPosition: Optional[LocationModel] = None


class TrafficSubscribeCommand(BaseModel):
    routeId: str = Field(..., min_length=1)


class AlertAcknowledgeCommand(BaseModel):
    alertId: str = Field(..., min_length=1)
