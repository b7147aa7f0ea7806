"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...services.container import Services
from ..deps import get_services

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/model", status_code=status.HTTP_200_OK)
def health_model(services: Services = Depends(get_services)) -> dict:
    """Congestion model state plus the simulators' cache sizes."""
    info = services.predictor.model_info()
    return {
        "service": "congestion-model",
        "trained": services.predictor.weights is not None,
        "accuracy": info["accuracy"],
        "data_points": info["data_points"],
        "traffic_cache_entries": services.traffic.cache_size(),
        "weather_cache_entries": services.weather.cache_size(),
        "tracked_routes": len(services.tracking.active_route_ids()),
    }
