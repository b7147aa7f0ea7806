"""Route planning endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...schemas.common import LocationModel
from ...schemas.routes import (
    OptimizationModel,
    RouteCompleteRequest,
    RouteCreateRequest,
    RouteModel,
    RouteOptimizeRequest,
    RoutePlanResponse,
    RouteTrafficResponse,
    SegmentTrafficModel,
)
from ...services.container import Services
from ..deps import get_services, raise_http_error

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("", response_model=RoutePlanResponse, status_code=status.HTTP_201_CREATED)
async def create_route(payload: RouteCreateRequest, services: Services = Depends(get_services)) -> RoutePlanResponse:
    try:
        route, optimized = await services.fleet.create_route(
            payload.truck_id,
            payload.origin.to_domain(),
            payload.destination.to_domain(),
        )
    except Exception as exc:
        raise_http_error(exc, "create route")
    return RoutePlanResponse(route=RouteModel.from_domain(route), optimization=OptimizationModel.from_domain(optimized))


@router.get("/{route_id}", response_model=RouteModel, status_code=status.HTTP_200_OK)
async def get_route(route_id: str, services: Services = Depends(get_services)) -> RouteModel:
    try:
        route = await services.fleet.get_route(route_id)
    except Exception as exc:
        raise_http_error(exc, "load route")
    return RouteModel.from_domain(route)


@router.post("/{route_id}/optimize", response_model=RoutePlanResponse, status_code=status.HTTP_200_OK)
async def optimize_route(
    route_id: str,
    payload: RouteOptimizeRequest | None = None,
    services: Services = Depends(get_services),
) -> RoutePlanResponse:
    """Re-optimize from the current position and record the recalculation."""
    payload = payload or RouteOptimizeRequest()
    try:
        route, optimized = await services.fleet.reoptimize(
            route_id,
            payload.current_position.to_domain() if payload.current_position else None,
            reason=payload.reason,
        )
    except Exception as exc:
        raise_http_error(exc, "optimize route")
    return RoutePlanResponse(route=RouteModel.from_domain(route), optimization=OptimizationModel.from_domain(optimized))


@router.get("/{route_id}/traffic", response_model=RouteTrafficResponse, status_code=status.HTTP_200_OK)
async def get_route_traffic(route_id: str, services: Services = Depends(get_services)) -> RouteTrafficResponse:
    try:
        segments = await services.fleet.route_traffic(route_id)
    except Exception as exc:
        raise_http_error(exc, "load route traffic")

    models = [
        SegmentTrafficModel(
            segment_id=segment["segment_id"],
            congestion_level=segment["congestion_level"],
            speed=segment["speed"],
            incident=segment["incident"],
            location=LocationModel.from_domain(segment["location"]),
        )
        for segment in segments
    ]
    average = sum(model.congestion_level for model in models) / len(models) if models else 0.0
    return RouteTrafficResponse(route_id=route_id, average_traffic=round(average, 4), segments=models)


@router.put("/{route_id}/complete", response_model=RouteModel, status_code=status.HTTP_200_OK)
async def complete_route(
    route_id: str,
    payload: RouteCompleteRequest | None = None,
    services: Services = Depends(get_services),
) -> RouteModel:
    payload = payload or RouteCompleteRequest()
    try:
        route = await services.fleet.complete_route(route_id, payload.model_dump(exclude_none=True))
    except Exception as exc:
        raise_http_error(exc, "complete route")
    return RouteModel.from_domain(route)
