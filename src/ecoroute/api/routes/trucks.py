"""Truck registry endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from ...schemas.common import LocationModel
from ...schemas.trucks import TruckCreateRequest, TruckLocationResponse, TruckModel, TruckUpdateRequest
from ...services.container import Services
from ..deps import get_services, raise_http_error

router = APIRouter(prefix="/trucks", tags=["trucks"])


@router.get("", response_model=List[TruckModel], status_code=status.HTTP_200_OK)
async def list_trucks(services: Services = Depends(get_services)) -> List[TruckModel]:
    try:
        trucks = await services.fleet.list_trucks()
    except Exception as exc:
        raise_http_error(exc, "list trucks")
    return [TruckModel.from_domain(truck) for truck in trucks]


@router.post("", response_model=TruckModel, status_code=status.HTTP_201_CREATED)
async def create_truck(payload: TruckCreateRequest, services: Services = Depends(get_services)) -> TruckModel:
    try:
        truck = await services.fleet.create_truck(**payload.model_dump())
    except Exception as exc:
        raise_http_error(exc, "create truck")
    return TruckModel.from_domain(truck)


@router.get("/{truck_id}", response_model=TruckModel, status_code=status.HTTP_200_OK)
async def get_truck(truck_id: str, services: Services = Depends(get_services)) -> TruckModel:
    try:
        truck = await services.fleet.get_truck(truck_id)
    except Exception as exc:
        raise_http_error(exc, "load truck")
    return TruckModel.from_domain(truck)


@router.put("/{truck_id}", response_model=TruckModel, status_code=status.HTTP_200_OK)
async def update_truck(
    truck_id: str,
    payload: TruckUpdateRequest,
    services: Services = Depends(get_services),
) -> TruckModel:
    try:
        truck = await services.fleet.update_truck(truck_id, payload.model_dump(exclude_none=True))
    except Exception as exc:
        raise_http_error(exc, "update truck")
    return TruckModel.from_domain(truck)


@router.get("/{truck_id}/location", response_model=TruckLocationResponse, status_code=status.HTTP_200_OK)
async def get_truck_location(truck_id: str, services: Services = Depends(get_services)) -> TruckLocationResponse:
    try:
        truck = await services.fleet.get_truck(truck_id)
    except Exception as exc:
        raise_http_error(exc, "load truck location")
    return TruckLocationResponse(
        truck_id=truck.truck_id,
        location=LocationModel.from_domain(truck.current_location),
        status=truck.status,
        active_route_id=truck.active_route_id,
    )
