"""Truck request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..models.domain import TruckRecord, TruckStatus
from .common import LocationModel


class TruckCreateRequest(BaseModel):
    registration_number: str = Field(..., min_length=1)
    driver_name: str = Field(..., min_length=1)
    fuel_capacity: Optional[float] = Field(default=None, gt=0, description="Tank size in litres.")
    average_consumption: Optional[float] = Field(default=None, gt=0, description="Litres per km.")


class TruckUpdateRequest(BaseModel):
    registration_number: Optional[str] = Field(default=None, min_length=1)
    driver_name: Optional[str] = Field(default=None, min_length=1)
    status: Optional[TruckStatus] = None
    fuel_capacity: Optional[float] = Field(default=None, gt=0)
    average_consumption: Optional[float] = Field(default=None, gt=0)


class TruckModel(BaseModel):
    truck_id: str
    registration_number: str
    driver_name: str
    current_location: LocationModel
    status: TruckStatus
    active_route_id: Optional[str] = None
    fuel_capacity: float
    average_consumption: float
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, truck: TruckRecord) -> "TruckModel":
        return cls(
            truck_id=truck.truck_id,
            registration_number=truck.registration_number,
            driver_name=truck.driver_name,
            current_location=LocationModel.from_domain(truck.current_location),
            status=truck.status,
            active_route_id=truck.active_route_id,
            fuel_capacity=truck.fuel_capacity,
            average_consumption=truck.average_consumption,
            created_at=truck.created_at,
            updated_at=truck.updated_at,
        )


class TruckLocationResponse(BaseModel):
    truck_id: str
    location: LocationModel
    status: TruckStatus
    active_route_id: Optional[str] = None
