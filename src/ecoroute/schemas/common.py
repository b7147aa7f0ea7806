"""Shared geographic schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..models.domain import Location, Place


class LocationModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    timestamp: Optional[datetime] = None

    @classmethod
    def from_domain(cls, location: Location) -> "LocationModel":
        return cls(latitude=location.latitude, longitude=location.longitude, timestamp=location.timestamp)

    def to_domain(self) -> Location:
        return Location(latitude=self.latitude, longitude=self.longitude, timestamp=self.timestamp)


class PlaceModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: str = ""

    @classmethod
    def from_domain(cls, place: Place) -> "PlaceModel":
        return cls(latitude=place.latitude, longitude=place.longitude, address=place.address)

    def to_domain(self) -> Place:
        return Place(latitude=self.latitude, longitude=self.longitude, address=self.address)
