"""Analytics response schemas (camelCase, as consumed by the dashboard)."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel


class FleetSummaryResponse(BaseModel):
    totalRoutes: int
    totalDistance: float
    totalFuelSaved: float
    totalCO2Reduced: float
    totalTimeSaved: float
    truckCount: int
    activeTrucks: int
    averageFuelSaved: float


class SegmentPredictionModel(BaseModel):
    segmentId: str
    prediction: float
    timestamp: datetime


class ModelInfoModel(BaseModel):
    weights: Dict[str, float]
    accuracy: float
    data_points: int


class PredictionsResponse(BaseModel):
    predictions: List[SegmentPredictionModel]
    model: ModelInfoModel


class DailyEmissionsModel(BaseModel):
    date: str
    fuelSaved: float
    co2Reduced: float
    routes: int


class TruckSummaryResponse(BaseModel):
    truckId: str
    period: str
    routes: int
    totalDistance: float
    fuelUsed: float
    fuelSaved: float
    co2Reduced: float
    recalculations: int
