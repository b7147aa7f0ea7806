"""Fleet analytics endpoints."""

from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from ...schemas.analytics import (
    DailyEmissionsModel,
    FleetSummaryResponse,
    PredictionsResponse,
    TruckSummaryResponse,
)
from ...services.analytics import MAX_PREDICTION_SEGMENTS
from ...services.container import Services
from ..deps import get_services, raise_http_error

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/fleet", response_model=FleetSummaryResponse, status_code=status.HTTP_200_OK)
async def get_fleet_summary(services: Services = Depends(get_services)) -> FleetSummaryResponse:
    try:
        return FleetSummaryResponse(**await services.analytics.fleet_summary())
    except Exception as exc:
        raise_http_error(exc, "compute fleet analytics")


@router.get("/predictions", response_model=PredictionsResponse, status_code=status.HTTP_200_OK)
def get_predictions(
    segments: int = Query(default=10, ge=1, le=MAX_PREDICTION_SEGMENTS, description="Number of segments to forecast"),
    services: Services = Depends(get_services),
) -> PredictionsResponse:
    try:
        return PredictionsResponse(**services.analytics.predictions(segments))
    except Exception as exc:
        raise_http_error(exc, "predict congestion")


@router.get("/emissions", response_model=List[DailyEmissionsModel], status_code=status.HTTP_200_OK)
async def get_emissions(
    truck_id: Optional[str] = Query(default=None, description="Optional truck filter"),
    period: Literal["7d", "30d"] = Query(default="7d"),
    services: Services = Depends(get_services),
) -> List[DailyEmissionsModel]:
    try:
        daily = await services.analytics.emissions_breakdown(truck_id=truck_id, period=period)
    except Exception as exc:
        raise_http_error(exc, "compute emissions")
    return [DailyEmissionsModel(**entry) for entry in daily]


@router.get("/trucks/{truck_id}", response_model=TruckSummaryResponse, status_code=status.HTTP_200_OK)
async def get_truck_summary(
    truck_id: str,
    period: Literal["7d", "30d"] = Query(default="7d"),
    services: Services = Depends(get_services),
) -> TruckSummaryResponse:
    try:
        await services.fleet.get_truck(truck_id)
        return TruckSummaryResponse(**await services.analytics.truck_summary(truck_id, period=period))
    except Exception as exc:
        raise_http_error(exc, "compute truck analytics")
