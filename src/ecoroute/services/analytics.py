"""Fleet-level aggregates over completed routes and congestion forecasts."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Literal, Optional

from ..models.domain import utcnow
from ..persistence.base import RouteStore, TruckStore
from .prediction import CongestionPredictor
from .traffic import segment_id_for

Period = Literal["7d", "30d"]
MAX_PREDICTION_SEGMENTS = 20


def period_start(period: Period, now: Optional[datetime] = None) -> datetime:
    days_back = 30 if period == "30d" else 7
    return (now or utcnow()) - timedelta(days=days_back)


class AnalyticsService:
    def __init__(self, *, routes: RouteStore, trucks: TruckStore, predictor: CongestionPredictor) -> None:
        self.routes = routes
        self.trucks = trucks
        self.predictor = predictor

    async def fleet_summary(self) -> dict:
        completed = await self.routes.list(status="completed")
        trucks = await self.trucks.list()

        total_routes = len(completed)
        total_fuel_saved = sum(route.metrics.fuel_saved for route in completed)
        average_fuel_saved = round(total_fuel_saved / total_routes, 2) if total_routes else 0.0

        return {
            "totalRoutes": total_routes,
            "totalDistance": round(sum(route.metrics.total_distance for route in completed), 2),
            "totalFuelSaved": round(total_fuel_saved, 2),
            "totalCO2Reduced": round(sum(route.metrics.co2_reduced for route in completed), 2),
            "totalTimeSaved": round(sum(route.metrics.time_saved for route in completed), 2),
            "truckCount": len(trucks),
            "activeTrucks": sum(1 for truck in trucks if truck.status == "active"),
            "averageFuelSaved": average_fuel_saved,
        }

    def predictions(self, segments: int = 10) -> dict:
        count = max(0, min(segments, MAX_PREDICTION_SEGMENTS))
        now = utcnow()
        return {
            "predictions": [
                {
                    "segmentId": segment_id_for(index),
                    "prediction": self.predictor.predict(segment_id_for(index)),
                    "timestamp": now,
                }
                for index in range(count)
            ],
            "model": self.predictor.model_info(),
        }

    async def emissions_breakdown(
        self,
        *,
        truck_id: Optional[str] = None,
        period: Period = "7d",
        now: Optional[datetime] = None,
    ) -> list[dict]:
        """Daily fuel and CO2 savings of completed routes in the period."""

        start = period_start(period, now)
        routes = [
            route
            for route in await self.routes.list(status="completed")
            if route.created_at >= start and (truck_id is None or route.truck_id == truck_id)
        ]

        daily: dict[str, dict] = defaultdict(lambda: {"fuelSaved": 0.0, "co2Reduced": 0.0, "routes": 0})
        for route in routes:
            day = route.created_at.date().isoformat()
            bucket = daily[day]
            bucket["fuelSaved"] += route.metrics.fuel_saved
            bucket["co2Reduced"] += route.metrics.co2_reduced
            bucket["routes"] += 1

        return [
            {
                "date": day,
                "fuelSaved": round(bucket["fuelSaved"], 2),
                "co2Reduced": round(bucket["co2Reduced"], 2),
                "routes": bucket["routes"],
            }
            for day, bucket in sorted(daily.items())
        ]

    async def truck_summary(self, truck_id: str, *, period: Period = "7d", now: Optional[datetime] = None) -> dict:
        start = period_start(period, now)
        routes = [
            route
            for route in await self.routes.list(status="completed")
            if route.truck_id == truck_id and route.created_at >= start
        ]
        return {
            "truckId": truck_id,
            "period": period,
            "routes": len(routes),
            "totalDistance": round(sum(route.metrics.total_distance for route in routes), 2),
            "fuelUsed": round(sum(route.metrics.fuel_used for route in routes), 2),
            "fuelSaved": round(sum(route.metrics.fuel_saved for route in routes), 2),
            "co2Reduced": round(sum(route.metrics.co2_reduced for route in routes), 2),
            "recalculations": sum(len(route.recalculations) for route in routes),
        }
