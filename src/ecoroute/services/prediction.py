"""Congestion forecasting with a single-pass linear regression.

The model is trained once at construction from two weeks of synthetic hourly
history and never retrained:

    congestion = beta0 + beta1 * hour + beta2 * day_of_week + beta3 * segment_factor

beta1 and beta2 are fitted independently as mean-centered covariance/variance
ratios. beta3 is not learned from data; it is fixed at 0.05 so that segments with
a higher index are predicted slightly more congested.
"""

from __future__ import annotations

import logging
import random
from dataclasses import asdict, dataclass
from datetime import timedelta
from typing import Sequence

import numpy as np
from sklearn.metrics import mean_absolute_error

from ..errors import StartupError
from .timeofday import Clock, day_of_week, local_now

logger = logging.getLogger(__name__)

HISTORY_DAYS = 14
HISTORY_SEGMENTS = ("seg_0", "seg_1", "seg_2", "seg_3", "seg_4")
SEGMENT_COEFFICIENT = 0.05
PREDICTION_HORIZON = timedelta(minutes=30)
FALLBACK_PREDICTION = 0.5
ACCURACY_SAMPLE_SIZE = 100
WEEKEND_FACTOR = 0.6
NOISE_AMPLITUDE = 0.1


@dataclass(frozen=True, slots=True)
class HistoricalSample:
    hour: int
    day_of_week: int
    segment_id: str
    congestion: float


@dataclass(frozen=True, slots=True)
class ModelWeights:
    beta0: float
    beta1: float
    beta2: float
    beta3: float


def historical_base_congestion(hour: int, dow: int) -> float:
    if 8 <= hour <= 10:
        base = 0.7
    elif 18 <= hour <= 20:
        base = 0.75
    elif hour >= 22 or hour <= 6:
        base = 0.1
    else:
        base = 0.2
    if dow in (0, 6):
        base *= WEEKEND_FACTOR
    return base


def generate_history(rng: random.Random, days: int = HISTORY_DAYS) -> list[HistoricalSample]:
    samples: list[HistoricalSample] = []
    for day in range(days):
        dow = day % 7
        for hour in range(24):
            base = historical_base_congestion(hour, dow)
            for segment_id in HISTORY_SEGMENTS:
                noise = (rng.random() - 0.5) * 2 * NOISE_AMPLITUDE
                congestion = min(0.95, max(0.05, base + noise))
                samples.append(HistoricalSample(hour, dow, segment_id, congestion))
    return samples


def fit_weights(samples: Sequence[HistoricalSample]) -> ModelWeights:
    if not samples:
        raise ValueError("Cannot fit congestion model without samples.")

    hours = np.array([s.hour for s in samples], dtype=float)
    days = np.array([s.day_of_week for s in samples], dtype=float)
    congestion = np.array([s.congestion for s in samples], dtype=float)

    hour_centered = hours - hours.mean()
    day_centered = days - days.mean()
    cong_centered = congestion - congestion.mean()

    hour_var = float(np.sum(hour_centered**2))
    day_var = float(np.sum(day_centered**2))
    beta1 = float(np.sum(hour_centered * cong_centered)) / hour_var if hour_var else 0.0
    beta2 = float(np.sum(day_centered * cong_centered)) / day_var if day_var else 0.0
    beta0 = float(congestion.mean()) - beta1 * float(hours.mean()) - beta2 * float(days.mean())

    weights = ModelWeights(beta0=beta0, beta1=beta1, beta2=beta2, beta3=SEGMENT_COEFFICIENT)
    if not all(np.isfinite([weights.beta0, weights.beta1, weights.beta2])):
        raise ValueError(f"Congestion model produced non-finite weights: {weights}")
    return weights


def segment_factor(segment_id: str) -> float:
    """Numeric suffix of ``seg_<n>`` scaled by 0.01; 0 when there is no suffix."""

    _, _, suffix = segment_id.partition("_")
    try:
        return int(suffix) * 0.01
    except ValueError:
        return 0.0


class CongestionPredictor:
    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        clock: Clock = local_now,
        history: Sequence[HistoricalSample] | None = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.clock = clock
        self.history: list[HistoricalSample] = list(history) if history is not None else generate_history(self.rng)
        self.weights: ModelWeights | None = None
        try:
            self.weights = fit_weights(self.history)
        except ValueError as exc:
            logger.error(f"Congestion model training failed: {exc}")
            raise StartupError(f"Congestion model training failed: {exc}") from exc
        logger.info(
            f"Congestion model trained on {len(self.history)} samples: "
            f"beta0={self.weights.beta0:.4f} beta1={self.weights.beta1:.5f} beta2={self.weights.beta2:.5f}"
        )

    def _evaluate(self, hour: int, dow: int) -> float:
        if self.weights is None:
            return FALLBACK_PREDICTION
        return self.weights.beta0 + self.weights.beta1 * hour + self.weights.beta2 * dow

    def predict(self, segment_id: str) -> float:
        """Predicted congestion for the segment 30 minutes from now, in [0, 1]."""

        if self.weights is None:
            return FALLBACK_PREDICTION
        future = self.clock() + PREDICTION_HORIZON
        prediction = self._evaluate(future.hour, day_of_week(future))
        prediction += self.weights.beta3 * segment_factor(segment_id)
        return round(max(0.0, min(1.0, prediction)), 2)

    def accuracy(self, samples: Sequence[HistoricalSample] | None = None) -> float:
        """Score in [0, 100]: (1 - mean absolute error) * 100 over random history.

        Drawn afresh on every call unless ``samples`` is given.
        """

        if self.weights is None or not self.history:
            return 0.0
        if samples is None:
            size = min(ACCURACY_SAMPLE_SIZE, len(self.history))
            samples = [self.rng.choice(self.history) for _ in range(size)]
        if not samples:
            return 0.0
        actual = [s.congestion for s in samples]
        predicted = [self._evaluate(s.hour, s.day_of_week) for s in samples]
        error = float(mean_absolute_error(actual, predicted))
        return round((1 - error) * 100, 2)

    def model_info(self) -> dict:
        weights = self.weights or ModelWeights(0.0, 0.0, 0.0, 0.0)
        return {
            "weights": asdict(weights),
            "accuracy": self.accuracy(),
            "data_points": len(self.history),
        }
