import random
from datetime import datetime

import pytest

from ecoroute.errors import StartupError
from ecoroute.services.prediction import (
    CongestionPredictor,
    HistoricalSample,
    fit_weights,
    generate_history,
    historical_base_congestion,
    segment_factor,
)


def test_history_covers_two_weeks_of_hourly_samples_per_segment() -> None:
    history = generate_history(random.Random(0))

    assert len(history) == 14 * 24 * 5
    assert all(0.05 <= sample.congestion <= 0.95 for sample in history)
    assert {sample.segment_id for sample in history} == {"seg_0", "seg_1", "seg_2", "seg_3", "seg_4"}


def test_weekend_base_is_discounted() -> None:
    assert historical_base_congestion(9, 3) == 0.7
    assert historical_base_congestion(9, 0) == pytest.approx(0.42)
    assert historical_base_congestion(19, 6) == pytest.approx(0.45)


def test_fit_weights_recovers_exact_linear_relation() -> None:
    samples = [
        HistoricalSample(hour=h, day_of_week=d, segment_id="seg_0", congestion=0.1 + 0.02 * h + 0.01 * d)
        for h in range(24)
        for d in range(7)
    ]

    weights = fit_weights(samples)

    assert weights.beta1 == pytest.approx(0.02)
    assert weights.beta2 == pytest.approx(0.01)
    assert weights.beta0 == pytest.approx(0.1)
    assert weights.beta3 == 0.05


def test_empty_history_fails_startup() -> None:
    with pytest.raises(StartupError):
        CongestionPredictor(rng=random.Random(0), history=[])


def test_segment_factor() -> None:
    assert segment_factor("seg_7") == pytest.approx(0.07)
    assert segment_factor("current") == 0.0


def test_prediction_is_clamped_and_rounded(noon: datetime) -> None:
    predictor = CongestionPredictor(rng=random.Random(0), clock=lambda: noon)

    for index in range(20):
        value = predictor.predict(f"seg_{index}")
        assert 0.0 <= value <= 1.0
        assert value == round(value, 2)


def test_higher_segment_index_is_not_less_congested(noon: datetime) -> None:
    predictor = CongestionPredictor(rng=random.Random(0), clock=lambda: noon)

    assert predictor.predict("seg_19") >= predictor.predict("seg_0")


def test_model_info_reports_weights_and_accuracy() -> None:
    predictor = CongestionPredictor(rng=random.Random(0))

    info = predictor.model_info()

    assert set(info["weights"]) == {"beta0", "beta1", "beta2", "beta3"}
    assert info["data_points"] == 1680
    assert 0.0 <= info["accuracy"] <= 100.0


def test_accuracy_on_perfectly_linear_samples_is_100() -> None:
    samples = [
        HistoricalSample(hour=h, day_of_week=d, segment_id="seg_0", congestion=0.1 + 0.02 * h + 0.01 * d)
        for h in range(24)
        for d in range(7)
    ]
    predictor = CongestionPredictor(rng=random.Random(0), history=samples)

    assert predictor.accuracy(samples) == pytest.approx(100.0)


def test_untrained_model_falls_back(noon: datetime) -> None:
    predictor = CongestionPredictor(rng=random.Random(0), clock=lambda: noon)
    predictor.weights = None

    assert predictor.predict("seg_3") == 0.5
    assert predictor._evaluate(noon.hour, 2) == 0.5
    assert predictor.accuracy() == 0.0
    assert predictor.model_info()["weights"]["beta0"] == 0.0
