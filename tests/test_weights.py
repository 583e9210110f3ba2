"""Tests for the adaptive weight tuner and performance history."""

import pytest

from aura.learning.weights import (
    DEFAULT_WEIGHTS,
    AdaptiveWeights,
    AdaptiveWeightTuner,
    PerformanceMetrics,
)


def _tuner(**kwargs) -> AdaptiveWeightTuner:
    return AdaptiveWeightTuner(AdaptiveWeights(), **kwargs)


class TestPerformanceMetrics:
    def test_missing_fields_take_neutral_defaults(self):
        m = PerformanceMetrics.from_mapping({"accuracy": 0.9, "predictive_accuracy": None})
        assert m.accuracy == 0.9
        assert m.predictive_accuracy == 0.5
        assert m.time_to_complete == 60.0
        assert m.user_satisfaction == 3.0

    def test_unknown_fields_ignored(self):
        m = PerformanceMetrics.from_mapping({"accuracy": "0.7", "mood": "great"})
        assert m.accuracy == pytest.approx(0.7)


class TestAdaptiveWeights:
    def test_defaults_sum_to_one(self):
        assert AdaptiveWeights().total() == pytest.approx(1.0)

    def test_dot(self):
        w = AdaptiveWeights()
        assert w.dot({k: 1.0 for k in DEFAULT_WEIGHTS}) == pytest.approx(1.0)


class TestAdaptiveWeightTuner:
    def test_high_accuracy_raises_context_weight(self):
        tuner = _tuner()
        initial = tuner.weights["context"]
        previous = initial
        for _ in range(10):
            tuner.record(PerformanceMetrics(accuracy=0.9))
            assert tuner.weights["context"] > previous
            assert tuner.weights.total() == pytest.approx(1.0)
            previous = tuner.weights["context"]
        assert tuner.weights["context"] > initial
        assert tuner.weights["context"] <= 0.20 + 1e-9

    def test_low_accuracy_shifts_weight_to_depth(self):
        tuner = _tuner()
        tuner.record(PerformanceMetrics(accuracy=0.4))
        assert tuner.weights["context"] < DEFAULT_WEIGHTS["context"]
        assert tuner.weights["depth"] > DEFAULT_WEIGHTS["depth"]
        assert tuner.weights.total() == pytest.approx(1.0)

    def test_middling_accuracy_leaves_weights(self):
        tuner = _tuner()
        tuner.record(PerformanceMetrics(accuracy=0.7))
        for k, v in DEFAULT_WEIGHTS.items():
            assert tuner.weights[k] == pytest.approx(v)

    def test_normalised_after_many_mixed_updates(self):
        tuner = _tuner()
        for i in range(40):
            tuner.record(PerformanceMetrics(accuracy=0.95 if i % 3 else 0.3))
            assert tuner.weights.total() == pytest.approx(1.0)

    def test_context_floor(self):
        tuner = _tuner(learning_rate=1.0)
        for _ in range(20):
            tuner.record(PerformanceMetrics(accuracy=0.1))
        # clamp happens before renormalisation, so allow a small undershoot
        assert tuner.weights["context"] > 0.05

    def test_history_bounded(self):
        tuner = _tuner(history_size=5)
        for _ in range(12):
            tuner.record(PerformanceMetrics())
        assert len(tuner.history) == 5

    def test_recent_prediction_accuracy(self):
        tuner = _tuner()
        assert tuner.recent_prediction_accuracy() == 0.7
        for value in (0.2, 0.4, 0.6):
            tuner.record(PerformanceMetrics(predictive_accuracy=value))
        assert tuner.recent_prediction_accuracy() == pytest.approx(0.4)

    def test_stats(self):
        tuner = _tuner()
        assert tuner.stats()["total_records"] == 0
        tuner.record(PerformanceMetrics(accuracy=0.8, context_relevance=0.6))
        tuner.record(PerformanceMetrics(accuracy=0.6, context_relevance=0.4))
        stats = tuner.stats()
        assert stats["total_records"] == 2
        assert stats["average_accuracy"] == pytest.approx(0.7)
        assert stats["average_context_relevance"] == pytest.approx(0.5)
