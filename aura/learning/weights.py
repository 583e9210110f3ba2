"""
Adaptive Weight Tuner — nudges the composite-score weights after each
recorded performance outcome and keeps a bounded performance history.

Update rule (per outcome):
  accuracy > 0.8  → context weight += lr·0.1   (capped at the ceiling)
  accuracy < 0.6  → context weight -= lr·0.1   (floored), depth weight += lr·0.05
then every weight is divided by the total so the vector sums to 1.

The floor/ceiling clamp is applied before renormalisation, so a single update
can leave the context weight marginally outside its bounds until the next one.
"""

from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass, fields
from typing import Any, Deque, Dict, List, Mapping

import numpy as np
import structlog

logger = structlog.get_logger(__name__)

FACTORS = ("depth", "strength", "retention", "urgency", "context")

DEFAULT_WEIGHTS: Dict[str, float] = {
    "depth": 0.30,
    "strength": 0.25,
    "retention": 0.20,
    "urgency": 0.10,
    "context": 0.15,
}


@dataclass
class PerformanceMetrics:
    accuracy: float = 0.5
    task_completion: float = 0.5
    time_to_complete: float = 60.0
    user_satisfaction: float = 3.0          # 1-5
    context_relevance: float = 0.5
    environment_optimality: float = 0.5
    predictive_accuracy: float = 0.5
    adaptation_effectiveness: float = 0.5

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PerformanceMetrics":
        """Build from a partial record; missing or null fields take the neutral default."""
        known = {f.name for f in fields(cls)}
        kwargs = {k: float(v) for k, v in data.items() if k in known and v is not None}
        return cls(**kwargs)


class AdaptiveWeights:
    """Named weight vector; always renormalised to sum to 1 after an update."""

    def __init__(self, initial: Mapping[str, float] = DEFAULT_WEIGHTS):
        self._w: Dict[str, float] = {k: float(initial[k]) for k in FACTORS}

    def __getitem__(self, factor: str) -> float:
        return self._w[factor]

    def as_dict(self) -> Dict[str, float]:
        return dict(self._w)

    def dot(self, factors: Mapping[str, float]) -> float:
        return sum(self._w[k] * factors[k] for k in FACTORS)

    def total(self) -> float:
        return sum(self._w.values())

    def set(self, factor: str, value: float) -> None:
        self._w[factor] = value

    def normalise(self) -> None:
        total = self.total()
        if total <= 0:
            self._w = dict(DEFAULT_WEIGHTS)
            return
        for k in self._w:
            self._w[k] /= total


class AdaptiveWeightTuner:

    def __init__(
        self,
        weights: AdaptiveWeights,
        learning_rate: float = 0.08,
        context_floor: float = 0.10,
        context_ceiling: float = 0.20,
        history_size: int = 50,
    ):
        self.weights = weights
        self.learning_rate = learning_rate
        self.context_floor = context_floor
        self.context_ceiling = context_ceiling
        self._history: Deque[PerformanceMetrics] = deque(maxlen=history_size)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def record(self, metrics: PerformanceMetrics) -> Dict[str, float]:
        self._history.append(metrics)
        self.update(metrics)
        logger.info(
            "performance_recorded",
            accuracy=round(metrics.accuracy, 3),
            predictive_accuracy=round(metrics.predictive_accuracy, 3),
            context_weight=round(self.weights["context"], 4),
        )
        return self.weights.as_dict()

    def update(self, metrics: PerformanceMetrics) -> None:
        lr = self.learning_rate
        w = self.weights
        if metrics.accuracy > 0.8:
            w.set("context", min(self.context_ceiling, w["context"] + lr * 0.1))
        elif metrics.accuracy < 0.6:
            w.set("context", max(self.context_floor, w["context"] - lr * 0.1))
            w.set("depth", w["depth"] + lr * 0.05)
        w.normalise()

    @property
    def history(self) -> List[PerformanceMetrics]:
        return list(self._history)

    def recent_prediction_accuracy(self, window: int = 10) -> float:
        recent = list(self._history)[-window:]
        if not recent:
            return 0.7
        value = float(np.mean([m.predictive_accuracy for m in recent]))
        return value or 0.7

    def stats(self) -> Dict[str, Any]:
        if not self._history:
            return {
                "total_records": 0,
                "average_accuracy": 0.0,
                "average_predictive_accuracy": 0.0,
                "average_context_relevance": 0.0,
                "average_environment_optimality": 0.0,
            }
        rows = [asdict(m) for m in self._history]
        return {
            "total_records": len(rows),
            "average_accuracy": float(np.mean([r["accuracy"] for r in rows])),
            "average_predictive_accuracy": float(np.mean([r["predictive_accuracy"] for r in rows])),
            "average_context_relevance": float(np.mean([r["context_relevance"] for r in rows])),
            "average_environment_optimality": float(
                np.mean([r["environment_optimality"] for r in rows])
            ),
        }
