"""
Composite Cognitive Score — a single [0, 1] readiness scalar.

Architecture: adaptive-weighted linear combination of five factors.
  - depth      ← structural complexity of the knowledge graph
  - strength   ← consolidation of neighbouring nodes (mean neighbour mastery)
  - retention  ← spaced-repetition retention rates + connectivity
  - urgency    ← review due-date proximity + difficulty
  - context    ← time window, location, interaction state, device health

The weighted sum is clamped and then scaled by a bounded health adjustment.
Results are cached per (graph version, item count, snapshot timestamp).
"""

from __future__ import annotations

import time
from typing import Callable, Dict, Optional, Sequence

import numpy as np
import structlog

from ..learning.weights import AdaptiveWeights
from .cache import TTLCache
from .models import (
    ActivityItem,
    ContextSnapshot,
    DigitalBodyLanguage,
    DistractionRisk,
    Environment,
    HealthMetrics,
    InteractionState,
    KnowledgeGraph,
    LocationContext,
    NetworkQuality,
)

logger = structlog.get_logger(__name__)

NEUTRAL_SCORE = 0.5

# Share of the context factor owned by each signal group
_CONTEXT_CONTRIBUTIONS = {
    "time": 0.30,
    "location": 0.35,
    "interaction": 0.25,
    "device": 0.10,
}

_ENVIRONMENT_BONUS = {
    Environment.LIBRARY: 0.30,
    Environment.OFFICE: 0.15,
    Environment.OUTDOOR: -0.10,
    Environment.COMMUTE: -0.20,
    Environment.UNKNOWN: 0.0,
}

_DISTRACTION_BONUS = {
    DistractionRisk.VERY_LOW: 0.20,
    DistractionRisk.LOW: 0.10,
    DistractionRisk.MEDIUM: 0.0,
    DistractionRisk.HIGH: -0.15,
    DistractionRisk.VERY_HIGH: -0.25,
}

_INTERACTION_BONUS = {
    InteractionState.FOCUSED: 0.30,
    InteractionState.ENGAGED: 0.15,
    InteractionState.RESTLESS: -0.10,
    InteractionState.FRAGMENTED: -0.20,
    InteractionState.OVERWHELMED: -0.30,
}

# (hours-until-due upper bound, urgency); first match wins, overdue handled separately
_DUE_BANDS = ((1.0, 0.8), (4.0, 0.6), (24.0, 0.3))


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


# ---------------------------------------------------------------------------
# Graph / activity factors
# ---------------------------------------------------------------------------

def depth_factor(graph: KnowledgeGraph) -> float:
    if not graph.nodes:
        return 0.0
    per_node = [
        min(1.0, 0.1 * len(n.connections) + 0.3 * n.cognitive_load + 0.2 * (1 - n.mastery))
        for n in graph.nodes
    ]
    return float(np.mean(per_node))


def strength_factor(graph: KnowledgeGraph) -> float:
    if not graph.nodes:
        return 0.0
    mastery = {n.id: n.mastery for n in graph.nodes}
    neighbour_means = [
        float(np.mean([mastery.get(c, 0.5) for c in n.connections]))
        for n in graph.nodes
        if n.connections
    ]
    if not neighbour_means:
        return 0.5
    return float(np.mean(neighbour_means))


def retention_factor(graph: KnowledgeGraph, items: Sequence[ActivityItem]) -> float:
    if not items:
        return 0.5
    average = float(np.mean([i.retention_rate for i in items]))
    connectivity_bonus = 0.0
    if graph.nodes:
        connectivity_bonus = float(np.mean([len(n.connections) for n in graph.nodes])) * 0.1
    return min(1.0, average + connectivity_bonus)


def urgency_factor(items: Sequence[ActivityItem], now: float) -> float:
    if not items:
        return 0.0
    total = 0.0
    for item in items:
        if item.next_review is not None:
            hours = (item.next_review - now) / 3600.0
            if hours < 0:
                total += 1.0
            else:
                for bound, urgency in _DUE_BANDS:
                    if hours < bound:
                        total += urgency
                        break
        if item.difficulty > 0.7:
            total += 0.2
    return min(1.0, total / len(items))


# ---------------------------------------------------------------------------
# Context factor
# ---------------------------------------------------------------------------

def location_bonus(location: LocationContext) -> float:
    if location.environment == Environment.HOME:
        bonus = location.privacy_level * 0.25
    else:
        bonus = _ENVIRONMENT_BONUS.get(location.environment, 0.0)
    bonus += _DISTRACTION_BONUS.get(location.distraction_risk, 0.0)
    bonus += (location.stability_score - 0.5) * 0.2
    return bonus


def interaction_bonus(dbl: DigitalBodyLanguage) -> float:
    bonus = _INTERACTION_BONUS.get(dbl.state, 0.0)
    if dbl.attention_span > 20:
        bonus += 0.1
    elif dbl.attention_span < 5:
        bonus -= 0.15
    bonus -= (dbl.cognitive_load_indicator - 0.5) * 0.2
    bonus -= dbl.stress_indicators * 0.15
    return bonus


def context_factor(snapshot: ContextSnapshot) -> float:
    c = _CONTEXT_CONTRIBUTIONS
    score = 0.5

    if snapshot.time.is_optimal_window:
        score += 0.2 * c["time"]
    score += (snapshot.time.historical_performance - 0.5) * c["time"]

    score += location_bonus(snapshot.location) * c["location"]
    score += interaction_bonus(snapshot.interaction) * c["interaction"]

    device_ok = snapshot.battery_level > 0.2 and snapshot.network_quality not in (
        NetworkQuality.POOR,
        NetworkQuality.OFFLINE,
    )
    if device_ok:
        score += 0.1 * c["device"]

    return _clamp(score)


def health_adjustment(snapshot: ContextSnapshot, health: Optional[HealthMetrics]) -> float:
    """Multiplier in [0.5, 1.5]; 1.0 when no health data is available."""
    if health is None:
        return 1.0
    adjustment = 1.0
    if health.sleep_quality < 0.5:
        adjustment *= 0.85
    elif health.sleep_quality > 0.8:
        adjustment *= 1.1
    if health.stress_level > 0.7:
        adjustment *= 0.9

    state = snapshot.interaction.state
    if state == InteractionState.OVERWHELMED:
        adjustment *= 0.8
    elif state == InteractionState.FOCUSED:
        adjustment *= 1.05

    if snapshot.location.stability_score < 0.5:
        adjustment *= 0.95
    return _clamp(adjustment, 0.5, 1.5)


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------

class CompositeScoreCalculator:
    """Combines the five factors with the shared AdaptiveWeights."""

    def __init__(
        self,
        weights: AdaptiveWeights,
        cache_ttl_s: float = 45.0,
        clock: Callable[[], float] = time.time,
    ):
        self.weights = weights
        self._clock = clock
        self._cache: TTLCache[float] = TTLCache(cache_ttl_s, clock=clock)

    def factors(
        self,
        graph: KnowledgeGraph,
        items: Sequence[ActivityItem],
        snapshot: ContextSnapshot,
    ) -> Dict[str, float]:
        return {
            "depth": depth_factor(graph),
            "strength": strength_factor(graph),
            "retention": retention_factor(graph, items),
            "urgency": urgency_factor(items, self._clock()),
            "context": context_factor(snapshot),
        }

    def score(
        self,
        graph: KnowledgeGraph,
        items: Sequence[ActivityItem],
        snapshot: ContextSnapshot,
        health: Optional[HealthMetrics] = None,
    ) -> float:
        key = (graph.version, len(items), snapshot.timestamp)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            factors = self.factors(graph, items, snapshot)
            raw = _clamp(self.weights.dot(factors))
            final = _clamp(raw * health_adjustment(snapshot, health))
        except Exception:
            logger.exception("composite_score_failed")
            return NEUTRAL_SCORE

        logger.debug(
            "composite_score",
            **{k: round(v, 3) for k, v in factors.items()},
            raw=round(raw, 4),
            final=round(final, 4),
        )
        self._cache.set(key, final)
        return final

    def clear_cache(self) -> None:
        self._cache.clear()
