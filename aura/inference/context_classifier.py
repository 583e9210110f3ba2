"""
Context Classifier — maps (composite score, capacity forecast, snapshot) to
one of four attention contexts.

Contexts:
  CreativeFlow        — high clarity, engaged/focused, creative conditions present
  DeepFocus           — high score and clarity, engaged/focused
  CognitiveOverload   — low score, declining capacity, or overwhelmed
  FragmentedAttention — everything in between (default)

Rules are checked in that order; the first match wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .models import (
    AuraContext,
    CapacityForecast,
    ContextSnapshot,
    Environment,
    InteractionState,
    TimeOfDay,
)

_ATTENTIVE_STATES = (InteractionState.ENGAGED, InteractionState.FOCUSED)
_CREATIVE_TIMES = (TimeOfDay.AFTERNOON, TimeOfDay.EVENING)


@dataclass(frozen=True)
class ClassifierThresholds:
    deep_focus_score_min: float = 0.75
    deep_focus_clarity_min: float = 0.70
    creative_clarity_min: float = 0.65
    overload_score_max: float = 0.25
    overload_decline_max: float = -0.20

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "ClassifierThresholds":
        names = cls.__dataclass_fields__  # type: ignore[attr-defined]
        return cls(**{k: float(v) for k, v in settings.items() if k in names})


def has_creative_potential(snapshot: ContextSnapshot) -> bool:
    """At least two of: creative time of day, creative setting, creative mindstate."""
    indicators = 0
    if snapshot.time.time_of_day in _CREATIVE_TIMES:
        indicators += 1
    if (
        snapshot.location.environment == Environment.OUTDOOR
        or snapshot.location.privacy_level > 0.7
    ):
        indicators += 1
    dbl = snapshot.interaction
    if dbl.attention_span > 15 and dbl.cognitive_load_indicator < 0.6:
        indicators += 1
    return indicators >= 2


class ContextClassifier:
    """Rule-based decision matrix. Pure and deterministic."""

    def __init__(self, thresholds: Optional[ClassifierThresholds] = None):
        self.thresholds = thresholds or ClassifierThresholds()

    def classify(
        self,
        score: float,
        forecast: CapacityForecast,
        snapshot: ContextSnapshot,
    ) -> AuraContext:
        t = self.thresholds
        state = snapshot.interaction.state
        clarity = forecast.mental_clarity_score

        # --- CREATIVE FLOW ---
        if (
            clarity > t.creative_clarity_min
            and state in _ATTENTIVE_STATES
            and has_creative_potential(snapshot)
        ):
            return AuraContext.CREATIVE_FLOW

        # --- DEEP FOCUS ---
        if (
            score > t.deep_focus_score_min
            and clarity > t.deep_focus_clarity_min
            and state in _ATTENTIVE_STATES
        ):
            return AuraContext.DEEP_FOCUS

        # --- COGNITIVE OVERLOAD ---
        if (
            score < t.overload_score_max
            or forecast.anticipated_capacity_change < t.overload_decline_max
            or state == InteractionState.OVERWHELMED
        ):
            return AuraContext.COGNITIVE_OVERLOAD

        return AuraContext.FRAGMENTED_ATTENTION
