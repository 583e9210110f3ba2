"""
Capacity Forecaster — near-term projection of mental clarity and of the
remaining favourable learning window, plus likely context transitions.
"""

from __future__ import annotations

import time
from typing import Callable, List, Optional

import structlog

from .models import (
    AuraContext,
    CapacityForecast,
    ContextSnapshot,
    DistractionRisk,
    EnergyLevel,
    InteractionState,
    StateTransition,
)
from .patterns import ContextPatternStore

logger = structlog.get_logger(__name__)

MODEL_VERSION = "2.0.1"
MODEL_ACCURACY = 0.75

CURRENT_SCORE_WEIGHT = 0.40

# Forecasting model weights, hand-tuned; recalibrate against stored forecasts
FORECAST_WEIGHTS = {
    "time_intelligence": 0.30,
    "location_context": 0.25,
    "digital_body_language": 0.20,
    "biological_factors": 0.15,
    "historical_patterns": 0.10,
}

OPTIMAL_WINDOW_MINUTES = 150.0
ASSUMED_WINDOW_ELAPSED_MINUTES = 60.0

NEUTRAL_FORECAST = CapacityForecast(
    mental_clarity_score=0.5,
    anticipated_capacity_change=0.0,
    optimal_window_remaining=0.0,
    next_optimal_window=None,
)

_ENERGY_OPTIMALITY = {
    EnergyLevel.PEAK: 0.15,
    EnergyLevel.HIGH: 0.10,
    EnergyLevel.RECOVERY: -0.15,
    EnergyLevel.LOW: -0.10,
}

# Expected direction of change from the current energy level
_ENERGY_TREND = {
    EnergyLevel.PEAK: -0.10,
    EnergyLevel.HIGH: 0.05,
    EnergyLevel.RECOVERY: 0.15,
    EnergyLevel.LOW: 0.10,
}

_INTERACTION_TREND = {
    InteractionState.OVERWHELMED: -0.15,
    InteractionState.FOCUSED: 0.05,
}


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def biological_optimality(snapshot: ContextSnapshot) -> float:
    t = snapshot.time
    value = t.historical_performance
    if t.is_optimal_window:
        value += 0.2
    value += _ENERGY_OPTIMALITY.get(t.energy_level, 0.0)
    return _clamp(value)


def circadian_trend(hour: float) -> float:
    if 8 <= hour <= 11:
        return 0.1      # morning peak
    if 14 <= hour <= 16:
        return 0.05     # afternoon peak
    if hour >= 22 or hour <= 6:
        return -0.2     # night decline
    return 0.0


class CapacityForecaster:

    def __init__(
        self,
        patterns: ContextPatternStore,
        clock: Callable[[], float] = time.time,
    ):
        self.patterns = patterns
        self._clock = clock

    def forecast(self, snapshot: ContextSnapshot, score: float) -> CapacityForecast:
        try:
            result = CapacityForecast(
                mental_clarity_score=self.mental_clarity(snapshot, score),
                anticipated_capacity_change=self.capacity_change(snapshot),
                optimal_window_remaining=self.window_remaining(snapshot),
                next_optimal_window=snapshot.time.next_optimal_window,
            )
        except Exception:
            logger.exception("capacity_forecast_failed")
            return NEUTRAL_FORECAST

        logger.debug(
            "capacity_forecast",
            clarity=round(result.mental_clarity_score, 3),
            change=round(result.anticipated_capacity_change, 3),
            window_min=result.optimal_window_remaining,
        )
        return result

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    def mental_clarity(self, snapshot: ContextSnapshot, score: float) -> float:
        w = FORECAST_WEIGHTS
        loc = snapshot.location
        dbl = snapshot.interaction

        clarity = score * CURRENT_SCORE_WEIGHT
        clarity += snapshot.time.historical_performance * w["time_intelligence"]

        location_optimality = loc.privacy_level * 0.6 + (
            0.4 if loc.distraction_risk == DistractionRisk.LOW else 0.0
        )
        clarity += location_optimality * w["location_context"]

        dbl_optimality = (1 - dbl.cognitive_load_indicator) * 0.7 + (dbl.attention_span / 30.0) * 0.3
        clarity += dbl_optimality * w["digital_body_language"]

        clarity += biological_optimality(snapshot) * w["biological_factors"]
        clarity += self.patterns.bonus(snapshot.pattern_key) * w["historical_patterns"]

        return _clamp(clarity)

    @staticmethod
    def capacity_change(snapshot: ContextSnapshot) -> float:
        change = circadian_trend(snapshot.time.circadian_hour)
        change += _ENERGY_TREND.get(snapshot.time.energy_level, 0.0)
        change += _INTERACTION_TREND.get(snapshot.interaction.state, 0.0)
        return _clamp(change, -1.0, 1.0)

    def window_remaining(self, snapshot: ContextSnapshot) -> float:
        """Minutes left in the current optimal window (0 outside one)."""
        t = snapshot.time
        if not t.is_optimal_window:
            return 0.0
        if t.window_started_at is not None:
            elapsed = (self._clock() - t.window_started_at) / 60.0
        else:
            elapsed = ASSUMED_WINDOW_ELAPSED_MINUTES
        return max(0.0, float(round(OPTIMAL_WINDOW_MINUTES - elapsed)))

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def predict_transitions(
        self, snapshot: ContextSnapshot, context: AuraContext
    ) -> List[StateTransition]:
        predictions: List[StateTransition] = []

        if context == AuraContext.DEEP_FOCUS:
            predictions.append(StateTransition(
                context=AuraContext.FRAGMENTED_ATTENTION,
                probability=0.7,
                timeframe=45,
                triggers=("attention_fatigue", "cognitive_load_accumulation"),
            ))

        minutes = self.minutes_until(snapshot.time.next_optimal_window)
        if context == AuraContext.FRAGMENTED_ATTENTION and minutes is not None and minutes < 90:
            predictions.append(StateTransition(
                context=AuraContext.DEEP_FOCUS,
                probability=0.8,
                timeframe=minutes,
                triggers=("optimal_learning_window", "circadian_peak"),
            ))

        if snapshot.interaction.app_switch_frequency > 2:
            predictions.append(StateTransition(
                context=AuraContext.COGNITIVE_OVERLOAD,
                probability=0.6,
                timeframe=20,
                triggers=("high_distraction", "cognitive_fragmentation"),
            ))

        return predictions

    def minutes_until(self, ts: Optional[float]) -> Optional[int]:
        if ts is None:
            return None
        return int((ts - self._clock()) / 60)
