"""
Cognitive Aura Engine — turns the latest context snapshot, knowledge graph
and activity list into one immutable AuraState.

Pipeline (one computation, run to completion under a lock):
  snapshot → composite score → capacity forecast → context → target node
  → prescription / micro-task / integration modes → transitions → metrics

The engine is an owned instance: the composing application builds it with
its providers and keeps it on app.state. Nothing here raises to the caller;
upstream failures produce the neutral default state.
"""

from __future__ import annotations

import asyncio
import secrets
import threading
import time
from dataclasses import replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import structlog

from .config import config
from .inference.cache import RefreshThrottle, StateCache
from .inference.composite_score import CompositeScoreCalculator
from .inference.context_classifier import ClassifierThresholds, ContextClassifier
from .inference.forecaster import (
    MODEL_ACCURACY,
    MODEL_VERSION,
    NEUTRAL_FORECAST,
    CapacityForecaster,
)
from .inference.models import (
    ActivityItem,
    AuraContext,
    AuraState,
    ContextSnapshot,
    DigitalBodyLanguage,
    EnergyLevel,
    HealthMetrics,
    InteractionState,
    KnowledgeGraph,
)
from .inference.patterns import ContextPatternStore
from .learning.weights import AdaptiveWeights, AdaptiveWeightTuner, PerformanceMetrics
from .providers import (
    ActivityProvider,
    ContextSnapshotProvider,
    HealthProvider,
    KnowledgeGraphProvider,
    fallback_snapshot,
)
from .router.prescriptions import (
    DEFAULT_INTEGRATION,
    DEFAULT_PRESCRIPTION,
    TEMPLATES,
    PrescriptionGenerator,
)
from .router.target_selector import TargetSelector
from .settings import get_settings
from .storage.timeline import AuraTimeline, ForecastEntry

logger = structlog.get_logger(__name__)

AuraListener = Callable[[AuraState], None]

FORECAST_HORIZON_MINUTES = 60

_ALIGNMENT_BY_ENERGY = {
    EnergyLevel.PEAK: 0.2,
    EnergyLevel.HIGH: 0.1,
    EnergyLevel.RECOVERY: -0.2,
    EnergyLevel.LOW: -0.1,
}


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


# ---------------------------------------------------------------------------
# State metrics
# ---------------------------------------------------------------------------

def biological_alignment(snapshot: ContextSnapshot) -> float:
    alignment = 0.5
    if snapshot.time.is_optimal_window:
        alignment += 0.3
    alignment += _ALIGNMENT_BY_ENERGY.get(snapshot.time.energy_level, 0.0)
    return _clamp(alignment)


def context_stability(snapshot: ContextSnapshot, now: float) -> float:
    stability = 0.5 + snapshot.location.stability_score * 0.4

    switches = snapshot.interaction.app_switch_frequency
    if switches < 1:
        stability += 0.2
    elif switches > 3:
        stability -= 0.2

    next_window = snapshot.time.next_optimal_window
    if next_window is not None and int((next_window - now) / 60) > 60:
        stability += 0.1
    return _clamp(stability)


def confidence_score(
    graph: KnowledgeGraph,
    snapshot: ContextSnapshot,
    context: AuraContext,
    history_size: int,
) -> float:
    """Data-quality confidence in [0.3, 1.0]."""
    confidence = 0.6
    if len(graph.nodes) > 10:
        confidence += 0.1
    if len(graph.edges) > 20:
        confidence += 0.1
    if history_size > 10:
        confidence += 0.1

    if snapshot.context_quality_score > 0.7:
        confidence += 0.1
    if snapshot.location.location_confidence > 0.8:
        confidence += 0.05

    if context == AuraContext.DEEP_FOCUS and snapshot.interaction.state == InteractionState.FOCUSED:
        confidence += 0.1
    elif context == AuraContext.COGNITIVE_OVERLOAD:
        confidence -= 0.1
    return _clamp(confidence, 0.3, 1.0)


def is_significant_change(current: DigitalBodyLanguage, new: DigitalBodyLanguage) -> bool:
    if new.state != current.state:
        return True
    if abs(new.cognitive_load_indicator - current.cognitive_load_indicator) > 0.2:
        return True
    return abs(new.attention_span - current.attention_span) > 10


def new_session_id(now: float) -> str:
    return f"cae_{int(now * 1000)}_{secrets.token_hex(4)}"


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class CognitiveAuraEngine:
    """
    Usage:
        engine = CognitiveAuraEngine(context_provider, graph_provider, activity_provider)
        state = await engine.get_aura_state()
        engine.register_listener(lambda s: print(s.context))
    """

    def __init__(
        self,
        context_provider: ContextSnapshotProvider,
        graph_provider: KnowledgeGraphProvider,
        activity_provider: ActivityProvider,
        health_provider: Optional[HealthProvider] = None,
        storage: Optional[AuraTimeline] = None,
        *,
        thresholds: Optional[ClassifierThresholds] = None,
        weights: Optional[AdaptiveWeights] = None,
        cache_ttl_s: Optional[float] = None,
        refresh_throttle_s: Optional[float] = None,
        offload_compute: Optional[bool] = None,
        clock: Callable[[], float] = time.time,
        session_id: Optional[str] = None,
    ):
        self._context_provider = context_provider
        self._graph_provider = graph_provider
        self._activity_provider = activity_provider
        self._health_provider = health_provider
        self._storage = storage
        # None → read from settings on every computation so edits apply live
        self._thresholds = thresholds
        self._clock = clock
        self._offload = config.offload_compute if offload_compute is None else offload_compute
        self.session_id = session_id or new_session_id(clock())

        ttl = config.cache_ttl_s if cache_ttl_s is None else cache_ttl_s
        throttle = config.refresh_throttle_s if refresh_throttle_s is None else refresh_throttle_s

        self.weights = weights or AdaptiveWeights()
        self.tuner = AdaptiveWeightTuner(
            self.weights,
            learning_rate=config.learning_rate,
            context_floor=config.context_weight_floor,
            context_ceiling=config.context_weight_ceiling,
            history_size=config.performance_history_size,
        )
        self.patterns = ContextPatternStore(window=config.pattern_window)
        self._scorer = CompositeScoreCalculator(self.weights, cache_ttl_s=ttl, clock=clock)
        self._forecaster = CapacityForecaster(self.patterns, clock=clock)
        self._selector = TargetSelector()
        self._prescriber = PrescriptionGenerator(clock=clock)
        self._cache = StateCache(ttl, clock=clock)
        self._throttle = RefreshThrottle(throttle, clock=clock)
        self._previous_limit = config.previous_states_limit

        self._lock = asyncio.Lock()
        # guards the weight vector when scoring runs in the executor
        self._weights_lock = threading.Lock()
        self._listeners: List[AuraListener] = []

    # ------------------------------------------------------------------
    # State computation
    # ------------------------------------------------------------------

    async def get_aura_state(self, force_refresh: bool = False) -> AuraState:
        if not force_refresh and self._cache.fresh():
            return self._cache.state  # type: ignore[return-value]

        async with self._lock:
            # another caller may have refreshed while we waited
            if not force_refresh and self._cache.fresh():
                return self._cache.state  # type: ignore[return-value]
            try:
                return await self._compute(force_refresh)
            except Exception:
                logger.exception("aura_state_failed")
                return self._default_state(fallback_snapshot(self._clock()))

    async def refresh(self) -> AuraState:
        return await self.get_aura_state(force_refresh=True)

    def current_state(self) -> Optional[AuraState]:
        return self._cache.state

    async def _compute(self, force_refresh: bool) -> AuraState:
        try:
            snapshot = await self._context_provider.current_context(force_refresh)
        except Exception:
            logger.warning("context_provider_unavailable", exc_info=True)
            return self._default_state(fallback_snapshot(self._clock()))

        try:
            graph = await self._graph_provider.graph()
        except Exception:
            logger.warning("graph_provider_unavailable", exc_info=True)
            return self._default_state(snapshot)

        if not graph.nodes:
            logger.info("empty_knowledge_graph")
            return self._default_state(snapshot)

        items = await self._read_activity()
        health = await self._read_health()

        if self._offload:
            loop = asyncio.get_running_loop()
            state = await loop.run_in_executor(
                None, self._build_state, snapshot, graph, items, health
            )
        else:
            state = self._build_state(snapshot, graph, items, health)

        self.patterns.observe(snapshot.pattern_key, state.composite_score, now=state.timestamp)
        self._cache.replace(state)
        logger.info(
            "aura_state_updated",
            context=state.context.value,
            score=round(state.composite_score, 3),
            confidence=round(state.confidence, 3),
            target=state.target_node.id if state.target_node else None,
            adaptation_count=state.adaptation_count,
        )
        self._notify(state)
        if self._storage is not None:
            # sqlite writes block, keep them off the event loop
            await asyncio.get_running_loop().run_in_executor(None, self._persist, state)
        return state

    def _build_state(
        self,
        snapshot: ContextSnapshot,
        graph: KnowledgeGraph,
        items: Sequence[ActivityItem],
        health: Optional[HealthMetrics],
    ) -> AuraState:
        now = self._clock()
        with self._weights_lock:
            score = self._scorer.score(graph, items, snapshot, health)

        forecast = self._forecaster.forecast(snapshot, score)
        classifier = ContextClassifier(
            self._thresholds or ClassifierThresholds.from_settings(get_settings())
        )
        context = classifier.classify(score, forecast, snapshot)
        target, priority = self._selector.select(graph, context)
        integration = self._prescriber.integration(context)
        confidence = confidence_score(graph, snapshot, context, len(self.tuner.history))

        previous = self._cache.state
        return AuraState(
            composite_score=score,
            cognitive_load=confidence * 0.5 + score * 0.5,
            context=context,
            target_node=target,
            target_priority=priority,
            micro_task=self._prescriber.micro_task(target, context, snapshot),
            environment=snapshot,
            forecast=forecast,
            prescription=self._prescriber.prescription(context, snapshot),
            soundscape=integration.soundscape,
            physics_mode=integration.physics,
            memory_palace_mode=integration.memory_palace,
            graph_visualization_mode=integration.graph_visualization,
            anticipated_transitions=tuple(self._forecaster.predict_transitions(snapshot, context)),
            timestamp=now,
            session_id=self.session_id,
            confidence=confidence,
            accuracy_score=_clamp(MODEL_ACCURACY, 0.5, 1.0),
            previous_states=self._history_after(previous),
            adaptation_count=previous.adaptation_count + 1 if previous else 0,
            context_stability=context_stability(snapshot, now),
            prediction_accuracy=self.tuner.recent_prediction_accuracy(),
            environment_optimality=snapshot.overall_optimality,
            biological_alignment=biological_alignment(snapshot),
        )

    def _default_state(self, snapshot: ContextSnapshot) -> AuraState:
        """Neutral state; never cached, keeps the running history of the current one."""
        current = self._cache.state
        context = AuraContext.FRAGMENTED_ATTENTION
        return AuraState(
            composite_score=0.5,
            cognitive_load=0.5,
            context=context,
            target_node=None,
            target_priority=None,
            micro_task=TEMPLATES[context].empty_state,
            environment=snapshot,
            forecast=NEUTRAL_FORECAST,
            prescription=DEFAULT_PRESCRIPTION,
            soundscape=DEFAULT_INTEGRATION.soundscape,
            physics_mode=DEFAULT_INTEGRATION.physics,
            memory_palace_mode=DEFAULT_INTEGRATION.memory_palace,
            graph_visualization_mode=DEFAULT_INTEGRATION.graph_visualization,
            anticipated_transitions=(),
            timestamp=self._clock(),
            session_id=self.session_id,
            confidence=0.4,
            accuracy_score=0.6,
            previous_states=current.previous_states if current else (),
            adaptation_count=current.adaptation_count if current else 0,
            context_stability=0.5,
            prediction_accuracy=0.6,
            environment_optimality=snapshot.overall_optimality,
            biological_alignment=biological_alignment(snapshot),
        )

    def _history_after(self, previous: Optional[AuraState]):
        if previous is None:
            return ()
        stripped = replace(previous, previous_states=())
        return ((stripped,) + previous.previous_states)[: self._previous_limit]

    async def _read_activity(self) -> Sequence[ActivityItem]:
        try:
            return await self._activity_provider.recent_activity()
        except Exception:
            logger.warning("activity_provider_unavailable", exc_info=True)
            return []

    async def _read_health(self) -> Optional[HealthMetrics]:
        if self._health_provider is None:
            return None
        try:
            return await self._health_provider.health_metrics()
        except Exception:
            logger.warning("health_provider_unavailable", exc_info=True)
            return None

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def notify_context_changed(self) -> Optional[AuraState]:
        """Forced refresh, at most once per throttle interval. None when skipped."""
        if not self._throttle.try_acquire():
            logger.debug("aura_refresh_throttled")
            return None
        return await self.get_aura_state(force_refresh=True)

    async def notify_interaction_changed(self, dbl: DigitalBodyLanguage) -> Optional[AuraState]:
        current = self._cache.state
        if current is not None and not is_significant_change(current.environment.interaction, dbl):
            logger.debug("interaction_change_ignored", state=dbl.state.value)
            return None
        return await self.notify_context_changed()

    def register_listener(self, fn: AuraListener) -> Callable[[], None]:
        """Register fn(state), called after every new computed state. Returns an unregister callable."""
        self._listeners.append(fn)

        def _unregister() -> None:
            if fn in self._listeners:
                self._listeners.remove(fn)

        return _unregister

    def _notify(self, state: AuraState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("aura_listener_failed")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist(self, state: AuraState) -> None:
        if self._storage is None:
            return
        try:
            self._storage.save_context_snapshot(state.environment, self.session_id)
            self._storage.save_cognitive_forecast(
                ForecastEntry(
                    id=None,
                    timestamp=state.timestamp,
                    session_id=self.session_id,
                    model_version=MODEL_VERSION,
                    predicted_context=state.context.value,
                    predicted_optimality=state.forecast.mental_clarity_score,
                    composite_score=state.composite_score,
                    prediction_horizon=FORECAST_HORIZON_MINUTES,
                )
            )
        except Exception:
            logger.warning("aura_persist_failed", exc_info=True)

    # ------------------------------------------------------------------
    # Learning / analytics
    # ------------------------------------------------------------------

    def record_performance(
        self, metrics: Union[PerformanceMetrics, Mapping[str, Any]]
    ) -> Dict[str, float]:
        if not isinstance(metrics, PerformanceMetrics):
            metrics = PerformanceMetrics.from_mapping(metrics)
        with self._weights_lock:
            weights = self.tuner.record(metrics)
            # cached scores were computed with the old weights
            self._scorer.clear_cache()
        return weights

    def performance_stats(self) -> Dict[str, Any]:
        stats = self.tuner.stats()
        state = self._cache.state
        stats.update(
            weights=self.weights.as_dict(),
            prediction_accuracy=self.tuner.recent_prediction_accuracy(),
            model_version=MODEL_VERSION,
            model_accuracy=MODEL_ACCURACY,
            adaptation_count=state.adaptation_count if state else 0,
        )
        return stats

    def context_analytics(self, since: Optional[float] = None) -> Dict[str, Any]:
        distribution: Dict[str, float] = {}
        if self._storage is not None:
            try:
                distribution = self._storage.context_distribution(since=since)
            except Exception:
                logger.warning("context_distribution_failed", exc_info=True)

        state = self._cache.state
        return {
            "session_id": self.session_id,
            "current_context": state.context.value if state else None,
            "distribution": distribution,
            "patterns": self.patterns.summary(),
            "total_patterns": len(self.patterns),
        }

    def clear_caches(self) -> None:
        self._scorer.clear_cache()
        self._cache.invalidate()
        self._throttle.reset()
        logger.info("aura_caches_cleared")
