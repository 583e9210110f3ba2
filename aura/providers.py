"""
Upstream collaborators the engine reads from.

The engine depends only on the Protocols below. The in-memory
implementations back the local API and the tests: callers push the latest
snapshot / graph / activity list and the engine reads them on the next
computation.

When no snapshot has been pushed, the context provider synthesises one
from the clock using a default circadian performance curve.
"""

from __future__ import annotations

import time
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional, Protocol, Sequence

from .inference.models import (
    ActivityItem,
    ContextSnapshot,
    DigitalBodyLanguage,
    DistractionRisk,
    EnergyLevel,
    Environment,
    HealthMetrics,
    InteractionState,
    KnowledgeGraph,
    LocationContext,
    TimeIntelligence,
    TimeOfDay,
)


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------

class ContextSnapshotProvider(Protocol):
    async def current_context(self, force_refresh: bool = False) -> ContextSnapshot: ...


class KnowledgeGraphProvider(Protocol):
    async def graph(self) -> KnowledgeGraph: ...


class ActivityProvider(Protocol):
    async def recent_activity(self) -> Sequence[ActivityItem]: ...


class HealthProvider(Protocol):
    async def health_metrics(self) -> Optional[HealthMetrics]: ...


# ---------------------------------------------------------------------------
# Time intelligence
# ---------------------------------------------------------------------------

def time_of_day(hour: float) -> TimeOfDay:
    if hour < 6:
        return TimeOfDay.LATE_NIGHT
    if hour < 9:
        return TimeOfDay.EARLY_MORNING
    if hour < 12:
        return TimeOfDay.MORNING
    if hour < 14:
        return TimeOfDay.MIDDAY
    if hour < 18:
        return TimeOfDay.AFTERNOON
    if hour < 22:
        return TimeOfDay.EVENING
    return TimeOfDay.LATE_NIGHT


def default_performance(hour: float) -> float:
    """General circadian curve used until personal history exists."""
    if 9 <= hour <= 11:
        return 0.85     # morning peak
    if 14 <= hour <= 16:
        return 0.75     # afternoon peak
    if 19 <= hour <= 21:
        return 0.65
    return 0.45


def energy_level(performance: float) -> EnergyLevel:
    if performance > 0.8:
        return EnergyLevel.PEAK
    if performance > 0.7:
        return EnergyLevel.HIGH
    if performance > 0.5:
        return EnergyLevel.MEDIUM
    if performance > 0.3:
        return EnergyLevel.LOW
    return EnergyLevel.RECOVERY


def next_optimal_window(now: float) -> Optional[float]:
    """First whole-hour offset within 24h whose default performance exceeds 0.7."""
    for offset in range(1, 25):
        future = now + offset * 3600
        if default_performance(datetime.fromtimestamp(future).hour) > 0.7:
            return future
    return None


def build_time_intelligence(now: float) -> TimeIntelligence:
    dt = datetime.fromtimestamp(now)
    hour = dt.hour + dt.minute / 60.0
    performance = default_performance(hour)
    return TimeIntelligence(
        circadian_hour=hour,
        time_of_day=time_of_day(hour),
        energy_level=energy_level(performance),
        historical_performance=performance,
        is_optimal_window=performance > 0.7,
        next_optimal_window=next_optimal_window(now),
    )


def overall_optimality(
    t: TimeIntelligence, loc: LocationContext, dbl: DigitalBodyLanguage
) -> float:
    value = 0.5
    if t.is_optimal_window:
        value += 0.2
    value += (t.historical_performance - 0.5) * 0.2

    if loc.environment in (Environment.LIBRARY, Environment.HOME):
        value += 0.15
    if loc.distraction_risk in (DistractionRisk.VERY_LOW, DistractionRisk.LOW):
        value += 0.1

    if dbl.state == InteractionState.FOCUSED:
        value += 0.15
    elif dbl.state == InteractionState.ENGAGED:
        value += 0.1
    elif dbl.state in (InteractionState.OVERWHELMED, InteractionState.FRAGMENTED):
        value -= 0.1
    value -= (dbl.cognitive_load_indicator - 0.5) * 0.1

    return max(0.0, min(1.0, value))


def fallback_snapshot(now: Optional[float] = None) -> ContextSnapshot:
    """Neutral snapshot used when the context provider is unavailable."""
    now = time.time() if now is None else now
    hour = datetime.fromtimestamp(now).hour
    return ContextSnapshot(
        timestamp=now,
        time=TimeIntelligence(circadian_hour=float(hour), time_of_day=time_of_day(hour)),
        location=LocationContext(),
        interaction=DigitalBodyLanguage(),
    )


# ---------------------------------------------------------------------------
# In-memory providers
# ---------------------------------------------------------------------------

class InMemoryContextProvider:

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._snapshot: Optional[ContextSnapshot] = None
        # interaction signals pushed before any full snapshot
        self._interaction: Optional[DigitalBodyLanguage] = None

    def update(self, snapshot: ContextSnapshot) -> None:
        self._snapshot = snapshot
        self._interaction = None

    def update_interaction(self, dbl: DigitalBodyLanguage) -> ContextSnapshot:
        if self._snapshot is None:
            self._interaction = dbl
            return self._synthesise()
        self._snapshot = replace(self._snapshot, interaction=dbl, timestamp=self._clock())
        return self._snapshot

    @property
    def latest(self) -> Optional[ContextSnapshot]:
        return self._snapshot

    async def current_context(self, force_refresh: bool = False) -> ContextSnapshot:
        if self._snapshot is None:
            return self._synthesise()
        return self._snapshot

    def _synthesise(self) -> ContextSnapshot:
        """Clock-derived snapshot, rebuilt on every read so time signals never go stale."""
        now = self._clock()
        t = build_time_intelligence(now)
        loc = LocationContext()
        dbl = self._interaction or DigitalBodyLanguage()
        return ContextSnapshot(
            timestamp=now,
            time=t,
            location=loc,
            interaction=dbl,
            overall_optimality=overall_optimality(t, loc, dbl),
        )


class InMemoryGraphProvider:

    def __init__(self, graph: Optional[KnowledgeGraph] = None):
        self._graph = graph or KnowledgeGraph()

    def update(self, graph: KnowledgeGraph) -> None:
        self._graph = graph

    async def graph(self) -> KnowledgeGraph:
        return self._graph


class InMemoryActivityProvider:

    def __init__(self, items: Optional[Sequence[ActivityItem]] = None):
        self._items: List[ActivityItem] = list(items or [])

    def update(self, items: Sequence[ActivityItem]) -> None:
        self._items = list(items)

    async def recent_activity(self) -> Sequence[ActivityItem]:
        return list(self._items)


class InMemoryHealthProvider:

    def __init__(self, metrics: Optional[HealthMetrics] = None):
        self._metrics = metrics

    def update(self, metrics: Optional[HealthMetrics]) -> None:
        self._metrics = metrics

    async def health_metrics(self) -> Optional[HealthMetrics]:
        return self._metrics
