"""Tests for time intelligence helpers and the in-memory providers."""

from datetime import datetime

import pytest

from aura.inference.models import (
    ContextSnapshot,
    DigitalBodyLanguage,
    EnergyLevel,
    Environment,
    InteractionState,
    KnowledgeGraph,
    KnowledgeNode,
    LocationContext,
    TimeIntelligence,
    TimeOfDay,
)
from aura.providers import (
    InMemoryContextProvider,
    InMemoryGraphProvider,
    build_time_intelligence,
    energy_level,
    fallback_snapshot,
    next_optimal_window,
    overall_optimality,
    time_of_day,
)


def _ts(hour: int, minute: int = 0) -> float:
    return datetime(2026, 3, 10, hour, minute).timestamp()


class TestTimeIntelligence:
    @pytest.mark.parametrize(
        "hour, expected",
        [
            (3, TimeOfDay.LATE_NIGHT),
            (7, TimeOfDay.EARLY_MORNING),
            (10, TimeOfDay.MORNING),
            (13, TimeOfDay.MIDDAY),
            (15, TimeOfDay.AFTERNOON),
            (20, TimeOfDay.EVENING),
            (23, TimeOfDay.LATE_NIGHT),
        ],
    )
    def test_time_of_day(self, hour, expected):
        assert time_of_day(hour) == expected

    def test_energy_levels(self):
        assert energy_level(0.85) == EnergyLevel.PEAK
        assert energy_level(0.75) == EnergyLevel.HIGH
        assert energy_level(0.6) == EnergyLevel.MEDIUM
        assert energy_level(0.45) == EnergyLevel.LOW
        assert energy_level(0.1) == EnergyLevel.RECOVERY

    def test_morning_peak_is_optimal(self):
        t = build_time_intelligence(_ts(10, 30))
        assert t.time_of_day == TimeOfDay.MORNING
        assert t.is_optimal_window
        assert t.circadian_hour == pytest.approx(10.5)

    def test_next_optimal_window_is_ahead(self):
        now = _ts(17)
        nxt = next_optimal_window(now)
        assert nxt is not None and nxt > now
        assert datetime.fromtimestamp(nxt).hour == 9

    def test_overall_optimality_bounded(self):
        t = TimeIntelligence(is_optimal_window=True, historical_performance=1.0)
        loc = LocationContext(environment=Environment.LIBRARY)
        dbl = DigitalBodyLanguage(state=InteractionState.FOCUSED, cognitive_load_indicator=0.0)
        assert 0.0 <= overall_optimality(t, loc, dbl) <= 1.0

    def test_fallback_snapshot_is_neutral(self):
        snap = fallback_snapshot(_ts(12))
        assert snap.timestamp == _ts(12)
        assert snap.location.environment == Environment.UNKNOWN
        assert snap.interaction.state == InteractionState.ENGAGED


class TestInMemoryProviders:
    async def test_context_synthesised_until_pushed(self):
        provider = InMemoryContextProvider(clock=lambda: _ts(10))
        synthesised = await provider.current_context()
        assert synthesised.time.time_of_day == TimeOfDay.MORNING
        assert provider.latest is None

        pushed = ContextSnapshot(timestamp=_ts(10))
        provider.update(pushed)
        assert await provider.current_context(force_refresh=True) is pushed

    async def test_update_interaction_replaces_only_signals(self):
        provider = InMemoryContextProvider(clock=lambda: _ts(11))
        provider.update(ContextSnapshot(
            timestamp=_ts(10), location=LocationContext(environment=Environment.OFFICE)
        ))
        dbl = DigitalBodyLanguage(state=InteractionState.RESTLESS)
        snap = provider.update_interaction(dbl)
        assert snap.interaction is dbl
        assert snap.location.environment == Environment.OFFICE
        assert snap.timestamp == _ts(11)

    async def test_interaction_only_updates_keep_time_current(self):
        now = [_ts(10)]
        provider = InMemoryContextProvider(clock=lambda: now[0])
        dbl = DigitalBodyLanguage(state=InteractionState.FOCUSED)
        provider.update_interaction(dbl)
        assert provider.latest is None

        morning = await provider.current_context()
        assert morning.time.time_of_day == TimeOfDay.MORNING
        assert morning.interaction is dbl

        now[0] = _ts(22)
        night = await provider.current_context()
        assert night.time.time_of_day == TimeOfDay.LATE_NIGHT
        assert night.time.circadian_hour == pytest.approx(22.0)
        assert night.timestamp == _ts(22)
        assert night.interaction is dbl

    async def test_full_snapshot_discards_interaction_override(self):
        provider = InMemoryContextProvider(clock=lambda: _ts(10))
        provider.update_interaction(DigitalBodyLanguage(state=InteractionState.RESTLESS))
        pushed = ContextSnapshot(timestamp=_ts(10))
        provider.update(pushed)
        current = await provider.current_context()
        assert current is pushed
        assert current.interaction.state == InteractionState.ENGAGED

    async def test_graph_provider(self):
        provider = InMemoryGraphProvider()
        assert (await provider.graph()).nodes == ()
        g = KnowledgeGraph(nodes=(KnowledgeNode(id="a", label="A"),))
        provider.update(g)
        assert await provider.graph() is g
