"""Tests for the composite cognitive score factors and calculator."""

import pytest

from aura.inference.composite_score import (
    NEUTRAL_SCORE,
    CompositeScoreCalculator,
    context_factor,
    depth_factor,
    health_adjustment,
    retention_factor,
    strength_factor,
    urgency_factor,
)
from aura.inference.models import (
    ActivityItem,
    ContextSnapshot,
    DigitalBodyLanguage,
    DistractionRisk,
    Environment,
    HealthMetrics,
    InteractionState,
    KnowledgeGraph,
    KnowledgeNode,
    LocationContext,
    NetworkQuality,
    TimeIntelligence,
)
from aura.learning.weights import AdaptiveWeights

NOW = 1_700_000_000.0


class FakeClock:
    def __init__(self, t: float = NOW):
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


def _node(node_id, load=0.5, mastery=0.5, connections=(), node_type="concept"):
    return KnowledgeNode(
        id=node_id,
        label=node_id.title(),
        cognitive_load=load,
        mastery=mastery,
        connections=tuple(connections),
        node_type=node_type,
    )


def _graph(*nodes, version=1.0):
    return KnowledgeGraph(nodes=tuple(nodes), version=version)


def _snapshot(**kwargs) -> ContextSnapshot:
    defaults = dict(timestamp=NOW)
    defaults.update(kwargs)
    return ContextSnapshot(**defaults)


class TestGraphFactors:
    def test_empty_graph_gives_zero_depth_and_strength(self):
        assert depth_factor(KnowledgeGraph()) == 0.0
        assert strength_factor(KnowledgeGraph()) == 0.0

    def test_depth_combines_connections_load_and_mastery(self):
        g = _graph(_node("a", load=0.5, mastery=0.5, connections=("b", "c")))
        # 0.1·2 + 0.3·0.5 + 0.2·0.5
        assert depth_factor(g) == pytest.approx(0.45)

    def test_depth_per_node_capped_at_one(self):
        many = [f"n{i}" for i in range(20)]
        g = _graph(_node("a", load=1.0, mastery=0.0, connections=many))
        assert depth_factor(g) == pytest.approx(1.0)

    def test_strength_is_mean_neighbour_mastery(self):
        g = _graph(
            _node("a", mastery=0.5, connections=("b",)),
            _node("b", mastery=0.9, connections=("a",)),
        )
        assert strength_factor(g) == pytest.approx(0.7)

    def test_unknown_neighbour_counts_as_half(self):
        g = _graph(_node("a", connections=("ghost",)))
        assert strength_factor(g) == pytest.approx(0.5)

    def test_no_connections_gives_neutral_strength(self):
        g = _graph(_node("a", mastery=0.9), _node("b", mastery=0.1))
        assert strength_factor(g) == 0.5


class TestActivityFactors:
    def test_retention_neutral_without_items(self):
        assert retention_factor(_graph(_node("a")), []) == 0.5

    def test_retention_adds_connectivity_bonus(self):
        g = _graph(_node("a", connections=("b",)), _node("b", connections=("a",)))
        items = [ActivityItem(retention_rate=0.6), ActivityItem(retention_rate=0.8)]
        assert retention_factor(g, items) == pytest.approx(0.8)

    def test_retention_capped_at_one(self):
        g = _graph(_node("a", connections=tuple(f"n{i}" for i in range(10))))
        assert retention_factor(g, [ActivityItem(retention_rate=0.95)]) == 1.0

    def test_urgency_zero_without_items(self):
        assert urgency_factor([], NOW) == 0.0

    def test_urgency_mixes_due_proximity_and_difficulty(self):
        items = [
            ActivityItem(next_review=NOW + 2 * 3600),   # < 4h → 0.6
            ActivityItem(difficulty=0.8),               # no review, hard → 0.2
        ]
        assert urgency_factor(items, NOW) == pytest.approx(0.4)

    def test_overdue_item_is_maximally_urgent(self):
        assert urgency_factor([ActivityItem(next_review=NOW - 60)], NOW) == 1.0

    def test_urgency_capped_at_one(self):
        items = [ActivityItem(next_review=NOW - 60, difficulty=0.9)]
        assert urgency_factor(items, NOW) == 1.0


class TestContextFactor:
    def test_neutral_snapshot(self):
        # engaged (+0.15·0.25) and a healthy device (+0.1·0.1)
        assert context_factor(_snapshot()) == pytest.approx(0.5475)

    def test_good_conditions_raise_the_factor(self):
        good = _snapshot(
            time=TimeIntelligence(is_optimal_window=True, historical_performance=0.9),
            location=LocationContext(
                environment=Environment.LIBRARY,
                distraction_risk=DistractionRisk.VERY_LOW,
                stability_score=0.9,
            ),
            interaction=DigitalBodyLanguage(
                state=InteractionState.FOCUSED, attention_span=40, cognitive_load_indicator=0.2
            ),
        )
        assert context_factor(good) > context_factor(_snapshot())

    def test_offline_device_loses_device_share(self):
        offline = _snapshot(network_quality=NetworkQuality.OFFLINE)
        assert context_factor(offline) == pytest.approx(0.5375)

    def test_always_within_unit_interval(self):
        worst = _snapshot(
            time=TimeIntelligence(historical_performance=0.0),
            location=LocationContext(
                environment=Environment.COMMUTE,
                distraction_risk=DistractionRisk.VERY_HIGH,
                stability_score=0.0,
            ),
            interaction=DigitalBodyLanguage(
                state=InteractionState.OVERWHELMED,
                attention_span=1,
                cognitive_load_indicator=1.0,
                stress_indicators=1.0,
            ),
            battery_level=0.05,
        )
        assert 0.0 <= context_factor(worst) <= 1.0


class TestHealthAdjustment:
    def test_neutral_without_health_data(self):
        assert health_adjustment(_snapshot(), None) == 1.0

    def test_poor_sleep_reduces(self):
        assert health_adjustment(_snapshot(), HealthMetrics(sleep_quality=0.3)) == pytest.approx(0.85)

    def test_good_sleep_and_focus_compound(self):
        snap = _snapshot(interaction=DigitalBodyLanguage(state=InteractionState.FOCUSED))
        adj = health_adjustment(snap, HealthMetrics(sleep_quality=0.9))
        assert adj == pytest.approx(1.1 * 1.05)

    def test_bounded(self):
        snap = _snapshot(
            interaction=DigitalBodyLanguage(state=InteractionState.OVERWHELMED),
            location=LocationContext(stability_score=0.1),
        )
        adj = health_adjustment(snap, HealthMetrics(sleep_quality=0.1, stress_level=0.9))
        assert 0.5 <= adj <= 1.5


class TestCompositeScoreCalculator:
    def _calc(self, clock=None):
        return CompositeScoreCalculator(AdaptiveWeights(), cache_ttl_s=45.0, clock=clock or FakeClock())

    def test_score_within_unit_interval(self):
        calc = self._calc()
        g = _graph(_node("a", load=0.9, mastery=0.1, connections=("b", "c", "d")), _node("b"))
        score = calc.score(g, [ActivityItem(retention_rate=0.9)], _snapshot())
        assert 0.0 <= score <= 1.0

    def test_factors_exposes_all_five(self):
        factors = self._calc().factors(_graph(_node("a")), [], _snapshot())
        assert set(factors) == {"depth", "strength", "retention", "urgency", "context"}

    def test_cached_within_ttl(self):
        clock = FakeClock()
        calc = self._calc(clock)
        g = _graph(_node("a", connections=("b",)), _node("b"))
        snap = _snapshot()
        first = calc.score(g, [], snap)

        calc.weights.set("context", 5.0)       # would change the result if recomputed
        clock.advance(30)
        assert calc.score(g, [], snap) == first

    def test_recomputed_after_ttl(self):
        clock = FakeClock()
        calc = self._calc(clock)
        g = _graph(_node("a", connections=("b",)), _node("b"))
        snap = _snapshot()
        first = calc.score(g, [], snap)

        calc.weights.set("context", 5.0)
        clock.advance(46)
        assert calc.score(g, [], snap) != first

    def test_new_graph_version_misses_cache(self):
        calc = self._calc()
        snap = _snapshot()
        calc.score(_graph(_node("a"), version=1.0), [], snap)
        calc.weights.set("context", 5.0)
        second = calc.score(_graph(_node("a"), version=2.0), [], snap)
        assert second == 1.0

    def test_internal_error_returns_neutral(self, monkeypatch):
        calc = self._calc()

        def boom(*args, **kwargs):
            raise ValueError("bad input")

        monkeypatch.setattr(calc, "factors", boom)
        assert calc.score(_graph(_node("a")), [], _snapshot()) == NEUTRAL_SCORE

    def test_health_adjustment_applied(self):
        g = _graph(_node("a", connections=("b",)), _node("b"))
        plain = self._calc().score(g, [], _snapshot())
        tired = self._calc().score(g, [], _snapshot(), HealthMetrics(sleep_quality=0.2))
        assert tired == pytest.approx(plain * 0.85)
