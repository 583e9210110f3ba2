"""Tests for per-context target node selection."""

from aura.inference.models import AuraContext, KnowledgeGraph, KnowledgeNode
from aura.router.target_selector import SELECTION_RULES, TargetSelector


def _node(node_id, load=0.5, mastery=0.5, connections=(), node_type="concept"):
    return KnowledgeNode(
        id=node_id,
        label=node_id.title(),
        cognitive_load=load,
        mastery=mastery,
        connections=tuple(connections),
        node_type=node_type,
    )


def _graph(*nodes):
    return KnowledgeGraph(nodes=tuple(nodes))


class TestTargetSelector:
    def test_empty_graph(self):
        assert TargetSelector().select(KnowledgeGraph(), AuraContext.DEEP_FOCUS) == (None, None)

    def test_overload_prefers_mastered_easy_node(self):
        g = _graph(_node("medium", load=0.5, mastery=0.5), _node("easy", load=0.1, mastery=0.9))
        node, priority = TargetSelector().select(g, AuraContext.COGNITIVE_OVERLOAD)
        assert node.id == "easy"
        assert priority == "P1_GENTLE_RECOVERY"

    def test_overload_fallback_searches_whole_graph(self):
        g = _graph(_node("a", load=0.5, mastery=0.5), _node("b", load=0.2, mastery=0.7))
        node, priority = TargetSelector().select(g, AuraContext.COGNITIVE_OVERLOAD)
        assert node.id == "b"
        assert priority == "P1_GENTLE_RECOVERY"

    def test_deep_focus_picks_biggest_challenge(self):
        g = _graph(
            _node("x", load=0.7, mastery=0.5),     # 0.35
            _node("y", load=0.9, mastery=0.2),     # 0.72
            _node("z", load=0.3, mastery=0.1),     # not a candidate
        )
        node, priority = TargetSelector().select(g, AuraContext.DEEP_FOCUS)
        assert node.id == "y"
        assert priority == "P1_HIGH_IMPACT_DEEP_LEARNING"

    def test_deep_focus_falls_back_to_first_node(self):
        g = _graph(_node("first", load=0.2), _node("second", load=0.3))
        node, priority = TargetSelector().select(g, AuraContext.DEEP_FOCUS)
        assert node.id == "first"
        assert priority == "P3_COGNITIVE_LOAD"

    def test_creative_flow_prefers_most_connected(self):
        g = _graph(
            _node("concept", connections=("a",)),
            _node("hub", connections=("a", "b", "c", "d"), node_type="card"),
            _node("lonely_card", node_type="card"),
        )
        node, priority = TargetSelector().select(g, AuraContext.CREATIVE_FLOW)
        assert node.id == "hub"
        assert priority == "P1_CONCEPTUAL_ALCHEMY"

    def test_creative_flow_fallback(self):
        g = _graph(_node("card", node_type="card"))
        node, priority = TargetSelector().select(g, AuraContext.CREATIVE_FLOW)
        assert node.id == "card"
        assert priority == "P3_CREATIVE_EXPLORATION"

    def test_fragmented_prefers_quick_wins(self):
        g = _graph(
            _node("hard", load=0.8, mastery=0.3),
            _node("light", load=0.3, mastery=0.6),     # 0.3
            _node("known", load=0.5, mastery=0.9),     # 0.4
        )
        node, priority = TargetSelector().select(g, AuraContext.FRAGMENTED_ATTENTION)
        assert node.id == "known"
        assert priority == "P2_QUICK_REINFORCEMENT"

    def test_ties_keep_graph_order(self):
        g = _graph(_node("a", load=0.1, mastery=0.5), _node("b", load=0.1, mastery=0.5))
        node, _ = TargetSelector().select(g, AuraContext.FRAGMENTED_ATTENTION)
        assert node.id == "a"

    def test_every_context_has_a_rule(self):
        assert set(SELECTION_RULES) == set(AuraContext)
