"""
Target Selector — picks the single knowledge node to study under the
current attention context.

Each context has a candidate filter, a ranking key and a fallback.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from ..inference.models import AuraContext, KnowledgeGraph, KnowledgeNode

NodeFilter = Callable[[KnowledgeNode], bool]
NodeKey = Callable[[KnowledgeNode], float]


def _challenge(n: KnowledgeNode) -> float:
    return n.cognitive_load * (1 - n.mastery)


def _ease(n: KnowledgeNode) -> float:
    return n.mastery - n.cognitive_load


def _connectivity(n: KnowledgeNode) -> float:
    return float(len(n.connections))


@dataclass(frozen=True)
class SelectionRule:
    candidates: NodeFilter
    rank: NodeKey
    priority: str
    fallback_priority: str
    # fallback picks the best node over the whole graph instead of the first one
    global_fallback: bool = False


SELECTION_RULES: Dict[AuraContext, SelectionRule] = {
    AuraContext.DEEP_FOCUS: SelectionRule(
        candidates=lambda n: n.cognitive_load > 0.6 and n.mastery < 0.8,
        rank=_challenge,
        priority="P1_HIGH_IMPACT_DEEP_LEARNING",
        fallback_priority="P3_COGNITIVE_LOAD",
    ),
    AuraContext.CREATIVE_FLOW: SelectionRule(
        candidates=lambda n: n.node_type == "concept" or len(n.connections) > 3,
        rank=_connectivity,
        priority="P1_CONCEPTUAL_ALCHEMY",
        fallback_priority="P3_CREATIVE_EXPLORATION",
    ),
    AuraContext.FRAGMENTED_ATTENTION: SelectionRule(
        candidates=lambda n: n.cognitive_load < 0.4 or n.mastery > 0.7,
        rank=_ease,
        priority="P2_QUICK_REINFORCEMENT",
        fallback_priority="P3_FRAGMENTED_REVIEW",
    ),
    AuraContext.COGNITIVE_OVERLOAD: SelectionRule(
        candidates=lambda n: n.mastery > 0.8 and n.cognitive_load < 0.3,
        rank=_ease,
        priority="P1_GENTLE_RECOVERY",
        fallback_priority="P1_GENTLE_RECOVERY",
        global_fallback=True,
    ),
}


class TargetSelector:
    """
    Returns (node, priority label). An empty graph yields (None, None).
    Ties keep the earliest node in graph order.
    """

    def select(
        self,
        graph: KnowledgeGraph,
        context: AuraContext,
    ) -> Tuple[Optional[KnowledgeNode], Optional[str]]:
        if not graph.nodes:
            return None, None

        rule = SELECTION_RULES[context]
        candidates = [n for n in graph.nodes if rule.candidates(n)]

        if candidates:
            return max(candidates, key=rule.rank), rule.priority
        if rule.global_fallback:
            return max(graph.nodes, key=rule.rank), rule.fallback_priority
        return graph.nodes[0], rule.fallback_priority
