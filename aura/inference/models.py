"""
Value types shared across the engine.

Everything here is immutable: a new snapshot, graph or aura state replaces
the previous one instead of mutating it.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


# ── Enumerations ──────────────────────────────────────────────────────────

class TimeOfDay(str, Enum):
    EARLY_MORNING = "early_morning"
    MORNING = "morning"
    MIDDAY = "midday"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    LATE_NIGHT = "late_night"


class EnergyLevel(str, Enum):
    PEAK = "peak"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    RECOVERY = "recovery"


class Environment(str, Enum):
    HOME = "home"
    OFFICE = "office"
    LIBRARY = "library"
    COMMUTE = "commute"
    OUTDOOR = "outdoor"
    UNKNOWN = "unknown"


class DistractionRisk(str, Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class InteractionState(str, Enum):
    ENGAGED = "engaged"
    FRAGMENTED = "fragmented"
    RESTLESS = "restless"
    FOCUSED = "focused"
    OVERWHELMED = "overwhelmed"


class NetworkQuality(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    OFFLINE = "offline"


class AuraContext(str, Enum):
    DEEP_FOCUS = "DeepFocus"
    CREATIVE_FLOW = "CreativeFlow"
    FRAGMENTED_ATTENTION = "FragmentedAttention"
    COGNITIVE_OVERLOAD = "CognitiveOverload"


class Intensity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ── Context snapshot ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class TimeIntelligence:
    circadian_hour: float = 12.0            # 0-24
    time_of_day: TimeOfDay = TimeOfDay.MIDDAY
    energy_level: EnergyLevel = EnergyLevel.MEDIUM
    historical_performance: float = 0.5     # 0-1, past performance at this time
    is_optimal_window: bool = False
    next_optimal_window: Optional[float] = None   # unix ts
    window_started_at: Optional[float] = None     # unix ts


@dataclass(frozen=True)
class LocationContext:
    environment: Environment = Environment.UNKNOWN
    distraction_risk: DistractionRisk = DistractionRisk.MEDIUM
    stability_score: float = 0.5            # 0-1, how settled the location is
    privacy_level: float = 0.5              # 0-1
    location_confidence: float = 0.3        # 0-1


@dataclass(frozen=True)
class DigitalBodyLanguage:
    state: InteractionState = InteractionState.ENGAGED
    app_switch_frequency: float = 0.0       # switches / min
    attention_span: float = 20.0            # minutes
    cognitive_load_indicator: float = 0.5   # 0-1
    stress_indicators: float = 0.0          # 0-1


@dataclass(frozen=True)
class ContextSnapshot:
    timestamp: float = field(default_factory=time.time)
    time: TimeIntelligence = field(default_factory=TimeIntelligence)
    location: LocationContext = field(default_factory=LocationContext)
    interaction: DigitalBodyLanguage = field(default_factory=DigitalBodyLanguage)
    battery_level: float = 0.5
    network_quality: NetworkQuality = NetworkQuality.GOOD
    overall_optimality: float = 0.5
    context_quality_score: float = 0.5

    @property
    def pattern_key(self) -> str:
        """Key for the (location × time-of-day × interaction-state) pattern map."""
        return (
            f"{self.location.environment.value}_"
            f"{self.time.time_of_day.value}_"
            f"{self.interaction.state.value}"
        )


# ── Knowledge graph / activity ────────────────────────────────────────────

@dataclass(frozen=True)
class KnowledgeNode:
    id: str
    label: str
    cognitive_load: float = 0.5
    mastery: float = 0.5
    connections: Tuple[str, ...] = ()
    node_type: str = "concept"


@dataclass(frozen=True)
class KnowledgeEdge:
    source: str
    target: str
    strength: float = 0.5
    edge_type: str = "association"


@dataclass(frozen=True)
class KnowledgeGraph:
    nodes: Tuple[KnowledgeNode, ...] = ()
    edges: Tuple[KnowledgeEdge, ...] = ()
    version: float = 0.0                    # last-updated timestamp

    def node(self, node_id: str) -> Optional[KnowledgeNode]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None


@dataclass(frozen=True)
class ActivityItem:
    """One spaced-repetition item from the recent-activity list."""
    retention_rate: float = 0.5
    next_review: Optional[float] = None     # unix ts
    difficulty: float = 0.0


@dataclass(frozen=True)
class HealthMetrics:
    sleep_quality: float = 0.5
    stress_level: float = 0.0


# ── Engine outputs ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CapacityForecast:
    mental_clarity_score: float = 0.5           # 0-1
    anticipated_capacity_change: float = 0.0    # -1..1
    optimal_window_remaining: float = 0.0       # minutes
    next_optimal_window: Optional[float] = None


@dataclass(frozen=True)
class LearningPrescription:
    primary: str
    duration: int                               # minutes
    intensity: Intensity
    environment: Tuple[str, ...] = ()
    secondary: Optional[str] = None


@dataclass(frozen=True)
class StateTransition:
    context: AuraContext
    probability: float
    timeframe: float                            # minutes
    triggers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AuraState:
    composite_score: float
    cognitive_load: float
    context: AuraContext
    target_node: Optional[KnowledgeNode]
    target_priority: Optional[str]
    micro_task: str
    environment: ContextSnapshot
    forecast: CapacityForecast
    prescription: LearningPrescription
    soundscape: str
    physics_mode: str
    memory_palace_mode: str
    graph_visualization_mode: str
    anticipated_transitions: Tuple[StateTransition, ...]
    timestamp: float
    session_id: str
    confidence: float
    accuracy_score: float
    previous_states: Tuple["AuraState", ...]
    adaptation_count: int
    context_stability: float
    prediction_accuracy: float
    environment_optimality: float
    biological_alignment: float
