"""
Pydantic schemas for the FastAPI local API.

Input payloads are validated here (ranges → 422) and converted to the
engine's frozen dataclasses; the engine itself never sees raw JSON.
"""

from __future__ import annotations

import time
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..inference.models import (
    ActivityItem,
    AuraContext,
    AuraState,
    ContextSnapshot,
    DigitalBodyLanguage,
    DistractionRisk,
    EnergyLevel,
    Environment,
    HealthMetrics,
    Intensity,
    InteractionState,
    KnowledgeEdge,
    KnowledgeGraph,
    KnowledgeNode,
    LocationContext,
    NetworkQuality,
    TimeIntelligence,
    TimeOfDay,
)


# ── Context snapshot ──────────────────────────────────────────────────────

class TimeIntelligenceSchema(BaseModel):
    circadian_hour: float = Field(12.0, ge=0.0, le=24.0)
    time_of_day: TimeOfDay = TimeOfDay.MIDDAY
    energy_level: EnergyLevel = EnergyLevel.MEDIUM
    historical_performance: float = Field(0.5, ge=0.0, le=1.0)
    is_optimal_window: bool = False
    next_optimal_window: Optional[float] = None
    window_started_at: Optional[float] = None


class LocationContextSchema(BaseModel):
    environment: Environment = Environment.UNKNOWN
    distraction_risk: DistractionRisk = DistractionRisk.MEDIUM
    stability_score: float = Field(0.5, ge=0.0, le=1.0)
    privacy_level: float = Field(0.5, ge=0.0, le=1.0)
    location_confidence: float = Field(0.3, ge=0.0, le=1.0)


class DigitalBodyLanguageSchema(BaseModel):
    state: InteractionState = InteractionState.ENGAGED
    app_switch_frequency: float = Field(0.0, ge=0.0, description="switches per minute")
    attention_span: float = Field(20.0, ge=0.0, description="minutes")
    cognitive_load_indicator: float = Field(0.5, ge=0.0, le=1.0)
    stress_indicators: float = Field(0.0, ge=0.0, le=1.0)

    def to_model(self) -> DigitalBodyLanguage:
        return DigitalBodyLanguage(**self.model_dump())


class ContextSnapshotSchema(BaseModel):
    timestamp: Optional[float] = Field(None, description="Unix timestamp; defaults to now")
    time: TimeIntelligenceSchema = Field(default_factory=TimeIntelligenceSchema)
    location: LocationContextSchema = Field(default_factory=LocationContextSchema)
    interaction: DigitalBodyLanguageSchema = Field(default_factory=DigitalBodyLanguageSchema)
    battery_level: float = Field(0.5, ge=0.0, le=1.0)
    network_quality: NetworkQuality = NetworkQuality.GOOD
    overall_optimality: float = Field(0.5, ge=0.0, le=1.0)
    context_quality_score: float = Field(0.5, ge=0.0, le=1.0)

    def to_model(self) -> ContextSnapshot:
        return ContextSnapshot(
            timestamp=self.timestamp if self.timestamp is not None else time.time(),
            time=TimeIntelligence(**self.time.model_dump()),
            location=LocationContext(**self.location.model_dump()),
            interaction=self.interaction.to_model(),
            battery_level=self.battery_level,
            network_quality=self.network_quality,
            overall_optimality=self.overall_optimality,
            context_quality_score=self.context_quality_score,
        )

    @classmethod
    def from_model(cls, snapshot: ContextSnapshot) -> "ContextSnapshotSchema":
        return cls.model_validate(asdict(snapshot))


# ── Knowledge graph / activity / health ───────────────────────────────────

class KnowledgeNodeSchema(BaseModel):
    id: str
    label: str
    cognitive_load: float = Field(0.5, ge=0.0, le=1.0)
    mastery: float = Field(0.5, ge=0.0, le=1.0)
    connections: List[str] = Field(default_factory=list)
    node_type: str = "concept"

    def to_model(self) -> KnowledgeNode:
        return KnowledgeNode(
            id=self.id,
            label=self.label,
            cognitive_load=self.cognitive_load,
            mastery=self.mastery,
            connections=tuple(self.connections),
            node_type=self.node_type,
        )

    @classmethod
    def from_model(cls, node: KnowledgeNode) -> "KnowledgeNodeSchema":
        return cls.model_validate(asdict(node))


class KnowledgeEdgeSchema(BaseModel):
    source: str
    target: str
    strength: float = Field(0.5, ge=0.0, le=1.0)
    edge_type: str = "association"


class KnowledgeGraphIn(BaseModel):
    nodes: List[KnowledgeNodeSchema] = Field(default_factory=list)
    edges: List[KnowledgeEdgeSchema] = Field(default_factory=list)
    version: Optional[float] = Field(None, description="Last-updated timestamp; defaults to now")

    def to_model(self) -> KnowledgeGraph:
        return KnowledgeGraph(
            nodes=tuple(n.to_model() for n in self.nodes),
            edges=tuple(KnowledgeEdge(**e.model_dump()) for e in self.edges),
            version=self.version if self.version is not None else time.time(),
        )


class ActivityItemSchema(BaseModel):
    retention_rate: float = Field(0.5, ge=0.0, le=1.0)
    next_review: Optional[float] = None
    difficulty: float = Field(0.0, ge=0.0, le=1.0)


class ActivityIn(BaseModel):
    items: List[ActivityItemSchema] = Field(default_factory=list)

    def to_model(self) -> List[ActivityItem]:
        return [ActivityItem(**i.model_dump()) for i in self.items]


class HealthMetricsIn(BaseModel):
    sleep_quality: float = Field(0.5, ge=0.0, le=1.0)
    stress_level: float = Field(0.0, ge=0.0, le=1.0)

    def to_model(self) -> HealthMetrics:
        return HealthMetrics(**self.model_dump())


# ── Performance ───────────────────────────────────────────────────────────

class PerformanceIn(BaseModel):
    """Partial outcome record; omitted fields take neutral defaults."""
    accuracy: Optional[float] = Field(None, ge=0.0, le=1.0)
    task_completion: Optional[float] = Field(None, ge=0.0, le=1.0)
    time_to_complete: Optional[float] = Field(None, ge=0.0)
    user_satisfaction: Optional[float] = Field(None, ge=1.0, le=5.0)
    context_relevance: Optional[float] = Field(None, ge=0.0, le=1.0)
    environment_optimality: Optional[float] = Field(None, ge=0.0, le=1.0)
    predictive_accuracy: Optional[float] = Field(None, ge=0.0, le=1.0)
    adaptation_effectiveness: Optional[float] = Field(None, ge=0.0, le=1.0)


class PerformanceRecordedOut(BaseModel):
    recorded: bool
    weights: Dict[str, float]


# ── Aura state ────────────────────────────────────────────────────────────

class CapacityForecastOut(BaseModel):
    mental_clarity_score: float = Field(..., ge=0.0, le=1.0)
    anticipated_capacity_change: float = Field(..., ge=-1.0, le=1.0)
    optimal_window_remaining: float
    next_optimal_window: Optional[float]


class LearningPrescriptionOut(BaseModel):
    primary: str
    secondary: Optional[str]
    duration: int
    intensity: Intensity
    environment: List[str]


class StateTransitionOut(BaseModel):
    context: AuraContext
    probability: float = Field(..., ge=0.0, le=1.0)
    timeframe: float
    triggers: List[str]


class PreviousStateOut(BaseModel):
    context: AuraContext
    composite_score: float
    target_node_id: Optional[str]
    timestamp: float


class AuraStateOut(BaseModel):
    composite_score: float = Field(..., ge=0.0, le=1.0)
    cognitive_load: float = Field(..., ge=0.0, le=1.0)
    context: AuraContext
    target_node: Optional[KnowledgeNodeSchema]
    target_priority: Optional[str]
    micro_task: str
    environment: ContextSnapshotSchema
    forecast: CapacityForecastOut
    prescription: LearningPrescriptionOut
    soundscape: str
    physics_mode: str
    memory_palace_mode: str
    graph_visualization_mode: str
    anticipated_transitions: List[StateTransitionOut]
    timestamp: float
    session_id: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    accuracy_score: float = Field(..., ge=0.0, le=1.0)
    previous_states: List[PreviousStateOut]
    adaptation_count: int
    context_stability: float = Field(..., ge=0.0, le=1.0)
    prediction_accuracy: float = Field(..., ge=0.0, le=1.0)
    environment_optimality: float = Field(..., ge=0.0, le=1.0)
    biological_alignment: float = Field(..., ge=0.0, le=1.0)

    @classmethod
    def from_state(cls, state: AuraState) -> "AuraStateOut":
        return cls(
            composite_score=state.composite_score,
            cognitive_load=state.cognitive_load,
            context=state.context,
            target_node=(
                KnowledgeNodeSchema.from_model(state.target_node) if state.target_node else None
            ),
            target_priority=state.target_priority,
            micro_task=state.micro_task,
            environment=ContextSnapshotSchema.from_model(state.environment),
            forecast=CapacityForecastOut.model_validate(asdict(state.forecast)),
            prescription=LearningPrescriptionOut.model_validate(asdict(state.prescription)),
            soundscape=state.soundscape,
            physics_mode=state.physics_mode,
            memory_palace_mode=state.memory_palace_mode,
            graph_visualization_mode=state.graph_visualization_mode,
            anticipated_transitions=[
                StateTransitionOut.model_validate(asdict(t)) for t in state.anticipated_transitions
            ],
            timestamp=state.timestamp,
            session_id=state.session_id,
            confidence=state.confidence,
            accuracy_score=state.accuracy_score,
            previous_states=[
                PreviousStateOut(
                    context=p.context,
                    composite_score=p.composite_score,
                    target_node_id=p.target_node.id if p.target_node else None,
                    timestamp=p.timestamp,
                )
                for p in state.previous_states
            ],
            adaptation_count=state.adaptation_count,
            context_stability=state.context_stability,
            prediction_accuracy=state.prediction_accuracy,
            environment_optimality=state.environment_optimality,
            biological_alignment=state.biological_alignment,
        )


# ── Analytics ─────────────────────────────────────────────────────────────

class ContextPatternOut(BaseModel):
    context: str
    frequency: int
    average_outcome: float
    confidence: float
    last_seen: float


class ContextAnalyticsOut(BaseModel):
    session_id: str
    current_context: Optional[AuraContext]
    distribution: Dict[str, float]
    patterns: List[ContextPatternOut]
    total_patterns: int


class SnapshotEntryOut(BaseModel):
    id: Optional[int]
    timestamp: float
    session_id: str
    pattern_key: str
    overall_optimality: float
    context_quality_score: float
    snapshot: Dict[str, Any]
