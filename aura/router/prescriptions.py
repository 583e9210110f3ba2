"""
Prescription rules — declarative per-context output tables.

For each AuraContext this module defines the learning prescription, the
system-integration modes (soundscape, physics, memory palace, graph view)
and the micro-task templates, plus the generator that assembles them.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..inference.models import (
    AuraContext,
    ContextSnapshot,
    DistractionRisk,
    EnergyLevel,
    Intensity,
    KnowledgeNode,
    LearningPrescription,
    TimeOfDay,
)


@dataclass(frozen=True)
class SystemIntegration:
    soundscape: str
    physics: str            # calm | focus | intense | creative
    memory_palace: str      # challenging | familiar | creative | rest
    graph_visualization: str  # filtered | full | clusters | paths


@dataclass(frozen=True)
class MicroTaskTemplate:
    base: str                 # formatted with {label}
    lead_in: str
    empty_state: str


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------

INTEGRATIONS: Dict[AuraContext, SystemIntegration] = {
    AuraContext.DEEP_FOCUS: SystemIntegration("focus_flow", "intense", "challenging", "filtered"),
    AuraContext.CREATIVE_FLOW: SystemIntegration("creative_inspiration", "creative", "creative", "clusters"),
    AuraContext.FRAGMENTED_ATTENTION: SystemIntegration("ambient_focus", "focus", "familiar", "paths"),
    AuraContext.COGNITIVE_OVERLOAD: SystemIntegration("calm_recovery", "calm", "rest", "filtered"),
}

# Used for the neutral state returned when inputs are unavailable
DEFAULT_INTEGRATION = SystemIntegration("calm_readiness", "calm", "familiar", "full")

DEFAULT_PRESCRIPTION = LearningPrescription(
    primary="Getting Started",
    duration=15,
    intensity=Intensity.LOW,
    environment=("any_comfortable_location",),
)

TEMPLATES: Dict[AuraContext, MicroTaskTemplate] = {
    AuraContext.DEEP_FOCUS: MicroTaskTemplate(
        base=(
            'Engage in deep analysis of "{label}". Break down its core components and '
            "explore the underlying principles for 15-20 minutes of uninterrupted focus."
        ),
        lead_in="Channel your focused energy.",
        empty_state=(
            "Create new flashcards or study materials to build your neural network. "
            "Your focused state is perfect for content creation."
        ),
    ),
    AuraContext.CREATIVE_FLOW: MicroTaskTemplate(
        base=(
            'Explore creative connections around "{label}". What unexpected relationships '
            "can you discover? Let your mind wander through related concepts for 10-15 minutes."
        ),
        lead_in="Embrace the creative flow.",
        empty_state=(
            "Brainstorm new learning topics or explore connections between subjects "
            "you find interesting."
        ),
    ),
    AuraContext.FRAGMENTED_ATTENTION: MicroTaskTemplate(
        base=(
            'Quick review: Spend 3-5 minutes reinforcing your understanding of "{label}". '
            "Focus on key points and quick recall."
        ),
        lead_in="Work with your current attention pattern.",
        empty_state="Add a few quick flashcards or review any materials you have available.",
    ),
    AuraContext.COGNITIVE_OVERLOAD: MicroTaskTemplate(
        base=(
            'Gently revisit "{label}" without pressure. Take your time to simply reconnect '
            "with the familiar concepts at your own pace."
        ),
        lead_in="Be gentle with yourself right now.",
        empty_state=(
            "Take a moment to rest and consider what you'd like to learn when you're "
            "feeling more refreshed."
        ),
    ),
}


def _deep_focus(snapshot: ContextSnapshot) -> LearningPrescription:
    return LearningPrescription(
        primary="Systematic Knowledge Construction",
        secondary="Complex Problem Solving",
        duration=int(max(25, snapshot.interaction.attention_span)),
        intensity=Intensity.HIGH,
        environment=("library", "private_office", "quiet_home_space"),
    )


def _creative_flow(snapshot: ContextSnapshot) -> LearningPrescription:
    return LearningPrescription(
        primary="Conceptual Alchemy",
        secondary="Pattern Recognition",
        duration=30,
        intensity=Intensity.MEDIUM,
        environment=("outdoor_space", "creative_room", "inspirational_setting"),
    )


def _fragmented(snapshot: ContextSnapshot) -> LearningPrescription:
    return LearningPrescription(
        primary="Interval-Based Review",
        secondary="Quick Reinforcement Drills",
        duration=int(min(15, snapshot.interaction.attention_span)),
        intensity=Intensity.LOW,
        environment=("any_location", "commute_friendly", "mobile_optimized"),
    )


def _overload(snapshot: ContextSnapshot) -> LearningPrescription:
    return LearningPrescription(
        primary="Gentle Cognitive Recovery",
        secondary="Stress Reduction Activities",
        duration=10,
        intensity=Intensity.LOW,
        environment=("comfortable_space", "low_stimulation", "recovery_zone"),
    )


PRESCRIPTIONS: Dict[AuraContext, Callable[[ContextSnapshot], LearningPrescription]] = {
    AuraContext.DEEP_FOCUS: _deep_focus,
    AuraContext.CREATIVE_FLOW: _creative_flow,
    AuraContext.FRAGMENTED_ATTENTION: _fragmented,
    AuraContext.COGNITIVE_OVERLOAD: _overload,
}


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

class PrescriptionGenerator:

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock

    def prescription(self, context: AuraContext, snapshot: ContextSnapshot) -> LearningPrescription:
        return PRESCRIPTIONS[context](snapshot)

    def integration(self, context: AuraContext) -> SystemIntegration:
        return INTEGRATIONS[context]

    def micro_task(
        self,
        target: Optional[KnowledgeNode],
        context: AuraContext,
        snapshot: ContextSnapshot,
    ) -> str:
        template = TEMPLATES[context]
        if target is None:
            return template.empty_state

        parts = [self.lead_in(context, snapshot), template.base.format(label=target.label)]
        parts.extend(self.advisories(snapshot))
        return " ".join(parts)

    @staticmethod
    def lead_in(context: AuraContext, snapshot: ContextSnapshot) -> str:
        if context == AuraContext.DEEP_FOCUS and snapshot.time.energy_level == EnergyLevel.PEAK:
            return "Seize this peak mental state."
        if context == AuraContext.CREATIVE_FLOW and snapshot.time.time_of_day == TimeOfDay.EVENING:
            return "Let your evening creativity flourish."
        return TEMPLATES[context].lead_in

    def advisories(self, snapshot: ContextSnapshot) -> List[str]:
        cues: List[str] = []
        if snapshot.location.distraction_risk == DistractionRisk.HIGH:
            cues.append("Consider finding a quieter space if possible.")

        next_window = snapshot.time.next_optimal_window
        if next_window is not None:
            minutes = int((next_window - self._clock()) / 60)
            if minutes < 120:
                cues.append(f"Your next optimal window is in {minutes} minutes.")

        if snapshot.interaction.app_switch_frequency > 2:
            cues.append("Try to minimize app switching during this session.")
        return cues
