"""Tests for prescriptions, micro-tasks and system-integration modes."""

from aura.inference.models import (
    AuraContext,
    ContextSnapshot,
    DigitalBodyLanguage,
    DistractionRisk,
    EnergyLevel,
    Intensity,
    KnowledgeNode,
    LocationContext,
    TimeIntelligence,
)
from aura.router.prescriptions import INTEGRATIONS, TEMPLATES, PrescriptionGenerator

NOW = 1_700_000_000.0


def _snapshot(**kwargs) -> ContextSnapshot:
    defaults = dict(timestamp=NOW)
    defaults.update(kwargs)
    return ContextSnapshot(**defaults)


def _gen() -> PrescriptionGenerator:
    return PrescriptionGenerator(clock=lambda: NOW)


NODE = KnowledgeNode(id="g", label="Graph Theory")


class TestPrescription:
    def test_deep_focus_duration_follows_attention_span(self):
        snap = _snapshot(interaction=DigitalBodyLanguage(attention_span=40))
        p = _gen().prescription(AuraContext.DEEP_FOCUS, snap)
        assert p.duration == 40
        assert p.intensity == Intensity.HIGH
        assert p.primary == "Systematic Knowledge Construction"

    def test_deep_focus_minimum_session(self):
        snap = _snapshot(interaction=DigitalBodyLanguage(attention_span=10))
        assert _gen().prescription(AuraContext.DEEP_FOCUS, snap).duration == 25

    def test_fragmented_sessions_are_short(self):
        snap = _snapshot(interaction=DigitalBodyLanguage(attention_span=8))
        p = _gen().prescription(AuraContext.FRAGMENTED_ATTENTION, snap)
        assert p.duration == 8
        assert p.intensity == Intensity.LOW

    def test_overload_is_gentle(self):
        p = _gen().prescription(AuraContext.COGNITIVE_OVERLOAD, _snapshot())
        assert p.duration == 10
        assert "recovery_zone" in p.environment


class TestMicroTask:
    def test_empty_state_without_target(self):
        for context in AuraContext:
            assert _gen().micro_task(None, context, _snapshot()) == TEMPLATES[context].empty_state

    def test_mentions_target_label(self):
        task = _gen().micro_task(NODE, AuraContext.FRAGMENTED_ATTENTION, _snapshot())
        assert '"Graph Theory"' in task
        assert task.startswith("Work with your current attention pattern.")

    def test_peak_energy_lead_in(self):
        snap = _snapshot(time=TimeIntelligence(energy_level=EnergyLevel.PEAK))
        task = _gen().micro_task(NODE, AuraContext.DEEP_FOCUS, snap)
        assert task.startswith("Seize this peak mental state.")

    def test_advisories(self):
        snap = _snapshot(
            time=TimeIntelligence(next_optimal_window=NOW + 45 * 60),
            location=LocationContext(distraction_risk=DistractionRisk.HIGH),
            interaction=DigitalBodyLanguage(app_switch_frequency=3.0),
        )
        task = _gen().micro_task(NODE, AuraContext.FRAGMENTED_ATTENTION, snap)
        assert "quieter space" in task
        assert "in 45 minutes" in task
        assert "app switching" in task

    def test_distant_window_not_mentioned(self):
        snap = _snapshot(time=TimeIntelligence(next_optimal_window=NOW + 5 * 3600))
        assert _gen().advisories(snap) == []


class TestIntegration:
    def test_modes_per_context(self):
        gen = _gen()
        assert gen.integration(AuraContext.DEEP_FOCUS).soundscape == "focus_flow"
        assert gen.integration(AuraContext.CREATIVE_FLOW).graph_visualization == "clusters"
        assert gen.integration(AuraContext.COGNITIVE_OVERLOAD).memory_palace == "rest"

    def test_every_context_covered(self):
        assert set(INTEGRATIONS) == set(AuraContext)
