"""
Context Simulator — drives a running Cognitive Aura Engine with synthetic
context snapshots so you can watch scores, contexts and prescriptions change
without a real sensing client.

Usage:
    # Make sure the engine is running first:
    #   python -m aura.main
    # Then in a separate terminal:
    python scripts/simulate.py                      # default: cycle all scenarios
    python scripts/simulate.py --scenario overload  # specific scenario
    python scripts/simulate.py --loop               # repeat forever
    python scripts/simulate.py --speed 2.0          # 2× faster
"""

from __future__ import annotations

import argparse
import json
import random
import time
import urllib.error
import urllib.request
from typing import Iterator

API = "http://127.0.0.1:8766"


# ---------------------------------------------------------------------------
# Low-level HTTP helpers
# ---------------------------------------------------------------------------

def _send(method: str, path: str, body: list | dict | None = None) -> dict | None:
    try:
        data = json.dumps(body).encode() if body is not None else None
        req = urllib.request.Request(
            f"{API}{path}",
            data=data,
            headers={"Content-Type": "application/json"},
            method=method,
        )
        with urllib.request.urlopen(req, timeout=5) as r:
            return json.loads(r.read())
    except (urllib.error.URLError, OSError) as e:
        print(f"  [!] Engine unreachable: {e}")
        return None


def _get(path: str) -> dict | None:
    try:
        with urllib.request.urlopen(f"{API}{path}", timeout=3) as r:
            return json.loads(r.read())
    except (urllib.error.URLError, OSError, ValueError):
        return None


def _snapshot(
    time_of_day: str,
    hour: float,
    environment: str,
    risk: str,
    state: str,
    *,
    energy: str = "medium",
    optimal: bool = False,
    performance: float = 0.5,
    privacy: float = 0.5,
    switches: float = 0.5,
    span: float = 20.0,
    load: float = 0.5,
    stress: float = 0.0,
) -> dict:
    return {
        "timestamp": time.time(),
        "time": {
            "circadian_hour": hour,
            "time_of_day": time_of_day,
            "energy_level": energy,
            "historical_performance": performance,
            "is_optimal_window": optimal,
            "next_optimal_window": time.time() + 3 * 3600,
        },
        "location": {
            "environment": environment,
            "distraction_risk": risk,
            "stability_score": 0.8,
            "privacy_level": privacy,
            "location_confidence": 0.9,
        },
        "interaction": {
            "state": state,
            "app_switch_frequency": switches,
            "attention_span": span,
            "cognitive_load_indicator": load,
            "stress_indicators": stress,
        },
        "battery_level": 0.8,
        "network_quality": "good",
        "overall_optimality": 0.6,
        "context_quality_score": 0.8,
    }


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

TOPICS = [
    ("graphs", "Graph Theory", 0.8, 0.3),
    ("dp", "Dynamic Programming", 0.9, 0.2),
    ("sorting", "Sorting Algorithms", 0.3, 0.9),
    ("hashing", "Hash Tables", 0.25, 0.85),
    ("proofs", "Proof Techniques", 0.7, 0.5),
    ("complexity", "Complexity Classes", 0.6, 0.4),
]


def seed_graph() -> dict | None:
    ids = [t[0] for t in TOPICS]
    nodes = [
        {
            "id": node_id,
            "label": label,
            "cognitive_load": load,
            "mastery": mastery,
            "connections": random.sample([i for i in ids if i != node_id], k=2),
        }
        for node_id, label, load, mastery in TOPICS
    ]
    edges = [
        {"source": n["id"], "target": c, "strength": round(random.uniform(0.3, 0.9), 2)}
        for n in nodes
        for c in n["connections"]
    ]
    _send("PUT", "/inputs/activity", {
        "items": [
            {
                "retention_rate": round(random.uniform(0.5, 0.95), 2),
                "next_review": time.time() + random.randint(-3600, 36 * 3600),
                "difficulty": round(random.random(), 2),
            }
            for _ in range(12)
        ]
    })
    return _send("PUT", "/inputs/graph", {"nodes": nodes, "edges": edges})


# ---------------------------------------------------------------------------
# Scenario generators: each yields (description, snapshot, delay)
# ---------------------------------------------------------------------------

def scenario_deep_focus(speed: float = 1.0) -> Iterator[tuple[str, dict, float]]:
    """Morning library session at peak energy."""
    for i in range(5):
        yield (
            f"Deep focus [{i+1}/5]: library, focused, long attention span",
            _snapshot(
                "morning", 10.0, "library", "very_low", "focused",
                energy="high", optimal=True, performance=0.85,
                switches=0.2, span=40.0, load=0.3,
            ),
            2.0 / speed,
        )


def scenario_creative(speed: float = 1.0) -> Iterator[tuple[str, dict, float]]:
    """Relaxed evening outdoors."""
    for i in range(4):
        yield (
            f"Creative [{i+1}/4]: evening outdoors, engaged",
            _snapshot(
                "evening", 19.5, "outdoor", "low", "engaged",
                performance=0.7, privacy=0.8, span=25.0, load=0.35,
            ),
            2.0 / speed,
        )


def scenario_fragmented(speed: float = 1.0) -> Iterator[tuple[str, dict, float]]:
    """Commute with frequent app switching."""
    for i in range(5):
        yield (
            f"Fragmented [{i+1}/5]: commute, restless, switching apps",
            _snapshot(
                "afternoon", 17.5, "commute", "high", "restless",
                switches=random.uniform(2.0, 3.5), span=6.0, load=0.55,
            ),
            1.5 / speed,
        )


def scenario_overload(speed: float = 1.0) -> Iterator[tuple[str, dict, float]]:
    """Late night, overwhelmed and stressed."""
    for i in range(4):
        yield (
            f"Overload [{i+1}/4]: late night, overwhelmed",
            _snapshot(
                "late_night", 23.5, "home", "high", "overwhelmed",
                energy="recovery", performance=0.3,
                switches=4.0, span=4.0, load=0.9, stress=0.8,
            ),
            2.0 / speed,
        )


SCENARIOS = {
    "deep_focus": scenario_deep_focus,
    "creative": scenario_creative,
    "fragmented": scenario_fragmented,
    "overload": scenario_overload,
}

CYCLE = ["deep_focus", "fragmented", "creative", "overload", "deep_focus"]


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

def run_scenario(name: str, speed: float) -> None:
    gen_fn = SCENARIOS[name]
    print(f"\n{'─' * 60}")
    print(f"  SCENARIO: {name.upper().replace('_', ' ')}")
    print(f"{'─' * 60}")

    for description, snapshot, delay in gen_fn(speed):
        ok = _send("PUT", "/inputs/context", snapshot) is not None
        state = _send("POST", "/state/refresh")
        score = state["composite_score"] if state else 0.0
        ctx = state["context"] if state else "unknown"
        target = (state or {}).get("target_node") or {}
        bar = "█" * int(score * 20) + "░" * (20 - int(score * 20))

        status = "✓" if ok else "✗"
        print(
            f"  {status} [{bar}] {int(score*100):3d}%  {ctx:<20}  "
            f"{target.get('label', '-'):<20}  {description}"
        )
        time.sleep(delay)


def main() -> None:
    parser = argparse.ArgumentParser(description="Cognitive Aura Engine context simulator")
    parser.add_argument(
        "--scenario",
        choices=list(SCENARIOS.keys()) + ["cycle"],
        default="cycle",
        help="Which scenario to run (default: cycle through all)",
    )
    parser.add_argument("--loop", action="store_true", help="Repeat indefinitely")
    parser.add_argument("--speed", type=float, default=1.0, help="Speed multiplier (default 1.0)")
    args = parser.parse_args()

    health = _get("/health")
    if not health:
        print(f"[!] Cannot reach engine at {API}")
        print("    Start it first: python -m aura.main")
        return
    print(f"[✓] Engine connected — CAE v{health.get('version', '?')} (model {health.get('model_version')})")
    print(f"    Speed: {args.speed}×  |  Scenario: {args.scenario}")

    graph = seed_graph()
    if graph:
        print(f"    Seeded graph: {graph['nodes']} nodes, {graph['edges']} edges")

    sequence = CYCLE if args.scenario == "cycle" else [args.scenario]

    while True:
        for name in sequence:
            run_scenario(name, args.speed)
        if not args.loop:
            break
        print("\n[↺] Looping...\n")
        time.sleep(2.0)

    stats = _get("/analytics/contexts")
    if stats:
        print(f"\n  Context distribution: {stats['distribution']}")
    print("\n[✓] Simulation complete.")


if __name__ == "__main__":
    main()
