"""
Context Pattern store — rolling composite scores per
(location × time-of-day × interaction-state) key.

Used only as a soft bonus in the capacity forecast.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional

import numpy as np


@dataclass
class ContextPattern:
    outcomes: Deque[float]
    frequency: int = 1
    last_seen: float = field(default_factory=time.time)
    confidence: float = 0.5

    @property
    def average_outcome(self) -> float:
        return float(np.mean(self.outcomes)) if self.outcomes else 0.0


class ContextPatternStore:

    def __init__(self, window: int = 20):
        self.window = window
        self._patterns: Dict[str, ContextPattern] = {}

    def observe(self, key: str, score: float, now: Optional[float] = None) -> ContextPattern:
        now = time.time() if now is None else now
        pattern = self._patterns.get(key)
        if pattern is None:
            pattern = ContextPattern(outcomes=deque([score], maxlen=self.window), last_seen=now)
            self._patterns[key] = pattern
            return pattern

        pattern.outcomes.append(score)
        pattern.frequency += 1
        pattern.last_seen = now
        # consistent outcomes → higher confidence
        variance = float(np.var(pattern.outcomes))
        pattern.confidence = max(0.3, min(1.0, 1.0 - variance))
        return pattern

    def get(self, key: str) -> Optional[ContextPattern]:
        return self._patterns.get(key)

    def bonus(self, key: str) -> float:
        """(average − 0.5) × confidence, bounded to ±0.2; 0 for an unseen key."""
        pattern = self._patterns.get(key)
        if pattern is None or not pattern.outcomes:
            return 0.0
        raw = (pattern.average_outcome - 0.5) * pattern.confidence
        return max(-0.2, min(0.2, raw))

    def summary(self) -> List[dict]:
        return [
            {
                "context": key,
                "frequency": p.frequency,
                "average_outcome": round(p.average_outcome, 4),
                "confidence": round(p.confidence, 4),
                "last_seen": p.last_seen,
            }
            for key, p in self._patterns.items()
        ]

    def clear(self) -> None:
        self._patterns.clear()

    def __len__(self) -> int:
        return len(self._patterns)
