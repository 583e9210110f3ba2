"""
Context-classification thresholds, tunable at runtime and persisted as JSON
in the data directory (data/settings.json by default).

    get_settings()          → copy of the current values
    update_settings(patch)  → apply, save, return the full set

The engine reads these on every computation, so an update is picked up by
the next AuraState without a restart.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog

from .config import config

logger = structlog.get_logger(__name__)

_FILE: Path = config.data_dir / "settings.json"

DEFAULTS: dict[str, Any] = {
    "deep_focus_score_min":   0.75,   # score > this may be DeepFocus
    "deep_focus_clarity_min": 0.70,   # clarity > this may be DeepFocus
    "creative_clarity_min":   0.65,   # clarity > this may be CreativeFlow
    "overload_score_max":     0.25,   # score < this → CognitiveOverload
    "overload_decline_max":  -0.20,   # capacity change < this → CognitiveOverload
}

_current: dict[str, Any] = {}


def _coerce(key: str, value: Any) -> Any:
    return type(DEFAULTS[key])(value)


def _read_saved() -> dict[str, Any]:
    if not _FILE.exists():
        return {}
    try:
        saved = json.loads(_FILE.read_text())
    except (OSError, ValueError):
        logger.warning("settings_file_unreadable", path=str(_FILE))
        return {}
    if not isinstance(saved, dict):
        logger.warning("settings_file_unreadable", path=str(_FILE))
        return {}
    return saved


def _load() -> None:
    global _current
    merged = dict(DEFAULTS)
    for key, value in _read_saved().items():
        if key not in DEFAULTS:
            continue
        try:
            merged[key] = _coerce(key, value)
        except (TypeError, ValueError):
            logger.warning("settings_value_ignored", key=key, value=value)
    _current = merged


def get_settings() -> dict[str, Any]:
    if not _current:
        _load()
    return dict(_current)


def update_settings(patch: dict[str, Any]) -> dict[str, Any]:
    """Merge known keys from *patch*, write the file, return the full settings."""
    if not _current:
        _load()
    _current.update({k: _coerce(k, v) for k, v in patch.items() if k in DEFAULTS})
    _FILE.parent.mkdir(parents=True, exist_ok=True)
    _FILE.write_text(json.dumps(_current, indent=2))
    logger.info("settings_updated", keys=sorted(k for k in patch if k in DEFAULTS))
    return dict(_current)


_load()
