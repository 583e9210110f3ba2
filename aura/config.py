"""
Central configuration for the Cognitive Aura Engine.
All values can be overridden via environment variables or a local config.json.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

_ROOT = Path(__file__).parent.parent
_CONFIG_FILE = _ROOT / "config.json"


@dataclass
class Config:
    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8766

    # Engine
    cache_ttl_s: float = 45.0                # composite score + aura state freshness
    refresh_throttle_s: float = 10.0         # min gap between notification-driven refreshes
    refresh_interval_ms: int = 15000         # background refresh loop period
    offload_compute: bool = False            # run scoring in the default executor

    # Learning
    learning_rate: float = 0.08
    context_weight_floor: float = 0.10
    context_weight_ceiling: float = 0.20
    performance_history_size: int = 50
    pattern_window: int = 20                 # scores kept per context pattern
    previous_states_limit: int = 5

    # Storage
    data_dir: Path = field(default_factory=lambda: _ROOT / "data")
    timeline_db: str = "aura.db"

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"              # "console" | "json"

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)

    @classmethod
    def load(cls) -> "Config":
        cfg = cls()
        if _CONFIG_FILE.exists():
            overrides = json.loads(_CONFIG_FILE.read_text())
            for k, v in overrides.items():
                if hasattr(cfg, k):
                    setattr(cfg, k, v)
        # environment variable overrides (CAE_*)
        for k in cfg.__dataclass_fields__:  # type: ignore[attr-defined]
            env_key = f"CAE_{k.upper()}"
            if env_key in os.environ:
                setattr(cfg, k, _coerce(getattr(cfg, k), os.environ[env_key]))
        cfg.data_dir = Path(cfg.data_dir)
        cfg.data_dir.mkdir(parents=True, exist_ok=True)
        return cfg


def _coerce(current, raw: str):
    if isinstance(current, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(current, Path):
        return Path(raw)
    return type(current)(raw)


# Module-level singleton
config = Config.load()
