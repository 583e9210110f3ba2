"""
/settings — read and update the context-classification thresholds.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ...settings import DEFAULTS, get_settings, update_settings

router = APIRouter(prefix="/settings", tags=["settings"])


class SettingsPatch(BaseModel):
    deep_focus_score_min:   Optional[float] = Field(None, ge=0.5,  le=0.95)
    deep_focus_clarity_min: Optional[float] = Field(None, ge=0.5,  le=0.95)
    creative_clarity_min:   Optional[float] = Field(None, ge=0.4,  le=0.95)
    overload_score_max:     Optional[float] = Field(None, ge=0.05, le=0.5)
    overload_decline_max:   Optional[float] = Field(None, ge=-0.8, le=0.0)


@router.get("")
def read_settings():
    """Return current settings with their defaults for reference."""
    current = get_settings()
    return {"settings": current, "defaults": DEFAULTS}


@router.put("")
def write_settings(patch: SettingsPatch):
    """Apply a partial update; takes effect on the next computation. Persists to data/settings.json."""
    data = {k: v for k, v in patch.model_dump().items() if v is not None}
    return {"settings": update_settings(data)}
