"""
/analytics — context distribution, learned patterns and stored snapshots.
"""

from __future__ import annotations

import json
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

from ...api.schemas import ContextAnalyticsOut, SnapshotEntryOut

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _get_engine(request: Request):
    return request.app.state.engine


def _get_timeline(request: Request):
    return request.app.state.timeline


@router.get("/contexts", response_model=ContextAnalyticsOut)
def context_analytics(
    since: Optional[float] = Query(default=None, description="Unix timestamp lower bound"),
    engine=Depends(_get_engine),
):
    return engine.context_analytics(since=since)


@router.get("/snapshots", response_model=List[SnapshotEntryOut])
def query_snapshots(
    since: Optional[float] = Query(default=None, description="Unix timestamp lower bound"),
    until: Optional[float] = Query(default=None, description="Unix timestamp upper bound"),
    limit: int = Query(default=200, ge=1, le=1000),
    timeline=Depends(_get_timeline),
):
    entries = timeline.query_snapshots(since=since, until=until, limit=limit)
    return [
        SnapshotEntryOut(
            id=e.id,
            timestamp=e.timestamp,
            session_id=e.session_id,
            pattern_key=e.pattern_key,
            overall_optimality=e.overall_optimality,
            context_quality_score=e.context_quality_score,
            snapshot=json.loads(e.snapshot_json),
        )
        for e in entries
    ]
