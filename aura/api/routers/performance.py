"""
/performance — feed learning outcomes to the adaptive weight tuner.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ...api.schemas import PerformanceIn, PerformanceRecordedOut

router = APIRouter(prefix="/performance", tags=["performance"])


def _get_engine(request: Request):
    return request.app.state.engine


@router.post("", response_model=PerformanceRecordedOut)
def record_performance(body: PerformanceIn, engine=Depends(_get_engine)):
    """Record one outcome; omitted fields take neutral defaults. Returns the updated weights."""
    data = {k: v for k, v in body.model_dump().items() if v is not None}
    weights = engine.record_performance(data)
    return PerformanceRecordedOut(recorded=True, weights=weights)


@router.get("/stats")
def performance_stats(engine=Depends(_get_engine)):
    return engine.performance_stats()


@router.get("/weights")
def current_weights(engine=Depends(_get_engine)):
    weights = engine.weights.as_dict()
    return {"weights": weights, "total": round(sum(weights.values()), 6)}
