"""
/inputs — push the latest upstream signals into the in-memory providers.

Context and interaction updates fire the engine's throttled refresh; graph,
activity and health updates are picked up by the next computation.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ...api.schemas import (
    ActivityIn,
    ContextSnapshotSchema,
    DigitalBodyLanguageSchema,
    HealthMetricsIn,
    KnowledgeGraphIn,
)

router = APIRouter(prefix="/inputs", tags=["inputs"])


def _get_engine(request: Request):
    return request.app.state.engine


def _get_providers(request: Request):
    return request.app.state.providers


@router.put("/context")
async def put_context(
    body: ContextSnapshotSchema,
    engine=Depends(_get_engine),
    providers=Depends(_get_providers),
):
    snapshot = body.to_model()
    providers["context"].update(snapshot)
    state = await engine.notify_context_changed()
    return {"accepted": True, "refreshed": state is not None, "timestamp": snapshot.timestamp}


@router.put("/interaction")
async def put_interaction(
    body: DigitalBodyLanguageSchema,
    engine=Depends(_get_engine),
    providers=Depends(_get_providers),
):
    """Replace only the interaction signals; refreshes when the change is significant."""
    dbl = body.to_model()
    providers["context"].update_interaction(dbl)
    state = await engine.notify_interaction_changed(dbl)
    return {"accepted": True, "refreshed": state is not None}


@router.put("/graph")
def put_graph(body: KnowledgeGraphIn, providers=Depends(_get_providers)):
    graph = body.to_model()
    providers["graph"].update(graph)
    return {"accepted": True, "nodes": len(graph.nodes), "edges": len(graph.edges)}


@router.put("/activity")
def put_activity(body: ActivityIn, providers=Depends(_get_providers)):
    items = body.to_model()
    providers["activity"].update(items)
    return {"accepted": True, "items": len(items)}


@router.put("/health")
def put_health(body: HealthMetricsIn, providers=Depends(_get_providers)):
    providers["health"].update(body.to_model())
    return {"accepted": True}
