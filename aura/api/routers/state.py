"""
/state — current aura state, forced refresh, and a WebSocket stream.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect

from ...api.schemas import AuraStateOut

router = APIRouter(prefix="/state", tags=["state"])

# Resend interval when no new state arrives on the stream
_KEEPALIVE_S = 15.0


def _get_engine(request: Request):
    return request.app.state.engine


@router.get("", response_model=AuraStateOut)
async def get_state(engine=Depends(_get_engine)):
    """Return the current aura state (cached while fresh)."""
    return AuraStateOut.from_state(await engine.get_aura_state())


@router.post("/refresh", response_model=AuraStateOut)
async def refresh_state(engine=Depends(_get_engine)):
    """Recompute the aura state now, bypassing the cache."""
    return AuraStateOut.from_state(await engine.refresh())


@router.websocket("/ws")
async def state_websocket(websocket: WebSocket):
    """
    WebSocket stream — sends the current state on connect, then every newly
    computed state as it is produced.
    """
    engine = websocket.app.state.engine
    queue: asyncio.Queue = asyncio.Queue(maxsize=16)

    def _on_state(state):
        if queue.full():
            queue.get_nowait()
        queue.put_nowait(state)

    unregister = engine.register_listener(_on_state)
    await websocket.accept()
    try:
        state = await engine.get_aura_state()
        sent = None
        while True:
            # the initial computation also lands in the queue; send it once
            if state is not sent:
                await websocket.send_json(AuraStateOut.from_state(state).model_dump(mode="json"))
                sent = state
            try:
                state = await asyncio.wait_for(queue.get(), timeout=_KEEPALIVE_S)
            except asyncio.TimeoutError:
                state = await engine.get_aura_state()
                sent = None
    except WebSocketDisconnect:
        pass
    finally:
        unregister()
