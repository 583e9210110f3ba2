"""
FastAPI application — local Cognitive Aura Engine API.
Runs on http://127.0.0.1:8766 by default.

Per-app objects (providers, timeline, engine) live on app.state so that each
call to create_app() produces a fully independent instance with no shared
module-level globals. This makes test isolation straightforward.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..config import config
from ..engine import CognitiveAuraEngine
from ..inference.forecaster import MODEL_VERSION
from ..logging_config import setup_logging
from ..providers import (
    InMemoryActivityProvider,
    InMemoryContextProvider,
    InMemoryGraphProvider,
    InMemoryHealthProvider,
)
from ..storage.timeline import AuraTimeline

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Background refresh loop
# ---------------------------------------------------------------------------

async def _refresh_loop(engine: CognitiveAuraEngine, interval_ms: int) -> None:
    while True:
        await asyncio.sleep(interval_ms / 1000.0)
        try:
            # non-forced: a fresh cached state is returned without recomputing
            await engine.get_aura_state()
        except Exception:
            logger.exception("background_refresh_failed")


# ---------------------------------------------------------------------------
# Lifespan: initialises and tears down all per-app state
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()

    db_path = config.data_dir / config.timeline_db
    app.state.timeline = AuraTimeline(db_path)
    app.state.providers = {
        "context": InMemoryContextProvider(),
        "graph": InMemoryGraphProvider(),
        "activity": InMemoryActivityProvider(),
        "health": InMemoryHealthProvider(),
    }
    app.state.engine = CognitiveAuraEngine(
        app.state.providers["context"],
        app.state.providers["graph"],
        app.state.providers["activity"],
        health_provider=app.state.providers["health"],
        storage=app.state.timeline,
    )
    logger.info("aura_engine_started", session_id=app.state.engine.session_id, db=str(db_path))

    refresh_task = asyncio.create_task(
        _refresh_loop(app.state.engine, config.refresh_interval_ms)
    )

    yield

    refresh_task.cancel()
    try:
        await refresh_task
    except asyncio.CancelledError:
        pass
    logger.info("aura_engine_stopped", session_id=app.state.engine.session_id)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app() -> FastAPI:
    app = FastAPI(
        title="Cognitive Aura Engine",
        description="Local cognitive state estimation and learning recommendation API",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000", "null"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routers import analytics, inputs, performance, settings, state

    app.include_router(state.router)
    app.include_router(inputs.router)
    app.include_router(performance.router)
    app.include_router(analytics.router)
    app.include_router(settings.router)

    @app.get("/health")
    def health(request: Request):
        engine = getattr(request.app.state, "engine", None)
        return {
            "status": "ok",
            "version": "0.1.0",
            "model_version": MODEL_VERSION,
            "session_id": engine.session_id if engine else None,
        }

    return app


app = create_app()
