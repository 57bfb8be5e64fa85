"""
spotlight_api/main.py  — daily quiz & NEO spotlight API
Startup: builds the rotation registry, starts both daily schedulers with an
immediate first run so the cache is warm before the first request.
Read endpoints are cache-only; rotation happens in the schedulers.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from spotlight_api.core import config
from spotlight_api.core.errors import RotationError
from spotlight_api.core.http_client import close_all
from spotlight_api.core.registry import build_registry
from spotlight_api.routers import neo, quizzes

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("Spotlight API starting...")
    registry = getattr(app.state, "registry", None) or build_registry()
    app.state.registry = registry
    if config.SCHEDULER_AUTOSTART:
        registry.start_all(run_immediately=True)
    else:
        log.info("SCHEDULER_AUTOSTART off — rotation only via force refresh")
    yield
    log.info("Shutting down...")
    # let cancelled loops unwind before the HTTP client goes away
    await asyncio.gather(*registry.stop_all(), return_exceptions=True)
    await close_all()


app = FastAPI(
    title="Spotlight API",
    description=(
        "Daily quiz and near-earth-object spotlight. "
        "Both rotate once a day from a PostgREST pool, never repeating the "
        "previous pick; the quiz regenerates the NEO first when it is stale."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "PUT", "POST"],
    allow_headers=["*"],
)


@app.exception_handler(RotationError)
async def rotation_error_handler(request: Request, ex: RotationError):
    return JSONResponse(status_code=ex.status, content={"detail": str(ex)})


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(quizzes.router)
app.include_router(neo.router)


@app.get("/", tags=["meta"])
async def root():
    return {
        "status":  "online",
        "version": "1.0.0",
        "rotation": f"daily at {config.ROTATION_HOUR:02d}:{config.ROTATION_MINUTE:02d} {config.TZ.zone}",
        "endpoints": {
            "quiz_of_the_day": "/api/quizzes/",
            "quiz":            "/api/quizzes/{quiz_id}",
            "neo_of_the_day":  "/api/neo/",
            "neo":             "/api/neo/{neo_id}",
            "neo_rankings":    "/api/neo/{size|range|velocity}",
            "health":          "/health",
            "docs":            "/docs",
        },
    }


@app.get("/health", tags=["meta"])
async def health(request: Request):
    """Lightweight health check."""
    summary = request.app.state.registry.summary()
    ready = all(f["ready"] for f in summary.values())
    return {
        "status":   "healthy" if ready else "warming_up",
        "features": summary,
    }
