"""
spotlight_api/routers/neo.py
Endpoints:
  GET  /api/neo/                 → NEO of the day (from cache)
  PUT  /api/neo/                 → force rotation (admin)
  POST /api/neo/invalidate       → quiz rotation must regenerate the NEO first (admin)
  POST /api/neo/schedule/stop    → stop the daily timer (admin)
  POST /api/neo/schedule/start   → start the daily timer (admin)
  GET  /api/neo/size             → top 10 largest
  GET  /api/neo/range            → top 10 closest
  GET  /api/neo/velocity         → top 10 fastest
  GET  /api/neo/{neo_id}         → any NEO by id
"""

from fastapi import APIRouter, Depends, Query

from spotlight_api.core.auth import require_admin
from spotlight_api.core.config import NEO
from spotlight_api.core.registry import Registry, get_registry
from spotlight_api.sources.postgrest import fetch_neo_ranking

router = APIRouter(prefix="/api/neo", tags=["neo"])


@router.get("/")
async def get_current_neo(registry: Registry = Depends(get_registry)):
    return {"neo": registry.get_current(NEO).payload}


@router.put("/", dependencies=[Depends(require_admin)])
async def force_current_neo(registry: Registry = Depends(get_registry)):
    outcome = await registry.force_refresh(NEO)
    return {
        "status_text": outcome.status_text,
        "previous_id": outcome.previous_id,
        "data":        outcome.item.payload,
    }


@router.post("/invalidate", dependencies=[Depends(require_admin)])
async def invalidate_neo(registry: Registry = Depends(get_registry)):
    registry.arm(NEO)
    return {"neo_needs_generation": True}


@router.post("/schedule/stop", dependencies=[Depends(require_admin)])
async def stop_neo_schedule(registry: Registry = Depends(get_registry)):
    registry.stop_schedule(NEO)
    return {"running": False}


@router.post("/schedule/start", dependencies=[Depends(require_admin)])
async def start_neo_schedule(
    run_immediately: bool = Query(False),
    registry: Registry = Depends(get_registry),
):
    registry.start_schedule(NEO, run_immediately=run_immediately)
    return {"running": True}


# ── Rankings (declared before /{neo_id} so they win the match) ────────────────

@router.get("/size")
async def top_by_size():
    return await fetch_neo_ranking("size")


@router.get("/range")
async def top_by_range():
    return await fetch_neo_ranking("range")


@router.get("/velocity")
async def top_by_velocity():
    return await fetch_neo_ranking("velocity")


@router.get("/{neo_id}")
async def get_neo(neo_id: str, registry: Registry = Depends(get_registry)):
    item = await registry.get_by_id(NEO, neo_id)
    return {"neo": item.payload}
