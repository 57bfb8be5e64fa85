"""
spotlight_api/routers/quizzes.py
Endpoints:
  GET  /api/quizzes/                → quiz of the day (from cache, zero queries)
  PUT  /api/quizzes/                → force rotation (admin)
  POST /api/quizzes/schedule/stop   → stop the daily timer (admin)
  POST /api/quizzes/schedule/start  → start the daily timer (admin)
  GET  /api/quizzes/{quiz_id}       → any quiz by id (one query, not cached)
"""

from fastapi import APIRouter, Depends, Query

from spotlight_api.core.auth import require_admin
from spotlight_api.core.config import QUIZ
from spotlight_api.core.registry import Registry, get_registry

router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])


@router.get("/")
async def get_random_quiz(registry: Registry = Depends(get_registry)):
    return registry.get_current(QUIZ).payload


@router.put("/", dependencies=[Depends(require_admin)])
async def force_random_quiz(registry: Registry = Depends(get_registry)):
    outcome = await registry.force_refresh(QUIZ)
    return {
        "status_text":            outcome.status_text,
        "previous_id":            outcome.previous_id,
        "regenerated_dependency": outcome.regenerated_dependency,
        "data":                   outcome.item.payload,
    }


@router.post("/schedule/stop", dependencies=[Depends(require_admin)])
async def stop_quiz_schedule(registry: Registry = Depends(get_registry)):
    registry.stop_schedule(QUIZ)
    return {"running": False}


@router.post("/schedule/start", dependencies=[Depends(require_admin)])
async def start_quiz_schedule(
    run_immediately: bool = Query(False),
    registry: Registry = Depends(get_registry),
):
    registry.start_schedule(QUIZ, run_immediately=run_immediately)
    return {"running": True}


@router.get("/{quiz_id}")
async def get_quiz(quiz_id: str, registry: Registry = Depends(get_registry)):
    item = await registry.get_by_id(QUIZ, quiz_id)
    return item.payload
