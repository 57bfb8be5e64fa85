"""
spotlight_api/core/config.py
═══════════════════════════════════════════════════════════════════════════════
DATA SOURCE:

  PostgREST (Supabase-style REST over Postgres)
      quiz_information schema  →  quizzes, quiz_questions, quiz_answers,
                                   random_quizzes (view, ORDER BY random())
      neo_information schema   →  neos, random_neos (view, ORDER BY random())

ROTATION:

  Both features rotate once a day at ROTATION_HOUR:ROTATION_MINUTE in
  ROTATION_TZ (default midnight UTC), plus an admin force-refresh.
═══════════════════════════════════════════════════════════════════════════════
"""

import os
import logging

import pytz

log = logging.getLogger("config")

# ── PostgREST ─────────────────────────────────────────────────────────────────
# SECURITY: Key must be set as an environment variable, NOT hardcoded.
REST_URL = os.environ.get("REST_URL", "http://localhost:3000").rstrip("/")
REST_KEY = os.environ.get("REST_KEY", "")
if not REST_KEY:
    log.warning("REST_KEY env var not set — PostgREST requests run as anon")
REST_HEADERS = {"apikey": REST_KEY, "Authorization": f"Bearer {REST_KEY}"} if REST_KEY else {}

QUIZ_SCHEMA = os.environ.get("QUIZ_SCHEMA", "quiz_information")
NEO_SCHEMA  = os.environ.get("NEO_SCHEMA", "neo_information")

# ── Admin ─────────────────────────────────────────────────────────────────────
ADMIN_TOKEN = os.environ.get("ADMIN_TOKEN", "")
AUTH_HEADER = "x-auth-token"

# ── Rotation schedule ─────────────────────────────────────────────────────────
TZ             = pytz.timezone(os.environ.get("ROTATION_TZ", "UTC"))
ROTATION_HOUR   = int(os.environ.get("ROTATION_HOUR", "0"))
ROTATION_MINUTE = int(os.environ.get("ROTATION_MINUTE", "0"))
SCHEDULER_AUTOSTART = os.environ.get("SCHEDULER_AUTOSTART", "1").lower() not in ("0", "false", "no")

# ── Feature registry ──────────────────────────────────────────────────────────
QUIZ = "quiz"
NEO  = "neo"

_QUIZ_SELECT = (
    "*,questions:quiz_questions!quiz_questions_quiz_id_fkey"
    "(*,answers:quiz_answers!quiz_answers_question_id_fkey(*))"
)

FEATURES: dict[str, dict] = {
    QUIZ: {
        "name":      "Daily quiz",
        "schema":    QUIZ_SCHEMA,
        "pool":      "random_quizzes",
        "table":     "quizzes",
        "id_column": "quiz_id",
        "select":    _QUIZ_SELECT,
        "depends_on": NEO,
    },
    NEO: {
        "name":      "NEO spotlight",
        "schema":    NEO_SCHEMA,
        "pool":      "random_neos",
        "table":     "neos",
        "id_column": "neo_id",
        "select":    "*",
        "depends_on": None,
    },
}

# top-10 ranking → (column, ascending)
NEO_RANKINGS: dict[str, tuple[str, bool]] = {
    "size":     ("size", False),
    "range":    ("range", True),
    "velocity": ("velocity", False),
}
