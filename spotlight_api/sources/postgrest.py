"""
spotlight_api/sources/postgrest.py
═══════════════════════════════════════════════════════════════════════════════
Candidate source backed by PostgREST.

Endpoints used (schema chosen with the Accept-Profile header):
  /{pool}?select=...&{id}=neq.{x}&limit=1      → random candidate ≠ current
  /{pool}?select=...&{id}=not.is.null&limit=1  → random candidate, first pick
  /{table}?select=...&{id}=eq.{x}&limit=1      → one item by id
  /{table}?select=*&order={col}.desc&limit=10  → NEO rankings

The pool views order by random(), so "limit=1" is the random pick.
Every row goes through the feature's assembler before it leaves here.
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from typing import Any, Callable, Optional

import httpx

from spotlight_api.core.config import FEATURES, NEO, NEO_RANKINGS
from spotlight_api.core.errors import NotFoundError, QueryError
from spotlight_api.core.http_client import rest_client
from spotlight_api.sources.assembly import ASSEMBLERS

log = logging.getLogger("postgrest")


async def _get(schema: str, path: str, params: dict, bad_request_is_missing: bool = False) -> list:
    """
    GET rows from PostgREST. Raises QueryError on transport / HTTP failure.
    With bad_request_is_missing, a 400 (e.g. a malformed uuid in an eq filter)
    means no such row and raises NotFoundError instead.
    """
    client = rest_client()
    try:
        resp = await client.get(path, params=params, headers={"Accept-Profile": schema})
    except httpx.HTTPError as ex:
        log.warning(f"PostgREST request failed ({schema}{path}): {ex}")
        raise QueryError(f"{path}: {ex}") from ex

    if resp.status_code == 400 and bad_request_is_missing:
        log.info(f"PostgREST HTTP 400 for {schema}{path}, treating as not found")
        raise NotFoundError(f"{path}: no row matches {params}")
    if resp.status_code != 200:
        log.warning(f"PostgREST HTTP {resp.status_code} for {schema}{path}")
        raise QueryError(f"{path}: HTTP {resp.status_code}")
    try:
        rows = resp.json()
    except ValueError as ex:
        raise QueryError(f"{path}: invalid JSON") from ex
    if not isinstance(rows, list):
        raise QueryError(f"{path}: expected a row list")
    return rows


class PostgrestSource:
    """Candidate source for one feature of the FEATURES registry."""

    def __init__(self, feature: str, assemble: Optional[Callable[[dict], dict]] = None) -> None:
        cfg = FEATURES[feature]
        self.feature   = feature
        self.schema    = cfg["schema"]
        self.pool      = cfg["pool"]
        self.table     = cfg["table"]
        self.id_column = cfg["id_column"]
        self.select    = cfg["select"]
        self.assemble  = assemble or ASSEMBLERS[feature]

    async def _one(self, path: str, id_filter: str, what: str, by_id: bool = False) -> dict:
        rows = await _get(self.schema, f"/{path}", {
            "select":       self.select,
            self.id_column: id_filter,
            "limit":        "1",
        }, bad_request_is_missing=by_id)
        if not rows:
            raise NotFoundError(f"No {self.feature} found ({what})")
        return self.assemble(rows[0])

    async def select_excluding(self, exclude_id: Optional[Any]) -> dict:
        if exclude_id is None:
            return await self._one(self.pool, "not.is.null", "no exclusion")
        return await self._one(self.pool, f"neq.{exclude_id}", f"excluding {exclude_id}")

    async def select_by_id(self, item_id: Any) -> dict:
        return await self._one(self.table, f"eq.{item_id}", f"id {item_id}", by_id=True)


async def fetch_neo_ranking(ranking: str, limit: int = 10) -> list[dict]:
    """Top NEOs by size / range / velocity. Not cached."""
    if ranking not in NEO_RANKINGS:
        raise NotFoundError(f"Unknown ranking '{ranking}'")
    column, ascending = NEO_RANKINGS[ranking]
    cfg = FEATURES[NEO]
    return await _get(cfg["schema"], f"/{cfg['table']}", {
        "select": "*",
        "order":  f"{column}.{'asc' if ascending else 'desc'}",
        "limit":  str(limit),
    })
