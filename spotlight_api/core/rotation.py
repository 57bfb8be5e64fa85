"""
spotlight_api/core/rotation.py
═══════════════════════════════════════════════════════════════════════════════
Rotating selection cache — one instance per featured item (quiz, NEO).

Guarantees:
  1. get_current() never blocks and always returns the last committed item
  2. ONE refresh at a time per feature (asyncio.Lock). Overlapping callers
     queue behind it and then run their own fresh attempt
  3. Each pick excludes the currently held id → no immediate repeat
  4. Failed dependency / failed query / empty pool → nothing is committed,
     the previous item keeps serving
  5. The dependency (if any) finishes before the candidate query starts
═══════════════════════════════════════════════════════════════════════════════
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Optional, Protocol

from spotlight_api.core.cache import AtomicSlot, CachedItem
from spotlight_api.core.dependency import DependencyTrigger
from spotlight_api.core.errors import NotReadyError

log = logging.getLogger("rotation")


class CandidateSource(Protocol):
    """Fetches fully assembled candidate payloads. Raises NotFoundError / QueryError."""

    def select_excluding(self, exclude_id: Optional[Any]) -> Awaitable[dict]: ...

    def select_by_id(self, item_id: Any) -> Awaitable[dict]: ...


@dataclass(frozen=True)
class RefreshOutcome:
    item: CachedItem
    previous_id: Optional[Any] = None
    regenerated_dependency: bool = False

    @property
    def status_text(self) -> str:
        text = "OK"
        if self.regenerated_dependency:
            text += ". New Neo Generated."
        return text


class RotatingSelectionCache:

    def __init__(
        self,
        feature: str,
        source: CandidateSource,
        id_column: str,
        dependency: Optional[DependencyTrigger] = None,
    ) -> None:
        self.feature = feature
        self.source = source
        self.id_column = id_column
        self.dependency = dependency
        self._slot = AtomicSlot()
        self._refresh_lock = asyncio.Lock()

    # ── Read path ────────────────────────────────────────────────────────────

    def get_current(self) -> CachedItem:
        item = self._slot.read()
        if item is None:
            raise NotReadyError(f"Current {self.feature} is not set")
        return item

    async def get_by_id(self, item_id: Any) -> CachedItem:
        """Direct lookup outside the rotation. Nothing is committed."""
        payload = await self.source.select_by_id(item_id)
        return CachedItem(item_id=payload[self.id_column], payload=payload)

    def summary(self) -> dict:
        return self._slot.summary()

    # ── Refresh path ─────────────────────────────────────────────────────────

    @property
    def refreshing(self) -> bool:
        return self._refresh_lock.locked()

    async def refresh(self) -> RefreshOutcome:
        if self._refresh_lock.locked():
            log.info(f"{self.feature}: refresh already running — queued")

        async with self._refresh_lock:
            regenerated = False
            if self.dependency is not None:
                regenerated = await self.dependency.satisfy_if_needed()

            previous = self._slot.read()
            exclude_id = previous.item_id if previous else None

            try:
                payload = await self.source.select_excluding(exclude_id)
            except Exception as ex:
                log.warning(f"{self.feature}: no new candidate (excluding {exclude_id!r}): {ex}")
                raise

            item = CachedItem(item_id=payload[self.id_column], payload=payload)
            self._slot.commit(item)
            log.info(f"{self.feature}: rotated {exclude_id!r} → {item.item_id!r}")
            return RefreshOutcome(
                item=item,
                previous_id=exclude_id,
                regenerated_dependency=regenerated,
            )
