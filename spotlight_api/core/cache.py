"""
spotlight_api/core/cache.py
═══════════════════════════════════════════════════════════════════════════
Holder for the featured item of one feature.
  • RotatingSelectionCache is the only writer (commit after a good pick)
  • Readers get whatever was committed last, or None before the first pick
  • The lock makes a commit one step: a reader sees the old item or the
    new one, never a mix
═══════════════════════════════════════════════════════════════════════════
"""

import time
import threading
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class CachedItem:
    """A fully assembled featured item. Never mutated after commit."""

    item_id: Any
    payload: dict
    committed_at: float = field(default_factory=time.time)


class AtomicSlot:
    """Holds at most one CachedItem."""

    def __init__(self) -> None:
        self._item: Optional[CachedItem] = None
        self._lock = threading.Lock()

    def commit(self, item: CachedItem) -> None:
        with self._lock:
            self._item = item

    def read(self) -> Optional[CachedItem]:
        with self._lock:
            return self._item

    def summary(self) -> dict:
        """Readiness, age in seconds and id of the held item. No payload."""
        with self._lock:
            if self._item is None:
                return {"ready": False, "age_s": None, "item_id": None}
            return {
                "ready":   True,
                "age_s":   round(time.time() - self._item.committed_at, 1),
                "item_id": self._item.item_id,
            }
