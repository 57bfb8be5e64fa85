"""
spotlight_api/core/scheduler.py
═══════════════════════════════════════════════════════════════════════════════
Daily rotation scheduler — one instance per feature:

  1. ONE loop per scheduler (start() while running is ignored)
  2. Fires once a day at a fixed local wall-clock time (pytz-aware, so DST
     shifts move the UTC instant, not the local one)
  3. run_immediately → one refresh right away so the cache is warm before
     the first request
  4. Failed tick → logged, last valid item stays, wait for the next day.
     Never retried here
  5. force_refresh() goes through the same cache lock as a tick
  6. stop() is safe before start() and safe to repeat
═══════════════════════════════════════════════════════════════════════════════
"""

import asyncio
import logging
from datetime import datetime, time as dtime, timedelta
from typing import Callable, Optional

from spotlight_api.core.config import TZ, ROTATION_HOUR, ROTATION_MINUTE
from spotlight_api.core.rotation import RefreshOutcome, RotatingSelectionCache

log = logging.getLogger("scheduler")


def next_run_after(now: datetime, hour: int, minute: int, tz=TZ) -> datetime:
    """Next local hour:minute strictly after ``now`` (tz-aware)."""
    local_now = now.astimezone(tz)
    day = local_now.date()
    for _ in range(3):
        candidate = tz.localize(datetime.combine(day, dtime(hour, minute)))
        if candidate > local_now:
            return candidate
        day += timedelta(days=1)
    raise ValueError(f"no run time found after {now!r}")


class DailyScheduler:

    def __init__(
        self,
        cache: RotatingSelectionCache,
        hour: int = ROTATION_HOUR,
        minute: int = ROTATION_MINUTE,
        tz=TZ,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.cache = cache
        self.hour = hour
        self.minute = minute
        self.tz = tz
        self._clock = clock or (lambda: datetime.now(tz))
        self._task: Optional[asyncio.Task] = None
        self.last_error: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def seconds_until_next(self) -> float:
        now = self._clock()
        return max((next_run_after(now, self.hour, self.minute, self.tz) - now).total_seconds(), 0.0)

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def start(self, run_immediately: bool = False) -> None:
        """Must be called from inside a running event loop."""
        if self.running:
            log.warning(f"{self.cache.feature}: scheduler already running — ignoring duplicate start")
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(run_immediately), name=f"rotation-{self.cache.feature}"
        )
        log.info(f"{self.cache.feature}: scheduler started "
                 f"(daily at {self.hour:02d}:{self.minute:02d} {self.tz.zone})")

    def stop(self) -> Optional[asyncio.Task]:
        """Cancels the loop and returns its task (None if nothing was running)."""
        if not self.running:
            return None
        task, self._task = self._task, None
        task.cancel()
        log.info(f"{self.cache.feature}: scheduler stopped")
        return task

    async def force_refresh(self) -> RefreshOutcome:
        """Out-of-band tick. Errors go back to the caller."""
        log.info(f"{self.cache.feature}: forced refresh")
        return await self.cache.refresh()

    # ── Loop ─────────────────────────────────────────────────────────────────

    async def _tick(self, reason: str) -> None:
        try:
            await self.cache.refresh()
            self.last_error = None
        except Exception as ex:
            self.last_error = str(ex)
            log.error(f"{self.cache.feature}: {reason} refresh failed (keeping last item): {ex}")

    async def _run(self, run_immediately: bool) -> None:
        if run_immediately:
            await self._tick("startup")

        target = next_run_after(self._clock(), self.hour, self.minute, self.tz)
        while True:
            delay = max((target - self._clock()).total_seconds(), 0.0)
            log.debug(f"{self.cache.feature}: next rotation in {delay:.0f}s")
            await asyncio.sleep(delay)
            await self._tick("daily")
            # an early wake-up must not fire the same instant twice
            target = next_run_after(max(self._clock(), target), self.hour, self.minute, self.tz)
