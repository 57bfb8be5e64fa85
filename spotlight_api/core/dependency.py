"""
spotlight_api/core/dependency.py
Regeneration flag for a resource another feature depends on.

  • arm()                → mark the resource stale (any caller, any time)
  • satisfy_if_needed()  → regenerate once if armed; clear only on success

Check, generate and clear run under one asyncio.Lock, so two refreshes that
race on an armed flag trigger a single generation.
"""

import asyncio
import logging
from typing import Awaitable, Callable

from spotlight_api.core.errors import GenerationError

log = logging.getLogger("dependency")


class DependencyTrigger:

    def __init__(self, name: str, generate: Callable[[], Awaitable[object]], armed: bool = True) -> None:
        self.name = name
        self._generate = generate
        self._armed = armed
        # bumped by every arm(); a generation only clears the arm it started from
        self._epoch = 0
        self._lock = asyncio.Lock()

    @property
    def armed(self) -> bool:
        return self._armed

    def arm(self) -> None:
        self._armed = True
        self._epoch += 1
        log.info(f"{self.name}: regeneration armed")

    async def satisfy_if_needed(self) -> bool:
        """
        Returns True when a generation ran (and succeeded) in this call,
        False when the flag was already clear.
        Raises GenerationError on failure; the flag stays armed.
        """
        if not self._armed:
            return False

        async with self._lock:
            # another caller may have satisfied it while we waited
            if not self._armed:
                return False
            epoch = self._epoch
            log.info(f"{self.name}: regenerating")
            try:
                await self._generate()
            except GenerationError:
                log.error(f"{self.name}: regeneration failed, flag stays armed")
                raise
            except Exception as ex:
                log.error(f"{self.name}: regeneration failed, flag stays armed: {ex}")
                raise GenerationError(f"{self.name} regeneration failed: {ex}") from ex

            if self._epoch == epoch:
                self._armed = False
            else:
                log.info(f"{self.name}: re-armed during regeneration, keeping flag")
            return True
