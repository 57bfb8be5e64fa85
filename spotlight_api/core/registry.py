"""
spotlight_api/core/registry.py
Wires the featured items together from the FEATURES registry:

  neo   → RotatingSelectionCache + DailyScheduler
  quiz  → RotatingSelectionCache (depends_on neo) + DailyScheduler

A feature's DependencyTrigger regenerates the feature it depends on by running
that cache's own refresh, so it goes through the same lock as any other tick.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from fastapi import Request

from spotlight_api.core.config import FEATURES, NEO
from spotlight_api.core.dependency import DependencyTrigger
from spotlight_api.core.errors import NotFoundError
from spotlight_api.core.rotation import CandidateSource, RotatingSelectionCache, RefreshOutcome
from spotlight_api.core.cache import CachedItem
from spotlight_api.core.scheduler import DailyScheduler

log = logging.getLogger("registry")


class Registry:

    def __init__(
        self,
        sources: dict[str, CandidateSource],
        scheduler_factory: Callable[[RotatingSelectionCache], DailyScheduler] = DailyScheduler,
        armed: bool = True,
    ) -> None:
        self.caches: dict[str, RotatingSelectionCache] = {}
        self.schedulers: dict[str, DailyScheduler] = {}
        self.triggers: dict[str, DependencyTrigger] = {}

        # dependencies first, so their caches exist when a trigger is built
        ordered = sorted(FEATURES.items(), key=lambda kv: kv[1]["depends_on"] is not None)
        for feature, cfg in ordered:
            dep = cfg["depends_on"]
            trigger = None
            if dep is not None:
                trigger = self.triggers.get(dep)
                if trigger is None:
                    trigger = DependencyTrigger(dep, self._generator(dep), armed=armed)
                    self.triggers[dep] = trigger
            cache = RotatingSelectionCache(feature, sources[feature], cfg["id_column"], dependency=trigger)
            self.caches[feature] = cache
            self.schedulers[feature] = scheduler_factory(cache)

    def _generator(self, feature: str) -> Callable[[], Any]:
        cache = self.caches[feature]

        async def generate() -> None:
            try:
                await cache.refresh()
            except NotFoundError:
                # pool has no row other than the current one, which still serves
                if not cache.summary()["ready"]:
                    raise
                log.warning(f"{feature}: no other candidate, keeping {cache.get_current().item_id!r}")

        return generate

    @property
    def neo_trigger(self) -> DependencyTrigger:
        return self.triggers[NEO]

    def _cache(self, feature: str) -> RotatingSelectionCache:
        try:
            return self.caches[feature]
        except KeyError:
            raise NotFoundError(f"Unknown feature '{feature}'") from None

    def _scheduler(self, feature: str) -> DailyScheduler:
        self._cache(feature)
        return self.schedulers[feature]

    # ── Read surface ─────────────────────────────────────────────────────────

    def get_current(self, feature: str) -> CachedItem:
        return self._cache(feature).get_current()

    async def get_by_id(self, feature: str, item_id: Any) -> CachedItem:
        return await self._cache(feature).get_by_id(item_id)

    async def force_refresh(self, feature: str) -> RefreshOutcome:
        return await self._scheduler(feature).force_refresh()

    def arm(self, flag: str = NEO) -> None:
        if flag not in self.triggers:
            raise NotFoundError(f"Unknown dependency flag '{flag}'")
        self.triggers[flag].arm()

    def start_schedule(self, feature: str, run_immediately: bool = False) -> None:
        self._scheduler(feature).start(run_immediately=run_immediately)

    def stop_schedule(self, feature: str) -> Optional[asyncio.Task]:
        return self._scheduler(feature).stop()

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def start_all(self, run_immediately: bool = True) -> None:
        # dependencies first so their startup tick is queued ahead of the dependents
        for feature in self.caches:
            self.start_schedule(feature, run_immediately=run_immediately)

    def stop_all(self) -> list[asyncio.Task]:
        """Cancels every loop; the caller awaits the returned tasks."""
        stopped = [scheduler.stop() for scheduler in self.schedulers.values()]
        return [task for task in stopped if task is not None]

    def summary(self) -> dict:
        out = {}
        for feature, cache in self.caches.items():
            scheduler = self.schedulers[feature]
            out[feature] = {
                "name":               FEATURES[feature]["name"],
                **cache.summary(),
                "refreshing":         cache.refreshing,
                "scheduler_running":  scheduler.running,
                "next_run_in_s":      round(scheduler.seconds_until_next()) if scheduler.running else None,
                "last_error":         scheduler.last_error,
            }
            if cache.dependency is not None:
                out[feature][f"{cache.dependency.name}_needs_generation"] = cache.dependency.armed
        return out


def build_registry(sources: Optional[dict[str, CandidateSource]] = None) -> Registry:
    if sources is None:
        from spotlight_api.sources.postgrest import PostgrestSource
        sources = {feature: PostgrestSource(feature) for feature in FEATURES}
    return Registry(sources)


def get_registry(request: Request) -> Registry:
    """FastAPI dependency — the registry built in the app lifespan."""
    return request.app.state.registry
