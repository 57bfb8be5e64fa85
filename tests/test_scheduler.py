import asyncio
from datetime import datetime, timedelta

import pytest
import pytz

from spotlight_api.core import scheduler as scheduler_module
from spotlight_api.core.errors import QueryError
from spotlight_api.core.rotation import RotatingSelectionCache
from spotlight_api.core.scheduler import DailyScheduler, next_run_after

UTC = pytz.utc
NEW_YORK = pytz.timezone("America/New_York")

_real_sleep = asyncio.sleep


async def _until(predicate, steps=200):
    for _ in range(steps):
        if predicate():
            return
        await _real_sleep(0)
    raise AssertionError("condition never became true")


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def make_scheduler(source, clock=None, tz=UTC):
    cache = RotatingSelectionCache("quiz", source, "quiz_id")
    clock = clock or FakeClock(UTC.localize(datetime(2026, 1, 1, 12, 0)))
    return DailyScheduler(cache, hour=0, minute=0, tz=tz, clock=clock)


# ── next_run_after ────────────────────────────────────────────────────────────

def test_next_run_later_today():
    now = UTC.localize(datetime(2026, 3, 1, 5, 0))
    assert next_run_after(now, 6, 30, UTC) == UTC.localize(datetime(2026, 3, 1, 6, 30))


def test_next_run_tomorrow_when_time_passed_or_equal():
    passed = UTC.localize(datetime(2026, 3, 1, 7, 0))
    exact = UTC.localize(datetime(2026, 3, 1, 0, 0))
    assert next_run_after(passed, 0, 0, UTC) == UTC.localize(datetime(2026, 3, 2, 0, 0))
    assert next_run_after(exact, 0, 0, UTC) == UTC.localize(datetime(2026, 3, 2, 0, 0))


def test_next_run_keeps_local_wall_clock_across_dst():
    # US DST starts 2026-03-08; local midnight moves from 05:00Z to 04:00Z
    before = NEW_YORK.localize(datetime(2026, 3, 7, 12, 0))
    first = next_run_after(before, 0, 0, NEW_YORK)
    second = next_run_after(first, 0, 0, NEW_YORK)
    third = next_run_after(second, 0, 0, NEW_YORK)

    assert first.astimezone(UTC).hour == 5
    assert (second.hour, second.minute) == (0, 0)
    assert third.astimezone(UTC).hour == 4


# ── lifecycle ─────────────────────────────────────────────────────────────────

def test_stop_before_start_is_harmless(quiz_source):
    sched = make_scheduler(quiz_source)
    sched.stop()
    sched.stop()
    assert sched.running is False


@pytest.mark.asyncio
async def test_start_with_run_immediately_refreshes(quiz_source):
    sched = make_scheduler(quiz_source)
    sched.start(run_immediately=True)
    try:
        await _until(lambda: quiz_source.calls)
        await _until(lambda: sched.cache.summary()["ready"])
        assert sched.running is True
    finally:
        sched.stop()
        sched.stop()
    assert sched.running is False


@pytest.mark.asyncio
async def test_start_without_run_immediately_waits(quiz_source):
    sched = make_scheduler(quiz_source)
    sched.start(run_immediately=False)
    for _ in range(20):
        await _real_sleep(0)
    assert quiz_source.calls == []
    assert sched.seconds_until_next() == 12 * 3600
    sched.stop()


@pytest.mark.asyncio
async def test_duplicate_start_is_ignored(quiz_source):
    sched = make_scheduler(quiz_source)
    sched.start()
    task = sched._task
    sched.start()
    assert sched._task is task
    sched.stop()


@pytest.mark.asyncio
async def test_daily_ticks_follow_the_wall_clock(quiz_source, monkeypatch):
    clock = FakeClock(UTC.localize(datetime(2026, 1, 1, 23, 0)))
    delays = []

    async def fake_sleep(delay, *args):
        if delay:
            delays.append(delay)
            clock.now += timedelta(seconds=delay)
        await _real_sleep(0)

    monkeypatch.setattr(scheduler_module.asyncio, "sleep", fake_sleep)
    sched = make_scheduler(quiz_source, clock=clock)
    sched.start(run_immediately=False)
    try:
        await _until(lambda: len(quiz_source.calls) >= 3, steps=2000)
    finally:
        sched.stop()

    assert delays[:3] == [3600, 86400, 86400]
    calls = quiz_source.calls
    assert calls[0] is None and all(a != b for a, b in zip(calls, calls[1:]))


# ── ticks & force refresh ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_failed_tick_is_logged_not_raised(quiz_source, caplog):
    sched = make_scheduler(quiz_source)
    await sched.force_refresh()
    before = sched.cache.get_current()

    quiz_source.fail = QueryError("db unavailable")
    await sched._tick("daily")

    assert sched.last_error == "db unavailable"
    assert sched.cache.get_current() is before
    assert "refresh failed" in caplog.text


@pytest.mark.asyncio
async def test_force_refresh_surfaces_errors(quiz_source):
    sched = make_scheduler(quiz_source)
    quiz_source.fail = QueryError("db unavailable")
    with pytest.raises(QueryError):
        await sched.force_refresh()


@pytest.mark.asyncio
async def test_force_refresh_and_tick_share_the_lock(quiz_source):
    sched = make_scheduler(quiz_source)
    quiz_source.gate = asyncio.Event()

    tick = asyncio.create_task(sched._tick("daily"))
    forced = asyncio.create_task(sched.force_refresh())
    await _real_sleep(0)
    assert len(quiz_source.calls) == 1

    quiz_source.gate.set()
    await tick
    outcome = await forced
    assert len(quiz_source.calls) == 2
    assert quiz_source.calls[1] == outcome.previous_id


@pytest.mark.asyncio
async def test_stop_hands_back_the_cancelled_task(quiz_source):
    sched = make_scheduler(quiz_source)
    assert sched.stop() is None

    sched.start()
    task = sched.stop()
    assert task is not None
    await asyncio.gather(task, return_exceptions=True)
    assert task.cancelled()
    assert sched.stop() is None
