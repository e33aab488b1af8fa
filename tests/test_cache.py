import asyncio

import pytest

from services.cache import CacheAsideGuard, CacheEntry

WINDOW = 600_000


class Upstream:
    """Fetch function returning queued results (values or exceptions)."""

    def __init__(self, *results) -> None:
        self.results = list(results)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.mark.asyncio
async def test_hits_within_window_fetch_once(clock) -> None:
    upstream = Upstream("a")
    guard = CacheAsideGuard(upstream, window_millis=WINDOW, clock=clock)

    assert await guard.get() == "a"
    for step in (1, 1000, 299_999, 599_999):
        clock.now = step
        assert await guard.get() == "a"

    assert upstream.calls == 1
    assert guard.entry == CacheEntry(value="a", fetched_at_millis=0)


@pytest.mark.asyncio
async def test_cold_failure_leaves_cache_cold(clock) -> None:
    upstream = Upstream(RuntimeError("down"), "b")
    guard = CacheAsideGuard(upstream, window_millis=WINDOW, clock=clock)

    with pytest.raises(RuntimeError, match="down"):
        await guard.get()
    assert guard.entry is None

    clock.advance(1)
    assert await guard.get() == "b"
    assert upstream.calls == 2
    assert guard.entry.fetched_at_millis == 1


@pytest.mark.asyncio
async def test_expiry_triggers_exactly_one_refetch(clock) -> None:
    upstream = Upstream("old", "new")
    guard = CacheAsideGuard(upstream, window_millis=WINDOW, clock=clock)

    await guard.get()
    first = guard.entry.fetched_at_millis

    clock.now = WINDOW
    assert await guard.get() == "new"
    assert await guard.get() == "new"

    assert upstream.calls == 2
    assert guard.entry.fetched_at_millis > first


@pytest.mark.asyncio
async def test_failure_after_success_keeps_entry(clock) -> None:
    upstream = Upstream("good", RuntimeError("boom"))
    guard = CacheAsideGuard(upstream, window_millis=WINDOW, clock=clock)

    await guard.get()
    clock.now = WINDOW + 1

    # The stale value is kept but not handed to the failing caller
    with pytest.raises(RuntimeError, match="boom"):
        await guard.get()
    assert guard.entry == CacheEntry(value="good", fetched_at_millis=0)
    assert not guard.is_fresh()


@pytest.mark.asyncio
async def test_concurrent_stale_callers_share_one_fetch(clock) -> None:
    gate = asyncio.Event()
    calls = 0

    async def fetch():
        nonlocal calls
        calls += 1
        await gate.wait()
        return calls

    guard = CacheAsideGuard(fetch, window_millis=WINDOW, clock=clock)
    callers = [asyncio.create_task(guard.get()) for _ in range(5)]
    await asyncio.sleep(0)
    gate.set()

    assert await asyncio.gather(*callers) == [1] * 5
    assert calls == 1


@pytest.mark.asyncio
async def test_concurrent_callers_all_see_shared_failure(clock) -> None:
    gate = asyncio.Event()

    async def fetch():
        await gate.wait()
        raise RuntimeError("upstream down")

    guard = CacheAsideGuard(fetch, window_millis=WINDOW, clock=clock)
    callers = [asyncio.create_task(guard.get()) for _ in range(3)]
    await asyncio.sleep(0)
    gate.set()

    results = await asyncio.gather(*callers, return_exceptions=True)
    assert all(isinstance(r, RuntimeError) for r in results)
    assert guard.entry is None


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_cancel_fetch(clock) -> None:
    gate = asyncio.Event()
    calls = 0

    async def fetch():
        nonlocal calls
        calls += 1
        await gate.wait()
        return "done"

    guard = CacheAsideGuard(fetch, window_millis=WINDOW, clock=clock)
    caller = asyncio.create_task(guard.get())
    await asyncio.sleep(0)
    caller.cancel()
    with pytest.raises(asyncio.CancelledError):
        await caller

    gate.set()
    assert await guard.get() == "done"
    assert calls == 1
    assert guard.entry.value == "done"
