"""Single-flight, time-bounded cache-aside guard. No Redis needed.

Note: Each uvicorn worker has its own guard instances. With --workers 2,
data may be fetched twice (once per worker). This is acceptable for this
project's scale — the guard still eliminates repeated calls within the
same worker.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_WINDOW_MILLIS = 10 * 60 * 1000


def wall_clock_millis() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    fetched_at_millis: int


class CacheAsideGuard(Generic[T]):
    """Return the freshest known value, calling ``fetch`` only when stale.

    Concurrent callers that find the cache stale share one in-flight fetch.
    A failed fetch is raised to every caller waiting on it and never touches
    the stored entry.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        window_millis: int = DEFAULT_WINDOW_MILLIS,
        clock: Callable[[], int] = wall_clock_millis,
        name: str = "cache",
    ):
        self._fetch = fetch
        self._window_millis = window_millis
        self._clock = clock
        self.name = name
        self._entry: CacheEntry[T] | None = None
        self._inflight: asyncio.Task | None = None

    @property
    def entry(self) -> CacheEntry[T] | None:
        return self._entry

    @property
    def window_millis(self) -> int:
        return self._window_millis

    def is_fresh(self, now: int | None = None) -> bool:
        if self._entry is None:
            return False
        if now is None:
            now = self._clock()
        return now - self._entry.fetched_at_millis < self._window_millis

    async def get(self) -> T:
        now = self._clock()
        if self.is_fresh(now):
            logger.debug("%s: cache hit", self.name)
            return self._entry.value

        if self._inflight is None:
            logger.info("%s: %s, fetching upstream", self.name, "stale" if self._entry else "cold")
            self._inflight = asyncio.ensure_future(self._refresh(now))
            self._inflight.add_done_callback(self._log_failure)
        else:
            logger.debug("%s: joining in-flight fetch", self.name)

        # A cancelled caller must not cancel the shared fetch
        return await asyncio.shield(self._inflight)

    async def _refresh(self, started_at: int) -> T:
        try:
            value = await self._fetch()
            if self._entry is None or started_at > self._entry.fetched_at_millis:
                self._entry = CacheEntry(value=value, fetched_at_millis=started_at)
            return value
        finally:
            self._inflight = None

    def _log_failure(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("%s: fetch failed, keeping previous entry: %s", self.name, exc)
