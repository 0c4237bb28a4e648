from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Sequence

from unit_extractor.models import CacheEntry, ExtractionOutcome

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 15 * 60

Producer = Callable[[], Awaitable[ExtractionOutcome]]


def completed_future(value: Optional[CacheEntry]) -> asyncio.Future[Optional[CacheEntry]]:
    future: asyncio.Future[Optional[CacheEntry]] = asyncio.get_running_loop().create_future()
    future.set_result(value)
    return future


class PrefetchCache:
    """
    In-memory, time-bounded store of extraction results with per-key run dedup.

    One instance is meant to live for the whole process and be shared by reference.
    All map mutations happen in synchronous code, so they are atomic with respect to
    the event loop. Not safe to share across threads.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, asyncio.Task[Optional[CacheEntry]]] = {}
        self._detached: set[asyncio.Task[Optional[CacheEntry]]] = set()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def lookup(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        age = self._clock() - entry.created_at
        if age > self._ttl_seconds:
            del self._entries[key]
            logger.debug("Prefetch entry expired. key=%s age=%.1fs", key, age)
            return None
        return entry

    def has_fresh(self, key: str) -> bool:
        return self.lookup(key) is not None

    def in_flight(self, key: str) -> bool:
        return key in self._in_flight

    @property
    def pending_runs(self) -> int:
        """Runs still executing, including ones detached by invalidate."""
        return len(self._in_flight) + len(self._detached)

    def store(self, key: str, chunks: Sequence[str], unit_count: int) -> Optional[CacheEntry]:
        if not chunks:
            return None
        entry = CacheEntry(key=key, created_at=self._clock(), chunks=tuple(chunks), unit_count=unit_count)
        self._entries[key] = entry
        return entry

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)
        task = self._in_flight.pop(key, None)
        if task is not None and not task.done():
            # Held until done, the loop only keeps a weak reference.
            self._detached.add(task)
            task.add_done_callback(self._detached.discard)

    def schedule(self, key: str, producer: Producer) -> Awaitable[Optional[CacheEntry]]:
        """
        Make sure a result for key exists or is being produced.

        Returns an awaitable that resolves to the stored entry, or None when the run
        failed or produced nothing. A fresh entry resolves immediately; a run already
        in flight is shared instead of starting producer. Must be called with a
        running event loop. Awaiting the result never raises for producer failures.
        """
        entry = self.lookup(key)
        if entry is not None:
            logger.info("Prefetch cache hit, skipping new run. key=%s", key)
            return completed_future(entry)

        existing = self._in_flight.get(key)
        if existing is not None:
            logger.info("Prefetch already in progress, attaching. key=%s", key)
            return asyncio.shield(existing)

        task = asyncio.create_task(self._run(key, producer))
        self._in_flight[key] = task
        logger.info("Prefetch run started. key=%s", key)
        return asyncio.shield(task)

    async def _run(self, key: str, producer: Producer) -> Optional[CacheEntry]:
        run = asyncio.current_task()
        try:
            try:
                outcome = await producer()
            except Exception:
                logger.exception("Prefetch run failed. key=%s", key)
                return None

            if self._in_flight.get(key) is not run:
                logger.info("Prefetch run was invalidated, discarding result. key=%s", key)
                return None

            entry = self.store(key, outcome.chunks, outcome.unit_count)
            if entry is None:
                logger.warning("Prefetch run produced no chunks. key=%s", key)
            else:
                logger.info("Prefetch stored. key=%s chunks=%d units=%d", key, len(entry.chunks), entry.unit_count)
            return entry
        finally:
            if self._in_flight.get(key) is run:
                del self._in_flight[key]
