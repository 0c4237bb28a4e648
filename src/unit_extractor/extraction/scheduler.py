from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import AsyncIterator, Protocol, Sequence

from unit_extractor.models import Batch, BatchResult, ExtractedUnit

logger = logging.getLogger(__name__)


class BatchExtractor(Protocol):
    async def extract(self, batch: Batch) -> list[ExtractedUnit]:
        ...


async def iter_batch_results(
    batches: Sequence[Batch],
    extractor: BatchExtractor,
    *,
    concurrency: int,
) -> AsyncIterator[BatchResult]:
    """
    Run extractor over batches with at most `concurrency` calls in flight.

    Results are yielded in completion order, one per batch. A slot that finishes
    immediately takes the next queued batch. Closing the iterator early cancels the
    calls still running.
    """
    if not batches:
        return

    queue: deque[tuple[int, Batch]] = deque(enumerate(batches))
    results: asyncio.Queue[BatchResult] = asyncio.Queue()

    async def _run_slot() -> None:
        while queue:
            index, batch = queue.popleft()
            try:
                units = await extractor.extract(batch)
            except Exception:
                # Extractors are expected to absorb their own failures
                logger.exception("Batch extractor raised. index=%d label=%s", index, batch.label)
                units = []
            await results.put(BatchResult(index=index, batch=batch, units=list(units)))

    pool_size = min(max(1, concurrency), len(batches))
    slots = [asyncio.create_task(_run_slot()) for _ in range(pool_size)]
    logger.debug("Started extraction pool. batches=%d pool_size=%d", len(batches), pool_size)

    try:
        for completed in range(1, len(batches) + 1):
            result = await results.get()
            logger.info(
                "Batch completed. index=%d completed=%d/%d units=%d",
                result.index,
                completed,
                len(batches),
                len(result.units),
            )
            yield result
    finally:
        for slot in slots:
            if not slot.done():
                slot.cancel()
        await asyncio.gather(*slots, return_exceptions=True)
