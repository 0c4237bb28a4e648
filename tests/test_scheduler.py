import asyncio
import unittest

from unit_extractor.extraction.batcher import build_batches
from unit_extractor.extraction.scheduler import iter_batch_results
from unit_extractor.models import SourceFile

from tests.fakes import RecordingExtractor


def _batches(count: int):
    files = [SourceFile.from_text(f"file_{i}.py", "x" * 100) for i in range(count)]
    # max_chars below the file size keeps one file per batch
    return build_batches(files, max_chars=50)


class IterBatchResultsTests(unittest.IsolatedAsyncioTestCase):
    async def test_never_exceeds_pool_size_and_covers_every_batch(self) -> None:
        batches = _batches(10)
        extractor = RecordingExtractor()

        results = [r async for r in iter_batch_results(batches, extractor, concurrency=3)]

        self.assertEqual(extractor.max_active, 3)
        self.assertEqual(len(results), 10)
        self.assertEqual(sorted(r.index for r in results), list(range(10)))

    async def test_yields_in_completion_order(self) -> None:
        batches = _batches(3)
        extractor = RecordingExtractor(delays={0: 0.3, 1: 0.1, 2: 0.01})

        results = [r async for r in iter_batch_results(batches, extractor, concurrency=3)]

        self.assertEqual([r.index for r in results], [2, 1, 0])

    async def test_free_slot_picks_up_next_batch_before_slow_call_finishes(self) -> None:
        batches = _batches(4)
        extractor = RecordingExtractor(delays={0: 0.5, 1: 0.01, 2: 0.01, 3: 0.01})

        results = [r async for r in iter_batch_results(batches, extractor, concurrency=2)]

        self.assertEqual([r.index for r in results][-1], 0)
        self.assertEqual(extractor.max_active, 2)

    async def test_failed_batches_still_yield_an_empty_result(self) -> None:
        batches = _batches(5)
        extractor = RecordingExtractor(failing=(1, 3))

        results = {r.index: r for r in [r async for r in iter_batch_results(batches, extractor, concurrency=2)]}

        self.assertEqual(len(results), 5)
        self.assertEqual(results[1].units, [])
        self.assertEqual(results[3].units, [])
        self.assertEqual(results[0].units[0].name, "unit_0")
        # No retries
        self.assertEqual(len(extractor.started), 5)

    async def test_fewer_batches_than_pool_size(self) -> None:
        extractor = RecordingExtractor()

        results = [r async for r in iter_batch_results(_batches(2), extractor, concurrency=8)]

        self.assertEqual(len(results), 2)
        self.assertEqual(extractor.max_active, 2)

    async def test_empty_batch_list(self) -> None:
        extractor = RecordingExtractor()
        results = [r async for r in iter_batch_results([], extractor, concurrency=3)]
        self.assertEqual(results, [])

    async def test_closing_early_cancels_outstanding_calls(self) -> None:
        batches = _batches(4)
        extractor = RecordingExtractor(delays={0: 0.01, 1: 5, 2: 5, 3: 5})

        stream = iter_batch_results(batches, extractor, concurrency=2)
        first = await stream.__anext__()
        await stream.aclose()
        await asyncio.sleep(0)

        self.assertEqual(first.index, 0)
        self.assertEqual(extractor.active, 0)


if __name__ == "__main__":
    unittest.main()
