import asyncio
import unittest

from unit_extractor.extraction.pipeline import ExtractionPipeline
from unit_extractor.models import RepositoryInfo, SourceFile
from unit_extractor.prefetch.cache import PrefetchCache
from unit_extractor.prefetch.service import PrefetchService
from unit_extractor.sources.combined import combine_file_contents

from tests.fakes import ScriptedClient, fast_settings, json_reply, unit_payload

REPO = RepositoryInfo(owner="acme", name="widgets", branch="main")


def _files() -> list[SourceFile]:
    return [
        SourceFile.from_text("src/index.js", "function a() {\n  return 1;\n}\n" * 10),
        SourceFile.from_text("src/lib/math.js", "function b() {\n  return 2;\n}\n" * 10),
    ]


def _reply(user_content: str) -> str:
    # One unit per file marker in the batch
    count = user_content.count("// File: ")
    return json_reply(*[unit_payload(name=f"fn_{i}") for i in range(count)])


class PrefetchServiceTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.client = ScriptedClient(_reply, delay=0.01)
        pipeline = ExtractionPipeline(settings=fast_settings(skip_irrelevant_paths=False), client=self.client)
        self.service = PrefetchService(pipeline=pipeline, cache=PrefetchCache(ttl_seconds=60))

    async def test_prefetch_then_lookup_by_request_key(self) -> None:
        code = combine_file_contents(_files())

        entry = await self.service.prefetch(REPO, code)

        self.assertIsNotNone(entry)
        self.assertEqual(entry.unit_count, 2)
        key = self.service.key_for(REPO, code)
        chunks = self.service.get_chunks(key)
        self.assertEqual(len(chunks), 2)
        self.assertTrue(chunks[0].startswith("// Function: fn_"))

    async def test_duplicate_requests_run_extraction_once(self) -> None:
        files = _files()

        first, second = await asyncio.gather(
            self.service.prefetch_files(REPO, files),
            self.service.prefetch_files(REPO, files),
        )

        self.assertIs(first, second)
        self.assertEqual(len(self.client.calls), 1)

    async def test_empty_payload_does_not_start_a_run(self) -> None:
        self.assertIsNone(await self.service.prefetch(REPO, "   "))
        self.assertEqual(self.client.calls, [])

    async def test_payload_without_file_headers_caches_nothing(self) -> None:
        code = "function a() { return 1; }"

        pending = self.service.prefetch(REPO, code)

        self.assertEqual(self.service.cache.pending_runs, 0)
        self.assertFalse(self.service.cache.in_flight(self.service.key_for(REPO, code)))
        self.assertIsNone(await pending)
        self.assertEqual(self.client.calls, [])
        self.assertIsNone(self.service.get_chunks(self.service.key_for(REPO, code)))

    async def test_failed_extraction_is_a_cache_miss(self) -> None:
        client = ScriptedClient(error=RuntimeError("service down"))
        pipeline = ExtractionPipeline(settings=fast_settings(), client=client)
        service = PrefetchService(pipeline=pipeline, cache=PrefetchCache())

        self.assertIsNone(await service.prefetch_files(REPO, _files()))


if __name__ == "__main__":
    unittest.main()
