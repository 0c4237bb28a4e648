import unittest

from unit_extractor.extraction.pipeline import ExtractionPipeline
from unit_extractor.inference.mock import MockInferenceClient
from unit_extractor.models import SourceFile

from tests.fakes import RecordingExtractor, ScriptedClient, fast_settings, json_reply, make_file, unit_payload


class ExtractionPipelineTests(unittest.IsolatedAsyncioTestCase):
    async def test_plan_filters_then_batches(self) -> None:
        files = [
            make_file("src/main.js", 2000),
            make_file("src/util.js", 500),
            make_file("src/vendor.min.js", 500),
            make_file("node_modules/dep/index.js", 500),
            SourceFile.from_text("src/packed.js", "a" * 5000),
        ]
        pipeline = ExtractionPipeline(
            settings=fast_settings(max_chars_per_call=2500),
            extractor=RecordingExtractor(),
        )

        batches = pipeline.plan(files)

        paths = [p for b in batches for p in b.paths]
        self.assertEqual(sorted(paths), ["src/main.js", "src/util.js"])

    async def test_extract_chunks_flattens_units(self) -> None:
        client = ScriptedClient(json_reply(unit_payload(name="one"), unit_payload(name="two")))
        pipeline = ExtractionPipeline(settings=fast_settings(max_chars_per_call=600), client=client)
        files = [make_file("src/a.js", 500), make_file("src/b.js", 500)]

        outcome = await pipeline.extract_chunks(files)

        self.assertEqual(len(client.calls), 2)
        self.assertEqual(outcome.unit_count, 4)
        self.assertEqual(len(outcome.chunks), 4)

    async def test_no_extractable_files(self) -> None:
        client = ScriptedClient(json_reply(unit_payload()))
        pipeline = ExtractionPipeline(settings=fast_settings(), client=client)

        self.assertEqual(await pipeline.extract([make_file("dist/a.js", 300)]), [])
        self.assertEqual(client.calls, [])

    async def test_mock_client_end_to_end(self) -> None:
        pipeline = ExtractionPipeline(settings=fast_settings(), client=MockInferenceClient())
        units = await pipeline.extract([make_file("src/a.py", 300)])
        self.assertEqual([u.name for u in units], ["merge_intervals"])

    def test_requires_client_or_extractor(self) -> None:
        with self.assertRaises(ValueError):
            ExtractionPipeline(settings=fast_settings())


if __name__ == "__main__":
    unittest.main()
