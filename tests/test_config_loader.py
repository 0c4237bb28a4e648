import logging
import os
import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from unit_extractor.config.loader import YamlConfigLoader
from unit_extractor.config.models import ConfigLoadRequest, LoggingSettings
from unit_extractor.logging import init_logging


class YamlConfigLoaderTests(unittest.IsolatedAsyncioTestCase):
    async def test_missing_file_yields_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            request = ConfigLoadRequest(yaml_path=str(Path(tmp) / "missing.yaml"), dotenv_path=None)
            config = await YamlConfigLoader(environ={}).load(request)

        self.assertEqual(config.extraction.concurrency, 3)
        self.assertEqual(config.extraction.max_chars_per_call, 12000)
        self.assertEqual(config.prefetch.ttl_seconds, 900)

    async def test_yaml_then_environment_overrides(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text("extraction:\n  concurrency: 5\n  max_files: 10\n", encoding="utf-8")
            environ = {
                "UNIT_EXTRACTOR__EXTRACTION__CONCURRENCY": "7",
                "UNIT_EXTRACTOR__PREFETCH__TTL_SECONDS": "30",
                "UNRELATED": "ignored",
            }
            config = await YamlConfigLoader(environ=environ).load(
                ConfigLoadRequest(yaml_path=str(path), dotenv_path=None)
            )

        self.assertEqual(config.extraction.concurrency, 7)
        self.assertEqual(config.extraction.max_files, 10)
        self.assertEqual(config.prefetch.ttl_seconds, 30.0)

    async def test_dotenv_values_apply_as_overrides(self) -> None:
        self.addCleanup(os.environ.pop, "UNIT_EXTRACTOR_TEST__INFERENCE__MODEL", None)
        with tempfile.TemporaryDirectory() as tmp:
            dotenv_path = Path(tmp) / ".env"
            dotenv_path.write_text("UNIT_EXTRACTOR_TEST__INFERENCE__MODEL=local-model\n", encoding="utf-8")
            request = ConfigLoadRequest(yaml_path=None, env_prefix="UNIT_EXTRACTOR_TEST__", dotenv_path=str(dotenv_path))
            config = await YamlConfigLoader().load(request)

        self.assertEqual(config.inference.model, "local-model")

    async def test_unknown_keys_are_rejected(self) -> None:
        with self.assertRaises(KeyError):
            await YamlConfigLoader(environ={"UNIT_EXTRACTOR__EXTRACTION__NOPE": "1"}).load(
                ConfigLoadRequest(yaml_path=None, dotenv_path=None)
            )

        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text("bogus:\n  a: 1\n", encoding="utf-8")
            with self.assertRaises(KeyError):
                await YamlConfigLoader(environ={}).load(ConfigLoadRequest(yaml_path=str(path), dotenv_path=None))

    async def test_non_mapping_yaml_is_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text("- a\n- b\n", encoding="utf-8")
            with self.assertRaises(ValueError):
                await YamlConfigLoader(environ={}).load(ConfigLoadRequest(yaml_path=str(path), dotenv_path=None))

    async def test_invalid_values_fail_validation(self) -> None:
        environ = {
            "UNIT_EXTRACTOR__EXTRACTION__MIN_TIMEOUT_SECONDS": "120",
            "UNIT_EXTRACTOR__EXTRACTION__MAX_TIMEOUT_SECONDS": "60",
        }
        with self.assertRaises(ValidationError):
            await YamlConfigLoader(environ=environ).load(ConfigLoadRequest(yaml_path=None, dotenv_path=None))


class InitLoggingTests(unittest.TestCase):
    def setUp(self) -> None:
        root = logging.getLogger()
        self._saved = (root.level, list(root.handlers))

    def tearDown(self) -> None:
        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        level, handlers = self._saved
        root.setLevel(level)
        for handler in handlers:
            root.addHandler(handler)
        for name in ("aiohttp.access", "aiohttp.client", "httpx", "httpcore", "openai", "langchain_core"):
            logging.getLogger(name).setLevel(logging.NOTSET)

    def test_rejects_unknown_level(self) -> None:
        with self.assertRaises(ValueError):
            init_logging(LoggingSettings(level="chatty"))

    def test_client_libraries_are_held_at_library_level(self) -> None:
        init_logging(LoggingSettings(level="debug"))

        self.assertEqual(logging.getLogger().level, logging.DEBUG)
        self.assertEqual(logging.getLogger("aiohttp.client").level, logging.WARNING)
        self.assertEqual(logging.getLogger("httpx").level, logging.WARNING)

        init_logging(LoggingSettings(level="error", library_level="debug"))

        self.assertEqual(logging.getLogger("openai").level, logging.ERROR)

    def test_rejects_unknown_library_level(self) -> None:
        with self.assertRaises(ValueError):
            init_logging(LoggingSettings(library_level="loud"))

    def test_adds_file_handler_when_path_is_set(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            settings = LoggingSettings.model_validate(
                {"level": "debug", "file": {"path": str(Path(tmp) / "logs" / "app.log")}}
            )
            init_logging(settings)

            root = logging.getLogger()
            self.assertEqual(root.level, logging.DEBUG)
            self.assertEqual(len(root.handlers), 2)
            for handler in list(root.handlers):
                root.removeHandler(handler)
                handler.close()


if __name__ == "__main__":
    unittest.main()
