from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import yaml

from unit_extractor.config import YamlConfigLoader
from unit_extractor.config.models import AppConfig, ConfigLoadRequest
from unit_extractor.extraction.audit import ExtractionAuditLog
from unit_extractor.extraction.chunks import units_to_chunks
from unit_extractor.extraction.pipeline import ExtractionPipeline
from unit_extractor.inference import InferenceClient, build_inference_client
from unit_extractor.inference.mock import MockInferenceClient
from unit_extractor.logging import init_logging
from unit_extractor.models import ExtractedUnit, RepositoryInfo
from unit_extractor.prefetch import PrefetchCache, PrefetchService
from unit_extractor.sources import discover_source_files

logger = logging.getLogger(__name__)


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("source_dir", help="Directory holding the repository sources")
    parser.add_argument("--owner", default=None, help="Repository owner, used for the cache key")
    parser.add_argument("--name", default=None, help="Repository name, used for the cache key")
    parser.add_argument("--branch", default=None, help="Repository branch, used for the cache key")
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use a deterministic offline inference client instead of the configured service.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="unit-extractor", description="Extract self-contained functions from a repository")
    parser.add_argument(
        "--config",
        default="data/config/config.yaml",
        help="Path to config.yaml (default: data/config/config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    # Command: extract
    extract_parser = subparsers.add_parser("extract", help="Run extraction and print the resulting chunks")
    _add_source_arguments(extract_parser)
    extract_parser.add_argument("--output", default=None, help="Write chunks to this file instead of stdout")

    # Command: prefetch
    prefetch_parser = subparsers.add_parser("prefetch", help="Populate the prefetch cache and report the entry")
    _add_source_arguments(prefetch_parser)

    return parser


async def _load_config(args: argparse.Namespace) -> AppConfig:
    loader = YamlConfigLoader()
    request = ConfigLoadRequest(yaml_path=args.config)
    try:
        return await loader.load(request)
    except (KeyError, TypeError, ValueError, yaml.YAMLError) as e:
        # Logging is not configured yet
        print(f"Invalid configuration: {e}", file=sys.stderr)
        raise SystemExit(2) from e


def _build_client(config: AppConfig, args: argparse.Namespace) -> InferenceClient:
    if args.mock:
        return MockInferenceClient()
    return build_inference_client(config.inference)


def _build_pipeline(config: AppConfig, args: argparse.Namespace) -> ExtractionPipeline:
    return ExtractionPipeline(
        settings=config.extraction,
        client=_build_client(config, args),
        audit_log=ExtractionAuditLog(config.extraction.audit_log_path),
    )


def _repository_from_args(args: argparse.Namespace) -> RepositoryInfo:
    return RepositoryInfo(owner=args.owner, name=args.name, branch=args.branch)


async def _extract(args: argparse.Namespace) -> int:
    config = await _load_config(args)
    init_logging(config.logging)

    files = discover_source_files(args.source_dir, skip_irrelevant=config.extraction.skip_irrelevant_paths)
    pipeline = _build_pipeline(config, args)

    units: list[ExtractedUnit] = []
    async for result in pipeline.stream(files):
        logger.info("Batch ready. index=%d label=%s units=%d", result.index, result.batch.label, len(result.units))
        units.extend(result.units)

    chunks = units_to_chunks(units)
    text = "\n\n".join(chunks)
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text + "\n", encoding="utf-8")
        logger.info("Chunks written. path=%s chunks=%d", output_path, len(chunks))
    elif text:
        print(text)
    logger.info("Extraction completed. files=%d chunks=%d", len(files), len(chunks))
    return 0


async def _prefetch(args: argparse.Namespace) -> int:
    config = await _load_config(args)
    init_logging(config.logging)

    files = discover_source_files(args.source_dir, skip_irrelevant=config.extraction.skip_irrelevant_paths)
    cache = PrefetchCache(ttl_seconds=config.prefetch.ttl_seconds)
    service = PrefetchService(pipeline=_build_pipeline(config, args), cache=cache)
    repository = _repository_from_args(args)

    # A second request for the same payload attaches to the first run
    first, second = await asyncio.gather(
        service.prefetch_files(repository, files),
        service.prefetch_files(repository, files),
    )
    if first is not second:
        logger.warning("Concurrent prefetch requests observed different results.")

    if first is None:
        logger.warning("Prefetch produced no cache entry.")
        return 1

    entry = cache.lookup(first.key)
    if entry is None:
        logger.warning("Prefetch entry is not available. key=%s", first.key)
        return 1
    print(f"key={entry.key} chunks={len(entry.chunks)} units={entry.unit_count}")
    return 0


async def _main_async() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    if args.command == "extract":
        return await _extract(args)
    if args.command == "prefetch":
        return await _prefetch(args)
    parser.error(f"Unknown command: {args.command}")
    return 2


def main() -> None:
    try:
        sys.exit(asyncio.run(_main_async()))
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")


if __name__ == "__main__":
    main()
