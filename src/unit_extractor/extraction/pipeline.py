from __future__ import annotations

import logging
from contextlib import aclosing
from typing import AsyncIterator, Optional, Sequence

from unit_extractor.config.models import ExtractionSettings
from unit_extractor.extraction.audit import ExtractionAuditLog
from unit_extractor.extraction.batcher import build_batches, prefilter_files
from unit_extractor.extraction.chunks import units_to_chunks
from unit_extractor.extraction.scheduler import BatchExtractor, iter_batch_results
from unit_extractor.extraction.selector import select_files
from unit_extractor.extraction.worker import ExtractionWorker
from unit_extractor.inference.interfaces import InferenceClient
from unit_extractor.models import Batch, BatchResult, ExtractedUnit, ExtractionOutcome, SourceFile
from unit_extractor.sources.languages import is_irrelevant_path

logger = logging.getLogger(__name__)


class ExtractionPipeline:
    """Selector, batcher and bounded-concurrency extraction wired end to end."""

    def __init__(
        self,
        *,
        settings: ExtractionSettings,
        client: Optional[InferenceClient] = None,
        audit_log: Optional[ExtractionAuditLog] = None,
        extractor: Optional[BatchExtractor] = None,
    ) -> None:
        if extractor is None:
            if client is None:
                raise ValueError("Either client or extractor must be provided")
            extractor = ExtractionWorker(
                client=client,
                settings=settings,
                audit_log=audit_log if audit_log is not None else ExtractionAuditLog(settings.audit_log_path),
            )
        self._settings = settings
        self._extractor = extractor

    def select(self, files: Sequence[SourceFile]) -> list[SourceFile]:
        candidates = list(files)
        if self._settings.skip_irrelevant_paths:
            candidates = [f for f in candidates if not is_irrelevant_path(f.path)]
        candidates = prefilter_files(candidates, max_file_bytes=self._settings.max_file_bytes)
        return select_files(candidates, total_count=len(files), max_files=self._settings.max_files)

    def plan(self, files: Sequence[SourceFile]) -> list[Batch]:
        selected = self.select(files)
        return build_batches(
            selected,
            max_chars=self._settings.max_chars_per_call,
            min_chars=self._settings.min_chars_per_call,
        )

    async def stream(self, files: Sequence[SourceFile]) -> AsyncIterator[BatchResult]:
        batches = self.plan(files)
        if not batches:
            logger.warning("No extractable files after filtering. candidates=%d", len(files))
            return
        results = iter_batch_results(batches, self._extractor, concurrency=self._settings.concurrency)
        async with aclosing(results):
            async for result in results:
                yield result

    async def extract(self, files: Sequence[SourceFile]) -> list[ExtractedUnit]:
        units: list[ExtractedUnit] = []
        async for result in self.stream(files):
            units.extend(result.units)
        logger.info("Extraction finished. units=%d", len(units))
        return units

    async def extract_chunks(self, files: Sequence[SourceFile]) -> ExtractionOutcome:
        units = await self.extract(files)
        return ExtractionOutcome(chunks=units_to_chunks(units), unit_count=len(units))
