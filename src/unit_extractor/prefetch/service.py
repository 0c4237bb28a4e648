from __future__ import annotations

import logging
from typing import Awaitable, Optional, Sequence

from unit_extractor.extraction.pipeline import ExtractionPipeline
from unit_extractor.models import CacheEntry, ExtractionOutcome, RepositoryInfo, SourceFile
from unit_extractor.prefetch.cache import PrefetchCache, completed_future
from unit_extractor.prefetch.keys import make_prefetch_key
from unit_extractor.sources.combined import combine_file_contents, parse_combined_code

logger = logging.getLogger(__name__)


class PrefetchService:
    """Front door for proactive extraction: derives keys and feeds the pipeline into the cache."""

    def __init__(self, *, pipeline: ExtractionPipeline, cache: PrefetchCache) -> None:
        self._pipeline = pipeline
        self._cache = cache

    @property
    def cache(self) -> PrefetchCache:
        return self._cache

    def key_for(self, repository: Optional[RepositoryInfo], code: str) -> str:
        return make_prefetch_key(repository, code)

    def prefetch(self, repository: Optional[RepositoryInfo], code: str) -> Awaitable[Optional[CacheEntry]]:
        if not code or not code.strip():
            logger.warning("Skipping prefetch, empty code payload.")
            return completed_future(None)

        key = self.key_for(repository, code)
        files = parse_combined_code(code)
        if not files:
            logger.warning("Skipping prefetch, no files parsed from code payload. key=%s", key)
            return completed_future(None)

        async def _produce() -> ExtractionOutcome:
            return await self._pipeline.extract_chunks(files)

        return self._cache.schedule(key, _produce)

    def prefetch_files(
        self,
        repository: Optional[RepositoryInfo],
        files: Sequence[SourceFile],
    ) -> Awaitable[Optional[CacheEntry]]:
        return self.prefetch(repository, combine_file_contents(files))

    def get_chunks(self, key: str) -> Optional[list[str]]:
        entry = self._cache.lookup(key)
        if entry is None:
            return None
        return list(entry.chunks)
