"""File selection, batching and bounded-concurrency extraction of code units."""

from unit_extractor.extraction.batcher import build_batches, prefilter_files, render_batch
from unit_extractor.extraction.chunks import unit_to_chunk, units_to_chunks
from unit_extractor.extraction.pipeline import ExtractionPipeline
from unit_extractor.extraction.scheduler import iter_batch_results
from unit_extractor.extraction.selector import repository_insights, score_path, select_files
from unit_extractor.extraction.worker import ExtractionWorker

__all__ = [
    "ExtractionPipeline",
    "ExtractionWorker",
    "build_batches",
    "iter_batch_results",
    "prefilter_files",
    "render_batch",
    "repository_insights",
    "score_path",
    "select_files",
    "unit_to_chunk",
    "units_to_chunks",
]
