from __future__ import annotations

import logging
from typing import Iterable, Sequence

from unit_extractor.models import Batch, SourceFile

logger = logging.getLogger(__name__)

DEFAULT_MIN_CHARS_PER_CALL = 1500
DEFAULT_MAX_CHARS_PER_CALL = 12000
DEFAULT_MAX_FILE_BYTES = 5 * 1024 * 1024

_MINIFIED_NAME_MARKERS = (".min.", ".minified")
_MINIFIED_MIN_CHARS = 1000
_MINIFIED_MAX_LINES = 10


def looks_minified(file: SourceFile) -> bool:
    if any(marker in file.path for marker in _MINIFIED_NAME_MARKERS):
        return True
    return len(file.content) > _MINIFIED_MIN_CHARS and len(file.content.split("\n")) < _MINIFIED_MAX_LINES


def prefilter_files(files: Iterable[SourceFile], *, max_file_bytes: int = DEFAULT_MAX_FILE_BYTES) -> list[SourceFile]:
    """Drop files that are too large or minified. Dropped files are gone for good."""
    kept: list[SourceFile] = []
    for file in files:
        if len(file.content) > max_file_bytes or file.size_bytes > max_file_bytes:
            logger.info("Skipping oversized file. path=%s size_bytes=%d", file.path, file.size_bytes)
            continue
        if looks_minified(file):
            logger.info("Skipping minified file. path=%s", file.path)
            continue
        kept.append(file)
    return kept


def build_batches(
    files: Sequence[SourceFile],
    *,
    max_chars: int = DEFAULT_MAX_CHARS_PER_CALL,
    min_chars: int = DEFAULT_MIN_CHARS_PER_CALL,
) -> list[Batch]:
    """
    Pack files, in the given order, into batches of at most max_chars characters.

    A file longer than max_chars gets a batch of its own. Nothing is truncated or
    re-sorted. A batch that already holds min_chars is closed rather than filled
    exactly to the ceiling. min_chars is a target only; batches below it are
    reported, not merged.
    """
    batches: list[Batch] = []
    current: list[SourceFile] = []
    current_chars = 0

    for file in files:
        file_chars = len(file.content)

        if file_chars > max_chars:
            if current:
                batches.append(Batch(files=tuple(current), total_chars=current_chars))
                current, current_chars = [], 0
            batches.append(Batch(files=(file,), total_chars=file_chars))
            continue

        projected = current_chars + file_chars
        if current and (projected > max_chars or (current_chars >= min_chars and projected >= max_chars)):
            batches.append(Batch(files=tuple(current), total_chars=current_chars))
            current, current_chars = [file], file_chars
        else:
            current.append(file)
            current_chars += file_chars

    if current:
        batches.append(Batch(files=tuple(current), total_chars=current_chars))

    small = sum(1 for b in batches if b.total_chars < min_chars)
    logger.info(
        "Created extraction batches. batches=%d files=%d below_floor=%d",
        len(batches),
        len(files),
        small,
    )
    return batches


def render_batch(batch: Batch) -> str:
    """Concatenate batch files, each behind a path marker."""
    return "\n\n".join(f"// File: {f.path}\n{f.content}\n" for f in batch.files)
