"""Single-payload rendering of many files, and the parser that recovers them."""

from __future__ import annotations

import logging
import re
from typing import Iterable

from unit_extractor.models import SourceFile
from unit_extractor.sources.languages import DEFAULT_LANGUAGE, detect_language

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOTAL_BYTES = 5 * 1024 * 1024

_HEADER_RE = re.compile(r"^// ===== (?P<path>.+?) \((?P<language>[^()]*)\) =====$", re.MULTILINE)


def format_file_header(path: str, language: str) -> str:
    return f"// ===== {path} ({language}) ====="


def combine_file_contents(files: Iterable[SourceFile], *, max_total_bytes: int = DEFAULT_MAX_TOTAL_BYTES) -> str:
    """
    Concatenate files behind path headers.

    Stops at the first file that would push the payload over max_total_bytes; files
    after it are not considered.
    """
    parts: list[str] = []
    total_bytes = 0
    for file in files:
        if not file.content:
            continue
        language = detect_language(file.path) or DEFAULT_LANGUAGE
        block = f"{format_file_header(file.path, language)}\n{file.content}\n\n"
        block_bytes = len(block.encode("utf-8"))
        if total_bytes + block_bytes > max_total_bytes:
            logger.warning("Combined payload size limit reached. skipped_from=%s", file.path)
            break
        parts.append(block)
        total_bytes += block_bytes
    return "".join(parts)


def parse_combined_code(code: str) -> list[SourceFile]:
    matches = list(_HEADER_RE.finditer(code))
    files: list[SourceFile] = []
    for i, match in enumerate(matches):
        start = match.end() + 1
        end = matches[i + 1].start() if i + 1 < len(matches) else len(code)
        content = code[start:end]
        # combine_file_contents appends "\n\n" after each file
        if content.endswith("\n\n"):
            content = content[:-2]
        path = match.group("path").strip()
        if path and content.strip():
            files.append(SourceFile.from_text(path, content))
    return files
