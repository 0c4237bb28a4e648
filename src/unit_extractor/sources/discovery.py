from __future__ import annotations

import logging
from pathlib import Path

from unit_extractor.models import SourceFile
from unit_extractor.sources.languages import is_irrelevant_path, is_source_path

logger = logging.getLogger(__name__)


def discover_source_files(root: str | Path, *, skip_irrelevant: bool = True) -> list[SourceFile]:
    """Read every source file under root into SourceFile records, sorted by relative path."""
    root_path = Path(root)
    if not root_path.is_dir():
        logger.warning("Source directory is missing. path=%s", root_path)
        return []

    files: list[SourceFile] = []
    for file_path in sorted(root_path.rglob("*")):
        if not file_path.is_file() or file_path.name.startswith("."):
            continue
        try:
            rel_path = file_path.relative_to(root_path).as_posix()
        except ValueError:
            continue
        if any(part.startswith(".") for part in rel_path.split("/")[:-1]):
            continue
        if not is_source_path(rel_path):
            continue
        if skip_irrelevant and is_irrelevant_path(rel_path):
            continue

        try:
            text = file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            logger.warning("Skipping non-UTF8 source file. path=%s", file_path)
            continue
        except OSError as e:
            logger.warning("Failed to read source file. path=%s error=%s", file_path, e)
            continue

        files.append(SourceFile.from_text(rel_path, text))

    logger.info("Discovered source files. root=%s count=%d", root_path, len(files))
    return files
