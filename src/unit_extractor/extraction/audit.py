from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from unit_extractor.models import ExtractedUnit
from unit_extractor.utils import format_rfc3339, utc_now

logger = logging.getLogger(__name__)

_RULE = "-" * 80
_SEPARATOR = "=" * 80


def format_extraction_record(*, label: str, paths: Sequence[str], units: Sequence[ExtractedUnit], timestamp: str) -> str:
    lines = [
        "--- FUNCTION EXTRACTION ---",
        f"Timestamp: {timestamp}",
        f"File: {label}",
        f"Paths: {', '.join(paths)}",
        f"Functions Extracted: {len(units)}",
        "",
    ]
    for index, unit in enumerate(units, start=1):
        lines.extend(
            [
                f"Function {index}: {unit.name}",
                f"Language: {unit.language}",
                f"Lines: {unit.line_count}",
                "Full Code:",
                _RULE,
                unit.code,
                _RULE,
                "",
            ]
        )
    lines.append(_SEPARATOR)
    lines.append("")
    return "\n".join(lines)


class ExtractionAuditLog:
    """
    Append-only plain-text record of accepted units per batch.

    Writing problems are logged once and turn file output off; they never reach
    the extraction pipeline.
    """

    def __init__(self, path: str = "") -> None:
        self._path = Path(path) if path.strip() else None

    @property
    def path(self) -> Path | None:
        return self._path

    def record(self, *, label: str, paths: Sequence[str], units: Sequence[ExtractedUnit]) -> None:
        logger.info("Function extraction recorded. label=%s units=%d", label, len(units))
        if self._path is None:
            return

        content = format_extraction_record(
            label=label,
            paths=paths,
            units=units,
            timestamp=format_rfc3339(utc_now()),
        )
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "a", encoding="utf-8") as f:
                f.write(content)
        except OSError:
            logger.exception("Failed to write extraction audit record, disabling file output. path=%s", self._path)
            self._path = None
