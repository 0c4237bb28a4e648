from __future__ import annotations

import re
from typing import Iterable, Optional

from unit_extractor.models import ExtractedUnit

_HEADER_RE = re.compile(r"^// Function: (?P<name>[^\n(]+?)\s*(?:\((?P<language>[^)\n]*)\))?$", re.MULTILINE)


def unit_to_chunk(unit: ExtractedUnit) -> str:
    language = unit.language or "unknown"
    description = (unit.description or "").strip() or "No description"
    return f"// Function: {unit.name} ({language})\n// {description}\n\n{unit.code}"


def units_to_chunks(units: Iterable[ExtractedUnit]) -> list[str]:
    return [unit_to_chunk(unit) for unit in units]


def chunk_function_name(chunk: str) -> Optional[str]:
    match = _HEADER_RE.search(chunk)
    if match is None:
        return None
    return match.group("name").strip()
