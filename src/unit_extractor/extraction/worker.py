from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Optional

from pydantic import ValidationError

from unit_extractor.config.models import ExtractionSettings
from unit_extractor.extraction.audit import ExtractionAuditLog
from unit_extractor.extraction.batcher import render_batch
from unit_extractor.inference.interfaces import InferenceClient, InferenceError, InferenceTimeoutError
from unit_extractor.models import Batch, ExtractedUnit

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "Extract complete functions from code. Return ONLY JSON array."

_USER_PROMPT_TEMPLATE = """Extract substantial functions from: {label}

{text}

Return JSON:
[
  {{
    "name": "functionName",
    "fullCode": "complete function code",
    "language": "JavaScript|TypeScript|Python|Java|etc",
    "lineCount": 15,
    "description": "what it does"
  }}
]

Skip: stubs, simple returns, empty functions, <{min_lines} lines, <{min_chars} chars."""

_FENCE_OPEN_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"\s*```$")
_EMPTY_BODY_RE = re.compile(r"^\s*\{\s*\}\s*$")
_LINE_COMMENT_RE = re.compile(r"//.*$", re.MULTILINE)
_HASH_COMMENT_RE = re.compile(r"^\s*#.*$", re.MULTILINE)
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_PASS_THROUGH_RE = re.compile(r"return\s+\w+\s*;?\s*\}?\s*$")


class ResponseFormatError(ValueError):
    """The service reply could not be read as a list of units."""


def compute_timeout_seconds(size_chars: int, settings: ExtractionSettings) -> float:
    size_kb = size_chars / 1024
    return min(
        settings.max_timeout_seconds,
        settings.min_timeout_seconds + size_kb * settings.per_kb_timeout_seconds,
    )


def build_user_prompt(label: str, text: str, settings: ExtractionSettings) -> str:
    return _USER_PROMPT_TEMPLATE.format(
        label=label,
        text=text,
        min_lines=settings.min_unit_lines,
        min_chars=settings.min_unit_chars,
    )


def parse_units_response(raw: str) -> list[Any]:
    """Strip code fences, locate the JSON array and decode it."""
    content = raw.strip()
    content = _FENCE_OPEN_RE.sub("", content, count=1)
    content = _FENCE_CLOSE_RE.sub("", content, count=1)

    start = content.find("[")
    if start < 0:
        raise ResponseFormatError("No JSON array found in response")
    content = content[start:]

    try:
        parsed, _ = json.JSONDecoder().raw_decode(content)
    except json.JSONDecodeError as e:
        raise ResponseFormatError(f"Response is not valid JSON: {e.msg}") from e

    if not isinstance(parsed, list):
        raise ResponseFormatError(f"Expected a JSON array, got {type(parsed).__name__}")
    return parsed


def strip_comments(code: str) -> str:
    code = _BLOCK_COMMENT_RE.sub("", code)
    code = _LINE_COMMENT_RE.sub("", code)
    code = _HASH_COMMENT_RE.sub("", code)
    return code.strip()


def count_code_lines(code: str) -> int:
    return sum(1 for line in strip_comments(code).split("\n") if line.strip())


def is_substantial_unit(unit: ExtractedUnit, settings: ExtractionSettings) -> bool:
    if not unit.name.strip() or not unit.code.strip():
        return False
    if len(unit.code) < settings.min_unit_chars:
        return False
    line_count = unit.line_count or len(unit.code.splitlines())
    if line_count < settings.min_unit_lines:
        return False
    if _EMPTY_BODY_RE.match(unit.code):
        return False

    code_lines = count_code_lines(unit.code)
    if code_lines < settings.min_code_lines:
        return False
    # Bodies that only hand back a variable need more than the floor to be worth keeping
    if _PASS_THROUGH_RE.search(unit.code) and code_lines <= settings.min_code_lines:
        return False
    return True


def validate_units(candidates: list[Any], settings: ExtractionSettings) -> list[ExtractedUnit]:
    units: list[ExtractedUnit] = []
    for candidate in candidates:
        if not isinstance(candidate, dict):
            continue
        try:
            unit = ExtractedUnit.model_validate(candidate)
        except ValidationError:
            continue
        if is_substantial_unit(unit, settings):
            units.append(unit)
    return units


class ExtractionWorker:
    """Runs one inference call per batch. Every failure degrades to an empty result."""

    def __init__(
        self,
        *,
        client: InferenceClient,
        settings: ExtractionSettings,
        audit_log: Optional[ExtractionAuditLog] = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self._audit_log = audit_log

    async def extract(self, batch: Batch) -> list[ExtractedUnit]:
        label = batch.label
        text = render_batch(batch)
        timeout_seconds = compute_timeout_seconds(len(text), self._settings)
        logger.info(
            "Extracting batch. label=%s files=%d chars=%d timeout=%.1fs",
            label,
            len(batch.files),
            batch.total_chars,
            timeout_seconds,
        )

        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            raw = await asyncio.wait_for(
                self._client.complete(
                    system_prompt=SYSTEM_PROMPT,
                    user_content=build_user_prompt(label, text, self._settings),
                    timeout_seconds=timeout_seconds,
                ),
                timeout=timeout_seconds,
            )
        except (asyncio.TimeoutError, InferenceTimeoutError):
            logger.warning("Extraction timed out. label=%s timeout=%.1fs", label, timeout_seconds)
            return []
        except InferenceError as e:
            logger.error("Extraction request failed. label=%s error=%s", label, e)
            return []
        except Exception:
            logger.exception("Unexpected error during extraction. label=%s", label)
            return []

        try:
            candidates = parse_units_response(raw)
        except ResponseFormatError as e:
            logger.error("Invalid extraction response. label=%s error=%s", label, e)
            return []

        units = validate_units(candidates, self._settings)
        logger.info(
            "Extracted units. label=%s accepted=%d returned=%d duration=%.2fs",
            label,
            len(units),
            len(candidates),
            loop.time() - started,
        )

        if units and self._audit_log is not None:
            self._audit_log.record(label=label, paths=batch.paths, units=units)
        return units
