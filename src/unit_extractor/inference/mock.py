from __future__ import annotations

import json
from dataclasses import dataclass


_MOCK_UNIT_CODE = "\n".join(
    [
        "def merge_intervals(intervals):",
        "    ordered = sorted(intervals, key=lambda item: item[0])",
        "    merged = []",
        "    for start, end in ordered:",
        "        if merged and start <= merged[-1][1]:",
        "            merged[-1][1] = max(merged[-1][1], end)",
        "        else:",
        "            merged.append([start, end])",
        "    return merged",
    ]
)


@dataclass(frozen=True, slots=True)
class MockInferenceClient:
    """
    A deterministic inference client for offline runs.

    For any input, returns one fixed, valid unit wrapped in a json code fence.
    """

    reply_text: str = "```json\n" + json.dumps(
        [
            {
                "name": "merge_intervals",
                "fullCode": _MOCK_UNIT_CODE,
                "language": "Python",
                "lineCount": len(_MOCK_UNIT_CODE.splitlines()),
                "description": "Merges overlapping intervals.",
            }
        ],
        indent=2,
    ) + "\n```"

    async def complete(
        self,
        *,
        system_prompt: str,
        user_content: str,
        timeout_seconds: float,
    ) -> str:
        return self.reply_text
