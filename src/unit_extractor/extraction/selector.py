from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from unit_extractor.models import SourceFile

logger = logging.getLogger(__name__)

# (exclusive upper bound on repository file count, size class, files to select)
_SIZE_TIERS: tuple[tuple[int, str, int], ...] = (
    (100, "small", 15),
    (500, "medium", 20),
    (2000, "large", 25),
    (5000, "very large", 30),
)
_MASSIVE = ("massive", 35)

HIGH_SCORE_SHARE = 0.6
MAX_PER_DIRECTORY = 2

_DIRECTORY_BOOSTS: tuple[tuple[tuple[str, ...], int], ...] = (
    (("src/",), 10),
    (("app/",), 10),
    (("components/",), 8),
    (("lib/",), 8),
    (("utils/", "helpers/"), 7),
    (("services/",), 7),
    (("hooks/",), 6),
    (("context/",), 6),
    (("store/",), 6),
    (("api/",), 6),
    (("routes/",), 5),
    (("pages/",), 5),
    (("views/",), 5),
    (("screens/",), 5),
    (("widgets/",), 5),
    (("models/",), 5),
    (("types/",), 5),
    (("interfaces/",), 5),
)

_ROLE_WORDS = ("component", "service", "util", "helper", "hook", "context", "store", "api")

_PENALTIES: tuple[tuple[tuple[str, ...], int], ...] = (
    (("test", "spec"), 8),
    (("config", "setup"), 6),
    (("mock", "stub"), 5),
    (("example", "sample"), 4),
    (("demo",), 4),
    (("draft", "temp"), 3),
    (("old", "backup"), 3),
    (("legacy",), 5),
)

_EXTENSION_BONUS: tuple[tuple[tuple[str, ...], int], ...] = (
    ((".js", ".jsx"), 2),
    ((".ts", ".tsx"), 3),
    ((".py",), 2),
    ((".java",), 2),
    ((".cpp", ".c"), 2),
)


@dataclass(frozen=True, slots=True)
class RepositoryInsights:
    total_files: int
    size_class: str
    max_files_to_select: int


def repository_insights(total_files: int, *, ceiling: Optional[int] = None) -> RepositoryInsights:
    size_class, cap = _MASSIVE
    for upper, tier_class, tier_cap in _SIZE_TIERS:
        if total_files < upper:
            size_class, cap = tier_class, tier_cap
            break
    if ceiling is not None:
        cap = min(cap, ceiling)
    return RepositoryInsights(total_files=total_files, size_class=size_class, max_files_to_select=max(0, cap))


def score_path(path: str) -> int:
    """Heuristic relevance of a file path; higher means more likely to hold core logic."""
    lowered = path.lower()
    score = 0

    if "main" in lowered or "index" in lowered:
        score += 15
    if "app" in lowered:
        score += 12

    for needles, boost in _DIRECTORY_BOOSTS:
        if any(n in lowered for n in needles):
            score += boost

    for word in _ROLE_WORDS:
        if word in lowered:
            score += 4

    if "/" not in lowered and "." in lowered:
        score += 3

    for needles, penalty in _PENALTIES:
        if any(n in lowered for n in needles):
            score -= penalty

    for suffixes, bonus in _EXTENSION_BONUS:
        if lowered.endswith(suffixes):
            score += bonus

    return score


def score_files(files: Iterable[SourceFile]) -> list[SourceFile]:
    """Score every file and sort by descending score; ties keep input order."""
    scored = [f.with_score(score_path(f.path)) for f in files]
    scored.sort(key=lambda f: f.score, reverse=True)
    return scored


def _directory_of(path: str) -> str:
    if "/" not in path:
        return "root"
    return path.rsplit("/", 1)[0] or "root"


def select_diverse_files(files: Sequence[SourceFile], count: int) -> list[SourceFile]:
    if count <= 0:
        return []
    if len(files) <= count:
        return list(files)

    groups: dict[str, list[SourceFile]] = {}
    for file in files:
        groups.setdefault(_directory_of(file.path), []).append(file)

    per_directory = min(MAX_PER_DIRECTORY, math.ceil(count / len(groups)))
    selected: list[SourceFile] = []
    used: set[str] = set()

    for dir_files in groups.values():
        if len(selected) >= count:
            break
        for file in dir_files[:per_directory]:
            if len(selected) >= count:
                break
            if file.path not in used:
                selected.append(file)
                used.add(file.path)

    # Fill leftover slots by score
    for file in files:
        if len(selected) >= count:
            break
        if file.path not in used:
            selected.append(file)
            used.add(file.path)

    return selected


def select_files(
    files: Sequence[SourceFile],
    *,
    total_count: Optional[int] = None,
    max_files: Optional[int] = None,
) -> list[SourceFile]:
    """
    Pick a bounded, diverse subset of files to analyze.

    The cap grows with total_count (the size of the whole repository, which can be
    larger than the candidate list) and never exceeds max_files. The top 60% of the
    cap is taken straight from the score ranking; the rest comes from a pass that
    spreads picks across directories.
    """
    insights = repository_insights(len(files) if total_count is None else total_count, ceiling=max_files)
    cap = insights.max_files_to_select
    scored = score_files(files)

    if len(scored) <= cap:
        logger.info(
            "Selected all candidate files. candidates=%d cap=%d size_class=%s",
            len(scored),
            cap,
            insights.size_class,
        )
        return scored

    high_count = math.floor(cap * HIGH_SCORE_SHARE)
    high = scored[:high_count]
    diverse = select_diverse_files(scored[high_count:], cap - high_count)

    logger.info(
        "Selected files. high_score=%d diverse=%d candidates=%d cap=%d size_class=%s",
        len(high),
        len(diverse),
        len(scored),
        cap,
        insights.size_class,
    )
    return high + diverse
