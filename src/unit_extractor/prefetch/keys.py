from __future__ import annotations

from typing import Optional

from unit_extractor.models import RepositoryInfo
from unit_extractor.utils import hash_text


def make_prefetch_key(repository: Optional[RepositoryInfo], code: str) -> str:
    """
    Stable identity for a repository plus the exact source text submitted for it.

    Same repository and same text always give the same key; any change to the text
    changes the key.
    """
    repository = repository or RepositoryInfo()
    owner = (repository.owner or "").strip() or "unknown"
    name = (repository.name or "").strip() or "unknown"
    branch = (repository.branch or "").strip() or "default"
    return f"{owner}/{name}@{branch}:{hash_text(code)}"
