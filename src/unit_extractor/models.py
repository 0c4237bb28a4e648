from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


@dataclass(frozen=True, slots=True)
class RepositoryInfo:
    owner: Optional[str] = None
    name: Optional[str] = None
    branch: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SourceFile:
    path: str
    content: str
    size_bytes: int
    score: float = 0.0

    @classmethod
    def from_text(cls, path: str, content: str) -> SourceFile:
        return cls(path=path, content=content, size_bytes=len(content.encode("utf-8")))

    def with_score(self, score: float) -> SourceFile:
        return replace(self, score=score)


@dataclass(frozen=True, slots=True)
class Batch:
    files: tuple[SourceFile, ...]
    total_chars: int

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    @property
    def label(self) -> str:
        """Single path for one-file batches, otherwise a short list of base names."""
        if len(self.files) == 1:
            return self.files[0].path
        names = ", ".join(f.path.rsplit("/", 1)[-1] for f in self.files)
        return f"[{len(self.files)} files: {names}]"


class ExtractedUnit(BaseModel):
    """
    One function-like unit returned by the inference service.

    Field aliases match the JSON keys the service is asked to produce.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    code: str = Field(alias="fullCode")
    language: str = ""
    line_count: int = Field(default=0, alias="lineCount")
    description: Optional[str] = None

    @field_validator("name", "code", mode="before")
    @classmethod
    def _none_as_empty(cls, value: object) -> object:
        if value is None:
            return ""
        return value

    @field_validator("language", "line_count", mode="before")
    @classmethod
    def _default_optional(cls, value: object, info: ValidationInfo) -> object:
        if value is None:
            return 0 if info.field_name == "line_count" else ""
        return value


@dataclass(frozen=True, slots=True)
class BatchResult:
    index: int
    batch: Batch
    units: list[ExtractedUnit] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ExtractionOutcome:
    chunks: list[str]
    unit_count: int


@dataclass(frozen=True, slots=True)
class CacheEntry:
    key: str
    created_at: float
    chunks: Sequence[str]
    unit_count: int
