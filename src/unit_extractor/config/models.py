from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FileRotationSettings(BaseModel):
    """
    Date-based rotation settings (daily).

    This maps cleanly to Python's standard library TimedRotatingFileHandler behavior.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backup_count: int = 7


class FileLoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = ""
    rotation: FileRotationSettings = FileRotationSettings()


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    level: str = "INFO"
    # Floor for HTTP and LLM client libraries, which log every request at INFO
    library_level: str = "WARNING"
    file: FileLoggingSettings = FileLoggingSettings()


class InferenceSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    backend: Literal["http", "langchain"] = "http"
    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 4000
    max_retries: int = 0


class ExtractionSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    # Per-call deadline: min(max_timeout, min_timeout + size_kb * per_kb_timeout)
    min_timeout_seconds: float = 30.0
    max_timeout_seconds: float = 90.0
    per_kb_timeout_seconds: float = 0.5

    concurrency: int = Field(default=3, ge=1)
    max_files: int = Field(default=35, ge=1)

    # Batching
    min_chars_per_call: int = 1500
    max_chars_per_call: int = Field(default=12000, ge=1)

    # Pre-filter
    max_file_bytes: int = 5 * 1024 * 1024
    skip_irrelevant_paths: bool = True

    # Unit validity floors
    min_unit_chars: int = 100
    min_unit_lines: int = 5
    min_code_lines: int = 4

    # Empty disables the file audit trail
    audit_log_path: str = ""

    @model_validator(mode="after")
    def _check_timeouts(self) -> ExtractionSettings:
        if self.min_timeout_seconds > self.max_timeout_seconds:
            raise ValueError("min_timeout_seconds must not exceed max_timeout_seconds")
        return self


class PrefetchSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    ttl_seconds: float = Field(default=15 * 60, gt=0)


class AppConfig(BaseModel):
    """Effective runtime configuration after applying all precedence rules."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    logging: LoggingSettings = LoggingSettings()
    inference: InferenceSettings = InferenceSettings()
    extraction: ExtractionSettings = ExtractionSettings()
    prefetch: PrefetchSettings = PrefetchSettings()


@dataclass(frozen=True, slots=True)
class ConfigLoadRequest:
    """
    Optional inputs for a configuration loader.

    Implementations may use these to control where configuration is read from.
    """

    yaml_path: Optional[str] = "data/config/config.yaml"
    env_prefix: str = "UNIT_EXTRACTOR__"
    dotenv_path: Optional[str] = "data/.env"
