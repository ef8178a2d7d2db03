"""Validated runtime settings."""

from pydantic import Field, field_validator

from .base import ResearchBaseModel
from .enums import LogFormat


class RetrySettings(ResearchBaseModel):
    max_attempts: int = Field(3, ge=1, le=10)
    backoff: float = Field(1.0, ge=0.0, description="Exponential backoff multiplier in seconds")


class SearchSettings(ResearchBaseModel):
    semantic_weight: float = Field(5.0, ge=0.0)
    full_text_weight: float = Field(1.0, ge=0.0)
    full_text_limit: int = Field(200, ge=1)
    rrf_k: int = Field(50, ge=1)
    min_results: int = Field(3, ge=0, description="Below this count the universal fallback kicks in")
    fallback_to_universal: bool = True


class LoggingSettings(ResearchBaseModel):
    level: str = "WARNING"
    format: LogFormat = LogFormat.CONSOLE
    file: str | None = None

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level


class ResearchSettings(ResearchBaseModel):
    """Client settings after all configuration layers are merged."""

    base_url: str = Field("http://localhost:7272", min_length=1)
    api_key: str | None = None
    default_limit: int = Field(10, ge=1, le=1000)
    timeout: float = Field(30.0, gt=0.0)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("base_url")
    @classmethod
    def _http_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return value.rstrip("/")

    @field_validator("api_key")
    @classmethod
    def _blank_key_is_none(cls, value: str | None) -> str | None:
        return value or None
