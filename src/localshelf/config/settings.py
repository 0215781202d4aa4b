"""Application settings loaded from environment variables and .env files."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from localshelf.domain.value_objects import AUDIO_EXTENSIONS


def _default_extraction_workers() -> int:
    # At least 2, at most 8
    return min(8, max(2, os.cpu_count() or 4))


class DatabaseSettings(BaseModel):
    """Database connection settings."""

    url: str = Field(
        default="sqlite+aiosqlite:///./localshelf.db",
        description="SQLAlchemy async database URL",
    )
    echo: bool = Field(default=False, description="Log every SQL statement")
    pool_pre_ping: bool = Field(default=True, description="Check connections before use")


class ScanSettings(BaseModel):
    """Library scan settings.

    Hey future me - max_concurrent_extractions bounds BOTH the worker coroutines and the
    thread pool. Every in-flight extraction holds an open file descriptor, so don't crank
    this to 100 on a NAS mount - you'll hit "Too many open files" long before it gets faster.
    """

    max_concurrent_extractions: int = Field(
        default_factory=_default_extraction_workers,
        ge=1,
        le=64,
        description="Upper bound of files being parsed at the same time",
    )
    # NoDecode: env values are comma lists ("mp3,flac"), not JSON - the validator splits them
    audio_extensions: Annotated[frozenset[str], NoDecode] = Field(
        default=AUDIO_EXTENSIONS,
        description="Lowercase file extensions (with dot) treated as audio",
    )
    follow_symlinks: bool = Field(
        default=False, description="Descend into symlinked directories"
    )
    event_queue_size: int = Field(
        default=256,
        ge=1,
        description="Per-subscriber event buffer; oldest events are dropped when full",
    )

    @field_validator("audio_extensions", mode="before")
    @classmethod
    def _normalize_extensions(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, list | set | tuple | frozenset):
            cleaned = set()
            for ext in value:
                ext = str(ext).strip().lower()
                if not ext:
                    continue
                cleaned.add(ext if ext.startswith(".") else f".{ext}")
            return frozenset(cleaned)
        return value


class ObservabilitySettings(BaseModel):
    """Logging settings."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_logs: bool = Field(
        default=False, description="Emit JSON log lines (recommended for production)"
    )


class Settings(BaseSettings):
    """Root settings object.

    Nested values come from env vars like ``LOCALSHELF_DATABASE__URL`` or
    ``LOCALSHELF_SCAN__MAX_CONCURRENT_EXTRACTIONS``.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOCALSHELF_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "localshelf"
    app_env: Literal["development", "production", "test"] = "development"
    host: str = "127.0.0.1"
    port: int = Field(default=8765, ge=1, le=65535)
    # None = detect from the OS. Tests set True to exercise backslash normalization.
    force_windows_paths: bool | None = None

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    scan: ScanSettings = Field(default_factory=ScanSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    def _get_sqlite_db_path(self) -> Path | None:
        """Return the SQLite database file path, or None for memory/non-SQLite URLs."""
        url = self.database.url
        if not url.startswith("sqlite"):
            return None
        _, _, raw_path = url.partition(":///")
        if not raw_path or raw_path.startswith(":memory:"):
            return None
        return Path(raw_path.split("?", 1)[0])


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
