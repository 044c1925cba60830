from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from disk_memo.errors import PathNotWritable


class CacheSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    cache_dir: Path = Field(default=Path(".cache/disk_memo"), alias="CACHE_DIR")
    # Fallback ttl in seconds when a write passes none; 0 means never expire.
    cache_default_expires: int = Field(default=0, ge=0, alias="CACHE_DEFAULT_EXPIRES")
    serializer: Literal["json", "pickle"] = Field(default="pickle", alias="CACHE_SERIALIZER")
    # None blocks until the lock is free.
    lock_timeout_seconds: float | None = Field(default=None, alias="CACHE_LOCK_TIMEOUT")
    file_mode: int = Field(default=0o664, alias="CACHE_FILE_MODE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("file_mode", mode="before")
    @classmethod
    def _parse_octal(cls, v: Any) -> Any:
        if isinstance(v, str):
            return int(v, 8)
        return v


def ensure_cache_dir(path: Path) -> Path:
    if not path.is_dir():
        raise PathNotWritable(f"Cache path not found: {path}")
    if not os.access(path, os.W_OK):
        raise PathNotWritable(f"Cache path not writable: {path}")
    return path


def load_settings(**overrides: Any) -> CacheSettings:
    """
    Load settings from the environment (and `.env`), then verify the cache
    directory. A missing or read-only directory is fatal at startup.
    """
    settings = CacheSettings(**overrides)
    ensure_cache_dir(settings.cache_dir)
    return settings
