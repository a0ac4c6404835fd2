"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class InfractionImportSettings:
    """
    Runtime settings for infraction CSV imports.
    """

    max_row_errors: int = 500
    log_row_errors: bool = True
    max_upload_bytes: int = 5 * 1024 * 1024
    duplicate_preview_length: int = 100
    temp_dir: str | None = None


@lru_cache(maxsize=1)
def get_infraction_import_settings() -> InfractionImportSettings:
    """
    Return cached infraction import settings from environment variables.
    """

    temp_dir = _get_str_env("IMPORT_TEMP_DIR", "")
    return InfractionImportSettings(
        max_row_errors=max(1, _get_int_env("IMPORT_MAX_ROW_ERRORS", 500)),
        log_row_errors=_get_bool_env("IMPORT_LOG_ROW_ERRORS", True),
        max_upload_bytes=max(1, _get_int_env("IMPORT_MAX_UPLOAD_BYTES", 5 * 1024 * 1024)),
        duplicate_preview_length=max(10, _get_int_env("IMPORT_DUPLICATE_PREVIEW_LENGTH", 100)),
        temp_dir=temp_dir or None,
    )
