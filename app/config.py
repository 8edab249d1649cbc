"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

logger = logging.getLogger(__name__)

DEFAULT_BANNER_MARKERS: tuple[str, ...] = ("Bake Diary", "BakeDiary")


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
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        logger.warning("Invalid integer for %s=%r; using default %s", name, raw_value, default)
        return default


def _get_float_env(name: str, default: float) -> float:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        logger.warning("Invalid float for %s=%r; using default %s", name, raw_value, default)
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


def _get_list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Read a comma-separated list; blank entries are dropped.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items or default


@dataclass(frozen=True)
class CSVImportSettings:
    """
    Runtime settings for tabular imports.

    deadline_seconds <= 0 disables the per-batch deadline.
    """

    max_upload_bytes: int = 10 * 1024 * 1024
    max_reported_errors: int = 500
    log_row_errors: bool = True
    deadline_seconds: float = 0.0
    preview_rows: int = 10
    delimiter: str = ","
    banner_markers: tuple[str, ...] = DEFAULT_BANNER_MARKERS


@lru_cache(maxsize=1)
def get_csv_import_settings() -> CSVImportSettings:
    """
    Return cached import settings from environment variables.
    """

    delimiter = _get_str_env("CSV_IMPORT_DELIMITER", ",")
    if len(delimiter) != 1:
        logger.warning("CSV_IMPORT_DELIMITER must be one character; got %r, using ','", delimiter)
        delimiter = ","

    return CSVImportSettings(
        max_upload_bytes=max(1, _get_int_env("CSV_IMPORT_MAX_UPLOAD_BYTES", 10 * 1024 * 1024)),
        max_reported_errors=max(1, _get_int_env("CSV_IMPORT_MAX_REPORTED_ERRORS", 500)),
        log_row_errors=_get_bool_env("CSV_IMPORT_LOG_ROW_ERRORS", True),
        deadline_seconds=max(0.0, _get_float_env("CSV_IMPORT_DEADLINE_SECONDS", 0.0)),
        preview_rows=max(1, _get_int_env("CSV_IMPORT_PREVIEW_ROWS", 10)),
        delimiter=delimiter,
        banner_markers=_get_list_env("CSV_IMPORT_BANNER_MARKERS", DEFAULT_BANNER_MARKERS),
    )
