"""Environment-driven runtime settings."""

from __future__ import annotations

import logging
import os


def normalize_bool(value: str | None, default: bool = False) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


def log_level() -> int:
    name = os.getenv("LOG_LEVEL", "INFO").upper()
    return getattr(logging, name, logging.INFO)


def sql_echo_enabled() -> bool:
    return normalize_bool(os.getenv("SQL_ECHO"), default=False)


def configure_logging() -> None:
    """Apply LOG_LEVEL to the root logger and the package logger."""
    level = log_level()
    logging.basicConfig(level=level)
    logging.getLogger("memory_hole").setLevel(level)
