"""Centralized logging helpers: setup, structured extras and timing."""
from __future__ import annotations

import logging
import os
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None, quiet: bool = False) -> None:
    """Configure the root logger once per process.

    The level comes from the explicit argument, then NUGETFETCH_LOG_LEVEL,
    then INFO.

    Args:
        level: Level name such as "DEBUG".
        log_file: Optional path for an additional file handler.
        quiet: Only show errors on the console.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)
    if not isinstance(level_value, int):
        level_value = logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    if quiet:
        console.setLevel(logging.ERROR)
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s " + Constants.LOG_FORMAT))
        root.addHandler(file_handler)

    root.setLevel(level_value)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an `extra=` mapping for structured log records, dropping None values."""
    return {k: v for k, v in fields.items() if v is not None}


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from this logger would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def safe_url(url: str) -> str:
    """Strip credentials, query string and fragment from a URL for logging."""
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return "<invalid-url>"
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    return urllib.parse.urlunsplit((parts.scheme, netloc, parts.path, "", ""))


class Timer:
    """Context manager measuring wall-clock duration in milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
