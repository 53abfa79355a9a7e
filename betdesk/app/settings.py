"""Environment-backed configuration helpers shared by the backend modules."""

from __future__ import annotations

import os

PAGE_SIZE_ENV = "TICKETS_PAGE_SIZE"
MAX_PAGE_SIZE_ENV = "TICKETS_MAX_PAGE_SIZE"
LOG_LEVEL_ENV = "LOG_LEVEL"
RUN_MIGRATIONS_ENV = "RUN_MIGRATIONS_ON_STARTUP"

DEFAULT_PAGE_SIZE = 10
DEFAULT_MAX_PAGE_SIZE = 100


def read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return value


def read_bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def listing_page_size() -> int:
    """Default number of tickets shown per listing page."""

    return max(read_int_env(PAGE_SIZE_ENV, DEFAULT_PAGE_SIZE), 1)


def listing_max_page_size() -> int:
    return max(read_int_env(MAX_PAGE_SIZE_ENV, DEFAULT_MAX_PAGE_SIZE), 1)


def log_level() -> str:
    return os.getenv(LOG_LEVEL_ENV, "INFO").strip().upper() or "INFO"
