"""
Runtime configuration.

Settings are read from SLIPKIT_* environment variables. A .env file is loaded
first (without overriding variables that are already set), so local
development can keep its configuration next to the project.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import find_dotenv, load_dotenv

DEFAULT_SLIP_NUMBER_FORMAT = "PS-{SEQ}"


@dataclass(frozen=True)
class Settings:
    """Configuration shared by the report service, cache and store."""
    cache_ttl_seconds: float = 60.0
    cache_capacity: int = 256
    default_limit: int = 10
    max_limit: int = 100
    default_range_days: int = 30
    slip_number_format: str = DEFAULT_SLIP_NUMBER_FORMAT
    log_level: str = "INFO"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def load_settings(env_file: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load settings from the environment.

    Args:
        env_file: Optional path to a .env file. When omitted, python-dotenv
            searches for a .env file from the current directory upwards.

    Returns:
        Settings instance

    Raises:
        ValueError: If a numeric variable cannot be parsed or is out of range
    """
    if env_file is not None:
        load_dotenv(env_file)
    else:
        load_dotenv(find_dotenv(usecwd=True))

    settings = Settings(
        cache_ttl_seconds=_env_float("SLIPKIT_CACHE_TTL_SECONDS", Settings.cache_ttl_seconds),
        cache_capacity=_env_int("SLIPKIT_CACHE_CAPACITY", Settings.cache_capacity),
        default_limit=_env_int("SLIPKIT_DEFAULT_LIMIT", Settings.default_limit),
        max_limit=_env_int("SLIPKIT_MAX_LIMIT", Settings.max_limit),
        default_range_days=_env_int("SLIPKIT_DEFAULT_RANGE_DAYS", Settings.default_range_days),
        slip_number_format=(
            os.getenv("SLIPKIT_SLIP_NUMBER_FORMAT") or DEFAULT_SLIP_NUMBER_FORMAT
        ).strip(),
        log_level=(os.getenv("SLIPKIT_LOG_LEVEL") or "INFO").strip().upper(),
    )

    if settings.cache_capacity < 1:
        raise ValueError("SLIPKIT_CACHE_CAPACITY must be at least 1")
    if settings.default_limit < 1 or settings.max_limit < settings.default_limit:
        raise ValueError(
            "SLIPKIT_DEFAULT_LIMIT must be positive and not exceed SLIPKIT_MAX_LIMIT"
        )
    if settings.default_range_days < 1:
        raise ValueError("SLIPKIT_DEFAULT_RANGE_DAYS must be at least 1")

    return settings
