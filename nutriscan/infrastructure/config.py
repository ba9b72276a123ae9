"""Configuration utilities for the client core."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_API_BASE_URL = "http://localhost:3000/api"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_STORAGE_PATH = "~/.nutriscan/storage.json"


def get_api_base_url() -> str:
    """
    Get backend base URL.

    Returns:
        NUTRISCAN_API_BASE_URL without trailing slash, defaults to
        http://localhost:3000/api
    """
    return os.getenv("NUTRISCAN_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/")


def get_timeout_seconds() -> float:
    """Transport timeout from NUTRISCAN_TIMEOUT_SECONDS (default 10s)."""
    raw = os.getenv("NUTRISCAN_TIMEOUT_SECONDS")
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS
    return value if value > 0 else DEFAULT_TIMEOUT_SECONDS


def get_max_retries() -> int:
    """GET retry attempts from NUTRISCAN_MAX_RETRIES (default 3, min 1)."""
    raw = os.getenv("NUTRISCAN_MAX_RETRIES")
    if not raw:
        return DEFAULT_MAX_RETRIES
    try:
        return max(1, int(raw))
    except ValueError:
        return DEFAULT_MAX_RETRIES


def get_storage_path() -> Path:
    """Session file location from NUTRISCAN_STORAGE_PATH."""
    return Path(os.getenv("NUTRISCAN_STORAGE_PATH", DEFAULT_STORAGE_PATH)).expanduser()


def get_log_level() -> str:
    return os.getenv("NUTRISCAN_LOG_LEVEL", "INFO").upper()


def get_log_json() -> bool:
    return os.getenv("NUTRISCAN_LOG_JSON", "").strip().lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class ClientSettings:
    """Resolved client configuration."""

    api_base_url: str = DEFAULT_API_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    storage_path: Path = Path(DEFAULT_STORAGE_PATH).expanduser()
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls, api_base_url: Optional[str] = None) -> "ClientSettings":
        """Build settings from environment variables.

        Args:
            api_base_url: Override for NUTRISCAN_API_BASE_URL
        """
        return cls(
            api_base_url=(api_base_url or get_api_base_url()).rstrip("/"),
            timeout_seconds=get_timeout_seconds(),
            max_retries=get_max_retries(),
            storage_path=get_storage_path(),
            log_level=get_log_level(),
            log_json=get_log_json(),
        )
