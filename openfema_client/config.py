"""
Runtime configuration for the OpenFEMA client.

Settings are read from environment variables (a ``.env`` file at the project
root is loaded first):

1. OPENFEMA_BASE_URL: API root (default: https://www.fema.gov/api/open)
2. OPENFEMA_TIMEOUT_SECONDS: per-request timeout (default: 60)
3. OPENFEMA_PAGE_SIZE: rows per page, clamped to 1..1000 (default: 1000)
4. OPENFEMA_USER_AGENT: User-Agent header sent with every request

Invalid values are logged and replaced by the default.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_project_root = Path(__file__).parent.parent  # openfema_client/config.py -> project root
load_dotenv(dotenv_path=_project_root / ".env")

DEFAULT_BASE_URL = "https://www.fema.gov/api/open"
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_USER_AGENT = "openfema-client/0.1.0"

# OpenFEMA never returns more than this many rows per call
MAX_PAGE_SIZE = 1000


@dataclass(frozen=True)
class ClientSettings:
    """Resolved client configuration."""

    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    page_size: int = MAX_PAGE_SIZE
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls) -> "ClientSettings":
        """Build settings from OPENFEMA_* environment variables."""
        base_url = os.getenv("OPENFEMA_BASE_URL") or DEFAULT_BASE_URL
        user_agent = os.getenv("OPENFEMA_USER_AGENT") or DEFAULT_USER_AGENT

        timeout = DEFAULT_TIMEOUT_SECONDS
        env_timeout = os.getenv("OPENFEMA_TIMEOUT_SECONDS")
        if env_timeout:
            try:
                timeout = float(env_timeout)
                if timeout <= 0:
                    raise ValueError(env_timeout)
            except ValueError:
                logger.warning(
                    f"Invalid OPENFEMA_TIMEOUT_SECONDS value: {env_timeout}. "
                    f"Using default: {DEFAULT_TIMEOUT_SECONDS}s"
                )
                timeout = DEFAULT_TIMEOUT_SECONDS

        page_size = MAX_PAGE_SIZE
        env_page_size = os.getenv("OPENFEMA_PAGE_SIZE")
        if env_page_size:
            try:
                page_size = clamp_page_size(int(env_page_size))
            except ValueError:
                logger.warning(
                    f"Invalid OPENFEMA_PAGE_SIZE value: {env_page_size}. "
                    f"Using default: {MAX_PAGE_SIZE}"
                )
                page_size = MAX_PAGE_SIZE

        return cls(
            base_url=base_url.rstrip("/"),
            timeout_seconds=timeout,
            page_size=page_size,
            user_agent=user_agent,
        )


def clamp_page_size(page_size: int) -> int:
    """Clamp a requested page size to the API's 1..1000 range."""
    if page_size > MAX_PAGE_SIZE:
        logger.warning(
            f"Page size {page_size} exceeds the API maximum; using {MAX_PAGE_SIZE}"
        )
        return MAX_PAGE_SIZE
    if page_size < 1:
        raise ValueError(f"Page size must be >= 1, got {page_size}")
    return page_size


# Global settings instance (singleton)
_settings: Optional[ClientSettings] = None


def get_settings() -> ClientSettings:
    """
    Get the process-wide settings (read from the environment once).

    Returns:
        ClientSettings instance
    """
    global _settings
    if _settings is None:
        _settings = ClientSettings.from_env()
    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
