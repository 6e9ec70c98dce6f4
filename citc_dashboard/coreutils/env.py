from dataclasses import dataclass
from dotenv import load_dotenv
import logging
import os

load_dotenv()  # take environment variables from .env

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY_LIMIT = 8
DEFAULT_CACHE_TTL_SECONDS = 25
DEFAULT_REQUEST_TIMEOUT = 15


def env_get(key: str, default: str | None = None) -> str | None:
    """Get environment variable or return default."""
    return os.getenv(key, default)


def env_int(key: str, default: int, minimum: int = 1) -> int:
    """Read an integer env var, falling back to default on garbage."""
    raw = env_get(key)
    try:
        value = int(raw) if raw not in (None, "") else default
    except ValueError:
        logger.warning(f"Ignoring non-integer {key}={raw!r}, using {default}")
        value = default
    return max(minimum, value)


@dataclass(frozen=True)
class SyncSettings:
    """Startup-time constants injected into the sync components"""

    base_url: str | None
    api_token: str | None
    ws_token: str | None
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    log_level: str = "INFO"
    log_dir: str | None = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.base_url and self.api_token and self.ws_token)


def load_settings() -> SyncSettings:
    """Build settings from the environment (and .env)."""
    settings = SyncSettings(
        base_url=env_get("AXC_BASE"),
        api_token=env_get("AXC_API_TOKEN"),
        ws_token=env_get("AXC_WS_TOKEN"),
        concurrency_limit=env_int("CONCURRENCY_LIMIT", DEFAULT_CONCURRENCY_LIMIT),
        cache_ttl_seconds=env_int("CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS),
        request_timeout=env_int("REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT),
        log_level=(env_get("LOG_LEVEL") or "INFO").upper(),
        log_dir=env_get("LOG_DIR") or None,
    )

    if not settings.has_credentials:
        logger.warning(
            "AXC_BASE, AXC_API_TOKEN, and AXC_WS_TOKEN must be set for upstream requests."
        )

    return settings
