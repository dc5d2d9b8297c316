import os
from dataclasses import dataclass

from pages_utils.logger import get_logger

logger = get_logger("config")

DEFAULT_TIMEOUT_MS = 5000

_FALSY = {"", "0", "false", "no", "off"}


@dataclass(frozen=True)
class FetcherConfig:
    """Settings for the outbound version fetch, fixed per container."""

    timeout_ms: int = DEFAULT_TIMEOUT_MS
    force_http1: bool = False

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


def _flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() not in _FALSY


def load_config() -> FetcherConfig:
    """
    Build the fetcher configuration from environment variables.

    HELIX_FETCH_FORCE_HTTP1: when truthy, talk HTTP/1.1 only
    VERSION_FETCH_TIMEOUT_MS: outbound timeout in milliseconds (default 5000)

    Raises RuntimeError with a clear message if a value is invalid.
    """
    timeout_str = os.getenv("VERSION_FETCH_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS))

    try:
        timeout_ms = int(timeout_str)
    except ValueError:
        msg = (
            f"Invalid VERSION_FETCH_TIMEOUT_MS='{timeout_str}'. "
            "Must be an integer number of milliseconds."
        )
        logger.error(msg)
        raise RuntimeError(msg)

    if timeout_ms <= 0:
        msg = f"Invalid VERSION_FETCH_TIMEOUT_MS='{timeout_str}'. Must be positive."
        logger.error(msg)
        raise RuntimeError(msg)

    return FetcherConfig(
        timeout_ms=timeout_ms,
        force_http1=_flag("HELIX_FETCH_FORCE_HTTP1"),
    )
