"""
Environment-based configuration.
Nothing here is secret; every value has a working default.

Usage:
    from config.settings import settings
    print(settings.api_base_url)
"""

from __future__ import annotations
import os
from dataclasses import dataclass


def _optional(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


@dataclass(frozen=True)
class Settings:
    # --- Content API ---
    api_base_url: str                 # e.g. https://broadcast-backend-2.onrender.com/api
    request_timeout_s: float          # Per-attempt ceiling for one HTTP request
    max_retries: int                  # Extra attempts after the first (5xx / network only)
    retry_backoff_s: float            # Backoff base: sleep base * 2**attempt between attempts

    # --- Auto-refresh ---
    refresh_debounce_s: float         # Quiet period that coalesces a burst of updates
    refresh_timeout_s: float          # Reload ceiling; releases the in-flight lock

    # --- Cross-process updates ---
    realtime_relay_url: str           # ws:// URL of an UpdateRelay; empty = in-process only
    relay_host: str
    relay_port: int

    # --- Runtime ---
    log_level: str
    screens_config_path: str


def load_settings() -> Settings:
    return Settings(
        api_base_url=_optional("DREAMLIVE_API_URL", "https://broadcast-backend-2.onrender.com/api"),
        request_timeout_s=float(_optional("REQUEST_TIMEOUT_S", "10")),
        max_retries=int(_optional("MAX_RETRIES", "2")),
        retry_backoff_s=float(_optional("RETRY_BACKOFF_S", "1.0")),
        refresh_debounce_s=float(_optional("REFRESH_DEBOUNCE_S", "0.3")),
        refresh_timeout_s=float(_optional("REFRESH_TIMEOUT_S", "8")),
        realtime_relay_url=_optional("REALTIME_RELAY_URL"),
        relay_host=_optional("RELAY_HOST", "127.0.0.1"),
        relay_port=int(_optional("RELAY_PORT", "8765")),
        log_level=_optional("LOG_LEVEL", "INFO"),
        screens_config_path=_optional("SCREENS_CONFIG", "config/screens.yaml"),
    )


# Module-level singleton, loaded once at startup
settings = load_settings()
