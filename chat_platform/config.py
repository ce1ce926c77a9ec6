"""
Runtime configuration for Chat Platform
=======================================

Simple settings module that reads from environment variables (only here),
and exposes a stable `settings` object for the rest of the codebase.
Avoid reading env vars anywhere else; import from this module instead.

Storage
-------
- CHAT_STORAGE_BACKEND    : "memory" (default)

Sessions
--------
- CHAT_AUTH_SECRET        : HMAC secret used to sign session tokens
- CHAT_SESSION_MAX_AGE    : session lifetime in seconds (default 30 days)
- CHAT_SESSION_COOKIE     : cookie name carrying the session token

History
-------
- CHAT_HISTORY_PAGE_SIZE  : default page size for /api/history (default 20)
"""

import os


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


# Development fallback; production deployments must set CHAT_AUTH_SECRET.
DEV_AUTH_SECRET = "chat-platform-development-secret"


class _Settings:
    # -------- Storage --------
    STORAGE_BACKEND: str = os.getenv("CHAT_STORAGE_BACKEND", "memory").strip().lower()

    # -------- Sessions --------
    AUTH_SECRET: str = os.getenv("CHAT_AUTH_SECRET", "")
    SESSION_MAX_AGE: int = max(60, _get_int("CHAT_SESSION_MAX_AGE", 30 * 24 * 60 * 60))
    SESSION_COOKIE: str = os.getenv("CHAT_SESSION_COOKIE", "authjs.session-token")

    # -------- History --------
    HISTORY_PAGE_SIZE: int = max(1, min(100, _get_int("CHAT_HISTORY_PAGE_SIZE", 20)))


settings = _Settings()
