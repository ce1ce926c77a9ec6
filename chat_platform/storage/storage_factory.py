"""
Storage factory: switch storage backend from config (lazy env version)
=====================================================================

This module centralizes selection of the storage backend so the rest of the
app can stay ignorant of where data lives.

- Reads environment **at call time** to avoid stale values in tests.
- Only the in-memory local cache ships today; a database backend plugs in
  here by implementing `BaseStorage`.

Environment variables
---------------------
- CHAT_STORAGE_BACKEND: "memory" (default)
"""

import logging
import os
from typing import Optional

from .base import BaseStorage
from .local_cache import LocalCache

log = logging.getLogger("chat.storage")


def get_storage(backend: Optional[str] = None, **kwargs) -> BaseStorage:
    """
    Return a storage backend based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory" (default). If omitted, reads CHAT_STORAGE_BACKEND.
    kwargs : dict
        Extra args passed to the backend constructor (e.g. clock=...).

    Raises
    ------
    ValueError
        If the backend name is unknown.
    """
    # Read env **now** to avoid capturing stale values at import time
    be = (backend or os.getenv("CHAT_STORAGE_BACKEND", "memory")).strip().lower()
    log.debug("Selected storage backend: %r", be)

    if be == "memory":
        return LocalCache(**kwargs)

    raise ValueError(f"Unknown storage backend: {be!r}")
