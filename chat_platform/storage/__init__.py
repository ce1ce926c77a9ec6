from .base import BaseStorage
from .local_cache import LocalCache
from .storage_factory import get_storage

__all__ = ["BaseStorage", "LocalCache", "get_storage"]
