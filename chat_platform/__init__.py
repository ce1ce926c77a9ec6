"""
chat_platform package initializer.
"""

from . import storage
from . import queries

__all__ = ["storage", "queries"]
