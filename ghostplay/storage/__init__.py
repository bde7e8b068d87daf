"""Storage package."""

from .base import Storage
from .cache import CachedStorage
from .memory import MemoryStorage

__all__ = ["Storage", "CachedStorage", "MemoryStorage"]
