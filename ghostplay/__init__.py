"""Ghostplay — account-free XP, levels and badges for pseudonymous players."""

from .errors import (
    DatabaseConnectionError,
    ErrorKind,
    GhostplayError,
    InvalidDataError,
    PlayerNotFoundError,
    SerializationError,
)
from .progression import BadgeRegistry, ProgressionEngine, ProgressResult
from .settings import Settings, load_settings, save_settings
from .state import DataclassCodec, JSONCodec, Leader, PlayerState
from .storage import CachedStorage, MemoryStorage, Storage

__version__ = "0.1.0"

__all__ = [
    "DatabaseConnectionError",
    "ErrorKind",
    "GhostplayError",
    "InvalidDataError",
    "PlayerNotFoundError",
    "SerializationError",
    "BadgeRegistry",
    "ProgressionEngine",
    "ProgressResult",
    "Settings",
    "load_settings",
    "save_settings",
    "DataclassCodec",
    "JSONCodec",
    "Leader",
    "PlayerState",
    "CachedStorage",
    "MemoryStorage",
    "Storage",
]
