"""Database package."""

from .db import configure_engine, dispose_engine, get_engine, get_session
from .models import DEFAULT_TABLE_NAME, player_state_table
from .store import SQLStorage

__all__ = [
    "configure_engine",
    "dispose_engine",
    "get_engine",
    "get_session",
    "DEFAULT_TABLE_NAME",
    "player_state_table",
    "SQLStorage",
]
