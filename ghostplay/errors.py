"""Error kinds raised by Ghostplay.

Every failure surfaced by the library is a :class:`GhostplayError`
carrying one of a small, closed set of :class:`ErrorKind` values.  Match
on the subclass or on ``err.kind``::

    try:
        state = engine.load_by_phrase("rune-7")
    except PlayerNotFoundError:
        ...

``PlayerNotFoundError`` is an expected outcome (the player simply hasn't
been created yet), not a defect.
"""

from __future__ import annotations

import enum


class ErrorKind(enum.Enum):
    DATABASE_CONNECTION = "database_connection"
    PLAYER_NOT_FOUND = "player_not_found"
    INVALID_DATA = "invalid_data"
    SERIALIZATION_FAILURE = "serialization_failure"


class GhostplayError(Exception):
    """Base class for every error raised by Ghostplay."""

    kind: ErrorKind

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind.value.replace("_", " "))
        self.message = message

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind.value} {self.message!r}>"


class DatabaseConnectionError(GhostplayError):
    """The storage backend is unreachable or the call ran out of time."""

    kind = ErrorKind.DATABASE_CONNECTION


class PlayerNotFoundError(GhostplayError):
    """No player matches the requested identifier or phrase."""

    kind = ErrorKind.PLAYER_NOT_FOUND


class InvalidDataError(GhostplayError):
    """The caller supplied malformed input."""

    kind = ErrorKind.INVALID_DATA


class SerializationError(GhostplayError):
    """Flags or extra data could not be encoded or decoded."""

    kind = ErrorKind.SERIALIZATION_FAILURE
