"""The storage contract every Ghostplay backend implements."""

from __future__ import annotations

import abc
import uuid

from ..errors import InvalidDataError
from ..state import Leader, PlayerState


class Storage(abc.ABC):
    """Persistence for :class:`PlayerState` records.

    Contract
    --------
    ``get`` / ``get_by_phrase``
        Return the stored state or raise ``PlayerNotFoundError``.
    ``save``
        Upsert.  A ``None`` id is allowed and is generated on insert;
        empty ``user_name`` or ``phrase`` raise ``InvalidDataError``.
    ``leaderboard``
        Top *limit* players by XP, highest first.

    *timeout* is the caller's deadline in seconds (``None`` = no limit).
    Backends must honour it rather than impose their own.
    """

    @abc.abstractmethod
    def get(
        self, player_id: uuid.UUID, *, timeout: float | None = None,
    ) -> PlayerState: ...

    @abc.abstractmethod
    def get_by_phrase(
        self, phrase: str, *, timeout: float | None = None,
    ) -> PlayerState: ...

    @abc.abstractmethod
    def save(
        self, state: PlayerState, *, timeout: float | None = None,
    ) -> None: ...

    @abc.abstractmethod
    def leaderboard(
        self, limit: int, *, timeout: float | None = None,
    ) -> list[Leader]: ...


# ── shared argument checks ───────────────────────────────────────────────


def check_id(player_id: uuid.UUID | None) -> None:
    if player_id is None or player_id == uuid.UUID(int=0):
        raise InvalidDataError("player ID cannot be nil")


def check_phrase(phrase: str) -> None:
    if not phrase:
        raise InvalidDataError("phrase cannot be empty")


def check_names(state: PlayerState) -> None:
    if not state.user_name or not state.phrase:
        raise InvalidDataError("username and phrase cannot be empty")


def check_limit(limit: int) -> None:
    if limit <= 0:
        raise InvalidDataError("leaderboard limit must be greater than zero")


# XP is unsigned but SQL backends store it in a signed 64-bit column.
MAX_XP = 2**63 - 1


def check_counters(state: PlayerState) -> None:
    if not 0 <= state.xp <= MAX_XP:
        raise InvalidDataError(f"xp must be between 0 and {MAX_XP}")
    if state.level < 1:
        raise InvalidDataError("level must be at least 1")
