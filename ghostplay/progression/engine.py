"""Progression engine: XP awards, leveling and persistence.

Award Flow
----------
``apply_progress(state, xp_delta)``

1. ``user_name`` and ``phrase`` must be non-empty and the delta
   non-negative, otherwise ``InvalidDataError``.
2. **New player** (no id, or the storage has never seen it): a fresh id
   is assigned if needed, ``level = 1``, ``xp = xp_delta``.  No level-up
   check runs on creation, whatever the size of the first award.
3. **Known player**: ``xp = stored.xp + xp_delta``; if that reaches
   ``stored.level * level_step`` the level goes up by exactly one.
4. ``last_updated`` is stamped and the state is saved.  A failed save is
   raised unchanged and the caller's object is left as it was.

The stored ``xp`` and ``level`` always win over whatever the caller's
object carries.  ``user_name``, ``phrase``, ``flags`` and ``extra_data``
are taken from the caller.

Concurrency
-----------
The engine holds no state of its own, so one instance can serve many
threads.  It does not lock around the read-modify-write: two concurrent
awards for the same player can lose one update unless the backend or the
application serializes them.
"""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..errors import InvalidDataError, PlayerNotFoundError
from ..settings import Settings
from ..state import ExtraDataCodec, Leader, PlayerState
from ..storage.base import Storage
from .badges import BadgeDef, BadgeRegistry
from .levels import BASE_LEVEL_STEP, next_level

logger = logging.getLogger(__name__)


@dataclass
class ProgressResult:
    """Outcome of one :meth:`ProgressionEngine.apply_progress` call."""

    state: PlayerState
    created: bool
    old_level: int
    new_level: int
    xp_gained: int
    badges_earned: list[BadgeDef] = field(default_factory=list)

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level


class ProgressionEngine:
    """Applies XP awards to players kept in a :class:`Storage`."""

    def __init__(
        self,
        storage: Storage,
        *,
        level_step: int = BASE_LEVEL_STEP,
        badges: BadgeRegistry | None = None,
    ) -> None:
        if level_step <= 0:
            raise ValueError("level_step must be positive")
        self.storage = storage
        self.level_step = level_step
        self.badges = badges

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        codec: ExtraDataCodec | None = None,
        badges: BadgeRegistry | None = None,
    ) -> "ProgressionEngine":
        """Build an engine backed by the SQL store *settings* describe."""
        from ..database import SQLStorage, configure_engine
        from ..storage import CachedStorage

        configure_engine(settings.database_url, echo=settings.echo_sql)
        sql = SQLStorage(settings.table_name, codec=codec)
        sql.init_table()
        storage: Storage = CachedStorage(sql) if settings.cache_enabled else sql
        return cls(storage, level_step=settings.level_step, badges=badges)

    # ── lookups ─────────────────────────────────────────────────────────

    def load_by_id(
        self, player_id: uuid.UUID, *, timeout: float | None = None,
    ) -> PlayerState:
        return self.storage.get(player_id, timeout=timeout)

    def load_by_phrase(
        self, phrase: str, *, timeout: float | None = None,
    ) -> PlayerState:
        return self.storage.get_by_phrase(phrase, timeout=timeout)

    def leaderboard(
        self, limit: int, *, timeout: float | None = None,
    ) -> list[Leader]:
        return self.storage.leaderboard(limit, timeout=timeout)

    # ── main entry point ────────────────────────────────────────────────

    def apply_progress(
        self,
        state: PlayerState,
        xp_delta: int,
        *,
        timeout: float | None = None,
    ) -> ProgressResult:
        """Award *xp_delta* to *state* and persist it.

        On success *state* is updated in place (``id``, ``xp``,
        ``level``, ``last_updated``, ``flags``) and returned inside the
        :class:`ProgressResult`.
        """
        if not state.user_name or not state.phrase:
            raise InvalidDataError("username and phrase cannot be empty")
        if xp_delta < 0:
            raise InvalidDataError("xp delta cannot be negative")

        stored = None
        if state.id is not None:
            try:
                stored = self.storage.get(state.id, timeout=timeout)
            except PlayerNotFoundError:
                stored = None

        # Work on a copy so a failed save leaves the caller's object alone.
        pending = copy.copy(state)
        pending.flags = dict(state.flags) if state.flags is not None else None
        pending.last_updated = datetime.now(timezone.utc)

        if stored is None:
            if pending.id is None:
                pending.id = uuid.uuid4()
            logger.info("Creating new player: %s", pending.user_name)
            pending.level = 1
            pending.xp = xp_delta
            if pending.flags is None:
                pending.flags = {}
            old_level = 1
            previous_flags = None
        else:
            old_level = stored.level
            pending.xp = stored.xp + xp_delta
            pending.level = next_level(stored.level, pending.xp, self.level_step)
            if pending.flags is None:
                pending.flags = dict(stored.flags)
            previous_flags = stored.flags

        earned: list[BadgeDef] = []
        if self.badges is not None:
            earned = self.badges.award(pending, previous_flags)

        self.storage.save(pending, timeout=timeout)

        if pending.level > old_level:
            logger.info(
                "Player %s leveled up: %d -> %d",
                pending.id, old_level, pending.level,
            )

        state.id = pending.id
        state.xp = pending.xp
        state.level = pending.level
        state.last_updated = pending.last_updated
        state.flags = pending.flags

        return ProgressResult(
            state=state,
            created=stored is None,
            old_level=old_level,
            new_level=pending.level,
            xp_gained=xp_delta,
            badges_earned=earned,
        )
