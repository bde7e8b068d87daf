"""SQL-backed implementation of the storage contract.

Usage::

    configure_engine("postgresql+psycopg://ghost@localhost/game")
    storage = SQLStorage("player_state")
    storage.init_table()

Every call runs in its own session (see :func:`get_session`).  Backend
failures are logged and re-raised as Ghostplay errors:

    IntegrityError (duplicate phrase)   -> InvalidDataError
    any other SQLAlchemy failure        -> DatabaseConnectionError
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import DatabaseConnectionError, InvalidDataError, PlayerNotFoundError
from ..state import (
    DEFAULT_CODEC,
    ExtraDataCodec,
    Leader,
    PlayerState,
    as_utc,
    decode_extra,
    decode_flags,
    encode_extra,
    encode_flags,
)
from ..storage.base import (
    Storage, check_counters, check_id, check_limit, check_names, check_phrase,
)
from .db import get_engine, get_session
from .models import DEFAULT_TABLE_NAME, player_state_table

logger = logging.getLogger(__name__)


@contextmanager
def _backend_errors(action: str):
    try:
        yield
    except IntegrityError as exc:
        logger.error("Failed to %s: %s", action, exc.orig)
        raise InvalidDataError(
            f"failed to {action}: phrase already in use"
        ) from exc
    except SQLAlchemyError as exc:
        logger.error("Failed to %s: %s", action, exc)
        raise DatabaseConnectionError(f"failed to {action}: {exc}") from exc


def _deadline(timeout: float | None) -> float | None:
    return None if timeout is None else time.monotonic() + timeout


def _check_deadline(deadline: float | None, action: str) -> None:
    if deadline is not None and time.monotonic() > deadline:
        raise DatabaseConnectionError(f"{action} timed out")


class SQLStorage(Storage):
    """Player state stored in one SQL table."""

    def __init__(
        self,
        table_name: str = DEFAULT_TABLE_NAME,
        codec: ExtraDataCodec | None = None,
    ) -> None:
        self.table = player_state_table(table_name)
        self.codec = codec or DEFAULT_CODEC

    def init_table(self) -> None:
        """Create the table if it doesn't exist yet.  Safe to repeat."""
        with _backend_errors("create player state table"):
            self.table.create(get_engine(), checkfirst=True)

    def create_player(
        self,
        player_id: uuid.UUID,
        user_name: str,
        phrase: str,
        *,
        timeout: float | None = None,
    ) -> None:
        """Insert a bare player row with default level, XP and payloads."""
        check_id(player_id)
        if not user_name or not phrase:
            raise InvalidDataError("username and phrase cannot be empty")

        deadline = _deadline(timeout)
        with _backend_errors("create player"), get_session() as session:
            session.execute(
                insert(self.table).values(
                    id=player_id, user_name=user_name, phrase=phrase,
                )
            )
            _check_deadline(deadline, "create player")

    # ── reads ───────────────────────────────────────────────────────────

    def _to_state(self, row) -> PlayerState:
        return PlayerState(
            id=row["id"],
            user_name=row["user_name"],
            phrase=row["phrase"],
            level=row["level"],
            xp=row["xp"],
            last_updated=as_utc(row["last_updated"]),
            flags=decode_flags(row["flags"]),
            extra_data=decode_extra(row["extra_data"], self.codec),
        )

    def _fetch_one(self, condition, action: str, timeout: float | None):
        deadline = _deadline(timeout)
        with _backend_errors(action), get_session() as session:
            row = session.execute(
                select(self.table).where(condition)
            ).mappings().first()
            _check_deadline(deadline, action)
        return row

    def get(self, player_id, *, timeout=None):
        check_id(player_id)
        row = self._fetch_one(self.table.c.id == player_id, "query player data", timeout)
        if row is None:
            raise PlayerNotFoundError(f"no player with id {player_id}")
        return self._to_state(row)

    def get_by_phrase(self, phrase, *, timeout=None):
        check_phrase(phrase)
        row = self._fetch_one(
            self.table.c.phrase == phrase, "query player data by phrase", timeout,
        )
        if row is None:
            raise PlayerNotFoundError("no player with that phrase")
        return self._to_state(row)

    # ── writes ──────────────────────────────────────────────────────────

    def save(self, state: PlayerState, *, timeout=None) -> None:
        check_names(state)
        check_counters(state)

        # Encode first so a bad payload aborts before any SQL runs.
        flags = encode_flags(state.flags)
        extra = encode_extra(state.extra_data, self.codec)
        player_id = state.id or uuid.uuid4()
        last_updated = state.last_updated or datetime.now(timezone.utc)

        values = {
            "phrase": state.phrase,
            "user_name": state.user_name,
            "level": state.level,
            "xp": state.xp,
            "last_updated": last_updated,
            "flags": flags,
            "extra_data": extra,
        }

        deadline = _deadline(timeout)
        with _backend_errors("save player data"), get_session() as session:
            found = session.execute(
                select(self.table.c.id).where(self.table.c.id == player_id)
            ).first()
            if found is None:
                session.execute(insert(self.table).values(id=player_id, **values))
            else:
                session.execute(
                    update(self.table)
                    .where(self.table.c.id == player_id)
                    .values(**values)
                )
            _check_deadline(deadline, "save player data")

        state.id = player_id
        state.last_updated = last_updated
        state.flags = flags

    def leaderboard(self, limit: int, *, timeout=None) -> list[Leader]:
        check_limit(limit)
        c = self.table.c
        deadline = _deadline(timeout)
        with _backend_errors("query leaderboard"), get_session() as session:
            rows = session.execute(
                select(c.user_name, c.level, c.xp)
                .order_by(c.xp.desc())
                .limit(limit)
            ).all()
            _check_deadline(deadline, "query leaderboard")
        return [
            Leader(user_name=row.user_name, level=row.level, xp=row.xp)
            for row in rows
        ]
