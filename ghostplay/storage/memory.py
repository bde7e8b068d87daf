"""In-process storage backend.

Records are kept as JSON text so every read hands back an independent
copy and extra data goes through the same codec as any other backend.
Safe to share between threads.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from datetime import datetime, timezone

from ..errors import InvalidDataError, PlayerNotFoundError
from ..state import (
    DEFAULT_CODEC, ExtraDataCodec, Leader, PlayerState, dumps, encode_flags, loads,
)
from .base import (
    Storage, check_counters, check_id, check_limit, check_names, check_phrase,
)

logger = logging.getLogger(__name__)


class MemoryStorage(Storage):
    """Dictionary-backed :class:`Storage` for tests and single-process games."""

    def __init__(self, codec: ExtraDataCodec | None = None) -> None:
        self.codec = codec or DEFAULT_CODEC
        self._records: dict[uuid.UUID, str] = {}
        self._phrases: dict[str, uuid.UUID] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def get(self, player_id, *, timeout=None):
        check_id(player_id)
        with self._lock:
            text = self._records.get(player_id)
        if text is None:
            raise PlayerNotFoundError(f"no player with id {player_id}")
        return loads(text, self.codec)

    def get_by_phrase(self, phrase, *, timeout=None):
        check_phrase(phrase)
        with self._lock:
            player_id = self._phrases.get(phrase)
            text = self._records.get(player_id) if player_id else None
        if text is None:
            raise PlayerNotFoundError("no player with that phrase")
        return loads(text, self.codec)

    def save(self, state: PlayerState, *, timeout=None) -> None:
        check_names(state)
        check_counters(state)

        # The caller's object only changes once the write has gone through.
        record = copy.copy(state)
        record.id = state.id or uuid.uuid4()
        record.last_updated = state.last_updated or datetime.now(timezone.utc)
        record.flags = encode_flags(state.flags)

        # Encode before taking the lock: a bad payload never touches the store.
        text = dumps(record, self.codec)

        with self._lock:
            owner = self._phrases.get(record.phrase)
            if owner is not None and owner != record.id:
                raise InvalidDataError("phrase already belongs to another player")

            previous = self._records.get(record.id)
            if previous is not None:
                old_phrase = loads(previous, self.codec).phrase
                if old_phrase != record.phrase:
                    self._phrases.pop(old_phrase, None)
            else:
                logger.debug("Inserting player %s", record.id)

            self._records[record.id] = text
            self._phrases[record.phrase] = record.id

        state.id = record.id
        state.last_updated = record.last_updated
        state.flags = record.flags

    def leaderboard(self, limit: int, *, timeout=None) -> list[Leader]:
        check_limit(limit)
        with self._lock:
            states = [loads(text, self.codec) for text in self._records.values()]
        states.sort(key=lambda s: s.xp, reverse=True)
        return [
            Leader(user_name=s.user_name, level=s.level, xp=s.xp)
            for s in states[:limit]
        ]
