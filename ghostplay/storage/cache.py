"""Write-through cache in front of another :class:`Storage`.

Reads are served from memory once a player has been seen; every save
goes to the backend first and only then refreshes the cache, so a
failed write never leaves a stale entry behind.  Leaderboards always go
to the backend.

Backend writes and the cache refreshes that follow them happen under one
lock, so concurrent saves land in the cache in the order they reached
the backend.
"""

from __future__ import annotations

import logging
import threading
import uuid

from ..state import Leader, PlayerState, dumps, loads
from .base import Storage, check_id, check_phrase

logger = logging.getLogger(__name__)


class CachedStorage(Storage):
    def __init__(self, backend: Storage) -> None:
        self.backend = backend
        self.codec = getattr(backend, "codec", None)
        self._by_id: dict[uuid.UUID, str] = {}
        self._by_phrase: dict[str, uuid.UUID] = {}
        self._lock = threading.Lock()
        # Orders backend writes with their cache updates.
        self._write_lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    # ── cache bookkeeping ───────────────────────────────────────────────

    def _remember(self, state: PlayerState) -> None:
        text = dumps(state, self.codec)
        with self._lock:
            previous = self._by_id.get(state.id)
            if previous is not None:
                self._by_phrase.pop(loads(previous, self.codec).phrase, None)
            self._by_id[state.id] = text
            self._by_phrase[state.phrase] = state.id

    def _lookup(self, player_id: uuid.UUID | None) -> PlayerState | None:
        with self._lock:
            text = self._by_id.get(player_id) if player_id else None
            if text is None:
                self.misses += 1
                return None
            self.hits += 1
        logger.debug("Cache hit for player %s", player_id)
        return loads(text, self.codec)

    def invalidate(self, player_id: uuid.UUID) -> None:
        """Drop *player_id* so the next read goes to the backend."""
        with self._lock:
            text = self._by_id.pop(player_id, None)
            if text is not None:
                self._by_phrase.pop(loads(text, self.codec).phrase, None)

    def clear(self) -> None:
        with self._lock:
            self._by_id.clear()
            self._by_phrase.clear()

    # ── Storage ─────────────────────────────────────────────────────────

    def get(self, player_id, *, timeout=None):
        check_id(player_id)
        cached = self._lookup(player_id)
        if cached is not None:
            return cached
        with self._write_lock:
            state = self.backend.get(player_id, timeout=timeout)
            self._remember(state)
        return state

    def get_by_phrase(self, phrase, *, timeout=None):
        check_phrase(phrase)
        with self._lock:
            player_id = self._by_phrase.get(phrase)
        cached = self._lookup(player_id)
        if cached is not None:
            return cached
        with self._write_lock:
            state = self.backend.get_by_phrase(phrase, timeout=timeout)
            self._remember(state)
        return state

    def save(self, state: PlayerState, *, timeout=None) -> None:
        with self._write_lock:
            self.backend.save(state, timeout=timeout)
            self._remember(state)

    def leaderboard(self, limit: int, *, timeout=None) -> list[Leader]:
        return self.backend.leaderboard(limit, timeout=timeout)
