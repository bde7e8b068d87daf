"""Level badges.

Badge Catalog
-------------
    Lv 1   First Haunt     created a ghost
    Lv 2   Flicker         first level-up
    Lv 5   Restless        reached level 5
    Lv 10  Poltergeist     reached level 10
    Lv 20  Legend of the Halls

Persistence
-----------
Badges are not a separate table.  An earned badge is stored as a
``badge:<key>`` flag set to ``True`` in the player's ``flags``, so it
survives any backend that stores flags.  Once earned a badge is never
taken away.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..state import PlayerState

BADGE_FLAG_PREFIX = "badge:"


@dataclass(frozen=True)
class BadgeDef:
    key: str
    name: str
    required_level: int
    description: str


BADGES: list[BadgeDef] = [
    BadgeDef("first_haunt", "First Haunt", 1, "Created a ghost."),
    BadgeDef("flicker", "Flicker", 2, "Reached level 2."),
    BadgeDef("restless", "Restless", 5, "Reached level 5."),
    BadgeDef("poltergeist", "Poltergeist", 10, "Reached level 10."),
    BadgeDef("legend", "Legend of the Halls", 20, "Reached level 20."),
]


def badge_flag(key: str) -> str:
    return f"{BADGE_FLAG_PREFIX}{key}"


class BadgeRegistry:
    """A catalogue of badges and the logic to hand them out."""

    def __init__(self, badges: list[BadgeDef] | None = None) -> None:
        self._badges: dict[str, BadgeDef] = {}
        for badge in BADGES if badges is None else badges:
            if badge.key in self._badges:
                raise ValueError(f"duplicate badge key {badge.key!r}")
            self._badges[badge.key] = badge

    def __iter__(self):
        return iter(self._badges.values())

    def __len__(self) -> int:
        return len(self._badges)

    def get(self, key: str) -> BadgeDef | None:
        return self._badges.get(key)

    def available_at(self, level: int) -> list[BadgeDef]:
        """Every badge a player on *level* qualifies for."""
        return [b for b in self._badges.values() if level >= b.required_level]

    def earned(self, state: PlayerState) -> list[BadgeDef]:
        """Badges already recorded on *state*."""
        return [b for b in self._badges.values() if state.flag(badge_flag(b.key))]

    def award(
        self,
        state: PlayerState,
        previous_flags: dict[str, bool] | None = None,
    ) -> list[BadgeDef]:
        """Record every badge *state* has earned but doesn't carry yet.

        Badge flags present in *previous_flags* (the stored record) are
        kept even if the caller dropped them.  Returns only the badges
        that are new.
        """
        if state.flags is None:
            state.flags = {}
        for key, value in (previous_flags or {}).items():
            if key.startswith(BADGE_FLAG_PREFIX) and value:
                state.flags[key] = True

        new_badges: list[BadgeDef] = []
        for badge in self.available_at(state.level):
            flag = badge_flag(badge.key)
            if not state.flags.get(flag):
                state.flags[flag] = True
                new_badges.append(badge)
        return new_badges
