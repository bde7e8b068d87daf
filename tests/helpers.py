"""Shared test helpers for Ghostplay."""

import uuid
from dataclasses import dataclass, field

from ghostplay.state import PlayerState


@dataclass
class Inventory:
    """A typical caller-defined extra-data payload."""

    gold: int = 0
    items: list = field(default_factory=list)
    favourite_room: str = ""


def make_state(
    user_name: str = "Ghost",
    phrase: str = "rune-7",
    **kwargs,
) -> PlayerState:
    return PlayerState(user_name=user_name, phrase=phrase, **kwargs)


def seed(storage, *, level: int, xp: int, phrase: str = "rune-7", **kwargs) -> PlayerState:
    """Store a player directly, bypassing the engine."""
    state = make_state(
        phrase=phrase, level=level, xp=xp, id=uuid.uuid4(), **kwargs,
    )
    storage.save(state)
    return state
