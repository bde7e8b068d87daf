"""Progression package."""

from .badges import BADGES, BadgeDef, BadgeRegistry, badge_flag
from .engine import ProgressionEngine, ProgressResult
from .levels import (
    BASE_LEVEL_STEP,
    LEVEL_TITLES,
    next_level,
    threshold_for_level,
    title_for_level,
    xp_to_next_level,
)

__all__ = [
    "BADGES",
    "BadgeDef",
    "BadgeRegistry",
    "badge_flag",
    "ProgressionEngine",
    "ProgressResult",
    "BASE_LEVEL_STEP",
    "LEVEL_TITLES",
    "next_level",
    "threshold_for_level",
    "title_for_level",
    "xp_to_next_level",
]
