"""Level math.

Leveling Curve
--------------
A player at level *L* advances when their cumulative XP reaches
``L * 200``.  Only one level is gained per award, however large the
award, so a player who jumps past several thresholds climbs one level
on each later award until they catch up.

    Lv 1 -> 2   200 XP
    Lv 2 -> 3   400 XP
    Lv 3 -> 4   600 XP

The step is configurable per engine (``Settings.level_step``).

Level Titles
------------
Every 5 levels earns a new title:
    1-4   Wisp
    5-9   Shade
   10-14  Wraith
   15-19  Phantom
   20-24  Revenant
   25+    Ancient Spirit
"""

from __future__ import annotations

# ── leveling constants ───────────────────────────────────────────────────

BASE_LEVEL_STEP = 200


def threshold_for_level(level: int, step: int = BASE_LEVEL_STEP) -> int:
    """Cumulative XP at which a player on *level* moves up."""
    return level * step


def next_level(level: int, total_xp: int, step: int = BASE_LEVEL_STEP) -> int:
    """Level after an award that brought the player to *total_xp*."""
    if total_xp >= threshold_for_level(level, step):
        return level + 1
    return level


def xp_to_next_level(level: int, total_xp: int, step: int = BASE_LEVEL_STEP) -> int:
    """XP still needed before the next award can level the player up."""
    return max(0, threshold_for_level(level, step) - total_xp)


# ── level titles ─────────────────────────────────────────────────────────

# Ordered descending so the first match wins.
LEVEL_TITLES: list[tuple[int, str]] = [
    (25, "Ancient Spirit"),
    (20, "Revenant"),
    (15, "Phantom"),
    (10, "Wraith"),
    (5,  "Shade"),
    (1,  "Wisp"),
]


def title_for_level(level: int) -> str:
    for threshold, title in LEVEL_TITLES:
        if level >= threshold:
            return title
    return "Wisp"
