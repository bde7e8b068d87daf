"""Library settings with JSON persistence.

Settings live wherever the application keeps its config; Ghostplay
only reads the file it's given and never consults the environment.

Usage::

    settings = load_settings("ghostplay.json")
    settings.level_step = 250
    save_settings(settings, "ghostplay.json")
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict, fields
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Everything an application may tune."""

    # ── storage ───────────────────────────────────────────────────────
    database_url: str = "sqlite:///:memory:"
    table_name: str = "player_state"
    echo_sql: bool = False
    cache_enabled: bool = False

    # ── progression ───────────────────────────────────────────────────
    level_step: int = 200                  # XP per level: threshold = level * step


def load_settings(path: str | Path) -> Settings:
    """Load settings from *path*, falling back to defaults."""
    path = Path(path)
    if not path.exists():
        return Settings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return Settings()
    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: not a JSON object", path)
        return Settings()

    # Only use keys that exist in the dataclass
    valid_keys = {f.name for f in fields(Settings)}
    filtered = {k: v for k, v in data.items() if k in valid_keys}
    return Settings(**filtered)


def save_settings(settings: Settings, path: str | Path) -> None:
    """Write settings to *path* as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(asdict(settings), indent=2) + "\n",
        encoding="utf-8",
    )
