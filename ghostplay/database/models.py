"""SQLAlchemy table definition for player state.

The table name is chosen by the application, so the table is built with
Core objects rather than a declarative class.  Queries bind to the
:class:`~sqlalchemy.Table` object; names are quoted by SQLAlchemy and
never pasted into SQL text.
"""

from datetime import datetime, timezone
import uuid

from sqlalchemy import (
    BigInteger, Column, DateTime, Integer, JSON, MetaData, String, Table, Uuid
)

DEFAULT_TABLE_NAME = "player_state"

metadata = MetaData()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def player_state_table(name: str = DEFAULT_TABLE_NAME) -> Table:
    """Return the player state table called *name*, defining it on first use."""
    existing = metadata.tables.get(name)
    if existing is not None:
        return existing

    return Table(
        name,
        metadata,
        Column("id", Uuid, primary_key=True, default=uuid.uuid4),
        Column("phrase", String(255), nullable=False, unique=True),
        Column("user_name", String(255), nullable=False),
        Column("level", Integer, nullable=False, default=1),
        Column("xp", BigInteger, nullable=False, default=0),
        Column("last_updated", DateTime(timezone=True), nullable=False, default=_utcnow),
        Column("flags", JSON, nullable=True, default=lambda: {}),
        Column("extra_data", JSON, nullable=True, default=lambda: {}),
    )
