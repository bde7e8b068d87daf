"""Player state model and its JSON serialization boundary.

A :class:`PlayerState` is a plain data holder.  It carries no validation
of its own: the progression engine and the storage backends decide what
is acceptable.  ``extra_data`` is opaque to the library; it is turned
into JSON (and back) by an :class:`ExtraDataCodec` the caller chooses.

JSON shape
----------
::

    {
        "extra_data":   {...},                      # codec output
        "xp":           630,
        "level":        4,
        "last_updated": "2026-10-18T09:51:02+00:00",
        "id":           "1b4e28ba-2fa1-11d2-883f-0016d3cca427",
        "user_name":    "Ghost",
        "phrase":       "rune-7",
        "flags":        {"tutorial_completed": true}
    }
"""

from __future__ import annotations

import dataclasses
import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Generic, Protocol, TypeVar

from .errors import SerializationError

T = TypeVar("T")


# ── model ────────────────────────────────────────────────────────────────


@dataclass
class PlayerState(Generic[T]):
    """Progression record for one pseudonymous player."""

    user_name: str = ""
    phrase: str = ""
    xp: int = 0
    level: int = 1
    id: uuid.UUID | None = None
    last_updated: datetime | None = None
    flags: dict[str, bool] = field(default_factory=dict)
    extra_data: T | None = None

    def flag(self, key: str) -> bool:
        """Return the flag *key*; missing flags read as ``False``."""
        return bool((self.flags or {}).get(key, False))

    def __repr__(self) -> str:
        return (
            f"<PlayerState id={self.id} user={self.user_name!r} "
            f"level={self.level} xp={self.xp}>"
        )


@dataclass(frozen=True)
class Leader:
    """Read-only leaderboard row."""

    user_name: str
    level: int
    xp: int


# ── extra-data codecs ────────────────────────────────────────────────────


class ExtraDataCodec(Protocol[T]):
    """Converts a caller's extra data to a JSON-able value and back."""

    def dump(self, value: T | None) -> Any: ...

    def load(self, raw: Any) -> T: ...


class JSONCodec:
    """Pass-through codec for extra data that is already plain JSON.

    *default* builds the value used when a record carries no extra data.
    A ``None`` payload is stored as ``default()`` and so loads back as
    ``{}`` with the stock default, not ``None``.  Values come back the way
    JSON decodes them: tuples as lists, non-string dict keys as strings.
    Use :class:`DataclassCodec` or a custom codec when that matters.
    """

    def __init__(self, default: Callable[[], Any] = dict) -> None:
        self.default = default

    def dump(self, value: Any) -> Any:
        if value is None:
            value = self.default()
        try:
            json.dumps(value, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"extra data is not JSON serializable: {exc}"
            ) from exc
        return value

    def load(self, raw: Any) -> Any:
        return self.default() if raw is None else raw


class DataclassCodec(Generic[T]):
    """Codec for extra data modelled as a flat dataclass."""

    def __init__(self, cls: type[T]) -> None:
        if not dataclasses.is_dataclass(cls):
            raise TypeError(f"{cls!r} is not a dataclass")
        self.cls = cls

    def dump(self, value: T | None) -> dict[str, Any]:
        if value is None:
            return {}
        if not isinstance(value, self.cls):
            raise SerializationError(
                f"expected {self.cls.__name__}, got {type(value).__name__}"
            )
        return JSONCodec().dump(dataclasses.asdict(value))

    def load(self, raw: Any) -> T:
        try:
            return self.cls(**(raw or {}))
        except TypeError as exc:
            raise SerializationError(
                f"cannot build {self.cls.__name__} from extra data: {exc}"
            ) from exc


DEFAULT_CODEC = JSONCodec()


# ── field encoders ───────────────────────────────────────────────────────


def encode_flags(flags: dict[str, bool] | None) -> dict[str, bool]:
    """Validate *flags* and return a fresh string → bool mapping."""
    if flags is None:
        return {}
    if not isinstance(flags, dict):
        raise SerializationError(
            f"flags must be a mapping, got {type(flags).__name__}"
        )
    for key, value in flags.items():
        if not isinstance(key, str) or not isinstance(value, bool):
            raise SerializationError(
                f"flags must map str to bool, got {key!r}: {value!r}"
            )
    return dict(flags)


def decode_flags(raw: Any) -> dict[str, bool]:
    """Decode stored flags (a mapping or its JSON text)."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise SerializationError(f"failed to decode flags: {exc}") from exc
    return encode_flags(raw)


def encode_extra(value: Any, codec: ExtraDataCodec | None = None) -> Any:
    codec = codec or DEFAULT_CODEC
    try:
        return codec.dump(value)
    except SerializationError:
        raise
    except Exception as exc:
        raise SerializationError(f"failed to encode extra data: {exc}") from exc


def decode_extra(raw: Any, codec: ExtraDataCodec | None = None) -> Any:
    codec = codec or DEFAULT_CODEC
    try:
        return codec.load(raw)
    except SerializationError:
        raise
    except Exception as exc:
        raise SerializationError(f"failed to decode extra data: {exc}") from exc


def as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo; stored timestamps are always UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ── JSON boundary ────────────────────────────────────────────────────────


def to_dict(state: PlayerState, codec: ExtraDataCodec | None = None) -> dict:
    """Return the JSON-able representation of *state*."""
    last_updated = as_utc(state.last_updated)
    return {
        "extra_data": encode_extra(state.extra_data, codec),
        "xp": state.xp,
        "level": state.level,
        "last_updated": last_updated.isoformat() if last_updated else None,
        "id": str(state.id) if state.id else None,
        "user_name": state.user_name,
        "phrase": state.phrase,
        "flags": encode_flags(state.flags),
    }


def from_dict(data: dict, codec: ExtraDataCodec | None = None) -> PlayerState:
    """Build a :class:`PlayerState` from :func:`to_dict` output."""
    try:
        raw_id = data.get("id")
        raw_ts = data.get("last_updated")
        return PlayerState(
            id=uuid.UUID(str(raw_id)) if raw_id else None,
            user_name=data["user_name"],
            phrase=data["phrase"],
            xp=int(data.get("xp", 0)),
            level=int(data.get("level", 1)),
            last_updated=as_utc(datetime.fromisoformat(raw_ts)) if raw_ts else None,
            flags=decode_flags(data.get("flags")),
            extra_data=decode_extra(data.get("extra_data"), codec),
        )
    except SerializationError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise SerializationError(f"malformed player state: {exc!r}") from exc


def dumps(state: PlayerState, codec: ExtraDataCodec | None = None) -> str:
    """Serialize *state* to JSON text."""
    return json.dumps(to_dict(state, codec))


def loads(text: str | bytes, codec: ExtraDataCodec | None = None) -> PlayerState:
    """Parse JSON text produced by :func:`dumps`."""
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise SerializationError(f"invalid player state JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise SerializationError("player state JSON must be an object")
    return from_dict(data, codec)
