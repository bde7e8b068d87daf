"""Tests for the progression engine.

Covers: first-time creation, one-level-per-award leveling, XP
accumulation, validation, idempotent creation, failed saves, lookups,
timeout forwarding, badges, and building an engine from settings.
"""

import uuid

import pytest

from ghostplay.errors import (
    DatabaseConnectionError,
    ErrorKind,
    InvalidDataError,
    PlayerNotFoundError,
)
from ghostplay.progression import BadgeRegistry, ProgressionEngine, badge_flag
from ghostplay.settings import Settings
from ghostplay.storage import CachedStorage, MemoryStorage
from ghostplay.storage.base import MAX_XP

from helpers import make_state, seed


class FailingStorage(MemoryStorage):
    """MemoryStorage whose writes always fail."""

    def save(self, state, *, timeout=None):
        raise DatabaseConnectionError("database is down")


class RecordingStorage(MemoryStorage):
    """MemoryStorage that remembers the timeouts it was called with."""

    def __init__(self):
        super().__init__()
        self.timeouts = []

    def get(self, player_id, *, timeout=None):
        self.timeouts.append(("get", timeout))
        return super().get(player_id, timeout=timeout)

    def save(self, state, *, timeout=None):
        self.timeouts.append(("save", timeout))
        super().save(state, timeout=timeout)


# ═══════════════════════════════════════════════════════════════════════════
#  CREATION
# ═══════════════════════════════════════════════════════════════════════════


class TestCreation:

    def test_new_player_scenario(self, engine):
        """Ghost / rune-7 with 50 XP is created at level 1."""
        state = make_state()
        result = engine.apply_progress(state, 50)

        assert result.created
        assert state.level == 1
        assert state.xp == 50
        assert state.id is not None
        assert state.last_updated is not None

        stored = engine.load_by_phrase("rune-7")
        assert stored.id == state.id
        assert stored.level == 1
        assert stored.xp == 50

    @pytest.mark.parametrize("delta", [0, 199, 200, 5_000, 1_000_000])
    def test_creation_never_levels_up(self, engine, delta):
        state = make_state()
        result = engine.apply_progress(state, delta)
        assert state.level == 1
        assert state.xp == delta
        assert not result.leveled_up

    def test_caller_level_and_xp_are_ignored_on_creation(self, engine):
        state = make_state(level=9, xp=12_345)
        engine.apply_progress(state, 10)
        assert state.level == 1
        assert state.xp == 10

    def test_supplied_id_is_kept(self, engine):
        player_id = uuid.uuid4()
        state = make_state(id=player_id)
        result = engine.apply_progress(state, 5)
        assert result.created
        assert state.id == player_id
        assert engine.load_by_id(player_id).xp == 5

    def test_none_flags_become_empty(self, engine):
        state = make_state(flags=None)
        engine.apply_progress(state, 1)
        assert state.flags == {}
        assert engine.load_by_id(state.id).flags == {}

    def test_second_call_updates_instead_of_creating(self, engine):
        state = make_state()
        first = engine.apply_progress(state, 30)
        second = engine.apply_progress(state, 30)

        assert first.created
        assert not second.created
        assert state.xp == 60
        assert len(engine.leaderboard(10)) == 1

    def test_same_id_in_fresh_object_is_an_update(self, engine):
        player_id = uuid.uuid4()
        engine.apply_progress(make_state(id=player_id), 40)
        result = engine.apply_progress(make_state(id=player_id), 40)

        assert not result.created
        assert engine.load_by_id(player_id).xp == 80
        assert len(engine.leaderboard(10)) == 1


# ═══════════════════════════════════════════════════════════════════════════
#  LEVELING
# ═══════════════════════════════════════════════════════════════════════════


class TestLeveling:

    def test_level_up_scenario(self, engine, storage):
        """Level 3 with 550 XP plus 80 crosses 600 and reaches level 4."""
        player = seed(storage, level=3, xp=550)
        result = engine.apply_progress(make_state(id=player.id), 80)

        assert result.leveled_up
        assert result.old_level == 3
        assert result.new_level == 4
        stored = engine.load_by_id(player.id)
        assert stored.xp == 630
        assert stored.level == 4

    def test_no_level_up_scenario(self, engine, storage):
        """Level 2 with 150 XP plus 10 stays below 400."""
        player = seed(storage, level=2, xp=150)
        result = engine.apply_progress(make_state(id=player.id), 10)

        assert not result.leveled_up
        stored = engine.load_by_id(player.id)
        assert stored.xp == 160
        assert stored.level == 2

    def test_exact_threshold_levels_up(self, engine, storage):
        player = seed(storage, level=1, xp=150)
        engine.apply_progress(make_state(id=player.id), 50)
        assert engine.load_by_id(player.id).level == 2

    def test_huge_award_gains_only_one_level(self, engine, storage):
        player = seed(storage, level=1, xp=0)
        state = make_state(id=player.id)
        engine.apply_progress(state, 10_000)
        assert state.level == 2
        assert state.xp == 10_000

    def test_repeated_awards_catch_up_one_level_at_a_time(self, engine, storage):
        player = seed(storage, level=1, xp=0)
        state = make_state(id=player.id)
        engine.apply_progress(state, 10_000)
        levels = []
        for _ in range(3):
            engine.apply_progress(state, 0)
            levels.append(state.level)
        assert levels == [3, 4, 5]

    def test_stored_level_wins_over_caller(self, engine, storage):
        player = seed(storage, level=2, xp=150)
        state = make_state(id=player.id, level=50, xp=0)
        engine.apply_progress(state, 10)
        assert state.level == 2
        assert state.xp == 160

    def test_level_never_decreases(self, engine, storage):
        player = seed(storage, level=7, xp=100)
        state = make_state(id=player.id)
        engine.apply_progress(state, 1)
        assert state.level == 7

    def test_custom_level_step(self, storage):
        engine = ProgressionEngine(storage, level_step=50)
        player = seed(storage, level=2, xp=90)
        engine.apply_progress(make_state(id=player.id), 10)
        assert engine.load_by_id(player.id).level == 3

    def test_invalid_level_step(self, storage):
        with pytest.raises(ValueError):
            ProgressionEngine(storage, level_step=0)


# ═══════════════════════════════════════════════════════════════════════════
#  UPDATES TO OTHER FIELDS
# ═══════════════════════════════════════════════════════════════════════════


class TestFieldUpdates:

    def test_username_change_is_saved(self, engine):
        state = make_state()
        engine.apply_progress(state, 1)
        state.user_name = "Banshee"
        engine.apply_progress(state, 1)
        assert engine.load_by_id(state.id).user_name == "Banshee"

    def test_flags_and_extra_data_are_saved(self, engine):
        state = make_state(extra_data={"gold": 1})
        engine.apply_progress(state, 1)
        state.flags["tutorial_completed"] = True
        state.extra_data = {"gold": 5, "items": ["lantern"]}
        engine.apply_progress(state, 1)

        stored = engine.load_by_id(state.id)
        assert stored.flag("tutorial_completed")
        assert stored.extra_data == {"gold": 5, "items": ["lantern"]}

    def test_none_flags_keep_stored_flags(self, engine):
        state = make_state(flags={"is_premium": True})
        engine.apply_progress(state, 1)
        engine.apply_progress(make_state(id=state.id, flags=None), 1)
        assert engine.load_by_id(state.id).flags == {"is_premium": True}

    def test_last_updated_moves_forward(self, engine):
        state = make_state()
        engine.apply_progress(state, 1)
        first = state.last_updated
        engine.apply_progress(state, 1)
        assert state.last_updated >= first


# ═══════════════════════════════════════════════════════════════════════════
#  VALIDATION & FAILURES
# ═══════════════════════════════════════════════════════════════════════════


class TestValidation:

    @pytest.mark.parametrize("user_name,phrase", [
        ("", "rune-7"),
        ("Ghost", ""),
        ("", ""),
    ])
    def test_empty_names_rejected(self, engine, user_name, phrase):
        with pytest.raises(InvalidDataError) as exc_info:
            engine.apply_progress(make_state(user_name, phrase), 10)
        assert exc_info.value.kind is ErrorKind.INVALID_DATA

    def test_rejected_state_is_not_stored(self, engine):
        with pytest.raises(InvalidDataError):
            engine.apply_progress(make_state(user_name=""), 10)
        with pytest.raises(PlayerNotFoundError):
            engine.load_by_phrase("rune-7")

    def test_negative_delta_rejected(self, engine):
        with pytest.raises(InvalidDataError):
            engine.apply_progress(make_state(), -1)

    def test_duplicate_phrase_rejected(self, engine):
        engine.apply_progress(make_state(user_name="Ghost"), 10)
        with pytest.raises(InvalidDataError):
            engine.apply_progress(make_state(user_name="Copycat"), 10)

    def test_award_past_storable_xp_rejected(self, engine, storage):
        state = seed(storage, level=1, xp=MAX_XP)
        with pytest.raises(InvalidDataError):
            engine.apply_progress(state, 1)
        assert engine.load_by_id(state.id).xp == MAX_XP

    def test_failed_save_surfaces_unchanged(self):
        engine = ProgressionEngine(FailingStorage())
        state = make_state()
        with pytest.raises(DatabaseConnectionError):
            engine.apply_progress(state, 10)

    def test_failed_save_leaves_caller_state_alone(self):
        engine = ProgressionEngine(FailingStorage())
        state = make_state(xp=3, level=2)
        with pytest.raises(DatabaseConnectionError):
            engine.apply_progress(state, 10)
        assert state.id is None
        assert state.xp == 3
        assert state.level == 2
        assert state.last_updated is None


# ═══════════════════════════════════════════════════════════════════════════
#  LOOKUPS & LEADERBOARD
# ═══════════════════════════════════════════════════════════════════════════


class TestLookups:

    def test_unknown_id(self, engine):
        with pytest.raises(PlayerNotFoundError) as exc_info:
            engine.load_by_id(uuid.uuid4())
        assert exc_info.value.kind is ErrorKind.PLAYER_NOT_FOUND

    def test_unknown_phrase(self, engine):
        with pytest.raises(PlayerNotFoundError):
            engine.load_by_phrase("nobody-home")

    def test_leaderboard_through_engine(self, engine):
        for i, xp in enumerate([10, 300, 120]):
            engine.apply_progress(make_state(f"p{i}", f"phrase-{i}"), xp)
        board = engine.leaderboard(2)
        assert [leader.xp for leader in board] == [300, 120]

    def test_leaderboard_limit_zero(self, engine):
        with pytest.raises(InvalidDataError):
            engine.leaderboard(0)

    def test_timeout_forwarded_to_storage(self):
        storage = RecordingStorage()
        engine = ProgressionEngine(storage)
        state = make_state()
        engine.apply_progress(state, 1, timeout=2.5)
        engine.apply_progress(state, 1, timeout=4.0)
        assert storage.timeouts == [
            ("save", 2.5),
            ("get", 4.0),
            ("save", 4.0),
        ]

    def test_works_through_cache(self):
        engine = ProgressionEngine(CachedStorage(MemoryStorage()))
        state = make_state()
        engine.apply_progress(state, 150)
        engine.apply_progress(state, 60)
        assert engine.load_by_id(state.id).level == 2


# ═══════════════════════════════════════════════════════════════════════════
#  BADGES
# ═══════════════════════════════════════════════════════════════════════════


class TestBadges:

    def test_first_badge_on_creation(self, badge_engine):
        state = make_state()
        result = badge_engine.apply_progress(state, 10)
        assert [b.key for b in result.badges_earned] == ["first_haunt"]
        assert state.flag(badge_flag("first_haunt"))

    def test_badge_on_level_up(self, badge_engine):
        state = make_state()
        badge_engine.apply_progress(state, 150)
        result = badge_engine.apply_progress(state, 60)
        assert result.leveled_up
        assert [b.key for b in result.badges_earned] == ["flicker"]

    def test_badges_not_awarded_twice(self, badge_engine):
        state = make_state()
        badge_engine.apply_progress(state, 10)
        result = badge_engine.apply_progress(state, 10)
        assert result.badges_earned == []

    def test_badges_survive_caller_dropping_flags(self, badge_engine):
        state = make_state()
        badge_engine.apply_progress(state, 10)
        fresh = make_state(id=state.id, flags={"tutorial_completed": True})
        badge_engine.apply_progress(fresh, 10)

        stored = badge_engine.load_by_id(state.id)
        assert stored.flag(badge_flag("first_haunt"))
        assert stored.flag("tutorial_completed")

    def test_no_badges_without_registry(self, engine):
        state = make_state()
        result = engine.apply_progress(state, 10)
        assert result.badges_earned == []
        assert state.flags == {}

    def test_custom_registry(self, memory_storage):
        from ghostplay.progression import BadgeDef
        registry = BadgeRegistry([BadgeDef("boo", "Boo!", 2, "Said boo.")])
        engine = ProgressionEngine(memory_storage, badges=registry)
        state = make_state()
        assert engine.apply_progress(state, 250).badges_earned == []
        assert [b.key for b in engine.apply_progress(state, 0).badges_earned] == ["boo"]


# ═══════════════════════════════════════════════════════════════════════════
#  SETTINGS
# ═══════════════════════════════════════════════════════════════════════════


class TestFromSettings:

    def test_sql_engine_from_settings(self):
        settings = Settings(table_name="ghosts_from_settings", level_step=100)
        engine = ProgressionEngine.from_settings(settings)
        state = make_state()
        engine.apply_progress(state, 90)
        engine.apply_progress(state, 20)
        assert engine.level_step == 100
        assert engine.load_by_phrase("rune-7").level == 2

    def test_cache_enabled(self):
        settings = Settings(table_name="ghosts_cached", cache_enabled=True)
        engine = ProgressionEngine.from_settings(settings)
        assert isinstance(engine.storage, CachedStorage)
