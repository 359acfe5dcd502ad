"""Tests for the companion model and leveling engine."""

import pytest

from feedboard.companion.engine import BASE_XP, CompanionEngine, MenuState, UsageEvent
from feedboard.companion.model import (
    MAX_LEVEL,
    MIN_SPEED_FACTOR,
    OUTFITS,
    SKILLS,
    Companion,
    Mood,
    SkillDef,
    Species,
    apply_xp,
    mood_for,
    unlocked_outfits,
    xp_threshold,
)
from feedboard.core.scheduler import MIN_SPEED_FACTOR as scheduler_floor
from feedboard.errors import AlreadyOwned, InsufficientPoints, UnknownSkill

NOW = 1_700_000_000.0


@pytest.fixture
def flushes():
    return []


@pytest.fixture
def engine(flushes):
    return CompanionEngine(Companion.new(Species.FOX, now=NOW), on_flush=flushes.append)


class TestThresholds:
    def test_strictly_increasing(self):
        values = [xp_threshold(level) for level in range(1, MAX_LEVEL)]
        assert all(a < b for a, b in zip(values, values[1:]))

    def test_level_zero_rejected(self):
        with pytest.raises(ValueError):
            xp_threshold(0)

    def test_apply_xp_within_level(self):
        assert apply_xp(1, 0, 40) == (1, 40)

    def test_apply_xp_rolls_over_several_levels(self):
        amount = xp_threshold(1) + xp_threshold(2) + 7
        assert apply_xp(1, 0, amount) == (3, 7)

    def test_max_level_discards_xp(self):
        assert apply_xp(MAX_LEVEL, 0, 10_000) == (MAX_LEVEL, 0)

    def test_reaching_max_level_zeroes_xp(self):
        level, xp = apply_xp(MAX_LEVEL - 1, 0, xp_threshold(MAX_LEVEL - 1) + 500)
        assert (level, xp) == (MAX_LEVEL, 0)

    def test_negative_grant_rejected(self):
        with pytest.raises(ValueError):
            apply_xp(1, 0, -1)


class TestFreshCompanion:
    def test_defaults(self, engine):
        c = engine.companion
        assert (c.level, c.xp, c.skill_points) == (1, 0, 0)
        assert c.unlocked_skills == frozenset()
        assert engine.outfits() == ["plain"]
        assert engine.mood(NOW) is Mood.HAPPY

    def test_keypress_gives_base_xp(self, engine):
        assert engine.record(UsageEvent.KEYPRESS, now=NOW) == 0
        assert engine.companion.xp == BASE_XP[UsageEvent.KEYPRESS]

    def test_record_updates_last_interaction(self, engine):
        engine.record(UsageEvent.FEED_INTERACTION, now=NOW + 50)
        assert engine.companion.last_interaction == NOW + 50


class TestLevelUp:
    def test_multi_threshold_grant(self, engine, flushes):
        gained = engine.grant_xp(xp_threshold(1) + xp_threshold(2) + 10)
        c = engine.companion
        assert gained == 2
        assert c.level == 3
        assert c.xp == 10
        assert c.skill_points == 2
        assert flushes == ["level-up"]
        assert "level 3" in engine.last_message

    def test_plain_gain_only_marks_dirty(self, flushes):
        changes = []
        engine = CompanionEngine(Companion.new(now=NOW), on_flush=flushes.append, on_change=lambda: changes.append(1))
        engine.grant_xp(5)
        assert flushes == []
        assert changes == [1]

    def test_xp_to_next(self, engine):
        assert engine.xp_to_next == xp_threshold(1)
        engine.companion.level = MAX_LEVEL
        assert engine.xp_to_next is None

    def test_level_never_decreases(self, engine):
        levels = []
        for _ in range(50):
            engine.record(UsageEvent.MANUAL_REFRESH, now=NOW)
            levels.append(engine.companion.level)
        assert levels == sorted(levels)

    def test_failing_flush_callback_does_not_break_leveling(self):
        def broken(reason):
            raise OSError("disk full")

        engine = CompanionEngine(Companion.new(now=NOW), on_flush=broken)
        assert engine.grant_xp(xp_threshold(1)) == 1


class TestSkills:
    def test_purchase(self, engine, flushes):
        engine.companion.skill_points = 3
        skill = engine.purchase("quick_study")
        assert skill.id == "quick_study"
        assert engine.companion.skill_points == 2
        assert engine.owns("quick_study")
        assert flushes == ["skill"]

    def test_insufficient_points_changes_nothing(self, engine, flushes):
        engine.companion.skill_points = 1
        with pytest.raises(InsufficientPoints):
            engine.purchase("bookworm")
        assert engine.companion.skill_points == 1
        assert engine.companion.unlocked_skills == frozenset()
        assert flushes == []

    def test_already_owned_changes_nothing(self, engine):
        engine.companion.skill_points = 5
        engine.purchase("sparkles")
        with pytest.raises(AlreadyOwned):
            engine.purchase("sparkles")
        assert engine.companion.skill_points == 4

    def test_unknown_skill(self, engine):
        with pytest.raises(UnknownSkill):
            engine.purchase("teleport")

    def test_xp_multiplier(self, engine):
        engine.companion.unlocked_skills = frozenset({"quick_study", "bookworm"})
        assert engine.xp_bonus_percent() == 75
        assert engine.xp_for(UsageEvent.MANUAL_REFRESH) == BASE_XP[UsageEvent.MANUAL_REFRESH] * 175 // 100

    def test_refresh_speed_factor(self, engine):
        assert engine.refresh_speed_factor() == 1.0
        engine.companion.unlocked_skills = frozenset({"caffeinated", "overclocked"})
        assert engine.refresh_speed_factor() == pytest.approx(0.65)

    def test_refresh_speed_factor_floor_matches_scheduler(self, engine, monkeypatch):
        boost = SKILLS["overclocked"]
        monkeypatch.setitem(SKILLS, "overclocked", SkillDef(boost.id, boost.name, boost.cost, boost.effect, 95))
        engine.companion.unlocked_skills = frozenset({"caffeinated", "overclocked"})
        assert engine.refresh_speed_factor() == MIN_SPEED_FACTOR
        assert scheduler_floor is MIN_SPEED_FACTOR

    def test_skill_points_never_negative(self, engine):
        for skill_id in SKILLS:
            try:
                engine.purchase(skill_id)
            except InsufficientPoints:
                pass
            assert engine.companion.skill_points >= 0


class TestOutfitsAndMood:
    def test_outfits_follow_level(self):
        assert unlocked_outfits(1) == ["plain"]
        assert unlocked_outfits(10) == ["plain", "scarf", "bowtie", "top hat"]
        assert len(unlocked_outfits(MAX_LEVEL)) == len(OUTFITS)

    def test_equip_only_unlocked(self, engine):
        assert not engine.equip("crown")
        engine.companion.level = 30
        assert engine.equip("crown")
        assert engine.equipped_outfit == "crown"

    def test_default_outfit_is_newest(self, engine):
        engine.companion.level = 5
        assert engine.equipped_outfit == "bowtie"

    @pytest.mark.parametrize(
        "idle, mood",
        [(0, Mood.HAPPY), (9 * 60, Mood.HAPPY), (10 * 60, Mood.CONTENT), (7199, Mood.CONTENT), (7200, Mood.SLEEPY)],
    )
    def test_mood_bands(self, idle, mood):
        assert mood_for(idle) is mood


class TestMenus:
    def test_skill_menu_purchase(self, engine):
        engine.companion.skill_points = 1
        engine.open_menu(MenuState.SKILL_MENU)
        assert engine.menu_items()[0] == "quick_study"
        assert engine.activate_selection() == "Learned Quick Study!"
        assert engine.owns("quick_study")

    def test_skill_menu_reports_missing_points(self, engine):
        engine.open_menu(MenuState.SKILL_MENU)
        engine.move_selection(1)
        assert "Need 3 points" in engine.activate_selection()

    def test_outfit_menu_equips(self, engine):
        engine.companion.level = 3
        engine.open_menu(MenuState.OUTFIT_MENU)
        engine.move_selection(5)
        assert engine.menu_index == 1
        engine.activate_selection()
        assert engine.equipped_outfit == "scarf"

    def test_close_menu(self, engine):
        engine.open_menu(MenuState.OUTFIT_MENU)
        engine.close_menu()
        assert engine.menu is MenuState.IDLE
        assert engine.menu_items() == []


class TestCompanionSerialization:
    def test_unknown_keys_ignored(self):
        c = Companion.from_dict(
            {"species": "owl", "level": 2, "xp": 3, "skill_points": 1, "unlocked_skills": [],
             "last_interaction": NOW, "outfits": ["crown"], "extra": True}
        )
        assert c.species is Species.OWL
        assert c.level == 2

    @pytest.mark.parametrize(
        "patch",
        [
            {"level": 0},
            {"level": MAX_LEVEL + 1},
            {"xp": -1},
            {"xp": 10_000},
            {"skill_points": -2},
            {"unlocked_skills": ["sparkles", "sparkles"]},
            {"unlocked_skills": ["teleport"]},
            {"species": "unicorn"},
            {"level": "3"},
        ],
    )
    def test_invalid_saves_rejected(self, patch):
        data = Companion.new(now=NOW).to_dict()
        data.update(patch)
        with pytest.raises(ValueError):
            Companion.from_dict(data)

    def test_missing_field_rejected(self):
        data = Companion.new(now=NOW).to_dict()
        del data["xp"]
        with pytest.raises(ValueError, match="xp"):
            Companion.from_dict(data)
