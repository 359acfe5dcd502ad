"""Companion engine: XP, level-ups, skill purchases and the menu substates."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Optional

from ..errors import AlreadyOwned, InsufficientPoints, UnknownSkill
from .model import (
    MAX_LEVEL,
    MIN_SPEED_FACTOR,
    SKILLS,
    Companion,
    Mood,
    SkillDef,
    SkillEffect,
    apply_xp,
    mood_for,
    unlocked_outfits,
    xp_threshold,
)

logger = logging.getLogger(__name__)


class UsageEvent(str, Enum):
    KEYPRESS = "keypress"
    FEED_INTERACTION = "feed_interaction"
    MANUAL_REFRESH = "manual_refresh"


BASE_XP = {
    UsageEvent.KEYPRESS: 1,
    UsageEvent.FEED_INTERACTION: 2,
    UsageEvent.MANUAL_REFRESH: 5,
}


class MenuState(str, Enum):
    IDLE = "idle"
    SKILL_MENU = "skill_menu"
    OUTFIT_MENU = "outfit_menu"


class CompanionEngine:
    """Owns a Companion and every rule that mutates it.

    ``on_flush`` is called with a reason ("level-up", "skill") whenever a
    change must reach disk promptly. Ordinary XP gains only mark the state
    dirty through ``on_change`` and are flushed on the periodic schedule.
    """

    def __init__(
        self,
        companion: Companion,
        on_flush: Optional[Callable[[str], None]] = None,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.companion = companion
        self._on_flush = on_flush
        self._on_change = on_change
        self.menu = MenuState.IDLE
        self.menu_index = 0
        self._equipped: Optional[str] = None
        self.last_message: Optional[str] = None

    # ------------------------------------------------------------------
    # XP and levels
    # ------------------------------------------------------------------

    def xp_bonus_percent(self) -> int:
        return sum(
            SKILLS[s].magnitude for s in self.companion.unlocked_skills if SKILLS[s].effect is SkillEffect.XP_MULTIPLIER
        )

    def xp_for(self, event: UsageEvent) -> int:
        """XP granted for one usage event with owned multipliers applied."""
        return BASE_XP[event] * (100 + self.xp_bonus_percent()) // 100

    def record(self, event: UsageEvent, now: Optional[float] = None) -> int:
        """Credit a usage event. Returns the number of levels gained."""
        self.companion.last_interaction = time.time() if now is None else now
        return self.grant_xp(self.xp_for(event))

    def grant_xp(self, amount: int) -> int:
        """Add raw XP, processing each crossed threshold as its own level-up.

        Returns:
            Number of levels gained (one skill point each).
        """
        c = self.companion
        old_level = c.level
        c.level, c.xp = apply_xp(c.level, c.xp, amount)
        gained = c.level - old_level
        if gained:
            c.skill_points += gained
            self.last_message = f"{c.name} reached level {c.level}!"
            logger.info("Companion leveled up %d -> %d", old_level, c.level)
            self._flush("level-up")
        elif amount:
            self._changed()
        return gained

    @property
    def xp_to_next(self) -> Optional[int]:
        if self.companion.level >= MAX_LEVEL:
            return None
        return xp_threshold(self.companion.level)

    # ------------------------------------------------------------------
    # Skills
    # ------------------------------------------------------------------

    def purchase(self, skill_id: str) -> SkillDef:
        """Buy a skill.

        Raises:
            UnknownSkill, AlreadyOwned, InsufficientPoints: Nothing is changed.
        """
        skill = SKILLS.get(skill_id)
        if skill is None:
            raise UnknownSkill(skill_id)
        c = self.companion
        if skill_id in c.unlocked_skills:
            raise AlreadyOwned(skill_id)
        if c.skill_points < skill.cost:
            raise InsufficientPoints(f"{skill.name} costs {skill.cost}, have {c.skill_points}")

        c.skill_points -= skill.cost
        c.unlocked_skills = c.unlocked_skills | {skill_id}
        logger.info("Companion learned %s", skill_id)
        self._flush("skill")
        return skill

    def owns(self, skill_id: str) -> bool:
        return skill_id in self.companion.unlocked_skills

    def refresh_speed_factor(self) -> float:
        """Multiplier for refresh intervals from owned refresh-boost skills."""
        boost = sum(
            SKILLS[s].magnitude for s in self.companion.unlocked_skills if SKILLS[s].effect is SkillEffect.REFRESH_BOOST
        )
        return max(MIN_SPEED_FACTOR, 1.0 - boost / 100)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def outfits(self) -> list[str]:
        return unlocked_outfits(self.companion.level)

    @property
    def equipped_outfit(self) -> str:
        unlocked = self.outfits()
        if self._equipped in unlocked:
            return self._equipped
        return unlocked[-1]

    def equip(self, outfit: str) -> bool:
        if outfit not in self.outfits():
            return False
        self._equipped = outfit
        return True

    def mood(self, now: Optional[float] = None) -> Mood:
        now = time.time() if now is None else now
        return mood_for(max(0.0, now - self.companion.last_interaction))

    # ------------------------------------------------------------------
    # Menus (transient, never persisted)
    # ------------------------------------------------------------------

    def menu_items(self) -> list[str]:
        if self.menu is MenuState.SKILL_MENU:
            return list(SKILLS)
        if self.menu is MenuState.OUTFIT_MENU:
            return self.outfits()
        return []

    def open_menu(self, menu: MenuState) -> None:
        self.menu = menu
        self.menu_index = 0

    def close_menu(self) -> None:
        self.menu = MenuState.IDLE
        self.menu_index = 0

    def move_selection(self, delta: int) -> None:
        items = self.menu_items()
        if items:
            self.menu_index = max(0, min(len(items) - 1, self.menu_index + delta))

    def activate_selection(self) -> str:
        """Buy the highlighted skill or equip the highlighted outfit."""
        items = self.menu_items()
        if not items:
            return ""
        choice = items[self.menu_index]
        if self.menu is MenuState.SKILL_MENU:
            try:
                skill = self.purchase(choice)
            except AlreadyOwned:
                self.last_message = f"Already know {SKILLS[choice].name}"
            except InsufficientPoints:
                self.last_message = f"Need {SKILLS[choice].cost} points for {SKILLS[choice].name}"
            else:
                self.last_message = f"Learned {skill.name}!"
        else:
            self.equip(choice)
            self.last_message = f"Wearing {choice}"
        return self.last_message

    # ------------------------------------------------------------------

    def _flush(self, reason: str) -> None:
        if self._on_flush:
            try:
                self._on_flush(reason)
            except Exception:
                logger.exception("Companion flush callback failed")

    def _changed(self) -> None:
        if self._on_change:
            try:
                self._on_change()
            except Exception:
                logger.exception("Companion change callback failed")
