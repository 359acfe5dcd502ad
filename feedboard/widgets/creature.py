"""The companion pane: sprite, level progress, mood and the skill/outfit menus."""

from __future__ import annotations

import time
from typing import Callable, Optional

from ..companion.engine import CompanionEngine, MenuState
from ..companion.model import SKILLS, SkillEffect
from ..companion.sprites import WIDTH as SPRITE_WIDTH, build_frame, frame_count
from ..keys import KEY_DOWN, KEY_ENTER, KEY_ESCAPE, KEY_UP
from ..render.panel import CYAN, DIM, GREEN, MAGENTA, WHITE, YELLOW
from .base import Widget, WidgetKind

FRAME_SECONDS = 0.5
BAR_WIDTH = 12

MOOD_COLORS = {"happy": GREEN, "content": CYAN, "sleepy": DIM}


def xp_bar(xp: int, needed: Optional[int], width: int = BAR_WIDTH) -> str:
    if needed is None:
        return "█" * width
    filled = min(width, xp * width // needed) if needed else 0
    return "█" * filled + "░" * (width - filled)


class CreatureWidget(Widget):
    """Shows the companion owned by a ``CompanionEngine``.

    The engine is attached after construction because it is shared with the
    dashboard, which feeds it usage events. Menu state lives in the engine and
    makes this widget modal while open.
    """

    kind = WidgetKind.CREATURE
    refreshes = False

    SKILL_KEY = "s"
    OUTFIT_KEY = "o"

    def __init__(self, spec, clock: Callable[[], float] = time.time):
        super().__init__(spec)
        self.engine: Optional[CompanionEngine] = None
        self.frame_index = 0
        self._frame_elapsed = 0.0
        self._clock = clock

    def attach(self, engine: CompanionEngine) -> None:
        self.engine = engine

    @property
    def is_modal(self) -> bool:
        return self.engine is not None and self.engine.menu is not MenuState.IDLE

    def handle_input(self, key: str) -> bool:
        engine = self.engine
        if engine is None:
            return False
        if engine.menu is MenuState.IDLE:
            if key == self.SKILL_KEY:
                engine.open_menu(MenuState.SKILL_MENU)
                return True
            if key == self.OUTFIT_KEY:
                engine.open_menu(MenuState.OUTFIT_MENU)
                return True
            return False

        if key in (KEY_ESCAPE, "q"):
            engine.close_menu()
        elif key in (KEY_UP, "k"):
            engine.move_selection(-1)
        elif key in (KEY_DOWN, "j"):
            engine.move_selection(1)
        elif key == KEY_ENTER:
            engine.activate_selection()
        return True

    def tick(self, elapsed: float) -> bool:
        self._frame_elapsed += elapsed
        if self._frame_elapsed < FRAME_SECONDS:
            return False
        self._frame_elapsed = 0.0
        self.frame_index += 1
        return True

    @property
    def hints(self) -> str:
        if self.is_modal:
            return "↑↓ choose · enter select · esc close"
        return "s skills · o outfits"

    @property
    def display_title(self) -> str:
        if self.engine is None:
            return self.title
        c = self.engine.companion
        return f"{self.title}: {c.name} Lv{c.level}"

    def draw(self, panel):
        engine = self.engine
        if engine is None:
            panel.put_text(0, 0, "No companion", DIM)
            return
        if engine.menu is not MenuState.IDLE:
            self._draw_menu(panel, engine)
            return

        c = engine.companion
        mood = engine.mood(self._clock())
        frame = build_frame(
            c.species,
            mood,
            outfit=engine.equipped_outfit,
            frame_index=self.frame_index % frame_count(mood),
            sparkles=engine.owns("sparkles") or engine.owns("rainbow"),
        )
        color = (MAGENTA, CYAN, GREEN, YELLOW)[self.frame_index % 4] if engine.owns("rainbow") else WHITE
        for y, line in enumerate(frame):
            panel.put_text(0, y, line, color)

        x = SPRITE_WIDTH + 2
        needed = engine.xp_to_next
        stats = [
            (f"{c.name} the {c.species.value}", WHITE),
            (f"Level {c.level}", YELLOW),
            (f"{xp_bar(c.xp, needed)} {c.xp}/{needed}" if needed else f"{xp_bar(0, None)} MAX", GREEN),
            (f"Mood: {mood.value}", MOOD_COLORS.get(mood.value, WHITE)),
            (f"Skill points: {c.skill_points}", CYAN),
            (f"Outfit: {engine.equipped_outfit}", DIM),
        ]
        for y, (text, col) in enumerate(stats):
            panel.put_text(x, y, text, col)
        if engine.last_message:
            panel.put_text(0, panel.height - 1, engine.last_message, MAGENTA)

    def _draw_menu(self, panel, engine: CompanionEngine) -> None:
        if engine.menu is MenuState.SKILL_MENU:
            panel.put_text(0, 0, f"Skills ({engine.companion.skill_points} points)", YELLOW)
        else:
            panel.put_text(0, 0, "Outfits", YELLOW)

        for i, item in enumerate(engine.menu_items()):
            selected = i == engine.menu_index
            prefix = "▸ " if selected else "  "
            if engine.menu is MenuState.SKILL_MENU:
                skill = SKILLS[item]
                if engine.owns(item):
                    text, col = f"{prefix}{skill.name} (owned)", DIM
                else:
                    text, col = f"{prefix}{skill.name} [{skill.cost}] {_effect_label(skill)}", WHITE
            else:
                worn = " (worn)" if item == engine.equipped_outfit else ""
                text, col = f"{prefix}{item}{worn}", WHITE
            panel.put_text(0, i + 1, text, CYAN if selected else col)

        if engine.last_message:
            panel.put_text(0, panel.height - 1, engine.last_message, MAGENTA)


def _effect_label(skill) -> str:
    if skill.effect is SkillEffect.XP_MULTIPLIER:
        return f"+{skill.magnitude}% xp"
    if skill.effect is SkillEffect.REFRESH_BOOST:
        return f"-{skill.magnitude}% refresh wait"
    return skill.description
