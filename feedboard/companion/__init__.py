"""Virtual companion - leveling model, engine, persistence and sprites."""

from .model import MAX_LEVEL, OUTFITS, SKILLS, Companion, Mood, SkillDef, SkillEffect, Species, xp_threshold
from .engine import BASE_XP, CompanionEngine, MenuState, UsageEvent
from .store import CompanionStore, LoadStatus, load_companion, save_companion

__all__ = [
    "MAX_LEVEL",
    "OUTFITS",
    "SKILLS",
    "Companion",
    "Mood",
    "SkillDef",
    "SkillEffect",
    "Species",
    "xp_threshold",
    "BASE_XP",
    "CompanionEngine",
    "MenuState",
    "UsageEvent",
    "CompanionStore",
    "LoadStatus",
    "load_companion",
    "save_companion",
]
