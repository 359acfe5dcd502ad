"""Companion data model: persisted counters plus the fixed game tables.

Only ``Companion`` is ever written to disk. Outfits and mood are derived from
it on demand (``unlocked_outfits``, ``mood_for``) and are never stored, so a
save can never disagree with the level it was written at.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

MAX_LEVEL = 50

# Refresh-boost skills can speed refreshes up, but never beyond this factor
MIN_SPEED_FACTOR = 0.25


class Species(str, Enum):
    BLOB = "blob"
    CAT = "cat"
    DOG = "dog"
    FOX = "fox"
    OWL = "owl"
    FROG = "frog"
    PENGUIN = "penguin"
    DRAGON = "dragon"
    ROBOT = "robot"
    GHOST = "ghost"


class SkillEffect(str, Enum):
    XP_MULTIPLIER = "xp_multiplier"
    REFRESH_BOOST = "refresh_boost"
    COSMETIC = "cosmetic"


@dataclass(frozen=True)
class SkillDef:
    id: str
    name: str
    cost: int
    effect: SkillEffect
    magnitude: int = 0  # percent for multipliers and boosts
    description: str = ""


SKILLS: dict[str, SkillDef] = {
    s.id: s
    for s in (
        SkillDef("quick_study", "Quick Study", 1, SkillEffect.XP_MULTIPLIER, 25, "+25% XP"),
        SkillDef("bookworm", "Bookworm", 3, SkillEffect.XP_MULTIPLIER, 50, "+50% XP"),
        SkillDef("prodigy", "Prodigy", 6, SkillEffect.XP_MULTIPLIER, 100, "+100% XP"),
        SkillDef("caffeinated", "Caffeinated", 2, SkillEffect.REFRESH_BOOST, 10, "feeds refresh 10% sooner"),
        SkillDef("overclocked", "Overclocked", 5, SkillEffect.REFRESH_BOOST, 25, "feeds refresh 25% sooner"),
        SkillDef("sparkles", "Sparkles", 1, SkillEffect.COSMETIC, description="a little shimmer"),
        SkillDef("rainbow", "Rainbow", 2, SkillEffect.COSMETIC, description="cycles colors"),
    )
}

# (level required, outfit) in unlock order
OUTFITS: tuple[tuple[int, str], ...] = (
    (1, "plain"),
    (3, "scarf"),
    (5, "bowtie"),
    (10, "top hat"),
    (15, "sunglasses"),
    (20, "cape"),
    (30, "crown"),
    (40, "wizard robe"),
    (MAX_LEVEL, "golden aura"),
)


class Mood(str, Enum):
    HAPPY = "happy"
    CONTENT = "content"
    SLEEPY = "sleepy"


# Upper bounds (seconds since last interaction) for each mood band
MOOD_BANDS: tuple[tuple[float, Mood], ...] = (
    (10 * 60, Mood.HAPPY),
    (2 * 60 * 60, Mood.CONTENT),
)


def xp_threshold(level: int) -> int:
    """XP needed to go from ``level`` to ``level + 1``. Strictly increasing."""
    if level < 1:
        raise ValueError(f"level must be >= 1, got {level}")
    return 100 + 50 * (level - 1)


def unlocked_outfits(level: int) -> list[str]:
    return [name for required, name in OUTFITS if required <= level]


def mood_for(idle_seconds: float) -> Mood:
    for bound, mood in MOOD_BANDS:
        if idle_seconds < bound:
            return mood
    return Mood.SLEEPY


def apply_xp(level: int, xp: int, amount: int) -> tuple[int, int]:
    """Add ``amount`` XP and roll over level thresholds one level at a time.

    Returns:
        (new_level, new_xp)
    """
    if amount < 0:
        raise ValueError(f"XP grants must be non-negative, got {amount}")
    xp += amount
    while level < MAX_LEVEL and xp >= xp_threshold(level):
        xp -= xp_threshold(level)
        level += 1
    if level >= MAX_LEVEL:
        xp = 0
    return level, xp


@dataclass
class Companion:
    """Persisted companion state."""

    species: Species = Species.BLOB
    name: str = "Pixel"
    level: int = 1
    xp: int = 0
    skill_points: int = 0
    unlocked_skills: frozenset[str] = field(default_factory=frozenset)
    last_interaction: float = field(default_factory=time.time)

    @classmethod
    def new(cls, species: Species | str = Species.BLOB, name: str = "Pixel", now: Optional[float] = None) -> "Companion":
        return cls(
            species=Species(species),
            name=name,
            last_interaction=time.time() if now is None else now,
        )

    def to_dict(self) -> dict:
        return {
            "species": self.species.value,
            "name": self.name,
            "level": self.level,
            "xp": self.xp,
            "skill_points": self.skill_points,
            "unlocked_skills": sorted(self.unlocked_skills),
            "last_interaction": self.last_interaction,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Companion":
        """Rebuild a companion from its saved form.

        Unknown keys (such as a cached outfit list from older saves) are
        ignored. Anything that violates the model's invariants raises.

        Raises:
            ValueError: If a field is missing, mistyped or out of range.
        """
        if not isinstance(d, dict):
            raise ValueError("companion save must be a JSON object")
        try:
            species = Species(d["species"])
            level, xp, points = d["level"], d["xp"], d["skill_points"]
            skills = d["unlocked_skills"]
            last = d["last_interaction"]
        except KeyError as e:
            raise ValueError(f"missing field {e.args[0]!r}") from None

        for name, value in (("level", level), ("xp", xp), ("skill_points", points)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer")
        if not 1 <= level <= MAX_LEVEL:
            raise ValueError(f"level {level} out of range")
        if xp < 0 or (level < MAX_LEVEL and xp >= xp_threshold(level)) or (level == MAX_LEVEL and xp != 0):
            raise ValueError(f"xp {xp} invalid for level {level}")
        if points < 0:
            raise ValueError("skill_points must be non-negative")
        if not isinstance(skills, list) or len(set(skills)) != len(skills):
            raise ValueError("unlocked_skills must be a list of distinct ids")
        unknown = [s for s in skills if s not in SKILLS]
        if unknown:
            raise ValueError(f"unknown skills: {unknown}")
        if isinstance(last, bool) or not isinstance(last, (int, float)):
            raise ValueError("last_interaction must be a timestamp")

        name = d.get("name", "Pixel")
        return cls(
            species=species,
            name=name if isinstance(name, str) else "Pixel",
            level=level,
            xp=xp,
            skill_points=points,
            unlocked_skills=frozenset(skills),
            last_interaction=float(last),
        )
