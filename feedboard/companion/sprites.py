"""Companion sprite frames, built from per-species parts."""

from __future__ import annotations

from .model import Mood, Species

# Ears/top line per species (9 wide)
EARS = {
    Species.BLOB: "         ",
    Species.CAT: "  /\\ /\\  ",
    Species.DOG: " (\\   /) ",
    Species.FOX: "  ^   ^  ",
    Species.OWL: "  \\___/  ",
    Species.FROG: "  () ()  ",
    Species.PENGUIN: "   ___   ",
    Species.DRAGON: " <\\   /> ",
    Species.ROBOT: "    |    ",
    Species.GHOST: "   ___   ",
}

# Face edges (left, right) per species
EDGES = {
    Species.BLOB: ("(", ")"),
    Species.CAT: ("(", ")"),
    Species.DOG: ("(", ")"),
    Species.FOX: ("<", ">"),
    Species.OWL: ("{", "}"),
    Species.FROG: ("(", ")"),
    Species.PENGUIN: ("(", ")"),
    Species.DRAGON: ("[", "]"),
    Species.ROBOT: ("[", "]"),
    Species.GHOST: ("/", "\\"),
}

EYES = {
    Mood.HAPPY: "^",
    Mood.CONTENT: "•",
    Mood.SLEEPY: "-",
}

MOUTHS = {
    Mood.HAPPY: "▽",
    Mood.CONTENT: "ᴗ",
    Mood.SLEEPY: "o",
}

# Eye positions as (left_pad, gap, right_pad) - must sum to 5 for face width 7
EYE_POSITIONS = {
    Mood.HAPPY: [(1, 3, 1), (1, 3, 1), (2, 3, 0), (0, 3, 2)],
    Mood.CONTENT: [(1, 3, 1)],
    Mood.SLEEPY: [(1, 3, 1)],
}

FEET = {
    Mood.HAPPY: ["  ╯   ╰  ", "  ╰   ╯  "],
    Mood.CONTENT: ["  ╯   ╰  "],
    Mood.SLEEPY: ["  ─   ─  ", "  ─ z ─  ", "  ─ zZ─  "],
}

# Accessory drawn above the head, by outfit name
HATS = {
    "plain": "         ",
    "scarf": "         ",
    "bowtie": "         ",
    "top hat": "  ▄███▄  ",
    "sunglasses": "         ",
    "cape": "         ",
    "crown": "  ♔♔♔♔♔  ",
    "wizard robe": "    ▲    ",
    "golden aura": " ✧ ✧ ✧ ✧ ",
}

# Replaces the neck line for worn-below outfits
NECKS = {
    "scarf": "  ≈≈≈≈≈  ",
    "bowtie": "   ▶◀    ",
    "cape": " /▒▒▒▒▒\\ ",
    "wizard robe": " /✶✶✶✶✶\\ ",
}

SPARKLES = ["✦   ·   ✧", "·   ✧   ✦", "✧   ✦   ·"]

WIDTH = 9
NECK = "  (   )  "


def build_frame(
    species: Species,
    mood: Mood,
    outfit: str = "plain",
    frame_index: int = 0,
    sparkles: bool = False,
) -> list[str]:
    """Build a single sprite frame as a list of 9-wide lines."""
    left, right = EDGES.get(species, ("(", ")"))
    eye = "■" if outfit == "sunglasses" else EYES[mood]
    positions = EYE_POSITIONS[mood]
    feet = FEET[mood]
    l, g, r = positions[frame_index % len(positions)]

    lines = [
        HATS.get(outfit, " " * WIDTH),
        EARS.get(species, " " * WIDTH),
        f"{left}{' ' * l}{eye}{' ' * g}{eye}{' ' * r}{right}",
        f"{left}   {MOUTHS[mood]}   {right}",
        NECKS.get(outfit, NECK),
        feet[frame_index % len(feet)],
    ]
    if sparkles:
        lines.append(SPARKLES[frame_index % len(SPARKLES)])
    return lines


def frame_count(mood: Mood) -> int:
    return max(len(EYE_POSITIONS[mood]), len(FEET[mood]), len(SPARKLES))
