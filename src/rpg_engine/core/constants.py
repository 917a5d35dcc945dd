"""Rules tables and fixed values used across the engine.

The lookup helpers here are the only place level, CR and XP steps are
encoded; models and engine components call them rather than repeating
the tables.
"""

from __future__ import annotations

import math

# =============================================================================
# Progression
# =============================================================================

MAX_LEVEL = 20
"""Highest character level."""

XP_THRESHOLDS: tuple[int, ...] = (
    0, 300, 900, 2700, 6500, 14000, 23000, 34000, 48000, 64000,
    85000, 100000, 120000, 140000, 165000, 195000, 225000, 265000, 305000, 355000,
)
"""Total XP required to reach each level; index 0 is level 1."""

PROFICIENCY_BY_LEVEL: tuple[int, ...] = (
    2, 2, 2, 2, 3, 3, 3, 3, 4, 4,
    4, 4, 5, 5, 5, 5, 6, 6, 6, 6,
)
"""Proficiency bonus for each level; index 0 is level 1."""

HIT_DIE_BY_CLASS: dict[str, int] = {
    "barbarian": 12,
    "fighter": 10,
    "paladin": 10,
    "ranger": 10,
    "bard": 8,
    "cleric": 8,
    "druid": 8,
    "monk": 8,
    "rogue": 8,
    "warlock": 8,
    "sorcerer": 6,
    "wizard": 6,
}

DEFAULT_HIT_DIE = 8
"""Hit die for classes not listed in HIT_DIE_BY_CLASS."""

# =============================================================================
# Difficulty Classes
# =============================================================================

DC_VERY_EASY = 5
DC_EASY = 10
DC_MEDIUM = 15
DC_HARD = 20
DC_VERY_HARD = 25
DC_NEARLY_IMPOSSIBLE = 30

FLEE_DC = 10
"""DC of the d20 roll needed to escape combat."""

# =============================================================================
# Rewards & Inventory
# =============================================================================

DEFAULT_INVENTORY_SLOTS = 30
"""Slots in a fresh inventory; every item entry occupies one slot."""

DIFFICULTY_MULTIPLIERS: dict[str, float] = {
    "easy": 0.75,
    "normal": 1.0,
    "hard": 1.25,
    "nightmare": 1.5,
}
"""Damage multiplier applied to monster attacks per difficulty."""


def ability_modifier(score: int) -> int:
    """Return the modifier for an ability score: floor((score - 10) / 2)."""
    return (score - 10) // 2


def proficiency_for_level(level: int) -> int:
    """Look up the proficiency bonus for a level, clamped to 1-20."""
    index = min(max(level, 1), MAX_LEVEL) - 1
    return PROFICIENCY_BY_LEVEL[index]


def level_for_xp(xp: int) -> int:
    """Return the highest level whose XP threshold is at or below ``xp``."""
    for index in range(len(XP_THRESHOLDS) - 1, -1, -1):
        if xp >= XP_THRESHOLDS[index]:
            return index + 1
    return 1


def proficiency_for_challenge_rating(challenge_rating: float) -> int:
    """Step table mapping a monster's CR to its proficiency bonus."""
    for ceiling, bonus in ((5, 2), (9, 3), (13, 4), (17, 5), (21, 6), (25, 7), (29, 8)):
        if challenge_rating < ceiling:
            return bonus
    return 9


def hit_die_for_class(character_class: str) -> int:
    return HIT_DIE_BY_CLASS.get(character_class.lower(), DEFAULT_HIT_DIE)


def hp_per_level(hit_die: int, constitution_modifier: int) -> int:
    """HP gained on level up: average die roll rounded up, plus CON, never negative."""
    return max(0, math.ceil(hit_die / 2) + 1 + constitution_modifier)


def max_gold_reward(level: int) -> int:
    """Largest gold amount a single AddGold action may apply at ``level``."""
    return 50 + 25 * level


def max_xp_reward(level: int) -> int:
    """Largest XP amount a single AddXP action may apply at ``level``."""
    return 100 + 50 * level


def difficulty_description(dc: int) -> str:
    if dc <= DC_VERY_EASY:
        return "Very Easy"
    if dc <= DC_EASY:
        return "Easy"
    if dc <= DC_MEDIUM:
        return "Medium"
    if dc <= DC_HARD:
        return "Hard"
    if dc <= DC_VERY_HARD:
        return "Very Hard"
    return "Nearly Impossible"


__all__ = [
    "MAX_LEVEL",
    "XP_THRESHOLDS",
    "PROFICIENCY_BY_LEVEL",
    "HIT_DIE_BY_CLASS",
    "DEFAULT_HIT_DIE",
    "DC_VERY_EASY",
    "DC_EASY",
    "DC_MEDIUM",
    "DC_HARD",
    "DC_VERY_HARD",
    "DC_NEARLY_IMPOSSIBLE",
    "FLEE_DC",
    "DEFAULT_INVENTORY_SLOTS",
    "DIFFICULTY_MULTIPLIERS",
    "ability_modifier",
    "proficiency_for_level",
    "level_for_xp",
    "proficiency_for_challenge_rating",
    "hit_die_for_class",
    "hp_per_level",
    "max_gold_reward",
    "max_xp_reward",
    "difficulty_description",
]
