"""Roll result records.

Every dice operation returns one of these immutable records so callers can
log, narrate or replay exactly what was rolled.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class RollType(StrEnum):
    """How a d20 was rolled."""

    NORMAL = "normal"
    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"


@dataclass(frozen=True)
class DieRoll:
    """A single die."""

    sides: int
    result: int


@dataclass(frozen=True)
class DiceRoll:
    """Several dice of the same size.

    Attributes:
        rolls: Individual results in roll order.
        total: Sum of the rolls.
        sides: Sides per die.
    """

    rolls: tuple[int, ...]
    total: int
    sides: int


@dataclass(frozen=True)
class NotationRoll:
    """Result of rolling an 'NdM+K' expression.

    Attributes:
        notation: Normalized notation that was rolled.
        count: Number of dice.
        sides: Sides per die.
        rolls: Individual die results.
        modifier: Flat modifier.
        total: Sum of the dice plus the modifier.
    """

    notation: str
    count: int
    sides: int
    rolls: tuple[int, ...]
    modifier: int
    total: int


@dataclass(frozen=True)
class D20CheckResult:
    """A d20 rolled normally, with advantage or with disadvantage.

    ``roll2`` is only set when a second die was actually rolled.
    """

    result: int
    roll1: int
    roll2: int | None = None
    had_advantage: bool = False
    had_disadvantage: bool = False

    @property
    def roll_type(self) -> RollType:
        if self.had_advantage:
            return RollType.ADVANTAGE
        if self.had_disadvantage:
            return RollType.DISADVANTAGE
        return RollType.NORMAL


@dataclass(frozen=True)
class SkillCheckRoll:
    """A d20 + modifier against a difficulty class.

    Attributes:
        d20: The d20 roll that was kept.
        modifier: Modifier added to the die.
        total: d20 result plus modifier.
        difficulty_class: DC to meet or beat.
        is_success: Whether total >= DC.
        is_critical_success: The kept die showed 20.
        is_critical_failure: The kept die showed 1.
    """

    d20: D20CheckResult
    modifier: int
    total: int
    difficulty_class: int
    is_success: bool
    is_critical_success: bool
    is_critical_failure: bool

    @property
    def margin(self) -> int:
        """How far the total landed above (or below) the DC."""
        return self.total - self.difficulty_class


@dataclass(frozen=True)
class SavingThrowRoll:
    """A saving throw; the same shape as a check, kept distinct for logging."""

    d20: D20CheckResult
    modifier: int
    total: int
    difficulty_class: int
    is_success: bool
    is_critical_success: bool
    is_critical_failure: bool


@dataclass(frozen=True)
class AttackRoll:
    """An attack roll against armor class.

    A natural 20 always hits and a natural 1 always misses.
    """

    d20: D20CheckResult
    attack_bonus: int
    total: int
    target_ac: int
    is_hit: bool
    is_critical_hit: bool
    is_critical_miss: bool


@dataclass(frozen=True)
class DamageRoll:
    """Damage dealt by a hit.

    Attributes:
        original_notation: Notation as requested.
        rolled_notation: Notation actually rolled (dice doubled on a crit).
        rolls: Individual die results.
        modifier: Flat modifier, never doubled.
        total: Damage, never below 0.
        is_critical: Whether the dice were doubled.
    """

    original_notation: str
    rolled_notation: str
    rolls: tuple[int, ...]
    modifier: int
    total: int
    is_critical: bool


@dataclass(frozen=True)
class AbilityScoreRoll:
    """4d6, drop the lowest."""

    rolls: tuple[int, ...]
    kept: tuple[int, ...]
    dropped: int
    total: int


__all__ = [
    "RollType",
    "DieRoll",
    "DiceRoll",
    "NotationRoll",
    "D20CheckResult",
    "SkillCheckRoll",
    "SavingThrowRoll",
    "AttackRoll",
    "DamageRoll",
    "AbilityScoreRoll",
]
