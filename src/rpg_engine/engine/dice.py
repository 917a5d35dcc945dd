"""Dice rolling mechanics.

Every roll goes through an injected ``random.Random`` so that a seeded or
scripted generator replays a whole session exactly. There is no module-level
random state.
"""

from __future__ import annotations

import random
import re

from rpg_engine.core.exceptions import DiceRollError
from rpg_engine.core.logging import get_logger
from rpg_engine.models.rolls import (
    AbilityScoreRoll,
    AttackRoll,
    D20CheckResult,
    DamageRoll,
    DiceRoll,
    DieRoll,
    NotationRoll,
    SavingThrowRoll,
    SkillCheckRoll,
)


logger = get_logger(__name__)

NOTATION_PATTERN = re.compile(r"^(\d*)d(\d+)([+-]\d+)?$")
"""Accepted dice notation after lowercasing and removing whitespace."""

_FLAT_PATTERN = re.compile(r"^[+-]?\d+$")


def normalize_notation(notation: str) -> str:
    return "".join(notation.split()).lower()


def is_valid_notation(notation: str) -> bool:
    """Whether ``notation`` parses as 'NdM', 'dM' or 'NdM+K'."""
    return NOTATION_PATTERN.match(normalize_notation(notation)) is not None


def is_flat_amount(text: str) -> bool:
    return _FLAT_PATTERN.match(text.strip()) is not None


class DiceRoller:
    """Dice rolling with d20 mechanics.

    Example:
        >>> roller = DiceRoller(seed=42)
        >>> result = roller.roll_notation("2d6+3")
        >>> 5 <= result.total <= 15
        True
    """

    def __init__(self, rng: random.Random | None = None, *, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            rng: Random generator to draw from. Takes precedence over ``seed``.
            seed: Seed for a private generator when ``rng`` is not given.
        """
        self._rng = rng if rng is not None else random.Random(seed)
        logger.debug("DiceRoller initialized", seed=seed, injected=rng is not None)

    # =========================================================================
    # Primitive Rolls
    # =========================================================================

    def roll_die(self, sides: int) -> int:
        """Roll one die, uniform in [1, sides].

        Raises:
            DiceRollError: If ``sides`` is below 1.
        """
        if sides < 1:
            raise DiceRollError("Die must have at least one side", details={"sides": sides})
        return self._rng.randint(1, sides)

    def roll_single(self, sides: int) -> DieRoll:
        return DieRoll(sides=sides, result=self.roll_die(sides))

    def roll_dice(self, count: int, sides: int) -> DiceRoll:
        """Roll ``count`` dice with ``sides`` sides each.

        Raises:
            DiceRollError: If ``count`` is negative or ``sides`` below 1.
        """
        if count < 0:
            raise DiceRollError("Dice count cannot be negative", details={"count": count})
        rolls = tuple(self.roll_die(sides) for _ in range(count))
        return DiceRoll(rolls=rolls, total=sum(rolls), sides=sides)

    def roll_notation(self, notation: str) -> NotationRoll:
        """Parse and roll dice notation such as '2d6+3', 'd20' or '3d6 - 1'.

        Args:
            notation: Dice notation; case and whitespace are ignored.

        Returns:
            NotationRoll with the individual dice and the total.

        Raises:
            DiceRollError: If the notation is malformed.
        """
        normalized = normalize_notation(notation)
        match = NOTATION_PATTERN.match(normalized)
        if match is None:
            raise DiceRollError("Invalid dice notation", expression=notation)

        count = int(match.group(1)) if match.group(1) else 1
        sides = int(match.group(2))
        modifier = int(match.group(3)) if match.group(3) else 0
        if sides < 1:
            raise DiceRollError("Die must have at least one side", expression=notation)

        dice = self.roll_dice(count, sides)
        result = NotationRoll(
            notation=normalized,
            count=count,
            sides=sides,
            rolls=dice.rolls,
            modifier=modifier,
            total=dice.total + modifier,
        )
        logger.debug("Dice rolled", notation=normalized, rolls=dice.rolls, total=result.total)
        return result

    def roll_flat_or_notation(self, amount: str) -> int:
        """Resolve '7' as a flat 7 and anything else as dice notation.

        Raises:
            DiceRollError: If ``amount`` is neither.
        """
        if is_flat_amount(amount):
            return int(amount.strip())
        return self.roll_notation(amount).total

    # =========================================================================
    # d20 Rolls
    # =========================================================================

    def roll_d20(self) -> int:
        return self.roll_die(20)

    def roll_d20_check(self, *, advantage: bool = False, disadvantage: bool = False) -> D20CheckResult:
        """Roll a d20, with advantage or disadvantage.

        Advantage and disadvantage together cancel out: one die is rolled
        and the result reports neither.
        """
        if advantage and disadvantage:
            advantage = disadvantage = False

        roll1 = self.roll_d20()
        if not advantage and not disadvantage:
            return D20CheckResult(result=roll1, roll1=roll1)

        roll2 = self.roll_d20()
        return D20CheckResult(
            result=max(roll1, roll2) if advantage else min(roll1, roll2),
            roll1=roll1,
            roll2=roll2,
            had_advantage=advantage,
            had_disadvantage=disadvantage,
        )

    def roll_skill_check(
        self,
        modifier: int,
        difficulty_class: int,
        *,
        advantage: bool = False,
        disadvantage: bool = False,
    ) -> SkillCheckRoll:
        """Roll d20 + modifier against a DC.

        A natural 20 or 1 is flagged as a critical success or failure, but
        success itself is always ``total >= difficulty_class``.
        """
        d20 = self.roll_d20_check(advantage=advantage, disadvantage=disadvantage)
        total = d20.result + modifier
        return SkillCheckRoll(
            d20=d20,
            modifier=modifier,
            total=total,
            difficulty_class=difficulty_class,
            is_success=total >= difficulty_class,
            is_critical_success=d20.result == 20,
            is_critical_failure=d20.result == 1,
        )

    def roll_saving_throw(
        self,
        modifier: int,
        difficulty_class: int,
        *,
        advantage: bool = False,
        disadvantage: bool = False,
    ) -> SavingThrowRoll:
        check = self.roll_skill_check(
            modifier, difficulty_class, advantage=advantage, disadvantage=disadvantage
        )
        return SavingThrowRoll(
            d20=check.d20,
            modifier=check.modifier,
            total=check.total,
            difficulty_class=check.difficulty_class,
            is_success=check.is_success,
            is_critical_success=check.is_critical_success,
            is_critical_failure=check.is_critical_failure,
        )

    def roll_attack(
        self,
        attack_bonus: int,
        target_ac: int,
        *,
        advantage: bool = False,
        disadvantage: bool = False,
    ) -> AttackRoll:
        """Roll an attack against armor class.

        Args:
            attack_bonus: Bonus added to the d20.
            target_ac: Armor class of the target.
            advantage: Roll two d20s and keep the higher.
            disadvantage: Roll two d20s and keep the lower.

        Returns:
            AttackRoll; a natural 20 always hits and crits, a natural 1
            always misses.
        """
        d20 = self.roll_d20_check(advantage=advantage, disadvantage=disadvantage)
        total = d20.result + attack_bonus
        is_critical_hit = d20.result == 20
        is_critical_miss = d20.result == 1
        is_hit = is_critical_hit or (not is_critical_miss and total >= target_ac)

        logger.debug(
            "Attack rolled",
            d20=d20.result,
            total=total,
            target_ac=target_ac,
            hit=is_hit,
        )
        return AttackRoll(
            d20=d20,
            attack_bonus=attack_bonus,
            total=total,
            target_ac=target_ac,
            is_hit=is_hit,
            is_critical_hit=is_critical_hit,
            is_critical_miss=is_critical_miss,
        )

    def roll_damage(self, notation: str, *, is_critical: bool = False) -> DamageRoll:
        """Roll damage, doubling the dice (never the modifier) on a critical.

        Raises:
            DiceRollError: If the notation is malformed.
        """
        normalized = normalize_notation(notation)
        match = NOTATION_PATTERN.match(normalized)
        if match is None:
            raise DiceRollError("Invalid damage notation", expression=notation)

        count = int(match.group(1)) if match.group(1) else 1
        rolled_notation = normalized
        if is_critical:
            rolled_notation = f"{count * 2}d{match.group(2)}{match.group(3) or ''}"

        result = self.roll_notation(rolled_notation)
        return DamageRoll(
            original_notation=notation,
            rolled_notation=rolled_notation,
            rolls=result.rolls,
            modifier=result.modifier,
            total=max(0, result.total),
            is_critical=is_critical,
        )

    def roll_initiative(self, modifier: int) -> int:
        return self.roll_d20() + modifier

    # =========================================================================
    # Character Creation
    # =========================================================================

    def roll_ability_score(self) -> AbilityScoreRoll:
        """Roll 4d6 and drop the lowest die."""
        rolls = tuple(sorted((self.roll_die(6) for _ in range(4)), reverse=True))
        kept = rolls[:3]
        return AbilityScoreRoll(rolls=rolls, kept=kept, dropped=rolls[3], total=sum(kept))

    def roll_ability_score_set(self) -> tuple[AbilityScoreRoll, ...]:
        """Roll six ability scores, in order."""
        return tuple(self.roll_ability_score() for _ in range(6))


__all__ = [
    "NOTATION_PATTERN",
    "normalize_notation",
    "is_valid_notation",
    "is_flat_amount",
    "DiceRoller",
]
