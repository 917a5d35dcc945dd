"""Skill, ability and contested checks for the player character."""

from __future__ import annotations

from dataclasses import dataclass

from rpg_engine.core.constants import difficulty_description
from rpg_engine.core.exceptions import InvariantViolation
from rpg_engine.core.logging import get_logger
from rpg_engine.engine.dice import DiceRoller
from rpg_engine.models.ai_response import ProposedCheck
from rpg_engine.models.character import Character
from rpg_engine.models.enums import Ability, CheckType, Skill
from rpg_engine.models.game_state import SkillCheckRecord
from rpg_engine.models.rolls import D20CheckResult, SkillCheckRoll


logger = get_logger(__name__)


@dataclass(frozen=True)
class SkillCheckOutcome:
    """A resolved check with the context needed to narrate it.

    Attributes:
        skill: Skill rolled, if any.
        ability: Ability rolled with.
        roll: The underlying d20 roll.
        description: What the check was for, as proposed.
    """

    skill: Skill | None
    ability: Ability | None
    roll: SkillCheckRoll
    description: str | None = None

    @property
    def is_success(self) -> bool:
        return self.roll.is_success

    @property
    def margin_of_success(self) -> int:
        return self.roll.margin

    @property
    def check_type_name(self) -> str:
        if self.skill is not None:
            return f"{self.skill.display_name} Check"
        if self.ability is not None:
            return f"{self.ability.full_name} Check"
        return "Check"

    @property
    def narrative_description(self) -> str:
        """One-line flavor text graded by criticals and margin."""
        if self.roll.is_critical_success:
            return "Critical Success! A perfect execution!"
        if self.roll.is_critical_failure:
            return "Critical Failure! Everything that could go wrong, did."

        margin = self.margin_of_success
        if self.is_success:
            if margin >= 10:
                return "Exceptional Success! You exceeded expectations."
            if margin >= 5:
                return "Success! You accomplished your goal with skill."
            return "Success! You barely managed to pull it off."
        if margin <= -10:
            return "Catastrophic Failure! This went very badly."
        if margin <= -5:
            return "Failure. You were clearly outmatched."
        return "Failure. So close, yet not quite enough."

    def to_record(self) -> SkillCheckRecord:
        """Convert to the record stored on a story message."""
        return SkillCheckRecord(
            skill=self.skill,
            ability=self.ability,
            dice_roll=self.roll.d20.result,
            modifier=self.roll.modifier,
            total=self.roll.total,
            difficulty_class=self.roll.difficulty_class,
            is_success=self.roll.is_success,
            is_critical_success=self.roll.is_critical_success,
            is_critical_failure=self.roll.is_critical_failure,
            had_advantage=self.roll.d20.had_advantage,
            had_disadvantage=self.roll.d20.had_disadvantage,
        )


@dataclass(frozen=True)
class ContestedCheckOutcome:
    """Player versus opponent; the player wins ties."""

    player_skill: Skill
    player_roll: D20CheckResult
    player_modifier: int
    player_total: int
    opponent_name: str
    opponent_roll: D20CheckResult
    opponent_modifier: int
    opponent_total: int
    player_wins: bool

    @property
    def margin(self) -> int:
        return abs(self.player_total - self.opponent_total)

    @property
    def result_description(self) -> str:
        if self.player_wins:
            if self.margin >= 10:
                return "Dominant victory!"
            if self.margin >= 5:
                return "Clear victory!"
            return "Narrow victory!"
        if self.margin >= 10:
            return "Overwhelming defeat."
        if self.margin >= 5:
            return "Clear defeat."
        return "Narrow defeat."


class SkillCheckEngine:
    """Rolls checks the narrative proposes, using the character's modifiers."""

    def __init__(self, dice: DiceRoller | None = None) -> None:
        self._dice = dice or DiceRoller()

    def modifier_for(
        self, character: Character, proposal: ProposedCheck
    ) -> tuple[int, Skill | None, Ability | None]:
        """Pick the modifier a proposed check rolls with.

        Skill checks use the skill modifier, ability checks and saving
        throws the ability modifier, and attacks or contests add proficiency
        to the ability (Strength when none is named).

        Returns:
            Tuple of (modifier, skill, ability).
        """
        match proposal.check_type:
            case CheckType.SKILL:
                if proposal.skill is not None:
                    skill = proposal.skill
                    return character.skill_modifier(skill), skill, skill.ability
                if proposal.ability is not None:
                    return character.ability_modifier(proposal.ability), None, proposal.ability
                return 0, None, None
            case CheckType.ABILITY | CheckType.SAVING_THROW:
                if proposal.ability is not None:
                    return character.ability_modifier(proposal.ability), None, proposal.ability
                if proposal.skill is not None:
                    skill = proposal.skill
                    return character.skill_modifier(skill), skill, skill.ability
                return 0, None, None
            case CheckType.ATTACK | CheckType.CONTEST:
                ability = proposal.ability or Ability.STR
                modifier = character.ability_modifier(ability) + character.proficiency_bonus
                return modifier, None, ability
            case _:
                raise InvariantViolation(
                    "Unhandled check type", field_name="check_type", value=proposal.check_type
                )

    def perform_check(self, character: Character, proposal: ProposedCheck) -> SkillCheckOutcome:
        """Roll a check proposed by the narrative.

        Args:
            character: The character making the check.
            proposal: The proposed check.

        Returns:
            SkillCheckOutcome for narration and logging.
        """
        modifier, skill, ability = self.modifier_for(character, proposal)
        roll = self._dice.roll_skill_check(
            modifier,
            proposal.difficulty_class,
            advantage=proposal.has_advantage,
            disadvantage=proposal.has_disadvantage,
        )
        outcome = SkillCheckOutcome(
            skill=skill, ability=ability, roll=roll, description=proposal.description
        )
        logger.info(
            "Check resolved",
            check=outcome.check_type_name,
            d20=roll.d20.result,
            total=roll.total,
            dc=roll.difficulty_class,
            success=roll.is_success,
        )
        return outcome

    def perform_ability_check(
        self,
        character: Character,
        ability: Ability,
        difficulty_class: int,
        *,
        advantage: bool = False,
        disadvantage: bool = False,
    ) -> SkillCheckOutcome:
        roll = self._dice.roll_skill_check(
            character.ability_modifier(ability),
            difficulty_class,
            advantage=advantage,
            disadvantage=disadvantage,
        )
        return SkillCheckOutcome(skill=None, ability=ability, roll=roll)

    def perform_skill_check(
        self,
        character: Character,
        skill: Skill,
        difficulty_class: int,
        *,
        advantage: bool = False,
        disadvantage: bool = False,
    ) -> SkillCheckOutcome:
        roll = self._dice.roll_skill_check(
            character.skill_modifier(skill),
            difficulty_class,
            advantage=advantage,
            disadvantage=disadvantage,
        )
        return SkillCheckOutcome(skill=skill, ability=skill.ability, roll=roll)

    def perform_contested_check(
        self,
        character: Character,
        skill: Skill,
        opponent_modifier: int,
        *,
        opponent_name: str = "Opponent",
        player_advantage: bool = False,
        player_disadvantage: bool = False,
        opponent_advantage: bool = False,
        opponent_disadvantage: bool = False,
    ) -> ContestedCheckOutcome:
        """Roll the player's skill against an opponent's flat modifier."""
        player_modifier = character.skill_modifier(skill)
        player_roll = self._dice.roll_d20_check(
            advantage=player_advantage, disadvantage=player_disadvantage
        )
        opponent_roll = self._dice.roll_d20_check(
            advantage=opponent_advantage, disadvantage=opponent_disadvantage
        )
        player_total = player_roll.result + player_modifier
        opponent_total = opponent_roll.result + opponent_modifier
        return ContestedCheckOutcome(
            player_skill=skill,
            player_roll=player_roll,
            player_modifier=player_modifier,
            player_total=player_total,
            opponent_name=opponent_name,
            opponent_roll=opponent_roll,
            opponent_modifier=opponent_modifier,
            opponent_total=opponent_total,
            player_wins=player_total >= opponent_total,
        )

    @staticmethod
    def passive_score(character: Character, skill: Skill) -> int:
        return character.passive_score(skill)

    @staticmethod
    def difficulty_description(difficulty_class: int) -> str:
        return difficulty_description(difficulty_class)


__all__ = [
    "SkillCheckOutcome",
    "ContestedCheckOutcome",
    "SkillCheckEngine",
]
