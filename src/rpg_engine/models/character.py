"""Player character model.

Characters are frozen pydantic models. Engine components never modify a
Character in place; they derive a new one with ``model_copy(update=...)``.
"""

from __future__ import annotations

from typing import Annotated
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from rpg_engine.core.constants import (
    MAX_LEVEL,
    XP_THRESHOLDS,
    ability_modifier,
    hit_die_for_class,
    proficiency_for_level,
)
from rpg_engine.core.exceptions import InvariantViolation
from rpg_engine.models.enums import Ability, Condition, Skill


class AbilityScores(BaseModel):
    """The six ability scores.

    Scores are nominally 1-20 but are not clamped, so magic items and
    monster stat blocks can exceed the range.

    Example:
        >>> scores = AbilityScores(strength=16, dexterity=14)
        >>> scores.get_modifier(Ability.STR)
        3
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    strength: int = 10
    dexterity: int = 10
    constitution: int = 10
    intelligence: int = 10
    wisdom: int = 10
    charisma: int = 10

    def get_score(self, ability: Ability) -> int:
        """Get the raw score for an ability."""
        return getattr(self, ability.value)

    def get_modifier(self, ability: Ability) -> int:
        """Get the modifier for an ability: floor((score - 10) / 2)."""
        return ability_modifier(self.get_score(ability))


class Character(BaseModel):
    """The player's character.

    Attributes:
        id: Unique character identifier.
        name: Character name.
        race: Character race.
        character_class: Class name; selects the hit die.
        level: Character level (1-20).
        experience_points: Total XP earned.
        ability_scores: The six ability scores.
        current_hit_points: Current HP, always within [0, max_hit_points].
        max_hit_points: Maximum HP.
        temporary_hit_points: Damage buffer consumed before current HP.
        armor_class: Armor class.
        speed: Walking speed in feet.
        proficient_skills: Skills the character adds proficiency to.
        expertise_skills: Skills the character adds double proficiency to.
        conditions: Active status conditions.
        hit_dice_remaining: Hit dice available for short rests.
        death_save_successes: Successful death saves (0-3).
        death_save_failures: Failed death saves (0-3).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(min_length=1, max_length=100)
    race: str = "Human"
    character_class: str = "fighter"
    level: Annotated[int, Field(ge=1, le=MAX_LEVEL)] = 1
    experience_points: Annotated[int, Field(ge=0)] = 0
    ability_scores: AbilityScores = Field(default_factory=AbilityScores)
    current_hit_points: int = 10
    max_hit_points: Annotated[int, Field(ge=1)] = 10
    temporary_hit_points: Annotated[int, Field(ge=0)] = 0
    armor_class: int = 10
    speed: int = 30
    proficient_skills: frozenset[Skill] = frozenset()
    expertise_skills: frozenset[Skill] = frozenset()
    conditions: frozenset[Condition] = frozenset()
    hit_dice_remaining: Annotated[int, Field(ge=0)] = 1
    death_save_successes: Annotated[int, Field(ge=0, le=3)] = 0
    death_save_failures: Annotated[int, Field(ge=0, le=3)] = 0

    @model_validator(mode="after")
    def validate_hit_points(self) -> "Character":
        """Reject HP outside [0, max_hit_points].

        Raises:
            InvariantViolation: If current HP escapes its bounds.
        """
        if not 0 <= self.current_hit_points <= self.max_hit_points:
            raise InvariantViolation(
                "Character HP outside [0, max]",
                field_name="current_hit_points",
                value=self.current_hit_points,
                details={"max_hit_points": self.max_hit_points},
            )
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def proficiency_bonus(self) -> int:
        """Proficiency bonus from the level table."""
        return proficiency_for_level(self.level)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def hit_die(self) -> int:
        """Sides of this character's hit die."""
        return hit_die_for_class(self.character_class)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_alive(self) -> bool:
        """Alive while HP remains or fewer than three death saves have failed."""
        return self.current_hit_points > 0 or self.death_save_failures < 3

    @computed_field  # type: ignore[prop-decorator]
    @property
    def xp_to_next_level(self) -> int:
        """XP still needed for the next level; 0 at the level cap."""
        if self.level >= MAX_LEVEL:
            return 0
        return max(0, XP_THRESHOLDS[self.level] - self.experience_points)

    def ability_modifier(self, ability: Ability) -> int:
        return self.ability_scores.get_modifier(ability)

    def skill_modifier(self, skill: Skill) -> int:
        """Ability modifier plus proficiency, doubled for expertise."""
        modifier = self.ability_modifier(skill.ability)
        if skill in self.expertise_skills:
            modifier += self.proficiency_bonus * 2
        elif skill in self.proficient_skills:
            modifier += self.proficiency_bonus
        return modifier

    def passive_score(self, skill: Skill) -> int:
        """Passive check value: 10 + skill modifier."""
        return 10 + self.skill_modifier(skill)


__all__ = [
    "AbilityScores",
    "Character",
]
