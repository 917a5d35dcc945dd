"""Monster stat blocks."""

from __future__ import annotations

from typing import Annotated
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field

from rpg_engine.core.constants import proficiency_for_challenge_rating
from rpg_engine.models.character import AbilityScores
from rpg_engine.models.enums import Ability, DamageType, MonsterType


class MonsterAction(BaseModel):
    """A named attack or ability a monster can use on its turn.

    Attributes:
        name: Action name (e.g., 'Scimitar').
        description: Flavor text.
        attack_bonus: To-hit bonus; derived from proficiency + STR when absent.
        damage: Damage notation (e.g., '1d6+2').
        damage_type: Type of damage dealt.
        save_dc: DC for save-based actions.
        save_ability: Ability the target saves with.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    description: str = ""
    attack_bonus: int | None = None
    damage: str | None = None
    damage_type: DamageType = DamageType.BLUDGEONING
    save_dc: int | None = None
    save_ability: Ability | None = None


class Monster(BaseModel):
    """A hostile creature in a combat session.

    Damage tags are free-form strings so stat blocks can carry compound
    entries such as 'bludgeoning from nonmagical attacks'; the combat
    resolver matches them case-insensitively against the damage type name.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(min_length=1)
    description: str = ""
    monster_type: MonsterType = MonsterType.HUMANOID
    armor_class: int = 10
    current_hit_points: Annotated[int, Field(ge=0)]
    max_hit_points: Annotated[int, Field(ge=1)]
    ability_scores: AbilityScores = Field(default_factory=AbilityScores)
    challenge_rating: Annotated[float, Field(ge=0)] = 0.0
    experience_value: Annotated[int, Field(ge=0)] = 0
    speed: int = 30
    actions: tuple[MonsterAction, ...] = ()
    resistances: tuple[str, ...] = ()
    immunities: tuple[str, ...] = ()
    vulnerabilities: tuple[str, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def proficiency_bonus(self) -> int:
        """Proficiency bonus from the CR step table."""
        return proficiency_for_challenge_rating(self.challenge_rating)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_alive(self) -> bool:
        return self.current_hit_points > 0

    def ability_modifier(self, ability: Ability) -> int:
        return self.ability_scores.get_modifier(ability)


__all__ = [
    "MonsterAction",
    "Monster",
]
