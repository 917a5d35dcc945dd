"""Combat resolution: attacks, healing, death saves and leveling.

The resolver is stateless apart from its dice roller. Every method takes
the combatants as values and returns a result record carrying the updated
combatant, so callers decide when the new values take effect.
"""

from __future__ import annotations

from dataclasses import dataclass

from rpg_engine.core.constants import (
    MAX_LEVEL,
    hp_per_level,
    level_for_xp,
    proficiency_for_level,
)
from rpg_engine.core.logging import get_logger
from rpg_engine.engine.dice import DiceRoller
from rpg_engine.models.character import Character
from rpg_engine.models.enums import Ability, DamageType
from rpg_engine.models.monster import Monster, MonsterAction
from rpg_engine.models.rolls import AttackRoll, DamageRoll, NotationRoll


logger = get_logger(__name__)

DEFAULT_MONSTER_DAMAGE = "1d6"


# =============================================================================
# Result Records
# =============================================================================


@dataclass(frozen=True)
class InitiativeEntry:
    """One combatant's place in the turn order."""

    combatant_id: str
    name: str
    initiative: int
    is_player: bool
    dexterity: int


@dataclass(frozen=True)
class PlayerAttackResult:
    """Outcome of the player attacking a monster.

    Attributes:
        attack_roll: The attack roll.
        damage_roll: Damage rolled on a hit; None on a miss.
        final_damage: Damage after immunity, resistance and vulnerability.
        target: The monster with its new hit points.
        target_killed: Whether the monster dropped to 0 HP.
        damage_type: Type of damage dealt.
    """

    attack_roll: AttackRoll
    damage_roll: DamageRoll | None
    final_damage: int
    target: Monster
    target_killed: bool
    damage_type: DamageType

    @property
    def is_hit(self) -> bool:
        return self.attack_roll.is_hit

    @property
    def is_critical(self) -> bool:
        return self.attack_roll.is_critical_hit

    @property
    def target_new_hp(self) -> int:
        return self.target.current_hit_points


@dataclass(frozen=True)
class MonsterAttackResult:
    """Outcome of a monster attacking the player."""

    attacker_name: str
    action_name: str
    attack_roll: AttackRoll
    damage_roll: DamageRoll | None
    final_damage: int
    character: Character
    player_knocked_out: bool
    damage_type: DamageType
    temp_hp_remaining: int

    @property
    def is_hit(self) -> bool:
        return self.attack_roll.is_hit

    @property
    def is_critical(self) -> bool:
        return self.attack_roll.is_critical_hit

    @property
    def player_new_hp(self) -> int:
        return self.character.current_hit_points


@dataclass(frozen=True)
class HealingResult:
    healing_roll: NotationRoll
    actual_healing: int
    character: Character
    was_at_full_hp: bool

    @property
    def new_hp(self) -> int:
        return self.character.current_hit_points


@dataclass(frozen=True)
class DeathSaveResult:
    """Outcome of one death saving throw.

    ``new_failures`` is the raw accumulated count and may exceed 3; the
    stored counter on ``character`` never does.
    """

    roll: int
    is_success: bool
    is_natural_20: bool
    is_natural_1: bool
    new_successes: int
    new_failures: int
    stabilized: bool
    died: bool
    regained_hp: bool
    character: Character


@dataclass(frozen=True)
class LevelUpResult:
    did_level_up: bool
    old_level: int
    new_level: int
    new_xp: int
    hp_increase: int
    new_proficiency_bonus: int

    @property
    def levels_gained(self) -> int:
        return self.new_level - self.old_level


# =============================================================================
# Combat Resolver
# =============================================================================


def adjust_damage_for_target(monster: Monster, damage: int, damage_type: DamageType) -> int:
    """Apply immunity (0), resistance (half, floored) or vulnerability (x2).

    Tags match the damage type name case-insensitively; compound tags such
    as 'bludgeoning from nonmagical attacks' match on their first word.
    """
    name = damage_type.value

    def has_tag(tags: tuple[str, ...]) -> bool:
        return any(tag.strip().lower().split(" ", 1)[0] == name for tag in tags if tag.strip())

    if has_tag(monster.immunities):
        return 0
    if has_tag(monster.resistances):
        return damage // 2
    if has_tag(monster.vulnerabilities):
        return damage * 2
    return damage


class CombatResolver:
    """Resolves attacks, healing, death saves and level ups.

    Example:
        >>> resolver = CombatResolver(DiceRoller(seed=1))
        >>> order = resolver.roll_initiative(character, [goblin])
    """

    def __init__(self, dice: DiceRoller | None = None) -> None:
        self._dice = dice or DiceRoller()

    @property
    def dice(self) -> DiceRoller:
        return self._dice

    def roll_initiative(
        self, character: Character, monsters: list[Monster]
    ) -> tuple[InitiativeEntry, ...]:
        """Roll initiative for everyone, highest first; ties go to higher DEX."""
        entries = [
            InitiativeEntry(
                combatant_id=character.id,
                name=character.name,
                initiative=self._dice.roll_initiative(character.ability_modifier(Ability.DEX)),
                is_player=True,
                dexterity=character.ability_scores.dexterity,
            )
        ]
        for monster in monsters:
            entries.append(
                InitiativeEntry(
                    combatant_id=monster.id,
                    name=monster.name,
                    initiative=self._dice.roll_initiative(monster.ability_modifier(Ability.DEX)),
                    is_player=False,
                    dexterity=monster.ability_scores.dexterity,
                )
            )
        # sort is stable, so equal initiative and DEX keep roll order
        entries.sort(key=lambda entry: (entry.initiative, entry.dexterity), reverse=True)
        logger.info(
            "Initiative rolled",
            order=[(entry.name, entry.initiative) for entry in entries],
        )
        return tuple(entries)

    def player_attack(
        self,
        character: Character,
        target: Monster,
        *,
        attack_bonus: int,
        damage_notation: str,
        damage_type: DamageType = DamageType.SLASHING,
        advantage: bool = False,
        disadvantage: bool = False,
    ) -> PlayerAttackResult:
        """Resolve the player's attack against a monster.

        Args:
            character: The attacking character.
            target: The monster being attacked.
            attack_bonus: Bonus added to the attack roll.
            damage_notation: Weapon damage notation, e.g. '1d8+3'.
            damage_type: Type of damage dealt.
            advantage: Attack with advantage.
            disadvantage: Attack with disadvantage.

        Returns:
            PlayerAttackResult with the monster's new hit points.
        """
        attack = self._dice.roll_attack(
            attack_bonus, target.armor_class, advantage=advantage, disadvantage=disadvantage
        )
        if not attack.is_hit:
            logger.info("Attack resolved", attacker=character.name, target=target.name, hit=False)
            return PlayerAttackResult(
                attack_roll=attack,
                damage_roll=None,
                final_damage=0,
                target=target,
                target_killed=False,
                damage_type=damage_type,
            )

        damage = self._dice.roll_damage(damage_notation, is_critical=attack.is_critical_hit)
        final_damage = adjust_damage_for_target(target, damage.total, damage_type)
        new_hp = min(max(target.current_hit_points - final_damage, 0), target.max_hit_points)

        logger.info(
            "Attack resolved",
            attacker=character.name,
            target=target.name,
            hit=True,
            critical=attack.is_critical_hit,
            damage=final_damage,
            target_hp=new_hp,
        )
        return PlayerAttackResult(
            attack_roll=attack,
            damage_roll=damage,
            final_damage=final_damage,
            target=target.model_copy(update={"current_hit_points": new_hp}),
            target_killed=new_hp <= 0,
            damage_type=damage_type,
        )

    def monster_attack(
        self,
        monster: Monster,
        character: Character,
        action: MonsterAction,
        *,
        difficulty_multiplier: float = 1.0,
    ) -> MonsterAttackResult:
        """Resolve a monster action against the player.

        Damage is scaled by the difficulty multiplier and temporary hit
        points absorb it before current hit points.
        """
        attack_bonus = action.attack_bonus
        if attack_bonus is None:
            attack_bonus = monster.proficiency_bonus + monster.ability_modifier(Ability.STR)

        attack = self._dice.roll_attack(attack_bonus, character.armor_class)
        if not attack.is_hit:
            logger.info("Monster attack resolved", attacker=monster.name, hit=False)
            return MonsterAttackResult(
                attacker_name=monster.name,
                action_name=action.name,
                attack_roll=attack,
                damage_roll=None,
                final_damage=0,
                character=character,
                player_knocked_out=False,
                damage_type=action.damage_type,
                temp_hp_remaining=character.temporary_hit_points,
            )

        damage = self._dice.roll_damage(
            action.damage or DEFAULT_MONSTER_DAMAGE, is_critical=attack.is_critical_hit
        )
        final_damage = round(damage.total * difficulty_multiplier)

        temp_hp = character.temporary_hit_points
        absorbed = min(temp_hp, final_damage)
        temp_hp -= absorbed
        final_damage -= absorbed

        new_hp = min(max(character.current_hit_points - final_damage, 0), character.max_hit_points)
        updated = character.model_copy(
            update={"current_hit_points": new_hp, "temporary_hit_points": temp_hp}
        )

        logger.info(
            "Monster attack resolved",
            attacker=monster.name,
            action=action.name,
            hit=True,
            critical=attack.is_critical_hit,
            damage=final_damage,
            absorbed=absorbed,
            player_hp=new_hp,
        )
        return MonsterAttackResult(
            attacker_name=monster.name,
            action_name=action.name,
            attack_roll=attack,
            damage_roll=damage,
            final_damage=final_damage,
            character=updated,
            player_knocked_out=new_hp <= 0,
            damage_type=action.damage_type,
            temp_hp_remaining=temp_hp,
        )

    def apply_healing(self, character: Character, notation: str) -> HealingResult:
        """Heal by a dice notation, never above max HP.

        A roll that totals below zero heals nothing.
        """
        roll = self._dice.roll_notation(notation)
        new_hp = min(character.current_hit_points + max(roll.total, 0), character.max_hit_points)
        return HealingResult(
            healing_roll=roll,
            actual_healing=new_hp - character.current_hit_points,
            character=character.model_copy(update={"current_hit_points": new_hp}),
            was_at_full_hp=character.current_hit_points == character.max_hit_points,
        )

    def roll_death_save(self, character: Character) -> DeathSaveResult:
        """Roll a death saving throw for a character at 0 HP.

        A natural 20 regains 1 HP and clears both counters. A natural 1
        counts as two failures. Three successes stabilize; three failures
        kill.
        """
        roll = self._dice.roll_d20()
        successes = character.death_save_successes
        failures = character.death_save_failures

        if roll == 20:
            updated = character.model_copy(
                update={
                    "current_hit_points": min(1, character.max_hit_points),
                    "death_save_successes": 0,
                    "death_save_failures": 0,
                }
            )
            logger.info("Death save", roll=roll, regained_hp=True)
            return DeathSaveResult(
                roll=roll,
                is_success=True,
                is_natural_20=True,
                is_natural_1=False,
                new_successes=0,
                new_failures=0,
                stabilized=False,
                died=False,
                regained_hp=True,
                character=updated,
            )

        if roll == 1:
            failures += 2
        elif roll >= 10:
            successes += 1
        else:
            failures += 1

        stabilized = False
        died = False
        if successes >= 3:
            stabilized = True
            successes = 0
            failures = 0
        elif failures >= 3:
            died = True

        updated = character.model_copy(
            update={
                "death_save_successes": min(successes, 3),
                "death_save_failures": min(failures, 3),
            }
        )
        logger.info(
            "Death save",
            roll=roll,
            successes=successes,
            failures=failures,
            stabilized=stabilized,
            died=died,
        )
        return DeathSaveResult(
            roll=roll,
            is_success=roll >= 10,
            is_natural_20=False,
            is_natural_1=roll == 1,
            new_successes=successes,
            new_failures=failures,
            stabilized=stabilized,
            died=died,
            regained_hp=False,
            character=updated,
        )

    def calculate_experience_reward(self, monsters: list[Monster]) -> int:
        return sum(monster.experience_value for monster in monsters)

    def check_level_up(self, character: Character, xp_gained: int) -> LevelUpResult:
        """Work out the level reached after gaining ``xp_gained`` XP.

        Each level gained adds ceil(hit_die / 2) + 1 + CON modifier HP,
        never less than 0.
        """
        new_xp = character.experience_points + xp_gained
        new_level = max(character.level, min(level_for_xp(new_xp), MAX_LEVEL))
        levels_gained = new_level - character.level

        if levels_gained <= 0:
            return LevelUpResult(
                did_level_up=False,
                old_level=character.level,
                new_level=character.level,
                new_xp=new_xp,
                hp_increase=0,
                new_proficiency_bonus=character.proficiency_bonus,
            )

        per_level = hp_per_level(character.hit_die, character.ability_modifier(Ability.CON))
        return LevelUpResult(
            did_level_up=True,
            old_level=character.level,
            new_level=new_level,
            new_xp=new_xp,
            hp_increase=per_level * levels_gained,
            new_proficiency_bonus=proficiency_for_level(new_level),
        )

    def apply_level_up(self, character: Character, result: LevelUpResult) -> Character:
        """Return ``character`` with the XP, level and HP from ``result``."""
        if not result.did_level_up:
            return character.model_copy(update={"experience_points": result.new_xp})

        logger.info(
            "Level up",
            character=character.name,
            old_level=result.old_level,
            new_level=result.new_level,
            hp_increase=result.hp_increase,
        )
        return character.model_copy(
            update={
                "experience_points": result.new_xp,
                "level": result.new_level,
                "max_hit_points": character.max_hit_points + result.hp_increase,
                "current_hit_points": character.current_hit_points + result.hp_increase,
                "hit_dice_remaining": min(
                    character.hit_dice_remaining + result.levels_gained, result.new_level
                ),
            }
        )


__all__ = [
    "DEFAULT_MONSTER_DAMAGE",
    "InitiativeEntry",
    "PlayerAttackResult",
    "MonsterAttackResult",
    "HealingResult",
    "DeathSaveResult",
    "LevelUpResult",
    "adjust_damage_for_target",
    "CombatResolver",
]
