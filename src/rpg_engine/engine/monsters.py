"""Monster templates for combat triggers.

Enemies named by the narrative are matched against a small bestiary of
stat blocks. Unknown names get a generic stat block scaled from the
challenge rating the narrative suggested.
"""

from __future__ import annotations

import re
from uuid import uuid4

from rpg_engine.core.constants import proficiency_for_challenge_rating
from rpg_engine.core.logging import get_logger
from rpg_engine.models.ai_response import CombatEnemy, CombatTrigger
from rpg_engine.models.character import AbilityScores
from rpg_engine.models.enums import DamageType, MonsterType
from rpg_engine.models.monster import Monster, MonsterAction


logger = get_logger(__name__)

XP_BY_CHALLENGE_RATING: dict[float, int] = {
    0: 10, 0.125: 25, 0.25: 50, 0.5: 100, 1: 200, 2: 450, 3: 700, 4: 1100,
    5: 1800, 6: 2300, 7: 2900, 8: 3900, 9: 5000, 10: 5900,
}
"""Experience value per challenge rating; ratings between steps round down."""


def experience_for_challenge_rating(challenge_rating: float) -> int:
    if challenge_rating > 10:
        # beyond the table, grow linearly from the CR 10 value
        return XP_BY_CHALLENGE_RATING[10] + int((challenge_rating - 10) * 1000)
    steps = [cr for cr in sorted(XP_BY_CHALLENGE_RATING) if cr <= challenge_rating]
    return XP_BY_CHALLENGE_RATING[steps[-1]] if steps else XP_BY_CHALLENGE_RATING[0]


def _stat_block(
    name: str,
    description: str,
    monster_type: MonsterType,
    *,
    armor_class: int,
    hit_points: int,
    challenge_rating: float,
    scores: tuple[int, int, int, int, int, int],
    action: MonsterAction,
    speed: int = 30,
    resistances: tuple[str, ...] = (),
    immunities: tuple[str, ...] = (),
    vulnerabilities: tuple[str, ...] = (),
) -> Monster:
    strength, dexterity, constitution, intelligence, wisdom, charisma = scores
    return Monster(
        name=name,
        description=description,
        monster_type=monster_type,
        armor_class=armor_class,
        current_hit_points=hit_points,
        max_hit_points=hit_points,
        ability_scores=AbilityScores(
            strength=strength,
            dexterity=dexterity,
            constitution=constitution,
            intelligence=intelligence,
            wisdom=wisdom,
            charisma=charisma,
        ),
        challenge_rating=challenge_rating,
        experience_value=experience_for_challenge_rating(challenge_rating),
        speed=speed,
        actions=(action,),
        resistances=resistances,
        immunities=immunities,
        vulnerabilities=vulnerabilities,
    )


BESTIARY: dict[str, Monster] = {
    "goblin": _stat_block(
        "Goblin", "A small, cunning humanoid with a wicked grin.", MonsterType.HUMANOID,
        armor_class=15, hit_points=7, challenge_rating=0.25, scores=(8, 14, 10, 10, 8, 8),
        action=MonsterAction(name="Scimitar", attack_bonus=4, damage="1d6+2",
                             damage_type=DamageType.SLASHING),
    ),
    "kobold": _stat_block(
        "Kobold", "A scaly, dog-like creature that fights in packs.", MonsterType.HUMANOID,
        armor_class=12, hit_points=5, challenge_rating=0.125, scores=(7, 15, 9, 8, 7, 8),
        action=MonsterAction(name="Dagger", attack_bonus=4, damage="1d4+2",
                             damage_type=DamageType.PIERCING),
    ),
    "wolf": _stat_block(
        "Wolf", "A lean grey predator with keen senses.", MonsterType.BEAST,
        armor_class=13, hit_points=11, challenge_rating=0.25, scores=(12, 15, 12, 3, 12, 6),
        action=MonsterAction(name="Bite", attack_bonus=4, damage="2d4+2",
                             damage_type=DamageType.PIERCING),
        speed=40,
    ),
    "skeleton": _stat_block(
        "Skeleton", "Animated bones clutching a rusted blade.", MonsterType.UNDEAD,
        armor_class=13, hit_points=13, challenge_rating=0.25, scores=(10, 14, 15, 6, 8, 5),
        action=MonsterAction(name="Shortsword", attack_bonus=4, damage="1d6+2",
                             damage_type=DamageType.PIERCING),
        immunities=("poison",),
        vulnerabilities=("bludgeoning",),
    ),
    "zombie": _stat_block(
        "Zombie", "A shambling corpse that does not stay down easily.", MonsterType.UNDEAD,
        armor_class=8, hit_points=22, challenge_rating=0.25, scores=(13, 6, 16, 3, 6, 5),
        action=MonsterAction(name="Slam", attack_bonus=3, damage="1d6+1",
                             damage_type=DamageType.BLUDGEONING),
        speed=20,
        immunities=("poison",),
    ),
    "bandit": _stat_block(
        "Bandit", "A desperate outlaw armed with a curved blade.", MonsterType.HUMANOID,
        armor_class=12, hit_points=11, challenge_rating=0.125, scores=(11, 12, 12, 10, 10, 10),
        action=MonsterAction(name="Scimitar", attack_bonus=3, damage="1d6+1",
                             damage_type=DamageType.SLASHING),
    ),
    "orc": _stat_block(
        "Orc", "A brutish warrior swinging a heavy axe.", MonsterType.HUMANOID,
        armor_class=13, hit_points=15, challenge_rating=0.5, scores=(16, 12, 16, 7, 11, 10),
        action=MonsterAction(name="Greataxe", attack_bonus=5, damage="1d12+3",
                             damage_type=DamageType.SLASHING),
    ),
    "hobgoblin": _stat_block(
        "Hobgoblin", "A disciplined goblinoid soldier in lacquered armor.", MonsterType.HUMANOID,
        armor_class=18, hit_points=11, challenge_rating=0.5, scores=(13, 12, 12, 10, 10, 9),
        action=MonsterAction(name="Longsword", attack_bonus=3, damage="1d8+1",
                             damage_type=DamageType.SLASHING),
    ),
    "giant_rat": _stat_block(
        "Giant Rat", "A rat the size of a dog, all teeth and hunger.", MonsterType.BEAST,
        armor_class=12, hit_points=7, challenge_rating=0.125, scores=(7, 15, 11, 2, 10, 4),
        action=MonsterAction(name="Bite", attack_bonus=4, damage="1d4+2",
                             damage_type=DamageType.PIERCING),
    ),
    "giant_spider": _stat_block(
        "Giant Spider", "A hulking spider dripping with venom.", MonsterType.BEAST,
        armor_class=14, hit_points=26, challenge_rating=1, scores=(14, 16, 12, 2, 11, 4),
        action=MonsterAction(name="Bite", attack_bonus=5, damage="1d8+3",
                             damage_type=DamageType.PIERCING),
    ),
    "ghoul": _stat_block(
        "Ghoul", "A gaunt undead thing with paralyzing claws.", MonsterType.UNDEAD,
        armor_class=12, hit_points=22, challenge_rating=1, scores=(13, 15, 10, 7, 10, 6),
        action=MonsterAction(name="Claws", attack_bonus=4, damage="2d4+2",
                             damage_type=DamageType.SLASHING),
        immunities=("poison",),
    ),
    "bugbear": _stat_block(
        "Bugbear", "A hairy goblinoid brute that favors ambushes.", MonsterType.HUMANOID,
        armor_class=16, hit_points=27, challenge_rating=1, scores=(15, 14, 13, 8, 11, 9),
        action=MonsterAction(name="Morningstar", attack_bonus=4, damage="2d8+2",
                             damage_type=DamageType.PIERCING),
    ),
    "ogre": _stat_block(
        "Ogre", "A towering, dim-witted giant with a tree-trunk club.", MonsterType.GIANT,
        armor_class=11, hit_points=59, challenge_rating=2, scores=(19, 8, 16, 5, 7, 7),
        action=MonsterAction(name="Greatclub", attack_bonus=6, damage="2d8+4",
                             damage_type=DamageType.BLUDGEONING),
        speed=40,
    ),
}


def normalize_monster_name(name: str) -> str:
    """'Giant Rats' -> 'giant_rat'."""
    normalized = re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")
    if normalized.endswith("s") and not normalized.endswith("ss"):
        normalized = normalized[:-1]
    return normalized


def _parse_monster_type(raw: str | None) -> MonsterType:
    if raw:
        try:
            return MonsterType(raw.strip().lower())
        except ValueError:
            pass
    return MonsterType.HUMANOID


class MonsterCatalog:
    """Builds Monster instances for combat.

    Example:
        >>> catalog = MonsterCatalog()
        >>> catalog.create("goblin").max_hit_points
        7
    """

    def __init__(self, bestiary: dict[str, Monster] | None = None) -> None:
        self._bestiary = dict(BESTIARY if bestiary is None else bestiary)

    def find(self, name: str) -> Monster | None:
        wanted = normalize_monster_name(name)
        template = self._bestiary.get(wanted)
        if template is not None:
            return template
        for key, candidate in self._bestiary.items():
            # 'Goblin Archer' falls back to the goblin stat block
            if wanted.startswith(f"{key}_") or wanted.endswith(f"_{key}"):
                return candidate
        return None

    def create(
        self,
        name: str,
        *,
        challenge_rating: float = 0.25,
        monster_type: str | None = None,
    ) -> Monster:
        """Create a fresh monster, from the bestiary when the name is known.

        Args:
            name: Monster name as proposed.
            challenge_rating: CR used to scale an unknown monster.
            monster_type: Creature type hint for an unknown monster.

        Returns:
            A Monster at full hit points with its own id.
        """
        template = self.find(name)
        if template is not None:
            return template.model_copy(update={"id": str(uuid4())})
        return synthesize_monster(
            name, challenge_rating=challenge_rating, monster_type=_parse_monster_type(monster_type)
        )

    def create_enemies(self, trigger: CombatTrigger) -> list[Monster]:
        """Expand a combat trigger into individual monsters.

        Groups with a count above one are numbered: 'Goblin 1', 'Goblin 2'.
        """
        monsters: list[Monster] = []
        for enemy in trigger.enemies:
            monsters.extend(self._create_group(enemy))
        logger.info("Enemies created", enemies=[m.name for m in monsters])
        return monsters

    def _create_group(self, enemy: CombatEnemy) -> list[Monster]:
        group: list[Monster] = []
        for index in range(enemy.count):
            monster = self.create(
                enemy.name,
                challenge_rating=enemy.challenge_rating,
                monster_type=enemy.monster_type,
            )
            if enemy.count > 1:
                monster = monster.model_copy(update={"name": f"{monster.name} {index + 1}"})
            group.append(monster)
        return group


def synthesize_monster(
    name: str,
    *,
    challenge_rating: float = 0.25,
    monster_type: MonsterType = MonsterType.HUMANOID,
) -> Monster:
    """Generic stat block scaled from the challenge rating."""
    cr = max(0.0, challenge_rating)
    proficiency = proficiency_for_challenge_rating(cr)
    hit_points = max(4, int(7 + cr * 15))
    strength = 10 + min(int(cr * 2), 10)

    if cr < 1:
        damage = "1d6" if cr < 0.5 else "1d6+1"
    else:
        damage = f"{min(1 + int(cr) // 2, 6)}d8+{proficiency}"

    return Monster(
        name=name.strip() or "Unknown Enemy",
        description=f"A hostile {name.strip().lower() or 'creature'}.",
        monster_type=monster_type,
        armor_class=12 + min(int(cr) // 3, 6),
        current_hit_points=hit_points,
        max_hit_points=hit_points,
        ability_scores=AbilityScores(strength=strength, dexterity=12, constitution=12),
        challenge_rating=cr,
        experience_value=experience_for_challenge_rating(cr),
        actions=(
            MonsterAction(
                name="Attack",
                attack_bonus=proficiency + (strength - 10) // 2,
                damage=damage,
                damage_type=DamageType.BLUDGEONING,
            ),
        ),
    )


__all__ = [
    "XP_BY_CHALLENGE_RATING",
    "experience_for_challenge_rating",
    "BESTIARY",
    "normalize_monster_name",
    "MonsterCatalog",
    "synthesize_monster",
]
