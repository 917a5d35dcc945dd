"""Tests for the monster catalog."""

from __future__ import annotations

import pytest

from rpg_engine.engine.monsters import (
    MonsterCatalog,
    experience_for_challenge_rating,
    normalize_monster_name,
    synthesize_monster,
)
from rpg_engine.models.ai_response import CombatTrigger
from rpg_engine.models.enums import DamageType, MonsterType


class TestBestiary:
    """Tests for known stat blocks."""

    def test_goblin_stat_block(self) -> None:
        """Test the goblin template."""
        goblin = MonsterCatalog().create("goblin")

        assert goblin.name == "Goblin"
        assert goblin.armor_class == 15
        assert goblin.max_hit_points == 7
        assert goblin.current_hit_points == 7
        assert goblin.challenge_rating == 0.25
        assert goblin.experience_value == 50
        assert goblin.actions[0].damage == "1d6+2"
        assert goblin.actions[0].damage_type == DamageType.SLASHING

    @pytest.mark.parametrize(
        ("name", "key"),
        [("Giant Rats", "giant_rat"), ("Goblins", "goblin"), ("Boss", "boss")],
    )
    def test_normalize_monster_name(self, name: str, key: str) -> None:
        """Test plurals are folded but double s is kept."""
        assert normalize_monster_name(name) == key

    @pytest.mark.parametrize("name", ["Goblin Archer", "Sneaky Goblin", "GOBLINS"])
    def test_find_variants(self, name: str) -> None:
        """Test prefixed, suffixed and plural names fall back to the base block."""
        found = MonsterCatalog().find(name)

        assert found is not None
        assert found.name == "Goblin"

    def test_created_monsters_have_unique_ids(self) -> None:
        """Test every creation gets its own id."""
        catalog = MonsterCatalog()

        assert catalog.create("Wolf").id != catalog.create("Wolf").id

    def test_skeleton_damage_tags(self) -> None:
        """Test tags carried by the skeleton."""
        skeleton = MonsterCatalog().create("Skeleton")

        assert skeleton.immunities == ("poison",)
        assert skeleton.vulnerabilities == ("bludgeoning",)
        assert skeleton.monster_type == MonsterType.UNDEAD


class TestSynthesis:
    """Tests for unknown monsters."""

    def test_unknown_name_is_synthesized(self) -> None:
        """Test an unknown name gets a generic block scaled by CR."""
        monster = MonsterCatalog().create("Cave Troll", challenge_rating=5, monster_type="Giant")

        assert monster.name == "Cave Troll"
        assert monster.monster_type == MonsterType.GIANT
        assert monster.max_hit_points == 82
        assert monster.armor_class == 13
        assert monster.experience_value == 1800
        assert monster.actions[0].damage == "3d8+3"

    def test_unknown_type_defaults_to_humanoid(self) -> None:
        """Test an unrecognized type hint is ignored."""
        monster = MonsterCatalog().create("Thing", monster_type="blob")

        assert monster.monster_type == MonsterType.HUMANOID

    def test_weak_monster_floor(self) -> None:
        """Test CR 0 still produces a usable monster."""
        monster = synthesize_monster("Mote", challenge_rating=0)

        assert monster.max_hit_points == 7
        assert monster.actions[0].damage == "1d6"

    @pytest.mark.parametrize(
        ("challenge_rating", "xp"), [(0, 10), (0.25, 50), (0.3, 50), (10, 5900), (12, 7900)]
    )
    def test_experience_for_challenge_rating(self, challenge_rating: float, xp: int) -> None:
        """Test the XP table, rounding down between steps and extrapolating past 10."""
        assert experience_for_challenge_rating(challenge_rating) == xp


class TestCombatTriggers:
    """Tests for expanding triggers into monsters."""

    def test_groups_are_numbered(self) -> None:
        """Test a group of three goblins and a single wolf."""
        trigger = CombatTrigger.model_validate(
            {"enemies": [{"name": "Goblin", "count": 3}, {"name": "Wolf"}]}
        )

        monsters = MonsterCatalog().create_enemies(trigger)

        assert [monster.name for monster in monsters] == ["Goblin 1", "Goblin 2", "Goblin 3", "Wolf"]
        assert len({monster.id for monster in monsters}) == 4

    def test_empty_trigger(self) -> None:
        """Test a trigger with no enemies creates none."""
        assert MonsterCatalog().create_enemies(CombatTrigger()) == []
