"""Tests for the combat resolver."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from rpg_engine.engine.combat import CombatResolver, adjust_damage_for_target
from rpg_engine.engine.dice import DiceRoller
from rpg_engine.models.character import AbilityScores, Character
from rpg_engine.models.enums import DamageType
from rpg_engine.models.monster import Monster, MonsterAction


@pytest.fixture
def goblin() -> Monster:
    """Provide a plain goblin."""
    return Monster(
        name="Goblin",
        armor_class=15,
        current_hit_points=7,
        max_hit_points=7,
        ability_scores=AbilityScores(strength=8, dexterity=14),
        challenge_rating=0.25,
        experience_value=50,
        actions=(MonsterAction(name="Scimitar", attack_bonus=4, damage="1d6+2"),),
    )


def resolver_with(scripted_dice: Callable[..., DiceRoller], *values: int) -> CombatResolver:
    return CombatResolver(scripted_dice(*values))


class TestInitiative:
    """Tests for turn order."""

    def test_sorted_descending(
        self,
        scripted_dice: Callable[..., DiceRoller],
        sample_character: Character,
        goblin: Monster,
    ) -> None:
        """Test the highest initiative goes first."""
        order = resolver_with(scripted_dice, 5, 18).roll_initiative(sample_character, [goblin])

        assert [entry.name for entry in order] == ["Goblin", "Mira"]
        assert order[0].initiative == 20
        assert not order[0].is_player

    def test_ties_broken_by_dexterity(
        self,
        scripted_dice: Callable[..., DiceRoller],
        sample_character: Character,
        goblin: Monster,
    ) -> None:
        """Test equal initiative favors higher DEX."""
        dexterous = goblin.model_copy(
            update={"ability_scores": AbilityScores(strength=8, dexterity=15)}
        )
        order = resolver_with(scripted_dice, 10, 10).roll_initiative(sample_character, [dexterous])

        assert order[0].name == "Goblin"


class TestPlayerAttack:
    """Tests for attacks against monsters."""

    def test_miss_leaves_hp(
        self,
        scripted_dice: Callable[..., DiceRoller],
        sample_character: Character,
        goblin: Monster,
    ) -> None:
        """Test a miss deals no damage."""
        result = resolver_with(scripted_dice, 2).player_attack(
            sample_character, goblin, attack_bonus=5, damage_notation="1d8+3"
        )

        assert not result.is_hit
        assert result.final_damage == 0
        assert result.target_new_hp == 7

    def test_critical_hit_kills(
        self,
        scripted_dice: Callable[..., DiceRoller],
        sample_character: Character,
        goblin: Monster,
    ) -> None:
        """Test a natural 20 doubles the dice and clamps HP at 0."""
        result = resolver_with(scripted_dice, 20, 4, 5).player_attack(
            sample_character, goblin, attack_bonus=5, damage_notation="1d8+3"
        )

        assert result.is_critical
        assert result.damage_roll is not None
        assert result.damage_roll.rolled_notation == "2d8+3"
        assert result.final_damage == 12
        assert result.target_new_hp == 0
        assert result.target_killed

    @pytest.mark.parametrize(
        ("field", "expected"),
        [("immunities", 0), ("resistances", 3), ("vulnerabilities", 14)],
    )
    def test_damage_adjustments(self, goblin: Monster, field: str, expected: int) -> None:
        """Test immunity, resistance and vulnerability."""
        tagged = goblin.model_copy(update={field: ("Fire",)})

        assert adjust_damage_for_target(tagged, 7, DamageType.FIRE) == expected

    def test_compound_tag_matches_first_word(self, goblin: Monster) -> None:
        """Test 'bludgeoning from nonmagical attacks' resists bludgeoning."""
        tagged = goblin.model_copy(
            update={"resistances": ("bludgeoning from nonmagical attacks",)}
        )

        assert adjust_damage_for_target(tagged, 9, DamageType.BLUDGEONING) == 4
        assert adjust_damage_for_target(tagged, 9, DamageType.SLASHING) == 9


class TestMonsterAttack:
    """Tests for attacks against the player."""

    def test_temporary_hp_absorbs_first(
        self,
        scripted_dice: Callable[..., DiceRoller],
        sample_character: Character,
        goblin: Monster,
    ) -> None:
        """Test temp HP soaks damage before current HP."""
        character = sample_character.model_copy(update={"temporary_hit_points": 3})
        result = resolver_with(scripted_dice, 15, 4).monster_attack(
            goblin, character, goblin.actions[0]
        )

        assert result.is_hit
        assert result.final_damage == 3
        assert result.temp_hp_remaining == 0
        assert result.player_new_hp == 9

    def test_difficulty_multiplier_scales_damage(
        self,
        scripted_dice: Callable[..., DiceRoller],
        sample_character: Character,
        goblin: Monster,
    ) -> None:
        """Test damage is round(total * multiplier)."""
        result = resolver_with(scripted_dice, 15, 4).monster_attack(
            goblin, sample_character, goblin.actions[0], difficulty_multiplier=1.5
        )

        assert result.final_damage == 9
        assert result.player_new_hp == 3

    def test_default_attack_bonus_and_damage(
        self,
        scripted_dice: Callable[..., DiceRoller],
        sample_character: Character,
        goblin: Monster,
    ) -> None:
        """Test proficiency + STR is used and damage defaults to 1d6."""
        action = MonsterAction(name="Claw")
        result = resolver_with(scripted_dice, 15, 6).monster_attack(
            goblin, sample_character, action
        )

        assert result.attack_roll.attack_bonus == goblin.proficiency_bonus - 1
        assert result.damage_roll is not None
        assert result.damage_roll.rolled_notation == "1d6"

    def test_knockout(
        self,
        scripted_dice: Callable[..., DiceRoller],
        sample_character: Character,
        goblin: Monster,
    ) -> None:
        """Test HP clamps at 0 and the player is knocked out."""
        weakened = sample_character.model_copy(update={"current_hit_points": 2})
        result = resolver_with(scripted_dice, 15, 6).monster_attack(
            goblin, weakened, goblin.actions[0]
        )

        assert result.player_new_hp == 0
        assert result.player_knocked_out


class TestHealingAndDeathSaves:
    """Tests for healing and death saving throws."""

    def test_healing_clamps_to_max(
        self, scripted_dice: Callable[..., DiceRoller], sample_character: Character
    ) -> None:
        """Test healing never exceeds max HP."""
        wounded = sample_character.model_copy(update={"current_hit_points": 10})
        result = resolver_with(scripted_dice, 4, 4).apply_healing(wounded, "2d4+2")

        assert result.new_hp == 12
        assert result.actual_healing == 2
        assert not result.was_at_full_hp

    def test_negative_healing_roll_heals_nothing(
        self, scripted_dice: Callable[..., DiceRoller], sample_character: Character
    ) -> None:
        """Test a healing roll below zero leaves HP unchanged."""
        wounded = sample_character.model_copy(update={"current_hit_points": 6})
        result = resolver_with(scripted_dice, 1).apply_healing(wounded, "1d4-5")

        assert result.new_hp == 6
        assert result.actual_healing == 0

    def test_two_natural_ones_kill(
        self, scripted_dice: Callable[..., DiceRoller], sample_character: Character
    ) -> None:
        """Test 1 then 1 gives four failures and death."""
        resolver = resolver_with(scripted_dice, 1, 1)
        down = sample_character.model_copy(update={"current_hit_points": 0})

        first = resolver.roll_death_save(down)
        second = resolver.roll_death_save(first.character)

        assert first.new_failures == 2
        assert not first.died
        assert second.new_failures == 4
        assert second.died
        assert second.character.death_save_failures == 3
        assert not second.character.is_alive

    def test_natural_twenty_revives(
        self, scripted_dice: Callable[..., DiceRoller], sample_character: Character
    ) -> None:
        """Test a natural 20 regains 1 HP and resets both counters."""
        down = sample_character.model_copy(
            update={"current_hit_points": 0, "death_save_successes": 2, "death_save_failures": 2}
        )
        result = resolver_with(scripted_dice, 20).roll_death_save(down)

        assert result.regained_hp
        assert result.character.current_hit_points == 1
        assert result.character.death_save_successes == 0
        assert result.character.death_save_failures == 0

    def test_three_successes_stabilize(
        self, scripted_dice: Callable[..., DiceRoller], sample_character: Character
    ) -> None:
        """Test the third success stabilizes and resets the counters."""
        down = sample_character.model_copy(
            update={"current_hit_points": 0, "death_save_successes": 2}
        )
        result = resolver_with(scripted_dice, 10).roll_death_save(down)

        assert result.stabilized
        assert result.character.death_save_successes == 0


class TestLeveling:
    """Tests for experience and level ups."""

    def test_no_level_up_below_threshold(self, sample_character: Character) -> None:
        """Test XP below 300 stays level 1."""
        result = CombatResolver().check_level_up(sample_character, 299)

        assert not result.did_level_up
        assert result.new_xp == 299

    def test_level_up_adds_hp(self, sample_character: Character) -> None:
        """Test a fighter with +2 CON gains 8 HP at level 2."""
        resolver = CombatResolver()
        result = resolver.check_level_up(sample_character, 300)
        leveled = resolver.apply_level_up(sample_character, result)

        assert result.did_level_up
        assert result.hp_increase == 8
        assert leveled.level == 2
        assert leveled.max_hit_points == 20
        assert leveled.current_hit_points == 20

    def test_multiple_levels(self, sample_character: Character) -> None:
        """Test crossing several thresholds at once."""
        result = CombatResolver().check_level_up(sample_character, 6500)

        assert result.new_level == 5
        assert result.levels_gained == 4
        assert result.new_proficiency_bonus == 3

    def test_experience_reward_sums(self, goblin: Monster) -> None:
        """Test the reward is the sum of experience values."""
        assert CombatResolver().calculate_experience_reward([goblin, goblin]) == 100
