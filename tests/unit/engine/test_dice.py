"""Tests for dice rolling mechanics."""

from __future__ import annotations

import random
from collections.abc import Callable

import pytest

from rpg_engine.core.exceptions import DiceRollError
from rpg_engine.engine.dice import DiceRoller, is_flat_amount, is_valid_notation
from rpg_engine.models.rolls import RollType


class TestPrimitiveRolls:
    """Tests for single dice and notation."""

    @pytest.mark.parametrize("sides", [1, 4, 6, 8, 10, 12, 20, 100])
    def test_roll_die_stays_in_range(self, dice_roller: DiceRoller, sides: int) -> None:
        """Test every roll lands in [1, sides] over many trials."""
        results = {dice_roller.roll_die(sides) for _ in range(10_000)}

        assert min(results) >= 1
        assert max(results) <= sides

    def test_roll_die_covers_all_faces(self, dice_roller: DiceRoller) -> None:
        """Test a d6 eventually shows every face."""
        results = {dice_roller.roll_die(6) for _ in range(10_000)}

        assert results == {1, 2, 3, 4, 5, 6}

    @pytest.mark.parametrize("sides", [0, -4])
    def test_roll_die_rejects_fewer_than_one_side(self, dice_roller: DiceRoller, sides: int) -> None:
        """Test a die needs at least one side."""
        with pytest.raises(DiceRollError):
            dice_roller.roll_die(sides)

    def test_roll_notation_with_modifier(self, scripted_dice: Callable[..., DiceRoller]) -> None:
        """Test notation rolls sum dice and modifier."""
        result = scripted_dice(3, 5).roll_notation("2d6+3")

        assert result.rolls == (3, 5)
        assert result.modifier == 3
        assert result.total == 11

    def test_roll_notation_normalizes_case_and_spaces(
        self, scripted_dice: Callable[..., DiceRoller]
    ) -> None:
        """Test ' 3D6 - 1 ' parses like '3d6-1'."""
        result = scripted_dice(1, 2, 3).roll_notation(" 3D6 - 1 ")

        assert result.notation == "3d6-1"
        assert result.total == 5

    def test_omitted_count_means_one(self, scripted_dice: Callable[..., DiceRoller]) -> None:
        """Test 'd20' rolls a single die."""
        result = scripted_dice(17).roll_notation("d20")

        assert result.count == 1
        assert result.total == 17

    @pytest.mark.parametrize("notation", ["", "2x6", "d", "1d6+", "abc", "1d6+1d4"])
    def test_malformed_notation_raises(self, dice_roller: DiceRoller, notation: str) -> None:
        """Test malformed notation is a DiceRollError."""
        with pytest.raises(DiceRollError):
            dice_roller.roll_notation(notation)

    def test_flat_or_notation(self, scripted_dice: Callable[..., DiceRoller]) -> None:
        """Test bare integers are flat amounts and notation is rolled."""
        dice = scripted_dice(4)

        assert dice.roll_flat_or_notation("7") == 7
        assert dice.roll_flat_or_notation("1d6+1") == 5

    def test_notation_helpers(self) -> None:
        """Test the notation predicates."""
        assert is_valid_notation("2d4+2")
        assert not is_valid_notation("2d4+")
        assert is_flat_amount(" 12 ")
        assert not is_flat_amount("1d4")

    def test_seeded_rollers_replay(self) -> None:
        """Test equal seeds produce equal rolls."""
        first = [DiceRoller(seed=7).roll_notation("4d6").rolls for _ in range(3)]
        second = [DiceRoller(seed=7).roll_notation("4d6").rolls for _ in range(3)]

        assert first == second

    def test_injected_rng_takes_precedence(self) -> None:
        """Test an injected generator is used instead of the seed."""
        rng = random.Random(3)
        expected = random.Random(3).randint(1, 20)

        assert DiceRoller(rng, seed=99).roll_d20() == expected


class TestD20Rolls:
    """Tests for d20 checks, advantage and disadvantage."""

    def test_advantage_keeps_higher(self, scripted_dice: Callable[..., DiceRoller]) -> None:
        """Test advantage rolls twice and keeps the max."""
        result = scripted_dice(4, 15).roll_d20_check(advantage=True)

        assert result.result == 15
        assert result.roll2 == 15
        assert result.roll_type == RollType.ADVANTAGE

    def test_disadvantage_keeps_lower(self, scripted_dice: Callable[..., DiceRoller]) -> None:
        """Test disadvantage rolls twice and keeps the min."""
        result = scripted_dice(4, 15).roll_d20_check(disadvantage=True)

        assert result.result == 4
        assert result.roll_type == RollType.DISADVANTAGE

    def test_advantage_and_disadvantage_cancel(
        self, scripted_dice: Callable[..., DiceRoller]
    ) -> None:
        """Test both flags roll one die and report neither."""
        result = scripted_dice(9).roll_d20_check(advantage=True, disadvantage=True)

        assert result.result == 9
        assert result.roll2 is None
        assert not result.had_advantage
        assert not result.had_disadvantage

    def test_skill_check_meets_dc(self, scripted_dice: Callable[..., DiceRoller]) -> None:
        """Test success is total >= DC."""
        result = scripted_dice(12).roll_skill_check(3, 15)

        assert result.total == 15
        assert result.is_success
        assert result.margin == 0

    def test_natural_twenty_flag_independent_of_total(
        self, scripted_dice: Callable[..., DiceRoller]
    ) -> None:
        """Test a natural 20 is critical even when the total misses the DC."""
        result = scripted_dice(20).roll_skill_check(-5, 30)

        assert result.is_critical_success
        assert not result.is_success

    def test_natural_one_flag_independent_of_total(
        self, scripted_dice: Callable[..., DiceRoller]
    ) -> None:
        """Test a natural 1 is a critical failure even when the total beats the DC."""
        result = scripted_dice(1).roll_skill_check(15, 10)

        assert result.is_critical_failure
        assert result.is_success

    def test_saving_throw(self, scripted_dice: Callable[..., DiceRoller]) -> None:
        """Test saving throws use the check rules."""
        result = scripted_dice(8).roll_saving_throw(2, 10)

        assert result.is_success
        assert result.total == 10


class TestAttackAndDamage:
    """Tests for attack and damage rolls."""

    def test_natural_twenty_always_hits(self, scripted_dice: Callable[..., DiceRoller]) -> None:
        """Test a natural 20 hits and crits against any AC."""
        result = scripted_dice(20).roll_attack(-10, 40)

        assert result.is_hit
        assert result.is_critical_hit

    def test_natural_one_always_misses(self, scripted_dice: Callable[..., DiceRoller]) -> None:
        """Test a natural 1 misses against any AC."""
        result = scripted_dice(1).roll_attack(30, 5)

        assert not result.is_hit
        assert result.is_critical_miss

    def test_attack_hits_on_equal_ac(self, scripted_dice: Callable[..., DiceRoller]) -> None:
        """Test d20 + bonus equal to AC hits."""
        assert scripted_dice(10).roll_attack(5, 15).is_hit
        assert not scripted_dice(9).roll_attack(5, 15).is_hit

    def test_critical_damage_doubles_dice_only(
        self, scripted_dice: Callable[..., DiceRoller]
    ) -> None:
        """Test a critical 1d8+3 rolls 2d8+3."""
        result = scripted_dice(6, 7).roll_damage("1d8+3", is_critical=True)

        assert result.rolled_notation == "2d8+3"
        assert result.rolls == (6, 7)
        assert result.modifier == 3
        assert result.total == 16

    def test_damage_never_negative(self, scripted_dice: Callable[..., DiceRoller]) -> None:
        """Test a large negative modifier floors damage at 0."""
        assert scripted_dice(1).roll_damage("1d4-5").total == 0

    def test_initiative_adds_modifier(self, scripted_dice: Callable[..., DiceRoller]) -> None:
        """Test initiative is d20 + modifier."""
        assert scripted_dice(11).roll_initiative(2) == 13


class TestAbilityScores:
    """Tests for 4d6-drop-lowest."""

    def test_drops_lowest(self, scripted_dice: Callable[..., DiceRoller]) -> None:
        """Test the lowest die is dropped."""
        result = scripted_dice(3, 6, 1, 5).roll_ability_score()

        assert result.rolls == (6, 5, 3, 1)
        assert result.kept == (6, 5, 3)
        assert result.dropped == 1
        assert result.total == 14

    def test_score_set_has_six_scores(self, dice_roller: DiceRoller) -> None:
        """Test a full set rolls six valid scores."""
        scores = dice_roller.roll_ability_score_set()

        assert len(scores) == 6
        assert all(3 <= score.total <= 18 for score in scores)
