"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the rpg-engine test suite.
"""

from __future__ import annotations

import json
import random
from pathlib import Path
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any

import pytest

from rpg_engine.engine.dice import DiceRoller
from rpg_engine.models.character import AbilityScores, Character
from rpg_engine.models.game_state import GameState


if TYPE_CHECKING:
    from collections.abc import Callable, Generator


# =============================================================================
# Test Doubles
# =============================================================================


class ScriptedRandom(random.Random):
    """Random source that returns queued values from ``randint``.

    Each value must lie within the requested range; an exhausted script
    raises so a test never silently falls back to real randomness.
    """

    def __init__(self, values: list[int]) -> None:
        super().__init__(0)
        self._values = list(values)

    def randint(self, a: int, b: int) -> int:
        if not self._values:
            raise AssertionError(f"Scripted RNG exhausted (requested {a}-{b})")
        value = self._values.pop(0)
        if not a <= value <= b:
            raise AssertionError(f"Scripted value {value} outside {a}-{b}")
        return value

    @property
    def remaining(self) -> int:
        return len(self._values)


class FakeCompletions:
    """Stands in for ``client.chat.completions`` of an AsyncOpenAI client."""

    def __init__(self, replies: list[Any]) -> None:
        self._replies = list(replies)
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        reply = self._replies.pop(0) if self._replies else ""
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_fake_client(*replies: Any) -> Any:
    """Build an object exposing ``chat.completions.create`` with scripted replies."""
    completions = FakeCompletions(list(replies))
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Reset the settings cache and isolate storage before and after each test."""
    from rpg_engine.core.config import clear_settings_cache

    monkeypatch.delenv("RPG_ENGINE_API_KEY", raising=False)
    monkeypatch.setenv("RPG_ENGINE_DATABASE_PATH", str(tmp_path / "data" / "rpg_engine.db"))
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Dice Fixtures
# =============================================================================


@pytest.fixture
def dice_roller() -> DiceRoller:
    """Provide a seeded dice roller."""
    return DiceRoller(seed=42)


@pytest.fixture
def scripted_dice() -> Callable[..., DiceRoller]:
    """Provide a factory for dice rollers that roll the given values in order.

    Returns:
        Function taking die results and returning a DiceRoller.
    """

    def factory(*values: int) -> DiceRoller:
        return DiceRoller(ScriptedRandom(list(values)))

    return factory


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def sample_character() -> Character:
    """Provide a level 1 fighter with 16 STR and 14 CON."""
    return Character(
        name="Mira",
        race="Human",
        character_class="fighter",
        ability_scores=AbilityScores(
            strength=16,
            dexterity=14,
            constitution=14,
            intelligence=10,
            wisdom=12,
            charisma=8,
        ),
        current_hit_points=12,
        max_hit_points=12,
        armor_class=16,
        hit_dice_remaining=1,
    )


@pytest.fixture
def sample_state(sample_character: Character) -> GameState:
    """Provide a fresh adventure with 10 gold and the starter kit."""
    return GameState.new_adventure(sample_character, save_name="Test Save")


@pytest.fixture
def fake_client() -> Callable[..., Any]:
    """Provide a factory for fake OpenAI clients with scripted replies."""
    return make_fake_client
