"""Tests for the narrative provider client."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import pytest

from rpg_engine.core.config import AIProviderSettings
from rpg_engine.core.exceptions import ExternalServiceError
from rpg_engine.dm.narrator import (
    NarrativeClient,
    build_openai_client,
    build_system_prompt,
    fallback_response,
)
from rpg_engine.dm.prompts import FALLBACK_NARRATION
from rpg_engine.engine.monsters import MonsterCatalog
from rpg_engine.models.enums import JournalEntryType
from rpg_engine.models.game_state import GameState
from rpg_engine.models.journal import JournalEntry


@pytest.fixture
def provider_settings() -> AIProviderSettings:
    """Provide settings with a single attempt and a short timeout."""
    return AIProviderSettings(
        _env_file=None,
        api_key="test-key",
        model="test-model",
        max_retries=1,
        timeout_seconds=0.5,
    )


class SlowCompletions:
    async def create(self, **kwargs: Any) -> Any:
        await asyncio.sleep(5)


class TestPrompts:
    """Tests for prompt rendering."""

    def test_system_prompt_includes_caps_and_character(self, sample_state: GameState) -> None:
        """Test the prompt states the reward caps and character sheet."""
        prompt = build_system_prompt(sample_state)

        assert "Mira" in prompt
        assert "The Crossroads Inn" in prompt
        assert "75" in prompt
        assert "150" in prompt
        assert "STR 16 (+3)" in prompt
        assert "IN COMBAT" not in prompt

    def test_system_prompt_lists_monsters(self, sample_state: GameState) -> None:
        """Test monsters in the scene are described."""
        goblin = MonsterCatalog().create("goblin")

        prompt = build_system_prompt(sample_state, [goblin])

        assert "Goblin (humanoid)" in prompt
        assert "HP: 7/7, AC: 15" in prompt

    def test_system_prompt_includes_journal(self, sample_state: GameState) -> None:
        """Test the latest journal events and known NPCs are rendered."""
        journal = sample_state.journal.with_entries(
            [
                JournalEntry(entry_type=JournalEntryType.NARRATIVE, title="Arrival"),
                JournalEntry(
                    entry_type=JournalEntryType.COMBAT,
                    title="Victory in Battle",
                    content="Defeated Goblin.",
                ),
            ]
        ).with_npc_interaction("Bram", fact="Runs the inn")
        state = sample_state.model_copy(update={"journal": journal})

        prompt = build_system_prompt(state, recent_events=1)

        assert "## ADVENTURE JOURNAL\nRecent events:\n- Victory in Battle: Defeated Goblin.\n" in prompt
        assert "Arrival" not in prompt
        assert "- Bram (Acquaintance)\n  • Runs the inn" in prompt


class TestGenerate:
    """Tests for NarrativeClient.generate."""

    def test_parses_reply(
        self,
        provider_settings: AIProviderSettings,
        fake_client: Callable[..., Any],
        sample_state: GameState,
    ) -> None:
        """Test a JSON reply is parsed into an AIResponse."""
        client = fake_client({"narration": "A bard sings.", "suggestedActions": ["Listen"]})
        narrator = NarrativeClient(provider_settings, client=client)

        response = asyncio.run(
            narrator.generate(sample_state, "I sit down", story_context="DM: Rain falls.")
        )

        assert response.narration == "A bard sings."
        assert response.suggested_actions == ("Listen",)
        call = client.chat.completions.calls[0]
        assert call["model"] == "test-model"
        assert call["response_format"] == {"type": "json_object"}
        assert call["messages"][0]["role"] == "system"
        assert "I sit down" in call["messages"][1]["content"]
        assert "DM: Rain falls." in call["messages"][1]["content"]

    def test_service_error_falls_back(
        self,
        provider_settings: AIProviderSettings,
        fake_client: Callable[..., Any],
        sample_state: GameState,
    ) -> None:
        """Test a provider failure yields the local fallback."""
        client = fake_client(ExternalServiceError("boom", service="test"))
        narrator = NarrativeClient(provider_settings, client=client)

        response = asyncio.run(narrator.generate(sample_state, "Hello?"))

        assert response.narration == FALLBACK_NARRATION
        assert response == fallback_response()

    def test_timeout_falls_back(
        self, provider_settings: AIProviderSettings, sample_state: GameState
    ) -> None:
        """Test a slow provider is cut off and the fallback used."""
        client = SimpleNamespace(chat=SimpleNamespace(completions=SlowCompletions()))
        narrator = NarrativeClient(provider_settings, client=client)

        response = asyncio.run(narrator.generate(sample_state, "Hello?"))

        assert response.narration == FALLBACK_NARRATION

    def test_missing_api_key_falls_back(self, sample_state: GameState) -> None:
        """Test no credentials means local narration, not an exception."""
        settings = AIProviderSettings(_env_file=None, max_retries=1)
        narrator = NarrativeClient(settings)

        response = asyncio.run(narrator.generate(sample_state, "Hello?"))

        assert response == fallback_response()

    def test_build_client_requires_key(self) -> None:
        """Test building a client without a key is an ExternalServiceError."""
        with pytest.raises(ExternalServiceError):
            build_openai_client(AIProviderSettings(_env_file=None))


class TestNarrateCombat:
    """Tests for combat narration."""

    def test_returns_narration(
        self,
        provider_settings: AIProviderSettings,
        fake_client: Callable[..., Any],
        sample_state: GameState,
    ) -> None:
        """Test the reply narration is returned."""
        client = fake_client({"narration": "Steel rings on steel!"})
        narrator = NarrativeClient(provider_settings, client=client)
        goblin = MonsterCatalog().create("goblin")

        text = asyncio.run(narrator.narrate_combat(sample_state, [goblin], "Mira hits Goblin."))

        assert text == "Steel rings on steel!"
        assert "Goblin (HP: 7/7)" in client.chat.completions.calls[0]["messages"][0]["content"]

    def test_failure_returns_event(
        self,
        provider_settings: AIProviderSettings,
        fake_client: Callable[..., Any],
        sample_state: GameState,
    ) -> None:
        """Test the raw event text is used when the provider fails."""
        client = fake_client(ExternalServiceError("down", service="test"))
        narrator = NarrativeClient(provider_settings, client=client)

        text = asyncio.run(narrator.narrate_combat(sample_state, [], "Mira hits Goblin."))

        assert text == "Mira hits Goblin."
