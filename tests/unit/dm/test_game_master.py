"""Tests for the Game Master turn processing."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from rpg_engine.core.config import AIProviderSettings
from rpg_engine.dm.game_master import GameMaster, rewards_to_actions
from rpg_engine.dm.narrator import NarrativeClient
from rpg_engine.dm.summarizer import ContextSummarizer, SummaryGenerator
from rpg_engine.engine.dice import DiceRoller
from rpg_engine.engine.encounter import PlayerCombatAction
from rpg_engine.engine.monsters import MonsterCatalog
from rpg_engine.models.actions import AddGold, AddItem, AddXP
from rpg_engine.models.ai_response import AIResponse, ProposedReward
from rpg_engine.models.enums import CombatActionType, JournalEntryType, MessageType, SceneType
from rpg_engine.models.game_state import GameState


SEARCH_PAYLOAD = {
    "narration": "You pry open the chest.",
    "proposedCheck": {"type": "skill", "skill": "Perception", "dc": 12},
    "successOutcome": "Coins glitter inside.",
    "failureOutcome": "It is empty.",
    "proposedRewards": [{"type": "gold", "goldAmount": 20}],
}


class StaticGenerator(SummaryGenerator):
    async def generate(self, prompt: str) -> str:
        return "The hero arrived."


def game_master(scripted_dice: Callable[..., DiceRoller], *values: int) -> GameMaster:
    return GameMaster(scripted_dice(*values))


class TestRewardsToActions:
    """Tests for reward conversion."""

    def test_converts_each_type(self) -> None:
        """Test XP, gold and items map to actions; reputation is skipped."""
        rewards = tuple(
            ProposedReward.model_validate(payload)
            for payload in [
                {"type": "xp", "xp": 25},
                {"type": "gold", "goldAmount": 15},
                {"type": "item", "itemName": "Rusty Key", "quantity": 2},
                {"type": "reputation", "reputationChange": 3},
                {"type": "gold"},
            ]
        )

        assert rewards_to_actions(rewards) == [
            AddXP(amount=25),
            AddGold(amount=15),
            AddItem(item_name="Rusty Key", quantity=2),
        ]


class TestProcessAIResponse:
    """Tests for narrative turn processing."""

    def test_successful_check_grants_rewards(
        self, scripted_dice: Callable[..., DiceRoller], sample_state: GameState
    ) -> None:
        """Test rewards apply when the check succeeds."""
        response = game_master(scripted_dice, 15).process_ai_response(
            sample_state, AIResponse.from_payload(SEARCH_PAYLOAD), "I search the chest"
        )

        assert response.skill_check_outcome is not None
        assert response.skill_check_outcome.is_success
        assert response.state.gold == 30
        assert [message.content for message in response.messages] == [
            "I search the chest",
            "You pry open the chest.",
            "Coins glitter inside.",
            "Found 20 gold!",
        ]
        assert response.messages[2].message_type == MessageType.SKILL_CHECK
        assert response.messages[2].skill_check_result is not None

    def test_failed_check_withholds_rewards(
        self, scripted_dice: Callable[..., DiceRoller], sample_state: GameState
    ) -> None:
        """Test no reward applies when the check fails."""
        response = game_master(scripted_dice, 5).process_ai_response(
            sample_state, AIResponse.from_payload(SEARCH_PAYLOAD), "I search the chest"
        )

        assert response.skill_check_outcome is not None
        assert not response.skill_check_outcome.is_success
        assert response.state.gold == sample_state.gold
        assert response.messages[-1].content == "It is empty."

    def test_rewards_without_check_apply(self, sample_state: GameState) -> None:
        """Test rewards apply directly when no check is proposed."""
        ai_response = AIResponse.from_payload(
            {"narration": "A grateful merchant pays you.", "rewards": [{"type": "gold", "gold": 5}]}
        )

        response = GameMaster(DiceRoller(seed=1)).process_ai_response(
            sample_state, ai_response, "I help the merchant"
        )

        assert response.state.gold == 15
        assert response.skill_check_outcome is None

    def test_oversized_reward_clamped(self, sample_state: GameState) -> None:
        """Test a reward above the level cap is clamped, not rejected."""
        ai_response = AIResponse.from_payload(
            {"narration": "A dragon hoard!", "rewards": [{"type": "gold", "gold": 10000}]}
        )

        response = GameMaster(DiceRoller(seed=1)).process_ai_response(
            sample_state, ai_response, "I loot"
        )

        assert response.state.gold == sample_state.gold + 75
        assert response.rejected_actions == ()

    def test_dialogue_follows_narration(self, sample_state: GameState) -> None:
        """Test NPC lines are logged after the narration with their speaker."""
        ai_response = AIResponse.from_payload(
            {
                "narration": "The innkeeper looks up.",
                "npcDialogues": [{"npcName": "Bram", "dialogue": "Welcome!"}],
            }
        )

        response = GameMaster(DiceRoller(seed=1)).process_ai_response(
            sample_state, ai_response, "I enter"
        )

        dialogue = response.messages[2]
        assert dialogue.message_type == MessageType.DIALOGUE
        assert dialogue.speaker_name == "Bram"
        assert response.state.story_log[-3:] == response.messages

    def test_player_message_already_logged(self, sample_state: GameState) -> None:
        """Test the player action is not logged twice."""
        response = GameMaster(DiceRoller(seed=1)).process_ai_response(
            sample_state,
            AIResponse.from_payload({"narration": "Nothing happens."}),
            "I wait",
            player_message_already_logged=True,
        )

        assert [message.message_type for message in response.messages] == [MessageType.NARRATION]

    def test_scene_change(self, sample_state: GameState) -> None:
        """Test a scene change moves the party."""
        ai_response = AIResponse.from_payload(
            {
                "narration": "You descend.",
                "sceneChange": {"newSceneName": "Cellar", "newSceneDescription": "Damp."},
            }
        )

        response = GameMaster(DiceRoller(seed=1)).process_ai_response(
            sample_state, ai_response, "I go down"
        )

        assert response.state.current_scene.name == "Cellar"
        assert response.state.current_scene.description == "Damp."
        assert response.messages[-1].content == "Arrived at Cellar."

    def test_turn_recorded_in_journal(self, sample_state: GameState) -> None:
        """Test the turn, the NPC met and the item found are journaled."""
        ai_response = AIResponse.from_payload(
            {
                "narration": "Bram slides a folded map across the bar.",
                "npcDialogues": [{"npcName": "Bram", "dialogue": "You'll want this."}],
                "rewards": [{"type": "item", "itemName": "Old Map"}],
            }
        )

        response = GameMaster(DiceRoller(seed=1)).process_ai_response(
            sample_state, ai_response, "I talk to Bram"
        )

        journal = response.state.journal
        assert [(entry.entry_type, entry.title) for entry in journal.entries] == [
            (JournalEntryType.NARRATIVE, "Conversation"),
            (JournalEntryType.NPC_ENCOUNTER, "Spoke with Bram"),
            (JournalEntryType.ITEM_FOUND, "Found Old Map"),
        ]
        assert all(entry.location == "The Crossroads Inn" for entry in journal.entries)
        assert journal.relationship("Bram") is not None
        assert sample_state.journal.entries == ()

    def test_suggestions_and_choices_pass_through(self, sample_state: GameState) -> None:
        """Test follow-ups are returned unchanged."""
        ai_response = AIResponse.from_payload(
            {
                "narration": "A fork in the road.",
                "suggestedActions": ["Go left", "Go right"],
                "requiresPlayerChoice": True,
                "playerChoices": [{"id": "left", "text": "Go left"}],
            }
        )

        response = GameMaster(DiceRoller(seed=1)).process_ai_response(
            sample_state, ai_response, "I look"
        )

        assert response.suggested_actions == ("Go left", "Go right")
        assert response.requires_player_choice
        assert response.player_choices[0].id == "left"


class TestCombatTrigger:
    """Tests for combat started by narration."""

    def test_trigger_starts_combat(
        self, scripted_dice: Callable[..., DiceRoller], sample_state: GameState
    ) -> None:
        """Test enemies are created and the scene enters combat."""
        ai_response = AIResponse.from_payload(
            {
                "narration": "Goblins leap from the brush!",
                "combatTrigger": {"enemies": [{"name": "Goblin", "count": 2}]},
            }
        )

        response = game_master(scripted_dice, 15, 3, 1).process_ai_response(
            sample_state, ai_response, "I walk on"
        )

        session = response.combat_session
        assert session is not None
        assert [enemy.name for enemy in session.enemies] == ["Goblin 1", "Goblin 2"]
        scene = response.state.current_scene
        assert scene.is_in_combat
        assert scene.scene_type == SceneType.COMBAT
        assert scene.present_monster_ids == tuple(enemy.id for enemy in session.enemies)
        assert response.messages[-1].message_type == MessageType.COMBAT
        assert [entry.title for entry in response.state.journal.entries] == [
            "Travel",
            "Combat Encounter",
        ]

    def test_scene_change_during_combat_stays_in_combat(
        self, scripted_dice: Callable[..., DiceRoller], sample_state: GameState
    ) -> None:
        """Test a new scene proposed with combat keeps the combat flag."""
        ai_response = AIResponse.from_payload(
            {
                "narration": "Wolves circle the clearing.",
                "sceneChange": {"newSceneName": "Clearing"},
                "combatTrigger": {"enemies": [{"name": "Wolf"}]},
            }
        )

        response = game_master(scripted_dice, 15, 3).process_ai_response(
            sample_state, ai_response, "I step out"
        )

        assert response.state.current_scene.name == "Clearing"
        assert response.state.current_scene.is_in_combat


class TestCombatFlow:
    """Tests for player and enemy combat turns."""

    def test_victory_awards_xp_and_ends_combat(
        self, scripted_dice: Callable[..., DiceRoller], sample_state: GameState
    ) -> None:
        """Test killing the last enemy grants XP through the pipeline."""
        gm = game_master(scripted_dice, 15, 3, 18, 7)
        goblin = MonsterCatalog().create("goblin")
        start = gm.start_combat(sample_state, [goblin])
        assert start.state.current_scene.is_in_combat

        update = gm.process_player_combat_action(
            start.state,
            start.session,
            PlayerCombatAction(CombatActionType.MELEE_ATTACK, target_id=goblin.id),
        )

        assert update.combat_ended
        assert update.player_victory
        assert update.state.character.experience_points == 50
        assert update.messages[-1].content == "Gained 50 experience points!"
        assert update.messages[-1].experience_gained == 50
        assert not update.state.current_scene.is_in_combat
        assert update.state.current_scene.scene_type == SceneType.EXPLORATION
        assert update.state.story_log[-len(update.messages):] == update.messages
        assert [entry.title for entry in update.state.journal.entries] == [
            "Combat Encounter",
            "Victory in Battle",
        ]

    def test_enemy_turn_damages_character(
        self, scripted_dice: Callable[..., DiceRoller], sample_state: GameState
    ) -> None:
        """Test an enemy hit reduces the stored character's hit points."""
        gm = game_master(scripted_dice, 2, 15, 12, 3)
        goblin = MonsterCatalog().create("goblin")
        start = gm.start_combat(sample_state, [goblin])

        update = gm.process_enemy_turn(start.state, start.session)

        assert update.state.character.current_hit_points == 7
        assert not update.combat_ended
        assert update.session.is_player_turn


class TestPlayTurn:
    """Tests for the full narrated turn."""

    def test_play_turn(
        self,
        fake_client: Callable[..., Any],
        sample_state: GameState,
    ) -> None:
        """Test the narrator is consulted and the response applied."""
        settings = AIProviderSettings(
            _env_file=None, api_key="test-key", max_retries=1, timeout_seconds=1
        )
        client = fake_client({"narration": "The fire crackles.", "suggestedActions": ["Rest"]})
        gm = GameMaster(
            DiceRoller(seed=3),
            narrator=NarrativeClient(settings, client=client),
            summarizer=ContextSummarizer(StaticGenerator()),
        )

        response = asyncio.run(gm.play_turn(sample_state, "I warm my hands"))

        assert [message.content for message in response.messages] == [
            "I warm my hands",
            "The fire crackles.",
        ]
        assert len(response.state.story_log) == len(sample_state.story_log) + 2
        assert response.suggested_actions == ("Rest",)
        sent = client.chat.completions.calls[0]["messages"][1]["content"]
        assert sample_state.story_log[0].content in sent

    def test_journal_reaches_narrator(
        self,
        fake_client: Callable[..., Any],
        sample_state: GameState,
    ) -> None:
        """Test recent journal events and known NPCs are sent to the narrator."""
        settings = AIProviderSettings(
            _env_file=None, api_key="test-key", max_retries=1, timeout_seconds=1
        )
        client = fake_client(
            {
                "narration": "Bram waves you over.",
                "npcDialogues": [{"npcName": "Bram", "dialogue": "Back again?"}],
            },
            {"narration": "The fire crackles."},
        )
        gm = GameMaster(
            DiceRoller(seed=3),
            narrator=NarrativeClient(settings, client=client),
            summarizer=ContextSummarizer(StaticGenerator()),
        )

        async def two_turns() -> None:
            first = await gm.play_turn(sample_state, "I look for Bram")
            await gm.play_turn(first.state, "I sit by the fire")

        asyncio.run(two_turns())

        first_prompt = client.chat.completions.calls[0]["messages"][0]["content"]
        second_prompt = client.chat.completions.calls[1]["messages"][0]["content"]
        assert "## ADVENTURE JOURNAL" not in first_prompt
        assert "## ADVENTURE JOURNAL" in second_prompt
        assert "- Observation: You: I look for Bram" in second_prompt
        assert "- Bram (Acquaintance)" in second_prompt
        assert 'Said: "Back again?"' in second_prompt

    def test_play_turn_requires_narrator(self, sample_state: GameState) -> None:
        """Test play_turn refuses to run without its collaborators."""
        with pytest.raises(RuntimeError):
            asyncio.run(GameMaster().play_turn(sample_state, "Hello"))
