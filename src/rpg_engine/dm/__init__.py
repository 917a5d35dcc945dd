"""Dungeon Master layer: narrative provider, story summaries and the Game Master.

The narrative provider only proposes. GameMaster turns its proposals into
validated actions, ContextSummarizer keeps the story context it is sent
bounded, and JournalKeeper records key events for the player and the narrator.
"""

from rpg_engine.dm.game_master import (
    CombatUpdate,
    GameMaster,
    GameMasterResponse,
    rewards_to_actions,
)
from rpg_engine.dm.journal import JournalKeeper, event_title
from rpg_engine.dm.narrator import NarrativeClient, build_openai_client, fallback_response
from rpg_engine.dm.summarizer import (
    ContextSummarizer,
    OpenAISummaryGenerator,
    SummaryGenerator,
)

__all__ = [
    "CombatUpdate",
    "GameMaster",
    "GameMasterResponse",
    "rewards_to_actions",
    "JournalKeeper",
    "event_title",
    "NarrativeClient",
    "build_openai_client",
    "fallback_response",
    "ContextSummarizer",
    "OpenAISummaryGenerator",
    "SummaryGenerator",
]
