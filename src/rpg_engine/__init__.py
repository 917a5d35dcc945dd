"""rpg-engine - Rules engine for narrative-driven single-player RPGs.

A language model narrates; Python owns the truth.

ARCHITECTURE:
- Python owns TRUTH (GameState, dice rolls, rule validation)
- The narrative provider only PROPOSES checks, rewards and scene changes
- Proposals are resolved with the engine's own dice and validated by the
  action pipeline before they touch state

Example:
    >>> from rpg_engine import Character, GameMaster, GameState, DiceRoller
    >>>
    >>> state = GameState.new_adventure(Character(name="Mira", race="Elf"))
    >>> gm = GameMaster(DiceRoller(seed=42))
    >>> response = gm.process_ai_response(state, ai_response, "I search the room")
    >>> response.state.gold
    35

Modules:
    core: Configuration, logging, rules tables and exceptions.
    models: Immutable pydantic value objects.
    engine: Dice, combat, checks, items, monsters and the action pipeline.
    dm: Narrative provider client, summarizer and Game Master.
    storage: SQLite save repository.
"""

from __future__ import annotations

# Core
from rpg_engine.core.config import Settings, get_settings
from rpg_engine.core.exceptions import RpgEngineError
from rpg_engine.core.logging import configure_logging, get_logger

# Models
from rpg_engine.models.actions import GameAction, parse_action
from rpg_engine.models.ai_response import AIResponse
from rpg_engine.models.character import AbilityScores, Character
from rpg_engine.models.game_state import GameState, StoryMessage

# Engine
from rpg_engine.engine.actions import ActionExecutor, ActionPipeline
from rpg_engine.engine.combat import CombatResolver
from rpg_engine.engine.dice import DiceRoller

# DM
from rpg_engine.dm.game_master import GameMaster, GameMasterResponse
from rpg_engine.dm.narrator import NarrativeClient
from rpg_engine.dm.summarizer import ContextSummarizer

# Storage
from rpg_engine.storage.database import GameRepository


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "RpgEngineError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "GameAction",
    "parse_action",
    "AIResponse",
    "AbilityScores",
    "Character",
    "GameState",
    "StoryMessage",
    # Engine
    "ActionExecutor",
    "ActionPipeline",
    "CombatResolver",
    "DiceRoller",
    # DM
    "GameMaster",
    "GameMasterResponse",
    "NarrativeClient",
    "ContextSummarizer",
    # Storage
    "GameRepository",
]
