"""Immutable value objects for the rules engine."""

from rpg_engine.models.actions import (
    AddGold,
    AddItem,
    AddXP,
    ChangeLocation,
    Damage,
    GameAction,
    Heal,
    RemoveItem,
    Rest,
    SpendGold,
    UseItem,
    parse_action,
)
from rpg_engine.models.ai_response import (
    AIResponse,
    CombatEnemy,
    CombatTrigger,
    NPCDialogue,
    PlayerChoice,
    ProposedCheck,
    ProposedReward,
    SceneChange,
)
from rpg_engine.models.character import AbilityScores, Character
from rpg_engine.models.enums import (
    Ability,
    CheckType,
    CombatActionType,
    CombatPhase,
    Condition,
    DamageType,
    Difficulty,
    ItemRarity,
    ItemType,
    JournalEntryType,
    MessageType,
    MonsterType,
    QuestStatus,
    RelationshipStatus,
    RestType,
    RewardType,
    SceneType,
    Skill,
)
from rpg_engine.models.game_state import (
    CombatRecord,
    GameState,
    Quest,
    QuestObjective,
    Scene,
    SkillCheckRecord,
    StoryMessage,
)
from rpg_engine.models.items import Inventory, Item
from rpg_engine.models.journal import JournalEntry, NpcRelationship, StoryJournal
from rpg_engine.models.monster import Monster, MonsterAction
from rpg_engine.models.rolls import (
    AbilityScoreRoll,
    AttackRoll,
    D20CheckResult,
    DamageRoll,
    DiceRoll,
    DieRoll,
    NotationRoll,
    RollType,
    SavingThrowRoll,
    SkillCheckRoll,
)
from rpg_engine.models.summary import StorySummary


__all__ = [
    # Enums
    "Ability",
    "CheckType",
    "CombatActionType",
    "CombatPhase",
    "Condition",
    "DamageType",
    "Difficulty",
    "ItemRarity",
    "ItemType",
    "JournalEntryType",
    "MessageType",
    "MonsterType",
    "QuestStatus",
    "RelationshipStatus",
    "RestType",
    "RewardType",
    "SceneType",
    "Skill",
    # Creatures
    "AbilityScores",
    "Character",
    "Monster",
    "MonsterAction",
    # Items
    "Inventory",
    "Item",
    # Game state
    "CombatRecord",
    "GameState",
    "Quest",
    "QuestObjective",
    "Scene",
    "SkillCheckRecord",
    "StoryMessage",
    "StorySummary",
    # Journal
    "JournalEntry",
    "NpcRelationship",
    "StoryJournal",
    # Rolls
    "AbilityScoreRoll",
    "AttackRoll",
    "D20CheckResult",
    "DamageRoll",
    "DiceRoll",
    "DieRoll",
    "NotationRoll",
    "RollType",
    "SavingThrowRoll",
    "SkillCheckRoll",
    # Actions
    "AddGold",
    "AddItem",
    "AddXP",
    "ChangeLocation",
    "Damage",
    "GameAction",
    "Heal",
    "RemoveItem",
    "Rest",
    "SpendGold",
    "UseItem",
    "parse_action",
    # AI payload
    "AIResponse",
    "CombatEnemy",
    "CombatTrigger",
    "NPCDialogue",
    "PlayerChoice",
    "ProposedCheck",
    "ProposedReward",
    "SceneChange",
]
