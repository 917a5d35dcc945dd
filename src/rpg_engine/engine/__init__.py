"""Rules engine for the RPG engine.

Everything that rolls dice or changes a GameState lives here. The engine
never trusts narrative output: proposed rewards and checks arrive as data
and are resolved against the rules tables.

Submodules:
    dice: Dice rolling with an injectable random source.
    combat: Attacks, damage, healing, death saves and leveling.
    skill_checks: Skill, ability and contested checks.
    items: Item templates and the ItemCatalog lookup.
    monsters: Monster templates and the MonsterCatalog.
    actions: ActionValidator, ActionExecutor and ActionPipeline.
    encounter: Turn-by-turn combat sessions.

Example:
    >>> from rpg_engine.engine import ActionPipeline, ActionExecutor, DiceRoller
    >>> pipeline = ActionPipeline(ActionExecutor(DiceRoller(seed=1)))
    >>> batch = pipeline.run([AddGold(amount=25)], state)
    >>> batch.state.gold - state.gold
    25
"""

from __future__ import annotations

# =============================================================================
# Dice Rolling
# =============================================================================
from rpg_engine.engine.dice import (
    DiceRoller,
    is_flat_amount,
    is_valid_notation,
    normalize_notation,
)

# =============================================================================
# Combat
# =============================================================================
from rpg_engine.engine.combat import (
    CombatResolver,
    DeathSaveResult,
    HealingResult,
    InitiativeEntry,
    LevelUpResult,
    MonsterAttackResult,
    PlayerAttackResult,
    adjust_damage_for_target,
)
from rpg_engine.engine.encounter import (
    CombatSession,
    CombatStartResult,
    CombatTurnResult,
    EncounterManager,
    PlayerCombatAction,
)

# =============================================================================
# Checks, Items & Monsters
# =============================================================================
from rpg_engine.engine.skill_checks import (
    ContestedCheckOutcome,
    SkillCheckEngine,
    SkillCheckOutcome,
)
from rpg_engine.engine.items import ItemCatalog, ItemTemplate
from rpg_engine.engine.monsters import MonsterCatalog

# =============================================================================
# Action Pipeline
# =============================================================================
from rpg_engine.engine.actions import (
    ActionExecutor,
    ActionPipeline,
    ActionResult,
    ActionValidator,
    BatchResult,
    ValidationResult,
)


__all__ = [
    # Dice
    "DiceRoller",
    "is_flat_amount",
    "is_valid_notation",
    "normalize_notation",
    # Combat
    "CombatResolver",
    "DeathSaveResult",
    "HealingResult",
    "InitiativeEntry",
    "LevelUpResult",
    "MonsterAttackResult",
    "PlayerAttackResult",
    "adjust_damage_for_target",
    "CombatSession",
    "CombatStartResult",
    "CombatTurnResult",
    "EncounterManager",
    "PlayerCombatAction",
    # Checks, items & monsters
    "ContestedCheckOutcome",
    "SkillCheckEngine",
    "SkillCheckOutcome",
    "ItemCatalog",
    "ItemTemplate",
    "MonsterCatalog",
    # Action pipeline
    "ActionExecutor",
    "ActionPipeline",
    "ActionResult",
    "ActionValidator",
    "BatchResult",
    "ValidationResult",
]
