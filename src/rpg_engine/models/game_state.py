"""GameState and the records it owns.

GameState is the unit of persistence and the only thing the action
pipeline and the game master produce. It is never modified in place:
each turn derives a new value from the previous one, and the story log
only ever grows at the end.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from rpg_engine.core.constants import DEFAULT_INVENTORY_SLOTS, DIFFICULTY_MULTIPLIERS
from rpg_engine.models.character import Character
from rpg_engine.models.enums import (
    Ability,
    DamageType,
    Difficulty,
    ItemRarity,
    ItemType,
    MessageType,
    QuestStatus,
    SceneType,
    Skill,
)
from rpg_engine.models.items import Inventory, Item
from rpg_engine.models.journal import StoryJournal


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# Scene & Quests
# =============================================================================


class Scene(BaseModel):
    """The location the story currently takes place in.

    Attributes:
        id: Unique scene identifier.
        name: Scene name.
        description: What the character sees.
        scene_type: Kind of scene.
        is_in_combat: Whether a combat session is running here.
        present_monster_ids: Monsters in the scene, referenced by id.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(default_factory=_new_id)
    name: str
    description: str = ""
    scene_type: SceneType = SceneType.EXPLORATION
    is_in_combat: bool = False
    present_monster_ids: tuple[str, ...] = ()


class QuestObjective(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(default_factory=_new_id)
    description: str
    target: Annotated[int, Field(ge=1)] = 1
    progress: Annotated[int, Field(ge=0)] = 0

    @property
    def is_completed(self) -> bool:
        return self.progress >= self.target


class Quest(BaseModel):
    """A quest with objectives and an optional reward."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(default_factory=_new_id)
    title: str
    description: str = ""
    status: QuestStatus = QuestStatus.ACTIVE
    objectives: tuple[QuestObjective, ...] = ()
    reward_gold: Annotated[int, Field(ge=0)] = 0
    reward_xp: Annotated[int, Field(ge=0)] = 0

    @property
    def is_complete(self) -> bool:
        return bool(self.objectives) and all(o.is_completed for o in self.objectives)


# =============================================================================
# Story Log
# =============================================================================


class SkillCheckRecord(BaseModel):
    """Outcome of a check, as shown in the story log."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    skill: Skill | None = None
    ability: Ability | None = None
    dice_roll: int
    modifier: int
    total: int
    difficulty_class: int
    is_success: bool
    is_critical_success: bool = False
    is_critical_failure: bool = False
    had_advantage: bool = False
    had_disadvantage: bool = False


class CombatRecord(BaseModel):
    """Outcome of one attack, as shown in the story log."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    attacker_name: str
    defender_name: str
    attack_roll: int
    damage: int = 0
    damage_type: DamageType | None = None
    is_hit: bool
    is_critical_hit: bool = False
    is_critical_miss: bool = False


class StoryMessage(BaseModel):
    """One entry in the append-only story log."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(default_factory=_new_id)
    message_type: MessageType
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)
    speaker_name: str | None = None
    skill_check_result: SkillCheckRecord | None = None
    combat_result: CombatRecord | None = None
    items_received: tuple[str, ...] = ()
    experience_gained: int | None = None
    is_important: bool = False

    @classmethod
    def system(cls, content: str, **kwargs: Any) -> StoryMessage:
        return cls(message_type=MessageType.SYSTEM, content=content, **kwargs)


# =============================================================================
# Game State
# =============================================================================


class GameState(BaseModel):
    """Complete state of one adventure save.

    Attributes:
        id: Save identifier.
        save_name: Player-facing save name.
        character: The player character.
        inventory: The character's inventory.
        quests: Known quests.
        current_scene: The scene the story is in.
        story_log: Ordered, append-only story entries.
        journal: Key events, NPCs met and locations discovered.
        world_flags: Free-form story flags set by the narrative.
        faction_reputation: Reputation per faction name.
        gold: Gold pieces, never negative.
        difficulty: Selects the monster damage multiplier.
        created_at: When the adventure started.
        last_played_at: When the last turn was processed.
        total_play_time_seconds: Accumulated play time.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(default_factory=_new_id)
    save_name: str = "New Adventure"
    character: Character
    inventory: Inventory = Field(default_factory=Inventory)
    quests: tuple[Quest, ...] = ()
    current_scene: Scene
    story_log: tuple[StoryMessage, ...] = ()
    journal: StoryJournal = Field(default_factory=StoryJournal)
    world_flags: dict[str, Any] = Field(default_factory=dict)
    faction_reputation: dict[str, int] = Field(default_factory=dict)
    gold: Annotated[int, Field(ge=0)] = 0
    difficulty: Difficulty = Difficulty.NORMAL
    created_at: datetime = Field(default_factory=_utcnow)
    last_played_at: datetime = Field(default_factory=_utcnow)
    total_play_time_seconds: Annotated[int, Field(ge=0)] = 0

    @property
    def difficulty_multiplier(self) -> float:
        return DIFFICULTY_MULTIPLIERS[self.difficulty.value]

    @property
    def active_quests(self) -> tuple[Quest, ...]:
        return tuple(q for q in self.quests if q.status == QuestStatus.ACTIVE)

    def append_messages(self, messages: list[StoryMessage]) -> GameState:
        """Return a copy with ``messages`` appended to the story log."""
        if not messages:
            return self
        return self.model_copy(update={"story_log": (*self.story_log, *messages)})

    @classmethod
    def new_adventure(
        cls,
        character: Character,
        *,
        save_name: str = "New Adventure",
        starting_gold: int = 10,
        difficulty: Difficulty = Difficulty.NORMAL,
        inventory_slots: int = DEFAULT_INVENTORY_SLOTS,
    ) -> GameState:
        """Create a fresh save seeded with a starting scene, quest and kit.

        Args:
            character: The player character.
            save_name: Player-facing save name.
            starting_gold: Gold in the starting purse.
            difficulty: Difficulty setting.
            inventory_slots: Inventory capacity.

        Returns:
            A new GameState with an opening narration entry.
        """
        scene = Scene(
            name="The Crossroads Inn",
            description=(
                "Rain drums on the shutters of a roadside inn. A notice board by "
                "the hearth is crowded with requests for help."
            ),
            scene_type=SceneType.EXPLORATION,
        )
        quest = Quest(
            title="A Call to Adventure",
            description="Find work worthy of your talents at the Crossroads Inn.",
            objectives=(QuestObjective(description="Read the notice board"),),
            reward_xp=50,
        )
        starter_kit = (
            Item(
                name="Healing Potion",
                description="A red liquid that heals wounds when consumed.",
                item_type=ItemType.POTION,
                rarity=ItemRarity.COMMON,
                weight=0.5,
                value=50,
                effect="heal:2d4+2",
                is_consumable=True,
            ),
            Item(
                name="Torch",
                description="Provides light for 1 hour.",
                item_type=ItemType.TOOL,
                weight=1.0,
                value=1,
            ),
            Item(
                name="Rations (1 day)",
                description="Dried food for one day.",
                item_type=ItemType.CONSUMABLE,
                weight=2.0,
                value=5,
                is_consumable=True,
            ),
        )
        opening = StoryMessage(
            message_type=MessageType.NARRATION,
            content=f"{character.name}'s adventure begins. {scene.description}",
            is_important=True,
        )
        return cls(
            save_name=save_name,
            character=character,
            inventory=Inventory(items=starter_kit, max_slots=inventory_slots),
            quests=(quest,),
            current_scene=scene,
            story_log=(opening,),
            journal=StoryJournal(discovered_locations=(scene.name,)),
            gold=starting_gold,
            difficulty=difficulty,
        )


__all__ = [
    "Scene",
    "QuestObjective",
    "Quest",
    "SkillCheckRecord",
    "CombatRecord",
    "StoryMessage",
    "GameState",
]
