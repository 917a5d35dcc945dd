"""Enumeration types shared by the rules engine models.

All enums are StrEnums so they serialize as plain strings in saved games
and in AI payloads.
"""

from __future__ import annotations

from enum import StrEnum


class Ability(StrEnum):
    """The six ability scores."""

    STR = "strength"
    DEX = "dexterity"
    CON = "constitution"
    INT = "intelligence"
    WIS = "wisdom"
    CHA = "charisma"

    @property
    def full_name(self) -> str:
        """Full ability name (e.g., 'Strength' for STR)."""
        return self.value.capitalize()

    @property
    def abbreviation(self) -> str:
        """Three-letter abbreviation (e.g., 'STR')."""
        return self.name

    @classmethod
    def parse(cls, raw: str) -> Ability:
        """Parse 'STR', 'Strength' or 'str/dex' (first wins) into an Ability.

        Raises:
            ValueError: If the text names no ability.
        """
        token = raw.split("/")[0].strip().lower()
        for ability in cls:
            if token in (ability.value, ability.name.lower()):
                return ability
        raise ValueError(f"Unknown ability: {raw!r}")


class Skill(StrEnum):
    """Skills and their governing abilities."""

    # Strength
    ATHLETICS = "athletics"

    # Dexterity
    ACROBATICS = "acrobatics"
    SLEIGHT_OF_HAND = "sleight_of_hand"
    STEALTH = "stealth"

    # Intelligence
    ARCANA = "arcana"
    HISTORY = "history"
    INVESTIGATION = "investigation"
    NATURE = "nature"
    RELIGION = "religion"

    # Wisdom
    ANIMAL_HANDLING = "animal_handling"
    INSIGHT = "insight"
    MEDICINE = "medicine"
    PERCEPTION = "perception"
    SURVIVAL = "survival"

    # Charisma
    DECEPTION = "deception"
    INTIMIDATION = "intimidation"
    PERFORMANCE = "performance"
    PERSUASION = "persuasion"

    @property
    def ability(self) -> Ability:
        """The ability score this skill is rolled with."""
        return _SKILL_ABILITIES[self]

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

    @classmethod
    def parse(cls, raw: str) -> Skill:
        """Parse 'Sleight of Hand', 'sleightOfHand' or 'stealth' into a Skill.

        Raises:
            ValueError: If the text names no skill.
        """
        token = "".join(ch for ch in raw.lower() if ch.isalpha())
        for skill in cls:
            if token == skill.value.replace("_", ""):
                return skill
        raise ValueError(f"Unknown skill: {raw!r}")


_SKILL_ABILITIES: dict[Skill, Ability] = {
    Skill.ATHLETICS: Ability.STR,
    Skill.ACROBATICS: Ability.DEX,
    Skill.SLEIGHT_OF_HAND: Ability.DEX,
    Skill.STEALTH: Ability.DEX,
    Skill.ARCANA: Ability.INT,
    Skill.HISTORY: Ability.INT,
    Skill.INVESTIGATION: Ability.INT,
    Skill.NATURE: Ability.INT,
    Skill.RELIGION: Ability.INT,
    Skill.ANIMAL_HANDLING: Ability.WIS,
    Skill.INSIGHT: Ability.WIS,
    Skill.MEDICINE: Ability.WIS,
    Skill.PERCEPTION: Ability.WIS,
    Skill.SURVIVAL: Ability.WIS,
    Skill.DECEPTION: Ability.CHA,
    Skill.INTIMIDATION: Ability.CHA,
    Skill.PERFORMANCE: Ability.CHA,
    Skill.PERSUASION: Ability.CHA,
}


class DamageType(StrEnum):
    """Damage types; monster resistances are matched against these values."""

    ACID = "acid"
    BLUDGEONING = "bludgeoning"
    COLD = "cold"
    FIRE = "fire"
    FORCE = "force"
    LIGHTNING = "lightning"
    NECROTIC = "necrotic"
    PIERCING = "piercing"
    POISON = "poison"
    PSYCHIC = "psychic"
    RADIANT = "radiant"
    SLASHING = "slashing"
    THUNDER = "thunder"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class Condition(StrEnum):
    """Status conditions."""

    BLINDED = "blinded"
    CHARMED = "charmed"
    DEAFENED = "deafened"
    EXHAUSTION = "exhaustion"
    FRIGHTENED = "frightened"
    GRAPPLED = "grappled"
    INCAPACITATED = "incapacitated"
    INVISIBLE = "invisible"
    PARALYZED = "paralyzed"
    PETRIFIED = "petrified"
    POISONED = "poisoned"
    PRONE = "prone"
    RESTRAINED = "restrained"
    STUNNED = "stunned"
    UNCONSCIOUS = "unconscious"


class ItemType(StrEnum):
    WEAPON = "weapon"
    ARMOR = "armor"
    SHIELD = "shield"
    POTION = "potion"
    SCROLL = "scroll"
    WAND = "wand"
    RING = "ring"
    AMULET = "amulet"
    TOOL = "tool"
    CONSUMABLE = "consumable"
    TREASURE = "treasure"
    QUEST_ITEM = "quest_item"
    MISC = "misc"


class ItemRarity(StrEnum):
    """Item rarities, declared from most to least common."""

    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    VERY_RARE = "very_rare"
    LEGENDARY = "legendary"
    ARTIFACT = "artifact"

    @property
    def rank(self) -> int:
        """Position in the rarity ladder (common is 0)."""
        return list(ItemRarity).index(self)


class MonsterType(StrEnum):
    ABERRATION = "aberration"
    BEAST = "beast"
    CELESTIAL = "celestial"
    CONSTRUCT = "construct"
    DRAGON = "dragon"
    ELEMENTAL = "elemental"
    FEY = "fey"
    FIEND = "fiend"
    GIANT = "giant"
    HUMANOID = "humanoid"
    MONSTROSITY = "monstrosity"
    OOZE = "ooze"
    PLANT = "plant"
    UNDEAD = "undead"


class SceneType(StrEnum):
    EXPLORATION = "exploration"
    COMBAT = "combat"
    DIALOGUE = "dialogue"
    SHOP = "shop"
    REST = "rest"
    PUZZLE = "puzzle"
    CUTSCENE = "cutscene"


class MessageType(StrEnum):
    """Kinds of story-log entries."""

    NARRATION = "narration"
    PLAYER_ACTION = "player_action"
    DIALOGUE = "dialogue"
    SKILL_CHECK = "skill_check"
    COMBAT = "combat"
    SYSTEM = "system"
    ITEM_RECEIVED = "item_received"
    QUEST_UPDATE = "quest_update"
    LEVEL_UP = "level_up"


class Difficulty(StrEnum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"
    NIGHTMARE = "nightmare"


class RestType(StrEnum):
    SHORT = "short"
    LONG = "long"


class CheckType(StrEnum):
    """What kind of roll an AI-proposed check calls for."""

    ABILITY = "ability"
    SKILL = "skill"
    SAVING_THROW = "saving_throw"
    ATTACK = "attack"
    CONTEST = "contest"


class RewardType(StrEnum):
    ITEM = "item"
    GOLD = "gold"
    EXPERIENCE = "experience"
    REPUTATION = "reputation"


class QuestStatus(StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class CombatPhase(StrEnum):
    PLAYER_TURN = "player_turn"
    ENEMY_TURN = "enemy_turn"
    VICTORY = "victory"
    DEFEAT = "defeat"
    FLED = "fled"


class CombatActionType(StrEnum):
    """What the player does on their turn in combat."""

    MELEE_ATTACK = "melee_attack"
    RANGED_ATTACK = "ranged_attack"
    DODGE = "dodge"
    FLEE = "flee"
    HEAL = "heal"
    OTHER = "other"


class JournalEntryType(StrEnum):
    """Kinds of story journal entries."""

    NARRATIVE = "narrative"
    COMBAT = "combat"
    DISCOVERY = "discovery"
    NPC_ENCOUNTER = "npc_encounter"
    QUEST_START = "quest_start"
    QUEST_COMPLETE = "quest_complete"
    LEVEL_UP = "level_up"
    ITEM_FOUND = "item_found"
    LOCATION_CHANGE = "location_change"
    SKILL_CHECK = "skill_check"
    DEATH = "death"
    NOTE = "note"

    @property
    def display_name(self) -> str:
        """Heading shown for the entry (e.g., 'NPC Encounter')."""
        return _JOURNAL_ENTRY_NAMES[self]


_JOURNAL_ENTRY_NAMES: dict[JournalEntryType, str] = {
    JournalEntryType.NARRATIVE: "Story Event",
    JournalEntryType.COMBAT: "Combat",
    JournalEntryType.DISCOVERY: "Discovery",
    JournalEntryType.NPC_ENCOUNTER: "NPC Encounter",
    JournalEntryType.QUEST_START: "Quest Started",
    JournalEntryType.QUEST_COMPLETE: "Quest Completed",
    JournalEntryType.LEVEL_UP: "Level Up",
    JournalEntryType.ITEM_FOUND: "Item Found",
    JournalEntryType.LOCATION_CHANGE: "Location Change",
    JournalEntryType.SKILL_CHECK: "Skill Check",
    JournalEntryType.DEATH: "Death",
    JournalEntryType.NOTE: "Player Note",
}


class RelationshipStatus(StrEnum):
    """Standing with an NPC, declared from worst to best."""

    ENEMY = "enemy"
    HOSTILE = "hostile"
    UNFRIENDLY = "unfriendly"
    STRANGER = "stranger"
    ACQUAINTANCE = "acquaintance"
    FRIENDLY = "friendly"
    ALLY = "ally"
    COMPANION = "companion"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


__all__ = [
    "Ability",
    "Skill",
    "DamageType",
    "Condition",
    "ItemType",
    "ItemRarity",
    "MonsterType",
    "SceneType",
    "MessageType",
    "Difficulty",
    "RestType",
    "CheckType",
    "RewardType",
    "QuestStatus",
    "CombatPhase",
    "CombatActionType",
    "JournalEntryType",
    "RelationshipStatus",
]
