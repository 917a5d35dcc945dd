"""Structured payload returned by the narrative provider.

The provider is untrusted: its JSON may use camelCase or snake_case keys,
be wrapped in markdown fences, carry trailing commas, or not be JSON at
all. ``AIResponse.from_payload`` accepts all of these and always returns a
usable response; nothing here touches game state.
"""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from rpg_engine.core.logging import get_logger
from rpg_engine.models.enums import Ability, CheckType, RewardType, Skill


logger = get_logger(__name__)

DEFAULT_NARRATION = "The adventure continues..."
DEFAULT_SUGGESTED_ACTIONS: tuple[str, ...] = ("Continue", "Look around", "Wait")


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


# =============================================================================
# Nested Payload Models
# =============================================================================


class ProposedCheck(_Payload):
    """A check the narrative asks the engine to roll.

    Unrecognized ability names fall back to Strength and unrecognized
    skills to Athletics, so a sloppy payload still produces a roll.
    """

    check_type: CheckType = Field(
        default=CheckType.ABILITY, validation_alias=AliasChoices("check_type", "checkType", "type")
    )
    ability: Ability | None = None
    skill: Skill | None = None
    difficulty_class: int = Field(
        default=10, validation_alias=AliasChoices("difficulty_class", "difficultyClass", "dc")
    )
    description: str | None = None
    has_advantage: bool = Field(
        default=False,
        validation_alias=AliasChoices("has_advantage", "hasAdvantage", "canUseAdvantage", "advantage"),
    )
    has_disadvantage: bool = Field(
        default=False,
        validation_alias=AliasChoices("has_disadvantage", "hasDisadvantage", "disadvantage"),
    )
    opposing_modifier: int | None = Field(
        default=None, validation_alias=AliasChoices("opposing_modifier", "opposingModifier")
    )

    @model_validator(mode="before")
    @classmethod
    def infer_skill_check(cls, data: Any) -> Any:
        """A payload naming a skill but no check type is a skill check."""
        if isinstance(data, dict) and data.get("skill"):
            if not any(key in data for key in ("check_type", "checkType", "type")):
                return {**data, "check_type": CheckType.SKILL}
        return data

    @field_validator("check_type", mode="before")
    @classmethod
    def parse_check_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            token = re.sub(r"(?<=[a-z])(?=[A-Z])", "_", value.strip()).lower().replace(" ", "_")
            for check_type in CheckType:
                if token.startswith(check_type.value):
                    return check_type
            return CheckType.ABILITY
        return value

    @field_validator("ability", mode="before")
    @classmethod
    def parse_ability(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return Ability.parse(value)
            except ValueError:
                return Ability.STR
        return value

    @field_validator("skill", mode="before")
    @classmethod
    def parse_skill(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return Skill.parse(value)
            except ValueError:
                return Skill.ATHLETICS
        return value

    @field_validator("difficulty_class", mode="before")
    @classmethod
    def default_difficulty_class(cls, value: Any) -> Any:
        return 10 if value is None else value


class ProposedReward(_Payload):
    """A reward the narrative proposes; the action pipeline decides what lands."""

    reward_type: RewardType = Field(
        default=RewardType.EXPERIENCE, validation_alias=AliasChoices("reward_type", "type")
    )
    item_name: str | None = Field(
        default=None, validation_alias=AliasChoices("item_name", "itemName", "item", "name")
    )
    quantity: int | None = None
    gold_amount: int | None = Field(
        default=None, validation_alias=AliasChoices("gold_amount", "goldAmount", "gold")
    )
    experience_points: int | None = Field(
        default=None,
        validation_alias=AliasChoices("experience_points", "experiencePoints", "xp", "experience"),
    )
    description: str | None = None

    @field_validator("reward_type", mode="before")
    @classmethod
    def parse_reward_type(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return RewardType.EXPERIENCE if value is None else value
        token = value.lower()
        if "gold" in token or "coin" in token:
            return RewardType.GOLD
        if "item" in token:
            return RewardType.ITEM
        if "reputation" in token:
            return RewardType.REPUTATION
        return RewardType.EXPERIENCE


class SceneChange(_Payload):
    new_scene_name: str = Field(
        validation_alias=AliasChoices("new_scene_name", "newSceneName", "name")
    )
    new_scene_description: str = Field(
        default="",
        validation_alias=AliasChoices("new_scene_description", "newSceneDescription", "description"),
    )
    transition_description: str | None = Field(
        default=None, validation_alias=AliasChoices("transition_description", "transitionDescription")
    )


class NPCDialogue(_Payload):
    npc_name: str = Field(validation_alias=AliasChoices("npc_name", "npcName", "speaker", "name"))
    dialogue: str = Field(validation_alias=AliasChoices("dialogue", "text", "line"))
    emotion: str | None = None
    action: str | None = None


class CombatEnemy(_Payload):
    """One enemy group in a combat trigger."""

    name: str = "Unknown Enemy"
    monster_type: str | None = Field(default=None, validation_alias=AliasChoices("monster_type", "type"))
    challenge_rating: float = Field(
        default=0.25, validation_alias=AliasChoices("challenge_rating", "challengeRating", "cr")
    )
    count: int = Field(default=1, ge=1)


class CombatTrigger(_Payload):
    enemies: tuple[CombatEnemy, ...] = ()
    is_ambush: bool = Field(default=False, validation_alias=AliasChoices("is_ambush", "isAmbush", "ambush"))
    reason: str | None = None


class PlayerChoice(_Payload):
    id: str
    text: str
    consequence: str | None = None
    is_available: bool = Field(default=True, validation_alias=AliasChoices("is_available", "isAvailable"))
    requirement_description: str | None = Field(
        default=None,
        validation_alias=AliasChoices("requirement_description", "requirementDescription"),
    )


# =============================================================================
# AI Response
# =============================================================================


class AIResponse(_Payload):
    """A single narrative turn proposed by the provider.

    Attributes:
        narration: Story text for this turn.
        proposed_check: Check to roll before rewards apply.
        success_outcome: Text shown if the check succeeds.
        failure_outcome: Text shown if the check fails.
        proposed_rewards: Rewards to route through the action pipeline.
        scene_change: New scene to move to.
        npc_dialogues: Lines spoken by NPCs.
        combat_trigger: Enemies that start combat.
        suggested_actions: Follow-up actions to offer the player.
        ambient_description: Optional atmosphere text.
        requires_player_choice: Whether the player must pick a choice.
        player_choices: Choices offered to the player.
    """

    narration: str = Field(
        default=DEFAULT_NARRATION,
        validation_alias=AliasChoices("narration", "narrative", "description", "text"),
    )
    proposed_check: ProposedCheck | None = Field(
        default=None, validation_alias=AliasChoices("proposed_check", "proposedCheck", "check")
    )
    success_outcome: str | None = Field(
        default=None, validation_alias=AliasChoices("success_outcome", "successOutcome", "success")
    )
    failure_outcome: str | None = Field(
        default=None, validation_alias=AliasChoices("failure_outcome", "failureOutcome", "failure")
    )
    proposed_rewards: tuple[ProposedReward, ...] = Field(
        default=(), validation_alias=AliasChoices("proposed_rewards", "proposedRewards", "rewards")
    )
    scene_change: SceneChange | None = Field(
        default=None, validation_alias=AliasChoices("scene_change", "sceneChange", "newScene")
    )
    npc_dialogues: tuple[NPCDialogue, ...] = Field(
        default=(), validation_alias=AliasChoices("npc_dialogues", "npcDialogues", "dialogue")
    )
    combat_trigger: CombatTrigger | None = Field(
        default=None, validation_alias=AliasChoices("combat_trigger", "combatTrigger", "combat")
    )
    suggested_actions: tuple[str, ...] = Field(
        default=DEFAULT_SUGGESTED_ACTIONS,
        validation_alias=AliasChoices("suggested_actions", "suggestedActions", "actions"),
    )
    ambient_description: str | None = Field(
        default=None, validation_alias=AliasChoices("ambient_description", "ambientDescription")
    )
    requires_player_choice: bool = Field(
        default=False, validation_alias=AliasChoices("requires_player_choice", "requiresPlayerChoice")
    )
    player_choices: tuple[PlayerChoice, ...] = Field(
        default=(), validation_alias=AliasChoices("player_choices", "playerChoices")
    )

    @property
    def triggers_combat(self) -> bool:
        return self.combat_trigger is not None and bool(self.combat_trigger.enemies)

    @classmethod
    def from_payload(cls, payload: str | dict[str, Any]) -> AIResponse:
        """Parse a provider payload leniently.

        Malformed nested sections are dropped rather than failing the whole
        turn. Text that is not JSON at all becomes the narration.

        Args:
            payload: Raw response text or an already-decoded mapping.

        Returns:
            An AIResponse; never raises for bad input.
        """
        if isinstance(payload, dict):
            return cls._from_mapping(payload)

        try:
            data = json.loads(clean_json_text(payload))
        except json.JSONDecodeError as exc:
            logger.warning("AI payload is not valid JSON", error=str(exc))
            return cls(
                narration=extract_narration_fallback(payload),
                suggested_actions=extract_actions_fallback(payload),
            )

        if not isinstance(data, dict):
            logger.warning("AI payload is not a JSON object", payload_type=type(data).__name__)
            return cls(narration=extract_narration_fallback(payload))
        return cls._from_mapping(data)

    @classmethod
    def _from_mapping(cls, data: dict[str, Any]) -> AIResponse:
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            broken = {str(error["loc"][0]) for error in exc.errors() if error["loc"]}
            logger.warning("Dropping malformed AI payload sections", sections=sorted(broken))

        salvaged = {key: value for key, value in data.items() if key not in broken}
        try:
            return cls.model_validate(salvaged)
        except PydanticValidationError:
            logger.warning("AI payload could not be salvaged")
            return cls(narration=extract_narration_fallback(json.dumps(data)))


# =============================================================================
# Lenient Parsing Helpers
# =============================================================================

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.MULTILINE)
_FENCE_CLOSE = re.compile(r"\s*```$", re.MULTILINE)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_NARRATION_KEYS = ("narration", "narrative", "description", "text")


def clean_json_text(text: str) -> str:
    """Strip markdown fences, surrounding prose and trailing commas."""
    cleaned = _FENCE_OPEN.sub("", text.strip())
    cleaned = _FENCE_CLOSE.sub("", cleaned)
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start != -1 and end > start:
        cleaned = cleaned[start : end + 1]
    return _TRAILING_COMMA.sub(r"\1", cleaned)


def extract_narration_fallback(text: str) -> str:
    """Pull narration out of broken JSON, or fall back to the raw text."""
    for key in _NARRATION_KEYS:
        match = re.search(rf'"{key}"\s*:\s*"((?:[^"\\]|\\.)*)"', text)
        if match:
            return (
                match.group(1)
                .replace('\\"', '"')
                .replace("\\n", "\n")
                .replace("\\\\", "\\")
            )

    cleaned = re.sub(r"[{}\[\]]", "", text)
    cleaned = re.sub(r'"[a-zA-Z_]+"\s*:', "", cleaned)
    cleaned = cleaned.replace('"', "").strip()

    if len(cleaned) > 500:
        sentences = [s.strip() for s in re.split(r"[.!?]", cleaned) if s.strip()]
        if len(sentences) > 3:
            cleaned = ". ".join(sentences[:3]) + "."

    return cleaned or DEFAULT_NARRATION


def extract_actions_fallback(text: str) -> tuple[str, ...]:
    match = re.search(r'"(?:suggestedActions|suggested_actions)"\s*:\s*\[([^\[\]]*)\]', text)
    if match:
        actions = tuple(re.findall(r'"([^"]+)"', match.group(1)))
        if actions:
            return actions
    return DEFAULT_SUGGESTED_ACTIONS


__all__ = [
    "DEFAULT_NARRATION",
    "DEFAULT_SUGGESTED_ACTIONS",
    "ProposedCheck",
    "ProposedReward",
    "SceneChange",
    "NPCDialogue",
    "CombatEnemy",
    "CombatTrigger",
    "PlayerChoice",
    "AIResponse",
    "clean_json_text",
    "extract_narration_fallback",
    "extract_actions_fallback",
]
