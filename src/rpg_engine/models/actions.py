"""Game actions: the only way state changes.

Rewards from the narrative provider and player commands are expressed as
GameAction values and handed to the action pipeline, which validates and
executes them one at a time.

Payloads coming from the narrative provider look like::

    {"type": "addItem", "params": {"itemName": "Iron Sword", "quantity": 1}}

``parse_action`` accepts that shape as well as a flat one with snake_case
keys.
"""

from __future__ import annotations

import re
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from rpg_engine.core.exceptions import ValidationError
from rpg_engine.models.enums import DamageType, ItemRarity, RestType, SceneType


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


# =============================================================================
# Inventory
# =============================================================================


class AddItem(_Action):
    """Add ``quantity`` copies of an item; each copy takes one slot."""

    kind: Literal["add_item"] = "add_item"
    item_name: str = Field(validation_alias=AliasChoices("item_name", "itemName", "name"))
    quantity: int = 1
    rarity: ItemRarity | None = None
    description: str | None = None


class RemoveItem(_Action):
    kind: Literal["remove_item"] = "remove_item"
    item_name: str = Field(validation_alias=AliasChoices("item_name", "itemName", "name"))
    quantity: int = 1


class UseItem(_Action):
    """Apply an item's effect and consume it if it is consumable."""

    kind: Literal["use_item"] = "use_item"
    item_name: str = Field(validation_alias=AliasChoices("item_name", "itemName", "name"))


# =============================================================================
# Hit Points
# =============================================================================


class Heal(_Action):
    """Heal by a flat amount ('5') or a dice notation ('2d4+2')."""

    kind: Literal["heal"] = "heal"
    amount: str
    source: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value


class Damage(_Action):
    kind: Literal["damage"] = "damage"
    amount: int
    damage_type: DamageType | None = Field(
        default=None, validation_alias=AliasChoices("damage_type", "damageType")
    )
    source: str | None = None


# =============================================================================
# Rewards
# =============================================================================


class AddGold(_Action):
    kind: Literal["add_gold"] = "add_gold"
    amount: int
    source: str | None = None


class SpendGold(_Action):
    kind: Literal["spend_gold"] = "spend_gold"
    amount: int
    reason: str | None = None


class AddXP(_Action):
    kind: Literal["add_xp"] = "add_xp"
    amount: int
    source: str | None = None


# =============================================================================
# World
# =============================================================================


class ChangeLocation(_Action):
    kind: Literal["change_location"] = "change_location"
    name: str = Field(validation_alias=AliasChoices("name", "location", "locationName"))
    description: str = ""
    scene_type: SceneType = Field(
        default=SceneType.EXPLORATION, validation_alias=AliasChoices("scene_type", "sceneType")
    )


class Rest(_Action):
    kind: Literal["rest"] = "rest"
    rest_type: RestType = Field(
        default=RestType.SHORT, validation_alias=AliasChoices("rest_type", "restType")
    )


GameAction = Annotated[
    Union[
        AddItem,
        RemoveItem,
        UseItem,
        Heal,
        Damage,
        AddGold,
        SpendGold,
        AddXP,
        ChangeLocation,
        Rest,
    ],
    Field(discriminator="kind"),
]

_ACTION_ADAPTER: TypeAdapter[Any] = TypeAdapter(GameAction)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _normalize_kind(raw: str) -> str:
    """'addXP' -> 'add_xp', 'spendGold' -> 'spend_gold'."""
    return _CAMEL_BOUNDARY.sub("_", raw.strip()).lower()


def parse_action(payload: dict[str, Any]) -> GameAction:
    """Build a GameAction from a JSON payload.

    Args:
        payload: Mapping with a 'type' (or 'kind') key in camelCase or
            snake_case, and parameters either nested under 'params' or
            given inline.

    Returns:
        The matching GameAction.

    Raises:
        ValidationError: If the type is unknown or the parameters are invalid.
    """
    raw_kind = payload.get("kind") or payload.get("type")
    if not isinstance(raw_kind, str) or not raw_kind.strip():
        raise ValidationError(
            "Action payload has no type",
            field_name="type",
            invalid_value=raw_kind,
        )

    params = payload.get("params")
    data: dict[str, Any] = dict(params) if isinstance(params, dict) else {
        key: value for key, value in payload.items() if key not in ("type", "kind")
    }
    data["kind"] = _normalize_kind(raw_kind)

    try:
        return _ACTION_ADAPTER.validate_python(data)
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Invalid action payload: {exc.error_count()} error(s)",
            field_name="params",
            invalid_value=data,
            details={"kind": data["kind"]},
        ) from exc


__all__ = [
    "AddItem",
    "RemoveItem",
    "UseItem",
    "Heal",
    "Damage",
    "AddGold",
    "SpendGold",
    "AddXP",
    "ChangeLocation",
    "Rest",
    "GameAction",
    "parse_action",
]
