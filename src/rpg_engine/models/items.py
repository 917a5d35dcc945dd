"""Items and the slot-limited inventory.

Every Item entry occupies one inventory slot; picking up five torches adds
five entries. The inventory references equipped items by id rather than
embedding them twice.
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from rpg_engine.core.constants import DEFAULT_INVENTORY_SLOTS
from rpg_engine.models.enums import ItemRarity, ItemType


class Item(BaseModel):
    """A single item in the inventory.

    Attributes:
        id: Unique item identifier.
        name: Display name.
        description: Flavor text.
        item_type: Item category.
        rarity: Item rarity.
        weight: Weight in pounds.
        value: Value in gold pieces.
        effect: Use effect such as 'heal:2d4+2' or 'cure:poisoned'.
        properties: Template-specific data (damage dice, AC, ...).
        is_consumable: Whether using the item removes it.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(min_length=1)
    description: str = ""
    item_type: ItemType = ItemType.MISC
    rarity: ItemRarity = ItemRarity.COMMON
    weight: float = 0.0
    value: int = 0
    effect: str | None = None
    properties: dict[str, Any] = Field(default_factory=dict)
    is_consumable: bool = False


class Inventory(BaseModel):
    """Slot-limited collection of items.

    Attributes:
        items: Item entries, one per slot.
        max_slots: Total slots available.
        equipped: Equipment slot name to item id.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    items: tuple[Item, ...] = ()
    max_slots: int = Field(default=DEFAULT_INVENTORY_SLOTS, ge=1)
    equipped: dict[str, str] = Field(default_factory=dict)

    @property
    def free_slots(self) -> int:
        return max(0, self.max_slots - len(self.items))

    def find(self, name: str) -> Item | None:
        """Return the first item whose name matches case-insensitively."""
        wanted = name.strip().lower()
        for item in self.items:
            if item.name.lower() == wanted:
                return item
        return None

    def has_item(self, name: str) -> bool:
        return self.find(name) is not None

    def count(self, name: str) -> int:
        wanted = name.strip().lower()
        return sum(1 for item in self.items if item.name.lower() == wanted)

    def with_added(self, new_items: list[Item]) -> Inventory:
        """Return a copy holding ``new_items`` as well, ignoring capacity.

        Callers trim ``new_items`` to ``free_slots`` first.
        """
        return self.model_copy(update={"items": (*self.items, *new_items)})

    def without(self, item_ids: set[str]) -> Inventory:
        """Return a copy with the given item ids removed and unequipped."""
        remaining = tuple(item for item in self.items if item.id not in item_ids)
        equipped = {
            slot: item_id for slot, item_id in self.equipped.items() if item_id not in item_ids
        }
        return self.model_copy(update={"items": remaining, "equipped": equipped})


__all__ = [
    "Item",
    "Inventory",
]
