"""Item template lookup.

Names proposed by the narrative are resolved against a fixed catalog of
templates. Names the catalog does not know are turned into a plausible
template from keywords in the name, so an AddItem action always yields a
well-formed Item.
"""

from __future__ import annotations

import random
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from rpg_engine.core.logging import get_logger
from rpg_engine.models.enums import ItemRarity, ItemType
from rpg_engine.models.items import Item


logger = get_logger(__name__)


@dataclass(frozen=True)
class ItemTemplate:
    """Blueprint for creating Item instances."""

    name: str
    description: str
    item_type: ItemType
    rarity: ItemRarity = ItemRarity.COMMON
    weight: float = 1.0
    value: int = 10
    effect: str | None = None
    properties: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_consumable(self) -> bool:
        return self.item_type in (ItemType.POTION, ItemType.SCROLL, ItemType.CONSUMABLE)

    def to_item(self, *, description: str | None = None) -> Item:
        """Create a fresh Item with its own id."""
        return Item(
            name=self.name,
            description=description or self.description,
            item_type=self.item_type,
            rarity=self.rarity,
            weight=self.weight,
            value=self.value,
            effect=self.effect,
            properties=dict(self.properties),
            is_consumable=self.is_consumable,
        )


# =============================================================================
# Template Tables
# =============================================================================

POTIONS: dict[str, ItemTemplate] = {
    "healing_potion": ItemTemplate(
        "Healing Potion", "A red liquid that heals wounds when consumed.",
        ItemType.POTION, ItemRarity.COMMON, 0.5, 50, "heal:2d4+2",
    ),
    "greater_healing_potion": ItemTemplate(
        "Potion of Greater Healing", "A bright red potion that provides substantial healing.",
        ItemType.POTION, ItemRarity.UNCOMMON, 0.5, 150, "heal:4d4+4",
    ),
    "superior_healing_potion": ItemTemplate(
        "Potion of Superior Healing", "A deep crimson potion with exceptional healing properties.",
        ItemType.POTION, ItemRarity.RARE, 0.5, 450, "heal:8d4+8",
    ),
    "antidote": ItemTemplate(
        "Antidote", "Cures poison when consumed.",
        ItemType.POTION, ItemRarity.COMMON, 0.5, 50, "cure:poisoned",
    ),
    "potion_of_fire_resistance": ItemTemplate(
        "Potion of Fire Resistance", "Grants resistance to fire damage for 1 hour.",
        ItemType.POTION, ItemRarity.UNCOMMON, 0.5, 250, "resistance:fire",
    ),
}

WEAPONS: dict[str, ItemTemplate] = {
    "longsword": ItemTemplate(
        "Longsword", "A versatile blade favored by warriors.",
        ItemType.WEAPON, weight=3.0, value=15,
        properties={"damage": "1d8", "damage_type": "slashing", "versatile": "1d10"},
    ),
    "shortsword": ItemTemplate(
        "Shortsword", "A light, finesse weapon ideal for quick strikes.",
        ItemType.WEAPON, weight=2.0, value=10,
        properties={"damage": "1d6", "damage_type": "piercing", "finesse": True},
    ),
    "dagger": ItemTemplate(
        "Dagger", "A simple blade useful for close combat or throwing.",
        ItemType.WEAPON, weight=1.0, value=2,
        properties={"damage": "1d4", "damage_type": "piercing", "finesse": True, "thrown": True},
    ),
    "battleaxe": ItemTemplate(
        "Battleaxe", "A heavy axe designed for war.",
        ItemType.WEAPON, weight=4.0, value=10,
        properties={"damage": "1d8", "damage_type": "slashing", "versatile": "1d10"},
    ),
    "greataxe": ItemTemplate(
        "Greataxe", "A massive two-handed axe.",
        ItemType.WEAPON, weight=7.0, value=30,
        properties={"damage": "1d12", "damage_type": "slashing", "two_handed": True},
    ),
    "longbow": ItemTemplate(
        "Longbow", "A powerful ranged weapon.",
        ItemType.WEAPON, weight=2.0, value=50,
        properties={"damage": "1d8", "damage_type": "piercing", "range": "150/600"},
    ),
    "shortbow": ItemTemplate(
        "Shortbow", "A light bow suitable for hunting and combat.",
        ItemType.WEAPON, weight=2.0, value=25,
        properties={"damage": "1d6", "damage_type": "piercing", "range": "80/320"},
    ),
    "quarterstaff": ItemTemplate(
        "Quarterstaff", "A simple wooden staff.",
        ItemType.WEAPON, weight=4.0, value=2,
        properties={"damage": "1d6", "damage_type": "bludgeoning", "versatile": "1d8"},
    ),
    "mace": ItemTemplate(
        "Mace", "A blunt weapon favored by clerics.",
        ItemType.WEAPON, weight=4.0, value=5,
        properties={"damage": "1d6", "damage_type": "bludgeoning"},
    ),
}

ARMOR: dict[str, ItemTemplate] = {
    "leather_armor": ItemTemplate(
        "Leather Armor", "Light armor made from hardened leather.",
        ItemType.ARMOR, weight=10.0, value=10, properties={"ac": 11, "armor_type": "light"},
    ),
    "studded_leather": ItemTemplate(
        "Studded Leather Armor", "Leather armor reinforced with metal studs.",
        ItemType.ARMOR, weight=13.0, value=45, properties={"ac": 12, "armor_type": "light"},
    ),
    "chain_shirt": ItemTemplate(
        "Chain Shirt", "A shirt of interlocking metal rings.",
        ItemType.ARMOR, weight=20.0, value=50,
        properties={"ac": 13, "armor_type": "medium", "max_dex": 2},
    ),
    "scale_mail": ItemTemplate(
        "Scale Mail", "Armor made of overlapping metal scales.",
        ItemType.ARMOR, weight=45.0, value=50,
        properties={"ac": 14, "armor_type": "medium", "max_dex": 2, "stealth_disadvantage": True},
    ),
    "chain_mail": ItemTemplate(
        "Chain Mail", "Full suit of interlocking metal rings.",
        ItemType.ARMOR, weight=55.0, value=75,
        properties={"ac": 16, "armor_type": "heavy", "str_requirement": 13},
    ),
    "plate_armor": ItemTemplate(
        "Plate Armor", "Full plate armor offering the best protection.",
        ItemType.ARMOR, weight=65.0, value=1500,
        properties={"ac": 18, "armor_type": "heavy", "str_requirement": 15},
    ),
    "shield": ItemTemplate(
        "Shield", "A wooden or metal shield.",
        ItemType.SHIELD, weight=6.0, value=10, properties={"ac_bonus": 2},
    ),
}

GEAR: dict[str, ItemTemplate] = {
    "torch": ItemTemplate("Torch", "Provides light for 1 hour.", ItemType.TOOL, value=1),
    "rope": ItemTemplate(
        "Rope (50 ft)", "Hemp rope, useful for climbing and binding.",
        ItemType.TOOL, weight=10.0, value=1,
    ),
    "rations": ItemTemplate(
        "Rations (1 day)", "Dried food for one day.", ItemType.CONSUMABLE, weight=2.0, value=5,
    ),
    "waterskin": ItemTemplate(
        "Waterskin", "Holds water for a day of travel.", ItemType.TOOL, weight=5.0, value=2,
    ),
    "thieves_tools": ItemTemplate(
        "Thieves' Tools", "Tools for picking locks and disabling traps.", ItemType.TOOL, value=25,
    ),
    "bedroll": ItemTemplate("Bedroll", "A basic bedroll for camping.", ItemType.MISC, weight=7.0, value=1),
    "backpack": ItemTemplate("Backpack", "A leather backpack.", ItemType.MISC, weight=5.0, value=2),
    "lantern": ItemTemplate("Lantern", "A hooded lantern that burns oil.", ItemType.TOOL, weight=2.0, value=5),
}

QUEST_ITEMS: dict[str, ItemTemplate] = {
    "rusty_key": ItemTemplate(
        "Rusty Key", "An old, rusted key. It might open something.",
        ItemType.QUEST_ITEM, weight=0.1, value=0,
    ),
    "mysterious_amulet": ItemTemplate(
        "Mysterious Amulet", "An amulet that pulses with faint magical energy.",
        ItemType.QUEST_ITEM, ItemRarity.UNCOMMON, 0.2, 100,
    ),
    "ancient_map": ItemTemplate(
        "Ancient Map", "A worn map showing locations of interest.",
        ItemType.QUEST_ITEM, weight=0.1, value=0,
    ),
}

MAGIC_ITEMS: dict[str, ItemTemplate] = {
    "ring_of_protection": ItemTemplate(
        "Ring of Protection", "A ring that grants +1 to AC and saving throws.",
        ItemType.RING, ItemRarity.RARE, 0.1, 3500,
        properties={"ac_bonus": 1, "saving_throw_bonus": 1},
    ),
    "cloak_of_elvenkind": ItemTemplate(
        "Cloak of Elvenkind", "A cloak that grants advantage on Stealth checks.",
        ItemType.ARMOR, ItemRarity.UNCOMMON, 1.0, 500, properties={"stealth_advantage": True},
    ),
    "bag_of_holding": ItemTemplate(
        "Bag of Holding", "A magical bag that holds far more than it should.",
        ItemType.MISC, ItemRarity.UNCOMMON, 15.0, 500, properties={"extra_capacity": 500},
    ),
}

WEAPON_KEYWORDS: tuple[str, ...] = (
    "sword", "axe", "mace", "hammer", "dagger", "bow", "crossbow",
    "spear", "halberd", "staff", "wand", "blade", "club", "flail",
)

ARMOR_KEYWORDS: tuple[str, ...] = (
    "armor", "mail", "plate", "leather", "shield", "helm", "helmet",
    "gauntlet", "boots", "greaves", "breastplate",
)


def normalize_item_name(name: str) -> str:
    """'Potion of Greater Healing!' -> 'potion_of_greater_healing'."""
    normalized = re.sub(r"[^a-z0-9]", "_", name.lower())
    normalized = re.sub(r"_+", "_", normalized)
    return normalized.strip("_")


def max_rarity_for_level(level: int) -> ItemRarity:
    """Highest rarity appropriate as loot for a character level."""
    if level < 5:
        return ItemRarity.UNCOMMON
    if level < 10:
        return ItemRarity.RARE
    if level < 15:
        return ItemRarity.VERY_RARE
    return ItemRarity.LEGENDARY


# =============================================================================
# Item Catalog
# =============================================================================


class ItemCatalog:
    """Resolves item names to templates.

    Example:
        >>> catalog = ItemCatalog()
        >>> catalog.find("healing potion").effect
        'heal:2d4+2'
        >>> catalog.resolve("Flaming Sword").item_type
        <ItemType.WEAPON: 'weapon'>
    """

    def __init__(self, templates: Mapping[str, ItemTemplate] | None = None) -> None:
        if templates is None:
            templates = {**POTIONS, **WEAPONS, **ARMOR, **GEAR, **QUEST_ITEMS, **MAGIC_ITEMS}
        self._templates = MappingProxyType(dict(templates))

    @property
    def templates(self) -> Mapping[str, ItemTemplate]:
        return self._templates

    def find(self, name: str) -> ItemTemplate | None:
        """Exact lookup by display name or catalog key, ignoring case and punctuation."""
        wanted = normalize_item_name(name)
        if not wanted:
            return None
        for key, template in self._templates.items():
            if key == wanted or normalize_item_name(template.name) == wanted:
                return template
        return None

    def find_by_type(self, item_type: ItemType) -> list[ItemTemplate]:
        """All templates of ``item_type``, in catalog order."""
        return [t for t in self._templates.values() if t.item_type == item_type]

    def find_by_rarity(self, rarity: ItemRarity) -> list[ItemTemplate]:
        """All templates of ``rarity``, in catalog order."""
        return [t for t in self._templates.values() if t.rarity == rarity]

    def resolve(self, name: str, *, max_rarity: ItemRarity | None = None) -> ItemTemplate:
        """Return the catalog template for ``name`` or synthesize one.

        Args:
            name: Item name as proposed.
            max_rarity: Cap on the rarity of a synthesized template.

        Returns:
            An ItemTemplate; never None.
        """
        template = self.find(name)
        if template is not None:
            return template
        synthesized = synthesize_template(name, max_rarity=max_rarity)
        logger.debug(
            "Synthesized item template",
            name=name,
            item_type=synthesized.item_type,
            rarity=synthesized.rarity,
        )
        return synthesized

    def validate(self, name: str, *, max_rarity: ItemRarity | None = None) -> ItemTemplate | None:
        """Like ``resolve`` but rejects known items rarer than ``max_rarity``."""
        template = self.find(name)
        if template is not None:
            if max_rarity is not None and template.rarity.rank > max_rarity.rank:
                return None
            return template
        return synthesize_template(name, max_rarity=max_rarity)

    def create_item(self, name: str, *, description: str | None = None) -> Item:
        return self.resolve(name).to_item(description=description)

    def random_loot(
        self,
        level: int,
        rng: random.Random,
        *,
        count: int = 1,
        item_type: ItemType | None = None,
    ) -> list[ItemTemplate]:
        """Pick up to ``count`` distinct templates suitable for ``level``.

        Args:
            level: Character level; caps the rarity of the loot.
            rng: Random source, so loot is replayable.
            count: Number of templates wanted.
            item_type: Only pick templates of this type.

        Returns:
            Distinct templates, fewer than ``count`` if the pool is small.
        """
        cap = max_rarity_for_level(level)
        eligible = [
            template
            for rarity in ItemRarity
            if rarity.rank <= cap.rank
            for template in self.find_by_rarity(rarity)
        ]
        if item_type is not None:
            wanted = {template.name for template in self.find_by_type(item_type)}
            eligible = [template for template in eligible if template.name in wanted]
        return rng.sample(eligible, k=min(count, len(eligible)))


def synthesize_template(name: str, *, max_rarity: ItemRarity | None = None) -> ItemTemplate:
    """Build a template for an unknown item from keywords in its name.

    Type checks run in order: potion/elixir, scroll, weapon words, armor
    words, key, ring, amulet/necklace, else misc. Rarity words multiply the
    base value.
    """
    lower = name.lower()
    item_type = ItemType.MISC
    value = 10
    weight = 1.0
    effect: str | None = None

    if "potion" in lower or "elixir" in lower:
        item_type, weight, value = ItemType.POTION, 0.5, 50
        if "heal" in lower:
            effect = "heal:2d4+2"
    elif "scroll" in lower:
        item_type, weight, value = ItemType.SCROLL, 0.1, 25
    elif any(keyword in lower for keyword in WEAPON_KEYWORDS):
        item_type, weight, value = ItemType.WEAPON, 3.0, 15
    elif any(keyword in lower for keyword in ARMOR_KEYWORDS):
        item_type, weight, value = ItemType.ARMOR, 10.0, 30
    elif "key" in lower:
        item_type, weight, value = ItemType.QUEST_ITEM, 0.1, 0
    elif "ring" in lower:
        item_type, weight, value = ItemType.RING, 0.1, 50
    elif "amulet" in lower or "necklace" in lower:
        item_type, weight, value = ItemType.AMULET, 0.1, 50

    rarity = ItemRarity.COMMON
    if "legendary" in lower or "epic" in lower:
        rarity, value = ItemRarity.LEGENDARY, value * 100
    elif "very rare" in lower:
        rarity, value = ItemRarity.VERY_RARE, value * 50
    elif "rare" in lower or "enchanted" in lower:
        rarity, value = ItemRarity.RARE, value * 20
    elif "uncommon" in lower or "magic" in lower or "+1" in lower:
        rarity, value = ItemRarity.UNCOMMON, value * 5

    if max_rarity is not None and rarity.rank > max_rarity.rank:
        rarity = max_rarity

    return ItemTemplate(
        name=name.strip(),
        description=f"A {name.strip()}.",
        item_type=item_type,
        rarity=rarity,
        weight=weight,
        value=value,
        effect=effect,
    )


__all__ = [
    "ItemTemplate",
    "POTIONS",
    "WEAPONS",
    "ARMOR",
    "GEAR",
    "QUEST_ITEMS",
    "MAGIC_ITEMS",
    "normalize_item_name",
    "max_rarity_for_level",
    "ItemCatalog",
    "synthesize_template",
]
