"""Tests for the item catalog."""

from __future__ import annotations

import random

import pytest

from rpg_engine.engine.items import (
    ItemCatalog,
    ItemTemplate,
    max_rarity_for_level,
    normalize_item_name,
)
from rpg_engine.models.enums import ItemRarity, ItemType


class TestLookup:
    """Tests for exact lookups."""

    def test_normalize_item_name(self) -> None:
        """Test punctuation and case are folded."""
        assert normalize_item_name("Potion of Greater Healing!") == "potion_of_greater_healing"
        assert normalize_item_name("  Thieves' Tools ") == "thieves_tools"

    @pytest.mark.parametrize("name", ["Healing Potion", "healing potion", "healing_potion"])
    def test_find_by_name_or_key(self, name: str) -> None:
        """Test display names and keys both match."""
        template = ItemCatalog().find(name)

        assert template is not None
        assert template.effect == "heal:2d4+2"

    def test_find_unknown_returns_none(self) -> None:
        """Test an unknown name is not found."""
        assert ItemCatalog().find("Vorpal Spoon") is None
        assert ItemCatalog().find("!!!") is None

    def test_custom_templates(self) -> None:
        """Test a catalog can be built from its own table."""
        catalog = ItemCatalog({"pebble": ItemTemplate("Pebble", "A smooth stone.", ItemType.MISC)})

        assert catalog.find("pebble") is not None
        assert catalog.find("Longsword") is None


class TestSynthesis:
    """Tests for templates built from unknown names."""

    @pytest.mark.parametrize(
        ("name", "item_type"),
        [
            ("Bubbling Elixir", ItemType.POTION),
            ("Scroll of Fireball", ItemType.SCROLL),
            ("Goblin Sword", ItemType.WEAPON),
            ("Dented Helmet", ItemType.ARMOR),
            ("Brass Key", ItemType.QUEST_ITEM),
            ("Silver Ring", ItemType.RING),
            ("Bone Necklace", ItemType.AMULET),
            ("Strange Pebble", ItemType.MISC),
        ],
    )
    def test_keyword_types(self, name: str, item_type: ItemType) -> None:
        """Test item types inferred from keywords."""
        template = ItemCatalog().resolve(name)

        assert template.item_type == item_type
        assert template.name == name

    def test_healing_potion_gets_effect(self) -> None:
        """Test an unknown healing potion still heals."""
        template = ItemCatalog().resolve("Minor Potion of Healing")

        assert template.effect == "heal:2d4+2"
        assert template.is_consumable

    def test_rarity_words_scale_value(self) -> None:
        """Test rarity words raise rarity and value."""
        template = ItemCatalog().resolve("Enchanted Dagger of Sparks")

        assert template.item_type == ItemType.WEAPON
        assert template.rarity == ItemRarity.RARE
        assert template.value == 15 * 20

    def test_rarity_capped(self) -> None:
        """Test max_rarity caps a synthesized rarity."""
        template = ItemCatalog().resolve("Legendary Axe", max_rarity=ItemRarity.UNCOMMON)

        assert template.rarity == ItemRarity.UNCOMMON

    def test_validate_rejects_rare_catalog_items(self) -> None:
        """Test known items above the cap are rejected."""
        catalog = ItemCatalog()

        assert catalog.validate("Bag of Holding", max_rarity=ItemRarity.COMMON) is None
        assert catalog.validate("Torch", max_rarity=ItemRarity.COMMON) is not None

    def test_create_item_gets_fresh_id(self) -> None:
        """Test each created item has its own id."""
        catalog = ItemCatalog()

        first = catalog.create_item("Torch")
        second = catalog.create_item("Torch", description="Slightly damp.")

        assert first.id != second.id
        assert second.description == "Slightly damp."


class TestLoot:
    """Tests for level-appropriate loot."""

    @pytest.mark.parametrize(
        ("level", "rarity"),
        [(1, ItemRarity.UNCOMMON), (5, ItemRarity.RARE), (12, ItemRarity.VERY_RARE), (20, ItemRarity.LEGENDARY)],
    )
    def test_max_rarity_for_level(self, level: int, rarity: ItemRarity) -> None:
        """Test the rarity ladder by level."""
        assert max_rarity_for_level(level) == rarity

    def test_random_loot_respects_cap(self) -> None:
        """Test low-level loot never exceeds uncommon."""
        loot = ItemCatalog().random_loot(1, random.Random(5), count=10)

        assert len(loot) == 10
        assert len({template.name for template in loot}) == 10
        assert all(template.rarity.rank <= ItemRarity.UNCOMMON.rank for template in loot)

    def test_random_loot_filtered_by_type(self) -> None:
        """Test typed loot draws only from that type under the cap."""
        loot = ItemCatalog().random_loot(1, random.Random(3), count=10, item_type=ItemType.POTION)

        assert {template.name for template in loot} == {
            "Healing Potion",
            "Potion of Greater Healing",
            "Antidote",
            "Potion of Fire Resistance",
        }

    def test_find_by_type_and_rarity(self) -> None:
        """Test catalog filtering by type and by rarity."""
        catalog = ItemCatalog()

        potions = catalog.find_by_type(ItemType.POTION)
        rare = catalog.find_by_rarity(ItemRarity.RARE)

        assert potions
        assert all(template.item_type == ItemType.POTION for template in potions)
        assert "Potion of Superior Healing" in {template.name for template in rare}
        assert all(template.rarity == ItemRarity.RARE for template in rare)
