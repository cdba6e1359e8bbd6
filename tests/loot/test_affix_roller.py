"""
Tests for affix pools and affix rolling.
"""

import random

import pytest
from core.constants import AffixKind, EquipmentSlot, ItemCategory, ItemRarity, StatKey
from items.affix import AffixDefinition, AffixTier
from items.equipment import EquipmentItem
from loot.affix_roller import AffixRoller


@pytest.fixture
def roller():
    affixes = [
        AffixDefinition(
            id="heavy",
            name="Heavy",
            kind=AffixKind.PREFIX,
            valid_slots=[EquipmentSlot.MELEE],
            tiers=[
                AffixTier(tier=1, stat=StatKey.ATTACK, value=[2, 5], weight=100),
                AffixTier(tier=2, stat=StatKey.ATTACK, value=[6, 10], required_level=10, weight=1),
            ],
        ),
        AffixDefinition(
            id="healthy",
            name="Healthy",
            kind=AffixKind.PREFIX,
            tiers=[AffixTier(tier=1, stat=StatKey.MAX_HP, value=10)],
        ),
        AffixDefinition(
            id="of_the_fox",
            name="of the Fox",
            kind=AffixKind.SUFFIX,
            tiers=[AffixTier(tier=1, stat=StatKey.DODGE, value=[1, 3], required_level=5)],
        ),
    ]
    return AffixRoller(affixes, random.Random(5))


def test_available_affixes_filter_by_kind_slot_and_level(roller):
    """Test which affixes can roll."""
    melee = roller.available_affixes(AffixKind.PREFIX, 1, EquipmentSlot.MELEE)
    chest = roller.available_affixes(AffixKind.PREFIX, 1, EquipmentSlot.CHEST)
    assert [a.id for a in melee] == ["heavy", "healthy"]
    assert [a.id for a in chest] == ["healthy"]
    assert roller.available_affixes(AffixKind.SUFFIX, 4, EquipmentSlot.CHEST) == []
    assert roller.roll_affix(AffixKind.SUFFIX, 4, EquipmentSlot.CHEST) is None


def test_rolled_values_are_in_range_with_two_decimals(roller):
    """Test ranged values are uniform within bounds and rounded."""
    heavy = roller.get_affix("heavy")
    for _ in range(200):
        affix = roller.instantiate(heavy, 1)
        value = affix.stats[StatKey.ATTACK]
        assert affix.tier == 1
        assert 2 <= value <= 5
        assert round(value, 2) == value


def test_tier_roll_follows_weights(roller):
    """Test that the heavily weighted tier dominates."""
    heavy = roller.get_affix("heavy")
    tiers = [roller.instantiate(heavy, 20).tier for _ in range(500)]
    assert tiers.count(1) > 450


def test_fixed_values_are_kept(roller):
    """Test that a fixed tier value is used as is."""
    affix = roller.instantiate(roller.get_affix("healthy"), 1)
    assert affix.stats == {StatKey.MAX_HP: 10}
    assert affix.description == "Healthy T1"


def test_duplicate_affixes_are_skipped(roller):
    """Test that an affix already on the item is not added twice."""
    item = EquipmentItem(
        id="item_x",
        definition_id="plate",
        name="Plate",
        category=ItemCategory.ARMOR,
        slot_type=EquipmentSlot.CHEST,
        rarity=ItemRarity.LEGENDARY,
        item_level=10,
    )
    roller.apply_affixes(item, ItemRarity.LEGENDARY, 1)
    # Only "healthy" can roll on a chest at level 1.
    assert [a.id for a in item.prefixes] == ["healthy"]
    assert item.suffixes == []


def test_unknown_implicit_is_skipped(roller):
    """Test that an unknown implicit affix yields nothing."""
    assert roller.roll_implicit("missing", 1) is None
