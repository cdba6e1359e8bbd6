"""
Tests for item power levels.
"""

import pytest
from core.constants import EquipmentSlot, ItemCategory, ItemRarity, StatKey
from items.equipment import EquipmentItem
from loot.power_level import calculate_item_power_level, stat_power


def _item(rarity: ItemRarity, stats: dict) -> EquipmentItem:
    return EquipmentItem(
        id="item_test",
        definition_id="test",
        name="Test",
        category=ItemCategory.ARMOR,
        slot_type=EquipmentSlot.CHEST,
        rarity=rarity,
        item_level=1,
        base_stats=stats,
    )


def test_stat_power_weights():
    """Test the per-stat weights and the default weight."""
    assert stat_power(StatKey.ATTACK, 10) == 20
    assert stat_power(StatKey.MAX_HP, 10) == 5
    assert stat_power(StatKey.FIRE_RES, 10) == pytest.approx(8)
    assert stat_power(StatKey.MOVEMENT_SPEED, 10) == 10


@pytest.mark.parametrize(
    "rarity, expected",
    [
        (ItemRarity.COMMON, 27),
        (ItemRarity.UNCOMMON, 32),
        (ItemRarity.RARE, 41),
        (ItemRarity.EPIC, 54),
        (ItemRarity.LEGENDARY, 81),
    ],
)
def test_power_level_scales_with_rarity(rarity, expected):
    """Test that the weighted sum is multiplied by the rarity."""
    # 10 attack (20) + 10 armor (15) - 16 max hp (-8) = 27
    item = _item(rarity, {StatKey.ATTACK: 10, StatKey.ARMOR: 10, StatKey.MAX_HP: -16})
    assert calculate_item_power_level(item) == expected
