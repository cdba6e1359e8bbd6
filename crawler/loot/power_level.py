"""
Power level module for the rules engine.

Scores an item by weighting each of its final stats and scaling the sum by
the item's rarity.
"""

from core.constants import POWER_LEVEL_WEIGHTS, RARITY_POWER_MULTIPLIERS, StatKey
from core.utils import round_half_up
from items.equipment import EquipmentItem

DEFAULT_POWER_WEIGHT = 1.0


def stat_power(stat: StatKey, value: float) -> float:
    """Returns the weighted contribution of a single stat value."""
    return value * POWER_LEVEL_WEIGHTS.get(stat, DEFAULT_POWER_WEIGHT)


def calculate_item_power_level(item: EquipmentItem) -> int:
    """
    Calculates the power level of an item.

    Args:
        item (EquipmentItem): The item to score.

    Returns:
        int: The weighted stat sum times the rarity multiplier, rounded.

    """
    power = sum(stat_power(stat, value) for stat, value in item.stats.items())
    return int(round_half_up(power * RARITY_POWER_MULTIPLIERS[item.rarity]))
