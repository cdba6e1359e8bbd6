"""
Loot generator module for the rules engine.

Rolls the rewards an enemy drops: gold from the tier's range, then maybe an
equipment item (and for higher tiers maybe a second one) built from a base
item, a rarity, an item level, quality variance and affixes.
"""

import random
from collections import Counter
from typing import Any, Optional, TypeVar

from catchery import log_warning
from core.constants import (
    BASE_DROP_CHANCE,
    BONUS_ITEM_CHANCE_PER_TIER,
    BONUS_ITEM_MIN_TIER,
    BONUS_RARITY_SPLIT,
    DEFAULT_TIER,
    DROP_CHANCE_PER_TIER,
    GOLD_RANGES,
    ITEM_CATEGORY_WEIGHTS,
    QUALITY_VARIANCE,
    RARITY_WEIGHTS,
    TIER_BASE_ITEM_LEVELS,
    TIER_LEVEL_RANGES,
    ItemCategory,
    ItemRarity,
)
from core.logging import log_debug
from core.utils import round_half_up, weighted_choice
from items.affix import AffixDefinition
from items.equipment import BaseItemDefinition, EquipmentItem
from loot.affix_roller import AffixRoller
from loot.power_level import calculate_item_power_level
from pydantic import BaseModel, Field

_V = TypeVar("_V")


class LootGenerationConfig(BaseModel):
    """What an enemy's loot roll depends on."""

    enemy_tier: int = Field(description="Tier of the defeated enemy (1-3).")
    player_level: int = Field(default=1, description="The player's level.", ge=1)
    dungeon_type: Optional[str] = Field(
        default=None,
        description="Optional dungeon theme narrowing the base item pool.",
    )
    guaranteed_rarity: Optional[ItemRarity] = Field(
        default=None,
        description="Overrides the rarity roll for every dropped item.",
    )
    bonus_rarity_chance: float = Field(
        default=0,
        description="Percentage of the common weight moved to better rarities.",
        ge=0,
        le=100,
    )


class LootDrop(BaseModel):
    """A single dropped item."""

    item: EquipmentItem = Field(description="The generated item.")
    is_upgrade: bool = Field(
        default=False,
        description="Whether the item beats the current gear (needs the equipment layer).",
    )
    power_level: int = Field(description="The item's power level.")


class LootResult(BaseModel):
    """Everything an enemy dropped."""

    gold: int = Field(default=0, description="Gold dropped.", ge=0)
    items: list[LootDrop] = Field(default_factory=list, description="Items dropped.")
    total_power_level: int = Field(default=0, description="Sum of item power levels.")
    rarity_distribution: dict[ItemRarity, int] = Field(
        default_factory=dict,
        description="How many dropped items have each rarity.",
    )

    def add_drop(self, drop: LootDrop) -> None:
        self.items.append(drop)
        self.total_power_level += drop.power_level
        rarity = drop.item.rarity
        self.rarity_distribution[rarity] = self.rarity_distribution.get(rarity, 0) + 1

    def merge(self, other: "LootResult") -> None:
        """Adds another result's gold and items to this one."""
        self.gold += other.gold
        for drop in other.items:
            self.add_drop(drop)


class LootGenerator:
    """
    Generates enemy loot from the base item and affix tables.

    Attributes:
        items (list[BaseItemDefinition]): The base item pool.
        affix_roller (AffixRoller): Rolls affixes onto generated items.
        rng (random.Random): The random generator used for every roll.

    """

    def __init__(
        self,
        items: list[BaseItemDefinition],
        affixes: list[AffixDefinition],
        rng: Optional[random.Random] = None,
    ) -> None:
        self.rng: random.Random = rng or random.Random()
        self.items: list[BaseItemDefinition] = list(items)
        self.affix_roller = AffixRoller(affixes, self.rng)

    # ============================================================================
    # ENTRY POINT
    # ============================================================================

    def generate_enemy_loot(self, config: LootGenerationConfig) -> LootResult:
        """
        Rolls the loot for one defeated enemy.

        Args:
            config (LootGenerationConfig): The tier, level and modifiers.

        Returns:
            LootResult: Gold always, plus zero, one or two items.

        """
        tier = self.resolve_tier(config.enemy_tier)
        result = LootResult(gold=self.generate_gold(tier))

        drop_chance = BASE_DROP_CHANCE + DROP_CHANCE_PER_TIER * tier
        if self.rng.random() >= drop_chance:
            log_debug("No item dropped", {"tier": tier, "gold": result.gold})
            return result

        primary = self.generate_item(config, tier)
        if primary is not None:
            result.add_drop(primary)

        if tier >= BONUS_ITEM_MIN_TIER and (
            self.rng.random() < BONUS_ITEM_CHANCE_PER_TIER * tier
        ):
            bonus = self.generate_item(config, tier)
            if bonus is not None:
                result.add_drop(bonus)

        return result

    def resolve_tier(self, tier: int) -> int:
        """Returns the tier if the loot tables know it, the default tier otherwise."""
        if tier in GOLD_RANGES:
            return tier
        log_warning(
            f"Unknown enemy tier {tier}, using tier {DEFAULT_TIER} loot tables",
            {"tier": tier, "context": "loot_generation"},
        )
        return DEFAULT_TIER

    @staticmethod
    def _for_tier(table: dict[int, _V], tier: int) -> _V:
        return table.get(tier, table[DEFAULT_TIER])

    # ============================================================================
    # ROLLS
    # ============================================================================

    def generate_gold(self, tier: int) -> int:
        """Rolls an integer uniformly within the tier's gold range."""
        low, high = self._for_tier(GOLD_RANGES, tier)
        return self.rng.randint(low, high)

    def select_item_category(self) -> ItemCategory:
        return weighted_choice(self.rng, ITEM_CATEGORY_WEIGHTS)

    def select_base_item(
        self,
        category: ItemCategory,
        tier: int,
        dungeon_type: Optional[str] = None,
    ) -> Optional[BaseItemDefinition]:
        """
        Picks a base item of a category suited to a tier.

        Items whose required level falls in the tier's level band are
        preferred; if none does, the first item of the pool is used. A dungeon
        type narrows the pool to the items tagged with it, when there are any.

        Args:
            category (ItemCategory): Weapons or armor.
            tier (int): The enemy tier.
            dungeon_type (Optional[str]): The dungeon theme.

        Returns:
            Optional[BaseItemDefinition]: None if the category is empty.

        """
        pool = [item for item in self.items if item.category == category]
        if not pool:
            return None
        if dungeon_type:
            themed = [item for item in pool if dungeon_type in item.dungeon_types]
            if themed:
                pool = themed
        low, high = self._for_tier(TIER_LEVEL_RANGES, tier)
        appropriate = [item for item in pool if low <= item.required_level <= high]
        if not appropriate:
            return pool[0]
        return self.rng.choice(appropriate)

    def roll_item_rarity(self, tier: int, bonus_chance: float = 0) -> ItemRarity:
        """
        Rolls a rarity from the tier's weights.

        A bonus chance removes that percentage of the common weight and gives
        half of it to rare, 30% to epic and 20% to legendary.

        Args:
            tier (int): The enemy tier.
            bonus_chance (float): Percentage of the common weight to move.

        Returns:
            ItemRarity: The rolled rarity.

        """
        weights = dict(self._for_tier(RARITY_WEIGHTS, tier))
        if bonus_chance > 0:
            reduction = weights[ItemRarity.COMMON] * (bonus_chance / 100)
            weights[ItemRarity.COMMON] -= reduction
            for rarity, share in BONUS_RARITY_SPLIT.items():
                weights[rarity] += reduction * share
        return weighted_choice(self.rng, weights)

    def calculate_item_level(self, tier: int, player_level: int) -> int:
        """Rolls an item level around the tier's base level, at least 1."""
        base_level = self._for_tier(TIER_BASE_ITEM_LEVELS, tier)
        variance = int(player_level * 0.2)
        min_level = max(1, base_level - variance)
        max_level = max(min_level, base_level + variance)
        return self.rng.randint(min_level, max_level)

    def roll_quality_multiplier(self, rarity: ItemRarity) -> float:
        low, high = QUALITY_VARIANCE[rarity]
        return self.rng.uniform(low, high)

    # ============================================================================
    # ITEM CONSTRUCTION
    # ============================================================================

    def new_item_id(self) -> str:
        return f"item_{self.rng.getrandbits(48):012x}"

    def create_equipment_item(
        self,
        definition: BaseItemDefinition,
        rarity: ItemRarity,
        item_level: int,
        player_level: int = 1,
    ) -> EquipmentItem:
        """
        Builds an item instance from a base definition.

        The base stats are scaled by the rarity's quality multiplier and
        rounded; the implicit affix, if the definition names one, is rolled.

        Args:
            definition (BaseItemDefinition): The base item.
            rarity (ItemRarity): The item's rarity.
            item_level (int): The item's level.
            player_level (int): The level unlocking affix tiers.

        Returns:
            EquipmentItem: The item, without prefixes or suffixes yet.

        """
        multiplier = self.roll_quality_multiplier(rarity)
        item_data: dict[str, Any] = {
            "id": self.new_item_id(),
            "definition_id": definition.id,
            "name": definition.name,
            "description": definition.description,
            "category": definition.category,
            "slot_type": definition.slot_type,
            "rarity": rarity,
            "item_level": item_level,
            "required_level": definition.required_level,
            "base_stats": {
                stat: round_half_up(value * multiplier)
                for stat, value in definition.stats.items()
            },
            "damage_type": definition.damage_type,
        }
        if definition.implicit_affix:
            item_data["implicit"] = self.affix_roller.roll_implicit(
                definition.implicit_affix, player_level
            )
        return EquipmentItem(**item_data)

    def generate_item(
        self, config: LootGenerationConfig, tier: Optional[int] = None
    ) -> Optional[LootDrop]:
        """
        Generates a single item drop.

        Args:
            config (LootGenerationConfig): The loot parameters.
            tier (Optional[int]): The already resolved tier, if any.

        Returns:
            Optional[LootDrop]: None if the rolled category has no items.

        """
        if tier is None:
            tier = self.resolve_tier(config.enemy_tier)
        category = self.select_item_category()
        definition = self.select_base_item(category, tier, config.dungeon_type)
        if definition is None:
            log_warning(
                f"No base items available for category {category}",
                {"category": str(category), "context": "loot_generation"},
            )
            return None

        rarity = config.guaranteed_rarity or self.roll_item_rarity(
            tier, config.bonus_rarity_chance
        )
        item_level = self.calculate_item_level(tier, config.player_level)
        item = self.create_equipment_item(
            definition, rarity, item_level, config.player_level
        )
        self.affix_roller.apply_affixes(item, rarity, config.player_level)

        drop = LootDrop(item=item, power_level=calculate_item_power_level(item))
        log_debug(
            f"Generated {item}",
            {"power_level": drop.power_level, "affixes": len(item.affixes)},
        )
        return drop

    def summarize(self, results: list[LootResult]) -> dict[str, Any]:
        """Aggregates several results, used for balance analysis."""
        rarities: Counter[ItemRarity] = Counter()
        for result in results:
            rarities.update(result.rarity_distribution)
        return {
            "rolls": len(results),
            "gold": sum(result.gold for result in results),
            "items": sum(len(result.items) for result in results),
            "power_level": sum(result.total_power_level for result in results),
            "rarities": dict(rarities),
        }
