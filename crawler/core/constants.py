"""
Constants and enumerations for the rules engine.

Defines the closed set of stat keys, damage types, rarities, turn phases and
the static balance tables (gold ranges, rarity weights, affix counts, enemy
counts) shared by the combat, loot and stat systems.
"""

from enum import Enum
from typing import Any


class NiceEnum(Enum):
    """An enumeration that provides a nicer string representation."""

    def __str__(self) -> str:
        return self.name

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ").lower().capitalize()


class DamageType(NiceEnum):
    """Defines the types of damage an attack can deal."""

    PHYSICAL = "physical"
    FIRE = "fire"
    LIGHTNING = "lightning"
    ICE = "ice"
    DARK = "dark"

    @property
    def emoji(self) -> str:
        """Returns the emoji associated with this damage type."""
        return {
            DamageType.PHYSICAL: "🗡️",
            DamageType.FIRE: "🔥",
            DamageType.LIGHTNING: "⚡",
            DamageType.ICE: "❄️",
            DamageType.DARK: "🖤",
        }.get(self, "❔")

    @property
    def color(self) -> str:
        """Returns the color string associated with this damage type."""
        return {
            DamageType.PHYSICAL: "bold white",
            DamageType.FIRE: "bold red",
            DamageType.LIGHTNING: "bold blue",
            DamageType.ICE: "bold cyan",
            DamageType.DARK: "bold magenta",
        }.get(self, "dim white")

    @property
    def colored_name(self) -> str:
        return self.colorize(self.display_name)

    def colorize(self, message: str) -> str:
        """Applies damage type color formatting to a message."""
        return f"[{self.color}]{message}[/]"


class StatKey(NiceEnum):
    """The closed set of stats a source, an item or an affix can carry."""

    # Vitals.
    MAX_HP = "max_hp"
    MAX_MP = "max_mp"
    MAX_ES = "max_es"
    HP_REGEN = "hp_regen"
    MP_REGEN = "mp_regen"
    ES_REGEN = "es_regen"
    # Offense.
    ATTACK = "attack"
    SPELL_POWER = "spell_power"
    ATTACK_SPEED = "attack_speed"
    CAST_SPEED = "cast_speed"
    CRIT_CHANCE = "crit_chance"
    CRIT_MULTIPLIER = "crit_multiplier"
    # Elemental damage.
    FIRE_DAMAGE = "fire_damage"
    LIGHTNING_DAMAGE = "lightning_damage"
    ICE_DAMAGE = "ice_damage"
    DARK_DAMAGE = "dark_damage"
    CHAOS_DAMAGE = "chaos_damage"
    # Defense.
    ARMOR = "armor"
    EVASION = "evasion"
    DODGE = "dodge"
    BLOCK = "block"
    BLOCK_REDUCTION = "block_reduction"
    # Resistances.
    FIRE_RES = "fire_res"
    LIGHTNING_RES = "lightning_res"
    ICE_RES = "ice_res"
    DARK_RES = "dark_res"
    CHAOS_RES = "chaos_res"
    # Utility.
    MOVEMENT_SPEED = "movement_speed"
    ITEM_RARITY = "item_rarity"
    ITEM_QUANTITY = "item_quantity"
    EXPERIENCE_GAIN = "experience_gain"

    @property
    def is_resistance(self) -> bool:
        return self.value.endswith("_res")

    @property
    def is_percentage(self) -> bool:
        """True for the chance stats capped at 95%."""
        return self in (StatKey.CRIT_CHANCE, StatKey.DODGE, StatKey.BLOCK)

    @property
    def is_rate(self) -> bool:
        """True for the speed stats expressed as a percentage of normal."""
        return self in (
            StatKey.ATTACK_SPEED,
            StatKey.CAST_SPEED,
            StatKey.MOVEMENT_SPEED,
        )


class ItemRarity(NiceEnum):
    """Defines item quality levels, from common to legendary."""

    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @property
    def color(self) -> str:
        """Returns the color string associated with this rarity."""
        return {
            ItemRarity.COMMON: "white",
            ItemRarity.UNCOMMON: "bold green",
            ItemRarity.RARE: "bold blue",
            ItemRarity.EPIC: "bold magenta",
            ItemRarity.LEGENDARY: "bold yellow",
        }.get(self, "dim white")

    @property
    def colored_name(self) -> str:
        return self.colorize(self.display_name)

    def colorize(self, message: str) -> str:
        """Applies rarity color formatting to a message."""
        return f"[{self.color}]{message}[/]"


class ItemCategory(NiceEnum):
    """Defines the categories base items are drawn from."""

    WEAPONS = "weapons"
    ARMOR = "armor"


class EquipmentSlot(NiceEnum):
    """Defines the slots where equipment can be worn."""

    MELEE = "melee"
    SHIELD = "shield"
    HEAD = "head"
    CHEST = "chest"
    BOOTS = "boots"
    GLOVES = "gloves"
    PANTS = "pants"
    SHOULDER = "shoulder"


class AffixKind(NiceEnum):
    """Defines where an affix sits on an item."""

    PREFIX = "prefix"
    SUFFIX = "suffix"
    IMPLICIT = "implicit"


class StatSourceType(NiceEnum):
    """Defines the kind of contributor a stat source represents."""

    BASE = "base"
    EQUIPMENT = "equipment"
    BUFF = "buff"
    PASSIVE = "passive"
    TEMPORARY = "temporary"


class TurnPhase(NiceEnum):
    """Defines the stages of the combat state machine."""

    PLAYER = "player"
    ENEMY = "enemy"
    VICTORY = "victory"
    DEFEAT = "defeat"

    @property
    def emoji(self) -> str:
        """Returns the emoji associated with this phase."""
        return {
            TurnPhase.PLAYER: "🗡️",
            TurnPhase.ENEMY: "⚔️",
            TurnPhase.VICTORY: "🎉",
            TurnPhase.DEFEAT: "💀",
        }.get(self, "❔")

    @property
    def is_terminal(self) -> bool:
        return self in (TurnPhase.VICTORY, TurnPhase.DEFEAT)


class Difficulty(NiceEnum):
    """Defines how far a balanced encounter shifts from the player's tier."""

    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"


class ProgressResult(NiceEnum):
    """Defines the outcome of moving to the next fight of a dungeon run."""

    NEXT_FIGHT = "next_fight"
    DUNGEON_COMPLETE = "dungeon_complete"
    DEFEATED = "defeated"


# ==============================================================================
# STAT RULES
# ==============================================================================

# Resistances clamp to [-100, 85], chances to [0, 95] and rates to [10, 1000].
RESISTANCE_CAP = (-100.0, 85.0)
PERCENTAGE_CAP = (0.0, 95.0)
RATE_CAP = (10.0, 1000.0)

# Stats that may never drop below a floor after aggregation.
MINIMUM_STAT_VALUES: dict[StatKey, float] = {
    StatKey.MAX_HP: 1.0,
    StatKey.MAX_MP: 1.0,
    StatKey.MAX_ES: 0.0,
    StatKey.ATTACK: 0.0,
    StatKey.SPELL_POWER: 0.0,
    StatKey.CRIT_MULTIPLIER: 0.0,
    StatKey.FIRE_DAMAGE: 0.0,
    StatKey.LIGHTNING_DAMAGE: 0.0,
    StatKey.ICE_DAMAGE: 0.0,
    StatKey.DARK_DAMAGE: 0.0,
    StatKey.CHAOS_DAMAGE: 0.0,
}

# The stats considered when picking the dominant damage type, in tie order.
ELEMENTAL_DAMAGE_STATS: list[tuple[DamageType, StatKey]] = [
    (DamageType.FIRE, StatKey.FIRE_DAMAGE),
    (DamageType.LIGHTNING, StatKey.LIGHTNING_DAMAGE),
    (DamageType.ICE, StatKey.ICE_DAMAGE),
    (DamageType.DARK, StatKey.DARK_DAMAGE),
]

DEFAULT_BASE_STATS: dict[StatKey, float] = {
    StatKey.MAX_HP: 100,
    StatKey.MAX_MP: 50,
    StatKey.MAX_ES: 0,
    StatKey.HP_REGEN: 1,
    StatKey.MP_REGEN: 1,
    StatKey.ES_REGEN: 0,
    StatKey.ATTACK: 10,
    StatKey.SPELL_POWER: 10,
    StatKey.ATTACK_SPEED: 100,
    StatKey.CAST_SPEED: 100,
    StatKey.CRIT_CHANCE: 5,
    StatKey.CRIT_MULTIPLIER: 1.5,
    StatKey.DODGE: 5,
    StatKey.MOVEMENT_SPEED: 100,
    StatKey.EXPERIENCE_GAIN: 100,
}

BASE_SOURCE_ID = "base"
BASE_SOURCE_PRIORITY = 0
EQUIPMENT_SOURCE_PRIORITY = 100
BUFF_SOURCE_PRIORITY = 200

# ==============================================================================
# LOOT TABLES
# ==============================================================================

DEFAULT_TIER = 1

GOLD_RANGES: dict[int, tuple[int, int]] = {
    1: (2, 10),
    2: (10, 30),
    3: (50, 120),
}

RARITY_WEIGHTS: dict[int, dict[ItemRarity, float]] = {
    1: {
        ItemRarity.COMMON: 60,
        ItemRarity.UNCOMMON: 25,
        ItemRarity.RARE: 10,
        ItemRarity.EPIC: 4,
        ItemRarity.LEGENDARY: 1,
    },
    2: {
        ItemRarity.COMMON: 45,
        ItemRarity.UNCOMMON: 30,
        ItemRarity.RARE: 15,
        ItemRarity.EPIC: 8,
        ItemRarity.LEGENDARY: 2,
    },
    3: {
        ItemRarity.COMMON: 30,
        ItemRarity.UNCOMMON: 25,
        ItemRarity.RARE: 25,
        ItemRarity.EPIC: 15,
        ItemRarity.LEGENDARY: 5,
    },
}

# Share of the removed common weight each rarity receives from a bonus.
BONUS_RARITY_SPLIT: dict[ItemRarity, float] = {
    ItemRarity.RARE: 0.5,
    ItemRarity.EPIC: 0.3,
    ItemRarity.LEGENDARY: 0.2,
}

QUALITY_VARIANCE: dict[ItemRarity, tuple[float, float]] = {
    ItemRarity.COMMON: (0.8, 1.0),
    ItemRarity.UNCOMMON: (0.85, 1.15),
    ItemRarity.RARE: (0.9, 1.25),
    ItemRarity.EPIC: (1.0, 1.4),
    ItemRarity.LEGENDARY: (1.2, 1.6),
}

# (min prefixes, max prefixes), (min suffixes, max suffixes).
AFFIX_COUNTS: dict[ItemRarity, tuple[tuple[int, int], tuple[int, int]]] = {
    ItemRarity.COMMON: ((0, 0), (0, 0)),
    ItemRarity.UNCOMMON: ((0, 1), (0, 1)),
    ItemRarity.RARE: ((1, 2), (1, 2)),
    ItemRarity.EPIC: ((2, 3), (2, 2)),
    ItemRarity.LEGENDARY: ((3, 3), (2, 3)),
}

MAX_PREFIXES = 3
MAX_SUFFIXES = 3

ITEM_CATEGORY_WEIGHTS: dict[ItemCategory, float] = {
    ItemCategory.WEAPONS: 40,
    ItemCategory.ARMOR: 60,
}

# Required-level band a base item must fall in to drop at a tier.
TIER_LEVEL_RANGES: dict[int, tuple[int, int]] = {
    1: (1, 15),
    2: (10, 30),
    3: (25, 50),
}

TIER_BASE_ITEM_LEVELS: dict[int, int] = {1: 5, 2: 20, 3: 35}

BASE_DROP_CHANCE = 0.50
DROP_CHANCE_PER_TIER = 0.15
BONUS_ITEM_MIN_TIER = 2
BONUS_ITEM_CHANCE_PER_TIER = 0.1

POWER_LEVEL_WEIGHTS: dict[StatKey, float] = {
    StatKey.ATTACK: 2.0,
    StatKey.MAX_HP: 0.5,
    StatKey.ARMOR: 1.5,
    StatKey.CRIT_CHANCE: 1.2,
    StatKey.CRIT_MULTIPLIER: 10.0,
    StatKey.DODGE: 1.5,
    StatKey.FIRE_RES: 0.8,
    StatKey.LIGHTNING_RES: 0.8,
    StatKey.ICE_RES: 0.8,
    StatKey.DARK_RES: 0.8,
}

RARITY_POWER_MULTIPLIERS: dict[ItemRarity, float] = {
    ItemRarity.COMMON: 1.0,
    ItemRarity.UNCOMMON: 1.2,
    ItemRarity.RARE: 1.5,
    ItemRarity.EPIC: 2.0,
    ItemRarity.LEGENDARY: 3.0,
}

# ==============================================================================
# ENCOUNTER TABLES
# ==============================================================================

# Weighted enemy counts for a dungeon fight at each tier.
ENEMY_COUNT_WEIGHTS: dict[int, dict[int, float]] = {
    1: {1: 85, 2: 15},
    2: {1: 40, 2: 50, 3: 10},
    3: {2: 20, 3: 60, 4: 20},
}

DEFAULT_ENCOUNTER_SIZE = (1, 3)
ENEMY_STAT_VARIANCE = (0.9, 1.1)
DEFAULT_INTENTS = ["attack", "block", "spell"]

# Balanced encounters: weight given to the base tier, its neighbours, others.
BALANCED_TIER_WEIGHTS = (50, 25, 5)
PLAYER_LEVELS_PER_TIER = 5

# ==============================================================================
# COMBAT
# ==============================================================================

PLAYER_ENTITY_ID = "player"
COMBAT_LOG_LIMIT = 10
DEFAULT_TOTAL_FIGHTS = 5
BLOCK_ARMOR_MULTIPLIER = 2.0
BLOCK_DAMAGE_MULTIPLIER = 0.75


def adapt_keys_to_enum(enum_class: Any, data: dict[Any, Any]) -> dict[Any, Any]:
    """
    Converts dictionary keys to the specified enumeration type.

    Args:
        enum_class (Any):
            The enumeration class to convert keys to.
        data (dict[Any, Any]):
            The input dictionary with keys to convert.

    Returns:
        dict[Any, Any]:
            A new dictionary with keys converted to the specified enum type.
    """
    return {
        enum_class(key) if isinstance(key, str) else key: value
        for key, value in data.items()
    }
