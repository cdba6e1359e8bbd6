"""
Equipment module for the rules engine.

Defines the base item definitions loaded from data files and the generated
equipment instances, whose final stats combine the base stats with every
rolled affix.
"""

from typing import Any, Optional

from core.constants import (
    MAX_PREFIXES,
    MAX_SUFFIXES,
    DamageType,
    EquipmentSlot,
    ItemCategory,
    ItemRarity,
    StatKey,
)
from items.affix import AffixInstance
from pydantic import BaseModel, Field


def merge_stats(*stat_maps: dict[StatKey, float]) -> dict[StatKey, float]:
    """Sums several partial stat maps key by key."""
    merged: dict[StatKey, float] = {}
    for stat_map in stat_maps:
        for key, value in stat_map.items():
            merged[key] = merged.get(key, 0) + value
    return merged


class BaseItemDefinition(BaseModel):
    """
    A base item that loot can be built from, such as an iron sword.

    The required level places the item in the tier level bands; the optional
    dungeon types let themed dungeons narrow their drop pool.
    """

    id: str = Field(description="Unique identifier of the base item.")
    name: str = Field(description="Display name of the base item.")
    description: str = Field(default="", description="Flavor text.")
    category: ItemCategory = Field(description="Weapons or armor.")
    slot_type: EquipmentSlot = Field(description="The slot the item is worn in.")
    required_level: int = Field(
        default=1,
        description="Player level required to use the item.",
        ge=1,
    )
    stats: dict[StatKey, float] = Field(
        default_factory=dict,
        description="Base stats before quality variance.",
    )
    damage_type: Optional[DamageType] = Field(
        default=None,
        description="The damage type of a weapon.",
    )
    implicit_affix: Optional[str] = Field(
        default=None,
        description="Id of an affix every instance of this item carries.",
    )
    dungeon_types: list[str] = Field(
        default_factory=list,
        description="Themed dungeons that favor this item.",
    )

    def model_post_init(self, _: Any) -> None:
        if not self.id:
            raise ValueError("Item id must not be empty.")


class EquipmentItem(BaseModel):
    """
    A generated piece of equipment.

    `stats` is derived on every read from the base stats, the prefixes, the
    suffixes and the implicit affix, so it can never go stale.
    """

    id: str = Field(description="Unique identifier of this instance.")
    definition_id: str = Field(description="Id of the base item definition.")
    name: str = Field(description="Display name of the item.")
    description: str = Field(default="", description="Flavor text.")
    category: ItemCategory = Field(description="Weapons or armor.")
    slot_type: EquipmentSlot = Field(description="The slot the item is worn in.")
    rarity: ItemRarity = Field(description="The rolled rarity.")
    item_level: int = Field(description="The rolled item level.", ge=1)
    required_level: int = Field(default=1, description="Level required to use it.")
    base_stats: dict[StatKey, float] = Field(
        default_factory=dict,
        description="Base stats after quality variance.",
    )
    prefixes: list[AffixInstance] = Field(default_factory=list)
    suffixes: list[AffixInstance] = Field(default_factory=list)
    implicit: Optional[AffixInstance] = Field(default=None)
    damage_type: Optional[DamageType] = Field(default=None)

    def model_post_init(self, _: Any) -> None:
        if len(self.prefixes) > MAX_PREFIXES:
            raise ValueError(f"An item can carry at most {MAX_PREFIXES} prefixes.")
        if len(self.suffixes) > MAX_SUFFIXES:
            raise ValueError(f"An item can carry at most {MAX_SUFFIXES} suffixes.")

    @property
    def affixes(self) -> list[AffixInstance]:
        """Every affix on the item, implicit last."""
        affixes = [*self.prefixes, *self.suffixes]
        if self.implicit is not None:
            affixes.append(self.implicit)
        return affixes

    @property
    def stats(self) -> dict[StatKey, float]:
        """The final stats: base stats plus every affix."""
        return merge_stats(self.base_stats, *(affix.stats for affix in self.affixes))

    @property
    def colored_name(self) -> str:
        return self.rarity.colorize(self.name)

    def has_affix(self, affix_id: str) -> bool:
        return any(affix.id == affix_id for affix in self.affixes)

    def __str__(self) -> str:
        return f"{self.name} ({self.rarity.display_name}, ilvl {self.item_level})"
