"""
Affix module for the rules engine.

Defines the affix tables loaded from data files (an affix and its tiers) and
the rolled affix instances attached to generated equipment.
"""

from typing import Any, Optional

from core.constants import AffixKind, EquipmentSlot, StatKey
from pydantic import BaseModel, Field


class AffixTier(BaseModel):
    """One tier of an affix: the stat it grants and when it can roll."""

    tier: int = Field(description="Tier number, 1 is the weakest.", ge=1)
    stat: StatKey = Field(description="The stat granted by this tier.")
    value: float | tuple[float, float] = Field(
        description="A fixed value or a [min, max] range rolled uniformly.",
    )
    required_level: int = Field(
        default=1,
        description="Minimum player level for this tier to roll.",
        ge=1,
    )
    weight: float = Field(
        default=100,
        description="Spawn weight among the tiers available at a level.",
        gt=0,
    )

    def model_post_init(self, _: Any) -> None:
        if isinstance(self.value, tuple) and self.value[0] > self.value[1]:
            raise ValueError(
                f"Affix tier {self.tier} has an inverted range {list(self.value)}."
            )

    @property
    def min_value(self) -> float:
        return self.value[0] if isinstance(self.value, tuple) else self.value

    @property
    def max_value(self) -> float:
        return self.value[1] if isinstance(self.value, tuple) else self.value


class AffixDefinition(BaseModel):
    """
    A prefix, suffix or implicit affix that can roll on equipment.

    Each affix carries one or more tiers; a roll first picks an affix, then
    a tier among those the player's level unlocks, weighted by spawn weight.
    """

    id: str = Field(description="Unique identifier of the affix.")
    name: str = Field(description="Display name, e.g. 'Heavy' or 'of the Bear'.")
    kind: AffixKind = Field(description="Where the affix sits on an item.")
    valid_slots: Optional[list[EquipmentSlot]] = Field(
        default=None,
        description="Slots the affix may roll on, None for every slot.",
    )
    tiers: list[AffixTier] = Field(description="The tiers of this affix.")

    def model_post_init(self, _: Any) -> None:
        if not self.id:
            raise ValueError("Affix id must not be empty.")
        if not self.tiers:
            raise ValueError(f"Affix '{self.id}' must define at least one tier.")

    def allows_slot(self, slot: EquipmentSlot) -> bool:
        return self.valid_slots is None or slot in self.valid_slots

    def tiers_for_level(self, player_level: int) -> list[AffixTier]:
        """Returns the tiers the given player level unlocks."""
        return [tier for tier in self.tiers if tier.required_level <= player_level]


class AffixInstance(BaseModel):
    """An affix rolled onto a specific item."""

    id: str = Field(description="The id of the affix definition.")
    name: str = Field(description="Display name of the affix.")
    kind: AffixKind = Field(description="Where the affix sits on the item.")
    description: str = Field(default="", description="Short label, e.g. 'Heavy T2'.")
    stats: dict[StatKey, float] = Field(
        default_factory=dict,
        description="The rolled stat values.",
    )
    tier: int = Field(default=1, description="The rolled tier.", ge=1)
    weight: float = Field(default=0, description="Spawn weight of the rolled tier.")

    def __str__(self) -> str:
        values = ", ".join(f"{k.value} {v:+g}" for k, v in self.stats.items())
        return f"{self.name} T{self.tier} ({values})"
