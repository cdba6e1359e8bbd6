"""
Enemy definition module for the rules engine.

Defines the enemy tables loaded from data files: abilities, enemies and the
tiers grouping them.
"""

import re
from typing import Any

from pydantic import BaseModel, Field
from stats.combat_stats import CombatStats


class EnemyAbility(BaseModel):
    """A special move an enemy may telegraph as its intent."""

    id: str = Field(description="Unique identifier of the ability.")
    name: str = Field(description="Display name of the ability.")
    chance: float = Field(
        description="Percentage chance of the ability being the intent.",
        ge=0,
        le=100,
    )
    description: str = Field(default="", description="What the ability does.")
    effects: dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form effect parameters, shown to the player.",
    )

    @property
    def intent(self) -> str:
        """The intent label of the ability, e.g. 'Fire Breath' -> 'fire_breath'."""
        return re.sub(r"\s+", "_", self.name.strip().lower())


class EnemyDefinition(BaseModel):
    """An enemy as described in the data tables."""

    id: str = Field(description="Unique identifier of the enemy.")
    name: str = Field(description="Display name of the enemy.")
    tier: int = Field(description="The tier the enemy belongs to.", ge=1)
    spawn_chance: float = Field(
        description="Relative weight of the enemy within its tier.",
        gt=0,
    )
    icon_name: str = Field(default="", description="Icon shown by the UI.")
    stats: CombatStats = Field(description="The enemy's unvaried stats.")
    abilities: list[EnemyAbility] = Field(
        default_factory=list,
        description="Special moves the enemy may telegraph.",
    )

    def model_post_init(self, _: Any) -> None:
        if not self.id:
            raise ValueError("Enemy id must not be empty.")
        total = sum(ability.chance for ability in self.abilities)
        if total > 100:
            raise ValueError(
                f"Enemy '{self.id}' ability chances add up to {total}%, over 100%."
            )


class EnemyTier(BaseModel):
    """A group of enemies sharing a difficulty tier."""

    tier: int = Field(description="The tier number.", ge=1)
    spawn_weight: float = Field(
        description="Default weight of the tier when rolling encounters.",
        ge=0,
    )
    enemies: list[EnemyDefinition] = Field(
        description="The enemies of the tier, in table order.",
    )

    def model_post_init(self, _: Any) -> None:
        if not self.enemies:
            raise ValueError(f"Tier {self.tier} must list at least one enemy.")
        for enemy in self.enemies:
            if enemy.tier != self.tier:
                raise ValueError(
                    f"Enemy '{enemy.id}' declares tier {enemy.tier} "
                    f"but is listed under tier {self.tier}."
                )
