"""
Combat entity module for the rules engine.

Defines the participants of a fight (the player and each enemy) and the
outcome of a single damage calculation.
"""

from typing import Optional

from core.constants import DamageType
from enemies.enemy_definition import EnemyAbility
from pydantic import BaseModel, Field
from stats.combat_stats import CombatStats


class CombatEntity(BaseModel):
    """
    One side of a damage exchange.

    Entity ids are unique within an encounter; enemies use
    `<definition_id>_<slot index>`.
    """

    id: str = Field(description="Identifier, unique within the encounter.")
    name: str = Field(description="Display name.")
    stats: CombatStats = Field(description="Current combat stats.")
    is_blocking: bool = Field(
        default=False,
        description="True for the round in which the entity chose to block.",
    )
    intent: Optional[str] = Field(
        default=None,
        description="What the entity telegraphs for its next action.",
    )
    abilities: list[EnemyAbility] = Field(
        default_factory=list,
        description="Special moves the entity may telegraph.",
    )
    definition_id: Optional[str] = Field(
        default=None,
        description="The enemy definition the entity was built from.",
    )
    tier: Optional[int] = Field(default=None, description="The enemy's tier.")

    @property
    def is_alive(self) -> bool:
        return self.stats.hp > 0

    def __str__(self) -> str:
        return f"{self.name} ({self.stats.hp}/{self.stats.max_hp} HP)"


class DamageResult(BaseModel):
    """
    The outcome of one attack.

    `actual_damage` is the post-mitigation amount, at least 1 unless the hit
    was dodged or blocked outright. Applying the result splits it between the
    energy shield and hit points.
    """

    damage: float = Field(description="Raw damage, after a crit, before mitigation.")
    damage_type: DamageType = Field(description="The type of the damage.")
    was_crit: bool = Field(default=False)
    was_dodged: bool = Field(default=False)
    was_blocked: bool = Field(default=False)
    actual_damage: int = Field(default=0, description="Damage after mitigation.", ge=0)
    hit_shield: bool = Field(
        default=False,
        description="Whether the defender had energy shield when the hit landed.",
    )
    shield_absorbed: int = Field(
        default=0, description="Damage the energy shield absorbed.", ge=0
    )
    hp_damage: int = Field(default=0, description="Damage dealt to hit points.", ge=0)

    @property
    def was_avoided(self) -> bool:
        return self.was_dodged or self.was_blocked

    def describe(self) -> str:
        """Short summary used in the combat log."""
        if self.was_dodged:
            return "dodged"
        if self.was_blocked:
            return "blocked"
        text = f"{self.actual_damage} {self.damage_type.value} damage"
        if self.was_crit:
            text += " (CRIT!)"
        return text
