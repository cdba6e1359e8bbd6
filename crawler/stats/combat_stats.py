"""
Combat stats module for the rules engine.

Defines the read-only aggregated stat snapshot, the per-entity combat stats
used by the damage formula, and the player's current vitals.
"""

from typing import Any, Iterator, Mapping

from core.constants import DamageType, StatKey
from pydantic import BaseModel, Field


class StatSnapshot(Mapping[StatKey, float]):
    """
    An immutable, complete map from every StatKey to its aggregated value.

    Values can be read by key (`snapshot[StatKey.ATTACK]`, `snapshot["attack"]`)
    or as attributes (`snapshot.attack`).
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[StatKey, float] | None = None) -> None:
        complete = {key: 0.0 for key in StatKey}
        for key, value in (values or {}).items():
            complete[StatKey(key)] = float(value)
        object.__setattr__(self, "_values", complete)

    def __getitem__(self, key: StatKey | str) -> float:
        try:
            return self._values[StatKey(key)]
        except ValueError:
            raise KeyError(key) from None

    def __getattr__(self, name: str) -> float:
        try:
            return self._values[StatKey(name)]
        except ValueError:
            raise AttributeError(
                f"{type(self).__name__} has no stat '{name}'"
            ) from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("StatSnapshot is read-only.")

    def __iter__(self) -> Iterator[StatKey]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def as_dict(self) -> dict[StatKey, float]:
        """Returns a mutable copy of the values."""
        return dict(self._values)

    def __repr__(self) -> str:
        non_zero = {k.value: v for k, v in self._values.items() if v}
        return f"StatSnapshot({non_zero})"


class CombatStats(BaseModel):
    """
    The stats an entity fights with.

    Current values never go below zero nor above their maximum; the engine
    mutates hp, mp and es in place while a fight is running.
    """

    hp: int = Field(description="Current hit points.", ge=0)
    max_hp: int = Field(description="Maximum hit points.", ge=1)
    mp: int = Field(default=0, description="Current mana points.", ge=0)
    max_mp: int = Field(default=0, description="Maximum mana points.", ge=0)
    es: int = Field(default=0, description="Current energy shield.", ge=0)
    max_es: int = Field(default=0, description="Maximum energy shield.", ge=0)
    armor: float = Field(default=0, description="Percentage of physical damage removed.")
    fire_res: float = Field(default=0, description="Fire resistance percentage.")
    lightning_res: float = Field(default=0, description="Lightning resistance percentage.")
    ice_res: float = Field(default=0, description="Ice resistance percentage.")
    dark_res: float = Field(default=0, description="Dark resistance percentage.")
    dodge: float = Field(default=0, description="Chance, in percent, to avoid a hit.")
    block: float = Field(
        default=0, description="Chance, in percent, to block physical damage."
    )
    crit_chance: float = Field(default=0, description="Chance, in percent, to crit.")
    crit_multiplier: float = Field(
        default=1.5, description="Damage multiplier applied on a critical hit."
    )
    damage: float = Field(description="Raw damage dealt by a basic attack.", ge=0)
    damage_type: DamageType = Field(
        default=DamageType.PHYSICAL, description="The type of damage dealt."
    )

    def model_post_init(self, _: Any) -> None:
        if self.hp > self.max_hp:
            raise ValueError(f"hp ({self.hp}) cannot exceed max_hp ({self.max_hp}).")
        if self.mp > self.max_mp:
            raise ValueError(f"mp ({self.mp}) cannot exceed max_mp ({self.max_mp}).")
        if self.es > self.max_es:
            raise ValueError(f"es ({self.es}) cannot exceed max_es ({self.max_es}).")

    @property
    def is_alive(self) -> bool:
        return self.hp > 0

    def resistance_for(self, damage_type: DamageType) -> float:
        """
        Returns the mitigation percentage that applies to a damage type.

        Args:
            damage_type (DamageType): The incoming damage type.

        Returns:
            float: The armor for physical damage, the matching resistance otherwise.

        """
        return {
            DamageType.PHYSICAL: self.armor,
            DamageType.FIRE: self.fire_res,
            DamageType.LIGHTNING: self.lightning_res,
            DamageType.ICE: self.ice_res,
            DamageType.DARK: self.dark_res,
        }[damage_type]

    def restored(self) -> "CombatStats":
        """Returns a copy with hp, mp and es set to their maximums."""
        return self.model_copy(
            update={"hp": self.max_hp, "mp": self.max_mp, "es": self.max_es}
        )


class PlayerVitals(BaseModel):
    """The player's current and maximum pools."""

    hp: int = Field(description="Current hit points.", ge=0)
    max_hp: int = Field(description="Maximum hit points.", ge=0)
    mp: int = Field(description="Current mana points.", ge=0)
    max_mp: int = Field(description="Maximum mana points.", ge=0)
    es: int = Field(description="Current energy shield.", ge=0)
    max_es: int = Field(description="Maximum energy shield.", ge=0)
