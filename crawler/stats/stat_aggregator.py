"""
Stat aggregator module for the rules engine.

Computes the player's effective stats from an open set of named sources.
Totals are memoized: reading them twice without a mutation in between returns
the very same snapshot, and every register, update or unregister drops the
cached snapshot so the next read recomputes it.
"""

import math
from typing import TYPE_CHECKING, Callable, Optional, Protocol

from catchery import log_debug
from core.constants import (
    BASE_SOURCE_ID,
    ELEMENTAL_DAMAGE_STATS,
    MINIMUM_STAT_VALUES,
    PERCENTAGE_CAP,
    RATE_CAP,
    RESISTANCE_CAP,
    DamageType,
    StatKey,
    adapt_keys_to_enum,
)
from core.error_handling import ErrorHandler, ensure_int_in_range
from core.event_system import EventEmitter, EventType, StateChangeListener
from stats.combat_stats import CombatStats, PlayerVitals, StatSnapshot
from stats.stat_source import (
    StatContribution,
    StatSource,
    create_base_stat_source,
    create_equipment_stat_source,
    equipment_source_id,
)

if TYPE_CHECKING:
    from items.equipment import EquipmentItem


class CombatStatsProvider(Protocol):
    """Anything that can produce the player's combat stats."""

    def get_combat_stats(self) -> CombatStats: ...


def apply_stat_caps(totals: dict[StatKey, float]) -> None:
    """
    Clamps aggregated totals in place.

    Resistances stay in [-100, 85], chance stats in [0, 95], speed rates in
    [10, 1000]; max hp and max mp are at least 1 and the remaining damage and
    pool stats are never negative.

    Args:
        totals (dict[StatKey, float]): The totals to clamp.

    """
    for key in StatKey:
        value = totals.get(key, 0.0)
        if key.is_resistance:
            low, high = RESISTANCE_CAP
            value = min(high, max(low, value))
        elif key.is_percentage:
            low, high = PERCENTAGE_CAP
            value = min(high, max(low, value))
        elif key.is_rate:
            low, high = RATE_CAP
            value = min(high, max(low, value))
        if key in MINIMUM_STAT_VALUES:
            value = max(MINIMUM_STAT_VALUES[key], value)
        totals[key] = value


def get_dominant_damage_type(snapshot: StatSnapshot) -> DamageType:
    """
    Picks the damage type of the largest elemental damage stat.

    Ties keep the first type in fire, lightning, ice, dark order; when every
    elemental damage is zero the attack is physical.
    """
    best_type, best_value = DamageType.PHYSICAL, 0.0
    for damage_type, key in ELEMENTAL_DAMAGE_STATS:
        if snapshot[key] > best_value:
            best_type, best_value = damage_type, snapshot[key]
    return best_type


class StatAggregator:
    """
    Tracks the player's stat sources and current vitals.

    Attributes:
        level (int): The level the base source was built for.

    """

    def __init__(
        self,
        level: int = 1,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        self._sources: dict[str, StatSource] = {}
        self._cached_stats: Optional[StatSnapshot] = None
        self._events = EventEmitter(error_handler)
        self.level: int = ensure_int_in_range(level, "player level", 1)
        self._hp: int = 0
        self._mp: int = 0
        self._es: int = 0
        self._register(create_base_stat_source(self.level), notify=False)
        self._restore_vitals()
        # The first read after construction computes and announces the totals.
        self._invalidate_cache()

    # ============================================================================
    # LISTENERS
    # ============================================================================

    def on_state_change(self, handler: StateChangeListener) -> Callable[[], None]:
        """Registers a listener and returns the function that removes it."""
        return self._events.on_state_change(handler)

    # ============================================================================
    # SOURCE MANAGEMENT
    # ============================================================================

    def register_source(self, source: StatSource) -> None:
        """
        Adds a source, replacing any source that has the same id.

        Args:
            source (StatSource): The source to add.

        """
        self._register(source, notify=True)

    def _register(self, source: StatSource, notify: bool) -> None:
        replaced = source.source_id in self._sources
        if replaced:
            log_debug(
                f"Stat source {source.source_id} already registered, replacing it",
                {"source_id": source.source_id},
            )
        # Replacing keeps the original insertion slot.
        self._sources[source.source_id] = source
        self._invalidate_cache()
        if notify:
            self._events.emit(
                EventType.SOURCE_ADDED,
                source_id=source.source_id,
                replaced=replaced,
            )

    def unregister_source(self, source_id: str) -> bool:
        """
        Removes a source.

        Args:
            source_id (str): The id of the source to remove.

        Returns:
            bool: False if no source had that id.

        """
        if self._sources.pop(source_id, None) is None:
            return False
        self._invalidate_cache()
        self._events.emit(EventType.SOURCE_REMOVED, source_id=source_id)
        return True

    def update_source(
        self, source_id: str, partial_stats: dict[StatKey, float]
    ) -> bool:
        """
        Merges new values into an existing source's stat map.

        Args:
            source_id (str): The id of the source to update.
            partial_stats (dict[StatKey, float]): The values to overwrite or add.

        Returns:
            bool: False if no source had that id.

        """
        source = self._sources.get(source_id)
        if source is None:
            return False
        old_stats = dict(source.stats)
        source.stats = {**source.stats, **adapt_keys_to_enum(StatKey, partial_stats)}
        self._invalidate_cache()
        self._events.emit(
            EventType.SOURCE_UPDATED,
            source_id=source_id,
            old_stats=old_stats,
            new_stats=dict(source.stats),
        )
        return True

    def get_source(self, source_id: str) -> Optional[StatSource]:
        return self._sources.get(source_id)

    def get_all_sources(self) -> list[StatSource]:
        """Returns every registered source, in application order."""
        return sorted(self._sources.values(), key=lambda source: source.priority)

    def reset(self) -> None:
        """Removes every source except the base one."""
        for source_id in [sid for sid in self._sources if sid != BASE_SOURCE_ID]:
            self.unregister_source(source_id)
        self._invalidate_cache()

    # ============================================================================
    # CALCULATION
    # ============================================================================

    def _invalidate_cache(self) -> None:
        self._cached_stats = None

    def get_total_stats(self) -> StatSnapshot:
        """
        Returns the aggregated, capped stats.

        Returns:
            StatSnapshot: The same object until a source changes.

        """
        if self._cached_stats is None:
            self._cached_stats = self._calculate_total_stats()
            self._events.emit(EventType.STATS_RECALCULATED)
        return self._cached_stats

    def recalculate_stats(self) -> StatSnapshot:
        """Drops the cached snapshot and computes a fresh one."""
        self._invalidate_cache()
        return self.get_total_stats()

    def calculate_stat(self, stat: StatKey) -> float:
        return self.get_total_stats()[stat]

    def _calculate_total_stats(self) -> StatSnapshot:
        totals: dict[StatKey, float] = {key: 0.0 for key in StatKey}
        # sorted() is stable, equal priorities keep registration order.
        ordered = self.get_all_sources()
        for source in ordered:
            if source.is_multiplicative:
                continue
            for key, value in source.stats.items():
                totals[key] += value
        for source in ordered:
            if not source.is_multiplicative:
                continue
            for key, value in source.stats.items():
                totals[key] *= 1 + value / 100
        apply_stat_caps(totals)
        return StatSnapshot(totals)

    def get_stat_breakdown(self, stat: StatKey) -> list[StatContribution]:
        """
        Lists every source that contributes a non-zero value to a stat.

        Args:
            stat (StatKey): The stat to explain.

        Returns:
            list[StatContribution]: The contributions, in application order.

        """
        breakdown: list[StatContribution] = []
        for source in self.get_all_sources():
            value = source.stats.get(stat, 0)
            if value:
                breakdown.append(
                    StatContribution(
                        source_id=source.source_id,
                        source=source.display_name,
                        value=value,
                        is_multiplicative=source.is_multiplicative,
                    )
                )
        return breakdown

    # ============================================================================
    # COMBAT PROJECTION AND VITALS
    # ============================================================================

    def _max_pools(self) -> tuple[int, int, int]:
        totals = self.get_total_stats()
        return (
            math.floor(totals.max_hp),
            math.floor(totals.max_mp),
            math.floor(totals.max_es),
        )

    def get_combat_stats(self) -> CombatStats:
        """
        Projects the totals and the current vitals into combat stats.

        Returns:
            CombatStats: Damage is the attack total and the damage type is the
            dominant elemental type.

        """
        totals = self.get_total_stats()
        max_hp, max_mp, max_es = self._max_pools()
        return CombatStats(
            hp=min(self._hp, max_hp),
            max_hp=max_hp,
            mp=min(self._mp, max_mp),
            max_mp=max_mp,
            es=min(self._es, max_es),
            max_es=max_es,
            armor=totals.armor,
            fire_res=totals.fire_res,
            lightning_res=totals.lightning_res,
            ice_res=totals.ice_res,
            dark_res=totals.dark_res,
            dodge=totals.dodge,
            block=totals.block,
            crit_chance=totals.crit_chance,
            crit_multiplier=totals.crit_multiplier,
            damage=totals.attack,
            damage_type=get_dominant_damage_type(totals),
        )

    def get_vitals(self) -> PlayerVitals:
        max_hp, max_mp, max_es = self._max_pools()
        return PlayerVitals(
            hp=min(self._hp, max_hp),
            max_hp=max_hp,
            mp=min(self._mp, max_mp),
            max_mp=max_mp,
            es=min(self._es, max_es),
            max_es=max_es,
        )

    def update_vitals(
        self,
        hp: Optional[float] = None,
        mp: Optional[float] = None,
        es: Optional[float] = None,
    ) -> PlayerVitals:
        """
        Sets the current pools, clamped to [0, max].

        Args:
            hp (Optional[float]): New current hit points.
            mp (Optional[float]): New current mana points.
            es (Optional[float]): New current energy shield.

        Returns:
            PlayerVitals: The vitals after the update.

        """
        max_hp, max_mp, max_es = self._max_pools()
        if hp is not None:
            self._hp = int(min(max_hp, max(0, hp)))
        if mp is not None:
            self._mp = int(min(max_mp, max(0, mp)))
        if es is not None:
            self._es = int(min(max_es, max(0, es)))
        vitals = self.get_vitals()
        self._events.emit(EventType.VITALS_CHANGED, vitals=vitals.model_dump())
        return vitals

    def _restore_vitals(self) -> None:
        self._hp, self._mp, self._es = self._max_pools()

    def full_heal(self) -> PlayerVitals:
        """Restores every pool to its maximum."""
        self._restore_vitals()
        vitals = self.get_vitals()
        self._events.emit(EventType.VITALS_CHANGED, vitals=vitals.model_dump())
        return vitals

    # ============================================================================
    # EQUIPMENT, BUFFS AND LEVELS
    # ============================================================================

    def add_equipment_stats(
        self, item_id: str, item_name: str, stats: dict[StatKey, float]
    ) -> None:
        self.register_source(create_equipment_stat_source(item_id, item_name, stats))

    def remove_equipment_stats(self, item_id: str) -> bool:
        return self.unregister_source(equipment_source_id(item_id))

    def update_equipment_stats(
        self, item_id: str, stats: dict[StatKey, float]
    ) -> bool:
        return self.update_source(equipment_source_id(item_id), stats)

    def equip_item(self, item: "EquipmentItem") -> None:
        """Registers a generated item's final stats as an equipment source."""
        self.add_equipment_stats(item.id, item.name, item.stats)

    def unequip_item(self, item: "EquipmentItem") -> bool:
        return self.remove_equipment_stats(item.id)

    def advance_time(self, seconds: float) -> list[str]:
        """
        Ages every temporary source and removes the ones that ran out.

        Args:
            seconds (float): The elapsed time.

        Returns:
            list[str]: The ids of the expired sources.

        """
        expired: list[str] = []
        for source in list(self._sources.values()):
            if not source.is_temporary:
                continue
            source.duration = max(0.0, source.duration - seconds)
            if source.duration <= 0:
                expired.append(source.source_id)
        for source_id in expired:
            self.unregister_source(source_id)
        return expired

    def set_level(self, level: int) -> None:
        """
        Rebuilds the base source for a new player level.

        Args:
            level (int): The new level, corrected to at least 1.

        """
        self.level = ensure_int_in_range(level, "player level", 1)
        self.register_source(create_base_stat_source(self.level))
