"""
Stat source module for the rules engine.

A stat source is one named contributor to the player's totals: the base
character, an equipped item, a buff. This module defines the source model,
the per-stat breakdown entries and the factories for the standard sources.
"""

import math
from typing import Any, Optional

from core.constants import (
    BASE_SOURCE_ID,
    BASE_SOURCE_PRIORITY,
    BUFF_SOURCE_PRIORITY,
    DEFAULT_BASE_STATS,
    EQUIPMENT_SOURCE_PRIORITY,
    StatKey,
    StatSourceType,
)
from pydantic import BaseModel, Field


class StatSource(BaseModel):
    """
    A named, prioritized set of stat contributions.

    Additive sources add their values to the running totals. Multiplicative
    sources express their values as percentages and scale the totals by
    `1 + value / 100`. Lower priorities are applied first.
    """

    source_id: str = Field(description="Unique identifier of the source.")
    source_type: StatSourceType = Field(description="What kind of contributor this is.")
    source_name: str = Field(
        default="",
        description="Human readable name, shown in stat breakdowns.",
    )
    stats: dict[StatKey, float] = Field(
        default_factory=dict,
        description="The partial stat map this source contributes.",
    )
    priority: int = Field(default=0, description="Application order, lower first.")
    is_multiplicative: bool = Field(
        default=False,
        description="Whether the values are percentage multipliers.",
    )
    duration: Optional[float] = Field(
        default=None,
        description="Remaining lifetime in seconds, None for permanent sources.",
    )

    def model_post_init(self, _: Any) -> None:
        if not self.source_id:
            raise ValueError("Stat source id must not be empty.")
        if self.duration is not None and self.duration < 0:
            raise ValueError("Stat source duration must not be negative.")

    @property
    def display_name(self) -> str:
        return self.source_name or self.source_id

    @property
    def is_temporary(self) -> bool:
        return self.duration is not None


class StatContribution(BaseModel):
    """One source's share of a single stat."""

    source_id: str = Field(description="The contributing source id.")
    source: str = Field(description="The contributing source's display name.")
    value: float = Field(description="The value the source contributes.")
    is_multiplicative: bool = Field(
        default=False, description="True when the value is a percentage multiplier."
    )


def equipment_source_id(item_id: str) -> str:
    """Returns the source id used for an equipped item."""
    return f"equipment_{item_id}"


def create_base_stat_source(level: int = 1) -> StatSource:
    """
    Creates the base character source for a given player level.

    Each level past the first adds 5 max hp, 2 max mp and half a point of
    attack, rounded down.

    Args:
        level (int): The player level.

    Returns:
        StatSource: The base source.

    """
    levels = max(0, level - 1)
    stats = dict(DEFAULT_BASE_STATS)
    stats[StatKey.MAX_HP] += levels * 5
    stats[StatKey.MAX_MP] += levels * 2
    stats[StatKey.ATTACK] += math.floor(levels * 0.5)
    return StatSource(
        source_id=BASE_SOURCE_ID,
        source_type=StatSourceType.BASE,
        source_name="Base Character Stats",
        stats=stats,
        priority=BASE_SOURCE_PRIORITY,
    )


def create_equipment_stat_source(
    item_id: str, item_name: str, stats: dict[StatKey, float]
) -> StatSource:
    """Creates the additive source for an equipped item."""
    return StatSource(
        source_id=equipment_source_id(item_id),
        source_type=StatSourceType.EQUIPMENT,
        source_name=item_name,
        stats=dict(stats),
        priority=EQUIPMENT_SOURCE_PRIORITY,
    )


def create_buff_stat_source(
    buff_id: str,
    buff_name: str,
    stats: dict[StatKey, float],
    duration: Optional[float] = None,
    is_multiplicative: bool = False,
) -> StatSource:
    """
    Creates a buff source.

    Args:
        buff_id (str): The buff identifier, the source id is `buff_<buff_id>`.
        buff_name (str): The name shown in breakdowns.
        stats (dict[StatKey, float]): The stats granted by the buff.
        duration (Optional[float]): Lifetime in seconds, None for permanent.
        is_multiplicative (bool): Whether the stats are percentage multipliers.

    Returns:
        StatSource: The buff source.

    """
    return StatSource(
        source_id=f"buff_{buff_id}",
        source_type=StatSourceType.BUFF,
        source_name=buff_name,
        stats=dict(stats),
        priority=BUFF_SOURCE_PRIORITY,
        duration=duration,
        is_multiplicative=is_multiplicative,
    )
