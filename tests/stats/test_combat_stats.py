"""
Tests for stat snapshots and combat stats.
"""

import pytest
from core.constants import DamageType, StatKey
from pydantic import ValidationError
from stats.combat_stats import CombatStats, StatSnapshot
from stats.stat_source import StatSource, create_base_stat_source


def test_snapshot_is_complete_and_read_only():
    """Test that a snapshot has every stat and cannot be changed."""
    snapshot = StatSnapshot({StatKey.ATTACK: 12})

    assert len(snapshot) == len(StatKey)
    assert snapshot.attack == 12
    assert snapshot["armor"] == 0
    assert "attack" in snapshot
    assert "luck" not in snapshot
    with pytest.raises(KeyError):
        snapshot["luck"]
    with pytest.raises(AttributeError):
        snapshot.attack = 3


def test_snapshot_copy_is_independent():
    """Test that as_dict returns a copy."""
    snapshot = StatSnapshot({StatKey.ATTACK: 12})
    values = snapshot.as_dict()
    values[StatKey.ATTACK] = 99
    assert snapshot.attack == 12


def test_combat_stats_reject_current_over_max():
    """Test that current pools cannot exceed their maximum."""
    with pytest.raises(ValueError, match="hp"):
        CombatStats(hp=20, max_hp=10, damage=1)
    with pytest.raises(ValidationError):
        CombatStats(hp=-1, max_hp=10, damage=1)


def test_resistance_for_each_damage_type():
    """Test that physical uses armor and elements their resistance."""
    stats = CombatStats(hp=10, max_hp=10, damage=1, armor=20, fire_res=30, dark_res=-10)
    assert stats.resistance_for(DamageType.PHYSICAL) == 20
    assert stats.resistance_for(DamageType.FIRE) == 30
    assert stats.resistance_for(DamageType.DARK) == -10
    assert stats.resistance_for(DamageType.ICE) == 0


def test_restored_fills_every_pool():
    """Test that restored returns a full copy."""
    stats = CombatStats(hp=1, max_hp=10, mp=0, max_mp=5, es=0, max_es=3, damage=1)
    full = stats.restored()
    assert (full.hp, full.mp, full.es) == (10, 5, 3)
    assert stats.hp == 1


def test_base_source_scaling():
    """Test the per-level growth of the base source."""
    assert create_base_stat_source(1).stats[StatKey.MAX_HP] == 100
    source = create_base_stat_source(4)
    assert source.stats[StatKey.MAX_HP] == 115
    assert source.stats[StatKey.MAX_MP] == 56
    assert source.stats[StatKey.ATTACK] == 11


def test_stat_source_validation():
    """Test that sources need an id and a non-negative duration."""
    with pytest.raises(ValueError):
        StatSource(source_id="", source_type="buff")
    with pytest.raises(ValueError):
        StatSource(source_id="x", source_type="buff", duration=-1)
    assert StatSource(source_id="x", source_type="buff").display_name == "x"
