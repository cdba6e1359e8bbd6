"""
Tests for damage calculation and application.
"""

import random

import pytest
from combat.combat_entity import CombatEntity, DamageResult
from combat.damage import apply_damage, calculate_damage, mitigate
from core.constants import DamageType
from stats.combat_stats import CombatStats


def _entity(name: str = "Dummy", **stats) -> CombatEntity:
    values = {"hp": 100, "max_hp": 100, "damage": 20}
    values.update(stats)
    return CombatEntity(id=name.lower(), name=name, stats=CombatStats(**values))


@pytest.fixture
def attacker():
    return _entity("Attacker", crit_chance=10, crit_multiplier=2.0)


@pytest.fixture
def defender():
    return _entity("Defender", armor=25, fire_res=50, ice_res=-25, dodge=10, block=10)


@pytest.fixture
def rolls(mocker):
    """Patches the percentage rolls with a fixed sequence of outcomes."""

    def set_rolls(*outcomes: bool):
        return mocker.patch("combat.damage.roll_percent", side_effect=list(outcomes))

    return set_rolls


def test_physical_hit_is_reduced_by_armor(attacker, defender, rolls):
    """Test the armor percentage reduction, floored."""
    rolls(False, False, False)
    result = calculate_damage(attacker, defender, random.Random())
    assert result.actual_damage == 15
    assert result.damage_type == DamageType.PHYSICAL
    assert not (result.was_crit or result.was_dodged or result.was_blocked)


def test_crit_multiplies_before_mitigation(attacker, defender, rolls):
    """Test that a crit scales the raw damage."""
    rolls(False, False, True)
    result = calculate_damage(attacker, defender, random.Random())
    assert result.was_crit
    assert result.damage == 40
    assert result.actual_damage == 30
    assert "CRIT" in result.describe()


def test_dodge_avoids_everything(attacker, defender, rolls):
    """Test that a dodged hit deals nothing and rolls nothing else."""
    mock = rolls(True)
    result = calculate_damage(attacker, defender, random.Random())
    assert result.was_dodged
    assert result.actual_damage == 0
    assert mock.call_count == 1
    assert result.describe() == "dodged"

    apply_damage(defender, result)
    assert defender.stats.hp == 100


def test_block_stops_physical_damage(attacker, defender, rolls):
    """Test that a successful block roll negates a physical hit."""
    rolls(False, True)
    result = calculate_damage(attacker, defender, random.Random())
    assert result.was_blocked
    assert result.was_avoided
    assert result.actual_damage == 0


def test_elemental_damage_cannot_be_blocked(defender, rolls):
    """Test that elemental hits skip the block roll and use resistances."""
    caster = _entity("Caster", damage_type=DamageType.FIRE)
    mock = rolls(False, False)
    result = calculate_damage(caster, defender, random.Random())
    assert mock.call_count == 2
    assert result.actual_damage == 10
    assert result.damage_type == DamageType.FIRE


def test_negative_resistance_increases_damage(defender, rolls):
    """Test that a negative resistance amplifies the hit."""
    caster = _entity("Caster", damage_type=DamageType.ICE)
    rolls(False, False)
    assert calculate_damage(caster, defender, random.Random()).actual_damage == 25


def test_mitigation_never_goes_below_one():
    """Test the minimum damage of a landed hit."""
    tank = _entity("Tank", armor=99)
    assert mitigate(20, DamageType.PHYSICAL, tank) == 1


def test_blocking_doubles_armor_and_reduces_physical_damage(defender):
    """Test the block stance: armor x2 and damage x0.75."""
    defender.is_blocking = True
    # 20 * 0.75 * (1 - 0.50) = 7.5
    assert mitigate(20, DamageType.PHYSICAL, defender) == 7
    # The stance does nothing against elements.
    assert mitigate(20, DamageType.FIRE, defender) == 10


def test_shield_absorbs_damage_first():
    """Test that energy shield takes damage before hit points."""
    target = _entity("Warded", es=5, max_es=5)
    result = DamageResult(damage=12, damage_type=DamageType.FIRE, actual_damage=12)
    apply_damage(target, result)
    assert target.stats.es == 0
    assert target.stats.hp == 93
    assert result.hit_shield
    assert (result.shield_absorbed, result.hp_damage) == (5, 7)


def test_shield_can_absorb_the_whole_hit():
    """Test that hit points are untouched when the shield holds."""
    target = _entity("Warded", es=30, max_es=30)
    result = apply_damage(target, DamageResult(damage=12, damage_type=DamageType.PHYSICAL, actual_damage=12))
    assert (target.stats.es, target.stats.hp) == (18, 100)
    assert result.hp_damage == 0


def test_hit_points_never_go_negative():
    """Test that overkill leaves the target at zero."""
    target = _entity("Frail", hp=3)
    result = apply_damage(target, DamageResult(damage=10, damage_type=DamageType.PHYSICAL, actual_damage=10))
    assert target.stats.hp == 0
    assert not target.is_alive
    assert result.hp_damage == 3


def test_calculation_does_not_mutate_entities(attacker, defender):
    """Test that calculate_damage leaves both entities untouched."""
    rng = random.Random(11)
    for _ in range(50):
        calculate_damage(attacker, defender, rng)
    assert defender.stats.hp == 100
    assert attacker.stats.hp == 100
