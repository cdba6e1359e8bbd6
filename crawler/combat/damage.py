"""
Damage module for the rules engine.

Handles damage calculation and application, shared by the player and the
enemies: dodge, then block (physical only), then crit, then mitigation by
armor or the matching resistance, and finally shield-first application.
"""

import math
import random

from core.constants import (
    BLOCK_ARMOR_MULTIPLIER,
    BLOCK_DAMAGE_MULTIPLIER,
    DamageType,
)
from core.logging import log_debug
from core.utils import roll_percent

from combat.combat_entity import CombatEntity, DamageResult


def mitigate(damage: float, damage_type: DamageType, defender: CombatEntity) -> int:
    """
    Reduces damage by the defender's armor or resistance.

    Physical damage loses `armor`% of its value; a blocking defender has its
    armor doubled and takes 25% less physical damage on top. Elemental damage
    loses the matching resistance's percentage. The result is floored and is
    never below 1.

    Args:
        damage (float): The damage after a possible crit.
        damage_type (DamageType): The type of the damage.
        defender (CombatEntity): The entity being hit.

    Returns:
        int: The damage that gets through.

    """
    final_damage = damage
    if damage_type == DamageType.PHYSICAL:
        armor = defender.stats.armor
        if defender.is_blocking:
            armor *= BLOCK_ARMOR_MULTIPLIER
            final_damage *= BLOCK_DAMAGE_MULTIPLIER
        final_damage *= 1 - armor / 100
    else:
        final_damage *= 1 - defender.stats.resistance_for(damage_type) / 100
    return max(1, math.floor(final_damage))


def calculate_damage(
    attacker: CombatEntity, defender: CombatEntity, rng: random.Random
) -> DamageResult:
    """
    Resolves one attack without touching either entity.

    Args:
        attacker (CombatEntity): The entity attacking.
        defender (CombatEntity): The entity being hit.
        rng (random.Random): The random generator for the dodge, block and crit rolls.

    Returns:
        DamageResult: The outcome; dodged or blocked hits deal 0 damage.

    """
    base_damage = attacker.stats.damage
    damage_type = attacker.stats.damage_type

    if roll_percent(rng, defender.stats.dodge):
        return DamageResult(damage=base_damage, damage_type=damage_type, was_dodged=True)

    if damage_type == DamageType.PHYSICAL and roll_percent(rng, defender.stats.block):
        return DamageResult(damage=base_damage, damage_type=damage_type, was_blocked=True)

    was_crit = roll_percent(rng, attacker.stats.crit_chance)
    if was_crit:
        base_damage *= attacker.stats.crit_multiplier

    result = DamageResult(
        damage=base_damage,
        damage_type=damage_type,
        was_crit=was_crit,
        actual_damage=mitigate(base_damage, damage_type, defender),
        hit_shield=defender.stats.es > 0,
    )
    log_debug(
        f"{attacker.name} -> {defender.name}: {result.describe()}",
        {"raw": base_damage, "crit": was_crit},
    )
    return result


def apply_damage(target: CombatEntity, result: DamageResult) -> DamageResult:
    """
    Applies a damage result to an entity, energy shield first.

    Shield absorbs damage of every type; whatever it cannot absorb is taken
    from hit points, which never go below zero. The result records the split.

    Args:
        target (CombatEntity): The entity taking the damage.
        result (DamageResult): The outcome of `calculate_damage`.

    Returns:
        DamageResult: The same result, with the shield and hp split filled in.

    """
    if result.actual_damage == 0:
        return result

    remaining = result.actual_damage
    if target.stats.es > 0:
        absorbed = min(target.stats.es, remaining)
        target.stats.es -= absorbed
        remaining -= absorbed
        result.shield_absorbed = absorbed
        result.hit_shield = True

    if remaining > 0:
        hp_damage = min(target.stats.hp, remaining)
        target.stats.hp = max(0, target.stats.hp - remaining)
        result.hp_damage = hp_damage
    return result
