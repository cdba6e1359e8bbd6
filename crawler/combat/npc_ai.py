"""
NPC intent module for the rules engine.

Enemies telegraph what they are about to do. The intent is cosmetic: every
enemy still resolves a basic attack on its turn.
"""

import random

from core.constants import DEFAULT_INTENTS
from enemies.enemy_definition import EnemyAbility

from combat.combat_entity import CombatEntity


def roll_intent(rng: random.Random, abilities: list[EnemyAbility]) -> str:
    """
    Rolls the intent an enemy shows.

    Each ability claims its percentage chance of a d100 roll, in order; when
    the roll lands past every ability the intent is one of the basic ones.

    Args:
        rng (random.Random): The random generator to draw from.
        abilities (list[EnemyAbility]): The enemy's abilities.

    Returns:
        str: The intent label.

    """
    if abilities:
        roll = rng.random() * 100
        cumulative = 0.0
        for ability in abilities:
            cumulative += ability.chance
            if roll < cumulative:
                return ability.intent
    return rng.choice(DEFAULT_INTENTS)


def refresh_intents(rng: random.Random, enemies: list[CombatEntity]) -> None:
    """Re-rolls the intent of every living enemy."""
    for enemy in enemies:
        if enemy.is_alive:
            enemy.intent = roll_intent(rng, enemy.abilities)
