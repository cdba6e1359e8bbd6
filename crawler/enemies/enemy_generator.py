"""
Enemy generator module for the rules engine.

Turns the enemy tables into combat-ready entities: tier-weighted encounters,
dungeon fights sized by tier, encounters balanced around the player's level,
and the loot each defeated enemy drops.
"""

import math
import random
from typing import Optional

from catchery import log_warning
from combat.combat_entity import CombatEntity
from combat.npc_ai import roll_intent
from core.constants import (
    BALANCED_TIER_WEIGHTS,
    DEFAULT_ENCOUNTER_SIZE,
    DEFAULT_TIER,
    ENEMY_COUNT_WEIGHTS,
    ENEMY_STAT_VARIANCE,
    PLAYER_LEVELS_PER_TIER,
    Difficulty,
)
from core.logging import log_debug
from core.utils import weighted_choice
from enemies.enemy_definition import EnemyDefinition, EnemyTier
from loot.loot_generator import LootGenerationConfig, LootGenerator, LootResult
from pydantic import BaseModel, Field


class EncounterOptions(BaseModel):
    """Knobs for a single encounter roll."""

    enemy_count: Optional[int] = Field(
        default=None,
        description="How many enemies to roll, 1-3 at random when unset.",
        ge=0,
    )
    tier_weights: Optional[dict[int, float]] = Field(
        default=None,
        description="Weight of each tier, the tiers' spawn weights when unset.",
    )
    force_tier: Optional[int] = Field(
        default=None,
        description="Rolls every enemy from this tier, ignoring the weights.",
    )


class EnemyGenerator:
    """
    Builds enemies from the loaded enemy tiers.

    Attributes:
        tiers (dict[int, EnemyTier]): The enemy tiers, by tier number.
        loot_generator (Optional[LootGenerator]): Rolls the loot of defeated enemies.
        rng (random.Random): The random generator used for every roll.

    """

    def __init__(
        self,
        tiers: list[EnemyTier],
        loot_generator: Optional[LootGenerator] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.rng: random.Random = rng or random.Random()
        self.loot_generator = loot_generator
        self.tiers: dict[int, EnemyTier] = {}
        self._definitions: dict[str, EnemyDefinition] = {}
        for tier in sorted(tiers, key=lambda t: t.tier):
            if tier.tier in self.tiers:
                raise ValueError(f"Enemy tier {tier.tier} is defined twice.")
            self.tiers[tier.tier] = tier
            for enemy in tier.enemies:
                if enemy.id in self._definitions:
                    raise ValueError(f"Enemy id '{enemy.id}' is defined twice.")
                self._definitions[enemy.id] = enemy

    # ============================================================================
    # LOOKUPS
    # ============================================================================

    def get_enemy_definition(self, enemy_id: str) -> Optional[EnemyDefinition]:
        return self._definitions.get(enemy_id)

    def enemy_exists(self, enemy_id: str) -> bool:
        return enemy_id in self._definitions

    def get_enemies_by_tier(self, tier: int) -> list[EnemyDefinition]:
        tier_info = self.tiers.get(tier)
        return list(tier_info.enemies) if tier_info else []

    def get_available_tiers(self) -> list[int]:
        return sorted(self.tiers)

    def get_tier_info(self, tier: int) -> Optional[EnemyTier]:
        return self.tiers.get(tier)

    def get_default_tier_weights(self) -> dict[int, float]:
        return {number: tier.spawn_weight for number, tier in self.tiers.items()}

    # ============================================================================
    # ENTITY CREATION
    # ============================================================================

    def _vary(self, value: float) -> int:
        return math.floor(value * self.rng.uniform(*ENEMY_STAT_VARIANCE))

    def create_combat_entity(
        self, definition: EnemyDefinition, slot: Optional[int] = None
    ) -> CombatEntity:
        """
        Builds a fresh entity from a definition.

        Hit points, mana and damage each get an independent ±10% variance; the
        varied values become both the maximum and the current value.

        Args:
            definition (EnemyDefinition): The enemy to build.
            slot (Optional[int]): The encounter slot, appended to the id.

        Returns:
            CombatEntity: The new entity, with its first intent rolled.

        """
        max_hp = max(1, self._vary(definition.stats.max_hp))
        max_mp = max(0, self._vary(definition.stats.max_mp))
        stats = definition.stats.model_copy(
            update={
                "hp": max_hp,
                "max_hp": max_hp,
                "mp": max_mp,
                "max_mp": max_mp,
                "es": definition.stats.max_es,
                "damage": max(0, self._vary(definition.stats.damage)),
            }
        )
        entity_id = definition.id if slot is None else f"{definition.id}_{slot}"
        return CombatEntity(
            id=entity_id,
            name=definition.name,
            stats=stats,
            intent=roll_intent(self.rng, definition.abilities),
            abilities=[ability.model_copy() for ability in definition.abilities],
            definition_id=definition.id,
            tier=definition.tier,
        )

    def generate_random_enemy_from_tier(
        self, tier: int, slot: Optional[int] = None
    ) -> Optional[CombatEntity]:
        """
        Rolls one enemy of a tier, weighted by spawn chance.

        Args:
            tier (int): The tier to roll from.
            slot (Optional[int]): The encounter slot, appended to the id.

        Returns:
            Optional[CombatEntity]: None, with a warning, if the tier is unknown.

        """
        tier_info = self.tiers.get(tier)
        if tier_info is None:
            log_warning(
                f"Tier {tier} not found in enemy database",
                {"tier": tier, "context": "enemy_generation"},
            )
            return None
        definition = weighted_choice(
            self.rng, {enemy.id: enemy.spawn_chance for enemy in tier_info.enemies}
        )
        return self.create_combat_entity(self._definitions[definition], slot)

    def generate_specific_enemy(
        self, enemy_id: str, slot: Optional[int] = None
    ) -> Optional[CombatEntity]:
        definition = self._definitions.get(enemy_id)
        if definition is None:
            log_warning(
                f"Unknown enemy '{enemy_id}'",
                {"enemy_id": enemy_id, "context": "enemy_generation"},
            )
            return None
        return self.create_combat_entity(definition, slot)

    # ============================================================================
    # ENCOUNTERS
    # ============================================================================

    def roll_tier(self, weights: dict[int, float]) -> int:
        if not weights:
            return DEFAULT_TIER
        return weighted_choice(self.rng, weights)

    def generate_encounter(
        self, options: Optional[EncounterOptions] = None
    ) -> list[CombatEntity]:
        """
        Rolls a group of enemies.

        Args:
            options (Optional[EncounterOptions]): Count, tier weights or a forced tier.

        Returns:
            list[CombatEntity]: The enemies, ids suffixed with their slot index.

        """
        options = options or EncounterOptions()
        count = options.enemy_count
        if count is None:
            count = self.rng.randint(*DEFAULT_ENCOUNTER_SIZE)
        weights = options.tier_weights or self.get_default_tier_weights()

        enemies: list[CombatEntity] = []
        for slot in range(count):
            tier = options.force_tier or self.roll_tier(weights)
            enemy = self.generate_random_enemy_from_tier(tier, slot)
            if enemy is not None:
                enemies.append(enemy)
        log_debug(
            "Generated encounter",
            {"count": len(enemies), "enemies": [e.id for e in enemies]},
        )
        return enemies

    def dungeon_encounter(self, tier: int) -> list[CombatEntity]:
        """
        Rolls the enemies of one dungeon fight.

        The enemy count is weighted by tier: tier 1 fights hold one or two
        enemies, tier 2 fights one to three and tier 3 fights two to four.
        An unknown tier yields a single tier 1 enemy.

        Args:
            tier (int): The dungeon tier.

        Returns:
            list[CombatEntity]: The enemies, all of the dungeon's tier.

        """
        if tier not in ENEMY_COUNT_WEIGHTS or tier not in self.tiers:
            log_warning(
                f"Unknown dungeon tier {tier}, spawning a single tier {DEFAULT_TIER} enemy",
                {"tier": tier, "context": "dungeon_encounter"},
            )
            return self.generate_encounter(
                EncounterOptions(enemy_count=1, force_tier=DEFAULT_TIER)
            )
        count = weighted_choice(self.rng, ENEMY_COUNT_WEIGHTS[tier])
        return self.generate_encounter(
            EncounterOptions(enemy_count=count, force_tier=tier)
        )

    def balanced_tier_weights(
        self, player_level: int, difficulty: Difficulty = Difficulty.NORMAL
    ) -> dict[int, float]:
        """
        Weights the available tiers around the player's level.

        The base tier is one per five levels, at least 1 and at most the
        highest available tier, shifted down for easy and up for hard
        encounters. The base tier weighs 50, its neighbours 25 and every
        other tier 5.
        """
        available = self.get_available_tiers()
        highest = max(available, default=1)
        base_tier = min(highest, max(1, player_level // PLAYER_LEVELS_PER_TIER))
        if difficulty == Difficulty.EASY:
            base_tier = max(1, base_tier - 1)
        elif difficulty == Difficulty.HARD:
            base_tier = min(highest, base_tier + 1)

        base_weight, neighbour_weight, other_weight = BALANCED_TIER_WEIGHTS
        weights: dict[int, float] = {}
        for tier in available:
            if tier == base_tier:
                weights[tier] = base_weight
            elif abs(tier - base_tier) == 1:
                weights[tier] = neighbour_weight
            else:
                weights[tier] = other_weight
        return weights

    def balanced_encounter(
        self,
        player_level: int,
        difficulty: Difficulty = Difficulty.NORMAL,
        enemy_count: Optional[int] = None,
    ) -> list[CombatEntity]:
        """Rolls an encounter whose tiers favor the player's level."""
        return self.generate_encounter(
            EncounterOptions(
                enemy_count=enemy_count,
                tier_weights=self.balanced_tier_weights(player_level, difficulty),
            )
        )

    # ============================================================================
    # LOOT
    # ============================================================================

    def _definition_for(self, enemy: CombatEntity | str) -> Optional[EnemyDefinition]:
        if isinstance(enemy, CombatEntity):
            if enemy.definition_id:
                return self._definitions.get(enemy.definition_id)
            enemy = enemy.id
        if enemy in self._definitions:
            return self._definitions[enemy]
        # Strip the encounter slot suffix.
        return self._definitions.get(enemy.rsplit("_", 1)[0])

    def generate_enemy_loot(
        self,
        enemy: CombatEntity | str,
        player_level: int = 1,
        dungeon_type: Optional[str] = None,
    ) -> LootResult:
        """
        Rolls the loot of a defeated enemy at its definition's tier.

        Args:
            enemy (CombatEntity | str): The enemy, or its id.
            player_level (int): The player's level.
            dungeon_type (Optional[str]): The dungeon theme, if any.

        Returns:
            LootResult: Empty, with a warning, if the enemy is unknown.

        """
        definition = self._definition_for(enemy)
        enemy_id = enemy.id if isinstance(enemy, CombatEntity) else enemy
        if definition is None:
            log_warning(
                f"No enemy definition for '{enemy_id}', dropping nothing",
                {"enemy_id": enemy_id, "context": "enemy_loot"},
            )
            return LootResult()
        if self.loot_generator is None:
            log_warning(
                "Enemy generator has no loot generator, dropping nothing",
                {"enemy_id": enemy_id, "context": "enemy_loot"},
            )
            return LootResult()
        return self.loot_generator.generate_enemy_loot(
            LootGenerationConfig(
                enemy_tier=definition.tier,
                player_level=max(1, player_level),
                dungeon_type=dungeon_type,
            )
        )
