"""
Tests for enemy and encounter generation.
"""

import random

import pytest
from core.constants import Difficulty
from enemies.enemy_definition import EnemyDefinition, EnemyTier
from enemies.enemy_generator import EncounterOptions, EnemyGenerator
from loot.loot_generator import LootResult
from stats.combat_stats import CombatStats


@pytest.fixture
def generator(content):
    return content.create_enemy_generator(random.Random(2024))


def _tier(number: int, *enemy_ids: str) -> EnemyTier:
    return EnemyTier(
        tier=number,
        spawn_weight=10,
        enemies=[
            EnemyDefinition(
                id=enemy_id,
                name=enemy_id.title(),
                tier=number,
                spawn_chance=1,
                stats=CombatStats(hp=10, max_hp=10, damage=2),
            )
            for enemy_id in enemy_ids
        ],
    )


def test_lookups(generator):
    """Test the definition and tier lookups."""
    assert generator.enemy_exists("cave_rat")
    assert not generator.enemy_exists("lich")
    assert generator.get_enemy_definition("orc_brute").tier == 2
    assert {e.id for e in generator.get_enemies_by_tier(3)} == {
        "bone_knight",
        "shadow_priest",
        "magma_golem",
    }
    assert generator.get_enemies_by_tier(8) == []
    assert generator.get_available_tiers() == [1, 2, 3]
    assert generator.get_tier_info(2).spawn_weight == 30
    assert generator.get_tier_info(9) is None
    assert generator.get_default_tier_weights() == {1: 50, 2: 30, 3: 20}


def test_duplicate_ids_are_rejected():
    """Test that enemy ids must be unique across tiers."""
    with pytest.raises(ValueError, match="defined twice"):
        EnemyGenerator([_tier(1, "slime"), _tier(2, "slime")])
    with pytest.raises(ValueError, match="defined twice"):
        EnemyGenerator([_tier(1, "slime"), _tier(1, "bat")])


def test_entities_get_varied_stats(generator):
    """Test the ±10% variance and that current values equal the varied max."""
    definition = generator.get_enemy_definition("orc_brute")
    for slot in range(100):
        enemy = generator.create_combat_entity(definition, slot)
        assert enemy.id == f"orc_brute_{slot}"
        assert enemy.definition_id == "orc_brute"
        assert enemy.tier == 2
        assert 63 <= enemy.stats.max_hp <= 77
        assert enemy.stats.hp == enemy.stats.max_hp
        assert 9 <= enemy.stats.damage <= 11
        assert enemy.stats.armor == definition.stats.armor
        assert enemy.intent


def test_entities_do_not_share_state(generator):
    """Test that damaging one entity leaves the definition untouched."""
    definition = generator.get_enemy_definition("frost_wraith")
    enemy = generator.create_combat_entity(definition, 0)
    enemy.stats.hp = 0
    enemy.stats.es = 0
    assert definition.stats.hp == 45
    assert definition.stats.es == 20
    assert generator.create_combat_entity(definition, 1).stats.es == 20


def test_encounter_ids_use_slot_index(generator):
    """Test that encounter ids are unique and suffixed with the slot."""
    enemies = generator.generate_encounter(EncounterOptions(enemy_count=4, force_tier=1))
    assert len(enemies) == 4
    assert [e.id.rsplit("_", 1)[1] for e in enemies] == ["0", "1", "2", "3"]
    assert len({e.id for e in enemies}) == 4
    assert all(e.tier == 1 for e in enemies)


def test_default_encounter_size(generator):
    """Test that an encounter without a count holds one to three enemies."""
    sizes = {len(generator.generate_encounter()) for _ in range(200)}
    assert sizes == {1, 2, 3}


def test_tier_weights_are_respected(generator):
    """Test that a zero weight tier never spawns."""
    options = EncounterOptions(enemy_count=3, tier_weights={1: 0, 2: 1, 3: 0})
    for _ in range(50):
        assert all(e.tier == 2 for e in generator.generate_encounter(options))


@pytest.mark.parametrize("tier, sizes", [(1, {1, 2}), (2, {1, 2, 3}), (3, {2, 3, 4})])
def test_dungeon_encounter_size_by_tier(generator, tier, sizes):
    """Test the enemy count ranges of dungeon fights."""
    seen = set()
    for _ in range(300):
        enemies = generator.dungeon_encounter(tier)
        assert len(enemies) in sizes
        assert all(e.tier == tier for e in enemies)
        seen.add(len(enemies))
    assert seen == sizes


def test_dungeon_encounter_unknown_tier_falls_back(generator):
    """Test that an unknown tier yields a single tier one enemy."""
    enemies = generator.dungeon_encounter(9)
    assert len(enemies) == 1
    assert enemies[0].tier == 1


def test_unknown_tier_and_enemy_return_none(generator):
    """Test the soft failures of single enemy generation."""
    assert generator.generate_random_enemy_from_tier(12) is None
    assert generator.generate_specific_enemy("lich") is None
    assert generator.generate_specific_enemy("cave_rat", 2).id == "cave_rat_2"


@pytest.mark.parametrize(
    "level, difficulty, expected",
    [
        (1, Difficulty.NORMAL, {1: 50, 2: 25, 3: 5}),
        (10, Difficulty.NORMAL, {1: 25, 2: 50, 3: 25}),
        (10, Difficulty.EASY, {1: 50, 2: 25, 3: 5}),
        (10, Difficulty.HARD, {1: 5, 2: 25, 3: 50}),
        (40, Difficulty.NORMAL, {1: 5, 2: 25, 3: 50}),
        (40, Difficulty.EASY, {1: 25, 2: 50, 3: 25}),
    ],
)
def test_balanced_tier_weights(generator, level, difficulty, expected):
    """Test the weights around the player's base tier."""
    assert generator.balanced_tier_weights(level, difficulty) == expected


def test_balanced_encounter(generator):
    """Test that a balanced encounter honours an explicit count."""
    assert len(generator.balanced_encounter(5, enemy_count=2)) == 2


def test_enemy_loot(generator):
    """Test that loot is rolled at the enemy definition's tier."""
    enemy = generator.generate_specific_enemy("bone_knight", 0)
    for _ in range(20):
        result = generator.generate_enemy_loot(enemy)
        assert 50 <= result.gold <= 120
    by_id = generator.generate_enemy_loot("bone_knight_3", player_level=30)
    assert 50 <= by_id.gold <= 120


def test_unknown_enemy_loot_is_empty(generator):
    """Test that an unknown enemy drops nothing."""
    result = generator.generate_enemy_loot("lich_0")
    assert isinstance(result, LootResult)
    assert result.gold == 0
    assert result.items == []


def test_loot_without_loot_generator_is_empty():
    """Test the soft failure when no loot generator is configured."""
    generator = EnemyGenerator([_tier(1, "slime")], rng=random.Random(1))
    assert generator.generate_enemy_loot("slime_0").gold == 0
