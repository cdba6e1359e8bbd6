"""
Tests for loading the data tables into the content repository.
"""

import json
import random
import shutil
from pathlib import Path

import pytest
from core.constants import AffixKind, ItemCategory, StatKey
from core.content import ContentRepository
from enemies.enemy_generator import EnemyGenerator
from loot.loot_generator import LootGenerator


@pytest.fixture
def data_copy(tmp_path: Path, data_dir: Path) -> Path:
    """A writable copy of the shipped data tables."""
    for name in ("items.json", "affixes.json", "enemies.json"):
        shutil.copy(data_dir / name, tmp_path / name)
    return tmp_path


def _rewrite(path: Path, edit) -> None:
    data = json.loads(path.read_text(encoding="utf-8"))
    edit(data)
    path.write_text(json.dumps(data), encoding="utf-8")


def test_shipped_tables_load(content):
    """Test that the shipped data loads and cross-references resolve."""
    assert content.items and content.affixes
    assert sorted(content.enemy_tiers) == [1, 2, 3]
    assert content.items_by_category(ItemCategory.WEAPONS)
    assert content.items_by_category(ItemCategory.ARMOR)
    for item in content.items.values():
        if item.implicit_affix:
            assert content.get_affix(item.implicit_affix).kind == AffixKind.IMPLICIT


def test_lookups(content):
    """Test the id lookups."""
    assert content.get_item("rusty_sword").stats[StatKey.ATTACK] == 6
    assert content.get_enemy("cave_rat").tier == 1
    assert content.get_enemy("dragon_king") is None
    assert content.get_enemy_tier(2).tier == 2
    assert content.get_enemy_tier(9) is None


def test_factories_build_engines(content):
    """Test that the repository builds working generators."""
    rng = random.Random(3)
    loot = content.create_loot_generator(rng)
    enemies = content.create_enemy_generator(rng)
    assert isinstance(loot, LootGenerator)
    assert isinstance(enemies, EnemyGenerator)
    assert enemies.loot_generator is not None
    assert enemies.get_available_tiers() == [1, 2, 3]


def test_unknown_stat_key_is_rejected(data_copy: Path):
    """Test that a stat outside the closed set fails to load."""

    def edit(items):
        items[0]["stats"]["luck"] = 3

    _rewrite(data_copy / "items.json", edit)
    with pytest.raises(ValueError, match="items.json"):
        ContentRepository(data_copy, verbose=False)


def test_duplicate_item_id_is_rejected(data_copy: Path):
    """Test that two items with the same id fail to load."""
    _rewrite(data_copy / "items.json", lambda items: items.append(dict(items[0])))
    with pytest.raises(ValueError, match="Duplicate item id"):
        ContentRepository(data_copy, verbose=False)


def test_duplicate_enemy_id_across_tiers_is_rejected(data_copy: Path):
    """Test that an enemy id may only appear once in the whole table."""

    def edit(tiers):
        clone = dict(tiers[0]["enemies"][0])
        clone["tier"] = 2
        tiers[1]["enemies"].append(clone)

    _rewrite(data_copy / "enemies.json", edit)
    with pytest.raises(ValueError, match="Duplicate enemy id"):
        ContentRepository(data_copy, verbose=False)


def test_unknown_implicit_affix_is_rejected(data_copy: Path):
    """Test that an item naming a missing implicit affix fails to load."""

    def edit(items):
        items[0]["implicit_affix"] = "implicit_missing"

    _rewrite(data_copy / "items.json", edit)
    with pytest.raises(ValueError, match="implicit_missing"):
        ContentRepository(data_copy, verbose=False)


def test_missing_file_is_reported(data_copy: Path):
    """Test that a missing table surfaces as a ValueError naming the file."""
    (data_copy / "enemies.json").unlink()
    with pytest.raises(ValueError, match="enemies.json"):
        ContentRepository(data_copy, verbose=False)


def test_enemy_in_wrong_tier_is_rejected(data_copy: Path):
    """Test that an enemy must belong to the tier listing it."""

    def edit(tiers):
        tiers[0]["enemies"][0]["tier"] = 3

    _rewrite(data_copy / "enemies.json", edit)
    with pytest.raises(ValueError):
        ContentRepository(data_copy, verbose=False)
