import json
import random
from collections.abc import Callable
from pathlib import Path
from typing import Any

from catchery import log_warning
from enemies.enemy_definition import EnemyDefinition, EnemyTier
from enemies.enemy_generator import EnemyGenerator
from items.affix import AffixDefinition
from items.equipment import BaseItemDefinition
from loot.loot_generator import LootGenerator

from core.constants import AffixKind, ItemCategory
from core.utils import cprint


class ContentRepository:
    """
    One-stop registry for the data tables the engines are built from.
    """

    # Item-related attributes.
    items: dict[str, BaseItemDefinition]
    affixes: dict[str, AffixDefinition]
    # Enemy-related attributes.
    enemy_tiers: dict[int, EnemyTier]

    def __init__(self, data_dir: Path, verbose: bool = True) -> None:
        """
        Initialize the ContentRepository.

        Args:
            data_dir (Path):
                The directory containing data files to load.
            verbose (bool):
                Whether to print a line for each loaded file.

        """
        self.verbose = verbose
        self.reload(Path(data_dir))

    def reload(self, root: Path) -> None:
        """
        (Re)load every JSON table from disk.

        Args:
            root (Path):
                The directory containing data files to load.

        Raises:
            ValueError: If a file is missing, malformed, or references an
                unknown id.

        """
        self.affixes = _load_json_file(
            root / "affixes.json",
            self._load_affixes,
            "affixes",
            self.verbose,
        )
        self.items = _load_json_file(
            root / "items.json",
            self._load_items,
            "base items",
            self.verbose,
        )
        self.enemy_tiers = _load_json_file(
            root / "enemies.json",
            self._load_enemy_tiers,
            "enemy tiers",
            self.verbose,
        )
        self._check_references()

    def _check_references(self) -> None:
        for item in self.items.values():
            if item.implicit_affix is None:
                continue
            affix = self.affixes.get(item.implicit_affix)
            if affix is None:
                raise ValueError(
                    f"Item '{item.id}' references unknown implicit affix "
                    f"'{item.implicit_affix}'"
                )
            if affix.kind != AffixKind.IMPLICIT:
                log_warning(
                    f"Item '{item.id}' uses {affix.kind.value} '{affix.id}' as implicit",
                    {"item": item.id, "affix": affix.id},
                )
        for category in ItemCategory:
            if not self.items_by_category(category):
                log_warning(
                    f"No base items in category {category.value}",
                    {"category": category.value},
                )

    # ============================================================================
    # LOOKUPS
    # ============================================================================

    def get_item(self, item_id: str) -> BaseItemDefinition | None:
        return self.items.get(item_id)

    def get_affix(self, affix_id: str) -> AffixDefinition | None:
        return self.affixes.get(affix_id)

    def get_enemy_tier(self, tier: int) -> EnemyTier | None:
        return self.enemy_tiers.get(tier)

    def get_enemy(self, enemy_id: str) -> EnemyDefinition | None:
        for tier in self.enemy_tiers.values():
            for enemy in tier.enemies:
                if enemy.id == enemy_id:
                    return enemy
        return None

    def items_by_category(self, category: ItemCategory) -> list[BaseItemDefinition]:
        return [item for item in self.items.values() if item.category == category]

    # ============================================================================
    # ENGINE FACTORIES
    # ============================================================================

    def create_loot_generator(self, rng: random.Random | None = None) -> LootGenerator:
        """Builds a loot generator over the loaded items and affixes."""
        return LootGenerator(
            list(self.items.values()), list(self.affixes.values()), rng
        )

    def create_enemy_generator(
        self,
        rng: random.Random | None = None,
        loot_generator: LootGenerator | None = None,
    ) -> EnemyGenerator:
        """Builds an enemy generator, sharing the rng with a new loot generator."""
        rng = rng or random.Random()
        return EnemyGenerator(
            list(self.enemy_tiers.values()),
            loot_generator or self.create_loot_generator(rng),
            rng,
        )

    # ============================================================================
    # LOADERS
    # ============================================================================

    @staticmethod
    def _load_affixes(data: list[dict]) -> dict[str, AffixDefinition]:
        """
        Load affixes from JSON data.

        Args:
            data (list[dict]): List of affix data dictionaries.

        Returns:
            dict[str, AffixDefinition]: Dictionary mapping affix ids to definitions.

        Raises:
            ValueError: If duplicate affix ids are found.

        """
        affixes: dict[str, AffixDefinition] = {}
        for affix_data in data:
            affix = AffixDefinition(**affix_data)
            if affix.id in affixes:
                raise ValueError(f"Duplicate affix id: {affix.id}")
            affixes[affix.id] = affix
        return affixes

    @staticmethod
    def _load_items(data: list[dict]) -> dict[str, BaseItemDefinition]:
        """
        Load base items from JSON data.

        Args:
            data (list[dict]): List of item data dictionaries.

        Returns:
            dict[str, BaseItemDefinition]: Dictionary mapping item ids to definitions.

        Raises:
            ValueError: If duplicate item ids are found.

        """
        items: dict[str, BaseItemDefinition] = {}
        for item_data in data:
            item = BaseItemDefinition(**item_data)
            if item.id in items:
                raise ValueError(f"Duplicate item id: {item.id}")
            items[item.id] = item
        return items

    @staticmethod
    def _load_enemy_tiers(data: list[dict]) -> dict[int, EnemyTier]:
        """
        Load enemy tiers from JSON data.

        Args:
            data (list[dict]): List of tier data dictionaries.

        Returns:
            dict[int, EnemyTier]: Dictionary mapping tier numbers to tiers.

        Raises:
            ValueError: If a tier or an enemy id is defined twice.

        """
        tiers: dict[int, EnemyTier] = {}
        enemy_ids: set[str] = set()
        for tier_data in data:
            tier = EnemyTier(**tier_data)
            if tier.tier in tiers:
                raise ValueError(f"Duplicate enemy tier: {tier.tier}")
            for enemy in tier.enemies:
                if enemy.id in enemy_ids:
                    raise ValueError(f"Duplicate enemy id: {enemy.id}")
                enemy_ids.add(enemy.id)
            tiers[tier.tier] = tier
        return dict(sorted(tiers.items()))


def _load_json_file(
    filepath: Path,
    loader_func: Callable[[list[dict]], dict[Any, Any]],
    description: str,
    verbose: bool = True,
) -> dict[Any, Any]:
    """Helper to load and validate JSON files"""
    try:
        if verbose:
            cprint(
                f"  Loading {description} using {loader_func.__name__}...",
                style="bold green",
            )
        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")
        if not filepath.is_file():
            raise ValueError(f"Not a file: {filepath}")
        with open(filepath, encoding="utf-8") as f:
            data = json.load(f)
        if not data:
            raise ValueError(f"Empty data list in {filepath}")
        if not isinstance(data, list):
            raise ValueError(f"Expected list in {filepath}, got {type(data).__name__}")
        return loader_func(data)
    except (json.JSONDecodeError, FileNotFoundError, ValueError) as e:
        raise ValueError(f"File {filepath} raised an error: {e}") from e
