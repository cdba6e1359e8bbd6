"""
Main entry point for the dungeon crawler rules engine.

This script loads the item, affix and enemy tables, builds the player's stat
aggregator, and auto-plays dungeon runs through the combat engine. It shows
the engine with its timers driven by a manual scheduler, so a whole run
resolves instantly.

The demo supports:
- Choosing the dungeon tier, the number of fights and the player level
- Seeding every roll for reproducible runs
- Equipping dropped items that beat the ones currently worn
- Printing fights, rewards and the final stat sheet
"""

import argparse
import logging
import random
from pathlib import Path
from typing import Optional

from combat.combat_engine import CombatEngine
from core.constants import (
    DEFAULT_TOTAL_FIGHTS,
    EquipmentSlot,
    ProgressResult,
    TurnPhase,
)
from core.content import ContentRepository
from core.logging import setup_logging
from core.scheduler import Scheduler
from core.sheets import (
    print_combat_sheet,
    print_content_repository_summary,
    print_damage_types_reference,
    print_item_sheet,
    print_loot_sheet,
    print_stat_sheet,
)
from core.utils import cprint, crule
from items.equipment import EquipmentItem
from loot.loot_generator import LootResult
from loot.power_level import calculate_item_power_level
from stats.stat_aggregator import StatAggregator

# Get the path to the data folder.
DATA_DIR = Path(__file__).with_suffix("").parent / "../data"

# Player attacks before a fight is abandoned.
MAX_ROUNDS_PER_FIGHT = 200


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Auto-play dungeon runs with the crawler rules engine."
    )
    parser.add_argument("--tier", type=int, default=1, help="Dungeon tier (1-3).")
    parser.add_argument(
        "--fights",
        type=int,
        default=DEFAULT_TOTAL_FIGHTS,
        help="Number of fights per dungeon run.",
    )
    parser.add_argument("--runs", type=int, default=1, help="Number of dungeon runs.")
    parser.add_argument("--level", type=int, default=1, help="Player level.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed.")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=DATA_DIR,
        help="Directory holding items.json, affixes.json and enemies.json.",
    )
    parser.add_argument(
        "--show-content",
        action="store_true",
        help="Print every loaded item, affix and enemy before playing.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug logging."
    )
    return parser.parse_args(argv)


def equip_upgrades(
    aggregator: StatAggregator,
    equipped: dict[EquipmentSlot, EquipmentItem],
    rewards: LootResult,
) -> list[EquipmentItem]:
    """
    Equips every dropped item that out-powers the one worn in its slot.

    Args:
        aggregator (StatAggregator): The player's stats.
        equipped (dict[EquipmentSlot, EquipmentItem]): Worn items, updated in place.
        rewards (LootResult): The items to consider.

    Returns:
        list[EquipmentItem]: The newly equipped items.

    """
    upgrades: list[EquipmentItem] = []
    for drop in rewards.items:
        item = drop.item
        if item.required_level > aggregator.level:
            continue
        current = equipped.get(item.slot_type)
        if current is not None:
            if calculate_item_power_level(current) >= drop.power_level:
                continue
            aggregator.unequip_item(current)
        aggregator.equip_item(item)
        equipped[item.slot_type] = item
        upgrades.append(item)
    return upgrades


def play_fight(engine: CombatEngine) -> TurnPhase:
    """Attacks until the fight is won or lost, flushing every timer."""
    for _ in range(MAX_ROUNDS_PER_FIGHT):
        if engine.turn_phase.is_terminal:
            break
        player = engine.player
        # Brace when low on health and more than one enemy is left.
        if (
            player is not None
            and player.stats.hp < player.stats.max_hp * 0.25
            and len(engine.living_enemies) > 1
        ):
            engine.player_block()
        else:
            engine.player_attack()
        engine.scheduler.run_until_idle()
    return engine.turn_phase


def play_dungeon(
    engine: CombatEngine,
    aggregator: StatAggregator,
    equipped: dict[EquipmentSlot, EquipmentItem],
    tier: int,
    total_fights: int,
) -> LootResult:
    """
    Plays one dungeon run, equipping upgrades after it ends.

    Returns:
        LootResult: Everything collected during the run.

    """
    collected = LootResult()
    if not engine.initialize(
        tier=tier, player_level=aggregator.level, total_fights=total_fights
    ):
        return collected

    while engine.is_in_combat:
        print_combat_sheet(engine)
        phase = play_fight(engine)
        print_combat_sheet(engine)
        if phase != TurnPhase.VICTORY:
            crule(":skull:  Defeated", style="bold red")
            engine.end_combat()
            break
        if engine.fight_rewards is not None:
            print_loot_sheet(engine.fight_rewards)
            collected.merge(engine.fight_rewards)
        engine.close_reward_modal()
        if engine.next_fight() == ProgressResult.DUNGEON_COMPLETE:
            crule(":trophy:  Dungeon Complete", style="bold green")

    for item in equip_upgrades(aggregator, equipped, collected):
        cprint("Equipped:", style="bold green")
        print_item_sheet(item)
    aggregator.full_heal()
    return collected


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    crule("Dungeon Crawler", style="bold green")

    cprint("Loading repository...", style="bold green")
    repo = ContentRepository(args.data_dir)
    if args.show_content:
        print_content_repository_summary(repo)
        print_damage_types_reference()

    rng = random.Random(args.seed)
    aggregator = StatAggregator(level=args.level)
    engine = CombatEngine(
        repo.create_enemy_generator(rng),
        stats_provider=aggregator,
        scheduler=Scheduler(),
        rng=rng,
    )
    equipped: dict[EquipmentSlot, EquipmentItem] = {}

    runs: list[LootResult] = []
    try:
        for run in range(1, args.runs + 1):
            crule(f":crossed_swords:  Dungeon run {run}", style="bold green")
            runs.append(
                play_dungeon(engine, aggregator, equipped, args.tier, args.fights)
            )
    except KeyboardInterrupt:
        cprint("")
        crule(":crossed_swords:  Run Interrupted", style="bold red")

    crule("Summary", style="bold green")
    cprint(f"Gold collected: {sum(result.gold for result in runs)}")
    cprint(f"Items collected: {sum(len(result.items) for result in runs)}")
    print_stat_sheet(aggregator)


if __name__ == "__main__":
    main()
