"""
Module for printing items, loot, combat state and stats in a formatted way.
"""

from combat.combat_engine import CombatEngine
from combat.combat_entity import CombatEntity
from items.equipment import EquipmentItem
from loot.loot_generator import LootResult
from rich.padding import Padding
from rich.table import Table
from stats.stat_aggregator import StatAggregator

from core.constants import DamageType, ItemCategory, StatKey
from core.content import ContentRepository
from core.utils import cprint, crule, make_bar


def stat_to_string(stat: StatKey, value: float) -> str:
    """
    Formats a stat value with its sign and name.

    Args:
        stat (StatKey): The stat.
        value (float): The value.

    Returns:
        str: A string like "+12 attack" or "+5% fire res".

    """
    suffix = "%" if stat.is_resistance or stat.is_percentage else ""
    return f"{value:+g}{suffix} {stat.display_name.lower()}"


def print_item_sheet(item: EquipmentItem, padding: int = 2) -> None:
    """
    Prints the details of a generated item.

    Args:
        item (EquipmentItem): The item to display.
        padding (int): Left padding of the detail lines.

    """
    cprint(
        f"{item.colored_name} [dim]({item.rarity.display_name} "
        f"{item.slot_type.display_name}, ilvl {item.item_level})[/]"
    )
    if item.damage_type:
        cprint(
            Padding(
                f"Damage type: {item.damage_type.emoji} {item.damage_type.colored_name}",
                (0, padding),
            )
        )
    for stat, value in item.base_stats.items():
        cprint(Padding(stat_to_string(stat, value), (0, padding)))
    for affix in item.affixes:
        values = ", ".join(stat_to_string(k, v) for k, v in affix.stats.items())
        cprint(
            Padding(
                f"[cyan]{affix.kind.display_name}[/] {affix.description}: {values}",
                (0, padding),
            )
        )


def print_loot_sheet(result: LootResult) -> None:
    """
    Prints the rewards of a fight.

    Args:
        result (LootResult): The rewards to display.

    """
    cprint(f"💰 [bold yellow]{result.gold} gold[/]")
    if not result.items:
        cprint(Padding("[dim]No items dropped.[/]", (0, 2)))
        return
    for drop in result.items:
        cprint(Padding(f"[dim]Power level {drop.power_level}[/]", (0, 2)))
        print_item_sheet(drop.item, padding=4)


def _entity_row(entity: CombatEntity, selected: bool) -> list[str]:
    stats = entity.stats
    marker = "🎯" if selected else ""
    status = "💀" if not entity.is_alive else (entity.intent or "")
    return [
        marker,
        entity.name if entity.is_alive else f"[dim]{entity.name}[/]",
        f"{make_bar(stats.hp, stats.max_hp, color='red')} {stats.hp:>3}/{stats.max_hp:<3}",
        f"{stats.es}/{stats.max_es}" if stats.max_es else "",
        f"{stats.damage_type.emoji} {stats.damage:g}",
        status,
    ]


def print_combat_sheet(engine: CombatEngine) -> None:
    """
    Prints the current fight: player, enemies, phase and recent log.

    Args:
        engine (CombatEngine): The engine to display.

    """
    crule(
        f"Fight {engine.current_fight}/{engine.total_fights} - "
        f"{engine.turn_phase.emoji} {engine.turn_phase.display_name}"
    )
    table = Table(pad_edge=False)
    table.add_column("", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("HP", justify="right")
    table.add_column("ES", justify="right")
    table.add_column("Damage", justify="right")
    table.add_column("Intent")
    if engine.player is not None:
        table.add_row(*_entity_row(engine.player, selected=False))
        table.add_row()
    for enemy in engine.enemies:
        table.add_row(*_entity_row(enemy, enemy.id == engine.selected_target_id))
    cprint(table)
    for line in engine.combat_log:
        cprint(Padding(f"[dim]{line}[/]", (0, 2)))


def print_stat_sheet(aggregator: StatAggregator, show_sources: bool = True) -> None:
    """
    Prints the player's non-zero stats and where they come from.

    Args:
        aggregator (StatAggregator): The aggregator to display.
        show_sources (bool): Whether to list the contributing sources.

    """
    vitals = aggregator.get_vitals()
    cprint(
        f"  HP: [green]{vitals.hp}/{vitals.max_hp}[/], "
        f"MP: [blue]{vitals.mp}/{vitals.max_mp}[/], "
        f"ES: [cyan]{vitals.es}/{vitals.max_es}[/]"
    )
    table = Table(title="Stats", pad_edge=False)
    table.add_column("Stat", style="bold")
    table.add_column("Total", justify="right", style="cyan")
    if show_sources:
        table.add_column("Sources")
    totals = aggregator.get_total_stats()
    for stat, value in totals.items():
        if not value:
            continue
        row = [stat.display_name, f"{value:g}"]
        if show_sources:
            row.append(
                ", ".join(
                    f"{c.source} {c.value:+g}{'%' if c.is_multiplicative else ''}"
                    for c in aggregator.get_stat_breakdown(stat)
                )
            )
        table.add_row(*row)
    cprint(table)


def print_content_repository_summary(repo: ContentRepository) -> None:
    """
    Prints a summary of all available content in the repository.

    Args:
        repo (ContentRepository): The loaded repository.

    """
    cprint("\n[bold cyan]📚 Content Repository Summary[/bold cyan]")
    for category in ItemCategory:
        items = repo.items_by_category(category)
        cprint(f"\n[green]{category.display_name} ({len(items)})[/green]:")
        for item in items:
            cprint(
                Padding(
                    f"[blue]{item.name}[/] - {item.slot_type.display_name}, "
                    f"level {item.required_level}",
                    (0, 2),
                )
            )
    cprint(f"\n[green]Affixes ({len(repo.affixes)})[/green]:")
    for affix in repo.affixes.values():
        cprint(
            Padding(
                f"[blue]{affix.name}[/] - {affix.kind.display_name}, "
                f"{len(affix.tiers)} tier(s)",
                (0, 2),
            )
        )
    for number, tier in repo.enemy_tiers.items():
        cprint(
            f"\n[green]Tier {number} enemies ({len(tier.enemies)}, "
            f"weight {tier.spawn_weight:g})[/green]:"
        )
        for enemy in tier.enemies:
            cprint(
                Padding(
                    f"[red]{enemy.name}[/] - HP {enemy.stats.max_hp}, "
                    f"{enemy.stats.damage_type.emoji} {enemy.stats.damage:g}",
                    (0, 2),
                )
            )


def print_damage_types_reference() -> None:
    """Prints every damage type with its emoji and color."""
    cprint("\n[bold]Damage Types[/bold]:")
    for damage_type in DamageType:
        cprint(Padding(f"{damage_type.emoji} {damage_type.colored_name}", (0, 2)))
