"""
Utilities module for the rules engine.

Provides console printing with rich formatting and the small random helpers
(weighted picks, percentage rolls) shared by the loot, enemy and combat code.
"""

from __future__ import annotations

import math
import random
from typing import Any, Mapping

from rich.console import Console
from rich.rule import Rule
from typing_extensions import TypeVar

# Initialize the rich console.
_console = Console(markup=True, width=120, force_terminal=True, force_jupyter=False)


def cprint(*args: Any, **kwargs: Any) -> None:
    """
    Custom print function to handle colored output.

    Args:
        *args: Arguments to pass to the console print function.
        **kwargs: Keyword arguments to pass to the console print function.

    """
    _console.print(*args, **kwargs)


def crule(*args: Any, **kwargs: Any) -> None:
    """
    Custom print function to handle colored output with a rule.

    Args:
        *args: Arguments to pass to the Rule constructor.
        **kwargs: Keyword arguments to pass to the Rule constructor.

    """
    _console.print(Rule(*args, **kwargs))


# ---- Random helpers ----

_K = TypeVar("_K")


def weighted_choice(rng: random.Random, weights: Mapping[_K, float]) -> _K:
    """
    Picks a key from a mapping of key to weight.

    Keys with a non-positive weight are never picked. When every weight is
    zero the first key is returned.

    Args:
        rng (random.Random): The random generator to draw from.
        weights (Mapping[_K, float]): The candidate keys and their weights.

    Returns:
        _K: The picked key.

    Raises:
        ValueError: If the mapping is empty.

    """
    if not weights:
        raise ValueError("Cannot pick from an empty weight table.")
    total = sum(weight for weight in weights.values() if weight > 0)
    if total <= 0:
        return next(iter(weights))
    roll = rng.random() * total
    for key, weight in weights.items():
        if weight <= 0:
            continue
        roll -= weight
        if roll < 0:
            return key
    # Floating point leftovers land on the last positive entry.
    return [key for key, weight in weights.items() if weight > 0][-1]


def roll_percent(rng: random.Random, chance: float) -> bool:
    """Returns True with the given probability, expressed as a percentage."""
    return rng.random() * 100 < chance


def make_bar(current: int, maximum: int, length: int = 10, color: str = "white") -> str:
    """
    Creates a visual progress bar representation.

    Args:
        current (int): The current value.
        maximum (int): The maximum value.
        length (int): The length of the bar in characters. Defaults to 10.
        color (str): The color for the filled portion. Defaults to "white".

    Returns:
        str: A formatted progress bar string.

    """
    if maximum <= 0:
        filled = 0
    else:
        filled = max(0, min(length, int((current / maximum) * length)))
    empty = length - filled
    bar = f"[{color}]" + "▮" * filled
    if empty > 0:
        bar += "[dim white]" + "▯" * empty + "[/]"
    bar += "[/]"
    return bar


def round_half_up(value: float, digits: int = 0) -> float:
    """Rounds halves upwards (2.5 -> 3), unlike the built-in round()."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor
