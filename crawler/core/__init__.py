"""
Core system module for the dungeon crawler rules engine.

This module contains the fundamental components shared by every subsystem,
including game constants, console helpers, error handling, the timer
scheduler and the state-change event system. Content loading and display
sheets live in `core.content` and `core.sheets`, and are imported directly.
"""

from .constants import (
    AffixKind,
    DamageType,
    Difficulty,
    EquipmentSlot,
    ItemCategory,
    ItemRarity,
    ProgressResult,
    StatKey,
    StatSourceType,
    TurnPhase,
)
from .error_handling import (
    ERROR_HANDLER,
    EngineError,
    ErrorHandler,
    ErrorSeverity,
    ensure_int_in_range,
    ensure_non_negative_int,
)
from .event_system import (
    EventEmitter,
    EventType,
    StateChangeEvent,
)
from .scheduler import (
    Scheduler,
)
from .utils import (
    cprint,
    crule,
    make_bar,
    roll_percent,
    round_half_up,
    weighted_choice,
)

__all__ = [
    # Import from constants.py
    "AffixKind",
    "DamageType",
    "Difficulty",
    "EquipmentSlot",
    "ItemCategory",
    "ItemRarity",
    "ProgressResult",
    "StatKey",
    "StatSourceType",
    "TurnPhase",
    # Import from error_handling.py
    "ERROR_HANDLER",
    "EngineError",
    "ErrorHandler",
    "ErrorSeverity",
    "ensure_int_in_range",
    "ensure_non_negative_int",
    # Import from event_system.py
    "EventEmitter",
    "EventType",
    "StateChangeEvent",
    # Import from scheduler.py
    "Scheduler",
    # Import from utils.py
    "cprint",
    "crule",
    "make_bar",
    "roll_percent",
    "round_half_up",
    "weighted_choice",
]
