"""
Tests for the core utilities and validation helpers.
"""

import random

import pytest
from core.error_handling import (
    ErrorHandler,
    ErrorSeverity,
    ensure_int_in_range,
    ensure_non_negative_int,
)
from core.logging import format_context, get_logger
from core.utils import make_bar, roll_percent, round_half_up, weighted_choice


def test_weighted_choice_never_picks_zero_weights(rng):
    """Test that keys with zero weight are never returned."""
    picks = {weighted_choice(rng, {"a": 0, "b": 1, "c": 0}) for _ in range(200)}
    assert picks == {"b"}


def test_weighted_choice_follows_weights(rng):
    """Test that picks roughly follow the weights."""
    counts = {"common": 0, "rare": 0}
    for _ in range(5000):
        counts[weighted_choice(rng, {"common": 90, "rare": 10})] += 1
    assert 0.85 < counts["common"] / 5000 < 0.95


def test_weighted_choice_all_zero_returns_first_key(rng):
    """Test the all-zero fallback."""
    assert weighted_choice(rng, {"x": 0, "y": 0}) == "x"


def test_weighted_choice_empty_raises(rng):
    """Test that an empty table is an error."""
    with pytest.raises(ValueError, match="empty"):
        weighted_choice(rng, {})


def test_roll_percent_bounds():
    """Test that 0% never succeeds and 100% always does."""
    rng = random.Random(7)
    assert not any(roll_percent(rng, 0) for _ in range(100))
    assert all(roll_percent(rng, 100) for _ in range(100))


@pytest.mark.parametrize(
    "value, digits, expected",
    [
        (2.5, 0, 3),
        (3.5, 0, 4),
        (-2.5, 0, -2),
        (0.125, 2, 0.13),
        (7.2, 0, 7),
    ],
)
def test_round_half_up(value, digits, expected):
    """Test that halves round towards positive infinity."""
    assert round_half_up(value, digits) == pytest.approx(expected)


def test_make_bar_is_clamped():
    """Test that the bar never overflows its length."""
    assert make_bar(20, 10, length=4).count("▮") == 4
    assert make_bar(5, 0, length=4).count("▯") == 4


def test_ensure_int_in_range_corrects_values():
    """Test that out-of-range and invalid values are corrected."""
    assert ensure_int_in_range(5, "level", 1) == 5
    assert ensure_int_in_range(0, "level", 1) == 1
    assert ensure_int_in_range(12, "tier", 1, 3) == 3
    assert ensure_int_in_range("x", "tier", 1, 3, default=2) == 2
    assert ensure_int_in_range(True, "tier", 1, 3) == 1


def test_ensure_non_negative_int_corrects_values():
    """Test that negative values are corrected."""
    assert ensure_non_negative_int(3, "count") == 3
    assert ensure_non_negative_int(-4, "count") == 0
    assert ensure_non_negative_int(None, "count", default=2) == 2


def test_safe_execute_returns_default_on_error():
    """Test that safe_execute records the failure and returns the default."""
    handler = ErrorHandler()

    def failing() -> int:
        raise KeyError("missing")

    assert handler.safe_execute(failing, 42, "Lookup failed") == 42
    assert len(handler.error_history) == 1
    handler.clear()
    assert handler.error_history == []


def test_errors_at_least_filters_by_severity():
    """Test filtering the history by minimum severity."""
    handler = ErrorHandler()
    handler.handle("minor", ErrorSeverity.LOW)
    handler.handle("listener", ErrorSeverity.MEDIUM, {"event": "log_updated"})
    handler.handle("broken", ErrorSeverity.CRITICAL, exception=ValueError("bad"))

    assert [e.message for e in handler.errors_at_least(ErrorSeverity.MEDIUM)] == [
        "listener",
        "broken",
    ]
    assert str(handler.error_history[1]) == "MEDIUM: listener [event=log_updated]"


def test_loggers_share_the_engine_namespace():
    """Test that component loggers are children of the engine logger."""
    assert get_logger().name == "crawler"
    assert get_logger("combat").name == "crawler.combat"
    assert get_logger("crawler.loot").name == "crawler.loot"
    assert get_logger("combat").parent is get_logger()
    assert format_context("Rolled", {"tier": 2}) == "Rolled [tier=2]"
    assert format_context("Rolled") == "Rolled"
