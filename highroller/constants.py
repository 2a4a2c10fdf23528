"""
highroller.constants — Shared Constants & Helpers
==================================================

Single source of truth for the reference economy constants and the small
formatting/calendar helpers used by the goal engine.  Runtime overrides
come from ``config.yaml`` (see :mod:`highroller.config`).
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta

# ---------------------------------------------------------------------------
# Reference economy constants
# ---------------------------------------------------------------------------
GOAL_COMPLETION_COINS: int = 5_000
"""Coins credited for each daily goal that completes."""

ALL_GOALS_GEMS: int = 1
"""Gems credited once the whole daily goal set is complete."""

DAILY_GOAL_COUNT: int = 3

START_AMOUNT: int = 1_000
"""Coin balance of a freshly created profile."""

MIN_BET: int = 1


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def format_num(value: int) -> str:
    """Render an integer with thousands separators (``12345`` → ``12,345``)."""
    return f"{value:,}"


def utc_today(now: datetime | None = None) -> date:
    """The current UTC calendar date — the key daily goal sets live under."""
    return (now or datetime.now(UTC)).astimezone(UTC).date()


def next_daily_reset(now: datetime | None = None) -> datetime:
    """Next UTC midnight, when the daily goal set rolls over."""
    tomorrow = utc_today(now) + timedelta(days=1)
    return datetime.combine(tomorrow, time.min, tzinfo=UTC)
