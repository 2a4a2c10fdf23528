"""
highroller.engine.actor — The EconomyActor capability
======================================================

The engine never depends on a concrete row schema.  Anything that exposes
a coin balance, a gem balance and a derived maximum bet can be credited by
the goal tracker or sized by a goal's target function.

Bet validation lives here too: the engine never rejects an event, so
callers run :func:`verify_bet` *before* they compute an outcome.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from highroller.constants import MIN_BET, format_num

__all__ = [
    "BetError",
    "EconomyActor",
    "InsufficientFundsError",
    "MaximumBetError",
    "MinimumBetError",
    "compute_max_bet",
    "verify_bet",
]


@runtime_checkable
class EconomyActor(Protocol):
    """Per-user balance row as seen by the engine."""

    coins: int
    gems: int

    @property
    def max_bet(self) -> int: ...


# ---------------------------------------------------------------------------
# Max bet formula
# ---------------------------------------------------------------------------
def compute_max_bet(level: int, prestige: int) -> int:
    """Largest wager unlocked at *level* / *prestige*.

    ``max(level * 10_000, 10_000)`` scaled by ``(10 + prestige) / 10`` so
    every prestige adds 10% on top of the level allowance.
    """
    base_amount = max(level * 10_000, 10_000)
    return base_amount * (10 + prestige) // 10


# ---------------------------------------------------------------------------
# Bet validation
# ---------------------------------------------------------------------------
class BetError(ValueError):
    """A wager that must be refused before any outcome is computed."""


class MinimumBetError(BetError):
    def __init__(self, minimum: int) -> None:
        self.minimum = minimum
        super().__init__(f"The minimum bet for this game is `{format_num(minimum)}`!")


class MaximumBetError(BetError):
    def __init__(self, maximum: int) -> None:
        self.maximum = maximum
        super().__init__(f"The maximum bet you've unlocked is `{format_num(maximum)}`!")


class InsufficientFundsError(BetError):
    def __init__(self, required: int) -> None:
        self.required = required
        super().__init__(
            f"You do not have enough to make this bet. You need {format_num(required)} more coins."
        )


def verify_bet(actor: EconomyActor, bet: int, *, min_bet: int = MIN_BET) -> None:
    """Raise a :class:`BetError` unless *actor* may wager *bet* coins."""
    if bet < min_bet:
        raise MinimumBetError(min_bet)

    maximum = actor.max_bet
    if bet > maximum:
        raise MaximumBetError(maximum)

    if bet > actor.coins:
        raise InsufficientFundsError(bet - actor.coins)
