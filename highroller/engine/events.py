"""
highroller.engine.events — Economic Events
===========================================

Every economic action a command handler completes (a wager, a shop
purchase, a coin transfer, a work shift) is normalized into one of the
immutable event types below before it reaches the goal tracker.

The payout on a :class:`GameResult` is the *final* payout, i.e. after the
effect pipeline has run.  It may be negative for a lost wager.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar

__all__ = [
    "Event",
    "EventKind",
    "GameResult",
    "ShopPurchase",
    "Transfer",
    "Work",
]


class EventKind(enum.StrEnum):
    """Discriminator shared by every event variant."""
    GAME_RESULT = "game_result"
    SHOP_PURCHASE = "shop_purchase"
    TRANSFER = "transfer"
    WORK = "work"


# ---------------------------------------------------------------------------
# Event variants
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class GameResult:
    """A completed wager.  ``payout`` is signed (negative on a loss)."""

    kind: ClassVar[EventKind] = EventKind.GAME_RESULT

    game_id: str
    user_id: int
    payout: int

    @property
    def won(self) -> bool:
        return self.payout > 0


@dataclass(frozen=True, slots=True)
class ShopPurchase:
    """A shop item bought by ``user_id``."""

    kind: ClassVar[EventKind] = EventKind.SHOP_PURCHASE

    user_id: int
    item_id: str


@dataclass(frozen=True, slots=True)
class Transfer:
    """Coins sent from ``sender_id`` to another player."""

    kind: ClassVar[EventKind] = EventKind.TRANSFER

    amount: int
    sender_id: int

    @property
    def user_id(self) -> int:
        return self.sender_id


@dataclass(frozen=True, slots=True)
class Work:
    """A work or dig shift completed by ``user_id``."""

    kind: ClassVar[EventKind] = EventKind.WORK

    user_id: int


Event = GameResult | ShopPurchase | Transfer | Work
