"""
highroller.engine.effects — Effect Registry & Payout Resolver
==============================================================

Boost items bought in the shop become *effect instances* on the user's
ledger once activated.  Before a wager's payout is credited, the resolver
folds the ledger into the raw payout.

This module is pure calculation — no database I/O, no Discord I/O.  The
store-backed wrapper that loads the ledger and deletes consumed instances
is :mod:`highroller.services.payout_service`.

Resolution policy (accumulate, then floor at the base payout):

1. ``accumulated = 0``.
2. The first refund instance is consumed; on a loss it sets
   ``accumulated = bet``.
3. Every other instance: expired → consumed, no contribution;
   single use (no expiry) → consumed, still contributes once.
4. On a win, each surviving additive instance adds
   ``effect_fn(bet, base_payout)``; multiplicative-replace instances
   replace the running total when they beat it.
5. ``payout = max(accumulated, base_payout)`` when a refund or boost
   applied, otherwise ``base_payout`` unchanged.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from types import MappingProxyType

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_EFFECTS",
    "EffectCategory",
    "EffectDefinition",
    "EffectInstance",
    "EffectRegistry",
    "PayoutResolution",
    "default_effect_registry",
    "resolve_payout",
]

EffectFn = Callable[[int, int], int]


class EffectCategory(enum.StrEnum):
    """How an effect combines with the base payout."""
    REFUND = "refund"
    MULTIPLICATIVE_REPLACE = "multiplicative-replace"
    ADDITIVE_ACCUMULATE = "additive-accumulate"


# ---------------------------------------------------------------------------
# Definitions & instances
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class EffectDefinition:
    """Static description of a boost.

    ``effect_fn(bet, base_payout)`` must be pure and handles its own sign
    rules (a payout multiplier leaves losses untouched).  ``duration`` is
    ``None`` for single-use items.
    """

    id: str
    name: str
    category: EffectCategory
    effect_fn: EffectFn
    duration: timedelta | None = None
    description: str = ""


@dataclass(frozen=True, slots=True)
class EffectInstance:
    """One activated effect on a user's ledger.

    ``expiry is None`` → consumed on the next resolution.
    ``expiry`` set → active until the wall clock reaches it.
    """

    id: int
    effect_id: str
    expiry: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expiry is not None and self.expiry <= now


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
class EffectRegistry(Mapping[str, EffectDefinition]):
    """Immutable id → :class:`EffectDefinition` catalog.

    ``registry[effect_id]`` raises ``KeyError`` for an unknown id; effect
    ids only ever originate from this catalog, so that is a programming
    error.  Use :meth:`get` where stored data may reference a retired id.
    """

    def __init__(self, definitions: Iterable[EffectDefinition]) -> None:
        table: dict[str, EffectDefinition] = {}
        for definition in definitions:
            if definition.id in table:
                raise ValueError(f"Duplicate effect id: {definition.id!r}")
            table[definition.id] = definition
        self._definitions = MappingProxyType(table)

    def __getitem__(self, effect_id: str) -> EffectDefinition:
        return self._definitions[effect_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def expiry_for(self, effect_id: str, now: datetime) -> datetime | None:
        """Expiry timestamp for an instance of *effect_id* activated at *now*."""
        duration = self[effect_id].duration
        return now + duration if duration is not None else None


# ---------------------------------------------------------------------------
# Reference catalog
# ---------------------------------------------------------------------------
def _refund_stake(bet: int, _payout: int) -> int:
    return bet


def _payout_multiplier(factor: int) -> EffectFn:
    def _multiply(_bet: int, payout: int) -> int:
        if payout < 0:
            return payout
        return payout * factor
    return _multiply


def _payout_boost(factor: int, minutes: int) -> EffectDefinition:
    return EffectDefinition(
        id=f"payout{factor}x",
        name=f"Payout x{factor}",
        category=EffectCategory.ADDITIVE_ACCUMULATE,
        effect_fn=_payout_multiplier(factor),
        duration=timedelta(minutes=minutes),
        description=f"{factor}x payout from winning | Duration: `+{minutes} minute`",
    )


LUCKY_CHIP = EffectDefinition(
    id="luckychip",
    name="Lucky Chip",
    category=EffectCategory.REFUND,
    effect_fn=_refund_stake,
    description="Refund your bet if you lose",
)

DEFAULT_EFFECTS: tuple[EffectDefinition, ...] = (
    LUCKY_CHIP,
    _payout_boost(2, 15),
    _payout_boost(5, 10),
    _payout_boost(10, 5),
    _payout_boost(50, 2),
    _payout_boost(100, 1),
)


def default_effect_registry() -> EffectRegistry:
    """Build the reference catalog (luckychip + payout boosts)."""
    return EffectRegistry(DEFAULT_EFFECTS)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------
@dataclass
class PayoutResolution:
    """Final payout plus the ledger instances to delete."""

    payout: int
    removed: list[int] = field(default_factory=list)


def resolve_payout(
    ledger: Iterable[EffectInstance],
    registry: EffectRegistry,
    bet: int,
    base_payout: int,
    won: bool,
    *,
    now: datetime | None = None,
) -> PayoutResolution:
    """Fold *ledger* into *base_payout*.

    This is a PURE function: the caller deletes ``removed`` from storage.
    Instances whose effect id is not registered are skipped and left on
    the ledger.

    Parameters
    ----------
    ledger : active effect instances for the user
    registry : effect catalog
    bet : stake of the wager
    base_payout : unboosted payout (signed)
    won : whether the wager was won
    now : wall clock used for expiry checks (defaults to UTC now)
    """
    now = now or datetime.now(UTC)

    resolved: list[tuple[EffectInstance, EffectDefinition]] = []
    for instance in ledger:
        definition = registry.get(instance.effect_id)
        if definition is None:
            logger.warning(
                "Skipping effect instance %d: unknown effect id %r",
                instance.id, instance.effect_id,
            )
            continue
        resolved.append((instance, definition))

    accumulated = 0
    contributed = False
    removed: list[int] = []

    # Only the first refund instance is spent per wager
    for instance, definition in resolved:
        if definition.category == EffectCategory.REFUND:
            removed.append(instance.id)
            if not won:
                accumulated = bet
                contributed = True
            break

    for instance, definition in resolved:
        if instance.id in removed:
            continue

        if instance.is_expired(now):
            removed.append(instance.id)
            continue

        if instance.expiry is None:
            removed.append(instance.id)

        if not won:
            continue

        if definition.category == EffectCategory.ADDITIVE_ACCUMULATE:
            accumulated += definition.effect_fn(bet, base_payout)
            contributed = True
        elif definition.category == EffectCategory.MULTIPLICATIVE_REPLACE:
            accumulated = max(accumulated, definition.effect_fn(bet, base_payout))
            contributed = True

    payout = max(accumulated, base_payout) if contributed else base_payout
    if removed or payout != base_payout:
        logger.debug(
            "Resolved payout %d → %d (bet=%d, won=%s, removed=%s)",
            base_payout, payout, bet, won, removed,
        )
    return PayoutResolution(payout=payout, removed=removed)
