"""
highroller.services.payout_service — Store-backed Payout Resolution
====================================================================

Wraps the pure resolver in :mod:`highroller.engine.effects` with the
ledger I/O: load the user's active effects, resolve, then delete every
consumed or expired instance in one transaction.

Also owns effect *activation*, which is how instances enter the ledger.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from highroller.engine.effects import EffectRegistry, resolve_payout
from highroller.services.store import EconomyStore

logger = logging.getLogger(__name__)


def apply_effects(
    store: EconomyStore,
    registry: EffectRegistry,
    user_id: int,
    bet: int,
    base_payout: int,
    won: bool,
    *,
    now: datetime | None = None,
) -> int:
    """Return the boosted payout for a wager and spend consumed effects.

    The ledger is read and its spent instances deleted in one store
    transaction.  Store errors propagate; if it fails nothing was credited
    yet, so the caller can abort the command cleanly.
    """
    resolution = store.settle_effects(
        user_id,
        lambda ledger: resolve_payout(ledger, registry, bet, base_payout, won, now=now),
    )

    if resolution.payout != base_payout:
        logger.info(
            "Effects boosted payout for user %d: %d → %d",
            user_id, base_payout, resolution.payout,
        )
    return resolution.payout


def activate_effect(
    store: EconomyStore,
    registry: EffectRegistry,
    user_id: int,
    effect_id: str,
    amount: int = 1,
    *,
    now: datetime | None = None,
) -> list[int]:
    """Put *amount* instances of *effect_id* on the user's ledger.

    Timed effects expire ``duration`` after *now*; single-use effects get
    no expiry.  Returns the new instance ids.

    Raises
    ------
    KeyError
        If *effect_id* is not in the registry.
    ValueError
        If *amount* is not positive.
    """
    if amount <= 0:
        raise ValueError("amount must be a positive integer")

    now = now or datetime.now(UTC)
    expiry = registry.expiry_for(effect_id, now)

    ids = [store.add_effect(user_id, effect_id, expiry) for _ in range(amount)]
    logger.info(
        "Activated %d × %s for user %d (expires %s)",
        amount, effect_id, user_id, expiry.isoformat() if expiry else "on next use",
    )
    return ids
