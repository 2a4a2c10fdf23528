"""
highroller.services.store — Economy Persistence
================================================

The engine only talks to storage through the narrow :class:`EconomyStore`
protocol.  :class:`SqlEconomyStore` is the SQLAlchemy implementation used
by the bot (PostgreSQL) and by the tests (in-memory SQLite).

All methods are synchronous; async callers go through
:func:`highroller.database.engine.run_db`.  Every method runs in its own
transaction and errors propagate unchanged.  There is no row versioning:
the last writer wins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy import Engine, delete, select

from highroller.constants import START_AMOUNT
from highroller.database.engine import get_session
from highroller.database.models import ActiveEffect, GamblingProfile, GoalProgress
from highroller.engine.effects import EffectInstance, PayoutResolution
from highroller.engine.goals import GoalInstance

logger = logging.getLogger(__name__)

__all__ = ["EconomyStore", "SqlEconomyStore"]


class EconomyStore(Protocol):
    """Storage operations the goal tracker and payout resolver need."""

    def load_goals(self, user_id: int) -> list[GoalInstance]: ...

    def save_goals(self, user_id: int, goals: list[GoalInstance]) -> None: ...

    def load_effects(self, user_id: int) -> list[EffectInstance]: ...

    def remove_effect(self, instance_id: int) -> None: ...

    def remove_effects(self, instance_ids: Iterable[int]) -> None: ...

    def add_effect(self, user_id: int, effect_id: str, expiry: datetime | None) -> int: ...

    def settle_effects(
        self,
        user_id: int,
        resolve: Callable[[list[EffectInstance]], PayoutResolution],
    ) -> PayoutResolution: ...


def _as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; stored values are always UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _to_instance(row: ActiveEffect) -> EffectInstance:
    return EffectInstance(id=row.id, effect_id=row.effect_id, expiry=_as_utc(row.expiry))


class SqlEconomyStore:
    """SQLAlchemy-backed :class:`EconomyStore`.

    Parameters
    ----------
    engine : SQLAlchemy engine
    start_amount : coin balance given to profiles created by :meth:`load_profile`
    """

    def __init__(self, engine: Engine, *, start_amount: int = START_AMOUNT) -> None:
        self.engine = engine
        self.start_amount = start_amount

    # -------------------------------------------------------------------
    # Goals
    # -------------------------------------------------------------------
    def load_goals(self, user_id: int) -> list[GoalInstance]:
        with get_session(self.engine) as session:
            rows = session.scalars(
                select(GoalProgress)
                .where(GoalProgress.user_id == user_id)
                .order_by(GoalProgress.goal_id)
            ).all()
            return [
                GoalInstance(
                    user_id=row.user_id,
                    goal_id=row.goal_id,
                    day=row.day,
                    target=row.target,
                    progress=row.progress,
                )
                for row in rows
            ]

    def save_goals(self, user_id: int, goals: list[GoalInstance]) -> None:
        """Replace the user's whole goal set with *goals*."""
        with get_session(self.engine) as session:
            session.execute(delete(GoalProgress).where(GoalProgress.user_id == user_id))
            session.add_all(
                GoalProgress(
                    user_id=user_id,
                    goal_id=goal.goal_id,
                    day=goal.day,
                    progress=goal.progress,
                    target=goal.target,
                )
                for goal in goals
            )

    # -------------------------------------------------------------------
    # Effect ledger
    # -------------------------------------------------------------------
    def load_effects(self, user_id: int) -> list[EffectInstance]:
        with get_session(self.engine) as session:
            rows = session.scalars(
                select(ActiveEffect)
                .where(ActiveEffect.user_id == user_id)
                .order_by(ActiveEffect.id)
            ).all()
            return [_to_instance(row) for row in rows]

    def settle_effects(
        self,
        user_id: int,
        resolve: Callable[[list[EffectInstance]], PayoutResolution],
    ) -> PayoutResolution:
        """Run *resolve* over the user's ledger and delete what it spent.

        Load, resolve and delete share one transaction; on PostgreSQL the
        ledger rows stay locked (``SELECT … FOR UPDATE``) until it commits.
        """
        with get_session(self.engine) as session:
            rows = session.scalars(
                select(ActiveEffect)
                .where(ActiveEffect.user_id == user_id)
                .order_by(ActiveEffect.id)
                .with_for_update()
            ).all()
            resolution = resolve([_to_instance(row) for row in rows])
            if resolution.removed:
                session.execute(
                    delete(ActiveEffect).where(ActiveEffect.id.in_(resolution.removed))
                )
                logger.debug("Spent effect instances %s", resolution.removed)
            return resolution

    def remove_effect(self, instance_id: int) -> None:
        self.remove_effects([instance_id])

    def remove_effects(self, instance_ids: Iterable[int]) -> None:
        """Delete every id in *instance_ids* in a single transaction."""
        ids = list(instance_ids)
        if not ids:
            return
        with get_session(self.engine) as session:
            session.execute(delete(ActiveEffect).where(ActiveEffect.id.in_(ids)))
        logger.debug("Removed effect instances %s", ids)

    def add_effect(self, user_id: int, effect_id: str, expiry: datetime | None) -> int:
        with get_session(self.engine) as session:
            row = ActiveEffect(user_id=user_id, effect_id=effect_id, expiry=expiry)
            session.add(row)
            session.flush()
            return row.id

    # -------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------
    def load_profile(self, user_id: int) -> GamblingProfile:
        """Fetch the user's profile, creating it on first use.

        The returned object is detached; hand it back to
        :meth:`save_profile` after mutating it.
        """
        with get_session(self.engine) as session:
            profile = session.get(GamblingProfile, user_id)
            if profile is None:
                profile = GamblingProfile(
                    id=user_id, coins=self.start_amount, gems=0, level=0, prestige=0,
                )
                session.add(profile)
                session.flush()
                logger.info("Created gambling profile for user %d", user_id)
            session.refresh(profile)
            session.expunge(profile)
            return profile

    def save_profile(self, profile: GamblingProfile) -> None:
        with get_session(self.engine) as session:
            session.merge(profile)
