"""
highroller.services.dispatch — Economic Event Dispatch
=======================================================

The façade command handlers call after they have settled a wager,
purchase, transfer or work shift.

Typical wager flow::

    dispatch = Dispatch.from_engine(engine, load_config())
    store = dispatch.store

    dispatch.verify_bet(profile, bet)          # raises BetError
    payout = await dispatch.payout(user_id, bet, raw_payout, won)
    profile.coins += payout
    await dispatch.fire(profile, GameResult("coinflip", user_id, payout))
    await run_db(store.save_profile, profile)

:meth:`Dispatch.fire` feeds the event to the user's daily goals and
credits completion bonuses straight onto the actor.  The caller persists
the actor afterwards.  Bonuses never pass through the effect pipeline.

Concurrency: no locks and no version checks.  The surrounding bot must
allow at most one in-flight economic action per user (the game cooldown).
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy import Engine

from highroller.config import HighrollerConfig
from highroller.database.engine import run_db
from highroller.engine.actor import EconomyActor, verify_bet
from highroller.engine.effects import EffectRegistry, default_effect_registry
from highroller.engine.events import Event
from highroller.engine.goals import (
    GoalRegistry,
    TrackResult,
    default_goal_registry,
    describe_goal,
    track_event,
)
from highroller.services.goal_service import get_user_goals
from highroller.services.payout_service import apply_effects
from highroller.services.store import EconomyStore, SqlEconomyStore

logger = logging.getLogger(__name__)


class Dispatch:
    """Owns the store handle and both registries.

    Parameters
    ----------
    store : persistence collaborator (see :class:`EconomyStore`)
    goals : goal catalog (defaults to the nine reference goals)
    effects : effect catalog (defaults to the reference boosts)
    config : economy tuning (defaults to the reference constants)

    Raises
    ------
    ValueError
        If ``config.daily_goal_count`` exceeds the size of the goal pool.
    """

    def __init__(
        self,
        store: EconomyStore,
        *,
        goals: GoalRegistry | None = None,
        effects: EffectRegistry | None = None,
        config: HighrollerConfig | None = None,
    ) -> None:
        self.store = store
        self.goals = goals if goals is not None else default_goal_registry()
        self.effects = effects if effects is not None else default_effect_registry()
        self.config = config or HighrollerConfig()

        if self.config.daily_goal_count > len(self.goals):
            raise ValueError(
                f"daily_goal_count={self.config.daily_goal_count} exceeds the "
                f"goal pool ({len(self.goals)} goals)"
            )

    @classmethod
    def from_engine(
        cls, engine: Engine, config: HighrollerConfig | None = None, **kwargs
    ) -> Dispatch:
        """Dispatch over a :class:`SqlEconomyStore` bound to *engine*.

        New profiles start with ``config.start_amount`` coins.
        """
        config = config or HighrollerConfig()
        store = SqlEconomyStore(engine, start_amount=config.start_amount)
        return cls(store, config=config, **kwargs)

    # -------------------------------------------------------------------
    # Bet validation
    # -------------------------------------------------------------------
    def verify_bet(self, actor: EconomyActor, bet: int) -> None:
        """Refuse *bet* with a :class:`BetError` before any outcome is rolled."""
        verify_bet(actor, bet, min_bet=self.config.min_bet)

    # -------------------------------------------------------------------
    # Goal tracking
    # -------------------------------------------------------------------
    def fire_sync(
        self, actor: EconomyActor, event: Event, today: date | None = None
    ) -> Event:
        """Run the goal tracker for *event* and credit *actor* in place.

        1. Load (or draw) today's goal set, sized against *actor*
        2. Apply the event to every incomplete goal
        3. Credit the per-goal bonus for each goal completed by this event
        4. Credit the all-goals bonus if this event finished the set
        5. Persist the set if anything changed
        """
        user_id = event.user_id
        goals = get_user_goals(
            self.store, self.goals, actor, user_id, today,
            count=self.config.daily_goal_count,
        )

        result = track_event(goals, event, self.goals)
        logger.debug(
            "%s event for user %d changed %d goal(s)",
            event.kind, user_id, len(result.changed),
        )
        self._credit(actor, user_id, result)

        if result.changed:
            self.store.save_goals(user_id, goals)

        return event

    async def fire(
        self, actor: EconomyActor, event: Event, today: date | None = None
    ) -> Event:
        """Async wrapper of :meth:`fire_sync` (runs on a worker thread)."""
        return await run_db(self.fire_sync, actor, event, today)

    def _credit(self, actor: EconomyActor, user_id: int, result: TrackResult) -> None:
        for goal in result.newly_completed:
            actor.coins += self.config.goal_completion_coins
            logger.info(
                "User %d completed goal %r (+%d coins)",
                user_id, goal.goal_id, self.config.goal_completion_coins,
            )

        if result.all_completed:
            actor.gems += self.config.all_goals_gems
            logger.info(
                "User %d completed all daily goals (+%d gems)",
                user_id, self.config.all_goals_gems,
            )

    # -------------------------------------------------------------------
    # Payout resolution
    # -------------------------------------------------------------------
    def payout_sync(
        self,
        user_id: int,
        bet: int,
        base_payout: int,
        won: bool,
        *,
        now: datetime | None = None,
    ) -> int:
        """Boost *base_payout* with the user's active effects."""
        return apply_effects(
            self.store, self.effects, user_id, bet, base_payout, won, now=now,
        )

    async def payout(
        self,
        user_id: int,
        bet: int,
        base_payout: int,
        won: bool,
        *,
        now: datetime | None = None,
    ) -> int:
        return await run_db(
            self.payout_sync, user_id, bet, base_payout, won, now=now,
        )

    # -------------------------------------------------------------------
    # Presentation
    # -------------------------------------------------------------------
    def goal_overview(
        self, actor: EconomyActor, user_id: int, today: date | None = None
    ) -> list[str]:
        """Rendered progress entries for the user's current goal set."""
        goals = get_user_goals(
            self.store, self.goals, actor, user_id, today,
            count=self.config.daily_goal_count,
        )
        return [describe_goal(goal, self.goals) for goal in goals]
