"""
highroller.services.goal_service — Daily Goal Selection
========================================================

Read-through cache of a user's daily goal set.  The cache key is the UTC
calendar day: if the stored set is empty or belongs to another day, a new
set is drawn, sized against the actor's current balances and written
back, replacing the old one.
"""

from __future__ import annotations

import logging
from datetime import date

from highroller.constants import DAILY_GOAL_COUNT, utc_today
from highroller.engine.actor import EconomyActor
from highroller.engine.goals import GoalInstance, GoalRegistry
from highroller.services.store import EconomyStore

logger = logging.getLogger(__name__)


def get_user_goals(
    store: EconomyStore,
    registry: GoalRegistry,
    actor: EconomyActor,
    user_id: int,
    today: date | None = None,
    *,
    count: int = DAILY_GOAL_COUNT,
) -> list[GoalInstance]:
    """Return today's goal set for *user_id*, drawing a new one if stale."""
    today = today or utc_today()

    goals = store.load_goals(user_id)
    if goals and all(goal.is_for(today) for goal in goals):
        return goals

    goals = registry.new_daily_set(actor, user_id, today, count)
    store.save_goals(user_id, goals)
    logger.info(
        "Drew daily goals for user %d on %s: %s",
        user_id, today.isoformat(), ", ".join(goal.goal_id for goal in goals),
    )
    return goals
