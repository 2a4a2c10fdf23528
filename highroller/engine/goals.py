"""
highroller.engine.goals — Daily Goal Registry & Tracker
========================================================

Handler-registry implementation of the daily quests.  Each goal id maps to
a :class:`GoalDefinition` bundling three pure functions:

* ``target(actor, rng)`` — sizes the goal once, when the day's set is
  drawn, using the registry's random source.  Richer players may get
  harder targets.
* ``description(target)`` — human readable title.
* ``update(goal, event)`` — inspects one event, mutates only that goal's
  progress and returns ``True`` when it changed it.

This module is pure calculation — no database I/O, no Discord I/O.
Selection with persistence lives in :mod:`highroller.services.goal_service`
and reward application in :mod:`highroller.services.dispatch`.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType

from highroller.constants import DAILY_GOAL_COUNT, format_num
from highroller.engine.actor import EconomyActor
from highroller.engine.events import Event, GameResult, ShopPurchase, Transfer, Work

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_GOALS",
    "GoalDefinition",
    "GoalInstance",
    "GoalRegistry",
    "TrackResult",
    "default_goal_registry",
    "describe_goal",
    "track_event",
]

LOTTO_TICKET_ID = "lottoticket"
HIGHER_OR_LOWER_ID = "higherorlower"
GIFT_MIN_AMOUNT = 2_500


# ---------------------------------------------------------------------------
# GoalInstance — one user's progress on one goal for one day
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class GoalInstance:
    """Progress row for a selected goal.

    ``target`` is frozen when the set is drawn; ``progress`` is kept in
    ``[0, target]`` and the goal is complete exactly when they are equal.
    """

    user_id: int
    goal_id: str
    day: date
    target: int
    progress: int = 0

    @property
    def completed(self) -> bool:
        return self.progress == self.target

    def is_for(self, day: date) -> bool:
        return self.day == day

    def update_progress(self, value: int) -> None:
        self.progress = min(self.progress + value, self.target)

    def set_progress(self, value: int) -> None:
        self.progress = max(0, min(value, self.target))

    def reset_progress(self) -> None:
        self.progress = 0

    def set_completed(self) -> None:
        self.progress = self.target


# ---------------------------------------------------------------------------
# GoalDefinition
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class GoalDefinition:
    id: str
    target: Callable[[EconomyActor, random.Random], int]
    description: Callable[[int], str]
    update: Callable[[GoalInstance, Event], bool]


# ---------------------------------------------------------------------------
# Update handlers — pure functions (goal, event) → changed
# ---------------------------------------------------------------------------
def _lotto_update(goal: GoalInstance, event: Event) -> bool:
    """Completes when a lottery ticket is bought."""
    if not isinstance(event, ShopPurchase) or event.item_id != LOTTO_TICKET_ID:
        return False
    goal.set_completed()
    return True


def _gift_update(goal: GoalInstance, event: Event) -> bool:
    """Completes on a single transfer of at least 2,500 coins."""
    if not isinstance(event, Transfer) or event.amount < GIFT_MIN_AMOUNT:
        return False
    goal.set_completed()
    return True


def _count_wins(goal: GoalInstance, event: Event) -> bool:
    if not isinstance(event, GameResult) or not event.won:
        return False
    goal.update_progress(1)
    return True


def _count_work(goal: GoalInstance, event: Event) -> bool:
    if not isinstance(event, Work):
        return False
    goal.update_progress(1)
    return True


def _win_streak(goal: GoalInstance, event: Event) -> bool:
    """+1 per win; any loss drops the streak back to zero."""
    if not isinstance(event, GameResult):
        return False
    if not event.won:
        had_progress = goal.progress != 0
        goal.reset_progress()
        return had_progress
    goal.update_progress(1)
    return True


def _higher_lower_streak(goal: GoalInstance, event: Event) -> bool:
    """Progress mirrors the streak of the latest Higher or Lower game.

    Each correct guess is worth 1,000 coins, so the streak length is
    ``payout // 1000``.  Later games overwrite earlier ones.
    """
    if not isinstance(event, GameResult) or event.game_id != HIGHER_OR_LOWER_ID:
        return False
    before = goal.progress
    goal.set_progress(event.payout // 1000)
    return goal.progress != before


def _accumulate_winnings(goal: GoalInstance, event: Event) -> bool:
    if not isinstance(event, GameResult) or not event.won:
        return False
    goal.update_progress(event.payout)
    return True


def _accumulate_stakes(goal: GoalInstance, event: Event) -> bool:
    """Counts coins moved by wagers, won or lost."""
    if not isinstance(event, GameResult) or event.payout == 0:
        return False
    goal.update_progress(abs(event.payout))
    return True


def _accumulate_transfers(goal: GoalInstance, event: Event) -> bool:
    if not isinstance(event, Transfer) or event.amount <= 0:
        return False
    goal.update_progress(event.amount)
    return True


# ---------------------------------------------------------------------------
# Reference goal catalog
# ---------------------------------------------------------------------------
DEFAULT_GOALS: tuple[GoalDefinition, ...] = (
    GoalDefinition(
        id="lotto",
        target=lambda actor, rng: 1,
        description=lambda t: "Buy a lottery ticket",
        update=_lotto_update,
    ),
    GoalDefinition(
        id="gift",
        target=lambda actor, rng: 1,
        description=lambda t: f"Send a gift of at least {format_num(GIFT_MIN_AMOUNT)} coins",
        update=_gift_update,
    ),
    GoalDefinition(
        id="win10",
        target=lambda actor, rng: rng.randint(7, 10),
        description=lambda t: f"Win {t} times",
        update=_count_wins,
    ),
    GoalDefinition(
        id="higherlower",
        target=lambda actor, rng: rng.randint(4, 8),
        description=lambda t: f"Hit a streak of {t}x on Higher or Lower",
        update=_higher_lower_streak,
    ),
    GoalDefinition(
        id="winmaxbet",
        target=lambda actor, rng: max(1, min(actor.max_bet, actor.coins)),
        description=lambda t: f"Win {format_num(t)} coins",
        update=_accumulate_winnings,
    ),
    GoalDefinition(
        id="win3row",
        target=lambda actor, rng: 3,
        description=lambda t: "Win 3 times in a row",
        update=_win_streak,
    ),
    GoalDefinition(
        id="allin",
        target=lambda actor, rng: min(max(actor.coins, 1_000), actor.max_bet),
        description=lambda t: f"Go all in ({format_num(t)})",
        update=_accumulate_stakes,
    ),
    GoalDefinition(
        id="sendcoins",
        target=lambda actor, rng: max(min(actor.coins // 10, actor.max_bet // 10), 2_500),
        description=lambda t: f"Send coins ({format_num(t)})",
        update=_accumulate_transfers,
    ),
    GoalDefinition(
        id="work",
        target=lambda actor, rng: rng.randint(3, 7),
        description=lambda t: f"Work or Dig {t}x times",
        update=_count_work,
    ),
)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
class GoalRegistry(Mapping[str, GoalDefinition]):
    """Immutable id → :class:`GoalDefinition` catalog with daily selection.

    Parameters
    ----------
    definitions : goal definitions; ids must be unique.
    rng : random source for daily selection and target sizing (inject a
        seeded one in tests).
    """

    def __init__(
        self,
        definitions: Iterable[GoalDefinition],
        *,
        rng: random.Random | None = None,
    ) -> None:
        table: dict[str, GoalDefinition] = {}
        for definition in definitions:
            if definition.id in table:
                raise ValueError(f"Duplicate goal id: {definition.id!r}")
            table[definition.id] = definition
        self._definitions = MappingProxyType(table)
        self._rng = rng or random.Random()

    def __getitem__(self, goal_id: str) -> GoalDefinition:
        return self._definitions[goal_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def select_daily(self, count: int = DAILY_GOAL_COUNT) -> list[GoalDefinition]:
        """Draw *count* distinct definitions uniformly without replacement."""
        if count > len(self._definitions):
            raise ValueError(
                f"Cannot select {count} goals from a pool of {len(self._definitions)}"
            )
        return self._rng.sample(list(self._definitions.values()), count)

    def new_daily_set(
        self,
        actor: EconomyActor,
        user_id: int,
        day: date,
        count: int = DAILY_GOAL_COUNT,
    ) -> list[GoalInstance]:
        """Draw and size a fresh goal set for *user_id* on *day*."""
        return [
            GoalInstance(
                user_id=user_id,
                goal_id=definition.id,
                day=day,
                target=definition.target(actor, self._rng),
            )
            for definition in self.select_daily(count)
        ]


def default_goal_registry(rng: random.Random | None = None) -> GoalRegistry:
    """Build the nine-goal reference catalog."""
    return GoalRegistry(DEFAULT_GOALS, rng=rng)


# ---------------------------------------------------------------------------
# Tracker
# ---------------------------------------------------------------------------
@dataclass
class TrackResult:
    """Outcome of feeding one event to a goal set."""

    changed: list[GoalInstance] = field(default_factory=list)
    newly_completed: list[GoalInstance] = field(default_factory=list)
    all_completed: bool = False


def track_event(
    goals: list[GoalInstance],
    event: Event,
    registry: GoalRegistry,
) -> TrackResult:
    """Apply *event* to every incomplete goal in *goals*.

    Mutates the goal instances in place.  Goals whose id is no longer
    registered are skipped.  ``all_completed`` is only ever ``True`` on the
    call that changed something and left the whole set complete, which is
    what gates the all-goals bonus to a single payment.
    """
    result = TrackResult()

    for goal in goals:
        if goal.completed:
            continue

        definition = registry.get(goal.goal_id)
        if definition is None:
            logger.debug("Skipping unregistered goal %r for user %d", goal.goal_id, goal.user_id)
            continue

        if definition.update(goal, event):
            result.changed.append(goal)
            if goal.completed:
                result.newly_completed.append(goal)

    if result.changed:
        result.all_completed = all(goal.completed for goal in goals)

    return result


# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------
def describe_goal(goal: GoalInstance, registry: GoalRegistry) -> str:
    """Markdown title + progress line for *goal*.

    Unregistered goals fall back to their raw id as the title.
    """
    definition = registry.get(goal.goal_id)
    title = definition.description(goal.target) if definition else goal.goal_id
    return (
        f"**{title}**\n"
        f"Progress: `{format_num(goal.progress)}/{format_num(goal.target)}`"
    )
