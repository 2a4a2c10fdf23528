"""
tests/test_dispatch.py — Integration Tests for Economic Event Dispatch
=======================================================================

End-to-end through :class:`Dispatch` with the SQLite-backed store: goal
selection, progress tracking, completion bonuses and payout boosts.
Goal pools are narrowed so the day's set is known up front.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest
from conftest import TODAY, YESTERDAY, make_profile, run_async

from highroller.config import HighrollerConfig
from highroller.engine.actor import MaximumBetError, MinimumBetError
from highroller.engine.events import GameResult, ShopPurchase, Transfer, Work
from highroller.engine.goals import GoalDefinition, GoalInstance, GoalRegistry, default_goal_registry
from highroller.services.dispatch import Dispatch

USER = 1000


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _pool(*goal_ids: str) -> GoalRegistry:
    reference = default_goal_registry()
    return GoalRegistry(reference[goal_id] for goal_id in goal_ids)


def _small_dispatch(store, *goal_ids: str) -> Dispatch:
    """Dispatch whose daily set is exactly *goal_ids*."""
    config = HighrollerConfig(daily_goal_count=len(goal_ids))
    return Dispatch(store, goals=_pool(*goal_ids), config=config)


def _win(payout: int = 100) -> GameResult:
    return GameResult(game_id="coinflip", user_id=USER, payout=payout)


def _win_three_times() -> GoalDefinition:
    return GoalDefinition(
        id="win3",
        target=lambda actor, rng: 3,
        description=lambda t: f"Win {t} times",
        update=default_goal_registry()["win10"].update,
    )


@pytest.fixture
def dispatch(store) -> Dispatch:
    return Dispatch(store, goals=_pool("lotto", "gift", "win3row"))


# ---------------------------------------------------------------------------
# Tests — Goal bonuses
# ---------------------------------------------------------------------------
class TestFireGoals:
    def test_third_win_credits_goal_bonus(self, store):
        dispatch = Dispatch(store, goals=GoalRegistry([
            _win_three_times(), *_pool("lotto", "gift").values(),
        ]))
        actor = make_profile(coins=1_000)

        dispatch.fire_sync(actor, _win(), TODAY)
        dispatch.fire_sync(actor, _win(), TODAY)
        assert actor.coins == 1_000

        dispatch.fire_sync(actor, _win(), TODAY)
        assert actor.coins == 6_000
        assert actor.gems == 0

        win3 = next(g for g in store.load_goals(USER) if g.goal_id == "win3")
        assert win3.completed

    def test_full_set_credits_gem_once(self, dispatch):
        actor = make_profile(coins=0)

        dispatch.fire_sync(actor, ShopPurchase(user_id=USER, item_id="lottoticket"), TODAY)
        dispatch.fire_sync(actor, Transfer(amount=3_000, sender_id=USER), TODAY)
        assert (actor.coins, actor.gems) == (10_000, 0)

        for _ in range(3):
            dispatch.fire_sync(actor, _win(), TODAY)
        assert (actor.coins, actor.gems) == (15_000, 1)

        dispatch.fire_sync(actor, _win(), TODAY)
        dispatch.fire_sync(actor, ShopPurchase(user_id=USER, item_id="lottoticket"), TODAY)
        assert (actor.coins, actor.gems) == (15_000, 1)

    def test_simultaneous_completions(self, store):
        def instant(goal_id):
            def update(goal, event):
                if not isinstance(event, Work):
                    return False
                goal.set_completed()
                return True
            return GoalDefinition(goal_id, lambda a, rng: 1, lambda t: goal_id, update)

        dispatch = Dispatch(store, goals=GoalRegistry([instant("a"), instant("b"), instant("c")]))
        actor = make_profile(coins=0)
        dispatch.fire_sync(actor, Work(user_id=USER), TODAY)
        assert (actor.coins, actor.gems) == (15_000, 1)

    def test_configured_rewards(self, store):
        config = HighrollerConfig(goal_completion_coins=100, all_goals_gems=3, daily_goal_count=1)
        dispatch = Dispatch(store, goals=_pool("work"), config=config)
        actor = make_profile(coins=0)

        goal = dispatch.goal_overview(actor, USER, TODAY)
        assert len(goal) == 1
        target = store.load_goals(USER)[0].target
        for _ in range(target):
            dispatch.fire_sync(actor, Work(user_id=USER), TODAY)
        assert (actor.coins, actor.gems) == (100, 3)

    def test_loss_breaks_streak_and_persists(self, dispatch, store):
        actor = make_profile()
        dispatch.fire_sync(actor, _win(), TODAY)
        dispatch.fire_sync(actor, _win(), TODAY)
        dispatch.fire_sync(actor, GameResult("coinflip", USER, -100), TODAY)

        streak = next(g for g in store.load_goals(USER) if g.goal_id == "win3row")
        assert streak.progress == 0

    def test_fire_returns_event(self, dispatch):
        event = Work(user_id=USER)
        assert dispatch.fire_sync(make_profile(), event, TODAY) is event


# ---------------------------------------------------------------------------
# Tests — Persistence behaviour
# ---------------------------------------------------------------------------
class TestFirePersistence:
    def _mock_store(self, goals):
        store = MagicMock()
        store.load_goals.return_value = goals
        return store

    def test_no_save_without_change(self):
        store = self._mock_store([GoalInstance(USER, "lotto", TODAY, 1)])
        _small_dispatch(store, "lotto").fire_sync(make_profile(), Work(user_id=USER), TODAY)
        store.save_goals.assert_not_called()

    def test_save_on_change(self):
        store = self._mock_store([GoalInstance(USER, "work", TODAY, 3)])
        _small_dispatch(store, "work").fire_sync(make_profile(), Work(user_id=USER), TODAY)
        store.save_goals.assert_called_once()
        (_, saved), _ = store.save_goals.call_args
        assert saved[0].progress == 1

    def test_unregistered_stored_goal_is_ignored(self):
        store = self._mock_store([
            GoalInstance(USER, "retired", TODAY, 2),
            GoalInstance(USER, "work", TODAY, 3),
        ])
        actor = make_profile(coins=0)
        _small_dispatch(store, "work").fire_sync(actor, Work(user_id=USER), TODAY)
        (_, saved), _ = store.save_goals.call_args
        assert [g.progress for g in saved] == [0, 1]
        assert actor.coins == 0

    def test_stale_set_redrawn_before_tracking(self, store):
        store.save_goals(USER, [GoalInstance(USER, "work", YESTERDAY, 3, 2)])
        dispatch = Dispatch(store, goals=_pool("work"), config=HighrollerConfig(daily_goal_count=1))
        dispatch.fire_sync(make_profile(), Work(user_id=USER), TODAY)

        (goal,) = store.load_goals(USER)
        assert goal.day == TODAY
        assert goal.progress == 1

    def test_store_error_propagates(self):
        store = MagicMock()
        store.load_goals.side_effect = RuntimeError("db down")
        with pytest.raises(RuntimeError):
            Dispatch(store).fire_sync(make_profile(), Work(user_id=USER), TODAY)


# ---------------------------------------------------------------------------
# Tests — Async façade
# ---------------------------------------------------------------------------
class TestAsync:
    def test_fire_runs_on_worker_thread(self, dispatch, store):
        actor = make_profile(coins=0)
        run_async(dispatch.fire(actor, ShopPurchase(user_id=USER, item_id="lottoticket"), TODAY))
        assert actor.coins == 5_000
        lotto = next(g for g in store.load_goals(USER) if g.goal_id == "lotto")
        assert lotto.completed

    def test_payout_consumes_effect(self, dispatch, store):
        now = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)
        store.add_effect(USER, "payout2x", now + timedelta(minutes=15))
        store.add_effect(USER, "luckychip", None)

        assert run_async(dispatch.payout(USER, 100, 150, True, now=now)) == 300
        assert [e.effect_id for e in store.load_effects(USER)] == ["payout2x"]

    def test_payout_sync_without_effects(self, dispatch):
        assert dispatch.payout_sync(USER, 100, -100, False) == -100

    def test_held_boost_keeps_loss(self, dispatch, store):
        now = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)
        store.add_effect(USER, "payout10x", now + timedelta(minutes=5))

        assert dispatch.payout_sync(USER, 100, -100, False, now=now) == -100
        assert len(store.load_effects(USER)) == 1


# ---------------------------------------------------------------------------
# Tests — Overview
# ---------------------------------------------------------------------------
class TestGoalOverview:
    def test_lists_every_goal(self, dispatch):
        lines = dispatch.goal_overview(make_profile(), USER, TODAY)
        assert len(lines) == 3
        assert any(line.startswith("**Win 3 times in a row**") for line in lines)
        assert all("Progress: `0/" in line for line in lines)


# ---------------------------------------------------------------------------
# Tests — Construction & configuration
# ---------------------------------------------------------------------------
class TestConfiguration:
    def test_goal_count_larger_than_pool_rejected(self, store):
        with pytest.raises(ValueError, match="goal pool"):
            Dispatch(store, config=HighrollerConfig(daily_goal_count=10))

    def test_goal_count_checked_against_custom_pool(self, store):
        with pytest.raises(ValueError):
            Dispatch(store, goals=_pool("lotto", "gift"))

    def test_goal_count_equal_to_pool_accepted(self, store):
        dispatch = Dispatch(store, config=HighrollerConfig(daily_goal_count=9))
        goals = dispatch.goal_overview(make_profile(), USER, TODAY)
        assert len(goals) == 9

    def test_from_engine_uses_start_amount(self, db_engine):
        dispatch = Dispatch.from_engine(db_engine, HighrollerConfig(start_amount=25_000))
        assert dispatch.store.load_profile(USER).coins == 25_000

    def test_from_engine_defaults(self, db_engine):
        dispatch = Dispatch.from_engine(db_engine)
        assert dispatch.store.load_profile(USER).coins == 1_000
        assert len(dispatch.goals) == 9

    def test_verify_bet_uses_configured_minimum(self, store):
        dispatch = Dispatch(store, config=HighrollerConfig(min_bet=500))
        dispatch.verify_bet(make_profile(), 500)
        with pytest.raises(MinimumBetError) as exc:
            dispatch.verify_bet(make_profile(), 499)
        assert exc.value.minimum == 500

    def test_verify_bet_checks_max_bet(self, store):
        with pytest.raises(MaximumBetError):
            Dispatch(store).verify_bet(make_profile(coins=1_000_000), 20_000)
