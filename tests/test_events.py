"""
tests/test_events.py — Unit Tests for the Economic Event Types
===============================================================
"""

from __future__ import annotations

import dataclasses

import pytest

from highroller.engine.events import EventKind, GameResult, ShopPurchase, Transfer, Work


class TestEventKinds:
    @pytest.mark.parametrize(
        ("event", "kind"),
        [
            (GameResult("coinflip", 1, 100), EventKind.GAME_RESULT),
            (ShopPurchase(1, "lottoticket"), EventKind.SHOP_PURCHASE),
            (Transfer(2_500, 1), EventKind.TRANSFER),
            (Work(1), EventKind.WORK),
        ],
    )
    def test_kind_and_user(self, event, kind):
        assert event.kind == kind
        assert event.user_id == 1

    def test_kind_renders_as_plain_string(self):
        assert f"{Work(1).kind}" == "work"


class TestGameResult:
    @pytest.mark.parametrize(("payout", "won"), [(1, True), (0, False), (-500, False)])
    def test_won(self, payout, won):
        assert GameResult("roll", 1, payout).won is won

    def test_events_are_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            GameResult("roll", 1, 100).payout = 5
