"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import asyncio
import random
from datetime import date

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from highroller.database.models import Base, GamblingProfile
from highroller.engine.effects import EffectRegistry, default_effect_registry
from highroller.engine.goals import GoalRegistry, default_goal_registry
from highroller.services.store import SqlEconomyStore

_bigint_sqlite_registered = False

TODAY = date(2026, 1, 15)
YESTERDAY = date(2026, 1, 14)


def _register_bigint_sqlite_compat():
    """Map BigInteger → INTEGER on SQLite so autoincrement works (idempotent)."""
    global _bigint_sqlite_registered
    if _bigint_sqlite_registered:
        return
    from sqlalchemy import BigInteger
    from sqlalchemy.ext.compiler import compiles

    @compiles(BigInteger, "sqlite")
    def _compile_bigint_as_integer(type_, compiler, **kw):
        return "INTEGER"

    _bigint_sqlite_registered = True


_register_bigint_sqlite_compat()


def run_async(coro):
    """Drive a coroutine to completion without pytest-asyncio."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def make_profile(
    user_id: int = 1000,
    *,
    coins: int = 50_000,
    gems: int = 0,
    level: int = 0,
    prestige: int = 0,
) -> GamblingProfile:
    """A transient profile usable as an EconomyActor."""
    return GamblingProfile(
        id=user_id, coins=coins, gems=gems, level=level, prestige=prestige,
    )


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Highroller tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def store(db_engine: Engine) -> SqlEconomyStore:
    return SqlEconomyStore(db_engine)


@pytest.fixture
def goal_registry() -> GoalRegistry:
    """The reference goal catalog with a seeded selector."""
    return default_goal_registry(random.Random(1234))


@pytest.fixture
def effect_registry() -> EffectRegistry:
    return default_effect_registry()


@pytest.fixture
def profile() -> GamblingProfile:
    return make_profile()
