"""
highroller.database.engine — Database Connection & Async Helper
================================================================

Command handlers run on the bot's ``asyncio`` event loop while SQLAlchemy
+ psycopg2 is synchronous.  Store methods are plain sync functions; the
async façade ships them to a worker thread with :func:`run_db`.

Usage::

    from highroller.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    # Inside an async command handler:
    goals = await run_db(store.load_goals, user_id)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from highroller.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

# Sized for one bot process
POOL_OPTIONS: dict[str, Any] = {
    "pool_size": 5,
    "max_overflow": 10,
    "pool_pre_ping": True,
    "pool_timeout": 10,
    "pool_recycle": 3600,
}


# ---------------------------------------------------------------------------
# Engine & schema
# ---------------------------------------------------------------------------
def create_db_engine(url: str | None = None, **overrides: Any) -> Engine:
    """Build the engine for *url*, falling back to ``DATABASE_URL``.

    Keyword *overrides* replace entries of :data:`POOL_OPTIONS` or pass
    further :func:`sqlalchemy.create_engine` arguments.

    Raises
    ------
    RuntimeError
        If neither *url* nor ``DATABASE_URL`` is available.
    """
    url = url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and point it at the gambling database."
        )

    engine = create_engine(url, **{**POOL_OPTIONS, **overrides})
    logger.info(
        "Gambling database engine ready → %s/%s",
        engine.url.host or "local", engine.url.database,
    )
    return engine


def init_db(engine: Engine) -> None:
    """Create any missing gambling tables.

    Production schemas are migrated with ``alembic upgrade head``.
    """
    Base.metadata.create_all(engine)
    logger.info("Gambling tables verified: %s", ", ".join(Base.metadata.tables))


# ---------------------------------------------------------------------------
# Units of work
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine) -> Iterator[Session]:
    """One transaction: commits when the block exits, rolls back if it raises.

    Attributes stay loaded after the commit, so rows read inside the block
    can still be converted once it has closed.
    """
    with Session(engine, expire_on_commit=False) as session, session.begin():
        yield session


async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Await a synchronous store call without blocking the event loop."""
    return await asyncio.to_thread(func, *args, **kwargs)
