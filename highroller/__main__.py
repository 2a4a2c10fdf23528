"""
highroller.__main__ — Entry point for ``python -m highroller``
===============================================================

Bootstraps the storage the bot's command handlers rely on:

1. Load .env (``DATABASE_URL``).
2. Load config.yaml if present (economy tuning).
3. Create the SQLAlchemy engine and ensure tables exist.
4. Build the dispatch façade and log its goal and effect catalogs.

Run with::

    uv run python -m highroller
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from highroller.config import HighrollerConfig, load_config
from highroller.database.engine import create_db_engine, init_db
from highroller.services.dispatch import Dispatch

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("highroller")


def main() -> None:
    """Prepare the database and report the active catalogs."""

    # 1. Environment variables (secrets).
    load_dotenv()

    # 2. Economy tuning.
    cfg = load_config() if Path("config.yaml").exists() else HighrollerConfig()
    logger.info(
        "Economy: %d goals/day, +%d coins per goal, +%d gems for the set",
        cfg.daily_goal_count, cfg.goal_completion_coins, cfg.all_goals_gems,
    )

    # 3. Database.
    try:
        engine = create_db_engine()
    except RuntimeError as exc:
        logger.critical("%s", exc)
        sys.exit(1)
    init_db(engine)

    # 4. Catalogs.
    try:
        dispatch = Dispatch.from_engine(engine, cfg)
    except ValueError as exc:
        logger.critical("%s", exc)
        sys.exit(1)
    logger.info("Goal pool (%d): %s", len(dispatch.goals), ", ".join(dispatch.goals))
    logger.info("Effects (%d): %s", len(dispatch.effects), ", ".join(dispatch.effects))
    logger.info("New profiles start with %d coins", cfg.start_amount)


if __name__ == "__main__":
    main()
