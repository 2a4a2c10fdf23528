"""
highroller.config — YAML Configuration Loader
==============================================

Reads the ``economy`` section of ``config.yaml`` for the tunable
reference constants of the goal engine and the bet validator.  Secrets
(``DATABASE_URL``) stay in the environment / ``.env``.

Usage::

    from highroller.config import load_config

    cfg = load_config()                 # reads ./config.yaml by default
    print(cfg.goal_completion_coins)    # 5000
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from highroller.constants import (
    ALL_GOALS_GEMS,
    DAILY_GOAL_COUNT,
    GOAL_COMPLETION_COINS,
    MIN_BET,
    START_AMOUNT,
)


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class HighrollerConfig:
    """Immutable economy tuning.

    ``HighrollerConfig()`` gives the reference values, which is what the
    engine uses when no ``config.yaml`` is supplied.
    """

    goal_completion_coins: int = GOAL_COMPLETION_COINS
    all_goals_gems: int = ALL_GOALS_GEMS
    daily_goal_count: int = DAILY_GOAL_COUNT
    start_amount: int = START_AMOUNT
    min_bet: int = MIN_BET


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> HighrollerConfig:
    """Read *path* and return a :class:`HighrollerConfig` instance.

    Keys missing from the ``economy`` section keep their reference value.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ValueError
        If ``daily_goal_count`` is not positive.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    economy: dict = raw.get("economy") or {}
    defaults = HighrollerConfig()

    cfg = HighrollerConfig(
        goal_completion_coins=int(
            economy.get("goal_completion_coins", defaults.goal_completion_coins)
        ),
        all_goals_gems=int(economy.get("all_goals_gems", defaults.all_goals_gems)),
        daily_goal_count=int(economy.get("daily_goal_count", defaults.daily_goal_count)),
        start_amount=int(economy.get("start_amount", defaults.start_amount)),
        min_bet=int(economy.get("min_bet", defaults.min_bet)),
    )
    if cfg.daily_goal_count <= 0:
        raise ValueError("economy.daily_goal_count must be a positive integer")
    return cfg
