"""
highroller.database.models — SQLAlchemy 2.0 Data Models
========================================================

Tables:
- gambling_profiles — per-user balances (implements the EconomyActor capability)
- gambling_goals    — today's goal set, one row per (user, goal)
- gambling_effects  — activated effect instances (the effect ledger)
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from highroller.constants import START_AMOUNT
from highroller.engine.actor import compute_max_bet


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Highroller ORM models."""


# ---------------------------------------------------------------------------
# GamblingProfile — one row per Discord member
# ---------------------------------------------------------------------------
class GamblingProfile(Base):
    __tablename__ = "gambling_profiles"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    coins: Mapped[int] = mapped_column(BigInteger, default=START_AMOUNT)
    gems: Mapped[int] = mapped_column(BigInteger, default=0)
    level: Mapped[int] = mapped_column(Integer, default=0)
    prestige: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_gambling_profiles_coins_desc", "coins"),
    )

    @property
    def max_bet(self) -> int:
        return compute_max_bet(self.level or 0, self.prestige or 0)

    def __repr__(self) -> str:
        return f"<GamblingProfile id={self.id} coins={self.coins} gems={self.gems}>"


# ---------------------------------------------------------------------------
# GoalProgress — today's goal set
# ---------------------------------------------------------------------------
class GoalProgress(Base):
    __tablename__ = "gambling_goals"

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    goal_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    day: Mapped[date] = mapped_column(Date, nullable=False)
    progress: Mapped[int] = mapped_column(BigInteger, default=0)
    target: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<GoalProgress user={self.user_id} goal={self.goal_id!r} "
            f"{self.progress}/{self.target} day={self.day}>"
        )


# ---------------------------------------------------------------------------
# ActiveEffect — the effect ledger
# ---------------------------------------------------------------------------
class ActiveEffect(Base):
    __tablename__ = "gambling_effects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    effect_id: Mapped[str] = mapped_column(String(50), nullable=False)
    expiry: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    __table_args__ = (
        Index("ix_gambling_effects_user", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<ActiveEffect id={self.id} user={self.user_id} effect={self.effect_id!r}>"
