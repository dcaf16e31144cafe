"""SQLAlchemy async models for Brainwash workout tracking.

All timestamps are stored as naive UTC; calendar days are derived from them
through the application timezone, never stored.
"""

from datetime import datetime, timezone
from typing import List

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

SET_TYPES = ("reps", "timed")


def _now_utc() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(instant: datetime) -> datetime:
    """Storage form of an instant: UTC without tzinfo."""
    if instant.tzinfo is None:
        return instant
    return instant.astimezone(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


exercise_categories = Table(
    "exercise_categories",
    Base.metadata,
    Column("exercise_id", Integer, ForeignKey("exercises.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class Exercise(Base):
    """An exercise a user logs sets for. Names are unique per user."""

    __tablename__ = "exercises"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now_utc)

    # Relationships
    categories: Mapped[List["Category"]] = relationship(
        "Category", secondary=exercise_categories, lazy="selectin"
    )

    # Indexes
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_exercises_user_name"),
        Index("idx_exercises_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Exercise(id={self.id}, user_id={self.user_id}, name='{self.name}')>"


class Category(Base):
    """A colored label grouping exercises (e.g. 'Push', 'Core')."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    color: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now_utc)

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_categories_user_name"),
        Index("idx_categories_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}', color='{self.color}')>"


class WeekPlanEntry(Base):
    """An exercise shown on a given weekday of the user's week."""

    __tablename__ = "week_plan_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    weekday: Mapped[str] = mapped_column(String(10), nullable=False)
    exercise_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now_utc)

    exercise: Mapped["Exercise"] = relationship("Exercise", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("user_id", "weekday", "exercise_id", name="uq_week_plan_entry"),
        Index("idx_week_plan_user_weekday", "user_id", "weekday"),
    )

    def __repr__(self) -> str:
        return f"<WeekPlanEntry(user_id={self.user_id}, weekday='{self.weekday}', exercise_id={self.exercise_id})>"


class WorkoutSet(Base):
    """A single logged set. Flat model; the calendar day comes from logged_at."""

    __tablename__ = "workout_sets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    exercise_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False
    )
    weekday: Mapped[str] = mapped_column(String(10), nullable=False)
    set_type: Mapped[str] = mapped_column(String(10), nullable=False)
    reps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    logged_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now_utc)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="manual")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now_utc)

    # Relationships
    exercise: Mapped["Exercise"] = relationship("Exercise")

    # Indexes
    __table_args__ = (
        Index("idx_workout_sets_user_logged_at", "user_id", "logged_at"),
        Index("idx_workout_sets_exercise", "exercise_id"),
    )

    @property
    def value(self) -> int | None:
        """Reps for rep sets, seconds for timed sets."""
        return self.reps if self.set_type == "reps" else self.duration_seconds

    def __repr__(self) -> str:
        return (
            f"<WorkoutSet(id={self.id}, exercise_id={self.exercise_id}, "
            f"set_type='{self.set_type}', value={self.value})>"
        )


class MessageLog(Base):
    """Log of every assistant message and how it was resolved."""

    __tablename__ = "message_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    raw_message: Mapped[str] = mapped_column(Text, nullable=False)
    outcome: Mapped[str] = mapped_column(String(30), nullable=False)
    model: Mapped[str | None] = mapped_column(String(80), nullable=True)
    exercise_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    response_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now_utc)

    __table_args__ = (
        Index("idx_message_log_user_id", "user_id"),
        Index("idx_message_log_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<MessageLog(id={self.id}, outcome='{self.outcome}', model='{self.model}')>"
