"""Workout day reads and CRUD operations, bucketed by day key."""

import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .config import config
from .database.connection import DatabaseManager, db_manager
from .database.models import SET_TYPES, WorkoutSet, to_naive_utc
from .database.repository import (
    category_repo,
    exercise_repo,
    week_plan_repo,
    workout_set_repo,
)
from .daykeys import (
    DayBucket,
    Weekday,
    add_days,
    day_key_from_instant,
    log_timestamp_for_day_key,
    month_range,
    resolve_day_bucket,
    today_key,
    utc_range_for_span,
    week_end,
    week_start,
)
from .llm.schemas import coerce_value
from .stats import EMPTY_STATS, SetStats, stats_from_values, week_label, week_starts

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 120
MAX_COLOR_LENGTH = 20


class CategoryView(BaseModel):
    id: int
    name: str
    color: str


class ExerciseStats(BaseModel):
    week: SetStats = EMPTY_STATS
    month: SetStats = EMPTY_STATS


class ExerciseView(BaseModel):
    id: int
    name: str
    category_ids: list[int] = Field(default_factory=list)
    stats: ExerciseStats = Field(default_factory=ExerciseStats)


class SetLog(BaseModel):
    """One stored set as shown for a day."""

    id: int
    exercise_id: int
    exercise_name: str
    set_type: str
    value: int
    day_key: str
    logged_at: datetime
    source: str


class WorkoutDay(BaseModel):
    day_key: str
    weekday: Weekday
    categories: list[CategoryView]
    exercises: list[ExerciseView]
    logs: list[SetLog]


class CategoryWeekRow(BaseModel):
    category_id: int
    name: str
    color: str
    counts: list[int]


class WeeklyCategoryStats(BaseModel):
    """Set counts per category per week; ``weeks`` and ``counts`` are current week first."""

    weeks: list[str]
    rows: list[CategoryWeekRow]


def _clean_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValueError("Name must not be blank")
    if len(name) > MAX_NAME_LENGTH:
        raise ValueError(f"Name longer than {MAX_NAME_LENGTH} characters")
    return name


def _clean_color(color: str) -> str:
    color = color.strip()
    if not color or len(color) > MAX_COLOR_LENGTH:
        raise ValueError(f"Color must be 1..{MAX_COLOR_LENGTH} characters")
    return color


def _set_columns(set_type: str, value: float) -> dict:
    if set_type not in SET_TYPES:
        raise ValueError(f"Unknown set type: {set_type!r}")
    value = coerce_value(value)
    if set_type == "reps":
        return {"set_type": "reps", "reps": value, "duration_seconds": None}
    return {"set_type": "timed", "reps": None, "duration_seconds": value}


class WorkoutService:
    """Per-user workout operations.

    Every ``selected_day`` goes through ``resolve_day_bucket`` and raises
    ``InvalidDayKey`` when malformed. Writes land at the selected day's
    current wall-clock time in the application timezone, so reads by the
    same day key always find them.
    """

    def __init__(self, db: DatabaseManager = db_manager, tz: Optional[str] = None) -> None:
        self._db = db
        self._tz = tz or config.app.timezone

    @property
    def tz(self) -> str:
        return self._tz

    def bucket(self, selected_day: str) -> DayBucket:
        return resolve_day_bucket(selected_day, self._tz)

    def today(self) -> str:
        return today_key(self._tz)

    def _set_log(self, workout_set: WorkoutSet, exercise_name: str) -> SetLog:
        return SetLog(
            id=workout_set.id,
            exercise_id=workout_set.exercise_id,
            exercise_name=exercise_name,
            set_type=workout_set.set_type,
            value=workout_set.value,
            day_key=day_key_from_instant(workout_set.logged_at, self._tz),
            logged_at=workout_set.logged_at,
            source=workout_set.source,
        )

    # Reads

    async def get_workout_day(self, user_id: int, selected_day: str) -> WorkoutDay:
        """Weekday plan with week/month stats, plus every set logged on the day."""
        bucket = self.bucket(selected_day)
        week_span = utc_range_for_span(week_start(bucket.day_key), week_end(bucket.day_key), self._tz)
        month_span = utc_range_for_span(*month_range(bucket.day_key), self._tz)
        stats_span = utc_range_for_span(
            min(week_start(bucket.day_key), month_range(bucket.day_key).start),
            max(week_end(bucket.day_key), month_range(bucket.day_key).end),
            self._tz,
        )

        async with self._db.get_session() as session:
            categories = await category_repo.get_by_user(session, user_id)
            plan = await week_plan_repo.get_for_weekday(session, user_id, bucket.weekday.value)
            planned = [entry.exercise for entry in plan]
            history = await workout_set_repo.get_in_range(
                session, user_id, stats_span, exercise_ids=[exercise.id for exercise in planned]
            )
            day_sets = await workout_set_repo.get_in_range(session, user_id, bucket.range)

            exercises = []
            for exercise in planned:
                own = [s for s in history if s.exercise_id == exercise.id]
                exercises.append(
                    ExerciseView(
                        id=exercise.id,
                        name=exercise.name,
                        category_ids=[category.id for category in exercise.categories],
                        stats=ExerciseStats(
                            week=stats_from_values(s.value for s in own if week_span.contains(s.logged_at)),
                            month=stats_from_values(s.value for s in own if month_span.contains(s.logged_at)),
                        ),
                    )
                )
            logs = [self._set_log(s, s.exercise.name) for s in day_sets]

        return WorkoutDay(
            day_key=bucket.day_key,
            weekday=bucket.weekday,
            categories=[CategoryView(id=c.id, name=c.name, color=c.color) for c in categories],
            exercises=exercises,
            logs=logs,
        )

    async def list_exercise_names(self, user_id: int) -> list[str]:
        async with self._db.get_session() as session:
            return await exercise_repo.names(session, user_id)

    # Categories

    async def add_category(self, user_id: int, name: str, color: str) -> CategoryView:
        """Create a category; an existing one with the same trimmed name is returned as is."""
        name = _clean_name(name)
        color = _clean_color(color)
        async with self._db.get_session() as session:
            category = await category_repo.get_by_name(session, user_id, name)
            if category is None:
                category = await category_repo.create(
                    session, obj_in={"user_id": user_id, "name": name, "color": color}
                )
            return CategoryView(id=category.id, name=category.name, color=category.color)

    async def remove_category(self, user_id: int, category_id: int) -> bool:
        async with self._db.get_session() as session:
            return await category_repo.delete_for_user(session, category_id, user_id)

    async def update_category_color(self, user_id: int, category_id: int, color: str) -> bool:
        color = _clean_color(color)
        async with self._db.get_session() as session:
            category = await category_repo.get_for_user(session, category_id, user_id)
            if category is None:
                return False
            await category_repo.update(session, db_obj=category, obj_in={"color": color})
            return True

    # Exercises

    async def add_exercise(self, user_id: int, selected_day: str, name: str) -> ExerciseView:
        """Create the exercise if needed and put it on the selected day's weekday plan."""
        bucket = self.bucket(selected_day)
        name = _clean_name(name)
        async with self._db.get_session() as session:
            exercise = await exercise_repo.upsert(session, user_id, name)
            await week_plan_repo.add(session, user_id, bucket.weekday.value, exercise.id)
            return ExerciseView(
                id=exercise.id,
                name=exercise.name,
                category_ids=[category.id for category in exercise.categories],
            )

    async def remove_exercise(self, user_id: int, selected_day: str, exercise_id: int) -> int:
        """Drop the exercise from the weekday plan and delete its sets on that day.

        The exercise itself and its sets on other days are kept. Returns the
        number of sets deleted.
        """
        bucket = self.bucket(selected_day)
        async with self._db.get_session() as session:
            await week_plan_repo.remove(session, user_id, bucket.weekday.value, exercise_id)
            return await workout_set_repo.delete_in_range(session, user_id, exercise_id, bucket.range)

    async def rename_exercise(self, user_id: int, exercise_id: int, new_name: str) -> bool:
        """Rename an exercise. Renaming onto another exercise's name is a no-op."""
        new_name = _clean_name(new_name)
        async with self._db.get_session() as session:
            duplicate = await exercise_repo.get_by_name(session, user_id, new_name)
            if duplicate is not None and duplicate.id != exercise_id:
                return False
            exercise = await exercise_repo.get_for_user(session, exercise_id, user_id)
            if exercise is None:
                return False
            await exercise_repo.update(session, db_obj=exercise, obj_in={"name": new_name})
            return True

    async def toggle_exercise_category(
        self, user_id: int, exercise_id: int, category_id: int
    ) -> Optional[bool]:
        """Attach or detach a category. Returns whether it is attached afterwards."""
        async with self._db.get_session() as session:
            exercise = await exercise_repo.get_for_user(session, exercise_id, user_id)
            category = await category_repo.get_for_user(session, category_id, user_id)
            if exercise is None or category is None:
                return None
            if category in exercise.categories:
                exercise.categories.remove(category)
                attached = False
            else:
                exercise.categories.append(category)
                attached = True
            await session.flush()
            return attached

    # Sets

    async def _store_set(
        self,
        session,
        user_id: int,
        exercise_id: int,
        bucket: DayBucket,
        set_type: str,
        value: float,
        source: str,
    ) -> WorkoutSet:
        return await workout_set_repo.create(
            session,
            obj_in={
                "user_id": user_id,
                "exercise_id": exercise_id,
                "weekday": bucket.weekday.value,
                "logged_at": to_naive_utc(log_timestamp_for_day_key(bucket.day_key, self._tz)),
                "source": source,
                **_set_columns(set_type, value),
            },
        )

    async def add_set(
        self,
        user_id: int,
        selected_day: str,
        exercise_id: int,
        set_type: str,
        value: float,
    ) -> Optional[SetLog]:
        """Log a set for one of the user's exercises on the selected day."""
        bucket = self.bucket(selected_day)
        async with self._db.get_session() as session:
            exercise = await exercise_repo.get_for_user(session, exercise_id, user_id)
            if exercise is None:
                return None
            workout_set = await self._store_set(
                session, user_id, exercise.id, bucket, set_type, value, "manual"
            )
            logger.info(
                "Set logged: source=manual day=%s exercise=%s type=%s value=%s",
                bucket.day_key, exercise.id, workout_set.set_type, workout_set.value,
            )
            return self._set_log(workout_set, exercise.name)

    async def remove_set(self, user_id: int, selected_day: str, set_id: int) -> bool:
        """Delete a set, only when it was logged on the selected day."""
        bucket = self.bucket(selected_day)
        async with self._db.get_session() as session:
            workout_set = await workout_set_repo.get_for_user(session, set_id, user_id)
            if workout_set is None or not bucket.range.contains(workout_set.logged_at):
                return False
            await workout_set_repo.delete(session, id=workout_set.id)
            return True

    async def log_set_by_name(
        self,
        user_id: int,
        exercise_name: str,
        set_type: str,
        value: float,
        day_key: Optional[str] = None,
        *,
        model: Optional[str] = None,
    ) -> Optional[SetLog]:
        """Assistant commit path: log a set for an exercise given its stored name.

        Uses the same day bucketing as ``add_set``; ``day_key`` defaults to today.
        Returns None when the user has no exercise with that exact name.
        """
        bucket = self.bucket(day_key or self.today())
        async with self._db.get_session() as session:
            exercise = await exercise_repo.get_by_name(session, user_id, exercise_name)
            if exercise is None:
                logger.warning("Assistant commit for unknown exercise %r", exercise_name)
                return None
            workout_set = await self._store_set(
                session, user_id, exercise.id, bucket, set_type, value, "assistant"
            )
            logger.info(
                "Set logged: source=assistant model=%s day=%s exercise=%s type=%s value=%s",
                model, bucket.day_key, exercise.id, workout_set.set_type, workout_set.value,
            )
            return self._set_log(workout_set, exercise.name)

    # Stats

    async def weekly_category_stats(
        self, user_id: int, weeks: Optional[int] = None, today: Optional[str] = None
    ) -> WeeklyCategoryStats:
        """Sets per category for the last ``weeks`` weeks (1..24)."""
        if weeks is None:
            weeks = config.app.stats_weeks
        if not 1 <= weeks <= 24:
            raise ValueError("weeks must be between 1 and 24")
        starts = week_starts(today or self.today(), weeks)

        async with self._db.get_session() as session:
            categories = await category_repo.get_by_user(session, user_id)
            per_week = []
            for start in starts:
                span = utc_range_for_span(start, add_days(start, 6), self._tz)
                per_week.append(await workout_set_repo.count_by_category(session, user_id, span))

        return WeeklyCategoryStats(
            weeks=[week_label(start, add_days(start, 6)) for start in starts],
            rows=[
                CategoryWeekRow(
                    category_id=category.id,
                    name=category.name,
                    color=category.color,
                    counts=[counts.get(category.id, 0) for counts in per_week],
                )
                for category in categories
            ],
        )
