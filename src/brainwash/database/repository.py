"""Async repository pattern implementation for database operations."""

from typing import Generic, List, Optional, Sequence, Type, TypeVar, Union

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..daykeys import TimeRange
from .models import (
    Base,
    Category,
    Exercise,
    MessageLog,
    WeekPlanEntry,
    WorkoutSet,
    exercise_categories,
    to_naive_utc,
)

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType")
UpdateSchemaType = TypeVar("UpdateSchemaType")


class BaseRepository(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """Base repository with async CRUD operations."""

    def __init__(self, model: Type[ModelType]) -> None:
        self.model = model

    async def get(self, session: AsyncSession, id: int) -> Optional[ModelType]:
        """Get a single record by ID."""
        stmt = select(self.model).where(self.model.id == id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_for_user(
        self, session: AsyncSession, id: int, user_id: int
    ) -> Optional[ModelType]:
        """Get a single record by ID, only if it belongs to the user."""
        stmt = select(self.model).where(self.model.id == id, self.model.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(
        self, session: AsyncSession, *, obj_in: CreateSchemaType
    ) -> ModelType:
        """Create a new record."""
        if isinstance(obj_in, dict):
            obj_data = obj_in
        else:
            obj_data = (
                obj_in.model_dump()
                if hasattr(obj_in, "model_dump")
                else obj_in.__dict__
            )

        db_obj = self.model(**obj_data)
        session.add(db_obj)
        await session.flush()
        await session.refresh(db_obj)
        return db_obj

    async def update(
        self,
        session: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, dict],
    ) -> ModelType:
        """Update an existing record."""
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = (
                obj_in.model_dump(exclude_unset=True)
                if hasattr(obj_in, "model_dump")
                else obj_in.__dict__
            )

        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        await session.flush()
        await session.refresh(db_obj)
        return db_obj

    async def delete(self, session: AsyncSession, *, id: int) -> Optional[ModelType]:
        """Delete a record by ID."""
        obj = await self.get(session, id=id)
        if obj:
            await session.delete(obj)
            await session.flush()
        return obj


class ExerciseRepository(BaseRepository[Exercise, dict, dict]):
    """Repository for Exercise operations."""

    async def get_by_name(
        self, session: AsyncSession, user_id: int, name: str
    ) -> Optional[Exercise]:
        """Get a user's exercise by its exact stored name."""
        stmt = select(Exercise).where(Exercise.user_id == user_id, Exercise.name == name)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_user(self, session: AsyncSession, user_id: int) -> List[Exercise]:
        """Get all exercises of a user in creation order."""
        stmt = select(Exercise).where(Exercise.user_id == user_id).order_by(Exercise.id)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def names(self, session: AsyncSession, user_id: int) -> List[str]:
        """Exercise names of a user in creation order."""
        stmt = select(Exercise.name).where(Exercise.user_id == user_id).order_by(Exercise.id)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def upsert(self, session: AsyncSession, user_id: int, name: str) -> Exercise:
        """Return the user's exercise with this name, creating it if missing."""
        existing = await self.get_by_name(session, user_id, name)
        if existing is not None:
            return existing
        return await self.create(session, obj_in={"user_id": user_id, "name": name})


class CategoryRepository(BaseRepository[Category, dict, dict]):
    """Repository for Category operations."""

    async def get_by_name(
        self, session: AsyncSession, user_id: int, name: str
    ) -> Optional[Category]:
        stmt = select(Category).where(Category.user_id == user_id, Category.name == name)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_user(self, session: AsyncSession, user_id: int) -> List[Category]:
        """Get all categories of a user in creation order."""
        stmt = select(Category).where(Category.user_id == user_id).order_by(Category.id)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def delete_for_user(
        self, session: AsyncSession, category_id: int, user_id: int
    ) -> bool:
        """Delete a category and detach it from every exercise."""
        category = await self.get_for_user(session, category_id, user_id)
        if category is None:
            return False
        await session.execute(
            delete(exercise_categories).where(exercise_categories.c.category_id == category_id)
        )
        await session.execute(delete(Category).where(Category.id == category_id))
        await session.flush()
        return True


class WeekPlanRepository(BaseRepository[WeekPlanEntry, dict, dict]):
    """Repository for the exercises planned on each weekday."""

    async def get_for_weekday(
        self, session: AsyncSession, user_id: int, weekday: str
    ) -> List[WeekPlanEntry]:
        """Plan entries of a weekday, exercise eagerly loaded, in insertion order."""
        stmt = (
            select(WeekPlanEntry)
            .options(selectinload(WeekPlanEntry.exercise))
            .where(WeekPlanEntry.user_id == user_id, WeekPlanEntry.weekday == weekday)
            .order_by(WeekPlanEntry.id)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def add(
        self, session: AsyncSession, user_id: int, weekday: str, exercise_id: int
    ) -> WeekPlanEntry:
        """Add an exercise to a weekday unless it is already there."""
        stmt = select(WeekPlanEntry).where(
            WeekPlanEntry.user_id == user_id,
            WeekPlanEntry.weekday == weekday,
            WeekPlanEntry.exercise_id == exercise_id,
        )
        existing = (await session.execute(stmt)).scalar_one_or_none()
        if existing is not None:
            return existing
        return await self.create(
            session,
            obj_in={"user_id": user_id, "weekday": weekday, "exercise_id": exercise_id},
        )

    async def remove(
        self, session: AsyncSession, user_id: int, weekday: str, exercise_id: int
    ) -> int:
        stmt = delete(WeekPlanEntry).where(
            WeekPlanEntry.user_id == user_id,
            WeekPlanEntry.weekday == weekday,
            WeekPlanEntry.exercise_id == exercise_id,
        )
        result = await session.execute(stmt)
        await session.flush()
        return result.rowcount


class WorkoutSetRepository(BaseRepository[WorkoutSet, dict, dict]):
    """Repository for WorkoutSet operations.

    Range queries take a ``TimeRange`` of aware UTC instants and compare
    against the naive UTC ``logged_at`` column, both bounds inclusive.
    """

    @staticmethod
    def _in_range(stmt, time_range: TimeRange):
        return stmt.where(
            WorkoutSet.logged_at >= to_naive_utc(time_range.start),
            WorkoutSet.logged_at <= to_naive_utc(time_range.end),
        )

    async def get_in_range(
        self,
        session: AsyncSession,
        user_id: int,
        time_range: TimeRange,
        *,
        exercise_ids: Optional[Sequence[int]] = None,
    ) -> List[WorkoutSet]:
        """Sets logged within the range, oldest first, exercise eagerly loaded."""
        stmt = (
            select(WorkoutSet)
            .options(selectinload(WorkoutSet.exercise))
            .where(WorkoutSet.user_id == user_id)
            .order_by(WorkoutSet.logged_at, WorkoutSet.id)
        )
        if exercise_ids is not None:
            if not exercise_ids:
                return []
            stmt = stmt.where(WorkoutSet.exercise_id.in_(exercise_ids))
        result = await session.execute(self._in_range(stmt, time_range))
        return list(result.scalars().all())

    async def delete_in_range(
        self, session: AsyncSession, user_id: int, exercise_id: int, time_range: TimeRange
    ) -> int:
        """Delete one exercise's sets within the range. Returns the number deleted."""
        stmt = delete(WorkoutSet).where(
            WorkoutSet.user_id == user_id, WorkoutSet.exercise_id == exercise_id
        )
        result = await session.execute(self._in_range(stmt, time_range))
        await session.flush()
        return result.rowcount

    async def count_by_category(
        self, session: AsyncSession, user_id: int, time_range: TimeRange
    ) -> dict[int, int]:
        """Number of sets per category id within the range.

        A set counts once for every category its exercise belongs to.
        """
        stmt = (
            select(exercise_categories.c.category_id, func.count(WorkoutSet.id))
            .select_from(WorkoutSet)
            .join(exercise_categories, exercise_categories.c.exercise_id == WorkoutSet.exercise_id)
            .where(WorkoutSet.user_id == user_id)
            .group_by(exercise_categories.c.category_id)
        )
        result = await session.execute(self._in_range(stmt, time_range))
        return {category_id: count for category_id, count in result.all()}


class MessageLogRepository(BaseRepository[MessageLog, dict, dict]):
    """Repository for MessageLog operations."""

    async def get_by_user(
        self, session: AsyncSession, user_id: int, *, limit: int = 50
    ) -> List[MessageLog]:
        """Get recent message logs for a user."""
        stmt = (
            select(MessageLog)
            .where(MessageLog.user_id == user_id)
            .order_by(MessageLog.created_at.desc(), MessageLog.id.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())


# Repository instances
exercise_repo = ExerciseRepository(Exercise)
category_repo = CategoryRepository(Category)
week_plan_repo = WeekPlanRepository(WeekPlanEntry)
workout_set_repo = WorkoutSetRepository(WorkoutSet)
message_log_repo = MessageLogRepository(MessageLog)
