"""Core message processing, shared by the CLI and the Telegram bot."""

import logging
import re
from typing import NamedTuple, Optional

from .assistant import NOTHING_TO_CONFIRM_REPLY, SuggestionTurn, resolve_assistant_action
from .database.connection import DatabaseManager, db_manager
from .database.repository import message_log_repo
from .llm.client import LLMClient
from .llm.schemas import (
    AssistantContext,
    AssistantOutcome,
    Clarifying,
    Committed,
    Suggesting,
)
from .workout import SetLog, WeeklyCategoryStats, WorkoutDay, WorkoutService

logger = logging.getLogger(__name__)

SUGGESTION_PICK_MODEL = "suggestion"
_PICK_RE = re.compile(r"^#?([1-9])$")


class AssistantReply(NamedTuple):
    text: str
    outcome: AssistantOutcome
    day_key: str
    logged_set: Optional[SetLog] = None


def _unit(set_type: str) -> str:
    return "reps" if set_type == "reps" else "sec"


def render_outcome(outcome: AssistantOutcome, day_key: str, logged: Optional[SetLog]) -> str:
    if isinstance(outcome, Committed):
        if logged is None:
            return f'Exercise "{outcome.exercise_name}" not found.'
        return f"Logged {logged.value} {_unit(logged.set_type)} for {logged.exercise_name} on {day_key}."
    if isinstance(outcome, Suggesting):
        lines = [outcome.reply]
        lines += [f"  {i}. {s.label}" for i, s in enumerate(outcome.suggestions, 1)]
        lines.append("Reply with a number to pick one, or 'yes' for the first.")
        return "\n".join(lines)
    return outcome.reply


def render_workout_day(day: WorkoutDay) -> str:
    lines = [f"{day.weekday.value.capitalize()} {day.day_key}"]
    if not day.exercises:
        lines.append("  No exercises planned for this weekday.")
    for exercise in day.exercises:
        week = exercise.stats.week
        if week.best is None:
            lines.append(f"  {exercise.name}")
        else:
            lines.append(
                f"  {exercise.name} (week best {week.best}, avg {week.avg}, worst {week.worst})"
            )
    if day.logs:
        lines.append("Logged:")
        for log in day.logs:
            lines.append(f"  #{log.id} {log.exercise_name}: {log.value} {_unit(log.set_type)}")
    else:
        lines.append("Nothing logged yet.")
    return "\n".join(lines)


def render_weekly_stats(stats: WeeklyCategoryStats) -> str:
    if not stats.rows:
        return "No categories yet."
    lines = []
    for index, label in enumerate(stats.weeks):
        counts = ", ".join(f"{row.name} {row.counts[index]}" for row in stats.rows)
        lines.append(f"{label}: {counts}")
    return "\n".join(lines)


class MessageHandler:
    """Routes chat messages through the assistant pipeline to workout storage.

    Keeps the last suggestion turn per user so a following "yes" or a
    suggestion number can commit it.
    """

    def __init__(
        self,
        db: DatabaseManager = db_manager,
        llm=None,
        service: Optional[WorkoutService] = None,
        tz: Optional[str] = None,
    ) -> None:
        self._db = db
        self._llm = llm if llm is not None else LLMClient()
        self._service = service or WorkoutService(db, tz)
        self._turns: dict[int, SuggestionTurn] = {}
        self._last_logged: dict[int, SetLog] = {}

    @property
    def service(self) -> WorkoutService:
        return self._service

    async def initialize(self) -> None:
        await self._db.initialize()
        if not await self._db.health_check():
            raise RuntimeError("Database is not reachable")
        await self._llm.initialize()

    async def close(self) -> None:
        await self._llm.close()
        await self._db.close()

    def pending_suggestions(self, user_id: int) -> Optional[SuggestionTurn]:
        turn = self._turns.get(user_id)
        return turn if turn and turn.pending else None

    async def process(
        self, message: str, user_id: int, context: Optional[AssistantContext] = None
    ) -> AssistantReply:
        """Resolve one chat message and commit it when it names a known exercise.

        Sets land on ``context.selected_day`` when given, otherwise today.
        """
        message = message.strip()
        context = context or AssistantContext()
        day_key = (
            self._service.bucket(context.selected_day).day_key
            if context.selected_day
            else self._service.today()
        )
        logger.info("Assistant message from user %s: %r", user_id, message)

        pick = _PICK_RE.match(message)
        if pick and self.pending_suggestions(user_id):
            return await self.confirm_suggestion(
                user_id, int(pick[1]) - 1, day_key=day_key, raw_message=message
            )

        names = await self._service.list_exercise_names(user_id)
        outcome = await resolve_assistant_action(
            message, names, self._turns.get(user_id), llm=self._llm, context=context
        )
        return await self._finish(user_id, message, outcome, day_key)

    async def confirm_suggestion(
        self,
        user_id: int,
        index: int,
        *,
        day_key: Optional[str] = None,
        raw_message: Optional[str] = None,
    ) -> AssistantReply:
        """Commit suggestion ``index`` (0-based) of the user's last suggestion turn."""
        day_key = day_key or self._service.today()
        keep_turn = False
        turn = self.pending_suggestions(user_id)
        if turn is None:
            outcome = Clarifying(reply=NOTHING_TO_CONFIRM_REPLY)
        elif not 0 <= index < len(turn.suggestions):
            outcome = Clarifying(reply=f"There is no suggestion number {index + 1}.")
            keep_turn = True
        else:
            turn.used = True
            suggestion = turn.suggestions[index]
            outcome = Committed(
                exercise_name=suggestion.exercise_name,
                set_type=suggestion.set_type,
                value=suggestion.value,
                model=SUGGESTION_PICK_MODEL,
            )
        return await self._finish(
            user_id, raw_message or f"#{index + 1}", outcome, day_key, keep_turn=keep_turn
        )

    async def _finish(
        self,
        user_id: int,
        message: str,
        outcome: AssistantOutcome,
        day_key: str,
        *,
        keep_turn: bool = False,
    ) -> AssistantReply:
        logged = None
        if isinstance(outcome, Committed):
            logged = await self._service.log_set_by_name(
                user_id,
                outcome.exercise_name,
                outcome.set_type,
                outcome.value,
                day_key,
                model=outcome.model,
            )
            if logged is not None:
                self._last_logged[user_id] = logged

        if isinstance(outcome, Suggesting):
            self._turns[user_id] = SuggestionTurn(suggestions=list(outcome.suggestions))
        elif not keep_turn:
            self._turns.pop(user_id, None)

        text = render_outcome(outcome, day_key, logged)
        await self._log_message(user_id, message, outcome, text)
        return AssistantReply(text=text, outcome=outcome, day_key=day_key, logged_set=logged)

    async def _log_message(
        self, user_id: int, message: str, outcome: AssistantOutcome, text: str
    ) -> None:
        # Logging failure must not block the response
        try:
            async with self._db.get_session() as session:
                await message_log_repo.create(
                    session,
                    obj_in={
                        "user_id": user_id,
                        "raw_message": message,
                        "outcome": outcome.kind,
                        "model": getattr(outcome, "model", None),
                        "exercise_name": getattr(outcome, "exercise_name", None),
                        "response_summary": text[:200],
                    },
                )
        except Exception:
            logger.warning("Message logging failed", exc_info=True)

    async def undo_last(self, user_id: int) -> str:
        """Remove the set the assistant logged most recently for this user."""
        logged = self._last_logged.pop(user_id, None)
        if logged is None:
            return "Nothing to undo."
        removed = await self._service.remove_set(user_id, logged.day_key, logged.id)
        if not removed:
            return "That set is already gone."
        logger.info("Undid set %s for user %s", logged.id, user_id)
        return (
            f"Removed {logged.value} {_unit(logged.set_type)} of {logged.exercise_name} "
            f"from {logged.day_key}."
        )

    async def today_summary(self, user_id: int, day_key: Optional[str] = None) -> str:
        day = await self._service.get_workout_day(user_id, day_key or self._service.today())
        return render_workout_day(day)

    async def stats_summary(self, user_id: int, weeks: Optional[int] = None) -> str:
        stats = await self._service.weekly_category_stats(user_id, weeks)
        return render_weekly_stats(stats)
