"""End-to-end message handling: pipeline, commits, suggestion turns and message log."""

import pytest

from brainwash.core import MessageHandler
from brainwash.database.repository import message_log_repo
from brainwash.daykeys import InvalidDayKey
from brainwash.llm.schemas import (
    AllModelsFailed,
    AssistantContext,
    Clarifying,
    Committed,
    LogSetIntent,
    Suggesting,
)

USER = 7
MONDAY = "2024-03-04"


@pytest.fixture
async def seeded(db):
    """Handler factory over a database where USER has 'Push Ups' and 'Plank'."""

    async def build(llm):
        handler = MessageHandler(db=db, llm=llm, tz="Europe/Berlin")
        await handler.service.add_exercise(USER, MONDAY, "Push Ups")
        await handler.service.add_exercise(USER, MONDAY, "Plank")
        return handler

    return build


def _inexact_llm(make_llm):
    return make_llm(intent=LogSetIntent(exercise_name="push-up", set_type="reps", value=3))


@pytest.mark.asyncio
async def test_fast_path_logs_today(seeded, make_llm):
    llm = make_llm()
    handler = await seeded(llm)
    today = handler.service.today()

    reply = await handler.process("log 15 reps of push ups", USER)

    assert isinstance(reply.outcome, Committed)
    assert reply.text == f"Logged 15 reps for Push Ups on {today}."
    assert reply.day_key == today
    assert reply.logged_set.day_key == today
    assert llm.calls == []

    day = await handler.service.get_workout_day(USER, today)
    assert [(log.exercise_name, log.value, log.source) for log in day.logs] == [
        ("Push Ups", 15, "assistant")
    ]


@pytest.mark.asyncio
async def test_selected_day_context(seeded, make_llm):
    handler = await seeded(make_llm())
    reply = await handler.process(
        "log 45 sec of plank", USER, AssistantContext(selected_day=MONDAY, active_tab="exercises")
    )
    assert reply.text == f"Logged 45 sec for Plank on {MONDAY}."
    day = await handler.service.get_workout_day(USER, MONDAY)
    assert [log.value for log in day.logs] == [45]


@pytest.mark.asyncio
async def test_invalid_selected_day_raises(seeded, make_llm):
    handler = await seeded(make_llm())
    with pytest.raises(InvalidDayKey):
        await handler.process("log 15 reps of push ups", USER, AssistantContext(selected_day="2024-02-30"))


@pytest.mark.asyncio
async def test_suggest_then_confirm_with_yes(seeded, make_llm):
    handler = await seeded(_inexact_llm(make_llm))

    reply = await handler.process("do 3 sets of pushups", USER)
    assert isinstance(reply.outcome, Suggesting)
    assert "1. 3 reps of Push Ups" in reply.text
    assert reply.logged_set is None
    assert handler.pending_suggestions(USER) is not None

    confirmed = await handler.process("yes", USER)
    assert isinstance(confirmed.outcome, Committed)
    assert confirmed.outcome.model == "affirmation"
    assert confirmed.logged_set.value == 3
    assert handler.pending_suggestions(USER) is None

    again = await handler.process("yes", USER)
    assert isinstance(again.outcome, Clarifying)
    assert again.logged_set is None


@pytest.mark.asyncio
async def test_pick_suggestion_by_number(seeded, make_llm):
    handler = await seeded(_inexact_llm(make_llm))
    reply = await handler.process("do 3 sets of pushups", USER)
    second = reply.outcome.suggestions[1]

    picked = await handler.process("2", USER)
    assert isinstance(picked.outcome, Committed)
    assert picked.logged_set.exercise_name == second.exercise_name
    assert picked.logged_set.value == second.value


@pytest.mark.asyncio
async def test_out_of_range_pick_keeps_suggestions(seeded, make_llm):
    handler = await seeded(_inexact_llm(make_llm))
    await handler.process("do 3 sets of pushups", USER)

    missed = await handler.process("9", USER)
    assert missed.text == "There is no suggestion number 9."
    assert handler.pending_suggestions(USER) is not None

    confirmed = await handler.process("yes", USER)
    assert isinstance(confirmed.outcome, Committed)


@pytest.mark.asyncio
async def test_new_message_replaces_pending_suggestions(seeded, make_llm):
    handler = await seeded(_inexact_llm(make_llm))
    await handler.process("do 3 sets of pushups", USER)
    await handler.process("log 10 reps of push ups", USER)
    assert handler.pending_suggestions(USER) is None


@pytest.mark.asyncio
async def test_confirm_without_pending(seeded, make_llm):
    handler = await seeded(make_llm())
    reply = await handler.confirm_suggestion(USER, 0)
    assert isinstance(reply.outcome, Clarifying)


@pytest.mark.asyncio
async def test_all_models_failed_logs_nothing(seeded, make_llm):
    handler = await seeded(make_llm(fail=True))
    reply = await handler.process("something about my workout", USER)
    assert isinstance(reply.outcome, AllModelsFailed)
    assert reply.text == AllModelsFailed().reply
    day = await handler.service.get_workout_day(USER, handler.service.today())
    assert day.logs == []


@pytest.mark.asyncio
async def test_messages_are_logged(seeded, make_llm, db):
    handler = await seeded(make_llm())
    await handler.process("log 15 reps of push ups", USER)
    await handler.process("ok", USER)

    async with db.get_session() as session:
        rows = await message_log_repo.get_by_user(session, USER)
    assert [(row.outcome, row.model, row.exercise_name) for row in rows] == [
        ("clarifying", None, None),
        ("committed", "fast-path", "Push Ups"),
    ]
    assert rows[1].raw_message == "log 15 reps of push ups"


@pytest.mark.asyncio
async def test_summaries(seeded, make_llm):
    handler = await seeded(make_llm())
    await handler.process("log 15 reps of push ups", USER, AssistantContext(selected_day=MONDAY))
    summary = await handler.today_summary(USER, MONDAY)
    assert summary.startswith(f"Monday {MONDAY}")
    assert "Push Ups: 15 reps" in summary
    assert await handler.stats_summary(USER, 2) == "No categories yet."


@pytest.mark.asyncio
async def test_undo_removes_last_assistant_set(seeded, make_llm):
    handler = await seeded(make_llm())
    context = AssistantContext(selected_day=MONDAY)
    await handler.process("log 10 reps of push ups", USER, context)
    await handler.process("log 15 reps of push ups", USER, context)

    assert await handler.undo_last(USER) == f"Removed 15 reps of Push Ups from {MONDAY}."
    day = await handler.service.get_workout_day(USER, MONDAY)
    assert [log.value for log in day.logs] == [10]

    assert await handler.undo_last(USER) == "Nothing to undo."


@pytest.mark.asyncio
async def test_undo_after_set_was_removed(seeded, make_llm):
    handler = await seeded(make_llm())
    reply = await handler.process("log 45 sec of plank", USER, AssistantContext(selected_day=MONDAY))
    assert await handler.service.remove_set(USER, MONDAY, reply.logged_set.id)
    assert await handler.undo_last(USER) == "That set is already gone."


@pytest.mark.asyncio
async def test_undo_is_per_user(seeded, make_llm):
    handler = await seeded(make_llm())
    await handler.process("log 15 reps of push ups", USER)
    assert await handler.undo_last(USER + 1) == "Nothing to undo."


@pytest.mark.asyncio
async def test_initialize_checks_database(seeded, make_llm, db, monkeypatch):
    handler = await seeded(make_llm())
    await handler.initialize()

    async def unhealthy():
        return False

    monkeypatch.setattr(db, "health_check", unhealthy)
    with pytest.raises(RuntimeError):
        await handler.initialize()
