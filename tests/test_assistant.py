"""Assistant pipeline outcomes with a scripted LLM."""

import pytest

from brainwash.assistant import (
    AFFIRMATION_MODEL,
    FAST_PATH_MODEL,
    NOTHING_TO_CONFIRM_REPLY,
    WRONG_TAB_REPLY,
    SuggestionTurn,
    resolve_assistant_action,
)
from brainwash.llm.schemas import (
    AllModelsFailed,
    AssistantContext,
    Clarifying,
    Committed,
    LogSetIntent,
    Suggesting,
    Suggestion,
    UnknownIntent,
)

NAMES = ["Push Ups", "Squats", "Plank"]


def _suggestion(name="Push Ups", value=3, set_type="reps"):
    return Suggestion(
        id="suggestion-1",
        label=f"{value} reps of {name}",
        exercise_name=name,
        set_type=set_type,
        value=value,
    )


@pytest.mark.asyncio
async def test_fast_path_commits_without_model(make_llm):
    llm = make_llm()
    outcome = await resolve_assistant_action("log 15 reps of push ups", NAMES, llm=llm)
    assert outcome == Committed(
        exercise_name="Push Ups", set_type="reps", value=15, model=FAST_PATH_MODEL
    )
    assert llm.calls == []


@pytest.mark.asyncio
async def test_fast_path_miss_falls_through_to_model(make_llm):
    llm = make_llm(intent=LogSetIntent(exercise_name="Squats", set_type="reps", value=12))
    outcome = await resolve_assistant_action("log 12 reps of squat", NAMES, llm=llm)
    assert isinstance(outcome, Committed)
    assert outcome.exercise_name == "Squats"
    assert outcome.model == "gemini-3-flash-preview"
    assert len(llm.calls) == 1


@pytest.mark.asyncio
async def test_model_exact_name_commits_stored_spelling(make_llm):
    llm = make_llm(intent=LogSetIntent(exercise_name="push-ups", set_type="reps", value=20))
    outcome = await resolve_assistant_action("twenty pushups please", NAMES, llm=llm)
    assert isinstance(outcome, Committed)
    assert outcome.exercise_name == "Push Ups"
    assert outcome.value == 20


@pytest.mark.asyncio
async def test_model_inexact_name_suggests(make_llm):
    llm = make_llm(intent=LogSetIntent(exercise_name="push-up", set_type="reps", value=3))
    outcome = await resolve_assistant_action("do 3 sets of pushups", NAMES, llm=llm)
    assert isinstance(outcome, Suggesting)
    assert outcome.suggestions[0].label == "3 reps of Push Ups"
    assert 1 <= len(outcome.suggestions) <= 3
    assert all(s.exercise_name in NAMES for s in outcome.suggestions)


@pytest.mark.asyncio
async def test_unknown_intent_seeds_suggestions(make_llm):
    llm = make_llm(intent=UnknownIntent(reply="Which exercise?"))
    outcome = await resolve_assistant_action("do 3 sets of pushups", NAMES, llm=llm)
    assert isinstance(outcome, Suggesting)
    assert outcome.reply == "Did you mean one of these?"
    assert outcome.suggestions[0].exercise_name == "Push Ups"
    assert outcome.suggestions[0].value == 3


@pytest.mark.asyncio
async def test_unknown_intent_without_seed_clarifies(make_llm):
    llm = make_llm(intent=UnknownIntent(reply="Which exercise?"))
    outcome = await resolve_assistant_action("how am I doing", NAMES, llm=llm)
    assert outcome == Clarifying(reply="Which exercise?")


@pytest.mark.asyncio
async def test_unmatched_name_clarifies(make_llm):
    llm = make_llm(intent=LogSetIntent(exercise_name="burpees", set_type="reps", value=10))
    outcome = await resolve_assistant_action("10 burpees", NAMES, llm=llm)
    assert outcome == Clarifying(reply='Exercise "burpees" not found.')


@pytest.mark.asyncio
async def test_all_models_failed(make_llm):
    llm = make_llm(fail=True)
    outcome = await resolve_assistant_action("something odd", NAMES, llm=llm)
    assert isinstance(outcome, AllModelsFailed)
    assert outcome.reply


@pytest.mark.asyncio
async def test_affirmation_commits_first_suggestion_once(make_llm):
    llm = make_llm()
    turn = SuggestionTurn(suggestions=[_suggestion(), _suggestion("Squats", 3)])

    outcome = await resolve_assistant_action("yes", NAMES, turn, llm=llm)
    assert outcome == Committed(
        exercise_name="Push Ups", set_type="reps", value=3, model=AFFIRMATION_MODEL
    )
    assert turn.used

    again = await resolve_assistant_action("yes", NAMES, turn, llm=llm)
    assert again == Clarifying(reply=NOTHING_TO_CONFIRM_REPLY)
    assert llm.calls == []


@pytest.mark.asyncio
async def test_affirmation_without_pending_turn_is_a_no_op(make_llm):
    llm = make_llm()
    outcome = await resolve_assistant_action("ok", NAMES, None, llm=llm)
    assert outcome == Clarifying(reply=NOTHING_TO_CONFIRM_REPLY)
    assert llm.calls == []


@pytest.mark.asyncio
async def test_affirmation_for_removed_exercise(make_llm):
    turn = SuggestionTurn(suggestions=[_suggestion("Burpees")])
    outcome = await resolve_assistant_action("yes", NAMES, turn, llm=make_llm())
    assert isinstance(outcome, Clarifying)
    assert "Burpees" in outcome.reply


@pytest.mark.asyncio
async def test_wrong_tab_is_guarded(make_llm):
    llm = make_llm()
    context = AssistantContext(selected_day="2024-03-04", active_tab="history")
    outcome = await resolve_assistant_action(
        "log 15 reps of push ups", NAMES, llm=llm, context=context
    )
    assert outcome == Clarifying(reply=WRONG_TAB_REPLY)
    assert llm.calls == []


@pytest.mark.asyncio
async def test_exercises_tab_is_allowed(make_llm):
    context = AssistantContext(active_tab="exercises")
    outcome = await resolve_assistant_action(
        "log 15 reps of push ups", NAMES, llm=make_llm(), context=context
    )
    assert isinstance(outcome, Committed)


@pytest.mark.asyncio
async def test_names_are_snapshotted(make_llm):
    names = list(NAMES)
    llm = make_llm(intent=UnknownIntent(reply="?"))
    await resolve_assistant_action("hello", names, llm=llm)
    assert llm.calls == [("hello", tuple(NAMES))]
