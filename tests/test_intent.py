"""Regex fast path, suggestion seeds and affirmations."""

import pytest

from brainwash.intent import FAST_PATH_HINT, derive_suggestion_seed, is_affirmative, parse_fast_intent
from brainwash.llm.schemas import LogSetIntent, UnknownIntent


def _fields(intent):
    assert isinstance(intent, LogSetIntent), intent
    return intent.exercise_name, intent.set_type, intent.value


@pytest.mark.parametrize(
    "message, expected",
    [
        ("log 15 reps of push ups", ("push ups", "reps", 15)),
        ("Log 12 reps for Squats.", ("Squats", "reps", 12)),
        ("add a set with 8 reps to pull ups", ("pull ups", "reps", 8)),
        ("log a set of push ups with 15 reps", ("push ups", "reps", 15)),
        ("log 2 min of plank", ("plank", "timed", 120)),
        ("log 1:30 min plank", ("plank", "timed", 90)),
        ("add 1 minute and 20 seconds to wall sit", ("wall sit", "timed", 80)),
        ("log 45 sec of plank", ("plank", "timed", 45)),
    ],
)
def test_fast_path_patterns(message, expected):
    assert _fields(parse_fast_intent(message)) == expected


def test_fast_path_needs_a_verb():
    intent = parse_fast_intent("15 reps of push ups")
    assert isinstance(intent, UnknownIntent)


def test_fast_path_unknown_message_gets_hint():
    intent = parse_fast_intent("how was my week?")
    assert isinstance(intent, UnknownIntent)
    assert intent.reply == FAST_PATH_HINT


def test_fast_path_zero_is_raised_to_one():
    assert _fields(parse_fast_intent("log 0 reps of squats")) == ("squats", "reps", 1)


def test_seed_from_sets_phrase():
    assert _fields(derive_suggestion_seed("do 3 sets of pushups")) == ("pushups", "reps", 3)


def test_seed_from_reps_phrase():
    assert _fields(derive_suggestion_seed("I think 20 reps of squats")) == ("squats", "reps", 20)


def test_seed_minutes_become_seconds():
    assert _fields(derive_suggestion_seed("maybe 2 min plank")) == ("plank", "timed", 120)


def test_seed_seconds():
    assert _fields(derive_suggestion_seed("held 30 sec of plank")) == ("plank", "timed", 30)


def test_no_seed():
    assert derive_suggestion_seed("what's up") is None


@pytest.mark.parametrize("message", ["yes", "Yes!", " ok ", "OKAY.", "sure", "yep", "si", "exactly"])
def test_affirmative(message):
    assert is_affirmative(message)


@pytest.mark.parametrize("message", ["yes please", "no", "not sure", "", "log 10 reps of yes"])
def test_not_affirmative(message):
    assert not is_affirmative(message)
