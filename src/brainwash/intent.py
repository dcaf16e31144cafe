"""Regex heuristics that turn chat messages into log intents without a model call."""

import re
from typing import Optional

from .llm.schemas import AssistantIntent, LogSetIntent, UnknownIntent

_VERB = r"\b(?:log|add|put|new)\b"
_NAME = r"(?P<name>[a-z0-9 _-]+)"
_SECONDS = r"(?:s|sec|secs|second|seconds)"
_MINUTES = r"(?:min|mins|minute|minutes)"

# "log 15 reps of push ups", "add a set with 12 reps for squats"
_REPS_RE = re.compile(rf"{_VERB}.*?(?P<value>\d+)\s*reps?\b{_NAME}$", re.IGNORECASE)
# "log a set of push ups with 15 reps"
_REPS_NAME_FIRST_RE = re.compile(
    rf"{_VERB}(?:\s+(?:a|one|1))?\s+set\s+(?:of|for)\s+(?P<name>[a-z0-9 _-]+?)"
    rf"\s+with\s+(?P<value>\d+)\s*reps?$",
    re.IGNORECASE,
)
# "log 2 min of plank", "log 2:30 min plank", "add 1 minute and 20 seconds to wall sit"
_TIMED_RE = re.compile(
    rf"{_VERB}.*?(?P<minutes>\d+)(?::(?P<clock_seconds>\d{{1,2}}))?\s*{_MINUTES}\b"
    rf"(?:\s*(?:and|:)?\s*(?P<seconds>\d+)\s*{_SECONDS}?\b)?{_NAME}$",
    re.IGNORECASE,
)
# "log 45 sec of plank"
_SECONDS_ONLY_RE = re.compile(
    rf"{_VERB}.*?(?P<value>\d+)\s*{_SECONDS}\b{_NAME}$", re.IGNORECASE
)

# Trailing phrases without a verb, used to seed suggestions
_SEED_REPS_RE = re.compile(r"(\d+)\s*reps?\b\s*(?:of|for)?\s*([a-z0-9 _-]+)$", re.IGNORECASE)
_SEED_TIMED_RE = re.compile(
    rf"(\d+)\s*({_SECONDS}|{_MINUTES})\b\s*(?:of|for)?\s*([a-z0-9 _-]+)$", re.IGNORECASE
)
_SEED_SETS_RE = re.compile(r"(\d+)\s*sets?\b\s*(?:of|for)?\s*([a-z0-9 _-]+)$", re.IGNORECASE)

_CONNECTOR_RE = re.compile(r"^(?:of|for|to|on|with)\s+", re.IGNORECASE)
_TRAILING_PUNCT_RE = re.compile(r"[\s.!?,;]+$")

AFFIRMATIVE_RE = re.compile(r"^(?:yes|yeah|yep|si|sure|correct|exactly|ok|okay)$", re.IGNORECASE)

FAST_PATH_HINT = "Try: log set of <exercise> with <reps> reps"


def _clean(message: str) -> str:
    return _TRAILING_PUNCT_RE.sub("", message.strip())


def _clean_name(raw: str) -> str:
    name = raw.strip()
    while True:
        stripped = _CONNECTOR_RE.sub("", name).strip()
        if stripped == name:
            return name
        name = stripped


def _log_set(name: str, set_type: str, value: int) -> Optional[LogSetIntent]:
    name = _clean_name(name)
    if not name:
        return None
    return LogSetIntent(exercise_name=name, set_type=set_type, value=value)


def parse_fast_intent(message: str) -> AssistantIntent:
    """Extract a log intent from a message using local regexes only.

    Returns UnknownIntent when no pattern matches; the exercise name is
    whatever the user typed and still has to be matched against their list.
    """
    text = _clean(message)

    match = _REPS_RE.search(text)
    if match:
        intent = _log_set(match["name"], "reps", int(match["value"]))
        if intent:
            return intent

    match = _REPS_NAME_FIRST_RE.search(text)
    if match:
        intent = _log_set(match["name"], "reps", int(match["value"]))
        if intent:
            return intent

    match = _TIMED_RE.search(text)
    if match:
        seconds = int(match["clock_seconds"] or match["seconds"] or 0)
        intent = _log_set(match["name"], "timed", int(match["minutes"]) * 60 + seconds)
        if intent:
            return intent

    match = _SECONDS_ONLY_RE.search(text)
    if match:
        intent = _log_set(match["name"], "timed", int(match["value"]))
        if intent:
            return intent

    return UnknownIntent(reply=FAST_PATH_HINT)


def derive_suggestion_seed(message: str) -> Optional[LogSetIntent]:
    """Best-effort (value, name) from the tail of a message the model could not place.

    "N sets of X" seeds a reps suggestion at N; it is only ever offered for
    confirmation, never committed directly.
    """
    text = _clean(message)

    match = _SEED_REPS_RE.search(text)
    if match:
        return _log_set(match[2], "reps", int(match[1]))

    match = _SEED_TIMED_RE.search(text)
    if match:
        value = int(match[1])
        if match[2].lower().startswith("m"):
            value *= 60
        return _log_set(match[3], "timed", value)

    match = _SEED_SETS_RE.search(text)
    if match:
        return _log_set(match[2], "reps", int(match[1]))

    return None


def is_affirmative(message: str) -> bool:
    return bool(AFFIRMATIVE_RE.match(_clean(message)))
