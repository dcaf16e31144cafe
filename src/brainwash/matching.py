"""Exercise name matching and suggestion building.

Scoring is tiered and deterministic: exact normalized match, prefix
containment either way, then shared-token overlap.
"""

import re
from typing import NamedTuple, Optional, Sequence

from .llm.schemas import SetType, Suggestion, coerce_value

_NON_ALNUM_RE = re.compile(r"[^a-z0-9 ]")
_WHITESPACE_RE = re.compile(r"\s+")

EXACT_SCORE = 100
NAME_STARTS_WITH_QUERY_SCORE = 85
QUERY_CONTAINS_NAME_SCORE = 75
TOKEN_OVERLAP_WEIGHT = 70

MAX_CANDIDATES = 3
MAX_SUGGESTIONS = 3


class MatchCandidate(NamedTuple):
    exercise_name: str
    score: int


def normalize_name(value: str) -> str:
    """Lowercase, punctuation to spaces, whitespace collapsed."""
    lowered = _NON_ALNUM_RE.sub(" ", value.lower())
    return _WHITESPACE_RE.sub(" ", lowered).strip()


def compact_name(value: str) -> str:
    """Normalized name without any whitespace: 'Push-Ups' -> 'pushups'."""
    return normalize_name(value).replace(" ", "")


def token_set(value: str) -> set[str]:
    return {token for token in normalize_name(value).split(" ") if token}


def get_exercise_score(query: str, exercise_name: str) -> int:
    """Similarity of a spoken/typed name to a stored exercise name, 0..100."""
    query_compact = compact_name(query)
    name_compact = compact_name(exercise_name)
    if not query_compact or not name_compact:
        return 0
    if query_compact == name_compact:
        return EXACT_SCORE
    if name_compact.startswith(query_compact):
        return NAME_STARTS_WITH_QUERY_SCORE
    if name_compact in query_compact:
        return QUERY_CONTAINS_NAME_SCORE

    query_tokens = token_set(query)
    name_tokens = token_set(exercise_name)
    overlap = len(query_tokens & name_tokens)
    ratio = overlap / max(len(query_tokens), len(name_tokens))
    # Half-up: 52.5 -> 53
    return int(TOKEN_OVERLAP_WEIGHT * ratio + 0.5)


def rank_candidates(
    query: str, exercise_names: Sequence[str], limit: int = MAX_CANDIDATES
) -> list[MatchCandidate]:
    """Top ``limit`` non-zero matches, best first. Ties keep list order."""
    scored = [MatchCandidate(name, get_exercise_score(query, name)) for name in exercise_names]
    scored.sort(key=lambda candidate: candidate.score, reverse=True)
    return [candidate for candidate in scored[:limit] if candidate.score > 0]


def find_exact_name(query: str, exercise_names: Sequence[str]) -> Optional[str]:
    """The stored name whose compact form equals the query's, verbatim."""
    target = compact_name(query)
    if not target:
        return None
    for name in exercise_names:
        if compact_name(name) == target:
            return name
    return None


def variation_value(set_type: SetType, value: int) -> int:
    """A lighter variant of a set: 5 seconds shorter, or a third of the reps."""
    if set_type == "timed":
        return max(1, value - 5)
    return max(1, value // 3)


def suggestion_label(set_type: SetType, value: int, exercise_name: str) -> str:
    unit = "sec" if set_type == "timed" else "reps"
    return f"{value} {unit} of {exercise_name}"


def build_suggestions(
    exercise_names: Sequence[str],
    exercise_name: str,
    set_type: SetType,
    value: float,
) -> list[Suggestion]:
    """Up to three ready-to-log suggestions for an inexact exercise name.

    The best match at the requested value, the runner-up at the requested
    value, then the best match at a reduced value. Empty when nothing scores.
    """
    candidates = rank_candidates(exercise_name, exercise_names)
    if not candidates:
        return []

    value = coerce_value(value)
    primary = candidates[0].exercise_name
    secondary = next(
        (c.exercise_name for c in candidates[1:] if c.exercise_name != primary), None
    )

    picks = [(primary, value)]
    if secondary:
        picks.append((secondary, value))
    picks.append((primary, variation_value(set_type, value)))

    return [
        Suggestion(
            id=f"suggestion-{i}",
            label=suggestion_label(set_type, pick_value, name),
            exercise_name=name,
            set_type=set_type,
            value=pick_value,
        )
        for i, (name, pick_value) in enumerate(picks[:MAX_SUGGESTIONS], 1)
    ]
