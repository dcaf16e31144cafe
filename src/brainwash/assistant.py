"""Assistant turn resolution: affirmation, fast path, model fallback, fuzzy suggestions."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

from .intent import derive_suggestion_seed, is_affirmative, parse_fast_intent
from .llm.client import AllModelsFailedError, ModelResolution
from .llm.schemas import (
    AllModelsFailed,
    AssistantContext,
    AssistantOutcome,
    Clarifying,
    Committed,
    LogSetIntent,
    Suggesting,
    Suggestion,
)
from .matching import build_suggestions, find_exact_name

logger = logging.getLogger(__name__)

FAST_PATH_MODEL = "fast-path"
AFFIRMATION_MODEL = "affirmation"
WRONG_TAB_REPLY = "You are not in exercises tab. Switch to exercises and try again."
NOTHING_TO_CONFIRM_REPLY = "There is nothing to confirm right now."


class IntentResolver(Protocol):
    async def resolve_intent(
        self,
        message: str,
        exercise_names: Sequence[str],
        context: Optional[AssistantContext] = None,
    ) -> ModelResolution: ...


@dataclass
class SuggestionTurn:
    """Suggestions offered by the last assistant turn; consumable once."""

    suggestions: list[Suggestion] = field(default_factory=list)
    used: bool = False

    @property
    def pending(self) -> bool:
        return bool(self.suggestions) and not self.used

    def take_first(self) -> Optional[Suggestion]:
        if not self.pending:
            return None
        self.used = True
        return self.suggestions[0]


def _commit_or_suggest(
    intent: LogSetIntent, names: Sequence[str], model: Optional[str]
) -> AssistantOutcome:
    exact = find_exact_name(intent.exercise_name, names)
    if exact is not None:
        return Committed(
            exercise_name=exact,
            set_type=intent.set_type,
            value=intent.value,
            model=model,
        )

    suggestions = build_suggestions(names, intent.exercise_name, intent.set_type, intent.value)
    if suggestions:
        return Suggesting(
            reply=f'Exercise "{intent.exercise_name}" not found. Did you mean one of these?',
            suggestions=suggestions,
        )
    return Clarifying(reply=f'Exercise "{intent.exercise_name}" not found.')


async def resolve_assistant_action(
    message: str,
    known_exercise_names: Sequence[str],
    last_turn: Optional[SuggestionTurn] = None,
    *,
    llm: IntentResolver,
    context: Optional[AssistantContext] = None,
) -> AssistantOutcome:
    """Turn one chat message into an outcome without touching storage.

    Only names copied verbatim from ``known_exercise_names`` ever appear in a
    Committed outcome or a suggestion.
    """
    names = tuple(known_exercise_names)
    context = context or AssistantContext()

    if is_affirmative(message):
        suggestion = last_turn.take_first() if last_turn else None
        if suggestion is None:
            return Clarifying(reply=NOTHING_TO_CONFIRM_REPLY)
        if suggestion.exercise_name not in names:
            return Clarifying(reply=f'Exercise "{suggestion.exercise_name}" not found.')
        return Committed(
            exercise_name=suggestion.exercise_name,
            set_type=suggestion.set_type,
            value=suggestion.value,
            model=AFFIRMATION_MODEL,
        )

    if context.active_tab and context.active_tab != "exercises":
        return Clarifying(reply=WRONG_TAB_REPLY)

    quick = parse_fast_intent(message)
    if isinstance(quick, LogSetIntent):
        exact = find_exact_name(quick.exercise_name, names)
        if exact is not None:
            logger.info("Assistant fast path used for %r", exact)
            return Committed(
                exercise_name=exact,
                set_type=quick.set_type,
                value=quick.value,
                model=FAST_PATH_MODEL,
            )

    try:
        resolution = await llm.resolve_intent(message, names, context)
    except AllModelsFailedError:
        return AllModelsFailed()

    intent = resolution.intent
    logger.info("Assistant resolved intent %s via %s", intent.action, resolution.model)
    if isinstance(intent, LogSetIntent):
        return _commit_or_suggest(intent, names, resolution.model)

    seed = derive_suggestion_seed(message)
    suggestions = (
        build_suggestions(names, seed.exercise_name, seed.set_type, seed.value) if seed else []
    )
    if suggestions:
        return Suggesting(reply="Did you mean one of these?", suggestions=suggestions)
    return Clarifying(reply=intent.reply)
