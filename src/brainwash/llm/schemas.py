"""Assistant intents, suggestions and turn outcomes."""

import math
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SetType = Literal["reps", "timed"]
ActiveTab = Literal["time", "categories", "exercises", "history"]


def coerce_value(value: float) -> int:
    """Positive integer used for storage: max(1, floor(value))."""
    return max(1, math.floor(value))


class LogSetIntent(BaseModel):
    """Request to log one set for a named exercise."""

    action: Literal["log_set"] = "log_set"
    exercise_name: str = Field(min_length=1, description="Exercise the set belongs to")
    set_type: SetType = Field(description="'reps' = repetitions, 'timed' = seconds")
    value: int = Field(description="Repetitions or seconds, always >= 1")

    @field_validator("exercise_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("exercise_name is blank")
        return value

    @field_validator("value", mode="before")
    @classmethod
    def _positive_int(cls, value: object) -> int:
        return coerce_value(float(value))


class UnknownIntent(BaseModel):
    """The message could not be turned into a log action."""

    action: Literal["unknown"] = "unknown"
    reply: str = Field(description="Short clarification for the user")


AssistantIntent = Union[LogSetIntent, UnknownIntent]


class ModelIntent(BaseModel):
    """Structured intent as requested from a language model (camelCase JSON)."""

    model_config = ConfigDict(populate_by_name=True)

    action: Literal["log_set", "unknown"] = Field(description="What the user wants")
    exercise_name: Optional[str] = Field(
        default=None,
        alias="exerciseName",
        description="One exact exercise name from the provided list",
    )
    set_type: Optional[SetType] = Field(
        default=None, alias="setType", description="'reps' or 'timed' (seconds)"
    )
    value: Optional[float] = Field(
        default=None, description="Positive integer: repetitions or seconds"
    )
    reply: Optional[str] = Field(
        default=None, description="Short clarification when action is 'unknown'"
    )

    @model_validator(mode="after")
    def _complete_log_set(self) -> "ModelIntent":
        if self.action == "log_set":
            if not (self.exercise_name or "").strip() or self.set_type is None:
                raise ValueError("log_set requires exerciseName and setType")
            if self.value is None or self.value <= 0:
                raise ValueError("log_set requires a positive value")
        return self

    def to_intent(self) -> AssistantIntent:
        if self.action == "log_set":
            return LogSetIntent(
                exercise_name=self.exercise_name,
                set_type=self.set_type,
                value=self.value,
            )
        return UnknownIntent(reply=(self.reply or "").strip() or "Could you rephrase that?")


class Suggestion(BaseModel):
    """A ready-to-log alternative offered when the exercise name was not exact."""

    id: str
    label: str
    exercise_name: str
    set_type: SetType
    value: int


class AssistantContext(BaseModel):
    """UI context forwarded with a chat message."""

    selected_day: Optional[str] = None
    active_tab: Optional[ActiveTab] = None


class Committed(BaseModel):
    """A set should be stored. The name is always copied from the known list."""

    kind: Literal["committed"] = "committed"
    exercise_name: str
    set_type: SetType
    value: int
    model: Optional[str] = Field(default=None, description="fast-path, affirmation or model name")


class Suggesting(BaseModel):
    """Nothing logged; the user picks (or confirms) one of the suggestions."""

    kind: Literal["suggesting"] = "suggesting"
    reply: str
    suggestions: list[Suggestion]


class Clarifying(BaseModel):
    """Nothing logged; the reply asks the user to rephrase."""

    kind: Literal["clarifying"] = "clarifying"
    reply: str


class AllModelsFailed(BaseModel):
    """Every model in the fallback chain failed. Retryable by the user."""

    kind: Literal["all_models_failed"] = "all_models_failed"
    reply: str = (
        "Failed to reach any of the configured assistant models right now. "
        "Please check the API keys and try again."
    )


AssistantOutcome = Annotated[
    Union[Committed, Suggesting, Clarifying, AllModelsFailed],
    Field(discriminator="kind"),
]
