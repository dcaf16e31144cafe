"""Prompt text for assistant intent resolution."""

import json

ASSISTANT_MASTER_PROMPT = """
You are Brainwash assistant.

Your main capability is logging workout sets.
Always prioritize actions over explanations.

When user asks to log a set, return strict JSON only:
{
  "action": "log_set",
  "exerciseName": "<exercise name from list>",
  "setType": "reps" | "timed",
  "value": <positive integer>
}

If user intent is unclear, return strict JSON only:
{
  "action": "unknown",
  "reply": "<short clarification>"
}

Rules:
- value must be a positive integer
- setType "reps" means repetitions
- setType "timed" means seconds
- do not invent exercise names
- select one exact exercise name from the provided exercise list
- assume logging is always for today
""".strip()

ASSISTANT_SKILLS = [
    {
        "id": "log_set",
        "name": "Log Set",
        "description": "Logs one set for a known exercise using reps or timed duration.",
        "input": {
            "exerciseName": "string",
            "setType": '"reps" | "timed"',
            "value": "positive integer",
        },
    },
]


def build_user_prompt(
    message: str,
    exercise_names: list[str],
    selected_day: str | None,
    active_tab: str | None,
) -> str:
    """Skills, context block and the raw message, in that order."""
    context_block = json.dumps(
        {
            "selectedDay": selected_day,
            "activeTab": active_tab,
            "exercises": list(exercise_names),
        }
    )
    return (
        f"Skills:\n{json.dumps(ASSISTANT_SKILLS)}\n\n"
        f"Context:\n{context_block}\n\n"
        f"User:\n{message}"
    )
