"""Shared fixtures: a throwaway SQLite database and a scripted LLM."""

import pytest

from brainwash.database.connection import DatabaseManager
from brainwash.llm.client import AllModelsFailedError, ModelResolution


class FakeLLM:
    """Stands in for LLMClient; returns a fixed intent or raises."""

    def __init__(self, intent=None, model="gemini-3-flash-preview", fail=False):
        self.intent = intent
        self.model = model
        self.fail = fail
        self.calls: list[tuple[str, tuple]] = []

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def resolve_intent(self, message, exercise_names, context=None):
        self.calls.append((message, tuple(exercise_names)))
        if self.fail:
            raise AllModelsFailedError(["google/gemini-3-flash-preview", "openai/gpt-4o-mini"])
        return ModelResolution(intent=self.intent, model=self.model)


@pytest.fixture
def make_llm():
    return FakeLLM


@pytest.fixture
async def db(tmp_path):
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'brainwash.db'}")
    await manager.create_tables()
    yield manager
    await manager.close()
