"""Async LLM client with Instructor integration and an ordered model fallback chain."""

import logging
from typing import NamedTuple, Optional, Sequence

import instructor
from openai import AsyncOpenAI

from ..config import LLMConfig, ModelDescriptor, config
from .prompts import ASSISTANT_MASTER_PROMPT, build_user_prompt
from .schemas import AssistantContext, AssistantIntent, ModelIntent

logger = logging.getLogger(__name__)


class AllModelsFailedError(RuntimeError):
    """Every model in the fallback chain failed or was not configured."""

    def __init__(self, attempted: Sequence[str]) -> None:
        super().__init__(f"All assistant models failed: {', '.join(attempted) or 'none configured'}")
        self.attempted = list(attempted)


class ModelResolution(NamedTuple):
    intent: AssistantIntent
    model: str


class LLMClient:
    """Resolves chat messages to structured intents through OpenAI-compatible endpoints.

    Models are tried strictly in order, one attempt each. A failing model is
    logged and skipped; the first valid structured response wins.
    """

    def __init__(
        self,
        models: Optional[Sequence[ModelDescriptor]] = None,
        settings: Optional[LLMConfig] = None,
    ) -> None:
        self._settings = settings or config.llm
        self._models = list(models if models is not None else self._settings.models)
        self._clients: dict[tuple[str, str], AsyncOpenAI] = {}
        self._instructor_clients: dict[tuple[str, str], instructor.AsyncInstructor] = {}

    @property
    def models(self) -> list[ModelDescriptor]:
        return list(self._models)

    async def initialize(self) -> None:
        """Create one client per configured endpoint."""
        for descriptor in self._models:
            self._instructor_for(descriptor)

    def _instructor_for(self, descriptor: ModelDescriptor) -> Optional[instructor.AsyncInstructor]:
        base_url, api_key = self._settings.endpoint_for(descriptor.provider)
        if not api_key:
            return None
        key = (base_url, api_key)
        if key not in self._instructor_clients:
            client = AsyncOpenAI(
                base_url=base_url,
                api_key=api_key,
                timeout=self._settings.timeout,
                max_retries=0,
            )
            self._clients[key] = client
            self._instructor_clients[key] = instructor.from_openai(
                client, mode=instructor.Mode.JSON
            )
        return self._instructor_clients[key]

    async def resolve_intent(
        self,
        message: str,
        exercise_names: Sequence[str],
        context: Optional[AssistantContext] = None,
    ) -> ModelResolution:
        """Ask each model in turn for a structured intent.

        Raises AllModelsFailedError when the chain is exhausted.
        """
        context = context or AssistantContext()
        user_prompt = build_user_prompt(
            message, list(exercise_names), context.selected_day, context.active_tab
        )
        attempted: list[str] = []

        for descriptor in self._models:
            attempted.append(str(descriptor))
            client = self._instructor_for(descriptor)
            if client is None:
                logger.warning("Skipping %s: no API key configured", descriptor)
                continue

            logger.info("Attempting assistant model %s", descriptor)
            try:
                result = await client.chat.completions.create(
                    model=descriptor.model,
                    messages=[
                        {"role": "system", "content": ASSISTANT_MASTER_PROMPT},
                        {"role": "user", "content": user_prompt},
                    ],
                    response_model=ModelIntent,
                    temperature=self._settings.temperature,
                    max_retries=1,
                )
            except Exception as e:
                logger.warning("Assistant model %s failed: %s", descriptor, e)
                continue

            intent = result.to_intent()
            logger.info("Assistant model %s returned intent %s", descriptor, intent.action)
            return ModelResolution(intent=intent, model=descriptor.model)

        logger.error("Assistant model fallback chain failed (%s)", ", ".join(attempted))
        raise AllModelsFailedError(attempted)

    async def close(self) -> None:
        """Clean up LLM client resources."""
        for client in self._clients.values():
            await client.close()
        self._clients.clear()
        self._instructor_clients.clear()
