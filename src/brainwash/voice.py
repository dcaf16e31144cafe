"""Speech-to-text for voice messages with an ordered model fallback chain."""

import json
import logging
import re
from typing import NamedTuple, Optional, Sequence

from openai import AsyncOpenAI

from .config import LLMConfig, ModelDescriptor, config

logger = logging.getLogger(__name__)

_FENCE_START_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END_RE = re.compile(r"\s*```$")
_EMBEDDED_TRANSCRIPT_RE = re.compile(r'\{.*"transcript"\s*:\s*"(.*?)".*\}', re.IGNORECASE | re.DOTALL)

# Model output that echoes the instructions instead of the speech
GUARDRAIL_PATTERNS = [
    re.compile(r"transcribe this audio", re.IGNORECASE),
    re.compile(r"return only the transcript", re.IGNORECASE),
    re.compile(r"cannot transcribe audio", re.IGNORECASE),
    re.compile(r"unable to process audio", re.IGNORECASE),
    re.compile(r"audio files", re.IGNORECASE),
]


class TranscriptionFailedError(RuntimeError):
    """No transcription model produced a usable transcript."""

    def __init__(self, attempted: Sequence[str]) -> None:
        super().__init__(f"Voice transcription failed: {', '.join(attempted) or 'no models configured'}")
        self.attempted = list(attempted)


class Transcription(NamedTuple):
    text: str
    model: str


def extract_transcript(raw_text: str) -> str:
    """Strip code fences and ``{"transcript": ...}`` wrappers from model output."""
    text = _FENCE_END_RE.sub("", _FENCE_START_RE.sub("", raw_text.strip())).strip()
    if not text:
        return ""
    try:
        parsed = json.loads(text)
    except ValueError:
        match = _EMBEDDED_TRANSCRIPT_RE.search(text)
        return match[1].strip() if match else text
    if isinstance(parsed, dict) and isinstance(parsed.get("transcript"), str):
        return parsed["transcript"].strip()
    return text


def is_guardrail_violation(text: str) -> bool:
    return any(pattern.search(text) for pattern in GUARDRAIL_PATTERNS)


class VoiceTranscriber:
    """Transcribes short voice commands, trying each configured model in order."""

    def __init__(
        self,
        models: Optional[Sequence[ModelDescriptor]] = None,
        max_length: Optional[int] = None,
        settings: Optional[LLMConfig] = None,
    ) -> None:
        self._settings = settings or config.llm
        self._models = list(models if models is not None else config.voice.models)
        self._max_length = max_length or config.voice.max_transcript_length
        self._clients: dict[tuple[str, str], AsyncOpenAI] = {}

    def _client_for(self, descriptor: ModelDescriptor) -> Optional[AsyncOpenAI]:
        base_url, api_key = self._settings.endpoint_for(descriptor.provider)
        if not api_key:
            return None
        key = (base_url, api_key)
        if key not in self._clients:
            self._clients[key] = AsyncOpenAI(
                base_url=base_url,
                api_key=api_key,
                timeout=self._settings.timeout,
                max_retries=0,
            )
        return self._clients[key]

    def _accept(self, raw_text: str, descriptor: ModelDescriptor) -> Optional[str]:
        text = extract_transcript(raw_text)
        if not text:
            logger.warning("Voice model %s returned an empty transcript", descriptor)
            return None
        if is_guardrail_violation(text):
            logger.warning("Voice model %s echoed instructions, transcript rejected", descriptor)
            return None
        if len(text) > self._max_length:
            logger.warning(
                "Voice model %s transcript too long (%d > %d chars)",
                descriptor, len(text), self._max_length,
            )
            return None
        return text

    async def transcribe(
        self,
        audio: bytes,
        filename: str = "voice.ogg",
        content_type: str = "audio/ogg",
    ) -> Transcription:
        """Transcribe audio bytes. Raises TranscriptionFailedError."""
        attempted: list[str] = []
        for descriptor in self._models:
            attempted.append(str(descriptor))
            client = self._client_for(descriptor)
            if client is None:
                logger.warning("Skipping voice model %s: no API key configured", descriptor)
                continue

            logger.info("Attempting voice transcription with %s (%d bytes)", descriptor, len(audio))
            try:
                response = await client.audio.transcriptions.create(
                    model=descriptor.model,
                    file=(filename, audio, content_type),
                )
            except Exception as e:
                logger.warning("Voice model %s failed: %s", descriptor, e)
                continue

            text = self._accept(response.text or "", descriptor)
            if text is not None:
                logger.info("Voice transcription via %s: %r", descriptor, text)
                return Transcription(text=text, model=descriptor.model)

        logger.error("Voice transcription failed for every model (%s)", ", ".join(attempted))
        raise TranscriptionFailedError(attempted)

    async def close(self) -> None:
        for client in self._clients.values():
            await client.close()
        self._clients.clear()
