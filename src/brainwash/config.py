"""Configuration management for Brainwash."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

Provider = Literal["google", "openai", "ollama"]


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    url: str = Field(
        default="sqlite+aiosqlite:///brainwash.db",
        description="SQLAlchemy database URL",
    )
    pool_size: int = Field(default=5, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Max overflow connections")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")


class ModelDescriptor(BaseModel):
    """One entry of an ordered model fallback chain."""

    provider: Provider = Field(description="Provider the model is served by")
    model: str = Field(description="Model name as the provider knows it")

    def __str__(self) -> str:
        return f"{self.provider}/{self.model}"


class LLMConfig(BaseModel):
    """Language model providers and the assistant fallback chain."""

    google_api_key: str = Field(default="", description="Gemini API key")
    google_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/openai/",
        description="Gemini OpenAI-compatible endpoint",
    )
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1", description="OpenAI base URL"
    )
    ollama_base_url: str = Field(
        default="http://localhost:11434", description="Ollama base URL"
    )
    models: list[ModelDescriptor] = Field(
        default_factory=lambda: [
            ModelDescriptor(provider="google", model="gemini-3-flash-preview"),
            ModelDescriptor(provider="google", model="gemini-2.5-flash-lite"),
            ModelDescriptor(provider="google", model="gemini-2.5-flash"),
            ModelDescriptor(provider="openai", model="gpt-4o-mini"),
            ModelDescriptor(provider="openai", model="gpt-4.1-mini"),
        ],
        description="Models tried in order for intent resolution",
    )
    timeout: int = Field(default=30, description="Request timeout in seconds")
    temperature: float = Field(default=0.0, description="Sampling temperature")

    def endpoint_for(self, provider: Provider) -> tuple[str, str]:
        """Return (base_url, api_key) for a provider. Empty key = not configured."""
        if provider == "google":
            return self.google_base_url, self.google_api_key
        if provider == "openai":
            return self.openai_base_url.rstrip("/"), self.openai_api_key
        # Ollama ignores the key but the OpenAI client requires one
        return f"{self.ollama_base_url.rstrip('/')}/v1", "ollama"


class VoiceConfig(BaseModel):
    """Speech-to-text configuration."""

    models: list[ModelDescriptor] = Field(
        default_factory=lambda: [
            ModelDescriptor(provider="openai", model="gpt-4o-mini-transcribe"),
            ModelDescriptor(provider="openai", model="whisper-1"),
        ],
        description="Transcription models tried in order",
    )
    max_transcript_length: int = Field(
        default=260, description="Longer transcripts are rejected as non-commands"
    )


class TelegramConfig(BaseModel):
    """Telegram bot configuration."""

    token: str = Field(default="", description="Bot token")
    allowed_user_ids: list[int] = Field(
        default_factory=list,
        description="Telegram user IDs allowed to use the bot (empty = no restriction)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Log level"
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string",
    )


class AppConfig(BaseModel):
    """Application behaviour."""

    timezone: str = Field(
        default="Europe/Berlin", description="IANA timezone that defines calendar days"
    )
    cli_user_id: int = Field(default=1, description="User ID the interactive CLI acts as")
    stats_weeks: int = Field(
        default=8, ge=1, le=24, description="Weeks shown by weekly category stats"
    )


class Config(BaseSettings):
    """Main application configuration."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    voice: VoiceConfig = Field(default_factory=VoiceConfig)
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    app: AppConfig = Field(default_factory=AppConfig)

    # Application settings
    debug: bool = Field(default=False, description="Enable debug mode")
    environment: Literal["development", "production"] = Field(
        default="development", description="Application environment"
    )

    class Config:
        env_nested_delimiter = "__"
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global configuration instance
config = Config()
