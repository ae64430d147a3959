"""Application settings loaded from environment variables via pydantic-settings.

Configuration is read from two sources, in priority order:

  1. **Environment variables** -- e.g. ``OPENAI_API_KEY=sk-abc123``
  2. **.env file** -- key=value lines in the project root ``.env`` file

Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``.  Defaults apply
when neither source defines a field.  An empty API key means "provider not
configured": the provider chain builder in ``docaugment/main.py`` skips it.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """docaugment application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Completion providers ===
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenRouter, TogetherAI, or any OpenAI-compatible API
    openai_text_model: str = ""  # e.g. deepseek/deepseek-chat on OpenRouter
    openai_embedding_model: str = ""
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    ollama_base_url: str = "http://localhost:11434"
    ollama_text_model: str = "llama3.1"
    ollama_embedding_model: str = "nomic-embed-text"

    # === Orchestration ===
    provider_timeout_seconds: float = Field(default=60.0, gt=0)
    completion_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    summary_max_input_chars: int = Field(default=100_000, gt=0)

    # === Chunking / embeddings ===
    chunk_size: int = Field(default=1000, gt=0)
    embedding_concurrency: int = Field(default=4, ge=1, le=32)

    # === Search ===
    search_max_distance: float = Field(default=0.5, ge=0.0, le=2.0)
    search_default_limit: int = Field(default=5, ge=1)

    # === Storage ===
    database_path: str = "data/docaugment.db"

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_llm_providers(self) -> list[str]:
        """Return the completion providers that have credentials or a URL configured."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.ollama_base_url:
            providers.append("ollama")
        return providers

    def get_available_embedding_providers(self) -> list[str]:
        """Return the embedding providers that have credentials or a URL configured."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.ollama_base_url:
            providers.append("nomic")
        return providers
