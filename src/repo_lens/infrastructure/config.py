"""Application configuration — loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from repo_lens.domain.entities import LlmProvider
from repo_lens.domain.value_objects import ProviderCredentials


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # LLM providers — any subset may be configured
    gemini_api_key: SecretStr | None = None
    openai_api_key: SecretStr | None = None
    anthropic_api_key: SecretStr | None = None
    groq_api_key: SecretStr | None = None
    gemini_model: str = "gemini-2.0-flash"
    openai_model: str = "gpt-4o-mini"
    anthropic_model: str = "claude-3-5-haiku-latest"
    groq_model: str = "llama-3.1-8b-instant"
    default_provider: LlmProvider = LlmProvider.GEMINI

    # GitHub
    github_token: SecretStr | None = None
    github_timeout_seconds: float = 30.0

    # Storage
    redis_url: str | None = None
    database_url: str = "sqlite:///data/repolens.db"
    cache_ttl_seconds: int = 24 * 60 * 60

    # Ingestion limits
    max_important_files: int = 20
    max_file_size_bytes: int = 50_000
    max_file_tokens: int = 1_500
    max_context_tokens: int = 12_000
    chat_history_limit: int = 20

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    # Comma-separated; "*" allows any origin.
    cors_origins: str = "http://localhost:3000"

    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def provider_credentials(self) -> ProviderCredentials:
        """Environment-level LLM credentials (stored settings are merged on top)."""
        keys = {
            LlmProvider.GEMINI: self.gemini_api_key,
            LlmProvider.OPENAI: self.openai_api_key,
            LlmProvider.ANTHROPIC: self.anthropic_api_key,
            LlmProvider.GROQ: self.groq_api_key,
        }
        return ProviderCredentials(
            api_keys={p.value: key.get_secret_value() for p, key in keys.items() if key},
            models={
                LlmProvider.GEMINI.value: self.gemini_model,
                LlmProvider.OPENAI.value: self.openai_model,
                LlmProvider.ANTHROPIC.value: self.anthropic_model,
                LlmProvider.GROQ.value: self.groq_model,
            },
            preferred_provider=self.default_provider.value,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    return Settings()
