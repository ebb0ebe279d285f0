"""Build an ``LlmGateway`` for a provider from explicit credentials."""

from __future__ import annotations

from typing import Callable

from repo_lens.domain.entities import LlmProvider
from repo_lens.domain.exceptions import ProviderNotConfiguredError
from repo_lens.domain.ports.llm_gateway import LlmGateway
from repo_lens.domain.value_objects import ProviderCredentials
from repo_lens.infrastructure.anthropic_adapter import AnthropicAdapter
from repo_lens.infrastructure.gemini_adapter import GeminiAdapter
from repo_lens.infrastructure.groq_adapter import GroqAdapter
from repo_lens.infrastructure.openai_adapter import OpenAIAdapter

DEFAULT_MODELS: dict[LlmProvider, str] = {
    LlmProvider.GEMINI: "gemini-2.0-flash",
    LlmProvider.OPENAI: "gpt-4o-mini",
    LlmProvider.ANTHROPIC: "claude-3-5-haiku-latest",
    LlmProvider.GROQ: "llama-3.1-8b-instant",
}

_ADAPTERS: dict[LlmProvider, Callable[[str, str], LlmGateway]] = {
    LlmProvider.GEMINI: GeminiAdapter,
    LlmProvider.OPENAI: OpenAIAdapter,
    LlmProvider.ANTHROPIC: AnthropicAdapter,
    LlmProvider.GROQ: GroqAdapter,
}


class LlmGatewayFactory:
    """Creates provider adapters; holds no state beyond the credentials it was given."""

    def __init__(self, credentials: ProviderCredentials) -> None:
        self._credentials = credentials

    @property
    def credentials(self) -> ProviderCredentials:
        return self._credentials

    def create(self, provider: LlmProvider, model: str | None = None) -> LlmGateway:
        """Return a ready adapter or raise ``ProviderNotConfiguredError``."""
        api_key = self._credentials.api_key_for(provider.value)
        if not api_key:
            raise ProviderNotConfiguredError(
                f"No API key configured for provider '{provider.value}'. "
                "Add one in settings or via the environment."
            )
        chosen = model or self._credentials.models.get(provider.value) or DEFAULT_MODELS[provider]
        return _ADAPTERS[provider](api_key, chosen)
