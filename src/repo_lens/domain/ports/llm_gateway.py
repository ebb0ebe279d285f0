"""Port: LLM gateway — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from repo_lens.domain.entities import LlmProvider, LlmResponse
from repo_lens.domain.value_objects import ProviderCredentials


class LlmGateway(Protocol):
    """Abstract contract shared by every LLM vendor adapter."""

    provider: LlmProvider
    model: str

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> LlmResponse:
        """Generate text from *prompt* and return it with token usage."""
        ...

    async def close(self) -> None:
        """Release underlying HTTP resources."""
        ...


class LlmGatewayFactoryPort(Protocol):
    """Creates gateways for a provider from explicit credentials."""

    @property
    def credentials(self) -> ProviderCredentials: ...

    def create(self, provider: LlmProvider, model: str | None = None) -> LlmGateway:
        """Return a gateway or raise ``ProviderNotConfiguredError``."""
        ...
