"""Stored provider settings merged over environment defaults."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from repo_lens.domain.entities import LlmProvider
from repo_lens.domain.exceptions import LlmError
from repo_lens.domain.ports.llm_gateway import LlmGatewayFactoryPort
from repo_lens.domain.value_objects import ProviderCredentials
from repo_lens.infrastructure.settings_repository import PREFERRED_PROVIDER_KEY, SettingsRepository

logger = logging.getLogger(__name__)

_VALIDATION_PROMPT = "Reply with the single word OK."


class ProviderSettingsService:
    """Resolve and update the credentials used to build LLM gateways.

    Stored values win over *defaults*; an empty stored key falls back to the
    default key for that provider.  Repository calls run in a worker thread.
    """

    def __init__(
        self,
        repository: SettingsRepository,
        defaults: ProviderCredentials,
        factory: Callable[[ProviderCredentials], LlmGatewayFactoryPort],
    ) -> None:
        self._repository = repository
        self._defaults = defaults
        self._factory = factory

    async def credentials(self) -> ProviderCredentials:
        return await asyncio.to_thread(self._merged)

    async def update(
        self,
        preferred_provider: LlmProvider | None = None,
        models: dict[LlmProvider, str] | None = None,
    ) -> ProviderCredentials:
        await asyncio.to_thread(self._store_choices, preferred_provider, models or {})
        return await self.credentials()

    async def save_api_keys(self, keys: dict[LlmProvider, str]) -> dict[str, bool]:
        """Validate each non-empty key and store only the valid ones."""
        results: dict[str, bool] = {}
        for provider, key in keys.items():
            if not key:
                continue
            valid = await self.validate_key(provider, key)
            results[provider.value] = valid
            if valid:
                await asyncio.to_thread(self._repository.save_provider, provider.value, api_key=key)
        logger.info("API key validation: %s", results)
        return results

    async def validate_key(self, provider: LlmProvider, key: str) -> bool:
        """Issue a tiny generation with *key*; any LLM error means invalid."""
        models = (await self.credentials()).models
        gateway = self._factory(ProviderCredentials(api_keys={provider.value: key}, models=models)).create(
            provider
        )
        try:
            await gateway.generate(_VALIDATION_PROMPT, temperature=0.0, max_tokens=5)
        except LlmError as exc:
            logger.warning("API key for %s failed validation: %s", provider.value, exc)
            return False
        finally:
            await gateway.close()
        return True

    def _merged(self) -> ProviderCredentials:
        api_keys = dict(self._defaults.api_keys)
        models = dict(self._defaults.models)
        for provider, stored in self._repository.all_providers().items():
            if stored.api_key:
                api_keys[provider] = stored.api_key
            if stored.model:
                models[provider] = stored.model

        preferred = self._repository.get_preference(PREFERRED_PROVIDER_KEY)
        if preferred not in {p.value for p in LlmProvider}:
            preferred = self._defaults.preferred_provider
        return ProviderCredentials(api_keys=api_keys, models=models, preferred_provider=preferred)

    def _store_choices(self, preferred_provider: LlmProvider | None, models: dict[LlmProvider, str]) -> None:
        if preferred_provider is not None:
            self._repository.set_preference(PREFERRED_PROVIDER_KEY, preferred_provider.value)
        for provider, model in models.items():
            if model:
                self._repository.save_provider(provider.value, model=model)
