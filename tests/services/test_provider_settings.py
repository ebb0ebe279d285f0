"""Provider settings tests: stored values over environment defaults."""

from __future__ import annotations

import pytest

from repo_lens.domain.entities import LlmProvider
from repo_lens.domain.value_objects import ProviderCredentials
from repo_lens.infrastructure.settings_repository import PREFERRED_PROVIDER_KEY, SettingsRepository
from repo_lens.services.provider_settings import ProviderSettingsService

DEFAULTS = ProviderCredentials(
    api_keys={"gemini": "env-gemini", "openai": ""},
    models={"gemini": "gemini-2.0-flash"},
    preferred_provider="gemini",
)


@pytest.fixture
def repository(session_factory) -> SettingsRepository:
    return SettingsRepository(session_factory)


@pytest.fixture
def factories(fake_gateway_cls, fake_factory_cls):
    """Record the credentials each validation factory is built with."""
    built: list[ProviderCredentials] = []
    gateway = fake_gateway_cls("OK")

    def make(credentials: ProviderCredentials):
        built.append(credentials)
        return fake_factory_cls(gateway)

    return make, built, gateway


class TestCredentials:
    """Merging stored settings over defaults."""

    @pytest.mark.asyncio
    async def test_defaults_when_nothing_stored(self, repository, factories) -> None:
        service = ProviderSettingsService(repository, DEFAULTS, factories[0])
        assert await service.credentials() == DEFAULTS

    @pytest.mark.asyncio
    async def test_stored_values_win(self, repository, factories) -> None:
        repository.save_provider("openai", api_key="sk-stored", model="gpt-4o")
        repository.set_preference(PREFERRED_PROVIDER_KEY, "openai")
        service = ProviderSettingsService(repository, DEFAULTS, factories[0])

        creds = await service.credentials()

        assert creds.api_key_for("openai") == "sk-stored"
        assert creds.api_key_for("gemini") == "env-gemini"
        assert creds.models["openai"] == "gpt-4o"
        assert creds.preferred_provider == "openai"

    @pytest.mark.asyncio
    async def test_unknown_stored_preference_is_ignored(self, repository, factories) -> None:
        repository.set_preference(PREFERRED_PROVIDER_KEY, "mistral")
        service = ProviderSettingsService(repository, DEFAULTS, factories[0])
        assert (await service.credentials()).preferred_provider == "gemini"

    @pytest.mark.asyncio
    async def test_update(self, repository, factories) -> None:
        service = ProviderSettingsService(repository, DEFAULTS, factories[0])
        creds = await service.update(LlmProvider.GROQ, {LlmProvider.GROQ: "llama-3.3-70b", LlmProvider.OPENAI: ""})
        assert creds.preferred_provider == "groq"
        assert creds.models["groq"] == "llama-3.3-70b"
        assert "openai" not in repository.all_providers()


class TestApiKeys:
    """Validation and storage of API keys."""

    @pytest.mark.asyncio
    async def test_valid_key_is_stored(self, repository, factories) -> None:
        make, built, gateway = factories
        service = ProviderSettingsService(repository, DEFAULTS, make)

        results = await service.save_api_keys({LlmProvider.ANTHROPIC: "sk-ant", LlmProvider.GROQ: ""})

        assert results == {"anthropic": True}
        assert built[0].api_keys == {"anthropic": "sk-ant"}
        assert repository.all_providers()["anthropic"].api_key == "sk-ant"
        assert gateway.closed

    @pytest.mark.asyncio
    async def test_invalid_key_is_not_stored(self, repository, fake_gateway_cls, fake_factory_cls, failing_reply) -> None:
        gateway = fake_gateway_cls(failing_reply)
        service = ProviderSettingsService(repository, DEFAULTS, lambda creds: fake_factory_cls(gateway))

        results = await service.save_api_keys({LlmProvider.OPENAI: "sk-bad"})

        assert results == {"openai": False}
        assert repository.all_providers() == {}
        assert gateway.closed
