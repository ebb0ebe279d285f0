"""Gateway factory and settings-to-credentials tests."""

import pytest
from pydantic import SecretStr

from repo_lens.domain.entities import LlmProvider
from repo_lens.domain.exceptions import ProviderNotConfiguredError
from repo_lens.domain.value_objects import ProviderCredentials
from repo_lens.infrastructure.config import Settings
from repo_lens.infrastructure.groq_adapter import GroqAdapter
from repo_lens.infrastructure.llm_factory import DEFAULT_MODELS, LlmGatewayFactory
from repo_lens.infrastructure.openai_adapter import OpenAIAdapter, chat_messages


class TestLlmGatewayFactory:
    """LlmGatewayFactory.create tests."""

    def test_missing_key(self) -> None:
        factory = LlmGatewayFactory(ProviderCredentials(api_keys={"openai": ""}, models={}))
        with pytest.raises(ProviderNotConfiguredError):
            factory.create(LlmProvider.OPENAI)

    def test_model_resolution(self) -> None:
        """Explicit model, then configured model, then the built-in default."""
        factory = LlmGatewayFactory(
            ProviderCredentials(api_keys={"openai": "sk", "groq": "gsk"}, models={"openai": "gpt-4o"})
        )
        assert isinstance(factory.create(LlmProvider.OPENAI), OpenAIAdapter)
        assert factory.create(LlmProvider.OPENAI).model == "gpt-4o"
        assert factory.create(LlmProvider.OPENAI, "o3-mini").model == "o3-mini"

        groq = factory.create(LlmProvider.GROQ)
        assert isinstance(groq, GroqAdapter)
        assert groq.model == DEFAULT_MODELS[LlmProvider.GROQ]


def test_chat_messages_system_first() -> None:
    assert chat_messages("q", "sys") == [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "q"},
    ]
    assert chat_messages("q", None) == [{"role": "user", "content": "q"}]


def test_settings_provider_credentials(monkeypatch) -> None:
    """Only providers with a key are configured; models are always listed."""
    for name in ("GEMINI_API_KEY", "ANTHROPIC_API_KEY", "GROQ_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(
        _env_file=None,
        openai_api_key=SecretStr("sk-env"),
        default_provider=LlmProvider.OPENAI,
        cors_origins="http://a.test, http://b.test",
    )
    creds = settings.provider_credentials()
    assert creds.api_keys == {"openai": "sk-env"}
    assert creds.models["anthropic"] == "claude-3-5-haiku-latest"
    assert creds.preferred_provider == "openai"
    assert settings.cors_origin_list() == ["http://a.test", "http://b.test"]
