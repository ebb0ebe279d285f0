"""Shared fixtures: sample repository snapshots, fake LLM gateways, SQLite."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable

import pytest
from sqlalchemy.orm import sessionmaker

from repo_lens.domain.entities import (
    AnalysisResult,
    CachedAnalysis,
    Diagrams,
    FileNode,
    ImportantFile,
    LastCommit,
    LlmProvider,
    LlmResponse,
    PackageFile,
    RepoContext,
    RepoMetadata,
    TokenUsage,
)
from repo_lens.domain.exceptions import LlmError, ProviderNotConfiguredError
from repo_lens.domain.value_objects import ProviderCredentials
from repo_lens.infrastructure.database import create_session_factory
from repo_lens.services import fallbacks


class FakeGateway:
    """In-memory ``LlmGateway``.

    ``reply`` is either a string or a callable ``(prompt, system_prompt) -> str``;
    a callable may raise to simulate a provider failure.
    """

    def __init__(
        self,
        reply: str | Callable[[str, str | None], str] = "ok",
        provider: LlmProvider = LlmProvider.GEMINI,
        model: str = "fake-model",
    ) -> None:
        self.reply = reply
        self.provider = provider
        self.model = model
        self.calls: list[tuple[str, str | None]] = []
        self.closed = False

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> LlmResponse:
        self.calls.append((prompt, system_prompt))
        text = self.reply(prompt, system_prompt) if callable(self.reply) else self.reply
        return LlmResponse(content=text, model=self.model, provider=self.provider, usage=TokenUsage())

    async def close(self) -> None:
        self.closed = True


class FakeGatewayFactory:
    """Hands out one prepared gateway, or refuses like an unconfigured provider."""

    def __init__(self, gateway: FakeGateway | None, preferred: str = "gemini") -> None:
        self.gateway = gateway
        self._credentials = ProviderCredentials(
            api_keys={preferred: "key"} if gateway else {},
            models={},
            preferred_provider=preferred,
        )
        self.created: list[LlmProvider] = []

    @property
    def credentials(self) -> ProviderCredentials:
        return self._credentials

    def create(self, provider: LlmProvider, model: str | None = None) -> FakeGateway:
        self.created.append(provider)
        if self.gateway is None:
            raise ProviderNotConfiguredError(f"No API key configured for provider '{provider.value}'.")
        return self.gateway


class MemoryCache:
    """Dict-backed ``CacheStore`` that records the TTLs it was given."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str) -> Any | None:
        return self.data.get(key)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)
        self.ttls.pop(key, None)


def build_context(**overrides: Any) -> RepoContext:
    metadata = RepoMetadata(
        owner="Acme",
        name="Widget",
        full_name="Acme/Widget",
        description="Widgets as a service",
        language="TypeScript",
        license="MIT",
        stars=42,
        forks=7,
        topics=("widgets", "api"),
    )
    values: dict[str, Any] = {
        "owner": "Acme",
        "repo": "Widget",
        "metadata": metadata,
        "file_tree": (
            FileNode("src", "tree"),
            FileNode("src/index.ts", "blob", 1200),
            FileNode("package.json", "blob", 300),
            FileNode("README.md", "blob", 800),
        ),
        "readme": "# Widget\n\nWidgets as a service.",
        "package_file": PackageFile(
            type="package.json",
            path="package.json",
            content='{"scripts": {"dev": "next dev"}, "dependencies": {"next": "14.0.0"}}',
            dependencies=("next",),
        ),
        "important_files": (
            ImportantFile("src/index.ts", "export const main = () => 1;\n", 1200, 75, "TypeScript"),
        ),
        "languages": {"TypeScript": 9000, "CSS": 1000},
        "contributors": 3,
        "last_commit": LastCommit(sha="abc123", message="init", author="dev", date="2024-05-01T00:00:00Z"),
        "fetched_at": datetime(2024, 5, 2, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return RepoContext(**values)


@pytest.fixture
def fake_gateway_cls() -> type[FakeGateway]:
    """The ``FakeGateway`` class, for tests that need custom replies."""
    return FakeGateway


@pytest.fixture
def fake_factory_cls() -> type[FakeGatewayFactory]:
    return FakeGatewayFactory


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def repo_context() -> RepoContext:
    """A small TypeScript repository snapshot."""
    return build_context()


@pytest.fixture
def context_builder() -> Callable[..., RepoContext]:
    """Build a ``RepoContext`` with selected fields overridden."""
    return build_context


@pytest.fixture
def cached_analysis(repo_context: RepoContext) -> CachedAnalysis:
    """A fallback-only analysis of ``repo_context``."""
    analysis = AnalysisResult(
        explanation=fallbacks.default_explanation(repo_context),
        score=fallbacks.default_score(),
        diagrams=Diagrams(
            architecture=fallbacks.default_architecture_diagram(repo_context),
            workflow=fallbacks.default_workflow_diagram(repo_context),
        ),
        deployment=fallbacks.default_deployment(repo_context),
        mcp_config=fallbacks.default_mcp_config(repo_context),
        provider="gemini",
    )
    return CachedAnalysis(
        context=repo_context,
        analysis=analysis,
        cached_at=datetime(2024, 5, 2, 12, tzinfo=timezone.utc),
    )


@pytest.fixture
def session_factory(tmp_path) -> sessionmaker:
    """A fresh SQLite database file per test."""
    return create_session_factory(f"sqlite:///{tmp_path / 'test.db'}")


@pytest.fixture
def failing_reply() -> Callable[[str, str | None], str]:
    def _raise(prompt: str, system_prompt: str | None) -> str:
        raise LlmError("provider unavailable")

    return _raise

