"""HTTP API tests with dependencies overridden by in-memory fakes."""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from repo_lens.domain.entities import PushResult
from repo_lens.domain.value_objects import ProviderCredentials
from repo_lens.infrastructure.chat_repository import SqliteChatStore
from repo_lens.infrastructure.settings_repository import SettingsRepository
from repo_lens.interface import dependencies as deps
from repo_lens.interface.app import create_app
from repo_lens.services.analysis_orchestrator import AnalysisOrchestrator
from repo_lens.services.analyze_repo import AnalyzeRepoUseCase, dump_cached
from repo_lens.services.chat import ChatService
from repo_lens.services.provider_settings import ProviderSettingsService


class StubScraper:
    def __init__(self, context) -> None:
        self.context = context

    async def execute(self, url):
        return self.context


class StubPusher:
    async def get_file_sha(self, url, path, ref, token):
        return None

    async def put_file(self, url, path, content, *, message, branch, token, sha=None) -> PushResult:
        return PushResult(path=path, content_url="https://github.com/x", commit_sha="c0ffee", commit_message=message)


@pytest.fixture
def gateway(fake_gateway_cls):
    return fake_gateway_cls("Answer from the model.")


@pytest.fixture
def app(memory_cache, session_factory, repo_context, gateway, fake_factory_cls, fake_gateway_cls):
    """The FastAPI app wired to fakes; lifespan resources are never created."""
    application = create_app()
    factory = fake_factory_cls(gateway)
    defaults = ProviderCredentials(api_keys={"gemini": "env-key"}, models={}, preferred_provider="gemini")

    application.dependency_overrides = {
        deps.get_cache: lambda: memory_cache,
        deps.get_session_factory: lambda: session_factory,
        deps.get_gateway_factory: lambda: factory,
        deps.get_repo_fetcher: StubPusher,
        deps.get_analyze_use_case: lambda: AnalyzeRepoUseCase(
            memory_cache, StubScraper(repo_context), AnalysisOrchestrator(2_000), factory
        ),
        deps.get_chat_service: lambda: ChatService(SqliteChatStore(session_factory), memory_cache, factory),
        deps.get_provider_settings: lambda: ProviderSettingsService(
            SettingsRepository(session_factory),
            defaults,
            lambda creds: fake_factory_cls(fake_gateway_cls("OK")),
        ),
        deps.get_push_token: lambda: "ghp_test",
    }
    return application


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client bound to the app in-process."""
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as http:
        yield http


class TestAnalyzeRoutes:
    """/api/analyze and /api/repo routes."""

    @pytest.mark.asyncio
    async def test_analyze_then_cached(self, client) -> None:
        first = await client.post("/api/analyze", json={"url": "https://github.com/Acme/Widget"})
        second = await client.post("/api/analyze", json={"url": "acme/widget"})

        assert first.status_code == 200
        assert first.json()["cached"] is False
        assert second.json()["cached"] is True
        data = second.json()["data"]
        assert data["context"]["metadata"]["full_name"] == "Acme/Widget"
        assert data["analysis"]["explanation"] == "Answer from the model."

    @pytest.mark.asyncio
    async def test_analyze_rejects_bad_url(self, client) -> None:
        resp = await client.post("/api/analyze", json={"url": "https://gitlab.com/a/b"})
        assert resp.status_code == 422
        assert resp.json()["status"] == "error"

    @pytest.mark.asyncio
    async def test_analyze_rejects_blank_url(self, client) -> None:
        resp = await client.post("/api/analyze", json={"url": "   "})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_get_and_delete_cached_repo(self, client, memory_cache, cached_analysis) -> None:
        assert (await client.get("/api/repo/acme/widget")).status_code == 404

        memory_cache.data["analysis:acme/widget"] = dump_cached(cached_analysis)
        resp = await client.get("/api/repo/Acme/Widget")
        assert resp.status_code == 200
        assert resp.json()["cached"] is True

        assert (await client.delete("/api/repo/acme/widget")).status_code == 200
        assert memory_cache.data == {}


class TestChatRoutes:
    """/api/chat routes."""

    @pytest.mark.asyncio
    async def test_chat_round_trip(self, client, memory_cache, cached_analysis) -> None:
        memory_cache.data["analysis:acme/widget"] = dump_cached(cached_analysis)

        sent = await client.post("/api/chat/acme/widget", json={"message": "What does it do?"})
        assert sent.status_code == 200
        assert sent.json()["message"]["content"] == "Answer from the model."
        assert sent.json()["message"]["role"] == "assistant"

        history = await client.get("/api/chat/Acme/Widget", params={"limit": 10})
        body = history.json()
        assert body["repo_id"] == "acme/widget"
        assert body["count"] == 2
        assert body["stats"]["total"] == 2
        assert (body["stats"]["user_messages"], body["stats"]["assistant_messages"]) == (1, 1)
        assert body["stats"]["last_message_at"] is not None
        assert [m["role"] for m in body["messages"]] == ["user", "assistant"]

        cleared = await client.delete("/api/chat/acme/widget")
        assert cleared.json()["deleted"] == 2

    @pytest.mark.asyncio
    async def test_chat_without_analysis(self, client) -> None:
        resp = await client.post("/api/chat/acme/widget", json={"message": "hi"})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, client) -> None:
        resp = await client.post("/api/chat/acme/widget", json={"message": ""})
        assert resp.status_code == 422


class TestReadmeRoutes:
    """/api/readme routes."""

    @pytest.mark.asyncio
    async def test_generate_requires_analysis(self, client) -> None:
        resp = await client.post("/api/readme/generate", json={"owner": "acme", "repo": "widget"})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_generate(self, client, memory_cache, cached_analysis, gateway) -> None:
        memory_cache.data["analysis:acme/widget"] = dump_cached(cached_analysis)
        resp = await client.post(
            "/api/readme/generate", json={"owner": "acme", "repo": "widget", "include_toc": False}
        )
        assert resp.status_code == 200
        assert "Answer from the model." in resp.json()["markdown"]
        assert "Table of Contents" not in resp.json()["markdown"]
        assert gateway.closed

    @pytest.mark.asyncio
    async def test_push(self, client) -> None:
        resp = await client.post("/api/readme/push", json={"owner": "acme", "repo": "widget", "content": "# hi"})
        assert resp.status_code == 200
        assert resp.json()["commit_sha"] == "c0ffee"
        assert resp.json()["commit_message"] == "docs: Update README via RepoLens"

    @pytest.mark.asyncio
    async def test_push_without_token(self, app, client) -> None:
        app.dependency_overrides[deps.get_push_token] = lambda: None
        resp = await client.post("/api/readme/push", json={"owner": "acme", "repo": "widget", "content": "# hi"})
        assert resp.status_code == 401

    def test_bearer_header_wins(self) -> None:
        assert deps.get_push_token("Bearer ghp_abc") == "ghp_abc"


class TestSettingsRoutes:
    """/api/settings routes."""

    @pytest.mark.asyncio
    async def test_read_update_and_keys(self, client) -> None:
        initial = (await client.get("/api/settings")).json()
        assert initial["preferred_provider"] == "gemini"
        assert initial["providers"]["gemini"]["configured"] is True
        assert initial["providers"]["openai"]["configured"] is False
        assert initial["providers"]["openai"]["model"] == "gpt-4o-mini"

        updated = await client.put(
            "/api/settings", json={"preferred_provider": "openai", "models": {"openai": "gpt-4o"}}
        )
        assert updated.json()["preferred_provider"] == "openai"
        assert updated.json()["providers"]["openai"]["model"] == "gpt-4o"

        keys = await client.post("/api/settings/keys", json={"keys": {"openai": "sk-new"}})
        assert keys.json() == {"success": True, "valid_keys": {"openai": True}}
        assert (await client.get("/api/settings")).json()["providers"]["openai"]["configured"] is True

    @pytest.mark.asyncio
    async def test_unknown_provider_rejected(self, client) -> None:
        resp = await client.put("/api/settings", json={"preferred_provider": "mistral"})
        assert resp.status_code == 422


@pytest.mark.asyncio
async def test_health(client) -> None:
    assert (await client.get("/health")).json() == {"status": "ok"}
