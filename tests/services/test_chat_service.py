"""Chat service tests over a real SQLite chat log."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from repo_lens.domain.entities import ChatMessage, ChatRole, LlmProvider
from repo_lens.domain.exceptions import AnalysisNotFoundError, LlmError, ProviderNotConfiguredError
from repo_lens.infrastructure.chat_repository import SqliteChatStore
from repo_lens.services.analyze_repo import dump_cached
from repo_lens.services.chat import ChatService, build_conversation_prompt, build_system_prompt


@pytest.fixture
def store(session_factory) -> SqliteChatStore:
    return SqliteChatStore(session_factory)


@pytest.fixture
def seeded_cache(memory_cache, cached_analysis):
    """A cache that already holds the analysis of Acme/Widget."""
    memory_cache.data["analysis:acme/widget"] = dump_cached(cached_analysis)
    return memory_cache


def message(role: ChatRole, content: str) -> ChatMessage:
    return ChatMessage(repo_id="acme/widget", role=role, content=content, timestamp=datetime.now(timezone.utc))


class TestPrompts:
    """System and conversation prompt rendering."""

    def test_system_prompt_mentions_repository(self, cached_analysis) -> None:
        prompt = build_system_prompt(cached_analysis)
        assert "Acme/Widget" in prompt
        assert "- src/index.ts (TypeScript)" in prompt
        assert "package.json" in prompt

    def test_conversation_ends_with_open_turn(self) -> None:
        history = [message(ChatRole.USER, "hi"), message(ChatRole.ASSISTANT, "hello")]
        prompt = build_conversation_prompt(history)
        assert "User: hi" in prompt
        assert "Assistant: hello" in prompt
        assert prompt.endswith("Assistant:")


class TestChatService:
    """ChatService send/history/clear tests."""

    @pytest.mark.asyncio
    async def test_send_persists_both_turns(self, store, seeded_cache, fake_gateway_cls, fake_factory_cls) -> None:
        gateway = fake_gateway_cls("It is a widget server.", provider=LlmProvider.GROQ, model="llama")
        service = ChatService(store, seeded_cache, fake_factory_cls(gateway, preferred="groq"))

        reply = await service.send("Acme/Widget", "What is this?")

        assert reply.role is ChatRole.ASSISTANT
        assert reply.content == "It is a widget server."
        assert (reply.provider, reply.model) == ("groq", "llama")
        assert reply.id is not None
        history = await service.history("acme/widget")
        assert [(m.role, m.content) for m in history] == [
            (ChatRole.USER, "What is this?"),
            (ChatRole.ASSISTANT, "It is a widget server."),
        ]
        prompt, system = gateway.calls[0]
        assert "User: What is this?" in prompt
        assert "Acme/Widget" in system
        assert gateway.closed

    @pytest.mark.asyncio
    async def test_context_window_is_limited(self, store, seeded_cache, fake_gateway_cls, fake_factory_cls) -> None:
        """Only the newest history_limit messages reach the prompt."""
        for i in range(6):
            store.append(message(ChatRole.USER, f"old-{i}"))
        gateway = fake_gateway_cls("ok")
        service = ChatService(store, seeded_cache, fake_factory_cls(gateway), history_limit=3)

        await service.send("acme/widget", "latest")

        prompt, _ = gateway.calls[0]
        assert "old-3" not in prompt
        assert "old-4" in prompt and "old-5" in prompt and "latest" in prompt

    @pytest.mark.asyncio
    async def test_requires_analysis(self, store, memory_cache, fake_gateway_cls, fake_factory_cls) -> None:
        service = ChatService(store, memory_cache, fake_factory_cls(fake_gateway_cls()))
        with pytest.raises(AnalysisNotFoundError):
            await service.send("acme/widget", "hi")
        assert store.stats("acme/widget").total == 0

    @pytest.mark.asyncio
    async def test_unconfigured_provider_propagates(self, store, seeded_cache, fake_factory_cls) -> None:
        service = ChatService(store, seeded_cache, fake_factory_cls(None))
        with pytest.raises(ProviderNotConfiguredError):
            await service.send("acme/widget", "hi")

    @pytest.mark.asyncio
    async def test_llm_failure_propagates(self, store, seeded_cache, fake_gateway_cls, fake_factory_cls, failing_reply) -> None:
        """The user turn is kept; no assistant turn is written."""
        gateway = fake_gateway_cls(failing_reply)
        service = ChatService(store, seeded_cache, fake_factory_cls(gateway))

        with pytest.raises(LlmError):
            await service.send("acme/widget", "hi")

        assert [m.role for m in await service.history("acme/widget")] == [ChatRole.USER]
        assert gateway.closed

    @pytest.mark.asyncio
    async def test_clear(self, store, memory_cache, fake_factory_cls) -> None:
        store.append(message(ChatRole.USER, "a"))
        store.append(message(ChatRole.ASSISTANT, "b"))
        service = ChatService(store, memory_cache, fake_factory_cls(None))

        assert await service.clear("ACME/widget") == 2
        assert await service.history("acme/widget") == []

    @pytest.mark.asyncio
    async def test_stats_cover_whole_log(self, store, memory_cache, fake_factory_cls) -> None:
        """Stats count every stored message, not just the returned window."""
        for i in range(4):
            store.append(message(ChatRole.USER, f"q{i}"))
        store.append(message(ChatRole.ASSISTANT, "a"))
        service = ChatService(store, memory_cache, fake_factory_cls(None))

        assert len(await service.history("Acme/Widget", limit=2)) == 2
        stats = await service.stats("Acme/Widget")
        assert (stats.total, stats.user_messages, stats.assistant_messages) == (5, 4, 1)
