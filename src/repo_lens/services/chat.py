"""Repository chat — persisted conversations grounded in a cached analysis."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from repo_lens.domain.entities import CachedAnalysis, ChatMessage, ChatRole, ChatStats, LlmProvider
from repo_lens.domain.exceptions import AnalysisNotFoundError
from repo_lens.domain.ports.cache_store import CacheStore
from repo_lens.domain.ports.chat_store import ChatStore
from repo_lens.domain.ports.llm_gateway import LlmGatewayFactoryPort
from repo_lens.domain.value_objects import GitHubUrl
from repo_lens.services.analyze_repo import read_cached

logger = logging.getLogger(__name__)

_OVERVIEW_CHARS = 1500
_KEY_FILE_LIMIT = 5

SYSTEM_PROMPT_TEMPLATE = """\
You are an AI assistant helping a developer understand the codebase of {full_name}.

Repository Context:
- Name: {name}
- Description: {description}
- Language: {language}
- Stars: {stars}

Overview: {overview}

Key Files:
{key_files}

Tech Stack: {tech_stack}

Instructions:
- Answer questions about the codebase specifically
- Reference actual files and code when relevant
- Be concise but thorough
- If unsure about something, say so honestly
"""


def build_system_prompt(cached: CachedAnalysis) -> str:
    context = cached.context
    meta = context.metadata
    key_files = "\n".join(
        f"- {f.path} ({f.language or 'unknown'})"
        for f in context.important_files[:_KEY_FILE_LIMIT]
    )
    stack = [meta.language] if meta.language else []
    stack += [name for name in context.languages if name != meta.language][:4]
    if context.package_file is not None:
        stack.append(context.package_file.type)

    return SYSTEM_PROMPT_TEMPLATE.format(
        full_name=meta.full_name,
        name=meta.name,
        description=meta.description or "N/A",
        language=meta.language or "N/A",
        stars=meta.stars,
        overview=cached.analysis.explanation[:_OVERVIEW_CHARS],
        key_files=key_files or "- (none fetched)",
        tech_stack=", ".join(stack) or "Unknown",
    )


def build_conversation_prompt(history: list[ChatMessage]) -> str:
    """Render the transcript, ending with an open ``Assistant:`` turn."""
    lines = ["=== CONVERSATION HISTORY ===", ""]
    for message in history:
        if message.role is ChatRole.USER:
            lines.append(f"User: {message.content}\n")
        elif message.role is ChatRole.ASSISTANT:
            lines.append(f"Assistant: {message.content}\n")
    lines.append("Assistant:")
    return "\n".join(lines)


class ChatService:
    """Send, list and clear chat messages for one repository at a time.

    ``repo_id`` is ``owner/repo`` and is matched case-insensitively.  The
    store is synchronous; its calls run in a worker thread.
    """

    def __init__(
        self,
        store: ChatStore,
        cache: CacheStore,
        gateway_factory: LlmGatewayFactoryPort,
        history_limit: int = 20,
    ) -> None:
        self._store = store
        self._cache = cache
        self._factory = gateway_factory
        self._history_limit = history_limit

    async def send(
        self,
        repo_id: str,
        message: str,
        provider: LlmProvider | None = None,
    ) -> ChatMessage:
        url = GitHubUrl.from_string(repo_id)
        cached = await read_cached(self._cache, url)
        if cached is None:
            raise AnalysisNotFoundError(
                f"No analysis found for {url.full_name}. Analyze the repository first."
            )

        chosen = provider or LlmProvider(self._factory.credentials.preferred_provider)
        llm = self._factory.create(chosen)

        try:
            await asyncio.to_thread(
                self._store.append,
                ChatMessage(
                    repo_id=url.repo_id,
                    role=ChatRole.USER,
                    content=message,
                    timestamp=datetime.now(timezone.utc),
                ),
            )
            recent = await asyncio.to_thread(self._store.history, url.repo_id, self._history_limit)
            logger.info("Chat for %s: %d message(s) of context", url.repo_id, len(recent))

            response = await llm.generate(
                build_conversation_prompt(recent),
                system_prompt=build_system_prompt(cached),
                temperature=0.7,
                max_tokens=2000,
            )
        finally:
            await llm.close()

        return await asyncio.to_thread(
            self._store.append,
            ChatMessage(
                repo_id=url.repo_id,
                role=ChatRole.ASSISTANT,
                content=response.content,
                timestamp=datetime.now(timezone.utc),
                provider=response.provider.value,
                model=response.model,
            ),
        )

    async def history(self, repo_id: str, limit: int = 50) -> list[ChatMessage]:
        return await asyncio.to_thread(self._store.history, GitHubUrl.from_string(repo_id).repo_id, limit)

    async def stats(self, repo_id: str) -> ChatStats:
        return await asyncio.to_thread(self._store.stats, GitHubUrl.from_string(repo_id).repo_id)

    async def clear(self, repo_id: str) -> int:
        url = GitHubUrl.from_string(repo_id)
        deleted = await asyncio.to_thread(self._store.clear, url.repo_id)
        logger.info("Cleared %d chat message(s) for %s", deleted, url.repo_id)
        return deleted
