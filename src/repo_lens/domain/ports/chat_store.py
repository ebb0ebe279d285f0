"""Port: append-only chat log keyed by repository id."""

from __future__ import annotations

from typing import Protocol

from repo_lens.domain.entities import ChatMessage, ChatStats


class ChatStore(Protocol):
    def append(self, message: ChatMessage) -> ChatMessage:
        """Persist *message* and return it with its assigned id."""
        ...

    def history(self, repo_id: str, limit: int = 50) -> list[ChatMessage]:
        """Return the newest *limit* messages of *repo_id*, oldest first."""
        ...

    def clear(self, repo_id: str) -> int:
        """Delete every message of *repo_id* and return how many were removed."""
        ...

    def stats(self, repo_id: str) -> ChatStats:
        ...
