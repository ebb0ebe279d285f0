"""SQLite chat log — implements the ChatStore port."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.orm import sessionmaker

from repo_lens.domain.entities import ChatMessage, ChatRole, ChatStats
from repo_lens.infrastructure.database import ChatRow


class SqliteChatStore:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._sessions = session_factory

    def append(self, message: ChatMessage) -> ChatMessage:
        with self._sessions() as session:
            row = ChatRow(
                repo_id=message.repo_id,
                role=message.role.value,
                content=message.content,
                # SQLite has no tz-aware column type: store naive UTC.
                timestamp=message.timestamp.astimezone(timezone.utc).replace(tzinfo=None),
                provider=message.provider,
                model=message.model,
            )
            session.add(row)
            session.commit()
            return _to_message(row)

    def history(self, repo_id: str, limit: int = 50) -> list[ChatMessage]:
        """Newest *limit* messages for *repo_id*, returned oldest first."""
        with self._sessions() as session:
            rows = session.scalars(
                select(ChatRow)
                .where(ChatRow.repo_id == repo_id)
                .order_by(ChatRow.id.desc())
                .limit(limit)
            ).all()
        return [_to_message(row) for row in reversed(rows)]

    def clear(self, repo_id: str) -> int:
        with self._sessions() as session:
            result = session.execute(delete(ChatRow).where(ChatRow.repo_id == repo_id))
            session.commit()
            return result.rowcount or 0

    def stats(self, repo_id: str) -> ChatStats:
        with self._sessions() as session:
            rows = session.execute(
                select(ChatRow.role, func.count(), func.max(ChatRow.timestamp))
                .where(ChatRow.repo_id == repo_id)
                .group_by(ChatRow.role)
            ).all()
        per_role = {role: count for role, count, _ in rows}
        latest = max((last for _, _, last in rows if last is not None), default=None)
        return ChatStats(
            total=sum(per_role.values()),
            user_messages=per_role.get(ChatRole.USER.value, 0),
            assistant_messages=per_role.get(ChatRole.ASSISTANT.value, 0),
            last_message_at=latest.replace(tzinfo=timezone.utc) if latest else None,
        )


def _to_message(row: ChatRow) -> ChatMessage:
    timestamp: datetime = row.timestamp  # type: ignore[assignment]
    return ChatMessage(
        id=row.id,  # type: ignore[arg-type]
        repo_id=row.repo_id,  # type: ignore[arg-type]
        role=ChatRole(row.role),
        content=row.content,  # type: ignore[arg-type]
        timestamp=timestamp.replace(tzinfo=timezone.utc),
        provider=row.provider,  # type: ignore[arg-type]
        model=row.model,  # type: ignore[arg-type]
    )
