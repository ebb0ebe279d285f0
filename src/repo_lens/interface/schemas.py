"""Pydantic request / response DTOs for the API boundary."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from repo_lens.domain.entities import ChatMessage, ChatStats, LlmProvider
from repo_lens.services.readme_generator import DEFAULT_COMMIT_MESSAGE

# ── Analysis ────────────────────────────────────────────────────────────────


class AnalyzeRequest(BaseModel):
    """Request body for ``POST /api/analyze``."""

    url: str
    provider: LlmProvider | None = None
    force_refresh: bool = False

    @field_validator("url")
    @classmethod
    def _must_not_be_empty(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            msg = "url must not be empty."
            raise ValueError(msg)
        return stripped


class AnalysisResponse(BaseModel):
    """A ``CachedAnalysis`` (context, analysis, cached_at) plus cache status."""

    status: str = "success"
    cached: bool
    data: dict[str, Any]


class StatusResponse(BaseModel):
    status: str = "success"
    message: str


# ── Chat ────────────────────────────────────────────────────────────────────


class ChatSendRequest(BaseModel):
    message: str = Field(min_length=1, max_length=10_000)
    provider: LlmProvider | None = None


class ChatMessageOut(BaseModel):
    id: int | None
    repo_id: str
    role: str
    content: str
    timestamp: datetime
    provider: str | None = None
    model: str | None = None

    @classmethod
    def from_domain(cls, message: ChatMessage) -> ChatMessageOut:
        return cls(
            id=message.id,
            repo_id=message.repo_id,
            role=message.role.value,
            content=message.content,
            timestamp=message.timestamp,
            provider=message.provider,
            model=message.model,
        )


class ChatSendResponse(BaseModel):
    status: str = "success"
    message: ChatMessageOut


class ChatStatsOut(BaseModel):
    total: int
    user_messages: int
    assistant_messages: int
    last_message_at: datetime | None = None

    @classmethod
    def from_domain(cls, stats: ChatStats) -> ChatStatsOut:
        return cls(
            total=stats.total,
            user_messages=stats.user_messages,
            assistant_messages=stats.assistant_messages,
            last_message_at=stats.last_message_at,
        )


class ChatHistoryResponse(BaseModel):
    status: str = "success"
    repo_id: str
    messages: list[ChatMessageOut]
    count: int
    stats: ChatStatsOut


class ChatClearResponse(BaseModel):
    status: str = "success"
    deleted: int


# ── README ──────────────────────────────────────────────────────────────────


class ReadmeGenerateRequest(BaseModel):
    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    provider: LlmProvider | None = None
    include_badges: bool = True
    include_banner: bool = True
    include_toc: bool = True


class ReadmeGenerateResponse(BaseModel):
    status: str = "success"
    markdown: str
    badges: list[str]
    sections: list[str]


class ReadmePushRequest(BaseModel):
    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    content: str = Field(min_length=1)
    message: str = DEFAULT_COMMIT_MESSAGE
    branch: str = "main"


class ReadmePushResponse(BaseModel):
    status: str = "success"
    path: str
    content_url: str
    commit_sha: str
    commit_message: str


# ── Settings ────────────────────────────────────────────────────────────────


class ProviderStatus(BaseModel):
    configured: bool
    model: str


class SettingsResponse(BaseModel):
    """Provider configuration; API keys are never echoed back."""

    preferred_provider: str
    providers: dict[str, ProviderStatus]


class SettingsUpdateRequest(BaseModel):
    preferred_provider: LlmProvider | None = None
    models: dict[LlmProvider, str] = Field(default_factory=dict)


class ApiKeysRequest(BaseModel):
    keys: dict[LlmProvider, str]


class ApiKeysResponse(BaseModel):
    success: bool
    valid_keys: dict[str, bool]


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    message: str
