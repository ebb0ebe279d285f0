"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class LlmProvider(str, Enum):
    """The interchangeable LLM vendors an analysis can run against."""

    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GROQ = "groq"


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


# ── Repository snapshot ─────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class FileNode:
    """A single node from the GitHub tree API (blob or sub-tree)."""

    path: str
    type: str  # "blob" or "tree"
    size: int = 0


@dataclass(frozen=True, slots=True)
class RepoMetadata:
    """High-level metadata about a GitHub repository."""

    owner: str
    name: str
    full_name: str
    default_branch: str = "main"
    description: str | None = None
    language: str | None = None
    license: str | None = None
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    topics: tuple[str, ...] = ()
    homepage: str | None = None
    created_at: str = ""
    updated_at: str = ""
    pushed_at: str = ""


@dataclass(frozen=True, slots=True)
class LastCommit:
    sha: str = ""
    message: str = ""
    author: str = ""
    date: str = ""


@dataclass(frozen=True, slots=True)
class PackageFile:
    """The dependency manifest detected at the repository root (or nested)."""

    type: str
    path: str
    content: str
    dependencies: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RankedFile:
    """A tree entry that survived filtering, with its importance score."""

    path: str
    size: int
    score: int


@dataclass(frozen=True, slots=True)
class ImportantFile:
    """A ranked file whose (truncated) content was fetched for the LLM."""

    path: str
    content: str
    size: int
    importance: int
    language: str | None = None


@dataclass(frozen=True, slots=True)
class RepoContext:
    """Snapshot of a repository at fetch time."""

    owner: str
    repo: str
    metadata: RepoMetadata
    file_tree: tuple[FileNode, ...]
    readme: str
    package_file: PackageFile | None
    important_files: tuple[ImportantFile, ...]
    languages: dict[str, int]
    contributors: int
    last_commit: LastCommit
    fetched_at: datetime

    @property
    def repo_id(self) -> str:
        return f"{self.owner}/{self.repo}".lower()

    @property
    def file_count(self) -> int:
        return sum(1 for node in self.file_tree if node.type == "blob")


# ── Analysis artefacts ──────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    code_quality: float
    documentation: float
    testing: float
    activity: float
    dependencies: float
    community: float


@dataclass(frozen=True, slots=True)
class RepoScore:
    """1-10 overall score plus the fixed six-dimension breakdown."""

    overall: float
    breakdown: ScoreBreakdown
    details: dict[str, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DeploymentOption:
    name: str
    description: str = ""
    difficulty: str = "Easy"
    estimated_time: str = ""
    steps: tuple[str, ...] = ()
    features: tuple[str, ...] = ()
    pricing: str = ""


@dataclass(frozen=True, slots=True)
class DeploymentGuide:
    free: tuple[DeploymentOption, ...]
    paid: tuple[DeploymentOption, ...]


@dataclass(frozen=True, slots=True)
class Diagrams:
    """Mermaid sources for the architecture and workflow diagrams."""

    architecture: str
    workflow: str


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Everything produced by one analysis run."""

    explanation: str
    score: RepoScore
    diagrams: Diagrams
    deployment: DeploymentGuide
    mcp_config: dict[str, Any]
    provider: str


@dataclass(frozen=True, slots=True)
class CachedAnalysis:
    """The cache entry stored under ``analysis:{owner}/{repo}``."""

    context: RepoContext
    analysis: AnalysisResult
    cached_at: datetime


# ── LLM / chat / README ─────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True, slots=True)
class LlmResponse:
    """Text returned by a provider plus its token accounting."""

    content: str
    model: str
    provider: LlmProvider
    usage: TokenUsage = field(default_factory=TokenUsage)


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """One entry of a repository's append-only chat log."""

    repo_id: str
    role: ChatRole
    content: str
    timestamp: datetime
    id: int | None = None
    provider: str | None = None
    model: str | None = None


@dataclass(frozen=True, slots=True)
class ChatStats:
    """Totals over a repository's whole chat log, not just the returned window."""

    total: int = 0
    user_messages: int = 0
    assistant_messages: int = 0
    last_message_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class ReadmeResult:
    markdown: str
    badges: tuple[str, ...]
    sections: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class PushResult:
    """Outcome of a ``PUT /contents`` call on GitHub."""

    path: str
    content_url: str
    commit_sha: str
    commit_message: str
