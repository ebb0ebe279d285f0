"""Domain exception hierarchy.

Each exception maps to a specific HTTP status code at the interface layer.
Inner layers raise these; the outermost error-handler translates them.
"""

from __future__ import annotations


class RepoLensError(Exception):
    """Base exception for the entire application."""


# ── Input validation ────────────────────────────────────────────────────────


class InvalidGitHubUrlError(RepoLensError):
    """The supplied URL does not point to a valid GitHub repository."""


# ── GitHub API errors ───────────────────────────────────────────────────────


class RepositoryNotFoundError(RepoLensError):
    """The repository, branch or file does not exist (404)."""


class RepositoryAccessDeniedError(RepoLensError):
    """Access to the repository was denied (403)."""


class EmptyRepositoryError(RepoLensError):
    """The repository exists but has no content (empty tree)."""


class GitHubRateLimitError(RepoLensError):
    """GitHub API rate limit exceeded (429 / 403 with rate-limit header)."""


class GitHubApiError(RepoLensError):
    """Network failure or unexpected status from the GitHub API."""


class GitHubAuthRequiredError(RepoLensError):
    """A write operation was attempted without a GitHub token."""


# ── LLM errors ──────────────────────────────────────────────────────────────


class LlmError(RepoLensError):
    """Any error originating from the LLM provider."""


class ProviderNotConfiguredError(LlmError):
    """No API key is available for the requested provider."""


# ── Application state ───────────────────────────────────────────────────────


class AnalysisNotFoundError(RepoLensError):
    """No cached analysis exists for the repository."""
