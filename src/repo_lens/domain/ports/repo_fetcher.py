"""Port: repository fetcher — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from repo_lens.domain.entities import FileNode, LastCommit, PushResult, RepoMetadata
from repo_lens.domain.value_objects import GitHubUrl


class RepoFetcher(Protocol):
    """Abstract contract for reading from (and writing to) GitHub repositories."""

    async def fetch_metadata(self, url: GitHubUrl) -> RepoMetadata:
        """Return high-level repository metadata."""
        ...

    async def fetch_tree(self, url: GitHubUrl, ref: str = "HEAD") -> list[FileNode]:
        """Return the recursive file tree for *ref* (branch, tag or sha)."""
        ...

    async def fetch_file_content(self, url: GitHubUrl, path: str, ref: str | None = None) -> str:
        """Return the decoded text content of a single file."""
        ...

    async def fetch_readme(self, url: GitHubUrl) -> str:
        """Return the README text, or an empty string when there is none."""
        ...

    async def fetch_languages(self, url: GitHubUrl) -> dict[str, int]:
        """Return language → byte-count mapping from the GitHub Languages API."""
        ...

    async def fetch_last_commit(self, url: GitHubUrl) -> LastCommit:
        """Return a summary of the newest commit on the default branch."""
        ...

    async def fetch_contributor_count(self, url: GitHubUrl) -> int:
        """Return the number of contributors (0 when unknown)."""
        ...

    async def get_file_sha(self, url: GitHubUrl, path: str, ref: str, token: str) -> str | None:
        """Return the blob sha of *path*, or None when the file does not exist."""
        ...

    async def put_file(
        self,
        url: GitHubUrl,
        path: str,
        content: str,
        *,
        message: str,
        branch: str,
        token: str,
        sha: str | None = None,
    ) -> PushResult:
        """Create or update *path* with *content* in a single commit."""
        ...
