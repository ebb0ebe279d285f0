"""GitHub REST API adapter — implements the RepoFetcher port."""

from __future__ import annotations

import base64
import logging
import re
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

import httpx

from repo_lens.domain.entities import FileNode, LastCommit, PushResult, RepoMetadata
from repo_lens.domain.exceptions import (
    GitHubApiError,
    GitHubRateLimitError,
    RepositoryAccessDeniedError,
    RepositoryNotFoundError,
    RepoLensError,
)
from repo_lens.domain.value_objects import GitHubUrl

logger = logging.getLogger(__name__)

_GITHUB_API = "https://api.github.com"
_USER_AGENT = "repo-lens/1.0"
_LAST_PAGE_RE = re.compile(r"[?&]page=(\d+)[^>]*>;\s*rel=\"last\"")


class GitHubRestAdapter:
    """Concrete RepoFetcher backed by the GitHub v3 REST API."""

    def __init__(self, client: httpx.AsyncClient, token: str | None = None) -> None:
        self._client = client
        self._token = token

    # ── Reads ───────────────────────────────────────────────────────────

    async def fetch_metadata(self, url: GitHubUrl) -> RepoMetadata:
        """GET /repos/{owner}/{repo} → RepoMetadata."""
        resp = await self._request("GET", f"/repos/{url.owner}/{url.repo}")
        data = resp.json()
        license_info = data.get("license") or {}
        return RepoMetadata(
            owner=(data.get("owner") or {}).get("login", url.owner),
            name=data.get("name", url.repo),
            full_name=data.get("full_name", url.full_name),
            default_branch=data.get("default_branch", "main"),
            description=data.get("description"),
            language=data.get("language"),
            license=license_info.get("spdx_id"),
            stars=data.get("stargazers_count", 0),
            forks=data.get("forks_count", 0),
            open_issues=data.get("open_issues_count", 0),
            topics=tuple(data.get("topics") or ()),
            homepage=data.get("homepage"),
            created_at=data.get("created_at") or "",
            updated_at=data.get("updated_at") or "",
            pushed_at=data.get("pushed_at") or "",
        )

    async def fetch_tree(self, url: GitHubUrl, ref: str = "HEAD") -> list[FileNode]:
        """GET /repos/{owner}/{repo}/git/trees/{ref}?recursive=1 → [FileNode]."""
        resp = await self._request(
            "GET",
            f"/repos/{url.owner}/{url.repo}/git/trees/{ref}",
            params={"recursive": "1"},
            not_found=f"Branch or tree '{ref}' not found in {url.full_name}.",
        )
        data = resp.json()
        if data.get("truncated"):
            logger.warning("Tree for %s was truncated by GitHub", url.full_name)

        return [
            FileNode(
                path=item["path"],
                type=item.get("type", "blob"),
                size=item.get("size", 0),
            )
            for item in data.get("tree", [])
        ]

    async def fetch_file_content(self, url: GitHubUrl, path: str, ref: str | None = None) -> str:
        """GET /repos/{owner}/{repo}/contents/{path} and decode the base64 body."""
        resp = await self._request(
            "GET",
            f"/repos/{url.owner}/{url.repo}/contents/{quote(path)}",
            params={"ref": ref} if ref else None,
            not_found=f"File not found: {path}",
        )
        data = resp.json()
        if isinstance(data, list):
            raise GitHubApiError(f"{path} is a directory, not a file.")
        if data.get("encoding") != "base64":
            raise GitHubApiError(f"{path} has no inline content (encoding={data.get('encoding')}).")
        return _decode_base64(data.get("content", ""))

    async def fetch_readme(self, url: GitHubUrl) -> str:
        """GET /repos/{owner}/{repo}/readme → decoded text ('' when absent)."""
        try:
            resp = await self._request("GET", f"/repos/{url.owner}/{url.repo}/readme")
        except RepoLensError as exc:
            logger.debug("No README for %s: %s", url.full_name, exc)
            return ""
        return _decode_base64(resp.json().get("content", ""))

    async def fetch_languages(self, url: GitHubUrl) -> dict[str, int]:
        """GET /repos/{owner}/{repo}/languages → {lang: bytes}."""
        try:
            resp = await self._request("GET", f"/repos/{url.owner}/{url.repo}/languages")
        except RepoLensError as exc:
            logger.debug("Failed to fetch languages for %s: %s", url.full_name, exc)
            return {}
        data: dict[str, int] = resp.json()
        return data

    async def fetch_last_commit(self, url: GitHubUrl) -> LastCommit:
        """GET /repos/{owner}/{repo}/commits?per_page=1 → newest commit summary."""
        try:
            resp = await self._request(
                "GET", f"/repos/{url.owner}/{url.repo}/commits", params={"per_page": "1"}
            )
        except RepoLensError as exc:
            logger.debug("Failed to fetch last commit for %s: %s", url.full_name, exc)
            return LastCommit()

        commits = resp.json()
        if not commits:
            return LastCommit()
        commit = commits[0].get("commit") or {}
        return LastCommit(
            sha=commits[0].get("sha", ""),
            message=commit.get("message", ""),
            author=(commit.get("author") or {}).get("name", ""),
            date=(commit.get("committer") or {}).get("date", ""),
        )

    async def fetch_contributor_count(self, url: GitHubUrl) -> int:
        """Count contributors using the ``Link`` header of a one-per-page listing."""
        try:
            resp = await self._request(
                "GET",
                f"/repos/{url.owner}/{url.repo}/contributors",
                params={"per_page": "1", "anon": "true"},
            )
        except RepoLensError as exc:
            logger.debug("Failed to fetch contributors for %s: %s", url.full_name, exc)
            return 0

        match = _LAST_PAGE_RE.search(resp.headers.get("link", ""))
        if match:
            return int(match.group(1))
        # No pagination: the single page holds everybody (0 or 1 entries)
        if resp.status_code == 204 or not resp.content:
            return 0
        return len(resp.json())

    # ── Writes ──────────────────────────────────────────────────────────

    async def get_file_sha(self, url: GitHubUrl, path: str, ref: str, token: str) -> str | None:
        """Return the current blob sha of *path* on *ref*, or None if it does not exist."""
        try:
            resp = await self._request(
                "GET",
                f"/repos/{url.owner}/{url.repo}/contents/{quote(path)}",
                params={"ref": ref},
                token=token,
            )
        except RepositoryNotFoundError:
            return None
        data = resp.json()
        return data.get("sha") if isinstance(data, dict) else None

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
        """PUT /repos/{owner}/{repo}/contents/{path} (create or update)."""
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if sha:
            body["sha"] = sha

        resp = await self._request(
            "PUT",
            f"/repos/{url.owner}/{url.repo}/contents/{quote(path)}",
            json=body,
            token=token,
            not_found=f"Repository or branch '{branch}' not found in {url.full_name}.",
        )
        data = resp.json()
        commit = data.get("commit") or {}
        return PushResult(
            path=path,
            content_url=(data.get("content") or {}).get("html_url", ""),
            commit_sha=commit.get("sha", ""),
            commit_message=commit.get("message", message),
        )

    # ── Transport ───────────────────────────────────────────────────────

    def _headers(self, token: str | None) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": _USER_AGENT,
        }
        bearer = token or self._token
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        token: str | None = None,
        not_found: str | None = None,
    ) -> httpx.Response:
        """Perform a GitHub API request with error translation."""
        url = f"{_GITHUB_API}{endpoint}"
        try:
            resp = await self._client.request(
                method, url, headers=self._headers(token), params=params, json=json
            )
        except httpx.HTTPError as exc:
            raise GitHubApiError(f"Network error calling {url}: {exc}") from exc

        if resp.status_code in (200, 201, 204):
            return resp

        if resp.status_code == 404:
            raise RepositoryNotFoundError(
                not_found
                or "Repository not found. Make sure the URL points to a public repository."
            )

        if resp.status_code == 403:
            remaining = resp.headers.get("x-ratelimit-remaining", "")
            if remaining == "0":
                reset_raw = resp.headers.get("x-ratelimit-reset", "")
                try:
                    reset_str = datetime.fromtimestamp(int(reset_raw), tz=timezone.utc).strftime(
                        "%Y-%m-%d %H:%M:%S UTC"
                    )
                except (ValueError, OSError):
                    reset_str = reset_raw or "unknown"
                raise GitHubRateLimitError(
                    f"GitHub API rate limit exceeded. Resets at {reset_str}. "
                    "Set the GITHUB_TOKEN environment variable to increase the limit."
                )
            raise RepositoryAccessDeniedError(
                "Access denied. The repository may be private or the token lacks permission."
            )

        if resp.status_code == 429:
            raise GitHubRateLimitError("GitHub API rate limit exceeded (HTTP 429).")

        raise GitHubApiError(
            f"GitHub API returned HTTP {resp.status_code} for {method} {url}: "
            f"{_error_message(resp)}"
        )


def _decode_base64(encoded: str) -> str:
    # GitHub wraps base64 bodies at 60 columns; b64decode drops the newlines.
    return base64.b64decode(encoded).decode("utf-8", errors="replace")


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:200]
    return str(data.get("message", "")) if isinstance(data, dict) else ""
