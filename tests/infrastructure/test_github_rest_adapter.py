"""GitHub REST adapter tests over an in-process httpx transport."""

from __future__ import annotations

import base64
import json

import httpx
import pytest

from repo_lens.domain.exceptions import (
    GitHubApiError,
    GitHubRateLimitError,
    RepositoryAccessDeniedError,
    RepositoryNotFoundError,
)
from repo_lens.domain.value_objects import GitHubUrl
from repo_lens.infrastructure.github_rest_adapter import GitHubRestAdapter

URL = GitHubUrl.from_string("https://github.com/acme/widget")


def b64(text: str) -> str:
    return base64.b64encode(text.encode()).decode()


def adapter_for(handler, token: str | None = None) -> GitHubRestAdapter:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GitHubRestAdapter(client, token=token)


class TestReads:
    """Read endpoints."""

    @pytest.mark.asyncio
    async def test_fetch_metadata(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/repos/acme/widget"
            assert request.headers["Accept"] == "application/vnd.github.v3+json"
            return httpx.Response(
                200,
                json={
                    "name": "widget",
                    "full_name": "acme/widget",
                    "owner": {"login": "acme"},
                    "language": "Go",
                    "license": {"spdx_id": "Apache-2.0"},
                    "stargazers_count": 12,
                    "topics": ["cli"],
                },
            )

        meta = await adapter_for(handler).fetch_metadata(URL)

        assert meta.full_name == "acme/widget"
        assert meta.language == "Go"
        assert meta.license == "Apache-2.0"
        assert meta.stars == 12
        assert meta.topics == ("cli",)

    @pytest.mark.asyncio
    async def test_fetch_tree_is_recursive(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/repos/acme/widget/git/trees/HEAD"
            assert request.url.params["recursive"] == "1"
            return httpx.Response(
                200,
                json={"tree": [{"path": "src", "type": "tree"}, {"path": "src/a.go", "type": "blob", "size": 9}]},
            )

        tree = await adapter_for(handler).fetch_tree(URL)

        assert [(n.path, n.type, n.size) for n in tree] == [("src", "tree", 0), ("src/a.go", "blob", 9)]

    @pytest.mark.asyncio
    async def test_fetch_file_content_decodes_base64(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"encoding": "base64", "content": b64("package main\n")})

        assert await adapter_for(handler).fetch_file_content(URL, "main.go") == "package main\n"

    @pytest.mark.asyncio
    async def test_fetch_file_content_rejects_directory(self) -> None:
        adapter = adapter_for(lambda request: httpx.Response(200, json=[{"name": "a"}]))
        with pytest.raises(GitHubApiError):
            await adapter.fetch_file_content(URL, "src")

    @pytest.mark.asyncio
    async def test_optional_reads_degrade(self) -> None:
        """README, languages, last commit and contributors never fail the scrape."""
        adapter = adapter_for(lambda request: httpx.Response(404, json={"message": "Not Found"}))

        assert await adapter.fetch_readme(URL) == ""
        assert await adapter.fetch_languages(URL) == {}
        assert (await adapter.fetch_last_commit(URL)).sha == ""
        assert await adapter.fetch_contributor_count(URL) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "headers", "message"),
        [
            (
                403,
                {"x-ratelimit-remaining": "4999"},
                "The history or contributor list is too large to list contributors for this repository via the API.",
            ),
            (403, {"x-ratelimit-remaining": "0"}, "API rate limit exceeded"),
            (429, {}, "slow down"),
        ],
        ids=["access-denied", "rate-limited-403", "rate-limited-429"],
    )
    async def test_optional_reads_degrade_on_refusal(self, status: int, headers: dict, message: str) -> None:
        """A 403 or 429 on a secondary endpoint yields an empty value, not an error."""
        adapter = adapter_for(lambda request: httpx.Response(status, json={"message": message}, headers=headers))

        assert await adapter.fetch_readme(URL) == ""
        assert await adapter.fetch_languages(URL) == {}
        assert (await adapter.fetch_last_commit(URL)).sha == ""
        assert await adapter.fetch_contributor_count(URL) == 0

    @pytest.mark.asyncio
    async def test_contributor_count_from_link_header(self) -> None:
        link = (
            '<https://api.github.com/repositories/1/contributors?per_page=1&anon=true&page=2>; rel="next", '
            '<https://api.github.com/repositories/1/contributors?per_page=1&anon=true&page=37>; rel="last"'
        )
        adapter = adapter_for(lambda request: httpx.Response(200, json=[{}], headers={"link": link}))
        assert await adapter.fetch_contributor_count(URL) == 37

    @pytest.mark.asyncio
    async def test_last_commit(self) -> None:
        body = [
            {
                "sha": "abc",
                "commit": {"message": "fix", "author": {"name": "Dev"}, "committer": {"date": "2024-01-01T00:00:00Z"}},
            }
        ]
        commit = await adapter_for(lambda request: httpx.Response(200, json=body)).fetch_last_commit(URL)
        assert (commit.sha, commit.message, commit.author, commit.date) == ("abc", "fix", "Dev", "2024-01-01T00:00:00Z")


class TestErrors:
    """HTTP status translation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "headers", "expected"),
        [
            (404, {}, RepositoryNotFoundError),
            (403, {}, RepositoryAccessDeniedError),
            (403, {"x-ratelimit-remaining": "0", "x-ratelimit-reset": "1700000000"}, GitHubRateLimitError),
            (429, {}, GitHubRateLimitError),
            (500, {}, GitHubApiError),
        ],
    )
    async def test_status_mapping(self, status: int, headers: dict, expected: type) -> None:
        adapter = adapter_for(lambda request: httpx.Response(status, json={"message": "x"}, headers=headers))
        with pytest.raises(expected):
            await adapter.fetch_metadata(URL)

    @pytest.mark.asyncio
    async def test_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("boom", request=request)

        with pytest.raises(GitHubApiError):
            await adapter_for(handler).fetch_metadata(URL)


class TestWrites:
    """README push endpoints."""

    @pytest.mark.asyncio
    async def test_put_file_sends_sha_and_token(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "content": {"html_url": "https://github.com/acme/widget/blob/main/README.md"},
                    "commit": {"sha": "c0ffee", "message": "docs"},
                },
            )

        result = await adapter_for(handler, token="server-token").put_file(
            URL, "README.md", "# hi", message="docs", branch="main", token="user-token", sha="old"
        )

        request = seen[0]
        body = json.loads(request.content)
        assert request.method == "PUT"
        assert request.headers["Authorization"] == "Bearer user-token"
        assert body == {"message": "docs", "content": b64("# hi"), "branch": "main", "sha": "old"}
        assert result.commit_sha == "c0ffee"
        assert result.content_url.endswith("README.md")

    @pytest.mark.asyncio
    async def test_get_file_sha_missing_file(self) -> None:
        adapter = adapter_for(lambda request: httpx.Response(404, json={"message": "Not Found"}))
        assert await adapter.get_file_sha(URL, "README.md", "main", "t") is None

    @pytest.mark.asyncio
    async def test_get_file_sha_existing(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["ref"] == "dev"
            return httpx.Response(200, json={"sha": "abc", "encoding": "base64", "content": ""})

        assert await adapter_for(handler).get_file_sha(URL, "README.md", "dev", "t") == "abc"
