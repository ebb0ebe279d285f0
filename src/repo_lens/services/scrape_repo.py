"""Scrape-repository use case — builds a ``RepoContext`` from GitHub.

Depends only on the :class:`RepoFetcher` port and the pure ranking /
detection modules; the interface layer injects the concrete adapter.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from repo_lens.domain.entities import (
    FileNode,
    ImportantFile,
    PackageFile,
    RankedFile,
    RepoContext,
)
from repo_lens.domain.exceptions import EmptyRepositoryError
from repo_lens.domain.ports.repo_fetcher import RepoFetcher
from repo_lens.domain.value_objects import GitHubUrl
from repo_lens.services.file_filter import detect_language
from repo_lens.services.file_ranker import rank_files
from repo_lens.services.package_detector import (
    extract_dependencies,
    find_manifest,
    manifest_type,
)
from repo_lens.services.token_budget import truncate_to_budget

logger = logging.getLogger(__name__)

_FETCH_CONCURRENCY = 10


class ScrapeRepoUseCase:
    """Fetch everything the analysis needs about one repository.

    Parameters
    ----------
    repo_fetcher:
        Adapter that reads metadata, tree and file contents from GitHub.
    max_files:
        Upper bound on ranked files whose content is downloaded.
    max_file_size:
        Files of this many bytes or more are never selected.
    max_file_tokens:
        Per-file content budget; longer files are truncated.
    """

    def __init__(
        self,
        repo_fetcher: RepoFetcher,
        max_files: int = 20,
        max_file_size: int = 50_000,
        max_file_tokens: int = 1_500,
    ) -> None:
        self._fetcher = repo_fetcher
        self._max_files = max_files
        self._max_file_size = max_file_size
        self._max_file_tokens = max_file_tokens

    async def execute(self, url: GitHubUrl) -> RepoContext:
        logger.info("Scraping %s", url.full_name)

        # Metadata and tree failures propagate; the rest degrade in the adapter.
        metadata, tree, readme, languages, last_commit, contributors = await asyncio.gather(
            self._fetcher.fetch_metadata(url),
            self._fetcher.fetch_tree(url, "HEAD"),
            self._fetcher.fetch_readme(url),
            self._fetcher.fetch_languages(url),
            self._fetcher.fetch_last_commit(url),
            self._fetcher.fetch_contributor_count(url),
        )

        if not tree:
            raise EmptyRepositoryError(f"Repository {url.full_name} has no files.")

        package_file = await self._detect_package(url, tree)

        ranked = rank_files(
            tree,
            metadata.language,
            limit=self._max_files,
            max_file_size=self._max_file_size,
        )
        important_files = await self._fetch_files(url, ranked)
        logger.info(
            "Scraped %s: %d files in tree, %d/%d important files fetched",
            url.full_name,
            len(tree),
            len(important_files),
            len(ranked),
        )

        return RepoContext(
            owner=metadata.owner or url.owner,
            repo=metadata.name or url.repo,
            metadata=metadata,
            file_tree=tuple(tree),
            readme=readme,
            package_file=package_file,
            important_files=tuple(important_files),
            languages=dict(languages),
            contributors=contributors,
            last_commit=last_commit,
            fetched_at=datetime.now(timezone.utc),
        )

    # ── Package manifest ────────────────────────────────────────────────

    async def _detect_package(self, url: GitHubUrl, tree: list[FileNode]) -> PackageFile | None:
        node = find_manifest(tree)
        if node is None:
            return None
        try:
            content = await self._fetcher.fetch_file_content(url, node.path)
        except Exception:
            logger.debug("Failed to fetch manifest %s — skipping", node.path, exc_info=True)
            return None

        kind = manifest_type(node.path)
        return PackageFile(
            type=kind,
            path=node.path,
            content=content,
            dependencies=extract_dependencies(kind, content),
        )

    # ── Concurrent fetch ────────────────────────────────────────────────

    async def _fetch_files(self, url: GitHubUrl, ranked: list[RankedFile]) -> list[ImportantFile]:
        """Fetch file contents concurrently with a concurrency semaphore."""
        sem = asyncio.Semaphore(_FETCH_CONCURRENCY)

        async def _fetch_one(item: RankedFile) -> ImportantFile | None:
            async with sem:
                try:
                    content = await self._fetcher.fetch_file_content(url, item.path)
                except Exception:
                    logger.debug("Failed to fetch %s — skipping", item.path, exc_info=True)
                    return None
            return ImportantFile(
                path=item.path,
                content=truncate_to_budget(content, self._max_file_tokens),
                size=item.size,
                importance=item.score,
                language=detect_language(item.path),
            )

        results = await asyncio.gather(*(_fetch_one(item) for item in ranked))
        return [r for r in results if r is not None]
