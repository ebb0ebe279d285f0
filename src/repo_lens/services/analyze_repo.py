"""Analyze-repository use case — cache-aside around scrape + orchestrate.

This is the entry point for ``POST /api/analyze``.  It depends on the cache
port, the scraper, the orchestrator and a gateway factory; the interface
layer wires concrete adapters in at request time.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import TypeAdapter, ValidationError

from repo_lens.domain.entities import CachedAnalysis, LlmProvider
from repo_lens.domain.exceptions import ProviderNotConfiguredError
from repo_lens.domain.ports.cache_store import CacheStore
from repo_lens.domain.ports.llm_gateway import LlmGateway, LlmGatewayFactoryPort
from repo_lens.domain.value_objects import GitHubUrl
from repo_lens.services.analysis_orchestrator import AnalysisOrchestrator
from repo_lens.services.scrape_repo import ScrapeRepoUseCase

logger = logging.getLogger(__name__)

_CACHED_ANALYSIS = TypeAdapter(CachedAnalysis)


def dump_cached(entry: CachedAnalysis) -> dict[str, Any]:
    """Convert a cache entry into JSON-compatible data."""
    return _CACHED_ANALYSIS.dump_python(entry, mode="json")


def load_cached(data: Any) -> CachedAnalysis:
    return _CACHED_ANALYSIS.validate_python(data)


async def read_cached(cache: CacheStore, url: GitHubUrl) -> CachedAnalysis | None:
    """Return the cached analysis for *url*; undecodable entries count as a miss."""
    raw = await cache.get(url.cache_key)
    if raw is None:
        return None
    try:
        return load_cached(raw)
    except ValidationError:
        logger.warning("Discarding malformed cache entry %s", url.cache_key, exc_info=True)
        return None


class AnalyzeRepoUseCase:
    """Cache-aside analysis of one repository.

    Parameters
    ----------
    cache:
        Where finished analyses are stored under ``analysis:{owner}/{repo}``.
    scraper:
        Builds the ``RepoContext`` on a cache miss.
    orchestrator:
        Turns the context into an ``AnalysisResult``.
    gateway_factory:
        Creates the LLM adapter for the requested provider.
    ttl_seconds:
        Lifetime of a cache entry.
    """

    def __init__(
        self,
        cache: CacheStore,
        scraper: ScrapeRepoUseCase,
        orchestrator: AnalysisOrchestrator,
        gateway_factory: LlmGatewayFactoryPort,
        ttl_seconds: int = 86_400,
    ) -> None:
        self._cache = cache
        self._scraper = scraper
        self._orchestrator = orchestrator
        self._factory = gateway_factory
        self._ttl = ttl_seconds

    async def execute(
        self,
        github_url: str,
        provider: LlmProvider | None = None,
        force_refresh: bool = False,
    ) -> tuple[CachedAnalysis, bool]:
        """Return ``(entry, cached)``; *force_refresh* skips the read but still writes."""
        url = GitHubUrl.from_string(github_url)

        if not force_refresh:
            hit = await read_cached(self._cache, url)
            if hit is not None:
                logger.info("Cache hit for %s", url.repo_id)
                return hit, True

        context = await self._scraper.execute(url)

        chosen = provider or LlmProvider(self._factory.credentials.preferred_provider)
        llm = self._gateway_for(chosen)
        try:
            analysis = await self._orchestrator.analyze(context, llm, chosen.value)
        finally:
            if llm is not None:
                await llm.close()

        entry = CachedAnalysis(
            context=context,
            analysis=analysis,
            cached_at=datetime.now(timezone.utc),
        )
        await self._cache.set(url.cache_key, dump_cached(entry), self._ttl)
        return entry, False

    async def get_cached(self, owner: str, repo: str) -> CachedAnalysis | None:
        return await read_cached(self._cache, GitHubUrl.from_parts(owner, repo))

    async def invalidate(self, owner: str, repo: str) -> None:
        url = GitHubUrl.from_parts(owner, repo)
        await self._cache.delete(url.cache_key)
        logger.info("Invalidated cached analysis for %s", url.repo_id)

    def _gateway_for(self, provider: LlmProvider) -> LlmGateway | None:
        try:
            return self._factory.create(provider)
        except ProviderNotConfiguredError as exc:
            logger.warning("%s", exc)
            return None
