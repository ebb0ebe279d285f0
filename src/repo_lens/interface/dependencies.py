"""FastAPI dependency injection wiring."""

from __future__ import annotations

import logging
from functools import lru_cache

import httpx
from fastapi import Depends, Header
from sqlalchemy.orm import sessionmaker

from repo_lens.domain.ports.cache_store import CacheStore
from repo_lens.infrastructure.chat_repository import SqliteChatStore
from repo_lens.infrastructure.config import Settings, get_settings
from repo_lens.infrastructure.database import create_session_factory
from repo_lens.infrastructure.fallback_cache import FallbackCache
from repo_lens.infrastructure.github_rest_adapter import GitHubRestAdapter
from repo_lens.infrastructure.llm_factory import LlmGatewayFactory
from repo_lens.infrastructure.redis_cache import RedisCache
from repo_lens.infrastructure.settings_repository import SettingsRepository
from repo_lens.infrastructure.sqlite_cache import SqliteCache
from repo_lens.services.analysis_orchestrator import AnalysisOrchestrator
from repo_lens.services.analyze_repo import AnalyzeRepoUseCase
from repo_lens.services.chat import ChatService
from repo_lens.services.provider_settings import ProviderSettingsService
from repo_lens.services.readme_generator import ReadmeGenerator
from repo_lens.services.scrape_repo import ScrapeRepoUseCase

logger = logging.getLogger(__name__)

_http_client: httpx.AsyncClient | None = None
_session_factory: sessionmaker | None = None
_redis_cache: RedisCache | None = None
_cache: CacheStore | None = None


async def startup() -> None:
    """Initialise shared resources — called from the lifespan context manager."""
    global _http_client, _session_factory, _redis_cache, _cache  # noqa: PLW0603

    settings = get_settings()
    _http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.github_timeout_seconds))
    _session_factory = create_session_factory(settings.database_url)

    sqlite_cache = SqliteCache(_session_factory)
    purged = await sqlite_cache.purge_expired()
    if purged:
        logger.info("Purged %d expired SQLite cache entries", purged)
    if settings.redis_url:
        _redis_cache = RedisCache.from_url(settings.redis_url)
        _cache = FallbackCache(primary=_redis_cache, fallback=sqlite_cache)
        logger.info("Cache: Redis with SQLite fallback")
    else:
        _cache = sqlite_cache
        logger.info("Cache: SQLite only (REDIS_URL not set)")


async def shutdown() -> None:
    """Release shared resources."""
    global _http_client, _session_factory, _redis_cache, _cache  # noqa: PLW0603

    if _http_client:
        await _http_client.aclose()
        _http_client = None
    if _redis_cache:
        await _redis_cache.close()
        _redis_cache = None
    _cache = None
    _session_factory = None


@lru_cache(maxsize=1)
def _settings() -> Settings:
    return get_settings()


def get_session_factory() -> sessionmaker:
    assert _session_factory is not None, "startup() was not called"
    return _session_factory


def get_cache() -> CacheStore:
    assert _cache is not None, "startup() was not called"
    return _cache


def get_repo_fetcher() -> GitHubRestAdapter:
    assert _http_client is not None, "startup() was not called"
    settings = _settings()
    token = settings.github_token.get_secret_value() if settings.github_token else None
    return GitHubRestAdapter(client=_http_client, token=token)


def get_provider_settings(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> ProviderSettingsService:
    return ProviderSettingsService(
        repository=SettingsRepository(session_factory),
        defaults=_settings().provider_credentials(),
        factory=LlmGatewayFactory,
    )


async def get_gateway_factory(
    provider_settings: ProviderSettingsService = Depends(get_provider_settings),
) -> LlmGatewayFactory:
    """Credentials are resolved per request so saved keys apply immediately."""
    return LlmGatewayFactory(await provider_settings.credentials())


def get_analyze_use_case(
    cache: CacheStore = Depends(get_cache),
    fetcher: GitHubRestAdapter = Depends(get_repo_fetcher),
    factory: LlmGatewayFactory = Depends(get_gateway_factory),
) -> AnalyzeRepoUseCase:
    settings = _settings()
    return AnalyzeRepoUseCase(
        cache=cache,
        scraper=ScrapeRepoUseCase(
            fetcher,
            max_files=settings.max_important_files,
            max_file_size=settings.max_file_size_bytes,
            max_file_tokens=settings.max_file_tokens,
        ),
        orchestrator=AnalysisOrchestrator(max_context_tokens=settings.max_context_tokens),
        gateway_factory=factory,
        ttl_seconds=settings.cache_ttl_seconds,
    )


def get_chat_service(
    session_factory: sessionmaker = Depends(get_session_factory),
    cache: CacheStore = Depends(get_cache),
    factory: LlmGatewayFactory = Depends(get_gateway_factory),
) -> ChatService:
    return ChatService(
        store=SqliteChatStore(session_factory),
        cache=cache,
        gateway_factory=factory,
        history_limit=_settings().chat_history_limit,
    )


def get_readme_generator() -> ReadmeGenerator:
    return ReadmeGenerator()


def get_push_token(authorization: str | None = Header(default=None)) -> str | None:
    """Bearer token from the request, else the server's configured token."""
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
        if token:
            return token
    settings = _settings()
    return settings.github_token.get_secret_value() if settings.github_token else None
