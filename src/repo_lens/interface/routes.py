"""API routes — thin controllers that delegate to the services."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends

from repo_lens.domain.entities import LlmProvider
from repo_lens.domain.exceptions import AnalysisNotFoundError, ProviderNotConfiguredError
from repo_lens.domain.ports.cache_store import CacheStore
from repo_lens.domain.value_objects import GitHubUrl, ProviderCredentials
from repo_lens.infrastructure.github_rest_adapter import GitHubRestAdapter
from repo_lens.infrastructure.llm_factory import DEFAULT_MODELS, LlmGatewayFactory
from repo_lens.interface.dependencies import (
    get_analyze_use_case,
    get_cache,
    get_chat_service,
    get_gateway_factory,
    get_provider_settings,
    get_push_token,
    get_readme_generator,
    get_repo_fetcher,
)
from repo_lens.interface.schemas import (
    AnalysisResponse,
    AnalyzeRequest,
    ApiKeysRequest,
    ApiKeysResponse,
    ChatClearResponse,
    ChatHistoryResponse,
    ChatMessageOut,
    ChatStatsOut,
    ChatSendRequest,
    ChatSendResponse,
    ProviderStatus,
    ReadmeGenerateRequest,
    ReadmeGenerateResponse,
    ReadmePushRequest,
    ReadmePushResponse,
    SettingsResponse,
    SettingsUpdateRequest,
    StatusResponse,
)
from repo_lens.services.analyze_repo import AnalyzeRepoUseCase, dump_cached, read_cached
from repo_lens.services.chat import ChatService
from repo_lens.services.provider_settings import ProviderSettingsService
from repo_lens.services.readme_generator import ReadmeGenerator, push_readme

router = APIRouter(prefix="/api")


@router.post(
    "/analyze",
    response_model=AnalysisResponse,
    responses={
        422: {"description": "Invalid GitHub URL or empty repository"},
        403: {"description": "Repository is private"},
        404: {"description": "Repository not found"},
        429: {"description": "GitHub API rate limit exceeded"},
        502: {"description": "GitHub API error"},
    },
)
async def analyze(
    body: AnalyzeRequest,
    use_case: AnalyzeRepoUseCase = Depends(get_analyze_use_case),
) -> AnalysisResponse:
    """Analyze a GitHub repository (served from cache when available)."""
    entry, cached = await use_case.execute(body.url, body.provider, body.force_refresh)
    return AnalysisResponse(cached=cached, data=dump_cached(entry))


# ── Cached repositories ─────────────────────────────────────────────────────


@router.get("/repo/{owner}/{repo}", response_model=AnalysisResponse)
async def get_repo(
    owner: str,
    repo: str,
    use_case: AnalyzeRepoUseCase = Depends(get_analyze_use_case),
) -> AnalysisResponse:
    entry = await use_case.get_cached(owner, repo)
    if entry is None:
        raise AnalysisNotFoundError(f"No cached analysis for {owner}/{repo}.")
    return AnalysisResponse(cached=True, data=dump_cached(entry))


@router.delete("/repo/{owner}/{repo}", response_model=StatusResponse)
async def delete_repo(
    owner: str,
    repo: str,
    use_case: AnalyzeRepoUseCase = Depends(get_analyze_use_case),
) -> StatusResponse:
    await use_case.invalidate(owner, repo)
    return StatusResponse(message=f"Cache cleared for {owner}/{repo}.")


# ── Chat ────────────────────────────────────────────────────────────────────


@router.post("/chat/{repo_id:path}", response_model=ChatSendResponse)
async def send_chat(
    repo_id: str,
    body: ChatSendRequest,
    chat: ChatService = Depends(get_chat_service),
) -> ChatSendResponse:
    reply = await chat.send(repo_id, body.message, body.provider)
    return ChatSendResponse(message=ChatMessageOut.from_domain(reply))


@router.get("/chat/{repo_id:path}", response_model=ChatHistoryResponse)
async def chat_history(
    repo_id: str,
    limit: int = 50,
    chat: ChatService = Depends(get_chat_service),
) -> ChatHistoryResponse:
    history, stats = await asyncio.gather(chat.history(repo_id, limit=limit), chat.stats(repo_id))
    messages = [ChatMessageOut.from_domain(m) for m in history]
    return ChatHistoryResponse(
        repo_id=GitHubUrl.from_string(repo_id).repo_id,
        messages=messages,
        count=len(messages),
        stats=ChatStatsOut.from_domain(stats),
    )


@router.delete("/chat/{repo_id:path}", response_model=ChatClearResponse)
async def clear_chat(repo_id: str, chat: ChatService = Depends(get_chat_service)) -> ChatClearResponse:
    return ChatClearResponse(deleted=await chat.clear(repo_id))


# ── README ──────────────────────────────────────────────────────────────────


@router.post("/readme/generate", response_model=ReadmeGenerateResponse)
async def generate_readme(
    body: ReadmeGenerateRequest,
    cache: CacheStore = Depends(get_cache),
    factory: LlmGatewayFactory = Depends(get_gateway_factory),
    generator: ReadmeGenerator = Depends(get_readme_generator),
) -> ReadmeGenerateResponse:
    url = GitHubUrl.from_parts(body.owner, body.repo)
    entry = await read_cached(cache, url)
    if entry is None:
        raise AnalysisNotFoundError(
            f"No analysis found for {url.full_name}. Analyze the repository first."
        )

    provider = body.provider or LlmProvider(factory.credentials.preferred_provider)
    try:
        llm = factory.create(provider)
    except ProviderNotConfiguredError:
        llm = None
    try:
        result = await generator.generate(
            entry,
            llm,
            include_badges=body.include_badges,
            include_banner=body.include_banner,
            include_toc=body.include_toc,
        )
    finally:
        if llm is not None:
            await llm.close()

    return ReadmeGenerateResponse(
        markdown=result.markdown,
        badges=list(result.badges),
        sections=list(result.sections),
    )


@router.post(
    "/readme/push",
    response_model=ReadmePushResponse,
    responses={401: {"description": "No GitHub token supplied"}},
)
async def push_readme_route(
    body: ReadmePushRequest,
    token: str | None = Depends(get_push_token),
    fetcher: GitHubRestAdapter = Depends(get_repo_fetcher),
) -> ReadmePushResponse:
    url = GitHubUrl.from_parts(body.owner, body.repo)
    result = await push_readme(
        fetcher, url, body.content, token=token, message=body.message, branch=body.branch
    )
    return ReadmePushResponse(
        path=result.path,
        content_url=result.content_url,
        commit_sha=result.commit_sha,
        commit_message=result.commit_message,
    )


# ── Settings ────────────────────────────────────────────────────────────────


def _settings_response(credentials: ProviderCredentials) -> SettingsResponse:
    return SettingsResponse(
        preferred_provider=credentials.preferred_provider,
        providers={
            p.value: ProviderStatus(
                configured=credentials.is_configured(p.value),
                model=credentials.models.get(p.value) or DEFAULT_MODELS[p],
            )
            for p in LlmProvider
        },
    )


@router.get("/settings", response_model=SettingsResponse)
async def get_provider_settings_route(
    service: ProviderSettingsService = Depends(get_provider_settings),
) -> SettingsResponse:
    return _settings_response(await service.credentials())


@router.put("/settings", response_model=SettingsResponse)
async def update_provider_settings(
    body: SettingsUpdateRequest,
    service: ProviderSettingsService = Depends(get_provider_settings),
) -> SettingsResponse:
    credentials = await service.update(preferred_provider=body.preferred_provider, models=body.models)
    return _settings_response(credentials)


@router.post("/settings/keys", response_model=ApiKeysResponse)
async def save_api_keys(
    body: ApiKeysRequest,
    service: ProviderSettingsService = Depends(get_provider_settings),
) -> ApiKeysResponse:
    results = await service.save_api_keys(body.keys)
    return ApiKeysResponse(success=any(results.values()), valid_keys=results)
