"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from repo_lens.infrastructure.config import get_settings
from repo_lens.interface.dependencies import shutdown, startup
from repo_lens.interface.error_handlers import register_error_handlers
from repo_lens.interface.routes import router


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    await startup()
    try:
        yield
    finally:
        await shutdown()


def create_app() -> FastAPI:
    """Build the API: routes under ``/api``, domain error mapping, CORS for the dashboard."""
    settings = get_settings()
    app = FastAPI(
        title="RepoLens",
        version="1.0.0",
        description=(
            "Analyzes a GitHub repository with an LLM: explanation, quality "
            "score, Mermaid diagrams, deployment guide, MCP config, README "
            "generation and a per-repository chat."
        ),
        lifespan=_lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(router)

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
