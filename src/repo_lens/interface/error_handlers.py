"""Translate exceptions into the ``{"status": "error", "message": ...}`` envelope.

Domain errors carry their HTTP status through :data:`STATUS_BY_ERROR`; the
most specific class in an exception's MRO wins, so ``ProviderNotConfiguredError``
maps to 400 even though its parent ``LlmError`` maps to 502.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from repo_lens.domain.exceptions import (
    AnalysisNotFoundError,
    EmptyRepositoryError,
    GitHubApiError,
    GitHubAuthRequiredError,
    GitHubRateLimitError,
    InvalidGitHubUrlError,
    LlmError,
    ProviderNotConfiguredError,
    RepoLensError,
    RepositoryAccessDeniedError,
    RepositoryNotFoundError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[RepoLensError], int] = {
    InvalidGitHubUrlError: 422,
    EmptyRepositoryError: 422,
    RepositoryNotFoundError: 404,
    AnalysisNotFoundError: 404,
    RepositoryAccessDeniedError: 403,
    GitHubAuthRequiredError: 401,
    ProviderNotConfiguredError: 400,
    GitHubRateLimitError: 429,
    GitHubApiError: 502,
    LlmError: 502,
}


def status_for(exc: RepoLensError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return 500


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


async def _domain_error(request: Request, exc: RepoLensError) -> JSONResponse:
    status_code = status_for(exc)
    level = logging.ERROR if status_code >= 500 else logging.WARNING
    logger.log(level, "%s %s -> %d %s: %s", request.method, request.url.path, status_code, type(exc).__name__, exc)
    return error_response(status_code, str(exc))


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid value')}"
        for err in exc.errors()
    ]
    return error_response(422, "; ".join(problems))


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "An unexpected error occurred. Please try again later.")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RepoLensError, _domain_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unexpected_error)
