"""Analysis orchestrator — fans one repository context out to six LLM prompts.

Each artefact (explanation, score, architecture diagram, workflow diagram,
deployment guide, MCP config) is generated independently and concurrently.
A generator that fails for any reason substitutes a deterministic fallback,
so one bad artefact never sinks the whole analysis.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from repo_lens.domain.entities import (
    AnalysisResult,
    DeploymentGuide,
    Diagrams,
    RepoContext,
    RepoScore,
)
from repo_lens.domain.ports.llm_gateway import LlmGateway
from repo_lens.services import fallbacks
from repo_lens.services.prompt_context import build_context_prompt
from repo_lens.services.response_parser import (
    Fallback,
    parse_deployment,
    parse_json_object,
    parse_mermaid,
    parse_score,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ── Prompt templates ────────────────────────────────────────────────────────

EXPLANATION_PROMPT = """\
You are RepoLens, an expert code analyst. Analyze the provided repository \
context and generate a comprehensive explanation. Focus on:
- The project's purpose and main functionality
- Technology stack and architecture patterns
- Key files and their roles
- Entry points and main workflows
- Notable design decisions

Be concise but thorough. Format your response in markdown.
"""

SCORE_PROMPT = """\
You are a code quality expert. Score the repository from 1 to 10 on six \
dimensions: code quality, documentation, testing, activity, dependencies \
and community.  Give specific supporting details for each dimension.

Return ONLY valid JSON in exactly this format:
{
  "overall": 8.5,
  "breakdown": {
    "codeQuality": 9.0,
    "documentation": 7.5,
    "testing": 8.0,
    "activity": 9.5,
    "dependencies": 8.5,
    "community": 7.0
  },
  "details": {
    "codeQuality": ["detail", "..."],
    "documentation": [],
    "testing": [],
    "activity": [],
    "dependencies": [],
    "community": []
  }
}
"""

ARCHITECTURE_PROMPT = """\
You are a systems architect. Generate a Mermaid flowchart showing the \
high-level architecture of this repository.

Requirements:
- Use 'flowchart TB' (top-bottom) direction
- Include subgraphs for major components
- Show data flow between components
- Use descriptive node names

Return ONLY the Mermaid code block, no explanations.
"""

WORKFLOW_PROMPT = """\
You are a systems architect. Generate a Mermaid sequence diagram showing \
the main workflow or data flow of this application.

Requirements:
- Use 'sequenceDiagram' type
- Identify key actors/participants
- Focus on the most important user flow

Return ONLY the Mermaid code block, no explanations.
"""

DEPLOYMENT_PROMPT = """\
You are a DevOps expert. Recommend deployment options for the detected \
technology stack: three free-tier and three paid platforms.

Return ONLY valid JSON in this format:
{
  "free": [
    {
      "name": "Platform Name",
      "description": "...",
      "difficulty": "Easy",
      "estimatedTime": "5 minutes",
      "features": ["feature1", "feature2"],
      "steps": ["step1", "step2", "step3"],
      "pricing": "..."
    }
  ],
  "paid": []
}
"""

MCP_PROMPT = """\
You are an API designer. Generate a Model Context Protocol (MCP) server \
configuration for this repository including server metadata, available \
tools, resource templates, AI configuration and feature flags.

Return ONLY valid JSON configuration.
"""


class AnalysisOrchestrator:
    """Produce an :class:`AnalysisResult` for a repository context.

    Parameters
    ----------
    max_context_tokens:
        Token budget for the repository context embedded in every prompt.
    """

    def __init__(self, max_context_tokens: int = 12_000) -> None:
        self._max_tokens = max_context_tokens

    async def analyze(
        self,
        context: RepoContext,
        llm: LlmGateway | None,
        provider: str,
    ) -> AnalysisResult:
        """Run all six generators concurrently.

        *llm* may be ``None`` when the chosen provider has no API key; every
        artefact then comes from its fallback.
        """
        if llm is None:
            logger.warning(
                "No LLM available for provider %s — using fallback analysis for %s",
                provider,
                context.repo_id,
            )
        prompt = build_context_prompt(context, self._max_tokens)

        explanation, score, architecture, workflow, deployment, mcp_config = await asyncio.gather(
            self._explanation(context, prompt, llm),
            self._score(prompt, llm),
            self._architecture(context, prompt, llm),
            self._workflow(context, prompt, llm),
            self._deployment(context, prompt, llm),
            self._mcp_config(context, prompt, llm, provider),
        )
        logger.info("Analysis complete for %s via %s", context.repo_id, provider)

        return AnalysisResult(
            explanation=explanation,
            score=score,
            diagrams=Diagrams(architecture=architecture, workflow=workflow),
            deployment=deployment,
            mcp_config=mcp_config,
            provider=provider,
        )

    # ── Generators ──────────────────────────────────────────────────────

    async def _explanation(self, context: RepoContext, prompt: str, llm: LlmGateway | None) -> str:
        async def generate() -> str:
            text = await _ask(llm, prompt, EXPLANATION_PROMPT, temperature=0.7, max_tokens=2000)
            if not text.strip():
                raise ValueError("empty explanation")
            return text.strip()

        return await _with_fallback("explanation", generate, lambda: fallbacks.default_explanation(context))

    async def _score(self, prompt: str, llm: LlmGateway | None) -> RepoScore:
        async def generate() -> RepoScore:
            text = await _ask(llm, prompt, SCORE_PROMPT, temperature=0.3, max_tokens=1500)
            return _unwrap("score", parse_score(text, fallbacks.default_score()))

        return await _with_fallback("score", generate, fallbacks.default_score)

    async def _architecture(self, context: RepoContext, prompt: str, llm: LlmGateway | None) -> str:
        default = fallbacks.default_architecture_diagram(context)

        async def generate() -> str:
            text = await _ask(llm, prompt, ARCHITECTURE_PROMPT, temperature=0.5, max_tokens=1500)
            return _unwrap("architecture diagram", parse_mermaid(text, ("flowchart", "graph"), default))

        return await _with_fallback("architecture diagram", generate, lambda: default)

    async def _workflow(self, context: RepoContext, prompt: str, llm: LlmGateway | None) -> str:
        default = fallbacks.default_workflow_diagram(context)

        async def generate() -> str:
            text = await _ask(llm, prompt, WORKFLOW_PROMPT, temperature=0.5, max_tokens=1500)
            return _unwrap("workflow diagram", parse_mermaid(text, ("sequenceDiagram",), default))

        return await _with_fallback("workflow diagram", generate, lambda: default)

    async def _deployment(
        self, context: RepoContext, prompt: str, llm: LlmGateway | None
    ) -> DeploymentGuide:
        default = fallbacks.default_deployment(context)

        async def generate() -> DeploymentGuide:
            text = await _ask(llm, prompt, DEPLOYMENT_PROMPT, temperature=0.4, max_tokens=2000)
            return _unwrap("deployment guide", parse_deployment(text, default))

        return await _with_fallback("deployment guide", generate, lambda: default)

    async def _mcp_config(
        self,
        context: RepoContext,
        prompt: str,
        llm: LlmGateway | None,
        provider: str,
    ) -> dict[str, Any]:
        model = llm.model if llm is not None else ""
        default = fallbacks.default_mcp_config(context, provider, model)

        async def generate() -> dict[str, Any]:
            text = await _ask(llm, prompt, MCP_PROMPT, temperature=0.4, max_tokens=1500)
            return _unwrap("MCP config", parse_json_object(text, default))

        return await _with_fallback("MCP config", generate, lambda: default)


# ── Helpers ─────────────────────────────────────────────────────────────────


class _Degraded(Exception):
    """Raised inside a generator to request its fallback value."""


async def _ask(
    llm: LlmGateway | None,
    prompt: str,
    system_prompt: str,
    *,
    temperature: float,
    max_tokens: int,
) -> str:
    if llm is None:
        raise _Degraded("no LLM configured")
    response = await llm.generate(
        prompt,
        system_prompt=system_prompt,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    return response.content


def _unwrap(artefact: str, result: Any) -> Any:
    if isinstance(result, Fallback):
        raise _Degraded(f"{artefact}: {result.reason}")
    return result.value


async def _with_fallback(
    artefact: str,
    generate: Callable[[], Awaitable[T]],
    fallback: Callable[[], T],
) -> T:
    try:
        return await generate()
    except _Degraded as exc:
        logger.warning("Using fallback %s (%s)", artefact, exc)
    except Exception as exc:
        logger.warning("Generating %s failed — using fallback: %s", artefact, exc)
    return fallback()
