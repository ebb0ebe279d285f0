"""Gemini adapter — implements the LlmGateway port via ``google-genai``."""

from __future__ import annotations

import logging

from google import genai
from google.genai import errors, types

from repo_lens.domain.entities import LlmProvider, LlmResponse, TokenUsage
from repo_lens.domain.exceptions import LlmError

logger = logging.getLogger(__name__)


class GeminiAdapter:
    provider = LlmProvider.GEMINI

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash") -> None:
        self._client = genai.Client(api_key=api_key)
        self.model = model

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> LlmResponse:
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    temperature=temperature,
                    max_output_tokens=max_tokens,
                ),
            )
        except errors.ClientError as exc:
            if exc.code in (401, 403):
                raise LlmError("Invalid Gemini API key.") from exc
            if exc.code == 429:
                logger.error("Gemini quota error: %s", exc)
                raise LlmError(f"Gemini rate limit / quota error: {exc}") from exc
            raise LlmError(f"Gemini request rejected: {exc}") from exc
        except Exception as exc:
            raise LlmError(f"Gemini call failed: {exc}") from exc

        if not response.text:
            raise LlmError("Gemini returned an empty response.")

        meta = response.usage_metadata
        return LlmResponse(
            content=response.text,
            model=self.model,
            provider=self.provider,
            usage=TokenUsage(
                prompt_tokens=(meta.prompt_token_count or 0) if meta else 0,
                completion_tokens=(meta.candidates_token_count or 0) if meta else 0,
                total_tokens=(meta.total_token_count or 0) if meta else 0,
            ),
        )

    async def close(self) -> None:
        return None
