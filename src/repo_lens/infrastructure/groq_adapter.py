"""Groq adapter — OpenAI-compatible chat completions via the Groq SDK."""

from __future__ import annotations

import logging

from groq import AsyncGroq, AuthenticationError, RateLimitError

from repo_lens.domain.entities import LlmProvider, LlmResponse, TokenUsage
from repo_lens.domain.exceptions import LlmError
from repo_lens.infrastructure.openai_adapter import chat_messages

logger = logging.getLogger(__name__)


class GroqAdapter:
    provider = LlmProvider.GROQ

    def __init__(self, api_key: str, model: str = "llama-3.1-8b-instant") -> None:
        self._client = AsyncGroq(api_key=api_key, max_retries=0)
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
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=chat_messages(prompt, system_prompt),  # type: ignore[arg-type]
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except AuthenticationError as exc:
            raise LlmError("Invalid Groq API key.") from exc
        except RateLimitError as exc:
            logger.error("Groq RateLimitError: %s", exc)
            raise LlmError(f"Groq rate limit error: {exc}") from exc
        except Exception as exc:
            raise LlmError(f"Groq call failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LlmError("Groq returned an empty response.")

        usage = response.usage
        return LlmResponse(
            content=content,
            model=self.model,
            provider=self.provider,
            usage=TokenUsage(
                prompt_tokens=usage.prompt_tokens if usage else 0,
                completion_tokens=usage.completion_tokens if usage else 0,
                total_tokens=usage.total_tokens if usage else 0,
            ),
        )

    async def close(self) -> None:
        await self._client.close()
