"""Anthropic adapter — implements the LlmGateway port via the Messages API."""

from __future__ import annotations

import logging
from typing import Any

from anthropic import AsyncAnthropic, AuthenticationError, RateLimitError

from repo_lens.domain.entities import LlmProvider, LlmResponse, TokenUsage
from repo_lens.domain.exceptions import LlmError

logger = logging.getLogger(__name__)


class AnthropicAdapter:
    provider = LlmProvider.ANTHROPIC

    def __init__(self, api_key: str, model: str = "claude-3-5-haiku-latest") -> None:
        self._client = AsyncAnthropic(api_key=api_key, max_retries=0)
        self.model = model

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> LlmResponse:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        try:
            response = await self._client.messages.create(**kwargs)
        except AuthenticationError as exc:
            raise LlmError("Invalid Anthropic API key.") from exc
        except RateLimitError as exc:
            logger.error("Anthropic RateLimitError: %s", exc)
            raise LlmError(f"Anthropic rate limit error: {exc}") from exc
        except Exception as exc:
            raise LlmError(f"Anthropic call failed: {exc}") from exc

        content = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        if not content:
            raise LlmError("Anthropic returned an empty response.")

        usage = response.usage
        return LlmResponse(
            content=content,
            model=self.model,
            provider=self.provider,
            usage=TokenUsage(
                prompt_tokens=usage.input_tokens,
                completion_tokens=usage.output_tokens,
                total_tokens=usage.input_tokens + usage.output_tokens,
            ),
        )

    async def close(self) -> None:
        await self._client.close()
