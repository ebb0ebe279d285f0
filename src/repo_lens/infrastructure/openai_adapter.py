"""OpenAI adapter — implements the LlmGateway port."""

from __future__ import annotations

import logging

from openai import AsyncOpenAI, AuthenticationError, RateLimitError

from repo_lens.domain.entities import LlmProvider, LlmResponse, TokenUsage
from repo_lens.domain.exceptions import LlmError

logger = logging.getLogger(__name__)


def chat_messages(prompt: str, system_prompt: str | None) -> list[dict[str, str]]:
    """Build an OpenAI-style ``messages`` list (shared with the Groq adapter)."""
    messages: list[dict[str, str]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})
    return messages


class OpenAIAdapter:
    """Concrete ``LlmGateway`` backed by the OpenAI chat-completions API."""

    provider = LlmProvider.OPENAI

    def __init__(self, api_key: str, model: str = "gpt-4o-mini") -> None:
        self._client = AsyncOpenAI(api_key=api_key, max_retries=0)
        self.model = model

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> LlmResponse:
        """Send a prompt (plus optional system prompt) and return the completion."""
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=chat_messages(prompt, system_prompt),  # type: ignore[arg-type]
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except AuthenticationError as exc:
            raise LlmError(
                "Invalid OpenAI API key. "
                "Set a valid key in the OPENAI_API_KEY environment variable or in settings."
            ) from exc
        except RateLimitError as exc:
            logger.error("OpenAI RateLimitError: %s", exc)
            raise LlmError(f"OpenAI rate limit / quota error: {exc}") from exc
        except Exception as exc:
            raise LlmError(f"OpenAI call failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LlmError("OpenAI returned an empty response.")

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
