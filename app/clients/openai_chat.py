"""Chat-completion client backed by the official OpenAI SDK."""

from __future__ import annotations

import logging

import httpx
from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI, OpenAIError

from app.services.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)


class OpenAIChatCompletionClient:
    """Sends a single user-role prompt and returns the first choice's content."""

    def __init__(
        self,
        api_key: str | None,
        *,
        timeout: float = 20.0,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("OpenAI API key not configured")
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    async def complete(self, *, prompt: str, model: str) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
            )
        except APITimeoutError as exc:
            raise UpstreamError("OpenAI request timed out.", code="502_OPENAI_UPSTREAM") from exc
        except APIStatusError as exc:
            raise UpstreamError(
                f"OpenAI API returned status {exc.status_code}",
                code="502_OPENAI_UPSTREAM",
            ) from exc
        except APIConnectionError as exc:
            raise UpstreamError("Failed to call OpenAI API.", code="502_OPENAI_UPSTREAM") from exc
        except OpenAIError as exc:
            raise UpstreamError(f"OpenAI request failed: {exc}", code="502_OPENAI_UPSTREAM") from exc

        if not response.choices:
            raise UpstreamError("OpenAI returned no choices", code="502_OPENAI_UPSTREAM")
        content = response.choices[0].message.content
        if not content:
            raise UpstreamError("OpenAI returned an empty message", code="502_OPENAI_UPSTREAM")
        return content
