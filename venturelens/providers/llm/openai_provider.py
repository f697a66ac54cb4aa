"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client for single completions and an ``httpx``
streaming POST for token-incremental answers.  Streaming goes through httpx
rather than the SDK because the query path decodes the raw server-sent-event
bytes itself (see :mod:`venturelens.services.stream_decoder`).

Any endpoint that speaks the OpenAI chat-completions dialect works; the
default points at Gemini's OpenAI-compatible surface.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence

import httpx
import openai
import structlog

from venturelens.config.settings import Settings
from venturelens.interfaces.llm_provider import ILLMProvider
from venturelens.utils.errors import LLMError, QuotaExhaustedError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)


class OpenAICompatibleLLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat API.

    Parameters
    ----------
    settings:
        Supplies the API key, base URL, model and timeout.
    http_client:
        Client used for streaming requests.  Created on demand when omitted.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._api_key = settings.llm_api_key
        self._base_url = settings.llm_base_url.rstrip("/") + "/"
        self._model = settings.llm_model
        self._timeout = settings.llm_timeout_seconds

        self._client = openai.AsyncOpenAI(
            api_key=self._api_key or "missing",
            base_url=self._base_url,
            timeout=openai.Timeout(self._timeout, connect=5.0),
        )
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout, connect=5.0),
        )

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        """Generate a single completion via the chat-completions API."""
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"Completion timed out after {self._timeout:.0f}s",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIStatusError as exc:
            raise self._status_error(exc.status_code, str(exc)) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMError(
                message="Completion returned an empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "llm_completion",
            model=self._model,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    async def stream_chat(self, messages: Sequence[dict[str, str]]) -> AsyncIterator[bytes]:
        """Stream a chat completion, yielding raw SSE bytes as they arrive."""
        payload = {"model": self._model, "messages": list(messages), "stream": True}
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        url = f"{self._base_url}chat/completions"

        try:
            async with self._http.stream("POST", url, json=payload, headers=headers) as response:
                if response.status_code >= 400:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    logger.error(
                        "llm_stream_rejected",
                        status=response.status_code,
                        body_preview=body[:200],
                    )
                    raise self._status_error(response.status_code, body[:200])

                logger.info("llm_stream_started", model=self._model, messages=len(messages))
                async for chunk in response.aiter_bytes():
                    yield chunk
        except httpx.TimeoutException as exc:
            raise LLMError(
                message=f"Stream timed out after {self._timeout:.0f}s",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise LLMError(
                message=f"Stream transport error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "openai-compatible"

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _status_error(self, status_code: int, detail: str) -> LLMError:
        if status_code == 429:
            return RateLimitError(provider_name=self.get_provider_name())
        if status_code == 402:
            return QuotaExhaustedError(provider_name=self.get_provider_name())
        return LLMError(
            message=f"HTTP {status_code}: {detail}",
            provider_name=self.get_provider_name(),
            status_code=status_code,
        )
