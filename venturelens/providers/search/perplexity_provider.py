"""Perplexity web-search provider implementing IWebSearchProvider.

Asks Perplexity's ``sonar`` model, which searches the live web, to answer a
question about the startup ecosystem.  Results are restricted to the past
month.  The returned citation URLs become ``Source N`` entries; a malformed
citation list degrades to no citations instead of failing the answer.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from venturelens.config.settings import Settings
from venturelens.interfaces.web_search_provider import IWebSearchProvider
from venturelens.models.query import SourceCitation, WebSearchAnswer
from venturelens.utils.errors import WebSearchError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 60.0

WEB_SEARCH_SYSTEM_PROMPT = """\
You are VentureLens, an expert AI assistant specializing in Indian startup \
funding intelligence. You are now searching the web for real-time information.

Your role is to provide accurate, up-to-date insights about:
1. **Startup Funding**: Investment rounds, valuations, funding trends, deal sizes
2. **Investors**: VCs, angel investors, PE firms, their portfolios and investment patterns
3. **Government Policies**: State-specific startup missions, tax benefits, grants, subsidies
4. **Ecosystem Trends**: Sector-wise analysis, emerging opportunities, market dynamics

Guidelines:
- Provide specific, actionable information from web search results
- When discussing funding amounts, use appropriate units (₹Cr, $M, etc.)
- Always cite your sources clearly
- Focus on the most recent and relevant information
- For policy questions, mention eligibility criteria and official links when available

{language_instruction}"""


class PerplexitySearchProvider(IWebSearchProvider):
    """Web-search answers backed by the Perplexity chat-completions API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._api_key = settings.perplexity_api_key
        self._endpoint = settings.perplexity_base_url.rstrip("/") + "/chat/completions"
        self._model = settings.perplexity_model
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(_DEFAULT_TIMEOUT))

    async def search(self, query: str, language_instruction: str) -> WebSearchAnswer:
        """Answer *query* from live web results."""
        if not self._api_key:
            raise WebSearchError(
                message="Web search service not configured",
                provider_name=self.get_provider_name(),
            )

        body = {
            "model": self._model,
            "messages": [
                {
                    "role": "system",
                    "content": WEB_SEARCH_SYSTEM_PROMPT.format(
                        language_instruction=language_instruction
                    ),
                },
                {"role": "user", "content": query},
            ],
            "search_recency_filter": "month",
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = await self._client.post(self._endpoint, json=body, headers=headers)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error("web_search_rejected", status=status, body_preview=exc.response.text[:200])
            message = (
                "Rate limit exceeded. Please try again in a moment."
                if status == 429
                else "Failed to perform web search"
            )
            raise WebSearchError(
                message=message,
                provider_name=self.get_provider_name(),
                status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            raise WebSearchError(
                message=f"HTTP error during web search: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except ValueError as exc:
            raise WebSearchError(
                message="Web search returned invalid JSON",
                provider_name=self.get_provider_name(),
            ) from exc

        answer = WebSearchAnswer(content=_answer_text(payload), citations=_citations(payload))
        logger.info(
            "web_search_complete",
            query_preview=query[:100],
            citations=len(answer.citations),
        )
        return answer

    def get_provider_name(self) -> str:
        return "perplexity"

    def is_available(self) -> bool:
        return bool(self._api_key)


def _answer_text(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""


def _citations(payload: Any) -> list[SourceCitation]:
    raw = payload.get("citations") if isinstance(payload, dict) else None
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("web_search_citations_malformed", kind=type(raw).__name__)
        return []
    return [
        SourceCitation(name=f"Source {index}", category="web", url=url)
        for index, url in enumerate(raw, start=1)
        if isinstance(url, str) and url
    ]
