"""LLM-powered keyword extraction for chunks and queries.

Uses an :class:`~venturelens.interfaces.llm_provider.ILLMProvider` to reduce
a text to a short comma-separated list of salient keywords.  The same call
serves two purposes:

1. **Ingestion** -- the first K chunks of a source are tagged, giving the
   retriever a semantic signal beyond literal token overlap.
2. **Query expansion** -- the user's question is reduced to search terms
   before scoring.

Keywords are an enhancement, never a requirement: every failure (network,
non-2xx, empty or malformed output, missing provider) is logged and turns
into an empty result.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from venturelens.interfaces.llm_provider import ILLMProvider
    from venturelens.models.knowledge import KnowledgeChunk

logger = structlog.get_logger(logger_name=__name__)

_CHUNK_SYSTEM_PROMPT = (
    "Extract the key semantic concepts from the text and return them as a "
    "comma-separated list of the 10 most important keywords/phrases. "
    "Only return the keywords, nothing else."
)

_QUERY_SYSTEM_PROMPT = (
    "Extract the key search terms and concepts from this query. "
    "Return only a comma-separated list of 5-10 important keywords/phrases. "
    "No explanations."
)

_STRIP_CHARS = " \t\r\n\"'`*-."


class KeywordExtractor:
    """Reduces text to an ordered, de-duplicated list of lower-cased keywords.

    Parameters
    ----------
    llm:
        Completion provider.  ``None`` disables extraction entirely.
    prefix_chars:
        Only this many leading characters of a chunk are sent to the model.
    max_concurrent:
        Maximum number of in-flight completion calls when tagging a batch.
    """

    def __init__(
        self,
        llm: ILLMProvider | None,
        prefix_chars: int = 1500,
        max_concurrent: int = 5,
    ) -> None:
        self._llm = llm
        self._prefix_chars = prefix_chars
        self._semaphore = asyncio.Semaphore(max_concurrent)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def extract(self, text: str) -> list[str]:
        """Return keywords for a chunk of text, or ``[]`` on any failure."""
        return await self._request(_CHUNK_SYSTEM_PROMPT, text[: self._prefix_chars]) or []

    async def extract_for_query(self, query: str) -> list[str]:
        """Return search terms for a user query, or ``[]`` on any failure."""
        return await self._request(_QUERY_SYSTEM_PROMPT, query[: self._prefix_chars]) or []

    async def tag_chunks(
        self,
        chunks: Sequence[KnowledgeChunk],
        limit: int = 20,
    ) -> list[KnowledgeChunk]:
        """Attach keywords to the first *limit* chunks.

        Chunks past the limit, and chunks whose extraction failed, are
        returned unchanged with ``keywords`` left as ``None``.

        Returns
        -------
        list[KnowledgeChunk]
            Same length and order as *chunks*.
        """
        if not chunks:
            return []

        head = list(chunks[:limit])
        results = await asyncio.gather(
            *(self._request(_CHUNK_SYSTEM_PROMPT, c.text[: self._prefix_chars]) for c in head)
        )

        tagged: list[KnowledgeChunk] = []
        for chunk, keywords in zip(head, results):
            if keywords is None:
                tagged.append(chunk)
            else:
                tagged.append(chunk.model_copy(update={"keywords": keywords}))
        tagged.extend(chunks[limit:])

        logger.info(
            "keyword_tagging_complete",
            total=len(chunks),
            attempted=len(head),
            tagged=sum(1 for k in results if k is not None),
        )
        return tagged

    @staticmethod
    def parse_keywords(response: str) -> list[str]:
        """Split a comma-separated model response into clean keywords.

        Entries are trimmed and lower-cased; empty entries and repeats are
        dropped while first-seen order is kept.
        """
        keywords: list[str] = []
        seen: set[str] = set()
        for raw in response.split(","):
            keyword = raw.strip(_STRIP_CHARS).lower()
            if keyword and keyword not in seen:
                seen.add(keyword)
                keywords.append(keyword)
        return keywords

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _request(self, system_prompt: str, text: str) -> list[str] | None:
        """Run one completion; ``None`` means the call failed or was skipped."""
        if self._llm is None or not self._llm.is_available() or not text.strip():
            return None

        try:
            async with self._semaphore:
                response = await self._llm.complete(
                    system_prompt=system_prompt,
                    user_prompt=text,
                    temperature=0.3,
                    max_tokens=200,
                )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "keyword_extraction_failed",
                error=str(exc),
                text_preview=text[:80],
                msg="Continuing without keywords.",
            )
            return None

        keywords = self.parse_keywords(response or "")
        if not keywords:
            logger.warning("keyword_extraction_empty", response_preview=(response or "")[:200])
            return None
        return keywords
