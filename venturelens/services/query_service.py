"""Retrieval-augmented answering over the VentureLens knowledge base.

Data flow for one question:

  1. EXPAND    -- the query is reduced to search keywords by the
                  KeywordExtractor (empty on failure; retrieval still runs
                  on the literal query tokens).
  2. RETRIEVE  -- a bounded candidate pool is read from the store and ranked
                  by the HybridRetriever.
  3. ASSEMBLE  -- system prompt (with the response-language instruction and
                  ``[Source: name]`` context blocks), the most recent
                  conversation turns, then the question.
  4. STREAM    -- the completion is streamed and decoded incrementally;
                  deltas are forwarded as they arrive.
  5. FINISH    -- the assembled answer is checked for "I don't have that
                  information" phrasing.  In combined mode a web-search
                  answer is then attached when a search provider exists.

Retrieval modes:

- ``documents`` -- only chunks of uploaded documents are candidates.
- ``combined``  -- all chunks are candidates, with web-search fallback.
- ``web``       -- the knowledge base is skipped; the answer comes from the
                   web-search provider.

Completion failures are not retried; they propagate to the caller, which can
map them to a user-facing category with
:func:`venturelens.utils.errors.categorize_error`.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import TYPE_CHECKING, NamedTuple

import structlog

from venturelens.models.query import (
    QueryAnswer,
    QueryRequest,
    RetrievalMode,
    SourceCitation,
    StreamDelta,
    WebSearchAnswer,
)
from venturelens.services.stream_decoder import decode_stream
from venturelens.utils.errors import ConfigurationError, WebSearchError, categorize_error

if TYPE_CHECKING:
    from venturelens.interfaces.llm_provider import ILLMProvider
    from venturelens.interfaces.storage_provider import IKnowledgeStore
    from venturelens.interfaces.web_search_provider import IWebSearchProvider
    from venturelens.models.knowledge import ScoredChunk
    from venturelens.services.hybrid_retriever import HybridRetriever
    from venturelens.services.ingestion.keyword_extractor import KeywordExtractor

logger = structlog.get_logger(logger_name=__name__)


class Language(NamedTuple):
    name: str
    prompt: str


SUPPORTED_LANGUAGES: dict[str, Language] = {
    "en": Language("English", "Respond in English."),
    "hi": Language("Hindi", "कृपया हिंदी में जवाब दें। Respond in Hindi."),
    "ta": Language("Tamil", "தமிழில் பதிலளிக்கவும். Respond in Tamil."),
    "te": Language("Telugu", "తెలుగులో సమాధానం ఇవ్వండి. Respond in Telugu."),
    "bn": Language("Bengali", "বাংলায় উত্তর দিন. Respond in Bengali."),
    "mr": Language("Marathi", "मराठीत उत्तर द्या. Respond in Marathi."),
    "gu": Language("Gujarati", "ગુજરાતીમાં જવાબ આપો. Respond in Gujarati."),
    "kn": Language("Kannada", "ಕನ್ನಡದಲ್ಲಿ ಉತ್ತರಿಸಿ. Respond in Kannada."),
    "ml": Language("Malayalam", "മലയാളത്തിൽ മറുപടി നൽകുക. Respond in Malayalam."),
    "pa": Language("Punjabi", "ਪੰਜਾਬੀ ਵਿੱਚ ਜਵਾਬ ਦਿਓ. Respond in Punjabi."),
}

# Lower-cased phrases that mark an answer as lacking grounded information.
NO_INFO_PHRASES: tuple[str, ...] = (
    "i do not have specific details",
    "i don't have specific details",
    "i do not have information",
    "i don't have information",
    "not in the provided documents",
    "documents don't contain",
    "documents do not contain",
    "i would recommend checking",
    "i couldn't find specific",
    "i could not find specific",
    "no specific information",
    "information is not available",
    "not available in the documents",
    "cannot find specific details",
    "don't have data about",
    "do not have data about",
)

SYSTEM_PROMPT = """\
You are VentureLens, an expert AI assistant specializing in Indian startup \
funding intelligence. Your role is to provide accurate, grounded insights about:

1. **Startup Funding**: Investment rounds, valuations, funding trends, deal sizes
2. **Investors**: VCs, angel investors, PE firms, their portfolios and investment patterns
3. **Government Policies**: Startup India schemes, tax benefits, grants, subsidies
4. **Ecosystem Trends**: Sector-wise analysis, emerging opportunities, market dynamics

Guidelines:
- Always provide specific, actionable information
- When discussing funding amounts, use appropriate units (₹Cr, $M, etc.)
- Cite sources when possible and mention if data might be outdated
- Be transparent about limitations of your knowledge
- For policy questions, mention eligibility criteria and deadlines when known
- **IMPORTANT**: If context from uploaded documents is provided, prioritize that \
information and reference which document it came from
- If the context is relevant, use it to enhance your response

{language_instruction}{context}"""

_CONTEXT_HEADER = "\n\nRelevant context from the knowledge base:\n\n"


def language_instruction(code: str) -> str:
    """Return the response-language instruction for *code*; unknown codes get English."""
    return SUPPORTED_LANGUAGES.get(code, SUPPORTED_LANGUAGES["en"]).prompt


def detect_missing_info(content: str) -> bool:
    """Return ``True`` if *content* admits the knowledge base lacked the answer."""
    lowered = content.lower()
    return any(phrase in lowered for phrase in NO_INFO_PHRASES)


def build_context(ranked: Sequence[ScoredChunk]) -> str:
    """Render ranked chunks as ``[Source: name]`` blocks separated by blank lines."""
    return "\n\n".join(f"[Source: {s.chunk.display_name}]\n{s.chunk.text}" for s in ranked)


def build_citations(ranked: Sequence[ScoredChunk]) -> list[SourceCitation]:
    """One citation per distinct (name, category) in rank order."""
    citations: list[SourceCitation] = []
    seen: set[tuple[str, str]] = set()
    for scored in ranked:
        chunk = scored.chunk
        key = (chunk.display_name, chunk.category)
        if key in seen:
            continue
        seen.add(key)
        url = chunk.metadata.get("source_url")
        citations.append(
            SourceCitation(
                name=chunk.display_name,
                category=chunk.category,
                url=url if isinstance(url, str) else None,
            )
        )
    return citations


class QueryService:
    """Answers questions from the knowledge base, the web, or both.

    Parameters
    ----------
    store:
        Source of the candidate chunk pool.
    llm:
        Streams the answer.
    keyword_extractor:
        Expands the query into search keywords.
    retriever:
        Ranks the candidate pool.
    web_search:
        Optional web-search provider for ``web`` and ``combined`` modes.
    pool_size:
        Maximum number of chunks read from the store per query.
    history_turns:
        Only this many most recent conversation turns reach the prompt.
    """

    def __init__(
        self,
        store: IKnowledgeStore,
        llm: ILLMProvider,
        keyword_extractor: KeywordExtractor,
        retriever: HybridRetriever,
        web_search: IWebSearchProvider | None = None,
        pool_size: int = 50,
        history_turns: int = 10,
    ) -> None:
        self._store = store
        self._llm = llm
        self._keywords = keyword_extractor
        self._retriever = retriever
        self._web_search = web_search
        self._pool_size = pool_size
        self._history_turns = history_turns

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def stream(self, request: QueryRequest) -> AsyncIterator[StreamDelta | QueryAnswer]:
        """Answer *request*, yielding text deltas and finally the full answer.

        Every item but the last is a :class:`StreamDelta`; the last is the
        assembled :class:`QueryAnswer` with citations attached.

        Raises
        ------
        venturelens.utils.errors.LLMError
            If the completion call fails (including rate-limit and quota).
        venturelens.utils.errors.ConfigurationError
            Outside ``web`` mode, if no completion API key is configured.
        venturelens.utils.errors.WebSearchError
            In ``web`` mode, if the search fails or no provider is set.
        """
        if request.mode is RetrievalMode.WEB:
            web = await self.web_search(request.query, request.language)
            if web.content:
                yield StreamDelta(content=web.content)
            yield QueryAnswer(content=web.content, citations=web.citations, web=web)
            return

        if not self._llm.is_available():
            raise ConfigurationError(
                message="Completion service not configured",
                provider_name=self._llm.get_provider_name(),
            )

        ranked = await self._retrieve(request)
        messages = self.build_messages(request, ranked)

        parts: list[str] = []
        try:
            async for delta in decode_stream(self._llm.stream_chat(messages)):
                parts.append(delta.content)
                yield delta
        except Exception as exc:
            logger.error(
                "query_failed",
                category=categorize_error(exc).value,
                error=str(exc),
                query_preview=request.query[:100],
            )
            raise

        content = "".join(parts)
        needs_web = detect_missing_info(content)
        web: WebSearchAnswer | None = None
        if needs_web and request.mode is RetrievalMode.COMBINED:
            web = await self._fallback_web_search(request)

        logger.info(
            "query_answered",
            mode=request.mode.value,
            chunks_used=len(ranked),
            answer_chars=len(content),
            needs_web_search=needs_web,
            web_appended=web is not None,
        )
        yield QueryAnswer(
            content=content,
            citations=build_citations(ranked),
            web=web,
            needs_web_search=needs_web,
            chunks_used=len(ranked),
        )

    async def answer(self, request: QueryRequest) -> QueryAnswer:
        """Answer *request* and return only the assembled result."""
        async for item in self.stream(request):
            if isinstance(item, QueryAnswer):
                return item
        raise RuntimeError("query stream ended without an answer")

    async def web_search(self, query: str, language: str = "en") -> WebSearchAnswer:
        """Answer *query* from live web results in the requested language."""
        if self._web_search is None or not self._web_search.is_available():
            raise WebSearchError(message="Web search service not configured")
        return await self._web_search.search(query, language_instruction(language))

    def build_messages(
        self,
        request: QueryRequest,
        ranked: Sequence[ScoredChunk],
    ) -> list[dict[str, str]]:
        """Assemble the chat messages: system prompt, recent turns, question."""
        context = build_context(ranked)
        system_prompt = SYSTEM_PROMPT.format(
            language_instruction=language_instruction(request.language),
            context=f"{_CONTEXT_HEADER}{context}" if context else "",
        )

        history = request.history[-self._history_turns :] if self._history_turns > 0 else []
        return [
            {"role": "system", "content": system_prompt},
            *({"role": turn.role, "content": turn.content} for turn in history),
            {"role": "user", "content": request.query},
        ]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _retrieve(self, request: QueryRequest) -> list[ScoredChunk]:
        keywords = await self._keywords.extract_for_query(request.query)
        pool = await self._store.list_chunks(
            self._pool_size,
            documents_only=request.mode is RetrievalMode.DOCUMENTS,
        )
        ranked = self._retriever.retrieve(request.query, keywords, pool)
        logger.debug(
            "query_context_retrieved",
            keywords=keywords,
            pool_size=len(pool),
            selected=len(ranked),
        )
        return ranked

    async def _fallback_web_search(self, request: QueryRequest) -> WebSearchAnswer | None:
        if self._web_search is None or not self._web_search.is_available():
            return None
        try:
            return await self.web_search(request.query, request.language)
        except WebSearchError as exc:
            logger.warning(
                "web_search_fallback_failed",
                error=str(exc),
                msg="Answer returned without web results.",
            )
            return None
