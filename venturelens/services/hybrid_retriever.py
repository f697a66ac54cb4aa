"""Hybrid lexical + keyword-overlap ranking of knowledge chunks.

There is no vector index behind the knowledge base.  Relevance instead
combines two cheap signals:

- **lexical** -- query words of four or more characters found literally in
  the chunk text (+1 each);
- **semantic** -- overlap between the LLM-expanded query keywords and the
  keywords tagged onto the chunk at ingestion time (+3 per containing pair),
  plus expanded keywords found literally in the chunk text (+1 each).

Chunks that score above zero and are longer than 200 characters receive a
+0.5 bonus.  Zero-score chunks are dropped outright, so a query with no
overlap at all yields no context rather than low-confidence noise.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

import structlog

from venturelens.models.knowledge import KnowledgeChunk, ScoredChunk

logger = structlog.get_logger(logger_name=__name__)

MIN_TOKEN_CHARS = 4
LEXICAL_WEIGHT = 1.0
SEMANTIC_WEIGHT = 3.0
KEYWORD_IN_TEXT_WEIGHT = 1.0
LENGTH_BONUS = 0.5
LENGTH_BONUS_MIN_CHARS = 200

_TOKEN_SPLIT = re.compile(r"\s+")


def tokenize_query(query: str) -> list[str]:
    """Lower-case *query*, split on whitespace, keep tokens of 4+ characters."""
    return [t for t in _TOKEN_SPLIT.split(query.lower()) if len(t) >= MIN_TOKEN_CHARS]


def score_chunk(
    chunk: KnowledgeChunk,
    query_tokens: Sequence[str],
    query_keywords: Sequence[str],
) -> float:
    """Return the relevance score of *chunk*.  Pure; ``0.0`` means no overlap."""
    text = chunk.text.lower()
    score = 0.0

    for token in query_tokens:
        if token in text:
            score += LEXICAL_WEIGHT

    if chunk.keywords and query_keywords:
        for query_keyword in query_keywords:
            for chunk_keyword in chunk.keywords:
                if query_keyword in chunk_keyword or chunk_keyword in query_keyword:
                    score += SEMANTIC_WEIGHT
            if query_keyword in text:
                score += KEYWORD_IN_TEXT_WEIGHT

    if score > 0 and len(chunk.text) > LENGTH_BONUS_MIN_CHARS:
        score += LENGTH_BONUS

    return score


class HybridRetriever:
    """Ranks a candidate pool of chunks against a query.

    Parameters
    ----------
    top_n:
        Default number of chunks returned by :meth:`retrieve`.
    """

    def __init__(self, top_n: int = 5) -> None:
        self._top_n = top_n

    def retrieve(
        self,
        query: str,
        query_keywords: Sequence[str],
        pool: Sequence[KnowledgeChunk],
        top_n: int | None = None,
    ) -> list[ScoredChunk]:
        """Return the best-scoring chunks of *pool* for *query*.

        Parameters
        ----------
        query:
            The raw user question.
        query_keywords:
            Lower-cased keywords expanded from the query (may be empty).
        pool:
            Candidate chunks in store order.
        top_n:
            Overrides the default result count.

        Returns
        -------
        list[ScoredChunk]
            Descending by score; equal scores keep pool order.  Chunks with
            no overlap are never included.
        """
        limit = self._top_n if top_n is None else top_n
        tokens = tokenize_query(query)
        keywords = [k.lower() for k in query_keywords if k.strip()]

        scored = [
            ScoredChunk(chunk=chunk, score=score)
            for chunk in pool
            if (score := score_chunk(chunk, tokens, keywords)) > 0
        ]
        # sorted() is stable, so ties stay in pool order.
        ranked = sorted(scored, key=lambda s: s.score, reverse=True)[:limit]

        logger.info(
            "retrieval_complete",
            pool_size=len(pool),
            matched=len(scored),
            returned=len(ranked),
            top_score=ranked[0].score if ranked else 0.0,
        )
        return ranked
