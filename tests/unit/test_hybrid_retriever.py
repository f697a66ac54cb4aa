"""Unit tests for the hybrid lexical/keyword retriever."""

from __future__ import annotations

from conftest import make_chunk

from venturelens.services.hybrid_retriever import HybridRetriever, score_chunk, tokenize_query


class TestTokenizeQuery:
    def test_short_tokens_are_dropped(self) -> None:
        assert tokenize_query("Which FinTech startups in Bangalore got funding?") == [
            "which",
            "fintech",
            "startups",
            "bangalore",
            "funding?",
        ]


class TestScoreChunk:
    def test_zero_when_nothing_overlaps(self) -> None:
        chunk = make_chunk("Weather report for the week.", keywords=["weather"])
        assert score_chunk(chunk, ["fintech"], ["fintech"]) == 0.0

    def test_lexical_hits_count_once_each(self) -> None:
        chunk = make_chunk("A FinTech from Bangalore. FinTech again.")
        assert score_chunk(chunk, ["fintech", "bangalore", "mumbai"], []) == 2.0

    def test_keyword_containment_is_weighted(self) -> None:
        chunk = make_chunk("Lending platform.", keywords=["fintech lending"])
        assert score_chunk(chunk, [], ["fintech"]) == 3.0

    def test_expanded_keyword_in_text_adds_one(self) -> None:
        chunk = make_chunk("A fintech lender.", keywords=["credit"])
        assert score_chunk(chunk, [], ["fintech"]) == 1.0

    def test_untagged_chunk_gets_no_keyword_signal(self) -> None:
        chunk = make_chunk("A fintech lender.")
        assert score_chunk(chunk, [], ["fintech"]) == 0.0

    def test_long_matching_chunks_get_bonus(self) -> None:
        long_text = "fintech " * 30
        assert score_chunk(make_chunk(long_text), ["fintech"], []) == 1.5
        assert score_chunk(make_chunk("x" * 300), ["fintech"], []) == 0.0

    def test_more_overlap_never_scores_lower(self) -> None:
        chunk = make_chunk("FinTech startup in Bangalore", keywords=["fintech"])
        one = score_chunk(chunk, ["fintech"], [])
        two = score_chunk(chunk, ["fintech", "bangalore"], [])
        three = score_chunk(chunk, ["fintech", "bangalore"], ["fintech"])

        assert one < two < three


class TestRetrieve:
    def test_relevant_chunk_ranked_and_distractor_excluded(self) -> None:
        fintech = make_chunk(
            "Acme is a FinTech startup based in Bangalore.",
            index=0,
            keywords=["fintech", "bangalore", "payments"],
        )
        healthtech = make_chunk(
            "MediCo is a HealthTech company in Mumbai.",
            index=1,
            keywords=["healthtech", "mumbai"],
        )

        results = HybridRetriever().retrieve(
            "fintech startups in bangalore",
            ["fintech", "bangalore"],
            [healthtech, fintech],
        )

        assert [r.chunk.chunk_index for r in results] == [0]
        assert results[0].score == 10.0

    def test_descending_order_and_top_n(self) -> None:
        pool = [
            make_chunk("seed round", index=0),
            make_chunk("seed round for fintech in bangalore", index=1),
            make_chunk("fintech seed round", index=2),
        ]

        results = HybridRetriever(top_n=2).retrieve("fintech seed bangalore", [], pool)

        assert [r.chunk.chunk_index for r in results] == [1, 2]
        assert [r.score for r in results] == [3.0, 2.0]

    def test_ties_keep_pool_order(self) -> None:
        pool = [make_chunk("seed round", index=i) for i in range(4)]

        results = HybridRetriever().retrieve("seed", [], pool, top_n=3)

        assert [r.chunk.chunk_index for r in results] == [0, 1, 2]

    def test_keywords_are_normalized(self) -> None:
        chunk = make_chunk("Payments company.", keywords=["fintech"])

        results = HybridRetriever().retrieve("xyz", ["FinTech", "  "], [chunk])

        assert results[0].score == 3.0

    def test_no_overlap_yields_no_results(self) -> None:
        pool = [make_chunk("Weather report for the week.")]
        assert HybridRetriever().retrieve("fintech funding", ["fintech"], pool) == []

    def test_empty_pool(self) -> None:
        assert HybridRetriever().retrieve("fintech", ["fintech"], []) == []
