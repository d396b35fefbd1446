"""
Unit Tests for Similarity Search
"""

import pytest

from scripture_rag.errors import SearchFailed
from scripture_rag.retrieval.similarity_searcher import (
    RetrievalMode,
    RetrievedPassage,
    SearcherConfig,
    SimilaritySearcher,
    rank,
)
from tests.fakes import FakeEmbedder


class TestVectorSearch:
    """Tests for the vector path."""

    def test_relevance_is_one_minus_distance(self, store, embedder):
        """Test relevance conversion and floor filtering."""
        searcher = SimilaritySearcher(store, embedder)

        results = searcher.search("faith and works", limit=5)

        assert [r.passage.display_reference for r in results] == ["James 2:17", "Romans 3:28"]
        assert results[0].relevance == pytest.approx(0.92)
        assert results[1].relevance == pytest.approx(0.81)
        assert store.calls["keyword_search"] == 0

    def test_results_sorted_descending(self, store, embedder, james, romans):
        """Test ranking when the store returns hits out of order."""
        store.vector_hits = [(romans, 0.2), (james, 0.05)]
        searcher = SimilaritySearcher(store, embedder)

        results = searcher.search("faith", limit=5)

        relevances = [r.relevance for r in results]
        assert relevances == sorted(relevances, reverse=True)

    def test_limit_respected(self, store, embedder):
        """Test result count never exceeds limit."""
        searcher = SimilaritySearcher(store, embedder)

        results = searcher.search("faith", limit=1)

        assert len(results) == 1

    def test_min_relevance_override(self, store, embedder):
        """Test per-query floor override admits weaker hits."""
        searcher = SimilaritySearcher(store, embedder)

        results = searcher.search("faith", limit=5, min_relevance=0.4)

        assert len(results) == 3
        assert all(r.relevance >= 0.4 for r in results)

    def test_category_passed_to_store(self, store, embedder):
        """Test category filter reaches the store."""
        searcher = SimilaritySearcher(store, embedder)

        results = searcher.search("faith", limit=5, category_filter="New")

        assert store.last_category == "New"
        assert all(r.passage.category == "New" for r in results)

    def test_both_means_unfiltered(self, store, embedder):
        """Test "both" category disables filtering."""
        searcher = SimilaritySearcher(store, embedder)

        searcher.search("faith", limit=5, category_filter="both")

        assert store.last_category is None


class TestKeywordFallback:
    """Tests for degradation to keyword search."""

    def test_embedding_failure_uses_keyword(self, store):
        """Test keyword results with fixed relevance when embedding fails."""
        searcher = SimilaritySearcher(store, FakeEmbedder(fail=True))

        results = searcher.search("faith and works", limit=5)

        assert len(results) == 2
        assert all(r.relevance == 0.8 for r in results)
        assert store.calls["vector_search"] == 0
        assert store.calls["keyword_search"] == 1

    def test_vector_search_failure_uses_keyword(self, store, embedder):
        """Test store vector failure falls back."""
        store.vector_error = SearchFailed("index offline")
        searcher = SimilaritySearcher(store, embedder)

        results = searcher.search("faith", limit=5)

        assert len(results) == 2
        assert store.calls["keyword_search"] == 1

    def test_empty_vector_results_use_keyword(self, store, embedder):
        """Test fallback when every vector hit is under the floor."""
        store.vector_hits = [(store.passages[1001001], 0.9)]
        searcher = SimilaritySearcher(store, embedder)

        results = searcher.search("faith", limit=5)

        assert all(r.relevance == 0.8 for r in results)
        assert len(results) == 2

    def test_keyword_relevance_configurable(self, store):
        """Test keyword relevance comes from config."""
        searcher = SimilaritySearcher(store, config=SearcherConfig(keyword_relevance=0.6))

        results = searcher.search("faith", limit=5)

        assert all(r.relevance == 0.6 for r in results)

    def test_both_paths_fail_returns_empty(self, store):
        """Test the searcher never raises."""
        store.keyword_error = SearchFailed("full text index offline")
        searcher = SimilaritySearcher(store, FakeEmbedder(fail=True))

        assert searcher.search("faith", limit=5) == []

    def test_unexpected_error_is_absorbed(self, store, embedder):
        """Test non-RagError exceptions are treated as strategy failures."""
        store.vector_error = ValueError("bad vector")
        store.keyword_error = RuntimeError("bad query")
        searcher = SimilaritySearcher(store, embedder)

        assert searcher.search("faith", limit=5) == []

    def test_keyword_mode_skips_vector(self, store, embedder):
        """Test keyword-only mode never embeds."""
        searcher = SimilaritySearcher(store, embedder, mode=RetrievalMode.KEYWORD)

        searcher.search("faith", limit=5)

        assert embedder.calls == []
        assert store.calls["vector_search"] == 0

    def test_no_embedder_is_keyword_only(self, store):
        """Test a searcher without embedder has a single strategy."""
        searcher = SimilaritySearcher(store)

        assert [s.mode for s in searcher.strategies] == [RetrievalMode.KEYWORD]


class TestRank:
    """Tests for rank helper."""

    def test_stable_for_ties(self, james, romans, genesis):
        """Test equal relevances keep input order."""
        items = [
            RetrievedPassage(james, 0.8),
            RetrievedPassage(romans, 0.9),
            RetrievedPassage(genesis, 0.8),
        ]

        ranked = rank(items, 3)

        assert [r.passage.id for r in ranked] == [romans.id, james.id, genesis.id]
