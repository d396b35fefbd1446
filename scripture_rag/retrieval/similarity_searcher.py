"""
Similarity Searcher - Vector search with keyword fallback.

Each retrieval mode is a strategy object; the searcher walks its strategy
chain and returns the first non-empty result set:

    VectorRetrieval  -> embed query, nearest neighbours, relevance = 1 - distance
    KeywordRetrieval -> full-text match, fixed relevance (0.8 by default)

The searcher never raises: if every strategy fails it returns [].
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional
from dataclasses import dataclass

from ..errors import RagError
from .embedding_service import EmbeddingProvider
from .passage_store import Passage, PassageStore, normalize_category

logger = logging.getLogger(__name__)


class RetrievalMode(str, Enum):
    """Where context passages come from."""
    VECTOR = "vector"  # vector search, keyword fallback
    KEYWORD = "keyword"  # keyword search only
    PROVIDER_MANAGED = "provider_managed"  # generative provider's retrieval tool


@dataclass
class RetrievedPassage:
    """A passage with its relevance to the current query (0-1)."""
    passage: Passage
    relevance: float


@dataclass
class SearcherConfig:
    """Configuration for similarity search."""
    min_relevance_floor: float = 0.7  # Vector hits below this are dropped
    keyword_relevance: float = 0.8  # Uniform relevance for keyword hits
    default_limit: int = 8


def rank(results: list[RetrievedPassage], limit: int) -> list[RetrievedPassage]:
    """Sort by descending relevance (stable) and truncate."""
    return sorted(results, key=lambda r: r.relevance, reverse=True)[:limit]


class RetrievalStrategy(ABC):
    """One way of turning a query into scored passages."""

    mode: RetrievalMode

    @abstractmethod
    def retrieve(
        self,
        query: str,
        limit: int,
        category_filter: Optional[str] = None,
        min_relevance: Optional[float] = None,
    ) -> list[RetrievedPassage]:
        """Return scored passages or raise a RagError."""


class VectorRetrieval(RetrievalStrategy):
    """Embedding + nearest-neighbour search."""

    mode = RetrievalMode.VECTOR

    def __init__(
        self,
        embedder: EmbeddingProvider,
        store: PassageStore,
        config: Optional[SearcherConfig] = None,
    ):
        self.embedder = embedder
        self.store = store
        self.config = config or SearcherConfig()

    def retrieve(
        self,
        query: str,
        limit: int,
        category_filter: Optional[str] = None,
        min_relevance: Optional[float] = None,
    ) -> list[RetrievedPassage]:
        floor = self.config.min_relevance_floor if min_relevance is None else min_relevance

        query_embedding = self.embedder.embed(query)
        hits = self.store.vector_search(query_embedding, limit, category_filter)

        results = []
        for passage, distance in hits:
            # Cosine distance lies in [0, 2]
            relevance = min(1.0, max(0.0, 1.0 - distance))
            if relevance < floor:
                continue
            results.append(RetrievedPassage(passage=passage, relevance=relevance))

        return rank(results, limit)


class KeywordRetrieval(RetrievalStrategy):
    """Full-text search with a uniform relevance score."""

    mode = RetrievalMode.KEYWORD

    def __init__(self, store: PassageStore, config: Optional[SearcherConfig] = None):
        self.store = store
        self.config = config or SearcherConfig()

    def retrieve(
        self,
        query: str,
        limit: int,
        category_filter: Optional[str] = None,
        min_relevance: Optional[float] = None,
    ) -> list[RetrievedPassage]:
        passages = self.store.keyword_search(query, limit, category_filter)
        return [
            RetrievedPassage(passage=p, relevance=self.config.keyword_relevance)
            for p in passages[:limit]
        ]


class SimilaritySearcher:
    """
    Passage retrieval with graceful degradation.

    Usage:
        searcher = SimilaritySearcher(store, embedder)
        results = searcher.search("faith and works", limit=5, category_filter="New")
    """

    def __init__(
        self,
        store: PassageStore,
        embedder: Optional[EmbeddingProvider] = None,
        config: Optional[SearcherConfig] = None,
        mode: RetrievalMode = RetrievalMode.VECTOR,
    ):
        self.store = store
        self.embedder = embedder
        self.config = config or SearcherConfig()
        self.mode = mode

        keyword = KeywordRetrieval(store, self.config)
        if mode == RetrievalMode.KEYWORD or embedder is None:
            self.strategies: list[RetrievalStrategy] = [keyword]
        else:
            self.strategies = [VectorRetrieval(embedder, store, self.config), keyword]

        logger.info(
            f"SimilaritySearcher initialized: "
            f"strategies={[s.mode.value for s in self.strategies]}"
        )

    def search(
        self,
        query: str,
        limit: Optional[int] = None,
        category_filter: Optional[str] = None,
        min_relevance: Optional[float] = None,
    ) -> list[RetrievedPassage]:
        """
        Retrieve passages for a query.

        Args:
            query: Search query
            limit: Maximum results (default: config.default_limit)
            category_filter: Restrict to one category ("both" = no filter)
            min_relevance: Override the vector relevance floor

        Returns:
            RetrievedPassage list, descending relevance, at most `limit` long
        """
        limit = limit or self.config.default_limit
        category_filter = normalize_category(category_filter)

        for strategy in self.strategies:
            try:
                results = strategy.retrieve(query, limit, category_filter, min_relevance)
            except RagError as e:
                logger.warning(f"{strategy.mode.value} search failed, trying next strategy: {e}")
                continue
            except Exception as e:
                logger.warning(f"{strategy.mode.value} search raised unexpectedly: {e}")
                continue

            if results:
                logger.info(f"{strategy.mode.value} search returned {len(results)} passages")
                return rank(results, limit)

            logger.info(f"{strategy.mode.value} search returned no passages")

        return []
