"""
BM25 Index - Keyword search over stored passages.

Uses rank_bm25 for term weighting. A passage matches when it shares at least
one non-stopword token with the query; matches are ordered by BM25 score.
Category filters are applied before ranking so filtered-out passages never
take a result slot.
"""

import logging
import re
from typing import Optional
from dataclasses import dataclass

from rank_bm25 import BM25Okapi

logger = logging.getLogger(__name__)

STOPWORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "did", "do", "does",
    "for", "from", "how", "in", "is", "it", "of", "on", "or", "that", "the",
    "this", "to", "was", "what", "when", "where", "which", "who", "why",
    "with",
})


@dataclass
class BM25Config:
    """Configuration for BM25 index."""
    k1: float = 1.5  # Term frequency saturation
    b: float = 0.75  # Length normalization


@dataclass
class BM25Result:
    """Single BM25 search result."""
    id: int
    score: float
    category: Optional[str] = None


class BM25Index:
    """
    BM25 keyword index over (passage id, text, category) triples.

    Usage:
        index = BM25Index()
        index.build([(1, "Faith without works is dead", "New")])
        results = index.search("faith works", top_k=10)
    """

    def __init__(self, config: Optional[BM25Config] = None):
        self.config = config or BM25Config()
        self._index = None
        self._documents: list[tuple[int, Optional[str]]] = []  # (id, category)
        self._token_sets: list[set[str]] = []

    @staticmethod
    def tokenize(text: str) -> list[str]:
        """Lowercase, strip punctuation, drop stopwords and 1-char tokens."""
        text = re.sub(r"[^\w\s]", " ", text.lower())
        return [t for t in text.split() if len(t) > 1 and t not in STOPWORDS]

    def build(self, documents: list[tuple[int, str, Optional[str]]]):
        """
        Build the index.

        Args:
            documents: (passage id, passage text, category) triples
        """
        self._documents = []
        self._token_sets = []
        corpus = []

        for doc_id, text, category in documents:
            tokens = self.tokenize(text)
            self._documents.append((doc_id, category))
            self._token_sets.append(set(tokens))
            # BM25Okapi rejects empty documents
            corpus.append(tokens or ["_"])

        self._index = BM25Okapi(corpus, k1=self.config.k1, b=self.config.b) if corpus else None
        logger.info(f"BM25 index built: {len(self._documents)} passages")

    @property
    def is_built(self) -> bool:
        """Check if index is built."""
        return self._index is not None

    def search(
        self,
        query: str,
        top_k: int = 10,
        category_filter: Optional[str] = None,
    ) -> list[BM25Result]:
        """
        Search using BM25.

        Args:
            query: Search query
            top_k: Number of results
            category_filter: Only consider passages in this category

        Returns:
            List of BM25Result, best first; ties keep corpus order
        """
        if self._index is None:
            return []

        query_tokens = self.tokenize(query)
        if not query_tokens:
            return []

        wanted = set(query_tokens)
        candidates = [
            idx for idx, (_, category) in enumerate(self._documents)
            if (category_filter is None or category == category_filter)
            and self._token_sets[idx] & wanted
        ]
        if not candidates:
            return []

        scores = self._index.get_batch_scores(query_tokens, candidates)
        ranked = sorted(
            zip(candidates, scores),
            key=lambda pair: float(pair[1]),
            reverse=True,
        )

        return [
            BM25Result(
                id=self._documents[idx][0],
                score=float(score),
                category=self._documents[idx][1],
            )
            for idx, score in ranked[:top_k]
        ]

    def get_stats(self) -> dict:
        """Get index statistics."""
        return {
            "document_count": len(self._documents),
            "is_built": self.is_built,
        }
