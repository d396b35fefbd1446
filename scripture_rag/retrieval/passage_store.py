"""
Passage Store - Read-only access to the passage corpus.

PassageStore is the narrow interface the RAG core consumes. LocalPassageStore
implements it with an in-memory passage table, a BM25 keyword index and a
ChromaDB vector index keyed by passage id.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union
from dataclasses import dataclass, asdict

from ..errors import SearchFailed
from .bm25_index import BM25Index, BM25Config
from .vector_store import VectorStore, VectorStoreConfig

logger = logging.getLogger(__name__)

# Category values that mean "no filter"
UNFILTERED_CATEGORIES = frozenset({"", "both", "all"})


@dataclass(frozen=True)
class Passage:
    """A stored unit of text with a human-readable locator."""
    id: int
    collection_id: str  # e.g. "John"
    locator: str  # e.g. "3:16"
    text: str
    display_reference: str  # e.g. "John 3:16"
    category: str  # e.g. "New"
    created_at: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Passage":
        display_reference = data.get("display_reference") or (
            f"{data['collection_id']} {data['locator']}"
        )
        return cls(
            id=int(data["id"]),
            collection_id=data["collection_id"],
            locator=str(data["locator"]),
            text=data["text"],
            display_reference=display_reference,
            category=data.get("category", ""),
            created_at=data.get("created_at"),
        )


def normalize_category(category: Optional[str]) -> Optional[str]:
    """Map "both"/"all"/empty to None (no filter)."""
    if category is None or category.strip().lower() in UNFILTERED_CATEGORIES:
        return None
    return category


class PassageStore(ABC):
    """Interface to the passage corpus used by the RAG core."""

    @abstractmethod
    def get_by_ids(self, ids: list[int]) -> list[Passage]:
        """Fetch passages by id; unknown ids are skipped."""

    @abstractmethod
    def keyword_search(
        self,
        text: str,
        limit: int,
        category_filter: Optional[str] = None,
    ) -> list[Passage]:
        """Full-text search, best match first. Raises SearchFailed."""

    @abstractmethod
    def vector_search(
        self,
        embedding: list[float],
        limit: int,
        category_filter: Optional[str] = None,
    ) -> list[tuple[Passage, float]]:
        """Nearest neighbours as (passage, cosine distance). Raises SearchFailed."""

    @abstractmethod
    def scan_page(self, offset: int, page_size: int) -> list[Passage]:
        """One page of the corpus in stable order; empty past the end."""

    @abstractmethod
    def upsert_embedding(self, passage: Passage, embedding: list[float]):
        """Store or replace the embedding for a passage."""

    def get_stats(self) -> dict:
        """Index diagnostics: document_count, total_size, last_indexed_at."""
        return {"document_count": 0, "total_size": 0, "last_indexed_at": None}


class LocalPassageStore(PassageStore):
    """
    Passage store backed by an in-memory table, BM25 and ChromaDB.

    Usage:
        store = LocalPassageStore.from_json("data/passages.json")
        passages = store.keyword_search("faith works", limit=5)
    """

    def __init__(
        self,
        passages: list[Passage],
        vector_store: Optional[VectorStore] = None,
        bm25_config: Optional[BM25Config] = None,
    ):
        self._passages: dict[int, Passage] = {}
        for passage in passages:
            self._passages[passage.id] = passage
        self._ordered = list(self._passages.values())

        self.vector_store = vector_store
        self.bm25_index = BM25Index(config=bm25_config)
        self.bm25_index.build([(p.id, p.text, p.category) for p in self._ordered])

        logger.info(
            f"LocalPassageStore initialized: passages={len(self._ordered)}, "
            f"vector_index={'yes' if vector_store else 'no'}"
        )

    @classmethod
    def from_json(
        cls,
        path: Union[str, Path],
        vector_config: Optional[VectorStoreConfig] = None,
    ) -> "LocalPassageStore":
        """Load a corpus file and open the vector index next to it."""
        from ..ingestion.corpus_loader import load_passages

        return cls(load_passages(path), vector_store=VectorStore(config=vector_config))

    def __len__(self) -> int:
        return len(self._ordered)

    def get_by_ids(self, ids: list[int]) -> list[Passage]:
        passages = []
        for passage_id in ids:
            passage = self._passages.get(passage_id)
            if passage is None:
                logger.warning(f"Passage {passage_id} not found")
                continue
            passages.append(passage)
        return passages

    def keyword_search(
        self,
        text: str,
        limit: int,
        category_filter: Optional[str] = None,
    ) -> list[Passage]:
        try:
            results = self.bm25_index.search(
                query=text,
                top_k=limit,
                category_filter=normalize_category(category_filter),
            )
        except Exception as e:
            raise SearchFailed(f"Keyword search failed: {e}") from e

        return [self._passages[r.id] for r in results if r.id in self._passages]

    def vector_search(
        self,
        embedding: list[float],
        limit: int,
        category_filter: Optional[str] = None,
    ) -> list[tuple[Passage, float]]:
        if self.vector_store is None:
            raise SearchFailed("No vector index configured")

        try:
            hits = self.vector_store.search(
                query_embedding=embedding,
                top_k=limit,
                category=normalize_category(category_filter),
            )
        except Exception as e:
            raise SearchFailed(f"Vector search failed: {e}") from e

        return [
            (self._passages[hit.id], hit.distance)
            for hit in hits
            if hit.id in self._passages
        ]

    def scan_page(self, offset: int, page_size: int) -> list[Passage]:
        return self._ordered[offset:offset + page_size]

    def upsert_embedding(self, passage: Passage, embedding: list[float]):
        if self.vector_store is None:
            raise RuntimeError("No vector index configured")

        self.vector_store.upsert(
            ids=[passage.id],
            embeddings=[embedding],
            metadatas=[{
                "category": passage.category,
                "collection_id": passage.collection_id,
                "char_count": len(passage.text),
            }],
        )

    def get_stats(self) -> dict:
        if self.vector_store is None:
            return {
                "document_count": 0,
                "total_size": 0,
                "last_indexed_at": None,
                "passage_count": len(self._ordered),
            }

        stats = self.vector_store.get_stats()
        return {
            "document_count": stats["document_count"],
            "total_size": stats["total_size"],
            "last_indexed_at": stats["last_indexed_at"],
            "passage_count": len(self._ordered),
        }
