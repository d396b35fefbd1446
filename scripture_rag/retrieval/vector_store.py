"""
Vector Store - Store passage embeddings and search by cosine distance.

Uses ChromaDB (cosine space). Only passage ids, category and indexing
metadata live in the collection; passage text stays in the passage store.

Features:
- Nearest-neighbour search with category pre-filter (Chroma `where`)
- Idempotent upserts keyed by passage id
- Persistent or in-memory storage
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional
from dataclasses import dataclass

import chromadb
from chromadb.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class VectorHit:
    """A single nearest-neighbour hit."""
    id: int
    distance: float


@dataclass
class VectorStoreConfig:
    """Configuration for vector store."""
    collection_name: str = "scripture_passages"
    persist_directory: Optional[str] = "data/vectordb"  # None = in-memory
    embedding_dimension: int = 1536  # text-embedding-3-small


class VectorStore:
    """
    Vector index for passage embeddings.

    Usage:
        store = VectorStore()
        store.upsert([42], [embedding], [{"category": "New", "char_count": 120}])
        hits = store.search(query_embedding, top_k=5, category="New")
    """

    def __init__(self, config: Optional[VectorStoreConfig] = None):
        self.config = config or VectorStoreConfig()
        self._client = None
        self._collection = None
        self._init_store()

    def _init_store(self):
        """Initialize ChromaDB."""
        settings = Settings(anonymized_telemetry=False)

        if self.config.persist_directory:
            persist_dir = Path(self.config.persist_directory)
            persist_dir.mkdir(parents=True, exist_ok=True)
            self._client = chromadb.PersistentClient(path=str(persist_dir), settings=settings)
        else:
            self._client = chromadb.EphemeralClient(settings=settings)

        self._collection = self._client.get_or_create_collection(
            name=self.config.collection_name,
            metadata={"hnsw:space": "cosine"},
        )
        logger.info(
            f"VectorStore initialized: collection={self.config.collection_name}, "
            f"vectors={self._collection.count()}"
        )

    @property
    def count(self) -> int:
        """Number of vectors in the collection."""
        return self._collection.count() if self._collection else 0

    def upsert(
        self,
        ids: list[int],
        embeddings: list[list[float]],
        metadatas: Optional[list[dict]] = None,
    ):
        """
        Insert or replace embeddings for the given passage ids.

        Each metadata dict is stamped with `indexed_at`.
        """
        if not self._collection:
            raise RuntimeError("VectorStore not initialized")
        if not ids:
            return

        indexed_at = datetime.now().isoformat()
        flat_metadatas = []
        for meta in (metadatas or [{} for _ in ids]):
            # ChromaDB rejects None values
            flat = {k: v for k, v in meta.items() if v is not None}
            flat["indexed_at"] = indexed_at
            flat_metadatas.append(flat)

        self._collection.upsert(
            ids=[str(i) for i in ids],
            embeddings=embeddings,
            metadatas=flat_metadatas,
        )
        logger.debug(f"Upserted {len(ids)} vectors")

    def search(
        self,
        query_embedding: list[float],
        top_k: int = 5,
        category: Optional[str] = None,
    ) -> list[VectorHit]:
        """
        Nearest neighbours by cosine distance, closest first.

        Args:
            query_embedding: Query embedding vector
            top_k: Number of results to return
            category: Restrict the search to this category
        """
        if not self._collection:
            raise RuntimeError("VectorStore not initialized")
        if self.count == 0:
            return []

        where = {"category": {"$eq": category}} if category else None
        results = self._collection.query(
            query_embeddings=[query_embedding],
            n_results=top_k,
            where=where,
            include=["distances"],
        )

        hits = []
        if results["ids"] and results["ids"][0]:
            distances = results["distances"][0] if results["distances"] else []
            for i, doc_id in enumerate(results["ids"][0]):
                distance = distances[i] if i < len(distances) else 1.0
                hits.append(VectorHit(id=int(doc_id), distance=float(distance)))
        return hits

    def delete_collection(self):
        """Delete the entire collection and recreate it empty."""
        if self._client and self._collection:
            self._client.delete_collection(self.config.collection_name)
            logger.warning(f"Deleted collection: {self.config.collection_name}")
            self._collection = self._client.get_or_create_collection(
                name=self.config.collection_name,
                metadata={"hnsw:space": "cosine"},
            )

    def get_stats(self) -> dict:
        """Vector count, indexed characters and latest indexing time."""
        total_size = 0
        last_indexed_at = None

        if self.count:
            records = self._collection.get(include=["metadatas"])
            for meta in records["metadatas"] or []:
                meta = meta or {}
                total_size += int(meta.get("char_count", 0))
                stamp = meta.get("indexed_at")
                if stamp and (last_indexed_at is None or stamp > last_indexed_at):
                    last_indexed_at = stamp

        return {
            "collection_name": self.config.collection_name,
            "document_count": self.count,
            "total_size": total_size,
            "last_indexed_at": last_indexed_at,
            "embedding_dimension": self.config.embedding_dimension,
        }
