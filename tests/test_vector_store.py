"""
Unit Tests for the Chroma Vector Store
"""

import uuid

import pytest

from scripture_rag.retrieval.vector_store import VectorStore, VectorStoreConfig


@pytest.fixture
def vector_store():
    config = VectorStoreConfig(
        collection_name=f"test_{uuid.uuid4().hex[:12]}",
        persist_directory=None,
        embedding_dimension=3,
    )
    return VectorStore(config=config)


class TestVectorStore:
    """Tests for VectorStore (in-memory Chroma)."""

    def test_empty_search(self, vector_store):
        """Test searching an empty collection."""
        assert vector_store.search([1.0, 0.0, 0.0], top_k=3) == []

    def test_nearest_first(self, vector_store):
        """Test cosine ordering and integer ids."""
        vector_store.upsert(
            ids=[1, 2],
            embeddings=[[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
            metadatas=[{"category": "Old", "char_count": 10}, {"category": "New", "char_count": 20}],
        )

        hits = vector_store.search([0.9, 0.1, 0.0], top_k=2)

        assert [h.id for h in hits] == [1, 2]
        assert hits[0].distance < hits[1].distance

    def test_category_filter(self, vector_store):
        """Test where-clause pre-filter."""
        vector_store.upsert(
            ids=[1, 2],
            embeddings=[[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
            metadatas=[{"category": "Old"}, {"category": "New"}],
        )

        hits = vector_store.search([1.0, 0.0, 0.0], top_k=1, category="New")

        assert [h.id for h in hits] == [2]

    def test_upsert_is_idempotent(self, vector_store):
        """Test re-indexing a passage replaces its vector."""
        vector_store.upsert([7], [[1.0, 0.0, 0.0]], [{"category": "New", "char_count": 5}])
        vector_store.upsert([7], [[0.0, 0.0, 1.0]], [{"category": "New", "char_count": 5}])

        assert vector_store.count == 1

    def test_stats(self, vector_store):
        """Test count, size and indexing time."""
        vector_store.upsert(
            ids=[1, 2],
            embeddings=[[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
            metadatas=[{"category": "Old", "char_count": 10}, {"category": "New", "char_count": 20, "note": None}],
        )

        stats = vector_store.get_stats()

        assert stats["document_count"] == 2
        assert stats["total_size"] == 30
        assert stats["last_indexed_at"] is not None

    def test_delete_collection(self, vector_store):
        """Test reset leaves an empty collection."""
        vector_store.upsert([1], [[1.0, 0.0, 0.0]], [{"category": "Old"}])

        vector_store.delete_collection()

        assert vector_store.count == 0
