"""
Retrieval module for RAG pipeline.

Components:
- PassageStore: Passage lookup, keyword and vector search (LocalPassageStore)
- EmbeddingService: Generate embeddings using OpenAI or Nebius
- VectorStore: Store and search embeddings (ChromaDB)
- BM25Index: Sparse keyword search
- SimilaritySearcher: Vector search with keyword fallback
"""

from .passage_store import Passage, PassageStore, LocalPassageStore
from .embedding_service import EmbeddingProvider, EmbeddingService, EmbeddingConfig
from .vector_store import VectorStore, VectorStoreConfig, VectorHit
from .bm25_index import BM25Index, BM25Config, BM25Result
from .similarity_searcher import (
    RetrievalMode,
    RetrievedPassage,
    SearcherConfig,
    SimilaritySearcher,
    VectorRetrieval,
    KeywordRetrieval,
)

__all__ = [
    "Passage",
    "PassageStore",
    "LocalPassageStore",
    "EmbeddingProvider",
    "EmbeddingService",
    "EmbeddingConfig",
    "VectorStore",
    "VectorStoreConfig",
    "VectorHit",
    "BM25Index",
    "BM25Config",
    "BM25Result",
    "RetrievalMode",
    "RetrievedPassage",
    "SearcherConfig",
    "SimilaritySearcher",
    "VectorRetrieval",
    "KeywordRetrieval",
]
