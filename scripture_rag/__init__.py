"""
Scripture RAG - retrieval-augmented question answering over a passage corpus.

Subpackages:
- retrieval: passage store, embeddings, vector/keyword search
- rag: prompt building, generation, post-processing, orchestration
- ingestion: corpus loading and batch embedding
"""

__version__ = "0.1.0"
