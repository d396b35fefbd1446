"""
Passage ingestion module.

Components:
- corpus_loader: Read and write JSON passage corpora
- BatchEmbedder: Rate-limited embedding of the whole corpus
"""

from .corpus_loader import load_passages, save_passages
from .batch_embedder import BatchEmbedder, BatchConfig, BatchReport

__all__ = [
    "load_passages",
    "save_passages",
    "BatchEmbedder",
    "BatchConfig",
    "BatchReport",
]
