#!/usr/bin/env python3
"""
Embed Passages - Generate embeddings for every passage and store them in the vector index.

Usage:
    python scripts/embed_passages.py                          # Embed all passages
    python scripts/embed_passages.py --stats                  # Show index statistics
    python scripts/embed_passages.py --test "query"           # Test search
    python scripts/embed_passages.py --test "query" --category New
    python scripts/embed_passages.py --reset                  # Reset vector index first
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables from .env
from dotenv import load_dotenv
load_dotenv()

from scripture_rag.retrieval import LocalPassageStore, VectorStoreConfig
from scripture_rag.rag import RAGOrchestrator, RAGConfig

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def test_search(orchestrator: RAGOrchestrator, query: str, top_k: int, category: str = None):
    """Run a search and print the ranked passages."""
    logger.info(f"Searching for: {query}")
    results = orchestrator.search(query, limit=top_k, category_filter=category)

    print(f"\n{'='*60}")
    print(f"Search Results for: {query}")
    if category:
        print(f"Filter: category={category}")
    print(f"{'='*60}\n")

    for i, result in enumerate(results, 1):
        print(f"[{i}] Relevance: {result.relevance:.4f}")
        print(f"    Reference: {result.passage.display_reference}")
        print(f"    Category: {result.passage.category}")
        print(f"    Text: {result.passage.text[:200]}")
        print()


def show_stats(orchestrator: RAGOrchestrator):
    """Show index statistics."""
    stats = orchestrator.get_index_stats()

    print(f"\n{'='*60}")
    print("VECTOR INDEX STATISTICS")
    print(f"{'='*60}")
    for key, value in stats.items():
        print(f"  {key}: {value}")
    print(f"{'='*60}\n")


def main():
    parser = argparse.ArgumentParser(description="Embed passages into the vector index")
    parser.add_argument("--corpus", default="data/passages.json", help="Path to passages JSON")
    parser.add_argument("--vectordb", default="data/vectordb", help="ChromaDB persist directory")
    parser.add_argument("--stats", action="store_true", help="Show statistics only")
    parser.add_argument("--test", type=str, help="Test search with query")
    parser.add_argument("--category", type=str, help="Filter by category (for --test)")
    parser.add_argument("--reset", action="store_true", help="Reset vector index before embedding")
    parser.add_argument("--top-k", type=int, default=5, help="Number of results for search")

    args = parser.parse_args()

    config = RAGConfig.from_env()
    vector_config = VectorStoreConfig(
        persist_directory=args.vectordb,
        embedding_dimension=config.embedding_dimension,
    )
    store = LocalPassageStore.from_json(args.corpus, vector_config=vector_config)

    if args.reset:
        logger.warning("Resetting vector index...")
        store.vector_store.delete_collection()

    orchestrator = RAGOrchestrator.from_config(store, config)

    if args.stats:
        show_stats(orchestrator)
        return

    if args.test:
        test_search(orchestrator, args.test, args.top_k, args.category)
        return

    if not orchestrator.embedder.is_available:
        logger.error("Embedding service not available - check OPENAI_API_KEY / LLM_API_KEY")
        return

    report = orchestrator.process_all_passages()
    if report.failed_ids:
        logger.warning(f"Failed passage ids: {report.failed_ids}")
    show_stats(orchestrator)


if __name__ == "__main__":
    main()
