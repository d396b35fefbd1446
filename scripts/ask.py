#!/usr/bin/env python3
"""
Ask - End-to-end question answering over the passage corpus.

Usage:
    python scripts/ask.py "What does the Bible say about faith?"
    python scripts/ask.py "..." --category New --type application
    python scripts/ask.py "..." --passages 43003016 45005008
    python scripts/ask.py --insight 43003016
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
from dotenv import load_dotenv
load_dotenv()

from scripture_rag.retrieval import LocalPassageStore, RetrievalMode, VectorStoreConfig
from scripture_rag.rag import RAGOrchestrator, RAGConfig, RAGQuery

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Ask a question")
    parser.add_argument("question", type=str, nargs="?", help="Question to ask")
    parser.add_argument("--corpus", default="data/passages.json", help="Path to passages JSON")
    parser.add_argument("--vectordb", default="data/vectordb", help="ChromaDB persist directory")
    parser.add_argument("--category", type=str, help="Filter by category")
    parser.add_argument("--type", default="insight", help="insight, explanation, application or cross_reference")
    parser.add_argument("--max-results", type=int, help="Passages to retrieve")
    parser.add_argument("--passages", type=int, nargs="+", help="Answer from these passage ids only")
    parser.add_argument("--mode", choices=[m.value for m in RetrievalMode], help="Retrieval mode")
    parser.add_argument("--insight", type=int, help="Generate insights for one passage id")

    args = parser.parse_args()
    if not args.question and args.insight is None:
        parser.error("a question or --insight is required")

    config = RAGConfig.from_env()
    if args.mode:
        config.retrieval_mode = RetrievalMode(args.mode)

    store = LocalPassageStore.from_json(
        args.corpus,
        vector_config=VectorStoreConfig(
            persist_directory=args.vectordb,
            embedding_dimension=config.embedding_dimension,
        ),
    )

    print("Initializing RAG orchestrator...")
    orchestrator = RAGOrchestrator.from_config(store, config)

    if args.insight is not None:
        print(orchestrator.get_passage_insights(args.insight))
        return

    print(f"\n{'='*70}")
    print(f"Question: {args.question}")
    if args.category:
        print(f"Category filter: {args.category}")
    print(f"Mode: {config.retrieval_mode.value}")
    print(f"{'='*70}\n")

    result = orchestrator.generate_answer(RAGQuery(
        text=args.question,
        max_results=args.max_results,
        category_filter=args.category,
        explicit_passage_ids=args.passages,
        response_type=args.type,
    ))

    print("ANSWER:")
    print("-" * 70)
    print(result.answer_text)
    print("-" * 70)

    print(f"\nCONTEXT ({len(result.context_passages)}):")
    for i, item in enumerate(result.context_passages, 1):
        print(f"  [{i}] {item.passage.display_reference} ({item.relevance:.2f})")

    print("\nFOLLOW-UPS:")
    for question in result.suggested_follow_ups:
        print(f"  - {question}")

    print(f"\nConfidence: {result.confidence:.2f}")
    print(f"Time: {result.processing_time_ms}ms")
    if result.error:
        print(f"Error: {result.error}")


if __name__ == "__main__":
    main()
