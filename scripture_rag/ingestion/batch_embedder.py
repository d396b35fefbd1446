"""
Batch Embedder - Embed every stored passage into the vector index.

Pages through the passage store with a fixed page size, embeds each passage
as "<reference>: <text>", and upserts the vector. A delay between items and a
longer delay between pages keep the embedding provider under its rate limit.
Per-item failures are logged and skipped; they never abort the batch.
"""

import logging
import time
from typing import Callable, Optional
from dataclasses import dataclass, field

from tqdm import tqdm

from ..retrieval.embedding_service import EmbeddingProvider
from ..retrieval.passage_store import Passage, PassageStore

logger = logging.getLogger(__name__)


@dataclass
class BatchConfig:
    """Configuration for batch embedding."""
    page_size: int = 50
    inter_batch_delay_ms: int = 2000  # Between pages
    inter_item_delay_ms: int = 100  # Between passages within a page
    show_progress: bool = False


@dataclass
class BatchReport:
    """Outcome of a batch run."""
    pages: int = 0
    processed: int = 0
    embedded: int = 0
    failed: int = 0
    failed_ids: list[int] = field(default_factory=list)
    elapsed_ms: float = 0


class BatchEmbedder:
    """
    Usage:
        embedder = BatchEmbedder(store, EmbeddingService())
        report = embedder.process_all_passages()
    """

    def __init__(
        self,
        store: PassageStore,
        embedder: EmbeddingProvider,
        config: Optional[BatchConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if config is not None and config.page_size < 1:
            raise ValueError(f"page_size must be positive, got {config.page_size}")
        self.store = store
        self.embedder = embedder
        self.config = config or BatchConfig()
        self._sleep = sleep

    @staticmethod
    def embedding_text(passage: Passage) -> str:
        return f"{passage.display_reference}: {passage.text}"

    def _pause(self, delay_ms: int):
        if delay_ms > 0:
            self._sleep(delay_ms / 1000)

    def embed_passages(self, passages: list[Passage], report: Optional[BatchReport] = None) -> BatchReport:
        """Embed and upsert a list of passages, skipping failures."""
        report = report or BatchReport()
        items = tqdm(passages, desc="Embedding", leave=False) if self.config.show_progress else passages

        for i, passage in enumerate(items):
            if i > 0:
                self._pause(self.config.inter_item_delay_ms)

            report.processed += 1
            try:
                embedding = self.embedder.embed(self.embedding_text(passage))
                self.store.upsert_embedding(passage, embedding)
                report.embedded += 1
            except Exception as e:
                logger.warning(f"Error embedding {passage.display_reference}: {e}")
                report.failed += 1
                report.failed_ids.append(passage.id)

        return report

    def process_all_passages(self) -> BatchReport:
        """
        Embed the whole corpus page by page.

        Stops on an empty page, a short page (end of corpus) or a scan error.
        """
        logger.info("Starting batch embedding generation for all passages...")
        start_time = time.time()
        report = BatchReport()
        page_size = self.config.page_size
        offset = 0

        while True:
            try:
                page = self.store.scan_page(offset, page_size)
            except Exception as e:
                logger.error(f"Error fetching passage page at offset {offset}: {e}")
                break

            if not page:
                break

            report.pages += 1
            logger.info(f"Processing passages {offset + 1}-{offset + len(page)}...")
            self.embed_passages(page, report)

            if len(page) < page_size:
                break

            offset += page_size
            self._pause(self.config.inter_batch_delay_ms)

        report.elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Batch embedding complete: {report.embedded} embedded, "
            f"{report.failed} failed, {report.pages} pages"
        )
        return report
