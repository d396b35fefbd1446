"""Build the textual context block injected into the prompt."""

import logging
from typing import Optional

from ..retrieval.similarity_searcher import RetrievedPassage

logger = logging.getLogger(__name__)


class ContextAssembler:
    """
    One line per passage: "<reference>: <text> [Relevance: <pct>%]".

    Input order is preserved (callers pass relevance-sorted passages). With a
    character budget, passages are dropped from the tail, never the head.
    """

    def __init__(self, max_chars: Optional[int] = None):
        self.max_chars = max_chars

    @staticmethod
    def format_line(retrieved: RetrievedPassage) -> str:
        passage = retrieved.passage
        return f"{passage.display_reference}: {passage.text} [Relevance: {retrieved.relevance * 100:.1f}%]"

    def assemble(self, retrieved: list[RetrievedPassage]) -> str:
        lines = []
        used = 0

        for item in retrieved:
            line = self.format_line(item)
            cost = len(line) + (1 if lines else 0)
            if self.max_chars is not None and not lines and cost > self.max_chars:
                # Head passage is always kept
                line = line[:self.max_chars]
                cost = len(line)
            if self.max_chars is not None and used + cost > self.max_chars:
                logger.info(f"Context budget reached: kept {len(lines)}/{len(retrieved)} passages")
                break
            lines.append(line)
            used += cost

        return "\n".join(lines)
