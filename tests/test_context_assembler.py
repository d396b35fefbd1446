"""
Unit Tests for Context Assembly
"""

from scripture_rag.rag.context_assembler import ContextAssembler
from scripture_rag.retrieval.similarity_searcher import RetrievedPassage


class TestContextAssembler:
    """Tests for ContextAssembler."""

    def test_line_format(self, james):
        """Test reference, text and relevance percentage."""
        block = ContextAssembler().assemble([RetrievedPassage(james, 0.92)])

        assert block == (
            "James 2:17: Even so faith, if it hath not works, is dead, being alone. [Relevance: 92.0%]"
        )

    def test_order_preserved(self, james, romans):
        """Test one line per passage in input order."""
        block = ContextAssembler().assemble([
            RetrievedPassage(romans, 0.81),
            RetrievedPassage(james, 0.92),
        ])

        lines = block.split("\n")
        assert len(lines) == 2
        assert lines[0].startswith("Romans 3:28:")
        assert lines[1].startswith("James 2:17:")

    def test_empty_context(self):
        """Test no passages gives an empty block."""
        assert ContextAssembler().assemble([]) == ""

    def test_budget_drops_tail(self, james, romans):
        """Test character budget keeps the head."""
        first = RetrievedPassage(james, 0.92)
        budget = len(ContextAssembler.format_line(first)) + 5

        block = ContextAssembler(max_chars=budget).assemble([first, RetrievedPassage(romans, 0.81)])

        assert block.startswith("James 2:17:")
        assert "Romans" not in block

    def test_oversized_head_truncated(self, james, romans):
        """Test the first passage survives a budget smaller than its line."""
        block = ContextAssembler(max_chars=20).assemble([
            RetrievedPassage(james, 0.9),
            RetrievedPassage(romans, 0.8),
        ])

        assert block == ContextAssembler.format_line(RetrievedPassage(james, 0.9))[:20]
        assert block.startswith("James 2:17:")
