"""
Unit Tests for Query Validation
"""

import pytest

from scripture_rag.errors import InvalidQuery
from scripture_rag.rag.guardrails import (
    MAX_QUERY_LENGTH,
    MAX_RESULTS_LIMIT,
    check_query,
    clamp_max_results,
    validate_query,
)


class TestValidateQuery:
    """Tests for validate_query."""

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
    def test_blank_rejected(self, text):
        """Test empty and whitespace-only text."""
        with pytest.raises(InvalidQuery):
            validate_query(text)

    def test_too_long_rejected(self):
        """Test length limit."""
        with pytest.raises(InvalidQuery):
            validate_query("a" * (MAX_QUERY_LENGTH + 1))

    @pytest.mark.parametrize("max_results", [0, -1])
    def test_bad_max_results_rejected(self, max_results):
        """Test result limit bounds."""
        with pytest.raises(InvalidQuery):
            validate_query("faith", max_results)

    def test_whitespace_normalized(self):
        """Test sanitized text collapses whitespace."""
        assert validate_query("  faith \n and   works ") == "faith and works"

    def test_check_query_reports_reason(self):
        """Test non-raising check."""
        result = check_query("")

        assert not result.is_valid
        assert "empty" in result.error_message

    def test_large_max_results_accepted(self):
        """Test limits above the cap are not an error."""
        assert validate_query("faith", 60) == "faith"


class TestClampMaxResults:
    """Tests for clamp_max_results."""

    def test_default_when_unset(self):
        """Test missing limit uses the default."""
        assert clamp_max_results(None, 8) == 8

    def test_capped(self):
        """Test limits above the cap are reduced."""
        assert clamp_max_results(60, 8) == MAX_RESULTS_LIMIT

    def test_within_range_unchanged(self):
        """Test normal limits pass through."""
        assert clamp_max_results(12, 8) == 12
