"""Input validation for RAG queries."""

import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import InvalidQuery

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 2000
MAX_RESULTS_LIMIT = 50


@dataclass
class ValidationResult:
    """Result of query validation."""
    is_valid: bool
    error_message: Optional[str] = None
    sanitized_text: Optional[str] = None


def check_query(text: Optional[str]) -> ValidationResult:
    """
    Validate query text.

    Checks:
    1. Present and not blank
    2. Length limit

    Returns:
        ValidationResult with whitespace-normalised text when valid
    """
    if text is None or not text.strip():
        return ValidationResult(
            is_valid=False,
            error_message="Query text is empty. Please enter a question.",
        )

    if len(text) > MAX_QUERY_LENGTH:
        return ValidationResult(
            is_valid=False,
            error_message=f"Query is too long. Maximum {MAX_QUERY_LENGTH} characters.",
        )

    return ValidationResult(is_valid=True, sanitized_text=" ".join(text.split()))


def validate_query(text: Optional[str], max_results: Optional[int] = None) -> str:
    """
    Validate a query and return its sanitized text.

    Raises:
        InvalidQuery: blank or oversized text, or a non-positive result limit
    """
    result = check_query(text)
    if not result.is_valid:
        logger.warning(f"Rejected query: {result.error_message}")
        raise InvalidQuery(result.error_message)

    if max_results is not None and max_results < 1:
        raise InvalidQuery(f"max_results must be positive, got {max_results}")

    return result.sanitized_text


def clamp_max_results(max_results: Optional[int], default: int) -> int:
    """Result limit for a validated query, capped at MAX_RESULTS_LIMIT."""
    limit = max_results or default
    if limit > MAX_RESULTS_LIMIT:
        logger.info(f"max_results {limit} capped at {MAX_RESULTS_LIMIT}")
        return MAX_RESULTS_LIMIT
    return limit
