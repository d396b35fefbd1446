"""
Error taxonomy for the RAG core.

Recoverable errors are caught one layer up and degrade functionality:
- EmbeddingUnavailable: vector path skipped, keyword fallback used
- SearchFailed: empty result set
- GenerationFailed: orchestrator returns the fallback answer
InvalidQuery is a caller error and is raised straight to the caller.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class RagError(Exception):
    """Base class for all RAG core errors."""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class EmbeddingUnavailable(RagError):
    """Embedding provider failed, timed out, or is not configured."""


class SearchFailed(RagError):
    """Vector or keyword search against the passage store failed."""


class GenerationFailed(RagError):
    """Generative provider call failed or returned an unusable response."""


class InvalidQuery(RagError):
    """Caller supplied an empty or malformed query."""


@dataclass
class Result(Generic[T]):
    """Either a value or a RagError, never raised."""
    value: Optional[T] = None
    error: Optional[RagError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: RagError) -> "Result[T]":
        return cls(error=error)
