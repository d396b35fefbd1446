"""
Embedding Service - Generate embeddings for text using OpenAI or Nebius.

Supports:
- OpenAI text-embedding-3-small (1536 dims) - default
- OpenAI text-embedding-3-large (3072 dims)
- Any OpenAI-compatible endpoint via provider="nebius" / LLM_BASE_URL

Every failure (missing key, API error, timeout) surfaces as
EmbeddingUnavailable so the searcher can fall back to keyword search.
"""

import os
import logging
from typing import Optional, Protocol, runtime_checkable
from dataclasses import dataclass

from openai import OpenAI, OpenAIError

from ..errors import EmbeddingUnavailable

logger = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Anything that turns text into a fixed-length vector."""

    def embed(self, text: str) -> list[float]: ...


@dataclass
class EmbeddingConfig:
    """Configuration for embedding service."""
    provider: str = "openai"  # "openai" or "nebius"
    model: str = "text-embedding-3-small"
    dimension: int = 1536
    timeout_s: float = 30.0
    api_key: Optional[str] = None
    base_url: Optional[str] = None


class EmbeddingService:
    """
    Generate embeddings for queries and passages.

    Usage:
        service = EmbeddingService()
        embedding = service.embed("faith and works")
    """

    def __init__(self, config: Optional[EmbeddingConfig] = None, client: Optional[OpenAI] = None):
        self.config = config or EmbeddingConfig()
        self._client = client
        if self._client is None:
            self._init_client()

    def _init_client(self):
        """Initialize OpenAI-compatible client (works with Nebius too)."""
        if self.config.provider == "nebius":
            api_key = self.config.api_key or os.getenv("LLM_API_KEY")
            base_url = self.config.base_url or os.getenv("LLM_BASE_URL", "https://api.studio.nebius.ai/v1")
        else:
            api_key = self.config.api_key or os.getenv("OPENAI_API_KEY")
            base_url = self.config.base_url

        if not api_key:
            logger.warning(f"No API key for {self.config.provider} - embedding service unavailable")
            return

        self._client = OpenAI(api_key=api_key, base_url=base_url, timeout=self.config.timeout_s)
        logger.info(
            f"EmbeddingService initialized ({self.config.provider}): "
            f"model={self.config.model}, dim={self.config.dimension}"
        )

    @property
    def is_available(self) -> bool:
        """Check if embedding service is available."""
        return self._client is not None

    def _create(self, inputs):
        # Nebius models don't support the dimensions parameter
        if self.config.provider == "nebius":
            return self._client.embeddings.create(model=self.config.model, input=inputs)
        return self._client.embeddings.create(
            model=self.config.model,
            input=inputs,
            dimensions=self.config.dimension,
        )

    def embed(self, text: str) -> list[float]:
        """
        Generate embedding for a single text.

        Raises:
            EmbeddingUnavailable: client missing or the API call failed
        """
        if not self._client:
            raise EmbeddingUnavailable("Embedding service not configured - check API key")

        text = text.replace("\n", " ").strip()
        if not text:
            return [0.0] * self.config.dimension

        try:
            response = self._create(text)
            return list(response.data[0].embedding)
        except OpenAIError as e:
            raise EmbeddingUnavailable(f"Embedding request failed: {e}") from e
        except (IndexError, AttributeError) as e:
            raise EmbeddingUnavailable(f"Malformed embedding response: {e}") from e
