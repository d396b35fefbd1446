"""
Generative Provider - LLM access for answer generation.

Two call shapes:
- generate(prompt): plain text generation (chat completions)
- generate_with_retrieval(query, tool_config): the provider retrieves from its
  own vector store (Responses API `file_search` tool) and returns grounding
  references alongside the answer

All SDK errors, timeouts and malformed responses surface as GenerationFailed.
"""

import os
import logging
from abc import ABC, abstractmethod
from typing import Optional
from dataclasses import dataclass, field

from openai import OpenAI, OpenAIError

from ..errors import GenerationFailed

logger = logging.getLogger(__name__)


@dataclass
class GroundingReference:
    """An opaque retrieved snippet returned by provider-managed retrieval."""
    text: str
    source_locator_hint: Optional[str] = None
    score: Optional[float] = None
    attributes: dict = field(default_factory=dict)


@dataclass
class GenerationOutput:
    """Raw provider output."""
    text: str
    grounding_references: list[GroundingReference] = field(default_factory=list)


@dataclass
class RetrievalToolConfig:
    """Directive for provider-managed retrieval."""
    store_id: str
    max_results: int = 8
    category_filter: Optional[str] = None

    def filter_expression(self) -> Optional[dict]:
        if not self.category_filter:
            return None
        return {"type": "eq", "key": "category", "value": self.category_filter}


@dataclass
class ProviderConfig:
    """Configuration for the generative provider."""
    provider: str = "openai"  # "openai" or "nebius"
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    top_p: float = 0.8
    max_tokens: int = 2048
    timeout_s: float = 30.0
    api_key: Optional[str] = None
    base_url: Optional[str] = None


class GenerativeProvider(ABC):
    """Base class for generative model providers."""

    @abstractmethod
    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> GenerationOutput:
        """Generate text from a prompt. Raises GenerationFailed."""

    def generate_with_retrieval(
        self,
        query: str,
        tool_config: RetrievalToolConfig,
        instructions: Optional[str] = None,
    ) -> GenerationOutput:
        """Answer with provider-side retrieval. Raises GenerationFailed."""
        raise GenerationFailed(f"{type(self).__name__} does not support provider-managed retrieval")


class OpenAIGenerativeProvider(GenerativeProvider):
    """OpenAI (or OpenAI-compatible) generative provider."""

    def __init__(self, config: Optional[ProviderConfig] = None, client: Optional[OpenAI] = None):
        self.config = config or ProviderConfig()
        self._client = client

        if self._client is None:
            if self.config.provider == "nebius":
                api_key = self.config.api_key or os.getenv("LLM_API_KEY")
                base_url = self.config.base_url or os.getenv("LLM_BASE_URL", "https://api.studio.nebius.ai/v1")
            else:
                api_key = self.config.api_key or os.getenv("OPENAI_API_KEY")
                base_url = self.config.base_url

            if api_key:
                self._client = OpenAI(api_key=api_key, base_url=base_url, timeout=self.config.timeout_s)
            else:
                logger.warning(f"No API key for {self.config.provider} - generation unavailable")

        logger.info(f"OpenAIGenerativeProvider initialized: {self.config.provider}/{self.config.model}")

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> GenerationOutput:
        if not self._client:
            raise GenerationFailed("Generative provider not configured - check API key")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = self._client.chat.completions.create(
                model=self.config.model,
                messages=messages,
                temperature=self.config.temperature,
                top_p=self.config.top_p,
                max_tokens=max_tokens or self.config.max_tokens,
            )
            text = response.choices[0].message.content
        except OpenAIError as e:
            raise GenerationFailed(f"Generation request failed: {e}") from e
        except (IndexError, AttributeError) as e:
            raise GenerationFailed(f"Malformed generation response: {e}") from e

        if not text or not text.strip():
            raise GenerationFailed("Provider returned an empty answer")

        return GenerationOutput(text=text)

    def generate_with_retrieval(
        self,
        query: str,
        tool_config: RetrievalToolConfig,
        instructions: Optional[str] = None,
    ) -> GenerationOutput:
        if not self._client:
            raise GenerationFailed("Generative provider not configured - check API key")

        tool = {
            "type": "file_search",
            "vector_store_ids": [tool_config.store_id],
            "max_num_results": tool_config.max_results,
        }
        filters = tool_config.filter_expression()
        if filters:
            tool["filters"] = filters

        try:
            response = self._client.responses.create(
                model=self.config.model,
                input=query,
                instructions=instructions,
                tools=[tool],
                include=["file_search_call.results"],
                temperature=self.config.temperature,
                top_p=self.config.top_p,
                max_output_tokens=self.config.max_tokens,
            )
            text = response.output_text
        except OpenAIError as e:
            raise GenerationFailed(f"Retrieval generation request failed: {e}") from e
        except AttributeError as e:
            raise GenerationFailed(f"Malformed retrieval response: {e}") from e

        if not text or not text.strip():
            raise GenerationFailed("Provider returned an empty answer")

        return GenerationOutput(text=text, grounding_references=self._extract_references(response))

    @staticmethod
    def _extract_references(response) -> list[GroundingReference]:
        """Collect file_search results from the response output items."""
        references = []
        for item in getattr(response, "output", None) or []:
            if getattr(item, "type", None) != "file_search_call":
                continue
            for result in getattr(item, "results", None) or []:
                references.append(GroundingReference(
                    text=getattr(result, "text", "") or "",
                    source_locator_hint=getattr(result, "filename", None),
                    score=getattr(result, "score", None),
                    attributes=dict(getattr(result, "attributes", None) or {}),
                ))
        return references
