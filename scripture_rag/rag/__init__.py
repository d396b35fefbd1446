"""
RAG (Retrieval-Augmented Generation) module.

Components:
- RAGOrchestrator: End-to-end answer generation with fallback on failure
- AnswerGenerator: Build grounded prompts and call the generative provider
- ContextAssembler: Format retrieved passages into a context block
- ResponsePostProcessor: Follow-up questions, confidence, grounding mapping
- OpenAIGenerativeProvider: Chat completions and file_search retrieval
"""

from .answer_generator import AnswerGenerator, GeneratorConfig, GeneratedAnswer
from .context_assembler import ContextAssembler
from .generative_provider import (
    GenerativeProvider,
    OpenAIGenerativeProvider,
    ProviderConfig,
    RetrievalToolConfig,
    GroundingReference,
    GenerationOutput,
)
from .post_processor import (
    ResponsePostProcessor,
    PatternFollowUpExtractor,
    ConfidenceConfig,
    calculate_confidence,
    map_grounding_references,
)
from .guardrails import validate_query
from .rag_pipeline import RAGOrchestrator, RAGConfig, RAGQuery, RAGResult, PipelineStage

__all__ = [
    "AnswerGenerator",
    "GeneratorConfig",
    "GeneratedAnswer",
    "ContextAssembler",
    "GenerativeProvider",
    "OpenAIGenerativeProvider",
    "ProviderConfig",
    "RetrievalToolConfig",
    "GroundingReference",
    "GenerationOutput",
    "ResponsePostProcessor",
    "PatternFollowUpExtractor",
    "ConfidenceConfig",
    "calculate_confidence",
    "map_grounding_references",
    "validate_query",
    "RAGOrchestrator",
    "RAGConfig",
    "RAGQuery",
    "RAGResult",
    "PipelineStage",
]
