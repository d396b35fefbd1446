"""
RAG Orchestrator - End-to-end Retrieval-Augmented Generation.

generate_answer runs one request through:
    ResolvingContext -> Prompting -> Generating -> PostProcessing -> Done
Any failure along the way becomes a fixed apology answer with empty context
and floor confidence; only InvalidQuery (a caller error) is raised.
"""

import logging
import os
import time
from enum import Enum
from typing import Optional
from dataclasses import dataclass, field

from ..errors import InvalidQuery, RagError, Result
from ..ingestion.batch_embedder import BatchConfig, BatchEmbedder, BatchReport
from ..retrieval.embedding_service import EmbeddingConfig, EmbeddingProvider, EmbeddingService
from ..retrieval.passage_store import PassageStore, normalize_category
from ..retrieval.similarity_searcher import (
    RetrievalMode,
    RetrievedPassage,
    SearcherConfig,
    SimilaritySearcher,
)
from .answer_generator import AnswerGenerator, GeneratorConfig
from .context_assembler import ContextAssembler
from .generative_provider import (
    GenerativeProvider,
    OpenAIGenerativeProvider,
    ProviderConfig,
    RetrievalToolConfig,
)
from .guardrails import clamp_max_results, validate_query
from .post_processor import ConfidenceConfig, FollowUpExtractor, PatternFollowUpExtractor, ResponsePostProcessor

logger = logging.getLogger(__name__)

FALLBACK_ANSWER = (
    'I apologize, but I encountered an error while processing your query about "{query}". '
    "Please try rephrasing your question or contact support if the issue persists."
)
INSIGHTS_UNAVAILABLE = "Insights temporarily unavailable."


class PipelineStage(str, Enum):
    """States of a generate_answer request."""
    RESOLVING_CONTEXT = "resolving_context"
    PROMPTING = "prompting"
    GENERATING = "generating"
    POST_PROCESSING = "post_processing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RAGConfig:
    """Configuration for the RAG orchestrator."""
    # Providers
    embedding_provider_id: str = "openai"  # "openai" or "nebius"
    generative_provider_id: str = "openai"  # "openai" or "nebius"
    embedding_model: str = "text-embedding-3-small"
    embedding_dimension: int = 1536
    generative_model_id: str = "gpt-4o-mini"
    retrieval_store_id: Optional[str] = None  # Provider-side store for provider-managed mode

    # Retrieval
    retrieval_mode: RetrievalMode = RetrievalMode.VECTOR
    min_relevance_floor: float = 0.7
    default_result_limit: int = 8
    keyword_relevance: float = 0.8
    max_context_chars: Optional[int] = None

    # Confidence
    peak_weight: float = 0.7
    mean_weight: float = 0.3
    confidence_ceiling: float = 0.95
    confidence_floor: float = 0.1

    # Ingestion
    ingest_page_size: int = 50
    inter_batch_delay_ms: int = 2000
    inter_item_delay_ms: int = 100

    # Provider calls
    request_timeout_s: float = 30.0

    @classmethod
    def from_env(cls) -> "RAGConfig":
        """Build config from RAG_* environment variables, defaults otherwise."""
        defaults = cls()

        def env(name, cast, default):
            value = os.getenv(name)
            if value is None or value == "":
                return default
            return cast(value)

        return cls(
            embedding_provider_id=env("RAG_EMBEDDING_PROVIDER", str, defaults.embedding_provider_id),
            generative_provider_id=env("RAG_GENERATIVE_PROVIDER", str, defaults.generative_provider_id),
            embedding_model=env("RAG_EMBEDDING_MODEL", str, defaults.embedding_model),
            embedding_dimension=env("RAG_EMBEDDING_DIMENSION", int, defaults.embedding_dimension),
            generative_model_id=env("RAG_GENERATIVE_MODEL", str, defaults.generative_model_id),
            retrieval_store_id=env("RAG_RETRIEVAL_STORE_ID", str, defaults.retrieval_store_id),
            retrieval_mode=env("RAG_RETRIEVAL_MODE", RetrievalMode, defaults.retrieval_mode),
            min_relevance_floor=env("RAG_MIN_RELEVANCE", float, defaults.min_relevance_floor),
            default_result_limit=env("RAG_RESULT_LIMIT", int, defaults.default_result_limit),
            max_context_chars=env("RAG_MAX_CONTEXT_CHARS", int, defaults.max_context_chars),
            inter_batch_delay_ms=env("RAG_BATCH_DELAY_MS", int, defaults.inter_batch_delay_ms),
            inter_item_delay_ms=env("RAG_ITEM_DELAY_MS", int, defaults.inter_item_delay_ms),
            request_timeout_s=env("RAG_TIMEOUT_S", float, defaults.request_timeout_s),
        )

    def searcher_config(self) -> SearcherConfig:
        return SearcherConfig(
            min_relevance_floor=self.min_relevance_floor,
            keyword_relevance=self.keyword_relevance,
            default_limit=self.default_result_limit,
        )

    def confidence_config(self) -> ConfidenceConfig:
        return ConfidenceConfig(
            peak_weight=self.peak_weight,
            mean_weight=self.mean_weight,
            ceiling=self.confidence_ceiling,
            floor=self.confidence_floor,
        )

    def batch_config(self) -> BatchConfig:
        return BatchConfig(
            page_size=self.ingest_page_size,
            inter_batch_delay_ms=self.inter_batch_delay_ms,
            inter_item_delay_ms=self.inter_item_delay_ms,
        )

    def embedding_config(self) -> EmbeddingConfig:
        return EmbeddingConfig(
            provider=self.embedding_provider_id,
            model=self.embedding_model,
            dimension=self.embedding_dimension,
            timeout_s=self.request_timeout_s,
        )

    def provider_config(self) -> ProviderConfig:
        return ProviderConfig(
            provider=self.generative_provider_id,
            model=self.generative_model_id,
            timeout_s=self.request_timeout_s,
        )


@dataclass
class RAGQuery:
    """A question plus retrieval options."""
    text: str
    max_results: Optional[int] = None  # default: config.default_result_limit
    min_relevance: Optional[float] = None  # default: config.min_relevance_floor
    category_filter: Optional[str] = None
    explicit_passage_ids: Optional[list[int]] = None  # bypasses search entirely
    response_type: str = "insight"


@dataclass
class RAGResult:
    """Structured answer. Always fully populated, even on failure."""
    answer_text: str
    context_passages: list[RetrievedPassage] = field(default_factory=list)
    processing_time_ms: int = 0
    suggested_follow_ups: list[str] = field(default_factory=list)
    confidence: float = 0.1
    context_source: Optional[str] = None  # "explicit", "search" or "provider"
    stage: PipelineStage = PipelineStage.DONE  # FAILED for the fallback answer
    error: Optional[RagError] = field(default=None, repr=False)

    @property
    def is_fallback(self) -> bool:
        return self.error is not None


class RAGOrchestrator:
    """
    Public entry point of the RAG core.

    Usage:
        orchestrator = RAGOrchestrator(store, embedder=EmbeddingService(), provider=OpenAIGenerativeProvider())
        result = orchestrator.generate_answer(RAGQuery(text="What is faith?"))
    """

    def __init__(
        self,
        store: PassageStore,
        provider: GenerativeProvider,
        embedder: Optional[EmbeddingProvider] = None,
        config: Optional[RAGConfig] = None,
        searcher: Optional[SimilaritySearcher] = None,
        follow_up_extractor: Optional[FollowUpExtractor] = None,
    ):
        self.config = config or RAGConfig()
        self.store = store
        self.embedder = embedder
        self.provider = provider

        self.provider_managed = self.config.retrieval_mode == RetrievalMode.PROVIDER_MANAGED
        if self.provider_managed and not self.config.retrieval_store_id:
            logger.warning("Provider-managed retrieval needs retrieval_store_id - using application-managed retrieval")
            self.provider_managed = False

        search_mode = RetrievalMode.KEYWORD if self.config.retrieval_mode == RetrievalMode.KEYWORD else RetrievalMode.VECTOR
        self.searcher = searcher or SimilaritySearcher(
            store,
            embedder=embedder,
            config=self.config.searcher_config(),
            mode=search_mode,
        )
        self.assembler = ContextAssembler(max_chars=self.config.max_context_chars)
        self.generator = AnswerGenerator(provider, GeneratorConfig())
        self.post_processor = ResponsePostProcessor(
            follow_up_extractor=follow_up_extractor or PatternFollowUpExtractor(),
            confidence_config=self.config.confidence_config(),
            grounding_relevance=self.config.keyword_relevance,
        )

        logger.info(
            f"RAGOrchestrator initialized: mode={self.config.retrieval_mode.value}, "
            f"model={self.config.generative_model_id}"
        )

    @classmethod
    def from_config(cls, store: PassageStore, config: Optional[RAGConfig] = None) -> "RAGOrchestrator":
        """Build the OpenAI-backed embedder and provider from config."""
        config = config or RAGConfig()
        return cls(
            store,
            provider=OpenAIGenerativeProvider(config.provider_config()),
            embedder=EmbeddingService(config.embedding_config()),
            config=config,
        )

    def search(
        self,
        query: str,
        limit: Optional[int] = None,
        category_filter: Optional[str] = None,
        min_relevance: Optional[float] = None,
    ) -> list[RetrievedPassage]:
        """Retrieve passages without generating an answer. Raises InvalidQuery."""
        text = validate_query(query, limit)
        return self.searcher.search(
            text,
            limit=clamp_max_results(limit, self.config.default_result_limit),
            category_filter=category_filter,
            min_relevance=min_relevance,
        )

    def generate_answer(self, query: RAGQuery) -> RAGResult:
        """
        Answer a question.

        Raises:
            InvalidQuery: empty/oversized text or non-positive max_results (no provider calls made)

        Returns:
            RAGResult; on any pipeline failure, the fallback answer
        """
        text = validate_query(query.text, query.max_results)
        start_time = time.time()

        outcome = self._run(query, text, start_time)
        if outcome.ok:
            return outcome.value

        logger.error(f"RAG pipeline failed, returning fallback answer: {outcome.error}")
        return self._fallback_result(query.text, outcome.error, start_time)

    def get_index_stats(self) -> dict:
        """Pass-through index diagnostics from the passage store."""
        stats = self.store.get_stats()
        return {
            "document_count": stats.get("document_count", 0),
            "total_size": stats.get("total_size", 0),
            "last_indexed_at": stats.get("last_indexed_at"),
        }

    def process_all_passages(self, sleep=time.sleep) -> BatchReport:
        """Embed the whole corpus into the vector index (rate limited)."""
        if self.embedder is None:
            raise RuntimeError("No embedding provider configured")
        batch = BatchEmbedder(self.store, self.embedder, self.config.batch_config(), sleep=sleep)
        return batch.process_all_passages()

    def get_passage_insights(self, passage_id: int) -> str:
        """
        Short generated analysis of one stored passage.

        Raises:
            InvalidQuery: unknown passage id
        """
        passages = self.store.get_by_ids([passage_id])
        if not passages:
            raise InvalidQuery(f"Passage {passage_id} not found")

        passage = passages[0]
        result = self.generator.generate_insight(passage.display_reference, passage.text)
        return result.value if result.ok else INSIGHTS_UNAVAILABLE

    def _run(self, query: RAGQuery, text: str, start_time: float) -> Result[RAGResult]:
        stage = PipelineStage.RESOLVING_CONTEXT
        limit = clamp_max_results(query.max_results, self.config.default_result_limit)
        category = normalize_category(query.category_filter)

        try:
            tool_config = None
            if query.explicit_passage_ids:
                context = self._resolve_explicit(query.explicit_passage_ids)
                context_source = "explicit"
            elif self.provider_managed:
                context = []
                context_source = "provider"
            else:
                context = self.searcher.search(
                    text,
                    limit=limit,
                    category_filter=category,
                    min_relevance=query.min_relevance,
                )
                context_source = "search"

            stage = PipelineStage.PROMPTING
            context_block = None
            if context_source == "provider":
                tool_config = RetrievalToolConfig(
                    store_id=self.config.retrieval_store_id,
                    max_results=limit,
                    category_filter=category,
                )
            else:
                context_block = self.assembler.assemble(context)

            stage = PipelineStage.GENERATING
            generated = self.generator.generate(
                text,
                context=context_block,
                tool_config=tool_config,
                response_type=query.response_type,
            )
            if not generated.ok:
                generated.error.stage = generated.error.stage or stage.value
                return Result.failure(generated.error)

            stage = PipelineStage.POST_PROCESSING
            answer = generated.value
            if answer.provider_managed:
                context = self.post_processor.map_grounding(answer.grounding_references)

            result = RAGResult(
                answer_text=answer.text,
                context_passages=context,
                processing_time_ms=self._elapsed_ms(start_time),
                suggested_follow_ups=self.post_processor.suggest_follow_ups(answer.text),
                confidence=self.post_processor.confidence([p.relevance for p in context]),
                context_source=context_source,
                stage=PipelineStage.DONE,
            )
        except RagError as e:
            e.stage = e.stage or stage.value
            return Result.failure(e)
        except Exception as e:
            error = RagError(f"Unexpected error: {e}", stage=stage.value)
            error.__cause__ = e
            return Result.failure(error)

        logger.info(
            f"Answered in {result.processing_time_ms}ms: {len(result.context_passages)} passages "
            f"({context_source}), confidence={result.confidence:.2f}"
        )
        return Result.success(result)

    def _resolve_explicit(self, passage_ids: list[int]) -> list[RetrievedPassage]:
        """Caller-chosen passages, in fetch order, with full relevance."""
        passages = self.store.get_by_ids(list(passage_ids))
        return [RetrievedPassage(passage=p, relevance=1.0) for p in passages]

    def _fallback_result(self, query_text: str, error: RagError, start_time: float) -> RAGResult:
        return RAGResult(
            answer_text=FALLBACK_ANSWER.format(query=query_text),
            context_passages=[],
            processing_time_ms=self._elapsed_ms(start_time),
            suggested_follow_ups=[],
            confidence=self.config.confidence_floor,
            context_source=None,
            stage=PipelineStage.FAILED,
            error=error,
        )

    @staticmethod
    def _elapsed_ms(start_time: float) -> int:
        return int((time.time() - start_time) * 1000)
