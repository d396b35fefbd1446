"""
Answer Generator - Generate grounded answers from retrieved context.

Application-managed retrieval: the assembled context block is interpolated
into a fixed instructional prompt and sent as plain generation.
Provider-managed retrieval: the raw query is sent with a retrieval tool
directive and the provider returns grounding references with the answer.

Provider failures are returned as Result.failure(GenerationFailed), never raised.
"""

import logging
from typing import Optional
from dataclasses import dataclass, field

from ..errors import GenerationFailed, Result
from .generative_provider import GenerativeProvider, GroundingReference, RetrievalToolConfig

logger = logging.getLogger(__name__)


@dataclass
class GeneratorConfig:
    """Configuration for answer generator."""
    default_response_type: str = "insight"
    insight_max_tokens: int = 500


@dataclass
class GeneratedAnswer:
    """Generated answer with any provider grounding references."""
    text: str
    grounding_references: list[GroundingReference] = field(default_factory=list)
    provider_managed: bool = False


PERSONA = """You are a knowledgeable Bible study assistant using the King James Version (KJV) Bible.
Provide thoughtful, theologically sound insights based on the Scripture context provided."""

GROUNDING_INSTRUCTIONS = """1. Base your answer primarily on the provided Scripture context
2. Cite specific verses using Book Chapter:Verse format (for example, John 3:16)
3. Provide historical and cultural context when relevant
4. Be theologically careful and humble
5. Suggest related passages for deeper study
6. Focus on clear, practical application when appropriate
7. If the context doesn't fully answer the question, acknowledge the limitations"""

RESPONSE_FOCUS = {
    "insight": "Provide deep insights and theological understanding of the passage.",
    "explanation": "Explain the meaning and context of the scripture clearly.",
    "application": "Focus on practical life applications and personal reflection.",
    "cross_reference": "Identify and explain related passages and biblical connections.",
}

RAG_PROMPT_TEMPLATE = """{persona}

CONTEXT FROM SCRIPTURE:
{context}

USER QUESTION: {question}

INSTRUCTIONS:
{instructions}

Specific focus: {focus}

Please provide a comprehensive and helpful response:"""

NO_CONTEXT = "(No passages were retrieved for this question.)"

PROVIDER_INSTRUCTIONS_TEMPLATE = """{persona}

Search the Scripture store for passages relevant to the user's question.

INSTRUCTIONS:
{instructions}

Specific focus: {focus}"""

INSIGHT_PROMPT_TEMPLATE = """Provide a brief, insightful analysis of this Bible verse:
{reference}: {text}

Include:
1. Key theological themes
2. Historical context
3. Practical application
4. Connection to broader biblical narrative

Keep it concise (2-3 paragraphs) and theologically sound."""


def response_focus(response_type: Optional[str]) -> str:
    """Focus instruction for a response type; unknown types fall back to insight."""
    return RESPONSE_FOCUS.get(response_type or "insight", RESPONSE_FOCUS["insight"])


def build_rag_prompt(question: str, context: str, response_type: Optional[str] = None) -> str:
    """Fill the fixed instructional template with context and question."""
    return RAG_PROMPT_TEMPLATE.format(
        persona=PERSONA,
        context=context.strip() or NO_CONTEXT,
        question=question,
        instructions=GROUNDING_INSTRUCTIONS,
        focus=response_focus(response_type),
    )


def build_provider_instructions(response_type: Optional[str] = None) -> str:
    """System instructions sent alongside provider-managed retrieval."""
    return PROVIDER_INSTRUCTIONS_TEMPLATE.format(
        persona=PERSONA,
        instructions=GROUNDING_INSTRUCTIONS,
        focus=response_focus(response_type),
    )


class AnswerGenerator:
    """
    Turn a query plus context (or a retrieval tool directive) into an answer.

    Usage:
        generator = AnswerGenerator(provider)
        result = generator.generate(question, context=context_block)
        if result.ok:
            print(result.value.text)
    """

    def __init__(self, provider: GenerativeProvider, config: Optional[GeneratorConfig] = None):
        self.provider = provider
        self.config = config or GeneratorConfig()

    def generate(
        self,
        question: str,
        context: Optional[str] = None,
        tool_config: Optional[RetrievalToolConfig] = None,
        response_type: Optional[str] = None,
    ) -> Result[GeneratedAnswer]:
        """
        Generate an answer.

        Args:
            question: User's question
            context: Assembled context block (application-managed mode)
            tool_config: Retrieval directive (provider-managed mode); wins over context
            response_type: insight / explanation / application / cross_reference

        Returns:
            Result holding a GeneratedAnswer or a GenerationFailed error
        """
        response_type = response_type or self.config.default_response_type

        try:
            if tool_config is not None:
                output = self.provider.generate_with_retrieval(
                    question,
                    tool_config,
                    instructions=build_provider_instructions(response_type),
                )
                answer = GeneratedAnswer(
                    text=output.text,
                    grounding_references=list(output.grounding_references),
                    provider_managed=True,
                )
            else:
                prompt = build_rag_prompt(question, context or "", response_type)
                output = self.provider.generate(prompt)
                answer = GeneratedAnswer(text=output.text)
        except GenerationFailed as e:
            logger.warning(f"Generation failed: {e}")
            return Result.failure(e)
        except Exception as e:
            logger.warning(f"Generation raised unexpectedly: {e}")
            error = GenerationFailed(f"Unexpected provider error: {e}")
            error.__cause__ = e
            return Result.failure(error)

        if not answer.text or not answer.text.strip():
            return Result.failure(GenerationFailed("Provider returned an empty answer"))

        return Result.success(answer)

    def generate_insight(self, reference: str, text: str) -> Result[str]:
        """Short standalone analysis of a single passage."""
        prompt = INSIGHT_PROMPT_TEMPLATE.format(reference=reference, text=text)
        try:
            output = self.provider.generate(prompt, max_tokens=self.config.insight_max_tokens)
        except GenerationFailed as e:
            logger.warning(f"Insight generation failed for {reference}: {e}")
            return Result.failure(e)
        except Exception as e:
            logger.warning(f"Insight generation raised unexpectedly for {reference}: {e}")
            return Result.failure(GenerationFailed(f"Unexpected provider error: {e}"))
        return Result.success(output.text)
