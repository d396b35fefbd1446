"""
Response Post-Processor - Annotate a generated answer.

- Follow-up questions: best-effort regex extraction, swappable behind the
  FollowUpExtractor protocol. Not correctness-critical.
- Confidence: weighted toward the peak relevance of the context used,
  clamped to [floor, ceiling].
- Grounding references: parsed back into Passage records; references without
  a recognisable "Book C:V" locator become placeholder passages so every
  reference is kept.
"""

import logging
import re
from typing import Optional, Protocol, runtime_checkable
from dataclasses import dataclass, field

from ..retrieval.passage_store import Passage
from ..retrieval.similarity_searcher import RetrievedPassage
from .generative_provider import GroundingReference

logger = logging.getLogger(__name__)

QUESTION_PATTERNS = [
    r"What does[^?]*\?",
    r"How can[^?]*\?",
    r"Why[^?]*\?",
]

DEFAULT_FOLLOW_UPS = [
    "What is the historical context of this passage?",
    "How does this apply to daily life?",
    "What are related biblical themes?",
]

# "John 3:16", "1 Corinthians 13:4", "Song of Solomon 2:4", optional ":"/"-" separator
REFERENCE_PATTERN = re.compile(
    r"(?P<book>(?:[1-3]\s?)?[A-Z][A-Za-z]*(?:\s+(?:of\s+)?[A-Z][A-Za-z]*)*)"
    r"\s+(?P<chapter>\d{1,3}):(?P<verse>\d{1,3})\b"
)
SEPARATOR_PATTERN = re.compile(r"^\s*[:\-–—]?\s*")

UNRESOLVED_CATEGORY = "unresolved"
GROUNDED_CATEGORY = "grounded"


@runtime_checkable
class FollowUpExtractor(Protocol):
    """Suggests follow-up questions for a generated answer."""

    def extract(self, text: str) -> list[str]: ...


class PatternFollowUpExtractor:
    """Pull question-shaped clauses out of the answer text."""

    def __init__(
        self,
        patterns: Optional[list[str]] = None,
        per_pattern: int = 2,
        max_total: int = 5,
        defaults: Optional[list[str]] = None,
    ):
        self.patterns = [re.compile(p) for p in (patterns or QUESTION_PATTERNS)]
        self.per_pattern = per_pattern
        self.max_total = max_total
        self.defaults = list(defaults or DEFAULT_FOLLOW_UPS)

    def extract(self, text: str) -> list[str]:
        questions: list[str] = []

        for pattern in self.patterns:
            for match in pattern.findall(text or "")[:self.per_pattern]:
                question = " ".join(match.split())
                if question not in questions:
                    questions.append(question)

        if not questions:
            return self.defaults[:self.max_total]

        return questions[:self.max_total]


@dataclass
class ConfidenceConfig:
    """Weights for relevance-to-confidence conversion."""
    peak_weight: float = 0.7
    mean_weight: float = 0.3
    ceiling: float = 0.95
    floor: float = 0.1


def calculate_confidence(relevances: list[float], config: Optional[ConfidenceConfig] = None) -> float:
    """
    confidence = min(ceiling, peak_weight * max + mean_weight * mean)

    Returns config.floor for an empty list; never below the floor.
    """
    config = config or ConfidenceConfig()
    if not relevances:
        return config.floor

    peak = max(relevances)
    mean = sum(relevances) / len(relevances)
    score = config.peak_weight * peak + config.mean_weight * mean
    return max(config.floor, min(config.ceiling, score))


def parse_reference(text: str, anchored: bool = True) -> Optional[re.Match]:
    """Match a "Book Chapter:Verse" reference (at the start when anchored)."""
    if not text:
        return None
    if anchored:
        return REFERENCE_PATTERN.match(text.lstrip())
    return REFERENCE_PATTERN.search(text)


def _passage_id(attributes: dict) -> int:
    try:
        return int(attributes.get("passage_id", 0))
    except (TypeError, ValueError):
        return 0


def grounding_to_passage(reference: GroundingReference) -> Passage:
    """Map one grounding reference to a Passage, or a placeholder if unparseable."""
    attributes = reference.attributes or {}
    text = (reference.text or "").strip()

    match = parse_reference(text)
    body = text[match.end():] if match else text
    if match is None and reference.source_locator_hint:
        match = parse_reference(reference.source_locator_hint, anchored=False)

    if match is None:
        logger.warning(f"Unresolved grounding reference: {text[:60]!r}")
        return Passage(
            id=0,
            collection_id="",
            locator="",
            text=text,
            display_reference=reference.source_locator_hint or "Unresolved reference",
            category=UNRESOLVED_CATEGORY,
        )

    book = " ".join(match.group("book").split())
    locator = f"{match.group('chapter')}:{match.group('verse')}"
    return Passage(
        id=_passage_id(attributes),
        collection_id=book,
        locator=locator,
        text=SEPARATOR_PATTERN.sub("", body, count=1).strip(),
        display_reference=f"{book} {locator}",
        category=str(attributes.get("category") or GROUNDED_CATEGORY),
    )


def map_grounding_references(
    references: list[GroundingReference],
    default_relevance: float = 0.8,
) -> list[RetrievedPassage]:
    """One RetrievedPassage per reference, in provider order."""
    mapped = []
    for reference in references:
        if reference.score is None:
            relevance = default_relevance
        else:
            relevance = min(1.0, max(0.0, float(reference.score)))
        mapped.append(RetrievedPassage(passage=grounding_to_passage(reference), relevance=relevance))
    return mapped


@dataclass
class ResponsePostProcessor:
    """Follow-ups, confidence and grounding mapping for one answer."""
    follow_up_extractor: FollowUpExtractor = field(default_factory=PatternFollowUpExtractor)
    confidence_config: ConfidenceConfig = field(default_factory=ConfidenceConfig)
    grounding_relevance: float = 0.8

    def suggest_follow_ups(self, text: str) -> list[str]:
        try:
            return list(self.follow_up_extractor.extract(text))[:5]
        except Exception as e:
            logger.warning(f"Follow-up extraction failed: {e}")
            return []

    def confidence(self, relevances: list[float]) -> float:
        return calculate_confidence(relevances, self.confidence_config)

    def map_grounding(self, references: list[GroundingReference]) -> list[RetrievedPassage]:
        return map_grounding_references(references, self.grounding_relevance)
