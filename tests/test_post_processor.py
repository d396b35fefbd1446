"""
Unit Tests for Response Post-Processing
"""

import pytest

from scripture_rag.rag.generative_provider import GroundingReference
from scripture_rag.rag.post_processor import (
    DEFAULT_FOLLOW_UPS,
    ConfidenceConfig,
    PatternFollowUpExtractor,
    ResponsePostProcessor,
    calculate_confidence,
    grounding_to_passage,
    map_grounding_references,
)


class TestConfidence:
    """Tests for calculate_confidence."""

    def test_weighted_peak_and_mean(self):
        """Test 0.7 * max + 0.3 * mean."""
        assert calculate_confidence([0.92, 0.81]) == pytest.approx(0.9035)

    def test_ceiling(self):
        """Test confidence never exceeds 0.95."""
        assert calculate_confidence([1.0, 1.0]) == 0.95

    def test_empty_is_floor(self):
        """Test no context gives 0.1."""
        assert calculate_confidence([]) == 0.1

    def test_floor_for_weak_context(self):
        """Test confidence never drops below the floor."""
        assert calculate_confidence([0.0, 0.0]) == 0.1

    def test_monotonic_in_peak(self):
        """Test raising the best relevance never lowers confidence."""
        scores = [calculate_confidence([peak, 0.5]) for peak in (0.5, 0.6, 0.7, 0.8, 0.9, 1.0)]

        assert scores == sorted(scores)

    def test_custom_weights(self):
        """Test weights and bounds come from config."""
        config = ConfidenceConfig(peak_weight=1.0, mean_weight=0.0, ceiling=0.99, floor=0.2)

        assert calculate_confidence([0.5, 0.1], config) == pytest.approx(0.5)
        assert calculate_confidence([], config) == 0.2


class TestFollowUps:
    """Tests for PatternFollowUpExtractor."""

    def test_extracts_questions(self):
        """Test question-shaped clauses are extracted."""
        text = (
            "Faith shows itself in deeds. What does James mean by dead faith? "
            "How can we live this out? Why did Paul stress grace?"
        )

        questions = PatternFollowUpExtractor().extract(text)

        assert questions == [
            "What does James mean by dead faith?",
            "How can we live this out?",
            "Why did Paul stress grace?",
        ]

    def test_two_per_pattern(self):
        """Test at most 2 matches per pattern."""
        text = "Why one? Why two? Why three?"

        questions = PatternFollowUpExtractor().extract(text)

        assert questions == ["Why one?", "Why two?"]

    def test_total_capped_at_five(self):
        """Test at most 5 follow-ups."""
        text = (
            "What does a mean? What does b mean? How can c work? "
            "How can d work? Why e? Why f?"
        )

        questions = PatternFollowUpExtractor().extract(text)

        assert len(questions) == 5

    def test_defaults_when_no_match(self):
        """Test 3 default follow-ups when nothing matches."""
        questions = PatternFollowUpExtractor().extract("A plain statement.")

        assert questions == DEFAULT_FOLLOW_UPS
        assert len(questions) == 3

    def test_extractor_failure_gives_empty(self):
        """Test a broken extractor never breaks post-processing."""
        class Broken:
            def extract(self, text):
                raise ValueError("boom")

        processor = ResponsePostProcessor(follow_up_extractor=Broken())

        assert processor.suggest_follow_ups("text") == []


class TestGroundingMapping:
    """Tests for grounding reference mapping."""

    def test_parses_leading_reference(self):
        """Test "Book C:V text" becomes a passage."""
        ref = GroundingReference(
            text="1 Corinthians 13:4 - Charity suffereth long",
            attributes={"passage_id": "46013004", "category": "New"},
        )

        passage = grounding_to_passage(ref)

        assert passage.id == 46013004
        assert passage.collection_id == "1 Corinthians"
        assert passage.locator == "13:4"
        assert passage.display_reference == "1 Corinthians 13:4"
        assert passage.text == "Charity suffereth long"
        assert passage.category == "New"

    def test_multiword_book(self):
        """Test books with "of" in the name."""
        passage = grounding_to_passage(GroundingReference(text="Song of Solomon 2:4 He brought me"))

        assert passage.collection_id == "Song of Solomon"
        assert passage.id == 0
        assert passage.category == "grounded"

    def test_hint_used_when_text_has_no_reference(self):
        """Test locator hint fallback."""
        ref = GroundingReference(text="Now faith is the substance", source_locator_hint="Hebrews 11:1.txt")

        passage = grounding_to_passage(ref)

        assert passage.display_reference == "Hebrews 11:1"
        assert passage.text == "Now faith is the substance"

    def test_unparseable_becomes_placeholder(self):
        """Test unresolved references are kept as placeholders."""
        passage = grounding_to_passage(GroundingReference(text="an opaque snippet", source_locator_hint="notes.txt"))

        assert passage.id == 0
        assert passage.category == "unresolved"
        assert passage.display_reference == "notes.txt"
        assert passage.text == "an opaque snippet"

    def test_every_reference_mapped(self, grounding_references):
        """Test output length and relevance defaults."""
        mapped = map_grounding_references(grounding_references)

        assert len(mapped) == 2
        assert mapped[0].relevance == pytest.approx(0.9)
        assert mapped[0].passage.display_reference == "John 3:16"
        assert mapped[1].relevance == 0.8
        assert mapped[1].passage.category == "unresolved"

    def test_score_clamped(self):
        """Test provider scores are clamped to [0, 1]."""
        mapped = map_grounding_references([GroundingReference(text="John 1:1 In the beginning", score=3.2)])

        assert mapped[0].relevance == 1.0
