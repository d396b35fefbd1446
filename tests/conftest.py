"""
Shared fixtures for the RAG core tests.
"""

import pytest

from scripture_rag.rag.generative_provider import GroundingReference
from tests.fakes import FakeEmbedder, FakeGenerativeProvider, FakePassageStore, make_passage


@pytest.fixture
def james():
    return make_passage(59002017, "James", "2:17", "Even so faith, if it hath not works, is dead, being alone.")


@pytest.fixture
def romans():
    return make_passage(45003028, "Romans", "3:28", "Therefore we conclude that a man is justified by faith without the deeds of the law.")


@pytest.fixture
def genesis():
    return make_passage(1001001, "Genesis", "1:1", "In the beginning God created the heaven and the earth.", category="Old")


@pytest.fixture
def store(james, romans, genesis):
    return FakePassageStore(
        passages=[james, romans, genesis],
        vector_hits=[(james, 0.08), (romans, 0.19), (genesis, 0.5)],
        keyword_hits=[james, romans],
    )


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def provider():
    return FakeGenerativeProvider()


@pytest.fixture
def grounding_references():
    return [
        GroundingReference(text="John 3:16 For God so loved the world", score=0.9, attributes={"passage_id": 43003016}),
        GroundingReference(text="an opaque snippet", source_locator_hint="notes.txt"),
    ]
