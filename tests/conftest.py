"""
Pytest configuration and fixtures.
"""

import sys
from pathlib import Path

import pytest

# Project root on the path so tests can import the fixtures package.
sys.path.insert(0, str(Path(__file__).parent.parent))

from expander.instructions.parser import InstructionParser
from expander.models import CommitmentLedger, DocumentSkeleton
from tests.fixtures.settings import fast_settings
from tests.fixtures.stub_backend import StubBackend


@pytest.fixture
def settings():
    """Default settings with every delay set to zero."""
    return fast_settings()


@pytest.fixture
def stub_backend() -> StubBackend:
    return StubBackend()


@pytest.fixture
def parser() -> InstructionParser:
    return InstructionParser()


@pytest.fixture
def skeleton() -> DocumentSkeleton:
    return DocumentSkeleton(
        thesis="Cooperative institutions outperform purely competitive ones under uncertainty.",
        outline=("Uncertainty raises costs.", "Cooperation spreads risk."),
        key_terms={"institution": "a durable rule set that coordinates expectations"},
        commitments=CommitmentLedger(
            asserts=("Cooperation reduces exposure to shocks",),
            rejects=("markets always self-correct without intervention",),
        ),
        entities=("Elinor Ostrom",),
    )


@pytest.fixture
def source_200() -> str:
    """A 200-word source text."""
    sentence = "Communities that pool resources weather droughts better than isolated farms do"
    words = (sentence + " ") * 20
    text = " ".join(words.split()[:200])
    return text
