"""
Unit tests for the section continuation loop.
"""

import pytest

from expander.models import ParsedInstructions
from expander.models.enums import StopReason
from expander.utils.text import count_words
from expander.writing.section_generator import SectionGenerator
from tests.fixtures.stub_backend import StubBackend, filler_words


async def _generate(backend, settings, target, parsed=None, points=(), skeleton=None, name="CHAPTER 1: CORE ARGUMENT"):
    generator = SectionGenerator(backend, settings)
    return await generator.generate(
        name,
        target,
        "Communities that pool resources weather droughts better.",
        "1. INTRODUCTION\n2. CHAPTER 1",
        "",
        parsed or ParsedInstructions(),
        "EXPAND TO 5000 WORDS",
        points,
        skeleton,
    )


@pytest.mark.asyncio
async def test_converges_on_first_call(settings):
    backend = StubBackend()
    result = await _generate(backend, settings, 875)
    assert result.attempts == 1
    assert result.converged
    assert count_words(result.content) == 875
    assert 0 < len(result.key_claims) <= 8


@pytest.mark.asyncio
async def test_continues_until_convergence_ratio(settings):
    backend = StubBackend(section_words=100)
    result = await _generate(backend, settings, 1000)
    assert result.attempts == 10
    assert result.converged
    assert len(backend.prompts_containing("You are CONTINUING")) == 9


@pytest.mark.asyncio
async def test_continuation_prompt_sees_only_recent_paragraphs(settings):
    backend = StubBackend(section_words=100)
    await _generate(backend, settings, 1000)
    last_prompt = backend.calls[-1]["prompt"]
    assert "WORDS WRITTEN SO FAR: 900" in last_prompt
    excerpt = last_prompt.split('"""')[1]
    assert count_words(excerpt) <= 300


@pytest.mark.asyncio
async def test_truncated_responses_force_continuation_up_to_ceiling(settings):
    backend = StubBackend(stop_reason=StopReason.MAX_TOKENS)
    result = await _generate(backend, settings, 500)
    assert result.attempts == settings.expansion.max_attempts_per_section == 20
    assert len(backend.calls) == 20


@pytest.mark.asyncio
async def test_non_convergence_is_accepted(settings):
    backend = StubBackend(section_words=10)
    result = await _generate(backend, settings, 1000)
    assert result.attempts == 20
    assert not result.converged
    assert count_words(result.content) == 200
    # every attempt is underlength, so each one is retried twice
    assert len(backend.calls) == 60


@pytest.mark.asyncio
async def test_underlength_retry_keeps_longest(settings):
    backend = StubBackend(scripted_text=["short text", filler_words(60), filler_words(30)])
    result = await _generate(backend, settings, 60)
    assert len(backend.calls) == 2
    assert result.attempts == 1
    assert count_words(result.content) == 60


@pytest.mark.asyncio
async def test_zero_target_makes_no_calls(settings):
    backend = StubBackend()
    result = await _generate(backend, settings, 0)
    assert result.content == ""
    assert result.attempts == 0
    assert backend.calls == []


@pytest.mark.asyncio
async def test_prompt_carries_skeleton_and_settled_points(settings, skeleton):
    backend = StubBackend()
    await _generate(
        backend, settings, 300, points=["[INTRODUCTION] Reserves dampen shocks"], skeleton=skeleton
    )
    prompt = backend.calls[0]["prompt"]
    assert "DOCUMENT SKELETON" in prompt
    assert "markets always self-correct without intervention" in prompt
    assert "SETTLED - DO NOT RE-ARGUE" in prompt
    assert "[INTRODUCTION] Reserves dampen shocks" in prompt


@pytest.mark.asyncio
async def test_dialogue_mode_uses_dialogue_prompts(settings):
    backend = StubBackend(section_words=100)
    parsed = ParsedInstructions(dialogue_mode=True, dialogue_participants=("Hume", "Kant"))
    await _generate(backend, settings, 300, parsed=parsed)
    assert "You are writing a DIALOGUE" in backend.calls[0]["prompt"]
    assert "PARTICIPANTS: Hume and Kant" in backend.calls[0]["prompt"]
    assert backend.calls[1]["prompt"].startswith("You are CONTINUING a dialogue between Hume and Kant")
