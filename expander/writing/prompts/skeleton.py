"""Prompts for skeleton extraction and two-tier chunk skeletonization."""

from __future__ import annotations

from typing import Sequence

from expander.writing.prompts.base import JSON_ONLY_RULE, banner


def skeleton_extraction_prompt(source_excerpt: str, source_word_count: int, instructions: str) -> str:
    return "\n".join([
        "You are extracting the SKELETON of a document before it is expanded section by section.",
        "The skeleton is injected into every later generation prompt to enforce consistency,",
        "so it must be precise rather than vague.",
        "",
        f"SOURCE TEXT ({source_word_count} words):",
        source_excerpt,
        "",
        "USER'S INSTRUCTIONS:",
        instructions or "scholarly expansion",
        "",
        banner("EXTRACT (as one JSON object)"),
        "- thesis: the central claim in 1-3 sentences. State WHAT is argued, not 'the author discusses'.",
        "- outline: 8-20 specific claims tracing the argument arc, in order.",
        "- keyTerms: list of {term, definition}; the definition is how THIS document uses the term.",
        "- commitmentLedger: {asserts, rejects, assumes}. Every claim made is an assertion,",
        "  every position argued against is a rejection, unargued background is an assumption.",
        "- entities: names, theories and technical concepts that must be phrased identically throughout.",
        "",
        JSON_ONLY_RULE,
    ])


def chunk_skeleton_prompt(chunk: str, index: int, total: int, instructions: str) -> str:
    chunk_words = len(chunk.split())
    return "\n".join([
        f"You are analyzing chunk {index + 1} of {total} from a large document "
        f"({chunk_words} words in this chunk).",
        "",
        "Write a detailed SKELETON for this chunk with a header for each part:",
        "1. MAIN THESIS/CLAIMS: the central arguments of this chunk",
        "2. KEY POINTS: numbered, 1-2 sentences each",
        "3. EVIDENCE SUMMARY: key evidence, examples or data",
        "4. LOGICAL FLOW: how the arguments connect",
        "5. NOTABLE QUOTES: 2-3 direct quotes worth preserving",
        "",
        f'User\'s goal: "{(instructions or "scholarly expansion")[:500]}"',
        "",
        "CHUNK TEXT:",
        chunk,
    ])


def meta_skeleton_prompt(
    chunk_skeletons: Sequence[str], instructions: str, total_words: int, strongest_points: int
) -> str:
    rendered = "\n\n".join(
        f"=== CHUNK {i + 1} SKELETON ===\n{skeleton}" for i, skeleton in enumerate(chunk_skeletons)
    )
    return "\n".join([
        f"You have {len(chunk_skeletons)} chunk skeletons from a {total_words:,} word document.",
        "",
        "Write one UNIFIED META-SKELETON that:",
        f"1. Selects the {strongest_points} STRONGEST arguments across all chunks",
        "2. Shows how these arguments connect in one coherent structure",
        "3. Resolves contradictions and redundancies between chunks",
        "4. Imposes a single order: introduction, development, conclusion",
        "",
        f'User\'s goal: "{(instructions or "scholarly expansion")[:1000]}"',
        "",
        "CHUNK SKELETONS:",
        "",
        rendered,
    ])
