"""Section structure synthesis: turn parsed instructions and a target into allocations.

Every allocation produced here sums exactly to the returned target.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from expander.models import ExpansionConfig, ParsedInstructions, SectionSpec
from expander.utils.text import round_half_up

logger = logging.getLogger(__name__)

LARGE_BODY_SECTIONS: tuple[str, ...] = (
    "LITERATURE REVIEW PART 1: HISTORICAL CONTEXT",
    "LITERATURE REVIEW PART 2: CONTEMPORARY PERSPECTIVES",
    "LITERATURE REVIEW PART 3: CRITICAL ANALYSIS",
    "CHAPTER 1: FOUNDATIONAL CONCEPTS",
    "CHAPTER 2: THEORETICAL FRAMEWORK",
    "CHAPTER 3: CORE ARGUMENT DEVELOPMENT",
    "CHAPTER 4: EVIDENCE AND ANALYSIS",
    "CHAPTER 5: COUNTERARGUMENTS AND RESPONSES",
    "CHAPTER 6: CASE STUDIES",
    "CHAPTER 7: METHODOLOGICAL CONSIDERATIONS",
    "CHAPTER 8: BROADER IMPLICATIONS",
    "CHAPTER 9: FUTURE DIRECTIONS",
)

# (name, share of target). Shares sum to 1.0; the last body chapter absorbs rounding.
STANDARD_SECTIONS: tuple[tuple[str, float], ...] = (
    ("ABSTRACT", 0.015),
    ("INTRODUCTION", 0.10),
    ("LITERATURE REVIEW", 0.20),
    ("CHAPTER 1: CORE ARGUMENT", 0.175),
    ("CHAPTER 2: SUPPORTING ANALYSIS", 0.175),
    ("CHAPTER 3: CRITICAL EXAMINATION", 0.175),
    ("CHAPTER 4: IMPLICATIONS", 0.10),
    ("CONCLUSION", 0.06),
)
_STANDARD_ABSORBING_INDEX = 6


def resolve_target(
    parsed: ParsedInstructions,
    requested: Optional[int],
    input_word_count: int,
    config: ExpansionConfig,
) -> int:
    """Parsed target, else the request's target, else max(factor x input, minimum)."""
    if parsed.target_word_count:
        return parsed.target_word_count
    if requested:
        return requested
    target = max(input_word_count * config.default_expansion_factor, config.min_default_target)
    logger.info("No explicit target, defaulting to %d words", target)
    return target


def large_structure(target: int) -> List[SectionSpec]:
    abstract = round_half_up(target * 0.01)
    intro = round_half_up(target * 0.05)
    conclusion = round_half_up(target * 0.04)
    remaining = target - abstract - intro - conclusion
    body_count = len(LARGE_BODY_SECTIONS)
    per_section = round_half_up(remaining / body_count)
    last = remaining - per_section * (body_count - 1)
    body = [SectionSpec(name=name, word_count=per_section) for name in LARGE_BODY_SECTIONS[:-1]]
    body.append(SectionSpec(name=LARGE_BODY_SECTIONS[-1], word_count=max(0, last)))
    return [
        SectionSpec(name="ABSTRACT", word_count=abstract),
        SectionSpec(name="INTRODUCTION", word_count=intro),
        *body,
        SectionSpec(name="CONCLUSION", word_count=conclusion),
    ]


def _largest_remainder(target: int, shares: Sequence[float]) -> List[int]:
    raw = [target * share for share in shares]
    counts = [int(value) for value in raw]
    order = sorted(range(len(raw)), key=lambda i: raw[i] - counts[i], reverse=True)
    for i in order[: target - sum(counts)]:
        counts[i] += 1
    return counts


def standard_structure(target: int) -> List[SectionSpec]:
    shares = [share for _, share in STANDARD_SECTIONS]
    counts = [round_half_up(target * share) for share in shares]
    counts[_STANDARD_ABSORBING_INDEX] += target - sum(counts)
    if counts[_STANDARD_ABSORBING_INDEX] < 0:
        # Only reachable for tiny targets where half-up rounding overshoots.
        counts = _largest_remainder(target, shares)
    return [
        SectionSpec(name=name, word_count=max(0, count))
        for (name, _), count in zip(STANDARD_SECTIONS, counts)
    ]


def fill_partial_structure(
    sections: Sequence[SectionSpec], target: int
) -> Tuple[List[SectionSpec], int]:
    """Give unspecified (0) sections a share so the total equals the (possibly raised) target.

    Remaining budget is split evenly with the last unspecified section absorbing
    rounding. With no budget left, unspecified sections receive the mean explicit
    allocation and the target grows to the new total. With no unspecified
    sections the target becomes the explicit sum.
    """
    explicit_total = sum(s.word_count for s in sections)
    unspecified = [i for i, s in enumerate(sections) if s.word_count == 0]
    if not unspecified:
        return list(sections), explicit_total

    counts = [s.word_count for s in sections]
    remaining = target - explicit_total
    if remaining >= len(unspecified):
        per_section = remaining // len(unspecified)
        for i in unspecified:
            counts[i] = per_section
        counts[unspecified[-1]] += remaining - per_section * len(unspecified)
        new_target = target
    else:
        explicit = [s.word_count for s in sections if s.word_count > 0]
        mean = round_half_up(sum(explicit) / len(explicit)) if explicit else 1
        for i in unspecified:
            counts[i] = max(1, mean)
        new_target = sum(counts)
        logger.warning(
            "Explicit allocations (%d) leave no budget for %d unspecified sections; target raised %d -> %d",
            explicit_total,
            len(unspecified),
            target,
            new_target,
        )
    filled = [SectionSpec(name=s.name, word_count=c) for s, c in zip(sections, counts)]
    return filled, new_target


def build_structure(
    parsed: ParsedInstructions, target: int, config: ExpansionConfig
) -> Tuple[List[SectionSpec], int]:
    """Return (sections, effective_target). sum(word_count) == effective_target."""
    if parsed.has_structure:
        return fill_partial_structure(parsed.sections, target)
    if target <= 0:
        return [], 0
    if target >= config.large_structure_threshold:
        sections = large_structure(target)
    else:
        sections = standard_structure(target)
    logger.info("Generated structure with %d sections for %d word target", len(sections), target)
    return sections, target
