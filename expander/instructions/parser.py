"""Deterministic parser turning free-form instructions into ParsedInstructions.

Every matcher is independent: a signal that is absent leaves its default.
Parsing never fails.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

from expander.instructions import patterns as p
from expander.models import CitationRequest, ParsedInstructions, SectionSpec
from expander.utils.text import round_half_up

logger = logging.getLogger(__name__)

_ROMAN_VALUES = {"I": 1, "V": 5, "X": 10, "L": 50, "C": 100, "D": 500, "M": 1000}


def roman_to_int(roman: str) -> int:
    """Subtractive Roman numeral conversion ("IV" -> 4, "XIV" -> 14)."""
    total = 0
    upper = roman.upper()
    for i, ch in enumerate(upper):
        current = _ROMAN_VALUES.get(ch, 0)
        following = _ROMAN_VALUES.get(upper[i + 1], 0) if i + 1 < len(upper) else 0
        total += -current if current < following else current
    return total


def parse_count(raw: str) -> int:
    """Parse "3,500", "5k" or "1.5k" into a word count; 0 when unparseable."""
    shorthand = p.SHORTHAND_COUNT.search(raw)
    if shorthand:
        try:
            return round_half_up(float(shorthand.group(1)) * 1000)
        except ValueError:
            return 0
    cleaned = raw.replace(",", "").strip().rstrip(".")
    try:
        return int(cleaned)
    except ValueError:
        try:
            return round_half_up(float(cleaned))
        except ValueError:
            return 0


class _SectionCollector:
    """Ordered section list with prefix-based de-duplication."""

    def __init__(self) -> None:
        self.sections: List[SectionSpec] = []

    def add(self, name: str, word_count: int) -> None:
        name = " ".join(name.split())
        if not name:
            return
        canonical = p.ABBREVIATIONS.get(name.upper())
        if canonical:
            name = canonical
        probe = name.upper()[:15]
        if any(probe in existing.name.upper() for existing in self.sections):
            return
        self.sections.append(SectionSpec(name=name, word_count=max(0, word_count)))

    def has_chapter(self, number: str) -> bool:
        exact = f"CHAPTER {number}"
        return any(
            s.name.upper() == exact or s.name.upper().startswith(exact + ":")
            for s in self.sections
        )


def _chapter_name(number: int | str, title: str) -> str:
    title = title.strip()
    return f"CHAPTER {number}: {title}" if title else f"CHAPTER {number}"


class InstructionParser:
    """Parses instruction strings, memoizing results by exact input.

    The cache is unbounded and append-only: parsing the same string twice
    returns the identical ParsedInstructions object.
    """

    def __init__(self) -> None:
        self._cache: Dict[str, ParsedInstructions] = {}

    def __len__(self) -> int:
        return len(self._cache)

    def parse(self, instructions: str) -> ParsedInstructions:
        key = instructions or ""
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        parsed = self._parse(key) if key.strip() else ParsedInstructions()
        self._cache[key] = parsed
        if parsed.target_word_count or parsed.sections:
            logger.debug(
                "Parsed instructions: target=%s, sections=%s",
                parsed.target_word_count,
                ", ".join(f"{s.name} ({s.word_count}w)" for s in parsed.sections) or "none",
            )
        return parsed

    def has_expansion_request(self, instructions: str | None) -> bool:
        """True when instructions ask for expansion (explicit target, structure or keywords)."""
        if not instructions:
            return False
        parsed = self.parse(instructions)
        if parsed.target_word_count or parsed.sections:
            return True
        return any(pattern.search(instructions) for pattern in p.EXPANSION_KEYWORDS)

    def _parse(self, text: str) -> ParsedInstructions:
        participants = _dialogue_participants(text)
        return ParsedInstructions(
            target_word_count=_target_word_count(text),
            sections=tuple(_sections(text)),
            constraints=tuple(_constraints(text)),
            citations=_citations(text),
            academic_register=bool(p.ACADEMIC_REGISTER.search(text)),
            no_bullet_points=bool(p.NO_BULLETS.search(text)),
            internal_subsections=bool(p.INTERNAL_SUBSECTIONS.search(text)),
            literature_review=bool(p.LITERATURE_REVIEW.search(text)),
            authorities=tuple(_authorities(text)),
            dialogue_mode=bool(participants) or bool(p.DIALOGUE_KEYWORDS.search(text)),
            dialogue_participants=tuple(participants),
            strongest_points=_strongest_points(text),
        )


def _target_word_count(text: str) -> Optional[int]:
    for pattern in p.WORD_COUNT_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        try:
            count = float(match.group(1).replace(",", ""))
        except ValueError:
            continue
        phrase = match.group(0)
        if p.K_MULTIPLIER.search(phrase) or p.BARE_K_SHORTHAND.search(phrase):
            count *= 1000
        if count < 500 and "THESIS" in text.upper():
            count *= 1000
        return round_half_up(count)
    return None


def _sections(text: str) -> List[SectionSpec]:
    collector = _SectionCollector()

    for pattern in p.ROMAN_CHAPTER_PATTERNS:
        for match in pattern.finditer(text):
            number = roman_to_int(match.group(1))
            collector.add(_chapter_name(number, match.group(2)), parse_count(match.group(3)))

    for pattern in p.ARABIC_CHAPTER_PATTERNS:
        for match in pattern.finditer(text):
            collector.add(_chapter_name(match.group(1), match.group(2)), parse_count(match.group(3)))

    for pattern in p.NAMED_SECTION_PATTERNS:
        for match in pattern.finditer(text):
            name = " ".join(match.group(1).split()).upper()
            if not name or "CHAPTER" in name or name in p.NON_SECTION_NAMES:
                continue
            if len(name.split()) > p.MAX_SECTION_NAME_WORDS:
                continue
            collector.add(name, parse_count(match.group(2)))

    for match in p.ABBREVIATION_PATTERN.finditer(text):
        abbreviation = re.sub(r"\s+", " ", match.group(1).upper()).strip()
        collector.add(p.ABBREVIATIONS.get(abbreviation, abbreviation), parse_count(match.group(2)))

    for match in p.CHAPTER_WITHOUT_COUNT.finditer(text):
        number = match.group(1)
        if collector.has_chapter(number):
            continue
        collector.add(_chapter_name(number, match.group(2)), 0)

    return collector.sections


def _citations(text: str) -> Optional[CitationRequest]:
    for pattern in p.CITATION_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        timeframe_match = p.CITATION_TIMEFRAME.search(text)
        timeframe = f"last {timeframe_match.group(1)} years" if timeframe_match else None
        return CitationRequest(kind="journal_articles", count=int(match.group(1)), timeframe=timeframe)
    return None


def _authorities(text: str) -> List[str]:
    explicit = p.AUTHORITY_LIST.search(text)
    if explicit:
        return [name.strip() for name in re.split(r",\s*", explicit.group(1)) if name.strip()]
    return [name for name in p.KNOWN_AUTHORITIES if re.search(rf"\b{name}\b", text)]


def _dialogue_participants(text: str) -> List[str]:
    match = p.DIALOGUE_PARTICIPANTS.search(text)
    if not match:
        return []
    return [name.strip() for name in p.PARTICIPANT_SPLIT.split(match.group(1)) if name.strip()]


def _constraints(text: str) -> List[str]:
    found: List[str] = []
    for pattern in p.CONSTRAINT_PATTERNS:
        for match in pattern.finditer(text):
            constraint = match.group(0).strip()
            if constraint and constraint not in found:
                found.append(constraint)
    return found


def _strongest_points(text: str) -> Optional[int]:
    match = p.STRONGEST_POINTS.search(text)
    return int(match.group(1)) if match else None
