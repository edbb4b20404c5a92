"""Word counting and truncation helpers shared by every stage."""

from __future__ import annotations

import re

_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")


def count_words(text: str) -> int:
    """Whitespace-delimited token count."""
    return len(text.split())


def truncate_words(text: str, max_words: int) -> str:
    """Return the first *max_words* whitespace tokens of *text* joined by single spaces."""
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words])


def split_paragraphs(text: str) -> list[str]:
    return [p.strip() for p in _PARAGRAPH_SPLIT.split(text) if p.strip()]


def last_paragraphs(text: str, count: int) -> str:
    paragraphs = split_paragraphs(text)
    return "\n\n".join(paragraphs[-count:])


def chunk_words(text: str, chunk_size: int) -> list[str]:
    """Split *text* into consecutive chunks of *chunk_size* words (last may be shorter)."""
    words = text.split()
    return [" ".join(words[i : i + chunk_size]) for i in range(0, len(words), chunk_size)]


def round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)
