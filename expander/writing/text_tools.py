"""Post-processing and context helpers for generated sections."""

from __future__ import annotations

import re
from typing import List

from expander.utils.text import count_words

_METADATA_LINES = [
    re.compile(r"^\*{0,2}UNIQUE CONCEPTUAL CONTRIBUTION\*{0,2}\s*:", re.IGNORECASE),
    re.compile(r"^\*{0,2}PREREQUISITE DEPENDENCY\*{0,2}\s*:", re.IGNORECASE),
    re.compile(r"^\*{0,2}WHAT THE READER KNOWS\b", re.IGNORECASE),
    re.compile(r"^\*{0,2}SECTION SUMMARY\*{0,2}\s*:", re.IGNORECASE),
    re.compile(r"^\*{0,2}CONCEPTUAL CONTRIBUTION\*{0,2}\s*:", re.IGNORECASE),
    re.compile(r"^\*{0,2}KEY POINTS\*{0,2}\s*:", re.IGNORECASE),
    re.compile(r"^[=═]{2,}\s*DOCUMENT SKELETON\b.*$", re.IGNORECASE),
    re.compile(r"^[=═]{2,}\s*GENERATING SECTIONS\s*[=═]{2,}$", re.IGNORECASE),
]
_HEADING_WORD_COUNT = re.compile(r"^(#+\s+.+?)\s*\(\s*[\d,]+\s*words?\s*\)", re.IGNORECASE)
_EXCESS_NEWLINES = re.compile(r"\n{3,}")

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_CLAIM_SENTENCE = re.compile(
    r"\b(argues?|claims?|contends?|demonstrates?|shows?|reveals?|suggests?|establishes?|proves?"
    r"|maintains?|asserts?|proposes?|concludes?|central|key|crucial|fundamental|essential|primary"
    r"|core|introduces?|defines?|distinguishes?|therefore|consequently|necessitates?)\b",
    re.IGNORECASE,
)
_CLAIM_PARAGRAPH = re.compile(
    r"\b(introduces?|defines?|argues?|establishes?|distinguishes?|therefore|thus|this means"
    r"|the key|crucial|demonstrates?)\b",
    re.IGNORECASE,
)
_SUMMARY_SPLIT = re.compile(r"\n\n+")
_NON_LETTERS = re.compile(r"[^a-z\s]")

MIN_SENTENCE_CHARS = 30
DEDUP_PREFIX_CHARS = 60
MAX_POINT_CHARS = 200
MIN_SUMMARY_PARAGRAPH_CHARS = 50
SUMMARY_PARAGRAPH_WORDS = 100

EXCERPT_STOPWORDS = frozenset(
    {"chapter", "section", "words", "word", "write", "with", "this", "that", "from", "about", "into"}
)


def strip_metadata(text: str) -> str:
    """Remove planning markers and word-count annotations that leaked into prose."""
    clean: List[str] = []
    skip_next_blank = False
    for line in text.split("\n"):
        trimmed = line.strip()
        if any(p.search(trimmed) for p in _METADATA_LINES):
            skip_next_blank = True
            continue
        if skip_next_blank and not trimmed:
            skip_next_blank = False
            continue
        skip_next_blank = False
        if trimmed == "---":
            continue
        heading = _HEADING_WORD_COUNT.match(trimmed)
        if heading:
            clean.append(heading.group(1).strip())
            continue
        clean.append(line)
    return _EXCESS_NEWLINES.sub("\n\n", "\n".join(clean)).strip()


def extract_key_points(content: str, section_name: str, limit: int = 8) -> List[str]:
    """Claim-like sentences, prefixed with the section name; first sentences as fallback."""
    sentences = [s for s in _SENTENCE_SPLIT.split(content) if len(s.strip()) > MIN_SENTENCE_CHARS]
    points: List[str] = []
    seen = set()
    for sentence in sentences:
        key = " ".join(sentence.lower().split())[:DEDUP_PREFIX_CHARS]
        if key in seen or not _CLAIM_SENTENCE.search(sentence):
            continue
        seen.add(key)
        points.append(f"[{section_name}] {sentence.strip()[:MAX_POINT_CHARS]}")
        if len(points) >= limit:
            break
    if not points:
        points = [f"[{section_name}] {s.strip()[:MAX_POINT_CHARS]}" for s in sentences[:3]]
    return points


def _cap_words(paragraph: str, limit: int) -> str:
    words = paragraph.split()
    if len(words) > limit:
        return " ".join(words[:limit]) + "..."
    return paragraph


def summarize_section(content: str, max_words: int = 400) -> str:
    """Condense a section to its opening, up to two claim paragraphs and its close."""
    if count_words(content) <= max_words:
        return content
    paragraphs = [p for p in _SUMMARY_SPLIT.split(content) if len(p.strip()) > MIN_SUMMARY_PARAGRAPH_CHARS]
    if not paragraphs:
        return _cap_words(content, max_words)
    claims = [p for p in paragraphs[1:-1] if _CLAIM_PARAGRAPH.search(p)][:2]
    picked = [paragraphs[0], *claims]
    if len(paragraphs) > 1:
        picked.append(paragraphs[-1])
    return "\n\n".join(_cap_words(p, SUMMARY_PARAGRAPH_WORDS) for p in picked)


def relevant_source_excerpt(source: str, section_name: str, outline: str, max_words: int = 3000) -> str:
    """Paragraphs of *source* that best match the section's keywords, in source order."""
    if count_words(source) <= max_words:
        return source
    keywords = {
        w
        for w in _NON_LETTERS.sub("", f"{section_name} {outline}".lower()).split()
        if len(w) > 3 and w not in EXCERPT_STOPWORDS
    }
    paragraphs = _SUMMARY_SPLIT.split(source)
    scored = []
    for idx, para in enumerate(paragraphs):
        lower = para.lower()
        score = sum(lower.count(kw) * 2 for kw in keywords) + 1.0 / (idx + 1)
        scored.append((score, idx, para))
    scored.sort(key=lambda item: item[0], reverse=True)

    selected = []
    total = 0
    for _score, idx, para in scored:
        words = count_words(para)
        if total + words > max_words:
            break
        selected.append((idx, para))
        total += words
    selected.sort()
    excerpt = "\n\n".join(para for _idx, para in selected)
    return excerpt or source[: max_words * 6]
