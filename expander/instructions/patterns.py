"""Compiled regular expressions and lookup tables for instruction parsing."""

from __future__ import annotations

import re

_I = re.IGNORECASE
_IM = re.IGNORECASE | re.MULTILINE

_NUM = r"([\d,]+(?:\.\d+)?)"
_DOC_NOUN = r"(?:THESIS|DISSERTATION|ESSAY|DOCUMENT|TREATISE|PAPER)"
_SEP = r"[:\-–—]"
_COUNT = r"([\d,.]+k?)"

# Ordered: the first pattern that matches decides the target.
WORD_COUNT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"EXPAND\s*(?:TO)?\s*{_NUM}\s*(?:K)?\s*WORDS?", _I),
    re.compile(rf"EXPAND\s+(?:[A-Za-z]+\s+){{1,4}}?TO\s*{_NUM}\s*(?:K)?\s*WORDS?", _I),
    re.compile(rf"{_NUM}\s*(?:K)?\s*WORDS?\s*(?:THESIS|DISSERTATION|ESSAY|DOCUMENT|LENGTH|TREATISE|PAPER|SCHOLARLY)", _I),
    re.compile(rf"{_DOC_NOUN}\s*(?:OF)?\s*{_NUM}\s*(?:K)?\s*WORDS?", _I),
    re.compile(rf"TARGET\s*(?:OF)?\s*{_NUM}\s*(?:K)?\s*WORDS?", _I),
    re.compile(rf"{_NUM}\s*(?:K)?\s*WORDS?\s*TOTAL", _I),
    re.compile(rf"TURN\s*(?:THIS\s*)?INTO\s*(?:A\s*)?{_NUM}\s*(?:K)?\s*WORD", _I),
    re.compile(rf"WRITE\s*(?:A\s*)?{_NUM}\s*(?:K)?\s*WORD", _I),
    re.compile(rf"GENERATE\s*(?:A\s*)?{_NUM}\s*(?:K)?\s*WORD", _I),
    re.compile(rf"PRODUCE\s*(?:A\s*)?{_NUM}\s*(?:K)?\s*WORD", _I),
    re.compile(rf"CREATE\s*(?:A\s*)?{_NUM}\s*(?:K)?\s*WORD", _I),
    re.compile(rf"\b(\d+(?:\.\d+)?)\s*K\s*(?:WORDS?\s*)?{_DOC_NOUN}", _I),
)
K_MULTIPLIER = re.compile(r"K\s*WORDS?", _I)
BARE_K_SHORTHAND = re.compile(r"\d\s*K\b", _I)
SHORTHAND_COUNT = re.compile(r"([\d.]+)\s*k", _I)

# Roman numerals are matched case-sensitively so ordinary lowercase words do not qualify.
ROMAN_CHAPTER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        rf"[-•*]?\s*\b(?:CHAPTER|SECTION)\s*((?-i:[IVXLCDM]+))\s*{_SEP}\s*([A-Za-z][^\n(]*?)\s*\(\s*{_COUNT}\s*words?\s*\)",
        _I,
    ),
    re.compile(
        rf"[-•*]?\s*\b(?:CHAPTER|SECTION)\s*((?-i:[IVXLCDM]+))\s*{_SEP}\s*([A-Za-z][A-Za-z \t]+?)\s*{_SEP}\s*{_COUNT}\s*words?",
        _I,
    ),
)

ARABIC_CHAPTER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        rf"[-•*]?\s*\b(?:CHAPTER|SECTION|Ch\.?|Sec\.?)\s*(\d+)\s*{_SEP}?\s*([A-Za-z][^\n(]*?)\s*\(\s*{_COUNT}\s*words?\s*\)",
        _I,
    ),
    re.compile(
        rf"\b(?:CHAPTER|SECTION)\s*(\d+)\s*{_SEP}\s*([^\n(]+?)\s*\(\s*{_COUNT}\s*words?\s*\)",
        _I,
    ),
    re.compile(
        rf"[-•*]?\s*\b(?:CHAPTER|SECTION|Ch\.?|Sec\.?)\s*(\d+)\s*{_SEP}\s*([A-Za-z][A-Za-z \t]+?)\s*{_SEP}\s*{_COUNT}\s*words?",
        _I,
    ),
    re.compile(
        rf"\b(?:CHAPTER|SECTION)\s*(\d+)\s*{_SEP}\s*([^\n]+?)\s*{_SEP}\s*{_COUNT}\s*words?",
        _I,
    ),
)

# Section names start at a line start or right after a list/clause delimiter.
_NAME_START = r"(?:^|(?<=[\n,;:•*\-–—.(]))[ \t]*"
NAMED_SECTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"{_NAME_START}([A-Za-z][A-Za-z \t]*?)[ \t]*\(\s*{_COUNT}\s*words?\s*\)", _IM),
    re.compile(rf"{_NAME_START}([A-Za-z][A-Za-z \t]*?)[ \t]*{_SEP}\s*{_COUNT}\s*words?", _IM),
)
MAX_SECTION_NAME_WORDS = 6
NON_SECTION_NAMES = frozenset(
    {"TARGET", "TOTAL", "LENGTH", "WORD COUNT", "TOTAL LENGTH", "EXPAND TO", "APPROXIMATELY", "ABOUT"}
)

ABBREVIATION_PATTERN = re.compile(
    rf"[-•*]?\s*\b(intro|lit\.?\s*review|literature\s*rev|concl|meth|discuss|results|abs(?:tract)?)\s*\(\s*{_COUNT}\s*words?\s*\)",
    _I,
)
ABBREVIATIONS: dict[str, str] = {
    "INTRO": "INTRODUCTION",
    "LIT REVIEW": "LITERATURE REVIEW",
    "LIT. REVIEW": "LITERATURE REVIEW",
    "LITERATURE REV": "LITERATURE REVIEW",
    "CONCL": "CONCLUSION",
    "METH": "METHODOLOGY",
    "DISCUSS": "DISCUSSION",
    "RESULTS": "RESULTS",
    "ABSTRACT": "ABSTRACT",
    "ABS": "ABSTRACT",
}

CHAPTER_WITHOUT_COUNT = re.compile(
    rf"[-•*]?\s*\b(?:CHAPTER|Ch\.?)\s*(\d+)\b\s*{_SEP}\s*([^\n(]+?)[ \t]*$",
    _IM,
)

CITATION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?:REFERENCE|CITE)\s*(?:THE\s*)?TOP\s*(\d+)\s*(?:JOURNAL\s*)?ARTICLES?", _I),
    re.compile(r"(\d+)\s*(?:JOURNAL\s*)?(?:ARTICLES?|SOURCES?|REFERENCES?|CITATIONS?)", _I),
    re.compile(r"TOP\s*(\d+)\s*(?:JOURNAL\s*)?ARTICLES?", _I),
)
CITATION_TIMEFRAME = re.compile(r"(?:FROM\s*)?(?:THE\s*)?(?:LAST|PAST)\s*(\d+)\s*YEARS?", _I)

AUTHORITY_LIST = re.compile(r"(?:CITE|REFERENCE)\s*(?:RELEVANT\s*)?PHILOSOPHERS?\s*\(([^)]+)\)", _I)
KNOWN_AUTHORITIES: tuple[str, ...] = (
    "Searle",
    "Chalmers",
    "Nagel",
    "Dennett",
    "Kim",
    "Block",
    "Fodor",
    "Putnam",
    "Jackson",
    "Levine",
)

ACADEMIC_REGISTER = re.compile(r"ACADEMIC\s*REGISTER", _I)
NO_BULLETS = re.compile(r"NO\s*BULLET\s*POINTS?|FULL\s*PROSE", _I)
INTERNAL_SUBSECTIONS = re.compile(
    r"INTERNAL\s*SUBSECTIONS?|EACH\s*CHAPTER\s*(?:MUST\s*)?HAVE\s*(?:INTERNAL\s*)?SUBSECTIONS?", _I
)
LITERATURE_REVIEW = re.compile(r"LITERATURE\s*REVIEW", _I)

DIALOGUE_KEYWORDS = re.compile(
    r"\bDIALOGUE\b|\bCONVERSATION\b|\bDISCUSSION\s+BETWEEN\b|\bDEBATE\s+BETWEEN\b", _I
)
DIALOGUE_PARTICIPANTS = re.compile(
    r"(?:DIALOGUE|CONVERSATION|DISCUSSION|DEBATE)\s+BETWEEN\s+(.+?)"
    r"(?=\s+(?:ON|ABOUT|REGARDING|CONCERNING)\b|[.\n]|$)",
    _I,
)
PARTICIPANT_SPLIT = re.compile(r"\s*,\s*(?:AND\s+)?|\s+AND\s+", _I)

CONSTRAINT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bMAINTAIN\s+[^.]+", _I),
    re.compile(r"\bMUST\s+[^.]+", _I),
    re.compile(r"\bIDENTIFY\s+[^.]+", _I),
    re.compile(r"\bSTATE\s+[^.]+", _I),
)

STRONGEST_POINTS = re.compile(r"(\d+)\s*(?:strongest|best|top|key)\s*(?:points?|arguments?)", _I)

EXPANSION_KEYWORDS: tuple[re.Pattern[str], ...] = (
    re.compile(r"EXPAND\s*TO", _I),
    re.compile(r"TURN\s*(?:THIS\s*)?INTO\s*(?:A\s*)?\d", _I),
    re.compile(r"\d+\s*WORD\s*(?:THESIS|DISSERTATION|ESSAY)", _I),
    re.compile(r"MASTER'?S?\s*THESIS", _I),
    re.compile(r"DOCTORAL\s*(?:THESIS|DISSERTATION)", _I),
    re.compile(r"PHD\s*(?:THESIS|DISSERTATION)", _I),
    re.compile(r"WRITE\s*(?:A\s*)?\d+\s*WORDS?", _I),
)
