"""Ordered subject-cell matchers for the course-code conventions seen on timetables."""

import re
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class SubjectMatch:
    """Structured result of a subject matcher."""
    code: str
    instructor: Optional[str] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class SubjectPattern:
    """A named matcher; returns a SubjectMatch or None."""
    name: str
    regex: re.Pattern
    build: Callable[[re.Match], SubjectMatch]

    def match(self, text: str) -> Optional[SubjectMatch]:
        found = self.regex.fullmatch(text.strip())
        if not found:
            return None
        return self.build(found)


_ROOM = r"\d+[A-Z]?[-\w]*(?:\([A-Z0-9]+\))?"

# 7A12:CS:TDPIT4:172(C8) -> batch:code:instructor:room
GRID_CODE = SubjectPattern(
    name="grid_code",
    regex=re.compile(r"\d+[A-Z]?\d*:([A-Z]+):([A-Z0-9]+):(" + _ROOM + r")", re.IGNORECASE),
    build=lambda m: SubjectMatch(m.group(1).upper(), m.group(2).upper(), m.group(3).upper()),
)

# 7A12-1:STQA(ASD):203-A -> batch-split:code(instructor):room
BATCH_SPLIT = SubjectPattern(
    name="batch_split",
    regex=re.compile(
        r"\d+[A-Z]?\d*-\d+:([A-Z]+)(?:\(([A-Z]+)\))?:(" + _ROOM + r")", re.IGNORECASE
    ),
    build=lambda m: SubjectMatch(
        m.group(1).upper(), m.group(2).upper() if m.group(2) else None, m.group(3).upper()
    ),
)

# BITP 1113, BITM1123 (DR ZAHRIAH) -> catalog code, optional instructor
CATALOG_CODE = SubjectPattern(
    name="catalog_code",
    regex=re.compile(r"([A-Z]{2,5}\s?\d{3,4}[A-Z]?)(?:\s*\(([^()]+)\))?", re.IGNORECASE),
    build=lambda m: SubjectMatch(
        m.group(1).upper(), m.group(2).strip() if m.group(2) else None
    ),
)

# STQA(ASD) 203-A, INS(MAI) 172(C8), BDA -> abbreviation, optional instructor and room
# Upper case only: prose words on a grid line are not course codes
ABBREVIATION = SubjectPattern(
    name="abbreviation",
    regex=re.compile(
        r"([A-Z]{2,6})\s*(?:\(([A-Z]+)\))?(?:[\s:]+(" + _ROOM + r"))?"
    ),
    build=lambda m: SubjectMatch(m.group(1), m.group(2), m.group(3)),
)

# Tried in priority order, most specific first
SUBJECT_PATTERNS = [GRID_CODE, BATCH_SPLIT, CATALOG_CODE, ABBREVIATION]


def match_subject(text: Optional[str]) -> tuple[Optional[str], Optional[SubjectMatch]]:
    """
    Run the subject matchers in priority order.

    Args:
        text: Subject cell text such as "STQA(ASD)" or "7A12:CS:TDPIT4:172(C8)".

    Returns:
        (pattern name, match) for the first matcher that accepts the text,
        or (None, None) when no matcher does.
    """
    if not text or not text.strip():
        return None, None
    for pattern in SUBJECT_PATTERNS:
        result = pattern.match(text)
        if result is not None:
            return pattern.name, result
    return None, None


# Known expansions of course abbreviations
COURSE_NAMES = {
    "STQA": "Software Testing and Quality Assurance",
    "BDA": "Big Data Analytics",
    "CPS": "Cyber Physical Systems",
    "INS": "Information and Network Security",
    "CS": "Cyber Security",
}


def course_name_for(code: str) -> str:
    """Full course name for a code, or the code itself."""
    return COURSE_NAMES.get(code.upper(), code)
