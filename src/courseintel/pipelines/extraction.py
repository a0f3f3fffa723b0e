"""
Text heuristics applied to review rows and comments.

This module contains functions to:
1. Normalize course codes and derive department codes
2. Pull a professor name out of free-text comments
3. Pull a "<Season> <year>" semester out of comments
4. Tag a group of comments with teaching characteristics
"""

import re
from typing import Iterable, List, Optional

UNKNOWN_DEPARTMENT = "UNKNOWN"
MAX_CHARACTERISTICS = 5

# A capitalized word followed by more capitalized words, e.g. "Jane Doe"
_NAME = r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)"

# Tried in order; the first pattern that matches anywhere in the comment wins
PROFESSOR_PATTERNS = [
    re.compile(r"(?i:Prof\.?\s+|Professor\s+|Dr\.?\s+)" + _NAME),
    re.compile(r"(?i:with)\s+" + _NAME),
    re.compile(r"([A-Z][a-z]+)\s+(?i:is|was)"),
]

SEMESTER_PATTERN = re.compile(r"(Fall|Spring|Summer|Winter)\s+(\d{4})", re.IGNORECASE)

# Order matters: labels are reported in this order, not by frequency
CHARACTERISTIC_RULES = [
    (re.compile(r"easy|simple|straightforward"), "Easy grading"),
    (re.compile(r"hard|difficult|challenging"), "Challenging"),
    (re.compile(r"attendance|present|show up"), "Attendance required"),
    (re.compile(r"online|recorded|async"), "Online/recorded lectures"),
    (re.compile(r"quiz|test|exam"), "Regular assessments"),
    (re.compile(r"essay|paper|writing"), "Writing assignments"),
    (re.compile(r"extra credit"), "Extra credit offered"),
    (re.compile(r"engaging|interesting|fun"), "Engaging teaching style"),
]

_DEPARTMENT_PREFIX = re.compile(r"^([A-Z]+)")


def normalize_course_code(code: Optional[str]) -> str:
    """Trim, upper-case and drop all whitespace: ' ahs 007 ' -> 'AHS007'"""
    if not code:
        return ""
    return re.sub(r"\s+", "", code.strip().upper())


def extract_department(course_code: str, default: str = UNKNOWN_DEPARTMENT) -> str:
    """Leading run of letters of a normalized course code"""
    match = _DEPARTMENT_PREFIX.match(course_code or "")
    return match.group(1) if match else default


def extract_professor_name(comment: Optional[str]) -> Optional[str]:
    if not comment:
        return None

    for pattern in PROFESSOR_PATTERNS:
        match = pattern.search(comment)
        if match:
            return match.group(1).strip()

    return None


def extract_semester(comment: Optional[str]) -> Optional[str]:
    if not comment:
        return None

    match = SEMESTER_PATTERN.search(comment)
    if match:
        return f"{match.group(1)} {match.group(2)}"
    return None


def extract_teaching_characteristics(comments: Iterable[str]) -> List[str]:
    """
    Tag a group of comments with up to five teaching characteristics.
    All comments are lower-cased and joined, then every rule is tested in order.
    """
    text = " ".join(comment.lower() for comment in comments)

    characteristics = []
    for pattern, label in CHARACTERISTIC_RULES:
        if pattern.search(text) and label not in characteristics:
            characteristics.append(label)

    return characteristics[:MAX_CHARACTERISTICS]
