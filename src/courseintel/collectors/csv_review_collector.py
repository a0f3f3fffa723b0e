#!/usr/bin/env python3
"""
CSV Review Collector - Reads the UCR course difficulty spreadsheet

This module:
1. Reads the exported CSV once, mapping columns by header name
2. Drops rows without a course code or with an invalid difficulty
3. Normalizes course codes and parses review dates
4. Extracts professor names and semesters from the review comments
"""

import csv
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from ..models.schema import RawCourseRow, Review
from ..pipelines.extraction import (
    extract_professor_name,
    extract_semester,
    normalize_course_code,
)

logger = logging.getLogger(__name__)

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 10

# Leading integer, the way spreadsheet exports usually write "7" or "7.0"
_LEADING_INT = re.compile(r"^[+-]?\d+")


class DataLoadError(Exception):
    """The review spreadsheet could not be read or parsed"""


@dataclass
class CollectionStats:
    """Statistics for a single collection pass"""

    total_rows: int = 0
    accepted_rows: int = 0
    skipped_rows: int = 0


def parse_difficulty(value: Optional[str]) -> Optional[int]:
    """Return the difficulty as an int in [1, 10], or None if the value is unusable."""
    if not value:
        return None
    match = _LEADING_INT.match(value.strip())
    if not match:
        return None
    difficulty = int(match.group(0))
    if difficulty < MIN_DIFFICULTY or difficulty > MAX_DIFFICULTY:
        return None
    return difficulty


def _named_cells(row: Dict) -> Dict[str, str]:
    # DictReader files overflow cells under a None key and pads short rows with None
    return {k: v for k, v in row.items() if isinstance(k, str) and isinstance(v, str)}


class CsvReviewCollector:
    """Collects course reviews from the UCR course difficulty CSV"""

    def __init__(self):
        self.stats = CollectionStats()

    def read_rows(self, csv_path: Union[str, Path]) -> List[Dict[str, str]]:
        path = Path(csv_path)
        try:
            with path.open("r", encoding="utf-8-sig", newline="") as handle:
                reader = csv.DictReader(handle)
                return list(reader)
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise DataLoadError(f"Failed to load course data from {path}: {e}") from e

    def row_to_review(self, row: RawCourseRow) -> Optional[Review]:
        """Convert one spreadsheet row into a Review, or None if the row is invalid."""
        course_code = normalize_course_code(row.course_class)
        if not course_code:
            return None

        difficulty = parse_difficulty(row.difficulty)
        if difficulty is None:
            return None

        comment = row.additional_comments or ""
        return Review(
            course_code=course_code,
            difficulty=difficulty,
            comment=comment,
            professor_name=extract_professor_name(comment),
            review_date=row.date,
            semester=extract_semester(comment),
        )

    def process_rows(self, rows: Iterable[Dict[str, str]]) -> List[Review]:
        self.stats = CollectionStats()
        reviews = []

        for raw in rows:
            self.stats.total_rows += 1
            try:
                review = self.row_to_review(RawCourseRow.model_validate(_named_cells(raw)))
            except ValidationError as e:
                logger.debug(f"Skipping malformed row {raw}: {e}")
                review = None

            if review is None:
                self.stats.skipped_rows += 1
                continue

            reviews.append(review)
            self.stats.accepted_rows += 1

        return reviews

    def collect(self, csv_path: Union[str, Path]) -> List[Review]:
        """Read and validate every review in the spreadsheet."""
        logger.info(f"Loading UCR course data from: {csv_path}")
        rows = self.read_rows(csv_path)
        logger.info(f"Found {len(rows)} raw course records")

        reviews = self.process_rows(rows)
        if self.stats.skipped_rows:
            logger.info(f"Skipped {self.stats.skipped_rows} invalid rows")
        return reviews
