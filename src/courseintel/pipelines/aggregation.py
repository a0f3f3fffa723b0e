"""
Aggregation of course reviews into course, professor and department statistics.

Runs once per store load: groups the reviews by course, professor and
department in a single pass and computes the derived fields for each group.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List

from ..models.schema import Course, Department, DifficultyDistribution, Professor, Review
from .extraction import extract_department, extract_teaching_characteristics

DEPARTMENT_NAMES = {
    "AHS": "Applied Health Sciences",
    "ANTH": "Anthropology",
    "CS": "Computer Science",
    "MATH": "Mathematics",
    "PHYS": "Physics",
    "CHEM": "Chemistry",
    "BIOL": "Biology",
    "ENGL": "English",
    "HIST": "History",
    "PSYC": "Psychology",
    "ECON": "Economics",
    "PHIL": "Philosophy",
    "POLS": "Political Science",
}


@dataclass
class AggregatedData:
    """Everything the store serves, built in one pass over the reviews"""

    reviews: List[Review] = field(default_factory=list)
    courses: List[Course] = field(default_factory=list)
    professors: List[Professor] = field(default_factory=list)
    departments: List[Department] = field(default_factory=list)


def get_department_name(code: str) -> str:
    return DEPARTMENT_NAMES.get(code, code)


def average_difficulty(values: List[float]) -> float:
    """Arithmetic mean rounded to 2 decimal places"""
    return round(sum(values) / len(values), 2)


def calculate_difficulty_distribution(difficulties: Iterable[int]) -> DifficultyDistribution:
    distribution = DifficultyDistribution()
    for d in difficulties:
        if d <= 2:
            distribution.very_easy += 1
        elif d <= 4:
            distribution.easy += 1
        elif d <= 6:
            distribution.moderate += 1
        elif d <= 8:
            distribution.hard += 1
        else:
            distribution.very_hard += 1
    return distribution


def latest_review_date(reviews: List[Review]) -> datetime:
    return max(review.review_date for review in reviews)


def build_course(course_code: str, reviews: List[Review], created_at: datetime) -> Course:
    difficulties = [r.difficulty for r in reviews]
    return Course(
        course_code=course_code,
        department=extract_department(course_code),
        average_difficulty=average_difficulty(difficulties),
        total_reviews=len(reviews),
        difficulty_distribution=calculate_difficulty_distribution(difficulties),
        latest_review_date=latest_review_date(reviews),
        created_at=created_at,
    )


def build_professor(name: str, reviews: List[Review]) -> Professor:
    # dict.fromkeys keeps first-seen order while deduplicating
    courses_taught = list(dict.fromkeys(r.course_code for r in reviews))
    return Professor(
        name=name,
        courses_taught=courses_taught,
        average_difficulty=average_difficulty([r.difficulty for r in reviews]),
        total_reviews=len(reviews),
        teaching_characteristics=extract_teaching_characteristics(r.comment for r in reviews),
        latest_review_date=latest_review_date(reviews),
    )


def build_department(code: str, courses: List[Course]) -> Department:
    """
    Department statistics from its member courses.

    easiest: first three by ascending average difficulty
    hardest: last three of that same ordering, hardest first
    most_reviewed: first five by descending review count
    """
    by_difficulty = sorted(courses, key=lambda c: c.average_difficulty)
    by_reviews = sorted(courses, key=lambda c: c.total_reviews, reverse=True)

    return Department(
        code=code,
        name=get_department_name(code),
        total_courses=len(courses),
        average_difficulty=average_difficulty([c.average_difficulty for c in courses]),
        easiest_courses=[c.course_code for c in by_difficulty[:3]],
        hardest_courses=[c.course_code for c in reversed(by_difficulty[-3:])],
        most_reviewed_courses=[c.course_code for c in by_reviews[:5]],
    )


def aggregate_reviews(reviews: List[Review]) -> AggregatedData:
    """Group reviews by course, professor and department and derive their statistics."""
    created_at = datetime.now(timezone.utc)

    course_map: Dict[str, List[Review]] = {}
    professor_map: Dict[str, List[Review]] = {}

    for review in reviews:
        course_map.setdefault(review.course_code, []).append(review)
        if review.professor_name:
            professor_map.setdefault(review.professor_name, []).append(review)

    courses = [
        build_course(code, course_reviews, created_at)
        for code, course_reviews in course_map.items()
    ]

    professors = [
        build_professor(name, professor_reviews)
        for name, professor_reviews in professor_map.items()
    ]

    department_map: Dict[str, List[Course]] = {}
    for course in courses:
        department_map.setdefault(course.department, []).append(course)

    departments = [
        build_department(code, dept_courses)
        for code, dept_courses in department_map.items()
    ]

    return AggregatedData(
        reviews=list(reviews),
        courses=courses,
        professors=professors,
        departments=departments,
    )
