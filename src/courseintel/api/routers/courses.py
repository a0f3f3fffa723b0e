import logging
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query

from ...collectors.csv_review_collector import DataLoadError
from ...database.base import CourseStore
from ...models.schema import (
    Course,
    CourseDetail,
    EnhancedCourseDetail,
    Professor,
    Review,
    SearchResponse,
)
from ...services.professor_service import ProfessorService
from ..dependencies import get_course_store, get_professor_service
from ..responses import api_error, parse_limit, success_response

logger = logging.getLogger(__name__)

router: APIRouter = APIRouter(prefix="/courses", tags=["Courses"])

EASY_MAX_DIFFICULTY = 4.0
EASY_MIN_REVIEWS = 2
RECENT_REVIEWS = 5
MAX_COURSE_PROFESSORS = 3


def _by_review_count(courses: List[Course]) -> List[Course]:
    return sorted(courses, key=lambda c: c.total_reviews, reverse=True)


async def _course_with_reviews(
    store: CourseStore, course_code: str
) -> Tuple[Course, List[Review], List[Tuple[str, Professor]]]:
    """
    Course, its most recent reviews and the local professors mentioned in them,
    each paired with the name as it was written in the reviews.
    """
    course = await store.get_course(course_code)
    if course is None:
        raise api_error(
            404,
            "Course Not Found",
            f"Course {course_code.upper()} not found in our database",
        )

    reviews = sorted(
        await store.get_course_reviews(course_code),
        key=lambda r: r.review_date,
        reverse=True,
    )

    professor_names = list(dict.fromkeys(r.professor_name for r in reviews if r.professor_name))
    professors = []
    for name in professor_names[:MAX_COURSE_PROFESSORS]:
        professor = await store.get_professor(name)
        if professor is not None:
            professors.append((name, professor))

    return course, reviews[:RECENT_REVIEWS], professors


@router.get(
    "/search",
    summary="/courses/search",
    description="Search courses by code or department, optionally capped by average difficulty.",
)
async def search_courses(
    q: Optional[str] = Query(None, description="Substring of the course code or department"),
    department: Optional[str] = Query(None, description="Department code, e.g. 'CS'"),
    max_difficulty: Optional[float] = Query(None, description="Maximum average difficulty (1-10)"),
    limit: Optional[str] = Query(None, description="Results to return (default 20, max 100)"),
    store: CourseStore = Depends(get_course_store),
):
    try:
        limit_num = parse_limit(limit, default=20, maximum=100)
        courses = await store.search_courses(q, department, max_difficulty)

        filters_applied = {}
        if q:
            filters_applied["query"] = q
        if department:
            filters_applied["department"] = department
        if max_difficulty is not None:
            filters_applied["max_difficulty"] = max_difficulty

        data = SearchResponse(
            courses=_by_review_count(courses)[:limit_num],
            total_results=len(courses),
            filters_applied=filters_applied,
        )
        return success_response(data)
    except (HTTPException, DataLoadError):
        raise
    except Exception as e:
        logger.error(f"Search error: {str(e)}")
        raise api_error(500, "Search Failed", "Unable to search courses. Please try again.")


@router.get(
    "/easy",
    summary="/courses/easy",
    description="Courses with average difficulty at or below 4.0 and at least two reviews, easiest first.",
)
async def get_easy_courses(
    department: Optional[str] = Query(None, description="Department code, e.g. 'CS'"),
    limit: Optional[str] = Query(None, description="Results to return (default 10, max 50)"),
    store: CourseStore = Depends(get_course_store),
):
    try:
        limit_num = parse_limit(limit, default=10, maximum=50)
        courses = await store.search_courses(
            department=department, max_difficulty=EASY_MAX_DIFFICULTY
        )

        # Easiest first, then most reviewed
        easy_courses = sorted(
            (c for c in courses if c.total_reviews >= EASY_MIN_REVIEWS),
            key=lambda c: (c.average_difficulty, -c.total_reviews),
        )[:limit_num]

        filters_applied = {
            "max_difficulty": EASY_MAX_DIFFICULTY,
            "min_reviews": EASY_MIN_REVIEWS,
        }
        if department:
            filters_applied["department"] = department

        data = SearchResponse(
            courses=easy_courses,
            total_results=len(easy_courses),
            filters_applied=filters_applied,
        )
        return success_response(data, message="Easy courses with reliable difficulty ratings")
    except (HTTPException, DataLoadError):
        raise
    except Exception as e:
        logger.error(f"Easy courses error: {str(e)}")
        raise api_error(500, "Server Error", "Unable to fetch easy courses")


@router.get(
    "",
    summary="/courses",
    description="All courses, most reviewed first.",
)
async def get_all_courses(
    limit: Optional[str] = Query(None, description="Results to return (default 50, max 200)"),
    store: CourseStore = Depends(get_course_store),
):
    try:
        limit_num = parse_limit(limit, default=50, maximum=200)
        all_courses = await store.get_all_courses()

        data = SearchResponse(
            courses=_by_review_count(all_courses)[:limit_num],
            total_results=len(all_courses),
            filters_applied={},
        )
        return success_response(data)
    except (HTTPException, DataLoadError):
        raise
    except Exception as e:
        logger.error(f"Get all courses error: {str(e)}")
        raise api_error(500, "Server Error", "Unable to fetch courses")


@router.get(
    "/{course_code}",
    summary="/courses/{course_code}",
    description="Course statistics with the five most recent reviews and up to three professors.",
)
async def get_course_details(course_code: str, store: CourseStore = Depends(get_course_store)):
    try:
        course, recent_reviews, professors = await _course_with_reviews(store, course_code)
        data = CourseDetail(
            **course.model_dump(),
            recent_reviews=recent_reviews,
            professors=[professor for _, professor in professors],
        )
        return success_response(data)
    except (HTTPException, DataLoadError):
        raise
    except Exception as e:
        logger.error(f"Course details error: {str(e)}")
        raise api_error(500, "Server Error", "Unable to fetch course details")


@router.get(
    "/{course_code}/enhanced",
    summary="/courses/{course_code}/enhanced",
    description="Course details with professors enriched by RateMyProfessor and Reddit data.",
)
async def get_enhanced_course_details(
    course_code: str,
    store: CourseStore = Depends(get_course_store),
    professor_service: ProfessorService = Depends(get_professor_service),
):
    try:
        course, recent_reviews, professors = await _course_with_reviews(store, course_code)

        enhanced_professors = []
        for name, professor in professors:
            enhanced_professors.append(
                await professor_service.get_enhanced_professor(name, professor)
            )

        data = EnhancedCourseDetail(
            **course.model_dump(),
            recent_reviews=recent_reviews,
            professors=enhanced_professors,
        )
        return success_response(
            data, message="Enhanced course details with comprehensive professor data"
        )
    except (HTTPException, DataLoadError):
        raise
    except Exception as e:
        logger.error(f"Enhanced course details error: {str(e)}")
        raise api_error(500, "Server Error", "Unable to fetch enhanced course details")
