import logging

from fastapi import APIRouter, Depends, HTTPException

from ...collectors.csv_review_collector import DataLoadError
from ...database.base import CourseStore
from ..dependencies import get_course_store
from ..responses import api_error, success_response

logger = logging.getLogger(__name__)

router: APIRouter = APIRouter(prefix="/departments", tags=["Departments"])


@router.get(
    "",
    summary="/departments",
    description="Every department with its easiest, hardest and most reviewed courses.",
)
async def get_departments(store: CourseStore = Depends(get_course_store)):
    try:
        departments = sorted(await store.get_all_departments(), key=lambda d: d.code)
        return success_response(departments)
    except (HTTPException, DataLoadError):
        raise
    except Exception as e:
        logger.error(f"Error in get_departments: {str(e)}")
        raise api_error(500, "Server Error", "Unable to fetch departments")


@router.get(
    "/{department_code}",
    summary="/departments/{department_code}",
    description="Statistics for a single department.",
)
async def get_department(department_code: str, store: CourseStore = Depends(get_course_store)):
    try:
        department = await store.get_department(department_code)
        if department is None:
            raise api_error(
                404,
                "Department Not Found",
                f"Department {department_code.upper()} not found in our database",
            )
        return success_response(department)
    except (HTTPException, DataLoadError):
        raise
    except Exception as e:
        logger.error(f"Error in get_department: {str(e)}")
        raise api_error(500, "Server Error", "Unable to fetch department")
