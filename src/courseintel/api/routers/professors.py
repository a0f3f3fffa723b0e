import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from ...collectors.csv_review_collector import DataLoadError
from ...database.base import CourseStore
from ...models.schema import ProfessorSearchResponse
from ...services.professor_service import ProfessorService
from ..dependencies import get_course_store, get_professor_service
from ..responses import api_error, parse_limit, success_response

logger = logging.getLogger(__name__)

router: APIRouter = APIRouter(prefix="/professors", tags=["Professors"])


@router.get(
    "/search",
    summary="/professors/search",
    description="Search professors through the Enhanced Professor API (RateMyProfessor + Reddit).",
)
async def search_professors(
    q: Optional[str] = Query(None, description="Professor name to search"),
    school: Optional[str] = Query(None, description="School name filter"),
    department: Optional[str] = Query(None, description="Department filter"),
    min_rating: Optional[float] = Query(None, description="Minimum RateMyProfessor rating"),
    limit: Optional[str] = Query(None, description="Results to return (default 10, max 50)"),
    professor_service: ProfessorService = Depends(get_professor_service),
):
    if not q:
        raise api_error(400, "Missing Query", 'Search query parameter "q" is required')

    try:
        limit_num = parse_limit(limit, default=10, maximum=50)
        search_results = await professor_service.search_professors(q, school, department, min_rating)

        filters_applied = {"query": q}
        if school:
            filters_applied["school"] = school
        if department:
            filters_applied["department"] = department
        if min_rating is not None:
            filters_applied["min_rating"] = min_rating

        data = ProfessorSearchResponse(
            professors=search_results["professors"][:limit_num],
            total_results=search_results["total_results"],
            filters_applied=filters_applied,
        )
        return success_response(data)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Professor search error: {str(e)}")
        raise api_error(500, "Search Failed", "Unable to search professors. Please try again.")


@router.get(
    "/health",
    summary="/professors/health",
    description="Health of the Enhanced Professor API with enrichment cache statistics.",
)
async def professor_service_health(
    professor_service: ProfessorService = Depends(get_professor_service),
):
    try:
        health = await professor_service.health_check()
        data = {
            **health.model_dump(),
            "cache_stats": professor_service.get_cache_stats().model_dump(),
        }
    except Exception as e:
        logger.error(f"Professor health check error: {str(e)}")
        raise api_error(500, "Health Check Failed", "Unable to check professor service health")

    status_code = 503 if health.status == "unavailable" else 200
    return JSONResponse(status_code=status_code, content=success_response(data))


@router.get(
    "/{name}",
    summary="/professors/{name}",
    description="Professor from the UCR reviews merged with external data, or the best external search match.",
)
async def get_professor_details(
    name: str,
    store: CourseStore = Depends(get_course_store),
    professor_service: ProfessorService = Depends(get_professor_service),
):
    if not name.strip():
        raise api_error(400, "Invalid Professor Name", "Professor name is required")

    try:
        basic = await store.get_professor(name)
        if basic is not None:
            enhanced = await professor_service.get_enhanced_professor(name, basic)
            return success_response(enhanced)

        # Not in the UCR reviews, try the external search directly
        search_results = await professor_service.search_professors(name)
        if not search_results["professors"]:
            raise api_error(
                404,
                "Professor Not Found",
                f'Professor "{name}" not found in our database',
            )
        return success_response(search_results["professors"][0])
    except (HTTPException, DataLoadError):
        raise
    except Exception as e:
        logger.error(f"Professor details error: {str(e)}")
        raise api_error(500, "Server Error", "Unable to fetch professor details")


@router.get(
    "/{name}/analytics",
    summary="/professors/{name}/analytics",
    description="Recommendation analytics from the Enhanced Professor API.",
)
async def get_professor_analytics(
    name: str,
    professor_service: ProfessorService = Depends(get_professor_service),
):
    if not name.strip():
        raise api_error(400, "Invalid Professor Name", "Professor name is required")

    try:
        analytics = await professor_service.get_professor_analytics(name)
    except Exception as e:
        logger.error(f"Professor analytics error: {str(e)}")
        raise api_error(500, "Analytics Service Error", "Unable to fetch professor analytics")

    if not analytics:
        raise api_error(
            404,
            "Analytics Not Available",
            f'Analytics for professor "{name}" are not available at this time',
        )
    return success_response(analytics)
