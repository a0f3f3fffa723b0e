"""
FastAPI application for CourseIntel API
Serves UCR course difficulty statistics and professor insights built from student reviews
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..collectors.csv_review_collector import DataLoadError
from ..collectors.professor_api_client import ProfessorApiClient
from ..core.config import Settings, get_settings
from ..database.base import CourseStore
from ..services.professor_service import ProfessorService
from .responses import error_response
from .routers import courses, departments, professors

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

STATUS_ERRORS = {
    400: "Bad Request",
    404: "Not Found",
    405: "Method Not Allowed",
}


def _lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{settings.app_name} starting ({settings.environment})")
        if settings.preload_data:
            # Pre-load so the first request does not pay for parsing
            try:
                logger.info("Pre-loading course data...")
                await app.state.course_store.load()
                logger.info("Course data pre-loaded")
            except Exception as e:
                logger.error(f"Data pre-loading failed, will load on first request: {str(e)}")

        yield

        await app.state.professor_service.close()
        logger.info(f"{settings.app_name} stopped")

    return lifespan


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if isinstance(exc.detail, dict):
            error = exc.detail.get("error", STATUS_ERRORS.get(exc.status_code, "Error"))
            message = exc.detail.get("message", "")
        elif exc.status_code == 404:
            error = "Not Found"
            message = f"Route {request.url.path} not found"
        else:
            error = STATUS_ERRORS.get(exc.status_code, "Error")
            message = str(exc.detail)
        return error_response(exc.status_code, error, message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return error_response(400, "Invalid Request", problems)

    @app.exception_handler(DataLoadError)
    async def data_load_exception_handler(request: Request, exc: DataLoadError):
        logger.error(f"Course data unavailable: {str(exc)}")
        return error_response(
            503, "Data Unavailable", "Course data could not be loaded. Please try again."
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}: {str(exc)}")
        return error_response(500, "Server Error", "Something went wrong")


def create_app(
    settings: Optional[Settings] = None,
    course_store: Optional[CourseStore] = None,
    professor_service: Optional[ProfessorService] = None,
) -> FastAPI:
    """Build the application; the store and professor service can be injected for tests."""
    settings = settings or get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    app = FastAPI(
        title=settings.app_name,
        description=settings.description,
        version=settings.version,
        contact={
            "name": "CourseIntel Team",
            "email": "support@courseintel.api",
        },
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        docs_url=None,  # Disable default Swagger UI
        redoc_url="/redoc",  # Keep ReDoc available
        lifespan=_lifespan(settings),
    )

    app.state.settings = settings
    app.state.course_store = course_store or CourseStore(settings.csv_path)
    app.state.professor_service = professor_service or ProfessorService(
        ProfessorApiClient(settings.professor_api_url),
        enabled=settings.enable_enhanced_professors,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    @app.get("/", summary="/", tags=["General"])
    async def root():
        """Service index"""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "description": settings.description,
            "documentation": "/docs",
            "health": "/health",
            "api_base": API_PREFIX,
            "endpoints": {
                "courses": f"{API_PREFIX}/courses",
                "professors": f"{API_PREFIX}/professors",
                "departments": f"{API_PREFIX}/departments",
            },
        }

    @app.get("/health", summary="/health", tags=["General"])
    async def health_check():
        """
        Service health with the state of the course data

        Does not trigger a data load.
        """
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.version,
            "environment": settings.environment,
            "data": app.state.course_store.stats(),
        }

    @app.get(API_PREFIX, summary=API_PREFIX, tags=["General"])
    async def api_index():
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.version,
            "documentation": "/docs",
            "endpoints": {
                "courses": f"{API_PREFIX}/courses",
                "professors": f"{API_PREFIX}/professors",
                "departments": f"{API_PREFIX}/departments",
            },
        }

    @app.get("/docs", include_in_schema=False)
    async def scalar_html():
        """Interactive API documentation powered by Scalar"""
        html_content = f"""
        <!DOCTYPE html>
        <html>
        <head>
            <title>{settings.app_name} Documentation</title>
            <meta charset="utf-8" />
            <meta name="viewport" content="width=device-width, initial-scale=1" />
        </head>
        <body>
            <script id="api-reference" data-url="/openapi.json"></script>
            <script src="https://cdn.jsdelivr.net/npm/@scalar/api-reference@latest"></script>
        </body>
        </html>
        """
        return HTMLResponse(content=html_content)

    app.include_router(courses.router, prefix=API_PREFIX)
    app.include_router(professors.router, prefix=API_PREFIX)
    app.include_router(departments.router, prefix=API_PREFIX)

    return app


app = create_app()
