from fastapi import Request

from ..database.base import CourseStore
from ..services.professor_service import ProfessorService


def get_course_store(request: Request) -> CourseStore:
    """Dependency returning the store owned by the application"""
    return request.app.state.course_store


def get_professor_service(request: Request) -> ProfessorService:
    return request.app.state.professor_service
