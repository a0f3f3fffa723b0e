import sys
from pathlib import Path
from typing import Any, Dict, Generator, Optional

import pytest
from fastapi.testclient import TestClient

# Ensure src is in python path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from courseintel.api.main import create_app  # noqa: E402
from courseintel.collectors.professor_api_client import ProfessorApiError  # noqa: E402
from courseintel.core.config import Settings  # noqa: E402
from courseintel.database.base import CourseStore  # noqa: E402
from courseintel.services.professor_service import ProfessorService  # noqa: E402

# Twelve valid reviews over six courses, plus four rows the collector must drop
SAMPLE_CSV = """Class,Average Difficulty,Additional Comments,Difficulty,Date
AHS007,2,"Easy class, Professor Smith gives extra credit",2,01/10/2024
AHS007,2,Super simple,2,02/10/2024
AHS008,3,One review only,3,03/01/2024
AHS010,5,"Hard exams with Dr. Jones",5,03/05/2024
AHS010,5,Okay,5,03/06/2024
CS010A,5,"Prof Smith was engaging",4,09/15/2023
CS010A,5,Weekly quizzes,6,10/15/2023
CS010A,5,"Challenging labs, Fall 2023",5,11/15/2023
CS141,8,Very hard,9,03/15/2024
CS141,8,"Dr. Patel exams are difficult",7,03/20/2024
MATH009A,3,Easy,3,01/01/2024
MATH009A,3,Simple,4,01/02/2024
BAD001,0,zero difficulty,0,01/01/2024
BAD001,11,too high,11,01/01/2024
BAD001,x,not a number,abc,01/01/2024
,5,missing code,5,01/01/2024
"""

RMP_PAYLOAD = {
    "rating": 4.0,
    "difficulty": 3.0,
    "num_ratings": 25,
    "would_take_again": 0.9,
    "tags": ["Amazing lectures", "Clear grading criteria", "Tough grader", "Gives good feedback"],
    "professor_id": 12345,
    "school_id": "1076",
    "reddit_sentiment": {
        "score": 0.2,
        "confidence": 0.8,
        "mention_count": 6,
        "positive_mentions": 4,
        "negative_mentions": 1,
        "recent_mentions": [
            {"text": "Smith is great", "subreddit": "ucr", "score": 12, "date": "2024-03-01"}
        ],
    },
}

SEARCH_PAYLOAD = {
    "professors": [
        {"name": "Alex Rivera", "rating": 4.5},
        {"name": "Alex Chen", "rating": 3.9},
        {"name": "Alexandra Wu", "rating": 4.1},
    ],
    "total_results": 3,
}

ANALYTICS_PAYLOAD = {
    "recommendation_score": 82,
    "teaching_style_summary": "Clear, organized lectures",
    "pros": ["Clear lectures"],
    "cons": ["Strict deadlines"],
    "data_quality": "high",
}


class StubProfessorApi:
    """In-memory stand-in for the Enhanced Professor API transport"""

    def __init__(
        self,
        professor: Optional[Dict[str, Any]] = None,
        search: Optional[Dict[str, Any]] = None,
        analytics: Optional[Dict[str, Any]] = None,
        healthy: bool = True,
        fail: bool = False,
    ):
        self.professor = professor
        self.search = search
        self.analytics = analytics
        self.healthy = healthy
        self.fail = fail
        self.calls: Dict[str, int] = {"professor": 0, "search": 0, "analytics": 0, "ping": 0}
        self.search_params = []
        self.professor_names = []
        self.closed = False

    def _check(self, payload):
        if self.fail:
            raise ProfessorApiError("Request timed out")
        if payload is None:
            raise ProfessorApiError("Enhanced Professor API returned 404", status=404)
        return payload

    async def fetch_professor(self, name: str) -> Dict[str, Any]:
        self.calls["professor"] += 1
        self.professor_names.append(name)
        return self._check(self.professor)

    async def search_professors(self, params: Dict[str, str]) -> Dict[str, Any]:
        self.calls["search"] += 1
        self.search_params.append(params)
        return self._check(self.search)

    async def fetch_analytics(self, name: str) -> Dict[str, Any]:
        self.calls["analytics"] += 1
        return self._check(self.analytics)

    async def ping(self) -> bool:
        self.calls["ping"] += 1
        if self.fail:
            raise ProfessorApiError("Health check failed")
        return self.healthy

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(scope="module")
def reviews_csv(tmp_path_factory) -> Path:
    path = tmp_path_factory.mktemp("data") / "ucr-courses.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path


@pytest.fixture
def stub_api() -> StubProfessorApi:
    return StubProfessorApi(professor=RMP_PAYLOAD, search=SEARCH_PAYLOAD, analytics=ANALYTICS_PAYLOAD)


@pytest.fixture
def app_factory(reviews_csv):
    """Build an application around an injected store and professor transport."""

    def _create(stub: Optional[StubProfessorApi] = None, enabled: bool = True, csv_path=None):
        settings = Settings(preload_data=False, enable_enhanced_professors=enabled)
        store = CourseStore(csv_path or reviews_csv)
        service = ProfessorService(stub or StubProfessorApi(), enabled=enabled)
        return create_app(settings, course_store=store, professor_service=service)

    return _create


@pytest.fixture
def client(app_factory, stub_api) -> Generator[TestClient, None, None]:
    with TestClient(app_factory(stub_api)) as c:
        yield c
