import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..collectors.csv_review_collector import CsvReviewCollector
from ..models.schema import Course, Department, Professor, Review
from ..pipelines.aggregation import AggregatedData, aggregate_reviews

logger = logging.getLogger(__name__)


class CourseStore:
    """
    In-memory store of the aggregated course review data.

    The CSV is parsed and aggregated at most once per store: the first caller
    of load() does the work while concurrent callers wait on the same lock and
    reuse the result. A failed load leaves the store empty so the next request
    retries. After loading, the collections are never modified.
    """

    def __init__(self, csv_path: Union[str, Path], collector: Optional[CsvReviewCollector] = None):
        self.csv_path = Path(csv_path)
        self.collector = collector or CsvReviewCollector()
        self._data: Optional[AggregatedData] = None
        self._lock = asyncio.Lock()
        self.load_count = 0
        self.load_time_ms: Optional[int] = None

    @property
    def is_loaded(self) -> bool:
        return self._data is not None

    def _build(self) -> AggregatedData:
        reviews = self.collector.collect(self.csv_path)
        return aggregate_reviews(reviews)

    async def load(self) -> None:
        """Parse and aggregate the CSV unless that already happened."""
        if self._data is not None:
            return

        async with self._lock:
            if self._data is not None:
                # Another request finished the load while we waited
                return

            start_time = time.time()
            logger.info("Starting course data load...")
            self.load_count += 1
            loop = asyncio.get_running_loop()
            try:
                data = await loop.run_in_executor(None, self._build)
            except Exception as e:
                logger.error(f"Error loading course data: {e}")
                raise

            self._data = data
            self.load_time_ms = int((time.time() - start_time) * 1000)
            logger.info(f"Data processing complete in {self.load_time_ms}ms")
            logger.info(
                f"Processed: {len(data.courses)} courses, {len(data.reviews)} reviews, "
                f"{len(data.professors)} professors"
            )

    async def _loaded(self) -> AggregatedData:
        await self.load()
        return self._data

    async def get_all_courses(self) -> List[Course]:
        data = await self._loaded()
        return list(data.courses)

    async def get_course(self, course_code: str) -> Optional[Course]:
        data = await self._loaded()
        code = course_code.upper()
        return next((c for c in data.courses if c.course_code == code), None)

    async def search_courses(
        self,
        query: Optional[str] = None,
        department: Optional[str] = None,
        max_difficulty: Optional[float] = None,
    ) -> List[Course]:
        """
        Filter courses; every filter that is given must match.

        - query: substring of the course code or department, case-insensitive
        - department: exact department code, case-insensitive
        - max_difficulty: average difficulty at or below this value
        """
        data = await self._loaded()
        filtered = list(data.courses)

        if query:
            query_upper = query.upper()
            filtered = [
                c for c in filtered
                if query_upper in c.course_code or query_upper in c.department
            ]

        if department:
            department_upper = department.upper()
            filtered = [c for c in filtered if c.department == department_upper]

        if max_difficulty is not None:
            filtered = [c for c in filtered if c.average_difficulty <= max_difficulty]

        return filtered

    async def get_course_reviews(self, course_code: str) -> List[Review]:
        data = await self._loaded()
        code = course_code.upper()
        return [r for r in data.reviews if r.course_code == code]

    async def get_professor(self, professor_name: str) -> Optional[Professor]:
        """First professor whose name contains the query, case-insensitive."""
        data = await self._loaded()
        needle = professor_name.lower()
        return next((p for p in data.professors if needle in p.name.lower()), None)

    async def get_all_departments(self) -> List[Department]:
        data = await self._loaded()
        return list(data.departments)

    async def get_department(self, department_code: str) -> Optional[Department]:
        data = await self._loaded()
        code = department_code.upper()
        return next((d for d in data.departments if d.code == code), None)

    def stats(self) -> Dict[str, Any]:
        """Current load state and collection sizes, without triggering a load."""
        data = self._data
        return {
            "status": "loaded" if data is not None else "not_loaded",
            "courses": len(data.courses) if data else 0,
            "reviews": len(data.reviews) if data else 0,
            "professors": len(data.professors) if data else 0,
            "departments": len(data.departments) if data else 0,
            "load_time_ms": self.load_time_ms,
        }

