"""
Enhanced professor service.

Combines professors derived from the UCR course reviews with RateMyProfessor
ratings and Reddit sentiment from the Enhanced Professor API. Every external
call is time-bounded and cached; when the API is disabled or fails, single
professor lookups fall back to the local data and search/analytics return
nothing.
"""

import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from cachetools import TTLCache
from pydantic import ValidationError

from ..collectors.professor_api_client import ProfessorApiError, ProfessorDataSource
from ..core.cache import (
    MAXSIZE_ANALYTICS,
    MAXSIZE_PROFESSOR,
    MAXSIZE_SEARCH,
    TTL_ANALYTICS,
    TTL_PROFESSOR,
    TTL_SEARCH,
    analytics_cache_key,
    create_cache,
    professor_cache_key,
    search_cache_key,
)
from ..models.schema import (
    CacheStats,
    DataQuality,
    EnhancedProfessor,
    Professor,
    ProfessorApiPayload,
    ServiceHealth,
)

logger = logging.getLogger(__name__)

DEFAULT_SCHOOL = "University of California, Riverside"
UCR_SOURCE = "UCR Course Reviews"
RMP_SOURCE = "RateMyProfessor"
REDDIT_SOURCE = "Reddit Sentiment Analysis"

MAX_PROS_CONS = 5
MAX_TAGS_PER_LIST = 3


def _unique(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


def _sentiment_score(payload: ProfessorApiPayload) -> float:
    return payload.reddit_sentiment.score if payload.reddit_sentiment else 0


def split_name(name: str):
    """Split on the first whitespace run: 'Mary Ann Smith' -> ('Mary', 'Ann Smith')"""
    parts = name.strip().split(None, 1)
    first_name = parts[0] if parts else ""
    last_name = parts[1] if len(parts) > 1 else ""
    return first_name, last_name


def department_from_courses(courses: List[str]) -> str:
    if not courses:
        return "Unknown"
    match = re.match(r"^([A-Z]+)", courses[0])
    return match.group(1) if match else "Unknown"


def ucr_ease_rating(average_difficulty: float) -> float:
    """Convert a 1-10 difficulty into a 5-0.5 ease rating; 0 when there is no difficulty."""
    return (11 - average_difficulty) / 2 if average_difficulty > 0 else 0


def calculate_combined_rating(basic: Professor, payload: ProfessorApiPayload) -> float:
    """
    Weighted blend of the three sources, unrounded:
    70% RateMyProfessor rating, 20% UCR ease rating, 10% Reddit sentiment
    rescaled from [-1, 1] to [0, 5].
    """
    return (
        (payload.rating or 0) * 0.7
        + ucr_ease_rating(basic.average_difficulty) * 0.2
        + (_sentiment_score(payload) + 1) * 2.5 * 0.1
    )


def calculate_recommendation_score(combined_rating: float, payload: ProfessorApiPayload) -> int:
    score = combined_rating * 20

    if payload.num_ratings is not None:
        if payload.num_ratings >= 20:
            score += 10
        elif payload.num_ratings >= 10:
            score += 5

    if _sentiment_score(payload) > 0.2:
        score += 5

    if payload.difficulty is not None and payload.difficulty > 4:
        score -= 10

    return max(0, min(100, round(score)))


def assess_data_quality(basic: Professor, payload: ProfessorApiPayload) -> DataQuality:
    score = 0

    # UCR reviews
    if basic.total_reviews >= 5:
        score += 2
    elif basic.total_reviews >= 2:
        score += 1

    # RateMyProfessor ratings
    num_ratings = payload.num_ratings or 0
    if num_ratings >= 20:
        score += 3
    elif num_ratings >= 5:
        score += 2
    elif num_ratings >= 1:
        score += 1

    # Reddit mentions
    mention_count = payload.reddit_sentiment.mention_count if payload.reddit_sentiment else 0
    if mention_count >= 5:
        score += 2
    elif mention_count >= 1:
        score += 1

    if score >= 6:
        return "high"
    if score >= 3:
        return "medium"
    return "low"


def get_data_sources(payload: ProfessorApiPayload) -> List[str]:
    sources = [UCR_SOURCE]
    if (payload.rating or 0) > 0:
        sources.append(RMP_SOURCE)
    if payload.reddit_sentiment is not None:
        sources.append(REDDIT_SOURCE)
    return sources


def generate_teaching_style_summary(basic: Professor, payload: ProfessorApiPayload) -> str:
    characteristics = list(basic.teaching_characteristics)
    characteristics.extend(payload.tags[:MAX_TAGS_PER_LIST])

    if not characteristics:
        return "Teaching style information not available"
    return ", ".join(characteristics[:5])


def extract_pros(basic: Professor, payload: ProfessorApiPayload) -> List[str]:
    pros = [
        c for c in basic.teaching_characteristics
        if any(word in c for word in ("Easy", "Engaging", "Extra credit", "Online"))
    ]

    pros.extend(
        [
            tag for tag in payload.tags
            if any(word in tag.lower() for word in ("amazing", "clear", "helpful"))
        ][:MAX_TAGS_PER_LIST]
    )

    if payload.rating is not None and payload.rating >= 4:
        pros.append("Highly rated on RateMyProfessor")
    if payload.would_take_again is not None and payload.would_take_again >= 0.8:
        pros.append("Students would take again")

    return _unique(pros)[:MAX_PROS_CONS]


def extract_cons(basic: Professor, payload: ProfessorApiPayload) -> List[str]:
    cons = [
        c for c in basic.teaching_characteristics
        if any(word in c for word in ("Hard", "Challenging", "Attendance required"))
    ]

    cons.extend(
        [
            tag for tag in payload.tags
            if any(word in tag.lower() for word in ("tough", "boring", "unclear"))
        ][:MAX_TAGS_PER_LIST]
    )

    if payload.difficulty is not None and payload.difficulty >= 4:
        cons.append("High difficulty rating")
    if payload.rating is not None and payload.rating < 3:
        cons.append("Below average rating")

    return _unique(cons)[:MAX_PROS_CONS]


def combine_data(basic: Professor, payload: ProfessorApiPayload) -> EnhancedProfessor:
    """Merge a locally derived professor with an Enhanced Professor API record."""
    first_name, last_name = split_name(basic.name)
    combined_rating = calculate_combined_rating(basic, payload)

    return EnhancedProfessor(
        **basic.model_dump(),
        first_name=first_name,
        last_name=last_name,
        department=payload.department or department_from_courses(basic.courses_taught),
        school=payload.school or DEFAULT_SCHOOL,
        rmp_rating=payload.rating or 0,
        rmp_difficulty=payload.difficulty or 0,
        rmp_num_ratings=payload.num_ratings or 0,
        would_take_again=payload.would_take_again,
        rmp_tags=payload.tags,
        professor_id=payload.professor_id,
        school_id=payload.school_id,
        reddit_sentiment=payload.reddit_sentiment,
        data_quality=assess_data_quality(basic, payload),
        data_sources=get_data_sources(payload),
        combined_rating=round(combined_rating, 2),
        last_updated=datetime.now(timezone.utc),
        recommendation_score=calculate_recommendation_score(combined_rating, payload),
        teaching_style_summary=generate_teaching_style_summary(basic, payload),
        pros=extract_pros(basic, payload),
        cons=extract_cons(basic, payload),
    )


def fallback_to_basic_data(basic: Professor) -> EnhancedProfessor:
    """Enhanced record built from the UCR reviews alone, with every external field empty."""
    first_name, last_name = split_name(basic.name)
    characteristics = basic.teaching_characteristics

    return EnhancedProfessor(
        **basic.model_dump(),
        first_name=first_name,
        last_name=last_name,
        department=department_from_courses(basic.courses_taught),
        school=DEFAULT_SCHOOL,
        rmp_rating=0,
        rmp_difficulty=0,
        rmp_num_ratings=0,
        would_take_again=None,
        rmp_tags=[],
        professor_id=None,
        school_id=None,
        reddit_sentiment=None,
        data_quality="low",
        data_sources=[UCR_SOURCE],
        combined_rating=round(ucr_ease_rating(basic.average_difficulty), 2),
        last_updated=datetime.now(timezone.utc),
        recommendation_score=max(0, min(100, round((11 - basic.average_difficulty) * 10))),
        teaching_style_summary=", ".join(characteristics) or "No style information available",
        pros=[c for c in characteristics if "Easy" in c or "Engaging" in c],
        cons=[c for c in characteristics if "Hard" in c or "Challenging" in c],
    )


class ProfessorService:
    """Enriches professors through the Enhanced Professor API with caching and fallbacks"""

    def __init__(
        self,
        client: ProfessorDataSource,
        enabled: bool = True,
        professor_cache: Optional[TTLCache] = None,
        search_cache: Optional[TTLCache] = None,
        analytics_cache: Optional[TTLCache] = None,
    ):
        self.client = client
        self.enabled = enabled
        self.professor_cache = (
            professor_cache if professor_cache is not None
            else create_cache(TTL_PROFESSOR, MAXSIZE_PROFESSOR)
        )
        self.search_cache = (
            search_cache if search_cache is not None
            else create_cache(TTL_SEARCH, MAXSIZE_SEARCH)
        )
        self.analytics_cache = (
            analytics_cache if analytics_cache is not None
            else create_cache(TTL_ANALYTICS, MAXSIZE_ANALYTICS)
        )
        self.cache_hits = 0
        self.cache_misses = 0

    def _cache_get(self, cache: TTLCache, key: str) -> Optional[Any]:
        value = cache.get(key)
        if value is None:
            self.cache_misses += 1
        else:
            self.cache_hits += 1
        return value

    async def get_enhanced_professor(self, professor_name: str, basic: Professor) -> EnhancedProfessor:
        """
        Enhanced data for a professor found in the UCR reviews.

        Never raises on external failures: a disabled, slow or failing API, or a
        record that cannot be read, yields the local-only fallback record.
        Only successful merges are cached.
        """
        if not self.enabled:
            return fallback_to_basic_data(basic)

        cache_key = professor_cache_key(professor_name)
        cached = self._cache_get(self.professor_cache, cache_key)
        if cached is not None:
            logger.info(f"Using cached data for professor: {professor_name}")
            return cached

        try:
            logger.info(f"Fetching enhanced data for professor: {professor_name}")
            api_data = await self.client.fetch_professor(professor_name)
            enhanced = combine_data(basic, ProfessorApiPayload.model_validate(api_data))
        except ProfessorApiError as e:
            logger.warning(f"Enhanced Professor API unavailable for {professor_name}: {e}")
            return fallback_to_basic_data(basic)
        except ValidationError as e:
            logger.warning(f"Unexpected Enhanced Professor API payload for {professor_name}: {e}")
            return fallback_to_basic_data(basic)

        self.professor_cache[cache_key] = enhanced
        logger.info(f"Enhanced data cached for professor: {professor_name}")
        return enhanced

    async def search_professors(
        self,
        query: str,
        school: Optional[str] = None,
        department: Optional[str] = None,
        min_rating: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Proxy to the external search. Any failure yields an empty result set."""
        empty = {"professors": [], "total_results": 0}
        if not self.enabled:
            return empty

        cache_key = search_cache_key(query, school, department, min_rating)
        cached = self._cache_get(self.search_cache, cache_key)
        if cached is not None:
            logger.info(f"Using cached search results for: {query}")
            return cached

        params = {"q": query}
        if school:
            params["school"] = school
        if department:
            params["department"] = department
        if min_rating is not None:
            params["min_rating"] = str(min_rating)

        try:
            search_data = await self.client.search_professors(params)
        except ProfessorApiError as e:
            logger.warning(f"Enhanced Professor search failed: {e}")
            return empty

        if not isinstance(search_data, dict):
            return empty

        professors = search_data.get("professors")
        total_results = search_data.get("total_results")
        results = {
            "professors": professors if isinstance(professors, list) else [],
            "total_results": total_results if isinstance(total_results, int) else 0,
        }
        self.search_cache[cache_key] = results
        logger.info(f"Search results cached for query: {query}")
        return results

    async def get_professor_analytics(self, professor_name: str) -> Optional[Dict[str, Any]]:
        """Analytics from the external service, or None when unavailable."""
        if not self.enabled:
            return None

        cache_key = analytics_cache_key(professor_name)
        cached = self._cache_get(self.analytics_cache, cache_key)
        if cached is not None:
            return cached

        try:
            analytics = await self.client.fetch_analytics(professor_name)
        except ProfessorApiError as e:
            logger.error(f"Error fetching professor analytics: {e}")
            return None

        if not isinstance(analytics, dict):
            return None

        self.analytics_cache[cache_key] = analytics
        return analytics

    async def health_check(self) -> ServiceHealth:
        if not self.enabled:
            return ServiceHealth(status="unavailable")

        start_time = time.monotonic()
        try:
            ok = await self.client.ping()
        except ProfessorApiError:
            return ServiceHealth(status="unavailable", response_time=self._elapsed_ms(start_time))

        return ServiceHealth(
            status="healthy" if ok else "degraded",
            response_time=self._elapsed_ms(start_time),
        )

    @staticmethod
    def _elapsed_ms(start_time: float) -> int:
        return int((time.monotonic() - start_time) * 1000)

    def _caches(self) -> List[TTLCache]:
        return [self.professor_cache, self.search_cache, self.analytics_cache]

    def clear_cache(self, professor_name: Optional[str] = None) -> int:
        """Clear one professor's cached record, or all cached data. Returns the number of keys removed."""
        if professor_name:
            removed = self.professor_cache.pop(professor_cache_key(professor_name), None)
            logger.info(f"Cleared cache for professor: {professor_name}")
            return 0 if removed is None else 1

        deleted = 0
        for cache in self._caches():
            cache.expire()
            deleted += len(cache)
            cache.clear()
        logger.info("Cleared all professor cache")
        return deleted

    def get_cache_stats(self) -> CacheStats:
        keys = 0
        for cache in self._caches():
            cache.expire()
            keys += len(cache)
        return CacheStats(keys=keys, hits=self.cache_hits, misses=self.cache_misses)

    async def close(self) -> None:
        await self.client.close()
