import asyncio
from datetime import datetime, timezone

import pytest

from conftest import RMP_PAYLOAD, SEARCH_PAYLOAD, StubProfessorApi
from courseintel.core.cache import TTL_SEARCH, create_cache
from courseintel.models.schema import Professor, ProfessorApiPayload
from courseintel.services.professor_service import (
    ProfessorService,
    assess_data_quality,
    combine_data,
    extract_cons,
    fallback_to_basic_data,
    split_name,
)


def payload(**fields) -> ProfessorApiPayload:
    return ProfessorApiPayload.model_validate(fields)


@pytest.fixture
def basic_professor() -> Professor:
    return Professor(
        name="Mary Ann Smith",
        courses_taught=["CS010A", "CS141"],
        average_difficulty=2.0,
        total_reviews=2,
        teaching_characteristics=["Easy grading", "Challenging", "Engaging teaching style"],
        latest_review_date=datetime(2024, 3, 1, tzinfo=timezone.utc),
    )


def test_split_name():
    assert split_name("Mary Ann Smith") == ("Mary", "Ann Smith")
    assert split_name("Smith") == ("Smith", "")


def test_combined_rating(basic_professor):
    """0.7 * 4.0 + 0.2 * 4.5 + 0.1 * 3.0"""
    enhanced = combine_data(basic_professor, payload(**RMP_PAYLOAD))
    assert enhanced.combined_rating == pytest.approx(4.0)
    # 4.0 * 20 plus the rating-count bonus; a 0.2 sentiment is not above the threshold
    assert enhanced.recommendation_score == 90


def test_combine_data_fields(basic_professor):
    enhanced = combine_data(basic_professor, payload(**RMP_PAYLOAD))

    assert enhanced.first_name == "Mary"
    assert enhanced.last_name == "Ann Smith"
    assert enhanced.department == "CS"
    assert enhanced.school == "University of California, Riverside"
    assert enhanced.rmp_num_ratings == 25
    assert enhanced.professor_id == "12345"
    assert enhanced.reddit_sentiment.mention_count == 6
    assert enhanced.reddit_sentiment.recent_mentions[0].subreddit == "ucr"
    assert enhanced.data_quality == "high"
    assert enhanced.data_sources == [
        "UCR Course Reviews",
        "RateMyProfessor",
        "Reddit Sentiment Analysis",
    ]
    assert enhanced.pros == [
        "Easy grading",
        "Engaging teaching style",
        "Amazing lectures",
        "Clear grading criteria",
        "Highly rated on RateMyProfessor",
    ]
    assert enhanced.cons == ["Challenging", "Tough grader"]
    assert enhanced.teaching_style_summary == (
        "Easy grading, Challenging, Engaging teaching style, Amazing lectures, Clear grading criteria"
    )


def test_recommendation_score_penalty_and_clamp(basic_professor):
    hard = payload(**dict(RMP_PAYLOAD, difficulty=4.5))
    assert combine_data(basic_professor, hard).recommendation_score == 80

    great = payload(**dict(RMP_PAYLOAD, rating=5.0, reddit_sentiment={"score": 1.0, "mention_count": 30}))
    assert combine_data(basic_professor, great).recommendation_score == 100


def test_data_quality_tiers(basic_professor):
    assert assess_data_quality(basic_professor, payload(num_ratings=5)) == "medium"
    assert assess_data_quality(basic_professor, payload()) == "low"

    single = basic_professor.model_copy(update={"total_reviews": 1})
    assert assess_data_quality(single, payload()) == "low"


def test_missing_rating_adds_no_rating_con(basic_professor):
    assert "Below average rating" not in extract_cons(basic_professor, payload())
    assert "Below average rating" in extract_cons(basic_professor, payload(rating=2.5))


def test_loosely_typed_payload_is_normalized(basic_professor):
    loose = payload(
        school=1076,
        rating="4.2",
        difficulty="n/a",
        num_ratings="12",
        tags=["Helpful", 7, None],
        professor_id=99,
        reddit_sentiment={"score": None, "recent_mentions": [{"date": None, "score": "x"}, "bad"]},
    )
    enhanced = combine_data(basic_professor, loose)

    assert enhanced.school == "1076"
    assert enhanced.rmp_rating == 4.2
    assert enhanced.rmp_difficulty == 0
    assert enhanced.rmp_num_ratings == 12
    assert enhanced.rmp_tags == ["Helpful"]
    assert enhanced.professor_id == "99"
    assert enhanced.reddit_sentiment.score == 0
    mention = enhanced.reddit_sentiment.recent_mentions[0]
    assert mention.date is None
    assert mention.score is None
    assert len(enhanced.reddit_sentiment.recent_mentions) == 1


def test_non_finite_numbers_are_dropped():
    loose = payload(rating=float("nan"), num_ratings="inf")
    assert loose.rating is None
    assert loose.num_ratings is None


def test_fallback_to_basic_data(basic_professor):
    fallback = fallback_to_basic_data(basic_professor)

    assert fallback.data_quality == "low"
    assert fallback.data_sources == ["UCR Course Reviews"]
    assert fallback.rmp_num_ratings == 0
    assert fallback.rmp_rating == 0
    assert fallback.reddit_sentiment is None
    assert fallback.combined_rating == 4.5
    assert fallback.recommendation_score == 90
    assert fallback.pros == ["Easy grading", "Engaging teaching style"]
    assert fallback.cons == ["Challenging"]


@pytest.mark.asyncio
async def test_disabled_service_never_calls_api(basic_professor):
    stub = StubProfessorApi(professor=RMP_PAYLOAD, search=SEARCH_PAYLOAD)
    service = ProfessorService(stub, enabled=False)

    enhanced = await service.get_enhanced_professor("Smith", basic_professor)
    results = await service.search_professors("smith")

    assert enhanced.data_quality == "low"
    assert enhanced.data_sources == ["UCR Course Reviews"]
    assert enhanced.rmp_num_ratings == 0
    assert results == {"professors": [], "total_results": 0}
    assert stub.calls["professor"] == 0
    assert stub.calls["search"] == 0


@pytest.mark.asyncio
async def test_enhanced_professor_is_cached(basic_professor):
    stub = StubProfessorApi(professor=RMP_PAYLOAD)
    service = ProfessorService(stub)

    first = await service.get_enhanced_professor("Mary Ann Smith", basic_professor)
    second = await service.get_enhanced_professor("mary  ann SMITH", basic_professor)

    assert stub.calls["professor"] == 1
    assert second == first
    stats = service.get_cache_stats()
    assert stats.keys == 1
    assert stats.hits == 1
    assert stats.misses == 1


@pytest.mark.asyncio
async def test_failed_lookup_falls_back_and_is_not_cached(basic_professor):
    stub = StubProfessorApi(fail=True)
    service = ProfessorService(stub)

    enhanced = await service.get_enhanced_professor("Smith", basic_professor)
    await service.get_enhanced_professor("Smith", basic_professor)

    assert enhanced.data_quality == "low"
    assert stub.calls["professor"] == 2
    assert service.get_cache_stats().keys == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "api_data",
    [
        ["not", "an", "object"],
        "Service temporarily unavailable",
        {**RMP_PAYLOAD, "department": {"code": "CS"}},
    ],
)
async def test_unreadable_payload_falls_back(basic_professor, api_data):
    stub = StubProfessorApi(professor=api_data)
    service = ProfessorService(stub)

    enhanced = await service.get_enhanced_professor("Smith", basic_professor)

    assert enhanced.data_sources == ["UCR Course Reviews"]
    assert enhanced.rmp_num_ratings == 0
    assert service.get_cache_stats().keys == 0


@pytest.mark.asyncio
async def test_null_mention_fields_are_enhanced(basic_professor):
    api_data = {
        **RMP_PAYLOAD,
        "school": 1076,
        "reddit_sentiment": {"score": 0.5, "recent_mentions": [{"date": None, "text": None}]},
    }
    service = ProfessorService(StubProfessorApi(professor=api_data))

    enhanced = await service.get_enhanced_professor("Smith", basic_professor)

    assert enhanced.school == "1076"
    assert enhanced.reddit_sentiment.recent_mentions[0].date is None
    assert "RateMyProfessor" in enhanced.data_sources


@pytest.mark.asyncio
async def test_search_professors_cached_per_filters():
    stub = StubProfessorApi(search=SEARCH_PAYLOAD)
    service = ProfessorService(stub)

    results = await service.search_professors("alex", department="CS", min_rating=0)
    await service.search_professors("alex", department="CS", min_rating=0)
    await service.search_professors("alex", department="CS")

    assert results["total_results"] == 3
    assert stub.calls["search"] == 2
    assert stub.search_params[0] == {"q": "alex", "department": "CS", "min_rating": "0"}


@pytest.mark.asyncio
async def test_search_failure_returns_empty():
    service = ProfessorService(StubProfessorApi(fail=True))
    results = await service.search_professors("alex")
    assert results == {"professors": [], "total_results": 0}


@pytest.mark.asyncio
async def test_analytics_returns_none_on_failure():
    service = ProfessorService(StubProfessorApi())
    assert await service.get_professor_analytics("Smith") is None


@pytest.mark.asyncio
async def test_health_check_states():
    healthy = await ProfessorService(StubProfessorApi()).health_check()
    assert healthy.status == "healthy"
    assert healthy.response_time is not None

    degraded = await ProfessorService(StubProfessorApi(healthy=False)).health_check()
    assert degraded.status == "degraded"

    unavailable = await ProfessorService(StubProfessorApi(fail=True)).health_check()
    assert unavailable.status == "unavailable"

    disabled = await ProfessorService(StubProfessorApi(), enabled=False).health_check()
    assert disabled.status == "unavailable"
    assert disabled.response_time is None


@pytest.mark.asyncio
async def test_clear_cache(basic_professor):
    service = ProfessorService(StubProfessorApi(professor=RMP_PAYLOAD, search=SEARCH_PAYLOAD))
    await service.get_enhanced_professor("Smith", basic_professor)
    await service.search_professors("alex")

    assert service.clear_cache("SMITH") == 1
    assert service.clear_cache("SMITH") == 0
    assert service.get_cache_stats().keys == 1
    assert service.clear_cache() == 1
    assert service.get_cache_stats().keys == 0


@pytest.mark.asyncio
async def test_injected_caches_are_used(basic_professor):
    professor_cache = create_cache(60, 10)
    service = ProfessorService(StubProfessorApi(professor=RMP_PAYLOAD), professor_cache=professor_cache)
    await service.get_enhanced_professor("Smith", basic_professor)
    assert list(professor_cache) == ["professor_smith"]


@pytest.mark.asyncio
async def test_search_cache_is_bounded():
    stub = StubProfessorApi(search=SEARCH_PAYLOAD)
    service = ProfessorService(stub, search_cache=create_cache(TTL_SEARCH, 3))

    for i in range(10):
        await service.search_professors(f"query {i}")

    assert len(service.search_cache) == 3
    assert service.get_cache_stats().keys == 3
    # the oldest query was evicted and is fetched again
    await service.search_professors("query 0")
    assert stub.calls["search"] == 11


@pytest.mark.asyncio
async def test_concurrent_lookups_share_one_loop(basic_professor):
    stub = StubProfessorApi(professor=RMP_PAYLOAD)
    service = ProfessorService(stub)

    results = await asyncio.gather(
        *(service.get_enhanced_professor(f"Professor {i}", basic_professor) for i in range(5))
    )

    assert len(results) == 5
    assert stub.calls["professor"] == 5
    assert service.get_cache_stats().keys == 5
