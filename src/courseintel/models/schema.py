import math
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Literal
from pydantic import BaseModel, Field, field_validator, ConfigDict


DataQuality = Literal["high", "medium", "low"]
HealthStatus = Literal["healthy", "degraded", "unavailable"]

# Spreadsheet dates are MM/DD/YYYY; the rest cover hand-edited rows
DATE_FORMATS = [
    "%m/%d/%Y",
    "%m/%d/%y",
    "%m/%d/%Y %H:%M:%S",
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
]


def _parse_date_string(value: str) -> Optional[datetime]:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue

    # Try ISO format as fallback
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class RawCourseRow(BaseModel):
    """One row of the UCR course difficulty spreadsheet, mapped by header name"""

    course_class: Optional[str] = Field(default=None, alias="Class")
    average_difficulty: Optional[str] = Field(default=None, alias="Average Difficulty")
    additional_comments: Optional[str] = Field(default=None, alias="Additional Comments")
    difficulty: Optional[str] = Field(default=None, alias="Difficulty")
    date: Optional[str] = Field(default=None, alias="Date")

    @field_validator("*", mode="before")
    @classmethod
    def strip_values(cls, v):
        """Trim whitespace; treat blank cells as missing"""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Review(BaseModel):
    """A single student review of a course"""

    course_code: str
    difficulty: int = Field(ge=1, le=10)
    comment: str = ""
    professor_name: Optional[str] = None
    review_date: datetime
    semester: Optional[str] = None

    @field_validator("review_date", mode="before")
    @classmethod
    def parse_review_date(cls, v):
        """Parse spreadsheet dates; missing or unreadable dates become the current time"""
        if isinstance(v, datetime):
            parsed = v
        elif isinstance(v, str) and v.strip():
            parsed = _parse_date_string(v.strip())
        else:
            parsed = None

        if parsed is None:
            return datetime.now(timezone.utc)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    model_config = ConfigDict(frozen=True)


class DifficultyDistribution(BaseModel):
    """Review counts per difficulty bucket"""

    very_easy: int = 0  # 1-2
    easy: int = 0  # 3-4
    moderate: int = 0  # 5-6
    hard: int = 0  # 7-8
    very_hard: int = 0  # 9-10

    def total(self) -> int:
        return self.very_easy + self.easy + self.moderate + self.hard + self.very_hard


class Course(BaseModel):
    """Course statistics derived from its reviews"""

    course_code: str
    department: str
    average_difficulty: float
    total_reviews: int = Field(ge=1)
    difficulty_distribution: DifficultyDistribution
    latest_review_date: datetime
    created_at: datetime


class Professor(BaseModel):
    """Professor summary built from reviews that mention them"""

    name: str
    courses_taught: List[str]
    average_difficulty: float
    total_reviews: int = Field(ge=1)
    teaching_characteristics: List[str]
    latest_review_date: datetime


def _number_or_none(v):
    """Numeric value of an external field; anything unusable becomes None"""
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        try:
            v = float(v)
        except ValueError:
            return None
    if isinstance(v, float) and math.isfinite(v):
        return v
    return None


class RecentMention(BaseModel):
    text: Optional[str] = None
    subreddit: Optional[str] = None
    score: Optional[float] = None
    date: Optional[str] = None

    @field_validator("score", mode="before")
    @classmethod
    def parse_score(cls, v):
        return _number_or_none(v)

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class RedditSentiment(BaseModel):
    """Reddit sentiment block returned by the professor rating service"""

    score: float = 0  # -1 to 1
    confidence: float = 0  # 0 to 1
    mention_count: int = 0
    positive_mentions: int = 0
    negative_mentions: int = 0
    recent_mentions: List[RecentMention] = []

    @field_validator("score", "confidence", mode="before")
    @classmethod
    def parse_ratio(cls, v):
        return _number_or_none(v) or 0

    @field_validator("mention_count", "positive_mentions", "negative_mentions", mode="before")
    @classmethod
    def parse_count(cls, v):
        return int(_number_or_none(v) or 0)

    @field_validator("recent_mentions", mode="before")
    @classmethod
    def keep_mention_objects(cls, v):
        if not isinstance(v, list):
            return []
        return [m for m in v if isinstance(m, (dict, RecentMention))]

    model_config = ConfigDict(extra="ignore")


class ProfessorApiPayload(BaseModel):
    """
    Professor record returned by the Enhanced Professor API.

    Parsed leniently: malformed numbers become None, non-string tags are
    dropped, and numeric ids or names are read as strings.
    """

    department: Optional[str] = None
    school: Optional[str] = None
    rating: Optional[float] = None
    difficulty: Optional[float] = None
    num_ratings: Optional[int] = None
    would_take_again: Optional[float] = None
    tags: List[str] = []
    professor_id: Optional[str] = None
    school_id: Optional[str] = None
    reddit_sentiment: Optional[RedditSentiment] = None

    @field_validator("rating", "difficulty", "would_take_again", mode="before")
    @classmethod
    def parse_number(cls, v):
        return _number_or_none(v)

    @field_validator("num_ratings", mode="before")
    @classmethod
    def parse_num_ratings(cls, v):
        value = _number_or_none(v)
        return int(value) if value is not None else None

    @field_validator("tags", mode="before")
    @classmethod
    def keep_string_tags(cls, v):
        if not isinstance(v, list):
            return []
        return [tag for tag in v if isinstance(tag, str)]

    @field_validator("reddit_sentiment", mode="before")
    @classmethod
    def sentiment_block(cls, v):
        return v if isinstance(v, (dict, RedditSentiment)) else None

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class EnhancedProfessor(Professor):
    """Professor merged with RateMyProfessor and Reddit data"""

    first_name: str
    last_name: str
    department: str
    school: str

    # RateMyProfessor
    rmp_rating: float = 0
    rmp_difficulty: float = 0
    rmp_num_ratings: int = 0
    would_take_again: Optional[float] = None
    rmp_tags: List[str] = []
    professor_id: Optional[str] = None
    school_id: Optional[str] = None

    reddit_sentiment: Optional[RedditSentiment] = None

    data_quality: DataQuality
    data_sources: List[str]
    combined_rating: float
    last_updated: datetime

    recommendation_score: int = Field(ge=0, le=100)
    teaching_style_summary: str
    pros: List[str]
    cons: List[str]


class Department(BaseModel):
    """Department statistics derived from its courses"""

    code: str
    name: str
    total_courses: int
    average_difficulty: float
    easiest_courses: List[str]
    hardest_courses: List[str]
    most_reviewed_courses: List[str]


class SearchResponse(BaseModel):
    courses: List[Course]
    total_results: int
    filters_applied: Dict[str, Any]


class CourseDetail(Course):
    recent_reviews: List[Review]
    professors: List[Professor]


class EnhancedCourseDetail(Course):
    recent_reviews: List[Review]
    professors: List[EnhancedProfessor]


class ProfessorSearchResponse(BaseModel):
    # Passed through from the external search service as-is
    professors: List[Dict[str, Any]]
    total_results: int
    filters_applied: Dict[str, Any] = {}


class ServiceHealth(BaseModel):
    status: HealthStatus
    response_time: Optional[int] = None  # milliseconds


class CacheStats(BaseModel):
    keys: int
    hits: int
    misses: int
