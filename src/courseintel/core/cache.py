"""
Caching utilities for enhanced professor data.

Provides:
- Default TTLs and size limits for each kind of cached payload
- Cache key helpers for professor, search and analytics lookups
- A factory for bounded cachetools TTL caches
"""

import re
from typing import Optional

from cachetools import TTLCache

# Default TTLs (in seconds)
TTL_PROFESSOR = 1800  # 30 minutes - enhanced professor records
TTL_SEARCH = 900  # 15 minutes - professor search results
TTL_ANALYTICS = 1800  # 30 minutes - professor analytics

# Maximum entries per cache; least recently used entries are evicted first
MAXSIZE_PROFESSOR = 1000
MAXSIZE_SEARCH = 500
MAXSIZE_ANALYTICS = 1000


def normalize_name(name: str) -> str:
    """Lower-case a professor name and replace whitespace runs with underscores."""
    return re.sub(r"\s+", "_", name.lower())


def professor_cache_key(name: str) -> str:
    return f"professor_{normalize_name(name)}"


def analytics_cache_key(name: str) -> str:
    return f"analytics_{normalize_name(name)}"


def search_cache_key(
    query: str,
    school: Optional[str] = None,
    department: Optional[str] = None,
    min_rating: Optional[float] = None,
) -> str:
    return (
        f"search_{query}_{school or 'any'}_{department or 'any'}_"
        f"{min_rating if min_rating is not None else 'any'}"
    )


def create_cache(ttl: int, maxsize: int, **kwargs) -> TTLCache:
    """
    Bounded TTL cache.

    Usage:
        professors = create_cache(TTL_PROFESSOR, MAXSIZE_PROFESSOR)
        professors[professor_cache_key("Jane Doe")] = professor
    """
    return TTLCache(maxsize=maxsize, ttl=ttl, **kwargs)
