from courseintel.core.cache import (
    analytics_cache_key,
    create_cache,
    professor_cache_key,
    search_cache_key,
)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_cache_keys():
    assert professor_cache_key("Jane  Doe") == "professor_jane_doe"
    assert analytics_cache_key("Jane Doe") == "analytics_jane_doe"
    assert search_cache_key("doe") == "search_doe_any_any_any"
    assert search_cache_key("doe", "UCR", "CS", 3.5) == "search_doe_UCR_CS_3.5"
    assert search_cache_key("doe", min_rating=0) == "search_doe_any_any_0"


def test_entries_expire():
    clock = FakeClock()
    cache = create_cache(60, 10, timer=clock)
    cache["a"] = 1

    clock.now = 30
    assert cache.get("a") == 1

    clock.now = 60
    assert cache.get("a") is None
    assert len(cache) == 0


def test_cache_is_bounded():
    cache = create_cache(60, 3)
    for i in range(10):
        cache[f"key_{i}"] = i

    assert len(cache) == 3
    assert cache.get("key_0") is None
    assert cache.get("key_9") == 9


def test_least_recently_used_entry_is_evicted():
    cache = create_cache(60, 2)
    cache["a"] = 1
    cache["b"] = 2
    cache.get("a")
    cache["c"] = 3

    assert cache.get("a") == 1
    assert cache.get("b") is None
