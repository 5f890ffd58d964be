import pytest

from app import rate_limiter
from app.errors import AppError
from app.rate_limiter import check_rate_limit, enforce_rate_limit


class FakeRedis:
    def __init__(self, count=None, ttl=-2):
        self.store = {} if count is None else {"k": str(count)}
        self._ttl = ttl
        self.writes = []

    def get(self, key):
        return self.store.get(key)

    def ttl(self, key):
        return self._ttl

    def set(self, key, value, ex=None):
        self.store[key] = str(value)
        self.writes.append((key, value, ex))


def test_memory_limit_counts_and_blocks():
    results = [check_rate_limit("k", 3, 60) for _ in range(4)]

    assert [allowed for allowed, _, _ in results] == [True, True, True, False]
    assert results[-1][1] == 3
    assert 0 < results[-1][2] <= 60


def test_window_resets_after_expiry(monkeypatch):
    now = [1_000_000]
    monkeypatch.setattr(rate_limiter.time, "time", lambda: now[0])

    check_rate_limit("k", 1, 60)
    assert check_rate_limit("k", 1, 60)[0] is False

    now[0] += 61
    assert check_rate_limit("k", 1, 60) == (True, 1, 60)


def test_counts_are_seeded_from_redis():
    client = FakeRedis(count=2, ttl=30)

    allowed, count, ttl = check_rate_limit("k", 3, 60, client)

    assert allowed is True
    assert count == 3
    assert ttl == 30
    assert check_rate_limit("k", 3, 60, client)[0] is False


def test_counts_are_synced_to_redis(monkeypatch):
    now = [1_000_000]
    monkeypatch.setattr(rate_limiter.time, "time", lambda: now[0])
    client = FakeRedis()

    check_rate_limit("k", 5, 60, client)
    assert client.writes == []

    now[0] += rate_limiter.MEMORY_CACHE_SYNC_INTERVAL
    check_rate_limit("k", 5, 60, client)
    assert client.writes == [("k", 2, 60)]


def test_enforce_raises_with_retry_after():
    enforce_rate_limit("login:1.2.3.4", 1, 900)

    with pytest.raises(AppError) as exc:
        enforce_rate_limit("login:1.2.3.4", 1, 900, "Slow down")

    error = exc.value
    assert error.status_code == 429
    assert error.code == "RATE_LIMITED"
    assert error.message == "Slow down"
    assert int(error.headers["Retry-After"]) > 0


def test_reset_clears_all_counters():
    check_rate_limit("k", 1, 60)
    rate_limiter.reset_rate_limits()
    assert check_rate_limit("k", 1, 60)[0] is True
