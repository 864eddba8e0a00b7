from types import SimpleNamespace

from videotube.services import rate_limiter as rate_limiter_module
from videotube.services.rate_limiter import InMemoryRateLimiter


def test_allows_up_to_limit_then_blocks():
    limiter = InMemoryRateLimiter()

    assert [limiter.allow("login:1.2.3.4", 3, 60) for _ in range(4)] == [True, True, True, False]
    assert limiter.remaining("login:1.2.3.4", 3, 60) == 0


def test_keys_are_independent():
    limiter = InMemoryRateLimiter()
    limiter.allow("a", 1, 60)

    assert limiter.allow("a", 1, 60) is False
    assert limiter.allow("b", 1, 60) is True


def test_window_expiry_frees_capacity(monkeypatch):
    clock = [1000.0]
    monkeypatch.setattr(rate_limiter_module, "time", SimpleNamespace(monotonic=lambda: clock[0]))
    limiter = InMemoryRateLimiter()

    assert limiter.allow("refresh", 1, 10) is True
    assert limiter.allow("refresh", 1, 10) is False

    clock[0] += 10.5
    assert limiter.allow("refresh", 1, 10) is True


def test_reset_clears_all_buckets():
    limiter = InMemoryRateLimiter()
    limiter.allow("k", 1, 60)
    limiter.reset()
    assert limiter.remaining("k", 1, 60) == 1
