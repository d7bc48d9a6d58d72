from xray_drafts.core.rate_limit import SlidingWindowRateLimiter


def test_allows_up_to_max_attempts():
    limiter = SlidingWindowRateLimiter(max_attempts=5, window_seconds=60)
    for second in range(5):
        assert limiter.retry_after("1.2.3.4", now=second) is None
        limiter.record("1.2.3.4", now=second)

    assert limiter.retry_after("1.2.3.4", now=5) == 55


def test_attempts_expire_after_window():
    limiter = SlidingWindowRateLimiter(max_attempts=2, window_seconds=60)
    limiter.record("ip", now=0)
    limiter.record("ip", now=10)
    assert limiter.retry_after("ip", now=30) == 30
    assert limiter.retry_after("ip", now=60) is None


def test_wait_is_at_least_one_second():
    limiter = SlidingWindowRateLimiter(max_attempts=1, window_seconds=60)
    limiter.record("ip", now=0)
    assert limiter.retry_after("ip", now=59.9) == 1


def test_keys_are_independent():
    limiter = SlidingWindowRateLimiter(max_attempts=1, window_seconds=60)
    limiter.record("a", now=0)
    assert limiter.retry_after("a", now=1) is not None
    assert limiter.retry_after("b", now=1) is None


def test_clear_all():
    limiter = SlidingWindowRateLimiter(max_attempts=1, window_seconds=60)
    limiter.record("a", now=0)
    limiter.clear_all()
    assert limiter.retry_after("a", now=1) is None


def test_expired_keys_are_purged_on_record():
    limiter = SlidingWindowRateLimiter(max_attempts=5, window_seconds=60)
    limiter.record("gone", now=0)
    limiter.record("still-here", now=30)

    limiter.record("new", now=70)

    assert sorted(limiter._attempts) == ["new", "still-here"]
