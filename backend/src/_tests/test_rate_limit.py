import pytest

from backend.src.core.errors import RateLimitExceeded
from backend.src.governor.rate_limit import RateLimiter


def test_eleventh_request_in_window_is_rejected(clock):
    rl = RateLimiter(max_requests=10, window_sec=60, clock=clock)
    for _ in range(10):
        rl.check("1.2.3.4")
        clock.advance(1)
    with pytest.raises(RateLimitExceeded) as ei:
        rl.check("1.2.3.4")
    assert ei.value.status_code == 429


def test_admitted_again_after_window_elapses(clock):
    rl = RateLimiter(max_requests=10, window_sec=60, clock=clock)
    for _ in range(10):
        rl.check("k")
    with pytest.raises(RateLimitExceeded):
        rl.check("k")
    clock.advance(60.001)
    rl.check("k")


def test_rejected_requests_are_not_recorded(clock):
    rl = RateLimiter(max_requests=2, window_sec=60, clock=clock)
    rl.check("k")
    clock.advance(30)
    rl.check("k")
    clock.advance(10)
    for _ in range(5):
        with pytest.raises(RateLimitExceeded):
            rl.check("k")
    # the first hit leaves the window at t+60; only it needs to expire
    clock.advance(20.5)
    rl.check("k")


def test_keys_are_independent(clock):
    rl = RateLimiter(max_requests=1, window_sec=60, clock=clock)
    rl.check("a")
    rl.check("b")
    with pytest.raises(RateLimitExceeded):
        rl.check("a")


def test_prune_drops_idle_keys_only(clock):
    rl = RateLimiter(max_requests=3, window_sec=60, clock=clock)
    rl.check("old")
    clock.advance(50)
    rl.check("fresh")
    clock.advance(20)
    assert rl.prune() == 1
    assert len(rl) == 1
    rl.check("fresh")
    rl.check("fresh")
    with pytest.raises(RateLimitExceeded):
        rl.check("fresh")
