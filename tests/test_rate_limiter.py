import threading
import time

from intervals_deduper.intervals_client import RateLimiter


def worker(limiter: RateLimiter, started_evt: threading.Event, release_evt: threading.Event):
    """Acquire a slot, signal start, wait until release, then free slot."""
    limiter.before_request()
    started_evt.set()
    release_evt.wait()
    limiter.after_response(None, 200)


def _spawn(limiter):
    started, release = threading.Event(), threading.Event()
    thread = threading.Thread(target=worker, args=(limiter, started, release))
    thread.start()
    return started, release, thread


def test_rate_limiter_caps_concurrent_requests():
    """A caller beyond the cap waits until an in-flight request finishes."""
    limiter = RateLimiter(max_concurrent=2, jitter_range=(0.0, 0.0))

    a_started, a_release, a_thread = _spawn(limiter)
    b_started, b_release, b_thread = _spawn(limiter)
    assert a_started.wait(0.3), "First worker failed to start in time"
    assert b_started.wait(0.3), "Second worker failed to start in time"

    c_started, c_release, c_thread = _spawn(limiter)
    assert not c_started.wait(0.07), "Third worker should block with limit=2"
    assert limiter.snapshot()["in_flight"] == 2

    a_release.set()
    a_thread.join(timeout=0.6)
    assert c_started.wait(0.3), "Blocked worker did not start after slot freed"

    b_release.set()
    c_release.set()
    b_thread.join(timeout=0.6)
    c_thread.join(timeout=0.6)

    snap = limiter.snapshot()
    assert snap["in_flight"] == 0
    assert snap["max_allowed"] == 2


def test_429_sets_throttle_from_retry_after():
    limiter = RateLimiter(max_concurrent=2, jitter_range=(0.0, 0.0), throttle_seconds=10)
    limiter.before_request()
    before = time.time()
    limiter.after_response({"Retry-After": "3"}, 429)
    throttle_until = limiter.snapshot()["throttle_until"]
    assert before + 2.5 <= throttle_until <= time.time() + 3.5
    assert limiter.snapshot()["in_flight"] == 0


def test_429_without_header_uses_default_pause():
    limiter = RateLimiter(max_concurrent=1, jitter_range=(0.0, 0.0), throttle_seconds=7)
    limiter.before_request()
    before = time.time()
    limiter.after_response({}, 429)
    assert limiter.snapshot()["throttle_until"] >= before + 6.5


def test_success_does_not_throttle():
    limiter = RateLimiter(max_concurrent=1, jitter_range=(0.0, 0.0))
    limiter.before_request()
    limiter.after_response({"Retry-After": "30"}, 200)
    assert limiter.snapshot()["throttle_until"] == 0.0
