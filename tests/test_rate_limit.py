import pytest

from reference_converter.rate_limit import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_first_call_does_not_wait():
    clock = FakeClock()
    limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)

    assert limiter.acquire() == 0.0
    assert clock.sleeps == []


def test_back_to_back_calls_are_spaced():
    clock = FakeClock()
    limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)

    limiter.acquire()
    clock.now += 0.25
    waited = limiter.acquire()

    assert waited == pytest.approx(0.75)
    assert clock.sleeps == [pytest.approx(0.75)]


def test_no_wait_once_interval_elapsed():
    clock = FakeClock()
    limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)

    limiter.acquire()
    clock.now += 2.0
    limiter.acquire()

    assert clock.sleeps == []


def test_interval_is_measured_from_the_previous_call():
    clock = FakeClock()
    limiter = RateLimiter(0.5, clock=clock, sleep=clock.sleep)

    for _ in range(3):
        limiter.acquire()

    assert clock.sleeps == [pytest.approx(0.5), pytest.approx(0.5)]


def test_negative_interval_is_rejected():
    with pytest.raises(ValueError):
        RateLimiter(-1)
