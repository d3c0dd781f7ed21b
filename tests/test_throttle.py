"""Tests for the minute-window request throttle."""

from patent_ops.core.throttle import RequestThrottle

from conftest import FakeClock


async def test_disabled_throttle_never_sleeps(recording_sleep):
    throttle = RequestThrottle(0, clock=FakeClock(0.0), sleep=recording_sleep)

    for _ in range(100):
        await throttle.acquire()

    assert recording_sleep.delays == []


async def test_sleeps_out_the_window_when_limit_reached(recording_sleep):
    """The third request in a 2/min window waits for the rest of the minute."""
    clock = FakeClock(0.0)
    throttle = RequestThrottle(2, clock=clock, sleep=recording_sleep)

    await throttle.acquire()
    clock.advance(15)
    await throttle.acquire()
    await throttle.acquire()

    assert recording_sleep.delays == [45.0]
    assert throttle.requests_in_window == 1


async def test_window_resets_after_a_minute(recording_sleep):
    clock = FakeClock(0.0)
    throttle = RequestThrottle(1, clock=clock, sleep=recording_sleep)

    await throttle.acquire()
    clock.advance(61)
    await throttle.acquire()

    assert recording_sleep.delays == []
    assert throttle.requests_in_window == 1
