import time

import pytest

from ttylink.timer import MillisecondTimer


class FakeClock:
    def __init__(self, start_ns=5_000_000_000):
        self.now_ns = start_ns

    def __call__(self):
        return self.now_ns

    def advance_ms(self, millis):
        self.now_ns += int(millis * 1_000_000)


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(time, "monotonic_ns", fake)
    return fake


def test_remaining_starts_at_given_millis(clock):
    timer = MillisecondTimer(1500)
    assert timer.remaining() == 1500


def test_remaining_counts_down(clock):
    millis = 1000
    timer = MillisecondTimer(millis)
    clock.advance_ms(250)
    assert timer.remaining() == millis - 250


def test_remaining_truncates_partial_milliseconds(clock):
    millis = 100
    timer = MillisecondTimer(millis)
    clock.advance_ms(0.5)
    assert timer.remaining() == millis - 1


def test_remaining_truncates_toward_zero_after_expiry(clock):
    millis = 100
    timer = MillisecondTimer(millis)
    clock.advance_ms(millis + 0.5)
    assert timer.remaining() == 0


def test_remaining_negative_after_expiry(clock):
    millis = 40
    timer = MillisecondTimer(millis)
    clock.advance_ms(millis + 30)
    assert timer.remaining() == -30


def test_zero_timer_is_expired_immediately(clock):
    timer = MillisecondTimer(0)
    assert timer.remaining() <= 0


def test_remaining_crosses_second_boundary(clock):
    millis = 2500
    timer = MillisecondTimer(millis)
    clock.advance_ms(1200)
    assert timer.remaining() == millis - 1200


def test_real_clock_never_exceeds_start():
    timer = MillisecondTimer(10_000)
    first = timer.remaining()
    second = timer.remaining()
    assert 0 < second <= first <= 10_000


def test_negative_millis_rejected():
    with pytest.raises(ValueError):
        MillisecondTimer(-1)


def test_non_integer_millis_rejected():
    with pytest.raises(TypeError):
        MillisecondTimer(1.5)