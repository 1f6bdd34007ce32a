import threading

import pytest

from exam_engine.services.countdown import Countdown, format_time


@pytest.mark.parametrize("seconds,expected", [
    (0, "00:00:00"), (59, "00:00:59"), (61, "00:01:01"), (3600, "01:00:00"), (5425, "01:30:25"), (-5, "00:00:00"),
])
def test_format_time(seconds, expected):
    assert format_time(seconds) == expected


def test_sixty_ticks_expire_exactly_once():
    expired = []
    ticks = []
    countdown = Countdown(60, on_tick=ticks.append, on_expire=lambda: expired.append(True))

    for _ in range(59):
        countdown.tick()
    assert countdown.remaining_seconds == 1
    assert expired == []

    countdown.tick()
    assert expired == [True]
    assert countdown.expired

    countdown.tick()
    assert expired == [True]
    assert ticks == list(range(59, -1, -1))


def test_stop_prevents_further_ticks_and_expiry():
    expired = []
    countdown = Countdown(2, on_expire=lambda: expired.append(True))
    countdown.tick()
    countdown.stop()
    countdown.tick()

    assert countdown.remaining_seconds == 1
    assert expired == []


def test_stop_returns_frozen_remaining():
    ticks = []
    countdown = Countdown(5, on_tick=ticks.append)
    countdown.tick()
    countdown.tick()

    assert countdown.stop() == 3
    countdown.tick()
    assert countdown.remaining_seconds == 3
    assert ticks == [4, 3]
    assert countdown.stop() == 3


def test_zero_duration_expires_on_start():
    expired = []
    countdown = Countdown(0, on_expire=lambda: expired.append(True))
    countdown.start()
    assert expired == [True]
    assert not countdown.is_running


def test_background_thread_counts_down_and_expires():
    done = threading.Event()
    countdown = Countdown(3, on_expire=done.set, interval=0.01)
    countdown.start()

    assert done.wait(timeout=5)
    assert countdown.remaining_seconds == 0
    assert not countdown.is_running


def test_stopped_thread_never_expires():
    done = threading.Event()
    countdown = Countdown(1000, on_expire=done.set, interval=0.01)
    countdown.start()
    assert countdown.is_running
    countdown.stop()

    assert not done.wait(timeout=0.1)
    assert not countdown.is_running
