"""Tests for frame timing and logging setup."""

import logging

import pytest

from handmimic.core import FrameClock, FrameTimer, get_logger, setup_logging


def test_first_tick_reports_nominal_duration():
    clock = FrameClock(target_fps=50.0)
    clock.start()

    first = clock.tick()
    second = clock.tick()

    assert first.frame_number == 0
    assert first.delta == pytest.approx(0.02)
    assert second.frame_number == 1
    assert second.delta >= 0.0
    assert second.timestamp >= first.timestamp
    assert clock.frame_count == 2


def test_clock_reset():
    clock = FrameClock()
    clock.tick()
    clock.reset()
    assert clock.frame_count == 0
    assert clock.tick().delta == pytest.approx(1.0 / 30.0)


def test_frame_timer_rolling_window():
    timer = FrameTimer(window_size=2)
    assert timer.fps == 0.0

    for elapsed in (0.1, 0.02, 0.03):
        timer.record(elapsed)

    assert timer.sample_count == 2
    assert timer.last == pytest.approx(0.03)
    assert timer.average == pytest.approx(0.025)
    assert timer.fps == pytest.approx(40.0)


def test_frame_timer_measure_records_on_exception():
    timer = FrameTimer()

    with pytest.raises(RuntimeError):
        with timer.measure():
            raise RuntimeError("tracker failed")

    assert timer.sample_count == 1
    assert timer.last >= 0.0

    timer.reset()
    assert timer.sample_count == 0


def test_frame_timer_rejects_empty_window():
    with pytest.raises(ValueError):
        FrameTimer(window_size=0)


def test_loggers_share_package_namespace():
    root = setup_logging(level="DEBUG")
    logger = get_logger("tracking.smoother")

    assert logger.name == "handmimic.tracking.smoother"
    assert root.name == "handmimic"
    assert root.level == logging.DEBUG
