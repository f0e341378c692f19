"""
Tests for the logging helpers.
"""

import logging

from video_share_system.core.logging_config import ColoredFormatter, get_error_tracker, get_performance_logger


def test_performance_timers_are_per_operation(caplog):
    performance = get_performance_logger("tests")

    with caplog.at_level(logging.INFO, logger="performance.tests"):
        performance.start_timer("trim 1")
        performance.start_timer("merge 2")
        assert performance.end_timer("trim 1") >= 0.0
        assert "merge 2" in performance.start_times

    assert any("Completed: trim 1" in message for message in caplog.messages)


def test_unstarted_timer_warns(caplog):
    performance = get_performance_logger("tests")

    with caplog.at_level(logging.WARNING, logger="performance.tests"):
        assert performance.end_timer("never started") == 0.0

    assert "Timer not started for: never started" in caplog.messages


def test_error_tracker_counts_errors(caplog):
    tracker = get_error_tracker("tests")

    with caplog.at_level(logging.ERROR, logger="errors.tests"):
        tracker.log_error(ValueError("bad window"), "trim", {"video_id": 3})

    stats = tracker.get_error_stats()
    assert stats["component"] == "tests"
    assert stats["error_count"] == 1
    assert stats["last_error_time"] is not None
    assert "Error in tests (trim): bad window | Data: {'video_id': 3}" in caplog.messages


def test_colored_formatter_leaves_record_untouched():
    record = logging.LogRecord("x", logging.ERROR, __file__, 1, "boom", None, None)
    formatted = ColoredFormatter("%(levelname)s %(message)s").format(record)

    assert "\033[" in formatted
    assert record.levelname == "ERROR"
