"""Unit tests for core.logging module."""

import pytest

from asbuilt.core.logging import (
    LogRecord,
    VerbosityLevel,
    get_logger,
    get_verbosity,
    set_log_sink,
    set_verbosity,
    subscribe,
    unsubscribe,
)


class TestVerbosity:
    """Tests for set_verbosity / get_verbosity."""

    @pytest.mark.parametrize(
        "level, expected",
        [
            (0, VerbosityLevel.QUIET),
            ("verbose", VerbosityLevel.VERBOSE),
            (" DEBUG ", VerbosityLevel.DEBUG),
            (VerbosityLevel.NORMAL, VerbosityLevel.NORMAL),
        ],
    )
    def test_set_verbosity(self, level, expected):
        set_verbosity(level)
        assert get_verbosity() is expected

    def test_unknown_name(self):
        with pytest.raises(KeyError):
            set_verbosity("chatty")


class TestLogger:
    """Tests for AsBuiltLogger output and publishing."""

    def test_get_logger_is_cached(self):
        assert get_logger("asbuilt.x") is get_logger("asbuilt.x")

    def test_debug_hidden_at_normal(self, capsys):
        records: list[LogRecord] = []
        subscribe(records.append)

        get_logger("t").debug("derived steps")

        assert records == []
        assert capsys.readouterr().out == ""

    def test_debug_shown_at_debug(self, capsys):
        set_verbosity("debug")
        records: list[LogRecord] = []
        subscribe(records.append)

        get_logger("t").debug("derived steps")

        assert records == [
            LogRecord(level_name="DEBUG", plain="[debug] derived steps", logger_name="t")
        ]
        assert "[debug] derived steps" in capsys.readouterr().out

    def test_warning_goes_to_stderr(self, capsys):
        set_verbosity("quiet")
        get_logger("t").warning("no config")

        captured = capsys.readouterr()
        assert "[warning] no config" in captured.err
        assert captured.out == ""

    def test_sink_receives_plain_lines(self):
        lines: list[str] = []
        set_log_sink(lines.append)

        get_logger("t").info("hello")
        set_log_sink(None)
        get_logger("t").info("after")

        assert lines == ["[info] hello"]

    def test_failing_subscriber_is_suppressed(self, capsys):
        def boom(_rec):
            raise RuntimeError("subscriber failure")

        subscribe(boom)
        get_logger("t").info("still logged")
        unsubscribe(boom)

        captured = capsys.readouterr()
        assert "[info] still logged" in captured.out
        assert "log subscriber raised" in captured.err
