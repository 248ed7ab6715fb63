"""Centralized logging for the as-built engine.

Four verbosity levels:
- QUIET (0): Warnings + errors
- NORMAL (1): Info + warnings + errors
- VERBOSE (2): Detailed info
- DEBUG (3): Everything including derived step lists and rule outcomes

Usage:
    from asbuilt.core.logging import get_logger, set_verbosity

    logger = get_logger(__name__)
    set_verbosity(3)

    logger.debug("Derived steps: work_type, ec_tag, review")
    logger.verbose("Step 'ec_tag' completed")
    logger.warning("No timesheet hours available")

Every emitted line is also published as a ``LogRecord`` to the subscribers
registered with ``subscribe``/``set_log_sink`` so a host UI can display it.
"""

from __future__ import annotations

import contextlib
import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum


class VerbosityLevel(IntEnum):
    """Verbosity levels."""

    QUIET = 0  # Warnings + errors
    NORMAL = 1  # Info + warnings + errors
    VERBOSE = 2  # Detailed info
    DEBUG = 3  # Everything


LEVEL_NAMES: dict[str, VerbosityLevel] = {
    "quiet": VerbosityLevel.QUIET,
    "normal": VerbosityLevel.NORMAL,
    "verbose": VerbosityLevel.VERBOSE,
    "debug": VerbosityLevel.DEBUG,
}


@dataclass(frozen=True)
class LogRecord:
    level_name: str
    plain: str
    logger_name: str


_VERBOSITY: VerbosityLevel = VerbosityLevel.NORMAL
_USE_COLORS: bool = True
_SUBSCRIBERS: list[Callable[[LogRecord], None]] = []
_SINK_ADAPTER: Callable[[LogRecord], None] | None = None


def set_verbosity(level: int | str | VerbosityLevel) -> None:
    """Set global verbosity level.

    Args:
        level: 0-3, a level name ("quiet" .. "debug") or VerbosityLevel
    """
    global _VERBOSITY

    if isinstance(level, str):
        level = LEVEL_NAMES[level.strip().lower()]
    _VERBOSITY = VerbosityLevel(level)


def get_verbosity() -> VerbosityLevel:
    """Get current verbosity level."""
    return _VERBOSITY


def set_colors(enabled: bool) -> None:
    """Enable or disable colored console output."""
    global _USE_COLORS
    _USE_COLORS = enabled


def subscribe(callback: Callable[[LogRecord], None]) -> None:
    """Receive every published LogRecord."""
    _SUBSCRIBERS.append(callback)


def unsubscribe(callback: Callable[[LogRecord], None]) -> None:
    with contextlib.suppress(ValueError):
        _SUBSCRIBERS.remove(callback)


def clear_subscribers() -> None:
    global _SINK_ADAPTER
    _SUBSCRIBERS.clear()
    _SINK_ADAPTER = None


def set_log_sink(sink: Callable[[str], None] | None) -> None:
    """Route plain log lines to a single callback.

    Replaces the previously installed sink. Pass None to disable.
    """
    global _SINK_ADAPTER

    if _SINK_ADAPTER is not None:
        unsubscribe(_SINK_ADAPTER)
        _SINK_ADAPTER = None

    if sink is None:
        return

    def _adapter(rec: LogRecord) -> None:
        sink(rec.plain)

    _SINK_ADAPTER = _adapter
    subscribe(_adapter)


def _publish(record: LogRecord) -> None:
    for cb in list(_SUBSCRIBERS):
        try:
            cb(record)
        except Exception:
            # Never log from here: a failing subscriber would recurse.
            msg = "log subscriber raised; suppressed.\n" + traceback.format_exc()
            with contextlib.suppress(Exception):
                sys.stderr.write(msg)


class AsBuiltLogger:
    """Logger with verbosity support."""

    COLORS = {
        "DEBUG": "\033[36m",
        "VERBOSE": "\033[34m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "RESET": "\033[0m",
    }

    def __init__(self, name: str):
        self.name = name

    def _format_message(self, level: str, message: str) -> str:
        if _USE_COLORS and sys.stdout.isatty():
            color = self.COLORS.get(level, "")
            reset = self.COLORS["RESET"]
            return f"{color}[{level.lower()}]{reset} {message}"
        return f"[{level.lower()}] {message}"

    def _log(self, level: VerbosityLevel, level_name: str, message: str) -> None:
        if level > _VERBOSITY:
            return

        plain = f"[{level_name.lower()}] {message}"
        _publish(LogRecord(level_name=level_name, plain=plain, logger_name=self.name))

        stream = sys.stderr if level_name in ("WARNING", "ERROR") else sys.stdout
        print(self._format_message(level_name, message), file=stream)

    def debug(self, message: str) -> None:
        self._log(VerbosityLevel.DEBUG, "DEBUG", message)

    def verbose(self, message: str) -> None:
        self._log(VerbosityLevel.VERBOSE, "VERBOSE", message)

    def info(self, message: str) -> None:
        self._log(VerbosityLevel.NORMAL, "INFO", message)

    def warning(self, message: str) -> None:
        self._log(VerbosityLevel.QUIET, "WARNING", message)

    def error(self, message: str) -> None:
        """Log error message (always shown)."""
        plain = f"[error] {message}"
        _publish(LogRecord(level_name="ERROR", plain=plain, logger_name=self.name))
        print(self._format_message("ERROR", message), file=sys.stderr)


_LOGGERS: dict[str, AsBuiltLogger] = {}


def get_logger(name: str = __name__) -> AsBuiltLogger:
    """Get logger instance for module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    if name not in _LOGGERS:
        _LOGGERS[name] = AsBuiltLogger(name)

    return _LOGGERS[name]
