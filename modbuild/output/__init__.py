"""Output abstraction layer."""

from .console import ConsoleProtocol, MockConsole, RichConsole, Style
from .sinks import (
    ConsoleProgress,
    ConsoleStepLog,
    LogSink,
    NullProgress,
    NullStepLog,
    ProgressSink,
    format_step_line,
)

__all__ = [
    "ConsoleProgress",
    "ConsoleProtocol",
    "ConsoleStepLog",
    "LogSink",
    "MockConsole",
    "NullProgress",
    "NullStepLog",
    "ProgressSink",
    "RichConsole",
    "Style",
    "format_step_line",
]
