"""Coloured, timestamped console logging."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

_GREY = "\x1b[90m"
_RESET = "\x1b[0m"


class Level(Enum):
    """Severity of a log line, with its colour and label."""

    INFO = ("\x1b[32m", "INFO")
    WARN = ("\x1b[33m", "WARN")
    ERROR = ("\x1b[31m", "ERROR")
    DEBUG = ("\x1b[35m", "DEBUG")

    def __init__(self, color: str, label: str) -> None:
        self.color = color
        self.label = label


def format_line(level: Level, component: str, message: object, when: datetime | None = None) -> str:
    """Render one log line; ``when`` defaults to the current local time."""
    moment = when if when is not None else datetime.now().astimezone()
    timestamp = moment.strftime("%H:%M:%S")
    return (
        f"{_GREY}[{timestamp}]{_RESET} {level.color}{level.label}{_RESET} "
        f"{_GREY}[{component}]{_RESET} {message}"
    )


def log(level: Level, component: str, message: object) -> None:
    """Print a log line to standard output."""
    print(format_line(level, component, message))