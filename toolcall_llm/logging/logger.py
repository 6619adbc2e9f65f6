"""Event logging for tool-calling turns."""

from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional, TextIO, Union
from pathlib import Path
from enum import Enum
from datetime import datetime
import json
import sys


class LogLevel(str, Enum):
    """Log severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


LEVEL_ORDER = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARNING: 2,
    LogLevel.ERROR: 3,
    LogLevel.CRITICAL: 4,
}


class Logger(ABC):
    """Abstract base class for event logging."""

    @abstractmethod
    def log(
        self,
        level: LogLevel,
        event: str,
        message: str = "",
        data: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log an event with optional data.

        Args:
            level: Log severity level
            event: Event name, e.g. "tool.call"
            message: Human-readable message
            data: Optional metadata dictionary
        """
        pass

    def debug(self, event: str, message: str = "", data: Optional[Dict[str, Any]] = None) -> None:
        """Log debug message."""
        self.log(LogLevel.DEBUG, event, message, data)

    def info(self, event: str, message: str = "", data: Optional[Dict[str, Any]] = None) -> None:
        """Log info message."""
        self.log(LogLevel.INFO, event, message, data)

    def warning(self, event: str, message: str = "", data: Optional[Dict[str, Any]] = None) -> None:
        """Log warning message."""
        self.log(LogLevel.WARNING, event, message, data)

    def error(self, event: str, message: str = "", data: Optional[Dict[str, Any]] = None) -> None:
        """Log error message."""
        self.log(LogLevel.ERROR, event, message, data)

    def critical(self, event: str, message: str = "", data: Optional[Dict[str, Any]] = None) -> None:
        """Log critical message."""
        self.log(LogLevel.CRITICAL, event, message, data)


class ConsoleLogger(Logger):
    """Prints turn progress to the terminal, one line per event."""

    LEVEL_COLORS = {
        LogLevel.DEBUG: "\033[36m",
        LogLevel.INFO: "\033[32m",
        LogLevel.WARNING: "\033[33m",
        LogLevel.ERROR: "\033[31m",
        LogLevel.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    ICONS = {
        "turn.started": "💬",
        "turn.completed": "✅",
        "turn.fatal": "❌",
        "turn.cancelled": "⏹",
        "model.request": "🤖",
        "round.started": "🔄",
        "fallback.text": "⚠️",
        "tool.call": "🔧",
        "tool.result": "📋",
        "tool.error": "❌",
    }

    # Longest data value shown before it is cut
    MAX_VALUE_WIDTH = 60

    def __init__(
        self,
        min_level: LogLevel = LogLevel.INFO,
        colored: bool = True,
        show_timestamp: bool = False,
        show_data: bool = True,
        stream: Optional[TextIO] = None,
    ):
        """
        Initialize console logger.

        Args:
            min_level: Minimum log level to display
            colored: Whether to use ANSI colors (only on a terminal)
            show_timestamp: Whether to prefix lines with the time
            show_data: Whether to show the data field
            stream: Output stream (defaults to stderr so answers stay on stdout)
        """
        self.min_level = min_level
        self.stream = stream or sys.stderr
        self.colored = colored and self.stream.isatty()
        self.show_timestamp = show_timestamp
        self.show_data = show_data

    def _paint(self, text: str, code: str) -> str:
        return f"{code}{text}{self.RESET}" if self.colored else text

    def log(
        self,
        level: LogLevel,
        event: str,
        message: str = "",
        data: Optional[Dict[str, Any]] = None
    ) -> None:
        """Print one event, indenting tool activity under its turn."""
        if LEVEL_ORDER[level] < LEVEL_ORDER[self.min_level]:
            return

        if event == "turn.started":
            mode = (data or {}).get("mode", "")
            header = f"{self.ICONS[event]} {self._paint(message or event, self.BOLD)}"
            if mode:
                header += " " + self._paint(f"[{mode}]", self.DIM)
            self._write(header)
            return

        indent = "    " if event.startswith("tool.") else "  "
        line = f"{indent}{self.ICONS.get(event, '•')} "
        line += self._paint(message or event, self.LEVEL_COLORS.get(level, ""))

        if data and self.show_data:
            line += " " + self._paint(f"({self._format_data(data)})", self.DIM)

        self._write(line)

    def _write(self, line: str) -> None:
        if self.show_timestamp:
            line = self._paint(datetime.now().strftime("%H:%M:%S"), self.DIM) + " " + line
        print(line, file=self.stream)

    def _format_data(self, data: Dict[str, Any]) -> str:
        items = []
        for key, value in data.items():
            if not isinstance(value, str):
                value = json.dumps(value, default=str)
            if len(value) > self.MAX_VALUE_WIDTH:
                value = value[:self.MAX_VALUE_WIDTH - 3] + "..."
            items.append(f"{key}={value}")
        return ", ".join(items)


class NullLogger(Logger):
    """Discards every event; the dispatcher default."""

    def log(
        self,
        level: LogLevel,
        event: str,
        message: str = "",
        data: Optional[Dict[str, Any]] = None
    ) -> None:
        pass


class FileLogger(Logger):
    """Appends events to a file as JSON lines, one object per event."""

    def __init__(self, file_path: Union[str, Path], min_level: LogLevel = LogLevel.INFO):
        self.file_path = Path(file_path)
        self.min_level = min_level
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def log(
        self,
        level: LogLevel,
        event: str,
        message: str = "",
        data: Optional[Dict[str, Any]] = None
    ) -> None:
        if LEVEL_ORDER[level] < LEVEL_ORDER[self.min_level]:
            return

        entry: Dict[str, Any] = {
            "timestamp": datetime.now().isoformat(),
            "level": level.value,
            "event": event,
            "message": message,
        }
        if data:
            entry["data"] = data

        with self.file_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str) + "\n")


class MultiLogger(Logger):
    """Fans every event out to several loggers."""

    def __init__(self, loggers: List[Logger]):
        self.loggers = list(loggers)

    def log(
        self,
        level: LogLevel,
        event: str,
        message: str = "",
        data: Optional[Dict[str, Any]] = None
    ) -> None:
        for logger in self.loggers:
            logger.log(level, event, message, data)


class RecordingLogger(Logger):
    """Keeps events in memory, mainly for tests."""

    def __init__(self):
        self.events: List[Dict[str, Any]] = []

    def log(
        self,
        level: LogLevel,
        event: str,
        message: str = "",
        data: Optional[Dict[str, Any]] = None
    ) -> None:
        self.events.append({"level": level, "event": event, "message": message, "data": data or {}})

    def names(self) -> List[str]:
        return [entry["event"] for entry in self.events]
