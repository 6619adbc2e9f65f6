"""Logging module for toolcall-llm."""

from .logger import (
    Logger,
    LogLevel,
    ConsoleLogger,
    NullLogger,
    FileLogger,
    MultiLogger,
    RecordingLogger,
)

__all__ = [
    "Logger",
    "LogLevel",
    "ConsoleLogger",
    "NullLogger",
    "FileLogger",
    "MultiLogger",
    "RecordingLogger",
]
