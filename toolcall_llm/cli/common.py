"""Shared setup for CLI commands."""

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from toolcall_llm.agent import ModelConfig, ToolDispatcher
from toolcall_llm.logging import ConsoleLogger, FileLogger, Logger, LogLevel, MultiLogger
from toolcall_llm.model import create_client
from toolcall_llm.tools import create_default_registry

console = Console()

TOOL_MODES = ("auto", "native", "text")


def validate_max_tokens(value: Optional[int]) -> Optional[int]:
    if value is not None and value <= 0:
        raise typer.BadParameter("Invalid max-tokens value. Must be a positive integer.")
    return value


def validate_tool_mode(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in TOOL_MODES:
        raise typer.BadParameter(f"Must be one of: {', '.join(TOOL_MODES)}")
    return value


def configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)
    # litellm is chatty at INFO
    logging.getLogger("LiteLLM").setLevel(logging.DEBUG if verbose else logging.WARNING)


def create_event_logger(verbose: bool, log_file: Optional[str]) -> Logger:
    """Console events, plus JSON lines in log_file when given."""
    level = LogLevel.DEBUG if verbose else LogLevel.INFO
    console_logger = ConsoleLogger(min_level=level, show_data=verbose)
    if not log_file:
        return console_logger
    return MultiLogger([console_logger, FileLogger(log_file, min_level=level)])


def build_dispatcher(
    model: Optional[str],
    api_base: Optional[str],
    tool_mode: Optional[str],
    max_tokens: Optional[int],
    verbose: bool,
    log_file: Optional[str],
) -> ToolDispatcher:
    """Create the dispatcher from the environment, overridden by CLI options."""
    configure_logging(verbose)
    config = ModelConfig.from_env(
        model=model,
        api_base=api_base,
        tool_mode=tool_mode,
        max_tokens=max_tokens,
    )
    client = create_client(config.model, api_base=config.api_base, api_key=config.api_key)
    registry = create_default_registry(shell_timeout=config.tool_timeout, shell=config.shell)
    return ToolDispatcher(
        client,
        registry,
        config=config,
        event_logger=create_event_logger(verbose, log_file),
    )


def report_error(error: Exception) -> None:
    """Print an error and the exception that caused it."""
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    if error.__cause__ is not None:
        console.print(f"[red]Inner Exception: {escape(str(error.__cause__))}[/red]")
