"""Command-line interface for toolcall-llm."""

import sys

import typer

from toolcall_llm.cli.chat import chat_command, normalize_help_args
from toolcall_llm.cli.scenario import scenario_command
from toolcall_llm.cli.tools import tools_command

app = typer.Typer(
    help="toolcall-llm - tool calling for locally hosted language models",
    context_settings={"help_option_names": ["-h", "--help"]},
)

# Register main commands
app.command(name="chat")(chat_command)
app.command(name="scenario")(scenario_command)
app.command(name="tools")(tools_command)


def main():
    """Main CLI entry point."""
    app(args=normalize_help_args(sys.argv[1:]))


__all__ = ["app", "main"]
