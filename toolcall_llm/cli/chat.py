"""Chat command: one-shot prompt or interactive REPL."""

import sys
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import List, Optional

import typer
from rich.markup import escape

from toolcall_llm.agent import CancellationToken, ConversationSession
from toolcall_llm.errors import TurnCancelled
from toolcall_llm.model import SHELL_ASSISTANT_PROMPT
from toolcall_llm.cli.common import (
    build_dispatcher,
    console,
    report_error,
    validate_max_tokens,
    validate_tool_mode,
)

EXIT_COMMANDS = ("exit", "quit")

REPL_HELP = """
Available commands:
  exit/quit - Exit the program
  clear     - Clear the screen
  reset     - Forget the conversation so far
  help      - Show this help

You can ask me to:
  - Get system information
  - List processes, services, files
  - Execute shell commands
"""


def chat_command(
    prompt: Optional[List[str]] = typer.Argument(None, help="Prompt to run once; omit to start the REPL"),
    max_tokens: Optional[int] = typer.Option(
        None,
        "--max-tokens",
        help="Maximum output tokens per model call (default: 8000)",
        callback=validate_max_tokens,
    ),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="litellm model identifier"),
    api_base: Optional[str] = typer.Option(None, "--api-base", help="Endpoint of the local inference server"),
    tool_mode: Optional[str] = typer.Option(
        None,
        "--tool-mode",
        help="Tool calling mode: auto, native or text",
        callback=validate_tool_mode,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Append JSON-lines events to this file"),
):
    """
    Chat with a local model that can run shell scripts.

    With no PROMPT an interactive session starts; otherwise all PROMPT words
    are joined into a single prompt and the answer is printed.
    """
    try:
        dispatcher = build_dispatcher(model, api_base, tool_mode, max_tokens, verbose, log_file)
    except Exception as e:
        report_error(e)
        raise typer.Exit(code=1)

    config = dispatcher.config
    session = ConversationSession(
        dispatcher,
        system_prompt=SHELL_ASSISTANT_PROMPT,
        max_output_tokens=config.max_tokens,
    )

    with dispatcher:
        try:
            if prompt:
                single_prompt = " ".join(prompt)
                console.print(f"\n[bold]Prompt:[/bold] {escape(single_prompt)}\n")
                console.print(f"Response: {escape(session.send(single_prompt))}")
            else:
                run_repl(session, config.model)
        except Exception as e:
            report_error(e)
            raise typer.Exit(code=1)


def run_repl(session: ConversationSession, model: str) -> None:
    """Read prompts until exit, running each as a turn of the same conversation."""
    console.print("\n[bold]=== toolcall-llm Interactive Mode ===[/bold]")
    console.print(f"Model: {escape(model)}")
    console.print("Type 'exit', 'quit', or press Ctrl+D to quit")
    console.print("Press Ctrl+C to cancel a running turn")
    console.print("Type 'clear' to clear the screen")
    console.print("Type 'help' for usage information\n")

    while True:
        try:
            user_input = console.input("> ")
        except EOFError:
            break
        except KeyboardInterrupt:
            break

        command = user_input.strip()
        if not command:
            continue
        if command.lower() in EXIT_COMMANDS:
            break
        if command.lower() == "clear":
            console.clear()
            console.print("[bold]=== toolcall-llm Interactive Mode ===[/bold]\n")
            continue
        if command.lower() == "reset":
            session.reset()
            console.print("[dim]Conversation cleared.[/dim]")
            continue
        if command.lower() == "help":
            console.print(REPL_HELP, markup=False)
            continue

        reply = run_cancellable_turn(session, command)
        if reply is not None:
            console.print(f"\n{escape(reply)}\n")


def run_cancellable_turn(session: ConversationSession, user_text: str) -> Optional[str]:
    """
    Run a turn on its own worker thread so Ctrl+C cancels the turn, not the session.

    A cancelled turn may still be waiting on the model; it is left to finish
    on its own thread and the next turn does not wait for it.

    Returns:
        The reply, or None if the turn was cancelled
    """
    cancel = CancellationToken()
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="toolcall-turn")
    future = executor.submit(session.send, user_text, cancel)
    try:
        while True:
            try:
                return future.result(timeout=0.2)
            except FutureTimeoutError:
                continue
    except KeyboardInterrupt:
        cancel.cancel()
        console.print("\n[yellow]Turn cancelled[/yellow]\n")
        return None
    except TurnCancelled:
        console.print("\n[yellow]Turn cancelled[/yellow]\n")
        return None
    finally:
        executor.shutdown(wait=False)


def normalize_help_args(args: List[str]) -> List[str]:
    """Treat "/?" as a request for help."""
    return ["--help" if arg == "/?" else arg for arg in args]


agent_app = typer.Typer(
    help="Chat with a local model that can run shell scripts",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)
agent_app.command()(chat_command)


def main():
    """Entry point for toolcall-agent."""
    agent_app(args=normalize_help_args(sys.argv[1:]))
