"""Scenario command for the SMS and weather demonstrations."""

from typing import List, Optional

import typer
from rich.markup import escape

from toolcall_llm.agent import (
    SCENARIOS,
    AssistantMessage,
    ChatOutcome,
    Message,
    ToolCallCompleted,
    ToolCallSource,
    UserMessage,
    run_sms_scenario,
    run_weather_scenario,
    stream_sms_scenario,
)
from toolcall_llm.cli.common import (
    build_dispatcher,
    console,
    report_error,
    validate_max_tokens,
    validate_tool_mode,
)


def scenario_command(
    name: str = typer.Argument("sms", help=f"Scenario to run: {', '.join(SCENARIOS)}"),
    message: Optional[str] = typer.Option(None, "--message", help="User message (defaults per scenario)"),
    max_tokens: Optional[int] = typer.Option(
        None,
        "--max-tokens",
        help="Maximum output tokens per model call",
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
    """Run a canned tool-calling scenario."""
    name = name.lower()
    if name not in SCENARIOS:
        console.print(f"[red]Unknown scenario: {escape(name)}[/red]")
        console.print(f"Available scenarios: {', '.join(SCENARIOS)}")
        raise typer.Exit(code=1)

    try:
        dispatcher = build_dispatcher(model, api_base, tool_mode, max_tokens, verbose, log_file)
        with dispatcher:
            if verbose:
                console.print(f"Scenario: {name}")
                console.print(f"Model: {escape(dispatcher.config.model)}")

            if name == "sms":
                display_chat_outcome(run_sms_scenario(dispatcher, message, max_tokens))
            elif name == "weather":
                display_conversation(run_weather_scenario(dispatcher, message, max_tokens))
            else:
                display_stream(dispatcher, message, max_tokens)
    except Exception as e:
        report_error(e)
        raise typer.Exit(code=1)


def display_chat_outcome(outcome: ChatOutcome) -> None:
    console.print("[bold]=== Chat Completion Result ===[/bold]\n")

    if outcome.thoughts:
        console.print("💭 Thinking:")
        console.print("   " + escape(outcome.thoughts).replace("\n", "\n   ") + "\n")

    if outcome.content:
        console.print("📝 Content:")
        console.print(f"   {escape(outcome.content)}\n")

    if isinstance(outcome, ToolCallCompleted):
        request = outcome.request
        kind = "Structured" if request.source == ToolCallSource.NATIVE else "Parsed from content"
        console.print(f"🔧 Tool Call ({kind}):")
        console.print(f"   Function: {escape(request.function_name)}")
        console.print(f"   Arguments: {escape(request.raw_arguments)}")
        if request.id:
            console.print(f"   ID: {escape(request.id)}")
        console.print()

        console.print("✅ Tool Call Result:")
        console.print(f"   {escape(outcome.result.output_text)}\n")


def display_conversation(messages: List[Message]) -> None:
    console.print("[bold]=== Weather Scenario Result ===[/bold]")
    for message in messages:
        if isinstance(message, UserMessage):
            console.print(f"User: {escape(message.text)}")
        elif isinstance(message, AssistantMessage):
            console.print(f"Assistant: {escape(message.text)}")


def display_stream(dispatcher, message: Optional[str], max_tokens: Optional[int]) -> None:
    kwargs = {"max_output_tokens": max_tokens} if max_tokens else {}
    chunks = stream_sms_scenario(dispatcher.client, dispatcher.registry, message, **kwargs)

    console.print("[ASSISTANT]: ", end="", markup=False)
    for chunk in chunks:
        if chunk.text:
            console.print(chunk.text, end="", markup=False, highlight=False)
        if chunk.has_tool_call:
            if chunk.function_name:
                console.print(f"\n[TOOL CALL DETECTED]: {chunk.function_name}", markup=False)
            if chunk.arguments_delta:
                console.print(f"Arguments: {chunk.arguments_delta}", markup=False)
    console.print()
