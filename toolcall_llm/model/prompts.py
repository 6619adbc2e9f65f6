"""Prompt templates and the textual tool catalogue."""

from typing import List

from toolcall_llm.tools.registry import ToolSpec


SHELL_ASSISTANT_PROMPT = (
    "You are a helpful shell assistant. When asked to perform system tasks or retrieve "
    "system information, use the RunShellScript tool to execute shell commands. "
    "Always provide a clear description of what the script does. "
    "Be concise in your responses."
)

SMS_SYSTEM_PROMPT = (
    "You are a help desk assistant with tools. When you need to call a tool, output ONLY a JSON "
    "object with the tool name and parameters.\n"
    'Example: {"tool": "SendSms", "message": "your message", "phoneNumber": "123-456-7890"}\n'
    "Do not include any other text, markdown formatting, or code fences - just the raw JSON object."
)

STREAM_SMS_SYSTEM_PROMPT = (
    "You are help desk assistant with some tools. "
    "Output the tool calls only in response to the user prompt"
)

DEFAULT_SMS_MESSAGE = "'I'd like to order 10 'Clean Code' books' to 666-111-222"
DEFAULT_WEATHER_MESSAGE = "What's the weather like today?"

CATALOGUE_HEADER = "You have access to the following tools"

NO_RESPONSE_TEXT = "No response from model."


def create_tool_catalogue(specs: List[ToolSpec]) -> str:
    """
    Render tool schemas as text for models without native tool calling.

    Args:
        specs: Tool schemas in registration order

    Returns:
        Catalogue text with the JSON call format the model must answer in
    """
    lines = [f"{CATALOGUE_HEADER}:", ""]
    for spec in specs:
        lines.append(f"- {spec.name}: {spec.description}")
        for param_name, param in spec.parameters.items():
            required = "required" if param.required else "optional"
            line = f"    - {param_name} ({param.type}, {required}): {param.description}"
            if param.enum:
                line += f" One of: {', '.join(param.enum)}."
            lines.append(line)
    lines.extend([
        "",
        "To use a tool, respond with ONLY a JSON object in this format:",
        '{"tool": "ToolName", "parameters": {"param1": "value1"}}',
        "",
        "If no tool is needed, answer normally in plain text.",
    ])
    return "\n".join(lines)


def with_tool_catalogue(system_prompt: str, specs: List[ToolSpec]) -> str:
    """Append the tool catalogue to a system prompt unless it is already there."""
    if CATALOGUE_HEADER in system_prompt:
        return system_prompt
    if not system_prompt.strip():
        return create_tool_catalogue(specs)
    return f"{system_prompt.rstrip()}\n\n{create_tool_catalogue(specs)}"


def create_tool_result_prompt(output_text: str) -> str:
    """Follow-up user message for a tool call parsed out of free text."""
    return f"Tool execution result:\n{output_text}\n\nPlease provide a summary of the results."

