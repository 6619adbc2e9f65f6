"""Tool registry and built-in tools."""

from .registry import (
    ParameterSpec,
    ToolSpec,
    ToolRegistry,
    ToolHandler,
    Scalar,
    create_default_registry,
)
from .shell import SHELL_TOOL_SPEC, run_shell_script, default_shell
from .sms import SMS_TOOL_SPEC, send_sms
from .weather import (
    LOCATION_TOOL_SPEC,
    WEATHER_TOOL_SPEC,
    get_current_location,
    get_current_weather,
)

__all__ = [
    "ParameterSpec",
    "ToolSpec",
    "ToolRegistry",
    "ToolHandler",
    "Scalar",
    "create_default_registry",
    "SHELL_TOOL_SPEC",
    "run_shell_script",
    "default_shell",
    "SMS_TOOL_SPEC",
    "send_sms",
    "LOCATION_TOOL_SPEC",
    "WEATHER_TOOL_SPEC",
    "get_current_location",
    "get_current_weather",
]
