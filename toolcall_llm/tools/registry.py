"""Tool schemas and the registry that owns tool handlers."""

import logging
from typing import Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from toolcall_llm.errors import ToolArgumentError, UnknownToolError

logger = logging.getLogger(__name__)

Scalar = Union[str, float, bool]
ToolHandler = Callable[[Dict[str, Scalar]], str]


class ParameterSpec(BaseModel):
    """One named tool parameter."""

    model_config = ConfigDict(frozen=True)

    type: Literal["string", "number", "boolean"] = Field("string", description="JSON type of the value")
    required: bool = Field(False, description="Whether the model must supply this parameter")
    description: str = Field("", description="What the parameter means, shown to the model")
    enum: Optional[List[str]] = Field(None, description="Allowed values, if restricted")

    def to_schema(self) -> Dict[str, Any]:
        """Render as a JSON-Schema property."""
        schema: Dict[str, Any] = {"type": self.type, "description": self.description}
        if self.enum:
            schema["enum"] = list(self.enum)
        return schema


class ToolSpec(BaseModel):
    """Name, description and ordered parameters of a tool."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Unique tool name the model calls", min_length=1)
    description: str = Field(..., description="What the tool does, shown to the model")
    parameters: Dict[str, ParameterSpec] = Field(default_factory=dict, description="Parameters in declaration order")

    @property
    def required(self) -> List[str]:
        return [name for name, param in self.parameters.items() if param.required]

    def to_manifest(self) -> Dict[str, Any]:
        """Render as a native function-calling declaration."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": {
                        name: param.to_schema() for name, param in self.parameters.items()
                    },
                    "required": self.required,
                },
            },
        }


class ToolRegistry:
    """Maps tool names to their schema and handler."""

    def __init__(self) -> None:
        self._specs: Dict[str, ToolSpec] = {}
        self._handlers: Dict[str, ToolHandler] = {}

    def register(self, spec: ToolSpec, handler: ToolHandler) -> None:
        """
        Register a tool. A second registration under the same name replaces the first.

        Args:
            spec: Tool schema
            handler: Callable receiving the typed argument map
        """
        if spec.name in self._specs:
            logger.warning(f"Tool '{spec.name}' registered twice, replacing previous handler")
            # Re-insert so registration order reflects the latest write
            del self._specs[spec.name]
        self._specs[spec.name] = spec
        self._handlers[spec.name] = handler

    def resolve(self, name: str) -> Optional[ToolHandler]:
        return self._handlers.get(name)

    def spec(self, name: str) -> Optional[ToolSpec]:
        return self._specs.get(name)

    def schemas(self) -> List[ToolSpec]:
        return list(self._specs.values())

    def manifest(self) -> List[Dict[str, Any]]:
        return [spec.to_manifest() for spec in self._specs.values()]

    def names(self) -> List[str]:
        return list(self._specs)

    def invoke(self, name: str, arguments: Dict[str, Scalar]) -> str:
        """
        Validate arguments against the tool schema and run its handler.

        Args:
            name: Registered tool name
            arguments: Typed argument map

        Returns:
            Handler output text

        Raises:
            UnknownToolError: If no tool is registered under name
            ToolArgumentError: If required parameters are missing or a value is not allowed
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownToolError(name)

        spec = self._specs[name]
        missing = [param for param in spec.required if arguments.get(param) in (None, "")]
        if missing:
            raise ToolArgumentError(
                f"Missing required parameters for {name}: {', '.join(missing)}"
            )

        for param_name, param in spec.parameters.items():
            value = arguments.get(param_name)
            if param.enum and value is not None and str(value) not in param.enum:
                raise ToolArgumentError(
                    f"Invalid value for {param_name}: '{value}'. Expected one of: {', '.join(param.enum)}"
                )

        logger.debug(f"Invoking tool {name} with {arguments}")
        return handler(arguments)

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __len__(self) -> int:
        return len(self._specs)


def create_default_registry(shell_timeout: int = 60, shell: Optional[str] = None) -> ToolRegistry:
    """
    Build the registry holding the built-in tools.

    Args:
        shell_timeout: Seconds a shell script may run
        shell: Shell executable override (defaults to the platform shell)

    Returns:
        ToolRegistry with the shell, SMS and weather tools
    """
    from toolcall_llm.tools.shell import register_shell_tool
    from toolcall_llm.tools.sms import register_sms_tool
    from toolcall_llm.tools.weather import register_weather_tools

    registry = ToolRegistry()
    register_shell_tool(registry, timeout=shell_timeout, shell=shell)
    register_sms_tool(registry)
    register_weather_tools(registry)
    return registry
