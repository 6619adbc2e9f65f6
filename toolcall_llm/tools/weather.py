"""Location and weather stubs."""

from typing import Dict

from toolcall_llm.tools.registry import ParameterSpec, Scalar, ToolRegistry, ToolSpec

LOCATION_TOOL_SPEC = ToolSpec(
    name="GetCurrentLocation",
    description="Get the user's current location",
)

WEATHER_TOOL_SPEC = ToolSpec(
    name="GetCurrentWeather",
    description="Get the current weather in a given location",
    parameters={
        "location": ParameterSpec(
            type="string",
            required=True,
            description="The city and state, e.g. Boston, MA",
        ),
        "unit": ParameterSpec(
            type="string",
            enum=["celsius", "fahrenheit"],
            description="The temperature unit to use. Infer this from the specified location.",
        ),
    },
)


def get_current_location() -> str:
    return "San Francisco"


def get_current_weather(location: str, unit: str = "celsius") -> str:
    return f"31 {unit}"


def register_weather_tools(registry: ToolRegistry) -> None:
    """Register GetCurrentLocation and GetCurrentWeather."""
    registry.register(LOCATION_TOOL_SPEC, lambda arguments: get_current_location())

    def handle_weather(arguments: Dict[str, Scalar]) -> str:
        unit = arguments.get("unit") or "celsius"
        return get_current_weather(str(arguments["location"]), str(unit))

    registry.register(WEATHER_TOOL_SPEC, handle_weather)
