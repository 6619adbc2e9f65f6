import logging

import pytest

from toolcall_llm.errors import ToolArgumentError, UnknownToolError
from toolcall_llm.tools import ParameterSpec, ToolRegistry, ToolSpec, create_default_registry


ECHO_SPEC = ToolSpec(
    name="Echo",
    description="Repeat the text",
    parameters={
        "text": ParameterSpec(type="string", required=True, description="What to repeat"),
        "times": ParameterSpec(type="number", description="How often"),
        "mode": ParameterSpec(type="string", enum=["loud", "quiet"], description="Volume"),
    },
)


def echo(arguments):
    return str(arguments["text"]) * int(arguments.get("times", 1))


def test_manifest_renders_function_declaration():
    manifest = ECHO_SPEC.to_manifest()

    assert manifest["type"] == "function"
    function = manifest["function"]
    assert function["name"] == "Echo"
    assert function["parameters"]["type"] == "object"
    assert list(function["parameters"]["properties"]) == ["text", "times", "mode"]
    assert function["parameters"]["properties"]["mode"]["enum"] == ["loud", "quiet"]
    assert function["parameters"]["required"] == ["text"]


def test_register_resolve_and_invoke():
    registry = ToolRegistry()
    registry.register(ECHO_SPEC, echo)

    assert "Echo" in registry
    assert len(registry) == 1
    assert registry.resolve("Echo") is echo
    assert registry.resolve("Missing") is None
    assert registry.invoke("Echo", {"text": "ab", "times": 2.0}) == "abab"


def test_reregistration_replaces_handler_and_warns(caplog):
    registry = ToolRegistry()
    registry.register(ECHO_SPEC, echo)

    with caplog.at_level(logging.WARNING):
        registry.register(ECHO_SPEC, lambda arguments: "replaced")

    assert len(registry) == 1
    assert registry.invoke("Echo", {"text": "x"}) == "replaced"
    assert "registered twice" in caplog.text


def test_invoke_unknown_tool_raises():
    with pytest.raises(UnknownToolError) as excinfo:
        ToolRegistry().invoke("Nope", {})

    assert "Unknown tool 'Nope'" in str(excinfo.value)


def test_invoke_checks_required_parameters():
    registry = ToolRegistry()
    registry.register(ECHO_SPEC, echo)

    with pytest.raises(ToolArgumentError) as excinfo:
        registry.invoke("Echo", {"times": 1.0})

    assert "Missing required parameters for Echo: text" in str(excinfo.value)


def test_invoke_checks_enum_values():
    registry = ToolRegistry()
    registry.register(ECHO_SPEC, echo)

    with pytest.raises(ToolArgumentError):
        registry.invoke("Echo", {"text": "x", "mode": "whisper"})


def test_default_registry_holds_builtin_tools_in_order():
    registry = create_default_registry()

    assert registry.names() == ["RunShellScript", "SendSms", "GetCurrentLocation", "GetCurrentWeather"]
    assert [spec.name for spec in registry.schemas()] == registry.names()
    assert len(registry.manifest()) == 4


def test_builtin_stub_tools():
    registry = create_default_registry()

    assert registry.invoke("SendSms", {"message": "hello", "phoneNumber": "555"}) == "SMS sent to 555: 'hello'"
    assert registry.invoke("GetCurrentLocation", {}) == "San Francisco"
    assert registry.invoke("GetCurrentWeather", {"location": "Boston, MA"}) == "31 celsius"
    assert registry.invoke("GetCurrentWeather", {"location": "Boston, MA", "unit": "fahrenheit"}) == "31 fahrenheit"


def test_send_sms_requires_both_parameters():
    registry = create_default_registry()

    with pytest.raises(ToolArgumentError) as excinfo:
        registry.invoke("SendSms", {"message": "hello"})

    assert "Missing required parameters for SendSms: phoneNumber" in str(excinfo.value)
