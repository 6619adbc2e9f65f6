from types import SimpleNamespace

import pytest

from toolcall_llm.errors import ModelTransportError
from toolcall_llm.model import (
    CompletionOptions,
    FinishReason,
    LiteLLMClient,
    StreamChunk,
    collect_stream,
    create_client,
)


def fake_completion(message, finish_reason="stop"):
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason=finish_reason)])


def fake_tool_call(call_id, name, arguments):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


@pytest.fixture
def client():
    return LiteLLMClient(model="ollama_chat/qwen2.5-coder:7b", api_base="http://localhost:11434")


def test_finish_reason_parsing():
    assert FinishReason.parse(None) == FinishReason.STOP
    assert FinishReason.parse("TOOL_CALLS") == FinishReason.TOOL_CALLS
    assert FinishReason.parse("length") == FinishReason.LENGTH
    assert FinishReason.parse("something_new") == FinishReason.UNKNOWN


def test_completion_options_to_kwargs():
    options = CompletionOptions(max_output_tokens=100, tools=[{"type": "function"}], timeout=30)

    assert options.to_kwargs() == {
        "temperature": 0.1,
        "top_p": 0.9,
        "max_tokens": 100,
        "tools": [{"type": "function"}],
        "tool_choice": "auto",
        "timeout": 30,
    }
    assert "tools" not in CompletionOptions().to_kwargs()


def test_complete_passes_endpoint_and_normalizes_tool_calls(client, monkeypatch):
    captured = {}

    def completion(**kwargs):
        captured.update(kwargs)
        message = SimpleNamespace(
            content=None,
            tool_calls=[fake_tool_call(None, "GetCurrentWeather", {"location": "Paris"})],
        )
        return fake_completion(message, finish_reason="stop")

    monkeypatch.setattr(client._litellm, "completion", completion)

    response = client.complete([{"role": "user", "content": "weather?"}])

    assert captured["model"] == "ollama_chat/qwen2.5-coder:7b"
    assert captured["api_base"] == "http://localhost:11434"
    assert response.text == ""
    assert response.finish_reason == FinishReason.TOOL_CALLS
    assert response.tool_calls[0].id == "call_0"
    assert response.tool_calls[0].arguments == '{"location": "Paris"}'


def test_complete_wraps_transport_failures(client, monkeypatch):
    def completion(**kwargs):
        raise ConnectionError("connection refused")

    monkeypatch.setattr(client._litellm, "completion", completion)

    with pytest.raises(ModelTransportError) as excinfo:
        client.complete([{"role": "user", "content": "hi"}])

    assert "connection refused" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_stream_yields_text_and_tool_fragments(client, monkeypatch):
    def part(content=None, tool_calls=None, finish_reason=None):
        delta = SimpleNamespace(content=content, tool_calls=tool_calls)
        return SimpleNamespace(choices=[SimpleNamespace(delta=delta, finish_reason=finish_reason)])

    call = SimpleNamespace(index=0, id="c1", function=SimpleNamespace(name="SendSms", arguments='{"message": "hi"'))
    rest = SimpleNamespace(index=0, id=None, function=SimpleNamespace(name=None, arguments=', "phoneNumber": "1"}'))
    parts = [part(content="On it."), part(tool_calls=[call]), part(tool_calls=[rest]), part(finish_reason="tool_calls")]
    monkeypatch.setattr(client._litellm, "completion", lambda **kwargs: iter(parts))

    chunks = list(client.stream([{"role": "user", "content": "text"}]))

    assert chunks[0] == StreamChunk(text="On it.")
    assert chunks[1].function_name == "SendSms"
    assert chunks[-1].finish_reason == FinishReason.TOOL_CALLS
    response = collect_stream(chunks)
    assert response.tool_calls[0].arguments == '{"message": "hi", "phoneNumber": "1"}'


def test_create_client_requires_model():
    with pytest.raises(ValueError):
        create_client("")
