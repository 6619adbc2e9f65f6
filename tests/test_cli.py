import _thread
import json
import threading
import time

import pytest
from typer.testing import CliRunner

from toolcall_llm.cli import app
from toolcall_llm.cli.chat import agent_app, normalize_help_args, run_cancellable_turn
from toolcall_llm.model import FinishReason, StreamChunk

from helpers import FakeModelClient, native_call, text_response, tool_response

runner = CliRunner()


@pytest.fixture
def fake_client(monkeypatch):
    """Route every CLI model call to a scripted client."""
    client = FakeModelClient([])

    def create_client(model, api_base=None, api_key=None):
        return client

    monkeypatch.setattr("toolcall_llm.cli.common.create_client", create_client)
    return client


def test_agent_help_options():
    for flag in ("--help", "-h"):
        result = runner.invoke(agent_app, [flag])
        assert result.exit_code == 0
        assert "--max-tokens" in result.output


def test_slash_question_mark_means_help():
    assert normalize_help_args(["/?"]) == ["--help"]
    assert normalize_help_args(["list", "files"]) == ["list", "files"]


@pytest.mark.parametrize("value", ["0", "abc"])
def test_invalid_max_tokens_is_rejected(fake_client, value):
    result = runner.invoke(agent_app, ["--max-tokens", value, "hello"])

    assert result.exit_code != 0
    assert fake_client.calls == []


def test_invalid_tool_mode_is_rejected(fake_client):
    result = runner.invoke(agent_app, ["--tool-mode", "telepathy", "hello"])

    assert result.exit_code != 0


def test_one_shot_prompt_joins_words(fake_client):
    fake_client.responses.append(text_response("Hello back!"))

    result = runner.invoke(agent_app, ["--tool-mode", "text", "hi", "there"])

    assert result.exit_code == 0
    assert "Prompt: hi there" in result.output
    assert "Response: Hello back!" in result.output
    messages = fake_client.calls[0]["messages"]
    assert messages[-1] == {"role": "user", "content": "hi there"}
    assert "RunShellScript" in messages[0]["content"]


def test_one_shot_prompt_honours_max_tokens(fake_client):
    fake_client.responses.append(text_response("ok"))

    result = runner.invoke(agent_app, ["--tool-mode", "native", "--max-tokens", "512", "hi"])

    assert result.exit_code == 0
    assert fake_client.calls[0]["options"].max_output_tokens == 512


def test_repl_help_and_exit(fake_client):
    result = runner.invoke(agent_app, ["--tool-mode", "native"], input="help\nexit\n")

    assert result.exit_code == 0
    assert "=== toolcall-llm Interactive Mode ===" in result.output
    assert "Available commands:" in result.output
    assert fake_client.calls == []


def test_repl_runs_turns_in_one_conversation(fake_client):
    fake_client.responses.extend([text_response("Nice to meet you."), text_response("You said hello.")])

    result = runner.invoke(agent_app, ["--tool-mode", "native"], input="hello\nwhat did I say?\nquit\n")

    assert result.exit_code == 0
    assert "Nice to meet you." in result.output
    assert "You said hello." in result.output
    roles = [m["role"] for m in fake_client.calls[1]["messages"]]
    assert roles == ["system", "user", "assistant", "user"]


def test_repl_reset_clears_history(fake_client):
    fake_client.responses.extend([text_response("one"), text_response("two")])

    result = runner.invoke(agent_app, ["--tool-mode", "native"], input="first\nreset\nsecond\nexit\n")

    assert result.exit_code == 0
    assert "Conversation cleared." in result.output
    assert [m["role"] for m in fake_client.calls[1]["messages"]] == ["system", "user"]


def test_repl_ends_on_eof(fake_client):
    result = runner.invoke(agent_app, ["--tool-mode", "native"], input="")

    assert result.exit_code == 0


def test_setup_error_prints_inner_exception(monkeypatch):
    def create_client(model, api_base=None, api_key=None):
        try:
            raise ValueError("inner")
        except ValueError as e:
            raise RuntimeError("outer") from e

    monkeypatch.setattr("toolcall_llm.cli.common.create_client", create_client)

    result = runner.invoke(agent_app, ["hello"])

    assert result.exit_code == 1
    assert "Error: outer" in result.output
    assert "Inner Exception: inner" in result.output


def test_chat_subcommand_and_event_log(fake_client, tmp_path):
    fake_client.responses.append(text_response("done"))
    log_file = tmp_path / "events.jsonl"

    result = runner.invoke(app, ["chat", "--tool-mode", "native", "--log-file", str(log_file), "hi"])

    assert result.exit_code == 0
    events = [json.loads(line)["event"] for line in log_file.read_text().splitlines()]
    assert "turn.started" in events
    assert "turn.completed" in events


def test_tools_lists_builtin_tools():
    result = runner.invoke(app, ["tools"])

    assert result.exit_code == 0
    assert "Registered Tools" in result.output
    assert "SendSms" in result.output


def test_tools_manifest_is_json():
    result = runner.invoke(app, ["tools", "--manifest"])

    assert result.exit_code == 0
    manifest = json.loads(result.output)
    assert [tool["function"]["name"] for tool in manifest] == [
        "RunShellScript",
        "SendSms",
        "GetCurrentLocation",
        "GetCurrentWeather",
    ]


def test_unknown_scenario(fake_client):
    result = runner.invoke(app, ["scenario", "bogus"])

    assert result.exit_code == 1
    assert "Unknown scenario: bogus" in result.output
    assert "Available scenarios: sms, weather, stream" in result.output


def test_sms_scenario_prints_tool_result(fake_client):
    fake_client.responses.append(tool_response(
        native_call("SendSms", {"message": "order", "phoneNumber": "666-111-222"}, call_id="call_9"),
    ))

    result = runner.invoke(app, ["scenario", "sms", "--tool-mode", "native"])

    assert result.exit_code == 0
    assert "=== Chat Completion Result ===" in result.output
    assert "Tool Call (Structured):" in result.output
    assert "ID: call_9" in result.output
    assert "SMS sent to 666-111-222: 'order'" in result.output


def test_weather_scenario_prints_conversation(fake_client):
    fake_client.responses.extend([
        tool_response(native_call("GetCurrentLocation", call_id="c1")),
        tool_response(native_call("GetCurrentWeather", {"location": "San Francisco"}, call_id="c2")),
        text_response("It is 31 celsius."),
    ])

    result = runner.invoke(app, ["scenario", "weather", "--tool-mode", "native"])

    assert result.exit_code == 0
    assert "User: What's the weather like today?" in result.output
    assert "Assistant: It is 31 celsius." in result.output


def test_stream_scenario_prints_fragments(fake_client):
    fake_client.chunks.extend([
        StreamChunk(text="Sending"),
        StreamChunk(tool_call_index=0, tool_call_id="c1", function_name="SendSms", arguments_delta='{"message": "hi"}'),
        StreamChunk(finish_reason=FinishReason.TOOL_CALLS),
    ])

    result = runner.invoke(app, ["scenario", "stream", "--tool-mode", "native"])

    assert result.exit_code == 0
    assert "[ASSISTANT]:" in result.output
    assert "Sending" in result.output
    assert "[TOOL CALL DETECTED]: SendSms" in result.output
    assert 'Arguments: {"message": "hi"}' in result.output


def test_slash_question_mark_works_for_subcommands(monkeypatch, capsys):
    from toolcall_llm.cli import main

    monkeypatch.setattr("sys.argv", ["toolcall-llm", "chat", "/?"])

    with pytest.raises(SystemExit) as excinfo:
        main()

    assert excinfo.value.code == 0
    assert "--max-tokens" in capsys.readouterr().out


class _StuckSession:
    """First turn ignores cancellation and keeps running; later turns answer at once."""

    def __init__(self):
        self.release = threading.Event()
        self.calls = 0

    def send(self, user_text, cancel=None):
        self.calls += 1
        if self.calls == 1:
            self.release.wait(10)
            return "too late"
        return f"echo: {user_text}"


def test_cancelled_turn_does_not_block_the_next_one():
    session = _StuckSession()
    threading.Timer(0.3, _thread.interrupt_main).start()

    try:
        assert run_cancellable_turn(session, "slow") is None

        started = time.monotonic()
        reply = run_cancellable_turn(session, "quick")
        elapsed = time.monotonic() - started
    finally:
        session.release.set()

    assert reply == "echo: quick"
    assert elapsed < 2
