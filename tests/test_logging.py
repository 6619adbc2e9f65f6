import io
import json

from toolcall_llm.logging import ConsoleLogger, FileLogger, LogLevel, MultiLogger, RecordingLogger


def test_console_logger_formats_turn_and_tool_events():
    stream = io.StringIO()
    logger = ConsoleLogger(stream=stream)

    logger.info("turn.started", "list files", {"mode": "native"})
    logger.info("tool.call", "Calling RunShellScript", {"arguments": {"script": "ls"}})
    logger.debug("turn.state", "awaiting_model")

    lines = stream.getvalue().splitlines()
    assert lines == [
        "💬 list files [native]",
        '    🔧 Calling RunShellScript (arguments={"script": "ls"})',
    ]


def test_console_logger_cuts_long_values():
    stream = io.StringIO()
    logger = ConsoleLogger(stream=stream, min_level=LogLevel.DEBUG)

    logger.warning("tool.error", "failed", {"output": "x" * 200})

    line = stream.getvalue().strip()
    assert line.endswith("...)")
    assert len(line) < 100


def test_file_logger_writes_json_lines(tmp_path):
    path = tmp_path / "logs" / "events.jsonl"
    logger = FileLogger(path)

    logger.info("tool.result", "SendSms finished", {"output": "SMS sent"})
    logger.debug("turn.state", "ignored")

    entries = [json.loads(line) for line in path.read_text().splitlines()]
    assert len(entries) == 1
    assert entries[0]["event"] == "tool.result"
    assert entries[0]["data"] == {"output": "SMS sent"}


def test_multi_logger_fans_out():
    first, second = RecordingLogger(), RecordingLogger()

    MultiLogger([first, second]).error("turn.fatal", "boom")

    assert first.names() == ["turn.fatal"]
    assert second.names() == ["turn.fatal"]
