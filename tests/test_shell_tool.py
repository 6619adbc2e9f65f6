import os
import shutil
import time

import pytest

from toolcall_llm.tools import run_shell_script
from toolcall_llm.tools.shell import NO_OUTPUT_TEXT

pytestmark = pytest.mark.skipif(shutil.which("bash") is None, reason="bash not available")


def test_script_output_is_returned():
    assert run_shell_script("echo hello", shell="bash") == "hello"


def test_script_without_output():
    assert run_shell_script("true", shell="bash") == NO_OUTPUT_TEXT


def test_failing_script_reports_errors():
    result = run_shell_script("echo boom >&2; exit 3", shell="bash")

    assert result.startswith("Script execution failed:")
    assert "boom" in result


def test_each_call_runs_in_its_own_directory():
    first_dir = run_shell_script("touch marker.txt; pwd", shell="bash")
    second = run_shell_script("ls; pwd", shell="bash")

    assert "marker.txt" not in second
    assert first_dir not in second
    assert not os.path.exists(first_dir)


def test_state_does_not_leak_between_calls():
    run_shell_script("export LEAKED=yes", shell="bash")

    assert run_shell_script('echo "value=${LEAKED:-unset}"', shell="bash") == "value=unset"


def test_timeout_is_reported_as_text():
    result = run_shell_script("exec sleep 5", timeout=1, shell="bash")

    assert "timed out after 1s" in result


def test_missing_shell_is_reported_as_text():
    result = run_shell_script("echo hi", shell="definitely-not-a-shell-xyz")

    assert result.startswith("Shell execution error:")


def test_timeout_kills_processes_started_by_the_script(tmp_path):
    marker = tmp_path / "late.txt"

    result = run_shell_script(f'sh -c "sleep 2; touch {marker}"', timeout=1, shell="bash")
    time.sleep(2.5)

    assert "timed out after 1s" in result
    assert not marker.exists()
