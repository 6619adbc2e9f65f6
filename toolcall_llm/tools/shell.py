"""Shell script execution tool."""

import logging
import os
import signal
import subprocess
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from toolcall_llm.tools.registry import ParameterSpec, Scalar, ToolRegistry, ToolSpec

logger = logging.getLogger(__name__)

SHELL_TOOL_NAME = "RunShellScript"

SHELL_TOOL_SPEC = ToolSpec(
    name=SHELL_TOOL_NAME,
    description="Execute a shell script and return its output",
    parameters={
        "script": ParameterSpec(
            type="string",
            required=True,
            description="The shell script code to execute",
        ),
        "description": ParameterSpec(
            type="string",
            description="Brief description of what the script does",
        ),
    },
)

NO_OUTPUT_TEXT = "Script executed successfully with no output"


@dataclass
class CommandResult:
    """Result of a subprocess command."""
    returncode: int
    stdout: str
    stderr: str
    duration_seconds: float


def default_shell() -> str:
    """Shell used when none is configured: PowerShell on Windows, bash elsewhere."""
    return "powershell" if os.name == "nt" else "bash"


def _shell_command(shell: str, script_path: Path) -> List[str]:
    name = Path(shell).stem.lower()
    if name in ("powershell", "pwsh"):
        return [shell, "-NoProfile", "-NonInteractive", "-ExecutionPolicy", "Bypass", "-File", str(script_path)]
    if name == "cmd":
        return [shell, "/c", str(script_path)]
    return [shell, str(script_path)]


def _script_suffix(shell: str) -> str:
    name = Path(shell).stem.lower()
    if name in ("powershell", "pwsh"):
        return ".ps1"
    if name == "cmd":
        return ".bat"
    return ".sh"


def _kill_process_tree(proc: "subprocess.Popen[str]") -> None:
    """Kill the script and everything it started."""
    if os.name == "nt":
        subprocess.run(
            ["taskkill", "/F", "/T", "/PID", str(proc.pid)],
            capture_output=True,
        )
    else:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
    proc.kill()


def run_command(args: List[str], cwd: str, timeout: int) -> CommandResult:
    """
    Run a command in cwd in its own process group, capturing output.

    Raises:
        subprocess.TimeoutExpired: After the whole process group was killed
    """
    start = time.monotonic()
    group_kwargs: Dict[str, Any] = (
        {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
        if os.name == "nt"
        else {"start_new_session": True}
    )
    with subprocess.Popen(
        args,
        cwd=cwd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        **group_kwargs,
    ) as proc:
        try:
            stdout, stderr = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            _kill_process_tree(proc)
            proc.communicate()
            raise
    return CommandResult(
        returncode=proc.returncode,
        stdout=stdout,
        stderr=stderr,
        duration_seconds=time.monotonic() - start,
    )


def run_shell_script(
    script: str,
    description: Optional[str] = None,
    timeout: int = 60,
    shell: Optional[str] = None,
) -> str:
    """
    Execute a script in a fresh subprocess inside a throwaway directory.

    Every call gets its own temporary working directory and interpreter
    process, so nothing a script does leaks into the next call.

    Args:
        script: Script source
        description: What the script does, for progress output
        timeout: Seconds before the process is killed
        shell: Shell executable (defaults to default_shell())

    Returns:
        Script output, or a text describing why it failed
    """
    shell = shell or default_shell()
    if description:
        logger.info(f"Executing: {description}")
    else:
        logger.info(f"Executing {shell} script...")

    try:
        with tempfile.TemporaryDirectory(prefix="toolcall-shell-") as work_dir:
            script_path = Path(work_dir) / f"script{_script_suffix(shell)}"
            script_path.write_text(script)
            result = run_command(_shell_command(shell, script_path), cwd=work_dir, timeout=timeout)
    except subprocess.TimeoutExpired:
        error = f"Script execution timed out after {timeout}s"
        logger.warning(error)
        return error
    except OSError as e:
        error = f"Shell execution error: {e}"
        logger.error(error)
        return error

    logger.debug(f"Script finished in {result.duration_seconds:.2f}s with code {result.returncode}")

    if result.returncode != 0:
        errors = result.stderr.strip() or result.stdout.strip() or f"exit code {result.returncode}"
        return f"Script execution failed:\n{errors}"

    output = result.stdout.strip()
    return output if output else NO_OUTPUT_TEXT


def register_shell_tool(registry: ToolRegistry, timeout: int = 60, shell: Optional[str] = None) -> None:
    """Register RunShellScript bound to the given timeout and shell."""

    def handler(arguments: Dict[str, Scalar]) -> str:
        description = arguments.get("description")
        return run_shell_script(
            script=str(arguments.get("script", "")),
            description=str(description) if description else None,
            timeout=timeout,
            shell=shell,
        )

    registry.register(SHELL_TOOL_SPEC, handler)
