"""Subprocess execution with rich error context.

Both the git and the forge integrations shell out through this module so that
every failure surfaces as a RuntimeError naming the operation, the command and
whatever the tool printed.
"""

import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path


def describe_subprocess_failure(
    cmd: Sequence[str],
    operation_context: str,
    returncode: int | None,
    stdout: str | bytes | None,
    stderr: str | bytes | None,
) -> str:
    """Build the multi-line error message for a failed command."""
    cmd_str = " ".join(str(arg) for arg in cmd)
    error_msg = f"Failed to {operation_context}"
    error_msg += f"\nCommand: {cmd_str}"
    if returncode is not None:
        error_msg += f"\nExit code: {returncode}"

    for name, stream in (("stdout", stdout), ("stderr", stderr)):
        if not stream:
            continue
        text = stream if isinstance(stream, str) else stream.decode("utf-8", errors="replace")
        stripped = text.strip()
        if stripped:
            error_msg += f"\n{name}: {stripped}"

    return error_msg


def run_subprocess_with_context(
    cmd: Sequence[str],
    operation_context: str,
    cwd: Path | None = None,
    *,
    check: bool = True,
    timeout: float | None = None,
    input_text: str | None = None,
    env: Mapping[str, str] | None = None,
) -> subprocess.CompletedProcess[str]:
    """Execute subprocess with enriched error reporting for the integration layer.

    Wraps subprocess.run() to catch CalledProcessError and TimeoutExpired and
    re-raise them as RuntimeError with operation context, output and command
    details.

    Args:
        cmd: Command and arguments to execute
        operation_context: Human-readable description of operation
        cwd: Working directory for command execution
        check: Whether to raise on non-zero exit (default: True)
        timeout: Seconds before the command is killed (None waits forever)
        input_text: Text written to the command's stdin
        env: Full environment for the child process (None inherits ours)

    Returns:
        CompletedProcess instance from subprocess.run()

    Raises:
        RuntimeError: If the command fails, times out or is not installed
    """
    try:
        return subprocess.run(
            list(cmd),
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=check,
            timeout=timeout,
            input=input_text,
            env=dict(env) if env is not None else None,
        )

    except subprocess.CalledProcessError as e:
        raise RuntimeError(
            describe_subprocess_failure(cmd, operation_context, e.returncode, e.stdout, e.stderr)
        ) from e

    except subprocess.TimeoutExpired as e:
        error_msg = describe_subprocess_failure(cmd, operation_context, None, e.stdout, e.stderr)
        error_msg += f"\nTimed out after {timeout} seconds"
        raise RuntimeError(error_msg) from e

    except FileNotFoundError as e:
        cmd_str = " ".join(str(arg) for arg in cmd)
        error_msg = f"Command not found while trying to {operation_context}: {cmd[0]}"
        error_msg += f"\nFull command: {cmd_str}"
        raise RuntimeError(error_msg) from e
