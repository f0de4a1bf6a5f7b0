"""
This module provides a robust function for running the external tools.

Every external program (encoder, probe) is started through `run_cmd` with an
argument vector, never through a shell, so file names with spaces, quotes or
shell metacharacters need no escaping.

Children are started in their own session (POSIX) or process group (Windows).
A Ctrl+C typed in the terminal therefore reaches only this process, whose
`ShutdownManager` turns the first one into a stop request while the running
encoder keeps going. When the interrupt does propagate as `KeyboardInterrupt`
(the second Ctrl+C), the child is terminated before the exception continues.
"""

import os
import shlex
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from loguru import logger

CommandPart = Union[str, Path]

# Seconds to wait for a terminated child before killing it.
TERMINATE_TIMEOUT = 10


def display_command(cmd_list: Sequence[CommandPart]) -> str:
    """Returns a copy-pasteable rendering of an argument vector for logs."""
    parts = [str(p) for p in cmd_list]
    if os.name == "nt":
        return subprocess.list2cmdline(parts)
    return shlex.join(parts)


def detached_popen_kwargs() -> Dict[str, Any]:
    """Popen arguments that keep a child out of the terminal's signal group."""
    if os.name == "nt":
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    return {"start_new_session": True}


def _terminate(process: subprocess.Popen, program: str):
    logger.warning(f"Terminating '{program}' (pid {process.pid}).")
    process.terminate()
    try:
        process.wait(timeout=TERMINATE_TIMEOUT)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()


def run_cmd(cmd_parts: Sequence[CommandPart]) -> Optional[subprocess.CompletedProcess]:
    """
    Executes an external command and captures its output.

    Args:
        cmd_parts: The command as a sequence of arguments. Paths are converted
                   to strings.

    Returns:
        A `subprocess.CompletedProcess` with the return code, stdout and stderr,
        or `None` if the command could not be started (executable missing,
        permission denied, empty command).

    Raises:
        KeyboardInterrupt: Re-raised after the child has been terminated.
    """
    cmd_list: List[str] = [str(p) for p in cmd_parts]
    if not cmd_list:
        logger.error("run_cmd received an empty command list.")
        return None

    logger.debug(f"Executing: {display_command(cmd_list)}")

    try:
        process = subprocess.Popen(
            cmd_list,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            shell=False,
            **detached_popen_kwargs(),
        )
    except FileNotFoundError:
        logger.error(
            f"Command not found: '{cmd_list[0]}'. Ensure it's in your system's PATH or configured in config.user.yaml."
        )
        return None
    except PermissionError as e:
        logger.error(f"Permission denied executing '{cmd_list[0]}': {e}")
        return None
    except OSError as e:
        logger.error(f"Could not start '{cmd_list[0]}': {e}")
        return None

    with process:
        try:
            stdout, stderr = process.communicate()
        except KeyboardInterrupt:
            _terminate(process, cmd_list[0])
            raise
    result = subprocess.CompletedProcess(cmd_list, process.returncode, stdout, stderr)

    if result.stdout and len(result.stdout) > 500:
        logger.trace(f"Command stdout (truncated): {result.stdout[:500]}...")
    elif result.stdout:
        logger.trace(f"Command stdout: {result.stdout}")

    # Distinguish between error output and informational output on stderr.
    if result.stderr and result.returncode != 0:
        logger.debug(f"Command stderr (error, rc={result.returncode}): {result.stderr[-2000:]}")
    elif result.stderr:
        logger.trace(f"Command stderr (non-error, rc={result.returncode}): {result.stderr[-2000:]}")

    return result
