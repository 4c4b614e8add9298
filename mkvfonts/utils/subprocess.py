"""
Subprocess execution utilities with consistent error handling.
"""

import subprocess

from mkvfonts.utils.logging import logger


class ToolError(RuntimeError):
    """An external tool could not be launched or exited with a nonzero code."""

    def __init__(self, cmd: list[str], message: str, returncode: int | None = None):
        super().__init__(message)
        self.cmd = cmd
        self.returncode = returncode


def run_command(
    cmd: list[str],
    description: str | None = None,
) -> subprocess.CompletedProcess:
    """
    Run a subprocess command with consistent logging and error handling.

    The call blocks until the process exits.

    Args:
        cmd: Command and arguments to run
        description: Optional description for logging

    Returns:
        CompletedProcess result

    Raises:
        ToolError: If the command cannot be started or exits nonzero
    """
    if description:
        logger.info(description)
    logger.debug(f"Running: {' '.join(cmd)}")

    try:
        result = subprocess.run(
            cmd, check=True, capture_output=True, text=True, encoding="utf-8"
        )
    except FileNotFoundError as e:
        logger.error(f"Command not found: {cmd[0]}")
        raise ToolError(cmd, f"Command not found: {cmd[0]}") from e
    except subprocess.CalledProcessError as e:
        logger.error(f"Command failed: {' '.join(cmd)}")
        if e.stderr:
            logger.error(e.stderr)
        elif e.stdout:
            # mkvtoolnix reports errors on stdout
            logger.error(e.stdout)
        raise ToolError(
            cmd, f"{cmd[0]} exited with code {e.returncode}", e.returncode
        ) from e

    if result.stdout:
        logger.debug(result.stdout)
    return result
