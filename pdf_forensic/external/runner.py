"""Subprocess execution of external tools with per-call timeouts."""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from pdf_forensic.utils.exceptions import ToolFailedError, ToolUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class ToolRunner:
    """Runs one tool invocation and returns its standard output."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout

    def run(self, executable: Optional[str], arguments: List[str], tool: Optional[str] = None) -> str:
        """
        Run an executable and capture its output.

        Args:
            executable: Path to the executable, or None when the tool is missing
            arguments: Command-line arguments
            tool: Display name for errors (defaults to the executable name)

        Returns:
            Decoded standard output

        Raises:
            ToolUnavailableError: If no executable was given
            ToolFailedError: On launch failure, timeout or non-zero exit
        """
        if executable is None:
            raise ToolUnavailableError(tool or "unknown")

        tool = tool or Path(executable).name
        command = [executable] + [str(a) for a in arguments]
        logger.debug(f"Running {' '.join(command)}")

        try:
            process = subprocess.run(
                command,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            raise ToolFailedError(tool, f"{tool} timed out after {self.timeout:g} seconds")
        except OSError as e:
            raise ToolFailedError(tool, f"{tool} could not be launched: {e}")

        if process.returncode != 0:
            raise ToolFailedError(
                tool,
                f"{tool} exited with status {process.returncode}",
                returncode=process.returncode,
                stderr=(process.stderr or "").strip(),
            )

        return process.stdout or ""
