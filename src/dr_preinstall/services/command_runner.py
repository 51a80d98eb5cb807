"""Subprocess execution service for dr-preinstall."""

import shutil
import subprocess
from typing import List, Optional

from dr_preinstall.errors import InstallerError


class CommandRunner:
    """Runs external commands with consistent error handling."""

    def __init__(self, logger):
        self.logger = logger

    def is_available(self, tool: str) -> bool:
        return shutil.which(tool) is not None

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        input_text: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        try:
            result = subprocess.run(
                cmd,
                text=True,
                input=input_text,
                capture_output=capture_output,
            )
        except FileNotFoundError as exc:
            raise InstallerError(
                f"Required command not found: {cmd[0]}. Please install it and try again."
            ) from exc
        except OSError as exc:
            raise InstallerError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").strip() if capture_output else ""
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"

        if check:
            raise InstallerError(message)

        self.logger.warning(message)
        return result
