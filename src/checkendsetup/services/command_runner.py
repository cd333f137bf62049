"""Subprocess execution service for Checkend Setup."""

import subprocess
from typing import List, Optional

from checkendsetup.errors import SetupError


class CommandRunner:
    """Runs external commands with consistent error handling."""

    def __init__(self, logger, is_root: bool = False, default_timeout: Optional[float] = None):
        self.logger = logger
        self.is_root = is_root
        self.default_timeout = default_timeout

    def build_command(self, cmd: List[str], elevate: bool = False) -> List[str]:
        if elevate and not self.is_root:
            return ["sudo"] + list(cmd)
        return list(cmd)

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        timeout: Optional[float] = None,
        elevate: bool = False,
        input_text: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        full_cmd = self.build_command(cmd, elevate=elevate)
        cmd_str = " ".join(full_cmd)
        self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout

        try:
            result = subprocess.run(
                full_cmd,
                text=True,
                capture_output=capture_output,
                timeout=effective_timeout,
                input=input_text,
            )
        except FileNotFoundError as exc:
            raise SetupError(
                f"Required command not found: {full_cmd[0]}. Please install it and try again."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise SetupError(f"Command timed out after {effective_timeout}s: {cmd_str}") from exc
        except OSError as exc:
            raise SetupError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").strip() if capture_output else ""
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"

        if check:
            raise SetupError(message)

        self.logger.warning(message)
        return result
