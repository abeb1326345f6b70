"""Execution of external binaries with typed results."""

import subprocess

from pydantic import BaseModel

from devcluster.exceptions import ExternalCommandError
from devcluster.logging_config import get_logger

logger = get_logger(__name__)


class CommandResult(BaseModel):
    """Outcome of one external command."""

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def lines(self) -> list[str]:
        """Non-empty stdout lines."""
        return [line.strip() for line in self.stdout.splitlines() if line.strip()]


class CommandRunner:
    """Runs external commands and converts failures into ExternalCommandError."""

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout

    def run(
        self,
        args: list[str],
        check: bool = True,
        timeout: float | None = None,
        input: str | None = None,
    ) -> CommandResult:
        """
        Run a command and capture its output.

        Args:
            args: Command and arguments
            check: Raise ExternalCommandError on a non-zero exit status
            timeout: Seconds before the command is abandoned
            input: Text passed on stdin

        Returns:
            CommandResult describing the execution

        Raises:
            ExternalCommandError: If the binary is missing, times out, or fails with check=True
        """
        command = " ".join(args)
        logger.debug(f"Running: {command}")

        try:
            completed = subprocess.run(
                args,
                capture_output=True,
                text=True,
                input=input,
                timeout=timeout or self.timeout,
            )
        except FileNotFoundError:
            logger.error(f"{args[0]} binary not found in PATH")
            raise ExternalCommandError(
                f"{args[0]} is not installed or not in PATH",
                f"Install {args[0]} and make sure it is on your PATH",
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Command timed out: {command}")
            raise ExternalCommandError(
                f"Command timed out: {command}",
                f"The command did not finish within {timeout or self.timeout} seconds",
            )

        result = CommandResult(
            args=list(args),
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        logger.debug(f"Command finished with return code {result.returncode}: {command}")

        if check and not result.ok:
            logger.error(f"Command failed with return code {result.returncode}: {result.stderr}")
            raise ExternalCommandError(
                f"Command failed: {command}",
                f"Exit status {result.returncode}\n{result.stderr.strip()}",
                result=result,
            )
        return result
