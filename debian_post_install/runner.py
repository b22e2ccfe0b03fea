"""
Command Execution Helpers
-------------------------

Runs external commands with a bounded number of attempts and a fixed pause
between them. Wrapped commands are expected to be safe to re-run
(``apt-get update``, ``apt-get install``); nothing is rolled back between
attempts.
"""

import os
import subprocess
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from .config import AppConfig
from .errors import ExecutionError
from .ui import logger, print_error, print_warning

# Exit status the shell reports for a command it cannot find
COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a command after all attempts."""

    argv: Tuple[str, ...]
    returncode: int
    attempts: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command(self) -> str:
        return " ".join(self.argv)


class CommandRunner:
    """
    Execute commands, retrying failures up to ``max_attempts`` times.

    Args:
        max_attempts: Total number of attempts per command
        delay: Seconds to sleep between attempts
        env: Extra environment variables for every command
        executor: Callable with the ``subprocess.run`` signature
        sleep: Callable used to wait between attempts
    """

    def __init__(
        self,
        max_attempts: int = AppConfig.MAX_RETRIES,
        delay: float = AppConfig.RETRY_DELAY,
        env: Optional[Dict[str, str]] = None,
        executor: Callable[..., Any] = subprocess.run,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.delay = delay
        self.env = dict(AppConfig.APT_ENV if env is None else env)
        self.executor = executor
        self.sleep = sleep

    def _execute(self, argv: Tuple[str, ...]) -> Tuple[int, str, str]:
        logger.debug(f"Executing: {' '.join(argv)}")
        try:
            proc = self.executor(
                list(argv),
                env={**os.environ, **self.env},
                check=False,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError:
            return COMMAND_NOT_FOUND, "", f"{argv[0]}: command not found"
        except PermissionError as e:
            return 126, "", str(e)
        rc = proc.returncode
        if rc < 0:
            # Killed by signal N: report it the way the shell does
            rc = 128 - rc
        return rc, proc.stdout or "", proc.stderr or ""

    def run(
        self, argv: Sequence[str], attempts: Optional[int] = None
    ) -> CommandResult:
        """
        Run ``argv`` until it exits zero or the attempt budget is spent.

        Args:
            argv: Command and arguments
            attempts: Override of the attempt budget for this call

        Returns:
            CommandResult carrying the last exit code and attempt count
        """
        argv = tuple(argv)
        budget = attempts or self.max_attempts
        cmd_str = " ".join(argv)
        tries = 0

        while True:
            rc, out, err = self._execute(argv)
            if rc == 0:
                if tries:
                    logger.info(f"Command succeeded on attempt {tries + 1}: {cmd_str}")
                return CommandResult(argv, rc, tries + 1, out, err)

            tries += 1
            if err.strip():
                logger.debug(f"stderr from {cmd_str}: {err.strip()}")
            if tries >= budget:
                if budget > 1:
                    print_error(
                        f"Failed after {budget} attempts: {cmd_str} (code {rc})"
                    )
                return CommandResult(argv, rc, tries, out, err)

            print_warning(
                f"Command failed (attempt {tries}/{budget}). "
                f"Retrying in {self.delay:g}s..."
            )
            self.sleep(self.delay)

    def check(self, argv: Sequence[str], attempts: Optional[int] = None) -> CommandResult:
        """Run ``argv`` and raise ExecutionError if it never succeeds."""
        result = self.run(argv, attempts=attempts)
        if not result.ok:
            raise ExecutionError(
                f"Command failed (code {result.returncode}): {result.command}",
                result.returncode,
            )
        return result


def retry_operation(
    operation: Callable[[], Any],
    max_attempts: int = AppConfig.MAX_RETRIES,
    delay: float = AppConfig.RETRY_DELAY,
    operation_name: str = "Operation",
    retry_on: Tuple[type, ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """
    Retry a Python callable with a fixed delay between attempts.

    Args:
        operation: Function to retry
        max_attempts: Maximum number of attempts
        delay: Seconds between attempts
        operation_name: Name of the operation for logging
        retry_on: Exception types that trigger another attempt
        sleep: Callable used to wait between attempts

    Returns:
        Result of the operation if successful

    Raises:
        Exception: The last exception raised by the operation after all retries
    """
    attempt = 0
    while True:
        try:
            return operation()
        except retry_on as e:
            attempt += 1
            if attempt >= max_attempts:
                logger.error(f"{operation_name} failed after {max_attempts} attempts: {e}")
                raise
            print_warning(
                f"{operation_name} failed (attempt {attempt}/{max_attempts}): {e}. "
                f"Retrying in {delay:g}s..."
            )
            sleep(delay)
