# ----------------------------------------------------------------
# Custom Exceptions
# ----------------------------------------------------------------
from typing import Optional


class SetupError(Exception):
    """Base exception for setup errors."""

    returncode: int = 1


class PrivilegeError(SetupError):
    """Raised when the process is not running as root."""

    pass


class ExecutionError(SetupError):
    """Raised when command execution fails after all retries."""

    def __init__(self, message: str, returncode: Optional[int] = None) -> None:
        super().__init__(message)
        # A zero or unknown code must still read as a failure to the shell.
        self.returncode = returncode or 1


class ConfigurationError(SetupError):
    """Raised when configuration changes fail."""

    pass


class OptionalToolMissing(SetupError):
    """Raised when an optional tool or service unit is not available."""

    pass


class DownloadIntegrityError(SetupError):
    """Raised when a downloaded script is missing, empty or not a script."""

    pass
