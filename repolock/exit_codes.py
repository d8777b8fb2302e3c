"""
Standard exit codes and error types for repolock commands.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
CONFIG_ERROR = 66        # Configuration file error
PERMISSION_ERROR = 67    # Insufficient permissions
DATA_ERROR = 70          # Manifest/lock format or validation error
VCS_ERROR = 72           # Clone, checkout or pull failed
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ValueError': DATA_ERROR,
    'KeyError': DATA_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: Exception) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class RepolockError(CommandError):
    """
    Base class for failures in the install/update core.

    Every one of them is fatal to the run. ``url`` and ``path`` identify
    the entry that failed when known.
    """
    exit_code_default = GENERAL_ERROR

    def __init__(self, message: str, url: Optional[str] = None,
                 path: Optional[str] = None):
        super().__init__(message, self.exit_code_default)
        self.url = url
        self.path = path

    def context(self) -> dict:
        """Identifying context for error output."""
        ctx = {}
        if self.url:
            ctx['url'] = self.url
        if self.path:
            ctx['path'] = str(self.path)
        return ctx


class RecordReadError(RepolockError):
    """Manifest or lock file is missing or malformed."""
    exit_code_default = DATA_ERROR


class RecordWriteError(RepolockError):
    """Lock file could not be written."""
    exit_code_default = GENERAL_ERROR


class InvalidURL(RepolockError):
    """A repository URL could not be turned into a directory name."""
    exit_code_default = DATA_ERROR


class VCSError(RepolockError):
    """A git operation failed."""
    exit_code_default = VCS_ERROR


class CloneError(VCSError):
    """Cloning a repository failed."""


class CheckoutError(VCSError):
    """Checking out a revision failed."""


class FetchError(VCSError):
    """Pulling from the remote failed."""
