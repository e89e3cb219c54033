"""
Error Types

All failures raised by bootkit derive from BootkitError so that the
orchestrators and the CLI can tell expected failures apart from bugs.
"""

from typing import Optional, Sequence


class BootkitError(Exception):
    """Base class for bootkit errors"""
    pass


class ConfigurationError(BootkitError):
    """Configuration-related errors"""
    pass


class CommandError(BootkitError):
    """A child process did not complete successfully"""

    def __init__(self, argv: Sequence[str], message: str):
        self.argv = list(argv)
        super().__init__(message)


class CommandFailedError(CommandError):
    """Process exited with a non-zero status or could not be started"""

    def __init__(self, argv: Sequence[str], exit_code: Optional[int], reason: Optional[str] = None):
        self.exit_code = exit_code
        command = ' '.join(argv)
        if exit_code is None:
            message = f"failed to start '{command}': {reason or 'unknown error'}"
        else:
            message = f"'{command}' exited with status {exit_code}"
        super().__init__(argv, message)


class CommandCancelledError(CommandError):
    """Process was terminated because its execution context was cancelled"""

    def __init__(self, argv: Sequence[str], reason: str = 'context cancelled'):
        self.reason = reason
        super().__init__(argv, f"'{' '.join(argv)}' terminated: {reason}")


class ContextCancelledError(BootkitError):
    """Raised when work is attempted on a cancelled execution context"""

    def __init__(self, reason: str = 'context cancelled'):
        self.reason = reason
        super().__init__(reason)


class ConfigureError(BootkitError):
    """Base class for configuration item failures"""
    pass


class TargetExistsError(ConfigureError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"configuration file already exists at {path}. Use --force to overwrite")


class DirectoryCreationError(ConfigureError):
    pass


class InvalidURLError(ConfigureError):
    pass


class HTTPStatusError(ConfigureError):
    def __init__(self, url: str, status: int):
        self.url = url
        self.status = status
        super().__init__(f"failed to download configuration: HTTP status {status}")


class DownloadError(ConfigureError):
    pass


class WriteError(ConfigureError):
    pass


class MissingOutputError(ConfigureError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"configure command executed, but config file not found at {path}")


class ExtensionError(BootkitError):
    """Extension management errors"""
    pass


class UpdateError(BootkitError):
    """Self-update errors"""
    pass


def is_cancellation(error: Optional[BaseException]) -> bool:
    """Check whether an error means the user or a deadline stopped the work"""
    return isinstance(error, (CommandCancelledError, ContextCancelledError, KeyboardInterrupt))
