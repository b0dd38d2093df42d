# src/gitsops/errors.py: Typed exceptions and exit codes.
# Every failure the filters can hit is raised as one of these types. The CLI
# maps them to a process exit status, so git sees a failed filter and aborts
# the checkout or staging step.

from enum import IntEnum


class ExitCode(IntEnum):
    """Enumeration for application exit codes."""
    OK = 0
    FAILURE = 1
    CONFIG_ERROR = 2
    ENVIRONMENT_ERROR = 3


class GitSopsError(Exception):
    """Base exception for all git-sops errors."""
    def __init__(self, message: str, exit_code: ExitCode = ExitCode.FAILURE):
        super().__init__(message)
        self.exit_code = exit_code


class InvocationError(GitSopsError):
    """A filter command was invoked without its required arguments."""
    def __init__(self, message: str):
        super().__init__(message, ExitCode.FAILURE)


class EngineError(GitSopsError):
    """The secrets engine failed to encrypt or decrypt content."""
    def __init__(self, message: str):
        super().__init__(message, ExitCode.FAILURE)


class GitError(GitSopsError):
    """Git command errors."""
    def __init__(self, message: str):
        super().__init__(message, ExitCode.FAILURE)


class ConfigError(GitSopsError):
    """Configuration file missing or invalid."""
    def __init__(self, message: str):
        super().__init__(message, ExitCode.CONFIG_ERROR)


class EnvironmentSetupError(GitSopsError):
    """Missing binaries or not running inside a git work tree."""
    def __init__(self, message: str):
        super().__init__(message, ExitCode.ENVIRONMENT_ERROR)
