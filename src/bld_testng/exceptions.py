"""Exceptions raised while configuring or running TestNG."""

EXIT_FAILURE = 1


class TestNgError(Exception):
    """Base exception for the bld-testng extension."""


class ExitStatusError(TestNgError):
    """Raised when the operation ends with a non-zero exit status.

    The status is the one the enclosing build step should exit with: the
    child process's own status, or ``EXIT_FAILURE`` when the process could
    not be constructed.
    """

    def __init__(self, exit_status: int, message: str | None = None):
        self.exit_status = exit_status
        super().__init__(message or f"TestNG exited with status {exit_status}")


class ConfigurationError(ExitStatusError):
    """Raised when the TestNG process cannot be constructed from the configuration."""

    def __init__(self, message: str):
        super().__init__(EXIT_FAILURE, message)


class SuiteWriteError(ConfigurationError):
    """Raised when the default suite file cannot be written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Unable to write the default suite file {path}: {reason}")
