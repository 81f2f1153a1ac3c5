"""Exceptions raised by the shell driver and the step helpers."""


class ClicumberError(Exception):
    """Base exception for clicumber failures."""


class StartupError(ClicumberError):
    """Raised when the shell process or its pipes cannot be set up."""


class WriteError(ClicumberError):
    """Raised when writing to the shell's input pipe fails."""


class NotStartedError(ClicumberError):
    """Raised when a command is issued while no shell is running."""


class ConfigError(ClicumberError, ValueError):
    """Raised for malformed durations, unknown formats and bad settings."""


class ExpectationError(ClicumberError, AssertionError):
    """Raised when an expected value does not match the actual one."""


class ExitCodeMismatchError(ExpectationError):
    """Raised when a command did not succeed or fail as expected."""

    def __init__(self, command: str, expected: str, exit_code: str) -> None:
        self.command = command
        self.expected = expected
        self.exit_code = exit_code
        verb = "succeed" if expected == "succeeds" else "fail"
        super().__init__(
            f"command '{command}', expected to {verb}, exited with exit code: {exit_code}"
        )


class RetryTimeoutError(ClicumberError, TimeoutError):
    """Raised when a retried command never produced the expected output."""

    def __init__(
        self, command: str, expected: str, attempts: int, exit_code: str, stdout: str
    ) -> None:
        self.command = command
        self.expected = expected
        self.attempts = attempts
        self.exit_code = exit_code
        self.stdout = stdout
        super().__init__(
            f"command '{command}' after {attempts} attempt(s), "
            f"Expected: exitCode 0, stdout {expected}, "
            f"Actual: exitCode {exit_code}, stdout {stdout}"
        )


class CommandFailedError(ClicumberError):
    """Raised when a command had to succeed cleanly but did not."""

    def __init__(self, command: str, exit_code: str, stderr: str) -> None:
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(
            f"command '{command}' did not execute successfully. "
            f"cmdExit: {exit_code}, cmdErr: {stderr}"
        )
