"""Synchronous driver for an interactive shell child process."""

from clicumber.shell.detection import configure_shell
from clicumber.shell.executor import (
    execute_command_succeeds_or_fails,
    execute_command_with_retry,
    execute_stdout_line_by_line,
    set_scenario_variable_executing_command,
)
from clicumber.shell.session import SessionState, ShellSession

__all__ = [
    "SessionState",
    "ShellSession",
    "configure_shell",
    "execute_command_succeeds_or_fails",
    "execute_command_with_retry",
    "execute_stdout_line_by_line",
    "set_scenario_variable_executing_command",
]
