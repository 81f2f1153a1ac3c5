"""Command helpers built on top of ShellSession.execute_command."""

import logging
import time

from clicumber.duration import parse_duration
from clicumber.errors import (
    CommandFailedError,
    ConfigError,
    ExitCodeMismatchError,
    RetryTimeoutError,
)
from clicumber.shell.constants import EXIT_CODE_IDENTIFIER
from clicumber.shell.session import ShellSession
from clicumber.variables import ScenarioVariables

log = logging.getLogger(__name__)

EXPECTATIONS = ("succeeds", "fails")


def execute_command_succeeds_or_fails(session: ShellSession, command: str, expected: str) -> None:
    """Run a command and check its exit code against ``succeeds``/``fails``."""
    if expected not in EXPECTATIONS:
        raise ConfigError(f"expected result must be 'succeeds' or 'fails', got '{expected}'")

    exit_code = session.execute_command(command).exit_code
    if expected == "succeeds" and exit_code != "0":
        raise ExitCodeMismatchError(command, expected, exit_code)
    if expected == "fails" and exit_code == "0":
        raise ExitCodeMismatchError(command, expected, exit_code)


def execute_command_with_retry(
    session: ShellSession,
    retry_count: int,
    retry_interval: str,
    command: str,
    expected: str,
) -> None:
    """Re-run a command until it exits 0 with ``expected`` in its stdout."""
    interval = parse_duration(retry_interval)

    exit_code, stdout = "", ""
    for attempt in range(1, retry_count + 1):
        output = session.execute_command(command)
        exit_code, stdout = output.exit_code, output.stdout
        if exit_code == "0" and expected in stdout:
            log.debug("%r matched on attempt %d", command, attempt)
            return
        log.debug("%r attempt %d/%d: exit code %s", command, attempt, retry_count, exit_code)
        if attempt < retry_count:
            time.sleep(interval)

    raise RetryTimeoutError(command, expected, retry_count, exit_code, stdout)


def execute_stdout_line_by_line(session: ShellSession) -> None:
    """Run every line of the previous command's stdout as a new command."""
    commands = session.get_last_output("stdout").split("\n")
    for command in commands:
        if EXIT_CODE_IDENTIFIER in command or not command.strip():
            continue
        session.execute_command(command)


def set_scenario_variable_executing_command(
    session: ShellSession,
    variables: ScenarioVariables,
    name: str,
    command: str,
) -> None:
    """Store the trimmed stdout of a cleanly succeeding command as ``name``."""
    output = session.execute_command(command)
    if output.exit_code != "0" or output.stderr:
        raise CommandFailedError(command, output.exit_code, output.stderr)
    variables.set(name, output.stdout.strip())
