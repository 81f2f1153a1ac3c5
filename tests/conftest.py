"""Shared fixtures for clicumber tests."""

import shutil

import pytest

from clicumber.errors import WriteError
from clicumber.models import CommandOutput, HostOS
from clicumber.shell import ShellSession


class FakeSession:
    """Stand-in for ShellSession that replays scripted results."""

    def __init__(self, results=None):
        self.results = dict(results or {})
        self.default = CommandOutput(stdout="", stderr="", exit_code="0")
        self.commands: list[str] = []
        self.last = CommandOutput(stdout="", stderr="", exit_code="")

    def execute_command(self, command: str) -> CommandOutput:
        self.commands.append(command)
        result = self.results.get(command, self.default)
        if isinstance(result, Exception):
            raise result
        self.last = result
        return result

    def get_last_output(self, field: str) -> str:
        return {
            "stdout": self.last.stdout,
            "stderr": self.last.stderr,
            "exitcode": self.last.exit_code,
        }[field]


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def bash_session():
    if shutil.which("bash") is None:
        pytest.skip("bash is not available")
    session = ShellSession("bash", host_os=HostOS.POSIX)
    session.start()
    yield session
    try:
        session.close()
    except WriteError:
        # The test already made the shell exit.
        pass


@pytest.fixture
def make_session():
    return FakeSession
