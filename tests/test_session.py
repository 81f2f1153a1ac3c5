"""Tests for clicumber.shell.session."""

import io
import logging
from unittest.mock import MagicMock, patch

import pytest

from clicumber.errors import (
    CommandFailedError,
    ConfigError,
    NotStartedError,
    StartupError,
    WriteError,
)
from clicumber.models import HostOS, ShellKind
from clicumber.shell import SessionState, ShellSession
from clicumber.shell.executor import (
    execute_stdout_line_by_line,
    set_scenario_variable_executing_command,
)
from clicumber.variables import ScenarioVariables


class TestSessionWithoutProcess:
    def test_new_session_is_unconfigured(self):
        session = ShellSession(host_os=HostOS.POSIX)
        assert session.state is SessionState.UNCONFIGURED
        assert session.name is None
        assert session.is_running is False

    def test_configure_only_takes_effect_once(self):
        session = ShellSession(host_os=HostOS.POSIX)
        first = session.configure("zsh")
        second = session.configure("bash")
        assert second is first
        assert session.launch.kind is ShellKind.ZSH
        assert session.state is SessionState.CONFIGURED

    def test_configure_uses_name_given_at_construction(self):
        session = ShellSession("tcsh", host_os=HostOS.POSIX)
        assert session.configure().kind is ShellKind.TCSH

    def test_execute_before_start_raises(self):
        session = ShellSession("bash", host_os=HostOS.POSIX)
        with pytest.raises(NotStartedError):
            session.execute_command("echo hi")

    def test_close_when_not_running_is_noop(self):
        session = ShellSession("bash", host_os=HostOS.POSIX)
        session.close()
        assert session.state is SessionState.UNCONFIGURED

    def test_unknown_output_field_raises(self):
        session = ShellSession("bash", host_os=HostOS.POSIX)
        with pytest.raises(ConfigError, match="Field 'stdin'"):
            session.get_last_output("stdin")

    def test_fresh_session_has_empty_output(self):
        session = ShellSession("bash", host_os=HostOS.POSIX)
        assert session.get_last_output("stdout") == ""
        assert session.get_last_output("exitcode") == ""

    @patch("clicumber.shell.session.resolve_executable", return_value=None)
    def test_start_fails_when_executable_missing(self, _resolve):
        session = ShellSession("zsh", host_os=HostOS.POSIX)
        with pytest.raises(StartupError, match="cannot find the zsh executable"):
            session.start()
        assert session.is_running is False

    @patch("clicumber.shell.session.subprocess.Popen", side_effect=OSError("boom"))
    @patch("clicumber.shell.session.resolve_executable", return_value="/bin/bash")
    def test_start_wraps_spawn_errors(self, _resolve, _popen):
        session = ShellSession("bash", host_os=HostOS.POSIX)
        with pytest.raises(StartupError, match="boom"):
            session.start()
        assert session.is_running is False

    @patch("clicumber.shell.session.subprocess.Popen")
    @patch("clicumber.shell.session.resolve_executable", return_value="/bin/bash")
    def test_start_banner_goes_to_transcript(self, _resolve, mock_popen, caplog):
        process = MagicMock()
        process.stdout = io.BytesIO(b"")
        process.stderr = io.BytesIO(b"")
        mock_popen.return_value = process
        session = ShellSession("bash", host_os=HostOS.POSIX)
        with caplog.at_level(logging.INFO, logger="clicumber.transcript"):
            session.start()
        messages = [r.getMessage() for r in caplog.records if r.name == "clicumber.transcript"]
        assert (
            "[info] The bash instance has been started and will be used for testing." in messages
        )


class TestStderrFenceTokens:
    def _session(self):
        session = ShellSession("bash", host_os=HostOS.POSIX)
        session.configure()
        session._process = MagicMock()
        return session

    def test_each_command_gets_a_new_token(self):
        session = self._session()
        first = session._arm_stderr_fence()
        second = session._arm_stderr_fence()
        assert first == "echo stderrFenceOfLastCommandInShell=1 1>&2"
        assert second == "echo stderrFenceOfLastCommandInShell=2 1>&2"

    def test_stale_fence_is_ignored(self):
        session = self._session()
        session._arm_stderr_fence()
        session._arm_stderr_fence()
        session._on_fence(session._process, "1")
        assert not session._stderr_fenced.is_set()
        session._on_fence(session._process, "2")
        assert session._stderr_fenced.is_set()

    def test_fence_from_previous_process_is_ignored(self):
        session = self._session()
        session._arm_stderr_fence()
        session._on_fence(MagicMock(), "1")
        assert not session._stderr_fenced.is_set()

    def test_stderr_close_releases_waiter(self):
        session = self._session()
        session._arm_stderr_fence()
        session._on_stream_closed(session._process, "stderr")
        assert session._stderr_fenced.is_set()


@pytest.mark.integration
class TestSessionWithBash:
    def test_echo_captures_stdout_and_exit_code(self, bash_session):
        output = bash_session.execute_command("echo hello")
        assert output.stdout == "hello"
        assert output.exit_code == "0"
        assert output.succeeded
        assert bash_session.get_last_output("stdout") == "hello"

    def test_failing_command_reports_exit_code(self, bash_session):
        output = bash_session.execute_command("false")
        assert output.exit_code == "1"
        assert output.stdout == ""

    def test_output_is_reset_between_commands(self, bash_session):
        bash_session.execute_command("echo first")
        output = bash_session.execute_command("true")
        assert output.stdout == ""
        assert output.exit_code == "0"

    def test_multiline_output_keeps_inner_newlines(self, bash_session):
        output = bash_session.execute_command("printf 'a\\nb\\n'")
        assert output.stdout == "a\nb"

    def test_stderr_is_complete_when_command_returns(self, bash_session):
        for _ in range(50):
            output = bash_session.execute_command("echo oops 1>&2")
            assert output.stderr == "oops"
            assert output.stdout == ""
            assert bash_session.execute_command("true").stderr == ""

    def test_stdout_and_stderr_of_one_command_are_separated(self, bash_session):
        output = bash_session.execute_command("echo out; echo err 1>&2; echo more 1>&2")
        assert output.stdout == "out"
        assert output.stderr == "err\nmore"

    def test_scenario_variable_rejects_command_writing_to_stderr(self, bash_session):
        variables = ScenarioVariables()
        for _ in range(20):
            with pytest.raises(CommandFailedError, match="cmdErr: w"):
                set_scenario_variable_executing_command(
                    bash_session, variables, "V", "echo v; echo w 1>&2"
                )
        assert "V" not in variables

    def test_shell_state_persists_between_commands(self, bash_session):
        bash_session.execute_command("export CLICUMBER_TEST_VALUE=42")
        output = bash_session.execute_command("echo $CLICUMBER_TEST_VALUE")
        assert output.stdout == "42"

    def test_start_twice_raises(self, bash_session):
        with pytest.raises(StartupError, match="already running"):
            bash_session.start()

    def test_exit_command_returns_shell_exit_code(self, bash_session):
        output = bash_session.execute_command("exit 7")
        assert output.exit_code == "7"
        with pytest.raises(WriteError):
            bash_session.close()
        assert bash_session.state is SessionState.CLOSED

    def test_restart_after_close_leaves_no_orphan(self, bash_session):
        first = bash_session._process
        bash_session.close()
        assert first.poll() is not None
        assert bash_session.state is SessionState.CLOSED

        bash_session.start()
        assert bash_session._process is not first
        assert bash_session.execute_command("echo again").stdout == "again"

    def test_evaluating_stdout_runs_each_line(self, bash_session):
        bash_session.execute_command("printf 'echo a\\necho b\\n'")
        execute_stdout_line_by_line(bash_session)
        assert bash_session.get_last_output("stdout") == "b"
        assert bash_session.get_last_output("exitcode") == "0"

    def test_context_manager_closes_shell(self, bash_session):
        bash_session.close()
        with ShellSession("bash", host_os=HostOS.POSIX) as session:
            process = session._process
            assert session.execute_command("echo ctx").stdout == "ctx"
        assert process.poll() is not None
        assert session.is_running is False
