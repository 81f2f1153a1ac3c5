"""Long-lived shell process driven one command at a time.

A command is written to the shell's stdin followed by a probe command that
prints ``exitCodeOfLastCommandInShell=<code>`` on stdout and a fence command
that prints ``stderrFenceOfLastCommandInShell=<token>`` on stderr. The shell
runs its input serially, so once the probe's line and the fence have been
read, every line the command printed is in the stdout/stderr buffers. The
caller blocks on the exit-code channel, then on the fence.
"""

import logging
import queue
import subprocess
import threading
from enum import Enum

from clicumber.errors import ConfigError, NotStartedError, StartupError, WriteError
from clicumber.logs import log_message
from clicumber.models import CommandOutput, HostOS, ShellLaunchConfig
from clicumber.shell.constants import CLOSING_COMMAND, OUTPUT_FIELDS
from clicumber.shell.detection import configure_shell, resolve_executable
from clicumber.shell.scanner import OutputBuffer, StreamScanner

log = logging.getLogger(__name__)

CLOSE_TIMEOUT_SECONDS = 10.0
FENCE_TIMEOUT_SECONDS = 5.0
READER_JOIN_TIMEOUT_SECONDS = 5.0


class SessionState(str, Enum):
    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    RUNNING = "running"
    CLOSED = "closed"


class ShellSession:
    """One interactive shell child process and the buffers of its last command."""

    def __init__(self, shell_name: str = "", host_os: HostOS | None = None) -> None:
        self.host_os = host_os if host_os is not None else HostOS.current()
        self.launch: ShellLaunchConfig | None = None
        self._requested_shell = shell_name

        self._process: subprocess.Popen | None = None
        self._scanners: list[StreamScanner] = []
        self._pending = threading.Event()
        self._stderr_fenced = threading.Event()
        self._fence_counter = 0
        self._expected_fence: str | None = None
        self._closed = False

        self.stdout = OutputBuffer()
        self.stderr = OutputBuffer()
        self.exit_code = OutputBuffer()
        self._exit_codes: queue.Queue[str] = queue.Queue(maxsize=1)

    def __enter__(self) -> "ShellSession":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def name(self) -> str | None:
        return self.launch.kind.value if self.launch is not None else None

    @property
    def is_running(self) -> bool:
        return self._process is not None

    @property
    def state(self) -> SessionState:
        if self._process is not None:
            return SessionState.RUNNING
        if self._closed:
            return SessionState.CLOSED
        if self.launch is not None:
            return SessionState.CONFIGURED
        return SessionState.UNCONFIGURED

    def configure(self, shell_name: str = "") -> ShellLaunchConfig:
        """Resolve which shell to drive; only the first call has any effect."""
        if self.launch is not None:
            if shell_name and shell_name != self.launch.kind.value:
                log.debug(
                    "shell already configured as %s, ignoring %s",
                    self.launch.kind.value,
                    shell_name,
                )
            return self.launch
        self.launch = configure_shell(shell_name or self._requested_shell, self.host_os)
        log.debug("configured shell %s (probe %r)", self.launch.kind.value, self.launch.exit_code_probe)
        return self.launch

    def start(self, shell_name: str = "") -> None:
        """Spawn the shell and start draining its stdout and stderr."""
        if self._process is not None:
            raise StartupError(f"{self.name} instance is already running")

        launch = self.configure(shell_name)
        executable = resolve_executable(launch.executable)
        if executable is None:
            raise StartupError(f"cannot find the {launch.executable} executable in PATH")

        self.stdout = OutputBuffer()
        self.stderr = OutputBuffer()
        self.exit_code = OutputBuffer()
        self._exit_codes = queue.Queue(maxsize=1)

        try:
            process = subprocess.Popen(
                [executable, *launch.argv],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            raise StartupError(f"failed to start {launch.executable}: {e}") from e

        if process.stdin is None or process.stdout is None or process.stderr is None:
            self._kill(process)
            raise StartupError(f"failed to connect the pipes of {launch.executable}")

        def on_close(stream_name: str) -> None:
            self._on_stream_closed(process, stream_name)

        def on_fence(token: str) -> None:
            self._on_fence(process, token)

        scanners = [
            StreamScanner(
                process.stdout,
                self.stdout,
                "stdout",
                self._exit_codes,
                launch.exit_code_probe,
                on_close=on_close,
            ),
            StreamScanner(
                process.stderr,
                self.stderr,
                "stderr",
                self._exit_codes,
                launch.exit_code_probe,
                on_close=on_close,
                on_fence=on_fence,
            ),
        ]
        self._process = process
        try:
            for scanner in scanners:
                scanner.start()
        except RuntimeError as e:
            self._process = None
            self._kill(process)
            raise StartupError(f"failed to start output listeners: {e}") from e

        self._scanners = scanners
        self._closed = False
        log_message(
            "info", f"The {launch.kind.value} instance has been started and will be used for testing."
        )

    def close(self) -> None:
        """Ask the shell to exit and wait for it; a no-op when not running."""
        process = self._process
        if process is None:
            return

        write_error: WriteError | None = None
        try:
            self._write(CLOSING_COMMAND)
        except WriteError as e:
            write_error = e

        try:
            try:
                returncode = process.wait(timeout=CLOSE_TIMEOUT_SECONDS)
            except subprocess.TimeoutExpired:
                log.warning("%s did not exit in time, killing it", self.name)
                self._kill(process)
                returncode = process.returncode
            if returncode:
                log.warning("error closing shell instance: exit status %s", returncode)
        finally:
            try:
                process.stdin.close()
            except OSError as e:
                log.debug("closing stdin of %s: %s", self.name, e)
            for scanner in self._scanners:
                scanner.join(timeout=READER_JOIN_TIMEOUT_SECONDS)
            self._process = None
            self._scanners = []
            self._closed = True

        if write_error is not None:
            raise write_error

    def execute_command(self, command: str) -> CommandOutput:
        """Run one command and block until its exit code and stderr are complete."""
        if self._process is None or self.launch is None:
            raise NotStartedError("shell instance is not started")

        self.stdout.reset()
        self.stderr.reset()
        self.exit_code.reset()
        self._drain_exit_codes()

        log_message(self.launch.kind.value, command)
        self._pending.set()
        fence = self._arm_stderr_fence()
        try:
            self._write(command)
            try:
                self._write(self.launch.exit_code_probe)
                if fence is not None:
                    self._write(fence)
            except WriteError as e:
                # The command itself may have ended the shell; its return
                # code is delivered once stdout reaches EOF.
                try:
                    exit_code = self._exit_codes.get(timeout=CLOSE_TIMEOUT_SECONDS)
                except queue.Empty:
                    raise e from None
            else:
                exit_code = self._exit_codes.get()
            self._wait_for_stderr_fence()
        finally:
            self._pending.clear()

        self.exit_code.append(exit_code)
        return self.last_output

    def get_last_output(self, field: str) -> str:
        """Return the last command's stdout, stderr or exit code."""
        buffers = {
            "stdout": self.stdout,
            "stderr": self.stderr,
            "exitcode": self.exit_code,
        }
        if field not in buffers:
            raise ConfigError(
                f"Field '{field}' of shell's output is not supported. "
                f"Only {', '.join(repr(f) for f in OUTPUT_FIELDS)} are supported."
            )
        return buffers[field].getvalue().removesuffix("\n")

    @property
    def last_output(self) -> CommandOutput:
        return CommandOutput(
            stdout=self.get_last_output("stdout"),
            stderr=self.get_last_output("stderr"),
            exit_code=self.get_last_output("exitcode"),
        )

    def _write(self, text: str) -> None:
        process = self._process
        if process is None or process.stdin is None:
            raise WriteError("shell input pipe is not open")
        try:
            process.stdin.write((text + "\n").encode("utf-8"))
            process.stdin.flush()
        except (OSError, ValueError) as e:
            raise WriteError(f"cannot write to the {self.name} input pipe: {e}") from e

    def _arm_stderr_fence(self) -> str | None:
        """Return the fence command for the next command, or None if the shell has none."""
        if not self.launch.stderr_fence:
            self._expected_fence = None
            return None
        self._fence_counter += 1
        self._expected_fence = str(self._fence_counter)
        self._stderr_fenced.clear()
        return self.launch.stderr_fence.format(token=self._expected_fence)

    def _wait_for_stderr_fence(self) -> None:
        if self._expected_fence is None:
            return
        if not self._stderr_fenced.wait(timeout=FENCE_TIMEOUT_SECONDS):
            log.warning(
                "stderr fence %s of %s not seen after %ss, stderr may be incomplete",
                self._expected_fence,
                self.name,
                FENCE_TIMEOUT_SECONDS,
            )

    def _on_fence(self, process: subprocess.Popen, token: str) -> None:
        if process is not self._process:
            return
        if token != self._expected_fence:
            log.debug("ignoring stale stderr fence %s", token)
            return
        self._stderr_fenced.set()

    def _drain_exit_codes(self) -> None:
        while True:
            try:
                stale = self._exit_codes.get_nowait()
            except queue.Empty:
                return
            log.debug("discarding stale exit code %s", stale)

    def _on_stream_closed(self, process: subprocess.Popen, stream_name: str) -> None:
        # The shell went away mid-command (e.g. `exit 7`): the probe will never
        # run, so hand its own return code to the waiting caller instead.
        if stream_name != "stdout":
            # Nothing more can arrive on stderr, so no fence is coming either.
            if process is self._process:
                self._stderr_fenced.set()
            return
        returncode = process.wait()
        if not self._pending.is_set() or process is not self._process:
            return
        log.debug("%s exited with %s while a command was running", self.name, returncode)
        try:
            self._exit_codes.put_nowait(str(returncode))
        except queue.Full:
            pass

    @staticmethod
    def _kill(process: subprocess.Popen) -> None:
        try:
            process.kill()
        except OSError:
            pass
        process.wait()
