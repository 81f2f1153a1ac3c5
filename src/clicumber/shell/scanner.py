"""Background readers that drain a shell's output pipes."""

import logging
import queue
import threading
from collections.abc import Callable
from typing import BinaryIO

from clicumber.logs import log_message
from clicumber.shell.constants import EXIT_CODE_IDENTIFIER, STDERR_FENCE_IDENTIFIER

log = logging.getLogger(__name__)


def is_exit_code_line(line: str, probe_command: str) -> bool:
    """Return whether a line carries the probe's result rather than its echo.

    Some shells echo the probe command itself into the output stream; that
    echo contains the marker too and must not end the command.
    """
    return EXIT_CODE_IDENTIFIER in line and probe_command not in line


def parse_exit_code(line: str) -> str:
    """Return everything after the first ``=`` of a sentinel line."""
    return line.split("=", 1)[1]


def is_fence_line(line: str) -> bool:
    """Return whether a line is the stderr fence itself rather than its echo."""
    return line.strip().startswith(STDERR_FENCE_IDENTIFIER)


def parse_fence_token(line: str) -> str:
    return line.strip()[len(STDERR_FENCE_IDENTIFIER) :]


class OutputBuffer:
    """Accumulates the lines of one command's output stream."""

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._lock = threading.Lock()

    def append(self, text: str) -> None:
        with self._lock:
            self._parts.append(text)

    def reset(self) -> None:
        with self._lock:
            self._parts.clear()

    def getvalue(self) -> str:
        with self._lock:
            return "".join(self._parts)


class StreamScanner:
    """Read one pipe line by line, routing sentinel lines to ``exit_codes``."""

    def __init__(
        self,
        pipe: BinaryIO,
        buffer: OutputBuffer,
        stream_name: str,
        exit_codes: "queue.Queue[str]",
        probe_command: str,
        on_close: Callable[[str], None] | None = None,
        on_fence: Callable[[str], None] | None = None,
    ) -> None:
        self.pipe = pipe
        self.buffer = buffer
        self.stream_name = stream_name
        self.exit_codes = exit_codes
        self.probe_command = probe_command
        self.on_close = on_close
        self.on_fence = on_fence
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self.run,
            daemon=True,
            name=f"clicumber-{self.stream_name}",
        )
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run(self) -> None:
        try:
            for raw in iter(self.pipe.readline, b""):
                self.handle_line(raw.decode("utf-8", errors="replace").rstrip("\r\n"))
        except (OSError, ValueError) as e:
            # The pipe was closed underneath us while the process went away.
            log.debug("%s reader stopped: %s", self.stream_name, e)
        finally:
            log.debug("%s pipe closed", self.stream_name)
            if self.on_close is not None:
                self.on_close(self.stream_name)

    def handle_line(self, line: str) -> None:
        log_message(self.stream_name, line)
        if self.on_fence is not None and is_fence_line(line):
            self.on_fence(parse_fence_token(line))
            return
        if is_exit_code_line(line, self.probe_command):
            exit_code = parse_exit_code(line)
            log.debug("%s sentinel received, exit code %s", self.stream_name, exit_code)
            self.exit_codes.put(exit_code)
        else:
            self.buffer.append(line + "\n")
