"""Transcript log of everything written to and read from the shell."""

import logging
from pathlib import Path

LOG_FILE_NAME = "clicumber.log"

transcript = logging.getLogger("clicumber.transcript")
transcript.setLevel(logging.INFO)

_handler: logging.FileHandler | None = None


def start_log(results_dir: str | Path) -> Path:
    """Start writing the transcript into ``results_dir``."""
    global _handler
    close_log()
    path = Path(results_dir) / LOG_FILE_NAME
    path.parent.mkdir(parents=True, exist_ok=True)
    _handler = logging.FileHandler(path, encoding="utf-8")
    _handler.setFormatter(logging.Formatter("%(asctime)s %(message)s"))
    transcript.addHandler(_handler)
    return path


def close_log() -> None:
    """Flush and detach the transcript file, if one is open."""
    global _handler
    if _handler is None:
        return
    transcript.removeHandler(_handler)
    _handler.close()
    _handler = None


def log_message(kind: str, text: str) -> None:
    """Record one line seen or sent on the ``kind`` stream."""
    transcript.info("[%s] %s", kind, text)
