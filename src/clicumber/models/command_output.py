"""Captured result of one shell command."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CommandOutput:
    stdout: str
    stderr: str
    exit_code: str

    @property
    def succeeded(self) -> bool:
        return self.exit_code == "0"
