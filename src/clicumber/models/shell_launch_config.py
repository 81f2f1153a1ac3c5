"""Shell launch model for the session driver."""

import os
from dataclasses import dataclass, field
from enum import Enum


class ShellKind(str, Enum):
    """Shells the driver knows how to probe for an exit code."""

    BASH = "bash"
    TCSH = "tcsh"
    ZSH = "zsh"
    CMD = "cmd"
    POWERSHELL = "powershell"


class HostOS(str, Enum):
    """Operating system family used to pick the default shell."""

    POSIX = "posix"
    WINDOWS = "windows"

    @classmethod
    def current(cls) -> "HostOS":
        return cls.WINDOWS if os.name == "nt" else cls.POSIX


@dataclass
class ShellLaunchConfig:
    """How to launch a supported shell and ask it for the last exit code."""

    kind: ShellKind
    executable: str
    exit_code_probe: str
    argv: list[str] = field(default_factory=list)
    # Template with a {token} placeholder; empty disables the stderr fence.
    stderr_fence: str = ""
