"""Shell selection and launch configuration."""

import logging
import os
import shutil

from clicumber.models import HostOS, ShellKind, ShellLaunchConfig
from clicumber.shell.constants import (
    BASH_EXIT_CODE_CHECK,
    CMD_EXIT_CODE_CHECK,
    CMD_STDERR_FENCE,
    EXIT_CODE_IDENTIFIER,
    POSIX_STDERR_FENCE,
    POWERSHELL_EXIT_CODE_CHECK,
    POWERSHELL_START_ARGUMENTS,
    POWERSHELL_STDERR_FENCE,
    STDERR_FENCE_IDENTIFIER,
    TCSH_EXIT_CODE_CHECK,
    TCSH_STDERR_FENCE,
    ZSH_EXIT_CODE_CHECK,
)

log = logging.getLogger(__name__)

_PROBES = {
    ShellKind.BASH: BASH_EXIT_CODE_CHECK,
    ShellKind.TCSH: TCSH_EXIT_CODE_CHECK,
    ShellKind.ZSH: ZSH_EXIT_CODE_CHECK,
    ShellKind.CMD: CMD_EXIT_CODE_CHECK,
    ShellKind.POWERSHELL: POWERSHELL_EXIT_CODE_CHECK,
}

_FENCES = {
    ShellKind.BASH: POSIX_STDERR_FENCE,
    ShellKind.TCSH: TCSH_STDERR_FENCE,
    ShellKind.ZSH: POSIX_STDERR_FENCE,
    ShellKind.CMD: CMD_STDERR_FENCE,
    ShellKind.POWERSHELL: POWERSHELL_STDERR_FENCE,
}

_DEFAULT_SHELLS = {
    HostOS.POSIX: ShellKind.BASH,
    HostOS.WINDOWS: ShellKind.POWERSHELL,
}


def _classify_shell(shell_name: str) -> ShellKind | None:
    """Return the supported shell kind for a requested name, if any."""
    try:
        return ShellKind(shell_name.strip().lower())
    except ValueError:
        return None


def resolve_executable(candidate: str) -> str | None:
    """Resolve an executable name or path to a runnable command path."""
    has_sep = os.path.sep in candidate or (
        os.path.altsep is not None and os.path.altsep in candidate
    )
    if has_sep:
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
        return None
    return shutil.which(candidate)


def build_launch_config(kind: ShellKind) -> ShellLaunchConfig:
    """Build the launch configuration for a known shell kind."""
    argv = list(POWERSHELL_START_ARGUMENTS) if kind is ShellKind.POWERSHELL else []
    return ShellLaunchConfig(
        kind=kind,
        executable=kind.value,
        exit_code_probe=_PROBES[kind].format(marker=EXIT_CODE_IDENTIFIER),
        argv=argv,
        stderr_fence=_FENCES[kind].format(marker=STDERR_FENCE_IDENTIFIER, token="{token}"),
    )


def configure_shell(shell_name: str, host_os: HostOS) -> ShellLaunchConfig:
    """Pick the shell to drive, falling back to the host's default shell."""
    kind = _classify_shell(shell_name)
    if kind is not None:
        return build_launch_config(kind)

    default = _DEFAULT_SHELLS[host_os]
    name = shell_name.strip()
    if name.lower() == "fish":
        log.warning(
            "Fish shell is currently not supported by integration tests. "
            "Default shell for the OS (%s) will be used.",
            default.value,
        )
    elif name:
        log.warning(
            "Shell %s is not supported, will set the default shell for the OS (%s) to be used.",
            name,
            default.value,
        )
    return build_launch_config(default)
