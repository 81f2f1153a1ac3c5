"""Model package for clicumber."""

from clicumber.models.clicumber_config import DEFAULT_FEATURE_PATH, DEFAULT_TEST_DIR, ClicumberConfig
from clicumber.models.command_output import CommandOutput
from clicumber.models.run_dirs import RunDirs
from clicumber.models.shell_launch_config import HostOS, ShellKind, ShellLaunchConfig

__all__ = [
    "ClicumberConfig",
    "CommandOutput",
    "DEFAULT_FEATURE_PATH",
    "DEFAULT_TEST_DIR",
    "HostOS",
    "RunDirs",
    "ShellKind",
    "ShellLaunchConfig",
]
