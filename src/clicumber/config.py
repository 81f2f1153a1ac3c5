"""Configuration loading for clicumber."""

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from clicumber.errors import ConfigError
from clicumber.models import ClicumberConfig

log = logging.getLogger(__name__)

SHELL_ENV_VAR = "CLICUMBER_SHELL"


def load_config(path: str | Path | None = None) -> ClicumberConfig:
    """Load configuration from an optional JSON file and the environment."""
    data: dict = {}
    if path is not None:
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"cannot read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"config file {path} must contain a JSON object")
        log.debug("loaded config from %s: %s", path, data)

    env_shell = os.environ.get(SHELL_ENV_VAR, "").strip()
    if env_shell and "shell" not in data:
        data["shell"] = env_shell

    try:
        return ClicumberConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e


def apply_overrides(config: ClicumberConfig, **overrides) -> ClicumberConfig:
    """Return a copy of ``config`` with every non-None override applied."""
    updates = {key: value for key, value in overrides.items() if value is not None}
    try:
        return ClicumberConfig.model_validate({**config.model_dump(), **updates})
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e
