"""Scenario variables captured from command output."""

import logging

log = logging.getLogger(__name__)


class ScenarioVariables:
    """Named values that later step text can refer to as ``$(NAME)``."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def set(self, name: str, value: str) -> None:
        log.debug("scenario variable %s=%r", name, value)
        self._values[name] = value

    def get(self, name: str) -> str | None:
        return self._values.get(name)

    def clear(self) -> None:
        self._values.clear()

    def process(self, text: str) -> str:
        """Replace every ``$(NAME)`` of a known variable with its value."""
        for name, value in self._values.items():
            text = text.replace(f"$({name})", value)
        return text
