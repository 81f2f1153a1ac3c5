"""Parse Go-style duration strings such as ``500ms`` or ``1m30s``."""

import re

from clicumber.errors import ConfigError

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

# Longer units first so "ms" is not read as "m" followed by garbage.
_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> float:
    """Return the number of seconds described by ``text``."""
    value = text.strip()
    if value == "0":
        return 0.0
    if not value:
        raise ConfigError("invalid duration ''")

    total = 0.0
    pos = 0
    while pos < len(value):
        match = _PART_RE.match(value, pos)
        if match is None:
            raise ConfigError(f"invalid duration '{text}'")
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()
    return total
