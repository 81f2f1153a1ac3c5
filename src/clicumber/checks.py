"""Comparisons and format checks applied to captured output."""

import ipaddress
import re
from urllib.parse import urlsplit

import yaml

from clicumber.errors import ConfigError, ExpectationError

FORMATS = ("URL", "IP", "IP with port number", "YAML")


def compare_contains(expected: str, actual: str) -> None:
    if expected not in actual:
        raise ExpectationError(f"Output did not match. Expected: '{expected}', Actual: '{actual}'")


def compare_not_contains(not_expected: str, actual: str) -> None:
    if not_expected in actual:
        raise ExpectationError(
            f"Output did match. Not expected: '{not_expected}', Actual: '{actual}'"
        )


def compare_equals(expected: str, actual: str) -> None:
    if actual != expected:
        raise ExpectationError(f"Output did not match. Expected: '{expected}', Actual: '{actual}'")


def compare_not_equals(not_expected: str, actual: str) -> None:
    if actual == not_expected:
        raise ExpectationError(
            f"Output did match. Not expected: '{not_expected}', Actual: '{actual}'"
        )


def perform_regex_match(regex: str, text: str) -> bool:
    """Return whether ``regex`` matches anywhere in ``text``."""
    try:
        compiled = re.compile(regex)
    except re.error as e:
        raise ConfigError(f"Expected value must be a valid regular expression statement: {e}") from e
    return compiled.search(text) is not None


def compare_matches_regex(expected: str, actual: str) -> None:
    if not perform_regex_match(expected, actual):
        raise ExpectationError(f"Output did not match. Expected: '{expected}', Actual: '{actual}'")


def compare_not_matches_regex(not_expected: str, actual: str) -> None:
    if perform_regex_match(not_expected, actual):
        raise ExpectationError(
            f"Output did match. Not expected: '{not_expected}', Actual: '{actual}'"
        )


def _validate_ip(text: str) -> None:
    try:
        ipaddress.ip_address(text)
    except ValueError:
        raise ExpectationError(f"IP address '{text}' is not a valid IP address") from None


def _validate_url(text: str) -> None:
    # Same acceptance as a request URI: an absolute URL or an absolute path.
    try:
        parts = urlsplit(text)
    except ValueError as e:
        raise ExpectationError(
            f"URL '{text}' is not an URL in valid format. Parsing error: {e}"
        ) from e
    if not parts.scheme and not text.startswith("/"):
        raise ExpectationError(
            f"URL '{text}' is not an URL in valid format. Parsing error: "
            "invalid URI for request"
        )


def _validate_ip_with_port(text: str) -> None:
    split = text.split(":")
    if len(split) != 2:
        raise ExpectationError(f"String '{text}' does not contain one ':' separator")
    host, port = split
    if not port.isdigit():
        raise ExpectationError(
            f"Port must be an integer, in '{text}' the port '{port}' is not an integer."
        )
    try:
        ipaddress.ip_address(host)
    except ValueError:
        raise ExpectationError(
            f"In '{text}' the IP part '{host}' is not a valid IP address"
        ) from None


def _validate_yaml(text: str) -> None:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ExpectationError(f"Error unmarshaling YAML: {e}. YAML='{text}'") from e
    if data is not None and not isinstance(data, dict):
        raise ExpectationError(
            f"Error unmarshaling YAML: expected a mapping, got {type(data).__name__}. YAML='{text}'"
        )


_VALIDATORS = {
    "URL": _validate_url,
    "IP": _validate_ip,
    "IP with port number": _validate_ip_with_port,
    "YAML": _validate_yaml,
}


def check_format(format_name: str, actual: str) -> None:
    """Check that ``actual`` is a valid value of the named format."""
    validator = _VALIDATORS.get(format_name)
    if validator is None:
        raise ConfigError(f"Format {format_name} not implemented.")
    validator(actual.rstrip("\n"))
