"""Filesystem steps and checks on file content."""

import json
import logging
import os
import shutil
from pathlib import Path
from urllib.error import HTTPError, URLError
from urllib.parse import urlsplit
from urllib.request import Request, urlopen

import yaml

from clicumber import __version__
from clicumber.checks import (
    check_format,
    compare_contains,
    compare_equals,
    compare_matches_regex,
    compare_not_contains,
    compare_not_equals,
    compare_not_matches_regex,
    perform_regex_match,
)
from clicumber.errors import ClicumberError, ConfigError, ExpectationError

log = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT_SECONDS = 60
CONFIG_FORMATS = ("JSON", "YAML")
CONDITIONS = ("contains", "does not contain")


def create_directory(dir_name: str) -> None:
    os.makedirs(dir_name, exist_ok=True)


def delete_directory(dir_name: str) -> None:
    shutil.rmtree(dir_name, ignore_errors=True)


def delete_file(file_name: str) -> None:
    path = Path(file_name)
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink(missing_ok=True)


def directory_should_not_exist(dir_name: str) -> None:
    if os.path.lexists(dir_name):
        raise ExpectationError(f"directory {dir_name} exists")


def file_should_not_exist(file_name: str) -> None:
    if os.path.lexists(file_name):
        raise ExpectationError(f"file {file_name} exists")


def file_exists(file_name: str) -> None:
    try:
        os.stat(file_name)
    except FileNotFoundError as e:
        raise ExpectationError(f"file {file_name} does not exist, error: {e}") from e
    except OSError as e:
        raise ExpectationError(
            f"file {file_name} neither exists nor doesn't exist, error: {e}"
        ) from e


def get_file_content(path: str) -> str:
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise ClicumberError(f"cannot read file: {e}") from e


def create_file(file_name: str) -> None:
    """Create an empty file unless something already exists at that path."""
    if not os.path.lexists(file_name):
        Path(file_name).touch()


def write_to_file(text: str, file_name: str) -> None:
    """Replace the content of an existing file with ``text``."""
    with open(file_name, "r+", encoding="utf-8") as f:
        f.write(text)
        f.truncate()
        f.flush()
        os.fsync(f.fileno())


def download_file_into_location(download_url: str, destination: str, base_dir: str | Path) -> Path:
    """Download ``download_url`` into ``base_dir/destination`` and return the file path."""
    target_dir = Path(base_dir) / destination
    target_dir.mkdir(parents=True, exist_ok=True)
    file_name = urlsplit(download_url).path.rsplit("/", 1)[-1] or "index.html"
    file_path = target_dir / file_name

    request = Request(download_url, headers={"User-Agent": f"clicumber/{__version__}"})
    log.debug("downloading %s into %s", download_url, file_path)
    try:
        with urlopen(request, timeout=DOWNLOAD_TIMEOUT_SECONDS) as response, open(
            file_path, "wb"
        ) as out:
            shutil.copyfileobj(response, out)
    except (HTTPError, URLError, TimeoutError) as e:
        raise ClicumberError(f"cannot download {download_url}: {e}") from e
    return file_path


def file_content_should_contain(file_path: str, expected: str) -> None:
    compare_contains(expected, get_file_content(file_path))


def file_content_should_not_contain(file_path: str, not_expected: str) -> None:
    compare_not_contains(not_expected, get_file_content(file_path))


def file_content_should_equal(file_path: str, expected: str) -> None:
    compare_equals(expected, get_file_content(file_path))


def file_content_should_not_equal(file_path: str, not_expected: str) -> None:
    compare_not_equals(not_expected, get_file_content(file_path))


def file_content_should_match_regex(file_path: str, expected: str) -> None:
    compare_matches_regex(expected, get_file_content(file_path))


def file_content_should_not_match_regex(file_path: str, not_expected: str) -> None:
    compare_not_matches_regex(not_expected, get_file_content(file_path))


def file_content_is_in_valid_format(file_path: str, format_name: str) -> None:
    check_format(format_name, get_file_content(file_path))


def _format_value(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return "[" + " ".join(_format_value(item) for item in value) + "]"
    return str(value)


def get_config_key_value(config_data: str, format_name: str, key_path: str) -> str | None:
    """Return the value at dotted ``key_path``, or None when the key is absent."""
    if format_name == "JSON":
        try:
            values = json.loads(config_data)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Error unmarshaling JSON: {e}") from e
    elif format_name == "YAML":
        try:
            values = yaml.safe_load(config_data)
        except yaml.YAMLError as e:
            raise ConfigError(f"Error unmarshaling YAML: {e}") from e
    else:
        raise ConfigError(f"Config format {format_name} not supported, use JSON or YAML.")

    value = values
    for element in key_path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(element)
    if value is None:
        return None
    if isinstance(value, dict):
        raise ConfigError(f"Key '{key_path}' holds a nested mapping, not a value.")
    return _format_value(value)


def _check_condition(condition: str) -> None:
    if condition not in CONDITIONS:
        raise ConfigError(f"condition must be 'contains' or 'does not contain', got '{condition}'")


def config_file_contains_key(format_name: str, config_path: str, condition: str, key_path: str) -> None:
    _check_condition(condition)
    key_value = get_config_key_value(get_file_content(config_path), format_name, key_path)
    if condition == "contains" and key_value is None:
        raise ExpectationError(f"Config does not contain any value for key {key_path}")
    if condition == "does not contain" and key_value is not None:
        raise ExpectationError(f"Config contains key {key_path} with assigned value: {key_value}")


def config_file_contains_key_matching_value(
    format_name: str,
    config_path: str,
    condition: str,
    key_path: str,
    expected_value: str,
) -> None:
    _check_condition(condition)
    key_value = get_config_key_value(get_file_content(config_path), format_name, key_path)
    matches = key_value is not None and perform_regex_match(expected_value, key_value)
    if condition == "contains" and not matches:
        raise ExpectationError(f"For key '{key_path}' config contains unexpected value '{key_value}'")
    if condition == "does not contain" and matches:
        raise ExpectationError(
            f"For key '{key_path}' config contains value '{key_value}', which it should not contain"
        )
