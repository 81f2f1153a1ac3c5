"""Tests for clicumber.fileops."""

import io
import json
from unittest.mock import MagicMock, patch
from urllib.error import URLError

import pytest

from clicumber import fileops
from clicumber.errors import ClicumberError, ConfigError, ExpectationError


class TestDirectoriesAndFiles:
    def test_create_and_delete_directory(self, tmp_path):
        target = tmp_path / "a" / "b"
        fileops.create_directory(str(target))
        fileops.create_directory(str(target))
        assert target.is_dir()

        fileops.delete_directory(str(tmp_path / "a"))
        fileops.directory_should_not_exist(str(tmp_path / "a"))

    def test_delete_missing_directory_is_ok(self, tmp_path):
        fileops.delete_directory(str(tmp_path / "missing"))

    def test_directory_should_not_exist_fails_when_present(self, tmp_path):
        with pytest.raises(ExpectationError, match="exists"):
            fileops.directory_should_not_exist(str(tmp_path))

    def test_create_file_does_not_clobber(self, tmp_path):
        path = tmp_path / "f.txt"
        fileops.create_file(str(path))
        assert path.read_text() == ""

        path.write_text("keep")
        fileops.create_file(str(path))
        assert path.read_text() == "keep"

    def test_delete_file(self, tmp_path):
        path = tmp_path / "f.txt"
        path.write_text("x")
        fileops.delete_file(str(path))
        fileops.file_should_not_exist(str(path))
        fileops.delete_file(str(path))

    def test_file_exists(self, tmp_path):
        path = tmp_path / "f.txt"
        with pytest.raises(ExpectationError, match="does not exist"):
            fileops.file_exists(str(path))
        path.write_text("x")
        fileops.file_exists(str(path))

    def test_write_to_file_replaces_content(self, tmp_path):
        path = tmp_path / "f.txt"
        path.write_text("a much longer original text")
        fileops.write_to_file("short", str(path))
        assert fileops.get_file_content(str(path)) == "short"

    def test_write_to_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            fileops.write_to_file("text", str(tmp_path / "missing.txt"))

    def test_get_file_content_wraps_errors(self, tmp_path):
        with pytest.raises(ClicumberError, match="cannot read file"):
            fileops.get_file_content(str(tmp_path / "missing.txt"))


class TestFileContent:
    @pytest.fixture
    def sample(self, tmp_path):
        path = tmp_path / "sample.txt"
        path.write_text("version: 1.2.3\n")
        return str(path)

    def test_content_checks(self, sample):
        fileops.file_content_should_contain(sample, "1.2")
        fileops.file_content_should_not_contain(sample, "2.0")
        fileops.file_content_should_equal(sample, "version: 1.2.3\n")
        fileops.file_content_should_not_equal(sample, "version: 1.2.3")
        fileops.file_content_should_match_regex(sample, r"\d+\.\d+\.\d+")
        fileops.file_content_should_not_match_regex(sample, r"^name:")

    def test_failed_content_check_raises(self, sample):
        with pytest.raises(ExpectationError):
            fileops.file_content_should_contain(sample, "missing")

    def test_file_content_format(self, sample):
        fileops.file_content_is_in_valid_format(sample, "YAML")


class TestConfigKeys:
    JSON_DATA = json.dumps(
        {"server": {"port": 8080, "tls": True, "hosts": ["a", "b"]}, "name": "demo"}
    )
    YAML_DATA = "server:\n  port: 8080\n  tls: false\nname: demo\n"

    def test_json_values(self):
        assert fileops.get_config_key_value(self.JSON_DATA, "JSON", "name") == "demo"
        assert fileops.get_config_key_value(self.JSON_DATA, "JSON", "server.port") == "8080"
        assert fileops.get_config_key_value(self.JSON_DATA, "JSON", "server.tls") == "true"
        assert fileops.get_config_key_value(self.JSON_DATA, "JSON", "server.hosts") == "[a b]"

    def test_yaml_values(self):
        assert fileops.get_config_key_value(self.YAML_DATA, "YAML", "server.tls") == "false"
        assert fileops.get_config_key_value(self.YAML_DATA, "YAML", "server.port") == "8080"

    def test_missing_key_returns_none(self):
        assert fileops.get_config_key_value(self.YAML_DATA, "YAML", "server.missing") is None
        assert fileops.get_config_key_value(self.YAML_DATA, "YAML", "name.deeper") is None

    def test_nested_mapping_raises(self):
        with pytest.raises(ConfigError, match="nested mapping"):
            fileops.get_config_key_value(self.YAML_DATA, "YAML", "server")

    def test_unsupported_format(self):
        with pytest.raises(ConfigError, match="not supported"):
            fileops.get_config_key_value("a = 1", "TOML", "a")

    def test_invalid_json(self):
        with pytest.raises(ConfigError, match="Error unmarshaling JSON"):
            fileops.get_config_key_value("{", "JSON", "a")

    def test_config_file_key_steps(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(self.YAML_DATA)

        fileops.config_file_contains_key("YAML", str(path), "contains", "server.port")
        fileops.config_file_contains_key("YAML", str(path), "does not contain", "server.host")
        with pytest.raises(ExpectationError, match="does not contain any value"):
            fileops.config_file_contains_key("YAML", str(path), "contains", "server.host")
        with pytest.raises(ExpectationError, match="assigned value: 8080"):
            fileops.config_file_contains_key("YAML", str(path), "does not contain", "server.port")

    def test_config_file_key_value_steps(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(self.JSON_DATA)

        fileops.config_file_contains_key_matching_value(
            "JSON", str(path), "contains", "server.port", r"^80\d\d$"
        )
        fileops.config_file_contains_key_matching_value(
            "JSON", str(path), "does not contain", "name", "prod"
        )
        with pytest.raises(ExpectationError, match="unexpected value"):
            fileops.config_file_contains_key_matching_value(
                "JSON", str(path), "contains", "name", "prod"
            )

    def test_invalid_condition(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(self.JSON_DATA)
        with pytest.raises(ConfigError):
            fileops.config_file_contains_key("JSON", str(path), "has", "name")


class TestDownload:
    @patch("clicumber.fileops.urlopen")
    def test_downloads_into_destination(self, mock_urlopen, tmp_path):
        response = MagicMock()
        response.__enter__.return_value = io.BytesIO(b"payload")
        mock_urlopen.return_value = response

        path = fileops.download_file_into_location(
            "https://example.com/files/tool.tar.gz", "downloads", tmp_path
        )

        assert path == tmp_path / "downloads" / "tool.tar.gz"
        assert path.read_bytes() == b"payload"
        request = mock_urlopen.call_args.args[0]
        assert request.full_url == "https://example.com/files/tool.tar.gz"

    @patch("clicumber.fileops.urlopen", side_effect=URLError("unreachable"))
    def test_download_errors_are_wrapped(self, _urlopen, tmp_path):
        with pytest.raises(ClicumberError, match="cannot download"):
            fileops.download_file_into_location("https://example.com/x", "d", tmp_path)
