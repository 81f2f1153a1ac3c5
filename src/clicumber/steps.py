"""Step registry, suite hooks and the step vocabulary for feature files."""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from clicumber import checks, fileops
from clicumber.errors import ClicumberError
from clicumber.logs import close_log, log_message
from clicumber.models import ClicumberConfig, HostOS, RunDirs
from clicumber.prepare import clean_test_run_dir, prepare_for_e2e_test
from clicumber.shell import (
    ShellSession,
    execute_command_succeeds_or_fails,
    execute_command_with_retry,
    execute_stdout_line_by_line,
    set_scenario_variable_executing_command,
)
from clicumber.variables import ScenarioVariables

log = logging.getLogger(__name__)

FIELD = r"(stdout|stderr|exitcode)"


class UndefinedStepError(ClicumberError):
    """Raised when no registered pattern matches a step."""


@dataclass
class StepDefinition:
    pattern: re.Pattern[str]
    func: Callable[..., None]
    takes_doc_string: bool = False


class StepRegistry:
    """Map step text to the function implementing it."""

    def __init__(self) -> None:
        self._definitions: list[StepDefinition] = []

    def __len__(self) -> int:
        return len(self._definitions)

    def register(self, pattern: str, func: Callable[..., None], *, doc_string: bool = False) -> None:
        self._definitions.append(StepDefinition(re.compile(pattern), func, doc_string))

    def step(self, pattern: str, *, doc_string: bool = False):
        """Decorator form of :meth:`register`."""

        def decorator(func: Callable[..., None]) -> Callable[..., None]:
            self.register(pattern, func, doc_string=doc_string)
            return func

        return decorator

    def find(self, text: str, doc_string: str | None = None) -> tuple[StepDefinition, tuple[str, ...]]:
        for definition in self._definitions:
            if definition.takes_doc_string and doc_string is None:
                continue
            match = definition.pattern.fullmatch(text)
            if match is not None:
                return definition, match.groups()
        raise UndefinedStepError(f"undefined step: {text}")

    def run(self, text: str, doc_string: str | None = None) -> None:
        definition, args = self.find(text, doc_string)
        if definition.takes_doc_string:
            definition.func(*args, doc_string)
        else:
            definition.func(*args)


class SuiteContext:
    """State shared by the steps of one run: the shell, variables and directories."""

    def __init__(self, config: ClicumberConfig, host_os: HostOS | None = None) -> None:
        self.config = config
        self.session = ShellSession(config.shell, host_os=host_os)
        self.variables = ScenarioVariables()
        self.dirs: RunDirs | None = None

    def before_suite(self) -> None:
        self.dirs = prepare_for_e2e_test(self.config.test_dir)

    def before_feature(self, name: str) -> None:
        log_message("info", f"----- Feature: {name} -----")
        self.session.start(self.config.shell)
        self.variables.clear()
        if self.dirs is not None:
            clean_test_run_dir(self.dirs.run_dir)

    def before_scenario(self, name: str) -> None:
        log_message("info", f"----- Scenario: {name} -----")

    def before_step(self, text: str, doc_string: str | None) -> tuple[str, str | None]:
        if doc_string is not None:
            doc_string = self.variables.process(doc_string)
        return self.variables.process(text), doc_string

    def after_feature(self) -> None:
        log_message("info", "----- Cleaning after feature -----")
        try:
            self.session.close()
        except ClicumberError as e:
            log.warning("error closing shell instance: %s", e)

    def after_suite(self) -> None:
        log_message("info", "----- Cleaning Up -----")
        close_log()

    @property
    def run_dir(self) -> str:
        return str(self.dirs.run_dir) if self.dirs is not None else "."


def build_registry(suite: SuiteContext) -> StepRegistry:
    """Register the full step vocabulary against ``suite``."""
    registry = StepRegistry()
    session = suite.session

    def output(field: str) -> str:
        return session.get_last_output(field)

    # Executing commands
    registry.register(r'executing "(.*)"', lambda command: session.execute_command(command))
    registry.register(
        r'executing "(.*)" (succeeds|fails)',
        lambda command, expected: execute_command_succeeds_or_fails(session, command, expected),
    )

    # Command output verification
    comparisons = [
        (r"(?:should contain|contains)", checks.compare_contains),
        (r"(?:should|does) not contain", checks.compare_not_contains),
        (r"(?:should equal|equals)", checks.compare_equals),
        (r"(?:should|does) not equal", checks.compare_not_equals),
        (r"(?:should match|matches)", checks.compare_matches_regex),
        (r"(?:should|does) not match", checks.compare_not_matches_regex),
    ]
    for phrase, compare in comparisons:
        registry.register(
            rf'{FIELD} {phrase} "(.*)"',
            lambda field, expected, compare=compare: compare(expected, output(field)),
        )
        registry.register(
            rf"{FIELD} {phrase}",
            lambda field, content, compare=compare: compare(content, output(field)),
            doc_string=True,
        )

    registry.register(
        rf"{FIELD} (?:should be|is) empty",
        lambda field: checks.compare_equals("", output(field)),
    )
    registry.register(
        rf"{FIELD} (?:should not be|is not) empty",
        lambda field: checks.compare_not_equals("", output(field)),
    )
    registry.register(
        rf'{FIELD} (?:should be|is) valid "([^"]*)"',
        lambda field, format_name: checks.check_format(format_name, output(field)),
    )

    # Command output and execution: extra steps
    registry.register(
        r'with up to "(\d+)" retries with wait period of "(\d+(?:ms|s|m))" '
        r'command "(.*)" output (?:should contain|contains) "(.*)"',
        lambda count, interval, command, expected: execute_command_with_retry(
            session, int(count), interval, command, expected
        ),
    )
    registry.register(
        r"evaluating stdout of the previous command succeeds",
        lambda: execute_stdout_line_by_line(session),
    )

    # Scenario variables
    registry.register(
        r'setting scenario variable "(.*)" to the stdout from executing "(.*)"',
        lambda name, command: set_scenario_variable_executing_command(
            session, suite.variables, name, command
        ),
    )

    # Filesystem operations
    registry.register(r'creating directory "([^"]*)" succeeds', fileops.create_directory)
    registry.register(r'creating file "([^"]*)" succeeds', fileops.create_file)
    registry.register(r'deleting directory "([^"]*)" succeeds', fileops.delete_directory)
    registry.register(r'deleting file "([^"]*)" succeeds', fileops.delete_file)
    registry.register(r'directory "([^"]*)" should not exist', fileops.directory_should_not_exist)
    registry.register(r'file "([^"]*)" should not exist', fileops.file_should_not_exist)
    registry.register(r'file "([^"]*)" should exist', fileops.file_exists)
    registry.register(
        r'file from "(.*)" is downloaded into location "(.*)"',
        lambda url, destination: fileops.download_file_into_location(url, destination, suite.run_dir),
    )
    registry.register(r'writing text "([^"]*)" to file "([^"]*)" succeeds', fileops.write_to_file)

    # File content checks
    registry.register(
        r'content of file "([^"]*)" should contain "([^"]*)"', fileops.file_content_should_contain
    )
    registry.register(
        r'content of file "([^"]*)" should not contain "([^"]*)"',
        fileops.file_content_should_not_contain,
    )
    registry.register(
        r'content of file "([^"]*)" should equal "([^"]*)"', fileops.file_content_should_equal
    )
    registry.register(
        r'content of file "([^"]*)" should not equal "([^"]*)"',
        fileops.file_content_should_not_equal,
    )
    registry.register(
        r'content of file "([^"]*)" should match "([^"]*)"', fileops.file_content_should_match_regex
    )
    registry.register(
        r'content of file "([^"]*)" should not match "([^"]*)"',
        fileops.file_content_should_not_match_regex,
    )
    registry.register(
        r'content of file "([^"]*)" (?:should be|is) valid "([^"]*)"',
        fileops.file_content_is_in_valid_format,
    )

    # Config file checks
    registry.register(
        r'(JSON|YAML) config file "([^"]*)" (contains|does not contain) key "([^"]*)" '
        r'with value matching "([^"]*)"',
        fileops.config_file_contains_key_matching_value,
    )
    registry.register(
        r'(JSON|YAML) config file "([^"]*)" (contains|does not contain) key "([^"]*)"',
        fileops.config_file_contains_key,
    )

    return registry
