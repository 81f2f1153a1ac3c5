"""Minimal Gherkin feature parser and runner."""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from clicumber.constants import BOLD, CYAN, GREEN, RED, RESET, YELLOW
from clicumber.errors import ClicumberError
from clicumber.steps import StepRegistry, SuiteContext, UndefinedStepError

log = logging.getLogger(__name__)

STEP_KEYWORDS = ("Given", "When", "Then", "And", "But", "*")
SCENARIO_KEYWORDS = ("Scenario:", "Example:")
UNSUPPORTED_KEYWORDS = ("Scenario Outline:", "Scenario Template:", "Rule:")
DOC_STRING_DELIMITERS = ('"""', "```")


class FeatureParseError(ClicumberError):
    """Raised for feature files this runner cannot understand."""


@dataclass
class Step:
    keyword: str
    text: str
    doc_string: str | None = None
    line: int = 0


@dataclass
class Scenario:
    name: str
    steps: list[Step] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    line: int = 0


@dataclass
class Feature:
    name: str
    scenarios: list[Scenario] = field(default_factory=list)
    background: list[Step] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    path: str = "<string>"


def _split_step(stripped: str) -> tuple[str, str] | None:
    for keyword in STEP_KEYWORDS:
        if stripped.startswith(keyword + " "):
            return keyword, stripped[len(keyword) + 1 :].strip()
    return None


def parse_feature(text: str, path: str = "<string>") -> Feature:
    """Parse one feature file into its scenarios and steps."""
    feature: Feature | None = None
    steps: list[Step] | None = None
    pending_tags: list[str] = []

    lines = text.splitlines()
    index = 0
    while index < len(lines):
        raw = lines[index]
        lineno = index + 1
        stripped = raw.strip()
        index += 1

        if not stripped or stripped.startswith("#"):
            continue

        if stripped in DOC_STRING_DELIMITERS:
            if not steps:
                raise FeatureParseError(f"{path}:{lineno}: doc string without a step")
            indent = len(raw) - len(raw.lstrip())
            content: list[str] = []
            while index < len(lines) and lines[index].strip() != stripped:
                line = lines[index]
                content.append(line[indent:] if line[:indent].isspace() else line.lstrip())
                index += 1
            if index >= len(lines):
                raise FeatureParseError(f"{path}:{lineno}: unterminated doc string")
            index += 1
            steps[-1].doc_string = "\n".join(content)
            continue

        if stripped.startswith("@"):
            pending_tags.extend(stripped.split())
            continue

        if stripped.startswith(UNSUPPORTED_KEYWORDS):
            raise FeatureParseError(f"{path}:{lineno}: '{stripped.split(':')[0]}' is not supported")

        if stripped.startswith("Feature:"):
            feature = Feature(
                name=stripped[len("Feature:") :].strip(), tags=pending_tags, path=path
            )
            pending_tags = []
            steps = None
            continue

        if feature is None:
            raise FeatureParseError(f"{path}:{lineno}: expected 'Feature:'")

        if stripped.startswith("Background:"):
            steps = feature.background
            continue

        if stripped.startswith(SCENARIO_KEYWORDS):
            name = stripped.split(":", 1)[1].strip()
            scenario = Scenario(name=name, tags=pending_tags, line=lineno)
            pending_tags = []
            feature.scenarios.append(scenario)
            steps = scenario.steps
            continue

        split = _split_step(stripped)
        if split is not None:
            if steps is None:
                raise FeatureParseError(f"{path}:{lineno}: step outside of a scenario")
            keyword, step_text = split
            steps.append(Step(keyword=keyword, text=step_text, line=lineno))
        # Anything else is free-form description text.

    if feature is None:
        raise FeatureParseError(f"{path}: no 'Feature:' found")
    return feature


def collect_feature_files(paths: list[str]) -> list[Path]:
    """Expand files and directories into a sorted list of .feature files."""
    files: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            files.extend(sorted(path.rglob("*.feature")))
        elif path.is_file():
            files.append(path)
        else:
            raise FeatureParseError(f"feature path {raw} does not exist")
    return files


def tags_selected(tags: list[str], tag_filter: list[str]) -> bool:
    """Return whether a scenario with ``tags`` passes the ``~``-aware filter."""
    excluded = {t[1:] for t in tag_filter if t.startswith("~")}
    included = {t for t in tag_filter if not t.startswith("~")}
    if excluded & set(tags):
        return False
    return not included or bool(included & set(tags))


@dataclass
class RunSummary:
    passed: int = 0
    failed: int = 0
    undefined: int = 0
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.undefined == 0


class FeatureRunner:
    """Run parsed features through the suite hooks and the step registry."""

    def __init__(
        self,
        suite: SuiteContext,
        registry: StepRegistry,
        *,
        tags: list[str] | None = None,
        stop_on_failure: bool = False,
        stream: TextIO | None = None,
        color: bool = False,
    ) -> None:
        self.suite = suite
        self.registry = registry
        self.tags = tags or []
        self.stop_on_failure = stop_on_failure
        self.stream = stream if stream is not None else sys.stdout
        self.color = color
        self.summary = RunSummary()

    def run(self, paths: list[str]) -> RunSummary:
        # Parse before the suite hook changes the working directory.
        features = [
            parse_feature(path.read_text(encoding="utf-8"), str(path))
            for path in collect_feature_files(paths)
        ]
        self.suite.before_suite()
        try:
            for feature in features:
                if not self.run_feature(feature) and self.stop_on_failure:
                    break
        finally:
            self.suite.after_suite()
        self._print_summary()
        return self.summary

    def run_feature(self, feature: Feature) -> bool:
        scenarios = [
            s for s in feature.scenarios if tags_selected(feature.tags + s.tags, self.tags)
        ]
        if not scenarios:
            return True

        self._print(self._paint(f"Feature: {feature.name}", BOLD))
        log.debug("running %d scenario(s) of %s", len(scenarios), feature.path)
        try:
            self.suite.before_feature(feature.name)
        except (ClicumberError, OSError) as e:
            self.suite.after_feature()
            for scenario in scenarios:
                self._record_failure(feature, scenario, f"feature setup failed: {e}")
            self._print(f"  {self._paint(f'feature setup failed: {e}', RED)}")
            return False

        ok = True
        try:
            for scenario in scenarios:
                if not self.run_scenario(feature, scenario):
                    ok = False
                    if self.stop_on_failure:
                        break
        finally:
            self.suite.after_feature()
        return ok

    def run_scenario(self, feature: Feature, scenario: Scenario) -> bool:
        self._print(f"\n  {self._paint(f'Scenario: {scenario.name}', CYAN)}")
        self.suite.before_scenario(scenario.name)

        status = "passed"
        for step in feature.background + scenario.steps:
            label = f"{step.keyword} {step.text}"
            if status != "passed":
                self._print(f"    {self._paint(label, YELLOW)} (skipped)")
                continue
            text, doc_string = self.suite.before_step(step.text, step.doc_string)
            try:
                self.registry.run(text, doc_string)
            except UndefinedStepError:
                status = "undefined"
                self._print(f"    {self._paint(label, YELLOW)} (undefined)")
                self.summary.failures.append(f"{feature.path}:{step.line}: undefined step: {text}")
            except Exception as e:
                status = "failed"
                self._print(f"    {self._paint(label, RED)}\n      {e}")
                self.summary.failures.append(f"{feature.path}:{step.line}: {e}")
            else:
                self._print(f"    {self._paint(label, GREEN)}")

        if status == "passed":
            self.summary.passed += 1
        elif status == "undefined":
            self.summary.undefined += 1
        else:
            self.summary.failed += 1
        return status == "passed"

    def _record_failure(self, feature: Feature, scenario: Scenario, message: str) -> None:
        self.summary.failed += 1
        self.summary.failures.append(f"{feature.path}:{scenario.line}: {message}")

    def _print_summary(self) -> None:
        s = self.summary
        total = s.passed + s.failed + s.undefined
        self._print(
            f"\n{total} scenarios ({s.passed} passed, {s.failed} failed, {s.undefined} undefined)"
        )

    def _paint(self, text: str, color: str) -> str:
        return f"{color}{text}{RESET}" if self.color else text

    def _print(self, text: str) -> None:
        print(text, file=self.stream)
