"""Command-line interface for clicumber."""

import argparse
import logging
import os
import sys

from clicumber import __version__
from clicumber.config import apply_overrides, load_config
from clicumber.errors import ClicumberError, ConfigError
from clicumber.runner import FeatureRunner
from clicumber.steps import SuiteContext, build_registry

log = logging.getLogger("clicumber")


def supports_color(no_colors: bool) -> bool:
    """Return whether ANSI color output should be used."""
    if no_colors or os.getenv("NO_COLOR") is not None:
        return False
    if os.getenv("TERM", "").lower() == "dumb":
        return False
    return sys.stdout.isatty()


def _split_list(value: str | None) -> list[str] | None:
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clicumber",
        description="Run Gherkin feature files against a real interactive shell",
    )
    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", help="JSON file with default settings")
    parser.add_argument(
        "--test-dir",
        help="Path to the directory in which to execute the tests (empty for a temp dir)",
    )
    parser.add_argument("--test-shell", help="Shell to be used for the testing")
    parser.add_argument("--paths", help="Comma-separated feature files or directories")
    parser.add_argument(
        "--tags",
        help="Comma-separated tags to run; prefix a tag with ~ to exclude it",
    )
    parser.add_argument(
        "--stop-on-failure",
        action="store_true",
        default=None,
        help="Stop when failure is found",
    )
    parser.add_argument(
        "--no-colors",
        action="store_true",
        default=None,
        help="Disable colors in the output",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )

    try:
        config = apply_overrides(
            load_config(args.config),
            test_dir=args.test_dir,
            shell=args.test_shell,
            paths=_split_list(args.paths),
            tags=_split_list(args.tags),
            stop_on_failure=args.stop_on_failure,
            no_colors=args.no_colors,
        )
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    log.debug("config=%s", config)

    suite = SuiteContext(config)
    runner = FeatureRunner(
        suite,
        build_registry(suite),
        tags=config.tags,
        stop_on_failure=config.stop_on_failure,
        color=supports_color(config.no_colors),
    )
    try:
        summary = runner.run(config.paths)
    except ClicumberError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for failure in summary.failures:
        print(f"  {failure}", file=sys.stderr)
    return 0 if summary.ok else 1


def entrypoint() -> None:
    raise SystemExit(main())
