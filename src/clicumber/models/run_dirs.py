"""Directory layout of one test run."""

from dataclasses import dataclass
from pathlib import Path


@dataclass
class RunDirs:
    """Where a test run executes commands and writes its results."""

    test_dir: Path
    run_dir: Path
    results_dir: Path
