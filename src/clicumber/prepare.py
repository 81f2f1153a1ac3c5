"""Prepare the directories a test run works in."""

import logging
import os
import shutil
import tempfile
from pathlib import Path

from clicumber.errors import ClicumberError
from clicumber.logs import start_log
from clicumber.models import RunDirs

log = logging.getLogger(__name__)

RUN_DIR_NAME = "test-run"
RESULTS_DIR_NAME = "test-results"


def clean_test_run_dir(run_dir: str | Path) -> None:
    """Remove everything inside ``run_dir`` but keep the directory itself."""
    for entry in Path(run_dir).iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()


def prepare_for_e2e_test(test_dir: str) -> RunDirs:
    """Create and clean the run directories, start the log and chdir into the run dir."""
    try:
        if test_dir:
            base = Path.cwd() / test_dir
            base.mkdir(parents=True, exist_ok=True)
        else:
            base = Path(tempfile.mkdtemp(prefix="clicumber-e2e-test-"))

        dirs = RunDirs(
            test_dir=base,
            run_dir=base / RUN_DIR_NAME,
            results_dir=base / RESULTS_DIR_NAME,
        )
        dirs.run_dir.mkdir(parents=True, exist_ok=True)
        clean_test_run_dir(dirs.run_dir)
        dirs.results_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ClicumberError(f"error creating directory for test run: {e}") from e

    try:
        log_path = start_log(dirs.results_dir)
    except OSError as e:
        raise ClicumberError(f"error starting the log: {e}") from e

    os.chdir(dirs.run_dir)
    log.info("Running e2e test in: %s (log: %s)", dirs.run_dir, log_path)
    return dirs
