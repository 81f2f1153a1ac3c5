"""Configuration model for clicumber."""

from pydantic import BaseModel, Field

DEFAULT_TEST_DIR = "out"
DEFAULT_FEATURE_PATH = "features"


class ClicumberConfig(BaseModel):
    """Runtime configuration for a feature run."""

    test_dir: str = DEFAULT_TEST_DIR
    shell: str = ""
    paths: list[str] = Field(default_factory=lambda: [DEFAULT_FEATURE_PATH])
    tags: list[str] = Field(default_factory=list)
    stop_on_failure: bool = False
    no_colors: bool = False
