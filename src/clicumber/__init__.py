"""Drive an interactive shell as a synchronous command channel for CLI tests."""

__version__ = "0.1.0"
