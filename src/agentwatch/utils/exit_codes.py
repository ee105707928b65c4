"""Exit codes for agentwatch commands."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes returned by the CLI."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    INVALID_CONFIG = 2
    TIMEOUT = 124  # Detection exceeded its deadline
    INTERRUPTED = 130  # User cancelled operation
