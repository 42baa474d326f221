"""Platform abstraction layer."""

from .process import (
    MockRunner,
    ProcessError,
    ProcessRunner,
    SubprocessRunner,
    run,
    run_interactive,
)

__all__ = [
    "MockRunner",
    "ProcessError",
    "ProcessRunner",
    "SubprocessRunner",
    "run",
    "run_interactive",
]
