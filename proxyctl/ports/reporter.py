"""Status reporter port.

Defines the leveled message interface the controller reports through.
"""

from contextlib import AbstractContextManager
from typing import Protocol

from proxyctl.domain.value_objects import RunState


class StatusReporter(Protocol):
    """Protocol for reporting progress and outcomes to the user.

    Progress, success and info messages are only shown in verbose mode.
    Warnings, status reports and usage are always shown; failures are
    raised to the caller, which prints them on stderr.
    """

    def begin(self, description: str, name: str) -> None:
        """Announce an operation, e.g. "Starting network proxy daemon: proxyd"."""
        ...

    def end(self, ok: bool) -> None:
        """Close the line opened by begin()."""
        ...

    def success(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def report_status(self, name: str, state: RunState) -> None:
        """Print the classification of a status query."""
        ...

    def usage(self) -> None:
        """Print the usage line on stdout."""
        ...

    def busy(self, description: str) -> AbstractContextManager[None]:
        """Context manager shown while waiting on a slow operation."""
        ...
