"""CLI error handling with actionable hints and exit codes.

Provides consistent error formatting for failures surfaced by the
controller, keeping the numeric exit code calling infrastructure relies on.
"""

import click

from proxyctl.domain.exceptions import ServiceError
from proxyctl.domain.value_objects import ExitCode


class ServiceCliError(click.ClickException):
    """CLI error with an actionable hint and a specific exit code.

    Attributes:
        message: The primary error message.
        hint: Optional actionable suggestion for the user.
        exit_code: Process exit code (LSB or init-script specific).

    Example:
        raise ServiceCliError(
            "Failed to start proxyd: exited immediately",
            hint="Check the daemon's logs",
            exit_code=ExitCode.START_FAILED,
        )
    """

    def __init__(
        self,
        message: str,
        hint: str | None = None,
        exit_code: int = ExitCode.GENERIC_ERROR,
    ) -> None:
        super().__init__(message)
        self.hint = hint
        self.exit_code = int(exit_code)

    @classmethod
    def from_service_error(cls, error: ServiceError) -> "ServiceCliError":
        """Convert a domain ServiceError, keeping its hint and exit code."""
        return cls(error.message, hint=error.hint, exit_code=error.exit_code)

    def format_message(self) -> str:
        """Format the error message with hint if present."""
        msg = self.message
        if self.hint:
            msg += f"\nHint: {self.hint}"
        return msg
