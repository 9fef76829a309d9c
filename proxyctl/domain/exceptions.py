"""Domain exceptions for service control.

Each exception carries the exit code the process should end with, so the
CLI boundary can convert it without knowing which operation failed.
"""

from proxyctl.domain.value_objects import ExitCode


class ServiceError(Exception):
    """Base exception for all service-control errors.

    Attributes:
        message: User-facing error message.
        hint: Optional actionable suggestion.
        exit_code: Exit code the invocation ends with.
    """

    default_exit_code: ExitCode = ExitCode.GENERIC_ERROR

    def __init__(
        self,
        message: str,
        hint: str | None = None,
        exit_code: ExitCode | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.exit_code = exit_code if exit_code is not None else self.default_exit_code


class ArgumentError(ServiceError):
    """Raised for a wrong number of arguments or an unrecognized action."""

    default_exit_code = ExitCode.INVALID_ARGUMENT


class PrivilegeError(ServiceError):
    """Raised when an action needs super-user rights the caller lacks."""

    default_exit_code = ExitCode.SUPER_USER_ONLY


class ResolutionError(ServiceError):
    """Raised when the daemon executable cannot be found."""

    default_exit_code = ExitCode.DAEMON_NOT_FOUND


class ConfigurationError(ServiceError):
    """Raised when the service configuration is invalid."""

    default_exit_code = ExitCode.NOT_CONFIGURED


class OperationError(ServiceError):
    """Raised when start, stop, restart or reload fails.

    The exit code is always given explicitly, since it depends on the
    operation and, for restarts, on the phase that failed.
    """

    pass


class SupervisorError(Exception):
    """Raised by process supervisor adapters when an operation fails."""

    pass
