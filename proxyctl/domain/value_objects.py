"""Domain value objects for service control.

Enumerations for actions, run states and exit codes, plus the validated
signal escalation schedule used when stopping the daemon.
"""

import math
import signal
from dataclasses import dataclass
from enum import Enum, IntEnum


class Action(str, Enum):
    """Service-control verbs accepted on the command line.

    Every member must have a handler in the controller's dispatch table.
    """

    START = "start"
    STOP = "stop"
    RESTART = "restart"
    TRY_RESTART = "try-restart"
    RELOAD = "reload"
    FORCE_RELOAD = "force-reload"
    STATUS = "status"
    HELP = "help"

    @classmethod
    def parse(cls, word: str) -> "Action":
        """Parse a command-line word into an Action.

        Args:
            word: The verb exactly as typed.

        Returns:
            The matching Action.

        Raises:
            ValueError: If the word is not a known action.
        """
        try:
            return cls(word)
        except ValueError:
            raise ValueError(f"Unrecognized action '{word}'") from None

    @classmethod
    def usage_metavar(cls) -> str:
        """Return the `{start|stop|...}` form used in usage lines."""
        return "{" + "|".join(action.value for action in cls) + "}"


class RunState(IntEnum):
    """Point-in-time liveness classification of the daemon.

    Values follow the LSB status exit codes, so `status` can exit with
    the state directly.
    """

    RUNNING = 0
    NOT_RUNNING_PID_FILE_EXISTS = 1
    NOT_RUNNING_LOCK_FILE_EXISTS = 2
    NOT_RUNNING = 3
    UNKNOWN = 4

    @property
    def is_running(self) -> bool:
        return self is RunState.RUNNING

    def describe(self, name: str) -> str:
        """Human-readable status line for a service.

        Args:
            name: Service name to mention in the line.

        Returns:
            One-line description of this state.
        """
        return {
            RunState.RUNNING: f"{name} is running",
            RunState.NOT_RUNNING_PID_FILE_EXISTS: f"{name} is not running but the pid file exists",
            RunState.NOT_RUNNING_LOCK_FILE_EXISTS: f"{name} is not running but the lock file exists",
            RunState.NOT_RUNNING: f"{name} is not running",
            RunState.UNKNOWN: f"could not access pid file for {name}",
        }[self]


class ExitCode(IntEnum):
    """Exit codes returned by the controller."""

    SUCCESS = 0
    GENERIC_ERROR = 1
    INVALID_ARGUMENT = 2
    SUPER_USER_ONLY = 4
    DAEMON_NOT_FOUND = 5
    NOT_CONFIGURED = 6
    RELOADING_FAILED = 150
    RESTART_STOP_FAILED = 151
    RESTART_START_FAILED = 152
    START_FAILED = 153
    STOP_FAILED = 154


class SignalOutcome(str, Enum):
    """Result of delivering a signal schedule to the daemon.

    - SIGNALLED: signal delivered, no wait was requested
    - STOPPED: the process exited within the schedule
    - NOT_RUNNING: there was no matching process to signal
    """

    SIGNALLED = "signalled"
    STOPPED = "stopped"
    NOT_RUNNING = "not_running"


def parse_signal(value: str | int) -> signal.Signals:
    """Parse a signal name (`HUP`, `SIGHUP`) or number into a Signals member.

    Args:
        value: Signal name, with or without the SIG prefix, or its number.

    Returns:
        The matching signal.

    Raises:
        ValueError: If the value does not name a known signal.
    """
    if isinstance(value, int) or str(value).isdigit():
        try:
            return signal.Signals(int(value))
        except ValueError:
            raise ValueError(f"Unknown signal number: {value}") from None

    name = str(value).strip().upper()
    if not name.startswith("SIG"):
        name = f"SIG{name}"
    try:
        return signal.Signals[name]
    except KeyError:
        raise ValueError(f"Unknown signal: {value}") from None


@dataclass(frozen=True)
class RetryStep:
    """One step of a stop schedule: send `signal`, then wait `timeout` seconds.

    A timeout of None means the signal is sent without waiting for the
    process to exit.

    Raises:
        ValueError: If timeout is not a positive finite number.
    """

    signal: signal.Signals
    timeout: float | None = None

    def __post_init__(self) -> None:
        if self.timeout is not None and not (
            math.isfinite(self.timeout) and self.timeout > 0
        ):
            raise ValueError(f"timeout must be positive and finite, got {self.timeout}")


@dataclass(frozen=True)
class StopSchedule:
    """Ordered signal escalation chain.

    Uses the `start-stop-daemon --retry` notation: `QUIT/30/TERM/5/KILL/5`
    means send SIGQUIT and wait 30 seconds, then SIGTERM and 5 seconds, then
    SIGKILL and 5 seconds. A bare number `N` is short for `TERM/N/KILL/N`,
    and a lone signal name (`HUP`) sends that signal without waiting.

    Attributes:
        steps: Escalation steps, applied in order.

    Raises:
        ValueError: If the schedule is empty or a non-final step has no timeout.
    """

    steps: tuple[RetryStep, ...]

    def __post_init__(self) -> None:
        if not self.steps:
            raise ValueError("stop schedule must have at least one step")
        for step in self.steps[:-1]:
            if step.timeout is None:
                raise ValueError("only the last step of a schedule may omit its timeout")
        if len(self.steps) > 1 and self.steps[-1].timeout is None:
            raise ValueError("an escalating schedule must end with a timeout")

    @classmethod
    def parse(cls, text: str) -> "StopSchedule":
        """Parse `SIG/TIMEOUT/SIG/TIMEOUT...` notation.

        Args:
            text: Schedule string.

        Returns:
            Parsed schedule.

        Raises:
            ValueError: If the string is malformed.
        """
        items = [item.strip() for item in text.strip().split("/")]
        if not items or not items[0]:
            raise ValueError("stop schedule cannot be empty")

        if len(items) == 1 and items[0].isdigit():
            timeout = float(items[0])
            return cls(
                steps=(
                    RetryStep(signal.SIGTERM, timeout),
                    RetryStep(signal.SIGKILL, timeout),
                )
            )

        steps: list[RetryStep] = []
        for index in range(0, len(items), 2):
            sig = parse_signal(items[index])
            timeout = None
            if index + 1 < len(items):
                raw_timeout = items[index + 1]
                try:
                    timeout = float(raw_timeout)
                except ValueError:
                    raise ValueError(
                        f"Invalid timeout '{raw_timeout}' in stop schedule '{text}'"
                    ) from None
            steps.append(RetryStep(sig, timeout))
        return cls(steps=tuple(steps))

    @classmethod
    def single(cls, sig: signal.Signals) -> "StopSchedule":
        """Schedule that sends one signal and does not wait."""
        return cls(steps=(RetryStep(sig),))

    @property
    def waits(self) -> bool:
        """True if the schedule waits for the process to exit."""
        return self.steps[-1].timeout is not None

    def __str__(self) -> str:
        """Format back into `--retry` notation."""
        parts: list[str] = []
        for step in self.steps:
            parts.append(step.signal.name.removeprefix("SIG"))
            if step.timeout is not None:
                parts.append(f"{step.timeout:g}")
        return "/".join(parts)
