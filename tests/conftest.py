"""Pytest configuration and shared fixtures."""

from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from proxyctl.adapters.reporter.console import ConsoleReporter
from proxyctl.core.controller import ServiceController
from proxyctl.domain.config import ServiceConfig, ServiceIdentity
from proxyctl.domain.value_objects import RunState, SignalOutcome, StopSchedule
from tests.helpers.filesystem import make_executable

# ============================================================================
# Fake Process Supervisor
# ============================================================================
# Records every call and models the daemon as a single RunState, so the
# controller can be exercised without spawning real processes.


class FakeSupervisor:
    """In-memory ProcessSupervisor.

    Attributes:
        state: Current run state reported by status().
        calls: Ordered record of (operation, details) tuples.
        start_error: Exception raised by start(), if set.
        stop_error: Exception raised by waiting (stop) schedules, if set.
        signal_error: Exception raised by non-waiting (reload) schedules, if set.
    """

    def __init__(self, state: RunState = RunState.NOT_RUNNING) -> None:
        self.state = state
        self.calls: list[tuple] = []
        self.start_error: Exception | None = None
        self.stop_error: Exception | None = None
        self.signal_error: Exception | None = None

    @property
    def operations(self) -> list[str]:
        """Names of the operations called, in order."""
        return [call[0] for call in self.calls]

    def start(self, executable: Path, args: Sequence[str], pid_file: Path) -> bool:
        self.calls.append(("start", executable, tuple(args), pid_file))
        if self.start_error is not None:
            raise self.start_error
        if self.state is RunState.RUNNING:
            return False
        self.state = RunState.RUNNING
        return True

    def signal(
        self,
        pid_file: Path,
        schedule: StopSchedule,
        executable: Path | None = None,
    ) -> SignalOutcome:
        self.calls.append(("signal", str(schedule)))
        if schedule.waits and self.stop_error is not None:
            raise self.stop_error
        if not schedule.waits and self.signal_error is not None:
            raise self.signal_error
        if self.state is not RunState.RUNNING:
            return SignalOutcome.NOT_RUNNING
        if schedule.waits:
            self.state = RunState.NOT_RUNNING
            return SignalOutcome.STOPPED
        return SignalOutcome.SIGNALLED

    def status(
        self,
        pid_file: Path,
        executable: Path | None = None,
        lock_file: Path | None = None,
    ) -> RunState:
        self.calls.append(("status",))
        return self.state


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def daemon_executable(tmp_path: Path) -> Path:
    """An executable standing in for the proxy daemon."""
    return make_executable(tmp_path / "sbin" / "proxyd")


@pytest.fixture
def fake_supervisor() -> FakeSupervisor:
    """A supervisor whose daemon is not running."""
    return FakeSupervisor()


@pytest.fixture
def make_controller(
    tmp_path: Path, daemon_executable: Path, fake_supervisor: FakeSupervisor
) -> Callable[..., ServiceController]:
    """Factory for controllers wired to the fake supervisor.

    Keyword arguments:
        verbose: Reporter verbosity (default False).
        superuser: Result of the privilege check (default True).
        installed: Whether the executable resolved (default True).
        sleep: Sleep function (default records nothing and returns).
        **config_overrides: Extra ServiceConfig fields.
    """

    def _make(
        verbose: bool = False,
        superuser: bool = True,
        installed: bool = True,
        sleep: Callable[[float], None] | None = None,
        **config_overrides,
    ) -> ServiceController:
        config = ServiceConfig(
            daemon_args=("--listen", "0.0.0.0:3128"),
            pid_file=tmp_path / "proxyd.pid",
            verbose=verbose,
            **config_overrides,
        )
        identity = ServiceIdentity(
            name=config.name,
            executable=daemon_executable if installed else None,
        )
        return ServiceController(
            config=config,
            identity=identity,
            supervisor=fake_supervisor,
            reporter=ConsoleReporter(program="proxyctl", verbose=verbose),
            is_superuser=lambda: superuser,
            sleep=sleep or (lambda seconds: None),
        )

    return _make


@pytest.fixture
def cli_env(tmp_path: Path, daemon_executable: Path) -> dict[str, str | None]:
    """Environment isolating the CLI from the host's /etc/default files.

    Keys mapped to None are unset for the invocation.
    """
    return {
        "PROXYCTL_NAME": "proxyd",
        "PROXYCTL_RCS_FILE": str(tmp_path / "etc" / "rcS"),
        "PROXYCTL_DEFAULTS_FILE": str(tmp_path / "etc" / "proxyd"),
        "PROXYCTL_LOG_LEVEL": "WARNING",
        "DAEMON": str(daemon_executable),
        "DAEMON_ARGS": None,
        "PIDFILE": str(tmp_path / "run" / "proxyd.pid"),
        "LOCKFILE": None,
        "VERBOSE": None,
        "DESC": None,
        "STOP_SCHEDULE": None,
        "RELOAD_SIGNAL": None,
        "RESTART_DELAY": "0",
        "SUPERVISOR": "native",
    }
