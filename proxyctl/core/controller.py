"""Service controller use case.

Validates the single action argument, classifies the daemon's run state
through the process supervisor, performs the requested operation and
returns the exit code for the invocation.

Error handling contract:
    Operations that succeed (including no-ops) return an ExitCode or, for
    status, the RunState value. Failures raise a ServiceError subclass
    carrying the exit code; the CLI converts these at the boundary.
"""

import logging
import os
import time
from collections.abc import Callable, Sequence

from proxyctl.domain.config import ServiceConfig, ServiceIdentity
from proxyctl.domain.exceptions import (
    ArgumentError,
    OperationError,
    PrivilegeError,
    ResolutionError,
    SupervisorError,
)
from proxyctl.domain.value_objects import (
    Action,
    ExitCode,
    RunState,
    SignalOutcome,
    StopSchedule,
)
from proxyctl.ports.reporter import StatusReporter
from proxyctl.ports.supervisor import ProcessSupervisor

logger = logging.getLogger(__name__)


def _is_superuser() -> bool:
    return os.geteuid() == 0


class ServiceController:
    """Dispatches one service-control action per invocation.

    Args:
        config: Frozen service configuration.
        identity: Resolved service identity.
        supervisor: Process supervisor used for spawn/signal/status.
        reporter: Status reporter for user-facing messages.
        is_superuser: Privilege check (default: effective UID is 0).
        sleep: Sleep function used for the restart pause.
    """

    def __init__(
        self,
        config: ServiceConfig,
        identity: ServiceIdentity,
        supervisor: ProcessSupervisor,
        reporter: StatusReporter,
        is_superuser: Callable[[], bool] = _is_superuser,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.identity = identity
        self.supervisor = supervisor
        self.reporter = reporter
        self._is_superuser = is_superuser
        self._sleep = sleep
        self._handlers: dict[Action, Callable[[], int]] = {
            Action.START: self._start,
            Action.STOP: self._stop,
            Action.RESTART: self._restart,
            Action.TRY_RESTART: self._try_restart,
            Action.RELOAD: self._reload,
            Action.FORCE_RELOAD: self._reload,
            Action.STATUS: self._status,
            Action.HELP: self._help,
        }

    @property
    def handled_actions(self) -> frozenset[Action]:
        return frozenset(self._handlers)

    def run(self, argv: Sequence[str]) -> int:
        """Handle one invocation.

        Args:
            argv: Positional command-line arguments (exactly one expected).

        Returns:
            Exit code for the process.

        Raises:
            ServiceError: Subclass matching the failure, with its exit code.
        """
        name = self.identity.name

        if not self.identity.installed:
            if argv and argv[0] == Action.STOP.value:
                self.reporter.warning(f"{name} is not installed; nothing to stop")
                return ExitCode.SUCCESS
            raise ResolutionError(
                f"{name} executable not found",
                hint="Install the daemon or set DAEMON in "
                f"/etc/default/{name} to its absolute path",
            )

        if len(argv) != 1:
            raise ArgumentError(
                f"Expected exactly one action, got {len(argv)} arguments"
            )

        try:
            action = Action.parse(argv[0])
        except ValueError as e:
            raise ArgumentError(str(e)) from e

        logger.debug("Dispatching %s for %s", action.value, name)
        return self._handlers[action]()

    # ------------------------------------------------------------------
    # Supervisor calls
    # ------------------------------------------------------------------

    def query_state(self) -> RunState:
        """Query the current run state (never cached)."""
        state = self.supervisor.status(
            self.config.pid_file,
            executable=self.identity.executable,
            lock_file=self.config.lock_file,
        )
        logger.debug("%s run state: %s", self.identity.name, state.name)
        return state

    def _spawn(self) -> None:
        self.supervisor.start(
            self.identity.executable, self.config.daemon_args, self.config.pid_file
        )

    def _terminate(self) -> None:
        """Stop the daemon with the configured escalation schedule.

        Raises:
            SupervisorError: If the process survived the schedule.
        """
        with self.reporter.busy(f"waiting for {self.identity.name} to exit"):
            outcome = self.supervisor.signal(
                self.config.pid_file,
                self.config.stop_schedule,
                executable=self.identity.executable,
            )
        logger.debug("Stop outcome: %s", outcome.value)

    def _fail(self, action: str, error: Exception, exit_code: ExitCode) -> OperationError:
        self.reporter.end(False)
        return OperationError(
            f"Failed to {action} {self.identity.name}: {error}",
            hint="Run the status action for details and check the daemon's logs",
            exit_code=exit_code,
        )

    # ------------------------------------------------------------------
    # Action handlers
    # ------------------------------------------------------------------

    def _start(self) -> int:
        name = self.identity.name
        if self.query_state().is_running:
            self.reporter.success(f"{name} already started")
            return ExitCode.SUCCESS

        self.reporter.begin(f"Starting {self.config.description}", name)
        try:
            self._spawn()
        except SupervisorError as e:
            raise self._fail("start", e, ExitCode.START_FAILED) from e
        self.reporter.end(True)
        return ExitCode.SUCCESS

    def _stop(self) -> int:
        name = self.identity.name
        if not self.query_state().is_running:
            self.reporter.success(f"{name} already stopped")
            return ExitCode.SUCCESS

        self.reporter.begin(f"Stopping {self.config.description}", name)
        try:
            self._terminate()
        except SupervisorError as e:
            raise self._fail("stop", e, ExitCode.STOP_FAILED) from e
        self.reporter.end(True)
        return ExitCode.SUCCESS

    def _cycle(self, running: bool) -> int:
        """Stop (if running), pause, then start.

        Raises:
            OperationError: RESTART_STOP_FAILED or RESTART_START_FAILED.
        """
        self.reporter.begin(f"Restarting {self.config.description}", self.identity.name)
        if running:
            try:
                self._terminate()
            except SupervisorError as e:
                raise self._fail("stop", e, ExitCode.RESTART_STOP_FAILED) from e
            self._sleep(self.config.restart_delay)

        try:
            self._spawn()
        except SupervisorError as e:
            raise self._fail("start", e, ExitCode.RESTART_START_FAILED) from e
        self.reporter.end(True)
        return ExitCode.SUCCESS

    def _restart(self) -> int:
        return self._cycle(running=self.query_state().is_running)

    def _try_restart(self) -> int:
        if not self._is_superuser():
            raise PrivilegeError(
                f"try-restart of {self.identity.name} requires super-user privileges",
                hint="Run the command as root",
            )

        if not self.query_state().is_running:
            self.reporter.info(f"{self.identity.name} is not running")
            return ExitCode.SUCCESS
        return self._cycle(running=True)

    def _reload(self) -> int:
        name = self.identity.name
        if not self.query_state().is_running:
            self.reporter.info(f"{name} is not running")
            return ExitCode.SUCCESS

        self.reporter.begin(f"Reloading {self.config.description}", name)
        try:
            outcome = self.supervisor.signal(
                self.config.pid_file,
                StopSchedule.single(self.config.reload_signal),
                executable=self.identity.executable,
            )
            if outcome is SignalOutcome.NOT_RUNNING:
                raise SupervisorError(f"{name} exited before it could be signalled")
        except SupervisorError as e:
            raise self._fail("reload", e, ExitCode.RELOADING_FAILED) from e
        self.reporter.end(True)
        return ExitCode.SUCCESS

    def _status(self) -> int:
        state = self.query_state()
        self.reporter.report_status(self.identity.name, state)
        return int(state)

    def _help(self) -> int:
        self.reporter.usage()
        return ExitCode.SUCCESS
