"""Process supervisor delegating to Debian's start-stop-daemon."""

import logging
import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path

from proxyctl.domain.exceptions import ConfigurationError, SupervisorError
from proxyctl.domain.value_objects import RunState, SignalOutcome, StopSchedule

logger = logging.getLogger(__name__)

# start-stop-daemon --status exit codes map one-to-one onto RunState,
# except that it never reports a lock file
_STATUS_MAP: dict[int, RunState] = {
    0: RunState.RUNNING,
    1: RunState.NOT_RUNNING_PID_FILE_EXISTS,
    3: RunState.NOT_RUNNING,
    4: RunState.UNKNOWN,
}


class StartStopDaemonSupervisor:
    """Supervisor adapter using subprocess calls to start-stop-daemon."""

    def __init__(self, command: str | None = None) -> None:
        """Initialize the adapter.

        Args:
            command: Path to start-stop-daemon (default: looked up on PATH,
                     then /sbin/start-stop-daemon)

        Raises:
            ConfigurationError: If start-stop-daemon is not installed
        """
        self.command = (
            command
            or shutil.which("start-stop-daemon")
            or shutil.which("start-stop-daemon", path="/sbin:/usr/sbin")
        )
        if not self.command:
            raise ConfigurationError(
                "start-stop-daemon not found",
                hint="Set SUPERVISOR=native to use the built-in supervisor",
            )

    def _run(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        """Run start-stop-daemon with args.

        Raises:
            SupervisorError: If the command can't be executed
        """
        cmd = [self.command, *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            return subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as e:
            raise SupervisorError(f"Failed to run {self.command}: {e}") from e

    @staticmethod
    def _detail(result: subprocess.CompletedProcess[str]) -> str:
        output = (result.stderr or result.stdout or "").strip()
        return f": {output}" if output else ""

    def start(self, executable: Path, args: Sequence[str], pid_file: Path) -> bool:
        """Start the daemon with --background --make-pidfile.

        Returns:
            True if started, False if start-stop-daemon found it already running
        """
        result = self._run(
            [
                "--start",
                "--quiet",
                "--background",
                "--make-pidfile",
                "--pidfile",
                str(pid_file),
                "--exec",
                str(executable),
                "--",
                *args,
            ]
        )
        if result.returncode == 0:
            return True
        if result.returncode == 1:
            return False
        raise SupervisorError(
            f"start-stop-daemon --start exited with {result.returncode}{self._detail(result)}"
        )

    def signal(
        self,
        pid_file: Path,
        schedule: StopSchedule,
        executable: Path | None = None,
    ) -> SignalOutcome:
        """Signal the daemon with --stop, using --retry for waiting schedules."""
        args = ["--stop", "--quiet", "--pidfile", str(pid_file)]
        if schedule.waits:
            args += [f"--retry={schedule}", "--remove-pidfile"]
        else:
            args += ["--signal", schedule.steps[0].signal.name.removeprefix("SIG")]
        if executable is not None:
            args += ["--exec", str(executable)]

        result = self._run(args)
        if result.returncode == 0:
            return SignalOutcome.STOPPED if schedule.waits else SignalOutcome.SIGNALLED
        if result.returncode == 1:
            return SignalOutcome.NOT_RUNNING
        if result.returncode == 2:
            raise SupervisorError(f"Process still running after schedule {schedule}")
        raise SupervisorError(
            f"start-stop-daemon --stop exited with {result.returncode}{self._detail(result)}"
        )

    def status(
        self,
        pid_file: Path,
        executable: Path | None = None,
        lock_file: Path | None = None,
    ) -> RunState:
        """Query --status and fold in the lock file check."""
        args = ["--status", "--pidfile", str(pid_file)]
        if executable is not None:
            args += ["--exec", str(executable)]

        try:
            result = self._run(args)
        except SupervisorError:
            logger.warning("Status query failed", exc_info=True)
            return RunState.UNKNOWN

        state = _STATUS_MAP.get(result.returncode, RunState.UNKNOWN)
        if state is RunState.NOT_RUNNING and lock_file is not None and lock_file.exists():
            return RunState.NOT_RUNNING_LOCK_FILE_EXISTS
        return state
