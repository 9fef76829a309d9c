"""Native PID-file process supervisor.

Spawns the daemon detached from the controlling terminal, records its PID,
and stops it with a signal escalation schedule. Process checks go through
psutil so that a recycled PID belonging to another program is not mistaken
for the daemon.
"""

import contextlib
import logging
import os
import subprocess
import tempfile
import time
from collections.abc import Callable, Sequence
from pathlib import Path

import psutil

from proxyctl.domain.exceptions import SupervisorError
from proxyctl.domain.value_objects import RunState, SignalOutcome, StopSchedule

logger = logging.getLogger(__name__)

# Linux caps pid_max at 2**22; larger values mean a corrupt PID file
MAX_PID = 2**22


class PidFileSupervisor:
    """Process supervisor backed by a PID file and psutil."""

    def __init__(
        self,
        startup_grace: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize supervisor.

        Args:
            startup_grace: Seconds to wait after spawning before checking
                           that the daemon did not exit immediately
            sleep: Sleep function (injectable for tests)
        """
        self.startup_grace = startup_grace
        self._sleep = sleep

    # ------------------------------------------------------------------
    # PID file handling
    # ------------------------------------------------------------------

    def read_pid(self, pid_file: Path) -> int | None:
        """Read the PID recorded in pid_file.

        Returns:
            PID if the file exists and holds a valid process ID, else None

        Raises:
            PermissionError: If the file exists but cannot be read
        """
        try:
            content = pid_file.read_text().strip()
        except FileNotFoundError:
            return None
        except PermissionError:
            raise
        except OSError:
            return None

        try:
            pid = int(content.split()[0]) if content else 0
        except ValueError:
            return None
        return pid if 0 < pid < MAX_PID else None

    def write_pid(self, pid_file: Path, pid: int) -> None:
        """Atomically record pid in pid_file."""
        pid_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{pid_file.name}.", dir=pid_file.parent
        )
        try:
            with os.fdopen(fd, "w") as f:
                f.write(f"{pid}\n")
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, pid_file)
        except OSError:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise
        logger.debug("Wrote PID %d to %s", pid, pid_file)

    def remove_pid(self, pid_file: Path) -> None:
        """Remove pid_file if present."""
        with contextlib.suppress(FileNotFoundError):
            pid_file.unlink()
            logger.debug("Removed PID file %s", pid_file)

    # ------------------------------------------------------------------
    # Process lookup
    # ------------------------------------------------------------------

    def _reap_zombie(self, pid: int) -> None:
        """Attempt to reap a zombie process if it's our child."""
        with contextlib.suppress(ChildProcessError, OSError, OverflowError):
            os.waitpid(pid, os.WNOHANG)

    def _matches_executable(self, proc: psutil.Process, executable: Path) -> bool:
        """Check that proc runs executable, directly or through an interpreter."""
        target = os.path.realpath(executable)
        try:
            exe = proc.exe()
            if exe and os.path.realpath(exe) == target:
                return True
            return any(
                os.path.realpath(arg) == target
                for arg in proc.cmdline()[:2]
                if arg.startswith("/")
            )
        except psutil.NoSuchProcess:
            # Exited since lookup (ZombieProcess included)
            return False
        except psutil.AccessDenied:
            # Other users' processes cannot be inspected; trust the PID file
            return True

    def find_process(
        self, pid_file: Path, executable: Path | None = None
    ) -> psutil.Process | None:
        """Return the live process recorded in pid_file, if any.

        Args:
            pid_file: PID file to read
            executable: If given, the process must be running this executable

        Returns:
            psutil.Process, or None if there is no matching live process

        Raises:
            PermissionError: If the PID file cannot be read
        """
        pid = self.read_pid(pid_file)
        if pid is None:
            return None

        self._reap_zombie(pid)
        try:
            proc = psutil.Process(pid)
        except psutil.NoSuchProcess:
            return None

        try:
            if proc.status() == psutil.STATUS_ZOMBIE:
                return None
        except psutil.NoSuchProcess:
            return None
        except psutil.AccessDenied:
            pass  # status unreadable; existence is enough

        if executable is not None and not self._matches_executable(proc, executable):
            logger.info(
                "PID %d from %s is not running %s, ignoring", pid, pid_file, executable
            )
            return None
        return proc

    # ------------------------------------------------------------------
    # ProcessSupervisor protocol
    # ------------------------------------------------------------------

    def status(
        self,
        pid_file: Path,
        executable: Path | None = None,
        lock_file: Path | None = None,
    ) -> RunState:
        """Classify whether the daemon is running.

        Returns:
            RUNNING if the recorded process is alive, NOT_RUNNING_PID_FILE_EXISTS
            for a stale PID file, NOT_RUNNING_LOCK_FILE_EXISTS if only the lock
            file remains, NOT_RUNNING otherwise, UNKNOWN if the PID file
            cannot be read
        """
        try:
            if self.find_process(pid_file, executable) is not None:
                return RunState.RUNNING
        except PermissionError:
            logger.warning("Cannot read PID file %s", pid_file)
            return RunState.UNKNOWN

        if pid_file.exists():
            return RunState.NOT_RUNNING_PID_FILE_EXISTS
        if lock_file is not None and lock_file.exists():
            return RunState.NOT_RUNNING_LOCK_FILE_EXISTS
        return RunState.NOT_RUNNING

    def start(self, executable: Path, args: Sequence[str], pid_file: Path) -> bool:
        """Spawn the daemon in the background and record its PID.

        Returns:
            True if spawned, False if a matching process was already running

        Raises:
            SupervisorError: If the process can't be spawned, the PID file
                             can't be written, or the daemon exits immediately
        """
        try:
            if self.find_process(pid_file, executable) is not None:
                logger.info("%s already running", executable)
                return False
        except PermissionError as e:
            raise SupervisorError(f"Cannot read PID file {pid_file}: {e}") from e

        cmd = [str(executable), *args]
        logger.info("Spawning %s", " ".join(cmd))
        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,  # Detach from the controlling terminal
                close_fds=True,
            )
        except OSError as e:
            raise SupervisorError(f"Failed to spawn {executable}: {e}") from e

        try:
            self.write_pid(pid_file, process.pid)
        except OSError as e:
            # Failed to write PID file - terminate process to avoid orphan
            process.terminate()
            raise SupervisorError(f"Failed to write PID file {pid_file}: {e}") from e

        self._sleep(self.startup_grace)
        exit_code = process.poll()
        if exit_code is not None:
            self.remove_pid(pid_file)
            raise SupervisorError(
                f"{executable} exited immediately (exit code: {exit_code})"
            )

        logger.info("Started %s with PID %d", executable, process.pid)
        return True

    def signal(
        self,
        pid_file: Path,
        schedule: StopSchedule,
        executable: Path | None = None,
    ) -> SignalOutcome:
        """Deliver schedule to the recorded process.

        Each step sends its signal and, if it has a timeout, waits that long
        for the process to exit before moving on to the next step. The PID
        file is removed once the process has exited.

        Raises:
            SupervisorError: If the PID file is unreadable, a signal can't be
                             delivered, or the process survives every step
        """
        try:
            proc = self.find_process(pid_file, executable)
        except PermissionError as e:
            raise SupervisorError(f"Cannot read PID file {pid_file}: {e}") from e

        if proc is None:
            logger.info("No process to signal (PID file %s)", pid_file)
            return SignalOutcome.NOT_RUNNING

        for step in schedule.steps:
            logger.info("Sending %s to PID %d", step.signal.name, proc.pid)
            try:
                proc.send_signal(step.signal)
            except psutil.NoSuchProcess:
                logger.info("Process %d already exited", proc.pid)
                self.remove_pid(pid_file)
                return SignalOutcome.STOPPED
            except psutil.AccessDenied as e:
                raise SupervisorError(
                    f"Permission denied sending {step.signal.name} to PID {proc.pid}"
                ) from e

            if step.timeout is None:
                return SignalOutcome.SIGNALLED

            _, alive = psutil.wait_procs([proc], timeout=step.timeout)
            if not alive:
                logger.info("Process %d exited after %s", proc.pid, step.signal.name)
                self.remove_pid(pid_file)
                return SignalOutcome.STOPPED
            logger.warning(
                "Process %d still running %gs after %s",
                proc.pid,
                step.timeout,
                step.signal.name,
            )

        raise SupervisorError(
            f"Process {proc.pid} still running after schedule {schedule}"
        )
