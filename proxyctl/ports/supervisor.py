"""Port interface for process supervision.

Defines the narrow protocol the controller uses to spawn, signal and
inspect the managed daemon.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from proxyctl.domain.value_objects import RunState, SignalOutcome, StopSchedule


class ProcessSupervisor(Protocol):
    """Protocol for supervising a single PID-file-tracked daemon.

    Implementations own the PID file: they create it on start and remove
    it after a successful stop.
    """

    def start(self, executable: Path, args: Sequence[str], pid_file: Path) -> bool:
        """Spawn the daemon in the background.

        Args:
            executable: Absolute path of the daemon
            args: Arguments passed to the daemon
            pid_file: Where the daemon's PID is recorded

        Returns:
            True if a process was spawned, False if one was already running

        Raises:
            SupervisorError: If the daemon could not be started
        """
        ...

    def signal(
        self,
        pid_file: Path,
        schedule: StopSchedule,
        executable: Path | None = None,
    ) -> SignalOutcome:
        """Deliver a signal schedule to the daemon recorded in pid_file.

        Args:
            pid_file: PID file of the daemon
            schedule: Signals to send, with optional waits between them
            executable: If given, only signal a process running this executable

        Returns:
            SignalOutcome describing what happened

        Raises:
            SupervisorError: If signalling failed or the process outlived the schedule
        """
        ...

    def status(
        self,
        pid_file: Path,
        executable: Path | None = None,
        lock_file: Path | None = None,
    ) -> RunState:
        """Classify whether the daemon is running.

        Args:
            pid_file: PID file of the daemon
            executable: If given, only count a process running this executable
            lock_file: Optional lock file to report when no process is found

        Returns:
            RunState classification
        """
        ...
