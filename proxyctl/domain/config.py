"""Config domain models for proxyctl.

Configuration comes from built-in defaults, the init framework's verbosity
file, the service defaults file (/etc/default/<name>) and the environment.
This module defines the validated, immutable result of that cascade.
"""

import math
import signal
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from proxyctl.domain.value_objects import StopSchedule

DEFAULT_SERVICE_NAME = "proxyd"
DEFAULT_DESCRIPTION = "network proxy daemon"
DEFAULT_STOP_SCHEDULE = "QUIT/30/TERM/5/KILL/5"
DEFAULT_RESTART_DELAY = 0.1

# Searched in order when DAEMON is not set explicitly
DEFAULT_SEARCH_PATH: tuple[Path, ...] = (
    Path("/usr/local/sbin"),
    Path("/usr/local/bin"),
    Path("/usr/sbin"),
    Path("/usr/bin"),
    Path("/sbin"),
    Path("/bin"),
)

SupervisorKind = Literal["native", "start-stop-daemon"]
SUPERVISOR_KINDS: frozenset[str] = frozenset({"native", "start-stop-daemon"})


@dataclass(frozen=True)
class ServiceConfig:
    """Runtime configuration for one managed service.

    Attributes:
        name: Service name; also the executable name searched for
        description: Human-readable description used in progress lines
        daemon: Explicit executable path, bypassing the directory search
        daemon_args: Arguments passed to the daemon on start
        pid_file: PID file location (default: /run/<name>.pid)
        lock_file: Optional lock file consulted by the status query
        verbose: Show progress and success messages
        stop_schedule: Signal escalation used by stop and restart
        reload_signal: Signal sent on reload/force-reload
        restart_delay: Pause in seconds between stop and start on restart
        supervisor: Process supervisor backend
        search_path: Directories searched for the executable

    Raises:
        ValueError: If name is empty, restart_delay is negative or not
                   finite, the supervisor is unknown, or pid_file is not
                   absolute.
    """

    name: str = DEFAULT_SERVICE_NAME
    description: str = DEFAULT_DESCRIPTION
    daemon: Path | None = None
    daemon_args: tuple[str, ...] = ()
    pid_file: Path | None = None
    lock_file: Path | None = None
    verbose: bool = False
    stop_schedule: StopSchedule = field(
        default_factory=lambda: StopSchedule.parse(DEFAULT_STOP_SCHEDULE)
    )
    reload_signal: signal.Signals = signal.SIGHUP
    restart_delay: float = DEFAULT_RESTART_DELAY
    supervisor: SupervisorKind = "native"
    search_path: tuple[Path, ...] = DEFAULT_SEARCH_PATH

    def __post_init__(self) -> None:
        """Validate config and fill in name-derived defaults."""
        if not self.name or "/" in self.name:
            raise ValueError(f"Invalid service name: {self.name!r}")
        if not math.isfinite(self.restart_delay):
            raise ValueError(f"restart_delay must be finite, got {self.restart_delay}")
        if self.restart_delay < 0:
            raise ValueError(
                f"restart_delay cannot be negative, got {self.restart_delay}"
            )
        if self.supervisor not in SUPERVISOR_KINDS:
            raise ValueError(
                f"supervisor must be one of {sorted(SUPERVISOR_KINDS)}, "
                f"got {self.supervisor!r}"
            )
        if not self.stop_schedule.waits:
            raise ValueError(
                f"stop schedule '{self.stop_schedule}' must wait for the process to exit"
            )
        if self.pid_file is None:
            # Frozen dataclass: derived default has to go through object.__setattr__
            object.__setattr__(self, "pid_file", Path("/run") / f"{self.name}.pid")
        elif not self.pid_file.is_absolute():
            raise ValueError(f"pid_file must be an absolute path, got {self.pid_file}")


@dataclass(frozen=True)
class ServiceIdentity:
    """Name and resolved executable of the managed daemon.

    Attributes:
        name: Service name
        executable: Absolute path of the daemon, or None if not installed
    """

    name: str
    executable: Path | None

    @property
    def installed(self) -> bool:
        return self.executable is not None
