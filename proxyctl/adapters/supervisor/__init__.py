"""Process supervisor adapters.

- pidfile.py: native supervisor (subprocess + psutil)
- start_stop_daemon.py: delegates to Debian's start-stop-daemon
"""

from proxyctl.adapters.supervisor.pidfile import PidFileSupervisor
from proxyctl.adapters.supervisor.start_stop_daemon import StartStopDaemonSupervisor

__all__ = ["PidFileSupervisor", "StartStopDaemonSupervisor"]
