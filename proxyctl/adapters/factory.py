"""Factory classes for adapter instantiation.

Keeps the CLI layer free from direct adapter imports; adapters are imported
lazily so a backend's dependencies are only loaded when it is selected.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from proxyctl.domain.config import ServiceConfig
    from proxyctl.ports.reporter import StatusReporter
    from proxyctl.ports.supervisor import ProcessSupervisor


class SupervisorFactory:
    """Factory for creating process supervisor adapters."""

    def create_supervisor(self, config: ServiceConfig) -> ProcessSupervisor:
        """Create the supervisor selected by config.supervisor.

        Args:
            config: Service configuration.

        Returns:
            ProcessSupervisor implementation.

        Raises:
            ConfigurationError: If the selected backend is not available.
        """
        if config.supervisor == "start-stop-daemon":
            from proxyctl.adapters.supervisor.start_stop_daemon import (
                StartStopDaemonSupervisor,
            )

            return StartStopDaemonSupervisor()

        from proxyctl.adapters.supervisor.pidfile import PidFileSupervisor

        return PidFileSupervisor()


class ReporterFactory:
    """Factory for creating status reporters."""

    def create_reporter(self, program: str, config: ServiceConfig) -> StatusReporter:
        """Create a console reporter honouring config.verbose.

        Args:
            program: Program name for the usage line.
            config: Service configuration.

        Returns:
            StatusReporter implementation.
        """
        from proxyctl.adapters.reporter.console import ConsoleReporter

        return ConsoleReporter(program=program, verbose=config.verbose)
