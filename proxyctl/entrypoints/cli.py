"""proxyctl CLI entrypoint.

Init-script style command-line interface for the managed proxy daemon:

    proxyctl {start|stop|restart|try-restart|reload|force-reload|status|help}
"""

from __future__ import annotations

import functools
import logging
import os
import sys
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from proxyctl.core.controller import ServiceController
    from proxyctl.domain.config import ServiceConfig, ServiceIdentity

from proxyctl.core.errors import ServiceCliError
from proxyctl.domain.exceptions import ArgumentError, ServiceError
from proxyctl.domain.value_objects import Action
from proxyctl.shared.config_io import load_service_config, resolve_executable
from proxyctl.version import __version__

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _configure_logging() -> None:
    """Configure diagnostic logging on stderr from PROXYCTL_LOG_LEVEL."""
    level_name = os.environ.get("PROXYCTL_LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def handle_cli_errors(command_name: str):
    """Decorator to convert service errors into CLI errors.

    ArgumentError becomes a click.UsageError (usage line on stderr, exit 2);
    other ServiceError subclasses become ServiceCliError with their exit
    code. Unexpected exceptions are reported with exit code 1.

    Args:
        command_name: Name of the command for error messages.

    Returns:
        Decorated function with error handling.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(ctx: click.Context, *args, **kwargs):
            try:
                return func(ctx, *args, **kwargs)
            except (click.ClickException, click.exceptions.Exit):
                raise
            except ArgumentError as e:
                raise click.UsageError(e.message, ctx=ctx) from e
            except ServiceError as e:
                raise ServiceCliError.from_service_error(e) from e
            except Exception as e:
                if logging.getLogger().isEnabledFor(logging.DEBUG):
                    import traceback

                    traceback.print_exc()
                raise ServiceCliError(
                    f"Unexpected error in {command_name}: {e}",
                    hint="Set PROXYCTL_LOG_LEVEL=DEBUG for more details",
                ) from e

        return wrapper

    return decorator


def _create_controller(
    program: str, config: ServiceConfig, identity: ServiceIdentity
) -> ServiceController:
    """Create the controller with its supervisor and reporter.

    Raises:
        ConfigurationError: If the configured supervisor backend is unavailable
    """
    from proxyctl.adapters.factory import ReporterFactory, SupervisorFactory
    from proxyctl.core.controller import ServiceController

    return ServiceController(
        config=config,
        identity=identity,
        supervisor=SupervisorFactory().create_supervisor(config),
        reporter=ReporterFactory().create_reporter(program, config),
    )


@handle_cli_errors("proxyctl")
def _run_action(ctx: click.Context, args: tuple[str, ...]) -> int:
    """Load configuration, resolve the daemon and dispatch the action."""
    config = load_service_config()
    identity = resolve_executable(config)
    controller = _create_controller(ctx.info_name or "proxyctl", config, identity)
    return controller.run(list(args))


@click.command(
    add_help_option=False,
    options_metavar="",
    context_settings={"ignore_unknown_options": True},
)
@click.version_option(version=__version__, prog_name="proxyctl")
@click.argument(
    "args",
    nargs=-1,
    type=click.UNPROCESSED,
    metavar=Action.usage_metavar(),
)
@click.pass_context
def cli(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Control the network proxy daemon."""
    _configure_logging()
    ctx.exit(int(_run_action(ctx, args)))


def main() -> int:
    """Main entrypoint for the CLI."""
    try:
        cli(obj={})
        return 0
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
