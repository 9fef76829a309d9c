"""Console status reporter.

Prints init-script style progress lines ("Starting network proxy daemon:
proxyd.") and tagged messages. On an interactive terminal the progress line
is held back while a transient Rich spinner runs, then printed complete.
"""

from collections.abc import Iterator
from contextlib import contextmanager

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from proxyctl.domain.value_objects import Action, RunState


class ConsoleReporter:
    """StatusReporter implementation writing to stdout/stderr via click.

    Args:
        program: Program name shown in the usage line.
        verbose: Show progress, success and info messages.
    """

    def __init__(self, program: str, verbose: bool = False) -> None:
        self.program = program
        self.verbose = verbose
        self._line_open = False
        self._pending: str | None = None

    def _close_line(self) -> None:
        """Terminate a pending begin() line before printing anything else."""
        if self._pending is not None:
            click.echo(self._pending)
            self._pending = None
        elif self._line_open:
            click.echo()
        self._line_open = False

    def begin(self, description: str, name: str) -> None:
        if not self.verbose:
            return
        self._close_line()
        text = f"{description}: {name}"
        if Console().is_terminal:
            self._pending = text
        else:
            click.echo(text, nl=False)
        self._line_open = True

    def end(self, ok: bool) -> None:
        if not self.verbose:
            return
        if self._pending is not None:
            click.echo(self._pending, nl=False)
            self._pending = None
        if ok:
            click.secho(".", fg="green")
        else:
            click.secho(" failed!", fg="red")
        self._line_open = False

    def success(self, message: str) -> None:
        if not self.verbose:
            return
        self._close_line()
        click.echo(click.style("[ ok ]", fg="green") + f" {message}")

    def info(self, message: str) -> None:
        if not self.verbose:
            return
        self._close_line()
        click.echo(click.style("[info]", fg="blue") + f" {message}")

    def warning(self, message: str) -> None:
        self._close_line()
        click.echo(click.style("[warn]", fg="yellow") + f" {message}", err=True)

    def report_status(self, name: str, state: RunState) -> None:
        self._close_line()
        if state.is_running:
            tag = click.style("[ ok ]", fg="green")
        else:
            tag = click.style("[FAIL]", fg="red")
        click.echo(f"{tag} {state.describe(name)}")

    def usage(self) -> None:
        self._close_line()
        click.echo(f"Usage: {self.program} {Action.usage_metavar()}")

    @contextmanager
    def busy(self, description: str) -> Iterator[None]:
        """Show a transient spinner while a held-back progress line is pending."""
        if self._pending is None:
            yield
            return

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=Console(),
            transient=True,
        ) as progress:
            progress.add_task(f"{self._pending} ({description})", total=None)
            yield
