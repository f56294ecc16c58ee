"""Console logging for Spindle.

A small leveled logger printed through click, so that output styling matches
the CLI. Instances are passed explicitly to the build and to plugins.
"""

from __future__ import annotations

import click


class SpindleLog:
    """Leveled console logger with a quiet switch.

    Attributes:
        quiet: Suppresses ``log``/``info`` output (warnings and errors still print).
        verbose: Enables ``debug`` output.
    """

    def __init__(self, quiet: bool = False, verbose: bool = False):
        self.quiet = quiet
        self.verbose = verbose

    def log(self, message: str, *args) -> None:
        """Print a progress message, %-formatted with ``args``."""
        if self.quiet:
            return
        click.echo(message % args if args else message)

    def info(self, message: str) -> None:
        if self.quiet:
            return
        click.echo(click.style(message, fg="green"))

    def debug(self, message: str) -> None:
        if not self.verbose or self.quiet:
            return
        click.echo(click.style(message, dim=True))

    def warn(self, message: str) -> None:
        click.echo(click.style(message, fg="yellow"), err=True)

    def error(self, error: str | BaseException) -> None:
        """Print an error message or exception to stderr."""
        if isinstance(error, BaseException):
            message = f"{type(error).__name__}: {error}"
        else:
            message = error
        click.echo(click.style(message, fg="red", bold=True), err=True)
