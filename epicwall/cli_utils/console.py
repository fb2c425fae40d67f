"""
epicwall console utilities

This module provides application-wide access to Rich Console objects for
writing to stdout and stderr. User facing messages go through the formatting
helpers below; diagnostic detail from the library modules goes through the
standard logging module and is rendered by a RichHandler attached to the
error console (see setup_logging).
"""

import logging
from io import StringIO

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.theme import Theme

epicwall_theme = Theme(
    {"warning": "orange_red1", "fail": "bold red", "confirm": "bold", "describe": ""}
)

console = Console(theme=epicwall_theme)
error_console = Console(theme=epicwall_theme, stderr=True)


"""
Formatting helpers
"""


def warn(msg: str):
    """
    Format msg and print to stderr.
    """

    error_console.print(
        f":exclamation_mark-emoji: [bold]warning: [/] {escape(msg)}", style="warning"
    )


def describe(msg: str, **kwargs):
    """
    Format descriptive msg and print to stdout.
    """

    console.print(f"{msg}", style="describe", **kwargs)


def confirm_success(msg: str, **kwargs):
    """
    Format confirmation msg and print to stdout. Accept any additional kwargs that console.print from
    rich module exposes.
    """

    console.print(f"{msg}", style="confirm", **kwargs)


def fail(msg: str):
    """
    Format failure msg and print to stderr.
    """

    error_console.print(f":x-emoji: failed. {escape(msg)}", style="fail")


def silence():
    """Swallow everything printed to the stdout console. Used for --quiet."""

    console.file = StringIO()


def setup_logging(verbose: bool = False):
    """
    Route records from the epicwall loggers to the error console. Debug records
    (every external command and request) are only shown with --verbose.
    """

    handler = RichHandler(console=error_console, show_path=False, show_time=False)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("epicwall")
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False
