"""
epicwall Decorators

Decorators shared by click commands. The epicwall pipeline is a single command, so
the only thing left to abstract away is turning a failure anywhere in the pipeline
into a formatted message and an exit code.
"""

from sys import exit
from functools import wraps

import click

from epicwall.cli_utils.console import fail


def catch_errors(func):
    """
    Catch and format errors with the "fail" console template and gracefully
    exit the application with an error code.

    click's own exceptions are re-raised untouched so that click can render
    usage errors and handle --help the way it normally does.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.ClickException:
            raise
        except Exception as error:
            fail(str(error))
            exit(1)

    return wrapper
