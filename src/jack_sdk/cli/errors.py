"""
CLI Error Handling
==================

Maps the exceptions that can escape a ``jackc`` run to messages and exit
codes. Per-unit compile errors never get here: the driver records them
on each unit's result and the command reports them itself.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from jack_sdk.jackc.errors import JackError, SourceDiscoveryError


class ExitCode(IntEnum):
    """Exit codes of the jackc command."""
    SUCCESS = 0
    BUILD_ERROR = 1      # One or more units failed to compile
    INVALID_ARGS = 2     # Nothing to compile at the given path
    INTERNAL_ERROR = 3   # Unexpected internal error


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Report error on stderr and exit with the matching code.

    Args:
        error: The exception that escaped the compiler
        verbose: If True, print the traceback of internal errors

    Raises:
        SystemExit: Always
    """
    if isinstance(error, SourceDiscoveryError):
        click.echo(str(error), err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    if isinstance(error, JackError):
        # Already formatted with its "error:" prefix
        click.echo(str(error), err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    if isinstance(error, (FileNotFoundError, PermissionError)):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    click.echo(f"Internal error: {error}", err=True)
    if verbose:
        traceback.print_exc()
    sys.exit(ExitCode.INTERNAL_ERROR)
