"""
CLI Error Handling
==================

Consistent exit codes and error reporting for the bbcx command.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from bbcx_sdk.errors import AssemblyFailed, BbcxError


class ExitCode(IntEnum):
    """Exit codes of the bbcx command."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Assembly error, or a run that faulted
    INVALID_ARGS = 2     # Invalid arguments or missing files
    INTERNAL_ERROR = 3   # Unexpected internal error


def report_error(error: BbcxError, error_type: str | None = None) -> None:
    """
    Print a toolchain error to stderr.

    AssemblyFailed is expanded into one formatted report per collected
    error; these already carry their own "error:" prefix.
    """
    if isinstance(error, AssemblyFailed):
        for e in error.errors:
            click.echo(str(e), err=True)
        return
    prefix = f"{error_type} error: " if error_type else "Error: "
    click.echo(f"{prefix}{error}", err=True)


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Report an exception and exit with the matching exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors
        error_type: Optional prefix for the error message (e.g., "Run")

    Raises:
        SystemExit: Always
    """
    if isinstance(error, BbcxError):
        report_error(error, error_type)
        sys.exit(ExitCode.BUILD_ERROR)

    elif isinstance(error, click.BadParameter):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, (FileNotFoundError, PermissionError)):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
