"""
jackc - Jack Compiler Command-Line Interface
============================================

This module implements the command-line interface for the Jack compiler.
It compiles a single .jack file, or every .jack file in a directory, to
Hack VM code.

Usage Examples
--------------
Compile one class (writes Main.vm next to it):
    $ jackc Main.jack

Compile a program directory into a build directory using 4 threads:
    $ jackc Pong/ -o build/ -j 4

Check a program for errors without writing anything:
    $ jackc --check Pong/

Print the generated code:
    $ jackc Main.jack --stdout

Verbose mode:
    $ jackc -v Pong/
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from jack_sdk import __version__
from jack_sdk.cli.errors import ExitCode, handle_cli_exception
from jack_sdk.jackc import CompilerOptions, JackCompiler

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "path",
    type=click.Path(exists=True, path_type=Path),
)
@click.option(
    "-o", "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for .vm files (default: next to each source)",
)
@click.option(
    "-j", "--jobs",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Number of units to compile in parallel",
)
@click.option(
    "--check",
    is_flag=True,
    help="Compile only; report errors without writing .vm files",
)
@click.option(
    "--stdout", "to_stdout",
    is_flag=True,
    help="Print generated VM code instead of writing .vm files",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="jackc")
def main(
    path: Path,
    output_dir: Optional[Path],
    jobs: int,
    check: bool,
    to_stdout: bool,
    verbose: bool,
) -> None:
    """
    Compile Jack source code to Hack VM code.

    PATH is a .jack file, or a directory whose .jack files are all
    compiled. Each class is compiled on its own; a class with errors is
    reported and skipped while the others are still compiled.

    \b
    Examples:
        jackc Main.jack              # Outputs Main.vm
        jackc Pong/                  # One .vm per .jack file
        jackc Pong/ -o build/ -j 4   # Parallel build into build/
        jackc --check Pong/          # Report errors only
        jackc Main.jack --stdout     # Print the VM code

    \b
    Expressions are evaluated strictly left to right:
        2 + 3 * 4   is   (2 + 3) * 4
    """
    setup_logging(verbose)

    options = CompilerOptions(
        output_dir=output_dir,
        jobs=jobs,
        write_output=not (check or to_stdout),
    )

    try:
        if verbose:
            click.echo(f"Compiling {path}...")
            click.echo(f"Parallel jobs: {jobs}")

        results = JackCompiler(options).compile_path(path)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)

    failures = 0
    for result in results:
        if not result.success:
            failures += 1
            click.echo(str(result.error), err=True)
            continue

        if to_stdout:
            click.echo(result.vm_code, nl=False)
        elif check:
            click.echo(f"OK {result.filename}")
        else:
            click.echo(f"Compiled {result.filename} -> {result.output_path}")

        if verbose:
            click.echo(
                f"  {result.class_name}: {result.token_count} tokens, "
                f"{len(result.instructions)} instructions"
            )

    if failures:
        click.echo(f"{failures} of {len(results)} unit(s) failed", err=True)
        sys.exit(ExitCode.BUILD_ERROR)


if __name__ == "__main__":
    main()
