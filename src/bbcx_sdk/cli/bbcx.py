"""
bbcx - BBC-X Assembler and Executor Command-Line Interface
==========================================================

Assembles each source file in order, optionally writing a listing,
running the program and writing an execution trace. A file that fails
does not stop the files after it; the exit code reports whether any
file failed.

Usage Examples
--------------
Assemble (check) a program:
    $ bbcx program.bbcx

Assemble, list and run:
    $ bbcx -l -r program.bbcx

Trace a run into a directory, stopping runaway programs:
    $ bbcx --trace-path traces/ --max-steps 10000 program.bbcx

List legacy programs:
    $ bbcx --language bbc3 -l old1.bbc3 old2.bbc3

Environment
-----------
BBCX_LANGUAGE, BBCX_LIST_PATH, BBCX_TRACE_PATH and BBCX_MAX_STEPS
supply defaults; command-line options override them.
"""

import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, TextIO, Union

import click

from bbcx_sdk import __version__
from bbcx_sdk.assembler.assembly import Assembly
from bbcx_sdk.cli.errors import ExitCode, handle_cli_exception, report_error
from bbcx_sdk.cli.render import render_listing, render_trace
from bbcx_sdk.config import LANGUAGES, BuildConfig
from bbcx_sdk.dialects import Dialect, get_dialect
from bbcx_sdk.emulator import Executor, RunStatus, TraceRecorder
from bbcx_sdk.errors import AssemblyFailed, DialectError, ExecutionFault

logger = logging.getLogger(__name__)

Number = Union[int, float]


# =============================================================================
# Terminal I/O for Running Programs
# =============================================================================

class TerminalOutput:
    """Writes program output to stdout as it is produced."""

    def __init__(self):
        self.last = ""

    def write(self, text: str) -> None:
        click.echo(text, nl=False)
        if text:
            self.last = text[-1]

    def finish(self) -> None:
        """End a partial output line."""
        if self.last and self.last != "\n":
            click.echo()
        self.last = ""


class StreamInput:
    """Reads whitespace-separated numbers from a text stream on demand."""

    def __init__(self, stream: TextIO):
        self._stream = stream
        self._pending: list[str] = []

    def read_number(self) -> Optional[Number]:
        while not self._pending:
            line = self._stream.readline()
            if not line:
                return None
            self._pending = line.split()
        return parse_number(self._pending.pop(0))


def parse_number(token: str) -> Number:
    """
    Raises:
        click.BadParameter: If token is not a decimal number
    """
    try:
        return int(token)
    except ValueError:
        pass
    try:
        return float(token.replace("@", "e"))
    except ValueError:
        raise click.BadParameter(f"input {token!r} is not a number") from None


# =============================================================================
# Per-file Processing
# =============================================================================

def process_file(path: Path, config: BuildConfig, dialect: Dialect) -> bool:
    """
    Assemble one file, then list, run and trace it as configured.

    Returns:
        True if everything requested for the file succeeded
    """
    logger.debug(f"Processing {path} as {dialect.name}")
    try:
        source = path.read_text(encoding="utf-8")
    except (UnicodeDecodeError, OSError) as e:
        click.echo(f"Error: {path}: cannot read source: {e}", err=True)
        return False
    assembler = dialect.assembler(origin=config.origin, max_errors=config.max_errors)

    assembly = None
    try:
        assembly = assembler.assemble_string(source, str(path))
    except AssemblyFailed as e:
        report_error(e)
        click.echo(f"{path}: {len(e.errors)} error(s)", err=True)

    if config.list:
        labels = assembly.labels if isinstance(assembly, Assembly) else None
        listing_file = config.listing_file(path)
        listing_file.parent.mkdir(parents=True, exist_ok=True)
        listing_file.write_text(render_listing(assembler.get_listing(), str(path), labels))
        logger.debug(f"Wrote listing to {listing_file}")

    if assembly is None:
        return False
    if not config.run:
        return True
    if not dialect.executable:
        report_error(DialectError(f"{path}: {dialect.name} programs can be listed but not run"))
        return False
    return run_program(path, assembly, config)


def run_program(path: Path, assembly: Assembly, config: BuildConfig) -> bool:
    """Run an assembled program; writes the trace even if the run faults."""
    output = TerminalOutput()
    recorder = TraceRecorder() if config.trace else None
    executor = Executor(
        assembly,
        output=output,
        input=StreamInput(sys.stdin),
        trace=recorder,
    )

    def should_cancel() -> bool:
        return config.max_steps is not None and executor.steps >= config.max_steps

    try:
        summary = executor.run(should_cancel)
    except ExecutionFault as e:
        output.finish()
        report_error(e, f"{path}: run")
        return False
    finally:
        if recorder is not None:
            trace_file = config.trace_file(path)
            trace_file.parent.mkdir(parents=True, exist_ok=True)
            trace_file.write_text(render_trace(recorder.records))
            logger.debug(f"Wrote {len(recorder)} trace records to {trace_file}")

    output.finish()
    logger.debug(f"{path}: {summary}")
    if summary.status is RunStatus.CANCELLED:
        click.echo(f"Error: {path}: {summary} (step limit {config.max_steps})", err=True)
        return False
    return True


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--language", "--lang",
    type=click.Choice(LANGUAGES, case_sensitive=False),
    default=None,
    help="Source dialect (default: bbcx, or $BBCX_LANGUAGE)",
)
@click.option(
    "-l", "--list", "listing",
    is_flag=True,
    help="Write a <name>.lst listing for every file, even files that fail",
)
@click.option(
    "--list-path",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for listing files (implies --list)",
)
@click.option(
    "-r", "--run", "run",
    is_flag=True,
    help="Run each program after assembling it",
)
@click.option(
    "-t", "--trace",
    is_flag=True,
    help="Write a <name>.out execution trace (implies --run)",
)
@click.option(
    "--trace-path",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for trace files (implies --trace)",
)
@click.option(
    "--max-steps",
    type=click.IntRange(min=1),
    default=None,
    help="Cancel a run after this many instructions",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="bbcx")
def main(
    files: tuple[Path, ...],
    language: Optional[str],
    listing: bool,
    list_path: Optional[Path],
    run: bool,
    trace: bool,
    trace_path: Optional[Path],
    max_steps: Optional[int],
    verbose: bool,
) -> None:
    """
    Assemble, list and run BBC-X programs.

    FILES are processed strictly in the order given.

    \b
    Examples:
        bbcx prog.bbcx                 # Assemble only
        bbcx -l -r prog.bbcx           # List and run
        bbcx -t prog.bbcx              # Run with a trace
        bbcx --language bbc3 -l old    # List a legacy program
    """
    logging.basicConfig(format="%(levelname)s: %(message)s")
    logging.getLogger("bbcx_sdk").setLevel(logging.DEBUG if verbose else logging.WARNING)

    try:
        config = BuildConfig.from_env()
        config = replace(
            config,
            language=language.lower() if language else config.language,
            list=config.list or listing,
            list_path=list_path if list_path is not None else config.list_path,
            run=config.run or run,
            trace=config.trace or trace,
            trace_path=trace_path if trace_path is not None else config.trace_path,
            max_steps=max_steps if max_steps is not None else config.max_steps,
        ).normalized()
        dialect = get_dialect(config.language)

        failed = [path for path in files if not process_file(path, config, dialect)]
    except Exception as e:
        handle_cli_exception(e, verbose=verbose)

    if failed:
        logger.debug(f"{len(failed)} of {len(files)} file(s) failed")
        sys.exit(ExitCode.BUILD_ERROR)


if __name__ == "__main__":
    main()
