"""
BBC-X SDK - Assembler and Executor for the BBC-X Machine Language
=================================================================

This package provides a toolchain for programs written in BBC-X, the
symbolic machine language of a 24-bit word machine with eight
accumulators, eight index registers and 2048 words of two-page memory.

Main Components
---------------
- **assembler**: BBC-X line parser and two-pass assembler
    Converts source text into an Assembly (a resolved word image)

- **emulator**: Executor
    Runs an Assembly and reports how it halted, or why it faulted

- **bbc3**: Legacy dialect
    Parses and validates BBC-3 programs; they cannot be run

- **memory**: Words, instruction encoding, addressing and memory state

- **charset**: The 6-bit character set used by string words

Quick Start
-----------
Assemble and run a program:
    >>> import bbcx_sdk
    >>> assembly = bbcx_sdk.assemble('''
    ...         TAKE 1, +6
    ...         MULT 1, +7
    ...         PRINT 1,
    ...         STOP
    ... ''')
    >>> bbcx_sdk.run(assembly).output
    '42'

Or use the command-line tool:
    $ bbcx --run program.bbcx
    $ bbcx --language bbc3 --list legacy.bbc3

Version History
---------------
1.0.0 - Initial release with assembler, executor and BBC-3 parser
"""

__version__ = "1.0.0"

from typing import Callable, Optional, Union

# =============================================================================
# Public API Exports
# =============================================================================
# The assembler package is imported first: the memory layer depends on its
# opcode table while the packages initialise.
# =============================================================================

from bbcx_sdk.assembler import Assembler, Assembly
from bbcx_sdk.errors import (
    BbcxError,
    AssemblerError,
    ParseError,
    AssemblyError,
    AssemblyFailed,
    UndefinedLabelError,
    DuplicateLabelError,
    DuplicateLocationError,
    FieldOverflowError,
    EncodingError,
    CharSetError,
    ExecutionFault,
    FaultKind,
    DialectError,
)
from bbcx_sdk.memory import Word, State
from bbcx_sdk.bbc3 import Bbc3Assembler, Bbc3Assembly
from bbcx_sdk.dialects import get_dialect
from bbcx_sdk.config import BuildConfig
from bbcx_sdk.emulator import (
    Executor,
    ExecutionSummary,
    RunStatus,
    InputSource,
    OutputSink,
    TraceSink,
)

def assemble(
    source_text: str,
    dialect: str = "bbcx",
    filename: str = "<input>",
) -> Union[Assembly, Bbc3Assembly]:
    """
    Assemble source text in the given dialect.

    Args:
        source_text: Whole program text
        dialect: "bbcx" (default) or "bbc3"
        filename: Name used in diagnostics

    Returns:
        Assembly for bbcx, Bbc3Assembly for bbc3

    Raises:
        AssemblyFailed: With every error found in the program
        DialectError: For an unknown dialect
    """
    return get_dialect(dialect).assemble(source_text, filename)


def run(
    assembly: Union[Assembly, Bbc3Assembly],
    output: Optional[OutputSink] = None,
    input: Optional[InputSource] = None,
    trace: Optional[TraceSink] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> ExecutionSummary:
    """
    Run an assembled program until it halts.

    Args:
        assembly: Program to run (BBC-X only)
        output: Receives printed text (it is also collected in the summary)
        input: Supplies numbers to READ
        trace: Receives one record per executed instruction
        should_cancel: Consulted between instructions; True cancels the run

    Returns:
        ExecutionSummary of the halted or cancelled run

    Raises:
        ExecutionFault: If the program faults
        DialectError: If the program is in a dialect that cannot be run
    """
    if isinstance(assembly, Bbc3Assembly):
        raise DialectError("bbc3 programs can be listed but not run")
    return Executor(assembly, output=output, input=input, trace=trace).run(should_cancel)


__all__ = [
    "__version__",
    "assemble",
    "run",
    "Assembler",
    "Assembly",
    "Bbc3Assembler",
    "Bbc3Assembly",
    "BuildConfig",
    "Executor",
    "ExecutionSummary",
    "RunStatus",
    "Word",
    "State",
    "get_dialect",
    "BbcxError",
    "AssemblerError",
    "ParseError",
    "AssemblyError",
    "AssemblyFailed",
    "UndefinedLabelError",
    "DuplicateLabelError",
    "DuplicateLocationError",
    "FieldOverflowError",
    "EncodingError",
    "CharSetError",
    "ExecutionFault",
    "FaultKind",
    "DialectError",
]
