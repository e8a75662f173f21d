"""
BBC-X Assembler - Main Interface
================================

The Assembler class runs the whole pipeline for one file:

    source text -> parse_lines (Parser per line) -> CodeGenerator -> Assembly

Parse errors for every line are collected first; a file with any parse
error never reaches code generation. Both paths fail with
AssemblyFailed carrying all of the file's errors.

Example Usage
-------------
>>> from bbcx_sdk.assembler import Assembler
>>> asm = Assembler()
>>> assembly = asm.assemble_string('''
...         TAKE 1, +5
...         ADD 1, +3
...         PUT 1, RESULT
...         STOP
... RESULT: +0
... ''')
>>> assembly.location_of("RESULT")
12

Even a failed file can be listed; get_listing() returns listing data
that marks the lines which did not parse.
"""

import logging
from pathlib import Path
from typing import Optional

from bbcx_sdk.assembler.assembly import Assembly, ListingLine
from bbcx_sdk.assembler.codegen import DEFAULT_ORIGIN, CodeGenerator
from bbcx_sdk.assembler.parser import ParsedProgram, parse_line, parse_lines
from bbcx_sdk.errors import AssemblyFailed
from bbcx_sdk.memory.state import MEMORY_SIZE

logger = logging.getLogger(__name__)


class Assembler:
    """
    Assembles BBC-X source into an Assembly.

    Attributes:
        origin: First program location
        memory_size: Memory locations available to the program
    """

    def __init__(
        self,
        origin: int = DEFAULT_ORIGIN,
        memory_size: int = MEMORY_SIZE,
        max_errors: int = 100,
    ):
        self.origin = origin
        self.memory_size = memory_size
        self._codegen = CodeGenerator(origin, memory_size, max_errors)
        self._parsed: Optional[ParsedProgram] = None
        self._assembly: Optional[Assembly] = None
        self._failure: Optional[AssemblyFailed] = None

    def parse(self, source: str, filename: str = "<input>") -> ParsedProgram:
        """Parse every line without assembling."""
        return parse_lines(source, filename, parse_line)

    def assemble_string(self, source: str, filename: str = "<input>") -> Assembly:
        """
        Assemble source code from a string.

        Args:
            source: BBC-X source code
            filename: Virtual filename for error messages

        Returns:
            The assembled program

        Raises:
            AssemblyFailed: With every parse or assembly error of the file
        """
        self._assembly = None
        self._failure = None
        self._parsed = self.parse(source, filename)

        try:
            self._parsed.raise_for_errors()
            self._assembly = self._codegen.generate(self._parsed.lines, filename)
        except AssemblyFailed as e:
            if e.parsed is None:
                e.parsed = self._parsed
            self._failure = e
            logger.debug(f"{filename}: assembly failed with {len(e.errors)} errors")
            raise

        logger.debug(f"{filename}: {len(self._assembly)} words at {self.origin:04}")
        return self._assembly

    def assemble_file(self, filepath: str | Path) -> Assembly:
        """
        Assemble source code from a file.

        Raises:
            AssemblyFailed: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        return self.assemble_string(filepath.read_text(), str(filepath))

    # =========================================================================
    # Results
    # =========================================================================

    def get_assembly(self) -> Optional[Assembly]:
        return self._assembly

    def get_labels(self) -> dict[str, int]:
        return dict(self._assembly.labels) if self._assembly else {}

    def get_listing(self) -> list[ListingLine]:
        """
        Listing data for the last file, whether or not it assembled.

        Lines that failed to parse carry the reason in ListingLine.error.
        """
        if self._assembly is not None:
            return list(self._assembly.listing)
        if self._parsed is None:
            return []
        return [
            ListingLine(
                line_number=r.line_number,
                text=r.text,
                label=getattr(r.line, "label", None),
                error=r.error.reason if r.error else None,
            )
            for r in self._parsed.results
        ]

    def has_errors(self) -> bool:
        return self._failure is not None

    def get_error_report(self) -> str:
        return str(self._failure) if self._failure else ""


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>", origin: int = DEFAULT_ORIGIN) -> Assembly:
    """
    Convenience function to assemble BBC-X source.

    Raises:
        AssemblyFailed: If assembly fails
    """
    return Assembler(origin=origin).assemble_string(source, filename)


def assemble_file(filepath: str | Path, origin: int = DEFAULT_ORIGIN) -> Assembly:
    """
    Convenience function to assemble a BBC-X file.

    Raises:
        AssemblyFailed: If assembly fails
    """
    return Assembler(origin=origin).assemble_file(filepath)
