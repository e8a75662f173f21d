"""
BBC-3 Assembler
===============

The legacy dialect is parsed for study, not executed. Its assembler
checks that no two lines claim the same location and produces a map
from location to source line; nothing is encoded.

Example
-------
>>> from bbcx_sdk.bbc3 import Bbc3Assembler
>>> assembly = Bbc3Assembler().assemble_string("0001    JUMP    0001")
>>> sorted(assembly.code)
[1]
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from bbcx_sdk.assembler.assembly import ListingLine
from bbcx_sdk.assembler.parser import ParsedProgram, parse_lines
from bbcx_sdk.bbc3.ast import SourceLine, SourceWord
from bbcx_sdk.bbc3.parser import parse_line
from bbcx_sdk.errors import (
    AssemblyFailed,
    DuplicateLocationError,
    SourceLocation,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Bbc3Assembly:
    """
    Validated BBC-3 program.

    Attributes:
        code: Location to source line
        filename: Source file name
    """
    code: dict[int, SourceLine] = field(default_factory=dict)
    filename: str = "<input>"

    def content(self, location: int) -> Optional[SourceWord]:
        """Source word at a location, or None."""
        line = self.code.get(location)
        return line.word if line else None

    def __len__(self) -> int:
        return len(self.code)


class Bbc3Assembler:
    """Parses and validates BBC-3 source."""

    def __init__(self):
        self._parsed: Optional[ParsedProgram] = None
        self._assembly: Optional[Bbc3Assembly] = None

    def parse(self, source: str, filename: str = "<input>") -> ParsedProgram:
        return parse_lines(source, filename, parse_line)

    def assemble_string(self, source: str, filename: str = "<input>") -> Bbc3Assembly:
        """
        Parse and validate BBC-3 source.

        Raises:
            AssemblyFailed: For parse errors, or locations used more than once
        """
        self._assembly = None
        self._parsed = self.parse(source, filename)
        self._parsed.raise_for_errors()
        self._assembly = self.assemble(self._parsed.lines, filename, parsed=self._parsed)
        return self._assembly

    def assemble_file(self, filepath: str | Path) -> Bbc3Assembly:
        filepath = Path(filepath)
        return self.assemble_string(filepath.read_text(), str(filepath))

    @staticmethod
    def assemble(
        lines: list[SourceLine],
        filename: str = "<input>",
        parsed: Optional[ParsedProgram] = None,
    ) -> Bbc3Assembly:
        """
        Validate parsed lines and map them by location.

        Every repeated location is reported, not just the first.

        Raises:
            AssemblyFailed: With one DuplicateLocationError per repeat
        """
        code: dict[int, SourceLine] = {}
        errors = []
        for line in lines:
            first = code.get(line.location)
            if first is not None:
                errors.append(DuplicateLocationError(
                    line.location,
                    location=SourceLocation(line.filename, line.line_number, 1),
                    original_location=SourceLocation(first.filename, first.line_number, 1),
                    source_line=line.text,
                ))
                continue
            code[line.location] = line

        if errors:
            repeated = sorted({e.address for e in errors})
            logger.debug(
                f"Same location(s) used multiple times: {', '.join(str(r) for r in repeated)}"
            )
            raise AssemblyFailed(errors, parsed=parsed)

        logger.debug(f"{filename}: {len(code)} locations")
        return Bbc3Assembly(code, filename)

    def get_listing(self) -> list[ListingLine]:
        """Listing data: each line with its location; failed lines carry the reason."""
        if self._parsed is None:
            return []
        listing = []
        for result in self._parsed.results:
            locations = (result.line.location,) if result.line is not None else ()
            listing.append(ListingLine(
                line_number=result.line_number,
                text=result.text,
                locations=locations,
                error=result.error.reason if result.error else None,
            ))
        return listing
