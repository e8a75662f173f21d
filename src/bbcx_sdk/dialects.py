"""
Source Dialects
===============

The toolchain understands two dialects of the same machine language:

| Dialect | Assembles | Runs | Notes                                  |
|---------|-----------|------|----------------------------------------|
| bbcx    | yes       | yes  | Executable dialect, labels and literals |
| bbc3    | yes       | no   | Legacy dialect, parsed and validated    |

Callers select a dialect by name and ask it for capabilities rather
than testing which dialect they hold:

>>> dialect = get_dialect("bbc3")
>>> dialect.executable
False
"""

from typing import Optional, Protocol, Union

from bbcx_sdk.assembler.assembler import Assembler
from bbcx_sdk.assembler.assembly import Assembly, ListingLine
from bbcx_sdk.assembler.codegen import DEFAULT_ORIGIN
from bbcx_sdk.assembler.parser import ParsedProgram
from bbcx_sdk.bbc3.assembler import Bbc3Assembler, Bbc3Assembly
from bbcx_sdk.errors import DialectError


class DialectAssembler(Protocol):
    """What the CLI needs from a dialect's assembler."""

    def parse(self, source: str, filename: str = "<input>") -> ParsedProgram:
        ...

    def assemble_string(self, source: str, filename: str = "<input>") -> Union[Assembly, Bbc3Assembly]:
        ...

    def get_listing(self) -> list[ListingLine]:
        ...


class Dialect(Protocol):
    """
    A source dialect.

    Attributes:
        name: Name used on the command line
        executable: Whether assembled programs can be run
    """
    name: str
    executable: bool

    def assembler(self, origin: int = DEFAULT_ORIGIN, max_errors: int = 100) -> DialectAssembler:
        ...

    def parse(self, source: str, filename: str = "<input>") -> ParsedProgram:
        ...

    def assemble(self, source: str, filename: str = "<input>") -> Union[Assembly, Bbc3Assembly]:
        ...


class BbcXDialect:
    name = "bbcx"
    executable = True

    def assembler(self, origin: int = DEFAULT_ORIGIN, max_errors: int = 100) -> Assembler:
        return Assembler(origin=origin, max_errors=max_errors)

    def parse(self, source: str, filename: str = "<input>") -> ParsedProgram:
        return self.assembler().parse(source, filename)

    def assemble(self, source: str, filename: str = "<input>") -> Assembly:
        return self.assembler().assemble_string(source, filename)


class Bbc3Dialect:
    name = "bbc3"
    executable = False

    def assembler(self, origin: int = DEFAULT_ORIGIN, max_errors: int = 100) -> Bbc3Assembler:
        # legacy programs carry their own locations
        return Bbc3Assembler()

    def parse(self, source: str, filename: str = "<input>") -> ParsedProgram:
        return self.assembler().parse(source, filename)

    def assemble(self, source: str, filename: str = "<input>") -> Bbc3Assembly:
        return self.assembler().assemble_string(source, filename)


DIALECTS: dict[str, Dialect] = {
    BbcXDialect.name: BbcXDialect(),
    Bbc3Dialect.name: Bbc3Dialect(),
}


def get_dialect(name: Optional[str]) -> Dialect:
    """
    Look up a dialect by name (case-insensitive); None means bbcx.

    Raises:
        DialectError: For an unknown name
    """
    key = (name or BbcXDialect.name).lower()
    try:
        return DIALECTS[key]
    except KeyError:
        raise DialectError(
            f"unknown language '{name}' (choose from {', '.join(DIALECTS)})"
        ) from None
