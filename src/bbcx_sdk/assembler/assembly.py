"""
Assembled Program
=================

The result of a successful assembly: encoded words at their
locations, the literal table, the resolved labels and the per-line
listing data consumed by the listing renderer.

An Assembly only exists when every label reference resolved and every
field fitted; otherwise assembly fails with AssemblyFailed instead.
"""

from dataclasses import dataclass, field
from typing import Optional

from bbcx_sdk.assembler.ast import SourceLine
from bbcx_sdk.memory.instruction import decode
from bbcx_sdk.memory.word import Word


@dataclass(frozen=True)
class AssembledWord:
    """One encoded word and the source line it came from."""
    location: int
    word: Word
    line: Optional[SourceLine] = None


@dataclass(frozen=True)
class ListingLine:
    """
    Listing data for one source line.

    Attributes:
        line_number: 1-indexed source line
        text: Original source text
        locations: Locations this line filled (empty for blank lines)
        words: Encoded words at those locations
        label: Label defined on the line, if any
        error: Reason the line failed to parse, if it did
    """
    line_number: int
    text: str
    locations: tuple[int, ...] = ()
    words: tuple[Word, ...] = ()
    label: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class Assembly:
    """
    A fully resolved program image.

    Attributes:
        origin: First program location
        words: Program words in location order
        literals: Literal table words (top of memory, descending)
        labels: Label name to location
        listing: Listing data in source order
        filename: Source file the program came from
    """
    origin: int
    words: tuple[AssembledWord, ...]
    literals: tuple[AssembledWord, ...] = ()
    labels: dict[str, int] = field(default_factory=dict)
    listing: tuple[ListingLine, ...] = ()
    filename: str = "<input>"

    @property
    def entry(self) -> Optional[int]:
        """Lowest location holding an instruction word, or None if there is none."""
        return min((w.location for w in self.words if w.word.is_instruction), default=None)

    def image(self) -> dict[int, Word]:
        """Every word to load, keyed by location."""
        image = {w.location: w.word for w in self.literals}
        image.update({w.location: w.word for w in self.words})
        return image

    def location_of(self, label: str) -> int:
        """
        Raises:
            KeyError: If the label is not defined
        """
        return self.labels[label]

    def disassemble(self) -> list[str]:
        """One line per program word: location, octal word, decoded form."""
        out = []
        for assembled in self.words:
            word = assembled.word
            shown = str(decode(word)) if word.is_instruction else repr(word.value)
            out.append(f"{assembled.location:04}  {word}  {shown}")
        return out

    def __len__(self) -> int:
        return len(self.words)
