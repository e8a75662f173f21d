"""
BBC-X Code Generator
====================

Turns parsed SourceLines into an Assembly using two passes.

Pass 1 (Location Assignment)
----------------------------
- Walk the lines in order with a location counter starting at the origin
- An explicit location on a line moves the counter there
- Each line with a word takes the counter's location, then the counter advances
- Label definitions record Label -> Location
- Constant operands are given a slot in the literal table, which grows
  downward from the top of memory; equal constants share one slot

Pass 2 (Encoding)
-----------------
- Encode every word, replacing label references with their locations
- Undefined labels, and fields outside their ranges, are errors; no
  field is ever truncated or wrapped
- Build the listing data

Errors from both passes are collected. If there are any, generate()
raises AssemblyFailed carrying all of them and no Assembly is produced.

Memory Layout
-------------
```
0000-0007   accumulators
0008-....   program (default origin)
....-2047   literal table, allocated downward
```
"""

import difflib
import logging
from typing import Optional, Union

from bbcx_sdk.assembler.assembly import AssembledWord, Assembly, ListingLine
from bbcx_sdk.assembler.ast import (
    AddressOperand,
    ConstOperand,
    FWord,
    IWord,
    PWord,
    SourceLine,
    SWord,
)
from bbcx_sdk.errors import (
    AssemblerError,
    AssemblyError,
    AssemblyErrorKind,
    AssemblyFailed,
    DuplicateLabelError,
    DuplicateLocationError,
    ErrorCollector,
    SourceLocation,
    TooManyErrors,
    UndefinedLabelError,
)
from bbcx_sdk.memory.instruction import Instruction, check_field, encode, split_address
from bbcx_sdk.memory.state import ACCUMULATOR_COUNT, MEMORY_SIZE
from bbcx_sdk.memory.word import Word

logger = logging.getLogger(__name__)

DEFAULT_ORIGIN = ACCUMULATOR_COUNT

Constant = Union[int, float, str]


def _literal_key(value: Constant) -> tuple[str, Constant]:
    """Key for sharing literal slots; 1 and 1.0 must not share."""
    return (type(value).__name__, value)


def _constant_word(value: Constant) -> Word:
    if isinstance(value, str):
        return Word.string(value)
    return Word.number(value)


class CodeGenerator:
    """
    Two-pass assembler core for BBC-X.

    Usage:
        generator = CodeGenerator(origin=8)
        assembly = generator.generate(lines, filename="sum.bbc")

    Attributes:
        origin: First program location
        memory_size: Number of memory locations available
    """

    def __init__(
        self,
        origin: int = DEFAULT_ORIGIN,
        memory_size: int = MEMORY_SIZE,
        max_errors: int = 100,
    ):
        self.origin = origin
        self.memory_size = memory_size
        self.max_errors = max_errors
        self._errors = ErrorCollector(max_errors=max_errors)
        self._labels: dict[str, int] = {}
        self._label_sites: dict[str, SourceLocation] = {}
        self._assigned: dict[int, int] = {}           # line index -> location
        self._location_sites: dict[int, SourceLocation] = {}
        self._literals: dict[tuple[str, Constant], int] = {}
        self._literal_words: list[AssembledWord] = []
        self._next_literal = memory_size - 1

    # =========================================================================
    # Entry Point
    # =========================================================================

    def generate(self, lines: list[SourceLine], filename: str = "<input>") -> Assembly:
        """
        Assemble parsed lines.

        Args:
            lines: Parsed source lines in file order
            filename: Source file name recorded on the Assembly

        Returns:
            The resolved Assembly

        Raises:
            AssemblyFailed: Carrying every error from both passes
        """
        self._reset()
        try:
            self._pass1(lines)
            words, listing = self._pass2(lines)
        except TooManyErrors as e:
            raise AssemblyFailed(self._errors.errors + [e]) from e

        if self._errors.has_errors():
            raise AssemblyFailed(self._errors.errors)

        assembly = Assembly(
            origin=self.origin,
            words=tuple(sorted(words, key=lambda w: w.location)),
            literals=tuple(self._literal_words),
            labels=dict(self._labels),
            listing=tuple(listing),
            filename=filename,
        )
        logger.debug(
            f"Assembled {len(words)} words and {len(self._literal_words)} literals "
            f"with {len(self._labels)} labels"
        )
        return assembly

    def has_errors(self) -> bool:
        return self._errors.has_errors()

    def get_error_report(self) -> str:
        return self._errors.report()

    def get_labels(self) -> dict[str, int]:
        return dict(self._labels)

    def _reset(self) -> None:
        self._errors = ErrorCollector(max_errors=self.max_errors)
        self._labels.clear()
        self._label_sites.clear()
        self._assigned.clear()
        self._location_sites.clear()
        self._literals.clear()
        self._literal_words = []
        self._next_literal = self.memory_size - 1

    @staticmethod
    def _site(line: SourceLine, column: int = 1) -> SourceLocation:
        return SourceLocation(line.filename, line.line_number, max(column, 1))

    # =========================================================================
    # Pass 1
    # =========================================================================

    def _pass1(self, lines: list[SourceLine]) -> None:
        """Assign locations, define labels and allocate literals."""
        counter = self.origin
        for index, line in enumerate(lines):
            if line.location is not None:
                counter = line.location
            try:
                if line.label is not None:
                    self._define_label(line, counter)
                if line.word is not None:
                    self._assign_location(index, line, counter)
                    counter += 1
                    if isinstance(line.word, PWord) and isinstance(line.word.operand, ConstOperand):
                        self._allocate_literal(line.word.operand.value)
            except AssemblerError as e:
                self._errors.add(e)

        self._check_literal_overlap(lines)
        logger.debug(f"Pass 1: {len(self._assigned)} words, {len(self._literals)} literals")

    def _define_label(self, line: SourceLine, location: int) -> None:
        site = self._site(line)
        if line.label in self._labels:
            raise DuplicateLabelError(
                line.label,
                location=site,
                original_location=self._label_sites[line.label],
                source_line=line.text,
            )
        self._labels[line.label] = location
        self._label_sites[line.label] = site

    def _assign_location(self, index: int, line: SourceLine, location: int) -> None:
        site = self._site(line)
        check_field("location", location, 0, self.memory_size - 1, site, line.text)
        if location in self._location_sites:
            raise DuplicateLocationError(
                location,
                location=site,
                original_location=self._location_sites[location],
                source_line=line.text,
            )
        self._assigned[index] = location
        self._location_sites[location] = site

    def _allocate_literal(self, value: Constant) -> int:
        key = _literal_key(value)
        if key not in self._literals:
            slot = self._next_literal
            self._next_literal -= 1
            self._literals[key] = slot
            self._literal_words.append(AssembledWord(slot, _constant_word(value)))
        return self._literals[key]

    def _check_literal_overlap(self, lines: list[SourceLine]) -> None:
        """The literal table must not reach down into the program."""
        for index, location in self._assigned.items():
            if location > self._next_literal:
                line = lines[index]
                self._errors.add(AssemblyError(
                    AssemblyErrorKind.DUPLICATE_LOCATION,
                    f"location {location:04} is needed by the literal table",
                    location=self._site(line),
                    hint=f"literals occupy {self._next_literal + 1:04} upwards",
                    source_line=line.text,
                ))

    # =========================================================================
    # Pass 2
    # =========================================================================

    def _pass2(self, lines: list[SourceLine]) -> tuple[list[AssembledWord], list[ListingLine]]:
        """Encode words and build listing data."""
        words: list[AssembledWord] = []
        listing: list[ListingLine] = []

        for index, line in enumerate(lines):
            location = self._assigned.get(index)
            encoded: Optional[Word] = None
            if location is not None:
                try:
                    encoded = self._encode_word(line)
                    words.append(AssembledWord(location, encoded, line))
                except AssemblerError as e:
                    self._errors.add(e)

            listing.append(ListingLine(
                line_number=line.line_number,
                text=line.text,
                locations=(location,) if encoded is not None else (),
                words=(encoded,) if encoded is not None else (),
                label=line.label,
            ))

        logger.debug(f"Pass 2: encoded {len(words)} words")
        return words, listing

    def _encode_word(self, line: SourceLine) -> Word:
        word = line.word
        match word:
            case PWord():
                return self._encode_pword(line, word)
            case IWord(value=value):
                return Word.integer(value)
            case FWord(value=value):
                return Word.float(value)
            case SWord(text=text):
                return Word.string(text)
        raise TypeError(f"unexpected source word {word!r}")

    def _encode_pword(self, line: SourceLine, word: PWord) -> Word:
        operand = word.operand
        address = 0
        index_register = None
        indirect = False
        column = 1

        if isinstance(operand, AddressOperand):
            column = operand.column
            address = self._resolve(line, operand)
            index_register = operand.index_register
            indirect = operand.indirect
        elif isinstance(operand, ConstOperand):
            column = operand.column
            address = self._literals[_literal_key(operand.value)]

        site = self._site(line, column)
        check_field("address", address, 0, self.memory_size - 1, site, line.text)
        page, offset = split_address(address)
        instruction = Instruction(
            mnemonic=word.mnemonic,
            accumulator=word.effective_accumulator,
            offset=offset,
            page=page,
            index_register=index_register,
            indirect=indirect,
        )
        instruction.validate(site, line.text)
        return encode(instruction)

    def _resolve(self, line: SourceLine, operand: AddressOperand) -> int:
        if not operand.is_symbolic:
            return operand.address
        if operand.address in self._labels:
            return self._labels[operand.address]
        raise UndefinedLabelError(
            operand.address,
            location=self._site(line, operand.column),
            source_line=line.text,
            similar_labels=difflib.get_close_matches(operand.address, list(self._labels), n=3),
        )
