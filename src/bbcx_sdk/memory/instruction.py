"""
Instruction Encoding
====================

Packs a logical instruction into a 24-bit instruction word and back.

Bit Layout
----------
    23..18   function code (Mnemonic, 0..63)
    17..15   accumulator (0..7)
    14..12   index register (0 = not indexed, 1..7)
    11       indirect flag
    10       page (0..1)
     9..0    offset within the page (0..1023)

Encoding never truncates: a field outside its range raises
FieldOverflowError. Decoding a data word raises EncodingError.

Example
-------
>>> from bbcx_sdk.assembler.opcodes import Mnemonic
>>> i = Instruction(Mnemonic.ADD, accumulator=1, offset=12)
>>> str(encode(i))
'04100014'
>>> decode(encode(i)) == i
True
"""

from dataclasses import dataclass
from typing import Optional

from bbcx_sdk.assembler.opcodes import Mnemonic
from bbcx_sdk.errors import EncodingError, FieldOverflowError, SourceLocation
from bbcx_sdk.memory.word import Word


# =============================================================================
# Field Layout
# =============================================================================

FUNCTION_SHIFT = 18
ACCUMULATOR_SHIFT = 15
INDEX_SHIFT = 12
INDIRECT_SHIFT = 11
PAGE_SHIFT = 10

FUNCTION_MASK = 0o77
ACCUMULATOR_MASK = 0o7
INDEX_MASK = 0o7
OFFSET_MASK = 0o1777

PAGE_SIZE = OFFSET_MASK + 1
PAGE_COUNT = 2

ACCUMULATOR_RANGE = (0, ACCUMULATOR_MASK)
INDEX_RANGE = (1, INDEX_MASK)
PAGE_RANGE = (0, PAGE_COUNT - 1)
OFFSET_RANGE = (0, OFFSET_MASK)


def check_field(
    name: str,
    value: int,
    low: int,
    high: int,
    location: Optional[SourceLocation] = None,
    source_line: Optional[str] = None,
) -> int:
    """Return value if low <= value <= high, else raise FieldOverflowError."""
    if not low <= value <= high:
        raise FieldOverflowError(name, value, low, high, location=location, source_line=source_line)
    return value


def split_address(address: int) -> tuple[int, int]:
    """Split an absolute location into (page, offset)."""
    return divmod(address, PAGE_SIZE)


# =============================================================================
# Instruction
# =============================================================================

@dataclass(frozen=True)
class Instruction:
    """
    Logical form of one machine instruction.

    Attributes:
        mnemonic: Function code
        accumulator: Accumulator (or index register for X-class mnemonics)
        offset: Address within the page
        page: Memory page
        index_register: Register added to the address, None if not indexed
        indirect: Take the final address from memory
    """
    mnemonic: Mnemonic
    accumulator: int = 0
    offset: int = 0
    page: int = 0
    index_register: Optional[int] = None
    indirect: bool = False

    @property
    def address(self) -> int:
        """Absolute location named by page and offset."""
        return self.page * PAGE_SIZE + self.offset

    def validate(
        self,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> None:
        """
        Check every field against its range.

        Raises:
            FieldOverflowError: Naming the first field out of range
        """
        check_field("accumulator", self.accumulator, *ACCUMULATOR_RANGE, location, source_line)
        if self.index_register is not None:
            check_field("index register", self.index_register, *INDEX_RANGE, location, source_line)
        check_field("page", self.page, *PAGE_RANGE, location, source_line)
        check_field("offset", self.offset, *OFFSET_RANGE, location, source_line)

    def __str__(self) -> str:
        operand = f"{self.address}"
        if self.indirect:
            operand = f"*{operand}"
        if self.index_register is not None:
            operand = f"{operand}[{self.index_register}]"
        return f"{self.mnemonic.name} {self.accumulator}, {operand}"


def encode(instruction: Instruction) -> Word:
    """
    Pack an instruction into an instruction word.

    Raises:
        FieldOverflowError: If any field is out of range
    """
    instruction.validate()
    bits = (
        (int(instruction.mnemonic) << FUNCTION_SHIFT)
        | (instruction.accumulator << ACCUMULATOR_SHIFT)
        | ((instruction.index_register or 0) << INDEX_SHIFT)
        | (int(instruction.indirect) << INDIRECT_SHIFT)
        | (instruction.page << PAGE_SHIFT)
        | instruction.offset
    )
    return Word.instruction_bits(bits)


def decode(word: Word) -> Instruction:
    """
    Unpack an instruction word.

    Raises:
        EncodingError: If the word is tagged as data
    """
    if not word.is_instruction:
        raise EncodingError("instruction", word.describe())

    bits = word.bits
    index = (bits >> INDEX_SHIFT) & INDEX_MASK
    return Instruction(
        mnemonic=Mnemonic((bits >> FUNCTION_SHIFT) & FUNCTION_MASK),
        accumulator=(bits >> ACCUMULATOR_SHIFT) & ACCUMULATOR_MASK,
        offset=bits & OFFSET_MASK,
        page=(bits >> PAGE_SHIFT) & 1,
        index_register=index or None,
        indirect=bool((bits >> INDIRECT_SHIFT) & 1),
    )
