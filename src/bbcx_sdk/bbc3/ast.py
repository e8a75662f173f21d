"""
BBC-3 Syntax Tree
=================

Every BBC-3 line names its own location:

    SourceLine(location, word, comment)

    word      SWord | IWord | FWord | OctalWord | PWord
    PWord     TakeType | PutType | LoadN | LoadR | LibraryCall

Address operands reduce to the same OperandFields as BBC-X operands
through AddressOperand.fields().
"""

from dataclasses import dataclass
from typing import Mapping, Optional, Union

from bbcx_sdk.assembler.ast import OperandFields
from bbcx_sdk.errors import UndefinedLabelError


# =============================================================================
# Addresses and Operands
# =============================================================================

@dataclass(frozen=True)
class RelativeAddress:
    """``n+``: n locations past the program base."""
    offset: int

    def __str__(self) -> str:
        return f"{self.offset}+"


Address = Union[str, int, RelativeAddress]


@dataclass(frozen=True)
class SimpleAddressOperand:
    """``ADDR`` or ``*ADDR``."""
    address: Address
    indirect: bool = False

    def __str__(self) -> str:
        return f"*{self.address}" if self.indirect else f"{self.address}"


@dataclass(frozen=True)
class AddressOperand:
    """``[*]ADDR[:index]``."""
    operand: SimpleAddressOperand
    index: Optional[int] = None

    def fields(self, labels: Optional[Mapping[str, int]] = None, base: int = 0) -> OperandFields:
        """
        Reduce to OperandFields.

        Args:
            labels: Identifier to location map
            base: Location relative addresses count from

        Raises:
            UndefinedLabelError: For an identifier not in labels
        """
        address = self.operand.address
        match address:
            case RelativeAddress(offset=offset):
                location = base + offset
            case str():
                labels = labels or {}
                if address not in labels:
                    raise UndefinedLabelError(address)
                location = labels[address]
            case _:
                location = address
        return OperandFields(location, self.index, self.operand.indirect)

    def __str__(self) -> str:
        if self.index is None:
            return str(self.operand)
        return f"{self.operand}:{self.index}"


@dataclass(frozen=True)
class OctalWord:
    """``(T dddddddd)``: a word given directly in octal, T one of S P F I."""
    designator: str
    bits: int

    def __str__(self) -> str:
        return f"({self.designator}{self.bits:08o})"


@dataclass(frozen=True)
class ConstOperand:
    """Signed integer, signed float, octal word or S-word."""
    value: Union[int, float, str, OctalWord]

    def __str__(self) -> str:
        if isinstance(self.value, str):
            return f"<{self.value}>"
        if isinstance(self.value, OctalWord):
            return str(self.value)
        return f"{self.value:+}"


GeneralOperand = Union[AddressOperand, ConstOperand]


# =============================================================================
# P-words
# =============================================================================

@dataclass(frozen=True)
class TakeType:
    mnemonic: str
    accumulator: Optional[int]
    operand: GeneralOperand


@dataclass(frozen=True)
class PutType:
    mnemonic: str
    accumulator: Optional[int]
    operand: AddressOperand


@dataclass(frozen=True)
class LoadN:
    accumulator: Optional[int]
    operand: SimpleAddressOperand
    index: int


@dataclass(frozen=True)
class LoadR:
    accumulator: Optional[int]
    operand: Union[SimpleAddressOperand, ConstOperand]
    index: int


@dataclass(frozen=True)
class LibraryCall:
    mnemonic: str


PWord = Union[TakeType, PutType, LoadN, LoadR, LibraryCall]


# =============================================================================
# Source Words and Lines
# =============================================================================

@dataclass(frozen=True)
class SWord:
    text: str


@dataclass(frozen=True)
class IWord:
    value: int


@dataclass(frozen=True)
class FWord:
    value: float


SourceWord = Union[SWord, PWord, FWord, IWord, OctalWord]


@dataclass(frozen=True)
class SourceLine:
    """
    One parsed BBC-3 line.

    Attributes:
        line_number: 1-indexed line number
        text: Original text
        location: Location the word is assembled to
        word: The source word
        comment: Free text after the word ('' when absent)
        filename: Source file name
    """
    line_number: int
    text: str
    location: int
    word: SourceWord
    comment: str = ""
    filename: str = "<input>"
