"""
BBC-X Syntax Tree
=================

Structured form of a parsed source line. Each line becomes one
SourceLine; nothing spans lines.

    SourceLine
    ├── location      explicit location, or None to take the next one
    ├── label         label defined on this line, or None
    ├── word          PWord | IWord | FWord | SWord, or None (blank/comment)
    └── comment       text after ';', or None

    PWord
    ├── mnemonic      function code (EXTRA for library routines)
    ├── routine       library routine, when the name was a routine
    ├── accumulator   0..7, or None when omitted
    └── operand       AddressOperand | ConstOperand | None

Operands of both dialects reduce to OperandFields before encoding.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from bbcx_sdk.assembler.opcodes import LibraryRoutine, Mnemonic


DEFAULT_ACCUMULATOR = 1


# =============================================================================
# Operands
# =============================================================================

@dataclass(frozen=True)
class OperandFields:
    """
    Address fields an operand contributes to an instruction.

    Attributes:
        address: Absolute location (page and offset are derived from it)
        index_register: Index register, or None
        indirect: Indirect flag
    """
    address: int
    index_register: Optional[int] = None
    indirect: bool = False


@dataclass(frozen=True)
class AddressOperand:
    """
    Memory operand: ``[*]ADDR[[n]]``.

    Attributes:
        address: Label name or numeric location
        index_register: Register named in brackets, or None
        indirect: True when written with a leading '*'
    """
    address: Union[str, int]
    index_register: Optional[int] = None
    indirect: bool = False
    column: int = field(default=0, compare=False)

    @property
    def is_symbolic(self) -> bool:
        return isinstance(self.address, str)

    def fields(self, address: int) -> OperandFields:
        """Reduce to OperandFields once the address is known."""
        return OperandFields(address, self.index_register, self.indirect)

    def __str__(self) -> str:
        text = f"*{self.address}" if self.indirect else f"{self.address}"
        if self.index_register is not None:
            text = f"{text}[{self.index_register}]"
        return text


@dataclass(frozen=True)
class ConstOperand:
    """
    Constant operand: signed integer, signed float or S-word.

    The assembler places the constant in the literal table and the
    instruction addresses that slot.
    """
    value: Union[int, float, str]
    column: int = field(default=0, compare=False)

    def __str__(self) -> str:
        if isinstance(self.value, str):
            return f'"{self.value}"'
        if self.value >= 0:
            return f"+{self.value}"
        return f"{self.value}"


Operand = Union[AddressOperand, ConstOperand]


# =============================================================================
# Source Words
# =============================================================================

@dataclass(frozen=True)
class PWord:
    """Program word: mnemonic, accumulator and operand."""
    mnemonic: Mnemonic
    accumulator: Optional[int] = None
    operand: Optional[Operand] = None
    routine: Optional[LibraryRoutine] = None

    @property
    def effective_accumulator(self) -> int:
        return DEFAULT_ACCUMULATOR if self.accumulator is None else self.accumulator

    @property
    def name(self) -> str:
        return self.routine.name if self.routine else self.mnemonic.name

    def __str__(self) -> str:
        parts = [self.name]
        if self.accumulator is not None:
            parts.append(f"{self.accumulator},")
        if self.operand is not None:
            parts.append(str(self.operand))
        return " ".join(parts)


@dataclass(frozen=True)
class IWord:
    """Integer data word."""
    value: int


@dataclass(frozen=True)
class FWord:
    """Float data word."""
    value: float


@dataclass(frozen=True)
class SWord:
    """String data word of one to four characters."""
    text: str


SourceWord = Union[PWord, IWord, FWord, SWord]


# =============================================================================
# Source Line
# =============================================================================

@dataclass(frozen=True)
class SourceLine:
    """
    One parsed source line.

    Attributes:
        line_number: 1-indexed line number in the file
        text: Original text of the line
        location: Explicit location, or None
        label: Label defined here, or None
        word: The source word, or None for blank and comment-only lines
        comment: Comment text, or None
        filename: Source file name (for error reporting)
    """
    line_number: int
    text: str
    location: Optional[int] = None
    label: Optional[str] = None
    word: Optional[SourceWord] = None
    comment: Optional[str] = None
    filename: str = "<input>"

    @property
    def emits_word(self) -> bool:
        return self.word is not None
