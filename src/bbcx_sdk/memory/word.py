"""
Memory Words
============

Every memory cell is a 24-bit word. The same width backs program and
data (von Neumann layout), so each Word carries a tag saying how its
bits are to be read:

    WordType.INSTRUCTION   an encoded instruction (see instruction.py)
    WordType.DATA          a datum in one of three formats:
        DataFormat.INTEGER   24-bit two's complement
        DataFormat.FLOAT     sign | 7-bit exponent (bias 63) | 16-bit mantissa
        DataFormat.STRING    four 6-bit native character codes

Reading a word under the wrong tag raises EncodingError; the bits are
never silently reinterpreted.

Float Layout
------------
    23      22..16         15..0
    sign    exponent+63    fraction (implicit leading 1)

    value = (-1)**sign * (1 + fraction / 2**16) * 2**(exponent)

All-zero bits encode 0.0. Magnitudes below 2**-62 flush to zero;
magnitudes of 2**65 and above do not fit.

Example
-------
>>> from bbcx_sdk.memory.word import Word
>>> Word.integer(-1).bits == 0o77777777
True
>>> Word.float(2.5).value
2.5
"""

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Union

from bbcx_sdk.errors import EncodingError, WordOverflowError


# =============================================================================
# Constants
# =============================================================================

WORD_BITS = 24
WORD_MASK = (1 << WORD_BITS) - 1
SIGN_BIT = 1 << (WORD_BITS - 1)

INTEGER_MIN = -(1 << (WORD_BITS - 1))
INTEGER_MAX = (1 << (WORD_BITS - 1)) - 1

FLOAT_EXPONENT_BIAS = 63
FLOAT_EXPONENT_SHIFT = 16
FLOAT_EXPONENT_MASK = 0o177
FLOAT_MANTISSA_BITS = 16
FLOAT_MANTISSA_MASK = (1 << FLOAT_MANTISSA_BITS) - 1

Number = Union[int, float]
Value = Union[int, float, str]


# =============================================================================
# Tags
# =============================================================================

class WordType(Enum):
    """How the bits of a word are to be interpreted."""
    INSTRUCTION = auto()
    DATA = auto()

    def __str__(self) -> str:
        return self.name.lower()


class DataFormat(Enum):
    """Format of a data word."""
    INTEGER = auto()
    FLOAT = auto()
    STRING = auto()

    def __str__(self) -> str:
        return self.name.lower()


# =============================================================================
# Number Codecs
# =============================================================================

def integer_to_bits(value: int) -> int:
    """Encode a signed integer as 24-bit two's complement."""
    if not INTEGER_MIN <= value <= INTEGER_MAX:
        raise WordOverflowError(
            value, f"integer {value} outside word range {INTEGER_MIN}..{INTEGER_MAX}"
        )
    return value & WORD_MASK


def bits_to_integer(bits: int) -> int:
    """Decode 24-bit two's complement."""
    bits &= WORD_MASK
    return bits - (1 << WORD_BITS) if bits & SIGN_BIT else bits


def float_to_bits(value: float) -> int:
    """Encode a float in the native sign/exponent/mantissa layout."""
    if math.isnan(value) or math.isinf(value):
        raise WordOverflowError(value, f"float {value} cannot be stored")
    if value == 0.0:
        return 0

    sign = 1 if value < 0 else 0
    fraction, exponent = math.frexp(abs(value))   # abs = fraction * 2**exponent
    exponent -= 1                                 # now 1.f * 2**exponent
    mantissa = round((fraction * 2 - 1) * (1 << FLOAT_MANTISSA_BITS))
    if mantissa > FLOAT_MANTISSA_MASK:
        mantissa = 0
        exponent += 1

    biased = exponent + FLOAT_EXPONENT_BIAS
    if biased > FLOAT_EXPONENT_MASK:
        raise WordOverflowError(value, f"float {value} too large for a word")
    if biased < 1:
        return 0

    return (sign << (WORD_BITS - 1)) | (biased << FLOAT_EXPONENT_SHIFT) | mantissa


def bits_to_float(bits: int) -> float:
    """Decode the native float layout."""
    bits &= WORD_MASK
    if bits == 0:
        return 0.0
    sign = -1.0 if bits & SIGN_BIT else 1.0
    biased = (bits >> FLOAT_EXPONENT_SHIFT) & FLOAT_EXPONENT_MASK
    mantissa = bits & FLOAT_MANTISSA_MASK
    return sign * (1.0 + mantissa / (1 << FLOAT_MANTISSA_BITS)) * 2.0 ** (biased - FLOAT_EXPONENT_BIAS)


# =============================================================================
# Word
# =============================================================================

@dataclass(frozen=True)
class Word:
    """
    One tagged 24-bit memory cell.

    Use the class-method constructors rather than building words
    directly; they validate the payload.

    Attributes:
        type: INSTRUCTION or DATA
        bits: Raw 24-bit contents
        format: Data format (None for instruction words)
    """
    type: WordType
    bits: int
    format: Optional[DataFormat] = None

    def __post_init__(self):
        if not 0 <= self.bits <= WORD_MASK:
            raise WordOverflowError(self.bits, f"raw bits {self.bits:o} exceed {WORD_BITS} bits")
        if self.type is WordType.DATA and self.format is None:
            raise ValueError("data words need a format")
        if self.type is WordType.INSTRUCTION and self.format is not None:
            raise ValueError("instruction words have no data format")

    # =========================================================================
    # Constructors
    # =========================================================================

    @classmethod
    def instruction_bits(cls, bits: int) -> "Word":
        return cls(WordType.INSTRUCTION, bits)

    @classmethod
    def integer(cls, value: int) -> "Word":
        return cls(WordType.DATA, integer_to_bits(value), DataFormat.INTEGER)

    @classmethod
    def float(cls, value: float) -> "Word":
        return cls(WordType.DATA, float_to_bits(value), DataFormat.FLOAT)

    @classmethod
    def string(cls, text: str) -> "Word":
        """Pack one to four characters into a string word."""
        from bbcx_sdk.charset import CharSet
        return cls(WordType.DATA, CharSet.pack(text), DataFormat.STRING)

    @classmethod
    def string_bits(cls, bits: int) -> "Word":
        return cls(WordType.DATA, bits, DataFormat.STRING)

    @classmethod
    def number(cls, value: Number) -> "Word":
        """Integer word for an int, float word for a float."""
        if isinstance(value, int) and not isinstance(value, bool):
            return cls.integer(value)
        return cls.float(float(value))

    def with_bits(self, bits: int) -> "Word":
        """Same tag and format, new contents."""
        return Word(self.type, bits & WORD_MASK, self.format)

    # =========================================================================
    # Interpretation
    # =========================================================================

    @property
    def is_instruction(self) -> bool:
        return self.type is WordType.INSTRUCTION

    @property
    def is_data(self) -> bool:
        return self.type is WordType.DATA

    @property
    def is_numeric(self) -> bool:
        return self.format in (DataFormat.INTEGER, DataFormat.FLOAT)

    @property
    def value(self) -> Value:
        """
        Python value of a data word.

        Raises:
            EncodingError: For instruction words
        """
        match self.format:
            case DataFormat.INTEGER:
                return bits_to_integer(self.bits)
            case DataFormat.FLOAT:
                return bits_to_float(self.bits)
            case DataFormat.STRING:
                from bbcx_sdk.charset import CharSet
                return CharSet.unpack(self.bits)
            case _:
                raise EncodingError("data", str(self.type))

    def numeric_value(self) -> Number:
        """
        Value of an integer or float word.

        Raises:
            EncodingError: For string or instruction words
        """
        if not self.is_numeric:
            raise EncodingError("numeric data", self.describe())
        return self.value

    def string_payload(self) -> int:
        """
        Raw character bits of a string word.

        Raises:
            EncodingError: For any other kind of word
        """
        if self.format is not DataFormat.STRING:
            raise EncodingError("string data", self.describe())
        return self.bits

    def describe(self) -> str:
        """Short tag description, e.g. 'integer data' or 'instruction'."""
        if self.format is None:
            return str(self.type)
        return f"{self.format} data"

    def __str__(self) -> str:
        """Eight-digit octal, the way the original listings print words."""
        return f"{self.bits:08o}"


ZERO = Word.integer(0)
