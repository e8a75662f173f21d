"""
Native Character Set
====================

The machine stores text as 6-bit character codes, four to a 24-bit
word. This module maps between those codes and Python text.

Code Table
----------
| Codes   | Characters                                   |
|---------|----------------------------------------------|
| 0       | NUL (also the padding code)                  |
| 1-26    | A-Z                                          |
| 27-29   | ' < >                                        |
| 32-41   | 0-9                                          |
| 42-52   | . @ + - ( ) [ ] * / =                        |
| 54      | ^ (printed as an up-arrow on the original)   |
| 56-62   | ? " : ; , space newline                      |

Codes 30, 31, 53, 55 and 63 were the symbols <=, >=, not-equal,
left-arrow and a control escape. They have no single-character text
form, so they are left unmapped.

Packing
-------
The first character of a chunk occupies bits 23..18, the fourth
bits 5..0. A final chunk shorter than four characters is padded on
the right with NUL, and unpacking drops trailing NULs again.

Example
-------
>>> from bbcx_sdk.charset import CharSet
>>> oct(CharSet.pack("AB"))
'0o1020000'
>>> CharSet.unpack(0o01020000)
'AB'
"""

import logging
from typing import Iterable, Optional, TYPE_CHECKING

from bbcx_sdk.errors import CharSetError

if TYPE_CHECKING:
    from bbcx_sdk.memory.word import Word

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

CHARS_PER_WORD = 4
BITS_PER_CHAR = 6
CHAR_MASK = 0o77
PAD_CODE = 0

_CHAR_TO_CODE: dict[str, int] = {"\0": 0}
_CHAR_TO_CODE.update({chr(ord("A") + i): 1 + i for i in range(26)})
_CHAR_TO_CODE.update({"'": 27, "<": 28, ">": 29})
_CHAR_TO_CODE.update({chr(ord("0") + i): 32 + i for i in range(10)})
_CHAR_TO_CODE.update({
    ".": 42, "@": 43, "+": 44, "-": 45, "(": 46, ")": 47,
    "[": 48, "]": 49, "*": 50, "/": 51, "=": 52,
    "^": 54,
    "?": 56, '"': 57, ":": 58, ";": 59, ",": 60, " ": 61, "\n": 62,
})

_CODE_TO_CHAR: dict[int, str] = {code: char for char, code in _CHAR_TO_CODE.items()}


# =============================================================================
# CharSet
# =============================================================================

class CharSet:
    """
    Bidirectional mapping between text and native 6-bit codes.

    All methods are static; the table itself is immutable.
    """

    @staticmethod
    def char_to_code(char: str) -> Optional[int]:
        """Return the native code for a character, or None."""
        return _CHAR_TO_CODE.get(char)

    @staticmethod
    def code_to_char(code: int) -> Optional[str]:
        """Return the character for a native code, or None."""
        return _CODE_TO_CHAR.get(code)

    @staticmethod
    def is_supported(char: str) -> bool:
        return char in _CHAR_TO_CODE

    @staticmethod
    def check_text(text: str, offset: int = 0) -> None:
        """
        Verify every character of text is in the repertoire.

        Args:
            text: Text to check
            offset: Added to positions reported in errors

        Raises:
            CharSetError: Naming the first unsupported character
        """
        for i, char in enumerate(text):
            if char not in _CHAR_TO_CODE:
                raise CharSetError(char, offset + i)

    @classmethod
    def pack(cls, text: str, offset: int = 0) -> int:
        """
        Pack up to four characters into 24 bits.

        Args:
            text: One to four characters
            offset: Position of text[0] within the caller's text (for errors)

        Returns:
            The packed 24-bit value, right-padded with NUL
        """
        if len(text) > CHARS_PER_WORD:
            raise ValueError(
                f"cannot pack {len(text)} characters into one word "
                f"(maximum {CHARS_PER_WORD})"
            )
        cls.check_text(text, offset)

        bits = 0
        for char in text.ljust(CHARS_PER_WORD, "\0"):
            bits = (bits << BITS_PER_CHAR) | _CHAR_TO_CODE[char]
        return bits

    @classmethod
    def unpack(cls, bits: int, offset: int = 0) -> str:
        """
        Unpack 24 bits into text, dropping trailing NUL padding.

        Raises:
            CharSetError: If a field holds an unmapped code
        """
        chars = []
        for i in range(CHARS_PER_WORD):
            shift = BITS_PER_CHAR * (CHARS_PER_WORD - 1 - i)
            code = (bits >> shift) & CHAR_MASK
            char = _CODE_TO_CHAR.get(code)
            if char is None:
                raise CharSetError(None, offset + i, code=code)
            chars.append(char)
        return "".join(chars).rstrip("\0")


# =============================================================================
# Text <-> Word Conversion
# =============================================================================

def encode(text: str) -> list["Word"]:
    """
    Encode text as a list of string-format data words.

    Text is split into four-character chunks; the last chunk is
    padded with NUL. Empty text encodes as no words.

    Raises:
        CharSetError: For the first character outside the repertoire
    """
    from bbcx_sdk.memory.word import Word

    CharSet.check_text(text)
    words = []
    for start in range(0, len(text), CHARS_PER_WORD):
        chunk = text[start:start + CHARS_PER_WORD]
        words.append(Word.string_bits(CharSet.pack(chunk, start)))
    logger.debug(f"Encoded {len(text)} characters into {len(words)} words")
    return words


def decode(words: Iterable["Word"]) -> str:
    """
    Decode string-format data words back to text.

    Padding is only removed from the end of the whole text, so NULs
    in the middle of a sequence survive.

    Raises:
        EncodingError: If any word is not a string-format data word
        CharSetError: If a word holds an unmapped code
    """
    parts = []
    for index, word in enumerate(words):
        bits = word.string_payload()
        for i in range(CHARS_PER_WORD):
            shift = BITS_PER_CHAR * (CHARS_PER_WORD - 1 - i)
            code = (bits >> shift) & CHAR_MASK
            char = _CODE_TO_CHAR.get(code)
            if char is None:
                raise CharSetError(None, index * CHARS_PER_WORD + i, code=code)
            parts.append(char)
    return "".join(parts).rstrip("\0")
