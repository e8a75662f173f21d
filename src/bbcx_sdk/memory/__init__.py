"""
Machine Memory Model
====================

- **word**: tagged 24-bit words (instruction or integer/float/string data)
- **instruction**: instruction field layout, encode/decode
- **addressing**: typed indices that resolve to locations
- **state**: bounded memory holding the loaded program
"""

from bbcx_sdk.memory.word import Word, WordType, DataFormat, ZERO
from bbcx_sdk.memory.instruction import Instruction, encode, decode
from bbcx_sdk.memory.addressing import (
    Location,
    Accumulator,
    IndexRegister,
    Page,
    Address,
)
from bbcx_sdk.memory.state import State, MEMORY_SIZE, ACCUMULATOR_COUNT

__all__ = [
    "Word",
    "WordType",
    "DataFormat",
    "ZERO",
    "Instruction",
    "encode",
    "decode",
    "Location",
    "Accumulator",
    "IndexRegister",
    "Page",
    "Address",
    "State",
    "MEMORY_SIZE",
    "ACCUMULATOR_COUNT",
]
