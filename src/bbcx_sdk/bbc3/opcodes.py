"""
BBC-3 Mnemonics
===============

The legacy dialect's closed mnemonic set, grouped the way its grammar
uses them:

| Group        | Mnemonics                                                   |
|--------------|-------------------------------------------------------------|
| 0-15         | NTHG ADD SUBT MPLY DVD TAKE NEG MOD CLR AND OR NEQV NOT     |
|              | SHFR CYCR OPUT                                              |
| 16-22        | IPUT PUT INCR DECR TYPE CHYP EXEC                           |
| skip         | SKET SKAE SKAN SKAL SKAG                                    |
| jump         | LIBR JLIK JUMP JEZ JNZ JLZ JGZ JOI SLIK SNLZ                |
| library      | SQRT LN EXP READ PRINT SIN COS TAN ARCTAN STOP LINE INT     |
|              | FRAC FLOAT CAPTN                                            |
| load         | LDN LDR                                                     |

Every 0-15 and 16-22 mnemonic also has an X-prefixed form (XADD,
XPUT, ...).

Take-type mnemonics (0-15 and skips) accept any general operand.
Put-type mnemonics (X 0-15, 16-22, X 16-22 and jumps) need an address.
"""

from enum import Enum, auto
from typing import Optional


class MnemonicGroup(Enum):
    TAKE_TYPE = auto()
    PUT_TYPE = auto()
    LIBRARY = auto()
    LOAD_N = auto()
    LOAD_R = auto()


GROUP_0_15 = (
    "NTHG", "ADD", "SUBT", "MPLY", "DVD", "TAKE", "NEG", "MOD",
    "CLR", "AND", "OR", "NEQV", "NOT", "SHFR", "CYCR", "OPUT",
)
GROUP_16_22 = ("IPUT", "PUT", "INCR", "DECR", "TYPE", "CHYP", "EXEC")
SKIP_MNEMONICS = ("SKET", "SKAE", "SKAN", "SKAL", "SKAG")
JUMP_MNEMONICS = ("LIBR", "JLIK", "JUMP", "JEZ", "JNZ", "JLZ", "JGZ", "JOI", "SLIK", "SNLZ")
LIBRARY_MNEMONICS = (
    "SQRT", "LN", "EXP", "READ", "PRINT", "SIN", "COS", "TAN",
    "ARCTAN", "STOP", "LINE", "INT", "FRAC", "FLOAT", "CAPTN",
)

MNEMONIC_GROUPS: dict[str, MnemonicGroup] = {}
MNEMONIC_GROUPS.update({m: MnemonicGroup.TAKE_TYPE for m in GROUP_0_15 + SKIP_MNEMONICS})
MNEMONIC_GROUPS.update({f"X{m}": MnemonicGroup.PUT_TYPE for m in GROUP_0_15 + GROUP_16_22})
MNEMONIC_GROUPS.update({m: MnemonicGroup.PUT_TYPE for m in GROUP_16_22 + JUMP_MNEMONICS})
MNEMONIC_GROUPS.update({m: MnemonicGroup.LIBRARY for m in LIBRARY_MNEMONICS})
MNEMONIC_GROUPS["LDN"] = MnemonicGroup.LOAD_N
MNEMONIC_GROUPS["LDR"] = MnemonicGroup.LOAD_R

ALTERNATE_ACCUMULATOR = 2


def mnemonic_group(name: str) -> Optional[MnemonicGroup]:
    """Group of a mnemonic, or None if it is not a BBC-3 mnemonic."""
    return MNEMONIC_GROUPS.get(name)


def split_accumulator(word: str) -> tuple[str, Optional[int]]:
    """
    Split an accumulator suffix off a mnemonic: 'ADD2' -> ('ADD', 2).

    Library mnemonics take no accumulator, so their names are never split.
    """
    if (
        word.endswith(str(ALTERNATE_ACCUMULATOR))
        and word[:-1] in MNEMONIC_GROUPS
        and MNEMONIC_GROUPS[word[:-1]] is not MnemonicGroup.LIBRARY
    ):
        return word[:-1], ALTERNATE_ACCUMULATOR
    return word, None
