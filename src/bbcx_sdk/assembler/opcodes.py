"""
BBC-X Instruction Set
=====================

Function codes, mnemonic aliases and library routines of the
executable dialect.

Function Codes
--------------
The 6-bit function field selects one of 64 mnemonics, laid out in
eight rows of eight:

| Codes | Mnemonics                                          |
|-------|----------------------------------------------------|
| 0-7   | NIL OR NEQV AND ADD SUBT MULT DVD                  |
| 8-15  | TAKE TSTR TNEG TNOT TTYP TTYZ TTTT TOUT            |
| 16-23 | SKIP SKAE SKAN SKET SKAL SKAG SKED SKEI            |
| 24-31 | SHL ROT DSHL DROT POWR DMULT DIV DDIV              |
| 32-39 | NILX ORX NEQVX ANDX ADDX SUBTX MULTX DVDX          |
| 40-47 | PUT PSQU PNEG PNOT PTYP PTYZ PFFP PIN              |
| 48-55 | JUMP JEZ JNZ JAT JLZ JGZ JZD JZI                   |
| 56-63 | DECR INCR MOCKP MOCKS DBYTE UNUSED EXEC EXTRA      |

Aliases: NTHG = NIL, MPLY = MULT, MPLYX = MULTX, SWAP = NILX.

Library Routines
----------------
EXTRA calls a library routine whose number is carried in the address
field. The assembler accepts the routine names directly, so

    SQRT 1,         assembles as    EXTRA 1, 1
    STOP            assembles as    EXTRA 1, 10

Instruction Classes
-------------------
Each mnemonic belongs to a class that decides what its operand means
and how the executor treats it (see InstructionClass).
"""

from enum import Enum, IntEnum, auto
from typing import NamedTuple, Optional


# =============================================================================
# Function Codes
# =============================================================================

class Mnemonic(IntEnum):
    """Function codes 0..63."""
    NIL = 0
    OR = 1
    NEQV = 2
    AND = 3
    ADD = 4
    SUBT = 5
    MULT = 6
    DVD = 7
    TAKE = 8
    TSTR = 9
    TNEG = 10
    TNOT = 11
    TTYP = 12
    TTYZ = 13
    TTTT = 14
    TOUT = 15
    SKIP = 16
    SKAE = 17
    SKAN = 18
    SKET = 19
    SKAL = 20
    SKAG = 21
    SKED = 22
    SKEI = 23
    SHL = 24
    ROT = 25
    DSHL = 26
    DROT = 27
    POWR = 28
    DMULT = 29
    DIV = 30
    DDIV = 31
    NILX = 32
    ORX = 33
    NEQVX = 34
    ANDX = 35
    ADDX = 36
    SUBTX = 37
    MULTX = 38
    DVDX = 39
    PUT = 40
    PSQU = 41
    PNEG = 42
    PNOT = 43
    PTYP = 44
    PTYZ = 45
    PFFP = 46
    PIN = 47
    JUMP = 48
    JEZ = 49
    JNZ = 50
    JAT = 51
    JLZ = 52
    JGZ = 53
    JZD = 54
    JZI = 55
    DECR = 56
    INCR = 57
    MOCKP = 58
    MOCKS = 59
    DBYTE = 60
    UNUSED = 61
    EXEC = 62
    EXTRA = 63


class LibraryRoutine(IntEnum):
    """Routine numbers called through EXTRA."""
    SQRT = 1
    LN = 2
    EXP = 3
    READ = 4
    PRINT = 5
    SIN = 6
    COS = 7
    TAN = 8
    ATN = 9
    STOP = 10
    LINE = 11
    INT = 12
    FRAC = 13
    FLOAT = 14
    CAPTN = 15
    PAGE = 16
    RND = 17
    ABS = 18


_ROUTINE_NUMBERS = frozenset(int(r) for r in LibraryRoutine)

ALIASES: dict[str, Mnemonic] = {
    "NTHG": Mnemonic.NIL,
    "MPLY": Mnemonic.MULT,
    "MPLYX": Mnemonic.MULTX,
    "SWAP": Mnemonic.NILX,
}


# =============================================================================
# Instruction Classes
# =============================================================================

class InstructionClass(Enum):
    """
    How a mnemonic uses its accumulator and operand.

    ACCUMULATOR: acc := acc op operand (operand may be a constant)
    INDEX:       index register acc := register op operand
    STORE:       memory[operand] := f(acc)
    SKIP:        compare acc with operand, skip next word when true
    SHIFT:       shift or rotate acc by the operand count
    JUMP:        transfer control to the operand address
    LIBRARY:     EXTRA library call
    """
    ACCUMULATOR = auto()
    INDEX = auto()
    STORE = auto()
    SKIP = auto()
    SHIFT = auto()
    JUMP = auto()
    LIBRARY = auto()


def instruction_class(mnemonic: Mnemonic) -> InstructionClass:
    """Return the class a function code belongs to."""
    code = int(mnemonic)
    if mnemonic is Mnemonic.EXTRA:
        return InstructionClass.LIBRARY
    if mnemonic in (Mnemonic.INCR, Mnemonic.DECR):
        return InstructionClass.STORE
    if code < 16:
        return InstructionClass.ACCUMULATOR
    if code < 24:
        return InstructionClass.SKIP
    if code < 32:
        return InstructionClass.SHIFT
    if code < 40:
        return InstructionClass.INDEX
    if code < 48:
        return InstructionClass.STORE
    if code < 56:
        return InstructionClass.JUMP
    return InstructionClass.ACCUMULATOR


def accepts_constant(mnemonic: Mnemonic) -> bool:
    """
    True if the operand may be a constant.

    Constants are only meaningful where the operand is read as a value;
    stores and jumps need a real location.
    """
    return instruction_class(mnemonic) in (
        InstructionClass.ACCUMULATOR,
        InstructionClass.INDEX,
        InstructionClass.SKIP,
        InstructionClass.SHIFT,
    )


# =============================================================================
# Lookup
# =============================================================================

class OpcodeEntry(NamedTuple):
    """Result of looking up a mnemonic name."""
    mnemonic: Mnemonic
    routine: Optional[LibraryRoutine] = None


def lookup_mnemonic(name: str) -> Optional[OpcodeEntry]:
    """
    Look up a mnemonic, alias or library routine name.

    Args:
        name: Mnemonic as written (case-insensitive)

    Returns:
        OpcodeEntry, or None if the name is not part of the dialect
    """
    key = name.upper()
    if key in Mnemonic.__members__:
        return OpcodeEntry(Mnemonic[key])
    if key in ALIASES:
        return OpcodeEntry(ALIASES[key])
    if key in LibraryRoutine.__members__:
        return OpcodeEntry(Mnemonic.EXTRA, LibraryRoutine[key])
    return None


def is_mnemonic(name: str) -> bool:
    return lookup_mnemonic(name) is not None


def display_name(mnemonic: Mnemonic, address: int = 0) -> str:
    """
    Name to show for an executed instruction.

    EXTRA calls are shown by routine name when the routine exists.
    """
    if mnemonic is Mnemonic.EXTRA and address in _ROUTINE_NUMBERS:
        return LibraryRoutine(address).name
    return mnemonic.name


def all_names() -> list[str]:
    """Every name the dialect accepts, sorted."""
    return sorted(
        set(Mnemonic.__members__) | set(ALIASES) | set(LibraryRoutine.__members__)
    )
