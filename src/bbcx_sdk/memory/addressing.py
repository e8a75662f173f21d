"""
Typed Memory Indices
====================

Memory can be addressed by a raw location or by one of several small
value types, each of which knows how to turn itself into a location:

    Location(n)          location n
    Accumulator(n)       location n (accumulators live at 0..7)
    IndexRegister(n)     the value currently held in index register n
    Page(n)              first location of page n
    Address(...)         full effective-address calculation

Effective Address
-----------------
For Address(offset, page, index_register, indirect):

    1. base = page * 1024 + offset
    2. if indexed:  base += value of the index register
    3. base must lie inside memory
    4. if indirect: read the word at base once; an integer word gives the
       final location directly, an instruction word gives the location
       named by its page and offset fields (its own indirect flag is not
       followed)
    5. the final location must lie inside memory

Every step raises MemoryAccessError when a location falls outside the
memory bound.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, TYPE_CHECKING

from bbcx_sdk.errors import MemoryAccessError
from bbcx_sdk.memory.instruction import PAGE_SIZE, Instruction, decode, split_address
from bbcx_sdk.memory.word import DataFormat, WordType

if TYPE_CHECKING:
    from bbcx_sdk.memory.state import State


class Resolvable(Protocol):
    """Anything that names a memory location."""

    def resolve(self, state: "State", index_registers: Sequence[int] = ()) -> int:
        ...


@dataclass(frozen=True)
class Location:
    value: int

    def resolve(self, state: "State", index_registers: Sequence[int] = ()) -> int:
        return state.check(self.value)


@dataclass(frozen=True)
class Accumulator:
    """Accumulator n, stored at memory location n."""
    number: int

    def resolve(self, state: "State", index_registers: Sequence[int] = ()) -> int:
        return state.check(self.number)


@dataclass(frozen=True)
class IndexRegister:
    """The location held in index register n."""
    number: int

    def value(self, index_registers: Sequence[int]) -> int:
        """Current contents of the register."""
        if not 0 <= self.number < len(index_registers):
            raise MemoryAccessError(
                self.number, len(index_registers),
                f"index register {self.number} does not exist",
            )
        return index_registers[self.number]

    def resolve(self, state: "State", index_registers: Sequence[int] = ()) -> int:
        return state.check(self.value(index_registers))


@dataclass(frozen=True)
class Page:
    """First location of page n."""
    number: int

    def resolve(self, state: "State", index_registers: Sequence[int] = ()) -> int:
        return state.check(self.number * PAGE_SIZE)


@dataclass(frozen=True)
class Address:
    """
    Composite address operand of an instruction.

    Attributes:
        offset: Offset within the page
        page: Page number
        index_register: Index register to add, None when not indexed
        indirect: Perform one extra memory read
    """
    offset: int
    page: int = 0
    index_register: Optional[int] = None
    indirect: bool = False

    @classmethod
    def of(cls, instruction: Instruction) -> "Address":
        return cls(
            offset=instruction.offset,
            page=instruction.page,
            index_register=instruction.index_register,
            indirect=instruction.indirect,
        )

    @classmethod
    def absolute(cls, location: int, index_register: Optional[int] = None,
                 indirect: bool = False) -> "Address":
        page, offset = split_address(location)
        return cls(offset, page, index_register, indirect)

    def resolve(self, state: "State", index_registers: Sequence[int] = ()) -> int:
        location = self.page * PAGE_SIZE + self.offset
        if self.index_register is not None:
            location += IndexRegister(self.index_register).value(index_registers)
        state.check(location)

        if self.indirect:
            location = _follow(state, location)
            state.check(location)
        return location


def _follow(state: "State", location: int) -> int:
    """Read the address stored at location (one level only)."""
    word = state.read(location)
    if word.type is WordType.INSTRUCTION:
        return decode(word).address
    if word.format is DataFormat.INTEGER:
        return word.value
    raise MemoryAccessError(
        location, state.size,
        f"location {location} holds {word.describe()}, not an address",
    )
