"""
Addressable Memory
==================

State is the machine's memory: a fixed number of tagged words,
addressed by a raw location or any typed index from addressing.py.

Memory Map:
    0..7        Accumulators
    8..1023     Page 0 (program normally starts at 8)
    1024..2047  Page 1 (literal table grows down from 2047)

Every location starts as integer zero. Reads and writes outside the
bound raise MemoryAccessError; nothing wraps.
"""

import logging
from typing import Iterator, Sequence, TYPE_CHECKING, Union

from bbcx_sdk.errors import MemoryAccessError
from bbcx_sdk.memory.addressing import Resolvable
from bbcx_sdk.memory.instruction import PAGE_COUNT, PAGE_SIZE
from bbcx_sdk.memory.word import ZERO, Word

if TYPE_CHECKING:
    from bbcx_sdk.assembler.assembly import Assembly

logger = logging.getLogger(__name__)


MEMORY_SIZE = PAGE_SIZE * PAGE_COUNT
ACCUMULATOR_COUNT = 8

Where = Union[int, Resolvable]


class State:
    """
    Bounded word memory.

    Attributes:
        size: Number of locations
    """

    def __init__(self, size: int = MEMORY_SIZE):
        if size < ACCUMULATOR_COUNT:
            raise ValueError(f"memory of {size} words cannot hold the accumulators")
        self.size = size
        self._words: list[Word] = [ZERO] * size

    @classmethod
    def from_assembly(cls, assembly: "Assembly", size: int = MEMORY_SIZE) -> "State":
        """Create memory holding an assembled program and its literals."""
        state = cls(size)
        for location, word in assembly.image().items():
            state.write(location, word)
        logger.debug(f"Loaded {len(assembly.image())} words into {size}-word memory")
        return state

    def check(self, location: int) -> int:
        """
        Return location if it lies inside memory.

        Raises:
            MemoryAccessError: Otherwise
        """
        if not 0 <= location < self.size:
            raise MemoryAccessError(location, self.size)
        return location

    def locate(self, where: Where, index_registers: Sequence[int] = ()) -> int:
        """Resolve a raw location or typed index to a checked location."""
        if isinstance(where, int):
            return self.check(where)
        return where.resolve(self, index_registers)

    def read(self, where: Where, index_registers: Sequence[int] = ()) -> Word:
        return self._words[self.locate(where, index_registers)]

    def write(self, where: Where, word: Word, index_registers: Sequence[int] = ()) -> None:
        self._words[self.locate(where, index_registers)] = word

    def __getitem__(self, where: Where) -> Word:
        return self.read(where)

    def __setitem__(self, where: Where, word: Word) -> None:
        self.write(where, word)

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[Word]:
        return iter(self._words)

    def snapshot(self) -> list[Word]:
        """Copy of every word, in location order."""
        return list(self._words)
