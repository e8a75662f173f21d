"""
Executor Input, Output and Trace
================================

The executor never prints, reads or writes files itself. Side effects
go through three small interfaces owned by the caller:

- OutputSink.write(text): text produced by PRINT, LINE, CAPTN, PAGE
- InputSource.read_number(): numbers consumed by READ (None when exhausted)
- TraceSink.record(record): one TraceRecord per executed instruction

In-memory implementations are provided for tests and for the CLI,
which renders the collected data afterwards.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol, Union

from bbcx_sdk.memory.word import Word

Number = Union[int, float]


# =============================================================================
# Protocols
# =============================================================================

class OutputSink(Protocol):
    """Receives program output."""

    def write(self, text: str) -> None:
        ...


class InputSource(Protocol):
    """Supplies numbers to READ."""

    def read_number(self) -> Optional[Number]:
        """Next number, or None when no input is left."""
        ...


class TraceSink(Protocol):
    """Receives one record per executed instruction."""

    def record(self, record: "TraceRecord") -> None:
        ...


# =============================================================================
# Trace Data
# =============================================================================

@dataclass(frozen=True)
class RegisterSnapshot:
    """
    Register contents at one instant.

    Attributes:
        accumulators: Words held in accumulators 0..7
        index_registers: Values of index registers 0..7
        program_counter: Location of the next instruction
    """
    accumulators: tuple[Word, ...]
    index_registers: tuple[int, ...]
    program_counter: int

    def changed_from(self, before: "RegisterSnapshot") -> dict[str, tuple[str, str]]:
        """Registers whose contents differ from before, as name -> (old, new)."""
        changes = {}
        for n, (old, new) in enumerate(zip(before.accumulators, self.accumulators)):
            if old != new:
                changes[f"A{n}"] = (_show(old), _show(new))
        for n, (old, new) in enumerate(zip(before.index_registers, self.index_registers)):
            if old != new:
                changes[f"X{n}"] = (str(old), str(new))
        return changes


def _show(word: Word) -> str:
    if word.is_data:
        return repr(word.value)
    return str(word)


@dataclass(frozen=True)
class TraceRecord:
    """
    One executed instruction.

    Attributes:
        location: Location of the instruction
        mnemonic: Name of the instruction (library routine name for EXTRA)
        before: Registers before execution
        after: Registers after execution
    """
    location: int
    mnemonic: str
    before: RegisterSnapshot
    after: RegisterSnapshot


# =============================================================================
# In-memory Implementations
# =============================================================================

@dataclass
class BufferedOutput:
    """Collects output text."""
    parts: list[str] = field(default_factory=list)

    def write(self, text: str) -> None:
        self.parts.append(text)

    @property
    def text(self) -> str:
        return "".join(self.parts)


class ScriptedInput:
    """Supplies a fixed sequence of numbers."""

    def __init__(self, numbers: Iterable[Number] = ()):
        self._numbers = list(numbers)
        self._next = 0

    def read_number(self) -> Optional[Number]:
        if self._next >= len(self._numbers):
            return None
        value = self._numbers[self._next]
        self._next += 1
        return value

    @property
    def remaining(self) -> int:
        return len(self._numbers) - self._next


@dataclass
class TraceRecorder:
    """Keeps every trace record."""
    records: list[TraceRecord] = field(default_factory=list)

    def record(self, record: TraceRecord) -> None:
        self.records.append(record)

    def __len__(self) -> int:
        return len(self.records)
