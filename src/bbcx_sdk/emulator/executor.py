"""
BBC-X Executor
==============

Fetch-decode-execute loop over an assembled program.

Run States
----------
    READY --run/step--> RUNNING --STOP--> HALTED
                           |-----fault--> FAULTED
                           '---cancel---> CANCELLED

HALTED, FAULTED and CANCELLED are terminal; stepping afterwards raises
ExecutorStateError. A faulted run cannot be resumed.

Per Step
--------
1. Fetch the word at the program counter; it must be an instruction
   word (executing data is an invalid-address fault)
2. Decode it
3. Resolve the effective address: add the index register if present,
   then follow one level of indirection if the indirect flag is set
4. Dispatch on the mnemonic
5. Commit the step's effects, or fault leaving no partial effect

Every instruction's register, memory and output effects are collected
in a Step and applied only when the whole instruction has succeeded.

Machine Model
-------------
- Memory: State of 2048 words
- Accumulators 0..7: memory locations 0..7
- Index registers 0..7: integers held in the ExecutionContext
- Program counter: starts at the first instruction word of the program

The executor has no instruction limit. Callers that need one pass a
``should_cancel`` callback to run(), which is consulted between steps.

Example
-------
>>> from bbcx_sdk import assemble
>>> from bbcx_sdk.emulator import Executor
>>> executor = Executor(assemble("TAKE 1, +2\\nPRINT 1,\\nSTOP"))
>>> executor.run().output
'2'
"""

import logging
import random
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, NoReturn, Optional, Union

from bbcx_sdk.assembler.assembly import Assembly
from bbcx_sdk.assembler.opcodes import (
    InstructionClass,
    Mnemonic,
    display_name,
    instruction_class,
)
from bbcx_sdk.emulator import library
from bbcx_sdk.emulator.io import (
    InputSource,
    OutputSink,
    RegisterSnapshot,
    TraceRecord,
    TraceSink,
)
from bbcx_sdk.errors import (
    CharSetError,
    EncodingError,
    ExecutionFault,
    ExecutorStateError,
    FaultKind,
    MemoryAccessError,
    WordOverflowError,
)
from bbcx_sdk.memory.addressing import Accumulator, Address
from bbcx_sdk.memory.instruction import Instruction, decode
from bbcx_sdk.memory.state import ACCUMULATOR_COUNT, MEMORY_SIZE, State
from bbcx_sdk.memory.word import (
    INTEGER_MAX,
    INTEGER_MIN,
    WORD_BITS,
    WORD_MASK,
    DataFormat,
    Word,
    bits_to_integer,
)

logger = logging.getLogger(__name__)

Number = Union[int, float]

INDEX_REGISTER_COUNT = 8


# =============================================================================
# Run State
# =============================================================================

class RunStatus(Enum):
    READY = auto()
    RUNNING = auto()
    HALTED = auto()
    FAULTED = auto()
    CANCELLED = auto()

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.HALTED, RunStatus.FAULTED, RunStatus.CANCELLED)


@dataclass
class ExecutionContext:
    """
    Live machine state for one run.

    Created fresh for every run and never shared between runs.

    Attributes:
        state: Memory, including the accumulators at locations 0..7
        index_registers: Index register values
        program_counter: Location of the next instruction
    """
    state: State
    index_registers: list[int] = field(default_factory=lambda: [0] * INDEX_REGISTER_COUNT)
    program_counter: int = 0

    def accumulator(self, n: int) -> Word:
        return self.state.read(Accumulator(n))

    def snapshot(self) -> RegisterSnapshot:
        return RegisterSnapshot(
            accumulators=tuple(self.state.read(n) for n in range(ACCUMULATOR_COUNT)),
            index_registers=tuple(self.index_registers),
            program_counter=self.program_counter,
        )


@dataclass(frozen=True)
class ExecutionSummary:
    """
    Outcome of a run.

    Attributes:
        status: HALTED, CANCELLED (or FAULTED when read from a faulted executor)
        halt_location: Location of the STOP that halted the run
        steps: Instructions completed
        registers: Registers at the end of the run
        output: Everything the program printed
        fault: The fault, for a FAULTED run
    """
    status: RunStatus
    halt_location: Optional[int]
    steps: int
    registers: RegisterSnapshot
    output: str = ""
    fault: Optional[ExecutionFault] = None

    def __str__(self) -> str:
        match self.status:
            case RunStatus.HALTED:
                return f"halted at {self.halt_location:04} after {self.steps} steps"
            case RunStatus.FAULTED:
                return f"{self.fault} after {self.steps} steps"
            case RunStatus.CANCELLED:
                return f"cancelled at {self.registers.program_counter:04} after {self.steps} steps"
            case _:
                return f"{self.status.name.lower()} after {self.steps} steps"


# =============================================================================
# Pending Effects of One Instruction
# =============================================================================

class _Fault(Exception):
    """Raised inside a step; turned into ExecutionFault by the executor."""

    def __init__(self, kind: FaultKind, reason: str):
        self.kind = kind
        self.reason = reason
        super().__init__(reason)


class Step:
    """
    Effects of the instruction being executed, applied only on success.

    Reads see the memory as it was before the instruction.
    """

    def __init__(self, executor: "Executor", location: int):
        self._executor = executor
        self._context = executor.context
        self.location = location
        self.next_pc = location + 1
        self.writes: dict[int, Word] = {}
        self.index_writes: dict[int, int] = {}
        self.text: list[str] = []
        self.halted = False

    # Memory and registers

    def read(self, location: int) -> Word:
        try:
            return self._context.state.read(location)
        except MemoryAccessError as e:
            self.fault(FaultKind.INVALID_ADDRESS, str(e))

    def write(self, location: int, word: Word) -> None:
        try:
            self._context.state.check(location)
        except MemoryAccessError as e:
            self.fault(FaultKind.INVALID_ADDRESS, str(e))
        self.writes[location] = word

    def index(self, n: int) -> int:
        return self._context.index_registers[n]

    def set_index(self, n: int, value: int) -> None:
        self.index_writes[n] = self.checked_integer(value)

    # Control

    def jump(self, location: int) -> None:
        self.next_pc = location

    def skip(self) -> None:
        self.next_pc = self.location + 2

    def halt(self) -> None:
        self.halted = True
        self.next_pc = self.location

    def fault(self, kind: FaultKind, reason: str) -> NoReturn:
        raise _Fault(kind, reason)

    # I/O

    def output(self, text: str) -> None:
        self.text.append(text)

    def read_input(self) -> Number:
        source = self._executor.input
        value = source.read_number() if source is not None else None
        if value is None:
            self.fault(FaultKind.INPUT_EXHAUSTED, "READ with no input left")
        return value

    def random(self) -> float:
        return self._executor.random.random()

    # Numbers

    def number(self, word: Word) -> Number:
        """Numeric value of a word; anything else is a type mismatch."""
        try:
            return word.numeric_value()
        except EncodingError as e:
            self.fault(FaultKind.WORD_TYPE_MISMATCH, str(e))

    def integer(self, word: Word) -> int:
        if word.format is not DataFormat.INTEGER:
            self.fault(FaultKind.WORD_TYPE_MISMATCH, f"expected integer data, found {word.describe()}")
        return word.value

    def checked_integer(self, value: int) -> int:
        if not INTEGER_MIN <= value <= INTEGER_MAX:
            self.fault(FaultKind.REGISTER_OUT_OF_RANGE, f"{value} does not fit in {WORD_BITS} bits")
        return value

    def make_number(self, value: Number) -> Word:
        try:
            return Word.number(value)
        except WordOverflowError as e:
            self.fault(FaultKind.REGISTER_OUT_OF_RANGE, str(e))


# =============================================================================
# Arithmetic
# =============================================================================

def _divide(step: Step, a: Number, b: Number) -> Number:
    if b == 0:
        step.fault(FaultKind.DIVISION_BY_ZERO, f"{a} / {b}")
    if isinstance(a, int) and isinstance(b, int):
        quotient = abs(a) // abs(b)
        return quotient if (a < 0) == (b < 0) else -quotient
    return a / b


ARITHMETIC: dict[Mnemonic, Callable[[Step, Number, Number], Number]] = {
    Mnemonic.ADD: lambda step, a, b: a + b,
    Mnemonic.SUBT: lambda step, a, b: a - b,
    Mnemonic.MULT: lambda step, a, b: a * b,
    Mnemonic.DVD: _divide,
}

BITWISE: dict[Mnemonic, Callable[[int, int], int]] = {
    Mnemonic.OR: lambda a, b: a | b,
    Mnemonic.NEQV: lambda a, b: a ^ b,
    Mnemonic.AND: lambda a, b: a & b,
}

INDEX_OPERATIONS = {
    Mnemonic.ORX: Mnemonic.OR,
    Mnemonic.NEQVX: Mnemonic.NEQV,
    Mnemonic.ANDX: Mnemonic.AND,
    Mnemonic.ADDX: Mnemonic.ADD,
    Mnemonic.SUBTX: Mnemonic.SUBT,
    Mnemonic.MULTX: Mnemonic.MULT,
    Mnemonic.DVDX: Mnemonic.DVD,
}


def _compare(step: Step, a: Word, b: Word) -> int:
    """-1, 0 or 1 comparing two numeric words."""
    x, y = step.number(a), step.number(b)
    return (x > y) - (x < y)


def _same(a: Word, b: Word) -> bool:
    if a.is_numeric and b.is_numeric:
        return a.numeric_value() == b.numeric_value()
    return a == b


# =============================================================================
# Executor
# =============================================================================

class Executor:
    """
    Runs an Assembly.

    Usage:
        executor = Executor(assembly, output=BufferedOutput())
        summary = executor.run()

    Attributes:
        assembly: The program being run
        context: Live registers and memory
        status: Current RunStatus
        steps: Instructions completed so far
    """

    def __init__(
        self,
        assembly: Assembly,
        output: Optional[OutputSink] = None,
        input: Optional[InputSource] = None,
        trace: Optional[TraceSink] = None,
        memory_size: int = MEMORY_SIZE,
        seed: Optional[int] = None,
    ):
        self.assembly = assembly
        self.output = output
        self.input = input
        self.trace = trace
        self.random = random.Random(seed)

        state = State.from_assembly(assembly, memory_size)
        entry = assembly.entry
        self.context = ExecutionContext(state, program_counter=entry if entry is not None else 0)
        self.status = RunStatus.READY
        self.steps = 0
        self.halt_location: Optional[int] = None
        self.fault: Optional[ExecutionFault] = None
        self._output_text: list[str] = []

        self._empty = entry is None
        if self._empty:
            logger.debug("Program has no instructions; halting immediately")
            self.status = RunStatus.HALTED

        self._dispatch: dict[InstructionClass, Callable[[Step, Instruction], None]] = {
            InstructionClass.ACCUMULATOR: self._execute_accumulator,
            InstructionClass.INDEX: self._execute_index,
            InstructionClass.STORE: self._execute_store,
            InstructionClass.SKIP: self._execute_skip,
            InstructionClass.SHIFT: self._execute_shift,
            InstructionClass.JUMP: self._execute_jump,
            InstructionClass.LIBRARY: self._execute_library,
        }

    # =========================================================================
    # Running
    # =========================================================================

    def run(self, should_cancel: Optional[Callable[[], bool]] = None) -> ExecutionSummary:
        """
        Run until the program halts.

        Args:
            should_cancel: Consulted before every step; returning True
                ends the run in the CANCELLED state

        Returns:
            ExecutionSummary for a halted or cancelled run

        Raises:
            ExecutionFault: If an instruction faults
            ExecutorStateError: If the run had already ended
        """
        if self._empty:
            return self.summary()
        if self.status.is_terminal:
            raise ExecutorStateError(f"run already {self.status.name.lower()}")

        while not self.status.is_terminal:
            if should_cancel is not None and should_cancel():
                self.status = RunStatus.CANCELLED
                logger.debug(f"Cancelled at {self.context.program_counter:04} after {self.steps} steps")
                break
            self.step()

        return self.summary()

    def step(self) -> None:
        """
        Execute one instruction.

        Raises:
            ExecutionFault: If the instruction faults
            ExecutorStateError: If the run has ended
        """
        if self.status.is_terminal:
            raise ExecutorStateError(f"cannot step: run {self.status.name.lower()}")
        self.status = RunStatus.RUNNING

        location = self.context.program_counter
        before = self.context.snapshot() if self.trace is not None else None
        name: Optional[str] = None
        step = Step(self, location)

        try:
            instruction = self._fetch(step, location)
            plain = instruction.index_register is None and not instruction.indirect
            name = display_name(instruction.mnemonic, instruction.address if plain else 0)
            self._dispatch[instruction_class(instruction.mnemonic)](step, instruction)
        except _Fault as e:
            self._raise_fault(e.kind, location, name, e.reason)
        except MemoryAccessError as e:
            self._raise_fault(FaultKind.INVALID_ADDRESS, location, name, str(e))
        except WordOverflowError as e:
            self._raise_fault(FaultKind.REGISTER_OUT_OF_RANGE, location, name, str(e))
        except (EncodingError, CharSetError) as e:
            self._raise_fault(FaultKind.WORD_TYPE_MISMATCH, location, name, str(e))

        self._commit(step)
        self.steps += 1
        if self.trace is not None:
            self.trace.record(TraceRecord(location, name, before, self.context.snapshot()))

    def summary(self) -> ExecutionSummary:
        return ExecutionSummary(
            status=self.status,
            halt_location=self.halt_location,
            steps=self.steps,
            registers=self.context.snapshot(),
            output="".join(self._output_text),
            fault=self.fault,
        )

    def _fetch(self, step: Step, location: int) -> Instruction:
        word = step.read(location)
        if not word.is_instruction:
            step.fault(FaultKind.INVALID_ADDRESS, f"executing {word.describe()} at {location:04}")
        return decode(word)

    def _commit(self, step: Step) -> None:
        for location, word in step.writes.items():
            self.context.state.write(location, word)
        for n, value in step.index_writes.items():
            self.context.index_registers[n] = value
        for text in step.text:
            self._output_text.append(text)
            if self.output is not None:
                self.output.write(text)
        self.context.program_counter = step.next_pc
        if step.halted:
            self.status = RunStatus.HALTED
            self.halt_location = step.location
            logger.debug(f"Halted at {step.location:04} after {self.steps + 1} steps")

    def _raise_fault(self, kind: FaultKind, location: int, name: Optional[str], reason: str) -> NoReturn:
        self.status = RunStatus.FAULTED
        self.fault = ExecutionFault(kind, location, name, reason, steps=self.steps)
        logger.debug(f"Fault: {self.fault}")
        raise self.fault

    # =========================================================================
    # Operand Access
    # =========================================================================

    def _effective_address(self, step: Step, instruction: Instruction) -> int:
        try:
            return Address.of(instruction).resolve(self.context.state, self.context.index_registers)
        except (MemoryAccessError, EncodingError) as e:
            step.fault(FaultKind.INVALID_ADDRESS, str(e))

    def _operand(self, step: Step, instruction: Instruction) -> Word:
        return step.read(self._effective_address(step, instruction))

    # =========================================================================
    # Instruction Classes
    # =========================================================================

    def _unknown(self, step: Step, instruction: Instruction) -> NoReturn:
        step.fault(FaultKind.UNKNOWN_MNEMONIC, f"{instruction.mnemonic.name} is not implemented")

    def _execute_accumulator(self, step: Step, instruction: Instruction) -> None:
        mnemonic = instruction.mnemonic
        acc = instruction.accumulator
        if mnemonic is Mnemonic.NIL:
            return

        if mnemonic not in ARITHMETIC and mnemonic not in BITWISE and mnemonic not in (
            Mnemonic.TAKE, Mnemonic.TNEG, Mnemonic.TNOT
        ):
            self._unknown(step, instruction)

        operand = self._operand(step, instruction)
        current = step.read(acc)

        if mnemonic in BITWISE:
            step.write(acc, current.with_bits(BITWISE[mnemonic](current.bits, operand.bits)))
        elif mnemonic in ARITHMETIC:
            result = ARITHMETIC[mnemonic](step, step.number(current), step.number(operand))
            step.write(acc, step.make_number(result))
        elif mnemonic is Mnemonic.TAKE:
            step.write(acc, operand)
        elif mnemonic is Mnemonic.TNEG:
            step.write(acc, step.make_number(-step.number(operand)))
        elif mnemonic is Mnemonic.TNOT:
            step.write(acc, operand.with_bits(~operand.bits & WORD_MASK))

    def _execute_index(self, step: Step, instruction: Instruction) -> None:
        mnemonic = instruction.mnemonic
        n = instruction.accumulator

        if mnemonic is Mnemonic.NILX:
            # exchange accumulator n and index register n
            held = step.integer(step.read(n))
            step.write(n, Word.integer(step.index(n)))
            step.set_index(n, held)
            return

        operation = INDEX_OPERATIONS[mnemonic]
        operand = step.integer(self._operand(step, instruction))
        current = step.index(n)
        if operation in BITWISE:
            bits = BITWISE[operation](current & WORD_MASK, operand & WORD_MASK)
            step.set_index(n, bits_to_integer(bits))
        else:
            step.set_index(n, ARITHMETIC[operation](step, current, operand))

    def _execute_store(self, step: Step, instruction: Instruction) -> None:
        mnemonic = instruction.mnemonic
        acc = instruction.accumulator

        if mnemonic not in (Mnemonic.PUT, Mnemonic.PNEG, Mnemonic.PNOT, Mnemonic.INCR, Mnemonic.DECR):
            self._unknown(step, instruction)

        target = self._effective_address(step, instruction)
        match mnemonic:
            case Mnemonic.PUT:
                step.write(target, step.read(acc))
            case Mnemonic.PNEG:
                step.write(target, step.make_number(-step.number(step.read(acc))))
            case Mnemonic.PNOT:
                word = step.read(acc)
                step.write(target, word.with_bits(~word.bits & WORD_MASK))
            case Mnemonic.INCR:
                step.write(target, step.make_number(step.number(step.read(target)) + 1))
            case Mnemonic.DECR:
                step.write(target, step.make_number(step.number(step.read(target)) - 1))

    def _execute_skip(self, step: Step, instruction: Instruction) -> None:
        mnemonic = instruction.mnemonic
        if mnemonic is Mnemonic.SKIP:
            step.skip()
            return
        if mnemonic not in (Mnemonic.SKAE, Mnemonic.SKAN, Mnemonic.SKAL, Mnemonic.SKAG):
            self._unknown(step, instruction)

        current = step.read(instruction.accumulator)
        operand = self._operand(step, instruction)
        match mnemonic:
            case Mnemonic.SKAE:
                taken = _same(current, operand)
            case Mnemonic.SKAN:
                taken = not _same(current, operand)
            case Mnemonic.SKAL:
                taken = _compare(step, current, operand) < 0
            case _:
                taken = _compare(step, current, operand) > 0
        if taken:
            step.skip()

    def _execute_shift(self, step: Step, instruction: Instruction) -> None:
        mnemonic = instruction.mnemonic
        if mnemonic not in (Mnemonic.SHL, Mnemonic.ROT):
            self._unknown(step, instruction)

        acc = instruction.accumulator
        count = step.integer(self._operand(step, instruction))
        current = step.read(acc)

        if mnemonic is Mnemonic.SHL:
            value = step.integer(current)
            shifted = value << count if count >= 0 else value >> -count
            step.write(acc, Word.integer(step.checked_integer(shifted)))
        else:
            places = count % WORD_BITS
            bits = ((current.bits << places) | (current.bits >> (WORD_BITS - places))) & WORD_MASK
            step.write(acc, current.with_bits(bits))

    def _execute_jump(self, step: Step, instruction: Instruction) -> None:
        mnemonic = instruction.mnemonic
        if mnemonic not in (Mnemonic.JUMP, Mnemonic.JEZ, Mnemonic.JNZ, Mnemonic.JLZ, Mnemonic.JGZ):
            self._unknown(step, instruction)

        target = self._effective_address(step, instruction)
        if mnemonic is Mnemonic.JUMP:
            step.jump(target)
            return

        value = step.number(step.read(instruction.accumulator))
        match mnemonic:
            case Mnemonic.JEZ:
                taken = value == 0
            case Mnemonic.JNZ:
                taken = value != 0
            case Mnemonic.JLZ:
                taken = value < 0
            case _:
                taken = value > 0
        if taken:
            step.jump(target)

    def _execute_library(self, step: Step, instruction: Instruction) -> None:
        # routine number is the effective address, so it may be indexed or indirect
        routine = self._effective_address(step, instruction)
        library.call(step, routine, instruction.accumulator)
