"""
Library Routines
================

Routines reached through ``EXTRA acc, n``. Each routine works on
accumulator ``acc`` and records its effects on the pending Step, so a
routine that faults leaves nothing behind.

| n  | Routine | Effect on accumulator / output                 |
|----|---------|------------------------------------------------|
| 1  | SQRT    | acc := sqrt(acc)                               |
| 2  | LN      | acc := ln(acc)                                 |
| 3  | EXP     | acc := e ** acc                                |
| 4  | READ    | acc := next input number                       |
| 5  | PRINT   | print acc                                      |
| 6  | SIN     | acc := sin(acc)                                |
| 7  | COS     | acc := cos(acc)                                |
| 8  | TAN     | acc := tan(acc)                                |
| 9  | ATN     | acc := arctan(acc)                             |
| 10 | STOP    | halt                                           |
| 11 | LINE    | print a newline                                |
| 12 | INT     | acc := integer part (integer word)             |
| 13 | FRAC    | acc := fractional part (float word)            |
| 14 | FLOAT   | acc := acc as a float word                     |
| 15 | CAPTN   | print the characters held in acc               |
| 16 | PAGE    | print a form feed                              |
| 17 | RND     | acc := random float in [0, 1)                  |
| 18 | ABS     | acc := abs(acc)                                |
"""

import math
from typing import Callable, TYPE_CHECKING

from bbcx_sdk.assembler.opcodes import LibraryRoutine
from bbcx_sdk.errors import FaultKind
from bbcx_sdk.memory.word import DataFormat, Word

if TYPE_CHECKING:
    from bbcx_sdk.emulator.executor import Step

Routine = Callable[["Step", int], None]


def format_number(value) -> str:
    """Text PRINT produces for a number."""
    if isinstance(value, int):
        return str(value)
    return format(value, "g")


def _math(function: Callable[[float], float]) -> Routine:
    """Wrap a float function as a routine; domain errors fault."""
    def routine(step: "Step", acc: int) -> None:
        value = step.number(step.read(acc))
        try:
            result = function(float(value))
        except (ValueError, OverflowError) as e:
            step.fault(FaultKind.REGISTER_OUT_OF_RANGE, f"{function.__name__}({value}): {e}")
        step.write(acc, step.make_number(float(result)))
    return routine


def _read(step: "Step", acc: int) -> None:
    value = step.read_input()
    step.write(acc, step.make_number(value))


def _print(step: "Step", acc: int) -> None:
    word = step.read(acc)
    if word.format is DataFormat.STRING:
        step.output(word.value)
    else:
        step.output(format_number(step.number(word)))


def _stop(step: "Step", acc: int) -> None:
    step.halt()


def _line(step: "Step", acc: int) -> None:
    step.output("\n")


def _page(step: "Step", acc: int) -> None:
    step.output("\f")


def _captn(step: "Step", acc: int) -> None:
    word = step.read(acc)
    if word.format is not DataFormat.STRING:
        step.fault(FaultKind.WORD_TYPE_MISMATCH, f"CAPTN needs string data, found {word.describe()}")
    step.output(word.value)


def _int(step: "Step", acc: int) -> None:
    value = step.number(step.read(acc))
    step.write(acc, step.make_number(math.trunc(value)))


def _frac(step: "Step", acc: int) -> None:
    value = step.number(step.read(acc))
    step.write(acc, step.make_number(float(value - math.trunc(value))))


def _float(step: "Step", acc: int) -> None:
    value = step.number(step.read(acc))
    step.write(acc, step.make_number(float(value)))


def _rnd(step: "Step", acc: int) -> None:
    step.write(acc, Word.float(step.random()))


def _abs(step: "Step", acc: int) -> None:
    value = step.number(step.read(acc))
    step.write(acc, step.make_number(abs(value)))


ROUTINES: dict[LibraryRoutine, Routine] = {
    LibraryRoutine.SQRT: _math(math.sqrt),
    LibraryRoutine.LN: _math(math.log),
    LibraryRoutine.EXP: _math(math.exp),
    LibraryRoutine.READ: _read,
    LibraryRoutine.PRINT: _print,
    LibraryRoutine.SIN: _math(math.sin),
    LibraryRoutine.COS: _math(math.cos),
    LibraryRoutine.TAN: _math(math.tan),
    LibraryRoutine.ATN: _math(math.atan),
    LibraryRoutine.STOP: _stop,
    LibraryRoutine.LINE: _line,
    LibraryRoutine.INT: _int,
    LibraryRoutine.FRAC: _frac,
    LibraryRoutine.FLOAT: _float,
    LibraryRoutine.CAPTN: _captn,
    LibraryRoutine.PAGE: _page,
    LibraryRoutine.RND: _rnd,
    LibraryRoutine.ABS: _abs,
}


def call(step: "Step", routine_number: int, acc: int) -> None:
    """Run library routine routine_number on accumulator acc."""
    try:
        routine = ROUTINES[LibraryRoutine(routine_number)]
    except ValueError:
        step.fault(FaultKind.UNKNOWN_MNEMONIC, f"no library routine {routine_number}")
    routine(step, acc)
