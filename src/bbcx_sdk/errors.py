"""
BBC-X SDK Error Hierarchy
=========================

This module defines the exception hierarchy for the whole toolchain.
All exceptions inherit from BbcxError, allowing callers to catch every
toolchain error with a single except clause if desired.

Exception Hierarchy
-------------------
BbcxError (base)
├── AssemblerError (source-level problems, rendered with file:line:col)
│   ├── ParseError - a source line does not match the dialect grammar
│   ├── AssemblyError - semantic problem found by the two-pass assembler
│   │   ├── UndefinedLabelError - reference to a label that is never defined
│   │   ├── DuplicateLabelError - label defined more than once
│   │   ├── DuplicateLocationError - two source lines claim one location
│   │   └── FieldOverflowError - encoded field outside its declared range
│   ├── AssemblyFailed - aggregate of every error found for one file
│   └── TooManyErrors - error limit reached
├── EncodingError - word decoded under the wrong WordType tag
├── WordOverflowError - value does not fit in a 24-bit word
├── CharSetError - character outside the native repertoire
├── MemoryAccessError - location outside the allocated memory bound
├── ExecutionFault - unrecoverable run-time fault (Faulted state)
├── ExecutorStateError - executor driven from a terminal state
└── DialectError - unknown dialect, or dialect cannot do what was asked

Error Format
------------
Source-level errors follow the same format as other assemblers:

    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)

Run-time faults name the machine location and mnemonic instead:

    fault at 0012 (DVD): division by zero
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class BbcxError(Exception):
    """
    Base exception for all BBC-X toolchain errors.

        try:
            assembler.assemble_file("program.bbc")
        except BbcxError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(BbcxError):
    """
    Base exception for all source-level errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    @property
    def line(self) -> Optional[int]:
        """Source line number, when known."""
        return self.location.line if self.location else None

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            sum.bbc:4:17: error: undefined label 'RESLT'
                    PUT 1, RESLT
                           ^
            hint: did you mean 'RESULT'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class ParseError(AssemblerError):
    """
    A source line could not be parsed.

    Raised by the dialect parsers for a single line. When a whole file
    is parsed, every line's ParseError is collected before reporting so
    that one pass over the file shows all syntax problems.

    Examples:
        - Unknown mnemonic
        - Accumulator not followed by ','
        - S-word longer than four characters
        - Unterminated string literal
    """

    @property
    def reason(self) -> str:
        return self.message


class AssemblyErrorKind(Enum):
    """Classification of semantic errors found by the assembler."""
    UNDEFINED_LABEL = auto()
    DUPLICATE_LABEL = auto()
    DUPLICATE_LOCATION = auto()
    FIELD_OVERFLOW = auto()


class AssemblyError(AssemblerError):
    """
    Semantic error found while assigning locations or encoding words.

    Attributes:
        kind: Which class of assembly error this is
    """

    def __init__(
        self,
        kind: AssemblyErrorKind,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.kind = kind
        super().__init__(
            message,
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UndefinedLabelError(AssemblyError):
    """
    Reference to a label that no line defines.

    Raised during the second pass. The assembler suggests similarly
    named labels to help catch typos.
    """

    def __init__(
        self,
        label: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar_labels: Optional[list[str]] = None,
    ):
        self.label = label
        self.similar_labels = similar_labels or []

        hint = None
        if self.similar_labels:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_labels[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            AssemblyErrorKind.UNDEFINED_LABEL,
            f"undefined label '{label}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateLabelError(AssemblyError):
    """Label defined on more than one line."""

    def __init__(
        self,
        label: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.label = label
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{label}' was first defined at {original_location}"

        super().__init__(
            AssemblyErrorKind.DUPLICATE_LABEL,
            f"duplicate label '{label}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateLocationError(AssemblyError):
    """Two source lines are assigned the same memory location."""

    def __init__(
        self,
        address: int,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.address = address
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"location {address:04} was first used at {original_location}"

        super().__init__(
            AssemblyErrorKind.DUPLICATE_LOCATION,
            f"location {address:04} used more than once",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class FieldOverflowError(AssemblyError):
    """
    An encoded field lies outside its declared range.

    Fields are never truncated or wrapped to make them fit. Typical
    causes are an accumulator above 7, an index register outside 1..7
    or an address beyond the last page.
    """

    def __init__(
        self,
        field: str,
        value: int,
        low: int,
        high: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.field = field
        self.value = value
        self.low = low
        self.high = high
        super().__init__(
            AssemblyErrorKind.FIELD_OVERFLOW,
            f"{field} {value} out of range",
            location=location,
            hint=f"{field} must be in {low}..{high}",
            source_line=source_line,
        )


class AssemblyFailed(AssemblerError):
    """
    Assembly of one file failed.

    Carries every ParseError and AssemblyError collected for the file,
    so callers can report them together. When the failure happened
    while parsing, ``parsed`` holds the per-line parse results,
    including the successfully parsed lines.
    """

    def __init__(self, errors: list[AssemblerError], parsed=None):
        self.errors = list(errors)
        self.parsed = parsed
        collector = ErrorCollector(max_errors=len(self.errors) + 1)
        for error in self.errors:
            collector.add(error)
        count = len(self.errors)
        noun = "error" if count == 1 else "errors"
        super().__init__(f"assembly failed with {count} {noun}:\n\n{collector.report()}")


class TooManyErrors(AssemblerError):
    """Raised when the error limit has been reached."""

    def __init__(self, message: str = "Too many errors"):
        super().__init__(message)


# =============================================================================
# Word, Character and Memory Exceptions
# =============================================================================

class EncodingError(BbcxError):
    """
    A word was interpreted under the wrong WordType.

    Decoding a data word as an instruction (or unpacking characters
    from an instruction word) is always an error, never a silent
    reinterpretation of the bits.
    """

    def __init__(self, expected: str, actual: str, message: str = ""):
        self.expected = expected
        self.actual = actual
        if not message:
            message = f"word type mismatch: expected {expected}, found {actual}"
        super().__init__(message)


class WordOverflowError(BbcxError):
    """A value cannot be represented in a 24-bit word."""

    def __init__(self, value, message: str = ""):
        self.value = value
        if not message:
            message = f"value {value} does not fit in a word"
        super().__init__(message)


class CharSetError(BbcxError):
    """
    A character has no native code (or a code has no character).

    Attributes:
        character: The offending character, or None for an unmapped code
        position: Zero-based position of the character in its text
        code: The unmapped 6-bit code when decoding
    """

    def __init__(self, character: Optional[str], position: int, code: Optional[int] = None):
        self.character = character
        self.position = position
        self.code = code
        if character is not None:
            message = f"character {character!r} at position {position} is not in the character set"
        else:
            message = f"code {code:02o} at position {position} has no character"
        super().__init__(message)


class MemoryAccessError(BbcxError):
    """A location outside the allocated memory was addressed."""

    def __init__(self, address: int, size: int, message: str = ""):
        self.address = address
        self.size = size
        if not message:
            message = f"location {address} outside memory (0..{size - 1})"
        super().__init__(message)


# =============================================================================
# Execution Exceptions
# =============================================================================

class FaultKind(Enum):
    """Reason a run moved to the Faulted state."""
    INVALID_ADDRESS = auto()        # out of bounds, or executing data
    DIVISION_BY_ZERO = auto()
    UNKNOWN_MNEMONIC = auto()       # function code with no defined behaviour
    REGISTER_OUT_OF_RANGE = auto()  # result does not fit the register
    WORD_TYPE_MISMATCH = auto()     # arithmetic on a non-numeric word
    INPUT_EXHAUSTED = auto()        # READ with no input left

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")


class ExecutionFault(BbcxError):
    """
    Unrecoverable run-time fault.

    The faulting instruction leaves no partial effect behind, and the
    run cannot be resumed.

    Attributes:
        kind: Fault classification
        location: Program counter of the faulting instruction
        mnemonic: Mnemonic of the faulting instruction (if decoded)
        reason: Human-readable detail
        steps: Instructions completed before the fault
    """

    def __init__(
        self,
        kind: FaultKind,
        location: int,
        mnemonic: Optional[str],
        reason: str,
        steps: int = 0,
    ):
        self.kind = kind
        self.location = location
        self.mnemonic = mnemonic
        self.reason = reason
        self.steps = steps
        where = f"{location:04}"
        if mnemonic:
            where = f"{where} ({mnemonic})"
        super().__init__(f"fault at {where}: {kind}: {reason}")


class ExecutorStateError(BbcxError):
    """The executor was asked to step after the run ended."""
    pass


class DialectError(BbcxError):
    """Unknown dialect, or an operation the dialect does not support."""
    pass


# =============================================================================
# Error Collection for Multiple Error Reporting
# =============================================================================

class ErrorCollector:
    """
    Collects multiple errors for batch reporting.

    Parsing and both assembler passes keep going after an error so that
    one run reports everything wrong with a file.

    Example:
        collector = ErrorCollector(max_errors=100)
        collector.add(UndefinedLabelError("LOOP"))
        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self, max_errors: int = 100):
        """
        Initialize the error collector.

        Args:
            max_errors: Maximum errors to collect before raising TooManyErrors
        """
        self.errors: list[AssemblerError] = []
        self.max_errors = max_errors

    def add(self, error: AssemblerError) -> None:
        """
        Add an error to the collection.

        Raises:
            TooManyErrors: If max_errors has been reached
        """
        self.errors.append(error)
        if len(self.errors) >= self.max_errors:
            raise TooManyErrors(f"Too many errors ({self.max_errors}), stopping")

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def report(self) -> str:
        """Format all errors for display, followed by the error count."""
        lines = []
        for error in self.errors:
            lines.append(str(error))
            lines.append("")

        noun = "error" if len(self.errors) == 1 else "errors"
        lines.append(f"{len(self.errors)} {noun}")
        return "\n".join(lines)
