"""
BBC-X Line Parser
=================

Parses one line of BBC-X source into a SourceLine. Parsing is strictly
single-line; ``parse_lines`` applies a line parser to a whole file and
collects every line's ParseError instead of stopping at the first.

Line Syntax
-----------
    [location] [LABEL:] [word] [; comment]

    word     ::= PWord | IWord | FWord | SWord
    PWord    ::= MNEMONIC [acc ","] [operand]
    operand  ::= ["*"] (IDENT | NUMBER) ["[" n "]"]      address
               | ("+" | "-") (NUMBER | FLOAT)           constant
               | '"' 1-4 characters '"'                 constant
    IWord    ::= NUMBER | ("+" | "-") NUMBER
    FWord    ::= FLOAT | ("+" | "-") FLOAT
    SWord    ::= '"' 1-4 characters '"'

A number that starts the line and is followed by more words is the
explicit location of the line. When the accumulator is omitted the
word uses accumulator 1.

Example
-------
>>> line = Parser("RESULT: +0").parse_line()
>>> line.label, line.word
('RESULT', IWord(value=0))
"""

import difflib
import logging
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from bbcx_sdk.assembler.ast import (
    AddressOperand,
    ConstOperand,
    FWord,
    IWord,
    Operand,
    PWord,
    SourceLine,
    SourceWord,
    SWord,
)
from bbcx_sdk.assembler.lexer import BBCX_RULES, Lexer, LexerRules, Token, TokenType
from bbcx_sdk.assembler.opcodes import accepts_constant, all_names, lookup_mnemonic
from bbcx_sdk.charset import CHARS_PER_WORD, CharSet
from bbcx_sdk.errors import (
    AssemblyFailed,
    CharSetError,
    ParseError,
    SourceLocation,
    WordOverflowError,
)
from bbcx_sdk.memory.word import Word

logger = logging.getLogger(__name__)

L = TypeVar("L")


# =============================================================================
# Token Cursor
# =============================================================================

class TokenCursor:
    """
    Token navigation shared by the dialect line parsers.

    Subclasses call ``_start`` with the line text, then use the
    _current/_advance/_check/_match/_expect helpers.
    """

    rules: LexerRules = BBCX_RULES

    def __init__(self, text: str, filename: str = "<input>", line_number: int = 1):
        self.text = text.rstrip("\r")
        self.filename = filename
        self.line_number = line_number
        self._tokens: list[Token] = list(
            Lexer(self.text, filename, line_number, self.rules).tokenize()
        )
        self._pos = 0

    def _current(self) -> Token:
        return self._tokens[min(self._pos, len(self._tokens) - 1)]

    def _peek(self, offset: int = 0) -> Token:
        return self._tokens[min(self._pos + offset, len(self._tokens) - 1)]

    def _advance(self) -> Token:
        token = self._current()
        if self._pos < len(self._tokens) - 1:
            self._pos += 1
        return token

    def _check(self, *types: TokenType) -> bool:
        return self._current().type in types

    def _match(self, *types: TokenType) -> Optional[Token]:
        if self._check(*types):
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, message: str) -> Token:
        if not self._check(token_type):
            raise self._error(message)
        return self._advance()

    def _at_end(self) -> bool:
        return self._check(TokenType.EOF)

    def _error(self, message: str, token: Optional[Token] = None, hint: Optional[str] = None) -> ParseError:
        token = token or self._current()
        return ParseError(
            message,
            SourceLocation(self.filename, self.line_number, token.column),
            hint=hint,
            source_line=self.text,
        )

    def _describe(self, token: Token) -> str:
        """Human-readable name of a token for error messages."""
        match token.type:
            case TokenType.EOF:
                return "end of line"
            case TokenType.BAD_STRING:
                return "unterminated string"
            case _:
                return f"'{token.text}'"

    def _unexpected(self, expected: str) -> ParseError:
        token = self._current()
        if token.type is TokenType.BAD_STRING:
            return self._error(f"unterminated string, expected closing '{self.rules.close_quote}'")
        return self._error(f"expected {expected}, found {self._describe(token)}")

    # =========================================================================
    # Shared Literal Rules
    # =========================================================================

    def _signed_number(self) -> Optional[Token]:
        """
        Match '+' or '-' immediately followed by a number.

        Returns the number token with the sign applied to its value,
        or None (consuming nothing) if the form does not match.
        """
        if not self._check(TokenType.PLUS, TokenType.MINUS):
            return None
        number = self._peek(1)
        if number.type not in (TokenType.NUMBER, TokenType.FLOAT) or number.space_before:
            return None
        sign = self._advance()
        self._advance()
        value = -number.value if sign.type is TokenType.MINUS else number.value
        return Token(number.type, value, sign.text + number.text, sign.line, sign.column,
                     sign.filename, sign.space_before)

    def _checked_integer(self, token: Token) -> int:
        try:
            Word.integer(token.value)
        except WordOverflowError as e:
            raise self._error(str(e), token) from e
        return token.value

    def _checked_float(self, token: Token) -> float:
        try:
            Word.float(token.value)
        except WordOverflowError as e:
            raise self._error(str(e), token) from e
        return token.value

    def _checked_string(self, token: Token) -> str:
        """Validate an S-word: one to four characters, all in the character set."""
        text = token.value
        if not 1 <= len(text) <= CHARS_PER_WORD:
            raise self._error(
                f"string must hold 1 to {CHARS_PER_WORD} characters, found {len(text)}",
                token,
            )
        try:
            CharSet.check_text(text)
        except CharSetError as e:
            raise self._error(
                f"character {e.character!r} is not in the character set", token
            ) from e
        return text


# =============================================================================
# BBC-X Parser
# =============================================================================

class Parser(TokenCursor):
    """
    Parses one BBC-X source line.

    Usage:
        line = Parser(text, filename, line_number).parse_line()

    Raises ParseError describing the first problem on the line.
    """

    def parse_line(self) -> SourceLine:
        location = self._parse_location()
        label = self._parse_label()
        word = self._parse_word()

        comment = None
        if self._check(TokenType.COMMENT):
            comment = self._advance().value
        if not self._at_end():
            raise self._error(f"unexpected {self._describe(self._current())} after word")

        return SourceLine(
            line_number=self.line_number,
            text=self.text,
            location=location,
            label=label,
            word=word,
            comment=comment,
            filename=self.filename,
        )

    def _parse_location(self) -> Optional[int]:
        if self._check(TokenType.NUMBER) and self._peek(1).type not in (TokenType.EOF, TokenType.COMMENT):
            if self._peek(1).space_before:
                return self._advance().value
        return None

    def _parse_label(self) -> Optional[str]:
        if self._check(TokenType.IDENTIFIER) and self._peek(1).type is TokenType.COLON:
            label = self._advance().value
            self._advance()
            if lookup_mnemonic(label) is not None:
                logger.warning(f"{self.filename}:{self.line_number}: label '{label}' shadows a mnemonic")
            return label
        return None

    def _parse_word(self) -> Optional[SourceWord]:
        token = self._current()
        match token.type:
            case TokenType.EOF | TokenType.COMMENT:
                return None
            case TokenType.IDENTIFIER:
                return self._parse_pword()
            case TokenType.NUMBER:
                return IWord(self._checked_integer(self._advance()))
            case TokenType.FLOAT:
                return FWord(self._checked_float(self._advance()))
            case TokenType.STRING:
                return SWord(self._checked_string(self._advance()))

        signed = self._signed_number()
        if signed is not None:
            if signed.type is TokenType.FLOAT:
                return FWord(self._checked_float(signed))
            return IWord(self._checked_integer(signed))

        raise self._unexpected("a mnemonic, number or string")

    def _parse_pword(self) -> PWord:
        token = self._advance()
        entry = lookup_mnemonic(token.value)
        if entry is None:
            close = difflib.get_close_matches(token.value.upper(), all_names(), n=3)
            hint = f"did you mean {', '.join(close)}?" if close else None
            raise self._error(f"unknown mnemonic '{token.value}'", token, hint=hint)

        accumulator = None
        if self._check(TokenType.NUMBER) and self._peek(1).type is TokenType.COMMA:
            accumulator = self._advance().value
            self._advance()

        operand = self._parse_operand()

        if entry.routine is not None:
            if operand is not None:
                raise self._error(
                    f"library routine {entry.routine.name} takes no operand",
                    self._tokens[self._pos - 1],
                )
            operand = AddressOperand(int(entry.routine))
        elif isinstance(operand, ConstOperand) and not accepts_constant(entry.mnemonic):
            raise self._error(
                f"{entry.mnemonic.name} needs an address, not a constant",
                hint="only instructions that read their operand as a value take a literal",
            )

        return PWord(entry.mnemonic, accumulator, operand, entry.routine)

    def _parse_operand(self) -> Optional[Operand]:
        if self._check(TokenType.EOF, TokenType.COMMENT):
            return None

        column = self._current().column
        if self._check(TokenType.STRING):
            return ConstOperand(self._checked_string(self._advance()), column)

        signed = self._signed_number()
        if signed is not None:
            if signed.type is TokenType.FLOAT:
                return ConstOperand(self._checked_float(signed), column)
            return ConstOperand(self._checked_integer(signed), column)

        if self._check(TokenType.FLOAT):
            raise self._error("constant operands need a sign", hint="write +1.5 or -1.5")

        indirect = self._match(TokenType.STAR) is not None
        if not self._check(TokenType.IDENTIFIER, TokenType.NUMBER):
            raise self._unexpected("an address or constant")
        address = self._advance().value

        index_register = None
        if self._match(TokenType.LBRACKET):
            index_register = self._expect(TokenType.NUMBER, "expected index register number").value
            self._expect(TokenType.RBRACKET, "expected ']' after index register")

        return AddressOperand(address, index_register, indirect, column)


def parse_line(text: str, filename: str = "<input>", line_number: int = 1) -> SourceLine:
    """Parse a single BBC-X line."""
    return Parser(text, filename, line_number).parse_line()


# =============================================================================
# Whole-File Parsing
# =============================================================================

@dataclass(frozen=True)
class LineResult(Generic[L]):
    """Outcome of parsing one line: exactly one of line and error is set."""
    line_number: int
    text: str
    line: Optional[L] = None
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ParsedProgram(Generic[L]):
    """
    Per-line parse results for a whole file.

    Well-formed lines keep their parsed content even when other lines
    failed, so diagnostics can show both.
    """
    filename: str
    results: tuple[LineResult[L], ...]

    @property
    def lines(self) -> list[L]:
        return [r.line for r in self.results if r.line is not None]

    @property
    def errors(self) -> list[ParseError]:
        return [r.error for r in self.results if r.error is not None]

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        """
        Raises:
            AssemblyFailed: Carrying every ParseError, if there are any
        """
        if not self.ok:
            raise AssemblyFailed(self.errors, parsed=self)


def parse_lines(
    source: str,
    filename: str = "<input>",
    line_parser: Callable[[str, str, int], L] = parse_line,
) -> ParsedProgram[L]:
    """
    Parse every line of a file, collecting errors rather than stopping.

    Args:
        source: Whole file text
        filename: Name used in error locations
        line_parser: Dialect line parser (text, filename, line_number)

    Returns:
        ParsedProgram with one LineResult per source line
    """
    results = []
    for number, text in enumerate(source.splitlines(), start=1):
        try:
            results.append(LineResult(number, text, line=line_parser(text, filename, number)))
        except ParseError as e:
            logger.debug(f"Line {number} failed: {e.message}")
            results.append(LineResult(number, text, error=e))

    program = ParsedProgram(filename, tuple(results))
    logger.debug(
        f"Parsed {len(results)} lines from {filename}, {len(program.errors)} with errors"
    )
    return program
