"""
Source Line Lexer
=================

Both dialects are strictly line oriented, so the lexer works on one
line at a time and never looks beyond it. It converts the text of a
line into tokens that the dialect parsers consume.

Token Types
-----------
- IDENTIFIER: Mnemonics and labels (letters, then letters or digits)
- NUMBER: Unsigned decimal integer
- FLOAT: Unsigned decimal with a fraction and/or an @ exponent
- STRING: Quoted character literal ("TEXT" or <TEXT> depending on dialect)
- OCTAL: Typed octal word such as (I00000017) (legacy dialect only)
- COMMENT: ';' to end of line (executable dialect only)
- Punctuation: + - * , : [ ]
- UNKNOWN: A character no rule accepts
- BAD_STRING: A string literal with no closing quote
- EOF: End of line

The lexer never raises. Characters it cannot place become UNKNOWN or
BAD_STRING tokens, and the parser turns them into a ParseError with a
precise column. This lets the legacy dialect keep free text after a
word as its comment.

Float Forms
-----------
| Form     | Value  |
|----------|--------|
| 3.25     | 3.25   |
| .5       | 0.5    |
| 1.5@3    | 1500.0 |
| 5@-2     | 0.05   |

Example
-------
>>> from bbcx_sdk.assembler.lexer import Lexer
>>> [t.type.name for t in Lexer("LOOP: ADD 1, +5").tokenize()]
['IDENTIFIER', 'COLON', 'IDENTIFIER', 'NUMBER', 'COMMA', 'PLUS', 'NUMBER', 'EOF']
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional, Union

from bbcx_sdk.errors import SourceLocation


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Categories of lexical element on a source line."""

    EOF = auto()

    # Values
    IDENTIFIER = auto()
    NUMBER = auto()
    FLOAT = auto()
    STRING = auto()
    OCTAL = auto()
    COMMENT = auto()

    # Punctuation
    PLUS = auto()       # +
    MINUS = auto()      # -
    STAR = auto()       # * (indirect)
    COMMA = auto()      # , (ends the accumulator)
    COLON = auto()      # : (ends a label, or starts a legacy index)
    LBRACKET = auto()   # [
    RBRACKET = auto()   # ]

    # Problems reported by the parser
    UNKNOWN = auto()
    BAD_STRING = auto()


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    One token from a source line.

    Attributes:
        type: The TokenType classification
        value: Identifier text, number, string contents or octal (type, bits)
        text: Exact source text of the token
        line: Line number (1-indexed)
        column: Column of the first character (1-indexed)
        filename: Source file name
        space_before: True if whitespace separates this token from the previous one
    """
    type: TokenType
    value: Union[str, int, float, tuple, None]
    text: str
    line: int
    column: int
    filename: str = "<input>"
    space_before: bool = False

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)


# =============================================================================
# Dialect Rules
# =============================================================================

@dataclass(frozen=True)
class LexerRules:
    """
    Dialect-specific lexical conventions.

    Attributes:
        open_quote: Character that opens a string literal
        close_quote: Character that closes it
        comment_marker: Character starting a comment, None if the dialect has none
        octal_words: Recognise (S|P|F|I dddddddd) octal words
    """
    open_quote: str
    close_quote: str
    comment_marker: Optional[str]
    octal_words: bool


BBCX_RULES = LexerRules(open_quote='"', close_quote='"', comment_marker=";", octal_words=False)
BBC3_RULES = LexerRules(open_quote="<", close_quote=">", comment_marker=None, octal_words=True)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes a single source line.

    Usage:
        lexer = Lexer(text, filename, line_number)
        tokens = list(lexer.tokenize())

    The token stream always ends with EOF.
    """

    SINGLE_CHAR_TOKENS = {
        "+": TokenType.PLUS,
        "-": TokenType.MINUS,
        "*": TokenType.STAR,
        ",": TokenType.COMMA,
        ":": TokenType.COLON,
        "[": TokenType.LBRACKET,
        "]": TokenType.RBRACKET,
    }

    OCTAL_TYPES = "SPFI"
    OCTAL_DIGITS = 8

    def __init__(
        self,
        text: str,
        filename: str = "<input>",
        line_number: int = 1,
        rules: LexerRules = BBCX_RULES,
    ):
        if "\n" in text:
            raise ValueError("Lexer works on a single line")
        self.text = text
        self.filename = filename
        self.line_number = line_number
        self.rules = rules
        self._pos = 0
        self._space_before = False

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens for the line.

        Yields:
            Token objects, ending with EOF
        """
        while not self._at_end():
            if self._skip_whitespace():
                continue
            token = self._scan_token()
            self._space_before = False
            yield token
            if token.type is TokenType.COMMENT:
                break
        yield self._make_token(TokenType.EOF, None, self._pos)

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.text)

    def _peek(self, offset: int = 0) -> str:
        """Character at current position + offset, or '' past the end."""
        pos = self._pos + offset
        if pos >= len(self.text):
            return ""
        return self.text[pos]

    def _advance(self) -> str:
        if self._at_end():
            return ""
        char = self.text[self._pos]
        self._pos += 1
        return char

    def _match(self, expected: str) -> bool:
        if self._peek() == expected:
            self._advance()
            return True
        return False

    def _skip_whitespace(self) -> bool:
        skipped = False
        # '' in " \t" is True, so check for a character first
        while self._peek() and self._peek() in " \t":
            self._advance()
            skipped = True
        if skipped:
            self._space_before = True
        return skipped

    def _make_token(self, token_type: TokenType, value, start: int) -> Token:
        return Token(
            type=token_type,
            value=value,
            text=self.text[start:self._pos],
            line=self.line_number,
            column=start + 1,
            filename=self.filename,
            space_before=self._space_before,
        )

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        start = self._pos
        char = self._peek()

        if self.rules.comment_marker and char == self.rules.comment_marker:
            self._pos = len(self.text)
            return self._make_token(TokenType.COMMENT, self.text[start + 1:], start)

        if char == self.rules.open_quote:
            return self._scan_string(start)

        if self.rules.octal_words and char == "(":
            token = self._scan_octal(start)
            if token is not None:
                return token

        if char.isdigit() or (char == "." and self._peek(1).isdigit()):
            return self._scan_number(start)

        if char.isalpha() and char.isascii():
            return self._scan_identifier(start)

        if char in self.SINGLE_CHAR_TOKENS:
            self._advance()
            return self._make_token(self.SINGLE_CHAR_TOKENS[char], None, start)

        self._advance()
        return self._make_token(TokenType.UNKNOWN, char, start)

    def _scan_identifier(self, start: int) -> Token:
        while self._peek() and self._peek().isascii() and self._peek().isalnum():
            self._advance()
        return self._make_token(TokenType.IDENTIFIER, self.text[start:self._pos], start)

    def _scan_digits(self, limit: Optional[int] = None) -> str:
        digits = []
        while self._peek().isdigit() and (limit is None or len(digits) < limit):
            digits.append(self._advance())
        return "".join(digits)

    def _scan_number(self, start: int) -> Token:
        """
        Scan an integer or float.

        Forms: ddd, ddd.ddd, .ddd, each optionally followed by an
        exponent @[+-]d or @[+-]dd.
        """
        whole = self._scan_digits()
        fraction = None
        if self._peek() == "." and self._peek(1).isdigit():
            self._advance()
            fraction = self._scan_digits()

        exponent = None
        sign_width = 1 if self._peek(1) in ("+", "-") else 0
        if self._peek() == "@" and self._peek(1 + sign_width).isdigit():
            self._advance()
            sign = self._advance() if sign_width else ""
            exponent = sign + self._scan_digits(limit=2)

        if fraction is None and exponent is None:
            return self._make_token(TokenType.NUMBER, int(whole), start)

        literal = f"{whole or '0'}.{fraction or '0'}"
        if exponent is not None:
            literal = f"{literal}e{exponent}"
        return self._make_token(TokenType.FLOAT, float(literal), start)

    def _scan_string(self, start: int) -> Token:
        self._advance()
        content_start = self._pos
        while not self._at_end() and self._peek() != self.rules.close_quote:
            self._advance()
        if self._at_end():
            return self._make_token(TokenType.BAD_STRING, self.text[content_start:], start)
        content = self.text[content_start:self._pos]
        self._advance()
        return self._make_token(TokenType.STRING, content, start)

    def _scan_octal(self, start: int) -> Optional[Token]:
        """Scan (T dddddddd); returns None, consuming nothing, if the form does not match."""
        width = 2 + self.OCTAL_DIGITS + 1
        candidate = self.text[start:start + width]
        if (
            len(candidate) == width
            and candidate[1] in self.OCTAL_TYPES
            and all(c in "01234567" for c in candidate[2:-1])
            and candidate[-1] == ")"
        ):
            self._pos = start + width
            return self._make_token(TokenType.OCTAL, (candidate[1], int(candidate[2:-1], 8)), start)
        return None


def tokenize_line(
    text: str,
    filename: str = "<input>",
    line_number: int = 1,
    rules: LexerRules = BBCX_RULES,
) -> list[Token]:
    """Tokenize one line into a list ending with EOF."""
    return list(Lexer(text, filename, line_number, rules).tokenize())
