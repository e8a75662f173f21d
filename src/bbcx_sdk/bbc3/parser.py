"""
BBC-3 Line Parser
=================

Grammar (one line, location required):

    line        ::= location word [space comment]
    location    ::= unsigned integer, then whitespace
    word        ::= "<" 1-4 characters ">"                     S-word
                  | PWord
                  | FWord | IWord                               signed or unsigned
                  | "(" (S|P|F|I) 8 octal digits ")"            octal
    PWord       ::= take-mnemonic [2] general-operand
                  | put-mnemonic [2] address-operand
                  | LDN [2] simple-address ":" index
                  | LDR [2] (constant | simple-address) ":" index
                  | library-mnemonic
    address     ::= ["*"] (IDENT | n | n"+") [":" index]

The accumulator is either omitted or 2, written straight after the
mnemonic (ADD2) or as a separate "2" followed by the operand (ADD 2 X).
Anything after the word and whitespace is comment text, kept verbatim.

Blank lines are allowed and produce no SourceLine.
"""

import logging
from typing import Optional, Union

from bbcx_sdk.assembler.lexer import BBC3_RULES, TokenType
from bbcx_sdk.assembler.parser import TokenCursor
from bbcx_sdk.bbc3.ast import (
    AddressOperand,
    ConstOperand,
    FWord,
    GeneralOperand,
    IWord,
    LibraryCall,
    LoadN,
    LoadR,
    OctalWord,
    PutType,
    RelativeAddress,
    SimpleAddressOperand,
    SourceLine,
    SourceWord,
    SWord,
    TakeType,
)
from bbcx_sdk.bbc3.opcodes import (
    ALTERNATE_ACCUMULATOR,
    MnemonicGroup,
    mnemonic_group,
    split_accumulator,
)

logger = logging.getLogger(__name__)

SWORD_CHARACTERS = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789+-@.<>'*/:)=?^~#; "
)
MAX_SWORD_LENGTH = 4
MAX_INDEX_DIGITS = 2


class Bbc3Parser(TokenCursor):
    """
    Parses one BBC-3 source line.

    Usage:
        line = Bbc3Parser(text, filename, line_number).parse_line()
    """

    rules = BBC3_RULES

    def parse_line(self) -> Optional[SourceLine]:
        if self._at_end():
            return None

        location_token = self._expect(TokenType.NUMBER, "expected location at start of line")
        if self._at_end() or not self._current().space_before:
            raise self._error("expected whitespace then a word after the location")

        word = self._parse_word()

        comment = ""
        if not self._at_end():
            token = self._current()
            if not token.space_before:
                raise self._error(f"unexpected {self._describe(token)} after word")
            comment = self.text[token.column - 1:]

        return SourceLine(
            line_number=self.line_number,
            text=self.text,
            location=location_token.value,
            word=word,
            comment=comment,
            filename=self.filename,
        )

    # =========================================================================
    # Words
    # =========================================================================

    def _parse_word(self) -> SourceWord:
        token = self._current()
        match token.type:
            case TokenType.STRING:
                return SWord(self._sword_text(self._advance()))
            case TokenType.OCTAL:
                designator, bits = self._advance().value
                return OctalWord(designator, bits)
            case TokenType.IDENTIFIER:
                return self._parse_pword()
            case TokenType.NUMBER:
                return IWord(self._checked_integer(self._advance()))
            case TokenType.FLOAT:
                return FWord(self._checked_float(self._advance()))

        signed = self._signed_number()
        if signed is not None:
            if signed.type is TokenType.FLOAT:
                return FWord(self._checked_float(signed))
            return IWord(self._checked_integer(signed))

        raise self._unexpected("a word")

    def _sword_text(self, token) -> str:
        text = token.value
        if not 1 <= len(text) <= MAX_SWORD_LENGTH:
            raise self._error(
                f"string must hold 1 to {MAX_SWORD_LENGTH} characters, found {len(text)}", token
            )
        for char in text:
            if char not in SWORD_CHARACTERS:
                raise self._error(f"character {char!r} is not allowed in a string", token)
        return text

    def _parse_pword(self):
        token = self._advance()
        name, accumulator = split_accumulator(token.value)
        group = mnemonic_group(name)
        if group is None:
            raise self._error(f"unknown mnemonic '{token.value}'", token)

        if group is MnemonicGroup.LIBRARY:
            return LibraryCall(name)

        if accumulator is None:
            accumulator = self._separate_accumulator()

        match group:
            case MnemonicGroup.TAKE_TYPE:
                return TakeType(name, accumulator, self._general_operand())
            case MnemonicGroup.PUT_TYPE:
                return PutType(name, accumulator, self._address_operand())
            case MnemonicGroup.LOAD_N:
                operand = self._simple_address()
                return LoadN(accumulator, operand, self._index())
            case MnemonicGroup.LOAD_R:
                operand = self._constant()
                if operand is None:
                    operand = self._simple_address()
                return LoadR(accumulator, operand, self._index())
        raise self._error(f"unsupported mnemonic '{name}'", token)

    def _separate_accumulator(self) -> Optional[int]:
        """Accept a lone '2' when another operand token follows it."""
        token = self._current()
        following = self._peek(1)
        if (
            token.type is TokenType.NUMBER
            and token.value == ALTERNATE_ACCUMULATOR
            and following.type is not TokenType.EOF
            and following.space_before
        ):
            self._advance()
            return ALTERNATE_ACCUMULATOR
        return None

    # =========================================================================
    # Operands
    # =========================================================================

    def _general_operand(self) -> GeneralOperand:
        constant = self._constant()
        if constant is not None:
            return constant
        return self._address_operand()

    def _constant(self) -> Optional[ConstOperand]:
        if self._check(TokenType.STRING):
            return ConstOperand(self._sword_text(self._advance()))
        if self._check(TokenType.OCTAL):
            designator, bits = self._advance().value
            return ConstOperand(OctalWord(designator, bits))
        signed = self._signed_number()
        if signed is None:
            return None
        if signed.type is TokenType.FLOAT:
            return ConstOperand(self._checked_float(signed))
        return ConstOperand(self._checked_integer(signed))

    def _address_operand(self) -> AddressOperand:
        operand = self._simple_address()
        index = None
        if self._check(TokenType.COLON) and not self._current().space_before:
            index = self._index()
        return AddressOperand(operand, index)

    def _simple_address(self) -> SimpleAddressOperand:
        indirect = self._match(TokenType.STAR) is not None
        token = self._current()
        address: Union[str, int, RelativeAddress]
        if token.type is TokenType.IDENTIFIER:
            address = self._advance().value
        elif token.type is TokenType.NUMBER:
            address = self._advance().value
            if self._check(TokenType.PLUS) and not self._current().space_before:
                self._advance()
                address = RelativeAddress(address)
        else:
            raise self._unexpected("an address")
        return SimpleAddressOperand(address, indirect)

    def _index(self) -> int:
        colon = self._current()
        if colon.type is not TokenType.COLON or colon.space_before:
            raise self._unexpected("':' and an index")
        self._advance()
        token = self._current()
        if token.type is not TokenType.NUMBER or token.space_before or len(token.text) > MAX_INDEX_DIGITS:
            raise self._error(f"index must be 1 or {MAX_INDEX_DIGITS} digits", token)
        return self._advance().value


def parse_line(text: str, filename: str = "<input>", line_number: int = 1) -> Optional[SourceLine]:
    """Parse a single BBC-3 line; None for a blank line."""
    return Bbc3Parser(text, filename, line_number).parse_line()
