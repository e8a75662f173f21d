"""
Tests for the BBC-X line parser and whole-file parsing.
"""

import logging

import pytest

from bbcx_sdk.assembler.ast import (
    DEFAULT_ACCUMULATOR,
    AddressOperand,
    ConstOperand,
    FWord,
    IWord,
    PWord,
    SWord,
)
from bbcx_sdk.assembler.opcodes import LibraryRoutine, Mnemonic
from bbcx_sdk.assembler.parser import parse_line, parse_lines
from bbcx_sdk.errors import AssemblyFailed, ParseError


# =============================================================================
# Line Structure
# =============================================================================

class TestLineStructure:
    """Tests for location, label, word and comment fields."""

    def test_blank_line(self):
        line = parse_line("")
        assert line.word is None
        assert not line.emits_word

    def test_comment_only(self):
        line = parse_line("   ; set up the loop")
        assert line.word is None
        assert line.comment == " set up the loop"

    def test_label_and_word(self):
        line = parse_line("LOOP: ADD 1, X")
        assert line.label == "LOOP"
        assert line.word == PWord(Mnemonic.ADD, 1, AddressOperand("X"))

    def test_label_only(self):
        line = parse_line("DONE:")
        assert line.label == "DONE"
        assert line.word is None

    def test_location(self):
        line = parse_line("12 TAKE 1, X")
        assert line.location == 12
        assert line.word.mnemonic is Mnemonic.TAKE

    def test_number_alone_is_a_word(self):
        """A lone number is an I-word, not a location."""
        line = parse_line("42")
        assert line.location is None
        assert line.word == IWord(42)

    def test_number_then_comment_is_a_word(self):
        line = parse_line("42 ; answer")
        assert line.location is None
        assert line.word == IWord(42)

    def test_location_then_data(self):
        line = parse_line("100 -7")
        assert line.location == 100
        assert line.word == IWord(-7)

    def test_trailing_comment(self):
        line = parse_line("STOP ; done")
        assert line.comment == " done"

    def test_keeps_source_text(self):
        line = parse_line("  ADD 1, X", "prog.bbcx", 4)
        assert line.text == "  ADD 1, X"
        assert line.filename == "prog.bbcx"
        assert line.line_number == 4

    def test_junk_after_word(self):
        with pytest.raises(ParseError, match="after word"):
            parse_line("ADD 1, X junk")

    def test_label_shadowing_mnemonic_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="bbcx_sdk"):
            line = parse_line("ADD: NIL")
        assert line.label == "ADD"
        assert "shadows a mnemonic" in caplog.text


# =============================================================================
# Data Words
# =============================================================================

class TestDataWords:
    """Tests for I-words, F-words and S-words."""

    @pytest.mark.parametrize("text,value", [("42", 42), ("+42", 42), ("-42", -42)])
    def test_integer(self, text, value):
        assert parse_line(text).word == IWord(value)

    @pytest.mark.parametrize("text,value", [
        ("3.25", 3.25),
        (".5", 0.5),
        ("+2.5", 2.5),
        ("-1.5@3", -1500.0),
        ("5@-2", 0.05),
    ])
    def test_float(self, text, value):
        word = parse_line(text).word
        assert isinstance(word, FWord)
        assert word.value == pytest.approx(value)

    def test_string(self):
        assert parse_line('"AB C"').word == SWord("AB C")

    def test_string_too_long(self):
        with pytest.raises(ParseError, match="1 to 4 characters"):
            parse_line('"ABCDE"')

    def test_empty_string(self):
        with pytest.raises(ParseError, match="1 to 4 characters"):
            parse_line('""')

    def test_string_outside_character_set(self):
        with pytest.raises(ParseError, match="not in the character set"):
            parse_line('"ab"')

    def test_unterminated_string(self):
        with pytest.raises(ParseError, match="unterminated string"):
            parse_line('"ABC')

    def test_integer_too_large(self):
        with pytest.raises(ParseError):
            parse_line("99999999")

    def test_detached_sign(self):
        """A sign must touch its number."""
        with pytest.raises(ParseError, match="expected a mnemonic"):
            parse_line("- 5")


# =============================================================================
# P-words
# =============================================================================

class TestProgramWords:
    """Tests for mnemonics, accumulators and operands."""

    def test_default_accumulator(self):
        word = parse_line("ADD X").word
        assert word.accumulator is None
        assert word.effective_accumulator == DEFAULT_ACCUMULATOR

    def test_explicit_accumulator(self):
        assert parse_line("ADD 3, X").word.accumulator == 3

    def test_numeric_address(self):
        assert parse_line("JUMP 1500").word.operand == AddressOperand(1500)

    def test_indirect_indexed(self):
        operand = parse_line("TAKE 2, *TABLE[3]").word.operand
        assert operand == AddressOperand("TABLE", index_register=3, indirect=True)

    def test_operand_column(self):
        operand = parse_line("ADD 1, X").word.operand
        assert operand.column == 8

    @pytest.mark.parametrize("text,value", [
        ("TAKE 1, +5", 5),
        ("TAKE 1, -5", -5),
        ("TAKE 1, +2.5", 2.5),
        ('TAKE 1, "HI"', "HI"),
    ])
    def test_constants(self, text, value):
        assert parse_line(text).word.operand == ConstOperand(value)

    def test_unsigned_float_constant(self):
        with pytest.raises(ParseError, match="need a sign"):
            parse_line("ADD 1, 1.5")

    @pytest.mark.parametrize("mnemonic", ["PUT", "PNEG", "INCR", "DECR", "PSQU", "JUMP", "JEZ", "JZD", "EXTRA"])
    def test_address_only_mnemonics(self, mnemonic):
        with pytest.raises(ParseError, match="needs an address"):
            parse_line(f"{mnemonic} 1, +5")

    @pytest.mark.parametrize("mnemonic", ["ADD", "TNOT", "ADDX", "SKAE", "SHL"])
    def test_value_mnemonics_take_constants(self, mnemonic):
        assert parse_line(f"{mnemonic} 1, +5").word.operand == ConstOperand(5)

    def test_alias(self):
        assert parse_line("MPLY 1, X").word.mnemonic is Mnemonic.MULT
        assert parse_line("SWAP 2,").word.mnemonic is Mnemonic.NILX

    def test_case_insensitive_mnemonic(self):
        assert parse_line("add 1, X").word.mnemonic is Mnemonic.ADD

    def test_library_routine(self):
        word = parse_line("STOP").word
        assert word.mnemonic is Mnemonic.EXTRA
        assert word.routine is LibraryRoutine.STOP
        assert word.operand == AddressOperand(int(LibraryRoutine.STOP))
        assert word.name == "STOP"

    def test_library_routine_accumulator(self):
        word = parse_line("PRINT 2,").word
        assert word.accumulator == 2
        assert word.routine is LibraryRoutine.PRINT

    def test_library_routine_takes_no_operand(self):
        with pytest.raises(ParseError, match="takes no operand"):
            parse_line("SQRT 1, X")

    def test_unknown_mnemonic_suggests(self):
        with pytest.raises(ParseError) as exc_info:
            parse_line("ADDD 1, X")
        assert "unknown mnemonic 'ADDD'" in exc_info.value.message
        assert "ADD" in exc_info.value.hint

    def test_unclosed_index(self):
        with pytest.raises(ParseError, match="expected '\\]'"):
            parse_line("ADD 1, X[3")

    def test_missing_operand_after_star(self):
        with pytest.raises(ParseError, match="expected an address or constant"):
            parse_line("ADD 1, *")

    def test_error_location(self):
        with pytest.raises(ParseError) as exc_info:
            parse_line("ADD 1, ?", "p.bbcx", 3)
        location = exc_info.value.location
        assert (location.filename, location.line, location.column) == ("p.bbcx", 3, 8)

    def test_str(self):
        assert str(parse_line("TAKE 2, *T[3]").word) == "TAKE 2, *T[3]"


# =============================================================================
# Whole Files
# =============================================================================

class TestParseLines:
    """Tests for batch parsing with error collection."""

    SOURCE = "\n".join([
        "START: TAKE 1, +5",
        "       ADDD 1, +3",
        "       PUT 1, RESULT",
        '       "TOOLONG"',
        "       STOP",
    ])

    def test_every_line_has_a_result(self):
        parsed = parse_lines(self.SOURCE, "p.bbcx")
        assert len(parsed.results) == 5
        assert [r.ok for r in parsed.results] == [True, False, True, False, True]

    def test_all_errors_collected(self):
        parsed = parse_lines(self.SOURCE, "p.bbcx")
        assert len(parsed.errors) == 2
        assert [e.location.line for e in parsed.errors] == [2, 4]

    def test_good_lines_kept(self):
        parsed = parse_lines(self.SOURCE)
        assert [line.line_number for line in parsed.lines] == [1, 3, 5]

    def test_raise_for_errors(self):
        parsed = parse_lines(self.SOURCE)
        with pytest.raises(AssemblyFailed) as exc_info:
            parsed.raise_for_errors()
        assert len(exc_info.value.errors) == 2
        assert exc_info.value.parsed is parsed

    def test_clean_file(self):
        parsed = parse_lines("NIL\nSTOP\n")
        assert parsed.ok
        parsed.raise_for_errors()
