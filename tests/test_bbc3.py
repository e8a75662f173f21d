"""
Tests for the BBC-3 legacy dialect (parse and validate only).
"""

import pytest

from bbcx_sdk.bbc3 import Bbc3Assembler, MnemonicGroup, mnemonic_group, parse_line
from bbcx_sdk.bbc3.ast import (
    AddressOperand,
    ConstOperand,
    FWord,
    IWord,
    LibraryCall,
    LoadN,
    LoadR,
    OctalWord,
    PutType,
    RelativeAddress,
    SimpleAddressOperand,
    SWord,
    TakeType,
)
from bbcx_sdk.bbc3.opcodes import split_accumulator
from bbcx_sdk.errors import AssemblyFailed, DuplicateLocationError, ParseError, UndefinedLabelError


# =============================================================================
# Mnemonics
# =============================================================================

class TestMnemonics:
    """Tests for the legacy mnemonic groups."""

    @pytest.mark.parametrize("name,group", [
        ("ADD", MnemonicGroup.TAKE_TYPE),
        ("SKAE", MnemonicGroup.TAKE_TYPE),
        ("XADD", MnemonicGroup.PUT_TYPE),
        ("PUT", MnemonicGroup.PUT_TYPE),
        ("XPUT", MnemonicGroup.PUT_TYPE),
        ("JUMP", MnemonicGroup.PUT_TYPE),
        ("ARCTAN", MnemonicGroup.LIBRARY),
        ("LDN", MnemonicGroup.LOAD_N),
        ("LDR", MnemonicGroup.LOAD_R),
    ])
    def test_groups(self, name, group):
        assert mnemonic_group(name) is group

    def test_not_a_mnemonic(self):
        assert mnemonic_group("MULT") is None

    def test_split_accumulator(self):
        assert split_accumulator("ADD2") == ("ADD", 2)
        assert split_accumulator("ADD") == ("ADD", None)

    def test_library_names_never_split(self):
        assert split_accumulator("LN2") == ("LN2", None)


# =============================================================================
# Lines
# =============================================================================

class TestLines:
    """Tests for line structure."""

    def test_blank_line(self):
        assert parse_line("") is None
        assert parse_line("    ") is None

    def test_location_required(self):
        with pytest.raises(ParseError, match="expected location"):
            parse_line("ADD X")

    def test_location_needs_whitespace(self):
        with pytest.raises(ParseError):
            parse_line("0001")

    def test_comment_kept_verbatim(self):
        line = parse_line("0001    JUMP    0001    loop, forever!")
        assert line.location == 1
        assert line.comment == "loop, forever!"

    def test_no_comment(self):
        assert parse_line("0001 STOP").comment == ""

    def test_junk_glued_to_word(self):
        with pytest.raises(ParseError, match="after word"):
            parse_line("0001 <AB>X")


# =============================================================================
# Words
# =============================================================================

class TestWords:
    """Tests for every legacy word form."""

    def test_sword(self):
        assert parse_line("0010 <A B>").word == SWord("A B")

    def test_sword_too_long(self):
        with pytest.raises(ParseError, match="1 to 4"):
            parse_line("0010 <ABCDE>")

    def test_sword_character_rules(self):
        with pytest.raises(ParseError, match="not allowed"):
            parse_line("0010 <A,B>")

    def test_integer(self):
        assert parse_line("0010 -42").word == IWord(-42)
        assert parse_line("0010 42").word == IWord(42)

    def test_float(self):
        assert parse_line("0010 +1.5@2").word == FWord(150.0)

    def test_octal_word(self):
        assert parse_line("0010 (F01234567)").word == OctalWord("F", 0o1234567)

    def test_take_type(self):
        word = parse_line("0001 ADD X:3").word
        assert word == TakeType(
            "ADD", None, AddressOperand(SimpleAddressOperand("X"), 3)
        )

    def test_take_type_constant(self):
        assert parse_line("0001 TAKE +5").word == TakeType("TAKE", None, ConstOperand(5))

    def test_accumulator_suffix(self):
        word = parse_line("0001 ADD2 X").word
        assert word.mnemonic == "ADD"
        assert word.accumulator == 2

    def test_separate_accumulator(self):
        word = parse_line("0001 ADD 2 X").word
        assert word.accumulator == 2
        assert word.operand == AddressOperand(SimpleAddressOperand("X"))

    def test_lone_two_is_an_address(self):
        word = parse_line("0001 ADD 2").word
        assert word.accumulator is None
        assert word.operand == AddressOperand(SimpleAddressOperand(2))

    def test_put_type_needs_address(self):
        with pytest.raises(ParseError, match="expected an address"):
            parse_line("0001 PUT +5")

    def test_put_type(self):
        word = parse_line("0001 XPUT *12").word
        assert word == PutType("XPUT", None, AddressOperand(SimpleAddressOperand(12, indirect=True)))

    def test_relative_address(self):
        word = parse_line("0001 JUMP 3+").word
        assert word.operand.operand.address == RelativeAddress(3)

    def test_load_n(self):
        word = parse_line("0001 LDN2 10:1").word
        assert word == LoadN(2, SimpleAddressOperand(10), 1)

    def test_load_n_needs_index(self):
        with pytest.raises(ParseError, match="index"):
            parse_line("0001 LDN 10")

    def test_load_r_constant(self):
        assert parse_line("0001 LDR -3:12").word == LoadR(None, ConstOperand(-3), 12)

    def test_index_digits(self):
        with pytest.raises(ParseError, match="1 or 2 digits"):
            parse_line("0001 LDN 10:123")

    def test_library_call(self):
        assert parse_line("0001 ARCTAN").word == LibraryCall("ARCTAN")

    def test_unknown_mnemonic(self):
        with pytest.raises(ParseError, match="unknown mnemonic 'MULT'"):
            parse_line("0001 MULT X")


# =============================================================================
# Operand Reduction
# =============================================================================

class TestOperandFields:
    """Tests for reducing legacy operands to address fields."""

    def test_numeric(self):
        fields = AddressOperand(SimpleAddressOperand(12, indirect=True), 3).fields()
        assert (fields.address, fields.index_register, fields.indirect) == (12, 3, True)

    def test_relative(self):
        assert AddressOperand(SimpleAddressOperand(RelativeAddress(3))).fields(base=100).address == 103

    def test_label(self):
        assert AddressOperand(SimpleAddressOperand("X")).fields({"X": 40}).address == 40

    def test_undefined_label(self):
        with pytest.raises(UndefinedLabelError):
            AddressOperand(SimpleAddressOperand("X")).fields()


# =============================================================================
# Assembler
# =============================================================================

class TestBbc3Assembler:
    """Tests for location validation."""

    SOURCE = "\n".join([
        "0001    TAKE    +5",
        "0002    PUT     0010",
        "",
        "0003    STOP",
    ])

    def test_location_map(self):
        assembly = Bbc3Assembler().assemble_string(self.SOURCE)
        assert sorted(assembly.code) == [1, 2, 3]
        assert assembly.content(3) == LibraryCall("STOP")
        assert assembly.content(99) is None
        assert len(assembly) == 3

    def test_repeated_locations(self):
        """Every repeat is reported."""
        source = "0001 STOP\n0002 STOP\n0001 STOP\n0002 STOP\n0001 STOP\n"
        with pytest.raises(AssemblyFailed) as exc_info:
            Bbc3Assembler().assemble_string(source)
        errors = exc_info.value.errors
        assert all(isinstance(e, DuplicateLocationError) for e in errors)
        assert [e.address for e in errors] == [1, 2, 1]

    def test_repeated_locations_logged(self, caplog):
        with caplog.at_level("DEBUG", logger="bbcx_sdk"):
            with pytest.raises(AssemblyFailed):
                Bbc3Assembler().assemble_string("0001 STOP\n0002 STOP\n0001 STOP\n0002 STOP\n")
        assert "Same location(s) used multiple times: 1, 2" in caplog.text

    def test_parse_errors_collected(self):
        with pytest.raises(AssemblyFailed) as exc_info:
            Bbc3Assembler().assemble_string("0001 MULT X\nSTOP\n0003 STOP\n")
        assert len(exc_info.value.errors) == 2

    def test_listing(self):
        asm = Bbc3Assembler()
        with pytest.raises(AssemblyFailed):
            asm.assemble_string("0001 STOP\n0002 MULT X\n")
        listing = asm.get_listing()
        assert listing[0].locations == (1,)
        assert "unknown mnemonic" in listing[1].error

    def test_assemble_file(self, tmp_path):
        path = tmp_path / "old.bbc3"
        path.write_text(self.SOURCE)
        assert Bbc3Assembler().assemble_file(path).filename == str(path)
