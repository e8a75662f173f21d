"""
Tests for words, instruction encoding, addressing and memory state.
"""

import typing
from typing import Union

import pytest

from bbcx_sdk.assembler.opcodes import Mnemonic
from bbcx_sdk.errors import EncodingError, FieldOverflowError, MemoryAccessError, WordOverflowError
from bbcx_sdk.memory import (
    ACCUMULATOR_COUNT,
    MEMORY_SIZE,
    ZERO,
    Accumulator,
    Address,
    DataFormat,
    IndexRegister,
    Instruction,
    Location,
    Page,
    State,
    Word,
    WordType,
    decode,
    encode,
)
from bbcx_sdk.memory.word import INTEGER_MAX, INTEGER_MIN


# =============================================================================
# Words
# =============================================================================

class TestIntegerWords:
    """Tests for 24-bit two's complement integers."""

    def test_positive(self):
        word = Word.integer(42)
        assert word.type is WordType.DATA
        assert word.format is DataFormat.INTEGER
        assert word.bits == 42
        assert word.value == 42

    def test_negative(self):
        """-1 is all ones."""
        assert Word.integer(-1).bits == 0o77777777
        assert Word.integer(-1).value == -1

    def test_limits(self):
        assert Word.integer(INTEGER_MAX).value == INTEGER_MAX
        assert Word.integer(INTEGER_MIN).value == INTEGER_MIN

    def test_overflow(self):
        """Values outside the word are rejected, never wrapped."""
        with pytest.raises(WordOverflowError):
            Word.integer(INTEGER_MAX + 1)
        with pytest.raises(WordOverflowError):
            Word.integer(INTEGER_MIN - 1)

    def test_octal_display(self):
        assert str(Word.integer(8)) == "00000010"


class TestFloatWords:
    """Tests for the native float layout."""

    def test_zero_is_all_zero_bits(self):
        assert Word.float(0.0).bits == 0
        assert Word.float(0.0).value == 0.0

    def test_one(self):
        """1.0 is the bias exponent with an empty fraction."""
        assert Word.float(1.0).bits == 63 << 16

    @pytest.mark.parametrize("value", [2.5, -0.75, 1500.0, 0.125, -3.0])
    def test_exact_values(self, value):
        """Values with short binary fractions survive exactly."""
        assert Word.float(value).value == value

    def test_sign_bit(self):
        assert Word.float(-2.0).bits & (1 << 23)
        assert not Word.float(2.0).bits & (1 << 23)

    def test_precision_is_limited(self):
        """Sixteen fraction bits: 0.1 is approximate but close."""
        assert Word.float(0.1).value == pytest.approx(0.1, rel=1e-4)

    def test_too_large(self):
        with pytest.raises(WordOverflowError):
            Word.float(2.0 ** 70)

    def test_tiny_values_flush_to_zero(self):
        assert Word.float(2.0 ** -70).value == 0.0

    def test_nan_rejected(self):
        with pytest.raises(WordOverflowError):
            Word.float(float("nan"))


class TestWordInterpretation:
    """Tests for reading words under the right type."""

    def test_value_annotation(self):
        """The value type names the builtin float, not the Word.float constructor."""
        assert typing.get_type_hints(Word.value.fget)["return"] == Union[int, float, str]

    def test_number_picks_format(self):
        assert Word.number(3).format is DataFormat.INTEGER
        assert Word.number(3.0).format is DataFormat.FLOAT

    def test_string_word(self):
        word = Word.string("AB")
        assert word.format is DataFormat.STRING
        assert word.value == "AB"

    def test_numeric_value_rejects_strings(self):
        with pytest.raises(EncodingError):
            Word.string("AB").numeric_value()

    def test_instruction_word_has_no_value(self):
        with pytest.raises(EncodingError):
            Word.instruction_bits(0).value

    def test_with_bits_keeps_tag(self):
        word = Word.integer(5).with_bits(0o77777777)
        assert word.format is DataFormat.INTEGER
        assert word.value == -1

    def test_raw_bits_checked(self):
        with pytest.raises(WordOverflowError):
            Word.instruction_bits(1 << 24)

    def test_describe(self):
        assert Word.integer(1).describe() == "integer data"
        assert Word.instruction_bits(0).describe() == "instruction"

    def test_zero_constant(self):
        assert ZERO == Word.integer(0)


# =============================================================================
# Instruction Encoding
# =============================================================================

class TestInstructionEncoding:
    """Tests for the bit-exact instruction layout."""

    def test_simple_instruction(self):
        word = encode(Instruction(Mnemonic.ADD, accumulator=1, offset=12))
        assert word.is_instruction
        assert str(word) == "04100014"

    def test_field_positions(self):
        word = encode(Instruction(
            Mnemonic.EXTRA, accumulator=7, offset=0o1777, page=1,
            index_register=7, indirect=True,
        ))
        assert word.bits == 0o77777777

    def test_index_register_zero_means_none(self):
        """Field value 0 decodes as not indexed."""
        instruction = decode(encode(Instruction(Mnemonic.TAKE, accumulator=2, offset=100)))
        assert instruction.index_register is None

    @pytest.mark.parametrize("indirect", [False, True])
    @pytest.mark.parametrize("index_register", [None, 1, 7])
    @pytest.mark.parametrize("page", [0, 1])
    def test_decode_inverts_encode(self, indirect, index_register, page):
        instruction = Instruction(
            Mnemonic.JUMP, accumulator=3, offset=513, page=page,
            index_register=index_register, indirect=indirect,
        )
        assert decode(encode(instruction)) == instruction

    def test_address_combines_page_and_offset(self):
        assert Instruction(Mnemonic.NIL, offset=5, page=1).address == 1029

    def test_decode_data_word(self):
        """Data is never silently reinterpreted as an instruction."""
        with pytest.raises(EncodingError):
            decode(Word.integer(5))

    @pytest.mark.parametrize("fields,name", [
        ({"accumulator": 8}, "accumulator"),
        ({"index_register": 8}, "index register"),
        ({"index_register": 0}, "index register"),
        ({"page": 2}, "page"),
        ({"offset": 1024}, "offset"),
        ({"offset": -1}, "offset"),
    ])
    def test_field_overflow(self, fields, name):
        """Out-of-range fields raise instead of being truncated."""
        with pytest.raises(FieldOverflowError) as exc_info:
            encode(Instruction(Mnemonic.ADD, **fields))
        assert exc_info.value.field == name

    def test_str(self):
        instruction = Instruction(Mnemonic.ADD, 1, offset=12, index_register=3, indirect=True)
        assert str(instruction) == "ADD 1, *12[3]"


# =============================================================================
# Typed Indices and Effective Addresses
# =============================================================================

@pytest.fixture
def state():
    return State()


class TestTypedIndices:
    """Tests for the value types that name locations."""

    def test_location(self, state):
        assert Location(100).resolve(state) == 100

    def test_accumulator_lives_in_memory(self, state):
        """Accumulator n and location n are the same cell."""
        state.write(Accumulator(3), Word.integer(9))
        assert state.read(3) == Word.integer(9)
        assert state.read(Location(3)).value == 9

    def test_index_register(self, state):
        registers = [0, 40, 0, 0, 0, 0, 0, 0]
        assert IndexRegister(1).resolve(state, registers) == 40

    def test_missing_index_register(self, state):
        with pytest.raises(MemoryAccessError):
            IndexRegister(9).resolve(state, [0] * 8)

    def test_page(self, state):
        assert Page(1).resolve(state) == 1024

    def test_out_of_bounds(self, state):
        with pytest.raises(MemoryAccessError):
            Location(MEMORY_SIZE).resolve(state)


class TestEffectiveAddress:
    """Every combination of paged, indexed and indirect addressing."""

    REGISTERS = [0, 10, 0, 0, 0, 0, 0, 0]

    @pytest.fixture
    def memory(self, state):
        # pointers used by the indirect cases
        state.write(200, Word.integer(300))
        state.write(210, Word.integer(310))
        state.write(1224, Word.integer(400))
        state.write(1234, Word.integer(410))
        return state

    @pytest.mark.parametrize("page,indexed,indirect,expected", [
        (0, False, False, 200),
        (0, True, False, 210),
        (0, False, True, 300),
        (0, True, True, 310),
        (1, False, False, 1224),
        (1, True, False, 1234),
        (1, False, True, 400),
        (1, True, True, 410),
    ])
    def test_combinations(self, memory, page, indexed, indirect, expected):
        address = Address(200, page=page, index_register=1 if indexed else None, indirect=indirect)
        assert address.resolve(memory, self.REGISTERS) == expected

    def test_indirect_through_instruction_word(self, state):
        """An instruction word supplies its own page and offset."""
        state.write(50, encode(Instruction(Mnemonic.NIL, offset=7, page=1)))
        assert Address(50, indirect=True).resolve(state) == 1031

    def test_indirection_is_single_level(self, state):
        """The pointed-to word's indirect flag is not followed."""
        state.write(50, encode(Instruction(Mnemonic.NIL, offset=60, indirect=True)))
        state.write(60, Word.integer(70))
        assert Address(50, indirect=True).resolve(state) == 60

    def test_indirect_through_non_address(self, state):
        state.write(50, Word.float(1.5))
        with pytest.raises(MemoryAccessError):
            Address(50, indirect=True).resolve(state)

    def test_indirect_target_out_of_bounds(self, state):
        state.write(50, Word.integer(MEMORY_SIZE + 5))
        with pytest.raises(MemoryAccessError):
            Address(50, indirect=True).resolve(state)

    def test_index_pushes_past_memory(self, state):
        registers = [0, 100, 0, 0, 0, 0, 0, 0]
        with pytest.raises(MemoryAccessError):
            Address(1000, page=1, index_register=1).resolve(state, registers)

    def test_absolute(self):
        assert Address.absolute(1030) == Address(6, page=1)


# =============================================================================
# State
# =============================================================================

class TestState:
    """Tests for bounded memory."""

    def test_starts_as_integer_zero(self, state):
        assert len(state) == MEMORY_SIZE
        assert all(word == ZERO for word in state)

    def test_write_then_read(self, state):
        state[500] = Word.float(2.5)
        assert state[500].value == 2.5

    def test_bounds(self, state):
        with pytest.raises(MemoryAccessError):
            state.read(-1)
        with pytest.raises(MemoryAccessError):
            state.write(MEMORY_SIZE, ZERO)

    def test_snapshot_is_a_copy(self, state):
        snapshot = state.snapshot()
        state[10] = Word.integer(1)
        assert snapshot[10] == ZERO

    def test_must_hold_accumulators(self):
        with pytest.raises(ValueError):
            State(ACCUMULATOR_COUNT - 1)
