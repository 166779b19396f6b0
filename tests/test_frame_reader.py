"""Tests for frame parsing, serialization and field decoding."""

import pytest

from tpibridge.exceptions import ChecksumError, FrameTooShortError, ProtocolError
from tpibridge.protocol.constants import ApplicationCommand
from tpibridge.protocol.encoding import decode_bits, decode_decimal_pairs, decode_swapped_uint16
from tpibridge.protocol.frame_reader import (
    DEFAULT_FRAME_READER,
    FrameParseError,
    FrameParseResult,
    FrameReader,
    ParsedFrame,
    decode_frame,
    serialize_frame,
)


class TestFrameReader:
    """Tests for FrameReader class."""

    @pytest.fixture
    def reader(self):
        """Create a FrameReader instance."""
        return FrameReader()

    def test_parse_frame_with_data(self, reader):
        """Test parsing a frame with command data."""
        result, frame = reader.parse("6543D2")

        assert result == FrameParseResult.SUCCESS
        assert isinstance(frame, ParsedFrame)
        assert frame.command == "654"
        assert frame.data == "3"

    def test_parse_frame_without_data(self, reader):
        """Test parsing a command-only frame."""
        result, frame = reader.parse("00090")

        assert result == FrameParseResult.SUCCESS
        assert frame == ParsedFrame("000", "")

    def test_parse_too_short(self, reader):
        """Test that frames under 5 characters are rejected."""
        result, error = reader.parse("00")

        assert result == FrameParseResult.TOO_SHORT
        assert isinstance(error, FrameParseError)
        assert error.message == "Too short"
        assert error.raw_frame == "00"

    def test_parse_invalid_checksum(self, reader):
        """Test that a wrong checksum is reported with the received value."""
        result, error = reader.parse("6543D3")

        assert result == FrameParseResult.INVALID_CHECKSUM
        assert error.message == "Invalid checksum: D3"

    def test_default_reader(self):
        """Test the shared default reader."""
        result, _ = DEFAULT_FRAME_READER.parse("6543D2")
        assert result == FrameParseResult.SUCCESS

    def test_error_to_exception(self, reader):
        """Test conversion of parse errors to exceptions."""
        _, error = reader.parse("6543D3")
        exc = error.to_exception()

        assert isinstance(exc, ChecksumError)
        assert exc.expected == "D2"
        assert exc.received == "D3"
        assert "expected D2" in str(exc)


class TestParsedFrame:
    """Tests for ParsedFrame."""

    def test_unpacking(self):
        """Test that a frame unpacks into command and data."""
        command, data = ParsedFrame("609", "001")
        assert (command, data) == ("609", "001")

    def test_payload(self):
        """Test payload combines command and data."""
        assert ParsedFrame("654", "3").payload == "6543"

    def test_repr(self):
        """Test string representation."""
        assert repr(ParsedFrame("654", "3")) == "ParsedFrame('654', '3')"


class TestDecodeFrame:
    """Tests for the raising decode_frame()."""

    def test_valid(self):
        """Test decoding a valid frame."""
        assert decode_frame("6543D2") == ParsedFrame("654", "3")

    def test_too_short_raises(self):
        """Test that short frames raise FrameTooShortError."""
        with pytest.raises(FrameTooShortError) as exc_info:
            decode_frame("00")
        assert exc_info.value.reason == "Too short"
        assert exc_info.value.raw_frame == "00"

    def test_bad_checksum_raises(self):
        """Test that checksum mismatches raise ChecksumError."""
        with pytest.raises(ChecksumError):
            decode_frame("6543D3")

    def test_frame_errors_are_protocol_errors(self):
        """Test the exception hierarchy."""
        with pytest.raises(ProtocolError):
            decode_frame("1")


class TestSerializeFrame:
    """Tests for serialize_frame()."""

    def test_command_only(self):
        """Test serializing a command without data."""
        assert serialize_frame("000") == "00090\r\n"

    def test_command_with_data(self):
        """Test serializing a command with data."""
        assert serialize_frame("005", "user") == "005user54\r\n"

    def test_enum_command(self):
        """Test that enum members serialize as their code."""
        assert serialize_frame(ApplicationCommand.POLL) == "00090\r\n"

    def test_serialized_frame_decodes(self):
        """Test that a serialized frame parses back to its parts."""
        wire = serialize_frame("040", "11234")
        assert decode_frame(wire.removesuffix("\r\n")) == ParsedFrame("040", "11234")


class TestDecodeBits:
    """Tests for bitfield decoding."""

    def test_all_set(self):
        """Test that FF decodes to eight True values."""
        assert decode_bits("FF") == (True,) * 8

    def test_none_set(self):
        """Test that 00 decodes to eight False values."""
        assert decode_bits("00") == (False,) * 8

    def test_least_significant_bit_first(self):
        """Test bit ordering."""
        assert decode_bits("5A") == (False, True, False, True, True, False, True, False)

    def test_lowercase_accepted(self):
        """Test that lowercase hex is accepted."""
        assert decode_bits("5a") == decode_bits("5A")

    def test_invalid_hex_raises(self):
        """Test that non-hex input raises ProtocolError."""
        with pytest.raises(ProtocolError):
            decode_bits("ZZ")

    @pytest.mark.parametrize("field", ["-1", "+F", "0x40", "4_0", " 1", "1 ", ""])
    def test_integer_literal_syntax_rejected(self, field):
        """Test that only plain hex digits are accepted."""
        with pytest.raises(ProtocolError):
            decode_bits(field)


class TestDecodeSwappedUint16:
    """Tests for byte-swapped timer words."""

    def test_swapped(self):
        """Test that the low byte comes first."""
        assert decode_swapped_uint16("00FF") == 0xFF00
        assert decode_swapped_uint16("DFB1") == 0xB1DF

    def test_wrong_length_raises(self):
        """Test that words must be 4 characters."""
        with pytest.raises(ProtocolError):
            decode_swapped_uint16("FFF")


class TestDecodeDecimalPairs:
    """Tests for two-digit decimal fields."""

    def test_pairs(self):
        """Test splitting into two-digit values."""
        assert decode_decimal_pairs("1645022020", 5) == [16, 45, 2, 20, 20]

    def test_too_short_raises(self):
        """Test that missing digits raise ProtocolError."""
        with pytest.raises(ProtocolError):
            decode_decimal_pairs("1645", 5)

    def test_non_digits_raise(self):
        """Test that non-decimal characters raise ProtocolError."""
        with pytest.raises(ProtocolError):
            decode_decimal_pairs("16X5022020", 5)

    @pytest.mark.parametrize("digits", ["-645022020", "16+5022020", "1_45022020", " 645022020"])
    def test_signs_and_separators_rejected(self, digits):
        """Test that only plain decimal digits are accepted."""
        with pytest.raises(ProtocolError):
            decode_decimal_pairs(digits, 5)
