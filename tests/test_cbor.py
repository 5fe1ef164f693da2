"""
Tests for CBOR byte-string framing and hex normalization.

The header scheme has four size tiers; each boundary is checked on both
sides because an off-by-one here silently corrupts every script.
"""

import pytest
from uplcview.cbor import unwrap_cbor_bytes, wrap_bytes_as_cbor
from uplcview.errors import (
    BinaryDecodeError,
    HexEmptyError,
    HexInvalidCharactersError,
    HexOddLengthError,
)
from uplcview.hexstring import hex_to_bytes, normalize_hex


class TestFramingBoundaries:
    """Header bytes at each tier boundary."""

    def test_empty_payload(self):
        assert wrap_bytes_as_cbor(b"") == bytes([0x40])

    def test_twenty_three_bytes_single_header_byte(self):
        framed = wrap_bytes_as_cbor(b"\xaa" * 23)
        assert framed[0] == 0x57
        assert len(framed) == 24

    def test_twenty_four_bytes_one_byte_length(self):
        framed = wrap_bytes_as_cbor(b"\xaa" * 24)
        assert framed[:2] == bytes([0x58, 0x18])
        assert len(framed) == 26

    def test_two_hundred_fifty_five_bytes(self):
        framed = wrap_bytes_as_cbor(b"\x00" * 255)
        assert framed[:2] == bytes([0x58, 0xFF])

    def test_two_hundred_fifty_six_bytes_two_byte_length(self):
        framed = wrap_bytes_as_cbor(b"\x00" * 256)
        assert framed[:3] == bytes([0x59, 0x01, 0x00])
        assert len(framed) == 259

    def test_sixty_five_thousand_five_hundred_thirty_five_bytes(self):
        framed = wrap_bytes_as_cbor(b"\x00" * 65535)
        assert framed[:3] == bytes([0x59, 0xFF, 0xFF])

    def test_sixty_five_thousand_five_hundred_thirty_six_bytes(self):
        framed = wrap_bytes_as_cbor(b"\x00" * 65536)
        assert framed[:5] == bytes([0x5A, 0x00, 0x01, 0x00, 0x00])
        assert len(framed) == 65541

    def test_payload_is_copied_verbatim(self):
        payload = bytes(range(30))
        assert wrap_bytes_as_cbor(payload)[2:] == payload

    def test_accepts_bytearray(self):
        assert wrap_bytes_as_cbor(bytearray(b"\x01\x02")) == bytes([0x42, 0x01, 0x02])


class TestUnwrap:
    """Removing the framing on the decode side."""

    @pytest.mark.parametrize("size", [0, 5, 23, 24, 255, 256, 70000])
    def test_unwrap_inverts_wrap(self, size):
        payload = bytes([0x01]) * size
        assert unwrap_cbor_bytes(wrap_bytes_as_cbor(payload)) == payload

    def test_double_wrapped_script(self):
        payload = bytes.fromhex("010100481501")
        twice = wrap_bytes_as_cbor(wrap_bytes_as_cbor(payload))
        assert unwrap_cbor_bytes(twice) == payload

    def test_truncated_payload(self):
        with pytest.raises(BinaryDecodeError, match="declares 5 bytes"):
            unwrap_cbor_bytes(bytes([0x45, 0x01]))

    def test_trailing_bytes(self):
        with pytest.raises(BinaryDecodeError, match="unexpected byte"):
            unwrap_cbor_bytes(bytes([0x41, 0x01, 0x02]))

    def test_not_a_byte_string(self):
        with pytest.raises(BinaryDecodeError, match="Expected a CBOR byte string"):
            unwrap_cbor_bytes(bytes([0x82, 0x01, 0x02]))

    def test_eight_byte_length_unsupported(self):
        with pytest.raises(BinaryDecodeError, match="8-byte"):
            unwrap_cbor_bytes(bytes([0x5B]) + b"\x00" * 8)

    def test_indefinite_unsupported(self):
        with pytest.raises(BinaryDecodeError, match="Indefinite"):
            unwrap_cbor_bytes(bytes([0x5F, 0x41, 0x00, 0xFF]))

    def test_empty_input(self):
        with pytest.raises(BinaryDecodeError):
            unwrap_cbor_bytes(b"")


class TestHexNormalization:
    """Canonicalizing hex input."""

    def test_prefix_whitespace_and_case(self):
        messy = "  0X4A 01\n01 00\t29 80 04 00 69 02 A1  "
        assert normalize_hex(messy) == "4a010100298004006902a1"

    def test_lower_case_prefix(self):
        assert normalize_hex("0xABcd") == "abcd"

    def test_already_canonical(self):
        assert normalize_hex("00ff") == "00ff"

    @pytest.mark.parametrize("text", ["", "   ", "0x", " 0X \n"])
    def test_empty(self, text):
        with pytest.raises(HexEmptyError):
            normalize_hex(text)

    @pytest.mark.parametrize("text", ["zz", "0x12g4", "12-34", "(program"])
    def test_non_hex(self, text):
        with pytest.raises(HexInvalidCharactersError):
            normalize_hex(text)

    @pytest.mark.parametrize("text", ["abc", "0x1", "1 2 3"])
    def test_odd_length(self, text):
        with pytest.raises(HexOddLengthError):
            normalize_hex(text)

    def test_hex_errors_are_binary_errors(self):
        with pytest.raises(BinaryDecodeError):
            hex_to_bytes("xyz")

    def test_hex_to_bytes(self):
        assert hex_to_bytes("0x 00 FF") == b"\x00\xff"
