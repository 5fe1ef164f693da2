"""
Tests for the two-path conversion pipeline.
"""

import warnings

import pytest
from uplcview.cbor import wrap_bytes_as_cbor
from uplcview.detection import Language
from uplcview.errors import (
    BinaryDecodeError,
    CombinedParseError,
    EmptyInputError,
    ParseError,
    TextParseError,
)
from uplcview.examples import PLACEHOLDER_SOURCE, build_pluts_program
from uplcview.model import Version
from uplcview.pipeline import (
    SourceKind,
    convert,
    encode_program,
    parse_cbor_hex,
    parse_text_source,
)
from uplcview.terms import INTEGER, Const, Constr


class TestTextPath:
    """Inputs that parse as UPLC text."""

    def test_integer_program(self):
        result = convert("(program 1.1.0 (con integer 42))")
        assert result.kind is SourceKind.TEXT
        assert result.version_string == "1.1.0"
        assert result.compact == "(con integer 42)"
        assert result.encoding.flat_hex == "010100481501"
        assert result.encoding.cbor_hex == "46010100481501"
        assert result.encoding.flat_length == 6
        assert result.encoding.cbor_length == 7

    def test_bare_term_gets_default_version(self):
        result = convert("(con integer 42)")
        assert result.version_string == "1.1.0"

    def test_declared_version_kept(self):
        result = convert("(program 1.0.0 (con integer 42))")
        assert result.program.version == Version(1, 0, 0)
        assert result.encoding.flat_hex.startswith("010000")

    def test_surrounding_whitespace_ignored(self):
        assert convert("\n\t (con integer 42)  \n").compact == "(con integer 42)"

    def test_placeholder(self):
        result = convert(PLACEHOLDER_SOURCE)
        assert result.kind is SourceKind.TEXT
        assert result.prediction is None
        assert "\n" in result.pretty

    def test_text_source_output(self):
        output = parse_text_source("(program 1.0.0 (con integer 1))")
        assert output.term == Const(INTEGER, 1)
        assert output.version == Version(1, 0, 0)
        assert output.pretty == output.compact == "(con integer 1)"


class TestBinaryPath:
    """Inputs that only parse as CBOR hex."""

    def test_integer_program(self):
        result = convert("46010100481501")
        assert result.kind is SourceKind.BINARY
        assert result.compact == "(con integer 42)"
        assert result.version_string == "1.1.0"

    def test_messy_hex(self):
        result = convert("  0x46 01 01\n00 48 15 01 ")
        assert result.encoding.cbor_hex == "46010100481501"

    def test_double_wrapped_is_normalized(self):
        inner = bytes.fromhex("46010100481501")
        result = convert(wrap_bytes_as_cbor(inner).hex())
        assert result.encoding.cbor_hex == "46010100481501"

    def test_pluts_detected(self):
        result = convert("49010100298005a902a1")
        assert result.prediction.language is Language.PLU_TS

    def test_detection_can_be_disabled(self):
        assert convert("49010100298005a902a1", detect=False).prediction is None

    def test_cbor_output(self):
        output = parse_cbor_hex("46010100481501")
        assert output.version == Version(1, 1, 0)
        assert output.encoding.flat_hex == "010100481501"

    def test_cbor_errors_are_binary_errors(self):
        with pytest.raises(BinaryDecodeError):
            parse_cbor_hex("4601")


class TestRoundTrip:
    """Text and binary views of the same program agree."""

    def test_text_then_binary(self):
        text_result = convert(PLACEHOLDER_SOURCE)
        binary_result = convert(text_result.encoding.cbor_hex)
        assert binary_result.program == text_result.program
        assert binary_result.compact == text_result.compact
        assert binary_result.pretty == text_result.pretty
        assert binary_result.encoding == text_result.encoding

    def test_reencoding_is_byte_identical(self):
        program = build_pluts_program()
        first = encode_program(program.body, program.version)
        second = encode_program(program.body, program.version)
        assert first.cbor_bytes == second.cbor_bytes
        assert first.cbor_bytes == wrap_bytes_as_cbor(first.flat_bytes)


class TestFailures:
    """Inputs neither path accepts."""

    @pytest.mark.parametrize("source", ["", "   ", "\n\t"])
    def test_empty(self, source):
        with pytest.raises(EmptyInputError, match="Paste a UPLC program"):
            convert(source)

    def test_combined_message_keeps_both_causes(self):
        with pytest.raises(CombinedParseError) as info:
            convert("(lam x y)")
        error = info.value
        assert "Unbound variable 'y'" in error.text_message
        assert error.binary_message == "The CBOR input contains non-hexadecimal characters."
        assert str(error).startswith("Failed to parse as UPLC text: ")
        assert " Failed to parse as CBOR hex: The CBOR input contains" in str(error)

    def test_odd_hex(self):
        with pytest.raises(CombinedParseError) as info:
            convert("abc")
        assert info.value.binary_message == "Hex strings must contain an even number of characters."

    def test_unreadable_version_is_not_defaulted(self):
        with pytest.raises(CombinedParseError) as info:
            convert("(program abc (con integer 1))")
        assert info.value.text_message == "Unable to read the program version from the input."

    def test_valid_hex_invalid_program(self):
        with pytest.raises(CombinedParseError) as info:
            convert("4100")
        assert "flat" in info.value.binary_message

    def test_surrogate_escape_is_a_parse_error(self):
        with pytest.raises(CombinedParseError) as info:
            convert('(con string "\\ud800")')
        assert "surrogate" in info.value.text_message

    def test_oversized_constr_index_in_cbor(self):
        encoding = encode_program(Constr(2 ** 64), Version(1, 1, 0))
        with pytest.raises(CombinedParseError) as info:
            convert(encoding.cbor_hex)
        assert "64 bits" in info.value.binary_message

    def test_combined_is_parse_error(self):
        with pytest.raises(ParseError):
            convert("not a program")

    def test_deep_nesting_reported(self):
        source = "(delay " * 5000 + "(error)" + ")" * 5000
        with pytest.raises(TextParseError):
            parse_text_source(source)


class TestVersionWarning:
    """constr/case under a version that predates them."""

    def test_warns(self):
        with pytest.warns(UserWarning, match="constr/case"):
            result = convert("(program 1.0.0 (constr 0))")
        assert result.version_string == "1.0.0"

    def test_no_warning_for_current_version(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            convert("(program 1.1.0 (constr 0))")
