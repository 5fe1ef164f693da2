"""
Conversion pipeline: one opaque input string → canonical program views.

The input is tried as UPLC text first and as CBOR hex second:

    1. TEXT:   grammar parse → version header → pretty/compact text
    2. BINARY: hex normalize → CBOR unwrap → flat decode → pretty/compact

Whichever succeeds is re-encoded (flat, then CBOR framing) so both paths
produce the same ViewResult shape. If both fail, the two failure messages
are combined into one CombinedParseError.

ARCHITECTURAL RULE:
    The two attempts are an explicit two-step pipeline. The text failure is
    captured as a value before the binary attempt runs, and this module is
    the only place where two failures are combined.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from uplcview.backends.printer import render_compact, render_pretty
from uplcview.cbor import unwrap_cbor_bytes, wrap_bytes_as_cbor
from uplcview.detection import Prediction, predict_language
from uplcview.errors import (
    BinaryDecodeError,
    CombinedParseError,
    EmptyInputError,
    ParseError,
    TextParseError,
)
from uplcview.flat import decode_program, encode_program as flat_encode_program
from uplcview.hexstring import hex_to_bytes
from uplcview.model import Encoding, Program, SUMS_OF_PRODUCTS_VERSION, Version
from uplcview.terms import Term, uses_sums_of_products
from uplcview.text_parser import detect_version_from_source, parse_uplc_text


class SourceKind(Enum):
    """Which interpretation of the input succeeded."""
    TEXT = "text"
    BINARY = "binary"


@dataclass(frozen=True)
class TextParseOutput:
    term: Term
    version: Version
    pretty: str
    compact: str


@dataclass(frozen=True)
class CborParseOutput:
    encoding: Encoding
    pretty: str
    compact: str

    @property
    def version(self) -> Version:
        return self.encoding.program.version


@dataclass(frozen=True)
class ViewResult:
    """
    Everything known about a successfully converted input.

    Properties:
        kind: SourceKind.TEXT or SourceKind.BINARY
        program: The normalized Program
        pretty: Multi-line rendering of the body
        compact: Single-line rendering of the body
        encoding: Flat and CBOR-wrapped bytes with their hex forms
        prediction: Guessed source language, if any
    """

    kind: SourceKind
    program: Program
    pretty: str
    compact: str
    encoding: Encoding
    prediction: Optional[Prediction] = None

    @property
    def version_string(self) -> str:
        return str(self.program.version)


def parse_text_source(source: str) -> TextParseOutput:
    """
    Interpret ``source`` as UPLC text.

    Raises:
        TextParseError: On any grammar or version-header failure
    """
    try:
        term = parse_uplc_text(source)
        version = detect_version_from_source(source)
        return TextParseOutput(
            term=term,
            version=version,
            pretty=render_pretty(term).strip(),
            compact=render_compact(term),
        )
    except RecursionError:
        raise TextParseError("The program is nested too deeply to parse.")


def encode_program(term: Term, version: Version) -> Encoding:
    """Build the Program and derive its flat and CBOR-wrapped encodings."""
    program = Program(version, term)
    flat_bytes = flat_encode_program(program)
    cbor_bytes = wrap_bytes_as_cbor(flat_bytes)
    return Encoding(
        program=program,
        flat_bytes=flat_bytes,
        flat_hex=flat_bytes.hex(),
        cbor_bytes=cbor_bytes,
        cbor_hex=cbor_bytes.hex(),
    )


def decode_cbor_bytes(raw: bytes) -> Program:
    """Unwrap CBOR framing and decode the flat program inside."""
    try:
        return decode_program(unwrap_cbor_bytes(raw))
    except RecursionError:
        raise BinaryDecodeError("The program is nested too deeply to decode.")


def parse_cbor_hex(text: str) -> CborParseOutput:
    """
    Interpret ``text`` as a hex string of a CBOR-wrapped flat program.

    Raises:
        BinaryDecodeError: On hex normalization, framing or flat failures
    """
    program = decode_cbor_bytes(hex_to_bytes(text))
    return CborParseOutput(
        encoding=encode_program(program.body, program.version),
        pretty=render_pretty(program.body).strip(),
        compact=render_compact(program.body),
    )


def _warn_on_version_mismatch(program: Program) -> None:
    if program.version.as_tuple() < SUMS_OF_PRODUCTS_VERSION.as_tuple() and uses_sums_of_products(program.body):
        warnings.warn(
            f"Program declares version {program.version} but uses constr/case terms, "
            f"which require {SUMS_OF_PRODUCTS_VERSION} or later.",
            UserWarning,
        )


def convert(source: str, detect: bool = True) -> ViewResult:
    """
    Convert one input string into a ViewResult.

    Args:
        source: UPLC text or CBOR hex; format is auto-detected
        detect: Run the language detector on the result

    Returns:
        ViewResult tagged with the interpretation that succeeded

    Raises:
        EmptyInputError: If ``source`` is blank
        CombinedParseError: If neither interpretation works
    """
    trimmed = source.strip()
    if not trimmed:
        raise EmptyInputError()

    outcome: Union[TextParseOutput, CborParseOutput]
    text_error: Optional[ParseError] = None

    try:
        outcome = parse_text_source(trimmed)
    except TextParseError as error:
        text_error = error

    if text_error is None:
        kind = SourceKind.TEXT
        encoding = encode_program(outcome.term, outcome.version)
    else:
        try:
            outcome = parse_cbor_hex(trimmed)
        except BinaryDecodeError as error:
            raise CombinedParseError(text_error.message, error.message) from error
        kind = SourceKind.BINARY
        encoding = outcome.encoding

    program = encoding.program
    _warn_on_version_mismatch(program)

    prediction = predict_language(program.body, outcome.compact) if detect else None

    return ViewResult(
        kind=kind,
        program=program,
        pretty=outcome.pretty,
        compact=outcome.compact,
        encoding=encoding,
        prediction=prediction,
    )


__all__ = [
    "SourceKind",
    "TextParseOutput",
    "CborParseOutput",
    "ViewResult",
    "parse_text_source",
    "parse_cbor_hex",
    "encode_program",
    "decode_cbor_bytes",
    "convert",
]
