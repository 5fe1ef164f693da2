"""
Tests for the bundled sample programs.
"""

from uplcview.backends import render_program
from uplcview.detection import Language
from uplcview.examples import (
    PLACEHOLDER_SOURCE,
    build_equality_program,
    build_pluts_program,
    build_traced_program,
)
from uplcview.model import Version
from uplcview.pipeline import SourceKind, convert
from uplcview.terms import Lambda
from uplcview.text_parser import detect_version_from_source, parse_uplc_text


def test_placeholder_is_equality_program():
    program = build_equality_program()
    assert parse_uplc_text(PLACEHOLDER_SOURCE) == program.body
    assert detect_version_from_source(PLACEHOLDER_SOURCE) == program.version


def test_equality_program_version_override():
    assert build_equality_program(Version(1, 0, 0)).version == Version(1, 0, 0)


def test_pluts_program_wrappers():
    body = build_pluts_program(wrappers=4).body
    for _ in range(4):
        assert isinstance(body, Lambda)
        body = body.body
    assert not isinstance(body, Lambda)


def test_pluts_program_through_text():
    result = convert(render_program(build_pluts_program(wrappers=2)))
    assert result.kind is SourceKind.TEXT
    assert result.prediction.language is Language.PLU_TS


def test_traced_program_language():
    result = convert(render_program(build_traced_program("PT3")))
    assert result.prediction.language is Language.PLUTUS_TX
