"""
Tests for serialization and deserialization of uplcview objects.

These tests ensure lossless JSON/YAML round-trip of programs using the
explicit serialization functions in `uplcview.serialization`, and check
the shape of conversion reports.
"""

import json

import yaml
from uplcview.model import Program, Version
from uplcview.pipeline import convert
from uplcview.plutus_data import DataBytes, DataConstr, DataInteger, DataList, DataMap
from uplcview.serialization import (
    data_from_dict,
    data_to_dict,
    program_from_dict,
    program_from_json,
    program_from_yaml,
    program_to_dict,
    program_to_json,
    program_to_yaml,
    result_to_dict,
    result_to_json,
    result_to_yaml,
)
from uplcview.terms import (
    BOOL,
    BYTESTRING,
    DATA,
    INTEGER,
    STRING,
    UNIT,
    Apply,
    Builtin,
    Case,
    Const,
    Constr,
    Delay,
    Error,
    Force,
    Lambda,
    Var,
    list_of,
    pair_of,
)


def build_sample_program() -> Program:
    # Every term variant and every constant type at least once
    datum = DataConstr(1, (
        DataMap(((DataBytes(b"\x00\x01"), DataList((DataInteger(-3),))),)),
    ))
    constants = Constr(0, (
        Const(INTEGER, 2 ** 80),
        Const(BYTESTRING, b"\xca\xfe"),
        Const(STRING, "hello"),
        Const(UNIT, None),
        Const(BOOL, False),
        Const(list_of(pair_of(INTEGER, BYTESTRING)), ((1, b"\x01"),)),
        Const(DATA, datum),
    ))
    body = Lambda(
        Case(
            Apply(Force(Delay(Var(1))), constants),
            (Error(), Builtin("trace")),
        )
    )
    return Program(Version(1, 1, 0), body)


def test_json_roundtrip():
    program = build_sample_program()
    restored = program_from_json(program_to_json(program))
    assert restored == program


def test_yaml_roundtrip():
    program = build_sample_program()
    restored = program_from_yaml(program_to_yaml(program))
    assert restored == program


def test_dict_roundtrip():
    program = build_sample_program()
    before = program_to_dict(program)
    after = program_to_dict(program_from_dict(before))
    assert before == after
    assert before["version"] == "1.1.0"
    assert before["body"]["type"] == "lam"


def test_bytes_written_as_hex():
    d = program_to_dict(Program(Version(1, 0, 0), Const(BYTESTRING, b"\xde\xad")))
    assert d["body"] == {"type": "con", "const_type": "bytestring", "value": "dead"}


def test_data_uses_detailed_schema():
    data = DataConstr(0, (DataInteger(7), DataBytes(b"\x01")))
    assert data_to_dict(data) == {
        "constructor": 0,
        "fields": [{"int": 7}, {"bytes": "01"}],
    }
    assert data_from_dict(data_to_dict(data)) == data


def test_result_report():
    result = convert("(program 1.1.0 (con integer 42))")
    d = result_to_dict(result)
    assert d["kind"] == "text"
    assert d["version"] == "1.1.0"
    assert d["flat_hex"] == "010100481501"
    assert d["cbor_hex"] == "46010100481501"
    assert d["flat_length"] == 6
    assert d["cbor_length"] == 7
    assert d["prediction"] is None
    assert "term" not in d


def test_result_report_with_prediction_and_term():
    result = convert("49010100298005a902a1")
    d = json.loads(result_to_json(result, include_term=True))
    assert d["kind"] == "binary"
    assert d["prediction"]["language"] == "plu-ts"
    assert "detail" in d["prediction"]
    assert d["term"]["type"] == "lam"


def test_result_yaml_loads():
    result = convert("(con string \"KeyError\")")
    d = yaml.safe_load(result_to_yaml(result))
    assert d["prediction"]["language"] == "opshin"
    assert d["prediction"]["total_matches"] == 1
