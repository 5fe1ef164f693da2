"""
Serialization helpers for uplcview objects (Term, Program, ViewResult).

Provides lossless JSON/YAML round-trip of programs via an intermediate dict
representation, and one-way JSON/YAML reports of conversion results.
Bytes are written as lower-case hex strings. Plutus Data uses the detailed
JSON schema familiar from cardano-cli (``constructor``/``fields``, ``map``,
``list``, ``int``, ``bytes``).
"""
from __future__ import annotations

import json
from typing import Any, Dict

import yaml

from uplcview.detection import MarkerEvidence, Prediction, StructuralEvidence
from uplcview.model import Program, Version
from uplcview.pipeline import ViewResult
from uplcview.plutus_data import (
    DataBytes,
    DataConstr,
    DataInteger,
    DataList,
    DataMap,
    PlutusData,
)
from uplcview.terms import (
    Apply,
    Builtin,
    Case,
    Const,
    Constr,
    ConstType,
    Delay,
    Error,
    Force,
    Lambda,
    Term,
    TypeTag,
    Var,
)
from uplcview.text_parser import parse_const_type


def data_to_dict(data: PlutusData) -> Dict[str, Any]:
    if isinstance(data, DataConstr):
        return {"constructor": data.tag, "fields": [data_to_dict(f) for f in data.fields]}
    if isinstance(data, DataMap):
        return {"map": [{"k": data_to_dict(k), "v": data_to_dict(v)} for k, v in data.pairs]}
    if isinstance(data, DataList):
        return {"list": [data_to_dict(item) for item in data.items]}
    if isinstance(data, DataInteger):
        return {"int": data.value}
    if isinstance(data, DataBytes):
        return {"bytes": data.value.hex()}
    raise TypeError(f"Unsupported PlutusData type: {type(data)}")


def data_from_dict(d: Dict[str, Any]) -> PlutusData:
    if "constructor" in d:
        return DataConstr(d["constructor"], tuple(data_from_dict(f) for f in d.get("fields", [])))
    if "map" in d:
        return DataMap(tuple((data_from_dict(p["k"]), data_from_dict(p["v"])) for p in d["map"]))
    if "list" in d:
        return DataList(tuple(data_from_dict(item) for item in d["list"]))
    if "int" in d:
        return DataInteger(d["int"])
    if "bytes" in d:
        return DataBytes(bytes.fromhex(d["bytes"]))
    raise TypeError(f"Unsupported data dict: {sorted(d)}")


def value_to_plain(const_type: ConstType, value: Any) -> Any:
    tag = const_type.tag
    if tag is TypeTag.BYTESTRING:
        return value.hex()
    if tag is TypeTag.LIST:
        return [value_to_plain(const_type.args[0], item) for item in value]
    if tag is TypeTag.PAIR:
        return [value_to_plain(const_type.args[0], value[0]), value_to_plain(const_type.args[1], value[1])]
    if tag is TypeTag.DATA:
        return data_to_dict(value)
    return value


def value_from_plain(const_type: ConstType, plain: Any) -> Any:
    tag = const_type.tag
    if tag is TypeTag.BYTESTRING:
        return bytes.fromhex(plain)
    if tag is TypeTag.LIST:
        return tuple(value_from_plain(const_type.args[0], item) for item in plain)
    if tag is TypeTag.PAIR:
        return (value_from_plain(const_type.args[0], plain[0]), value_from_plain(const_type.args[1], plain[1]))
    if tag is TypeTag.DATA:
        return data_from_dict(plain)
    return plain


def term_to_dict(term: Term) -> Dict[str, Any]:
    if isinstance(term, Var):
        return {"type": "var", "index": term.index}
    if isinstance(term, Lambda):
        return {"type": "lam", "body": term_to_dict(term.body)}
    if isinstance(term, Apply):
        return {
            "type": "apply",
            "function": term_to_dict(term.function),
            "argument": term_to_dict(term.argument),
        }
    if isinstance(term, Delay):
        return {"type": "delay", "term": term_to_dict(term.term)}
    if isinstance(term, Force):
        return {"type": "force", "term": term_to_dict(term.term)}
    if isinstance(term, Const):
        return {
            "type": "con",
            "const_type": str(term.type),
            "value": value_to_plain(term.type, term.value),
        }
    if isinstance(term, Builtin):
        return {"type": "builtin", "name": term.name}
    if isinstance(term, Error):
        return {"type": "error"}
    if isinstance(term, Constr):
        return {"type": "constr", "index": term.index, "fields": [term_to_dict(f) for f in term.fields]}
    if isinstance(term, Case):
        return {
            "type": "case",
            "scrutinee": term_to_dict(term.scrutinee),
            "branches": [term_to_dict(b) for b in term.branches],
        }
    raise TypeError(f"Unsupported Term type: {type(term)}")


def term_from_dict(d: Dict[str, Any]) -> Term:
    t = d.get("type")
    if t == "var":
        return Var(d["index"])
    if t == "lam":
        return Lambda(term_from_dict(d["body"]))
    if t == "apply":
        return Apply(term_from_dict(d["function"]), term_from_dict(d["argument"]))
    if t == "delay":
        return Delay(term_from_dict(d["term"]))
    if t == "force":
        return Force(term_from_dict(d["term"]))
    if t == "con":
        const_type = parse_const_type(d["const_type"])
        return Const(const_type, value_from_plain(const_type, d.get("value")))
    if t == "builtin":
        return Builtin(d["name"])
    if t == "error":
        return Error()
    if t == "constr":
        return Constr(d["index"], tuple(term_from_dict(f) for f in d.get("fields", [])))
    if t == "case":
        return Case(term_from_dict(d["scrutinee"]), tuple(term_from_dict(b) for b in d.get("branches", [])))
    raise TypeError(f"Unsupported term dict type: {t}")


def program_to_dict(p: Program) -> Dict[str, Any]:
    return {"version": str(p.version), "body": term_to_dict(p.body)}


def program_from_dict(d: Dict[str, Any]) -> Program:
    return Program(version=Version.from_string(d["version"]), body=term_from_dict(d["body"]))


def program_to_json(p: Program) -> str:
    return json.dumps(program_to_dict(p), sort_keys=True)


def program_from_json(s: str) -> Program:
    return program_from_dict(json.loads(s))


def program_to_yaml(p: Program) -> str:
    return yaml.safe_dump(program_to_dict(p))


def program_from_yaml(s: str) -> Program:
    return program_from_dict(yaml.safe_load(s))


def prediction_to_dict(prediction: Prediction | None) -> Dict[str, Any] | None:
    if prediction is None:
        return None
    d: Dict[str, Any] = {
        "language": prediction.language.value,
        "evidence": prediction.evidence.describe(),
    }
    if isinstance(prediction.evidence, MarkerEvidence):
        d["markers"] = list(prediction.evidence.markers)
        d["total_matches"] = prediction.evidence.total_matches
    elif isinstance(prediction.evidence, StructuralEvidence):
        d["detail"] = prediction.evidence.detail
    return d


def result_to_dict(r: ViewResult, include_term: bool = False) -> Dict[str, Any]:
    d = {
        "kind": r.kind.value,
        "version": r.version_string,
        "pretty": r.pretty,
        "compact": r.compact,
        "flat_hex": r.encoding.flat_hex,
        "flat_length": r.encoding.flat_length,
        "cbor_hex": r.encoding.cbor_hex,
        "cbor_length": r.encoding.cbor_length,
        "prediction": prediction_to_dict(r.prediction),
    }
    if include_term:
        d["term"] = term_to_dict(r.program.body)
    return d


def result_to_json(r: ViewResult, include_term: bool = False) -> str:
    return json.dumps(result_to_dict(r, include_term), sort_keys=True, indent=2)


def result_to_yaml(r: ViewResult, include_term: bool = False) -> str:
    return yaml.safe_dump(result_to_dict(r, include_term), sort_keys=False)
