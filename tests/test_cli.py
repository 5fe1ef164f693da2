"""
Tests for the command-line front end.
"""

import io
import json

import yaml
from uplcview.cli import format_result, main, parse_args
from uplcview.pipeline import convert


def test_defaults():
    args = parse_args(["(con integer 1)"])
    assert args.format == "text"
    assert not args.pretty
    assert not args.no_detect


def test_text_report(capsys):
    assert main(["(program 1.1.0 (con integer 42))"]) == 0
    out = capsys.readouterr().out
    assert "Source:      UPLC text" in out
    assert "Version:     1.1.0" in out
    assert "Flat bytes:  6 · CBOR bytes: 7" in out
    assert "Language:    unknown" in out
    assert "46010100481501" in out


def test_binary_report_names_language(capsys):
    assert main(["49010100298005a902a1"]) == 0
    out = capsys.readouterr().out
    assert "Source:      CBOR hex" in out
    assert "Language:    plu-ts: Matches the Plu-ts" in out


def test_pretty_flag():
    result = convert("(program 1.1.0 (lam a (lam b [(builtin addInteger) a b])))")
    assert "Pretty UPLC:" in format_result(result, pretty=True)
    assert "Compact UPLC:" in format_result(result)


def test_json_output(capsys):
    assert main(["--format", "json", "--include-term", "(con integer 42)"]) == 0
    d = json.loads(capsys.readouterr().out)
    assert d["cbor_hex"] == "46010100481501"
    assert d["term"] == {"type": "con", "const_type": "integer", "value": 42}


def test_yaml_output(capsys):
    assert main(["--format", "yaml", "46010100481501"]) == 0
    d = yaml.safe_load(capsys.readouterr().out)
    assert d["kind"] == "binary"


def test_no_detect(capsys):
    assert main(["--no-detect", "--format", "json", "49010100298005a902a1"]) == 0
    assert json.loads(capsys.readouterr().out)["prediction"] is None


def test_reads_file(tmp_path, capsys):
    path = tmp_path / "script.hex"
    path.write_text("46010100481501\n")
    assert main(["--file", str(path)]) == 0
    assert "(con integer 42)" in capsys.readouterr().out


def test_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("(con integer 42)"))
    assert main([]) == 0
    assert "Source:      UPLC text" in capsys.readouterr().out


def test_parse_failure(capsys):
    assert main(["(lam x y)"]) == 1
    err = capsys.readouterr().err
    assert "Failed to parse as UPLC text:" in err
    assert "Failed to parse as CBOR hex:" in err


def test_empty_input(capsys):
    assert main(["   "]) == 1
    assert "Paste a UPLC program" in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    assert main(["--file", str(tmp_path / "missing.uplc")]) == 1
    assert "Cannot read input" in capsys.readouterr().err
