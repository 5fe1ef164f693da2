"""
Command-line front end.

Usage:
    uplcview '(program 1.1.0 (con integer 42))'
    uplcview --file script.hex --format yaml
    cat script.uplc | uplcview --pretty
"""
from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from uplcview.errors import ParseError
from uplcview.pipeline import SourceKind, ViewResult, convert
from uplcview.serialization import result_to_json, result_to_yaml


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="uplcview",
        description="Format UPLC text or inspect its CBOR-wrapped flat encoding",
    )
    parser.add_argument("source", nargs="?", help="UPLC text or CBOR hex (reads stdin if omitted)")
    parser.add_argument("-f", "--file", help="Read the input from this file")
    parser.add_argument("--pretty", action="store_true", help="Show the multi-line rendering")
    parser.add_argument(
        "--format",
        choices=["text", "json", "yaml"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument("--include-term", action="store_true", help="Add the term tree to json/yaml output")
    parser.add_argument("--no-detect", action="store_true", help="Skip source language detection")
    return parser.parse_args(argv)


def _read_input(args: argparse.Namespace) -> str:
    if args.file:
        with open(args.file, "r", encoding="utf-8") as f:
            return f.read()
    if args.source is not None:
        return args.source
    return sys.stdin.read()


def format_result(result: ViewResult, pretty: bool = False) -> str:
    badge = "UPLC text" if result.kind is SourceKind.TEXT else "CBOR hex"
    lines = [
        f"Source:      {badge}",
        f"Version:     {result.version_string}",
        f"Flat bytes:  {result.encoding.flat_length:,} · CBOR bytes: {result.encoding.cbor_length:,}",
    ]
    if result.prediction is not None:
        lines.append(f"Language:    {result.prediction.describe()}")
    else:
        lines.append("Language:    unknown")
    lines.append("")
    lines.append("Pretty UPLC:" if pretty else "Compact UPLC:")
    lines.append(result.pretty if pretty else result.compact)
    lines.append("")
    lines.append("Flat encoding (hex):")
    lines.append(result.encoding.flat_hex)
    lines.append("")
    lines.append("CBOR-wrapped (hex):")
    lines.append(result.encoding.cbor_hex)
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        source = _read_input(args)
    except OSError as e:
        print(f"Cannot read input: {e}", file=sys.stderr)
        return 1

    try:
        result = convert(source, detect=not args.no_detect)
    except ParseError as e:
        print(str(e), file=sys.stderr)
        return 1

    if args.format == "json":
        print(result_to_json(result, include_term=args.include_term))
    elif args.format == "yaml":
        print(result_to_yaml(result, include_term=args.include_term), end="")
    else:
        print(format_result(result, pretty=args.pretty))
    return 0


if __name__ == "__main__":
    sys.exit(main())
