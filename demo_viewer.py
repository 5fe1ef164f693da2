#!/usr/bin/env python3
"""
Viewer Demo: UPLC text → flat → CBOR hex → UPLC text

Shows the full workflow:
1. Convert the sample program from UPLC text
2. Feed its CBOR hex back in and compare the two views
3. Fingerprint a few sample programs
4. Show how a bad input is reported
"""

from uplcview.backends import render_program
from uplcview.errors import ParseError
from uplcview.examples import PLACEHOLDER_SOURCE, build_pluts_program, build_traced_program
from uplcview.pipeline import convert
from uplcview.serialization import result_to_yaml


def main():
    print("=" * 80)
    print("UPLC VIEWER DEMO: Text → Flat → CBOR → Text")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Text input
    # =========================================================================
    print("\n1. CONVERTING UPLC TEXT...")
    text_result = convert(PLACEHOLDER_SOURCE)
    print(f"   ✓ Version: {text_result.version_string}")
    print(f"   ✓ Flat bytes: {text_result.encoding.flat_length}")
    print(f"   ✓ CBOR hex: {text_result.encoding.cbor_hex}")
    print("\n   Pretty UPLC:")
    for line in text_result.pretty.split("\n"):
        print(f"      {line}")

    # =========================================================================
    # STEP 2: CBOR hex input
    # =========================================================================
    print("\n2. CONVERTING THE CBOR HEX BACK...")
    binary_result = convert(text_result.encoding.cbor_hex)
    print(f"   ✓ Detected input kind: {binary_result.kind.value}")
    print(f"   ✓ Same program: {binary_result.program == text_result.program}")
    print(f"   ✓ Same bytes: {binary_result.encoding.cbor_hex == text_result.encoding.cbor_hex}")

    # =========================================================================
    # STEP 3: Language detection
    # =========================================================================
    print("\n3. DETECTING SOURCE LANGUAGES...")
    samples = {
        "plu-ts entry": build_pluts_program(wrappers=2),
        "aiken trace": build_traced_program("Expected no fields for Constr"),
        "plutus-tx trace": build_traced_program("PT5"),
        "opshin trace": build_traced_program("KeyError"),
    }
    for label, program in samples.items():
        result = convert(render_program(program))
        guess = result.prediction.describe() if result.prediction else "unknown"
        print(f"   {label:16} → {guess}")

    # =========================================================================
    # STEP 4: Errors
    # =========================================================================
    print("\n4. REPORTING A BAD INPUT...")
    try:
        convert("(lam x y)")
    except ParseError as e:
        print(f"   ✗ {e}")

    print("\n" + "=" * 80)
    print("YAML REPORT")
    print("=" * 80)
    print(result_to_yaml(text_result))


if __name__ == "__main__":
    main()
