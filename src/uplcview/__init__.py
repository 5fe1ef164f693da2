"""
UPLC Viewer Package

Reads Untyped Plutus Core programs from either surface form, plain source
text or hex of the CBOR-wrapped flat encoding, and normalizes both into
one Term tree.

From that tree it produces:
    - canonical pretty and compact text
    - canonical flat and CBOR-wrapped encodings
    - a best-effort guess of the compiler that produced the program

Every operation is a pure function of its input. Module-level tables
(builtins, marker sets, the default version) are never mutated.
"""

__version__ = "0.1.0"
