"""
Core Program Model Objects

Defines the data that flows between the parse, encode and detect layers:
    - Version (the declared language version triple)
    - Program (version + body term)
    - Encoding (the derived flat and CBOR-wrapped byte forms)

ARCHITECTURAL RULE:
    These objects are immutable once built. A Program is created once per
    successful parse and only ever read afterwards; an Encoding is derived
    from a Program and must be byte-identical every time it is regenerated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import VersionInvalidError
from .terms import Term


_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


@dataclass(frozen=True)
class Version:
    """
    A program version triple.

    Textual form is always exactly three dot-separated non-negative
    integers, e.g. ``1.1.0``.
    """

    major: int
    minor: int
    patch: int

    def __post_init__(self):
        for part in (self.major, self.minor, self.patch):
            if isinstance(part, bool) or not isinstance(part, int) or part < 0:
                raise VersionInvalidError()

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def as_tuple(self):
        return (self.major, self.minor, self.patch)

    @classmethod
    def from_string(cls, text: str) -> Version:
        """
        Parse ``M.m.p``.

        Raises:
            VersionInvalidError: If ``text`` is not exactly three integers
        """
        match = _VERSION_RE.match(text.strip())
        if not match:
            raise VersionInvalidError()
        try:
            major, minor, patch = (int(group) for group in match.groups())
        except ValueError:
            raise VersionInvalidError()
        return cls(major, minor, patch)


DEFAULT_VERSION = Version(1, 1, 0)

# constr/case terms only exist from this version on.
SUMS_OF_PRODUCTS_VERSION = Version(1, 1, 0)


@dataclass(frozen=True)
class Program:
    """
    A body term paired with its declared version.

    Properties:
        version: Version triple from the header or the flat stream
        body: Root Term of the program
    """

    version: Version
    body: Term


@dataclass(frozen=True)
class Encoding:
    """
    Derived byte forms of a Program.

    Properties:
        program: The Program these bytes encode
        flat_bytes: Bit-packed flat serialization
        flat_hex: Lower-case hex of ``flat_bytes``
        cbor_bytes: ``flat_bytes`` framed as a CBOR byte string
        cbor_hex: Lower-case hex of ``cbor_bytes``
    """

    program: Program
    flat_bytes: bytes
    flat_hex: str
    cbor_bytes: bytes
    cbor_hex: str

    @property
    def flat_length(self) -> int:
        return len(self.flat_bytes)

    @property
    def cbor_length(self) -> int:
        return len(self.cbor_bytes)


__all__ = [
    "Version",
    "Program",
    "Encoding",
    "DEFAULT_VERSION",
    "SUMS_OF_PRODUCTS_VERSION",
]
