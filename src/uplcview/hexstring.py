"""Hex string validation and conversion for CBOR input."""

import re

from .errors import HexEmptyError, HexInvalidCharactersError, HexOddLengthError


_WHITESPACE_RE = re.compile(r"\s+")
_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


def normalize_hex(text: str) -> str:
    """
    Canonicalize a candidate hex string.

    Removes all whitespace, strips an optional ``0x``/``0X`` prefix and
    lower-cases the rest.

    Raises:
        HexEmptyError: Nothing left after stripping
        HexInvalidCharactersError: A character outside ``[0-9a-fA-F]``
        HexOddLengthError: An odd number of hex digits
    """
    compact = _WHITESPACE_RE.sub("", text.strip())
    if compact[:2] in ("0x", "0X"):
        compact = compact[2:]

    if not compact:
        raise HexEmptyError()
    if not _HEX_RE.match(compact):
        raise HexInvalidCharactersError()
    if len(compact) % 2 != 0:
        raise HexOddLengthError()

    return compact.lower()


def hex_to_bytes(text: str) -> bytes:
    """Normalize ``text`` and convert it to bytes."""
    return bytes.fromhex(normalize_hex(text))


__all__ = ["normalize_hex", "hex_to_bytes"]
