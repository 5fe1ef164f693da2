"""
CBOR byte-string framing for flat-encoded scripts.

On chain, a script's flat bytes travel inside a CBOR definite-length byte
string. Only that one framing is handled here; Plutus Data values have
their own codec in ``plutus_data``.

Header tiers by payload length L:
    0 ≤ L ≤ 23        0x40 + L
    24 ≤ L ≤ 255      0x58, L (1 byte)
    256 ≤ L ≤ 65535   0x59, L (2 bytes, big-endian)
    L ≥ 65536         0x5a, L (4 bytes, big-endian)

There is no 8-byte (0x5b) tier.
"""

from __future__ import annotations

import struct
from typing import Optional, Tuple

from .errors import BinaryDecodeError


def wrap_bytes_as_cbor(payload: bytes) -> bytes:
    """
    Prefix ``payload`` with a CBOR byte-string header.

    Total over all inputs: every length gets a header, only its width
    changes. Lengths of 2**32 and above keep the 0x5a tier with the length
    truncated to 32 bits.
    """
    length = len(payload)

    if length <= 23:
        header = bytes([0x40 + length])
    elif length <= 0xFF:
        header = bytes([0x58, length])
    elif length <= 0xFFFF:
        header = b"\x59" + struct.pack(">H", length)
    else:
        header = b"\x5a" + struct.pack(">I", length & 0xFFFFFFFF)

    return header + bytes(payload)


def _read_byte_string_header(raw: bytes) -> Optional[Tuple[int, int]]:
    """
    Return ``(header_size, payload_length)`` for a definite byte string,
    or None if ``raw`` does not start with one this module supports.
    """
    if not raw:
        return None
    initial = raw[0]
    if not 0x40 <= initial <= 0x5A:
        return None
    if initial <= 0x57:
        return 1, initial - 0x40
    width = {0x58: 1, 0x59: 2, 0x5A: 4}[initial]
    if len(raw) < 1 + width:
        return None
    return 1 + width, int.from_bytes(raw[1:1 + width], "big")


def _describe_header_problem(raw: bytes) -> str:
    if not raw:
        return "The CBOR input is empty."
    initial = raw[0]
    if initial == 0x5B:
        return "CBOR byte strings with 8-byte lengths are not supported."
    if initial == 0x5F:
        return "Indefinite-length CBOR byte strings are not supported."
    if not 0x40 <= initial <= 0x5A:
        return f"Expected a CBOR byte string, found header byte 0x{initial:02x}."
    return "The CBOR byte-string header is truncated."


def unwrap_cbor_bytes(raw: bytes) -> bytes:
    """
    Strip the CBOR byte-string framing from ``raw``.

    Scripts exported by Cardano tooling are frequently wrapped twice; if
    the payload is itself exactly one byte string, the inner layer is
    removed too.

    Raises:
        BinaryDecodeError: If ``raw`` is not exactly one supported byte string
    """
    header = _read_byte_string_header(raw)
    if header is None:
        raise BinaryDecodeError(_describe_header_problem(raw))

    header_size, length = header
    available = len(raw) - header_size
    if available < length:
        raise BinaryDecodeError(
            f"The CBOR byte string declares {length} bytes but only {available} are present."
        )
    if available > length:
        raise BinaryDecodeError(
            f"Found {available - length} unexpected byte(s) after the CBOR byte string."
        )

    payload = raw[header_size:]
    inner = _read_byte_string_header(payload)
    if inner is not None and inner[0] + inner[1] == len(payload):
        return payload[inner[0]:]
    return payload


__all__ = ["wrap_bytes_as_cbor", "unwrap_cbor_bytes"]
