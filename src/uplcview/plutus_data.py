"""
Plutus Data values and their on-chain CBOR form.

``data`` constants are the only UPLC constants whose flat encoding is not
self-contained: the flat stream carries them as a bytestring holding the
CBOR encoding of the value. This module covers exactly that encoding
(integers, bytestrings, arrays, maps and the constructor tags Plutus uses),
not CBOR in general.

Encoding follows the canonical Plutus layout:
    - Constr 0..6 → tag 121..127, Constr 7..127 → tag 1280..1400,
      anything else → tag 102 over ``[index, fields]``
    - non-empty lists use indefinite-length arrays, empty lists ``0x80``
    - integers outside 64 bits become bignums (tags 2/3)
    - bytestrings longer than 64 bytes are split into 64-byte chunks
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from typing import List, Tuple

from .errors import BinaryDecodeError


class PlutusData(ABC):
    """Base class for Plutus Data nodes. Structure only."""
    pass


@dataclass(frozen=True)
class DataConstr(PlutusData):
    """A constructor application: ``Constr tag [fields]``."""

    tag: int
    fields: Tuple[PlutusData, ...] = ()


@dataclass(frozen=True)
class DataMap(PlutusData):
    """An association list of key/value pairs, order preserved."""

    pairs: Tuple[Tuple[PlutusData, PlutusData], ...] = ()


@dataclass(frozen=True)
class DataList(PlutusData):
    items: Tuple[PlutusData, ...] = ()


@dataclass(frozen=True)
class DataInteger(PlutusData):
    value: int


@dataclass(frozen=True)
class DataBytes(PlutusData):
    value: bytes


_CHUNK_SIZE = 64
_BREAK = 0xFF


def _head(major: int, value: int) -> bytes:
    if value < 24:
        return bytes([(major << 5) | value])
    if value < 0x100:
        return bytes([(major << 5) | 24, value])
    if value < 0x10000:
        return bytes([(major << 5) | 25]) + value.to_bytes(2, "big")
    if value < 0x100000000:
        return bytes([(major << 5) | 26]) + value.to_bytes(4, "big")
    return bytes([(major << 5) | 27]) + value.to_bytes(8, "big")


def _encode_bytes(value: bytes) -> bytes:
    if len(value) <= _CHUNK_SIZE:
        return _head(2, len(value)) + value
    out = bytearray([0x5F])
    for start in range(0, len(value), _CHUNK_SIZE):
        chunk = value[start:start + _CHUNK_SIZE]
        out += _head(2, len(chunk)) + chunk
    out.append(_BREAK)
    return bytes(out)


def _encode_integer(value: int) -> bytes:
    if 0 <= value < 2 ** 64:
        return _head(0, value)
    if -(2 ** 64) <= value < 0:
        return _head(1, -1 - value)
    tag, magnitude = (2, value) if value >= 0 else (3, -1 - value)
    raw = magnitude.to_bytes((magnitude.bit_length() + 7) // 8, "big")
    return _head(6, tag) + _encode_bytes(raw)


def _encode_list(items) -> bytes:
    if not items:
        return bytes([0x80])
    return bytes([0x9F]) + b"".join(encode_data(item) for item in items) + bytes([_BREAK])


def encode_data(data: PlutusData) -> bytes:
    """Encode a Plutus Data value to its canonical CBOR bytes."""
    if isinstance(data, DataConstr):
        if 0 <= data.tag < 7:
            return _head(6, 121 + data.tag) + _encode_list(data.fields)
        if 7 <= data.tag < 128:
            return _head(6, 1280 + data.tag - 7) + _encode_list(data.fields)
        return _head(6, 102) + _head(4, 2) + _encode_integer(data.tag) + _encode_list(data.fields)
    if isinstance(data, DataMap):
        return _head(5, len(data.pairs)) + b"".join(
            encode_data(key) + encode_data(value) for key, value in data.pairs
        )
    if isinstance(data, DataList):
        return _encode_list(data.items)
    if isinstance(data, DataInteger):
        return _encode_integer(data.value)
    if isinstance(data, DataBytes):
        return _encode_bytes(data.value)
    raise TypeError(f"Unsupported PlutusData type: {type(data)}")


class _DataReader:
    """Cursor over a CBOR buffer that only understands Plutus Data."""

    def __init__(self, raw: bytes):
        self.raw = raw
        self.pos = 0

    def _take(self, count: int) -> bytes:
        if self.pos + count > len(self.raw):
            raise BinaryDecodeError("Unexpected end of data while decoding a data constant.")
        chunk = self.raw[self.pos:self.pos + count]
        self.pos += count
        return chunk

    def _peek(self) -> int:
        if self.pos >= len(self.raw):
            raise BinaryDecodeError("Unexpected end of data while decoding a data constant.")
        return self.raw[self.pos]

    def _read_head(self) -> Tuple[int, int | None]:
        """Return ``(major, argument)``; argument is None for indefinite lengths."""
        initial = self._take(1)[0]
        major, info = initial >> 5, initial & 0x1F
        if info < 24:
            return major, info
        if info in (24, 25, 26, 27):
            width = 1 << (info - 24)
            return major, int.from_bytes(self._take(width), "big")
        if info == 31 and major in (2, 4, 5):
            return major, None
        raise BinaryDecodeError(f"Unsupported CBOR header byte 0x{initial:02x} in data constant.")

    def _at_break(self) -> bool:
        if self._peek() == _BREAK:
            self.pos += 1
            return True
        return False

    def _read_bytes_body(self, length: int | None) -> bytes:
        if length is not None:
            return self._take(length)
        out = bytearray()
        while not self._at_break():
            major, chunk_length = self._read_head()
            if major != 2 or chunk_length is None:
                raise BinaryDecodeError("Malformed chunked bytestring in data constant.")
            out += self._take(chunk_length)
        return bytes(out)

    def _read_items(self, length: int | None) -> List[PlutusData]:
        items: List[PlutusData] = []
        if length is None:
            while not self._at_break():
                items.append(self.read())
        else:
            for _ in range(length):
                items.append(self.read())
        return items

    def _read_list_value(self) -> List[PlutusData]:
        major, length = self._read_head()
        if major != 4:
            raise BinaryDecodeError("Expected an array of constructor fields in data constant.")
        return self._read_items(length)

    def read(self) -> PlutusData:
        major, argument = self._read_head()
        if major == 0:
            return DataInteger(argument)
        if major == 1:
            return DataInteger(-1 - argument)
        if major == 2:
            return DataBytes(self._read_bytes_body(argument))
        if major == 4:
            return DataList(tuple(self._read_items(argument)))
        if major == 5:
            pairs = []
            if argument is None:
                while not self._at_break():
                    pairs.append((self.read(), self.read()))
            else:
                for _ in range(argument):
                    pairs.append((self.read(), self.read()))
            return DataMap(tuple(pairs))
        if major == 6:
            return self._read_tagged(argument)
        raise BinaryDecodeError(f"Unsupported CBOR major type {major} in data constant.")

    def _read_tagged(self, tag: int) -> PlutusData:
        if 121 <= tag <= 127:
            return DataConstr(tag - 121, tuple(self._read_list_value()))
        if 1280 <= tag <= 1400:
            return DataConstr(tag - 1280 + 7, tuple(self._read_list_value()))
        if tag == 102:
            major, length = self._read_head()
            if major != 4 or length != 2:
                raise BinaryDecodeError("Tag 102 constructor must wrap a two-element array.")
            index = self.read()
            if not isinstance(index, DataInteger) or index.value < 0:
                raise BinaryDecodeError("Tag 102 constructor index must be a non-negative integer.")
            return DataConstr(index.value, tuple(self._read_list_value()))
        if tag in (2, 3):
            major, length = self._read_head()
            if major != 2:
                raise BinaryDecodeError("Bignum tag must wrap a bytestring.")
            magnitude = int.from_bytes(self._read_bytes_body(length), "big")
            return DataInteger(magnitude if tag == 2 else -1 - magnitude)
        raise BinaryDecodeError(f"Unsupported CBOR tag {tag} in data constant.")


def decode_data(raw: bytes) -> PlutusData:
    """
    Decode CBOR bytes into a Plutus Data value.

    Accepts both definite and indefinite lengths, so non-canonical encodings
    produced by other tools still load.

    Raises:
        BinaryDecodeError: If the bytes are not exactly one Plutus Data value
    """
    reader = _DataReader(raw)
    data = reader.read()
    if reader.pos != len(raw):
        raise BinaryDecodeError(
            f"Data constant has {len(raw) - reader.pos} trailing byte(s)."
        )
    return data


__all__ = [
    "PlutusData",
    "DataConstr",
    "DataMap",
    "DataList",
    "DataInteger",
    "DataBytes",
    "encode_data",
    "decode_data",
]
