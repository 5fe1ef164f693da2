"""
Flat (bit-packed) serialization of UPLC programs.

Layout of an encoded program:
    version major, minor, patch   (naturals)
    term                          (4-bit tag + payload, recursively)
    padding                       (zero bits, then a single 1 bit that ends
                                   on a byte boundary)

Term tags:
    0 Var      de Bruijn index (natural)
    1 Delay    term
    2 Lambda   term
    3 Apply    term term
    4 Const    type tag list, value
    5 Force    term
    6 Error    -
    7 Builtin  7-bit builtin tag
    8 Constr   tag (natural), term list
    9 Case     term, term list

Naturals are little-endian groups of 7 bits, each written as a byte whose
high bit says whether more groups follow. Integers are zig-zag mapped to
naturals first. Lists are a 1 bit before each element and a 0 bit at the
end. Bytestrings are padded to a byte boundary and then written as chunks
of at most 255 bytes, each prefixed by its length, ended by a 0 length.
"""

from __future__ import annotations

from typing import Callable, List

from .errors import BinaryDecodeError
from .model import Program, Version
from .plutus_data import PlutusData, decode_data, encode_data
from .terms import (
    BUILTIN_NAMES,
    BUILTIN_TAGS,
    CONSTR_INDEX_LIMIT,
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


TERM_TAG_BITS = 4
BUILTIN_TAG_BITS = 7
TYPE_TAG_BITS = 4

TAG_VAR = 0
TAG_DELAY = 1
TAG_LAMBDA = 2
TAG_APPLY = 3
TAG_CONST = 4
TAG_FORCE = 5
TAG_ERROR = 6
TAG_BUILTIN = 7
TAG_CONSTR = 8
TAG_CASE = 9


class BitWriter:
    """Accumulates bits most-significant first."""

    def __init__(self):
        self._bytes = bytearray()
        self._current = 0
        self._used = 0

    def write_bit(self, bit: int) -> None:
        self._current = (self._current << 1) | (bit & 1)
        self._used += 1
        if self._used == 8:
            self._bytes.append(self._current)
            self._current = 0
            self._used = 0

    def write_bits(self, value: int, width: int) -> None:
        for shift in range(width - 1, -1, -1):
            self.write_bit((value >> shift) & 1)

    def write_byte(self, value: int) -> None:
        self.write_bits(value, 8)

    def pad(self) -> None:
        """Write the filler: zeros then a 1 that lands on a byte boundary."""
        while self._used != 7:
            self.write_bit(0)
        self.write_bit(1)

    def getvalue(self) -> bytes:
        if self._used:
            raise ValueError("Flat stream is not byte-aligned; call pad() first.")
        return bytes(self._bytes)


class BitReader:
    """Reads bits most-significant first; every overrun is a decode error."""

    def __init__(self, data: bytes):
        self._data = data
        self._pos = 0

    @property
    def bits_remaining(self) -> int:
        return len(self._data) * 8 - self._pos

    def read_bit(self) -> int:
        if self._pos >= len(self._data) * 8:
            raise BinaryDecodeError("Unexpected end of flat data.")
        byte = self._data[self._pos >> 3]
        bit = (byte >> (7 - (self._pos & 7))) & 1
        self._pos += 1
        return bit

    def read_bits(self, width: int) -> int:
        value = 0
        for _ in range(width):
            value = (value << 1) | self.read_bit()
        return value

    def read_byte(self) -> int:
        return self.read_bits(8)

    def skip_padding(self) -> None:
        while self.read_bit() == 0:
            pass
        if self._pos & 7:
            raise BinaryDecodeError("Malformed flat padding.")


# ---------------------------------------------------------------------------
# Primitive encoders
# ---------------------------------------------------------------------------

def _write_natural(writer: BitWriter, value: int) -> None:
    if value < 0:
        raise ValueError(f"Cannot flat-encode negative natural {value}")
    while True:
        group = value & 0x7F
        value >>= 7
        if value:
            writer.write_byte(0x80 | group)
        else:
            writer.write_byte(group)
            return


def _write_integer(writer: BitWriter, value: int) -> None:
    _write_natural(writer, value * 2 if value >= 0 else -2 * value - 1)


def _write_bytestring(writer: BitWriter, value: bytes) -> None:
    writer.pad()
    for start in range(0, len(value), 255):
        chunk = value[start:start + 255]
        writer.write_byte(len(chunk))
        for byte in chunk:
            writer.write_byte(byte)
    writer.write_byte(0)


def _write_list(writer: BitWriter, items, write_item: Callable) -> None:
    for item in items:
        writer.write_bit(1)
        write_item(writer, item)
    writer.write_bit(0)


def _type_tags(const_type: ConstType) -> List[int]:
    if const_type.tag is TypeTag.LIST:
        return [TypeTag.APPLY.value, TypeTag.LIST.value] + _type_tags(const_type.args[0])
    if const_type.tag is TypeTag.PAIR:
        return (
            [TypeTag.APPLY.value, TypeTag.APPLY.value, TypeTag.PAIR.value]
            + _type_tags(const_type.args[0])
            + _type_tags(const_type.args[1])
        )
    return [const_type.tag.value]


def _write_value(writer: BitWriter, const_type: ConstType, value) -> None:
    tag = const_type.tag
    if tag is TypeTag.INTEGER:
        _write_integer(writer, value)
    elif tag is TypeTag.BYTESTRING:
        _write_bytestring(writer, value)
    elif tag is TypeTag.STRING:
        _write_bytestring(writer, value.encode("utf-8"))
    elif tag is TypeTag.UNIT:
        pass
    elif tag is TypeTag.BOOL:
        writer.write_bit(1 if value else 0)
    elif tag is TypeTag.LIST:
        element = const_type.args[0]
        _write_list(writer, value, lambda w, item: _write_value(w, element, item))
    elif tag is TypeTag.PAIR:
        _write_value(writer, const_type.args[0], value[0])
        _write_value(writer, const_type.args[1], value[1])
    elif tag is TypeTag.DATA:
        _write_bytestring(writer, encode_data(value))
    else:
        raise TypeError(f"Unsupported constant type: {const_type}")


def _write_term(writer: BitWriter, term: Term) -> None:
    if isinstance(term, Var):
        writer.write_bits(TAG_VAR, TERM_TAG_BITS)
        _write_natural(writer, term.index)
    elif isinstance(term, Delay):
        writer.write_bits(TAG_DELAY, TERM_TAG_BITS)
        _write_term(writer, term.term)
    elif isinstance(term, Lambda):
        writer.write_bits(TAG_LAMBDA, TERM_TAG_BITS)
        _write_term(writer, term.body)
    elif isinstance(term, Apply):
        writer.write_bits(TAG_APPLY, TERM_TAG_BITS)
        _write_term(writer, term.function)
        _write_term(writer, term.argument)
    elif isinstance(term, Const):
        writer.write_bits(TAG_CONST, TERM_TAG_BITS)
        _write_list(writer, _type_tags(term.type), lambda w, t: w.write_bits(t, TYPE_TAG_BITS))
        _write_value(writer, term.type, term.value)
    elif isinstance(term, Force):
        writer.write_bits(TAG_FORCE, TERM_TAG_BITS)
        _write_term(writer, term.term)
    elif isinstance(term, Error):
        writer.write_bits(TAG_ERROR, TERM_TAG_BITS)
    elif isinstance(term, Builtin):
        writer.write_bits(TAG_BUILTIN, TERM_TAG_BITS)
        writer.write_bits(BUILTIN_TAGS[term.name], BUILTIN_TAG_BITS)
    elif isinstance(term, Constr):
        writer.write_bits(TAG_CONSTR, TERM_TAG_BITS)
        _write_natural(writer, term.index)
        _write_list(writer, term.fields, _write_term)
    elif isinstance(term, Case):
        writer.write_bits(TAG_CASE, TERM_TAG_BITS)
        _write_term(writer, term.scrutinee)
        _write_list(writer, term.branches, _write_term)
    else:
        raise TypeError(f"Unsupported Term type: {type(term)}")


def encode_program(program: Program) -> bytes:
    """Serialize ``program`` to flat bytes. Deterministic."""
    writer = BitWriter()
    for part in program.version.as_tuple():
        _write_natural(writer, part)
    _write_term(writer, program.body)
    writer.pad()
    return writer.getvalue()


# ---------------------------------------------------------------------------
# Decoders
# ---------------------------------------------------------------------------

def _read_natural(reader: BitReader) -> int:
    value = 0
    shift = 0
    while True:
        byte = reader.read_byte()
        value |= (byte & 0x7F) << shift
        shift += 7
        if not byte & 0x80:
            return value


def _read_integer(reader: BitReader) -> int:
    zigzag = _read_natural(reader)
    return zigzag >> 1 if zigzag % 2 == 0 else -((zigzag + 1) >> 1)


def _read_bytestring(reader: BitReader) -> bytes:
    reader.skip_padding()
    out = bytearray()
    while True:
        length = reader.read_byte()
        if length == 0:
            return bytes(out)
        for _ in range(length):
            out.append(reader.read_byte())


def _read_list(reader: BitReader, read_item: Callable) -> list:
    items = []
    while reader.read_bit():
        items.append(read_item(reader))
    return items


def _parse_type(tags: List[int], pos: int):
    """Build a ConstType from the tag stream; return it and the next position."""
    if pos >= len(tags):
        raise BinaryDecodeError("Truncated constant type in flat data.")
    tag = tags[pos]
    if tag == TypeTag.APPLY.value:
        if pos + 1 < len(tags) and tags[pos + 1] == TypeTag.LIST.value:
            element, pos = _parse_type(tags, pos + 2)
            return ConstType(TypeTag.LIST, (element,)), pos
        if (
            pos + 2 < len(tags)
            and tags[pos + 1] == TypeTag.APPLY.value
            and tags[pos + 2] == TypeTag.PAIR.value
        ):
            first, pos = _parse_type(tags, pos + 3)
            second, pos = _parse_type(tags, pos)
            return ConstType(TypeTag.PAIR, (first, second)), pos
        raise BinaryDecodeError("Unsupported type application in flat data.")
    if tag in (TypeTag.LIST.value, TypeTag.PAIR.value):
        raise BinaryDecodeError("Unapplied type operator in flat data.")
    try:
        return ConstType(TypeTag(tag)), pos + 1
    except ValueError:
        raise BinaryDecodeError(f"Unknown constant type tag {tag} in flat data.")


def _read_type(reader: BitReader) -> ConstType:
    tags = _read_list(reader, lambda r: r.read_bits(TYPE_TAG_BITS))
    const_type, pos = _parse_type(tags, 0)
    if pos != len(tags):
        raise BinaryDecodeError("Unexpected extra type tags in flat data.")
    return const_type


def _read_value(reader: BitReader, const_type: ConstType):
    tag = const_type.tag
    if tag is TypeTag.INTEGER:
        return _read_integer(reader)
    if tag is TypeTag.BYTESTRING:
        return _read_bytestring(reader)
    if tag is TypeTag.STRING:
        raw = _read_bytestring(reader)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            raise BinaryDecodeError("String constant is not valid UTF-8.")
    if tag is TypeTag.UNIT:
        return None
    if tag is TypeTag.BOOL:
        return bool(reader.read_bit())
    if tag is TypeTag.LIST:
        element = const_type.args[0]
        return tuple(_read_list(reader, lambda r: _read_value(r, element)))
    if tag is TypeTag.PAIR:
        first = _read_value(reader, const_type.args[0])
        second = _read_value(reader, const_type.args[1])
        return (first, second)
    data: PlutusData = decode_data(_read_bytestring(reader))
    return data


def _read_term(reader: BitReader, depth: int) -> Term:
    tag = reader.read_bits(TERM_TAG_BITS)
    if tag == TAG_VAR:
        index = _read_natural(reader)
        if index < 1 or index > depth:
            raise BinaryDecodeError(f"Variable index {index} is out of scope.")
        return Var(index)
    if tag == TAG_DELAY:
        return Delay(_read_term(reader, depth))
    if tag == TAG_LAMBDA:
        return Lambda(_read_term(reader, depth + 1))
    if tag == TAG_APPLY:
        function = _read_term(reader, depth)
        return Apply(function, _read_term(reader, depth))
    if tag == TAG_CONST:
        const_type = _read_type(reader)
        return Const(const_type, _read_value(reader, const_type))
    if tag == TAG_FORCE:
        return Force(_read_term(reader, depth))
    if tag == TAG_ERROR:
        return Error()
    if tag == TAG_BUILTIN:
        builtin_tag = reader.read_bits(BUILTIN_TAG_BITS)
        if builtin_tag >= len(BUILTIN_NAMES):
            raise BinaryDecodeError(f"Unknown builtin tag {builtin_tag}.")
        return Builtin(BUILTIN_NAMES[builtin_tag])
    if tag == TAG_CONSTR:
        index = _read_natural(reader)
        if index >= CONSTR_INDEX_LIMIT:
            raise BinaryDecodeError(f"Constructor index {index} does not fit in 64 bits.")
        fields = _read_list(reader, lambda r: _read_term(r, depth))
        return Constr(index, tuple(fields))
    if tag == TAG_CASE:
        scrutinee = _read_term(reader, depth)
        branches = _read_list(reader, lambda r: _read_term(r, depth))
        return Case(scrutinee, tuple(branches))
    raise BinaryDecodeError(f"Unknown term tag {tag}.")


def decode_program(data: bytes) -> Program:
    """
    Deserialize flat bytes into a Program.

    Raises:
        BinaryDecodeError: On unknown tags, out-of-scope variables,
            truncated data, bad padding or trailing bytes
    """
    reader = BitReader(data)
    version = Version(_read_natural(reader), _read_natural(reader), _read_natural(reader))
    body = _read_term(reader, 0)
    reader.skip_padding()
    if reader.bits_remaining:
        raise BinaryDecodeError(
            f"Found {reader.bits_remaining // 8} unexpected byte(s) after the flat program."
        )
    return Program(version, body)


__all__ = ["BitWriter", "BitReader", "encode_program", "decode_program"]
