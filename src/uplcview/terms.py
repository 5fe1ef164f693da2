"""
Term Model for Untyped Plutus Core

Every program, whatever surface form it arrived in, is held as a tree of
Term objects. Parsers produce these trees; printers and encoders consume
them; the language detector inspects them.

ARCHITECTURAL RULE:
    Terms are structure only. They do not evaluate, print or encode
    themselves. Those concerns live in their own layers.

Variables are nameless: a Var holds its 1-based de Bruijn index and a
Lambda holds only its body. Names exist only in the text layers.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple


class Term(ABC):
    """
    Base class for all UPLC terms.

    Intentionally empty. Every variant below is an immutable dataclass,
    and a subterm belongs to exactly one parent: no sharing, no cycles.
    """
    pass


@dataclass(frozen=True)
class Var(Term):
    """
    A variable reference by de Bruijn index.

    Index 1 refers to the nearest enclosing Lambda, 2 to the one outside
    that, and so on. Index 0 is never valid.
    """

    index: int


@dataclass(frozen=True)
class Lambda(Term):
    """A function abstraction binding one variable in ``body``."""

    body: Term


@dataclass(frozen=True)
class Apply(Term):
    """
    Applies ``function`` to a single ``argument``.

    Multi-argument applications are left-nested:
        [f a b]  ==  Apply(Apply(f, a), b)
    """

    function: Term
    argument: Term


@dataclass(frozen=True)
class Delay(Term):
    term: Term


@dataclass(frozen=True)
class Force(Term):
    term: Term


class TypeTag(Enum):
    """
    Constant type tags.

    The values are the flat encoding tags. APPLY (7) only appears in the
    encoded tag stream, as the type-application marker for list and pair.
    """

    INTEGER = 0
    BYTESTRING = 1
    STRING = 2
    UNIT = 3
    BOOL = 4
    LIST = 5
    PAIR = 6
    APPLY = 7
    DATA = 8


@dataclass(frozen=True)
class ConstType:
    """
    The type of a constant.

    Properties:
        tag: TypeTag of the outermost type constructor
        args: element types; one for LIST, two for PAIR, none otherwise
    """

    tag: TypeTag
    args: Tuple["ConstType", ...] = ()

    def __str__(self) -> str:
        if self.tag is TypeTag.LIST:
            return f"(list {self.args[0]})"
        if self.tag is TypeTag.PAIR:
            return f"(pair {self.args[0]} {self.args[1]})"
        return self.tag.name.lower()


INTEGER = ConstType(TypeTag.INTEGER)
BYTESTRING = ConstType(TypeTag.BYTESTRING)
STRING = ConstType(TypeTag.STRING)
UNIT = ConstType(TypeTag.UNIT)
BOOL = ConstType(TypeTag.BOOL)
DATA = ConstType(TypeTag.DATA)


def list_of(element: ConstType) -> ConstType:
    return ConstType(TypeTag.LIST, (element,))


def pair_of(first: ConstType, second: ConstType) -> ConstType:
    return ConstType(TypeTag.PAIR, (first, second))


@dataclass(frozen=True)
class Const(Term):
    """
    A typed constant.

    Value representation by type:
        integer     → int
        bytestring  → bytes
        string      → str
        unit        → None
        bool        → bool
        list        → tuple of element values
        pair        → 2-tuple
        data        → PlutusData

    IMPORTANT:
        The value is not checked against the type here.
        Parsers and decoders only ever build well-typed constants.
    """

    type: ConstType
    value: Any


@dataclass(frozen=True)
class Builtin(Term):
    """A reference to a builtin function by name (see BUILTIN_NAMES)."""

    name: str


@dataclass(frozen=True)
class Error(Term):
    """The error/abort marker."""
    pass


@dataclass(frozen=True)
class Constr(Term):
    """
    A constructor value: a tag plus ordered fields.

    Example:
        (constr 0)  ==  Constr(index=0, fields=())
    """

    index: int
    fields: Tuple[Term, ...] = ()


# Constructor indices are 64-bit words on chain.
CONSTR_INDEX_LIMIT = 2 ** 64


@dataclass(frozen=True)
class Case(Term):
    """
    Selects one of ``branches`` by the index of the constructor that
    ``scrutinee`` reduces to.
    """

    scrutinee: Term
    branches: Tuple[Term, ...] = ()


# Position in this tuple is the 7-bit flat tag of the builtin.
BUILTIN_NAMES: Tuple[str, ...] = (
    "addInteger",
    "subtractInteger",
    "multiplyInteger",
    "divideInteger",
    "quotientInteger",
    "remainderInteger",
    "modInteger",
    "equalsInteger",
    "lessThanInteger",
    "lessThanEqualsInteger",
    "appendByteString",
    "consByteString",
    "sliceByteString",
    "lengthOfByteString",
    "indexByteString",
    "equalsByteString",
    "lessThanByteString",
    "lessThanEqualsByteString",
    "sha2_256",
    "sha3_256",
    "blake2b_256",
    "verifyEd25519Signature",
    "appendString",
    "equalsString",
    "encodeUtf8",
    "decodeUtf8",
    "ifThenElse",
    "chooseUnit",
    "trace",
    "fstPair",
    "sndPair",
    "chooseList",
    "mkCons",
    "headList",
    "tailList",
    "nullList",
    "chooseData",
    "constrData",
    "mapData",
    "listData",
    "iData",
    "bData",
    "unConstrData",
    "unMapData",
    "unListData",
    "unIData",
    "unBData",
    "equalsData",
    "mkPairData",
    "mkNilData",
    "mkNilPairData",
    "serialiseData",
    "verifyEcdsaSecp256k1Signature",
    "verifySchnorrSecp256k1Signature",
    "bls12_381_G1_add",
    "bls12_381_G1_neg",
    "bls12_381_G1_scalarMul",
    "bls12_381_G1_equal",
    "bls12_381_G1_hashToGroup",
    "bls12_381_G1_compress",
    "bls12_381_G1_uncompress",
    "bls12_381_G2_add",
    "bls12_381_G2_neg",
    "bls12_381_G2_scalarMul",
    "bls12_381_G2_equal",
    "bls12_381_G2_hashToGroup",
    "bls12_381_G2_compress",
    "bls12_381_G2_uncompress",
    "bls12_381_millerLoop",
    "bls12_381_mulMlResult",
    "bls12_381_finalVerify",
    "keccak_256",
    "blake2b_224",
    "integerToByteString",
    "byteStringToInteger",
    "andByteString",
    "orByteString",
    "xorByteString",
    "complementByteString",
    "readBit",
    "writeBits",
    "replicateByte",
    "shiftByteString",
    "rotateByteString",
    "countSetBits",
    "findFirstSetBit",
    "ripemd_160",
    "expModInteger",
)

BUILTIN_TAGS = {name: tag for tag, name in enumerate(BUILTIN_NAMES)}


def uses_sums_of_products(term: Term) -> bool:
    """True if ``term`` contains any ``constr`` or ``case`` node."""
    stack = [term]
    while stack:
        node = stack.pop()
        if isinstance(node, (Constr, Case)):
            return True
        if isinstance(node, Lambda):
            stack.append(node.body)
        elif isinstance(node, Apply):
            stack.extend((node.function, node.argument))
        elif isinstance(node, (Delay, Force)):
            stack.append(node.term)
    return False


__all__ = [
    "Term",
    "Var",
    "Lambda",
    "Apply",
    "Delay",
    "Force",
    "TypeTag",
    "ConstType",
    "Const",
    "Builtin",
    "Error",
    "Constr",
    "Case",
    "CONSTR_INDEX_LIMIT",
    "INTEGER",
    "BYTESTRING",
    "STRING",
    "UNIT",
    "BOOL",
    "DATA",
    "list_of",
    "pair_of",
    "BUILTIN_NAMES",
    "BUILTIN_TAGS",
    "uses_sums_of_products",
]
