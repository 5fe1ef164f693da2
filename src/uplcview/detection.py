"""
Language Detector: best-effort attribution of a UPLC program to the
high-level language that compiled it.

Each compiler leaves fingerprints in the code it emits: error strings,
trace labels, helper shapes. This module looks for them with an ordered
chain of classifiers:

    1. Aiken       marker table
    2. plu-ts      structural check on the term tree
    3. Helios      marker table
    4. Plutus Tx   marker table
    5. OpShin      marker table
    6. Plutarch    marker table

The first classifier that matches wins. When a program carries markers
from several tables, the chain order decides; match counts never do.

IMPORTANT: This is a heuristic. A match is evidence, not proof.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple, Union

from uplcview.terms import INTEGER, Case, Const, Constr, Lambda, Term


MARKER_SAMPLE_LIMIT = 5

_WHITESPACE_RE = re.compile(r"\s+")


class Language(Enum):
    AIKEN = "aiken"
    PLUTARCH = "plutarch"
    OPSHIN = "opshin"
    PLUTUS_TX = "plutus-tx"
    PLU_TS = "plu-ts"
    HELIOS = "helios"


@dataclass(frozen=True)
class MarkerEvidence:
    """Which markers of a table were found, capped at MARKER_SAMPLE_LIMIT."""
    markers: Tuple[str, ...]
    total_matches: int

    def describe(self) -> str:
        sample = ", ".join(self.markers)
        extra = self.total_matches - len(self.markers)
        suffix = f" (+{extra} more)" if extra > 0 else ""
        return f"Matched {self.total_matches} marker(s): {sample}{suffix}"


@dataclass(frozen=True)
class StructuralEvidence:
    """A free-form description of the shape that matched."""
    detail: str

    def describe(self) -> str:
        return self.detail


Evidence = Union[MarkerEvidence, StructuralEvidence]


@dataclass(frozen=True)
class Prediction:
    language: Language
    evidence: Evidence

    def describe(self) -> str:
        return f"{self.language.value}: {self.evidence.describe()}"


# =========================================================================
# MARKER TABLES
# =========================================================================
# Markers are compared against the compact rendering with all whitespace
# removed, so they are written without whitespace too.

AIKEN_MARKERS: Tuple[str, ...] = (
    "delay[(error)(force(error))]",
    "List/Tuple/Constrcontainsmoreitemsthanexpected",
    "ExpectednoitemsforList",
    "ExpectednofieldsforConstr",
    "ExpectedonincorrectBooleanvariant",
    "ExpectedonincorrectConstrvariant",
    "Constrindexdidn'tmatchatypevariant",
    "(force(builtinmkCons))])(force(builtinheadList))])(force(builtintailList))",
)

PLUTARCH_MARKERS: Tuple[str, ...] = (
    "constring\"can'tgetanycontinuingoutputs",
    "constring\"PatternmatchingfailureinQualifiedDosyntax",
    "constring\"reachedendofsumwhilestill",
    "constring\"PatternmatchingfailureinTermCont",
    "constring\"ptryPositive",
    "constring\"pfromJust",
    "constring\"pelemAt",
    "constring\"ptryFrom(TxId)",
    "constring\"ptryFrom(POSIXTime)",
    "constring\"ptryFrom(TokenName)",
    "constring\"ptryFrom(CurrencySymbol)",
    "constring\"ptryFrom(PDataRecord[])",
    "constring\"ptryFrom(PScriptHash)",
    "constring\"ptryFrom(PPubKeyHash)",
    "constring\"ptryFrom(PRational)",
    "constring\"unsorted map",
    # Inert under depth naming: a binder directly under two others is i_2,
    # never i_0, so these two never match text rendered here.
    "(force(builtinheadList))])(force(builtintailList))])(lami_0[i_2[(builtinunConstrData)i_1]])])(force(force(builtinsndPair)))",
    "(force(builtintailList))])(force(builtinheadList))])(lami_0[i_2[(builtinunConstrData)i_1]])])(force(force(builtinsndPair)))",
    "Patternmatchfailurein",
    "Plutarch",
)

OPSHIN_MARKERS: Tuple[str, ...] = (
    "constring\"KeyError\"",
    "constring\"NameError:",
    "constring\"ValueError:datumintegritycheckfailed\"",
)

HELIOS_MARKERS: Tuple[str, ...] = (
    "validationreturnedfalse",
    "force(builtinifThenElse))[[(builtinequalsInteger)[(force(force(builtinfstPair)))[(builtinunConstrData)",
)

PLUTUS_TX_MARKERS: Tuple[str, ...] = (
    tuple(f"constring\"L{suffix}\"" for suffix in "0123456789abcdefghi")
    + tuple(f"constring\"PT{n}\"" for n in range(1, 19))
    + tuple(f"constring\"P{suffix}\"" for suffix in "abcdefg")
    + tuple(f"constring\"S{n}\"" for n in range(9))
    + ("constring\"C0\"", "constring\"C1\"")
    + (
        "41786f4f7261636c655631",
        "41756374696f6e457363726f7",
    )
)


def normalize_program_text(text: str) -> str:
    """Strip all whitespace; markers and program text are compared this way."""
    return _WHITESPACE_RE.sub("", text)


def collect_marker_evidence(
    normalized_program: str, markers: Tuple[str, ...]
) -> Optional[MarkerEvidence]:
    """
    Scan every marker of one table against the normalized program text.

    Returns:
        MarkerEvidence with up to MARKER_SAMPLE_LIMIT matched markers and
        the total match count, or None if nothing matched
    """
    total_matches = 0
    samples = []

    for marker in markers:
        normalized_marker = normalize_program_text(marker)
        if not normalized_marker:
            continue
        if normalized_marker in normalized_program:
            total_matches += 1
            if len(samples) < MARKER_SAMPLE_LIMIT:
                samples.append(normalized_marker)

    if total_matches == 0:
        return None
    return MarkerEvidence(markers=tuple(samples), total_matches=total_matches)


def is_pluts_term(term: Term) -> bool:
    """
    The plu-ts entry shape: any number of outer lambdas around a case on
    ``(constr 0)`` with exactly two branches, the last being
    ``(con integer 42)``.
    """
    while isinstance(term, Lambda):
        term = term.body

    match term:
        case Case(
            scrutinee=Constr(index=0, fields=()),
            branches=(_, Const(type=const_type, value=int() as value)),
        ):
            return const_type == INTEGER and not isinstance(value, bool) and value == 42
    return False


PLUTS_DETAIL = "Matches the Plu-ts two-branch case structure with the sentinel integer 42."

# A classifier step takes (term, normalized text) and returns evidence or None.
ClassifierStep = Callable[[Term, str], Optional[Evidence]]


def _marker_step(markers: Tuple[str, ...]) -> ClassifierStep:
    def step(term: Term, normalized: str) -> Optional[Evidence]:
        return collect_marker_evidence(normalized, markers)
    return step


def _pluts_step(term: Term, normalized: str) -> Optional[Evidence]:
    if is_pluts_term(term):
        return StructuralEvidence(PLUTS_DETAIL)
    return None


# Order is the tie-break between languages. Do not sort.
CLASSIFIER_CHAIN: Tuple[Tuple[Language, ClassifierStep], ...] = (
    (Language.AIKEN, _marker_step(AIKEN_MARKERS)),
    (Language.PLU_TS, _pluts_step),
    (Language.HELIOS, _marker_step(HELIOS_MARKERS)),
    (Language.PLUTUS_TX, _marker_step(PLUTUS_TX_MARKERS)),
    (Language.OPSHIN, _marker_step(OPSHIN_MARKERS)),
    (Language.PLUTARCH, _marker_step(PLUTARCH_MARKERS)),
)


def predict_language(term: Term, program_text: str) -> Optional[Prediction]:
    """
    Guess the source language of a program.

    Args:
        term: Body of the program (used by structural checks)
        program_text: Compact rendering of ``term`` (used by marker checks)

    Returns:
        The first matching Prediction in CLASSIFIER_CHAIN order, or None
    """
    normalized = normalize_program_text(program_text)
    if not normalized:
        return None

    for language, step in CLASSIFIER_CHAIN:
        evidence = step(term, normalized)
        if evidence is not None:
            return Prediction(language=language, evidence=evidence)
    return None


__all__ = [
    "Language",
    "MarkerEvidence",
    "StructuralEvidence",
    "Prediction",
    "MARKER_SAMPLE_LIMIT",
    "AIKEN_MARKERS",
    "PLUTARCH_MARKERS",
    "OPSHIN_MARKERS",
    "HELIOS_MARKERS",
    "PLUTUS_TX_MARKERS",
    "CLASSIFIER_CHAIN",
    "normalize_program_text",
    "collect_marker_evidence",
    "is_pluts_term",
    "predict_language",
]
