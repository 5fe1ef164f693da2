"""
Sample programs for demos and tests.

Each builder returns a Program built directly from Term objects, so the
samples do not depend on the parser they are used to exercise.
"""
from uplcview.model import DEFAULT_VERSION, Program, Version
from uplcview.terms import (
    INTEGER,
    STRING,
    Apply,
    Builtin,
    Case,
    Const,
    Constr,
    Delay,
    Error,
    Force,
    Lambda,
    Var,
)


PLACEHOLDER_SOURCE = """(program 1.1.0
  (lam a
    (lam b
      [ (force (builtin ifThenElse))
        [ (builtin equalsInteger) a b ]
        (con integer 1)
        (con integer 0)
      ]
    )
  )
)"""


def build_equality_program(version: Version = DEFAULT_VERSION) -> Program:
    """``\\a b -> if a == b then 1 else 0``; the same program as PLACEHOLDER_SOURCE."""
    condition = Apply(Apply(Builtin("equalsInteger"), Var(2)), Var(1))
    body = Apply(
        Apply(
            Apply(Force(Builtin("ifThenElse")), condition),
            Const(INTEGER, 1),
        ),
        Const(INTEGER, 0),
    )
    return Program(version, Lambda(Lambda(body)))


def build_pluts_program(wrappers: int = 1) -> Program:
    """The plu-ts entry shape: lambdas around a case with the sentinel 42."""
    term = Case(Constr(0, ()), (Error(), Const(INTEGER, 42)))
    for _ in range(wrappers):
        term = Lambda(term)
    return Program(Version(1, 1, 0), term)


def build_traced_program(label: str) -> Program:
    """A validator that traces ``label`` and then fails."""
    trace = Apply(Apply(Force(Builtin("trace")), Const(STRING, label)), Delay(Error()))
    return Program(DEFAULT_VERSION, Lambda(Force(trace)))


__all__ = [
    "PLACEHOLDER_SOURCE",
    "build_equality_program",
    "build_pluts_program",
    "build_traced_program",
]
