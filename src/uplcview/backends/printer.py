"""
UPLC text renderer.

Converts a Term tree back into UPLC concrete syntax.

Supports two layouts:
    - compact: one line, every application written as ``[f a]``
    - pretty: the same tokens spread over indented lines

Both layouts re-parse to the identical Term. Bound variables are named
``i_<n>`` where n is the binder's depth (0 for the outermost lambda).
"""

from typing import List, Tuple

from uplcview.model import Program
from uplcview.plutus_data import (
    DataBytes,
    DataConstr,
    DataInteger,
    DataList,
    DataMap,
    PlutusData,
)
from uplcview.terms import (
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


INDENT = "  "

# Subterms whose compact form fits in this width stay on one pretty line.
INLINE_WIDTH = 40

_STRING_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
}


def _variable_name(level: int) -> str:
    return f"i_{level}"


def _escape_string(value: str) -> str:
    out = []
    for char in value:
        if char in _STRING_ESCAPES:
            out.append(_STRING_ESCAPES[char])
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            out.append(f"\\u{ord(char):04x}")
        else:
            out.append(char)
    return '"' + "".join(out) + '"'


def render_data(data: PlutusData) -> str:
    """Render Plutus Data without outer parentheses, e.g. ``Constr 0 [I 1]``."""
    if isinstance(data, DataConstr):
        return f"Constr {data.tag} [{', '.join(render_data(f) for f in data.fields)}]"
    if isinstance(data, DataMap):
        pairs = ", ".join(f"({render_data(k)}, {render_data(v)})" for k, v in data.pairs)
        return f"Map [{pairs}]"
    if isinstance(data, DataList):
        return f"List [{', '.join(render_data(item) for item in data.items)}]"
    if isinstance(data, DataInteger):
        return f"I {data.value}"
    if isinstance(data, DataBytes):
        return f"B #{data.value.hex()}"
    raise TypeError(f"Unsupported PlutusData type: {type(data)}")


def render_value(const_type: ConstType, value) -> str:
    """Render a constant value in the syntax ``(con <type> <value>)`` expects."""
    tag = const_type.tag
    if tag is TypeTag.INTEGER:
        return str(value)
    if tag is TypeTag.BYTESTRING:
        return "#" + value.hex()
    if tag is TypeTag.STRING:
        return _escape_string(value)
    if tag is TypeTag.UNIT:
        return "()"
    if tag is TypeTag.BOOL:
        return "True" if value else "False"
    if tag is TypeTag.LIST:
        element = const_type.args[0]
        return "[" + ", ".join(render_value(element, item) for item in value) + "]"
    if tag is TypeTag.PAIR:
        first = render_value(const_type.args[0], value[0])
        second = render_value(const_type.args[1], value[1])
        return f"({first}, {second})"
    if tag is TypeTag.DATA:
        return f"({render_data(value)})"
    raise TypeError(f"Unsupported constant type: {const_type}")


def _render(term: Term, depth: int) -> Tuple[str, List[str]]:
    """
    Render ``term`` bound under ``depth`` lambdas.

    Returns the compact form and the pretty lines (unindented) together,
    so each subtree is rendered once.
    """
    if isinstance(term, Var):
        text = _variable_name(depth - term.index)
        return text, [text]
    if isinstance(term, Builtin):
        text = f"(builtin {term.name})"
        return text, [text]
    if isinstance(term, Error):
        return "(error)", ["(error)"]
    if isinstance(term, Const):
        text = f"(con {term.type} {render_value(term.type, term.value)})"
        return text, [text]

    if isinstance(term, Lambda):
        name = _variable_name(depth)
        body, body_lines = _render(term.body, depth + 1)
        return _wrap(f"(lam {name}", ")", [(body, body_lines)])

    if isinstance(term, Apply):
        spine = []
        node = term
        while isinstance(node, Apply):
            spine.append(node.argument)
            node = node.function
        spine.append(node)
        spine.reverse()
        parts = [_render(part, depth) for part in spine]
        compact = parts[0][0]
        for argument, _ in parts[1:]:
            compact = f"[{compact} {argument}]"
        if len(compact) <= INLINE_WIDTH:
            return compact, [compact]
        lines = ["["]
        for _, part_lines in parts:
            lines.extend(INDENT + line for line in part_lines)
        lines.append("]")
        return compact, lines

    if isinstance(term, Delay):
        return _wrap("(delay", ")", [_render(term.term, depth)])
    if isinstance(term, Force):
        return _wrap("(force", ")", [_render(term.term, depth)])
    if isinstance(term, Constr):
        return _wrap(f"(constr {term.index}", ")", [_render(f, depth) for f in term.fields])
    if isinstance(term, Case):
        children = [_render(term.scrutinee, depth)]
        children.extend(_render(branch, depth) for branch in term.branches)
        return _wrap("(case", ")", children)

    raise TypeError(f"Unsupported Term type: {type(term)}")


def _wrap(opening: str, closing: str, children: List[Tuple[str, List[str]]]) -> Tuple[str, List[str]]:
    compact = " ".join([opening] + [child for child, _ in children]) + closing
    if len(compact) <= INLINE_WIDTH:
        return compact, [compact]
    lines = [opening]
    for _, child_lines in children:
        lines.extend(INDENT + line for line in child_lines)
    lines.append(closing)
    return compact, lines


def render_compact(term: Term) -> str:
    """Single-line rendering of a closed term."""
    return _render(term, 0)[0]


def render_pretty(term: Term) -> str:
    """Multi-line, two-space indented rendering of a closed term."""
    return "\n".join(_render(term, 0)[1])


def render_program(program: Program, pretty: bool = False) -> str:
    """Render a full ``(program M.m.p <term>)`` including the version header."""
    if not pretty:
        return f"(program {program.version} {render_compact(program.body)})"
    body_lines = _render(program.body, 0)[1]
    lines = [f"(program {program.version}"]
    lines.extend(INDENT + line for line in body_lines)
    lines.append(")")
    return "\n".join(lines)


__all__ = [
    "render_compact",
    "render_pretty",
    "render_program",
    "render_value",
    "render_data",
]
