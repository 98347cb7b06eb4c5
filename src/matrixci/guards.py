# guards.py
# Tiny condition language for env-step guards:
#
#   matrix.mode == 'release'
#   matrix.os != "windows" && env.MODE == ''
#
# Operands are matrix.AXIS, env.KEY, or a literal (quoted or bare word).
# Clauses joined with && must all hold; && inside quotes is literal text.
from __future__ import annotations

import re
from typing import Callable, List, Mapping, Tuple

from .model import Coordinate, Guard

_CLAUSE_RE = re.compile(r"^\s*(\S+?)\s*(==|!=)\s*(.+?)\s*$")
_REF_RE = re.compile(r"^(matrix|env)\.([\w\-]+)$")

Operand = Callable[[Coordinate, Mapping[str, str]], str]


class GuardSyntaxError(ValueError):
    pass


def _operand(token: str) -> Operand:
    token = token.strip()
    if len(token) >= 2 and token[0] == token[-1] and token[0] in "'\"":
        literal = token[1:-1]
        return lambda coord, env: literal

    m = _REF_RE.match(token)
    if m:
        ns, name = m.groups()
        if ns == "matrix":
            # an axis the coordinate lacks compares as ""
            return lambda coord, env: coord.get(name, "") or ""
        return lambda coord, env: env.get(name, "")

    if re.fullmatch(r"[\w.\-+/]+", token):
        return lambda coord, env: token
    raise GuardSyntaxError(f"bad operand {token!r}")


def _split_clauses(source: str) -> List[str]:
    parts: List[str] = []
    buf: List[str] = []
    quote = None
    i = 0
    while i < len(source):
        ch = source[i]
        if quote:
            if ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
        elif source.startswith("&&", i):
            parts.append("".join(buf))
            buf = []
            i += 2
            continue
        buf.append(ch)
        i += 1
    if quote:
        raise GuardSyntaxError(f"unterminated quote in {source!r}")
    parts.append("".join(buf))
    return parts


def compile_guard(source: str) -> Guard:
    """Compile a guard expression into a predicate over (coordinate, env)."""
    if not source or not source.strip():
        raise GuardSyntaxError("empty guard")

    clauses: List[Tuple[Operand, str, Operand]] = []
    for part in _split_clauses(source):
        m = _CLAUSE_RE.match(part)
        if not m:
            raise GuardSyntaxError(f"expected '<lhs> == <rhs>' or '<lhs> != <rhs>', got {part.strip()!r}")
        lhs, op, rhs = m.groups()
        clauses.append((_operand(lhs), op, _operand(rhs)))

    def guard(coord: Coordinate, env: Mapping[str, str]) -> bool:
        for lhs, op, rhs in clauses:
            equal = lhs(coord, env) == rhs(coord, env)
            if equal != (op == "=="):
                return False
        return True

    guard.__doc__ = source
    return guard


def matrix_equals(axis: str, value: str) -> Guard:
    """Guard that holds when the instance's `axis` equals `value`."""
    return lambda coord, env: coord.get(axis) == value
