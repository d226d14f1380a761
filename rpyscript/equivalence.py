# rpyscript/equivalence.py
# Semantic equivalence used by the round-trip guarantee parse(generate(ast)) == ast.
#
# Comparison rules:
#   - same kind; `id` and `line` never compared
#   - None, "" and [] in optional fields all mean "absent"
#   - numbers compared within FLOAT_TOLERANCE
#   - flags in FALSE_IS_ABSENT compare "not true" as false
#   - audio `loop` is tri-state (loop / noloop / absent) and compares strictly
#   - python code compared after dedent with blank lines and trailing spaces dropped
#   - nested bodies compared recursively, order-sensitive
#   - a body holding only a raw `pass` line is an empty body

from __future__ import annotations
import math
import textwrap
from dataclasses import fields, is_dataclass
from typing import List, Optional

from .nodes import PythonStmt, RawStmt, Script, Stmt

FLOAT_TOLERANCE = 1e-6

BOOKKEEPING = ("id", "line")

# (owner class name, field name)
FALSE_IS_ABSENT = {
    ("JumpStmt", "expression"),
    ("CallStmt", "expression"),
    ("DialogueStmt", "extend"),
    ("PythonStmt", "early"),
    ("PythonStmt", "hide"),
    ("PythonStmt", "init"),
    ("AudioOptions", "queue"),
    ("AudioOptions", "if_changed"),
}


def _absent(value) -> bool:
    return value is None or value == "" or (isinstance(value, list) and not value)


def normalize_code(code: str) -> str:
    lines = [ln.rstrip() for ln in (code or "").split("\n") if ln.strip()]
    return textwrap.dedent("\n".join(lines))


def _body(value):
    if (isinstance(value, list) and len(value) == 1 and isinstance(value[0], RawStmt)
            and (value[0].content or "").strip() == "pass"):
        return []
    return value


def _diff(a, b, path: str) -> Optional[str]:
    """Path of the first mismatch between a and b, or None when equivalent."""
    if isinstance(a, Stmt) or isinstance(b, Stmt):
        if type(a) is not type(b):
            return f"{path}: kind {getattr(a, 'kind', None)!r} != {getattr(b, 'kind', None)!r}"

    if is_dataclass(a) and is_dataclass(b) and not isinstance(a, type):
        if type(a) is not type(b):
            return f"{path}: {type(a).__name__} != {type(b).__name__}"
        owner = type(a).__name__
        for f in fields(a):
            if f.name in BOOKKEEPING:
                continue
            va, vb = getattr(a, f.name), getattr(b, f.name)
            if f.name == "body":
                va, vb = _body(va), _body(vb)
            sub = f"{path}.{f.name}"
            if (owner, f.name) in FALSE_IS_ABSENT:
                if bool(va) != bool(vb):
                    return f"{sub}: {va!r} != {vb!r}"
                continue
            if isinstance(a, PythonStmt) and f.name == "code":
                if normalize_code(va) != normalize_code(vb):
                    return f"{sub}: code differs"
                continue
            found = _diff(va, vb, sub)
            if found:
                return found
        return None

    if _absent(a) or _absent(b):
        if _absent(a) and _absent(b):
            return None
        return f"{path}: {a!r} != {b!r}"

    if isinstance(a, list) and isinstance(b, list):
        if len(a) != len(b):
            return f"{path}: length {len(a)} != {len(b)}"
        for i, (x, y) in enumerate(zip(a, b)):
            found = _diff(x, y, f"{path}[{i}]")
            if found:
                return found
        return None

    if isinstance(a, bool) or isinstance(b, bool):
        return None if a is b else f"{path}: {a!r} != {b!r}"

    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        if math.isclose(a, b, rel_tol=0.0, abs_tol=FLOAT_TOLERANCE):
            return None
        return f"{path}: {a!r} != {b!r}"

    return None if a == b else f"{path}: {a!r} != {b!r}"


def explain_difference(a: Stmt, b: Stmt, path: str = "node") -> Optional[str]:
    return _diff(a, b, path)


def nodes_equivalent(a: Stmt, b: Stmt) -> bool:
    return _diff(a, b, "node") is None


def statements_equivalent(a: List[Stmt], b: List[Stmt]) -> bool:
    return _diff(list(a), list(b), "statements") is None


def scripts_equivalent(a: Script, b: Script) -> bool:
    """Compares statements only; metadata is bookkeeping."""
    return _diff(list(a.statements), list(b.statements), "statements") is None


def explain_script_difference(a: Script, b: Script) -> Optional[str]:
    return _diff(list(a.statements), list(b.statements), "statements")
