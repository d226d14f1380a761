# rpyscript/strings.py
# String-literal, argument-list and number helpers shared by parser and generator.

from __future__ import annotations
import re
from typing import List, Optional, Union

Number = Union[int, float]

# Quoted literals (either quote style, backslash escapes allowed)
DQ_STRING = r'"(?:[^"\\]|\\.)*"'
SQ_STRING = r"'(?:[^'\\]|\\.)*'"
STRING = rf"(?:{DQ_STRING}|{SQ_STRING})"

NUMBER = r"-?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?"
_INT_RE = re.compile(r"^-?\d+$")
_NUMBER_RE = re.compile(rf"^{NUMBER}$")

_ESCAPE_OUT = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}
_ESCAPE_IN = {"n": "\n", "r": "\r", "t": "\t", "\\": "\\", '"': '"', "'": "'"}
_ESCAPE_SEQ = re.compile(r"\\(.)", re.DOTALL)

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = set(_OPENERS.values())


# --------------------------- Quoting ------------------------------------------

def escape(text: str) -> str:
    return "".join(_ESCAPE_OUT.get(ch, ch) for ch in text)


def quote(text: str) -> str:
    return f'"{escape(text)}"'


def unescape(body: str) -> str:
    """Single-pass unescape; unknown escapes keep their backslash."""
    def repl(m: re.Match) -> str:
        ch = m.group(1)
        return _ESCAPE_IN.get(ch, "\\" + ch)
    return _ESCAPE_SEQ.sub(repl, body)


def unquote(literal: str) -> str:
    """'"a\\"b"' -> 'a"b'. Accepts either quote style."""
    if len(literal) < 2 or literal[0] != literal[-1] or literal[0] not in "\"'":
        raise ValueError(f"not a string literal: {literal!r}")
    return unescape(literal[1:-1])


def has_unterminated_quote(text: str) -> bool:
    """True when `text` ends inside a string literal."""
    open_q: Optional[str] = None
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if open_q:
            if ch == "\\":
                i += 2
                continue
            if ch == open_q:
                open_q = None
        elif ch in "\"'":
            open_q = ch
        i += 1
    return open_q is not None


# --------------------------- Argument lists -----------------------------------

def matching_paren(text: str, start: int) -> int:
    """Index of the bracket closing text[start], or -1 when unbalanced."""
    stack: List[str] = []
    open_q: Optional[str] = None
    i, n = start, len(text)
    while i < n:
        ch = text[i]
        if open_q:
            if ch == "\\":
                i += 2
                continue
            if ch == open_q:
                open_q = None
        elif ch in "\"'":
            open_q = ch
        elif ch in _OPENERS:
            stack.append(_OPENERS[ch])
        elif ch in _CLOSERS:
            if not stack or stack.pop() != ch:
                return -1
            if not stack:
                return i
        i += 1
    return -1


def split_arguments(text: str) -> List[str]:
    """Split on top-level commas; brackets and quotes are respected."""
    parts: List[str] = []
    depth = 0
    open_q: Optional[str] = None
    buf: List[str] = []
    i, n = 0, len(text or "")
    while i < n:
        ch = text[i]
        if open_q:
            buf.append(ch)
            if ch == "\\" and i + 1 < n:
                buf.append(text[i + 1])
                i += 2
                continue
            if ch == open_q:
                open_q = None
        elif ch in "\"'":
            open_q = ch
            buf.append(ch)
        elif ch in _OPENERS:
            depth += 1
            buf.append(ch)
        elif ch in _CLOSERS:
            depth -= 1
            buf.append(ch)
        elif ch == "," and depth == 0:
            parts.append("".join(buf).strip())
            buf = []
        else:
            buf.append(ch)
        i += 1
    parts.append("".join(buf).strip())
    return [p for p in parts if p]


def join_arguments(args: List[str]) -> str:
    return ", ".join(args)


# --------------------------- Numbers ------------------------------------------

def is_number(text: str) -> bool:
    return bool(_NUMBER_RE.match(text or ""))


def parse_number(text: str) -> Number:
    """Integers stay int so formatting is stable across round trips."""
    if _INT_RE.match(text):
        return int(text)
    return float(text)


def format_number(value: Number) -> str:
    if isinstance(value, bool):
        raise TypeError("boolean is not a number")
    if isinstance(value, int):
        return str(value)
    return repr(float(value))
