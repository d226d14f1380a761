# rpyscript/scanner.py
# Splits script text into logical lines with indentation depth.
# Output records:
#   LogicalLine(content, indent, depth, line)
#     content - text after the leading whitespace (trailing text kept as-is)
#     indent  - width of the leading whitespace after tab expansion
#     depth   - block nesting level assigned from an indentation stack
#     line    - 1-based physical line number
#
# Blank lines and full-line comments are dropped here; nothing downstream
# sees them.

from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from typing import List, Tuple

from .errors import Diagnostic, EngineInvariantError, SYNTAX

log = logging.getLogger(__name__)

BOM = "\ufeff"

# Only CR, LF and CRLF end a line; other Unicode separators stay in the text.
_NEWLINE_RE = re.compile(r"\r\n|\r|\n")
_INDENT_CHARS = " \t"


@dataclass(frozen=True)
class LogicalLine:
    content: str
    indent: int
    depth: int
    line: int


def _is_trivia(stripped: str) -> bool:
    return not stripped.strip() or stripped.startswith("#")


def scan(source: str, tab_size: int = 4) -> Tuple[List[LogicalLine], List[Diagnostic]]:
    lines: List[LogicalLine] = []
    diags: List[Diagnostic] = []
    text = source or ""
    if text.startswith(BOM):
        text = text[len(BOM):]

    stack: List[int] = [0]
    prev_depth = 0
    for idx, raw in enumerate(_NEWLINE_RE.split(text), start=1):
        stripped = raw.lstrip(_INDENT_CHARS)
        if _is_trivia(stripped):
            continue
        lead = raw[: len(raw) - len(stripped)]
        width = len(lead.expandtabs(tab_size))
        if width < 0:
            raise EngineInvariantError(f"negative indentation width on line {idx}")

        if width > stack[-1]:
            stack.append(width)
        elif width < stack[-1]:
            closed = stack[-1]
            while stack[-1] > width:
                closed = stack.pop()
            if stack[-1] != width:
                # No open level has this width: keep the line at the depth
                # of the level just closed and adopt its width from here on.
                stack.append(width)
                diags.append(Diagnostic(
                    idx,
                    f"inconsistent dedent: indentation {width} matches no enclosing "
                    f"block (expected {stack[-2]} or {closed})",
                    SYNTAX,
                ))
                log.debug("line %d: inconsistent dedent to %d, kept at depth %d",
                          idx, width, len(stack) - 1)

        depth = len(stack) - 1
        if depth > prev_depth + 1:
            raise EngineInvariantError(f"indentation depth jumped from {prev_depth} to {depth} on line {idx}")
        prev_depth = depth
        lines.append(LogicalLine(content=stripped, indent=width, depth=depth, line=idx))

    log.debug("scanned %d logical lines, %d diagnostics", len(lines), len(diags))
    return lines, diags
