# scripts/peek_ast.py
# Show what's inside a parsed script: one line per statement, indented by
# nesting depth, plus the diagnostics the parser reported.

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from rpyscript.nodes import walk  # noqa: E402
from rpyscript.parser import parse_file  # noqa: E402


def describe(node) -> str:
    for attr in ("name", "target", "speaker", "image", "channel", "variable", "action"):
        value = getattr(node, attr, None)
        if value:
            return f"{node.kind} {value}"
    if node.kind == "raw":
        first = node.content.split("\n", 1)[0]
        return f"raw {first!r}"
    return node.kind


def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/peek_ast.py <script.rpy>")
        sys.exit(2)
    res = parse_file(sys.argv[1])
    counts = {}
    for depth, node in walk(res.ast.statements):
        counts[node.kind] = counts.get(node.kind, 0) + 1
        where = f"{node.line:>4}" if node.line is not None else "   ?"
        print(f"{where}  {'  ' * depth}{describe(node)}")
    print()
    print("kinds:", ", ".join(f"{k}={n}" for k, n in sorted(counts.items())))
    for d in res.errors:
        print("diagnostic:", d.format(sys.argv[1]))


if __name__ == "__main__":
    main()
