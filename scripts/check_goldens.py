# scripts/check_goldens.py
# Compare the canonical (regenerated) form of each samples/*.rpy against its
# checked-in golden, samples/<name>.rpy.golden. --update rewrites the goldens.
from __future__ import annotations
import argparse, difflib, sys
from pathlib import Path

# Ensure project root (which contains `rpyscript/`) is on sys.path
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rpyscript.equivalence import explain_script_difference  # noqa: E402
from rpyscript.generator import generate  # noqa: E402
from rpyscript.parser import parse_file, parse  # noqa: E402


def canonical_for(path: Path) -> str:
    res = parse_file(str(path))
    for d in res.errors:
        print(f"[WARN] {d.format(str(path))}")
    return generate(res.ast)


def check_sample(path: Path, update: bool) -> int:
    text = canonical_for(path)
    again = parse(text)
    diff = explain_script_difference(parse_file(str(path)).ast, again.ast)
    if diff:
        print(f"[FAIL] {path.name} does not round trip: {diff}")
        return 1

    golden_path = Path(str(path) + ".golden")
    if update:
        golden_path.write_text(text, encoding="utf-8")
        print(f"[OK] wrote {golden_path.name}")
        return 0
    if not golden_path.exists():
        print(f"[ERROR] Missing golden: {golden_path}. Create via: python scripts/check_goldens.py --update")
        return 1
    old = golden_path.read_text(encoding="utf-8")
    if old == text:
        print(f"[OK] {path.name} matches golden.")
        return 0
    print(f"[FAIL] canonical output changed for {path.name}:")
    sys.stdout.writelines(difflib.unified_diff(
        old.splitlines(keepends=True), text.splitlines(keepends=True),
        fromfile=golden_path.name, tofile="generated"))
    return 2


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Check canonical script output against goldens.")
    ap.add_argument("base", nargs="?", default=str(ROOT / "samples"))
    ap.add_argument("--update", action="store_true", help="Rewrite goldens from current output.")
    args = ap.parse_args(argv)

    base = Path(args.base)
    if not base.is_dir():
        print(f"[ERROR] {base} not found."); return 1
    rc = 0
    for p in sorted(base.glob("*.rpy")):
        rc |= check_sample(p, args.update)
    return 1 if rc else 0


if __name__ == "__main__":
    raise SystemExit(main())
