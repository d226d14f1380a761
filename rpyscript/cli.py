# rpyscript/cli.py
# Command line for parsing, regenerating and round-trip checking scripts.
#   rpyscript parse FILE [--emit-ast PATH]
#   rpyscript generate AST_JSON [-o OUT]
#   rpyscript format FILE [--write]
#   rpyscript check FILE

from __future__ import annotations

import argparse
import hashlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import EngineConfig, load_config
from .equivalence import explain_script_difference
from .errors import ScriptEngineError
from .generator import GeneratorOptions, generate
from .parser import ParseResult, parse
from .serialize import dumps, loads


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8-sig")


def _sha256(text: str) -> str:
    return "sha256:" + hashlib.sha256(text.encode("utf-8")).hexdigest()


def _print_diagnostics(result: ParseResult, where: str) -> None:
    for d in result.errors:
        print(d.format(where))


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="rpyscript",
        description="Parse, regenerate and round-trip check visual-novel scripts.",
    )
    p.add_argument("--config", metavar="PATH", help="Engine config JSON (tabSize, indentSize, ...).")
    p.add_argument("--indent", type=int, default=None, help="Spaces per indentation level in output.")
    p.add_argument("--tab-size", type=int, default=None, help="Tab width used when measuring indentation.")
    p.add_argument("--no-blank-lines", action="store_true", help="Do not separate top-level groups with blank lines.")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging to stderr.")
    sub = p.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("parse", help="Parse a script and report diagnostics.")
    sp.add_argument("file")
    sp.add_argument("--emit-ast", metavar="PATH", help="Write the AST as JSON to PATH ('-' for stdout).")

    sg = sub.add_parser("generate", help="Generate script text from an AST JSON file.")
    sg.add_argument("ast_json")
    sg.add_argument("-o", "--out", metavar="PATH", help="Write output to PATH instead of stdout.")

    sf = sub.add_parser("format", help="Parse and regenerate a script in canonical form.")
    sf.add_argument("file")
    sf.add_argument("--write", action="store_true", help="Rewrite the file in place.")

    sc = sub.add_parser("check", help="Round-trip check: parse, generate, reparse, compare.")
    sc.add_argument("file")
    return p


def _config_from_args(args) -> EngineConfig:
    cfg = load_config(args.config)
    return cfg.override(
        indent_size=args.indent,
        tab_size=args.tab_size,
        insert_blank_lines=False if args.no_blank_lines else None,
    )


def _cmd_parse(args, cfg: EngineConfig) -> int:
    path = Path(args.file)
    result = parse(_read(path), str(path), config=cfg)
    _print_diagnostics(result, str(path))
    print(f"Parsed {len(result.ast.statements)} top-level statements, {len(result.errors)} diagnostics")
    if args.emit_ast:
        text = dumps(result.ast)
        if args.emit_ast == "-":
            print(text)
        else:
            Path(args.emit_ast).write_text(text + "\n", encoding="utf-8")
            print(f"Wrote AST: {args.emit_ast}")
    return 0


def _cmd_generate(args, cfg: EngineConfig) -> int:
    script = loads(_read(Path(args.ast_json)))
    text = generate(script, GeneratorOptions.from_config(cfg))
    if args.out:
        Path(args.out).write_text(text, encoding="utf-8")
        print(f"Wrote script: {args.out}")
    else:
        sys.stdout.write(text)
    return 0


def _cmd_format(args, cfg: EngineConfig) -> int:
    path = Path(args.file)
    result = parse(_read(path), str(path), config=cfg)
    text = generate(result.ast, GeneratorOptions.from_config(cfg))
    if args.write:
        # stdout carries the script otherwise
        _print_diagnostics(result, str(path))
        path.write_text(text, encoding="utf-8")
        print(f"Formatted: {path}")
    else:
        sys.stdout.write(text)
    return 0


def _cmd_check(args, cfg: EngineConfig) -> int:
    path = Path(args.file)
    opts = GeneratorOptions.from_config(cfg)
    first = parse(_read(path), str(path), config=cfg)
    text = generate(first.ast, opts)
    second = parse(text, f"{path} (regenerated)", config=cfg)
    again = generate(second.ast, opts)

    problems: List[str] = []
    for d in second.errors:
        problems.append(f"regenerated text: {d.format()}")
    diff = explain_script_difference(first.ast, second.ast)
    if diff:
        problems.append(f"not equivalent after round trip at {diff}")
    if again != text:
        problems.append("generation is not idempotent")

    _print_diagnostics(first, str(path))
    print(_sha256(text))
    if problems:
        print("ROUND TRIP: FAILED")
        for msg in problems:
            print(" -", msg)
        return 1
    print("ROUND TRIP: OK")
    return 0


_COMMANDS = {
    "parse": _cmd_parse,
    "generate": _cmd_generate,
    "format": _cmd_format,
    "check": _cmd_check,
}


def main(argv: Optional[List[str]] = None) -> int:
    p = _build_parser()
    args = p.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    for attr in ("file", "ast_json"):
        target = getattr(args, attr, None)
        if target and not Path(target).is_file():
            p.error(f"file not found: {target}")

    try:
        cfg = _config_from_args(args)
        return _COMMANDS[args.command](args, cfg)
    except ScriptEngineError as e:
        print(f"error: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
