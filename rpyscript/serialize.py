# rpyscript/serialize.py
# Script AST <-> JSON-compatible dicts.
# Shape:
#   {"type": "script", "metadata": {...}, "statements": [node, ...]}
#   node = {"type": <kind>, "id": ..., <camelCase fields>..., "line"?: int}
# Absent optional fields (None, "", []) are omitted; nested option records
# are written as an "options" object and omitted when empty.

from __future__ import annotations
import json
import re
from dataclasses import fields
from datetime import datetime
from typing import Any, Dict, List

from .errors import ASTFormatError
from .nodes import (
    STATEMENT_TYPES, AudioOptions, DisplayOptions, IfBranch, MenuChoice, Script,
    ScriptMetadata, Stmt,
)
from .schema import validate_script_dict

_OPTION_TYPES = {
    "scene": DisplayOptions,
    "show": DisplayOptions,
    "hide": DisplayOptions,
    "play": AudioOptions,
}


def _camel(name: str) -> str:
    return re.sub(r"_([a-z])", lambda m: m.group(1).upper(), name)


def _absent(value) -> bool:
    return value is None or value == "" or value == []


# ---- to dict -----------------------------------------------------------------

def _record_to_dict(rec) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for f in fields(rec):
        value = getattr(rec, f.name)
        if _absent(value):
            continue
        out[_camel(f.name)] = list(value) if isinstance(value, list) else value
    return out


def _block_to_list(body: List[Stmt]) -> List[Dict[str, Any]]:
    return [node_to_dict(st) for st in body]


def node_to_dict(node: Stmt) -> Dict[str, Any]:
    out: Dict[str, Any] = {"type": node.kind, "id": node.id}
    for f in fields(node):
        if f.name in ("id", "line"):
            continue
        value = getattr(node, f.name)
        if f.name == "body":
            out["body"] = _block_to_list(value)
        elif f.name == "choices":
            out["choices"] = [
                dict(_record_to_dict_shallow(c, ("text", "condition", "line")), body=_block_to_list(c.body))
                for c in value
            ]
        elif f.name == "branches":
            out["branches"] = [
                dict(_record_to_dict_shallow(b, ("condition", "line")), body=_block_to_list(b.body))
                for b in value
            ]
        elif f.name == "options":
            opts = _record_to_dict(value)
            if opts:
                out["options"] = opts
        elif f.name in ("text", "content", "code", "value", "file") and value is not None:
            out[f.name] = value  # required strings may be empty
        elif not _absent(value):
            out[_camel(f.name)] = list(value) if isinstance(value, list) else value
    if node.line is not None:
        out["line"] = node.line
    return out


def _record_to_dict_shallow(rec, names) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for name in names:
        value = getattr(rec, name)
        if name == "text" or not _absent(value):
            out[name] = value
    return out


def script_to_dict(script: Script) -> Dict[str, Any]:
    meta = script.metadata
    return {
        "type": "script",
        "metadata": {
            "filePath": meta.file_path,
            "parseTime": meta.parse_time.isoformat(),
            "version": meta.version,
        },
        "statements": _block_to_list(script.statements),
    }


# ---- from dict ---------------------------------------------------------------

def _block_from_list(items: List[Dict[str, Any]]) -> List[Stmt]:
    return [node_from_dict(d) for d in items or []]


def _record_from_dict(cls, data: Dict[str, Any]):
    known = {_camel(f.name): f.name for f in fields(cls)}
    kwargs = {}
    for key, value in (data or {}).items():
        if key not in known:
            raise ASTFormatError(f"unknown option {key!r} for {cls.__name__}")
        kwargs[known[key]] = list(value) if isinstance(value, list) else value
    return cls(**kwargs)


def node_from_dict(data: Dict[str, Any]) -> Stmt:
    if not isinstance(data, dict):
        raise ASTFormatError(f"node must be an object, got {type(data).__name__}")
    kind = data.get("type")
    cls = STATEMENT_TYPES.get(kind)
    if cls is None:
        raise ASTFormatError(f"unknown node type {kind!r}")
    if not data.get("id"):
        raise ASTFormatError(f"{kind} node has no id")

    kwargs: Dict[str, Any] = {}
    for f in fields(cls):
        key = _camel(f.name)
        if key not in data:
            continue
        value = data[key]
        if f.name == "body":
            value = _block_from_list(value)
        elif f.name == "choices":
            value = [MenuChoice(text=c["text"], body=_block_from_list(c.get("body")),
                                condition=c.get("condition"), line=c.get("line"))
                     for c in value]
        elif f.name == "branches":
            value = [IfBranch(condition=b.get("condition"), body=_block_from_list(b.get("body")),
                              line=b.get("line"))
                     for b in value]
        elif f.name == "options":
            value = _record_from_dict(_OPTION_TYPES[kind], value)
        elif isinstance(value, list):
            value = list(value)
        kwargs[f.name] = value
    if kind == "dialogue":
        kwargs.setdefault("speaker", None)  # omitted for narration

    try:
        return cls(**kwargs)
    except TypeError as e:
        raise ASTFormatError(f"{kind} node is missing fields ({e})")


def script_from_dict(data: Dict[str, Any], validate: bool = True) -> Script:
    if validate:
        validate_script_dict(data)
    meta_in = data.get("metadata") or {}
    meta = ScriptMetadata(file_path=meta_in.get("filePath", ""))
    if meta_in.get("version"):
        meta.version = meta_in["version"]
    if meta_in.get("parseTime"):
        try:
            meta.parse_time = datetime.fromisoformat(meta_in["parseTime"])
        except ValueError:
            raise ASTFormatError(f"bad parseTime {meta_in['parseTime']!r}", path="/metadata/parseTime")
    return Script(statements=_block_from_list(data.get("statements")), metadata=meta)


# ---- text --------------------------------------------------------------------

def dumps(script: Script, indent: int = 2) -> str:
    return json.dumps(script_to_dict(script), indent=indent, ensure_ascii=False)


def loads(text: str, validate: bool = True) -> Script:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ASTFormatError(f"invalid JSON ({e.msg} at line {e.lineno})")
    return script_from_dict(data, validate=validate)
