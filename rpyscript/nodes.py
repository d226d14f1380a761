# rpyscript/nodes.py
# AST node model for scripts.
# One dataclass per statement kind; every kind carries:
#   id    - opaque identifier stamped by the node factory (bookkeeping only)
#   line  - 1-based source line, None when built programmatically
# Long tails of optional clauses live in small option records
# (DisplayOptions, AudioOptions) so comparison and emission stay mechanical.

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import ClassVar, Dict, Iterator, List, Optional, Tuple, Type

FORMAT_VERSION = "1.0.0"

CHANNELS = ("music", "sound", "voice")
NVL_ACTIONS = ("show", "hide", "clear")
SET_OPERATORS = ("=", "+=", "-=", "*=", "/=")


class Stmt:
    """Base class for statement nodes."""
    kind: ClassVar[str] = ""
    id: str
    line: Optional[int]


# ----------------------------
# Option records
# ----------------------------

@dataclass
class DisplayOptions:
    """Clauses shared by scene/show/hide, in emission order."""
    attributes: Optional[List[str]] = None
    as_tag: Optional[str] = None
    at_position: Optional[str] = None
    behind: Optional[str] = None
    layer: Optional[str] = None
    zorder: Optional[int] = None
    transition: Optional[str] = None


@dataclass
class AudioOptions:
    fade_in: Optional[float] = None
    fade_out: Optional[float] = None
    volume: Optional[float] = None
    loop: Optional[bool] = None         # True -> loop, False -> noloop
    queue: Optional[bool] = None
    if_changed: Optional[bool] = None


# ----------------------------
# Compound parts
# ----------------------------

@dataclass
class MenuChoice:
    text: str
    body: List[Stmt] = field(default_factory=list)
    condition: Optional[str] = None
    line: Optional[int] = None


@dataclass
class IfBranch:
    condition: Optional[str]            # None is the else branch
    body: List[Stmt] = field(default_factory=list)
    line: Optional[int] = None


# ----------------------------
# Statements
# ----------------------------

@dataclass
class LabelStmt(Stmt):
    kind: ClassVar[str] = "label"
    id: str
    name: str
    body: List[Stmt] = field(default_factory=list)
    parameters: Optional[List[str]] = None
    line: Optional[int] = None


@dataclass
class DialogueStmt(Stmt):
    kind: ClassVar[str] = "dialogue"
    id: str
    speaker: Optional[str]              # None is narration
    text: str
    attributes: Optional[List[str]] = None
    transition: Optional[str] = None
    extend: Optional[bool] = None
    arguments: Optional[List[str]] = None
    line: Optional[int] = None


@dataclass
class MenuStmt(Stmt):
    kind: ClassVar[str] = "menu"
    id: str
    choices: List[MenuChoice] = field(default_factory=list)
    prompt: Optional[str] = None
    prompt_speaker: Optional[str] = None
    set_var: Optional[str] = None
    screen: Optional[str] = None
    name: Optional[str] = None
    line: Optional[int] = None


@dataclass
class SceneStmt(Stmt):
    kind: ClassVar[str] = "scene"
    id: str
    image: str
    options: DisplayOptions = field(default_factory=DisplayOptions)
    line: Optional[int] = None


@dataclass
class ShowStmt(Stmt):
    kind: ClassVar[str] = "show"
    id: str
    image: str
    options: DisplayOptions = field(default_factory=DisplayOptions)
    line: Optional[int] = None


@dataclass
class HideStmt(Stmt):
    kind: ClassVar[str] = "hide"
    id: str
    image: str
    options: DisplayOptions = field(default_factory=DisplayOptions)
    line: Optional[int] = None


@dataclass
class WithStmt(Stmt):
    kind: ClassVar[str] = "with"
    id: str
    transition: str
    line: Optional[int] = None


@dataclass
class JumpStmt(Stmt):
    kind: ClassVar[str] = "jump"
    id: str
    target: str
    expression: Optional[bool] = None
    line: Optional[int] = None


@dataclass
class CallStmt(Stmt):
    kind: ClassVar[str] = "call"
    id: str
    target: str
    arguments: Optional[List[str]] = None
    expression: Optional[bool] = None
    from_label: Optional[str] = None
    line: Optional[int] = None


@dataclass
class ReturnStmt(Stmt):
    kind: ClassVar[str] = "return"
    id: str
    value: Optional[str] = None
    line: Optional[int] = None


@dataclass
class IfStmt(Stmt):
    kind: ClassVar[str] = "if"
    id: str
    branches: List[IfBranch] = field(default_factory=list)
    line: Optional[int] = None


@dataclass
class SetStmt(Stmt):
    kind: ClassVar[str] = "set"
    id: str
    variable: str
    value: str
    operator: str = "="
    line: Optional[int] = None


@dataclass
class PythonStmt(Stmt):
    kind: ClassVar[str] = "python"
    id: str
    code: str
    early: Optional[bool] = None
    hide: Optional[bool] = None
    init: Optional[bool] = None
    line: Optional[int] = None


@dataclass
class DefineStmt(Stmt):
    kind: ClassVar[str] = "define"
    id: str
    name: str
    value: str
    store: Optional[str] = None
    line: Optional[int] = None


@dataclass
class DefaultStmt(Stmt):
    kind: ClassVar[str] = "default"
    id: str
    name: str
    value: str
    line: Optional[int] = None


@dataclass
class PlayStmt(Stmt):
    kind: ClassVar[str] = "play"
    id: str
    channel: str
    file: str
    options: AudioOptions = field(default_factory=AudioOptions)
    line: Optional[int] = None


@dataclass
class StopStmt(Stmt):
    kind: ClassVar[str] = "stop"
    id: str
    channel: str
    fade_out: Optional[float] = None
    line: Optional[int] = None


@dataclass
class PauseStmt(Stmt):
    kind: ClassVar[str] = "pause"
    id: str
    duration: Optional[float] = None
    line: Optional[int] = None


@dataclass
class NvlStmt(Stmt):
    kind: ClassVar[str] = "nvl"
    id: str
    action: str
    line: Optional[int] = None


@dataclass
class RawStmt(Stmt):
    kind: ClassVar[str] = "raw"
    id: str
    content: str
    line: Optional[int] = None


STATEMENT_TYPES: Dict[str, Type[Stmt]] = {
    cls.kind: cls
    for cls in (
        LabelStmt, DialogueStmt, MenuStmt, SceneStmt, ShowStmt, HideStmt,
        WithStmt, JumpStmt, CallStmt, ReturnStmt, IfStmt, SetStmt,
        PythonStmt, DefineStmt, DefaultStmt, PlayStmt, StopStmt, PauseStmt,
        NvlStmt, RawStmt,
    )
}


# ----------------------------
# Script root
# ----------------------------

def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


@dataclass
class ScriptMetadata:
    file_path: str = ""
    parse_time: datetime = field(default_factory=_utc_now)
    version: str = FORMAT_VERSION


@dataclass
class Script:
    statements: List[Stmt] = field(default_factory=list)
    metadata: ScriptMetadata = field(default_factory=ScriptMetadata)


# ----------------------------
# Traversal
# ----------------------------

def child_blocks(stmt: Stmt) -> List[List[Stmt]]:
    """Nested statement lists owned by `stmt`, in source order."""
    if isinstance(stmt, LabelStmt):
        return [stmt.body]
    if isinstance(stmt, MenuStmt):
        return [c.body for c in stmt.choices]
    if isinstance(stmt, IfStmt):
        return [b.body for b in stmt.branches]
    return []


def walk(statements: List[Stmt], depth: int = 0) -> Iterator[Tuple[int, Stmt]]:
    """Depth-first (depth, statement) pairs over a statement list."""
    for st in statements:
        yield depth, st
        for block in child_blocks(st):
            yield from walk(block, depth + 1)
