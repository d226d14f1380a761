# rpyscript/generator.py
# Deterministic Script AST -> text.
# Rules:
#   - fixed indentation width at every depth; empty bodies emit `pass`
#   - absent optional fields (None, "", []) emit nothing
#   - strings are double-quoted with \ " newline tab escaped
#   - raw content is emitted verbatim, each line prefixed with the current indent
#   - top-level blank lines around labels, define/default groups and raw blocks

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .config import EngineConfig
from .errors import EngineInvariantError
from .nodes import (
    CallStmt, DefaultStmt, DefineStmt, DialogueStmt, DisplayOptions, HideStmt, IfStmt,
    JumpStmt, LabelStmt, MenuStmt, NvlStmt, PauseStmt, PlayStmt, PythonStmt, RawStmt,
    ReturnStmt, SceneStmt, Script, SetStmt, ShowStmt, Stmt, StopStmt, WithStmt,
)
from .parser import is_assignment
from .strings import format_number, join_arguments, quote

log = logging.getLogger(__name__)


@dataclass
class GeneratorOptions:
    indent_size: int = 4
    insert_blank_lines: bool = True

    @classmethod
    def from_config(cls, config: EngineConfig) -> "GeneratorOptions":
        return cls(indent_size=config.indent_size, insert_blank_lines=config.insert_blank_lines)


def _present(value) -> bool:
    return value is not None and value != "" and value != []


def _is_block_raw(node: Stmt) -> bool:
    return isinstance(node, RawStmt) and "\n" in node.content


def _needs_blank_line(current: Stmt, nxt: Stmt) -> bool:
    if isinstance(current, LabelStmt) or isinstance(nxt, LabelStmt):
        return True
    defs = (DefineStmt, DefaultStmt)
    if isinstance(current, defs) and not isinstance(nxt, defs):
        return True
    return _is_block_raw(current) or _is_block_raw(nxt)


class CodeGenerator:
    def __init__(self, options: Optional[GeneratorOptions] = None):
        self.options = options or GeneratorOptions()
        self._emitters: Dict[str, Callable[[Stmt, int], List[str]]] = {
            "label": self._label,
            "dialogue": self._dialogue,
            "menu": self._menu,
            "scene": self._display,
            "show": self._display,
            "hide": self._display,
            "with": self._with,
            "jump": self._jump,
            "call": self._call,
            "return": self._return,
            "if": self._if,
            "set": self._set,
            "python": self._python,
            "define": self._define,
            "default": self._default,
            "play": self._play,
            "stop": self._stop,
            "pause": self._pause,
            "nvl": self._nvl,
            "raw": self._raw,
        }

    # ---- entry points --------------------------------------------------------

    def generate(self, script: Script) -> str:
        lines: List[str] = []
        stmts = script.statements
        for i, node in enumerate(stmts):
            lines.extend(self.lines_for(node, 0))
            if (self.options.insert_blank_lines and i + 1 < len(stmts)
                    and _needs_blank_line(node, stmts[i + 1])):
                lines.append("")
        log.debug("generated %d lines from %d top-level statements", len(lines), len(stmts))
        return "\n".join(lines) + "\n" if lines else ""

    def generate_node(self, node: Stmt, indent: int = 0) -> str:
        return "\n".join(self.lines_for(node, indent))

    def lines_for(self, node: Stmt, indent: int) -> List[str]:
        emit = self._emitters.get(getattr(node, "kind", ""))
        if emit is None:
            raise EngineInvariantError(f"no emitter for node {type(node).__name__}")
        return emit(node, indent)

    # ---- helpers -------------------------------------------------------------

    def _pad(self, indent: int) -> str:
        return " " * (self.options.indent_size * indent)

    def _body(self, body: List[Stmt], indent: int) -> List[str]:
        if not body:
            return [self._pad(indent) + "pass"]
        out: List[str] = []
        for st in body:
            out.extend(self.lines_for(st, indent))
        return out

    # ---- control flow --------------------------------------------------------

    def _label(self, node: LabelStmt, indent: int) -> List[str]:
        params = f"({join_arguments(node.parameters)})" if _present(node.parameters) else ""
        return [f"{self._pad(indent)}label {node.name}{params}:"] + self._body(node.body, indent + 1)

    def _jump(self, node: JumpStmt, indent: int) -> List[str]:
        expr = "expression " if node.expression else ""
        return [f"{self._pad(indent)}jump {expr}{node.target}"]

    def _call(self, node: CallStmt, indent: int) -> List[str]:
        parts = ["call"]
        if node.expression:
            parts += ["expression", node.target]
            if _present(node.arguments):
                parts += ["pass", f"({join_arguments(node.arguments)})"]
        elif _present(node.arguments):
            parts.append(f"{node.target}({join_arguments(node.arguments)})")
        else:
            parts.append(node.target)
        if _present(node.from_label):
            parts += ["from", node.from_label]
        return [self._pad(indent) + " ".join(parts)]

    def _return(self, node: ReturnStmt, indent: int) -> List[str]:
        value = f" {node.value}" if _present(node.value) else ""
        return [f"{self._pad(indent)}return{value}"]

    def _if(self, node: IfStmt, indent: int) -> List[str]:
        out: List[str] = []
        for i, br in enumerate(node.branches):
            if br.condition is None:
                head = "else:"
            elif i == 0:
                head = f"if {br.condition}:"
            else:
                head = f"elif {br.condition}:"
            out.append(self._pad(indent) + head)
            out.extend(self._body(br.body, indent + 1))
        return out

    def _menu(self, node: MenuStmt, indent: int) -> List[str]:
        head = "menu"
        if _present(node.name):
            head += f" {node.name}"
        if _present(node.screen):
            head += f"(screen={quote(node.screen)})"
        out = [f"{self._pad(indent)}{head}:"]
        inner = self._pad(indent + 1)
        if _present(node.prompt):
            speaker = f"{node.prompt_speaker} " if _present(node.prompt_speaker) else ""
            out.append(f"{inner}{speaker}{quote(node.prompt)}")
        if _present(node.set_var):
            out.append(f"{inner}set {node.set_var}")
        for choice in node.choices:
            cond = f" if {choice.condition}" if _present(choice.condition) else ""
            out.append(f"{inner}{quote(choice.text)}{cond}:")
            out.extend(self._body(choice.body, indent + 2))
        if len(out) == 1:
            out.append(inner + "pass")
        return out

    # ---- dialogue ------------------------------------------------------------

    def _dialogue(self, node: DialogueStmt, indent: int) -> List[str]:
        parts: List[str] = []
        if node.extend:
            parts.append("extend")
        elif _present(node.speaker):
            parts.append(node.speaker)
        if _present(node.attributes):
            if not parts:
                raise EngineInvariantError(f"narration {node.id} has attributes but no speaker")
            parts.extend(node.attributes)
        text = quote(node.text)
        if _present(node.arguments):
            text += f" ({join_arguments(node.arguments)})"
        parts.append(text)
        if _present(node.transition):
            parts += ["with", node.transition]
        return [self._pad(indent) + " ".join(parts)]

    # ---- display -------------------------------------------------------------

    def _display(self, node: Stmt, indent: int) -> List[str]:
        opts: DisplayOptions = node.options
        parts = [node.kind, node.image]
        if _present(opts.attributes):
            parts.extend(opts.attributes)
        if _present(opts.as_tag):
            parts += ["as", opts.as_tag]
        if _present(opts.at_position):
            parts += ["at", opts.at_position]
        if _present(opts.behind):
            parts += ["behind", opts.behind]
        if _present(opts.layer):
            parts += ["onlayer", opts.layer]
        if opts.zorder is not None:
            parts += ["zorder", str(opts.zorder)]
        if _present(opts.transition):
            parts += ["with", opts.transition]
        return [self._pad(indent) + " ".join(parts)]

    def _with(self, node: WithStmt, indent: int) -> List[str]:
        return [f"{self._pad(indent)}with {node.transition}"]

    # ---- variables and python ------------------------------------------------

    def _set(self, node: SetStmt, indent: int) -> List[str]:
        return [f"{self._pad(indent)}$ {node.variable} {node.operator or '='} {node.value}"]

    def _python(self, node: PythonStmt, indent: int) -> List[str]:
        code = node.code or ""
        one_line = code.strip() and "\n" not in code.strip() and not is_assignment(code)
        if one_line and not (node.early or node.hide or node.init):
            return [f"{self._pad(indent)}$ {code.strip()}"]
        head = "init python" if node.init else "python"
        if node.early:
            head += " early"
        if node.hide:
            head += " hide"
        out = [f"{self._pad(indent)}{head}:"]
        inner = self._pad(indent + 1)
        code_lines = [ln for ln in code.split("\n") if ln.strip()]
        if not code_lines:
            out.append(inner + "pass")
        else:
            out.extend(inner + ln.rstrip() for ln in _dedent(code_lines))
        return out

    def _define(self, node: DefineStmt, indent: int) -> List[str]:
        name = f"{node.store}.{node.name}" if _present(node.store) else node.name
        return [f"{self._pad(indent)}define {name} = {node.value}"]

    def _default(self, node: DefaultStmt, indent: int) -> List[str]:
        return [f"{self._pad(indent)}default {node.name} = {node.value}"]

    # ---- audio and pacing ----------------------------------------------------

    def _play(self, node: PlayStmt, indent: int) -> List[str]:
        o = node.options
        opts: List[str] = []
        if o.fade_in is not None:
            opts += ["fadein", format_number(o.fade_in)]
        if o.fade_out is not None:
            opts += ["fadeout", format_number(o.fade_out)]
        if o.volume is not None:
            opts += ["volume", format_number(o.volume)]
        if o.loop is not None:
            opts.append("loop" if o.loop else "noloop")
        if o.if_changed:
            opts.append("if_changed")

        if o.queue:
            parts = ["queue", node.channel, quote(node.file)]
        elif node.channel == "voice" and not opts:
            parts = ["voice", quote(node.file)]
        else:
            parts = ["play", node.channel, quote(node.file)]
        return [self._pad(indent) + " ".join(parts + opts)]

    def _stop(self, node: StopStmt, indent: int) -> List[str]:
        fade = f" fadeout {format_number(node.fade_out)}" if node.fade_out is not None else ""
        return [f"{self._pad(indent)}stop {node.channel}{fade}"]

    def _pause(self, node: PauseStmt, indent: int) -> List[str]:
        dur = f" {format_number(node.duration)}" if node.duration is not None else ""
        return [f"{self._pad(indent)}pause{dur}"]

    def _nvl(self, node: NvlStmt, indent: int) -> List[str]:
        return [f"{self._pad(indent)}nvl {node.action}"]

    def _raw(self, node: RawStmt, indent: int) -> List[str]:
        pad = self._pad(indent)
        return [pad + ln for ln in (node.content or "").split("\n")]


def _dedent(lines: List[str]) -> List[str]:
    """Strip the common leading whitespace of non-blank lines (spaces and tabs as-is)."""
    widths = [len(ln) - len(ln.lstrip()) for ln in lines]
    cut = min(widths) if widths else 0
    return [ln[cut:] for ln in lines]


# ---- Public entry points -----------------------------------------------------

def generate(script: Script, options: Optional[GeneratorOptions] = None) -> str:
    return CodeGenerator(options).generate(script)


def generate_node(node: Stmt, indent: int = 0, options: Optional[GeneratorOptions] = None) -> str:
    return CodeGenerator(options).generate_node(node, indent)
