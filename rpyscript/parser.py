# rpyscript/parser.py
# Parses script text into a Script AST.
# Pipeline:
#   scan()        -> logical lines with depth (scanner.py)
#   ScriptParser  -> recursive descent over the lines, one handler per keyword
#
# Recovery rules (a diagnostic is recorded, parsing continues):
#   - keyword line whose rule does not match      -> Raw (block if it ends with ':')
#   - missing ':' on a compound header            -> still parsed as that statement
#   - unterminated quote in a dialogue-like line  -> Raw
#   - deeper lines with no compound header        -> one Raw block
#   - 'elif' / 'else' with no open 'if'           -> Raw block
#   - unknown line inside a menu                  -> whole menu kept as one Raw block

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from . import strings
from .config import EngineConfig
from .errors import Diagnostic, STRUCTURE, SYNTAX
from .factory import NodeFactory
from .nodes import CHANNELS, MenuChoice, RawStmt, Script, Stmt
from .scanner import LogicalLine, scan

log = logging.getLogger(__name__)

STR = strings.STRING
NUM = strings.NUMBER
IDENT = r"[A-Za-z_]\w*"
DOTTED = r"[A-Za-z_][\w.]*"

# ---- Line patterns -----------------------------------------------------------

_WORD_RE = re.compile(r"^(\$|[A-Za-z_]\w*)")

_LABEL_RE = re.compile(rf"^label\s+(?P<name>\.?{DOTTED})\s*(?P<params>\(.*\))?$")
_MENU_RE = re.compile(rf"^menu(?:\s+(?P<name>{IDENT}))?\s*(?:\((?P<args>.*)\))?$")
_MENU_SCREEN_RE = re.compile(rf"^screen\s*=\s*(?:(?P<quoted>{STR})|(?P<word>{IDENT}))$")
_MENU_SET_RE = re.compile(rf"^set\s+(?P<var>{DOTTED})$")
_MENU_PROMPT_RE = re.compile(rf"^(?P<speaker>{IDENT})\s+(?P<text>{STR})$")
_CHOICE_RE = re.compile(rf"^(?P<text>{STR})(?:\s+if\s+(?P<cond>.+))?$")

_IF_RE = re.compile(r"^if\s+(?P<cond>.+)$")
_ELIF_RE = re.compile(r"^elif\s+(?P<cond>.+)$")
_ELSE_RE = re.compile(r"^else$")

_DISPLAY_RE = re.compile(r"^(?P<verb>scene|show|hide)\s+(?P<rest>.+)$")
_IMAGE_RE = re.compile(r"^[\w][\w.\-]*$")
_DISPLAY_CLAUSES = ("as", "at", "behind", "onlayer", "zorder", "with")
_SINGLE_WORD_CLAUSES = ("as", "onlayer", "zorder")
_INT_RE = re.compile(r"^-?\d+$")

_WITH_RE = re.compile(r"^with\s+(?P<transition>.+)$")
_JUMP_EXPR_RE = re.compile(r"^jump\s+expression\s+(?P<target>.+)$")
_JUMP_RE = re.compile(rf"^jump\s+(?P<target>\.?{DOTTED})$")
_CALL_RE = re.compile(r"^call\s+(?:(?P<expr>expression)\s+)?(?P<rest>.+)$")
_CALL_FROM_RE = re.compile(rf"\s+from\s+(?P<label>{DOTTED})$")
_CALL_PASS_RE = re.compile(r"\s+pass\s*(?P<args>\(.*\))$")
_CALL_TARGET_RE = re.compile(rf"^(?P<target>\.?{DOTTED})\s*(?P<args>\(.*\))?$")
_RETURN_RE = re.compile(r"^return(?:\s+(?P<value>.+))?$")

_ASSIGN_RE = re.compile(rf"^(?P<var>{DOTTED})\s*(?P<op>[-+*/]?=)(?!=)\s*(?P<value>\S.*)$")
_PYTHON_RE = re.compile(r"^(?P<init>init\s+)?python(?P<flags>(?:\s+(?:early|hide))*)$")
_DEFINE_RE = re.compile(
    rf"^define\s+(?:(?P<store>{IDENT}(?:\.{IDENT})*)\.)?(?P<name>{IDENT})\s*=(?!=)\s*(?P<value>\S.*)$"
)
_DEFAULT_RE = re.compile(rf"^default\s+(?P<name>{DOTTED})\s*=(?!=)\s*(?P<value>\S.*)$")

_PLAY_RE = re.compile(rf"^(?P<verb>play|queue)\s+(?P<channel>\w+)\s+(?P<file>{STR})(?P<opts>.*)$")
_VOICE_RE = re.compile(rf"^voice\s+(?P<file>{STR})$")
_STOP_RE = re.compile(rf"^stop\s+(?P<channel>\w+)(?:\s+fadeout\s+(?P<fade>{NUM}))?$")
_PAUSE_RE = re.compile(rf"^pause(?:\s+(?P<duration>{NUM}))?$")
_NVL_RE = re.compile(r"^nvl\s+(?P<action>show|hide|clear)$")
_PASS_RE = re.compile(r"^pass$")

_NARRATION_RE = re.compile(rf"^(?P<text>{STR})(?P<rest>.*)$")
_SAY_RE = re.compile(rf"^(?P<speaker>{IDENT})(?P<attrs>(?:\s+-?\w+)*)\s+(?P<text>{STR})(?P<rest>.*)$")
_EXTEND_RE = re.compile(rf"^extend(?P<attrs>(?:\s+-?\w+)*)\s+(?P<text>{STR})(?P<rest>.*)$")
_SAY_SHAPE_RE = re.compile(r"""^(?:(?:[A-Za-z_]\w*)(?:\s+-?\w+)*\s+)?["']""")
_SAY_WITH_RE = re.compile(r"^with\s+(?P<transition>.+)$")


def is_assignment(code: str) -> bool:
    """True when a one-line `$` statement with this code would parse as a Set."""
    return bool(_ASSIGN_RE.match((code or "").strip()))


# ---- Helpers -----------------------------------------------------------------

def _split_header(content: str) -> Tuple[str, bool]:
    """'label start:' -> ('label start', True)"""
    s = content.rstrip()
    if s.endswith(":"):
        return s[:-1].rstrip(), True
    return s, False


def _relative(lines: List[LogicalLine]) -> str:
    """Join lines keeping indentation relative to the shallowest one."""
    base = min(ln.indent for ln in lines)
    return "\n".join(" " * (ln.indent - base) + ln.content for ln in lines)


def _balanced_args(text: Optional[str]) -> Optional[List[str]]:
    """'(a, b)' -> ['a', 'b']; None when the parenthesis does not close at the end."""
    if text is None or strings.matching_paren(text, 0) != len(text) - 1:
        return None
    return strings.split_arguments(text[1:-1])


def _words(text: str) -> List[str]:
    """Whitespace split that keeps bracketed and quoted runs together."""
    out: List[str] = []
    buf: List[str] = []
    depth = 0
    open_q: Optional[str] = None
    i, n = 0, len(text)
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
        elif ch in "([{":
            depth += 1
            buf.append(ch)
        elif ch in ")]}":
            depth -= 1
            buf.append(ch)
        elif ch.isspace() and depth <= 0:
            if buf:
                out.append("".join(buf))
                buf = []
        else:
            buf.append(ch)
        i += 1
    if buf:
        out.append("".join(buf))
    return out


def _say_tail(rest: str):
    """Trailing '(args)' and 'with transition' after a dialogue string."""
    rest = rest.strip()
    args = None
    if rest.startswith("("):
        end = strings.matching_paren(rest, 0)
        if end < 0:
            return None
        args = strings.split_arguments(rest[1:end])
        rest = rest[end + 1:].strip()
    transition = None
    if rest:
        m = _SAY_WITH_RE.match(rest)
        if not m:
            return None
        transition = m.group("transition").strip()
    return args, transition


def _audio_options(text: str) -> Optional[Dict[str, object]]:
    words = text.split()
    opts: Dict[str, object] = {}
    i = 0
    while i < len(words):
        w = words[i]
        if w in ("fadein", "fadeout", "volume"):
            if w in opts or i + 1 >= len(words) or not strings.is_number(words[i + 1]):
                return None
            opts[w] = strings.parse_number(words[i + 1])
            i += 2
        elif w in ("loop", "noloop"):
            if "loop" in opts:
                return None
            opts["loop"] = (w == "loop")
            i += 1
        elif w == "if_changed":
            if w in opts:
                return None
            opts[w] = True
            i += 1
        else:
            return None
    return opts


# ---- Parser ------------------------------------------------------------------

@dataclass
class ParseResult:
    ast: Script
    errors: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class ScriptParser:
    def __init__(self, factory: Optional[NodeFactory] = None, config: Optional[EngineConfig] = None):
        self.factory = factory or NodeFactory()
        self.config = config or EngineConfig()
        self._lines: List[LogicalLine] = []
        self._i = 0
        self._errors: List[Diagnostic] = []
        self._handlers: Dict[str, Callable[[LogicalLine], Optional[Stmt]]] = {
            "label": self._label,
            "menu": self._menu,
            "if": self._if,
            "elif": self._stray_branch,
            "else": self._stray_branch,
            "scene": self._display,
            "show": self._display,
            "hide": self._display,
            "with": self._with,
            "jump": self._jump,
            "call": self._call,
            "return": self._return,
            "$": self._dollar,
            "python": self._python,
            "init": self._python,
            "define": self._define,
            "default": self._default,
            "play": self._play,
            "queue": self._play,
            "voice": self._voice,
            "stop": self._stop,
            "pause": self._pause,
            "nvl": self._nvl,
            "extend": self._extend,
            "pass": self._pass,
        }

    def parse(self, source: str, file_identifier: str = "") -> ParseResult:
        self._lines, scan_errors = scan(source, tab_size=self.config.tab_size)
        self._i = 0
        self._errors = list(scan_errors)
        statements = self._parse_block(0)
        script = self.factory.script(statements, file_path=file_identifier,
                                     version=self.config.format_version)
        errors = sorted(self._errors, key=lambda d: d.line)
        log.debug("parsed %s: %d top-level statements, %d diagnostics",
                  file_identifier or "<string>", len(statements), len(errors))
        return ParseResult(ast=script, errors=errors)

    # ---- cursor --------------------------------------------------------------

    def _peek(self) -> Optional[LogicalLine]:
        return self._lines[self._i] if self._i < len(self._lines) else None

    def _pop(self) -> LogicalLine:
        ln = self._lines[self._i]
        self._i += 1
        return ln

    def _has_block(self, ln: LogicalLine) -> bool:
        nxt = self._peek()
        return nxt is not None and nxt.depth > ln.depth

    def _take_deeper(self, depth: int) -> List[LogicalLine]:
        out: List[LogicalLine] = []
        while True:
            nxt = self._peek()
            if nxt is None or nxt.depth <= depth:
                return out
            out.append(self._pop())

    def _error(self, ln: LogicalLine, message: str, kind: str = SYNTAX) -> None:
        self._errors.append(Diagnostic(ln.line, message, kind))

    # ---- blocks --------------------------------------------------------------

    def _parse_block(self, depth: int) -> List[Stmt]:
        out: List[Stmt] = []
        while True:
            ln = self._peek()
            if ln is None or ln.depth < depth:
                return out
            if ln.depth > depth:
                self._error(ln, "unexpected indentation")
                run = self._take_deeper(depth)
                out.append(self.factory.raw(_relative(run), line=run[0].line))
                continue
            out.append(self._parse_statement())

    def _parse_body(self, header: LogicalLine) -> List[Stmt]:
        """Statements nested under `header`; a lone `pass` is an empty body."""
        if not self._has_block(header):
            return []
        start = self._i
        body = self._parse_block(header.depth + 1)
        if (self._i - start == 1 and len(body) == 1 and isinstance(body[0], RawStmt)
                and body[0].content.strip() == "pass"):
            return []
        return body

    def _parse_statement(self) -> Stmt:
        ln = self._pop()
        m = _WORD_RE.match(ln.content)
        if m:
            handler = self._handlers.get(m.group(1))
            if handler is not None:
                node = handler(ln)
                if node is not None:
                    return node
                return self._raw(ln)
        node = self._say(ln)
        if node is not None:
            return node
        if _SAY_SHAPE_RE.match(ln.content) and strings.has_unterminated_quote(ln.content):
            self._error(ln, "unterminated string literal")
        return self._raw(ln)

    def _raw(self, ln: LogicalLine) -> RawStmt:
        _, colon = _split_header(ln.content)
        if colon and self._has_block(ln):
            block = [ln] + self._take_deeper(ln.depth)
            return self.factory.raw(_relative(block), line=ln.line)
        return self.factory.raw(ln.content, line=ln.line)

    # ---- control flow --------------------------------------------------------

    def _label(self, ln: LogicalLine) -> Optional[Stmt]:
        head, colon = _split_header(ln.content)
        m = _LABEL_RE.match(head)
        if not m:
            return None
        params = None
        if m.group("params") is not None:
            params = _balanced_args(m.group("params"))
            if params is None:
                return None
        if not colon:
            self._error(ln, f"expected ':' after 'label {m.group('name')}'")
        body = self._parse_body(ln)
        return self.factory.label(m.group("name"), body, parameters=params, line=ln.line)

    def _if(self, ln: LogicalLine) -> Optional[Stmt]:
        head, colon = _split_header(ln.content)
        m = _IF_RE.match(head)
        if not m:
            return None
        if not colon:
            self._error(ln, "expected ':' after 'if' condition")
        branches = [self.factory.if_branch(m.group("cond"), self._parse_body(ln), line=ln.line)]
        seen_else = False
        while True:
            nxt = self._peek()
            if nxt is None or nxt.depth != ln.depth:
                break
            bhead, bcolon = _split_header(nxt.content)
            em = _ELIF_RE.match(bhead)
            if not em and not _ELSE_RE.match(bhead):
                break
            self._pop()
            word = "elif" if em else "else"
            if seen_else:
                self._error(nxt, f"'{word}' after 'else' in the same if statement", STRUCTURE)
            if not bcolon:
                self._error(nxt, f"expected ':' after '{word}'")
            cond = em.group("cond") if em else None
            branches.append(self.factory.if_branch(cond, self._parse_body(nxt), line=nxt.line))
            seen_else = seen_else or cond is None
        return self.factory.if_(branches, line=ln.line)

    def _stray_branch(self, ln: LogicalLine) -> Stmt:
        word = _WORD_RE.match(ln.content).group(1)
        self._error(ln, f"'{word}' without a matching 'if'", STRUCTURE)
        return self._raw(ln)

    def _jump(self, ln: LogicalLine) -> Optional[Stmt]:
        text = ln.content.rstrip()
        m = _JUMP_EXPR_RE.match(text)
        if m:
            return self.factory.jump(m.group("target"), expression=True, line=ln.line)
        m = _JUMP_RE.match(text)
        if m:
            return self.factory.jump(m.group("target"), line=ln.line)
        return None

    def _call(self, ln: LogicalLine) -> Optional[Stmt]:
        m = _CALL_RE.match(ln.content.rstrip())
        if not m:
            return None
        rest = m.group("rest").strip()
        from_label = None
        fm = _CALL_FROM_RE.search(rest)
        if fm:
            from_label = fm.group("label")
            rest = rest[:fm.start()].rstrip()

        if m.group("expr"):
            args = None
            pm = _CALL_PASS_RE.search(rest)
            if pm:
                args = _balanced_args(pm.group("args"))
                if args is None:
                    return None
                rest = rest[:pm.start()].rstrip()
            if not rest:
                return None
            return self.factory.call(rest, arguments=args, expression=True,
                                     from_label=from_label, line=ln.line)

        tm = _CALL_TARGET_RE.match(rest)
        if not tm:
            return None
        args = None
        if tm.group("args") is not None:
            args = _balanced_args(tm.group("args"))
            if args is None:
                return None
        return self.factory.call(tm.group("target"), arguments=args,
                                 from_label=from_label, line=ln.line)

    def _return(self, ln: LogicalLine) -> Optional[Stmt]:
        m = _RETURN_RE.match(ln.content.rstrip())
        if not m:
            return None
        return self.factory.return_(m.group("value"), line=ln.line)

    # ---- menus ---------------------------------------------------------------

    def _menu(self, ln: LogicalLine) -> Optional[Stmt]:
        head, colon = _split_header(ln.content)
        m = _MENU_RE.match(head)
        if not m:
            return None
        screen = None
        if m.group("args") is not None:
            sm = _MENU_SCREEN_RE.match(m.group("args").strip())
            if not sm:
                return None
            screen = strings.unquote(sm.group("quoted")) if sm.group("quoted") else sm.group("word")
        if not colon:
            self._error(ln, "expected ':' after 'menu'")

        choices: List[MenuChoice] = []
        fields: Dict[str, Optional[str]] = {"prompt": None, "prompt_speaker": None, "set_var": None}
        start, n_errors = self._i, len(self._errors)
        depth = ln.depth + 1
        while True:
            item = self._peek()
            if item is None or item.depth < depth:
                break
            self._pop()
            if not self._menu_item(item, choices, fields):
                return self._menu_as_raw(ln, item, start, n_errors)

        return self.factory.menu(choices, prompt=fields["prompt"],
                                 prompt_speaker=fields["prompt_speaker"],
                                 set_var=fields["set_var"], screen=screen,
                                 name=m.group("name"), line=ln.line)

    def _menu_item(self, item: LogicalLine, choices: List[MenuChoice],
                   fields: Dict[str, Optional[str]]) -> bool:
        """Fold one menu line into choices/fields; False if it is not a menu line."""
        head, colon = _split_header(item.content)
        has_block = self._has_block(item)

        m = _CHOICE_RE.match(head)
        if m:
            is_prompt = (not colon and not has_block and m.group("cond") is None
                         and fields["prompt"] is None and not choices)
            if is_prompt:
                fields["prompt"] = strings.unquote(m.group("text"))
                return True
            if not colon:
                self._error(item, "expected ':' after menu choice")
            body = self._parse_body(item)
            choices.append(self.factory.menu_choice(strings.unquote(m.group("text")), body,
                                                    m.group("cond"), line=item.line))
            return True

        if not colon and not has_block:
            if _PASS_RE.match(head):
                return True
            sm = _MENU_SET_RE.match(head)
            if sm and fields["set_var"] is None:
                fields["set_var"] = sm.group("var")
                return True
            pm = _MENU_PROMPT_RE.match(head)
            if pm and fields["prompt"] is None and not choices:
                fields["prompt"] = strings.unquote(pm.group("text"))
                fields["prompt_speaker"] = pm.group("speaker")
                return True
        return False

    def _menu_as_raw(self, header: LogicalLine, bad: LogicalLine, start: int,
                     n_errors: int) -> RawStmt:
        """Re-read the whole menu as one Raw block so no line is lost."""
        del self._errors[n_errors:]
        self._i = start
        self._error(bad, f"unrecognized line in menu, menu kept as raw text: {bad.content!r}")
        block = [header] + self._take_deeper(header.depth)
        return self.factory.raw(_relative(block), line=header.line)

    # ---- display -------------------------------------------------------------

    def _display(self, ln: LogicalLine) -> Optional[Stmt]:
        text = ln.content.rstrip()
        if text.endswith(":"):
            return None  # ATL block
        m = _DISPLAY_RE.match(text)
        if not m:
            return None
        words = _words(m.group("rest"))
        if not words or words[0] == "expression" or not _IMAGE_RE.match(words[0]):
            return None

        i = 1
        attributes: List[str] = []
        while i < len(words) and words[i] not in _DISPLAY_CLAUSES:
            attributes.append(words[i])
            i += 1

        clauses: Dict[str, str] = {}
        while i < len(words):
            kw = words[i]
            i += 1
            if kw in clauses:
                return None
            j = i
            while j < len(words) and words[j] not in _DISPLAY_CLAUSES:
                j += 1
            value = words[i:j]
            if not value or (kw in _SINGLE_WORD_CLAUSES and len(value) != 1):
                return None
            clauses[kw] = " ".join(value)
            i = j

        zorder = None
        if "zorder" in clauses:
            if not _INT_RE.match(clauses["zorder"]):
                return None
            zorder = int(clauses["zorder"])

        build = {"scene": self.factory.scene, "show": self.factory.show,
                 "hide": self.factory.hide}[m.group("verb")]
        return build(words[0], attributes=attributes, as_tag=clauses.get("as"),
                     at_position=clauses.get("at"), behind=clauses.get("behind"),
                     layer=clauses.get("onlayer"), zorder=zorder,
                     transition=clauses.get("with"), line=ln.line)

    def _with(self, ln: LogicalLine) -> Optional[Stmt]:
        m = _WITH_RE.match(ln.content.rstrip())
        if not m:
            return None
        return self.factory.with_(m.group("transition"), line=ln.line)

    # ---- variables and python ------------------------------------------------

    def _dollar(self, ln: LogicalLine) -> Optional[Stmt]:
        code = ln.content.rstrip()[1:].strip()
        if not code:
            return None
        m = _ASSIGN_RE.match(code)
        if m:
            return self.factory.set(m.group("var"), m.group("value"), operator=m.group("op"),
                                    line=ln.line)
        return self.factory.python(code, line=ln.line)

    def _python(self, ln: LogicalLine) -> Optional[Stmt]:
        head, colon = _split_header(ln.content)
        m = _PYTHON_RE.match(head)
        if not m or not colon:
            return None
        flags = m.group("flags").split()
        if len(set(flags)) != len(flags):
            return None
        block = self._take_deeper(ln.depth)
        code = _relative(block) if block else ""
        if code.strip() == "pass":
            code = ""
        return self.factory.python(
            code,
            early=True if "early" in flags else None,
            hide=True if "hide" in flags else None,
            init=True if m.group("init") else None,
            line=ln.line,
        )

    def _define(self, ln: LogicalLine) -> Optional[Stmt]:
        m = _DEFINE_RE.match(ln.content.rstrip())
        if not m:
            return None
        return self.factory.define(m.group("name"), m.group("value"), store=m.group("store"),
                                   line=ln.line)

    def _default(self, ln: LogicalLine) -> Optional[Stmt]:
        m = _DEFAULT_RE.match(ln.content.rstrip())
        if not m:
            return None
        return self.factory.default(m.group("name"), m.group("value"), line=ln.line)

    # ---- audio and pacing ----------------------------------------------------

    def _play(self, ln: LogicalLine) -> Optional[Stmt]:
        m = _PLAY_RE.match(ln.content.rstrip())
        if not m or m.group("channel") not in CHANNELS:
            return None
        opts = _audio_options(m.group("opts"))
        if opts is None:
            return None
        return self.factory.play(
            m.group("channel"), strings.unquote(m.group("file")),
            fade_in=opts.get("fadein"), fade_out=opts.get("fadeout"),
            volume=opts.get("volume"), loop=opts.get("loop"),
            queue=True if m.group("verb") == "queue" else None,
            if_changed=opts.get("if_changed"), line=ln.line,
        )

    def _voice(self, ln: LogicalLine) -> Optional[Stmt]:
        m = _VOICE_RE.match(ln.content.rstrip())
        if not m:
            return None
        return self.factory.play("voice", strings.unquote(m.group("file")), line=ln.line)

    def _stop(self, ln: LogicalLine) -> Optional[Stmt]:
        m = _STOP_RE.match(ln.content.rstrip())
        if not m or m.group("channel") not in CHANNELS:
            return None
        fade = strings.parse_number(m.group("fade")) if m.group("fade") else None
        return self.factory.stop(m.group("channel"), fade_out=fade, line=ln.line)

    def _pause(self, ln: LogicalLine) -> Optional[Stmt]:
        m = _PAUSE_RE.match(ln.content.rstrip())
        if not m:
            return None
        duration = strings.parse_number(m.group("duration")) if m.group("duration") else None
        return self.factory.pause(duration, line=ln.line)

    def _nvl(self, ln: LogicalLine) -> Optional[Stmt]:
        m = _NVL_RE.match(ln.content.rstrip())
        if not m:
            return None
        return self.factory.nvl(m.group("action"), line=ln.line)

    def _pass(self, ln: LogicalLine) -> Optional[Stmt]:
        if not _PASS_RE.match(ln.content.rstrip()):
            return None
        return self.factory.raw(ln.content, line=ln.line)

    # ---- dialogue ------------------------------------------------------------

    def _say(self, ln: LogicalLine) -> Optional[Stmt]:
        text = ln.content.rstrip()
        speaker, attributes = None, None
        m = _NARRATION_RE.match(text)
        if m is None:
            m = _SAY_RE.match(text)
            if m is None:
                return None
            speaker = m.group("speaker")
            attributes = m.group("attrs").split()
        tail = _say_tail(m.group("rest"))
        if tail is None:
            return None
        args, transition = tail
        return self.factory.dialogue(strings.unquote(m.group("text")), speaker,
                                     attributes=attributes, transition=transition,
                                     arguments=args, line=ln.line)

    def _extend(self, ln: LogicalLine) -> Optional[Stmt]:
        text = ln.content.rstrip()
        m = _EXTEND_RE.match(text)
        if m is None:
            if strings.has_unterminated_quote(text):
                self._error(ln, "unterminated string literal")
            return None
        tail = _say_tail(m.group("rest"))
        if tail is None:
            return None
        args, transition = tail
        return self.factory.dialogue(strings.unquote(m.group("text")), None,
                                     attributes=m.group("attrs").split(), transition=transition,
                                     extend=True, arguments=args, line=ln.line)


# ---- Public entry points -----------------------------------------------------

def parse(source: str, file_identifier: str = "", *, factory: Optional[NodeFactory] = None,
          config: Optional[EngineConfig] = None) -> ParseResult:
    """Parse script text. Never raises for malformed input; see ParseResult.errors."""
    return ScriptParser(factory=factory, config=config).parse(source, file_identifier)


def parse_file(path: str, *, factory: Optional[NodeFactory] = None,
               config: Optional[EngineConfig] = None) -> ParseResult:
    with open(path, "r", encoding="utf-8-sig") as f:
        source = f.read()
    return parse(source, path, factory=factory, config=config)
