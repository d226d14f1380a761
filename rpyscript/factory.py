# rpyscript/factory.py
# Node factory: stamps fresh identifiers and normalizes optional fields.
# Used by the parser and by programmatic construction (editor edits, tests).
#
# Normalization rules:
#   - optional strings: stripped; "" -> None
#   - optional lists:   items stripped, empties dropped; [] -> None
#   - image names:      "eileen happy" -> image "eileen", attributes ["happy", ...]
#   - flags/numbers:    kept as given (None stays None, never defaulted)

from __future__ import annotations
import threading
import uuid
from datetime import datetime
from typing import Iterable, List, Optional

from .nodes import (
    CHANNELS, NVL_ACTIONS, SET_OPERATORS, FORMAT_VERSION,
    AudioOptions, CallStmt, DefaultStmt, DefineStmt, DialogueStmt, DisplayOptions,
    HideStmt, IfBranch, IfStmt, JumpStmt, LabelStmt, MenuChoice, MenuStmt, NvlStmt,
    PauseStmt, PlayStmt, PythonStmt, RawStmt, ReturnStmt, SceneStmt, Script,
    ScriptMetadata, SetStmt, ShowStmt, Stmt, StopStmt, WithStmt,
)


class NodeIdGenerator:
    """Thread-safe id source. Each generator has its own prefix, so ids from
    independent generators do not collide within a process."""

    def __init__(self, prefix: Optional[str] = None):
        self.prefix = prefix or f"n{uuid.uuid4().hex[:8]}"
        self._lock = threading.Lock()
        self._counter = 0

    def next_id(self) -> str:
        with self._lock:
            self._counter += 1
            n = self._counter
        return f"{self.prefix}_{n}"

    def reset(self) -> None:
        """Test harness hook: restart numbering."""
        with self._lock:
            self._counter = 0


# --------------------------- normalizers --------------------------------------

def _opt_str(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _opt_list(values: Optional[Iterable[str]]) -> Optional[List[str]]:
    if values is None:
        return None
    out = [str(v).strip() for v in values if v is not None and str(v).strip()]
    return out or None


def _opt_flag(value: Optional[bool]) -> Optional[bool]:
    return None if value is None else bool(value)


def _opt_number(value, name: str):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    return value


def _split_image(image: str, attributes: Optional[Iterable[str]]):
    parts = str(image or "").split()
    if not parts:
        raise ValueError("image name is required")
    extra = list(attributes or [])
    return parts[0], _opt_list(parts[1:] + extra)


def _channel(channel: str) -> str:
    if channel not in CHANNELS:
        raise ValueError(f"unknown audio channel: {channel!r}")
    return channel


class NodeFactory:
    def __init__(self, ids: Optional[NodeIdGenerator] = None):
        self.ids = ids or NodeIdGenerator()

    def _id(self) -> str:
        return self.ids.next_id()

    # ---- control flow --------------------------------------------------------

    def label(self, name: str, body: Optional[List[Stmt]] = None, *,
              parameters: Optional[Iterable[str]] = None, line: Optional[int] = None) -> LabelStmt:
        return LabelStmt(id=self._id(), name=str(name).strip(), body=list(body or []),
                         parameters=_opt_list(parameters), line=line)

    def jump(self, target: str, *, expression: Optional[bool] = None,
             line: Optional[int] = None) -> JumpStmt:
        return JumpStmt(id=self._id(), target=str(target).strip(),
                        expression=_opt_flag(expression), line=line)

    def call(self, target: str, *, arguments: Optional[Iterable[str]] = None,
             expression: Optional[bool] = None, from_label: Optional[str] = None,
             line: Optional[int] = None) -> CallStmt:
        return CallStmt(id=self._id(), target=str(target).strip(),
                        arguments=_opt_list(arguments), expression=_opt_flag(expression),
                        from_label=_opt_str(from_label), line=line)

    def return_(self, value: Optional[str] = None, *, line: Optional[int] = None) -> ReturnStmt:
        return ReturnStmt(id=self._id(), value=_opt_str(value), line=line)

    def if_branch(self, condition: Optional[str], body: Optional[List[Stmt]] = None,
                  line: Optional[int] = None) -> IfBranch:
        return IfBranch(condition=_opt_str(condition), body=list(body or []), line=line)

    def if_(self, branches: List[IfBranch], *, line: Optional[int] = None) -> IfStmt:
        branches = list(branches or [])
        if not branches:
            raise ValueError("if statement needs at least one branch")
        if branches[0].condition is None:
            raise ValueError("first branch of an if statement must have a condition")
        return IfStmt(id=self._id(), branches=branches, line=line)

    def menu_choice(self, text: str, body: Optional[List[Stmt]] = None,
                    condition: Optional[str] = None, line: Optional[int] = None) -> MenuChoice:
        return MenuChoice(text=text, body=list(body or []), condition=_opt_str(condition), line=line)

    def menu(self, choices: Optional[List[MenuChoice]] = None, *, prompt: Optional[str] = None,
             prompt_speaker: Optional[str] = None, set_var: Optional[str] = None,
             screen: Optional[str] = None, name: Optional[str] = None,
             line: Optional[int] = None) -> MenuStmt:
        return MenuStmt(id=self._id(), choices=list(choices or []),
                        prompt=prompt if prompt else None,
                        prompt_speaker=_opt_str(prompt_speaker) if prompt else None,
                        set_var=_opt_str(set_var), screen=_opt_str(screen),
                        name=_opt_str(name), line=line)

    # ---- dialogue ------------------------------------------------------------

    def dialogue(self, text: str, speaker: Optional[str] = None, *,
                 attributes: Optional[Iterable[str]] = None, transition: Optional[str] = None,
                 extend: Optional[bool] = None, arguments: Optional[Iterable[str]] = None,
                 line: Optional[int] = None) -> DialogueStmt:
        speaker = _opt_str(speaker)
        if extend and speaker is not None:
            raise ValueError("extend dialogue continues the previous speaker; speaker must be None")
        attrs = _opt_list(attributes)
        if attrs and speaker is None and not extend:
            raise ValueError("attributes need a speaker or extend; narration has no image to change")
        return DialogueStmt(id=self._id(), speaker=speaker, text=text,
                            attributes=attrs, transition=_opt_str(transition),
                            extend=_opt_flag(extend), arguments=_opt_list(arguments), line=line)

    # ---- display -------------------------------------------------------------

    def _display(self, image: str, attributes, as_tag, at_position, behind, layer,
                 zorder, transition):
        name, attrs = _split_image(image, attributes)
        if zorder is not None and (isinstance(zorder, bool) or not isinstance(zorder, int)):
            raise ValueError(f"zorder must be an integer, got {zorder!r}")
        return name, DisplayOptions(
            attributes=attrs, as_tag=_opt_str(as_tag), at_position=_opt_str(at_position),
            behind=_opt_str(behind), layer=_opt_str(layer), zorder=zorder,
            transition=_opt_str(transition),
        )

    def scene(self, image: str, *, attributes: Optional[Iterable[str]] = None,
              as_tag: Optional[str] = None, at_position: Optional[str] = None,
              behind: Optional[str] = None, layer: Optional[str] = None,
              zorder: Optional[int] = None, transition: Optional[str] = None,
              line: Optional[int] = None) -> SceneStmt:
        name, opts = self._display(image, attributes, as_tag, at_position, behind,
                                   layer, zorder, transition)
        return SceneStmt(id=self._id(), image=name, options=opts, line=line)

    def show(self, image: str, *, attributes: Optional[Iterable[str]] = None,
             as_tag: Optional[str] = None, at_position: Optional[str] = None,
             behind: Optional[str] = None, layer: Optional[str] = None,
             zorder: Optional[int] = None, transition: Optional[str] = None,
             line: Optional[int] = None) -> ShowStmt:
        name, opts = self._display(image, attributes, as_tag, at_position, behind,
                                   layer, zorder, transition)
        return ShowStmt(id=self._id(), image=name, options=opts, line=line)

    def hide(self, image: str, *, attributes: Optional[Iterable[str]] = None,
             as_tag: Optional[str] = None, at_position: Optional[str] = None,
             behind: Optional[str] = None, layer: Optional[str] = None,
             zorder: Optional[int] = None, transition: Optional[str] = None,
             line: Optional[int] = None) -> HideStmt:
        name, opts = self._display(image, attributes, as_tag, at_position, behind,
                                   layer, zorder, transition)
        return HideStmt(id=self._id(), image=name, options=opts, line=line)

    def with_(self, transition: str, *, line: Optional[int] = None) -> WithStmt:
        return WithStmt(id=self._id(), transition=str(transition).strip(), line=line)

    # ---- variables / python --------------------------------------------------

    def set(self, variable: str, value: str, *, operator: str = "=",
            line: Optional[int] = None) -> SetStmt:
        operator = operator or "="
        if operator not in SET_OPERATORS:
            raise ValueError(f"unsupported assignment operator: {operator!r}")
        return SetStmt(id=self._id(), variable=str(variable).strip(), value=str(value).strip(),
                       operator=operator, line=line)

    def python(self, code: str, *, early: Optional[bool] = None, hide: Optional[bool] = None,
               init: Optional[bool] = None, line: Optional[int] = None) -> PythonStmt:
        return PythonStmt(id=self._id(), code=code or "", early=_opt_flag(early),
                          hide=_opt_flag(hide), init=_opt_flag(init), line=line)

    def define(self, name: str, value: str, *, store: Optional[str] = None,
               line: Optional[int] = None) -> DefineStmt:
        return DefineStmt(id=self._id(), name=str(name).strip(), value=str(value).strip(),
                          store=_opt_str(store), line=line)

    def default(self, name: str, value: str, *, line: Optional[int] = None) -> DefaultStmt:
        return DefaultStmt(id=self._id(), name=str(name).strip(), value=str(value).strip(),
                           line=line)

    # ---- audio / pacing ------------------------------------------------------

    def play(self, channel: str, file: str, *, fade_in: Optional[float] = None,
             fade_out: Optional[float] = None, volume: Optional[float] = None,
             loop: Optional[bool] = None, queue: Optional[bool] = None,
             if_changed: Optional[bool] = None, line: Optional[int] = None) -> PlayStmt:
        opts = AudioOptions(
            fade_in=_opt_number(fade_in, "fade_in"), fade_out=_opt_number(fade_out, "fade_out"),
            volume=_opt_number(volume, "volume"), loop=_opt_flag(loop),
            queue=_opt_flag(queue), if_changed=_opt_flag(if_changed),
        )
        return PlayStmt(id=self._id(), channel=_channel(channel), file=file, options=opts, line=line)

    def stop(self, channel: str, *, fade_out: Optional[float] = None,
             line: Optional[int] = None) -> StopStmt:
        return StopStmt(id=self._id(), channel=_channel(channel),
                        fade_out=_opt_number(fade_out, "fade_out"), line=line)

    def pause(self, duration: Optional[float] = None, *, line: Optional[int] = None) -> PauseStmt:
        return PauseStmt(id=self._id(), duration=_opt_number(duration, "duration"), line=line)

    def nvl(self, action: str, *, line: Optional[int] = None) -> NvlStmt:
        if action not in NVL_ACTIONS:
            raise ValueError(f"unknown nvl action: {action!r}")
        return NvlStmt(id=self._id(), action=action, line=line)

    def raw(self, content: str, *, line: Optional[int] = None) -> RawStmt:
        return RawStmt(id=self._id(), content=content, line=line)

    # ---- root ----------------------------------------------------------------

    def script(self, statements: Optional[List[Stmt]] = None, *, file_path: str = "",
               parse_time: Optional[datetime] = None, version: str = FORMAT_VERSION) -> Script:
        meta = ScriptMetadata(file_path=file_path or "", version=version or FORMAT_VERSION)
        if parse_time is not None:
            meta.parse_time = parse_time
        return Script(statements=list(statements or []), metadata=meta)


# --------------------------- module-level helpers -----------------------------

_DEFAULT = NodeFactory()


def default_factory() -> NodeFactory:
    return _DEFAULT


def reset_node_ids() -> None:
    """Test harness hook for the module-level helpers."""
    _DEFAULT.ids.reset()


create_label = _DEFAULT.label
create_dialogue = _DEFAULT.dialogue
create_menu = _DEFAULT.menu
create_menu_choice = _DEFAULT.menu_choice
create_scene = _DEFAULT.scene
create_show = _DEFAULT.show
create_hide = _DEFAULT.hide
create_with = _DEFAULT.with_
create_jump = _DEFAULT.jump
create_call = _DEFAULT.call
create_return = _DEFAULT.return_
create_if = _DEFAULT.if_
create_if_branch = _DEFAULT.if_branch
create_set = _DEFAULT.set
create_python = _DEFAULT.python
create_define = _DEFAULT.define
create_default = _DEFAULT.default
create_play = _DEFAULT.play
create_stop = _DEFAULT.stop
create_pause = _DEFAULT.pause
create_nvl = _DEFAULT.nvl
create_raw = _DEFAULT.raw
create_script = _DEFAULT.script
