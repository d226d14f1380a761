# tests/test_generator.py
import textwrap

import pytest

from rpyscript.errors import EngineInvariantError
from rpyscript.generator import CodeGenerator, GeneratorOptions, generate, generate_node
from rpyscript.nodes import DialogueStmt, Stmt


def _dd(s: str) -> str:
    return textwrap.dedent(s)


def test_label_dialogue_return(factory):
    f = factory
    script = f.script([f.label("start", [f.dialogue("Hello!", "e"), f.return_()])])
    assert generate(script) == _dd("""\
        label start:
            e "Hello!"
            return
    """)


def test_empty_script_is_empty_string(factory):
    assert generate(factory.script([])) == ""


def test_empty_bodies_emit_pass(factory):
    f = factory
    script = f.script([
        f.label("a"),
        f.if_([f.if_branch("x"), f.if_branch(None)]),
        f.menu(),
    ])
    out = generate(script, GeneratorOptions(insert_blank_lines=False))
    assert out == _dd("""\
        label a:
            pass
        if x:
            pass
        else:
            pass
        menu:
            pass
    """)


def test_if_elif_else_order(factory):
    f = factory
    node = f.if_([
        f.if_branch("a", [f.jump("one")]),
        f.if_branch("b", [f.jump("two")]),
        f.if_branch(None, [f.jump("three")]),
    ])
    assert generate_node(node) == "if a:\n    jump one\nelif b:\n    jump two\nelse:\n    jump three"


def test_menu_full_form(factory):
    f = factory
    menu = f.menu(
        [f.menu_choice("Left", [f.jump("left")], "has_map"), f.menu_choice("Right")],
        prompt="Where?", prompt_speaker="e", set_var="picked", screen="choice", name="chooser",
    )
    assert generate_node(menu) == _dd("""\
        menu chooser(screen="choice"):
            e "Where?"
            set picked
            "Left" if has_map:
                jump left
            "Right":
                pass""")


def test_dialogue_forms_and_escaping(factory):
    f = factory
    assert generate_node(f.dialogue('Say "hi"\n\tnow \\o/')) == r'"Say \"hi\"\n\tnow \\o/"'
    d = f.dialogue("Hi", "e", attributes=["happy"], arguments=["interact=False"], transition="dissolve")
    assert generate_node(d) == 'e happy "Hi" (interact=False) with dissolve'
    assert generate_node(f.dialogue(" more", extend=True)) == 'extend " more"'


def test_display_clause_order(factory):
    f = factory
    node = f.show("eileen happy", as_tag="e2", at_position="left", behind="lucy",
                  layer="overlay", zorder=2, transition="dissolve")
    assert generate_node(node) == \
        "show eileen happy as e2 at left behind lucy onlayer overlay zorder 2 with dissolve"
    assert generate_node(f.scene("bg room")) == "scene bg room"
    assert generate_node(f.hide("eileen")) == "hide eileen"


def test_absent_optionals_emit_nothing(factory):
    f = factory
    assert generate_node(f.call("intro", arguments=[], from_label="")) == "call intro"
    assert generate_node(f.return_("")) == "return"
    assert generate_node(f.dialogue("x", "e", attributes=[])) == 'e "x"'


def test_call_variants(factory):
    f = factory
    assert generate_node(f.call("greet", arguments=["1", "n='x'"], from_label="back")) == \
        "call greet(1, n='x') from back"
    assert generate_node(f.call("target", arguments=["1"], expression=True)) == \
        "call expression target pass (1)"
    assert generate_node(f.jump("dest", expression=True)) == "jump expression dest"


def test_set_define_default(factory):
    f = factory
    assert generate_node(f.set("points", "1", operator="+=")) == "$ points += 1"
    assert generate_node(f.define("text_size", "22", store="gui")) == "define gui.text_size = 22"
    assert generate_node(f.default("met", "False")) == "default met = False"


def test_python_single_line_and_block(factory):
    f = factory
    assert generate_node(f.python("renpy.pause(1)")) == "$ renpy.pause(1)"
    # would reparse as a Set, so it is written as a block
    assert generate_node(f.python("x = 1")) == "python:\n    x = 1"
    assert generate_node(f.python("if a:\n    b()\n\nc()", init=True, early=True)) == \
        "init python early:\n    if a:\n        b()\n    c()"
    assert generate_node(f.python("", hide=True)) == "python hide:\n    pass"


def test_audio_statements(factory):
    f = factory
    assert generate_node(f.play("music", "a.ogg", fade_in=1, fade_out=0.5, volume=0.75,
                                loop=False, if_changed=True)) == \
        'play music "a.ogg" fadein 1 fadeout 0.5 volume 0.75 noloop if_changed'
    assert generate_node(f.play("sound", "b.ogg", queue=True, loop=True)) == 'queue sound "b.ogg" loop'
    assert generate_node(f.play("voice", "v.ogg")) == 'voice "v.ogg"'
    assert generate_node(f.play("voice", "v.ogg", volume=1.0)) == 'play voice "v.ogg" volume 1.0'
    assert generate_node(f.stop("music", fade_out=2)) == "stop music fadeout 2"
    assert generate_node(f.pause()) == "pause"
    assert generate_node(f.pause(0.5)) == "pause 0.5"
    assert generate_node(f.nvl("clear")) == "nvl clear"


def test_raw_lines_are_reindented(factory):
    f = factory
    raw = f.raw("transform slide:\n    xalign 0.0")
    label = f.label("a", [raw])
    assert generate_node(label) == "label a:\n    transform slide:\n        xalign 0.0"


def test_indent_size_option(factory):
    f = factory
    script = f.script([f.label("a", [f.if_([f.if_branch("x", [f.return_()])])])])
    out = CodeGenerator(GeneratorOptions(indent_size=2)).generate(script)
    assert out == "label a:\n  if x:\n    return\n"


def test_blank_lines_between_top_level_groups(factory):
    f = factory
    script = f.script([
        f.define("e", 'Character("Eileen")'),
        f.default("points", "0"),
        f.raw("window hide"),
        f.label("start", [f.return_()]),
        f.label("end", [f.return_()]),
    ])
    assert generate(script) == _dd("""\
        define e = Character("Eileen")
        default points = 0

        window hide

        label start:
            return

        label end:
            return
    """)


def test_unknown_node_kind_is_an_engine_defect():
    class Bogus(Stmt):
        kind = "bogus"

    with pytest.raises(EngineInvariantError):
        generate_node(Bogus())


def test_narration_with_attributes_is_refused():
    node = DialogueStmt(id="n1", speaker=None, text="hi", attributes=["happy"])
    with pytest.raises(EngineInvariantError):
        generate_node(node)
