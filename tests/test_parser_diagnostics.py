# tests/test_parser_diagnostics.py
# Malformed input never aborts parsing; each problem is reported and a
# best-effort AST is still produced.
from rpyscript.errors import STRUCTURE, SYNTAX
from rpyscript.nodes import DialogueStmt, IfStmt, LabelStmt, RawStmt, ReturnStmt
from rpyscript.parser import parse


def _lines(res):
    return [d.line for d in res.errors]


def test_missing_colon_on_label_still_builds_label():
    res = parse("label start\n    return\n")
    assert _lines(res) == [1]
    assert "expected ':'" in res.errors[0].message
    (label,) = res.ast.statements
    assert isinstance(label, LabelStmt)
    assert isinstance(label.body[0], ReturnStmt)


def test_missing_colon_on_if_still_builds_if():
    res = parse("if ready\n    return\n")
    assert _lines(res) == [1]
    assert isinstance(res.ast.statements[0], IfStmt)


def test_unterminated_quote_becomes_raw():
    res = parse('e "hello\n')
    assert _lines(res) == [1]
    assert res.errors[0].kind == SYNTAX
    assert "unterminated" in res.errors[0].message
    (raw,) = res.ast.statements
    assert isinstance(raw, RawStmt) and raw.content == 'e "hello'


def test_unexpected_indentation_becomes_raw_block():
    res = parse('e "a"\n    e "b"\n        e "c"\ne "d"\n')
    assert _lines(res) == [2]
    first, raw, last = res.ast.statements
    assert isinstance(first, DialogueStmt) and isinstance(last, DialogueStmt)
    assert isinstance(raw, RawStmt)
    assert raw.content == 'e "b"\n    e "c"'


def test_stray_else_is_structural_and_raw():
    res = parse("else:\n    return\n")
    assert _lines(res) == [1]
    assert res.errors[0].kind == STRUCTURE
    (raw,) = res.ast.statements
    assert isinstance(raw, RawStmt) and raw.content == "else:\n    return"


def test_branch_after_else_is_kept_with_structural_diagnostic():
    src = "if a:\n    return\nelse:\n    jump x\nelse:\n    jump y\nelif b:\n    jump z\n"
    res = parse(src)
    assert [(d.line, d.kind) for d in res.errors] == [(5, STRUCTURE), (7, STRUCTURE)]
    (node,) = res.ast.statements
    assert [b.condition for b in node.branches] == ["a", None, None, "b"]


MENU_WITH_STRAY_LINES = (
    'menu:\n'
    '    "Go left": # pick me\n'
    '        jump left_path\n'
    '    e "Hmm, one more thing."\n'
    '    "Go right":\n'
    '        jump right_path\n'
)


def test_unknown_line_in_menu_keeps_whole_menu_as_raw():
    res = parse('menu:\n    $ x = 1\n        weird\n    "A":\n        return\n')
    assert _lines(res) == [2]
    (raw,) = res.ast.statements
    assert isinstance(raw, RawStmt)
    assert raw.content == 'menu:\n    $ x = 1\n        weird\n    "A":\n        return'


def test_menu_with_stray_lines_loses_nothing():
    res = parse(MENU_WITH_STRAY_LINES)
    assert _lines(res) == [2]
    (raw,) = res.ast.statements
    assert isinstance(raw, RawStmt)
    assert raw.content == MENU_WITH_STRAY_LINES.rstrip("\n")


def test_nested_menu_fallback_keeps_surrounding_block():
    src = 'label a:\n    menu:\n        "A":\n            e "broken\n        weird line\n    return\n'
    res = parse(src)
    assert _lines(res) == [5]
    (label,) = res.ast.statements
    raw, ret = label.body
    assert raw.content == 'menu:\n    "A":\n        e "broken\n    weird line'
    assert isinstance(ret, ReturnStmt)


def test_menu_choice_without_colon():
    res = parse('menu:\n    "Question?"\n    "B"\n')
    assert _lines(res) == [3]
    menu = res.ast.statements[0]
    assert menu.prompt == "Question?"
    assert [c.text for c in menu.choices] == ["B"]


def test_errors_do_not_stop_the_rest_of_the_block():
    res = parse('label a:\n    e "broken\n    return\n')
    assert _lines(res) == [2]
    label = res.ast.statements[0]
    assert isinstance(label.body[0], RawStmt)
    assert isinstance(label.body[1], ReturnStmt)


def test_scan_and_parse_diagnostics_are_merged_in_line_order():
    src = 'label a:\n    if x:\n        return\n      e "oops\n'
    res = parse(src)
    assert _lines(res) == [4, 4]
    assert {d.message.split(":")[0] for d in res.errors} >= {"inconsistent dedent"}


def test_diagnostic_formatting():
    res = parse('e "x\n', "script.rpy")
    d = res.errors[0]
    assert d.format("script.rpy").startswith("script.rpy:1: ")
    assert d.to_dict()["line"] == 1
    assert not res.ok
