# tests/test_serialize_schema.py
import json

import jsonschema
import pytest

from rpyscript.errors import ASTFormatError
from rpyscript.parser import parse
from rpyscript.schema import SCRIPT_SCHEMA, load_schema, schema_errors, validate_script_dict
from rpyscript.serialize import (
    dumps, loads, node_from_dict, node_to_dict, script_from_dict, script_to_dict,
)

SCHEMA = load_schema(SCRIPT_SCHEMA)


def validate(obj):
    jsonschema.validate(instance=obj, schema=SCHEMA)


def base_script(statements):
    return {"type": "script", "metadata": {"filePath": "a.rpy", "version": "1.0.0"},
            "statements": statements}


def test_parsed_script_serializes_to_valid_json():
    res = parse('label start:\n    show eileen happy at left\n    e "Hi" with dissolve\n    return\n')
    obj = script_to_dict(res.ast)
    validate(obj)  # should NOT raise
    label = obj["statements"][0]
    assert label["type"] == "label"
    show = label["body"][0]
    assert show["options"] == {"attributes": ["happy"], "atPosition": "left"}
    say = label["body"][1]
    assert set(say) == {"type", "id", "speaker", "text", "transition", "line"}


def test_absent_fields_are_omitted(factory):
    d = node_to_dict(factory.play("music", "a.ogg"))
    assert d == {"type": "play", "id": d["id"], "channel": "music", "file": "a.ogg"}
    assert "value" not in node_to_dict(factory.return_())


def test_camel_case_keys(factory):
    d = node_to_dict(factory.menu(set_var="picked", prompt="Q", prompt_speaker="e"))
    assert d["setVar"] == "picked" and d["promptSpeaker"] == "e"
    d = node_to_dict(factory.call("x", from_label="back"))
    assert d["fromLabel"] == "back"


def test_node_round_trip(factory):
    node = factory.if_([factory.if_branch("a", [factory.pause(1.5)]), factory.if_branch(None)])
    back = node_from_dict(node_to_dict(node))
    assert back == node


def test_narration_round_trip(factory):
    node = factory.dialogue("plain")
    assert node_from_dict(node_to_dict(node)) == node


def test_dumps_loads(factory):
    s = factory.script([factory.label("a", [factory.with_("fade")])], file_path="x.rpy")
    again = loads(dumps(s))
    assert again.statements == s.statements
    assert again.metadata.file_path == "x.rpy"
    assert again.metadata.parse_time == s.metadata.parse_time


def test_schema_rejects_unknown_type():
    with pytest.raises(jsonschema.ValidationError):
        validate(base_script([{"type": "teleport", "id": "n1"}]))


def test_schema_requires_variant_fields():
    with pytest.raises(jsonschema.ValidationError):
        validate(base_script([{"type": "jump", "id": "n1"}]))
    with pytest.raises(jsonschema.ValidationError):
        validate(base_script([{"type": "play", "id": "n1", "channel": "radio", "file": "a"}]))
    with pytest.raises(jsonschema.ValidationError):
        validate(base_script([{"type": "if", "id": "n1", "branches": [{"body": []}]}]))


def test_validate_script_dict_raises_format_error_with_path():
    bad = base_script([{"type": "label", "id": "n1", "name": "a", "body": [{"type": "pause", "id": "n2", "duration": "x"}]}])
    with pytest.raises(ASTFormatError) as exc:
        validate_script_dict(bad)
    assert exc.value.path.startswith("/statements/0/body/0")


def test_schema_errors_lists_messages():
    msgs = schema_errors({"type": "script"})
    assert msgs and "statements" in msgs[0]


def test_script_from_dict_without_validation_still_checks_kind():
    with pytest.raises(ASTFormatError):
        script_from_dict(base_script([{"type": "teleport", "id": "n1"}]), validate=False)


def test_loads_rejects_bad_json():
    with pytest.raises(ASTFormatError):
        loads("{not json")


def test_emitted_json_is_plain_data(factory):
    text = dumps(factory.script([factory.play("sound", "é.ogg", volume=0.5)]))
    data = json.loads(text)
    assert data["statements"][0]["file"] == "é.ogg"
    assert data["statements"][0]["options"] == {"volume": 0.5}
