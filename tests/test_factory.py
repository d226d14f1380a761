# tests/test_factory.py
from concurrent.futures import ThreadPoolExecutor

import pytest

from rpyscript import factory as factory_mod
from rpyscript.factory import NodeFactory, NodeIdGenerator, create_with, reset_node_ids


def test_ids_are_unique_and_prefixed():
    gen = NodeIdGenerator("x")
    assert [gen.next_id() for _ in range(3)] == ["x_1", "x_2", "x_3"]


def test_independent_generators_do_not_collide():
    a, b = NodeIdGenerator(), NodeIdGenerator()
    assert a.prefix != b.prefix
    assert a.next_id() != b.next_id()


def test_ids_unique_across_threads():
    f = NodeFactory()

    def make(_):
        return [f.pause().id for _ in range(200)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = [i for chunk in pool.map(make, range(8)) for i in chunk]
    assert len(ids) == len(set(ids)) == 1600


def test_reset_restarts_numbering():
    gen = NodeIdGenerator("r")
    gen.next_id()
    gen.reset()
    assert gen.next_id() == "r_1"


def test_module_helpers_and_reset_hook():
    reset_node_ids()
    first = create_with("dissolve")
    assert first.id.endswith("_1")
    reset_node_ids()
    assert create_with("fade").id == first.id
    assert factory_mod.default_factory().ids.prefix == first.id.rsplit("_", 1)[0]


def test_optional_strings_and_lists_normalize_to_none(factory):
    d = factory.dialogue("hi", "", attributes=[], transition="  ", arguments=["", " a "])
    assert d.speaker is None
    assert d.attributes is None
    assert d.transition is None
    assert d.arguments == ["a"]


def test_flags_and_numbers_are_not_defaulted(factory):
    p = factory.play("music", "a.ogg")
    o = p.options
    assert (o.fade_in, o.fade_out, o.volume, o.loop, o.queue, o.if_changed) == (None,) * 6
    assert factory.jump("t").expression is None


def test_image_name_splits_into_attributes(factory):
    s = factory.show("eileen happy", attributes=["smile"])
    assert s.image == "eileen"
    assert s.options.attributes == ["happy", "smile"]


def test_prompt_speaker_requires_prompt(factory):
    m = factory.menu(prompt_speaker="e")
    assert m.prompt is None and m.prompt_speaker is None


def test_invalid_values_are_rejected(factory):
    with pytest.raises(ValueError):
        factory.dialogue("x", "e", extend=True)
    with pytest.raises(ValueError):
        factory.dialogue("hi", None, attributes=["happy"])
    with pytest.raises(ValueError):
        factory.play("ambience", "a.ogg")
    with pytest.raises(ValueError):
        factory.stop("radio")
    with pytest.raises(ValueError):
        factory.nvl("toggle")
    with pytest.raises(ValueError):
        factory.set("x", "1", operator="**=")
    with pytest.raises(ValueError):
        factory.if_([factory.if_branch(None)])
    with pytest.raises(ValueError):
        factory.if_([])
    with pytest.raises(ValueError):
        factory.pause(True)
    with pytest.raises(ValueError):
        factory.scene("  ")
    with pytest.raises(ValueError):
        factory.show("eileen", zorder=1.5)


def test_script_metadata(factory):
    s = factory.script([factory.pause()], file_path="game/a.rpy")
    assert s.metadata.file_path == "game/a.rpy"
    assert s.metadata.version == "1.0.0"
    assert s.metadata.parse_time.tzinfo is not None
