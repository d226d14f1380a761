# tests/test_config.py
import json
from pathlib import Path

import pytest

from rpyscript.config import EngineConfig, load_config
from rpyscript.errors import ConfigError
from rpyscript.generator import GeneratorOptions, generate
from rpyscript.parser import parse


def _write(tmp_path: Path, obj) -> str:
    p = tmp_path / "rpyscript.json"
    p.write_text(json.dumps(obj), encoding="utf-8")
    return str(p)


def test_defaults():
    cfg = EngineConfig()
    assert (cfg.tab_size, cfg.indent_size, cfg.insert_blank_lines, cfg.format_version) == \
        (4, 4, True, "1.0.0")
    assert load_config(None) == cfg


def test_load_config_from_file(tmp_path: Path):
    cfg = load_config(_write(tmp_path, {"indentSize": 2, "tabSize": 8, "insertBlankLines": False}))
    assert (cfg.indent_size, cfg.tab_size, cfg.insert_blank_lines) == (2, 8, False)
    assert cfg.to_dict()["indentSize"] == 2


def test_unknown_key_is_rejected(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, {"indent": 2}))


def test_bad_value_is_rejected(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, {"tabSize": 0}))


def test_missing_and_malformed_files(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "nope.json"))
    bad = tmp_path / "bad.json"
    bad.write_text("{", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(bad))


def test_override_ignores_none():
    cfg = EngineConfig().override(indent_size=2, tab_size=None)
    assert cfg.indent_size == 2 and cfg.tab_size == 4


def test_config_drives_parser_and_generator():
    cfg = EngineConfig(tab_size=2, indent_size=2, format_version="1.1.0")
    res = parse("label a:\n\treturn\n", config=cfg)
    assert res.errors == []
    assert res.ast.metadata.version == "1.1.0"
    assert generate(res.ast, GeneratorOptions.from_config(cfg)) == "label a:\n  return\n"
