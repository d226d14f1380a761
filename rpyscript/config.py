# rpyscript/config.py
# Engine settings shared by the parser, the generator and the CLI.
# File form (JSON, camelCase, every key optional):
#   {"tabSize": 4, "indentSize": 4, "insertBlankLines": true, "formatVersion": "1.0.0"}

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ConfigError
from .nodes import FORMAT_VERSION
from .schema import validate_config_dict

log = logging.getLogger(__name__)

_KEYS = {
    "tabSize": "tab_size",
    "indentSize": "indent_size",
    "insertBlankLines": "insert_blank_lines",
    "formatVersion": "format_version",
}


@dataclass(frozen=True)
class EngineConfig:
    tab_size: int = 4               # tab stop width when measuring indentation
    indent_size: int = 4            # spaces per level in generated text
    insert_blank_lines: bool = True
    format_version: str = FORMAT_VERSION

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        validate_config_dict(data)
        return cls(**{_KEYS[k]: v for k, v in data.items()})

    def to_dict(self) -> Dict[str, Any]:
        return {camel: getattr(self, attr) for camel, attr in _KEYS.items()}

    def override(self, **changes: Any) -> "EngineConfig":
        """Copy with the non-None keyword values applied (CLI flags)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def load_config(path: Optional[str]) -> EngineConfig:
    if not path:
        return EngineConfig()
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigError(f"config file not found: {p}")
    except json.JSONDecodeError as e:
        raise ConfigError(f"{p}: invalid JSON ({e.msg} at line {e.lineno})")
    cfg = EngineConfig.from_dict(data)
    log.debug("loaded config from %s: %s", p, cfg)
    return cfg
