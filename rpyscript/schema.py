# rpyscript/schema.py
# JSON Schema validation for serialized ASTs and engine config files.
# Schemas live in rpyscript/schemas/ and are Draft 2020-12.

from __future__ import annotations
import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

from jsonschema import Draft202012Validator
from jsonschema.exceptions import best_match

from .errors import ASTFormatError, ConfigError

SCHEMAS = Path(__file__).resolve().parent / "schemas"
SCRIPT_SCHEMA = "script.schema.json"
CONFIG_SCHEMA = "config.schema.json"


@lru_cache(maxsize=None)
def load_schema(name: str) -> Dict[str, Any]:
    return json.loads((SCHEMAS / name).read_text(encoding="utf-8"))


@lru_cache(maxsize=None)
def _validator(name: str) -> Draft202012Validator:
    schema = load_schema(name)
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def _pointer(err) -> str:
    return "/" + "/".join(str(p) for p in err.absolute_path)


def schema_errors(obj: Any, name: str = SCRIPT_SCHEMA) -> List[str]:
    """All validation messages, as 'pointer: message' strings."""
    errs = sorted(_validator(name).iter_errors(obj), key=lambda e: list(map(str, e.absolute_path)))
    return [f"{_pointer(e)}: {e.message}" for e in errs]


def validate_script_dict(obj: Any) -> None:
    err = best_match(_validator(SCRIPT_SCHEMA).iter_errors(obj))
    if err is not None:
        raise ASTFormatError(err.message, path=_pointer(err))


def validate_config_dict(obj: Any) -> None:
    err = best_match(_validator(CONFIG_SCHEMA).iter_errors(obj))
    if err is not None:
        raise ConfigError(f"{_pointer(err)}: {err.message}")
