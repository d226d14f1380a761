# rpyscript/errors.py
# Diagnostics and exception types shared by the scanner, parser and tools.
# Diagnostics are non-fatal; exceptions are reserved for engine defects and
# for malformed inputs to the tooling layer (serialized ASTs, config files).

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict

SYNTAX = "syntax"
STRUCTURE = "structure"


@dataclass(frozen=True)
class Diagnostic:
    line: int
    message: str
    kind: str = SYNTAX      # "syntax" | "structure"
    column: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line": self.line,
            "column": self.column,
            "kind": self.kind,
            "message": self.message,
        }

    def format(self, file_path: str = "") -> str:
        where = f"{file_path}:{self.line}" if file_path else f"line {self.line}"
        return f"{where}: {self.message}"


# ----------------------------
# Errors
# ----------------------------

class ScriptEngineError(Exception):
    pass


class EngineInvariantError(ScriptEngineError):
    """Raised when the engine itself is inconsistent. No input can trigger it."""


class ASTFormatError(ScriptEngineError):
    def __init__(self, message: str, path: str = ""):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class ConfigError(ScriptEngineError):
    pass
