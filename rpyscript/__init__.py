# rpyscript/__init__.py
# Public API: parse script text to an AST and generate text back.

from importlib.metadata import PackageNotFoundError, version

from .config import EngineConfig, load_config
from .equivalence import (
    explain_difference, nodes_equivalent, scripts_equivalent, statements_equivalent,
)
from .errors import (
    ASTFormatError, ConfigError, Diagnostic, EngineInvariantError, ScriptEngineError,
)
from .factory import (
    NodeFactory, NodeIdGenerator, create_call, create_default, create_define,
    create_dialogue, create_hide, create_if, create_if_branch, create_jump, create_label,
    create_menu, create_menu_choice, create_nvl, create_pause, create_play, create_python,
    create_raw, create_return, create_scene, create_script, create_set, create_show,
    create_stop, create_with, reset_node_ids,
)
from .generator import CodeGenerator, GeneratorOptions, generate, generate_node
from .parser import ParseResult, ScriptParser, parse, parse_file
from .serialize import dumps, loads, script_from_dict, script_to_dict

try:
    __version__ = version("rpyscript")
except PackageNotFoundError:
    __version__ = "0.0.0"
