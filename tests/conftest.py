# tests/conftest.py
# Ensure the project root (the folder that contains 'rpyscript' and 'tests') is on
# sys.path so `import rpyscript` works without an editable install.

import sys
import pathlib

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)

if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

from rpyscript.factory import NodeFactory, NodeIdGenerator  # noqa: E402


@pytest.fixture
def factory():
    return NodeFactory(NodeIdGenerator("t"))
