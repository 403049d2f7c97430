"""Test configuration ensuring the project source tree is importable."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
TESTS = ROOT / "tests"

root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)
else:
    idx = sys.path.index(root_str)
    if idx != 0:
        sys.path.insert(0, sys.path.pop(idx))

if str(TESTS) in sys.path:
    sys.path.pop(sys.path.index(str(TESTS)))
sys.path.insert(1, str(TESTS))

# Import the project package eagerly so subsequent imports reuse it
importlib.import_module("luachunk")


@pytest.fixture
def sample_chunk_bytes() -> bytes:
    from fixtures.chunk_fixture import SAMPLE_CHUNK

    return SAMPLE_CHUNK


@pytest.fixture
def chunk_file(tmp_path, sample_chunk_bytes) -> Path:
    target = tmp_path / "sample.luac"
    target.write_bytes(sample_chunk_bytes)
    return target


@pytest.fixture(scope="session")
def lua53_runtime():
    """Reference Lua 5.3 interpreter used to produce real ``string.dump`` output."""

    lua53 = pytest.importorskip("lupa.lua53")
    return lua53.LuaRuntime(encoding=None)
