"""Shared test fixtures and utilities."""

import hashlib
import os
from pathlib import Path

import pytest

from tests.fixtures.sample_tree import (
    TEST_1,
    TEST_2,
    TEST_3,
    VERY_DEEP_LEAF,
    VERY_DEEP_LEVELS,
    build_tree,
)


@pytest.fixture
def make_tree(tmp_path):
    """Factory fixture to build a directory tree under tmp_path."""
    def make(spec, name="tree") -> Path:
        return build_tree(tmp_path / name, spec)
    return make


@pytest.fixture
def test_1(make_tree):
    return make_tree(TEST_1, "test-1")


@pytest.fixture
def test_2(make_tree):
    return make_tree(TEST_2, "test-2")


@pytest.fixture
def test_3(make_tree):
    return make_tree(TEST_3, "test-3")


@pytest.fixture
def deep_tree(tmp_path):
    """A narrow tree much deeper than a small worker pool."""
    current = tmp_path / "deep"
    current.mkdir()
    root = current
    for depth in range(25):
        (current / f"file{depth}.txt").write_text(f"level {depth}")
        current = current / f"level{depth}"
        current.mkdir()
    return root


@pytest.fixture
def sha256():
    return hashlib.sha256


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Isolate HOME so no user config leaks into tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))  # Windows
    monkeypatch.setattr(Path, "home", lambda: home)
    for name in ("ALGORITHM", "MAX_WORKERS", "CHUNK_SIZE", "TIMEOUT"):
        monkeypatch.delenv(f"MERKLEHASH_{name}", raising=False)
    return home


@pytest.fixture
def very_deep_tree(tmp_path):
    """``r/d/d/.../d/f``: deeper than the interpreter's recursion limit."""
    root = tmp_path / "r"
    leaf_dir = os.path.join(str(root), *(["d"] * VERY_DEEP_LEVELS))
    # os.makedirs recurses once per level; create the chain iteratively.
    current = str(root)
    os.mkdir(current)
    for _ in range(VERY_DEEP_LEVELS):
        current = os.path.join(current, "d")
        os.mkdir(current)
    with open(os.path.join(leaf_dir, "f"), "wb") as f:
        f.write(VERY_DEEP_LEAF)
    return root
