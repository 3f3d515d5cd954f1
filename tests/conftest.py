"""Shared test fixtures for the fsquery test suite."""

import pytest

from fsquery.config import ServerConfig

from helpers import write


@pytest.fixture
def root(tmp_path):
    """Resolved temporary directory, so paths compare equal after realpath."""
    return tmp_path.resolve()


@pytest.fixture
def config(root):
    """ServerConfig confined to the temporary directory."""
    return ServerConfig(
        allowed_paths=[str(root)],
        workspace_root=str(root),
        log_file="NONE",
    )


@pytest.fixture
def scenario_tree(root):
    """t/a.txt ("hello"), t/b.log ("hello"), t/sub/c.txt ("world")."""
    base = root / "t"
    write(base / "a.txt", "hello")
    write(base / "b.log", "hello")
    write(base / "sub" / "c.txt", "world")
    return base


@pytest.fixture
def deep_tree(root):
    """deep/l1/l2/l3 with one file at every level."""
    base = root / "deep"
    write(base / "top.txt", "0")
    write(base / "l1" / "one.txt", "1")
    write(base / "l1" / "l2" / "two.txt", "2")
    write(base / "l1" / "l2" / "l3" / "three.txt", "3")
    return base
