# tests/conftest.py
"""
Common test fixtures for the installer operations.
"""
import os
import tempfile
from pathlib import Path

import pytest

from installer_ops.config import OperationsConfig


def can_symlink(directory: Path) -> bool:
    """Check whether the platform lets us create symlinks in directory."""
    probe = directory / ".symlink-probe"
    try:
        os.symlink(str(directory), str(probe))
    except (OSError, NotImplementedError, AttributeError):
        return False
    os.unlink(str(probe))
    return True


def tree_snapshot(root: Path) -> list:
    """
    Describe everything below root as sorted (relative path, kind, detail) tuples.

    Files carry their content, links their link text, so two snapshots are
    equal only if the trees are indistinguishable.
    """
    snapshot = []
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            path = Path(dirpath) / name
            relative = str(path.relative_to(root))
            if path.is_symlink():
                snapshot.append((relative, "link", os.readlink(path)))
            elif path.is_dir():
                snapshot.append((relative, "dir", None))
            else:
                snapshot.append((relative, "file", path.read_bytes()))
    return sorted(snapshot)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        # Resolve so paths compare equal to what the operations compute
        yield Path(tmpdir).resolve()


@pytest.fixture
def source_tree(temp_dir):
    """
    Create a source tree:

        source/.hidden
        source/a/b/two.bin
        source/a/one.txt
        source/top.txt
    """
    source = temp_dir / "source"
    (source / "a" / "b").mkdir(parents=True)
    (source / ".hidden").write_text("hidden")
    (source / "a" / "one.txt").write_text("one")
    (source / "a" / "b" / "two.bin").write_bytes(b"\x00\x01\x02")
    (source / "top.txt").write_text("top")
    return source


@pytest.fixture
def target_dir(temp_dir):
    """Create an empty target directory."""
    target = temp_dir / "target"
    target.mkdir()
    return target


@pytest.fixture
def symlinks(temp_dir):
    """Skip the test where symlinks cannot be created."""
    if not can_symlink(temp_dir):
        pytest.skip("symlinks are not supported here")


@pytest.fixture
def home_dir(temp_dir):
    """A stand-in for the user's home directory."""
    home = temp_dir / "home"
    home.mkdir()
    return home


@pytest.fixture
def operations_config(home_dir):
    """Operation settings with the pruning boundary at the fake home."""
    return OperationsConfig(prune_boundary=home_dir)


@pytest.fixture
def snapshot():
    """Returns the tree_snapshot helper."""
    return tree_snapshot
