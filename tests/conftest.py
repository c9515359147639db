"""
Shared fixtures for indexing core tests.
Creates isolated temporary directories with controlled test files.
"""
import pytest
import tempfile
from pathlib import Path
from typing import Dict
import sys

# Add src/ to sys.path so 'dupindex' is importable without installation
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from dupindex.core.index import Index  # noqa: E402


@pytest.fixture
def temp_dir():
    """Creates isolated temporary directory, auto-cleanup after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def tree(temp_dir) -> Path:
    """Directory that is scanned; kept apart from the index file."""
    root = temp_dir / "tree"
    root.mkdir()
    return root


@pytest.fixture
def cache_path(temp_dir) -> Path:
    """Index location outside the scanned tree."""
    return temp_dir / "dedupcache.json"


@pytest.fixture
def test_files(tree) -> Dict[str, Path]:
    """
    Creates controlled test files:
    - a.txt and b.txt with identical content "hello"
    - c.txt with content "world"
    - sub/d.txt, a third copy of "hello" one level down
    """
    files = {}
    files["a"] = tree / "a.txt"
    files["b"] = tree / "b.txt"
    files["c"] = tree / "c.txt"
    files["a"].write_bytes(b"hello")
    files["b"].write_bytes(b"hello")
    files["c"].write_bytes(b"world")

    subdir = tree / "sub"
    subdir.mkdir()
    files["d"] = subdir / "d.txt"
    files["d"].write_bytes(b"hello")
    return files


@pytest.fixture
def index() -> Index:
    return Index()
