"""
dupindex — incremental duplicate file finder with a persistent hash index.

Core features:
- SHA-256 content digests, remembered between runs in a JSON index
- Only files not yet in the index are hashed on later runs
- Optional sorting of files into two-letter prefix subdirectories
- Optional in-place expansion of zip archives
- Safe deletion of duplicates to system trash (via send2trash)
- Ctrl+C saves the index before exiting
"""

# Get version
from importlib.metadata import PackageNotFoundError, version as _version

try:
    __version__ = _version("dupindex")
except PackageNotFoundError:
    __version__ = "0.0.0"

# Public API: only what users should import directly
from dupindex.core import (
    DedupEngine, DeduplicationParams, DuplicateGroup, EngineState, Index, JsonIndexStore)
from dupindex.commands import DeduplicationCommand
from dupindex.services import DuplicateService
from dupindex.services.file_service import FileService

__all__ = [
    "DeduplicationCommand",
    "DeduplicationParams",
    "DedupEngine",
    "DuplicateGroup",
    "EngineState",
    "Index",
    "JsonIndexStore",
    "DuplicateService",
    "FileService",
    "__version__",
]
