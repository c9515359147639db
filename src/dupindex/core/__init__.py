"""
Core indexing engine — walker, hasher, index, store, organizer, archive expander.

This package contains the stateful foundation of dupindex:
- TreeWalkerImpl: recursive directory traversal emitting WalkEntry events
- HasherImpl + Sha256AlgorithmImpl: streamed full-content hashing
- Index: path -> digest and digest -> paths, with its consistency invariant
- JsonIndexStore: atomic JSON persistence of the Index
- PrefixOrganizer / ZipArchiveExpander: optional per-file pre-processing
- DedupEngine: the per-file pipeline and its IDLE/WALKING/COMPLETING/INTERRUPTED states

All components are pure Python with no UI dependencies.
"""

from .models import (
    WalkEntry, DuplicateGroup, EngineState, DeduplicationParams, DeduplicationStats,
    DeletionResult, RunResult)
from .errors import (
    DedupError, ReadError, RelocationError, ArchiveError, UnsafeArchiveEntry,
    ArchiveExtractionError, IndexLoadError, IndexSaveError, IndexInvariantError, TraversalError)
from .index import Index
from .hasher import HasherImpl, Sha256AlgorithmImpl
from .store import JsonIndexStore, DEFAULT_INDEX_PATH
from .scanner import TreeWalkerImpl
from .organizer import PrefixOrganizer
from .archive import ZipArchiveExpander
from .cancellation import CancellationToken, SignalListener
from .engine import DedupEngine

__all__ = [
    "WalkEntry",
    "DuplicateGroup",
    "EngineState",
    "DeduplicationParams",
    "DeduplicationStats",
    "DeletionResult",
    "RunResult",
    "DedupError",
    "ReadError",
    "RelocationError",
    "ArchiveError",
    "UnsafeArchiveEntry",
    "ArchiveExtractionError",
    "IndexLoadError",
    "IndexSaveError",
    "IndexInvariantError",
    "TraversalError",
    "Index",
    "HasherImpl",
    "Sha256AlgorithmImpl",
    "JsonIndexStore",
    "DEFAULT_INDEX_PATH",
    "TreeWalkerImpl",
    "PrefixOrganizer",
    "ZipArchiveExpander",
    "CancellationToken",
    "SignalListener",
    "DedupEngine",
]
