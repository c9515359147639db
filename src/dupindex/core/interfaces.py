"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) used throughout the indexing system.
These protocols enforce structural typing using Python's `typing.Protocol` so that the
engine can be wired with fakes in tests and alternative implementations in production.

Key Components:
---------------
- HashAlgorithm: Factory for incremental hash objects (e.g., SHA-256).
- Hasher: Computes the content digest of a file or byte stream.
- TreeWalker: Emits WalkEntry events for a directory tree.
- IndexStore: Loads and saves an Index to a durable location.
- Organizer: Relocates a file into its prefix bucket before it is recorded.
- ArchiveExpander: Expands archives in place and reports the extracted files.
"""

from typing import BinaryIO, Callable, Iterator, List, Optional, Protocol, Tuple

from dupindex.core.index import Index
from dupindex.core.models import WalkEntry


# ===== Interfaces =====

class HashAlgorithm(Protocol):
    """
    Interface for incremental hash functions.

    Allows plugging in a different 256-bit function without touching the engine.
    """
    name: str
    digest_size: int

    def new(self):
        """Returns a fresh object with update(bytes) and digest() methods."""
        ...


class Hasher(Protocol):
    """Interface for computing a full-content digest."""
    def compute_digest(self, path: str) -> bytes: ...
    def compute_stream_digest(self, stream: BinaryIO, name: str = "<stream>") -> bytes: ...


class TreeWalker(Protocol):
    """
    Interface for traversing a directory tree.

    Methods:
        walk: Yields one WalkEntry per directory and regular file below root.
    """
    def walk(self, root: str) -> Iterator[WalkEntry]:
        """
        Raises:
            TraversalError: root does not exist or is not a directory. Raised before the
                first entry is yielded.
        """
        ...

    def count_files(self, root: str) -> int: ...


class IndexStore(Protocol):
    """Serializes an Index to a durable medium."""
    def load(self, location: str) -> Tuple[Index, Optional[Exception]]:
        """Never fails: returns an empty Index plus the error when the file is unusable."""
        ...

    def save(self, index: Index, location: str) -> None:
        """Raises IndexSaveError; a previous valid file is never left half-written."""
        ...


class Organizer(Protocol):
    """Moves a file into its bucket directory and returns the new path."""
    def relocate(self, path: str) -> str: ...


class ArchiveExpander(Protocol):
    """Expands an archive in place, deletes it, and returns the extracted file paths."""
    def is_archive(self, path: str) -> bool: ...
    def expand(self, path: str) -> List[str]: ...


StoppedFlag = Callable[[], bool]
ProgressCallback = Callable[[str, int, Optional[int]], None]
