"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/errors.py
Error taxonomy of the indexing pipeline.

Per-file errors (ReadError, RelocationError, ArchiveError) are recovered by the engine:
the entry is logged and skipped, the walk continues. IndexLoadError degrades to an empty
index. Only TraversalError aborts a run.
"""


class DedupError(RuntimeError):
    """Base class for all dupindex errors."""


class ReadError(DedupError):
    """File could not be read to the end (permission denied, vanished, I/O error)."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot read {path}: {reason}")
        self.path = path


class RelocationError(DedupError):
    """Organize-move failed; the file stays where it was."""

    def __init__(self, source: str, target: str, reason: str):
        super().__init__(f"Cannot move {source} -> {target}: {reason}")
        self.source = source
        self.target = target


class ArchiveError(DedupError):
    """Archive could not be expanded; the archive is left in place."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot expand {path}: {reason}")
        self.path = path


class UnsafeArchiveEntry(ArchiveError):
    """An archive member resolves outside the extraction directory."""

    def __init__(self, path: str, entry: str):
        super().__init__(path, f"illegal file path in archive: {entry}")
        self.entry = entry


class ArchiveExtractionError(ArchiveError):
    """I/O failure or corrupt archive during extraction."""


class IndexLoadError(DedupError):
    """Persisted index is unreadable or malformed."""


class IndexSaveError(DedupError):
    """Persisted index could not be written."""


class IndexInvariantError(DedupError):
    """The path->digest and digest->paths maps disagree."""


class TraversalError(DedupError):
    """The directory walk cannot start (root missing or not a directory)."""
