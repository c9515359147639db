"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/scanner.py
Implements tree walking on top of os.walk.
Features:
- Validates the root before yielding anything (TraversalError)
- Emits directories and regular files as WalkEntry events, lazily
- Skips symbolic links and the index file itself
- Logs and skips subdirectories that cannot be listed
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, Optional, Set

# Local imports
from dupindex.core.errors import TraversalError
from dupindex.core.interfaces import TreeWalker
from dupindex.core.models import WalkEntry

logger = logging.getLogger(__name__)


class TreeWalkerImpl(TreeWalker):
    """
    Walks a directory tree top-down.

    Attributes:
        ignored_paths: Absolute file paths never reported (e.g. the index and its temp file)
    """

    def __init__(self, ignored_paths: Optional[Iterable[str]] = None):
        self.ignored_paths: Set[str] = {os.path.abspath(p) for p in ignored_paths or ()}

    @staticmethod
    def validate_root(root: str) -> str:
        """Returns the absolute root or raises TraversalError."""
        root_path = Path(root)
        if not root_path.exists():
            error_msg = f"Directory does not exist: {root}"
            logger.error(error_msg)
            raise TraversalError(error_msg)
        if not root_path.is_dir():
            error_msg = f"Not a directory: {root}"
            logger.error(error_msg)
            raise TraversalError(error_msg)
        return str(root_path.resolve())

    def walk(self, root: str) -> Iterator[WalkEntry]:
        """
        Validates root eagerly, then returns a lazy iterator of entries.
        """
        root = self.validate_root(root)
        logger.debug(f"Walking directory: {root}")
        return self._walk(root)

    def _walk(self, root: str) -> Iterator[WalkEntry]:
        def on_error(error: OSError):
            logger.warning(f"Cannot list directory {error.filename}: {error.strerror}")

        for current, dirs, files in os.walk(root, onerror=on_error):
            dirs.sort()
            for dirname in dirs:
                yield WalkEntry(path=os.path.join(current, dirname), is_dir=True)
            for filename in sorted(files):
                path = os.path.join(current, filename)
                if path in self.ignored_paths:
                    continue
                if os.path.islink(path):
                    logger.debug(f"Skipping symbolic link: {path}")
                    continue
                yield WalkEntry(path=path)

    def count_files(self, root: str) -> int:
        """Counts the files walk() would report; used as the progress total."""
        return sum(1 for entry in self.walk(root) if not entry.is_dir)
