"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/organizer.py
Prefix sharding: moves every file into <root>/<first two chars of name, lowercased>/.
"""

import logging
import os
from typing import Callable

from dupindex.core.errors import RelocationError
from dupindex.core.interfaces import Organizer

logger = logging.getLogger(__name__)

PREFIX_LENGTH = 2


def _make_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


class PrefixOrganizer(Organizer):
    """
    Relocates files into bucket directories directly below root.

    Attributes:
        root: Directory that holds the buckets
        make_dir: Idempotent directory-creation primitive ("already exists" is not an error)
    """

    def __init__(self, root: str, make_dir: Callable[[str], None] = _make_dir):
        self.root = os.path.abspath(root)
        self.make_dir = make_dir

    @staticmethod
    def bucket_for(filename: str) -> str:
        """Names shorter than the prefix use the whole (lowercased) name."""
        return filename[:PREFIX_LENGTH].lower()

    def target_for(self, path: str) -> str:
        filename = os.path.basename(path)
        return os.path.normpath(os.path.join(self.root, self.bucket_for(filename), filename))

    def relocate(self, path: str) -> str:
        """
        Moves path to its bucket and returns the new location.
        Returns path unchanged when it already sits in its bucket.

        Raises:
            RelocationError: the bucket would not sit directly below root (names starting
                with ".."), the bucket cannot be created, the target name is taken by a
                different file, or the rename fails (cross-device, permissions).
        """
        source = os.path.abspath(path)
        target = self.target_for(source)
        if source == target:
            return source

        bucket = os.path.dirname(target)
        if os.path.dirname(bucket) != self.root:
            raise RelocationError(source, target, f"bucket {bucket} is outside {self.root}")
        try:
            self.make_dir(bucket)
        except OSError as e:
            raise RelocationError(source, target, f"cannot create {bucket}: {e}") from e
        if not os.path.isdir(bucket):
            raise RelocationError(source, target, f"{bucket} is not a directory")

        if os.path.lexists(target):
            try:
                same = os.path.samefile(source, target)
            except OSError:
                same = False
            if same:
                return source
            raise RelocationError(source, target, "target exists and is a different file")

        try:
            os.rename(source, target)
        except OSError as e:
            raise RelocationError(source, target, e.strerror or str(e)) from e

        logger.info(f"Organizing {source} -> {target}")
        return target
