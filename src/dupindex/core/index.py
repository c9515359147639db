"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/index.py
Content-addressed index: path -> digest and digest -> paths.

INVARIANT
---------
For every `path -> d` in the files map, `path` is a member of the group for `d` in the
hashes map and of no other group. Every group is non-empty. All mutations go through
record(), rekey(), remove() and purge(), each of which updates both maps before returning.

Digests are kept as lowercase hex strings, the same form used by the persisted file.
"""

import logging
import re
from typing import Dict, Iterator, List, Mapping, Optional, Union

from dupindex.core.errors import IndexInvariantError, IndexLoadError
from dupindex.core.models import DuplicateGroup

logger = logging.getLogger(__name__)

DIGEST_SIZE = 32
_HEX_DIGEST = re.compile(r"^[0-9a-f]{64}$")


def digest_to_hex(digest: Union[bytes, str]) -> str:
    """Normalizes a raw or hex digest to lowercase hex, validating its length."""
    if isinstance(digest, bytes):
        if len(digest) != DIGEST_SIZE:
            raise ValueError(f"Digest must be {DIGEST_SIZE} bytes, got {len(digest)}")
        return digest.hex()
    if isinstance(digest, str):
        value = digest.lower()
        if not _HEX_DIGEST.match(value):
            raise ValueError(f"Invalid hex digest: {digest!r}")
        return value
    raise TypeError(f"Digest must be bytes or str, not {type(digest).__name__}")


class Index:
    """
    Owns both maps for the duration of a run. Not thread-safe; a run is single-threaded.
    """

    def __init__(self):
        self._files: Dict[str, str] = {}
        self._hashes: Dict[str, List[str]] = {}

    # ---------- queries ----------

    def contains(self, path: str) -> bool:
        """True iff path already has a stored digest."""
        return path in self._files

    __contains__ = contains

    def digest_of(self, path: str) -> Optional[str]:
        return self._files.get(path)

    def paths_for(self, digest: Union[bytes, str]) -> List[str]:
        return list(self._hashes.get(digest_to_hex(digest), ()))

    def __len__(self) -> int:
        return len(self._files)

    @property
    def group_count(self) -> int:
        return len(self._hashes)

    def duplicate_groups(self) -> Iterator[DuplicateGroup]:
        """
        Lazily yields groups with at least two members.
        Groups come in digest order and paths within a group are sorted, so output is
        deterministic.
        """
        for digest in sorted(self._hashes):
            paths = self._hashes[digest]
            if len(paths) >= 2:
                yield DuplicateGroup(digest=digest, paths=sorted(paths))

    # ---------- mutations ----------

    def record(self, path: str, digest: Union[bytes, str]) -> None:
        """
        Stores path -> digest and adds path to the digest's group.
        If the path was recorded under another digest, it leaves that group first.
        """
        hex_digest = digest_to_hex(digest)
        previous = self._files.get(path)
        if previous == hex_digest:
            return
        if previous is not None:
            self._detach(path, previous)
        self._files[path] = hex_digest
        self._hashes.setdefault(hex_digest, []).append(path)

    def rekey(self, old_path: str, new_path: str) -> None:
        """
        Moves an entry to a new path, keeping its digest.
        Any entry already stored under new_path is replaced.
        """
        if old_path == new_path:
            return
        digest = self._files.get(old_path)
        if digest is None:
            raise KeyError(old_path)
        self.remove(new_path)
        self._detach(old_path, digest)
        del self._files[old_path]
        self._files[new_path] = digest
        self._hashes.setdefault(digest, []).append(new_path)

    def remove(self, path: str) -> bool:
        """Drops path from both maps. Returns False if it was not indexed."""
        digest = self._files.pop(path, None)
        if digest is None:
            return False
        self._detach(path, digest)
        return True

    def purge(self) -> None:
        """Discards all state."""
        self._files = {}
        self._hashes = {}

    def _detach(self, path: str, digest: str) -> None:
        group = self._hashes.get(digest)
        if not group:
            return
        try:
            group.remove(path)
        except ValueError:
            pass
        if not group:
            del self._hashes[digest]

    # ---------- (de)serialization helpers ----------

    def files_map(self) -> Dict[str, str]:
        return dict(self._files)

    def hashes_map(self) -> Dict[str, List[str]]:
        return {digest: list(paths) for digest, paths in self._hashes.items()}

    @classmethod
    def from_maps(
            cls,
            files: Optional[Mapping[str, str]],
            hashes: Optional[Mapping[str, List[str]]] = None
    ) -> 'Index':
        """
        Builds an index from the two persisted maps.
        The files map is authoritative: if the hashes map disagrees with it, the groups
        are rebuilt from the files map.

        Raises:
            IndexLoadError: a key or digest has the wrong type or format.
        """
        index = cls()
        files = files or {}
        hashes = hashes or {}
        if not isinstance(files, Mapping) or not isinstance(hashes, Mapping):
            raise IndexLoadError("Files and Hashes must be objects")

        for path, digest in files.items():
            if not isinstance(path, str) or not isinstance(digest, str):
                raise IndexLoadError(f"Invalid entry: {path!r} -> {digest!r}")
            try:
                index._files[path] = digest_to_hex(digest)
            except ValueError as e:
                raise IndexLoadError(str(e)) from e

        for digest, paths in hashes.items():
            if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
                raise IndexLoadError(f"Invalid group for digest {digest!r}")
            if paths:
                index._hashes[str(digest).lower()] = list(dict.fromkeys(paths))

        try:
            index.check_invariants()
        except IndexInvariantError as e:
            logger.warning(f"Rebuilding digest groups from file entries: {e}")
            index._rebuild_groups()
        return index

    def _rebuild_groups(self) -> None:
        self._hashes = {}
        for path, digest in self._files.items():
            self._hashes.setdefault(digest, []).append(path)

    def check_invariants(self) -> None:
        """Raises IndexInvariantError describing the first violation found."""
        members = 0
        for digest, paths in self._hashes.items():
            if not paths:
                raise IndexInvariantError(f"Empty group for {digest}")
            if len(set(paths)) != len(paths):
                raise IndexInvariantError(f"Repeated path in group {digest}")
            for path in paths:
                if self._files.get(path) != digest:
                    raise IndexInvariantError(f"{path} listed under {digest} but stored as {self._files.get(path)}")
            members += len(paths)
        if members != len(self._files):
            raise IndexInvariantError(f"{len(self._files)} file entries but {members} group members")

    def __repr__(self):
        return f"<Index files={len(self._files)}, groups={len(self._hashes)}>"
