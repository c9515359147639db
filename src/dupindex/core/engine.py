"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/engine.py
Per-file pipeline that keeps the index up to date while a tree is walked.

PIPELINE (per entry, in order)
------------------------------
1. Directories are skipped
2. Archives are expanded; the extracted files are queued and the archive entry stops here
3. Paths already in the index are skipped (no re-hash)
4. The file is organized into its prefix bucket (optional)
5. The file at its final location is hashed
6. path -> digest is recorded

STATES
------
IDLE -> WALKING -> (COMPLETING | INTERRUPTED)

The stopped_flag is checked before every entry. Because record() only runs after a
successful hash, the index is consistent at every check: an interrupted run keeps every
file processed before the stop and nothing of the file in flight.
"""

import logging
import os
import time
from collections import deque
from typing import Callable, Deque, Iterable, Iterator, List, Optional

from dupindex.core.errors import ArchiveError, IndexSaveError, ReadError, RelocationError
from dupindex.core.hasher import HasherImpl
from dupindex.core.index import Index
from dupindex.core.interfaces import (
    ArchiveExpander, Hasher, IndexStore, Organizer, ProgressCallback, StoppedFlag)
from dupindex.core.models import (
    DeduplicationStats, DeletionResult, DuplicateGroup, EngineState, Stage, WalkEntry)
from dupindex.services.duplicate_service import DuplicateService

logger = logging.getLogger(__name__)


class DedupEngine:
    """
    Owns the Index for the duration of one run.

    Attributes:
        index: Index being updated (passed in, never a module global)
        hasher: Content digest computer
        store/location: Where persist() writes the index
        organizer: Optional prefix organizer
        expander: Optional archive expander
    """

    def __init__(
            self,
            index: Index,
            hasher: Optional[Hasher] = None,
            store: Optional[IndexStore] = None,
            location: Optional[str] = None,
            organizer: Optional[Organizer] = None,
            expander: Optional[ArchiveExpander] = None,
            stopped_flag: Optional[StoppedFlag] = None,
            progress_callback: Optional[ProgressCallback] = None,
    ):
        self.index = index
        self.hasher = hasher or HasherImpl()
        self.store = store
        self.location = location
        self.organizer = organizer
        self.expander = expander
        self.stopped_flag = stopped_flag
        self.progress_callback = progress_callback
        self.state = EngineState.IDLE
        self.stats = DeduplicationStats()
        self.progress_total: Optional[int] = None

    def walk(self, entries: Iterable[WalkEntry], total: Optional[int] = None) -> EngineState:
        """
        Runs every entry (and every file extracted along the way) through process().
        Returns COMPLETING when the entries are exhausted, INTERRUPTED when stopped_flag
        fired first.
        """
        if self.state != EngineState.IDLE:
            raise RuntimeError(f"Engine cannot walk in state {self.state.display_name}")
        self.state = EngineState.WALKING
        self.progress_total = total
        start_time = time.time()

        # Extracted archive members go into the same queue as walker entries
        pending: Deque[WalkEntry] = deque()
        try:
            for entry in entries:
                pending.append(entry)
                while pending:
                    if self.stopped_flag and self.stopped_flag():
                        self.state = EngineState.INTERRUPTED
                        logger.warning(
                            f"Interrupted after {self.stats.files_seen} files; "
                            f"{len(pending)} queued entries not processed"
                        )
                        return self.state
                    pending.extend(self.process(pending.popleft()))
        finally:
            self.stats.total_time += time.time() - start_time

        self.state = EngineState.COMPLETING
        return self.state

    def process(self, entry: WalkEntry) -> List[WalkEntry]:
        """
        Applies the pipeline to one entry.
        Returns newly discovered entries (extracted archive members) to be processed next.
        Per-file errors are logged, counted and swallowed here so the walk continues.
        """
        if entry.is_dir:
            return []

        path = os.path.abspath(entry.path)
        self.stats.files_seen += 1
        logger.info(path)
        if self.progress_callback:
            self.progress_callback(Stage.INDEX.value, self.stats.files_seen, self.progress_total)

        if self.expander and self.expander.is_archive(path):
            try:
                extracted = self.expander.expand(path)
            except ArchiveError as e:
                self._fail(path, e)
                return []
            self.stats.archives_expanded += 1
            if self.progress_total is not None:
                self.progress_total += len(extracted)
            return [WalkEntry(path=p) for p in extracted]

        if self.index.contains(path):
            logger.info(f"Skipping {path} already in cache")
            self.stats.files_cached += 1
            return []

        if self.organizer:
            try:
                new_path = self.organizer.relocate(path)
            except RelocationError as e:
                self._fail(path, e)
            else:
                if new_path != path:
                    self.stats.files_relocated += 1
                    path = new_path

        try:
            digest = self.hasher.compute_digest(path)
        except ReadError as e:
            self._fail(path, e)
            return []

        self.index.record(path, digest)
        self.stats.files_hashed += 1
        return []

    def duplicate_groups(self) -> Iterator[DuplicateGroup]:
        return self.index.duplicate_groups()

    def delete_duplicates(
            self,
            remove_file: Callable[[str], None],
            groups: Optional[List[DuplicateGroup]] = None
    ) -> DeletionResult:
        """
        Keeps the lexicographically first path of every group and removes the rest, both
        from disk (via remove_file) and from the index.
        A file that is already gone is dropped from the index and reported as failed.
        """
        if groups is None:
            groups = list(self.duplicate_groups())
        files_to_delete, kept = DuplicateService.keep_only_one_file_per_group(groups)
        result = DeletionResult(kept=kept)

        for i, path in enumerate(files_to_delete, 1):
            if self.progress_callback:
                self.progress_callback(Stage.DELETE.value, i, len(files_to_delete))
            try:
                remove_file(path)
            except FileNotFoundError as e:
                self.index.remove(path)
                result.failed.append((path, str(e)))
                logger.warning(f"Already gone, dropped from index: {path}")
                continue
            except (OSError, RuntimeError) as e:
                result.failed.append((path, str(e)))
                logger.warning(f"Failed to delete {path}: {e}")
                continue
            self.index.remove(path)
            result.deleted.append(path)
            logger.info(f"Deleted {path}")

        return result

    def persist(self) -> Optional[IndexSaveError]:
        """
        Saves the index. Called exactly once per run, whatever the final state.
        Returns the save error instead of raising: there is no recovery at this point.
        """
        if self.store is None or self.location is None:
            return None
        try:
            self.store.save(self.index, self.location)
        except IndexSaveError as e:
            logger.error(str(e))
            return e
        return None

    def _fail(self, path: str, error: Exception) -> None:
        logger.warning(str(error))
        self.stats.add_error(path, error)
