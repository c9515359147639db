"""
Unified command orchestrator for indexing runs.
This is the SINGLE source of truth for the run workflow; the CLI only parses arguments,
prints, and asks for confirmation.
"""
import logging
from typing import Callable, List, Optional

from dupindex.core.archive import ZipArchiveExpander
from dupindex.core.engine import DedupEngine
from dupindex.core.hasher import HasherImpl
from dupindex.core.interfaces import IndexStore, ProgressCallback, StoppedFlag, TreeWalker
from dupindex.core.models import (
    DeduplicationParams, DuplicateGroup, EngineState, RunResult, Stage)
from dupindex.core.organizer import PrefixOrganizer
from dupindex.core.scanner import TreeWalkerImpl
from dupindex.core.store import JsonIndexStore, TMP_SUFFIX
from dupindex.services.duplicate_service import DuplicateService
from dupindex.services.file_service import FileService

logger = logging.getLogger(__name__)


class DeduplicationCommand:
    """
    Orchestrates one run:
    1. Validate the root (TraversalError before any index mutation)
    2. Load the index, purge it if requested
    3. Walk the tree through the engine (cancellable via stopped_flag)
    4. On completion: report groups, then delete duplicates below the root if requested
       and confirmed
    5. Persist the index - once, in every outcome

    Usage:
        params = DeduplicationParams(root_dir="~/Downloads", cache_path="~/.dedupcache.json")
        command = DeduplicationCommand()
        result = command.execute(
            params,
            progress_callback=cli_progress_printer,
            stopped_flag=cancellation_token,
            report_callback=print_groups,
        )
    """

    def __init__(
            self,
            store: Optional[IndexStore] = None,
            walker: Optional[TreeWalker] = None,
            remove_file: Optional[Callable[[str], None]] = None,
    ):
        self.store = store or JsonIndexStore()
        self.walker = walker
        self.remove_file = remove_file or FileService.move_to_trash
        self.engine: Optional[DedupEngine] = None

    def execute(
            self,
            params: DeduplicationParams,
            progress_callback: Optional[ProgressCallback] = None,
            stopped_flag: Optional[StoppedFlag] = None,
            report_callback: Optional[Callable[[List[DuplicateGroup]], None]] = None,
            confirm_deletion: Optional[Callable[[List[DuplicateGroup]], bool]] = None,
    ) -> RunResult:
        """
        Execute a run with given parameters.

        Args:
            params: Validated run parameters
            progress_callback: (stage: str, current: int, total: Optional[int]) -> None
            stopped_flag: () -> bool (returns True if the run should stop)
            report_callback: receives the duplicate groups before anything is deleted
            confirm_deletion: asked before deleting; deletion is skipped when it returns False

        Returns:
            RunResult with the final state, groups, stats and any load/save error

        Raises:
            TraversalError: the root cannot be walked. Nothing is loaded or saved.
        """
        walker = self.walker or TreeWalkerImpl(
            ignored_paths=[params.cache_path, params.cache_path + TMP_SUFFIX]
        )
        entries = walker.walk(params.root_dir)

        total = None
        if params.show_progress:
            total = walker.count_files(params.root_dir)
            if progress_callback:
                progress_callback(Stage.COUNT.value, total, total)

        index, load_error = self.store.load(params.cache_path)
        if params.purge_cache:
            logger.info("Purging index")
            index.purge()

        self.engine = engine = DedupEngine(
            index,
            hasher=HasherImpl(),
            store=self.store,
            location=params.cache_path,
            organizer=PrefixOrganizer(params.root_dir) if params.organize else None,
            expander=ZipArchiveExpander() if params.expand_archives else None,
            stopped_flag=stopped_flag,
            progress_callback=progress_callback,
        )

        groups: List[DuplicateGroup] = []
        deletion = None
        try:
            state = engine.walk(entries, total=total)
            if state == EngineState.COMPLETING:
                groups = list(engine.duplicate_groups())
                if report_callback:
                    report_callback(groups)
                # The index may hold other roots; only paths under this one are deletable
                deletable = DuplicateService.restrict_to_root(groups, params.root_dir)
                if params.delete_duplicates and deletable:
                    if confirm_deletion is None or confirm_deletion(deletable):
                        deletion = engine.delete_duplicates(self.remove_file, deletable)
        finally:
            save_error = engine.persist()

        return RunResult(
            state=engine.state,
            groups=groups,
            stats=engine.stats,
            deletion=deletion,
            load_error=load_error,
            save_error=save_error,
        )
