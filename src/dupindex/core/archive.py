"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/archive.py
Expands zip archives next to themselves and removes the archive.

Extraction is two-phase: every member's target is validated before anything is written,
so an archive with one escaping member, or one member that would overwrite an existing
file, writes nothing at all. The expander does not touch the index; the extracted paths
are handed back to the engine, which feeds them through the normal per-file pipeline.
"""

import logging
import os
import shutil
import zipfile
from typing import List, Optional, Tuple

from dupindex.core.errors import ArchiveExtractionError, UnsafeArchiveEntry
from dupindex.core.interfaces import ArchiveExpander

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSION = ".zip"


class ZipArchiveExpander(ArchiveExpander):
    """
    Attributes:
        extension: Filename suffix that marks an archive (case-insensitive)
    """

    def __init__(self, extension: str = ARCHIVE_EXTENSION):
        self.extension = extension.lower()

    def is_archive(self, path: str) -> bool:
        return path.lower().endswith(self.extension)

    def expand(self, path: str, dest: Optional[str] = None) -> List[str]:
        """
        Extracts path into dest (default: the archive's directory), then deletes it.
        Returns:
            Extracted regular-file paths, in archive order.
        Raises:
            UnsafeArchiveEntry: a member resolves outside dest. Nothing is written.
            ArchiveExtractionError: corrupt archive, a member that would overwrite an existing
                file, or I/O failure. Files written so far are removed and the archive is kept.
        """
        archive = os.path.abspath(path)
        dest = os.path.abspath(dest or os.path.dirname(archive))
        logger.info(f"Unzipping {archive}")

        try:
            with zipfile.ZipFile(archive) as zf:
                plan = self._plan(archive, dest, zf.infolist())
                written = self._extract(archive, zf, plan)
        except UnsafeArchiveEntry:
            raise
        except ArchiveExtractionError:
            raise
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as e:
            raise ArchiveExtractionError(archive, str(e)) from e

        try:
            os.remove(archive)
        except OSError as e:
            raise ArchiveExtractionError(archive, f"extracted but cannot delete archive: {e}") from e
        return written

    @staticmethod
    def _plan(archive: str, dest: str, members: List[zipfile.ZipInfo]) -> List[Tuple[zipfile.ZipInfo, str]]:
        """
        Resolves every member target. Rejects the archive if one escapes dest, or if a
        file member would overwrite an existing path (which may already be indexed).
        """
        real_dest = os.path.realpath(dest)
        plan = []
        planned = set()
        for info in members:
            target = os.path.realpath(os.path.join(real_dest, info.filename))
            if os.path.commonpath([real_dest, target]) != real_dest:
                raise UnsafeArchiveEntry(archive, info.filename)
            if target == real_dest:
                if info.is_dir():
                    continue
                raise UnsafeArchiveEntry(archive, info.filename)
            if info.is_dir():
                if os.path.lexists(target) and not os.path.isdir(target):
                    raise ArchiveExtractionError(archive, f"{target} exists and is not a directory")
            elif os.path.lexists(target) or target in planned:
                raise ArchiveExtractionError(archive, f"refusing to overwrite {target}")
            planned.add(target)
            plan.append((info, target))
        return plan

    @staticmethod
    def _extract(archive: str, zf: zipfile.ZipFile, plan: List[Tuple[zipfile.ZipInfo, str]]) -> List[str]:
        written: List[str] = []
        try:
            for info, target in plan:
                if info.is_dir():
                    os.makedirs(target, exist_ok=True)
                    continue
                os.makedirs(os.path.dirname(target), exist_ok=True)
                with zf.open(info) as src, open(target, "xb") as dst:
                    written.append(target)
                    shutil.copyfileobj(src, dst)
        except (OSError, zipfile.BadZipFile, EOFError) as e:
            for target in written:
                try:
                    os.remove(target)
                except OSError as cleanup_error:
                    logger.warning(f"Cannot remove partially extracted {target}: {cleanup_error}")
            raise ArchiveExtractionError(archive, str(e)) from e
        return written
