"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/duplicate_service.py
Retention policy for deletion mode.
"""
import os
from typing import List, Tuple

from dupindex.core.models import DuplicateGroup


def _is_below(root: str, path: str) -> bool:
    try:
        return os.path.commonpath([root, os.path.abspath(path)]) == root
    except ValueError:  # different drives
        return False


class DuplicateService:
    @staticmethod
    def keep_only_one_file_per_group(groups: List[DuplicateGroup]) -> Tuple[List[str], List[str]]:
        """
        Keeps the lexicographically first path of each group and marks the rest for deletion.
        Single-member groups are not duplicates and are left alone.
        Returns:
            - List of paths to be deleted
            - List of paths kept (one per duplicate group)
        """
        files_to_delete = []
        kept = []

        for group in groups:
            if not group.is_duplicate():
                continue
            keeper = group.keeper
            kept.append(keeper)
            files_to_delete.extend(p for p in sorted(group.paths) if p != keeper)

        return files_to_delete, kept

    @staticmethod
    def restrict_to_root(groups: List[DuplicateGroup], root: str) -> List[DuplicateGroup]:
        """
        Keeps only the paths below root in each group.
        Groups left with fewer than 2 paths are dropped, so entries indexed under another
        root are never chosen for deletion (nor count as the kept copy).
        """
        root = os.path.abspath(root)
        restricted = []
        for group in groups:
            inside = [p for p in group.paths if _is_below(root, p)]
            if len(inside) >= 2:
                restricted.append(DuplicateGroup(digest=group.digest, paths=inside))
        return restricted
