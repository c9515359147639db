"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/store.py
JSON persistence for the Index.

File format:
    {
      "Files":  {"<path>": "<hex-digest>", ...},
      "Hashes": {"<hex-digest>": ["<path>", ...], ...}
    }

The Hashes map is derivable from Files but is stored so that large indexes load without
regrouping. Saves go to a temporary sibling and are renamed into place, so the previous
file is either intact or fully replaced.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Tuple

from dupindex.core.errors import IndexLoadError, IndexSaveError
from dupindex.core.index import Index
from dupindex.core.interfaces import IndexStore

logger = logging.getLogger(__name__)

CACHE_ENV_VAR = "DUPINDEX_CACHE"
DEFAULT_INDEX_PATH = str(Path.home() / ".dedupcache.json")
TMP_SUFFIX = ".tmp"


def default_index_path() -> str:
    """Index location from the environment, else the per-user default."""
    return os.environ.get(CACHE_ENV_VAR) or DEFAULT_INDEX_PATH


class JsonIndexStore(IndexStore):
    """Stores an Index as a single JSON object."""

    def load(self, location: str) -> Tuple[Index, Optional[Exception]]:
        """
        Reads the index at location.
        Returns:
            (index, error): a missing file gives an empty index and no error; an unreadable
            or malformed file gives an empty index and the IndexLoadError.
        """
        path = Path(location)
        if not path.exists():
            logger.debug(f"No index at {location}, starting empty")
            return Index(), None

        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise IndexLoadError("top-level value is not an object")
            index = Index.from_maps(data.get("Files"), data.get("Hashes"))
        except IndexLoadError as e:
            error = IndexLoadError(f"Malformed index {location}: {e}")
        except (OSError, ValueError) as e:
            error = IndexLoadError(f"Cannot load index {location}: {e}")
        else:
            logger.debug(f"Loaded {len(index)} entries from {location}")
            return index, None

        logger.warning(f"{error}; starting with an empty index")
        return Index(), error

    def save(self, index: Index, location: str) -> None:
        """
        Writes the full index atomically.
        Raises:
            IndexSaveError: the file could not be written. Not retried.
        """
        path = Path(location)
        tmp = path.with_name(path.name + TMP_SUFFIX)
        payload = {"Files": index.files_map(), "Hashes": index.hashes_map()}
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(payload, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except OSError as e:
            try:
                tmp.unlink()
            except OSError:
                pass
            raise IndexSaveError(f"Cannot save index to {location}: {e}") from e
        logger.debug(f"Saved {len(index)} entries to {location}")
