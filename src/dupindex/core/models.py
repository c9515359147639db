"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models for incremental duplicate indexing.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple


# =============================
# Enums
# =============================

class EngineState(Enum):
    """
    Lifecycle of a single run.
    IDLE -> WALKING -> (COMPLETING | INTERRUPTED)
    """
    IDLE = "idle"
    WALKING = "walking"
    COMPLETING = "completing"
    INTERRUPTED = "interrupted"

    @property
    def display_name(self) -> str:
        """Human-readable name for UI display."""
        return self.value.capitalize()

    def __repr__(self) -> str:
        return self.value


class Stage(str, Enum):
    COUNT = "Counting"
    INDEX = "Indexing"
    DELETE = "Deleting"


# ======================
#  Core Data Models
# ======================

@dataclass(frozen=True)
class WalkEntry:
    """
    One event emitted by the tree walker.
    Directories are emitted too; the engine skips them.
    """
    path: str
    is_dir: bool = False

    @property
    def name(self) -> str:
        return os.path.basename(self.path)


@dataclass
class DuplicateGroup:
    """
    Paths sharing one content digest.
    Only groups with two or more members are duplicates.
    """
    digest: str
    paths: List[str]

    @property
    def duplicate_count(self) -> int:
        """How many files are in this group."""
        return len(self.paths)

    def is_duplicate(self) -> bool:
        """True if this group contains at least two files."""
        return self.duplicate_count >= 2

    @property
    def keeper(self) -> Optional[str]:
        """Path retained by deletion mode: the lexicographically first one."""
        return min(self.paths) if self.paths else None

    def __repr__(self):
        return f"<DuplicateGroup digest={self.digest[:12]}, count={len(self.paths)}>"


@dataclass
class DeduplicationStats:
    """
    Counters collected while the engine walks the tree.
    """
    files_seen: int = 0
    files_hashed: int = 0
    files_cached: int = 0
    files_relocated: int = 0
    archives_expanded: int = 0
    total_time: float = 0.0
    errors: List[Tuple[str, str]] = field(default_factory=list)

    def add_error(self, path: str, error: Exception) -> None:
        self.errors.append((path, str(error)))

    def print_summary(self) -> str:
        lines = [
            "📊 Indexing Statistics:",
            f"Total Execution Time: {self.total_time:.3f}s\n",
            f"📁 Files seen: {self.files_seen}",
            f"🔍 Files hashed: {self.files_hashed}",
            f"💾 Already in cache: {self.files_cached}",
        ]
        if self.files_relocated:
            lines.append(f"📂 Files organized: {self.files_relocated}")
        if self.archives_expanded:
            lines.append(f"🗜️ Archives expanded: {self.archives_expanded}")
        if self.errors:
            lines.append(f"⚠️ Errors: {len(self.errors)}")
        return "\n".join(lines)


@dataclass
class DeletionResult:
    """Outcome of deletion mode."""
    deleted: List[str] = field(default_factory=list)
    kept: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)


@dataclass
class RunResult:
    """Everything a caller needs after one invocation of the command."""
    state: EngineState
    groups: List[DuplicateGroup]
    stats: DeduplicationStats
    deletion: Optional[DeletionResult] = None
    load_error: Optional[Exception] = None
    save_error: Optional[Exception] = None

    @property
    def interrupted(self) -> bool:
        return self.state == EngineState.INTERRUPTED


"""
DTO for run parameters with built-in validation.
Interface-agnostic: used by the CLI and by tests.
"""

@dataclass
class DeduplicationParams:
    """Parameters for one indexing run with validation."""
    root_dir: str
    cache_path: str
    purge_cache: bool = False
    organize: bool = False
    expand_archives: bool = False
    delete_duplicates: bool = False
    verbose: bool = False
    show_progress: bool = False
    force: bool = False

    def __post_init__(self):
        """Validate parameters immediately after creation."""
        if not self.root_dir:
            raise ValueError("Root directory cannot be empty")

        if not self.cache_path:
            raise ValueError("Cache path cannot be empty")

        self.root_dir = str(Path(self.root_dir).expanduser().resolve())
        self.cache_path = str(Path(self.cache_path).expanduser().resolve())
