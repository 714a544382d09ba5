"""
Value types produced from git's textual output.

Everything here is rebuilt from scratch on every reload; consumers look
things up again by path or name instead of holding on to old instances.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class FileChangeKind(Enum):
    MODIFIED = "Modified"
    ADDED = "Added"
    DELETED = "Deleted"
    RENAMED = "Renamed"
    UNTRACKED = "Untracked"


@dataclass(frozen=True)
class BranchStatus:
    """Checked out branch plus its distance from the upstream."""

    name: str = "HEAD"
    ahead_by: int = 0
    behind_by: int = 0


@dataclass(frozen=True)
class FileChange:
    path: str
    kind: FileChangeKind
    is_staged: bool


@dataclass(frozen=True)
class RepositoryStatus:
    """One `git status` snapshot. Replaced wholesale, never patched."""

    repository_path: str
    branch: BranchStatus = field(default_factory=BranchStatus)
    changes: Tuple[FileChange, ...] = ()


@dataclass(frozen=True)
class Branch:
    name: str
    is_current: bool
    is_remote: bool
