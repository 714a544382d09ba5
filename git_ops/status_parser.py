"""
Parser for `git status --porcelain=v2 -b`.

The output is treated as untrusted text: malformed lines degrade to
defaults or fallbacks and parsing never raises.
"""

from __future__ import annotations

from typing import List, Optional

from .models import BranchStatus, FileChange, FileChangeKind, RepositoryStatus

BRANCH_HEAD_PREFIX = "# branch.head "
BRANCH_AB_PREFIX = "# branch.ab "
CHANGE_PREFIXES = ("1 ", "2 ", "? ")

# Space separated fields before the path: "1 XY sub mH mI mW hH hI <path>"
# and "2 XY sub mH mI mW hH hI Xscore <path>\t<origPath>".
ORDINARY_HEADER_FIELDS = 8
RENAME_HEADER_FIELDS = 9


def parse_status(repository_path: str, status_output: str) -> RepositoryStatus:
    """Converts raw porcelain v2 text into a RepositoryStatus."""
    branch_name: Optional[str] = None
    ahead, behind = 0, 0
    changes: List[FileChange] = []

    for raw_line in (status_output or "").split("\n"):
        line = raw_line.rstrip("\r")
        if not line:
            continue

        if line.startswith("#"):
            if line.startswith(BRANCH_HEAD_PREFIX):
                branch_name = line[len(BRANCH_HEAD_PREFIX):].strip()
            elif line.startswith(BRANCH_AB_PREFIX):
                ahead, behind = _parse_ahead_behind(line[len(BRANCH_AB_PREFIX):])
            continue

        if line.startswith(CHANGE_PREFIXES):
            changes.append(_parse_change_line(line))

    branch = BranchStatus(branch_name or "HEAD", ahead, behind)
    return RepositoryStatus(repository_path, branch, tuple(changes))


def _parse_ahead_behind(content):
    ahead, behind = 0, 0
    for part in content.split():
        if part.startswith("+"):
            ahead = _to_count(part[1:])
        elif part.startswith("-"):
            behind = _to_count(part[1:])
    return ahead, behind


def _to_count(text):
    try:
        return max(int(text), 0)
    except ValueError:
        return 0


def _parse_change_line(line: str) -> FileChange:
    if line.startswith("? "):
        return FileChange(line[2:].strip(), FileChangeKind.UNTRACKED, False)

    # Drop the original name of a rename pair, keep "<new path>".
    head = line.split("\t", 1)[0]
    parts = head.split(" ")
    if len(parts) < ORDINARY_HEADER_FIELDS:
        return FileChange(line, FileChangeKind.MODIFIED, False)

    xy = parts[1]
    header_fields = RENAME_HEADER_FIELDS if line.startswith("2 ") else ORDINARY_HEADER_FIELDS
    if len(parts) > header_fields:
        path = head.split(" ", header_fields)[header_fields].strip()
    else:
        path = parts[-1].strip()

    is_staged = len(xy) > 0 and xy[0] != "."
    return FileChange(path, _kind_from_xy(xy), is_staged)


def _kind_from_xy(xy: str) -> FileChangeKind:
    index_status = xy[0] if len(xy) > 0 else "."
    work_tree_status = xy[1] if len(xy) > 1 else "."

    if "A" in (index_status, work_tree_status):
        return FileChangeKind.ADDED
    if "D" in (index_status, work_tree_status):
        return FileChangeKind.DELETED
    if "R" in (index_status, work_tree_status):
        return FileChangeKind.RENAMED
    return FileChangeKind.MODIFIED
