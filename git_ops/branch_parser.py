"""
Parser for `git branch -a --format=%(refname:short)|%(HEAD)|%(refname:rstrip=-2)`.
"""

from __future__ import annotations

from typing import List, Optional

from .models import Branch

REMOTE_PREFIX = "origin/"
# Symbolic pointer to the remote's default branch, not a branch of its own.
REMOTE_HEAD = "origin/HEAD"


def parse_branches(branch_output: str) -> List[Branch]:
    """Parses 'name|marker|ref-prefix' lines, keeping input order."""
    branches = []
    for raw_line in (branch_output or "").split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        branch = _parse_branch_line(line)
        if branch is not None:
            branches.append(branch)
    return branches


def _parse_branch_line(line: str) -> Optional[Branch]:
    parts = line.split("|")
    if len(parts) < 2:
        return None

    name = parts[0].strip()
    if name == REMOTE_HEAD:
        return None

    return Branch(
        name=name,
        is_current=parts[1].strip() == "*",
        is_remote=name.startswith(REMOTE_PREFIX),
    )
