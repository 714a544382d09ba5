"""
The git command-line operations the application needs.

Every method takes the repository path and an optional cancellation
token, runs exactly one git invocation and either returns parsed data
or raises GitCommandError carrying a cleaned-up stderr message.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from utils.helpers import extract_error_message, quote_argument

from .branch_parser import parse_branches
from .commands import CancellationToken, GitResult, run_git
from .errors import GitCommandError
from .models import Branch, RepositoryStatus
from .status_parser import parse_status

LOG = logging.getLogger(__name__)

IS_REPOSITORY_ARGS = "rev-parse --is-inside-work-tree"
STATUS_ARGS = "status --porcelain=v2 -b"
BRANCH_ARGS = "branch -a --format=%(refname:short)|%(HEAD)|%(refname:rstrip=-2)"


class GitCliService:
    def __init__(self, git_executable: str = "git"):
        self.git_executable = git_executable

    def is_repository(self, path: str, token: Optional[CancellationToken] = None) -> bool:
        """True when path lies inside a git work tree."""
        try:
            result = self._run(IS_REPOSITORY_ARGS, path, token)
        except GitCommandError as exc:
            LOG.info("Repository check for %s failed: %s", path, exc)
            return False
        return result.exit_code == 0 and result.stdout.strip() == "true"

    def get_status(self, repository_path: str, token: Optional[CancellationToken] = None) -> RepositoryStatus:
        result = self._run_checked(STATUS_ARGS, repository_path, token)
        return parse_status(repository_path, result.stdout)

    def get_branches(self, repository_path: str, token: Optional[CancellationToken] = None) -> List[Branch]:
        result = self._run_checked(BRANCH_ARGS, repository_path, token)
        return parse_branches(result.stdout)

    def checkout(self, repository_path: str, branch_name: str, token: Optional[CancellationToken] = None) -> None:
        self._run_checked(f"checkout {quote_argument(branch_name)}", repository_path, token)

    def stage_file(self, repository_path: str, relative_path: str, token: Optional[CancellationToken] = None) -> None:
        self._run_checked(f"add {quote_argument(relative_path)}", repository_path, token)

    def unstage_file(self, repository_path: str, relative_path: str, token: Optional[CancellationToken] = None) -> None:
        self._run_checked(f"restore --staged {quote_argument(relative_path)}", repository_path, token)

    def commit(self, repository_path: str, message: str, token: Optional[CancellationToken] = None) -> None:
        self._run_checked(f"commit -m {quote_argument(message)}", repository_path, token)

    def get_diff(
        self,
        repository_path: str,
        relative_path: str,
        staged: bool,
        token: Optional[CancellationToken] = None,
    ) -> str:
        """Diff of one file against the index, or of the index against HEAD when staged."""
        if staged:
            args = f"diff --cached -- {quote_argument(relative_path)}"
        else:
            args = f"diff -- {quote_argument(relative_path)}"
        return self._run_checked(args, repository_path, token).stdout

    def _run(self, arguments: str, cwd: str, token: Optional[CancellationToken]) -> GitResult:
        return run_git(arguments, cwd, token, git_executable=self.git_executable)

    def _run_checked(self, arguments: str, cwd: str, token: Optional[CancellationToken]) -> GitResult:
        result = self._run(arguments, cwd, token)
        if result.exit_code != 0:
            raise GitCommandError(extract_error_message(result.stderr))
        return result
