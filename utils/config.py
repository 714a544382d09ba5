"""
Runtime configuration.

main.py builds one AppConfig from the command line and hands it to the
window and controller, so nothing reads settings from globals.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

GIT_EXECUTABLE_ENV = "GITPANE_GIT"
DEFAULT_DEBOUNCE_MS = 300
DEFAULT_ERROR_DISMISS_MS = 3000
DEFAULT_ERROR_TICK_MS = 100


def _default_git_executable() -> str:
    return os.environ.get(GIT_EXECUTABLE_ENV) or "git"


@dataclass
class AppConfig:
    repository: Optional[str] = None
    git_executable: str = field(default_factory=_default_git_executable)
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    error_dismiss_ms: int = DEFAULT_ERROR_DISMISS_MS
    error_tick_ms: int = DEFAULT_ERROR_TICK_MS
    verbosity: int = 0
