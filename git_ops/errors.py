"""
Exception types shared by the git layer and the view-model layer.

The controller turns GitCommandError into a user-facing message and
drops OperationCancelled silently.
"""

from __future__ import annotations


class GitAppError(Exception):
    """Base class for errors raised by this application."""


class GitCommandError(GitAppError):
    """Raised when a git invocation exits non-zero or cannot be started."""


class OperationCancelled(GitAppError):
    """Raised when a git invocation is abandoned through its cancellation token."""
