# git_ops/commands.py
import logging
import os
import shlex
import subprocess
import threading
from dataclasses import dataclass

from PyQt6.QtCore import QObject, QThread, pyqtSignal, pyqtSlot

from .errors import GitCommandError, OperationCancelled

LOG = logging.getLogger(__name__)

# How often a running git process checks its cancellation token (seconds).
CANCEL_POLL_INTERVAL = 0.05
GIT_NOT_FOUND_MESSAGE = "Git executable not found. Is Git installed and in PATH?"


@dataclass(frozen=True)
class GitResult:
    exit_code: int
    stdout: str
    stderr: str


class CancellationToken:
    """Cooperative cancellation flag shared between the UI thread and a worker."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        # Cancelling twice is harmless.
        self._event.set()

    @property
    def is_cancelled(self):
        return self._event.is_set()

    def raise_if_cancelled(self):
        if self._event.is_set():
            raise OperationCancelled("Operation was cancelled.")


def run_git(arguments, cwd, token=None, git_executable="git"):
    """Runs `git <arguments>` in cwd and returns exit code, stdout and stderr.

    arguments is a single string such as 'add "path with spaces"'; it is
    split with POSIX shell rules, never handed to a shell.
    """
    if not cwd:
        raise ValueError("Cannot run Git command without a working directory (cwd).")
    if not os.path.isdir(cwd):
        raise GitCommandError(f"Directory does not exist: {cwd}")
    if token is not None:
        token.raise_if_cancelled()

    command = [git_executable, *shlex.split(arguments)]
    env = os.environ.copy()
    env['LANG'] = 'C'; env['LC_ALL'] = 'C'
    LOG.debug("Running git command in %s: %s", cwd, arguments)

    try:
        process = subprocess.Popen(
            command, cwd=cwd, env=env, stdout=subprocess.PIPE, stderr=subprocess.PIPE,
            text=True, encoding='utf-8', errors='replace'
        )
    except FileNotFoundError as exc:
        raise GitCommandError(GIT_NOT_FOUND_MESSAGE) from exc
    except OSError as exc:
        raise GitCommandError(f"Failed to execute git: {exc}") from exc

    while True:
        try:
            stdout, stderr = process.communicate(timeout=CANCEL_POLL_INTERVAL)
            break
        except subprocess.TimeoutExpired:
            if token is not None and token.is_cancelled:
                process.kill()
                process.communicate()
                LOG.debug("Cancelled git command: %s", arguments)
                raise OperationCancelled(f"Cancelled: git {arguments}")

    if process.returncode != 0:
        LOG.debug("git exited with %s, stderr: %s", process.returncode, stderr.strip())
    return GitResult(process.returncode, stdout, stderr)


class GitCommandThread(QThread):
    """Runs a unit of git work in a separate thread."""
    # Single signal: Emits (thread_instance, success_bool, result_object, error_object)
    command_finished = pyqtSignal(object, bool, object, object)

    def __init__(self, work, operation_name):
        super().__init__()
        self.work = work
        self.operation_name = operation_name

    def run(self):
        result = None
        error = None
        success = False
        try:
            result = self.work()
            success = True
        except Exception as e:
            error = e
        finally:
            # Emit results regardless of success/failure in run()
            self.command_finished.emit(self, success, result, error)


class TaskRunner(QObject):
    """Starts GitCommandThreads and delivers their results on the UI thread."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self._threads = {}

    @property
    def active_count(self):
        return len(self._threads)

    def submit(self, operation_name, work, on_success, on_error=None):
        thread = GitCommandThread(work, operation_name)
        thread.command_finished.connect(self._on_command_finished)
        self._threads[thread] = (on_success, on_error)
        LOG.debug("Starting %s", operation_name)
        thread.start()
        return thread

    @pyqtSlot(object, bool, object, object)
    def _on_command_finished(self, thread, success, result, error):
        callbacks = self._threads.pop(thread, None)
        # run() has returned by the time the queued signal arrives; wait() just reaps the thread.
        thread.wait()
        if callbacks is None:
            LOG.debug("Ignoring finished signal from unexpected thread: %s", thread)
            return

        on_success, on_error = callbacks
        LOG.debug("Finished %s, success: %s", thread.operation_name, success)
        if success:
            on_success(result)
        elif on_error is not None:
            on_error(error)
        else:
            LOG.warning("%s failed: %s", thread.operation_name, error)

    def wait_for_all(self, timeout_ms=5000):
        """Blocks until every running thread has finished (used on shutdown)."""
        for thread in list(self._threads):
            thread.wait(timeout_ms)
