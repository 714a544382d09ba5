"""
View-model for the main window.

RepositoryController owns everything the window shows about the open
repository and sequences the git operations that change it. All state
lives on the Qt UI thread; git work runs on worker threads through the
task runner and comes back through queued signals. Each piece of state
has a `<name>_changed` signal the window binds to.
"""

import itertools
import logging
from typing import List, Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal, pyqtSlot

from git_ops.commands import TaskRunner
from git_ops.errors import GitCommandError, OperationCancelled
from git_ops.watcher import ChangeWatcher
from utils.config import AppConfig
from utils.helpers import format_branch_display

from .diff_loader import DiffLoader
from .view_models import BranchViewModel, FileChangeViewModel

LOG = logging.getLogger(__name__)

NOT_A_REPOSITORY_MESSAGE = "The selected folder is not a git repository."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred: {}"
FULL_PROGRESS = 100.0


class RepositoryController(QObject):
    repository_path_changed = pyqtSignal(str)
    branch_display_changed = pyqtSignal(str)
    changes_changed = pyqtSignal()
    branches_changed = pyqtSignal()
    selected_change_changed = pyqtSignal(object)
    selected_branch_changed = pyqtSignal(object)
    diff_text_changed = pyqtSignal(str)
    commit_message_changed = pyqtSignal(str)
    error_message_changed = pyqtSignal(str)
    error_dismiss_progress_changed = pyqtSignal(float)
    is_busy_changed = pyqtSignal(bool)

    def __init__(self, git_service, watcher=None, folder_picker=None, runner=None, config=None, parent=None):
        super().__init__(parent)
        self._config = config or AppConfig()
        self._git = git_service
        self._watcher = watcher if watcher is not None else ChangeWatcher(self._config.debounce_ms, self)
        self._folder_picker = folder_picker
        self._runner = runner if runner is not None else TaskRunner(self)

        self._repository_path = ""
        self._branch_display = ""
        self._changes: List[FileChangeViewModel] = []
        self._branches: List[BranchViewModel] = []
        self._selected_change: Optional[FileChangeViewModel] = None
        self._selected_branch: Optional[BranchViewModel] = None
        self._commit_message = ""
        self._error_message = ""
        self._error_dismiss_progress = FULL_PROGRESS
        self._error_elapsed_ms = 0

        # Ids of operations between start and completion; non-empty means busy.
        self._in_flight = set()
        self._operation_ids = itertools.count(1)
        # Snapshot ordering: a reload started earlier never overwrites a later one.
        self._generations = itertools.count(1)
        self._applied_generation = 0

        self._diff_loader = DiffLoader(git_service, self._runner, lambda: self._repository_path, self._report_error, self)
        self._diff_loader.diff_text_changed.connect(self.diff_text_changed)

        self._error_timer = QTimer(self)
        self._error_timer.setInterval(self._config.error_tick_ms)
        self._error_timer.timeout.connect(self._on_error_tick)

        self._watcher.changed.connect(self._on_repository_changed)

    # --- Observable state ---

    @property
    def repository_path(self):
        return self._repository_path

    @property
    def has_repository(self):
        return bool(self._repository_path and self._repository_path.strip())

    @property
    def branch_display(self):
        return self._branch_display

    @property
    def changes(self):
        return list(self._changes)

    @property
    def branches(self):
        return list(self._branches)

    @property
    def selected_change(self):
        return self._selected_change

    @selected_change.setter
    def selected_change(self, change):
        if change is self._selected_change:
            return
        self._set_selected_change(change)

    @property
    def has_selection(self):
        return self._selected_change is not None

    @property
    def selected_branch(self):
        return self._selected_branch

    @selected_branch.setter
    def selected_branch(self, branch):
        if branch is self._selected_branch:
            return
        self._selected_branch = branch
        self.selected_branch_changed.emit(branch)

    @property
    def diff_text(self):
        return self._diff_loader.diff_text

    @property
    def commit_message(self):
        return self._commit_message

    @commit_message.setter
    def commit_message(self, message):
        message = message or ""
        if message == self._commit_message:
            return
        self._commit_message = message
        self.commit_message_changed.emit(message)

    @property
    def can_commit(self):
        return self.has_repository and bool(self._commit_message.strip())

    @property
    def error_message(self):
        return self._error_message

    @property
    def error_dismiss_progress(self):
        return self._error_dismiss_progress

    @property
    def is_busy(self):
        return bool(self._in_flight)

    @property
    def show_empty_repository(self):
        return not self.has_repository

    @property
    def show_empty_changes(self):
        return self.has_repository and not self._changes

    @property
    def show_empty_branches(self):
        return self.has_repository and not self._branches

    # --- Operations ---

    def browse_repository(self):
        """Asks the folder picker for a repository and opens it."""
        path = self._folder_picker() if self._folder_picker is not None else None
        if not path:
            LOG.debug("Folder selection cancelled")
            return
        self.open_repository(path)

    def open_repository(self, path):
        def opened(is_repository):
            if not is_repository:
                self._set_error(NOT_A_REPOSITORY_MESSAGE)
                return
            self.dismiss_error()
            self._set_repository_path(path)
            self._watcher.watch(path)
            self.reload_status(None, True, clear_selection=True)

        self._start_operation("Open repository", lambda: self._git.is_repository(path), opened)

    def close_repository(self):
        """Back to the no-repository state."""
        self._watcher.stop()
        self._applied_generation = next(self._generations)
        self._set_repository_path("")
        self._set_branch_display("")
        self._replace_changes([])
        self._replace_branches([])
        self.selected_branch = None
        self._set_selected_change(None)
        self.commit_message = ""

    def reload_status(self, preserve_selection_path=None, reset_commit_message=True, clear_selection=False):
        if not self.has_repository:
            return
        repository_path = self._repository_path
        generation = next(self._generations)

        self._start_operation(
            "Reload",
            lambda: self._fetch_snapshot(repository_path),
            lambda snapshot: self._apply_snapshot(
                repository_path, generation, snapshot, preserve_selection_path, reset_commit_message, clear_selection
            ),
        )

    def stage_change(self, change):
        if change is None or not self.has_repository:
            return
        self._run_file_operation("Stage", self._git.stage_file, change)

    def unstage_change(self, change):
        if change is None or not self.has_repository:
            return
        self._run_file_operation("Unstage", self._git.unstage_file, change)

    def checkout_branch(self, branch):
        if branch is None or branch.is_current or not self.has_repository:
            return
        repository_path = self._repository_path
        generation = next(self._generations)

        def work():
            self._git.checkout(repository_path, branch.name)
            return self._fetch_snapshot(repository_path)

        self._start_operation(
            "Checkout",
            work,
            lambda snapshot: self._apply_snapshot(repository_path, generation, snapshot, None, True, True),
        )

    def commit(self):
        if not self.can_commit:
            return
        repository_path = self._repository_path
        message = self._commit_message
        generation = next(self._generations)

        def work():
            self._git.commit(repository_path, message)
            return self._fetch_snapshot(repository_path)

        self._start_operation(
            "Commit",
            work,
            lambda snapshot: self._apply_snapshot(repository_path, generation, snapshot, None, True, True),
        )

    def dismiss_error(self):
        self._error_timer.stop()
        self._error_elapsed_ms = 0
        self._set_error_message("")
        self._set_error_dismiss_progress(FULL_PROGRESS)

    def shutdown(self):
        """Stops background activity before the window goes away."""
        self._watcher.stop()
        self._diff_loader.cancel()
        self._error_timer.stop()
        wait_for_all = getattr(self._runner, "wait_for_all", None)
        if wait_for_all is not None:
            wait_for_all()

    # --- Internals ---

    def _run_file_operation(self, operation_name, git_call, change):
        repository_path = self._repository_path
        generation = next(self._generations)

        def work():
            git_call(repository_path, change.path)
            return self._fetch_snapshot(repository_path)

        self._start_operation(
            operation_name,
            work,
            lambda snapshot: self._apply_snapshot(repository_path, generation, snapshot, change.path, False, False),
        )

    def _fetch_snapshot(self, repository_path):
        # Runs on a worker thread.
        status = self._git.get_status(repository_path)
        branches = self._git.get_branches(repository_path)
        return status, branches

    def _apply_snapshot(self, repository_path, generation, snapshot, preserve_selection_path,
                        reset_commit_message, clear_selection):
        if repository_path != self._repository_path or generation < self._applied_generation:
            LOG.debug("Dropping stale status snapshot %s for %s", generation, repository_path)
            return
        self._applied_generation = generation
        status, branches = snapshot

        self._set_branch_display(format_branch_display(status.branch))

        selection_path = None
        if not clear_selection:
            if preserve_selection_path is not None:
                selection_path = preserve_selection_path
            elif self._selected_change is not None:
                selection_path = self._selected_change.path

        self._replace_changes([FileChangeViewModel(change) for change in status.changes])
        self._replace_branches([BranchViewModel(branch) for branch in branches])
        self.selected_branch = next((branch for branch in self._branches if branch.is_current), None)

        self._diff_loader.clear()
        self._set_selected_change(self._find_change(selection_path))

        if reset_commit_message:
            self.commit_message = ""
        LOG.info("Loaded %s: %d change(s), %d branch(es)", repository_path, len(self._changes), len(self._branches))

    def _find_change(self, path):
        if path is None:
            return None
        for change in self._changes:
            if change.path == path:
                return change
        return None

    def _start_operation(self, operation_name, work, on_success):
        operation_id = next(self._operation_ids)
        self._begin(operation_id)
        LOG.info("%s started", operation_name)
        self._runner.submit(
            operation_name,
            work,
            on_success=lambda result: self._on_operation_succeeded(operation_id, on_success, result),
            on_error=lambda error: self._on_operation_failed(operation_id, operation_name, error),
        )

    def _on_operation_succeeded(self, operation_id, on_success, result):
        # Follow-up operations start inside on_success, so busy never drops in between.
        try:
            on_success(result)
        except Exception as exc:
            LOG.exception("Applying operation result failed")
            self._report_error(exc)
        finally:
            self._end(operation_id)

    def _on_operation_failed(self, operation_id, operation_name, error):
        LOG.warning("%s failed: %s", operation_name, error)
        self._report_error(error)
        self._end(operation_id)

    def _begin(self, operation_id):
        was_busy = self.is_busy
        self._in_flight.add(operation_id)
        if not was_busy:
            self.is_busy_changed.emit(True)

    def _end(self, operation_id):
        self._in_flight.discard(operation_id)
        if not self._in_flight:
            self.is_busy_changed.emit(False)

    def _report_error(self, error):
        if isinstance(error, OperationCancelled):
            return
        if isinstance(error, GitCommandError):
            self._set_error(str(error))
        else:
            self._set_error(UNEXPECTED_ERROR_MESSAGE.format(error))

    def _set_error(self, message):
        self._error_elapsed_ms = 0
        self._set_error_message(message)
        self._set_error_dismiss_progress(FULL_PROGRESS)
        if message:
            self._error_timer.start()
        else:
            self._error_timer.stop()

    @pyqtSlot()
    def _on_error_tick(self):
        self._error_elapsed_ms += self._config.error_tick_ms
        remaining = FULL_PROGRESS - self._error_elapsed_ms * FULL_PROGRESS / self._config.error_dismiss_ms
        self._set_error_dismiss_progress(max(remaining, 0.0))
        if remaining <= 0:
            self.dismiss_error()

    @pyqtSlot()
    def _on_repository_changed(self):
        if self.is_busy or not self.has_repository:
            LOG.debug("Ignoring file change notification (busy=%s)", self.is_busy)
            return
        self.reload_status(None, False)

    def _set_selected_change(self, change):
        self._selected_change = change
        self.selected_change_changed.emit(change)
        self._diff_loader.load(change)

    def _replace_changes(self, changes):
        self._changes = changes
        self.changes_changed.emit()

    def _replace_branches(self, branches):
        self._branches = branches
        self.branches_changed.emit()

    def _set_repository_path(self, path):
        if path == self._repository_path:
            return
        self._repository_path = path
        self.repository_path_changed.emit(path)

    def _set_branch_display(self, text):
        if text == self._branch_display:
            return
        self._branch_display = text
        self.branch_display_changed.emit(text)

    def _set_error_message(self, message):
        if message == self._error_message:
            return
        self._error_message = message
        self.error_message_changed.emit(message)

    def _set_error_dismiss_progress(self, progress):
        if progress == self._error_dismiss_progress:
            return
        self._error_dismiss_progress = progress
        self.error_dismiss_progress_changed.emit(progress)
