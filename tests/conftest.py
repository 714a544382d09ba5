import os
import threading

# Widgets are created in tests; no display is available on CI.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt6.QtCore import QObject, pyqtSignal

from git_ops.branch_parser import parse_branches
from git_ops.status_parser import parse_status
from ui.controller import RepositoryController

STATUS_OUTPUT = """\
# branch.oid 1234567890abcdef
# branch.head main
# branch.upstream origin/main
# branch.ab +1 -2
1 M. N... 100644 100644 100644 abc123 def456 staged.txt
1 .M N... 100644 100644 100644 abc123 def456 unstaged.txt
? untracked.txt
"""

BRANCH_OUTPUT = """\
main|*|refs/heads
feature| |refs/heads
origin/HEAD| |refs/remotes
origin/main| |refs/remotes
"""


class FakeGitService:
    """In-memory stand-in for GitCliService; records every call."""

    def __init__(self):
        self.status_output = STATUS_OUTPUT
        self.branch_output = BRANCH_OUTPUT
        self.repositories = {"/repo"}
        self.diffs = {}
        self.errors = {}
        self.calls = []
        self._lock = threading.Lock()

    def _record(self, name, *args):
        with self._lock:
            self.calls.append((name,) + args)
        error = self.errors.get(name)
        if error is not None:
            raise error

    def calls_to(self, name):
        return [call[1:] for call in self.calls if call[0] == name]

    def is_repository(self, path, token=None):
        self._record("is_repository", path)
        return path in self.repositories

    def get_status(self, repository_path, token=None):
        self._record("get_status", repository_path)
        return parse_status(repository_path, self.status_output)

    def get_branches(self, repository_path, token=None):
        self._record("get_branches", repository_path)
        return parse_branches(self.branch_output)

    def checkout(self, repository_path, branch_name, token=None):
        self._record("checkout", repository_path, branch_name)

    def stage_file(self, repository_path, relative_path, token=None):
        self._record("stage_file", repository_path, relative_path)

    def unstage_file(self, repository_path, relative_path, token=None):
        self._record("unstage_file", repository_path, relative_path)

    def commit(self, repository_path, message, token=None):
        self._record("commit", repository_path, message)

    def get_diff(self, repository_path, relative_path, staged, token=None):
        self._record("get_diff", repository_path, relative_path, staged)
        return self.diffs.get(relative_path, f"diff of {relative_path}")


class PendingTask:
    def __init__(self, name, work, on_success, on_error):
        self.name = name
        self.work = work
        self.on_success = on_success
        self.on_error = on_error
        self.executed = False
        self.result = None
        self.error = None

    def execute(self):
        """Runs the background part only."""
        try:
            self.result = self.work()
        except Exception as exc:
            self.error = exc
        self.executed = True

    def deliver(self):
        """Hands the outcome to the callbacks, as the UI thread would."""
        if not self.executed:
            self.execute()
        if self.error is not None:
            self.on_error(self.error)
        else:
            self.on_success(self.result)


class ManualTaskRunner:
    """Task runner whose work only runs when the test says so."""

    def __init__(self):
        self.pending = []

    def submit(self, operation_name, work, on_success, on_error=None):
        task = PendingTask(operation_name, work, on_success, on_error)
        self.pending.append(task)
        return task

    def names(self):
        return [task.name for task in self.pending]

    def run(self, task):
        self.pending.remove(task)
        task.deliver()

    def run_all(self):
        # Callbacks may submit follow-up work; keep going until idle.
        while self.pending:
            self.run(self.pending[0])


class FakeWatcher(QObject):
    changed = pyqtSignal()

    def __init__(self):
        super().__init__()
        self.watched = []
        self.stop_count = 0

    def watch(self, path):
        self.watched.append(path)

    def stop(self):
        self.stop_count += 1


class FakeFolderPicker:
    def __init__(self, path=None):
        self.path = path
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.path


@pytest.fixture
def git_service():
    return FakeGitService()


@pytest.fixture
def runner():
    return ManualTaskRunner()


@pytest.fixture
def watcher(qapp):
    return FakeWatcher()


@pytest.fixture
def folder_picker():
    return FakeFolderPicker("/repo")


@pytest.fixture
def controller(qapp, git_service, runner, watcher, folder_picker):
    controller = RepositoryController(git_service, watcher=watcher, folder_picker=folder_picker, runner=runner)
    yield controller
    controller.shutdown()


@pytest.fixture
def loaded_controller(controller, runner):
    controller.open_repository("/repo")
    runner.run_all()
    return controller
