import logging

from PyQt6.QtCore import QObject, pyqtSignal

from git_ops.commands import CancellationToken
from git_ops.errors import OperationCancelled

LOG = logging.getLogger(__name__)


class DiffLoader(QObject):
    """Fetches the diff of the selected change, one request at a time.

    A new load cancels the one in flight; a result is applied only while
    its token is still live, so the latest selection always wins.
    """

    diff_text_changed = pyqtSignal(str)
    selection_changed = pyqtSignal(bool)

    def __init__(self, git_service, runner, get_repository_path, on_error, parent=None):
        super().__init__(parent)
        self._git = git_service
        self._runner = runner
        self._get_repository_path = get_repository_path
        self._on_error = on_error
        self._token = None
        self._diff_text = ""
        self._has_selection = False

    @property
    def diff_text(self):
        return self._diff_text

    @property
    def has_selection(self):
        return self._has_selection

    def load(self, change):
        self.cancel()

        if change is None:
            self._set_has_selection(False)
            self._set_diff_text("")
            return

        self._set_has_selection(True)
        repository_path = self._get_repository_path()
        if not repository_path:
            return

        token = CancellationToken()
        self._token = token
        path, staged = change.path, change.is_staged
        self._runner.submit(
            "Diff",
            lambda: self._git.get_diff(repository_path, path, staged, token),
            on_success=lambda diff: self._on_loaded(token, path, diff),
            on_error=lambda error: self._on_failed(token, path, error),
        )

    def clear(self):
        self.cancel()
        self._set_diff_text("")
        self._set_has_selection(False)

    def cancel(self):
        if self._token is not None:
            self._token.cancel()
            self._token = None

    def _on_loaded(self, token, path, diff):
        if token.is_cancelled:
            LOG.debug("Dropping superseded diff for %s", path)
            return
        self._token = None
        self._set_diff_text(diff)

    def _on_failed(self, token, path, error):
        # A cancelled load may fail any way it likes; nobody is waiting for it.
        if token.is_cancelled or isinstance(error, OperationCancelled):
            LOG.debug("Diff load for %s cancelled", path)
            return
        self._token = None
        self._on_error(error)
        self._set_diff_text("")

    def _set_diff_text(self, text):
        if text == self._diff_text:
            return
        self._diff_text = text
        self.diff_text_changed.emit(text)

    def _set_has_selection(self, has_selection):
        if has_selection == self._has_selection:
            return
        self._has_selection = has_selection
        self.selection_changed.emit(has_selection)
