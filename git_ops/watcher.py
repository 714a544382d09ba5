"""
Debounced notification that something changed inside a repository.

watchfiles delivers raw events in batches on a background thread. Each
batch holding a qualifying event (re)arms one timer; once nothing has
arrived for the debounce window the `changed` signal fires exactly once.
Housekeeping inside `.git` is ignored except for HEAD (branch switch) and
index (staging).
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import PurePath
from typing import Iterable, Optional

import watchfiles
from PyQt6.QtCore import QObject, pyqtSignal

from utils.config import DEFAULT_DEBOUNCE_MS

LOG = logging.getLogger(__name__)

GIT_METADATA_DIR = ".git"
PROPAGATED_METADATA_FILES = frozenset({"HEAD", "index"})
# How long watchfiles waits for further changes before yielding a batch.
WATCH_STEP_MS = 50
STOP_JOIN_TIMEOUT = 2.0


def is_relevant_change(changed_path: str) -> bool:
    """False for lock files and other churn inside the `.git` directory."""
    path = PurePath(changed_path)
    if GIT_METADATA_DIR in path.parts[:-1]:
        return path.name in PROPAGATED_METADATA_FILES
    return True


class ChangeWatcher(QObject):
    """Watches a directory tree and emits `changed` after a quiet period."""

    changed = pyqtSignal()

    def __init__(self, debounce_ms: int = DEFAULT_DEBOUNCE_MS, parent=None):
        super().__init__(parent)
        self.debounce_ms = debounce_ms
        self._lock = threading.Lock()
        self._pending_change = False
        self._debounce_timer: Optional[threading.Timer] = None
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._watched_path: Optional[str] = None

    @property
    def watched_path(self) -> Optional[str]:
        return self._watched_path

    @property
    def is_watching(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def watch(self, path: str) -> None:
        self.stop()

        if not path or not path.strip() or not os.path.isdir(path):
            LOG.info("Not watching %r: not a directory", path)
            return

        self._watched_path = path
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._watch_loop,
            args=(path, self._stop_event),
            name="change-watcher",
            daemon=True,
        )
        self._thread.start()
        LOG.info("Watching %s for changes", path)

    def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(STOP_JOIN_TIMEOUT)
        self._thread = None
        self._stop_event = None
        self._watched_path = None

        with self._lock:
            self._pending_change = False
            if self._debounce_timer is not None:
                self._debounce_timer.cancel()
                self._debounce_timer = None

    def _watch_loop(self, path: str, stop_event: threading.Event) -> None:
        try:
            for changes in watchfiles.watch(
                path,
                watch_filter=self._should_watch,
                stop_event=stop_event,
                step=WATCH_STEP_MS,
                recursive=True,
                yield_on_timeout=False,
            ):
                self.notify_file_events(changed_path for _change, changed_path in changes)
        except Exception:
            # The tree may vanish under us (deleted repository, unmounted drive).
            LOG.exception("Watching %s stopped unexpectedly", path)

    @staticmethod
    def _should_watch(_change, changed_path: str) -> bool:
        return is_relevant_change(changed_path)

    def notify_file_event(self, changed_path: str) -> None:
        """Entry point for a single raw file-system event."""
        self.notify_file_events((changed_path,))

    def notify_file_events(self, changed_paths: Iterable[str]) -> None:
        """Rearms the debounce timer once for a whole batch of raw events."""
        if not any(is_relevant_change(changed_path) for changed_path in changed_paths):
            return

        with self._lock:
            self._pending_change = True
            if self._debounce_timer is not None:
                self._debounce_timer.cancel()
            self._debounce_timer = threading.Timer(self.debounce_ms / 1000.0, self._on_debounce_elapsed)
            self._debounce_timer.daemon = True
            self._debounce_timer.start()

    def _on_debounce_elapsed(self) -> None:
        with self._lock:
            should_notify = self._pending_change
            self._pending_change = False

        if should_notify:
            LOG.debug("Repository content changed")
            self.changed.emit()
