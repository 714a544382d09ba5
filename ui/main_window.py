from PyQt6.QtCore import Qt
from PyQt6.QtGui import QColor, QFont, QTextCharFormat
from PyQt6.QtWidgets import (QApplication, QFileDialog, QFrame, QHBoxLayout, QLabel,
                             QListWidget, QListWidgetItem, QMainWindow, QProgressBar,
                             QPushButton, QSplitter, QTextEdit, QVBoxLayout, QWidget)

from git_ops.service import GitCliService
from utils.config import AppConfig

from .controller import RepositoryController

DIFF_ADDED_COLOR = QColor("darkgreen")
DIFF_REMOVED_COLOR = QColor("darkred")
DIFF_HEADER_COLOR = QColor("darkblue")
DIFF_DEFAULT_COLOR = QColor("black")
WINDOW_TITLE = "gitpane"
BRANCHES_LABEL = "Branches (double-click to check out)"


class MainWindow(QMainWindow):
    def __init__(self, config=None, controller=None):
        super().__init__()
        self.config = config or AppConfig()
        self.setWindowTitle(WINDOW_TITLE)
        self.setGeometry(50, 50, 1100, 720)

        if controller is None:
            controller = RepositoryController(
                GitCliService(self.config.git_executable),
                folder_picker=self._pick_folder,
                config=self.config,
                parent=self,
            )
        self.controller = controller
        # Guards against feeding list/editor updates made by the controller back into it.
        self._syncing = False

        self._init_ui()
        self._connect_signals()
        self.update_button_states()

    def _init_ui(self):
        """Initialize UI elements."""
        self.central_widget = QWidget(); self.main_layout = QVBoxLayout(self.central_widget)

        # --- Top Bar ---
        self.top_bar_layout = QHBoxLayout()
        self.open_button = QPushButton("Open Repository")
        self.repo_label = QLabel("No repository opened."); self.repo_label.setWordWrap(True)
        self.branch_label = QLabel("")
        self.status_button = QPushButton("Refresh Status")
        self.top_bar_layout.addWidget(self.open_button)
        self.top_bar_layout.addWidget(self.repo_label, 1)
        self.top_bar_layout.addWidget(self.branch_label)
        self.top_bar_layout.addWidget(self.status_button)
        self.main_layout.addLayout(self.top_bar_layout)

        # --- Branches | Changes | Diff + Commit ---
        self.main_splitter = QSplitter(Qt.Orientation.Horizontal)

        self.branches_frame = QFrame(); self.branches_layout = QVBoxLayout(self.branches_frame)
        self.branches_label = QLabel(BRANCHES_LABEL)
        self.branches_list = QListWidget()
        self.branches_layout.addWidget(self.branches_label)
        self.branches_layout.addWidget(self.branches_list)

        self.changes_frame = QFrame(); self.changes_layout = QVBoxLayout(self.changes_frame)
        self.changes_label = QLabel("Changes")
        self.changes_list = QListWidget()
        self.changes_list.setSelectionMode(QListWidget.SelectionMode.SingleSelection)
        self.stage_buttons_layout = QHBoxLayout()
        self.stage_button = QPushButton("Stage")
        self.unstage_button = QPushButton("Unstage")
        self.stage_buttons_layout.addWidget(self.stage_button)
        self.stage_buttons_layout.addWidget(self.unstage_button)
        self.changes_layout.addWidget(self.changes_label)
        self.changes_layout.addWidget(self.changes_list, 1)
        self.changes_layout.addLayout(self.stage_buttons_layout)

        self.right_splitter = QSplitter(Qt.Orientation.Vertical)
        self.diff_view = QTextEdit(); self.diff_view.setReadOnly(True)
        self.diff_view.setFontFamily("monospace")
        self.diff_view.setLineWrapMode(QTextEdit.LineWrapMode.NoWrap)
        self.commit_area_frame = QFrame(); self.commit_layout = QVBoxLayout(self.commit_area_frame)
        self.commit_message_box = QTextEdit()
        self.commit_message_box.setPlaceholderText("Enter commit message here...")
        self.commit_button = QPushButton("Commit Staged Changes")
        self.commit_layout.addWidget(QLabel("Commit Message:"))
        self.commit_layout.addWidget(self.commit_message_box, 1)
        self.commit_layout.addWidget(self.commit_button)
        self.right_splitter.addWidget(self.diff_view)
        self.right_splitter.addWidget(self.commit_area_frame)
        self.right_splitter.setSizes([450, 150])

        self.main_splitter.addWidget(self.branches_frame)
        self.main_splitter.addWidget(self.changes_frame)
        self.main_splitter.addWidget(self.right_splitter)
        self.main_splitter.setSizes([200, 300, 600])
        self.main_layout.addWidget(self.main_splitter, 1)

        # --- Error Bar ---
        self.error_frame = QFrame(); self.error_layout = QHBoxLayout(self.error_frame)
        self.error_label = QLabel(); self.error_label.setWordWrap(True)
        self.error_progress = QProgressBar(); self.error_progress.setRange(0, 100)
        self.error_progress.setTextVisible(False); self.error_progress.setMaximumWidth(120)
        self.dismiss_button = QPushButton("Dismiss")
        self.error_layout.addWidget(self.error_label, 1)
        self.error_layout.addWidget(self.error_progress)
        self.error_layout.addWidget(self.dismiss_button)
        self.error_frame.setVisible(False)
        self.main_layout.addWidget(self.error_frame)

        self.setCentralWidget(self.central_widget)

    def _connect_signals(self):
        """Connect widget signals to the controller and back."""
        c = self.controller
        # --- User actions ---
        self.open_button.clicked.connect(c.browse_repository)
        self.status_button.clicked.connect(lambda: c.reload_status(None, True))
        self.stage_button.clicked.connect(lambda: c.stage_change(c.selected_change))
        self.unstage_button.clicked.connect(lambda: c.unstage_change(c.selected_change))
        self.commit_button.clicked.connect(c.commit)
        self.dismiss_button.clicked.connect(c.dismiss_error)
        self.changes_list.currentItemChanged.connect(self.on_change_item_changed)
        self.branches_list.itemDoubleClicked.connect(self.on_branch_double_clicked)
        self.commit_message_box.textChanged.connect(self.on_commit_text_changed)

        # --- Controller state ---
        c.repository_path_changed.connect(self.on_repository_path_changed)
        c.branch_display_changed.connect(self.branch_label.setText)
        c.changes_changed.connect(self.populate_changes)
        c.branches_changed.connect(self.populate_branches)
        c.selected_change_changed.connect(self.on_selected_change_changed)
        c.diff_text_changed.connect(self.display_diff)
        c.commit_message_changed.connect(self.on_commit_message_changed)
        c.error_message_changed.connect(self.on_error_message_changed)
        c.error_dismiss_progress_changed.connect(lambda value: self.error_progress.setValue(int(value)))
        c.is_busy_changed.connect(self.set_ui_busy)

    def _pick_folder(self):
        return QFileDialog.getExistingDirectory(self, "Select Git Repository") or None

    # --- Controller -> widgets ---

    def on_repository_path_changed(self, path):
        self.repo_label.setText(f"Repository: {path}" if path else "No repository opened.")
        if not path:
            self.branch_label.clear()
        self.update_button_states()

    def populate_changes(self):
        self._syncing = True
        try:
            self.changes_list.clear()
            for change in self.controller.changes:
                staged = " (staged)" if change.is_staged else ""
                item = QListWidgetItem(f"{change.kind_label[0]}  {change.path}{staged}")
                item.setData(Qt.ItemDataRole.UserRole, change)
                self.changes_list.addItem(item)
            if self.controller.show_empty_changes:
                self.changes_label.setText("Changes (working tree clean)")
            else:
                self.changes_label.setText("Changes")
        finally:
            self._syncing = False
        self.update_button_states()

    def populate_branches(self):
        self.branches_list.clear()
        bold_font = QFont(); bold_font.setBold(True)
        for branch in self.controller.branches:
            label = f"{branch.display_name} (remote)" if branch.is_remote else branch.display_name
            item = QListWidgetItem(label)
            item.setData(Qt.ItemDataRole.UserRole, branch)
            if branch.is_current:
                item.setFont(bold_font)
            self.branches_list.addItem(item)
        if self.controller.show_empty_branches:
            self.branches_label.setText("Branches (none)")
        else:
            self.branches_label.setText(BRANCHES_LABEL)

    def on_selected_change_changed(self, change):
        self._syncing = True
        try:
            row = -1
            for index in range(self.changes_list.count()):
                if self.changes_list.item(index).data(Qt.ItemDataRole.UserRole) is change:
                    row = index
                    break
            self.changes_list.setCurrentRow(row)
        finally:
            self._syncing = False
        self.update_button_states()

    def on_commit_message_changed(self, message):
        if self.commit_message_box.toPlainText() != message:
            self._syncing = True
            try:
                self.commit_message_box.setPlainText(message)
            finally:
                self._syncing = False
        self.update_button_states()

    def on_error_message_changed(self, message):
        self.error_label.setText(message)
        self.error_progress.setValue(int(self.controller.error_dismiss_progress))
        self.error_frame.setVisible(bool(message))

    def display_diff(self, diff_output: str):
        """Displays the diff output in the diff_view, with simple syntax highlighting."""
        self.diff_view.clear()
        cursor = self.diff_view.textCursor()
        for line in diff_output.splitlines():
            cursor.movePosition(cursor.MoveOperation.End)
            fmt = QTextCharFormat()
            if line.startswith('+++') or line.startswith('---') or line.startswith('diff --git') or line.startswith('index '):
                fmt.setForeground(DIFF_HEADER_COLOR); fmt.setFontWeight(QFont.Weight.Bold)
            elif line.startswith('@@'):
                fmt.setForeground(DIFF_HEADER_COLOR)
            elif line.startswith('+'):
                fmt.setForeground(DIFF_ADDED_COLOR)
            elif line.startswith('-'):
                fmt.setForeground(DIFF_REMOVED_COLOR)
            else:
                fmt.setForeground(DIFF_DEFAULT_COLOR)
            cursor.insertText(line + '\n', fmt)
        self.diff_view.moveCursor(cursor.MoveOperation.Start)  # Scroll to top

    # --- Widgets -> controller ---

    def on_change_item_changed(self, current, _previous):
        if self._syncing:
            return
        self.controller.selected_change = current.data(Qt.ItemDataRole.UserRole) if current else None

    def on_branch_double_clicked(self, item):
        branch = item.data(Qt.ItemDataRole.UserRole)
        if branch is not None:
            self.controller.checkout_branch(branch)

    def on_commit_text_changed(self):
        if self._syncing:
            return
        self.controller.commit_message = self.commit_message_box.toPlainText()

    # --- UI State ---

    def update_button_states(self):
        """Enable/disable buttons based on repo status, busy state and selection."""
        c = self.controller
        idle = not c.is_busy
        change = c.selected_change
        self.open_button.setEnabled(idle)
        self.status_button.setEnabled(idle and c.has_repository)
        # An "MM" row has edits both in the index and in the work tree.
        self.stage_button.setEnabled(idle and change is not None)
        self.unstage_button.setEnabled(idle and change is not None)
        self.commit_button.setEnabled(idle and c.can_commit)
        self.branches_list.setEnabled(idle)
        self.commit_message_box.setReadOnly(not idle)

    def set_ui_busy(self, busy: bool):
        if busy:
            QApplication.setOverrideCursor(Qt.CursorShape.WaitCursor)
        else:
            QApplication.restoreOverrideCursor()
        self.update_button_states()

    # --- Application Exit Handling ---
    def closeEvent(self, event):
        self.controller.shutdown()
        event.accept()
