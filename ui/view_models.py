from utils.helpers import display_branch_name


class FileChangeViewModel:
    """A row in the changes list."""

    def __init__(self, change):
        self.path = change.path
        self.kind = change.kind
        self.is_staged = change.is_staged

    @property
    def kind_label(self):
        return self.kind.value

    def __repr__(self):
        return f"FileChangeViewModel({self.path!r}, {self.kind_label}, staged={self.is_staged})"


class BranchViewModel:
    """A row in the branches list."""

    def __init__(self, branch):
        self.name = branch.name
        self.is_current = branch.is_current
        self.is_remote = branch.is_remote
        self.display_name = display_branch_name(self.name) if self.is_remote else self.name

    def __repr__(self):
        return f"BranchViewModel({self.name!r}, current={self.is_current})"
