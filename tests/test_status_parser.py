from git_ops.models import BranchStatus, FileChangeKind
from git_ops.status_parser import parse_status


def test_empty_output_returns_default_branch():
    result = parse_status("/repo", "")
    assert result.branch == BranchStatus("HEAD", 0, 0)
    assert result.changes == ()


def test_sets_repository_path():
    assert parse_status("/path/to/repo", "").repository_path == "/path/to/repo"


def test_branch_header_extracts_name():
    assert parse_status("/repo", "# branch.head main\n").branch.name == "main"


def test_missing_branch_head_defaults_to_head():
    output = "# branch.oid abc\n# branch.ab +3 -2\n? a.txt\n"
    result = parse_status("/repo", output)
    assert result.branch.name == "HEAD"


def test_ahead_behind_values():
    result = parse_status("/repo", "# branch.ab +3 -2\n")
    assert result.branch.ahead_by == 3
    assert result.branch.behind_by == 2


def test_ahead_behind_garbage_defaults_to_zero():
    result = parse_status("/repo", "# branch.head main\n# branch.ab +x -\n")
    assert result.branch == BranchStatus("main", 0, 0)


def test_untracked_file():
    result = parse_status("/repo", "? untracked.txt\n")
    assert len(result.changes) == 1
    change = result.changes[0]
    assert change.path == "untracked.txt"
    assert change.kind is FileChangeKind.UNTRACKED
    assert not change.is_staged


def test_modified_staged():
    result = parse_status("/repo", "1 M. N... 100644 100644 100644 abc123 def456 staged.txt\n")
    change = result.changes[0]
    assert change.path == "staged.txt"
    assert change.kind is FileChangeKind.MODIFIED
    assert change.is_staged


def test_modified_unstaged():
    result = parse_status("/repo", "1 .M N... 100644 100644 100644 abc123 def456 unstaged.txt\n")
    change = result.changes[0]
    assert change.path == "unstaged.txt"
    assert change.kind is FileChangeKind.MODIFIED
    assert not change.is_staged


def test_added_file():
    result = parse_status("/repo", "1 A. N... 000000 100644 100644 000000 abc123 newfile.txt\n")
    change = result.changes[0]
    assert change.kind is FileChangeKind.ADDED
    assert change.is_staged


def test_deleted_in_work_tree():
    result = parse_status("/repo", "1 .D N... 100644 100644 000000 abc123 abc123 deleted.txt\n")
    change = result.changes[0]
    assert change.kind is FileChangeKind.DELETED
    assert not change.is_staged


def test_renamed_file_takes_new_name():
    output = "2 R. N... 100644 100644 100644 abc123 def456 R100 newname.txt\toldname.txt\n"
    change = parse_status("/repo", output).changes[0]
    assert change.kind is FileChangeKind.RENAMED
    assert change.path == "newname.txt"
    assert change.is_staged


def test_path_with_spaces_is_kept_whole():
    output = "1 .M N... 100644 100644 100644 abc123 def456 docs/release notes.md\n"
    assert parse_status("/repo", output).changes[0].path == "docs/release notes.md"


def test_short_change_line_falls_back_to_whole_line():
    line = "1 .M N... broken"
    change = parse_status("/repo", line).changes[0]
    assert change.path == line
    assert change.kind is FileChangeKind.MODIFIED
    assert not change.is_staged


def test_crlf_and_unknown_lines_are_tolerated():
    output = "# branch.head dev\r\nu UU N... weird\r\n\r\n? a.txt\r\n"
    result = parse_status("/repo", output)
    assert result.branch.name == "dev"
    assert [c.path for c in result.changes] == ["a.txt"]


def test_duplicate_paths_are_preserved():
    output = (
        "1 M. N... 100644 100644 100644 abc123 def456 both.txt\n"
        "1 .M N... 100644 100644 100644 abc123 def456 both.txt\n"
    )
    changes = parse_status("/repo", output).changes
    assert [c.path for c in changes] == ["both.txt", "both.txt"]


def test_multiple_changes_in_order():
    output = """\
# branch.head feature
# branch.ab +1 -0
1 M. N... 100644 100644 100644 abc123 def456 staged.txt
1 .M N... 100644 100644 100644 abc123 def456 unstaged.txt
? newfile.txt
"""
    result = parse_status("/repo", output)
    assert result.branch == BranchStatus("feature", 1, 0)
    assert [c.path for c in result.changes] == ["staged.txt", "unstaged.txt", "newfile.txt"]
