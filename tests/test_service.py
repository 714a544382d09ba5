import pytest

from git_ops.commands import GitResult
from git_ops.errors import GitCommandError
from git_ops.models import FileChangeKind
from git_ops.service import GitCliService


class RecordedCalls(list):
    pass


@pytest.fixture
def recorded(monkeypatch):
    """Replaces run_git; returns the list of argument strings it saw."""
    calls = RecordedCalls()
    responses = {}

    def fake_run_git(arguments, cwd, token=None, git_executable="git"):
        calls.append(arguments)
        return responses.get(arguments, GitResult(0, "", ""))

    monkeypatch.setattr("git_ops.service.run_git", fake_run_git)
    calls.responses = responses
    return calls


@pytest.fixture
def service():
    return GitCliService()


def test_stage_and_unstage_arguments(service, recorded):
    service.stage_file("/repo", "src/a b.txt")
    service.unstage_file("/repo", "src/a b.txt")
    assert recorded == ['add "src/a b.txt"', 'restore --staged "src/a b.txt"']


def test_checkout_arguments(service, recorded):
    service.checkout("/repo", "feature/x")
    assert recorded == ['checkout "feature/x"']


def test_commit_escapes_double_quotes(service, recorded):
    service.commit("/repo", 'Fix "quoted" name')
    assert recorded == ['commit -m "Fix \\"quoted\\" name"']


def test_diff_arguments(service, recorded):
    service.get_diff("/repo", "a.txt", staged=False)
    service.get_diff("/repo", "a.txt", staged=True)
    assert recorded == ['diff -- "a.txt"', 'diff --cached -- "a.txt"']


def test_status_is_parsed(service, recorded):
    recorded.responses["status --porcelain=v2 -b"] = GitResult(0, "# branch.head dev\n? new.txt\n", "")
    status = service.get_status("/repo")
    assert status.repository_path == "/repo"
    assert status.branch.name == "dev"
    assert status.changes[0].kind is FileChangeKind.UNTRACKED


def test_branches_are_parsed(service, recorded):
    args = "branch -a --format=%(refname:short)|%(HEAD)|%(refname:rstrip=-2)"
    recorded.responses[args] = GitResult(0, "main|*|refs/heads\norigin/HEAD| |refs/remotes\n", "")
    branches = service.get_branches("/repo")
    assert [b.name for b in branches] == ["main"]


def test_failure_raises_cleaned_message(service, recorded):
    recorded.responses['checkout "nope"'] = GitResult(
        1, "", "error: pathspec 'nope' did not match any file(s) known to git\nhint: ...\n"
    )
    with pytest.raises(GitCommandError) as excinfo:
        service.checkout("/repo", "nope")
    assert str(excinfo.value) == "Pathspec 'nope' did not match any file(s) known to git"


def test_is_repository(service, recorded):
    recorded.responses["rev-parse --is-inside-work-tree"] = GitResult(0, "true\n", "")
    assert service.is_repository("/repo")


def test_is_repository_false_on_failure(service, recorded):
    recorded.responses["rev-parse --is-inside-work-tree"] = GitResult(128, "", "fatal: not a git repository")
    assert not service.is_repository("/tmp")


def test_is_repository_false_when_git_cannot_run(service, monkeypatch):
    def broken(*args, **kwargs):
        raise GitCommandError("Directory does not exist: /nowhere")

    monkeypatch.setattr("git_ops.service.run_git", broken)
    assert not service.is_repository("/nowhere")
