"""Tests for the git client against a real temporary repository."""

import pytest

from codehygiene.git.client import GitClient, GitError
from codehygiene.parsers import parse_ls_tree, parse_numstat


def test_ref_exists(git_repo):
    client = GitClient(git_repo)

    assert client.ref_exists("main")
    assert client.ref_exists("HEAD~1")
    assert not client.ref_exists("origin/main")
    assert not client.ref_exists("HEAD~5")


def test_require_ref_names_missing_ref(git_repo):
    with pytest.raises(GitError, match="origin/main"):
        GitClient(git_repo).require_ref("origin/main")


def test_changed_files_against_base(git_repo):
    files = GitClient(git_repo).changed_files("main", "HEAD")

    assert files == ["dist/app.js", "dist/new.js", "src/app.ts", "src/util.ts"]


def test_numstat_against_base(git_repo):
    stats = parse_numstat(GitClient(git_repo).numstat("main", "HEAD"))

    assert stats.files_changed == 4
    assert stats.lines_added == 5
    assert stats.lines_deleted == 2


def test_file_sizes_at_ref(git_repo):
    client = GitClient(git_repo)

    assert parse_ls_tree(client.file_sizes("main", "dist")) == {
        "dist/app.js": 100,
    }
    assert parse_ls_tree(client.file_sizes("HEAD", "dist")) == {
        "dist/app.js": 150,
        "dist/new.js": 40,
    }


def test_uncommitted_files(git_repo):
    client = GitClient(git_repo)
    assert client.uncommitted_files() == []

    (git_repo / "README.md").write_text("# changed\n")
    (git_repo / "untracked.txt").write_text("ignored\n")

    assert client.uncommitted_files() == ["README.md"]


def test_fetch_failure_is_not_fatal(git_repo):
    """No remote configured: fetch reports False instead of raising."""
    assert GitClient(git_repo).fetch("origin", "main") is False


def test_fetch_from_local_remote(git_repo, tmp_path, run_git):
    clone = tmp_path / "clone"
    run_git(tmp_path, "clone", "-q", "--branch", "feature",
            str(git_repo), str(clone))
    client = GitClient(clone)

    assert client.fetch("origin", "main", depth=None)
    assert client.ref_exists("origin/main")
    assert client.rev_parse("origin/main") == client.rev_parse("HEAD~1")


def test_outside_repository_raises(tmp_path):
    with pytest.raises(GitError):
        GitClient(tmp_path).changed_files("main", "HEAD")


def test_non_ascii_paths_are_not_quoted(git_repo, run_git):
    (git_repo / "dist" / "é.js").write_text("z" * 12)
    run_git(git_repo, "add", "-A")
    run_git(git_repo, "commit", "-q", "-m", "accented bundle")
    client = GitClient(git_repo)

    assert parse_ls_tree(client.file_sizes("HEAD", "dist"))["dist/é.js"] == 12
    assert "dist/é.js" in client.changed_files("main", "HEAD")

    (git_repo / "dist" / "é.js").write_text("changed")
    assert client.uncommitted_files() == ["dist/é.js"]


def test_restore_discards_working_tree_changes(git_repo):
    client = GitClient(git_repo)
    (git_repo / "README.md").write_text("# changed\n")
    (git_repo / "src" / "app.ts").write_text("changed\n")

    client.restore(["README.md"])
    client.restore([])

    assert (git_repo / "README.md").read_text() == "# demo\n"
    assert client.uncommitted_files() == ["src/app.ts"]
