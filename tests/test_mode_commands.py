"""Tests for the mode commands: detect, checks, summary and all."""

from types import SimpleNamespace

import pytest

from codehygiene.command import (
    EXIT_CONFIG,
    EXIT_ERROR,
    EXIT_OK,
    CheckCommand,
    DetectCommand,
    SummaryCommand,
    exit_code,
    run_mode,
)
from codehygiene.core.artifacts import ArtifactStore
from codehygiene.core.config import Config
from codehygiene.core.result import (
    FormatDetails,
    LintDetails,
    error_result,
    failure_result,
    success_result,
)
from codehygiene.report.github import Comment, CommentGatewayError

MARKER = "<!-- codehygiene-report -->"


class RecordingGateway:
    """In-memory comment store."""

    def __init__(self, fail=False):
        self.comments: dict[int, Comment] = {}
        self.subjects = []
        self.fail = fail

    def find(self, subject, marker):
        if self.fail:
            raise CommentGatewayError("HTTP 502")
        return next(
            (c for c in self.comments.values() if marker in c.body), None
        )

    def create(self, subject, body):
        comment = Comment(id=len(self.comments) + 1, body=body)
        self.comments[comment.id] = comment
        self.subjects.append(subject)
        return comment

    def update(self, comment_id, body):
        self.comments[comment_id] = Comment(id=comment_id, body=body)
        return self.comments[comment_id]


def settings_for(config, mode="summary"):
    return SimpleNamespace(mode=mode, config=config)


@pytest.fixture
def make_config(tmp_path):
    def make(workdir=None, **overrides) -> Config:
        github = {"output_file": tmp_path / "outputs",
                  **overrides.pop("github", {})}
        return Config(
            workdir=workdir or tmp_path,
            artifacts={"dir": tmp_path / "artifacts"},
            github=github,
            **overrides,
        )
    return make


def outputs(tmp_path):
    path = tmp_path / "outputs"
    return path.read_text().splitlines() if path.exists() else []


# ============================================================
# EXIT CODES
# ============================================================

def test_exit_code_rules():
    ok = success_result("format", "ok", 1, FormatDetails())
    bad = failure_result("lint", "bad", 1, LintDetails(error_count=1))
    broken = error_result("test", RuntimeError("x"), 1)

    assert exit_code([]) == EXIT_OK
    assert exit_code([ok, bad]) == EXIT_OK
    assert exit_code([ok, bad], fail_on_findings=True) == EXIT_ERROR
    assert exit_code([ok, broken]) == EXIT_ERROR
    assert exit_code([ok, None]) == EXIT_ERROR


# ============================================================
# DETECT
# ============================================================

def test_detect_lists_changed_files(git_repo, make_config, tmp_path):
    config = make_config(git_repo, git={"base_ref": "main",
                                        "fetch_base": False})

    assert DetectCommand().run(settings_for(config, "detect")) == EXIT_OK
    assert outputs(tmp_path) == [
        "has-changes=true",
        "changed-files=dist/app.js,dist/new.js,src/app.ts,src/util.ts",
        "changed-files-count=4",
    ]


def test_detect_without_repository(make_config, tmp_path):
    config = make_config(git={"base_ref": "main", "fetch_base": False})

    assert DetectCommand().run(settings_for(config, "detect")) == EXIT_ERROR
    assert outputs(tmp_path) == [
        "has-changes=false",
        "changed-files=",
        "changed-files-count=0",
    ]


# ============================================================
# CHECKS
# ============================================================

def test_check_command_runs_selected_checks(make_config, tmp_path):
    config = make_config(tools={"lint": {"program": "echo", "args": ["[]"]}})

    code = CheckCommand(checks=("lint",)).run(settings_for(config, "lint"))

    assert code == EXIT_OK
    assert set(ArtifactStore(tmp_path / "artifacts").read_all()) == {"lint"}


def test_check_command_failure_only_fails_when_asked(make_config):
    tools = {"lint": {"program": "sh", "args": ["-c", "exit 1"]}}

    lenient = make_config(tools=tools)
    strict = make_config(tools=tools, fail_on_findings=True)

    assert CheckCommand(checks=("lint",)).run(settings_for(lenient)) == 0
    assert CheckCommand(checks=("lint",)).run(settings_for(strict)) == 1


def test_check_command_error_result_exits_one(make_config):
    config = make_config(tools={"test": {"program": "codehygiene-no-runner"}})

    assert CheckCommand(checks=("test",)).run(settings_for(config)) == 1


# ============================================================
# SUMMARY
# ============================================================

def write_artifacts(config):
    store = ArtifactStore(config.artifact_dir)
    store.write(success_result("format", "ok", 1, FormatDetails()))
    store.write(failure_result("lint", "1 error(s), 0 warning(s)", 1,
                               LintDetails(error_count=1)))


def test_summary_without_pr_skips_posting(make_config, tmp_path):
    config = make_config()
    write_artifacts(config)
    gateway = RecordingGateway()

    code = SummaryCommand(gateway=gateway).run(settings_for(config))

    assert code == EXIT_OK
    assert gateway.comments == {}
    lines = outputs(tmp_path)
    assert "overall-status=failure" in lines
    report_line = next(line for line in lines if line.startswith("report="))
    assert '"overallStatus":"failure"' in report_line


def test_summary_upserts_one_comment(make_config):
    config = make_config(github={"pr_number": 7, "sha": "abcdef1234"})
    write_artifacts(config)
    gateway = RecordingGateway()
    command = SummaryCommand(gateway=gateway)

    assert command.run(settings_for(config)) == EXIT_OK
    assert command.run(settings_for(config)) == EXIT_OK

    assert list(gateway.comments) == [1]
    assert gateway.subjects == [7]
    body = gateway.comments[1].body
    assert body.endswith(MARKER)
    assert "**Commit:** `abcdef1` | **PR:** #7" in body


def test_summary_reports_gateway_failure(make_config):
    config = make_config(github={"pr_number": 7})
    write_artifacts(config)

    code = SummaryCommand(gateway=RecordingGateway(fail=True)).run(
        settings_for(config)
    )

    assert code == EXIT_ERROR


def test_summary_fail_on_findings(make_config):
    config = make_config(fail_on_findings=True)
    write_artifacts(config)

    assert SummaryCommand().run(settings_for(config)) == EXIT_ERROR


def test_summary_never_runs_checks(make_config, tmp_path):
    """With no artifacts the summary renders placeholders, nothing more."""
    config = make_config(tools={"lint": {"program": "false"}})

    assert SummaryCommand().run(settings_for(config)) == EXIT_OK
    assert "overall-status=skipped" in outputs(tmp_path)
    assert not (tmp_path / "artifacts").exists()


# ============================================================
# DISPATCH
# ============================================================

def test_run_mode_single_check(make_config, tmp_path):
    config = make_config(tools={"format": {"program": "true"}})

    # Not a git repository: the format check errors and exits 1
    assert run_mode(settings_for(config, "format")) == EXIT_ERROR
    result = ArtifactStore(tmp_path / "artifacts").read("format")
    assert result.status == "error"


def test_run_mode_all(git_repo, make_config, tmp_path):
    config = make_config(
        git_repo,
        git={"base_ref": "main", "fetch_base": False},
        tools={
            "format": {"program": "true"},
            "lint": {"program": "echo", "args": ["[]"]},
            "test": {"program": "echo", "args": ["Tests  4 passed (4)"]},
            "coverage_summary": None,
        },
        parallel=False,
    )

    assert run_mode(settings_for(config, "all")) == EXIT_OK
    assert "overall-status=success" in outputs(tmp_path)
    assert len(ArtifactStore(tmp_path / "artifacts").read_all()) == 4


def test_run_mode_unknown(make_config):
    assert run_mode(settings_for(make_config(), "deploy")) == EXIT_CONFIG


def test_summary_resolves_commit_without_ci_sha(git_repo, make_config,
                                                tmp_path, run_git):
    config = make_config(git_repo)
    head = run_git(git_repo, "rev-parse", "HEAD").strip()

    assert SummaryCommand().run(settings_for(config)) == EXIT_OK

    report_line = next(
        line for line in outputs(tmp_path) if line.startswith("report=")
    )
    assert f'"commitId":"{head}"' in report_line


def test_summary_commit_unknown_outside_repository(make_config, tmp_path):
    assert SummaryCommand().run(settings_for(make_config())) == EXIT_OK

    assert any('"commitId":"unknown"' in line for line in outputs(tmp_path))
