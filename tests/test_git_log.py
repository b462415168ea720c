"""Tests for the git log extractor."""

from __future__ import annotations

import io
import subprocess

import pytest

from repopulse.analyzers.normalize import normalize_commit
from repopulse.extractors import git_log
from repopulse.extractors.git_log import (
    _expand_rename_path,
    _parse_commit_block,
    _parse_numstat_line,
    current_branch,
    iter_raw_commits,
    list_branches,
)


def _header(
    hash: str = "abc1234",
    subject: str = "feat: add feature",
    body: str = "",
    date: str = "2026-01-15T10:00:00+00:00",
) -> str:
    fields = [
        hash,
        "Alice",
        "alice@test.com",
        date,
        "Alice",
        "alice@test.com",
        date,
        subject,
        body,
    ]
    return "\x1f".join(fields) + "\x1f"


class _FakePopen:
    """Stands in for ``subprocess.Popen`` with canned git output."""

    def __init__(self, stdout: str, returncode: int = 0, stderr: str = ""):
        self.stdout = io.StringIO(stdout)
        self.stderr = io.StringIO(stderr)
        self.returncode = returncode
        self.args: list[str] = []

    def __call__(self, cmd, **kwargs):
        self.args = cmd
        return self

    def wait(self):
        return self.returncode


class TestExpandRenamePath:
    def test_simple_rename(self):
        assert _expand_rename_path("{old.py => new.py}", use_old=True) == "old.py"
        assert _expand_rename_path("{old.py => new.py}", use_old=False) == "new.py"

    def test_directory_rename(self):
        path = "src/{old_dir => new_dir}/file.py"
        assert _expand_rename_path(path, use_old=True) == "src/old_dir/file.py"
        assert _expand_rename_path(path, use_old=False) == "src/new_dir/file.py"

    def test_moved_out_of_directory(self):
        path = "src/{legacy => }/util.py"
        assert _expand_rename_path(path, use_old=True) == "src/legacy/util.py"
        assert _expand_rename_path(path, use_old=False) == "src/util.py"


class TestParseNumstatLine:
    def test_normal_line(self):
        entry = _parse_numstat_line("10\t5\tsrc/main.py")
        assert entry == {
            "filename": "src/main.py",
            "status": "modified",
            "additions": 10,
            "deletions": 5,
            "changes": 15,
        }

    def test_binary_file_counts_zero(self):
        entry = _parse_numstat_line("-\t-\timage.png")
        assert entry is not None
        assert entry["additions"] == 0
        assert entry["deletions"] == 0

    def test_rename_with_braces(self):
        entry = _parse_numstat_line("5\t3\tsrc/{old.py => new.py}")
        assert entry is not None
        assert entry["filename"] == "src/new.py"
        assert entry["previous_filename"] == "src/old.py"
        assert entry["status"] == "renamed"

    def test_full_rename_without_braces(self):
        entry = _parse_numstat_line("0\t0\told_file.py => new_file.py")
        assert entry is not None
        assert entry["filename"] == "new_file.py"
        assert entry["previous_filename"] == "old_file.py"

    def test_invalid_line(self):
        assert _parse_numstat_line("not a numstat line") is None
        assert _parse_numstat_line("x\ty\tpath") is None
        assert _parse_numstat_line("") is None


class TestParseCommitBlock:
    def test_basic_commit(self):
        raw = _header(body="body text") + "\n\n10\t5\tsrc/main.py\n3\t0\ttests/test_main.py\n"
        payload = _parse_commit_block(raw)

        assert payload is not None
        assert payload["sha"] == "abc1234"
        assert payload["commit"]["author"] == {
            "name": "Alice",
            "email": "alice@test.com",
            "date": "2026-01-15T10:00:00+00:00",
        }
        assert payload["commit"]["message"] == "feat: add feature\n\nbody text"
        assert payload["stats"] == {"additions": 13, "deletions": 5, "total": 18}
        assert [f["filename"] for f in payload["files"]] == ["src/main.py", "tests/test_main.py"]

    def test_empty_body(self):
        payload = _parse_commit_block(_header() + "\n\n1\t1\ta.py\n")
        assert payload["commit"]["message"] == "feat: add feature"

    def test_no_files(self):
        payload = _parse_commit_block(_header())
        assert payload["files"] == []
        assert payload["stats"]["total"] == 0

    def test_truncated_block(self):
        assert _parse_commit_block("abc\x1fAlice") is None
        assert _parse_commit_block("") is None

    def test_payload_normalizes(self):
        payload = _parse_commit_block(_header() + "\n\n2\t1\tsrc/{a.py => b.py}\n")
        commit = normalize_commit(payload)
        assert commit.author_name == "Alice"
        assert commit.files[0].path == "src/b.py"
        assert commit.files[0].previous_path == "src/a.py"
        assert commit.stats.total == 3


class TestIterRawCommits:
    def test_streams_every_record(self, monkeypatch):
        output = (
            "\x1e" + _header("c2", "second", date="2026-01-16T10:00:00+00:00") + "\n\n4\t0\ta.py\n"
            "\x1e" + _header("c1", "first") + "\n\n1\t1\tb.py\n2\t2\tc.py"
        )
        fake = _FakePopen(output)
        monkeypatch.setattr(subprocess, "Popen", fake)

        commits = list(iter_raw_commits("/repo", max_count=10))

        assert [c["sha"] for c in commits] == ["c2", "c1"]
        assert len(commits[1]["files"]) == 2
        assert "--max-count=10" in fake.args
        assert "--no-merges" in fake.args

    def test_git_failure_raises(self, monkeypatch):
        monkeypatch.setattr(
            subprocess, "Popen", _FakePopen("", returncode=128, stderr="not a git repository")
        )
        with pytest.raises(RuntimeError, match="not a git repository"):
            list(iter_raw_commits("/nowhere"))

    def test_empty_history(self, monkeypatch):
        monkeypatch.setattr(subprocess, "Popen", _FakePopen(""))
        assert list(iter_raw_commits("/repo")) == []


class TestBranches:
    def test_list_branches_marks_protected(self, monkeypatch):
        def fake_run(cmd, **kwargs):
            return subprocess.CompletedProcess(cmd, 0, stdout="topic\nmain\n\n", stderr="")

        monkeypatch.setattr(git_log.subprocess, "run", fake_run)
        branches = list_branches("/repo", ["main"])

        assert [b.name for b in branches] == ["main", "topic"]
        assert branches[0].protected
        assert not branches[1].protected

    def test_list_branches_failure(self, monkeypatch):
        def fake_run(cmd, **kwargs):
            return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="fatal")

        monkeypatch.setattr(git_log.subprocess, "run", fake_run)
        with pytest.raises(RuntimeError):
            list_branches("/repo")

    def test_current_branch(self, monkeypatch):
        def fake_run(cmd, **kwargs):
            return subprocess.CompletedProcess(cmd, 0, stdout="develop\n", stderr="")

        monkeypatch.setattr(git_log.subprocess, "run", fake_run)
        assert current_branch("/repo") == "develop"
