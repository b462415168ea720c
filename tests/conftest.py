"""Shared fixtures for repopulse tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest


def _raw(
    sha: str,
    name: str,
    email: str,
    date: str,
    files: list[dict],
    message: str = "",
) -> dict:
    additions = sum(f["additions"] for f in files)
    deletions = sum(f["deletions"] for f in files)
    return {
        "sha": sha,
        "commit": {
            "author": {"name": name, "email": email, "date": date},
            "committer": {"name": name, "email": email, "date": date},
            "message": message or f"commit {sha}",
        },
        "stats": {"additions": additions, "deletions": deletions, "total": additions + deletions},
        "files": files,
    }


def _file(path: str, additions: int, deletions: int, status: str = "modified") -> dict:
    return {
        "filename": path,
        "status": status,
        "additions": additions,
        "deletions": deletions,
        "changes": additions + deletions,
    }


@pytest.fixture
def sample_raw_commits() -> list[dict]:
    """A small GitHub-shaped history: two authors over four days, out of order."""
    return [
        _raw(
            "ccc3333",
            "Bob",
            "bob@test.com",
            "2026-01-02T14:00:00Z",
            [_file("src/api/profile.py", 80, 0, "added"), _file("src/models/user.py", 20, 5)],
            "feat(api): add user profile endpoint",
        ),
        _raw(
            "aaa1111",
            "Alice",
            "alice@test.com",
            "2026-01-01T09:00:00Z",
            [
                _file("src/auth/login.py", 100, 0, "added"),
                _file("src/auth/session.py", 50, 0, "added"),
                _file("tests/test_login.py", 30, 0, "added"),
            ],
            "feat(auth): add login endpoint",
        ),
        _raw(
            "bbb2222",
            "Alice",
            "alice@test.com",
            "2026-01-01T10:30:00Z",
            [_file("src/auth/login.py", 5, 2), _file("src/auth/session.py", 3, 1)],
            "fix(auth): handle null token",
        ),
        _raw(
            "ddd4444",
            "Alice",
            "alice@test.com",
            "2026-01-04T16:45:00Z",
            [_file("src/auth/login.py", 10, 40), _file("src/models/user.py", 2, 2)],
            "refactor(auth): simplify login",
        ),
    ]


@pytest.fixture
def reference_date() -> datetime:
    return datetime(2026, 1, 10, tzinfo=timezone.utc)
