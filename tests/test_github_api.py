"""Tests for the GitHub REST extractor."""

from __future__ import annotations

import httpx
import pytest
import respx

from repopulse.extractors.github_api import (
    API_URL,
    PER_PAGE,
    _is_rate_limited,
    fetch_branches,
    fetch_commits,
)

COMMITS_URL = f"{API_URL}/repos/owner/repo/commits"


def _make_summary(sha: str) -> dict:
    return {
        "sha": sha,
        "commit": {
            "author": {"name": "Alice", "email": "alice@test.com", "date": "2026-01-15T10:00:00Z"},
            "message": f"commit {sha}",
        },
    }


def _make_detail(sha: str, path: str = "src/main.py") -> dict:
    detail = _make_summary(sha)
    detail["stats"] = {"additions": 3, "deletions": 1, "total": 4}
    detail["files"] = [
        {"filename": path, "status": "modified", "additions": 3, "deletions": 1, "changes": 4}
    ]
    return detail


def _mock_details(shas: list[str]) -> None:
    for sha in shas:
        respx.get(f"{COMMITS_URL}/{sha}").mock(
            return_value=httpx.Response(200, json=_make_detail(sha))
        )


class TestIsRateLimited:
    def test_429(self):
        assert _is_rate_limited(httpx.Response(429))

    def test_403_with_exhausted_quota(self):
        assert _is_rate_limited(httpx.Response(403, headers={"X-RateLimit-Remaining": "0"}))

    def test_plain_403(self):
        assert not _is_rate_limited(httpx.Response(403))

    def test_ok(self):
        assert not _is_rate_limited(httpx.Response(200))


class TestFetchCommits:
    @respx.mock
    async def test_single_page(self):
        shas = ["c3", "c2", "c1"]
        respx.get(COMMITS_URL).mock(
            return_value=httpx.Response(200, json=[_make_summary(s) for s in shas])
        )
        _mock_details(shas)

        commits = await fetch_commits("fake-token", "owner", "repo")
        assert [c["sha"] for c in commits] == shas
        assert all("files" in c for c in commits)

    @respx.mock
    async def test_pagination(self):
        first_page = [_make_summary(f"a{i}") for i in range(PER_PAGE)]
        second_page = [_make_summary("b0"), _make_summary("b1")]
        route = respx.get(COMMITS_URL)
        route.side_effect = [
            httpx.Response(200, json=first_page),
            httpx.Response(200, json=second_page),
        ]
        _mock_details([s["sha"] for s in first_page + second_page])

        commits = await fetch_commits("fake-token", "owner", "repo", page_delay=0.0)
        assert len(commits) == PER_PAGE + 2
        assert commits[-1]["sha"] == "b1"
        assert route.call_count == 2

    @respx.mock
    async def test_max_commits_caps_listing(self):
        respx.get(COMMITS_URL).mock(
            return_value=httpx.Response(200, json=[_make_summary(f"c{i}") for i in range(PER_PAGE)])
        )
        _mock_details([f"c{i}" for i in range(PER_PAGE)])

        commits = await fetch_commits(
            "fake-token", "owner", "repo", max_commits=5, page_delay=0.0
        )
        assert [c["sha"] for c in commits] == ["c0", "c1", "c2", "c3", "c4"]

    @respx.mock
    async def test_order_preserved_under_concurrency(self):
        shas = [f"c{i}" for i in range(20)]
        respx.get(COMMITS_URL).mock(
            return_value=httpx.Response(200, json=[_make_summary(s) for s in shas])
        )
        _mock_details(shas)

        commits = await fetch_commits("fake-token", "owner", "repo", concurrency=3)
        assert [c["sha"] for c in commits] == shas

    @respx.mock
    async def test_failed_detail_falls_back_to_summary(self):
        respx.get(COMMITS_URL).mock(
            return_value=httpx.Response(200, json=[_make_summary("ok"), _make_summary("gone")])
        )
        _mock_details(["ok"])
        respx.get(f"{COMMITS_URL}/gone").mock(return_value=httpx.Response(500))

        commits = await fetch_commits("fake-token", "owner", "repo")
        assert commits[0]["files"]
        assert commits[1]["sha"] == "gone"
        assert "files" not in commits[1]

    @respx.mock
    async def test_rate_limit_retry(self):
        route = respx.get(COMMITS_URL)
        route.side_effect = [
            httpx.Response(429, headers={"Retry-After": "0"}),
            httpx.Response(200, json=[_make_summary("c1")]),
        ]
        _mock_details(["c1"])

        commits = await fetch_commits("fake-token", "owner", "repo")
        assert len(commits) == 1
        assert route.call_count == 2

    @respx.mock
    async def test_listing_error_raises(self):
        respx.get(COMMITS_URL).mock(return_value=httpx.Response(404))

        with pytest.raises(httpx.HTTPStatusError):
            await fetch_commits("fake-token", "owner", "repo")

    @respx.mock
    async def test_empty_repo(self):
        respx.get(COMMITS_URL).mock(return_value=httpx.Response(200, json=[]))
        assert await fetch_commits("fake-token", "owner", "repo") == []

    @respx.mock
    async def test_auth_header_sent(self):
        route = respx.get(COMMITS_URL).mock(return_value=httpx.Response(200, json=[]))

        await fetch_commits("my-secret-token", "owner", "repo")
        assert route.calls[0].request.headers["Authorization"] == "Bearer my-secret-token"

    @respx.mock
    async def test_no_auth_header_without_token(self):
        route = respx.get(COMMITS_URL).mock(return_value=httpx.Response(200, json=[]))

        await fetch_commits("", "owner", "repo")
        assert "Authorization" not in route.calls[0].request.headers


class TestFetchBranches:
    @respx.mock
    async def test_branches_and_default(self):
        respx.get(f"{API_URL}/repos/owner/repo").mock(
            return_value=httpx.Response(200, json={"default_branch": "trunk"})
        )
        respx.get(f"{API_URL}/repos/owner/repo/branches").mock(
            return_value=httpx.Response(
                200,
                json=[
                    {"name": "trunk", "protected": True},
                    {"name": "feature/x", "protected": False},
                    {"name": "legacy"},
                ],
            )
        )

        branches, default = await fetch_branches("fake-token", "owner", "repo")
        assert default == "trunk"
        assert [(b.name, b.protected) for b in branches] == [
            ("trunk", True),
            ("feature/x", False),
            ("legacy", False),
        ]

    @respx.mock
    async def test_branch_pagination(self):
        respx.get(f"{API_URL}/repos/owner/repo").mock(
            return_value=httpx.Response(200, json={"default_branch": "main"})
        )
        route = respx.get(f"{API_URL}/repos/owner/repo/branches")
        route.side_effect = [
            httpx.Response(200, json=[{"name": f"b{i}"} for i in range(PER_PAGE)]),
            httpx.Response(200, json=[{"name": "main", "protected": True}]),
        ]

        branches, _ = await fetch_branches("fake-token", "owner", "repo")
        assert len(branches) == PER_PAGE + 1
        assert route.call_count == 2
