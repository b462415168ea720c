"""Fetch commit details and branches from the GitHub REST API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from repopulse.models import Branch

logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"
PER_PAGE = 100


def _headers(token: str) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _is_rate_limited(response: httpx.Response) -> bool:
    if response.status_code == 429:
        return True
    return response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0"


async def _get(
    client: httpx.AsyncClient,
    url: str,
    params: dict[str, Any] | None = None,
) -> httpx.Response:
    """GET with a single retry after a rate-limit response."""
    response = await client.get(url, params=params)
    if _is_rate_limited(response):
        retry_after = int(response.headers.get("Retry-After", "60"))
        logger.warning("Rate limited, sleeping %ds", retry_after)
        await asyncio.sleep(retry_after)
        # Retry the same request
        response = await client.get(url, params=params)
    response.raise_for_status()
    return response


async def _list_commits(
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    max_commits: int,
    page_delay: float,
) -> list[dict[str, Any]]:
    """List commit summaries newest first, up to ``max_commits``."""
    url = f"{API_URL}/repos/{owner}/{repo}/commits"
    summaries: list[dict[str, Any]] = []
    page = 1
    while len(summaries) < max_commits:
        response = await _get(client, url, {"per_page": PER_PAGE, "page": page})
        batch = response.json()
        summaries.extend(batch)
        if len(batch) < PER_PAGE:
            break
        page += 1
        # Sleep between pages to respect secondary rate limits
        await asyncio.sleep(page_delay)
    return summaries[:max_commits]


async def fetch_commits(
    token: str,
    owner: str,
    repo: str,
    *,
    max_commits: int = 1000,
    concurrency: int = 8,
    page_delay: float = 0.5,
) -> list[dict[str, Any]]:
    """Fetch up to ``max_commits`` commit details, newest first.

    Commit pages are listed sequentially; details (with ``stats`` and
    ``files``) are fetched concurrently and returned in listing order. A
    failed detail request falls back to the summary record.

    Args:
        token: GitHub token; empty for unauthenticated access.
        owner: Repository owner (user or org).
        repo: Repository name.
        max_commits: Cap on the number of commits fetched.
        concurrency: Maximum in-flight detail requests.
        page_delay: Seconds to sleep between listing pages.

    Returns:
        Raw commit payloads in the GitHub REST "commit detail" shape.
    """
    semaphore = asyncio.Semaphore(concurrency)

    async with httpx.AsyncClient(headers=_headers(token), timeout=30.0) as client:
        summaries = await _list_commits(client, owner, repo, max_commits, page_delay)

        async def detail(summary: dict[str, Any]) -> dict[str, Any]:
            sha = summary.get("sha", "")
            async with semaphore:
                try:
                    response = await _get(client, f"{API_URL}/repos/{owner}/{repo}/commits/{sha}")
                except httpx.HTTPError as exc:
                    logger.warning("Failed to fetch details for commit %s: %s", sha, exc)
                    return summary
            return response.json()

        # gather preserves the order of its arguments
        commits = await asyncio.gather(*(detail(s) for s in summaries))

    logger.info("Fetched %d commits from %s/%s", len(commits), owner, repo)
    return list(commits)


async def fetch_branches(token: str, owner: str, repo: str) -> tuple[list[Branch], str]:
    """Fetch all branches with protection flags, plus the default branch name."""
    branches: list[Branch] = []
    async with httpx.AsyncClient(headers=_headers(token), timeout=30.0) as client:
        repo_response = await _get(client, f"{API_URL}/repos/{owner}/{repo}")
        default_branch = repo_response.json().get("default_branch", "main")

        page = 1
        while True:
            response = await _get(
                client,
                f"{API_URL}/repos/{owner}/{repo}/branches",
                {"per_page": PER_PAGE, "page": page},
            )
            batch = response.json()
            branches.extend(
                Branch(name=b["name"], protected=bool(b.get("protected", False))) for b in batch
            )
            if len(batch) < PER_PAGE:
                break
            page += 1

    return branches, default_branch
