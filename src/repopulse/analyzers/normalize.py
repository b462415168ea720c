"""Normalize raw commit payloads into immutable Commit records."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from repopulse.models import UNKNOWN_AUTHOR, Commit, CommitStats, FileChange
from repopulse.utils.temporal import parse_timestamp

logger = logging.getLogger(__name__)

FILE_STATUSES = frozenset({"added", "removed", "modified", "renamed", "copied", "changed"})

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _count(value: Any) -> int:
    """Coerce a line count to a non-negative int; junk becomes 0."""
    if isinstance(value, bool):
        return 0
    try:
        n = int(value)
    except (TypeError, ValueError):
        return 0
    return max(n, 0)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _normalize_file(raw: Any) -> FileChange | None:
    """Normalize one entry of a commit's ``files`` list."""
    entry = _mapping(raw)
    path = entry.get("filename") or entry.get("path")
    if not isinstance(path, str) or not path:
        return None

    additions = _count(entry.get("additions"))
    deletions = _count(entry.get("deletions"))
    changes = (
        _count(entry["changes"]) if entry.get("changes") is not None else additions + deletions
    )
    status = entry.get("status")
    if status not in FILE_STATUSES:
        status = "modified"
    previous = entry.get("previous_filename")

    return FileChange(
        path=path,
        status=status,
        additions=additions,
        deletions=deletions,
        changes=changes,
        previous_path=previous if isinstance(previous, str) and previous else None,
    )


def normalize_commit(raw: Mapping[str, Any] | Any) -> Commit:
    """Build a Commit from a GitHub-style commit payload.

    Never raises on malformed input: missing authors become ``Unknown``,
    a missing file list becomes empty, missing stats are derived from the
    files, and unparsable timestamps become None.
    """
    payload = _mapping(raw)
    detail = _mapping(payload.get("commit"))
    author = _mapping(detail.get("author"))
    committer = _mapping(detail.get("committer"))

    name = _text(author.get("name"))
    email = _text(author.get("email"))
    if not name and not email:
        name = UNKNOWN_AUTHOR
    elif not name:
        name = email

    raw_files = payload.get("files")
    files: list[FileChange] = []
    if isinstance(raw_files, list):
        for entry in raw_files:
            fc = _normalize_file(entry)
            if fc is not None:
                files.append(fc)

    raw_stats = payload.get("stats")
    if isinstance(raw_stats, Mapping):
        additions = _count(raw_stats.get("additions"))
        deletions = _count(raw_stats.get("deletions"))
        total = (
            _count(raw_stats["total"])
            if raw_stats.get("total") is not None
            else additions + deletions
        )
        stats = CommitStats(additions=additions, deletions=deletions, total=total)
    else:
        additions = sum(f.additions for f in files)
        deletions = sum(f.deletions for f in files)
        stats = CommitStats(additions=additions, deletions=deletions, total=additions + deletions)

    sha = payload.get("sha") or detail.get("sha") or ""
    message = detail.get("message")

    return Commit(
        hash=sha if isinstance(sha, str) else str(sha),
        author_name=name,
        author_email=email,
        author_date=parse_timestamp(author.get("date")),
        committer_date=parse_timestamp(committer.get("date")),
        message=message if isinstance(message, str) else "",
        files=tuple(files),
        stats=stats,
    )


def _chronological_key(commit: Commit) -> datetime:
    return commit.author_date or _OLDEST


def normalize_commits(
    raws: Iterable[Mapping[str, Any] | Any],
    max_commits: int | None = None,
) -> list[Commit]:
    """Normalize a batch of raw commits, keeping at most ``max_commits``.

    When the batch exceeds the cap, the most recent commits by author date
    are kept; undated commits count as the oldest. The result is ordered
    chronologically with undated commits last, stable on input order.
    """
    commits = [normalize_commit(raw) for raw in raws]

    if max_commits is not None and len(commits) > max_commits:
        logger.info("Truncating %d commits to the %d most recent", len(commits), max_commits)
        newest_first = sorted(commits, key=_chronological_key, reverse=True)
        kept = {id(c) for c in newest_first[:max_commits]}
        commits = [c for c in commits if id(c) in kept]

    dated = sorted((c for c in commits if c.author_date is not None), key=_chronological_key)
    undated = [c for c in commits if c.author_date is None]
    if undated:
        logger.warning("%d commits have no parsable author date", len(undated))
    return dated + undated
