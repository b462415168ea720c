"""Per-author contributor velocity."""

from __future__ import annotations

from collections import defaultdict
from datetime import date

from repopulse.models import AuthorVelocity, Commit
from repopulse.utils.temporal import inclusive_day_span, utc_date

# Productivity weights; the three factors are each normalized to [0, 1].
VOLUME_WEIGHT = 45.0
SPREAD_WEIGHT = 45.0
SIZE_WEIGHT = 10.0
VOLUME_SATURATION = 50  # commits
SIZE_SATURATION = 50.0  # lines per commit


def analyze_authors(
    commits: list[Commit],
    days_active: int | None = None,
) -> list[AuthorVelocity]:
    """Fold commits into one AuthorVelocity per distinct author identity.

    Authors are keyed by (name, email), which degrades to the name alone when
    the email is empty. Results are sorted by commit count descending, then
    name and email.

    Args:
        commits: Normalized commits in any order.
        days_active: Calendar-day span of the repository window, used for the
            activity-spread factor of the productivity score. Computed from
            the commits when omitted.

    Returns:
        List of finalized AuthorVelocity records.
    """
    if days_active is None:
        days_active = _span_days(commits)

    authors: dict[tuple[str, str], _AuthorStats] = {}
    for commit in commits:
        key = commit.author_key
        stats = authors.get(key)
        if stats is None:
            stats = authors[key] = _AuthorStats(commit.author_name, commit.author_email)
        stats.commits += 1
        stats.additions += commit.stats.additions
        stats.deletions += commit.stats.deletions
        stats.paths.update(commit.file_paths)
        if commit.author_date is not None:
            stats.days.add(utc_date(commit.author_date))

    velocities = [stats.finalize(days_active) for stats in authors.values()]
    velocities.sort(key=lambda v: (-v.commits, v.author, v.email))
    return velocities


def author_labels(commits: list[Commit]) -> dict[tuple[str, str], str]:
    """Display label per author identity.

    The plain name is used unless several identities share it, in which case
    the email is appended, e.g. ``Alex <alex@work.com>``.
    """
    emails_by_name: dict[str, set[str]] = defaultdict(set)
    for commit in commits:
        name, email = commit.author_key
        emails_by_name[name].add(email)

    labels: dict[tuple[str, str], str] = {}
    for commit in commits:
        key = commit.author_key
        name, email = key
        if key not in labels:
            labels[key] = name if len(emails_by_name[name]) == 1 else f"{name} <{email}>"
    return labels


def productivity_score(
    commits: int,
    avg_commit_size: float,
    active_days: int,
    days_active: int,
) -> int:
    """Bounded composite of volume, activity spread, and commit size."""
    volume = min(1.0, commits / VOLUME_SATURATION)
    spread = min(1.0, active_days / days_active) if days_active > 0 else 0.0
    size = min(1.0, avg_commit_size / SIZE_SATURATION)
    score = VOLUME_WEIGHT * volume + SPREAD_WEIGHT * spread + SIZE_WEIGHT * size
    return round(min(100.0, max(0.0, score)))


def _span_days(commits: list[Commit]) -> int:
    dates = [c.author_date for c in commits if c.author_date is not None]
    if not dates:
        return 0
    return inclusive_day_span(min(dates), max(dates))


class _AuthorStats:
    """Internal accumulator for per-author statistics."""

    __slots__ = ("name", "email", "commits", "additions", "deletions", "paths", "days")

    def __init__(self, name: str, email: str) -> None:
        self.name = name
        self.email = email
        self.commits: int = 0
        self.additions: int = 0
        self.deletions: int = 0
        self.paths: set[str] = set()
        self.days: set[date] = set()

    def finalize(self, days_active: int) -> AuthorVelocity:
        avg_size = (self.additions + self.deletions) / self.commits if self.commits else 0.0
        active_days = len(self.days)
        return AuthorVelocity(
            author=self.name,
            email=self.email,
            commits=self.commits,
            additions=self.additions,
            deletions=self.deletions,
            files_changed=len(self.paths),
            avg_commit_size=round(avg_size, 2),
            active_days=active_days,
            productivity_score=productivity_score(
                self.commits, avg_size, active_days, days_active
            ),
        )
