"""Commit patterns, time range, and development velocity."""

from __future__ import annotations

from collections import Counter, defaultdict
from itertools import combinations

import networkx as nx
import numpy as np

from repopulse.analyzers.authors import author_labels
from repopulse.config import AnalysisConfig
from repopulse.models import (
    Commit,
    CommitPattern,
    CommitSizeDistribution,
    DevelopmentVelocity,
    IntensityTier,
    TimeRange,
)
from repopulse.utils.temporal import inclusive_day_span, utc_date
from repopulse.utils.thresholds import classify

# Intensity tiers on average commits per day.
INTENSITY_LADDER: tuple[tuple[float, IntensityTier], ...] = (
    (20, IntensityTier.VERY_HIGH),
    (10, IntensityTier.HIGH),
    (3, IntensityTier.MEDIUM),
)

NO_EXTENSION = "no_extension"


def analyze_time_range(commits: list[Commit]) -> TimeRange:
    """First/last dated commit, inclusive day span, and distinct commit days."""
    dates = [c.author_date for c in commits if c.author_date is not None]
    if not dates:
        return TimeRange()
    first, last = min(dates), max(dates)
    return TimeRange(
        first_commit=first,
        last_commit=last,
        days_active=inclusive_day_span(first, last),
        commit_days=len({utc_date(d) for d in dates}),
    )


def analyze_patterns(commits: list[Commit]) -> CommitPattern:
    """Build hour/day histograms, size buckets, collaboration and file types.

    Commits without a parsable author date are left out of the hour, day and
    size buckets but still contribute to collaboration and file types.
    """
    pattern = CommitPattern()
    sizes = pattern.commit_size_distribution

    for commit in commits:
        if commit.author_date is None:
            continue
        pattern.hour_of_day[commit.author_date.hour] += 1
        pattern.day_of_week[commit.author_date.weekday()] += 1
        _bucket_size(sizes, commit.lines_changed)

    pattern.author_collaboration = analyze_collaboration(commits)

    extensions: Counter[str] = Counter()
    for commit in commits:
        for fc in commit.files:
            extensions[file_extension(fc.path)] += 1
    pattern.file_type_distribution = dict(sorted(extensions.items()))

    return pattern


def analyze_collaboration(commits: list[Commit]) -> dict[str, int]:
    """Count, per author pair, the distinct files both authors touched.

    Keys are ``"A & B"`` with author labels in sorted order. Authors sharing a
    name are told apart by email.
    """
    labels = author_labels(commits)
    file_authors: dict[str, set[str]] = defaultdict(set)
    for commit in commits:
        for path in commit.file_paths:
            file_authors[path].add(labels[commit.author_key])

    graph = nx.Graph()
    for authors in file_authors.values():
        for a, b in combinations(sorted(authors), 2):
            if graph.has_edge(a, b):
                graph[a][b]["weight"] += 1
            else:
                graph.add_edge(a, b, weight=1)

    pairs = {}
    for a, b, data in graph.edges(data=True):
        first, second = sorted((a, b))
        pairs[f"{first} & {second}"] = data["weight"]
    return dict(sorted(pairs.items()))


def analyze_velocity(
    commits: list[Commit],
    time_range: TimeRange,
    contributor_count: int,
    config: AnalysisConfig | None = None,
) -> DevelopmentVelocity:
    """Repository-wide throughput over the analyzed window."""
    if config is None:
        config = AnalysisConfig()

    days = max(1, time_range.days_active)
    total = len(commits)
    lines = sum(c.lines_changed for c in commits)
    per_day = total / days

    return DevelopmentVelocity(
        total_commits=total,
        active_contributors=contributor_count,
        avg_commits_per_day=round(per_day, 4),
        avg_lines_per_day=round(lines / days, 4),
        peak_development_days=find_peak_days(
            commits, config.peak_day_percentile, config.peak_day_limit
        ),
        development_intensity=classify(per_day, INTENSITY_LADDER, IntensityTier.LOW),
    )


def find_peak_days(
    commits: list[Commit],
    percentile: float = 80,
    limit: int = 5,
) -> list[str]:
    """Dates whose commit count is strictly above the given percentile.

    Returns ISO dates ordered by count descending, then date.
    """
    per_day: Counter[str] = Counter(
        utc_date(c.author_date).isoformat() for c in commits if c.author_date is not None
    )
    if not per_day:
        return []

    threshold = float(np.percentile(np.array(list(per_day.values())), percentile))
    peaks = [(day, n) for day, n in per_day.items() if n > threshold]
    peaks.sort(key=lambda item: (-item[1], item[0]))
    return [day for day, _ in peaks[:limit]]


def file_extension(path: str) -> str:
    """Lowercased extension of the final path component, or ``no_extension``."""
    name = path.rsplit("/", 1)[-1]
    dot = name.rfind(".")
    if dot <= 0 or dot == len(name) - 1:
        return NO_EXTENSION
    return name[dot:].lower()


def _bucket_size(sizes: CommitSizeDistribution, lines: int) -> None:
    if lines <= 10:
        sizes.small += 1
    elif lines <= 50:
        sizes.medium += 1
    elif lines <= 200:
        sizes.large += 1
    else:
        sizes.huge += 1
