"""Hot-file and code-churn detection."""

from __future__ import annotations

from datetime import datetime, timezone

from repopulse.analyzers.authors import author_labels
from repopulse.config import AnalysisConfig
from repopulse.models import CodeChurnEntry, Commit, HotFile, ImpactTier, RiskTier
from repopulse.utils.thresholds import classify

# Impact tiers on total changed lines across the window.
IMPACT_LADDER: tuple[tuple[float, ImpactTier], ...] = (
    (1000, ImpactTier.CRITICAL),
    (500, ImpactTier.HIGH),
    (100, ImpactTier.MEDIUM),
)

# Risk tiers on the composite risk score (0-100).
RISK_LADDER: tuple[tuple[float, RiskTier], ...] = (
    (60, RiskTier.HIGH),
    (35, RiskTier.MEDIUM),
)

SECONDS_PER_WEEK = 7 * 86400


def analyze_files(
    commits: list[Commit],
    config: AnalysisConfig | None = None,
    reference_date: datetime | None = None,
) -> tuple[list[HotFile], list[CodeChurnEntry]]:
    """Aggregate per-file statistics into hot files and churn entries.

    Hot files are ranked by total changes (ties broken by path) and truncated
    to ``config.hot_file_limit``. Every touched path gets a churn entry,
    ordered by path.

    Args:
        commits: Normalized commits in any order.
        config: Analysis configuration for limits and the complexity knob.
        reference_date: "Now" for file age. Defaults to UTC now.

    Returns:
        Tuple of (hot files, code churn entries).
    """
    if config is None:
        config = AnalysisConfig()
    if reference_date is None:
        reference_date = datetime.now(timezone.utc)

    labels = author_labels(commits)
    file_data: dict[str, _FileStats] = {}
    for commit in commits:
        for fc in commit.files:
            stats = file_data.get(fc.path)
            if stats is None:
                stats = file_data[fc.path] = _FileStats()
            stats.changes += fc.changes
            stats.additions += fc.additions
            stats.deletions += fc.deletions
            stats.touches += 1
            stats.authors.add(labels[commit.author_key])
            stats.observe(commit.author_date)

    hot_files = [
        HotFile(
            path=path,
            changes=stats.changes,
            additions=stats.additions,
            deletions=stats.deletions,
            commit_count=stats.touches,
            last_modified=stats.last_seen,
            authors=sorted(stats.authors),
            change_frequency=round(change_frequency(stats), 4),
            impact=classify(stats.changes, IMPACT_LADDER, ImpactTier.LOW),
        )
        for path, stats in file_data.items()
    ]
    hot_files.sort(key=lambda h: (-h.changes, h.path))
    hot_files = hot_files[: config.hot_file_limit]

    churn: list[CodeChurnEntry] = []
    for path in sorted(file_data):
        stats = file_data[path]
        age = file_age_days(stats.first_seen, reference_date)
        complexity = estimate_complexity(
            stats.touches, stats.additions, stats.deletions, config.complexity_threshold
        )
        lines = stats.additions + stats.deletions
        churn.append(
            CodeChurnEntry(
                path=path,
                churn=lines,
                age_days=age,
                complexity=complexity,
                risk=classify(risk_score(lines, age, complexity), RISK_LADDER, RiskTier.LOW),
            )
        )

    return hot_files, churn


def change_frequency(stats: _FileStats) -> float:
    """Changes per week between the first and last touch, at least one week."""
    weeks = 1.0
    if stats.first_seen is not None and stats.last_seen is not None:
        elapsed = (stats.last_seen - stats.first_seen).total_seconds() / SECONDS_PER_WEEK
        weeks = max(1.0, elapsed)
    return stats.changes / weeks


def file_age_days(first_seen: datetime | None, reference_date: datetime) -> int:
    if first_seen is None:
        return 0
    if reference_date.tzinfo is None:
        reference_date = reference_date.replace(tzinfo=timezone.utc)
    return max(0, (reference_date - first_seen).days)


def estimate_complexity(
    touches: int, additions: int, deletions: int, threshold: float = 50
) -> int:
    """Coarse complexity from how often and how destructively a file changes.

    Rework (deletions relative to additions) inflates the touch count; the
    threshold is the inflated touch count that maps to 100.
    """
    rework = deletions / additions if additions > 0 else 0.0
    return min(100, round(100 * touches * (1 + rework) / threshold))


def risk_score(churn: int, age_days: int, complexity: int) -> float:
    """Composite 0-100 risk: churn up to 50, youth up to 20, complexity up to 30."""
    churn_part = min(50.0, churn / 20)
    youth_part = 20.0 * max(0, 365 - age_days) / 365
    return churn_part + youth_part + 0.3 * complexity


class _FileStats:
    """Internal accumulator for per-file statistics."""

    __slots__ = (
        "changes",
        "additions",
        "deletions",
        "touches",
        "authors",
        "first_seen",
        "last_seen",
    )

    def __init__(self) -> None:
        self.changes: int = 0
        self.additions: int = 0
        self.deletions: int = 0
        self.touches: int = 0
        self.authors: set[str] = set()
        self.first_seen: datetime | None = None
        self.last_seen: datetime | None = None

    def observe(self, moment: datetime | None) -> None:
        if moment is None:
            return
        if self.first_seen is None or moment < self.first_seen:
            self.first_seen = moment
        if self.last_seen is None or moment > self.last_seen:
            self.last_seen = moment
