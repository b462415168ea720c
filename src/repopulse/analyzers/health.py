"""Repository health scoring.

Four independent sub-scores, each in [0, 100], roll up into one category:

- commit frequency: a rate curve over average commits per day, damped when
  commits cluster on few days of the window or the window is shorter than
  a week;
- contributor diversity: effective contributor count (inverse Simpson index
  of commit shares), capped low when one author dominates;
- code churn: penalizes the share of high- and medium-risk churn entries;
- branch management: share of protected branches.

The overall category is the mean of the four, read off ``HEALTH_LADDER``.
"""

from __future__ import annotations

from typing import Iterable

from repopulse.models import (
    AuthorVelocity,
    Branch,
    CodeChurnEntry,
    CommitHistory,
    HealthCategory,
    RepositoryHealth,
    RiskTier,
    TimeRange,
)
from repopulse.utils.thresholds import classify

HEALTH_LADDER: tuple[tuple[float, HealthCategory], ...] = (
    (85, HealthCategory.EXCELLENT),
    (70, HealthCategory.GOOD),
    (50, HealthCategory.FAIR),
)

FULL_DURATION_DAYS = 7
POINTS_PER_CONTRIBUTOR = 20
DOMINANT_SHARE = 0.75
DOMINANT_CAP = 40
MEDIUM_RISK_WEIGHT = 0.25


def score_health(history: CommitHistory, branches: Iterable[Branch]) -> RepositoryHealth:
    """Compute all sub-scores and the overall category."""
    frequency = commit_frequency_score(
        history.development_velocity.avg_commits_per_day, history.time_range
    )
    diversity = contributor_diversity_score(history.authors)
    churn = code_churn_score(history.code_churn)
    branch = branch_management_score(branches)
    return RepositoryHealth(
        commit_frequency_score=frequency,
        contributor_diversity_score=diversity,
        code_churn_score=churn,
        branch_management_score=branch,
        overall_health=overall_health(frequency, diversity, churn, branch),
    )


def commit_frequency_score(avg_commits_per_day: float, time_range: TimeRange) -> int:
    if time_range.days_active <= 0:
        return 0
    rate = _rate_curve(avg_commits_per_day)
    coverage = min(1.0, time_range.commit_days / time_range.days_active)
    duration = min(1.0, time_range.days_active / FULL_DURATION_DAYS)
    return _clamp(rate * (0.6 + 0.4 * coverage) * duration)


def contributor_diversity_score(authors: list[AuthorVelocity]) -> int:
    total = sum(a.commits for a in authors)
    if total == 0:
        return 0
    shares = [a.commits / total for a in authors]
    effective = 1.0 / sum(s * s for s in shares)
    score = min(100.0, POINTS_PER_CONTRIBUTOR * effective)
    if max(shares) >= DOMINANT_SHARE:
        score = min(score, DOMINANT_CAP)
    return _clamp(score)


def code_churn_score(entries: list[CodeChurnEntry]) -> int:
    if not entries:
        return 100
    high = sum(1 for e in entries if e.risk == RiskTier.HIGH)
    medium = sum(1 for e in entries if e.risk == RiskTier.MEDIUM)
    n = len(entries)
    return _clamp(100.0 * (1.0 - high / n - MEDIUM_RISK_WEIGHT * medium / n))


def branch_management_score(branches: Iterable[Branch]) -> int:
    branches = list(branches)
    if not branches:
        return 0
    protected = sum(1 for b in branches if b.protected)
    return _clamp(100.0 * protected / len(branches))


def overall_health(*scores: float) -> HealthCategory:
    """Map the mean of the sub-scores onto a health category."""
    mean = sum(scores) / len(scores) if scores else 0.0
    return classify(mean, HEALTH_LADDER, HealthCategory.POOR)


def _rate_curve(per_day: float) -> float:
    if per_day < 1:
        return 50.0 * per_day
    if per_day < 5:
        return 50.0 + 10.0 * (per_day - 1)
    return min(100.0, 90.0 + (per_day - 5))


def _clamp(value: float) -> int:
    return round(min(100.0, max(0.0, value)))
