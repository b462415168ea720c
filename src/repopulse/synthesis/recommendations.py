"""Rule-based recommendations derived from aggregates and health scores."""

from __future__ import annotations

from typing import Callable

from repopulse.models import CommitHistory, ImpactTier, IntensityTier, RepositoryHealth

Rule = Callable[[CommitHistory, RepositoryHealth], "str | None"]

LOW_FREQUENCY_SCORE = 50
LOW_DIVERSITY_SCORE = 60
LOW_CHURN_SCORE = 50
LOW_BRANCH_SCORE = 70
HUGE_COMMIT_SHARE = 0.25
HOT_FILES_NAMED = 3

# ── Rules ────────────────────────────────────────────────────────────────────


def commit_frequency_rule(history: CommitHistory, health: RepositoryHealth) -> str | None:
    if health.commit_frequency_score >= LOW_FREQUENCY_SCORE:
        return None
    return "Consider increasing commit frequency: small, regular commits improve development velocity"


def contributor_rule(history: CommitHistory, health: RepositoryHealth) -> str | None:
    if health.contributor_diversity_score >= LOW_DIVERSITY_SCORE:
        return None
    return "Encourage more contributors to share the work and reduce the bus factor"


def churn_rule(history: CommitHistory, health: RepositoryHealth) -> str | None:
    if health.code_churn_score >= LOW_CHURN_SCORE:
        return None
    return "High code churn detected: consider refactoring frequently rewritten files"


def hot_files_rule(history: CommitHistory, health: RepositoryHealth) -> str | None:
    heavy = [
        h for h in history.hot_files if h.impact in (ImpactTier.HIGH, ImpactTier.CRITICAL)
    ]
    if not heavy:
        return None
    names = ", ".join(h.path for h in heavy[:HOT_FILES_NAMED])
    verb = "hot file carries" if len(heavy) == 1 else "hot files carry"
    return f"{len(heavy)} {verb} most of the change volume ({names}): consider splitting or refactoring them"


def commit_size_rule(history: CommitHistory, health: RepositoryHealth) -> str | None:
    sizes = history.commit_patterns.commit_size_distribution
    if sizes.total == 0 or sizes.huge / sizes.total < HUGE_COMMIT_SHARE:
        return None
    return "Many commits exceed 200 changed lines: keep commit size small to ease review"


def intensity_rule(history: CommitHistory, health: RepositoryHealth) -> str | None:
    if history.development_velocity.development_intensity != IntensityTier.VERY_HIGH:
        return None
    return "Very high development intensity detected: ensure adequate testing and code review"


def branch_rule(history: CommitHistory, health: RepositoryHealth) -> str | None:
    if health.branch_management_score >= LOW_BRANCH_SCORE:
        return None
    return "Consider protecting main branches and enforcing branch protection rules"


RULES: tuple[Rule, ...] = (
    commit_frequency_rule,
    contributor_rule,
    churn_rule,
    hot_files_rule,
    commit_size_rule,
    intensity_rule,
    branch_rule,
)


def generate_recommendations(
    history: CommitHistory,
    health: RepositoryHealth,
    limit: int = 5,
) -> list[str]:
    """Evaluate every rule in order and keep the first ``limit`` that fire."""
    fired = (rule(history, health) for rule in RULES)
    recommendations = [text for text in fired if text]
    return recommendations[:limit]
