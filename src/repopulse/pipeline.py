"""Pipeline orchestrator: wires normalization, aggregation, scoring, and assembly."""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, TypeVar

from repopulse.analyzers.authors import analyze_authors
from repopulse.analyzers.files import analyze_files
from repopulse.analyzers.health import score_health
from repopulse.analyzers.normalize import normalize_commits
from repopulse.analyzers.temporal import (
    analyze_patterns,
    analyze_time_range,
    analyze_velocity,
)
from repopulse.config import AnalysisConfig, RepopulseConfig
from repopulse.models import (
    AnalysisMetadata,
    AnalysisReport,
    AnalysisResult,
    Branch,
    BranchAnalysis,
    BranchDivergence,
    CommitHistory,
    CommitPattern,
    DevelopmentVelocity,
    RepositoryHealth,
    TimeRange,
)
from repopulse.synthesis.recommendations import generate_recommendations

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_analysis(
    raw_commits: Iterable[Mapping[str, Any] | Any],
    branches: Iterable[Branch | Mapping[str, Any]] = (),
    current_branch: str = "main",
    config: AnalysisConfig | None = None,
    reference_date: datetime | None = None,
) -> AnalysisReport:
    """Analyze a fetched commit list and package the result.

    Every stage runs behind a guard: an unexpected failure is logged, the
    stage falls back to its empty result, and the stage is listed in
    ``metadata.degraded_stages``. The report stays ``success=True`` so that
    callers always receive the best available answer.

    Args:
        raw_commits: GitHub-style commit payloads, in any order.
        branches: Branch records or mappings with ``name`` and ``protected``.
        current_branch: Name of the default/current branch.
        config: Analysis configuration. Validated on construction.
        reference_date: "Now" for file ages. Defaults to UTC now.

    Returns:
        AnalysisReport wrapping the AnalysisResult and run metadata.
    """
    if config is None:
        config = AnalysisConfig()
    if reference_date is None:
        reference_date = datetime.now(timezone.utc)

    started = time.perf_counter()
    failures: list[tuple[str, Exception]] = []

    def guarded(stage: str, fallback: Callable[[], T], func: Callable[[], T]) -> T:
        try:
            return func()
        except Exception as exc:
            logger.exception("Stage %r failed; continuing with an empty result", stage)
            failures.append((stage, exc))
            return fallback()

    raw_list = list(raw_commits)
    commits = guarded(
        "normalize", list, lambda: normalize_commits(raw_list, config.max_commits)
    )
    branch_list = guarded("branches", list, lambda: [_coerce_branch(b) for b in branches])

    time_range = guarded("time_range", TimeRange, lambda: analyze_time_range(commits))
    authors = guarded(
        "authors", list, lambda: analyze_authors(commits, time_range.days_active)
    )
    hot_files, code_churn = guarded(
        "files",
        lambda: ([], []),
        lambda: analyze_files(commits, config, reference_date),
    )
    patterns = guarded("patterns", CommitPattern, lambda: analyze_patterns(commits))
    velocity = guarded(
        "velocity",
        lambda: DevelopmentVelocity(total_commits=len(commits)),
        lambda: analyze_velocity(commits, time_range, len(authors), config),
    )

    history = CommitHistory(
        total_commits=len(commits),
        time_range=time_range,
        authors=authors,
        hot_files=hot_files,
        code_churn=code_churn,
        development_velocity=velocity,
        commit_patterns=patterns,
    )

    health = guarded("health", RepositoryHealth, lambda: score_health(history, branch_list))
    recommendations = guarded(
        "recommendations",
        list,
        lambda: generate_recommendations(history, health, config.max_recommendations),
    )

    # Section toggles only trim the output; scoring above saw everything.
    published = replace(
        history,
        authors=authors if config.include_author_analysis else [],
        hot_files=hot_files if config.include_file_analysis else [],
        code_churn=code_churn if config.include_file_analysis else [],
    )
    branch_analysis = (
        build_branch_analysis(branch_list, current_branch) if config.include_branches else None
    )

    elapsed_ms = (time.perf_counter() - started) * 1000
    degraded = [stage for stage, _ in failures]
    error = "; ".join(f"{stage}: {exc}" for stage, exc in failures) or None
    logger.info(
        "Analyzed %d commits in %.1fms (%d degraded stages)",
        len(commits),
        elapsed_ms,
        len(degraded),
    )

    return AnalysisReport(
        success=True,
        data=AnalysisResult(
            commit_history=published,
            branch_analysis=branch_analysis,
            repository_health=health,
            recommendations=recommendations,
        ),
        error=error,
        metadata=AnalysisMetadata(
            analyzed_commits=len(commits),
            analysis_time=round(elapsed_ms, 3),
            last_updated=datetime.now(timezone.utc).isoformat(),
            degraded_stages=degraded,
        ),
    )


def build_branch_analysis(branches: list[Branch], current_branch: str) -> BranchAnalysis:
    """Branch list plus a divergence record for every non-current branch."""
    divergence: dict[str, BranchDivergence] = {}
    for branch in branches:
        if branch.name != current_branch:
            divergence[branch.name] = branch.divergence or BranchDivergence()
    return BranchAnalysis(
        current_branch=current_branch,
        branches=list(branches),
        branch_divergence=dict(sorted(divergence.items())),
    )


def _coerce_branch(value: Branch | Mapping[str, Any]) -> Branch:
    if isinstance(value, Branch):
        return value
    return Branch(name=str(value.get("name", "")), protected=bool(value.get("protected", False)))


def run_pipeline(config: RepopulseConfig, *, github: str | None = None) -> AnalysisReport:
    """Fetch commits from a local repository or GitHub, then analyze them."""
    if github:
        import asyncio

        from repopulse.extractors.github_api import fetch_branches, fetch_commits

        owner, repo = config.github.resolve_owner_repo(github)
        token = config.github.resolve_token()
        raw_commits = asyncio.run(
            fetch_commits(token, owner, repo, max_commits=config.analysis.max_commits)
        )
        branches, current = asyncio.run(fetch_branches(token, owner, repo))
    else:
        from repopulse.extractors.git_log import (
            current_branch as local_current_branch,
            iter_raw_commits,
            list_branches,
        )

        raw_commits = list(
            iter_raw_commits(config.repo_path, max_count=config.analysis.max_commits)
        )
        branches = list_branches(config.repo_path, config.analysis.protected_branches)
        current = local_current_branch(config.repo_path)

    return run_analysis(raw_commits, branches, current, config.analysis)
