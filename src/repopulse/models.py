"""All shared data models for repopulse."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

UNKNOWN_AUTHOR = "Unknown"

# ── Normalized commits ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class FileChange:
    """A single file changed in a commit."""

    path: str
    status: str = "modified"
    additions: int = 0
    deletions: int = 0
    changes: int = 0
    previous_path: str | None = None  # set if rename


@dataclass(frozen=True)
class CommitStats:
    additions: int = 0
    deletions: int = 0
    total: int = 0


@dataclass(frozen=True)
class Commit:
    """A normalized commit record. Never mutated after normalization."""

    hash: str
    author_name: str
    author_email: str
    author_date: datetime | None  # None when the timestamp was unparsable
    committer_date: datetime | None = None
    message: str = ""
    files: tuple[FileChange, ...] = ()
    stats: CommitStats = field(default_factory=CommitStats)

    @property
    def author_key(self) -> tuple[str, str]:
        return (self.author_name, self.author_email.lower())

    @property
    def lines_changed(self) -> int:
        return self.stats.additions + self.stats.deletions

    @property
    def file_paths(self) -> list[str]:
        return [f.path for f in self.files]

    @property
    def subject(self) -> str:
        return self.message.split("\n", 1)[0]


# ── Tiers ───────────────────────────────────────────────────────────────────


class ImpactTier(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskTier(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class IntensityTier(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class HealthCategory(Enum):
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"
    EXCELLENT = "excellent"


# ── Contributors ────────────────────────────────────────────────────────────


@dataclass
class AuthorVelocity:
    """Per-author throughput and activity spread."""

    author: str
    email: str
    commits: int = 0
    additions: int = 0
    deletions: int = 0
    files_changed: int = 0  # distinct paths
    avg_commit_size: float = 0.0
    active_days: int = 0
    productivity_score: int = 0


# ── Files ───────────────────────────────────────────────────────────────────


@dataclass
class HotFile:
    """A file ranked among the most changed in the analyzed window."""

    path: str
    changes: int
    additions: int
    deletions: int
    commit_count: int
    last_modified: datetime | None
    authors: list[str] = field(default_factory=list)
    change_frequency: float = 0.0  # changes per week
    impact: ImpactTier = ImpactTier.LOW


@dataclass
class CodeChurnEntry:
    path: str
    churn: int  # lines added + deleted
    age_days: int  # since first observed change
    complexity: int  # coarse heuristic, 0-100
    risk: RiskTier = RiskTier.LOW


# ── Time ────────────────────────────────────────────────────────────────────


@dataclass
class TimeRange:
    first_commit: datetime | None = None
    last_commit: datetime | None = None
    days_active: int = 0  # inclusive calendar-day span
    commit_days: int = 0  # distinct days with at least one commit


@dataclass
class DevelopmentVelocity:
    total_commits: int = 0
    active_contributors: int = 0
    avg_commits_per_day: float = 0.0
    avg_lines_per_day: float = 0.0
    peak_development_days: list[str] = field(default_factory=list)
    development_intensity: IntensityTier = IntensityTier.LOW


@dataclass
class CommitSizeDistribution:
    small: int = 0  # 0-10 lines
    medium: int = 0  # 11-50 lines
    large: int = 0  # 51-200 lines
    huge: int = 0  # more than 200 lines

    @property
    def total(self) -> int:
        return self.small + self.medium + self.large + self.huge


@dataclass
class CommitPattern:
    hour_of_day: list[int] = field(default_factory=lambda: [0] * 24)
    day_of_week: list[int] = field(default_factory=lambda: [0] * 7)  # Monday = 0
    commit_size_distribution: CommitSizeDistribution = field(
        default_factory=CommitSizeDistribution
    )
    author_collaboration: dict[str, int] = field(default_factory=dict)
    file_type_distribution: dict[str, int] = field(default_factory=dict)


@dataclass
class CommitHistory:
    """Aggregated view over the whole commit window."""

    total_commits: int = 0
    time_range: TimeRange = field(default_factory=TimeRange)
    authors: list[AuthorVelocity] = field(default_factory=list)
    hot_files: list[HotFile] = field(default_factory=list)
    code_churn: list[CodeChurnEntry] = field(default_factory=list)
    development_velocity: DevelopmentVelocity = field(default_factory=DevelopmentVelocity)
    commit_patterns: CommitPattern = field(default_factory=CommitPattern)


# ── Branches ────────────────────────────────────────────────────────────────


@dataclass
class BranchDivergence:
    ahead_by: int = 0
    behind_by: int = 0
    total_commits: int = 0
    conflicting_files: list[str] = field(default_factory=list)
    merge_conflicts: bool = False


@dataclass
class Branch:
    name: str
    protected: bool = False
    divergence: BranchDivergence | None = None


@dataclass
class BranchAnalysis:
    current_branch: str = "main"
    branches: list[Branch] = field(default_factory=list)
    branch_divergence: dict[str, BranchDivergence] = field(default_factory=dict)


# ── Health ──────────────────────────────────────────────────────────────────


@dataclass
class RepositoryHealth:
    commit_frequency_score: int = 0
    contributor_diversity_score: int = 0
    code_churn_score: int = 0
    branch_management_score: int = 0
    overall_health: HealthCategory = HealthCategory.POOR

    @property
    def overall_score(self) -> float:
        return (
            self.commit_frequency_score
            + self.contributor_diversity_score
            + self.code_churn_score
            + self.branch_management_score
        ) / 4


# ── Pipeline aggregates ─────────────────────────────────────────────────────


@dataclass
class AnalysisResult:
    """Terminal output of the analytics engine."""

    commit_history: CommitHistory = field(default_factory=CommitHistory)
    branch_analysis: BranchAnalysis | None = None
    repository_health: RepositoryHealth = field(default_factory=RepositoryHealth)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class AnalysisMetadata:
    analyzed_commits: int = 0
    analysis_time: float = 0.0  # milliseconds
    last_updated: str = ""
    degraded_stages: list[str] = field(default_factory=list)


@dataclass
class AnalysisReport:
    """Wrapper handed to the presentation layer."""

    success: bool
    data: AnalysisResult | None = None
    error: str | None = None
    metadata: AnalysisMetadata = field(default_factory=AnalysisMetadata)

    @property
    def degraded(self) -> bool:
        return bool(self.metadata.degraded_stages)
