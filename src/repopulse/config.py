"""Configuration loading, defaults, and validation."""

from __future__ import annotations

import os
import re
import subprocess
import tomllib
from dataclasses import dataclass, field
from pathlib import Path


class ConfigError(ValueError):
    """Raised when configuration values are unusable."""


@dataclass
class AnalysisConfig:
    max_commits: int = 1000
    include_branches: bool = True
    include_file_analysis: bool = True
    include_author_analysis: bool = True
    complexity_threshold: float = 50
    hot_file_limit: int = 20
    peak_day_percentile: float = 80
    peak_day_limit: int = 5
    max_recommendations: int = 5
    # Local git has no protection metadata; these names count as protected.
    protected_branches: list[str] = field(default_factory=lambda: ["main", "master"])

    def __post_init__(self) -> None:
        if self.max_commits < 0:
            raise ConfigError(f"max_commits must be >= 0, got {self.max_commits}")
        if self.complexity_threshold <= 0:
            raise ConfigError(
                f"complexity_threshold must be > 0, got {self.complexity_threshold}"
            )
        if self.hot_file_limit < 0:
            raise ConfigError(f"hot_file_limit must be >= 0, got {self.hot_file_limit}")
        if not 0 <= self.peak_day_percentile <= 100:
            raise ConfigError(
                f"peak_day_percentile must be within [0, 100], got {self.peak_day_percentile}"
            )
        if self.peak_day_limit < 0:
            raise ConfigError(f"peak_day_limit must be >= 0, got {self.peak_day_limit}")
        if self.max_recommendations < 0:
            raise ConfigError(
                f"max_recommendations must be >= 0, got {self.max_recommendations}"
            )


@dataclass
class GitHubConfig:
    owner: str = ""
    repo: str = ""
    token: str = ""

    def resolve_token(self) -> str:
        """Get token from config, env var, or gh CLI."""
        if self.token:
            return self.token
        env_token = os.environ.get("GITHUB_TOKEN", "")
        if env_token:
            return env_token
        try:
            result = subprocess.run(
                ["gh", "auth", "token"],
                capture_output=True,
                text=True,
                timeout=5,
            )
            if result.returncode == 0:
                return result.stdout.strip()
        except (FileNotFoundError, subprocess.TimeoutExpired):
            pass
        return ""

    def resolve_owner_repo(self, target: str | None = None) -> tuple[str, str]:
        """Get owner/repo from an ``owner/repo`` string or GitHub URL, else config."""
        if target:
            m = re.search(r"(?:github\.com[:/])?([^/:\s]+)/([^/\s]+?)(?:\.git)?/?$", target)
            if m:
                return m.group(1), m.group(2)
            raise ConfigError(f"Cannot parse GitHub repository from {target!r}")
        return self.owner, self.repo


@dataclass
class OutputConfig:
    json_path: str = ""


@dataclass
class RepopulseConfig:
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    repo_path: str = "."

    @classmethod
    def load(cls, path: Path | None = None) -> RepopulseConfig:
        """Load config from repopulse.toml, falling back to defaults."""
        if path is None:
            path = Path("repopulse.toml")
        if not path.exists():
            return cls()

        with open(path, "rb") as f:
            raw = tomllib.load(f)

        config = cls()

        if "analysis" in raw:
            a = raw["analysis"]
            d = config.analysis
            config.analysis = AnalysisConfig(
                max_commits=a.get("max_commits", d.max_commits),
                include_branches=a.get("include_branches", d.include_branches),
                include_file_analysis=a.get("include_file_analysis", d.include_file_analysis),
                include_author_analysis=a.get(
                    "include_author_analysis", d.include_author_analysis
                ),
                complexity_threshold=a.get("complexity_threshold", d.complexity_threshold),
                hot_file_limit=a.get("hot_file_limit", d.hot_file_limit),
                peak_day_percentile=a.get("peak_day_percentile", d.peak_day_percentile),
                peak_day_limit=a.get("peak_day_limit", d.peak_day_limit),
                max_recommendations=a.get("max_recommendations", d.max_recommendations),
                protected_branches=a.get("protected_branches", d.protected_branches),
            )

        if "github" in raw:
            g = raw["github"]
            config.github = GitHubConfig(
                owner=g.get("owner", ""),
                repo=g.get("repo", ""),
                token=g.get("token", ""),
            )

        if "output" in raw:
            o = raw["output"]
            config.output = OutputConfig(
                json_path=o.get("json_path", config.output.json_path),
            )

        return config


DEFAULT_CONFIG_TEMPLATE = """\
[analysis]
max_commits = 1000
include_branches = true
include_file_analysis = true
include_author_analysis = true
complexity_threshold = 50
hot_file_limit = 20
peak_day_percentile = 80
peak_day_limit = 5
max_recommendations = 5
protected_branches = ["main", "master"]

[github]
# token from GITHUB_TOKEN env or `gh auth token`
owner = ""
repo = ""

[output]
json_path = ""
"""
