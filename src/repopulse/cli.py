"""Typer CLI for repopulse."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Annotated

import httpx
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from repopulse.config import DEFAULT_CONFIG_TEMPLATE, ConfigError, RepopulseConfig
from repopulse.models import AnalysisReport

load_dotenv()

app = typer.Typer(
    name="repopulse",
    help="Analyze commit history for contributor velocity, hot files, churn, and repository health.",
    no_args_is_help=True,
)
console = Console()


@app.command()
def analyze(
    repo: Annotated[
        Path, typer.Option("--repo", "-r", help="Path to git repository")
    ] = Path("."),
    github: Annotated[
        str | None,
        typer.Option("--github", "-g", help="Analyze owner/repo on GitHub instead of a local clone"),
    ] = None,
    max_commits: Annotated[
        int | None, typer.Option("--max-commits", "-n", help="Cap on analyzed commits")
    ] = None,
    json_path: Annotated[
        Path | None, typer.Option("--json", "-j", help="Write the full report as JSON")
    ] = None,
    config_path: Annotated[
        Path | None, typer.Option("--config", "-c", help="Path to repopulse.toml")
    ] = None,
    debug: Annotated[
        bool, typer.Option("--debug", help="Echo log records to the terminal")
    ] = False,
) -> None:
    """Analyze commit history and print a repository health summary."""
    import logging

    # Always log to file
    log_path = repo / ".repopulse.log"
    file_handler = logging.FileHandler(log_path, mode="w")
    file_handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
    repopulse_logger = logging.getLogger("repopulse")
    repopulse_logger.setLevel(logging.DEBUG)
    repopulse_logger.addHandler(file_handler)

    if debug:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter("%(name)s %(levelname)s %(message)s"))
        repopulse_logger.addHandler(stream_handler)

    from repopulse.pipeline import run_pipeline

    try:
        config = RepopulseConfig.load(config_path)
        config.repo_path = str(repo.resolve())
        if max_commits is not None:
            config.analysis = replace(config.analysis, max_commits=max_commits)
    except ConfigError as exc:
        console.print(f"[red]Invalid configuration:[/red] {exc}")
        raise typer.Exit(2)

    with console.status("[bold green]Analyzing commit history..."):
        try:
            report = run_pipeline(config, github=github)
        except (RuntimeError, ConfigError, httpx.HTTPError) as exc:
            console.print(f"[red]Could not read commit history:[/red] {exc}")
            raise typer.Exit(1)

    _print_summary(report)

    target = json_path or (Path(config.output.json_path) if config.output.json_path else None)
    if target is not None:
        from repopulse.formatters.json_report import format_json

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(format_json(report) + "\n")
        console.print(f"\n[bold green]Done![/bold green] Wrote {target}")


@app.command()
def init(
    path: Annotated[
        Path, typer.Option("--path", "-p", help="Where to create repopulse.toml")
    ] = Path("."),
) -> None:
    """Create a repopulse.toml config file."""
    target = path / "repopulse.toml"
    if target.exists():
        console.print(f"[yellow]{target} already exists.[/yellow]")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    console.print(f"[green]Created {target}[/green]")


def _print_summary(report: AnalysisReport) -> None:
    data = report.data
    if data is None:
        console.print(f"[red]Analysis failed:[/red] {report.error}")
        return
    if report.degraded:
        console.print(f"[yellow]Partial result, degraded stages:[/yellow] {report.error}")

    history = data.commit_history
    health = data.repository_health
    console.print(
        f"\n[bold]{history.total_commits} commits[/bold] over "
        f"{history.time_range.days_active} days, "
        f"{history.development_velocity.active_contributors} contributors "
        f"[dim]({report.metadata.analysis_time:.0f}ms)[/dim]"
    )

    scores = Table(title=f"Repository health: {health.overall_health.value}")
    scores.add_column("Dimension")
    scores.add_column("Score", justify="right")
    scores.add_row("Commit frequency", str(health.commit_frequency_score))
    scores.add_row("Contributor diversity", str(health.contributor_diversity_score))
    scores.add_row("Code churn", str(health.code_churn_score))
    scores.add_row("Branch management", str(health.branch_management_score))
    console.print(scores)

    if history.hot_files:
        hot = Table(title="Hot files")
        hot.add_column("File")
        hot.add_column("Changes", justify="right")
        hot.add_column("Impact")
        for h in history.hot_files[:10]:
            hot.add_row(escape(h.path), str(h.changes), h.impact.value)
        console.print(hot)

    if data.recommendations:
        console.print("\n[bold]Recommendations[/bold]")
        for text in data.recommendations:
            console.print(f"  • {escape(text)}")
