"""CLI entry point for repohealth."""

import asyncio
import json
import logging
import os
from pathlib import Path

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv()

import httpx
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from repohealth.analyzers.github import GitHubFetcher, parse_github_url
from repohealth.analyzers.scorer import InvalidSignalsError, Scorer
from repohealth.models.schemas import HealthReport, Pillar, Priority, RepositoryAnalysis, TargetKind
from repohealth.reporting import render_markdown_summary

app = typer.Typer(help="GitHub repository health scoring tool.")

console = Console()

PRIORITY_COLORS = {
    Priority.CRITICAL: "red",
    Priority.MEDIUM: "yellow",
    Priority.NICE_TO_HAVE: "cyan",
}


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show informational logs"),
    debug: bool = typer.Option(False, "--debug", help="Show debug logs"),
) -> None:
    """Score GitHub repositories across seven health pillars."""
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _score_color(score: float) -> str:
    return "green" if score >= 80 else "yellow" if score >= 50 else "red"


def _score_bar(score: float, width: int = 20) -> str:
    """Create a visual score bar."""
    filled = int(score / 100 * width)
    empty = width - filled
    color = _score_color(score)
    return f"[{color}]{'█' * filled}[/{color}][dim]{'░' * empty}[/dim]"


def _print_report(report: HealthReport, limit: int = 10) -> None:
    """Print the overall score, pillar breakdown and top recommendations."""
    color = _score_color(report.total_score)
    console.print(
        Panel(
            f"[bold][{color}]{report.total_score}[/{color}][/bold] / 100  "
            f"Grade: [bold]{report.grade.value}[/bold]  Risk: [bold]{report.risk_level.value}[/bold]",
            title="Overall Health Score",
            expand=False,
        )
    )
    console.print()

    scores_table = Table(title="Pillar Breakdown", show_header=True)
    scores_table.add_column("Pillar", style="bold")
    scores_table.add_column("Score", justify="right")
    scores_table.add_column("Weight", justify="right", style="dim")
    scores_table.add_column("Bar", width=20)

    for pillar in Pillar:
        result = report.pillars[pillar.value]
        pillar_color = _score_color(result.score)
        scores_table.add_row(
            pillar.label,
            f"[{pillar_color}]{result.score}[/{pillar_color}]",
            f"{round(result.weight * 100)}%",
            _score_bar(result.score),
        )

    console.print(scores_table)

    if not report.recommendations:
        console.print("\n[green]No recommendations, nice work![/green]")
        return

    console.print()
    console.print(f"[bold]Recommendations ({report.recommendation_count}):[/bold]")
    for rec in report.recommendations[:limit]:
        rec_color = PRIORITY_COLORS[rec.priority]
        console.print(
            f"  [{rec_color}]{rec.priority.value:<12}[/{rec_color}] "
            f"[bold]{rec.category.label}[/bold]: {rec.issue} [dim]({rec.impact})[/dim]"
        )
        console.print(f"    [dim]{rec.action}[/dim]")
    if report.recommendation_count > limit:
        console.print(f"  [dim]... and {report.recommendation_count - limit} more[/dim]")


@app.command()
def score(
    target: str = typer.Argument(..., help="Repository URL or owner/repo"),
    token: str | None = typer.Option(None, "--token", "-t", help="GitHub token (defaults to GITHUB_TOKEN)"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output JSON file"),
    markdown: Path | None = typer.Option(None, "--markdown", "-m", help="Output markdown report"),
) -> None:
    """Score a single GitHub repository."""
    asyncio.run(_score_repository(target, token, output, markdown))


async def _score_repository(
    target: str,
    token: str | None,
    output: Path | None,
    markdown: Path | None,
) -> None:
    """Async implementation of score."""
    from repohealth.analyzers.pipeline import AnalysisPipeline

    parsed = parse_github_url(target)
    if parsed.kind != TargetKind.REPO:
        console.print(f"[red]Not a GitHub repository: {escape(target)}[/red]")
        raise typer.Exit(1)
    repo_ref = parsed.to_repo_ref()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task(f"Analyzing {escape(repo_ref.full_name)}...", total=None)

        async with AnalysisPipeline(github_token=token or os.environ.get("GITHUB_TOKEN")) as pipeline:
            try:
                analysis = await pipeline.analyze_repository(repo_ref)
            except (httpx.HTTPError, ValueError) as e:
                console.print(f"[red]Error analyzing repository: {escape(str(e))}[/red]")
                raise typer.Exit(1)

    if analysis is None:
        console.print(f"[red]Repository not found or not accessible: {escape(repo_ref.full_name)}[/red]")
        raise typer.Exit(1)

    console.print()
    console.print(f"[bold cyan]{escape(analysis.repo_name)}[/bold cyan]")
    if analysis.description:
        console.print(f"[dim]{escape(analysis.description)}[/dim]")
    console.print(
        f"[dim]Stars: {analysis.stars:,}  Forks: {analysis.forks:,}  "
        f"License: {escape(analysis.license_type)}  Language: {escape(analysis.language or 'n/a')}[/dim]"
    )
    console.print()

    _print_report(analysis.report)

    console.print()
    console.print(f"[bold]Badge:[/bold] {escape(analysis.badge_markdown)}")

    if output:
        output.write_text(json.dumps(analysis.model_dump(mode="json"), indent=2, default=str))
        console.print(f"\n[green]Saved to {output}[/green]")

    if markdown:
        markdown.write_text(render_markdown_summary(analysis))
        console.print(f"[green]Markdown report saved to {markdown}[/green]")


@app.command()
def scan(
    urls: list[str] | None = typer.Argument(None, help="Repository or user profile URLs"),
    max_repos: int = typer.Option(10, "--max-repos", "-n", help="Repositories per user profile (0 for all)"),
    min_score: int = typer.Option(0, "--min-score", help="Drop repositories scoring below this"),
    data_dir: Path = typer.Option(Path("data"), "--data-dir", "-d", help="Data directory"),
) -> None:
    """Score many repositories and user profiles in batch."""
    asyncio.run(_scan(urls or [], max_repos, min_score, data_dir))


async def _scan(urls: list[str], max_repos: int, min_score: int, data_dir: Path) -> None:
    """Async implementation of scan."""
    from rich.progress import BarColumn, TaskProgressColumn

    from repohealth.analyzers.pipeline import AnalysisPipeline

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Resolving targets...", total=None)

        def on_progress(current: int, total: int, repo_name: str) -> None:
            progress.update(task, total=total, completed=current - 1, description=f"Analyzing {escape(repo_name)}...")

        async with AnalysisPipeline(
            github_token=os.environ.get("GITHUB_TOKEN"),
            data_dir=data_dir,
        ) as pipeline:
            summary = await pipeline.analyze_targets(
                urls,
                max_repos_per_user=max_repos,
                min_health_score=min_score,
                progress_callback=on_progress,
            )
        progress.update(task, completed=summary.processed, description="Done")

    console.print()
    console.print(
        f"[bold]Processed:[/bold] {summary.processed}  "
        f"[green]Successful:[/green] {summary.successful}  "
        f"[yellow]Filtered out:[/yellow] {summary.filtered_out}  "
        f"[red]Skipped:[/red] {summary.skipped}"
    )

    if summary.results:
        _print_scan_table(summary.results)

    console.print()
    console.print(f"[dim]Results saved to {data_dir}[/dim]")


def _print_scan_table(results: list[RepositoryAnalysis]) -> None:
    table = Table(title="Scan Results", show_header=True)
    table.add_column("Repository", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Grade", justify="center")
    table.add_column("Risk", justify="center")
    table.add_column("Critical", justify="right")

    for analysis in sorted(results, key=lambda a: a.report.total_score, reverse=True):
        report = analysis.report
        color = _score_color(report.total_score)
        critical = sum(1 for r in report.recommendations if r.priority == Priority.CRITICAL)
        table.add_row(
            escape(analysis.repo_name),
            f"[{color}]{report.total_score}[/{color}]",
            report.grade.value,
            report.risk_level.value,
            str(critical),
        )

    console.print()
    console.print(table)


@app.command()
def evaluate(
    signals_file: Path = typer.Argument(..., help="JSON file containing a signal bundle"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output JSON file"),
) -> None:
    """Score a saved signal bundle offline."""
    try:
        data = json.loads(signals_file.read_text())
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Could not read {signals_file}: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    try:
        report = Scorer().calculate_health_report(data)
    except InvalidSignalsError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    _print_report(report)

    if output:
        output.write_text(json.dumps(report.model_dump(mode="json"), indent=2, default=str))
        console.print(f"\n[green]Saved to {output}[/green]")


@app.command()
def rate_limit(
    token: str | None = typer.Option(None, "--token", "-t", help="GitHub token (defaults to GITHUB_TOKEN)"),
) -> None:
    """Show the current GitHub API quota."""
    asyncio.run(_rate_limit(token))


async def _rate_limit(token: str | None) -> None:
    """Async implementation of rate-limit."""
    fetcher = GitHubFetcher(token=token)
    status = await fetcher.check_rate_limit()

    color = "green" if status.remaining > status.limit * 0.2 else "red"
    console.print(f"[bold]Remaining:[/bold] [{color}]{status.remaining}[/{color}] / {status.limit}")
    console.print(f"[bold]Resets at:[/bold] {status.reset.isoformat()}")


@app.command()
def version() -> None:
    """Show version information."""
    from repohealth import __version__

    console.print(f"repohealth v{__version__}")


if __name__ == "__main__":
    app()
