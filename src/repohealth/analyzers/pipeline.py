"""End-to-end analysis pipeline for GitHub repositories."""

import json
import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from pathlib import Path

import httpx

from repohealth.analyzers.github import GitHubFetcher, parse_github_url
from repohealth.analyzers.scorer import Scorer
from repohealth.models.schemas import Pillar, RepoRef, RepositoryAnalysis, ScanSummary, TargetKind
from repohealth.reporting.badges import badge_markdown, badge_url

logger = logging.getLogger(__name__)

DEMO_REPOSITORY = "https://github.com/apify/crawlee"

# Warn before a batch when fewer API requests than this remain
LOW_RATE_LIMIT = 10


class AnalysisPipeline:
    """Orchestrates the full analysis pipeline for repositories.

    Pipeline stages:
    1. Resolve scan targets (repositories and user profiles)
    2. Collect signals from the GitHub API
    3. Calculate the health report
    4. Attach badges and save results
    """

    def __init__(
        self,
        fetcher: GitHubFetcher | None = None,
        scorer: Scorer | None = None,
        data_dir: Path | None = None,
        github_token: str | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            fetcher: Signal collector. Created from github_token if not provided.
            scorer: Health scorer.
            data_dir: Directory to save results. Nothing is saved if None.
            github_token: GitHub personal access token.
        """
        self._owns_fetcher = fetcher is None
        self._github_token = github_token
        self.github = fetcher or GitHubFetcher(token=github_token)
        self.scorer = scorer or Scorer()
        self.data_dir = data_dir
        self._http_client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "AnalysisPipeline":
        """Set up a shared HTTP client for a pipeline-owned fetcher."""
        if self._owns_fetcher:
            self._http_client = httpx.AsyncClient(timeout=30.0)
            self.github = GitHubFetcher(token=self._github_token, client=self._http_client)
        return self

    async def __aexit__(self, *args) -> None:
        """Clean up HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def analyze_repository(self, repo_ref: RepoRef) -> RepositoryAnalysis | None:
        """Collect, score and (optionally) save one repository.

        Args:
            repo_ref: Repository to analyze.

        Returns:
            RepositoryAnalysis, or None if the repository is not accessible.
        """
        signals = await self.github.fetch_signals(repo_ref)
        if signals is None:
            return None

        report = self.scorer.calculate_health_report(signals)
        meta = signals.repo_meta
        repo_url = meta.html_url or repo_ref.url
        security = report.pillars[Pillar.SECURITY.value].details

        analysis = RepositoryAnalysis(
            repo_name=meta.full_name or repo_ref.full_name,
            repo_url=repo_url,
            description=meta.description or "",
            language=meta.language,
            stars=meta.stars,
            forks=meta.forks,
            last_commit=meta.pushed_at,
            license_type=security["license_type"],
            report=report,
            badge_url=badge_url(report.total_score, report.grade.value),
            badge_markdown=badge_markdown(report.total_score, report.grade.value, repo_url),
            analyzed_at=datetime.now(timezone.utc),
        )

        if self.data_dir is not None:
            self._save_analysis(analysis)

        return analysis

    def _save_analysis(self, analysis: RepositoryAnalysis) -> Path:
        """Save analysis result to disk.

        Args:
            analysis: The analysis to save.

        Returns:
            Path to saved file.
        """
        analyzed_dir = self.data_dir / "analyzed"
        analyzed_dir.mkdir(parents=True, exist_ok=True)

        filepath = analyzed_dir / f"{analysis.repo_name.replace('/', '__')}.json"
        data = analysis.model_dump(mode="json")
        filepath.write_text(json.dumps(data, indent=2, default=str))

        return filepath

    async def resolve_targets(
        self,
        urls: Sequence[str],
        max_repos_per_user: int = 10,
    ) -> tuple[list[RepoRef], int]:
        """Expand URLs into repository references.

        Returns:
            Tuple of (unique repositories in input order, number of skipped URLs).
        """
        repos: list[RepoRef] = []
        seen: set[str] = set()
        skipped = 0

        for url in urls:
            target = parse_github_url(url)

            if target.kind == TargetKind.INVALID:
                logger.warning(f"Skipping invalid GitHub URL: {url}")
                skipped += 1
                continue

            if target.kind == TargetKind.USER:
                logger.info(f"Scanning user profile: {target.owner}")
                try:
                    found = await self.github.list_user_repos(target.owner, max_repos=max_repos_per_user)
                except (httpx.HTTPError, ValueError) as e:
                    logger.error(f"Failed to list repositories for {target.owner}: {e}")
                    skipped += 1
                    continue
                if not found:
                    logger.warning(f"No repositories found for user: {target.owner}")
            else:
                found = [target.to_repo_ref()]

            for ref in found:
                key = ref.full_name.lower()
                if key not in seen:
                    seen.add(key)
                    repos.append(ref)

        return repos, skipped

    async def analyze_targets(
        self,
        urls: Sequence[str],
        max_repos_per_user: int = 10,
        min_health_score: int = 0,
        progress_callback: Callable[[int, int, str], None] | None = None,
    ) -> ScanSummary:
        """Analyze every repository behind a list of repository and profile URLs.

        Args:
            urls: Repository or user profile URLs. Empty scans the demo repository.
            max_repos_per_user: Repositories to take per profile; 0 takes all.
            min_health_score: Reports below this score are filtered out.
            progress_callback: Optional callback(current, total, repo_name).

        Returns:
            ScanSummary with counts and the kept analyses.
        """
        if not urls:
            logger.info(f"No URLs provided, using demo repository {DEMO_REPOSITORY}")
            urls = [DEMO_REPOSITORY]

        repos, skipped = await self.resolve_targets(urls, max_repos_per_user)

        status = await self.github.check_rate_limit()
        if status.remaining < LOW_RATE_LIMIT:
            logger.warning(
                f"Only {status.remaining} GitHub API requests left, resets at "
                f"{status.reset.isoformat()}. Set GITHUB_TOKEN for a higher limit."
            )

        summary = ScanSummary(skipped=skipped)

        for i, ref in enumerate(repos):
            if progress_callback:
                progress_callback(i + 1, len(repos), ref.full_name)

            summary.processed += 1
            try:
                analysis = await self.analyze_repository(ref)
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"Failed to analyze {ref.full_name}: {e}")
                summary.skipped += 1
                continue

            if analysis is None:
                summary.skipped += 1
                continue

            if analysis.report.total_score < min_health_score:
                logger.info(
                    f"Filtered out {ref.full_name}: score {analysis.report.total_score} "
                    f"below minimum {min_health_score}"
                )
                summary.filtered_out += 1
                continue

            summary.successful += 1
            summary.results.append(analysis)

        logger.info(
            f"Scan complete: processed={summary.processed}, successful={summary.successful}, "
            f"filtered={summary.filtered_out}, skipped={summary.skipped}"
        )
        return summary
